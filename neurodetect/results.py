from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

from .cognitive_core import mean_ms, ratio_2dp

GAME_TYPE = "reaction_attention_v1"
PLACEHOLDER_USER_ID = "demo"


def _utc_now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(time.time()))


@dataclass(frozen=True, slots=True)
class ReactionAttentionResult:
    """Exportable summary of a (possibly still running) session.

    Derived values are computed from the counters when built; nothing here is
    mutated afterwards.
    """

    rounds_total: int
    rounds_completed: int
    avg_reaction_time_ms: int
    accuracy_rate: float
    false_clicks: int
    hits: int
    misses: int
    reaction_times_ms: tuple[int, ...]
    timestamp: str
    user_id: str = PLACEHOLDER_USER_ID
    game_type: str = GAME_TYPE

    @classmethod
    def build(
        cls,
        *,
        rounds_total: int,
        rounds_completed: int,
        hits: int,
        misses: int,
        false_clicks: int,
        reaction_times_ms: list[int] | tuple[int, ...],
        timestamp: str | None = None,
        user_id: str = PLACEHOLDER_USER_ID,
    ) -> "ReactionAttentionResult":
        rts = [int(v) for v in reaction_times_ms]
        return cls(
            rounds_total=int(rounds_total),
            rounds_completed=int(rounds_completed),
            avg_reaction_time_ms=mean_ms(rts),
            accuracy_rate=ratio_2dp(int(hits), int(hits) + int(misses)),
            false_clicks=int(false_clicks),
            hits=int(hits),
            misses=int(misses),
            reaction_times_ms=tuple(rts),
            timestamp=_utc_now_iso() if timestamp is None else str(timestamp),
            user_id=str(user_id),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "game_type": self.game_type,
            "timestamp": self.timestamp,
            "rounds_total": self.rounds_total,
            "rounds_completed": self.rounds_completed,
            "avg_reaction_time_ms": self.avg_reaction_time_ms,
            "accuracy_rate": self.accuracy_rate,
            "false_clicks": self.false_clicks,
            "hits": self.hits,
            "misses": self.misses,
            "reaction_times_ms": list(self.reaction_times_ms),
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)
