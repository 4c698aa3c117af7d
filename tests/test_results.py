from __future__ import annotations

import json
import re

import pytest

from neurodetect.results import GAME_TYPE, ReactionAttentionResult


def _build(**overrides: object) -> ReactionAttentionResult:
    kwargs: dict[str, object] = {
        "rounds_total": 15,
        "rounds_completed": 15,
        "hits": 0,
        "misses": 0,
        "false_clicks": 0,
        "reaction_times_ms": [],
        "timestamp": "2026-10-18T12:00:00Z",
    }
    kwargs.update(overrides)
    return ReactionAttentionResult.build(**kwargs)


def test_empty_denominators_degrade_to_zero() -> None:
    result = _build(rounds_completed=0)
    assert result.avg_reaction_time_ms == 0
    assert result.accuracy_rate == 0.0


def test_average_rounds_half_up() -> None:
    result = _build(hits=2, reaction_times_ms=[300, 301])
    assert result.avg_reaction_time_ms == 301


@pytest.mark.parametrize(
    ("hits", "misses", "expected"),
    [(2, 1, 0.67), (1, 2, 0.33), (7, 1, 0.88), (5, 0, 1.0), (0, 4, 0.0)],
)
def test_accuracy_rate_two_decimals(hits: int, misses: int, expected: float) -> None:
    result = _build(hits=hits, misses=misses, reaction_times_ms=[250] * hits)
    assert result.accuracy_rate == pytest.approx(expected)


def test_export_shape_and_field_values() -> None:
    result = _build(
        rounds_completed=4,
        hits=3,
        misses=1,
        false_clicks=2,
        reaction_times_ms=[310, 280, 402],
    )
    data = json.loads(result.to_json())

    assert list(data) == [
        "user_id",
        "game_type",
        "timestamp",
        "rounds_total",
        "rounds_completed",
        "avg_reaction_time_ms",
        "accuracy_rate",
        "false_clicks",
        "hits",
        "misses",
        "reaction_times_ms",
    ]
    assert data["user_id"] == "demo"
    assert data["game_type"] == GAME_TYPE == "reaction_attention_v1"
    assert data["timestamp"] == "2026-10-18T12:00:00Z"
    assert data["avg_reaction_time_ms"] == 331
    assert data["accuracy_rate"] == 0.75
    assert data["reaction_times_ms"] == [310, 280, 402]


def test_default_timestamp_is_iso8601_utc() -> None:
    result = ReactionAttentionResult.build(
        rounds_total=1,
        rounds_completed=0,
        hits=0,
        misses=0,
        false_clicks=0,
        reaction_times_ms=[],
    )
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", result.timestamp)


def test_record_does_not_alias_caller_sequence() -> None:
    rts = [200, 220]
    result = _build(hits=2, reaction_times_ms=rts)
    rts.append(999)
    assert result.reaction_times_ms == (200, 220)
