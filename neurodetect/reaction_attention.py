from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from .clock import Clock, seconds_to_ms
from .cognitive_core import Phase, SeededRng, TrialType, clamp_int, mean_ms, ratio_2dp
from .results import ReactionAttentionResult
from .scheduler import FrameScheduler, TimerHandle

logger = logging.getLogger(__name__)

MAX_REACTION_TIME_MS = 5000


@dataclass(frozen=True, slots=True)
class ReactionAttentionConfig:
    total_rounds: int = 15
    false_target_rate: float = 0.25  # share of distractor (NoGo) trials
    min_wait_ms: int = 900
    max_wait_ms: int = 2200
    target_visible_ms: int = 900  # window to react
    countdown_ms: int = 800
    early_click_notice_ms: int = 500


class TrialOutcome(StrEnum):
    HIT = "hit"
    MISS = "miss"
    FALSE_ALARM = "false_alarm"
    CORRECT_REJECTION = "correct_rejection"
    PREMATURE = "premature"


@dataclass(frozen=True, slots=True)
class TrialEvent:
    round_index: int
    trial_type: TrialType
    outcome: TrialOutcome
    onset_s: float | None
    responded_at_s: float | None
    reaction_time_ms: int | None

    @property
    def is_false_click(self) -> bool:
        return self.outcome in (TrialOutcome.FALSE_ALARM, TrialOutcome.PREMATURE)


@dataclass(frozen=True, slots=True)
class ReactionAttentionSnapshot:
    """View model for the UI (pure data)."""

    phase: Phase
    current_round: int
    total_rounds: int
    trial_type: TrialType | None
    message: str
    hits: int
    misses: int
    false_clicks: int
    avg_reaction_time_ms: int
    accuracy_rate: float


class ReactionAttentionEngine:
    """Go/No-Go trial engine for the waiting-room reaction + attention test.

    idle -> countdown -> (waiting -> stimulus) x total_rounds -> finished

    - Time is entirely via the injected Clock; transitions fire from update().
    - Exactly one scheduled transition may be pending at a time: every
      schedule goes through _schedule(), which cancels the previous handle.
    - Trial types and delays come from an RNG seeded at construction.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        seed: int,
        config: ReactionAttentionConfig | None = None,
        scheduler: FrameScheduler | None = None,
    ) -> None:
        cfg = config or ReactionAttentionConfig()

        if cfg.total_rounds <= 0:
            raise ValueError("total_rounds must be > 0")
        if not (0.0 <= cfg.false_target_rate <= 1.0):
            raise ValueError("false_target_rate must be in [0.0, 1.0]")
        if cfg.min_wait_ms < 0:
            raise ValueError("min_wait_ms must be >= 0")
        if cfg.max_wait_ms < cfg.min_wait_ms:
            raise ValueError("max_wait_ms must be >= min_wait_ms")
        if cfg.target_visible_ms <= 0:
            raise ValueError("target_visible_ms must be > 0")
        if cfg.countdown_ms < 0:
            raise ValueError("countdown_ms must be >= 0")
        if cfg.early_click_notice_ms < 0:
            raise ValueError("early_click_notice_ms must be >= 0")

        self._clock = clock
        self._seed = int(seed)
        self._cfg = cfg
        self._rng = SeededRng(self._seed)
        self._scheduler = scheduler or FrameScheduler(clock)

        self._pending: TimerHandle | None = None

        self._phase = Phase.IDLE
        self._current_round = 0
        self._trial_type: TrialType | None = None
        self._onset_s: float | None = None

        self._hits = 0
        self._misses = 0
        self._false_clicks = 0
        self._reaction_times_ms: list[int] = []
        self._events: list[TrialEvent] = []

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> ReactionAttentionConfig:
        return self._cfg

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def current_round(self) -> int:
        return self._current_round

    @property
    def trial_type(self) -> TrialType | None:
        if self._phase in (Phase.WAITING, Phase.STIMULUS):
            return self._trial_type
        return None

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def false_clicks(self) -> int:
        return self._false_clicks

    def reaction_times_ms(self) -> list[int]:
        return list(self._reaction_times_ms)

    def events(self) -> list[TrialEvent]:
        return list(self._events)

    def rounds_completed(self) -> int:
        return sum(1 for e in self._events if e.outcome is not TrialOutcome.PREMATURE)

    def pending_timer_count(self) -> int:
        return self._scheduler.pending_count()

    def avg_reaction_time_ms(self) -> int:
        return mean_ms(self._reaction_times_ms)

    def accuracy_rate(self) -> float:
        return ratio_2dp(self._hits, self._hits + self._misses)

    # Commands

    def start(self) -> None:
        # Restarting mid-session is an implicit reset.
        self.reset()
        self._phase = Phase.COUNTDOWN
        logger.debug("start: seed=%d rounds=%d", self._seed, self._cfg.total_rounds)
        self._schedule(self._cfg.countdown_ms, self._on_countdown_elapsed)

    def reset(self) -> None:
        self._cancel_pending()
        self._phase = Phase.IDLE
        self._current_round = 0
        self._trial_type = None
        self._onset_s = None
        self._hits = 0
        self._misses = 0
        self._false_clicks = 0
        self._reaction_times_ms = []
        self._events = []

    def update(self) -> None:
        self._scheduler.run_due()

    def register_click(self, *, at_s: float | None = None) -> TrialOutcome | None:
        """Classify a click. Returns the outcome recorded, or None if ignored.

        Transitions already due are settled first, so the click is judged
        against the phase that was actually showing. A click stamped before
        stimulus onset is premature; one stamped at or after the end of the
        visible window lands after the trial timed out.
        """

        clicked_at = self._clock.now() if at_s is None else float(at_s)
        self._scheduler.run_due()

        if self._phase is Phase.WAITING:
            return self._premature_click(clicked_at)

        if self._phase is not Phase.STIMULUS:
            return None

        assert self._trial_type is not None
        assert self._onset_s is not None
        if clicked_at < self._onset_s:
            return self._premature_click(clicked_at)

        # Cancel the window timeout before touching counters so it cannot also score this trial.
        self._cancel_pending()

        if clicked_at >= self._window_end_s():
            self._conclude_unanswered()
            return self.register_click(at_s=clicked_at)

        if self._trial_type is TrialType.NOGO:
            self._false_clicks += 1
            self._record(TrialOutcome.FALSE_ALARM, responded_at_s=clicked_at)
            self._advance()
            return TrialOutcome.FALSE_ALARM

        rt_ms = clamp_int(seconds_to_ms(clicked_at - self._onset_s), 0, MAX_REACTION_TIME_MS)
        self._hits += 1
        self._reaction_times_ms.append(rt_ms)
        self._record(TrialOutcome.HIT, responded_at_s=clicked_at, reaction_time_ms=rt_ms)
        self._advance()
        return TrialOutcome.HIT

    # Read models

    def snapshot(self) -> ReactionAttentionSnapshot:
        return ReactionAttentionSnapshot(
            phase=self._phase,
            current_round=self._current_round,
            total_rounds=self._cfg.total_rounds,
            trial_type=self.trial_type,
            message=self.current_message(),
            hits=self._hits,
            misses=self._misses,
            false_clicks=self._false_clicks,
            avg_reaction_time_ms=self.avg_reaction_time_ms(),
            accuracy_rate=self.accuracy_rate(),
        )

    def result(self, *, timestamp: str | None = None) -> ReactionAttentionResult:
        return ReactionAttentionResult.build(
            rounds_total=self._cfg.total_rounds,
            rounds_completed=self.rounds_completed(),
            hits=self._hits,
            misses=self._misses,
            false_clicks=self._false_clicks,
            reaction_times_ms=self._reaction_times_ms,
            timestamp=timestamp,
        )

    def current_message(self) -> str:
        if self._phase is Phase.IDLE:
            return ""
        if self._phase is Phase.COUNTDOWN:
            return "Get ready..."
        if self._phase is Phase.FINISHED:
            return "Done."

        last = self._events[-1] if self._events else None
        if self._phase is Phase.STIMULUS:
            if self._trial_type is TrialType.NOGO:
                return "BLUE appeared - do NOT click"
            return "GREEN appeared - CLICK!"

        # WAITING: briefly echo what just happened, then fall back to the wait prompt.
        if last is not None and last.responded_at_s is not None:
            since_ms = seconds_to_ms(self._clock.now() - last.responded_at_s)
            if last.outcome is TrialOutcome.PREMATURE and since_ms < self._cfg.early_click_notice_ms:
                return "Too early. Wait for the signal."
            if last.round_index == self._current_round - 1 and since_ms < self._cfg.early_click_notice_ms:
                if last.outcome is TrialOutcome.FALSE_ALARM:
                    return "Incorrect (false target)."
                if last.outcome is TrialOutcome.HIT:
                    return f"Good! Reaction: {last.reaction_time_ms} ms"
        return "Wait... (do not click)"

    # Transitions

    def _on_countdown_elapsed(self) -> None:
        self._pending = None
        self._begin_round(1)

    def _on_wait_elapsed(self) -> None:
        self._pending = None
        assert self._phase is Phase.WAITING
        self._phase = Phase.STIMULUS
        self._onset_s = self._clock.now()
        logger.debug("round %d: stimulus %s", self._current_round, self._trial_type)
        self._schedule(self._cfg.target_visible_ms, self._on_window_elapsed)

    def _on_window_elapsed(self) -> None:
        self._pending = None
        self._conclude_unanswered()

    def _window_end_s(self) -> float:
        assert self._onset_s is not None
        return self._onset_s + self._cfg.target_visible_ms / 1000.0

    def _premature_click(self, clicked_at: float) -> TrialOutcome:
        self._false_clicks += 1
        self._record(TrialOutcome.PREMATURE, responded_at_s=clicked_at)
        return TrialOutcome.PREMATURE

    def _conclude_unanswered(self) -> None:
        assert self._phase is Phase.STIMULUS
        if self._trial_type is TrialType.GO:
            self._misses += 1
            self._record(TrialOutcome.MISS)
        else:
            self._record(TrialOutcome.CORRECT_REJECTION)
        self._advance()

    def _advance(self) -> None:
        self._begin_round(self._current_round + 1)

    def _begin_round(self, round_index: int) -> None:
        self._onset_s = None
        if round_index > self._cfg.total_rounds:
            self._cancel_pending()
            self._phase = Phase.FINISHED
            self._trial_type = None
            logger.debug(
                "finished: hits=%d misses=%d false_clicks=%d",
                self._hits,
                self._misses,
                self._false_clicks,
            )
            return

        self._current_round = round_index
        self._phase = Phase.WAITING
        self._trial_type = (
            TrialType.NOGO if self._rng.chance(self._cfg.false_target_rate) else TrialType.GO
        )
        wait_ms = self._rng.randint(self._cfg.min_wait_ms, self._cfg.max_wait_ms)
        logger.debug("round %d: %s after %d ms", round_index, self._trial_type, wait_ms)
        self._schedule(wait_ms, self._on_wait_elapsed)

    def _schedule(self, delay_ms: int, callback: Callable[[], None]) -> None:
        self._cancel_pending()
        self._pending = self._scheduler.call_later(delay_ms / 1000.0, callback)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _record(
        self,
        outcome: TrialOutcome,
        *,
        responded_at_s: float | None = None,
        reaction_time_ms: int | None = None,
    ) -> None:
        assert self._trial_type is not None
        event = TrialEvent(
            round_index=self._current_round,
            trial_type=self._trial_type,
            outcome=outcome,
            onset_s=self._onset_s,
            responded_at_s=responded_at_s,
            reaction_time_ms=reaction_time_ms,
        )
        self._events.append(event)
        logger.debug("round %d: %s", self._current_round, outcome)


def build_reaction_attention_test(
    *,
    clock: Clock,
    seed: int,
    config: ReactionAttentionConfig | None = None,
) -> ReactionAttentionEngine:
    return ReactionAttentionEngine(clock=clock, seed=seed, config=config)
