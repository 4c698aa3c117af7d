from __future__ import annotations

import math
import random
from enum import StrEnum


class Phase(StrEnum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    WAITING = "waiting"
    STIMULUS = "stimulus"
    FINISHED = "finished"


class TrialType(StrEnum):
    GO = "go"
    NOGO = "nogo"


class SeededRng:
    """Simple seeded RNG wrapper to keep deterministic streams explicit."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def chance(self, p: float) -> bool:
        """Bernoulli draw: True with probability p (p=0 never, p=1 always)."""

        return self._rng.random() < clamp01(p)


def clamp01(x: float) -> float:
    return 0.0 if x <= 0.0 else 1.0 if x >= 1.0 else float(x)


def clamp_int(x: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, int(x)))


def round_half_up(x: float) -> int:
    # Matches the rounding the exported record has always used (0.5 -> 1).
    return int(math.floor(x + 0.5))


def mean_ms(values: list[int]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def ratio_2dp(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round_half_up((numerator / denominator) * 100.0) / 100.0
