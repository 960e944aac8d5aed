"""
Bout resolution
"""
import math
from typing import List, Tuple

from .collaborators import BoutContext, BoutResult, RandomSource
from .competitors import Participant

LOGISTIC_SLOPE = 0.08

# (technique, weight)
TECHNIQUES: List[Tuple[str, float]] = [
    ("yorikiri", 30),
    ("oshidashi", 22),
    ("hatakikomi", 9),
    ("tsukiotoshi", 8),
    ("uwatenage", 7),
    ("hikiotoshi", 6),
    ("yoritaoshi", 5),
    ("sukuinage", 4),
    ("shitatenage", 4),
    ("tsukidashi", 3),
    ("okuridashi", 2),
]

_TOTAL_WEIGHT = sum(weight for _, weight in TECHNIQUES)


def win_probability(power_diff: float, slope: float = LOGISTIC_SLOPE) -> float:
    return 1.0 / (1.0 + math.exp(-slope * power_diff))


def draw_technique(rng: RandomSource) -> str:
    roll = rng() * _TOTAL_WEIGHT
    for name, weight in TECHNIQUES:
        roll -= weight
        if roll < 0:
            return name
    return TECHNIQUES[0][0]


class LogisticBoutResolver:
    """Win probability from the power gap, nudged by streak and title contention"""

    def __init__(self, slope: float = LOGISTIC_SLOPE):
        self.slope = slope

    def momentum(self, context: BoutContext) -> float:
        bonus = min(2.0, context.consecutive_wins * 0.3)
        if context.is_championship_contention:
            bonus += 1.5
        if context.previous_outcome == "ABSENT":
            bonus -= 1.0
        return bonus

    def resolve(
        self,
        competitor: Participant,
        opponent: Participant,
        context: BoutContext,
        rng: RandomSource,
    ) -> BoutResult:
        diff = competitor.power - opponent.power + self.momentum(context)
        is_win = rng() < win_probability(diff, self.slope)
        return BoutResult(is_win=is_win, technique=draw_technique(rng))
