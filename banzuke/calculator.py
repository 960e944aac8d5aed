"""
Rank change dispatch

Each competitor's next rank comes from exactly one mechanism per cycle:
the committee (sekitori tiers and competitors crossing into them) or the
lower-tier rule engine (Makushita and below, Maezumo).
"""
from typing import Callable, Optional

from loguru import logger

from .coordinates import normalize_rank, rank_value
from .lower_division import LowerDivisionQuota, RankChange, calculate_lower_division_change
from .ranks import DIVISION_ORDER, LOWER_DIVISIONS, Division, MakuuchiLayout, Rank
from .records import TournamentRecord

RandomSource = Callable[[], float]


def classify_change(current: Rank, nxt: Rank) -> Optional[str]:
    """PROMOTION / DEMOTION across tiers, None inside a tier"""
    current_index = DIVISION_ORDER.index(current.division)
    next_index = DIVISION_ORDER.index(nxt.division)
    if next_index < current_index:
        return "PROMOTION"
    if next_index > current_index:
        return "DEMOTION"
    return None


class RankChangeCalculator:
    """
    Next-rank resolver for one competitor.

    Usage:
        calculator = RankChangeCalculator(rng)
        change = calculator.next_rank(record, quota=quota)
        change = calculator.next_rank(record, committee_rank=rank)
    """

    def __init__(self, rng: RandomSource, layout: Optional[MakuuchiLayout] = None):
        self.rng = rng
        self.layout = layout

    def next_rank(
        self,
        record: TournamentRecord,
        quota: Optional[LowerDivisionQuota] = None,
        committee_rank: Optional[Rank] = None,
    ) -> RankChange:
        current = record.rank
        if committee_rank is not None:
            target = normalize_rank(committee_rank, self.layout)
            return RankChange(
                next_rank=target,
                event=classify_change(current, target),
                clamped_from=committee_rank if target != committee_rank else None,
            )

        if current.division in LOWER_DIVISIONS or current.division == Division.MAEZUMO:
            return calculate_lower_division_change(record, self.rng, quota)

        logger.warning(f"No committee decision for {current.label()}, rank unchanged")
        return RankChange(next_rank=current)

    @staticmethod
    def is_promotion(current: Rank, nxt: Rank) -> bool:
        return rank_value(nxt) < rank_value(current)
