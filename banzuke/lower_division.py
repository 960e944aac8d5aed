"""
Lower-tier rank change (Makushita, Sandanme, Jonidan, Jonokuchi, Maezumo)

Movement is read from win-count tables, scaled by where the competitor stands
inside its tier, and applied on the continuous lower-tier coordinate.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from loguru import logger

from .coordinates import (
    LOWER_DIVISION_TOTAL,
    clamp,
    from_linear_position,
    lower_division_span,
    to_linear_position,
)
from .ranks import (
    DIVISION_ORDER,
    LOWER_DIVISIONS,
    MAX_NUMBER,
    Division,
    Rank,
    Side,
    ranked,
    scheduled_bout_count,
)
from .records import TournamentRecord

RandomSource = Callable[[], float]


# =====================================================
# Movement tables
# =====================================================

@dataclass(frozen=True)
class MovementRange:
    """Numbers to move for one win count; sign +1 is toward senior"""
    min: int
    max: int
    sign: int


MAKUSHITA_MOVEMENT: Dict[int, MovementRange] = {
    7: MovementRange(22, 34, 1),
    6: MovementRange(14, 21, 1),
    5: MovementRange(10, 16, 1),
    4: MovementRange(4, 7, 1),
    3: MovementRange(5, 9, -1),
    2: MovementRange(16, 24, -1),
    1: MovementRange(28, 40, -1),
    0: MovementRange(48, 66, -1),
}

LOWER_MOVEMENT: Dict[int, MovementRange] = {
    7: MovementRange(30, 50, 1),
    6: MovementRange(14, 24, 1),
    5: MovementRange(8, 14, 1),
    4: MovementRange(5, 9, 1),
    3: MovementRange(8, 14, -1),
    2: MovementRange(18, 30, -1),
    1: MovementRange(30, 46, -1),
    0: MovementRange(50, 72, -1),
}

# Steeper promotion-only tables for the two most junior tiers
PROMOTION_BOOST: Dict[Division, Dict[int, MovementRange]] = {
    Division.JONIDAN: {
        7: MovementRange(34, 54, 1),
        6: MovementRange(16, 26, 1),
        5: MovementRange(9, 16, 1),
        4: MovementRange(6, 10, 1),
    },
    Division.JONOKUCHI: {
        7: MovementRange(38, 58, 1),
        6: MovementRange(18, 28, 1),
        5: MovementRange(10, 18, 1),
        4: MovementRange(7, 11, 1),
    },
}

# Makushita number at or above which a 7-0 stays in Makushita's upper band
MAKUSHITA_FAST_TRACK_NUMBER = 15

# Maezumo debut number on Jonokuchi by Maezumo wins
MAEZUMO_DEBUT_NUMBER = {3: 10, 2: 20}
MAEZUMO_DEBUT_DEFAULT = 28

JURYO_DEBUT_RANK = ranked(Division.JURYO, 14, Side.EAST)


@dataclass
class LowerDivisionQuota:
    """
    Boundary flags for one competitor. None leaves a crossing unconstrained,
    False forbids it this cycle.
    """
    can_promote_to_juryo: Optional[bool] = None
    can_promote_to_makushita: Optional[bool] = None
    can_promote_to_sandanme: Optional[bool] = None
    can_promote_to_jonidan: Optional[bool] = None
    can_demote_to_sandanme: Optional[bool] = None
    can_demote_to_jonidan: Optional[bool] = None
    can_demote_to_jonokuchi: Optional[bool] = None
    neighbor_nudge: float = 0.0

    def promotion_blocked(self, division: Division) -> bool:
        flag = {
            Division.SANDANME: self.can_promote_to_makushita,
            Division.JONIDAN: self.can_promote_to_sandanme,
            Division.JONOKUCHI: self.can_promote_to_jonidan,
        }.get(division)
        return flag is False

    def demotion_blocked(self, division: Division) -> bool:
        flag = {
            Division.MAKUSHITA: self.can_demote_to_sandanme,
            Division.SANDANME: self.can_demote_to_jonidan,
            Division.JONIDAN: self.can_demote_to_jonokuchi,
        }.get(division)
        return flag is False


@dataclass
class RankChange:
    """Outcome of one rank-change decision"""
    next_rank: Rank
    event: Optional[str] = None
    clamped_from: Optional[Rank] = None

    def to_dict(self) -> Dict:
        return {"next_rank": self.next_rank.label(), "event": self.event}


# =====================================================
# Movement
# =====================================================

def tier_progress(division: Division, number: int) -> float:
    """0.0 at the top of the tier, 1.0 at the bottom"""
    maximum = MAX_NUMBER[division]
    if maximum <= 1:
        return 0.0
    return (clamp(number, 1, maximum) - 1) / (maximum - 1)


def resolve_movement(record: TournamentRecord) -> int:
    """Signed numbers to move (positive is toward senior)"""
    division = record.rank.division
    table = MAKUSHITA_MOVEMENT if division == Division.MAKUSHITA else LOWER_MOVEMENT
    rule = table.get(record.wins)
    if rule is None:
        return 0
    if rule.sign > 0:
        rule = PROMOTION_BOOST.get(division, {}).get(record.wins, rule)
    progress = tier_progress(division, record.rank.number or 1)
    intensity = progress if rule.sign > 0 else 1 - progress
    # half-up rounding
    value = int(rule.min + (rule.max - rule.min) * intensity + 0.5)
    return value * rule.sign


def _extreme_jitter(wins: int, total_losses: int, progress: float, rng: RandomSource) -> int:
    extreme_promotion = wins >= 6
    extreme_demotion = wins <= 1 or total_losses >= 6
    if not (extreme_promotion or extreme_demotion):
        return 0
    if extreme_promotion:
        bias = -1 if progress >= 0.75 else (1 if progress <= 0.2 else 0)
    else:
        bias = 1 if progress <= 0.2 else (-1 if progress >= 0.85 else 0)
    jitter = 0
    if rng() < 0.35:
        jitter = -1 if rng() < 0.5 else 1
    return clamp(bias + jitter, -2, 2)


def _maezumo_change(record: TournamentRecord) -> RankChange:
    if record.absences >= scheduled_bout_count(Division.MAEZUMO):
        return RankChange(next_rank=record.rank)
    number = MAEZUMO_DEBUT_NUMBER.get(record.wins, MAEZUMO_DEBUT_DEFAULT)
    return RankChange(
        next_rank=ranked(Division.JONOKUCHI, number, Side.EAST),
        event="PROMOTION_TO_JONOKUCHI",
    )


def _juryo_shortcut(record: TournamentRecord) -> bool:
    number = record.rank.number or MAX_NUMBER[Division.MAKUSHITA]
    wins = record.wins
    return (
        (number <= 15 and wins == 7)
        or (number == 1 and wins >= 4)
        or (number <= 5 and wins >= 6)
    )


def calculate_lower_division_change(
    record: TournamentRecord,
    rng: RandomSource,
    quota: Optional[LowerDivisionQuota] = None,
) -> RankChange:
    """
    Next rank for a Maezumo or lower-tier competitor.

    Tiers outside the rule-governed range come back unchanged.
    """
    quota = quota or LowerDivisionQuota()
    current = record.rank
    division = current.division

    if division == Division.MAEZUMO:
        return _maezumo_change(record)
    if division not in LOWER_DIVISIONS:
        logger.debug(f"{current.label()} is not rule-governed, rank unchanged")
        return RankChange(next_rank=current)

    if division == Division.MAKUSHITA and quota.can_promote_to_juryo is not False and _juryo_shortcut(record):
        return RankChange(next_rank=JURYO_DEBUT_RANK, event="PROMOTION_TO_JURYO")

    wins = record.wins
    total_losses = record.losses + record.absences
    number = current.number or 1
    progress = tier_progress(division, number)

    current_pos = to_linear_position(current)
    next_pos = current_pos - resolve_movement(record) * 2
    next_pos += clamp(int(round(quota.neighbor_nudge)), -1, 1)
    next_pos += _extreme_jitter(wins, total_losses, progress, rng)

    # Jonokuchi never falls back into Maezumo
    next_pos = clamp(next_pos, 0, LOWER_DIVISION_TOTAL - 1)

    start, end = lower_division_span(division)
    if quota.promotion_blocked(division) and next_pos < start:
        next_pos = start
    if quota.demotion_blocked(division) and next_pos > end:
        next_pos = end

    if total_losses > wins and next_pos < current_pos:
        next_pos = current_pos

    target = from_linear_position(next_pos)
    if division == Division.MAKUSHITA and wins == 7 and target.division == Division.MAKUSHITA:
        target = ranked(
            Division.MAKUSHITA,
            min(target.number, MAKUSHITA_FAST_TRACK_NUMBER),
            Side.EAST,
        )

    current_index = DIVISION_ORDER.index(division)
    target_index = DIVISION_ORDER.index(target.division)
    event = None
    if target_index < current_index:
        event = "PROMOTION"
    elif target_index > current_index:
        event = "DEMOTION"
    return RankChange(next_rank=target, event=event)
