"""
Rank / slot coordinate model

- slot: 1-based position inside one tier (2n-1 East, 2n West)
- linear position: 0-based position across the four lower tiers
- rank value: total order over all ranks, smaller is more senior
"""
from typing import Dict, Optional

from loguru import logger

from .ranks import (
    DIVISION_ORDER,
    DIVISION_SIZE,
    DEFAULT_MAKUUCHI_LAYOUT,
    LOWER_DIVISIONS,
    MAEZUMO_RANK,
    MAX_NUMBER,
    TITLE_ORDER,
    Division,
    MakuuchiLayout,
    Rank,
    Side,
    Title,
)


def clamp(value, low, high):
    return max(low, min(high, value))


# =====================================================
# Within-tier slots
# =====================================================

def tier_slot_count(division: Division, layout: Optional[MakuuchiLayout] = None) -> int:
    """Number of slots a tier offers"""
    if division in DIVISION_SIZE:
        return DIVISION_SIZE[division]
    if division == Division.MAEZUMO:
        return 1
    return MAX_NUMBER[division] * 2


def number_side_to_slot(number: int, side: Side) -> int:
    return (number - 1) * 2 + (2 if side == Side.WEST else 1)


def slot_to_number_side(slot: int) -> tuple:
    return (slot - 1) // 2 + 1, Side.EAST if slot % 2 == 1 else Side.WEST


def _title_offsets(layout: MakuuchiLayout) -> Dict[Title, int]:
    offsets = {}
    running = 0
    for title in TITLE_ORDER:
        offsets[title] = running
        running += layout.count(title)
    return offsets


def rank_to_slot(rank: Rank, layout: Optional[MakuuchiLayout] = None) -> int:
    """Rank -> slot inside its own tier"""
    if rank.division == Division.MAEZUMO:
        return 1
    number = rank.number or 1
    if rank.division != Division.MAKUUCHI:
        return number_side_to_slot(number, rank.side)
    layout = layout or DEFAULT_MAKUUCHI_LAYOUT
    title = rank.title or Title.MAEGASHIRA
    return _title_offsets(layout)[title] + number_side_to_slot(number, rank.side)


def slot_to_rank(division: Division, slot: int, layout: Optional[MakuuchiLayout] = None) -> Rank:
    """Slot -> rank; out-of-range slots are clamped into the tier"""
    if division == Division.MAEZUMO:
        return MAEZUMO_RANK
    slot = clamp(int(slot), 1, tier_slot_count(division))
    if division != Division.MAKUUCHI:
        number, side = slot_to_number_side(slot)
        return Rank(division=division, number=number, side=side)

    layout = layout or DEFAULT_MAKUUCHI_LAYOUT
    offsets = _title_offsets(layout)
    for title in reversed(TITLE_ORDER):
        if layout.count(title) > 0 and slot > offsets[title]:
            number, side = slot_to_number_side(slot - offsets[title])
            return Rank(division=division, title=title, number=number, side=side)
    number, side = slot_to_number_side(slot)
    return Rank(division=division, title=Title.MAEGASHIRA, number=number, side=side)


# =====================================================
# Legality
# =====================================================

def is_legal_rank(rank: Rank, layout: Optional[MakuuchiLayout] = None) -> bool:
    """Whether the tier/title/number/side combination exists"""
    if rank.division == Division.MAEZUMO:
        return rank.number is None and rank.title is None
    if rank.number is None or rank.number < 1:
        return False
    if rank.division != Division.MAKUUCHI:
        return rank.title is None and rank.number <= MAX_NUMBER[rank.division]
    if rank.title is None:
        return False
    layout = layout or DEFAULT_MAKUUCHI_LAYOUT
    index = number_side_to_slot(rank.number, rank.side) - 1
    return index < layout.count(rank.title)


def normalize_rank(rank: Rank, layout: Optional[MakuuchiLayout] = None) -> Rank:
    """Clamp an illegal rank to the nearest legal one in the same tier. Legal ranks pass through."""
    if is_legal_rank(rank, layout):
        return rank
    clamped = _clamp_rank(rank, layout)
    logger.warning(f"Illegal rank {rank.label()} clamped to {clamped.label()}")
    return clamped


def _clamp_rank(rank: Rank, layout: Optional[MakuuchiLayout]) -> Rank:
    if rank.division == Division.MAEZUMO:
        return MAEZUMO_RANK
    number = max(1, rank.number or 1)
    if rank.division != Division.MAKUUCHI:
        number = min(number, MAX_NUMBER[rank.division])
        return Rank(division=rank.division, number=number, side=rank.side)

    layout = layout or DEFAULT_MAKUUCHI_LAYOUT
    title = rank.title or Title.MAEGASHIRA
    start = TITLE_ORDER.index(title)
    for candidate in TITLE_ORDER[start:]:
        count = layout.count(candidate)
        if count <= 0:
            continue
        if candidate != title:
            return Rank(division=rank.division, title=candidate, number=1, side=Side.EAST)
        index = clamp(number_side_to_slot(number, rank.side) - 1, 0, count - 1)
        number, side = slot_to_number_side(index + 1)
        return Rank(division=rank.division, title=candidate, number=number, side=side)
    return slot_to_rank(rank.division, tier_slot_count(rank.division), layout)


# =====================================================
# Cross-tier linear position (lower tiers)
# =====================================================

LOWER_DIVISION_OFFSET: Dict[Division, int] = {}
_running = 0
for _division in LOWER_DIVISIONS:
    LOWER_DIVISION_OFFSET[_division] = _running
    _running += MAX_NUMBER[_division] * 2
LOWER_DIVISION_TOTAL = _running
del _running, _division


def lower_division_span(division: Division) -> tuple:
    """(first, last) linear position of a lower tier"""
    start = LOWER_DIVISION_OFFSET[division]
    return start, start + MAX_NUMBER[division] * 2 - 1


def to_linear_position(rank: Rank) -> int:
    """Lower-tier rank -> continuous position across Makushita..Jonokuchi"""
    if rank.division not in LOWER_DIVISION_OFFSET:
        raise ValueError(f"{rank.division.value} has no lower-tier linear position")
    number = clamp(rank.number or 1, 1, MAX_NUMBER[rank.division])
    return LOWER_DIVISION_OFFSET[rank.division] + (number - 1) * 2 + (1 if rank.side == Side.WEST else 0)


def from_linear_position(position: int) -> Rank:
    bounded = clamp(int(position), 0, LOWER_DIVISION_TOTAL - 1)
    for division in LOWER_DIVISIONS:
        start, end = lower_division_span(division)
        if start <= bounded <= end:
            relative = bounded - start
            return Rank(
                division=division,
                number=relative // 2 + 1,
                side=Side.EAST if relative % 2 == 0 else Side.WEST,
            )
    return Rank(division=Division.JONOKUCHI, number=MAX_NUMBER[Division.JONOKUCHI], side=Side.WEST)


# =====================================================
# Rank value
# =====================================================

TIER_WEIGHT = 1000
TITLE_WEIGHT = 100


def rank_value(rank: Rank) -> int:
    """Total order key: tier, then title, then number, then side. Smaller is more senior."""
    value = DIVISION_ORDER.index(rank.division) * TIER_WEIGHT
    if rank.division == Division.MAEZUMO:
        return value
    if rank.division == Division.MAKUUCHI:
        value += TITLE_ORDER.index(rank.title or Title.MAEGASHIRA) * TITLE_WEIGHT
    return value + ((rank.number or 1) - 1) * 2 + (1 if rank.side == Side.WEST else 0)


# Compact seniority scale used by committee scoring
_COMMITTEE_TITLE = {
    Title.YOKOZUNA: 0,
    Title.OZEKI: 10,
    Title.SEKIWAKE: 20,
    Title.KOMUSUBI: 30,
}

_COMMITTEE_TIER = {
    Division.JURYO: 6,
    Division.MAKUSHITA: 7,
    Division.SANDANME: 8,
    Division.JONIDAN: 9,
    Division.JONOKUCHI: 10,
    Division.MAEZUMO: 11,
}


def committee_rank_value(rank: Rank) -> int:
    """Y0, O10, S20, K30, M40+n; lower tiers tier*100+n"""
    if rank.division == Division.MAKUUCHI:
        title = rank.title or Title.MAEGASHIRA
        if title in _COMMITTEE_TITLE:
            return _COMMITTEE_TITLE[title]
        return 40 + (rank.number or 1)
    return _COMMITTEE_TIER[rank.division] * 100 + (rank.number or 1)


_CHART_BASE = {
    Division.JURYO: 60,
    Division.MAKUSHITA: 80,
    Division.SANDANME: 150,
    Division.JONIDAN: 260,
    Division.JONOKUCHI: 370,
}

_CHART_TITLE = {
    Title.YOKOZUNA: 0,
    Title.OZEKI: 10,
    Title.SEKIWAKE: 20,
    Title.KOMUSUBI: 30,
}


def rank_value_for_chart(rank: Rank) -> int:
    """Display scale: sekitori spread out, lower tiers compressed"""
    if rank.division == Division.MAKUUCHI:
        title = rank.title or Title.MAEGASHIRA
        if title in _CHART_TITLE:
            return _CHART_TITLE[title]
        return 40 + (rank.number or 1)
    if rank.division in _CHART_BASE:
        return _CHART_BASE[rank.division] + (rank.number or 1)
    return 600
