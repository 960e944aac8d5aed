"""
Expected-placement allocator

Greedy constrained assignment of candidates to distinct integer slots.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List, Optional, Sequence

from .coordinates import committee_rank_value
from .ranks import Rank


# =====================================================
# Cost constants
# =====================================================

OUTSIDE_BOUNDS_COST = 140
DISTANCE_COST = 2

MANDATORY_VIOLATION_BASE = 2400
MANDATORY_VIOLATION_STEP = 45

WINNER_DEMOTED_BASE = 900
WINNER_DEMOTED_STEP = 18

LOSER_PROMOTED_BASE = 1300
LOSER_PROMOTED_STEP = 22


@dataclass
class PlacementCandidate:
    """One competitor competing for slots; smaller slot is more senior"""
    id: str
    current_slot: int
    expected_slot: int
    min_slot: int
    max_slot: int
    score: float
    wins: int
    losses: int
    mandatory_promotion: bool = False
    mandatory_demotion: bool = False

    @property
    def priority(self) -> int:
        if self.mandatory_promotion:
            return 0
        if self.mandatory_demotion:
            return 2
        return 1

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class SlotAssignment:
    id: str
    slot: int
    cost: float


def expected_placement_score(
    rank: Rank,
    wins: int,
    losses: int,
    absences: int = 0,
    mandatory_demotion: bool = False,
    mandatory_promotion: bool = False,
) -> float:
    """Allocator ordering score: seniority plus record, boosted/penalised by mandatory flags"""
    kachikoshi = max(0, wins - losses)
    makekoshi = max(0, losses - wins)
    score = (
        1000
        - committee_rank_value(rank) * 6
        + wins * 18
        - losses * 16
        - absences * 14
        + kachikoshi * 28
        - makekoshi * 24
    )
    if mandatory_promotion:
        score += 180
    if mandatory_demotion:
        score -= 180
    return score


def placement_cost(candidate: PlacementCandidate, slot: int) -> float:
    """Cost of putting a candidate in a slot"""
    if slot < candidate.min_slot:
        outside = candidate.min_slot - slot
    elif slot > candidate.max_slot:
        outside = slot - candidate.max_slot
    else:
        outside = 0
    cost = outside * OUTSIDE_BOUNDS_COST + abs(slot - candidate.expected_slot) * DISTANCE_COST

    current = candidate.current_slot
    if candidate.mandatory_demotion and slot <= current:
        cost += MANDATORY_VIOLATION_BASE + (current - slot) * MANDATORY_VIOLATION_STEP
    if candidate.mandatory_promotion and slot >= current:
        cost += MANDATORY_VIOLATION_BASE + (slot - current) * MANDATORY_VIOLATION_STEP
    if candidate.wins > candidate.losses and slot > current:
        cost += WINNER_DEMOTED_BASE + (slot - current) * WINNER_DEMOTED_STEP
    if candidate.wins < candidate.losses and slot < current:
        cost += LOSER_PROMOTED_BASE + (current - slot) * LOSER_PROMOTED_STEP
    return cost


def order_candidates(candidates: Iterable[PlacementCandidate]) -> List[PlacementCandidate]:
    """Mandatory promotions, then the rest, then mandatory demotions; score desc, expected slot, id"""
    return sorted(
        candidates,
        key=lambda c: (c.priority, -c.score, c.expected_slot, c.id),
    )


def allocate_expected_placements(
    candidates: Sequence[PlacementCandidate],
    slots: Optional[Iterable[int]] = None,
    total_slots: Optional[int] = None,
) -> List[SlotAssignment]:
    """
    Assign at most min(N, M) candidates to distinct slots.

    Either pass the available slots explicitly or a total_slots count (slots 1..total).
    Returned in assignment order.
    """
    if slots is None:
        slots = range(1, (total_slots or 0) + 1)
    available = sorted(set(slots))
    assignments: List[SlotAssignment] = []

    for candidate in order_candidates(candidates):
        if not available:
            break
        best_slot = available[0]
        best_cost = placement_cost(candidate, best_slot)
        for slot in available[1:]:
            cost = placement_cost(candidate, slot)
            if cost < best_cost:
                best_slot = slot
                best_cost = cost
        available.remove(best_slot)
        assignments.append(SlotAssignment(id=candidate.id, slot=best_slot, cost=best_cost))

    return assignments
