"""
Boundary exchange and expected-placement allocator tests
"""
from banzuke.allocator import (
    PlacementCandidate,
    allocate_expected_placements,
    order_candidates,
    placement_cost,
)
from banzuke.boundary import (
    BOUNDARIES,
    BOUNDARY_ORDER,
    BoundaryId,
    BoundarySnapshot,
    ExchangeReason,
    boundary_between,
    compute_neighbor_half_step_nudge,
    resolve_boundary_exchange,
)
from banzuke.ranks import Division


def snap(id, number, wins, losses, absences=0, eligible=True):
    """East-side snapshot at a number"""
    return BoundarySnapshot(
        id=id,
        number=number,
        slot=number * 2 - 1,
        wins=wins,
        losses=losses,
        absences=absences,
        eligible=eligible,
    )


def juryo_side():
    """Fourteen Juryo numbers; J14 and J13 have mandatory-demotion records"""
    upper = [snap(f"J{n}", n, 8, 7) for n in range(1, 13)]
    upper.append(snap("J13", 13, 4, 11))
    upper.append(snap("J14", 14, 5, 10))
    return upper


def makushita_side():
    lower = [snap(f"MS{n}", n, 3, 4) for n in range(1, 21)]
    lower[0] = snap("MS1", 1, 5, 2)
    return lower


# =====================================================
# Boundary tables
# =====================================================

class TestBoundaryTables:
    """Five adjacent-tier boundaries"""

    def test_order_runs_top_down(self):
        assert BOUNDARY_ORDER[0] == BoundaryId.MAKUUCHI_JURYO
        assert BOUNDARY_ORDER[-1] == BoundaryId.JONIDAN_JONOKUCHI
        assert len(BOUNDARIES) == 5

    def test_boundary_between(self):
        assert boundary_between(Division.SANDANME, Division.JONIDAN).id == BoundaryId.SANDANME_JONIDAN
        assert boundary_between(Division.JONIDAN, Division.SANDANME) is None


# =====================================================
# Exchange
# =====================================================

class TestBoundaryExchange:
    """resolve_boundary_exchange"""

    def test_promoted_equals_demoted(self):
        rule = BOUNDARIES[BoundaryId.JURYO_MAKUSHITA]
        exchange = resolve_boundary_exchange(rule, juryo_side(), makushita_side())
        assert len(exchange.promoted_ids) == len(exchange.demoted_ids) == exchange.exchanged_slots
        assert {"J13", "J14"} <= set(exchange.demoted_ids)
        assert "MS1" in exchange.promoted_ids
        assert exchange.reason == ExchangeReason.NORMAL

    def test_mandatory_count_sets_the_size(self):
        """Two mandatory demotions pull a second Makushita competitor up"""
        rule = BOUNDARIES[BoundaryId.JURYO_MAKUSHITA]
        exchange = resolve_boundary_exchange(rule, juryo_side(), makushita_side())
        assert exchange.exchanged_slots == 2
        assert exchange.promoted_ids[0] == "MS1"

    def test_no_mandatory_no_bubble_no_exchange(self):
        rule = BOUNDARIES[BoundaryId.JURYO_MAKUSHITA]
        upper = [snap(f"J{n}", n, 8, 7) for n in range(1, 15)]
        lower = [snap(f"MS{n}", n, 3, 4) for n in range(1, 21)]
        exchange = resolve_boundary_exchange(rule, upper, lower)
        assert exchange.exchanged_slots == 0
        assert exchange.promoted_ids == []
        assert exchange.demoted_ids == []

    def test_unmatched_mandatory_is_flagged(self):
        """One upper competitor against three mandatory promotions"""
        rule = BOUNDARIES[BoundaryId.MAKUSHITA_SANDANME]
        upper = [snap("MS60", 60, 1, 6)]
        lower = [snap("SD1", 1, 5, 2), snap("SD2", 2, 7, 0), snap("SD4", 4, 6, 1)]
        exchange = resolve_boundary_exchange(rule, upper, lower)
        assert exchange.reason == ExchangeReason.UNMATCHED_MANDATORY
        assert len(exchange.promoted_ids) == len(exchange.demoted_ids) == 1
        assert len(exchange.dropped_mandatory_ids) == 2

    def test_promotion_shortfall_prefers_winning_record(self):
        """With no promotion candidates, a winning record outranks a more senior losing one"""
        rule = BOUNDARIES[BoundaryId.JONIDAN_JONOKUCHI]
        upper = [snap(f"JD{n}", n, 4, 3) for n in range(90, 96)]
        upper.append(snap("JD100", 100, 1, 6))
        lower = [snap("JK2", 2, 3, 4), snap("JK5", 5, 4, 3), snap("JK9", 9, 2, 5)]
        exchange = resolve_boundary_exchange(rule, upper, lower)
        assert exchange.demoted_ids == ["JD100"]
        assert exchange.promoted_ids == ["JK5"]

    def test_ineligible_never_cross(self):
        rule = BOUNDARIES[BoundaryId.MAKUUCHI_JURYO]
        upper = [snap("Y1", 17, 0, 15, eligible=False), snap("M16", 16, 7, 8)]
        lower = [snap("J1", 1, 9, 6)]
        exchange = resolve_boundary_exchange(rule, upper, lower)
        assert "Y1" not in exchange.demoted_ids
        assert exchange.demoted_ids == ["M16"]

    def test_subject_flags(self):
        rule = BOUNDARIES[BoundaryId.JURYO_MAKUSHITA]
        exchange = resolve_boundary_exchange(rule, juryo_side(), makushita_side(), subject_id="MS1")
        assert exchange.subject_promoted
        assert not exchange.subject_demoted

    def test_absence_demotion_reason(self):
        rule = BOUNDARIES[BoundaryId.JURYO_MAKUSHITA]
        upper = [snap(f"J{n}", n, 8, 7) for n in range(1, 14)]
        upper.append(snap("J14", 14, 0, 15, absences=15))
        exchange = resolve_boundary_exchange(rule, upper, makushita_side())
        assert exchange.reason == ExchangeReason.MANDATORY_ABSENCE_DEMOTION


class TestNeighborNudge:
    """Half-step nudge from adjacent slots"""

    def test_clear_margin_over_upper_neighbor(self):
        snapshots = [
            BoundarySnapshot("UP", 3, 5, 4, 3),
            BoundarySnapshot("PLAYER", 3, 6, 5, 2),
            BoundarySnapshot("DOWN", 4, 7, 4, 3),
        ]
        assert compute_neighbor_half_step_nudge(snapshots, "PLAYER") == -1

    def test_clear_deficit_to_lower_neighbor(self):
        snapshots = [
            BoundarySnapshot("UP", 3, 5, 3, 4),
            BoundarySnapshot("PLAYER", 3, 6, 2, 5),
            BoundarySnapshot("DOWN", 4, 7, 4, 3),
        ]
        assert compute_neighbor_half_step_nudge(snapshots, "PLAYER") == 1

    def test_unknown_subject(self):
        assert compute_neighbor_half_step_nudge([], "PLAYER") == 0


# =====================================================
# Allocator
# =====================================================

def candidate(id, current, expected, wins=8, losses=7, score=1000.0, **kwargs):
    return PlacementCandidate(
        id=id,
        current_slot=current,
        expected_slot=expected,
        min_slot=kwargs.pop("min_slot", 1),
        max_slot=kwargs.pop("max_slot", 30),
        score=score,
        wins=wins,
        losses=losses,
        **kwargs,
    )


class TestAllocator:
    """Greedy constrained slot assignment"""

    def test_distinct_slots_and_capacity(self):
        candidates = [candidate(f"C{i}", i, i) for i in range(1, 6)]
        assignments = allocate_expected_placements(candidates, total_slots=3)
        assert len(assignments) == 3
        assert len({a.slot for a in assignments}) == 3
        assert all(1 <= a.slot <= 3 for a in assignments)

    def test_more_slots_than_candidates(self):
        candidates = [candidate("A", 4, 4), candidate("B", 9, 9)]
        assignments = allocate_expected_placements(candidates, slots=range(1, 21))
        assert {a.id: a.slot for a in assignments} == {"A": 4, "B": 9}

    def test_mandatory_promotion_first(self):
        ordered = order_candidates([
            candidate("NORMAL", 3, 3, score=2000.0),
            candidate("DOWN", 2, 2, mandatory_demotion=True),
            candidate("UP", 20, 12, mandatory_promotion=True),
        ])
        assert [c.id for c in ordered] == ["UP", "NORMAL", "DOWN"]

    def test_id_breaks_exact_ties(self):
        candidates = [candidate("B", 5, 5), candidate("A", 5, 5)]
        assignments = allocate_expected_placements(candidates, slots=range(1, 11))
        assert assignments[0].id == "A"
        assert assignments[0].slot == 5
        assert assignments[1].slot in (4, 6)

    def test_winner_not_pushed_down(self):
        winner = candidate("W", 10, 10, wins=9, losses=6)
        assert placement_cost(winner, 12) > placement_cost(winner, 9)

    def test_mandatory_demotion_penalised_above_current(self):
        down = candidate("D", 10, 14, wins=4, losses=11, mandatory_demotion=True)
        assert placement_cost(down, 10) > placement_cost(down, 14)
