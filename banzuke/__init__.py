"""
Banzuke rank-progression rules

Rank coordinates, lower-tier movement tables, title directives, the
expected-placement allocator, boundary exchanges and the sekitori committee.
"""
from .ranks import (
    Division,
    Side,
    Title,
    Rank,
    MakuuchiLayout,
    DIVISION_ORDER,
    LOWER_DIVISIONS,
    SEKITORI_DIVISIONS,
    MAX_NUMBER,
    DIVISION_SIZE,
    HEADCOUNT_BOUNDS,
    MAEZUMO_RANK,
    makuuchi,
    ranked,
    scheduled_bout_count,
    scheduled_bout_day,
)
from .coordinates import (
    rank_to_slot,
    slot_to_rank,
    to_linear_position,
    from_linear_position,
    rank_value,
    rank_value_for_chart,
    normalize_rank,
    is_legal_rank,
)
from .records import (
    BoutOutcome,
    BoutLogEntry,
    SpecialPrize,
    TournamentRecord,
    full_absence_record,
)
from .lower_division import LowerDivisionQuota, RankChange, calculate_lower_division_change
from .directives import TopDirective, resolve_top_directive, history_score
from .allocator import (
    PlacementCandidate,
    SlotAssignment,
    allocate_expected_placements,
    expected_placement_score,
)
from .boundary import (
    BoundaryId,
    BoundaryExchange,
    BoundarySnapshot,
    BOUNDARIES,
    ExchangeReason,
    resolve_boundary_exchange,
    compute_neighbor_half_step_nudge,
)
from .committee import BanzukeCommittee, CommitteeDecision, SekitoriEntry
from .calculator import RankChangeCalculator

__all__ = [
    "Division",
    "Side",
    "Title",
    "Rank",
    "MakuuchiLayout",
    "DIVISION_ORDER",
    "LOWER_DIVISIONS",
    "SEKITORI_DIVISIONS",
    "MAX_NUMBER",
    "DIVISION_SIZE",
    "HEADCOUNT_BOUNDS",
    "MAEZUMO_RANK",
    "makuuchi",
    "ranked",
    "scheduled_bout_count",
    "scheduled_bout_day",
    "rank_to_slot",
    "slot_to_rank",
    "to_linear_position",
    "from_linear_position",
    "rank_value",
    "rank_value_for_chart",
    "normalize_rank",
    "is_legal_rank",
    "BoutOutcome",
    "BoutLogEntry",
    "SpecialPrize",
    "TournamentRecord",
    "full_absence_record",
    "LowerDivisionQuota",
    "RankChange",
    "calculate_lower_division_change",
    "TopDirective",
    "resolve_top_directive",
    "history_score",
    "PlacementCandidate",
    "SlotAssignment",
    "allocate_expected_placements",
    "expected_placement_score",
    "BoundaryId",
    "BoundaryExchange",
    "BoundarySnapshot",
    "BOUNDARIES",
    "ExchangeReason",
    "resolve_boundary_exchange",
    "compute_neighbor_half_step_nudge",
    "BanzukeCommittee",
    "CommitteeDecision",
    "SekitoriEntry",
    "RankChangeCalculator",
]
