"""
Boundary exchange between adjacent tiers

Each boundary is described by a data table (BoundaryRule) of predicates over
(number, wins, losses). Reconciliation policy:

1. Every mandatory move on either side is taken.
2. The exchange size is the larger of the two mandatory counts, or the
   smaller of the two (mandatory + bubble) pools when that is larger, capped
   by the smaller side's headcount.
3. Each side fills up to that size from its bubble pool by score, then from
   the remaining eligible competitors by fallback score, then by closeness
   to the boundary.
4. If one side cannot field enough competitors, the surplus mandatory moves
   on the other side are dropped and the exchange is flagged
   UNMATCHED_MANDATORY. Promotions and demotions are always paired.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .ranks import Division

Predicate = Callable[[int, int, int], bool]
ScoreFn = Callable[[int, int, int], float]


class BoundaryId(str, Enum):
    MAKUUCHI_JURYO = "MakuuchiJuryo"
    JURYO_MAKUSHITA = "JuryoMakushita"
    MAKUSHITA_SANDANME = "MakushitaSandanme"
    SANDANME_JONIDAN = "SandanmeJonidan"
    JONIDAN_JONOKUCHI = "JonidanJonokuchi"


class ExchangeReason(str, Enum):
    NORMAL = "NORMAL"
    MANDATORY_ABSENCE_DEMOTION = "MANDATORY_ABSENCE_DEMOTION"
    UNMATCHED_MANDATORY = "UNMATCHED_MANDATORY"


@dataclass(frozen=True)
class CandidateRule:
    mandatory: Predicate
    bubble: Predicate
    score: ScoreFn
    fallback_score: ScoreFn


@dataclass(frozen=True)
class BoundaryRule:
    id: BoundaryId
    upper: Division
    lower: Division
    demotion: CandidateRule
    promotion: CandidateRule


@dataclass
class BoundarySnapshot:
    """
    One competitor's cycle result as seen from a boundary.

    losses includes absences. slot orders competitors inside the tier.
    Ineligible entries (titled Makuuchi ranks) never cross.
    """
    id: str
    number: int
    slot: int
    wins: int
    losses: int
    absences: int = 0
    eligible: bool = True


@dataclass
class BoundaryExchange:
    exchanged_slots: int = 0
    promoted_ids: List[str] = field(default_factory=list)
    demoted_ids: List[str] = field(default_factory=list)
    subject_promoted: bool = False
    subject_demoted: bool = False
    reason: ExchangeReason = ExchangeReason.NORMAL
    mandatory_promotion_ids: List[str] = field(default_factory=list)
    mandatory_demotion_ids: List[str] = field(default_factory=list)
    dropped_mandatory_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "exchanged_slots": self.exchanged_slots,
            "promoted_ids": list(self.promoted_ids),
            "demoted_ids": list(self.demoted_ids),
            "subject_promoted": self.subject_promoted,
            "subject_demoted": self.subject_demoted,
            "reason": self.reason.value,
            "dropped_mandatory_ids": list(self.dropped_mandatory_ids),
        }


def empty_exchange() -> BoundaryExchange:
    return BoundaryExchange()


# =====================================================
# Boundary tables
# =====================================================

def record_margin(number: int, wins: int, losses: int) -> float:
    """Promotion fallback: best record first, proximity breaks ties"""
    return wins - losses


BOUNDARIES: Dict[BoundaryId, BoundaryRule] = {
    BoundaryId.MAKUUCHI_JURYO: BoundaryRule(
        id=BoundaryId.MAKUUCHI_JURYO,
        upper=Division.MAKUUCHI,
        lower=Division.JURYO,
        demotion=CandidateRule(
            mandatory=lambda n, w, l: (n >= 15 and w <= 6) or (n >= 12 and w <= 4) or (n >= 10 and w <= 3),
            bubble=lambda n, w, l: (n >= 13 and w <= 7) or (n >= 10 and w <= 5),
            score=lambda n, w, l: (n - 8) * 1.8 + max(0, 8 - w) * 3.2 + max(0, l - w) * 1.2,
            fallback_score=lambda n, w, l: max(0, n - 14) * 1.5 + max(0, 8 - w) * 1.2 + max(0, l - w) * 0.5,
        ),
        promotion=CandidateRule(
            mandatory=lambda n, w, l: (n == 1 and w >= 8) or (n <= 3 and w >= 11) or w >= 13,
            bubble=lambda n, w, l: (n <= 2 and w >= 8) or (n <= 5 and w >= 10) or (n <= 8 and w >= 11) or w >= 12,
            score=lambda n, w, l: max(0, w - 7) * 3.0 + max(0, 15 - n) * 1.4 + max(0, w - l) * 1.0,
            fallback_score=record_margin,
        ),
    ),
    BoundaryId.JURYO_MAKUSHITA: BoundaryRule(
        id=BoundaryId.JURYO_MAKUSHITA,
        upper=Division.JURYO,
        lower=Division.MAKUSHITA,
        demotion=CandidateRule(
            mandatory=lambda n, w, l: (n >= 13 and w <= 5) or (n >= 10 and w <= 3),
            bubble=lambda n, w, l: (n >= 12 and w <= 7) or (n >= 9 and w <= 5),
            score=lambda n, w, l: (n - 6) * 2.0 + max(0, 8 - w) * 3.0 + max(0, l - w) * 1.1,
            fallback_score=lambda n, w, l: max(0, n - 12) * 1.5 + max(0, 8 - w) * 1.2 + max(0, l - w) * 0.45,
        ),
        promotion=CandidateRule(
            mandatory=lambda n, w, l: (n == 1 and w >= 4) or (n <= 5 and w >= 6) or (n <= 15 and w == 7),
            bubble=lambda n, w, l: (n <= 3 and w >= 4) or (n <= 10 and w >= 5) or (n <= 15 and w >= 6) or (n <= 25 and w == 7),
            score=lambda n, w, l: max(0, w - 3) * 3.0 + max(0, 16 - n) * 1.8 + max(0, w - l) * 1.1,
            fallback_score=record_margin,
        ),
    ),
    BoundaryId.MAKUSHITA_SANDANME: BoundaryRule(
        id=BoundaryId.MAKUSHITA_SANDANME,
        upper=Division.MAKUSHITA,
        lower=Division.SANDANME,
        demotion=CandidateRule(
            mandatory=lambda n, w, l: (n >= 56 and w <= 2) or (n >= 50 and w == 0),
            bubble=lambda n, w, l: (n >= 56 and w <= 2) or (n >= 52 and w <= 3) or (n >= 48 and w <= 2),
            score=lambda n, w, l: (n - 44) * 2.0 + max(0, 4 - w) * 3.0 + max(0, l - w) * 1.1,
            fallback_score=lambda n, w, l: max(0, n - 54) * 1.6 + max(0, 4 - w) * 1.25 + max(0, l - w) * 0.45,
        ),
        promotion=CandidateRule(
            mandatory=lambda n, w, l: w >= 4 if n == 1 else (n <= 10 and w == 7) or (n <= 5 and w >= 6),
            bubble=lambda n, w, l: (n == 1 and w >= 4) or (n <= 10 and w == 7) or (n <= 15 and w >= 6) or (n <= 25 and w == 7),
            score=lambda n, w, l: max(0, w - 3) * 2.95 + max(0, 16 - n) * 1.75 + max(0, w - l) * 1.05,
            fallback_score=record_margin,
        ),
    ),
    BoundaryId.SANDANME_JONIDAN: BoundaryRule(
        id=BoundaryId.SANDANME_JONIDAN,
        upper=Division.SANDANME,
        lower=Division.JONIDAN,
        demotion=CandidateRule(
            mandatory=lambda n, w, l: (n >= 86 and w <= 2) or (n >= 80 and w == 0),
            bubble=lambda n, w, l: (n >= 86 and w <= 2) or (n >= 82 and w <= 3) or (n >= 74 and w <= 2),
            score=lambda n, w, l: (n - 68) * 1.65 + max(0, 4 - w) * 2.65 + max(0, l - w) * 1.0,
            fallback_score=lambda n, w, l: max(0, n - 82) * 1.4 + max(0, 4 - w) * 1.15 + max(0, l - w) * 0.4,
        ),
        promotion=CandidateRule(
            mandatory=lambda n, w, l: w >= 4 if n == 1 else (n <= 15 and w == 7) or (n <= 8 and w >= 6),
            bubble=lambda n, w, l: (n == 1 and w >= 4) or (n <= 15 and w == 7) or (n <= 20 and w >= 6) or (n <= 35 and w == 7),
            score=lambda n, w, l: max(0, w - 3) * 2.75 + max(0, 22 - n) * 1.3 + max(0, w - l) * 1.0,
            fallback_score=record_margin,
        ),
    ),
    BoundaryId.JONIDAN_JONOKUCHI: BoundaryRule(
        id=BoundaryId.JONIDAN_JONOKUCHI,
        upper=Division.JONIDAN,
        lower=Division.JONOKUCHI,
        demotion=CandidateRule(
            mandatory=lambda n, w, l: (n >= 96 and w <= 2) or (n >= 90 and w == 0),
            bubble=lambda n, w, l: (n >= 96 and w <= 2) or (n >= 92 and w <= 3) or (n >= 84 and w <= 2),
            score=lambda n, w, l: (n - 80) * 1.6 + max(0, 4 - w) * 2.5 + max(0, l - w) * 0.95,
            fallback_score=lambda n, w, l: max(0, n - 92) * 1.35 + max(0, 4 - w) * 1.1 + max(0, l - w) * 0.35,
        ),
        promotion=CandidateRule(
            mandatory=lambda n, w, l: w >= 4 if n == 1 else w == 7,
            bubble=lambda n, w, l: (n == 1 and w >= 4) or w == 7 or (n <= 10 and w >= 6) or (n <= 18 and w >= 5),
            score=lambda n, w, l: max(0, w - 3) * 2.65 + max(0, 20 - n) * 1.15 + max(0, w - l) * 0.95,
            fallback_score=record_margin,
        ),
    ),
}

BOUNDARY_ORDER: Tuple[BoundaryId, ...] = tuple(BOUNDARIES)


def boundary_between(upper: Division, lower: Division) -> Optional[BoundaryRule]:
    for rule in BOUNDARIES.values():
        if rule.upper == upper and rule.lower == lower:
            return rule
    return None


# =====================================================
# Classification
# =====================================================

@dataclass
class _Classified:
    mandatory: List[BoundarySnapshot]
    bubble: List[BoundarySnapshot]
    rest: List[BoundarySnapshot]


def _classify(rule: CandidateRule, snapshots: Sequence[BoundarySnapshot]) -> _Classified:
    mandatory, bubble, rest = [], [], []
    for snap in snapshots:
        if not snap.eligible:
            continue
        if rule.mandatory(snap.number, snap.wins, snap.losses):
            mandatory.append(snap)
        elif rule.bubble(snap.number, snap.wins, snap.losses):
            bubble.append(snap)
        else:
            rest.append(snap)
    return _Classified(mandatory, bubble, rest)


def _pick(
    rule: CandidateRule,
    classified: _Classified,
    target: int,
    toward_upper: bool,
) -> List[BoundarySnapshot]:
    """Mandatory first, then bubble by score, then fallback score, then boundary proximity."""
    def score_key(snap):
        return -rule.score(snap.number, snap.wins, snap.losses)

    def fallback_key(snap):
        # promotion: most senior first; demotion: most junior first
        proximity = snap.slot if toward_upper else -snap.slot
        return (-rule.fallback_score(snap.number, snap.wins, snap.losses), proximity, snap.id)

    ordered = (
        sorted(classified.mandatory, key=lambda s: (score_key(s), s.id))
        + sorted(classified.bubble, key=lambda s: (score_key(s), s.id))
        + sorted(classified.rest, key=fallback_key)
    )
    return ordered[:target]


def resolve_boundary_exchange(
    rule: BoundaryRule,
    upper: Sequence[BoundarySnapshot],
    lower: Sequence[BoundarySnapshot],
    subject_id: Optional[str] = None,
) -> BoundaryExchange:
    """Reconcile one boundary for one cycle"""
    demotion = _classify(rule.demotion, upper)
    promotion = _classify(rule.promotion, lower)

    eligible_upper = len(demotion.mandatory) + len(demotion.bubble) + len(demotion.rest)
    eligible_lower = len(promotion.mandatory) + len(promotion.bubble) + len(promotion.rest)
    capacity = min(eligible_upper, eligible_lower)

    mandatory_count = max(len(demotion.mandatory), len(promotion.mandatory))
    bubble_count = min(
        len(demotion.mandatory) + len(demotion.bubble),
        len(promotion.mandatory) + len(promotion.bubble),
    )
    target = min(max(mandatory_count, bubble_count), capacity)

    demoted = _pick(rule.demotion, demotion, target, toward_upper=False)
    promoted = _pick(rule.promotion, promotion, target, toward_upper=True)

    demoted_ids = [s.id for s in demoted]
    promoted_ids = [s.id for s in promoted]
    mandatory_demotion_ids = [s.id for s in demotion.mandatory]
    mandatory_promotion_ids = [s.id for s in promotion.mandatory]
    dropped = [i for i in mandatory_demotion_ids if i not in demoted_ids]
    dropped += [i for i in mandatory_promotion_ids if i not in promoted_ids]

    reason = ExchangeReason.NORMAL
    if dropped:
        reason = ExchangeReason.UNMATCHED_MANDATORY
        logger.warning(
            f"{rule.id.value}: {len(dropped)} mandatory moves without a counterpart "
            f"(upper={eligible_upper}, lower={eligible_lower})"
        )
    elif any(s.absences > 0 and s.wins == 0 for s in demotion.mandatory):
        reason = ExchangeReason.MANDATORY_ABSENCE_DEMOTION

    return BoundaryExchange(
        exchanged_slots=len(promoted_ids),
        promoted_ids=promoted_ids,
        demoted_ids=demoted_ids,
        subject_promoted=subject_id is not None and subject_id in promoted_ids,
        subject_demoted=subject_id is not None and subject_id in demoted_ids,
        reason=reason,
        mandatory_promotion_ids=[i for i in mandatory_promotion_ids if i in promoted_ids],
        mandatory_demotion_ids=[i for i in mandatory_demotion_ids if i in demoted_ids],
        dropped_mandatory_ids=dropped,
    )


# =====================================================
# Neighbor half-step nudge
# =====================================================

def compute_neighbor_half_step_nudge(
    snapshots: Sequence[BoundarySnapshot],
    subject_id: str,
) -> int:
    """
    -1 (half a step senior), +1 (half a step junior) or 0, from the subject's
    win-loss differential against the competitors one slot above and below.
    """
    subject = next((s for s in snapshots if s.id == subject_id), None)
    if subject is None:
        return 0
    by_slot = {s.slot: s for s in snapshots}
    upper = by_slot.get(subject.slot - 1)
    lower = by_slot.get(subject.slot + 1)
    diff = subject.wins - subject.losses
    upper_diff = upper.wins - upper.losses if upper else None
    lower_diff = lower.wins - lower.losses if lower else None

    if diff > 0 and upper_diff is not None and diff >= upper_diff + 2:
        return -1
    if diff < 0 and lower_diff is not None and lower_diff >= diff + 2:
        return 1
    if diff == 0:
        if upper_diff is not None and upper_diff <= -2:
            return -1
        if lower_diff is not None and lower_diff >= 2:
            return 1
    if diff > 0 and upper_diff is not None and upper_diff < 0:
        return -1
    if diff < 0 and lower_diff is not None and lower_diff > 0:
        return 1
    return 0
