"""
Sekitori banzuke committee

Composes the next Makuuchi and Juryo banzuke from title directives, the
two sekitori boundary exchanges and the expected-placement allocator.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger

from .allocator import (
    PlacementCandidate,
    allocate_expected_placements,
    expected_placement_score,
)
from .boundary import BoundaryExchange
from .coordinates import clamp, rank_to_slot, slot_to_rank
from .directives import TopDirective, history_score, resolve_top_directive
from .ranks import (
    DIVISION_SIZE,
    MAX_NUMBER,
    TITLE_ORDER,
    Division,
    MakuuchiLayout,
    Rank,
    Side,
    Title,
    ranked,
)
from .records import TournamentRecord

# Slots moved per point of win-loss differential
EXPECTED_SLOTS_PER_WIN = 1.6

# Deepest Makushita number a Juryo demotee lands on
JURYO_DEMOTION_FLOOR = 15


@dataclass
class SekitoriEntry:
    """One competitor in front of the committee; past_records is most recent first"""
    id: str
    record: TournamentRecord
    past_records: List[TournamentRecord] = field(default_factory=list)
    on_probation: bool = False
    reinstatement_eligible: bool = False

    @property
    def rank(self) -> Rank:
        return self.record.rank

    @property
    def differential(self) -> int:
        return self.record.wins - self.record.losses - self.record.absences


@dataclass
class CommitteeDecision:
    ranks: Dict[str, Rank] = field(default_factory=dict)
    layout: MakuuchiLayout = field(default_factory=MakuuchiLayout)
    directives: Dict[str, TopDirective] = field(default_factory=dict)
    probation: Dict[str, bool] = field(default_factory=dict)
    reinstatement: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "ranks": {k: v.label() for k, v in self.ranks.items()},
            "layout": self.layout.to_dict(),
            "probation": {k: v for k, v in self.probation.items() if v},
            "reinstatement": {k: v for k, v in self.reinstatement.items() if v},
        }


def _legal_window(current_slot: int, differential: int) -> tuple:
    """How far one cycle may move a sekitori"""
    reach = abs(differential) * 4 + 2
    if differential > 0:
        return current_slot - reach, current_slot
    if differential < 0:
        return current_slot, current_slot + reach
    return current_slot - 2, current_slot + 2


class BanzukeCommittee:
    """
    Next-cycle Makuuchi/Juryo banzuke.

    Usage:
        committee = BanzukeCommittee(layout)
        decision = committee.decide(makuuchi, juryo, makushita_promotees,
                                    makuuchi_juryo, juryo_makushita)
    """

    def __init__(self, layout: Optional[MakuuchiLayout] = None):
        self.layout = layout or MakuuchiLayout()

    # ==================== slots ====================

    def _combined_slot(self, rank: Rank) -> int:
        """Position on one Makuuchi -> Juryo -> Makushita axis"""
        if rank.division == Division.MAKUUCHI:
            return rank_to_slot(rank, self.layout)
        if rank.division == Division.JURYO:
            return DIVISION_SIZE[Division.MAKUUCHI] + rank_to_slot(rank)
        return DIVISION_SIZE[Division.MAKUUCHI] + DIVISION_SIZE[Division.JURYO] + rank_to_slot(rank)

    def _candidate(
        self,
        entry: SekitoriEntry,
        offset: int,
        mandatory_promotion: bool = False,
        mandatory_demotion: bool = False,
    ) -> PlacementCandidate:
        record = entry.record
        current = self._combined_slot(entry.rank) - offset
        expected = current - int(round(entry.differential * EXPECTED_SLOTS_PER_WIN))
        low, high = _legal_window(current, entry.differential)
        score = expected_placement_score(
            entry.rank,
            record.wins,
            record.losses,
            record.absences,
            mandatory_demotion=mandatory_demotion,
            mandatory_promotion=mandatory_promotion,
        ) + history_score(record) * 0.01
        return PlacementCandidate(
            id=entry.id,
            current_slot=current,
            expected_slot=expected,
            min_slot=low,
            max_slot=high,
            score=score,
            wins=record.wins,
            losses=record.losses + record.absences,
            mandatory_promotion=mandatory_promotion,
            mandatory_demotion=mandatory_demotion,
        )

    # ==================== titles ====================

    def _resolve_titles(self, makuuchi: Sequence[SekitoriEntry], decision: CommitteeDecision) -> Dict[Title, List[SekitoriEntry]]:
        titled: Dict[Title, List[SekitoriEntry]] = {t: [] for t in TITLE_ORDER[:4]}
        assigned = set()

        def by_seniority(entries):
            return sorted(entries, key=lambda e: (self._combined_slot(e.rank), e.id))

        def by_strength(entries):
            return sorted(
                entries,
                key=lambda e: (-history_score(e.record), self._combined_slot(e.rank), e.id),
            )

        for entry in makuuchi:
            directive = resolve_top_directive(
                entry.record,
                entry.past_records,
                on_probation=entry.on_probation,
                reinstatement_eligible=entry.reinstatement_eligible,
            )
            decision.directives[entry.id] = directive
            decision.probation[entry.id] = directive.next_is_probationary
            decision.reinstatement[entry.id] = directive.next_is_reinstatement

        current_title = {e.id: e.rank.title for e in makuuchi}
        preferred = {e.id: decision.directives[e.id].preferred_title for e in makuuchi}

        for title in (Title.YOKOZUNA, Title.OZEKI):
            keepers = [e for e in makuuchi if preferred[e.id] == title and current_title[e.id] == title]
            risers = [e for e in makuuchi if preferred[e.id] == title and current_title[e.id] != title]
            chosen = by_seniority(keepers) + by_strength(risers)
            titled[title].extend(chosen)
            assigned.update(e.id for e in chosen)
            for entry in risers:
                logger.info(f"{entry.id} promoted to {title.value}")

        directed_sekiwake = [e for e in makuuchi if e.id not in assigned and preferred[e.id] == Title.SEKIWAKE]
        kept_sekiwake = [
            e for e in makuuchi
            if e.id not in assigned
            and preferred[e.id] is None
            and current_title[e.id] == Title.SEKIWAKE
            and e.record.kachikoshi
        ]
        titled[Title.SEKIWAKE] = by_seniority(kept_sekiwake) + by_strength(directed_sekiwake)
        assigned.update(e.id for e in titled[Title.SEKIWAKE])

        kept_komusubi = [
            e for e in makuuchi
            if e.id not in assigned
            and current_title[e.id] == Title.KOMUSUBI
            and e.record.kachikoshi
        ]
        titled[Title.KOMUSUBI] = by_seniority(kept_komusubi)
        assigned.update(e.id for e in titled[Title.KOMUSUBI])
        return titled

    def _fill_sanyaku(
        self,
        titled: Dict[Title, List[SekitoriEntry]],
        pool: List[SekitoriEntry],
    ) -> MakuuchiLayout:
        def fill_score(entry):
            record = entry.record
            return expected_placement_score(entry.rank, record.wins, record.losses, record.absences)

        pool.sort(key=lambda e: (-fill_score(e), self._combined_slot(e.rank), e.id))
        layout = MakuuchiLayout(
            yokozuna=len(titled[Title.YOKOZUNA]),
            ozeki=len(titled[Title.OZEKI]),
            sekiwake=len(titled[Title.SEKIWAKE]),
            komusubi=len(titled[Title.KOMUSUBI]),
        ).normalized()
        for title in (Title.SEKIWAKE, Title.KOMUSUBI):
            while len(titled[title]) < layout.count(title) and pool:
                titled[title].append(pool.pop(0))
        return layout

    # ==================== decision ====================

    def decide(
        self,
        makuuchi: Sequence[SekitoriEntry],
        juryo: Sequence[SekitoriEntry],
        makushita_promotees: Sequence[SekitoriEntry],
        makuuchi_juryo: BoundaryExchange,
        juryo_makushita: BoundaryExchange,
    ) -> CommitteeDecision:
        decision = CommitteeDecision(layout=self.layout)

        to_juryo = set(makuuchi_juryo.demoted_ids)
        to_makuuchi = set(makuuchi_juryo.promoted_ids)
        to_makushita = set(juryo_makushita.demoted_ids)
        promotee_ids = set(juryo_makushita.promoted_ids)

        staying_makuuchi = [e for e in makuuchi if e.id not in to_juryo]
        titled = self._resolve_titles(staying_makuuchi, decision)
        titled_ids = {e.id for entries in titled.values() for e in entries}

        rising = [e for e in juryo if e.id in to_makuuchi]
        maegashira_pool = [e for e in staying_makuuchi if e.id not in titled_ids]
        layout = self._fill_sanyaku(titled, maegashira_pool)
        decision.layout = layout

        for title in TITLE_ORDER[:4]:
            offset = sum(layout.count(t) for t in TITLE_ORDER[:TITLE_ORDER.index(title)])
            for index, entry in enumerate(titled[title]):
                decision.ranks[entry.id] = slot_to_rank(Division.MAKUUCHI, offset + index + 1, layout)

        maegashira_candidates = [self._candidate(e, 0) for e in maegashira_pool]
        maegashira_candidates += [self._candidate(e, 0, mandatory_promotion=True) for e in rising]
        first = layout.titled_total + 1
        last = min(DIVISION_SIZE[Division.MAKUUCHI], layout.titled_total + len(maegashira_candidates))
        assignments = allocate_expected_placements(maegashira_candidates, slots=range(first, last + 1))
        placed = set()
        for assignment in assignments:
            decision.ranks[assignment.id] = slot_to_rank(Division.MAKUUCHI, assignment.slot, layout)
            placed.add(assignment.id)
        overflow = [e for e in maegashira_pool + rising if e.id not in placed]
        if overflow:
            logger.warning(f"Makuuchi overflow: {len(overflow)} competitors sent to Juryo")

        # Juryo
        juryo_offset = DIVISION_SIZE[Division.MAKUUCHI]
        juryo_candidates = [
            self._candidate(e, juryo_offset)
            for e in juryo
            if e.id not in to_makuuchi and e.id not in to_makushita
        ]
        juryo_candidates += [
            self._candidate(e, juryo_offset, mandatory_demotion=True)
            for e in makuuchi
            if e.id in to_juryo
        ]
        juryo_candidates += [self._candidate(e, juryo_offset) for e in overflow]
        juryo_candidates += [
            self._candidate(e, juryo_offset, mandatory_promotion=True)
            for e in makushita_promotees
            if e.id in promotee_ids
        ]
        juryo_slots = min(DIVISION_SIZE[Division.JURYO], len(juryo_candidates))
        for assignment in allocate_expected_placements(juryo_candidates, total_slots=juryo_slots):
            decision.ranks[assignment.id] = slot_to_rank(Division.JURYO, assignment.slot)
            decision.probation[assignment.id] = False
            decision.reinstatement[assignment.id] = False

        # Juryo -> Makushita, plus anyone the two sekitori tiers could not seat
        for entry in list(juryo) + list(makuuchi):
            if entry.id in to_makushita or entry.id not in decision.ranks:
                record = entry.record
                deficit = max(0, record.losses + record.absences - record.wins)
                number = clamp(1 + deficit // 2, 1, min(JURYO_DEMOTION_FLOOR, MAX_NUMBER[Division.MAKUSHITA]))
                decision.ranks[entry.id] = ranked(Division.MAKUSHITA, number, Side.EAST)

        self.layout = layout
        logger.debug(
            f"Committee: layout Y{layout.yokozuna} O{layout.ozeki} S{layout.sekiwake} "
            f"K{layout.komusubi}, {makuuchi_juryo.exchanged_slots} Makuuchi/Juryo and "
            f"{juryo_makushita.exchanged_slots} Juryo/Makushita exchanges"
        )
        return decision
