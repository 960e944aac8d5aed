"""
Simulation world

The competitor pool of one career: every tier's roster in banzuke order,
the Maezumo entry pool, the current Makuuchi layout and the previous
cycle's boundary exchanges. Rosters are re-ranked by position; the tracked
competitor keeps the rank its own rank-change decision gave it.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from loguru import logger

from banzuke.boundary import BoundaryExchange, BoundaryId, boundary_between
from banzuke.committee import CommitteeDecision
from banzuke.coordinates import is_legal_rank, rank_to_slot, rank_value, slot_to_rank
from banzuke.ranks import (
    DIVISION_ORDER,
    DIVISION_SIZE,
    HEADCOUNT_BOUNDS,
    LOWER_DIVISIONS,
    MAEZUMO_RANK,
    Division,
    MakuuchiLayout,
    Title,
)
from banzuke.records import TournamentRecord

from .collaborators import RandomSource
from .competitors import SUBJECT_ID, Competitor

# Rosters the tiers start with
INITIAL_HEADCOUNT: Dict[Division, int] = {
    Division.MAKUUCHI: 42,
    Division.JURYO: 28,
    Division.MAKUSHITA: 120,
    Division.SANDANME: 180,
    Division.JONIDAN: 190,
    Division.JONOKUCHI: 50,
    Division.MAEZUMO: 20,
}

# (low, high) starting strength of generated competitors
STARTING_POWER: Dict[Division, tuple] = {
    Division.MAKUUCHI: (110, 150),
    Division.JURYO: (92, 115),
    Division.MAKUSHITA: (76, 96),
    Division.SANDANME: (62, 84),
    Division.JONIDAN: (50, 74),
    Division.JONOKUCHI: (40, 62),
    Division.MAEZUMO: (28, 52),
}

STARTING_AGE: Dict[Division, tuple] = {
    Division.MAKUUCHI: (24, 33),
    Division.JURYO: (22, 31),
    Division.MAKUSHITA: (20, 29),
    Division.SANDANME: (18, 28),
    Division.JONIDAN: (17, 27),
    Division.JONOKUCHI: (15, 23),
    Division.MAEZUMO: (15, 22),
}

# Slots moved per point of win-loss differential when a tier is re-sorted
SLOTS_PER_DIFFERENTIAL = 4.0
RESORT_NOISE = 1.5

SHIKONA_HEADS = (
    "Taka", "Waka", "Koto", "Chiyo", "Tochi", "Asa", "Haru", "Kita",
    "Tama", "Hoku", "Mitake", "Kiri", "Ura", "Shodai", "Onami", "Daie",
)
SHIKONA_TAILS = (
    "yama", "umi", "nishiki", "fuji", "shoma", "ryu", "hikari", "zakura",
    "noshin", "kaze", "shima", "hou", "sato", "mine",
)


def uniform(rng: RandomSource, low: float, high: float) -> float:
    return low + (high - low) * rng()


def uniform_int(rng: RandomSource, low: int, high: int) -> int:
    return low + min(high - low, int(rng() * (high - low + 1)))


def make_shikona(rng: RandomSource) -> str:
    head = SHIKONA_HEADS[uniform_int(rng, 0, len(SHIKONA_HEADS) - 1)]
    tail = SHIKONA_TAILS[uniform_int(rng, 0, len(SHIKONA_TAILS) - 1)]
    return head + tail


@dataclass
class SimulationWorld:
    year: int
    month: int
    rosters: Dict[Division, List[Competitor]] = field(default_factory=dict)
    layout: MakuuchiLayout = field(default_factory=MakuuchiLayout)
    last_exchanges: Dict[BoundaryId, BoundaryExchange] = field(default_factory=dict)
    serial: int = 0
    retired_count: int = 0
    intake_count: int = 0

    def __post_init__(self):
        for division in DIVISION_ORDER:
            self.rosters.setdefault(division, [])

    # ==================== lookup ====================

    def roster(self, division: Division) -> List[Competitor]:
        return self.rosters[division]

    def competitors(self) -> Iterable[Competitor]:
        for division in DIVISION_ORDER:
            yield from self.rosters[division]

    def by_id(self) -> Dict[str, Competitor]:
        return {c.id: c for c in self.competitors()}

    def subject(self) -> Optional[Competitor]:
        for competitor in self.competitors():
            if competitor.is_subject:
                return competitor
        return None

    def active_count(self) -> int:
        return sum(len(self.rosters[d]) for d in DIVISION_ORDER)

    def next_id(self) -> str:
        self.serial += 1
        return f"NPC{self.serial:05d}"

    def advance_calendar(self) -> None:
        """Move to the next odd month; everyone ages a year in January"""
        self.month += 2
        if self.month > 11:
            self.month = 1
            self.year += 1
            for competitor in self.competitors():
                competitor.age += 1

    def juryo_guests(self, count: int) -> List[Competitor]:
        """The most junior Juryo members, most junior last"""
        juryo = [c for c in self.rosters[Division.JURYO] if not c.is_subject]
        ordered = sorted(juryo, key=lambda c: (rank_to_slot(c.rank), c.id))
        return ordered[-count:] if count > 0 else []

    # ==================== generation ====================

    def make_npc(self, division: Division, rng: RandomSource) -> Competitor:
        low, high = STARTING_POWER[division]
        age_low, age_high = STARTING_AGE[division]
        return Competitor(
            id=self.next_id(),
            shikona=make_shikona(rng),
            rank=MAEZUMO_RANK,
            base_power=uniform(rng, low, high),
            growth_bias=uniform(rng, -0.6, 0.9),
            form=uniform(rng, 0.95, 1.05),
            volatility=uniform(rng, 1.0, 2.5),
            age=uniform_int(rng, age_low, age_high),
            retirement_bias=uniform(rng, 0.7, 1.3),
        )

    # ==================== ordering ====================

    def capacity(self, division: Division) -> int:
        if division in DIVISION_SIZE:
            return DIVISION_SIZE[division]
        if division in HEADCOUNT_BOUNDS:
            return HEADCOUNT_BOUNDS[division][1]
        return 10 ** 6

    def minimum(self, division: Division) -> int:
        if division in HEADCOUNT_BOUNDS:
            return HEADCOUNT_BOUNDS[division][0]
        return self.capacity(division)

    def refit_layout(self) -> MakuuchiLayout:
        """
        Yokozuna and Ozeki seats follow the holders still on the roster, so a
        retired titleholder's seat passes down the banzuke instead of staying empty.
        """
        roster = self.rosters[Division.MAKUUCHI]
        layout = MakuuchiLayout(
            yokozuna=sum(1 for c in roster if c.rank.title == Title.YOKOZUNA),
            ozeki=sum(1 for c in roster if c.rank.title == Title.OZEKI),
            sekiwake=self.layout.sekiwake,
            komusubi=self.layout.komusubi,
        ).normalized()
        if layout != self.layout:
            logger.debug(f"Makuuchi layout refitted: {self.layout.to_dict()} -> {layout.to_dict()}")
            self.layout = layout
        return layout

    def reindex(self, division: Division) -> None:
        """Assign ranks by roster position around the tracked competitor's pinned slot"""
        roster = self.rosters[division]
        if division == Division.MAEZUMO:
            for competitor in roster:
                competitor.rank = MAEZUMO_RANK
            return

        layout = None
        if division == Division.MAKUUCHI:
            self.sort_roster(division)
            layout = self.refit_layout()

        pinned = None
        for competitor in roster:
            if competitor.is_subject and competitor.rank.division == division and is_legal_rank(competitor.rank, layout):
                pinned = rank_to_slot(competitor.rank, layout)

        slot = 1
        for competitor in roster:
            if competitor.is_subject and pinned is not None:
                continue
            if slot == pinned:
                slot += 1
            competitor.rank = slot_to_rank(division, slot, layout)
            slot += 1

    def sort_roster(self, division: Division) -> None:
        self.rosters[division].sort(key=lambda c: (rank_value(c.rank), c.id))

    def place(self, competitor: Competitor) -> None:
        """Move a competitor into the roster of its current rank's tier"""
        for roster in self.rosters.values():
            if competitor in roster:
                roster.remove(competitor)
        division = competitor.rank.division
        layout = self.layout if division == Division.MAKUUCHI else None
        slot = rank_to_slot(competitor.rank, layout)
        roster = self.rosters[division]
        index = 0
        while index < len(roster) and rank_to_slot(roster[index].rank, layout) < slot:
            index += 1
        roster.insert(index, competitor)

    # ==================== cycle results ====================

    def apply_committee(self, decision: CommitteeDecision) -> List[Competitor]:
        """
        Re-seat Makuuchi, Juryo and the Makushita promotees from the committee
        decision. Returns the competitors sent down to Makushita, best first.
        """
        self.layout = decision.layout
        pool = (
            self.rosters[Division.MAKUUCHI]
            + self.rosters[Division.JURYO]
            + [c for c in self.rosters[Division.MAKUSHITA] if c.id in decision.ranks]
        )
        makuuchi, juryo, demoted = [], [], []
        for competitor in pool:
            if competitor.is_subject:
                continue
            rank = decision.ranks.get(competitor.id)
            if rank is None:
                continue
            competitor.rank = rank
            competitor.on_probation = decision.probation.get(competitor.id, False)
            competitor.reinstatement_eligible = decision.reinstatement.get(competitor.id, False)
            if rank.division == Division.MAKUUCHI:
                makuuchi.append(competitor)
            elif rank.division == Division.JURYO:
                juryo.append(competitor)
            else:
                demoted.append(competitor)

        for division, members in ((Division.MAKUUCHI, makuuchi), (Division.JURYO, juryo)):
            self.rosters[division] = members
            self.sort_roster(division)

        promoted_ids = {c.id for c in makuuchi + juryo}
        self.rosters[Division.MAKUSHITA] = [
            c for c in self.rosters[Division.MAKUSHITA] if c.id not in promoted_ids
        ]
        demoted.sort(key=lambda c: (rank_to_slot(c.rank), c.id))
        return demoted

    def _performance_key(self, competitor: Competitor, records: Dict[str, TournamentRecord], rng: RandomSource):
        record = records.get(competitor.id)
        differential = record.differential if record else 0
        slot = rank_to_slot(competitor.rank)
        return slot - differential * SLOTS_PER_DIFFERENTIAL + (rng() * 2 - 1) * RESORT_NOISE

    def rebuild_lower_tiers(
        self,
        records: Dict[Division, Dict[str, TournamentRecord]],
        exchanges: Dict[BoundaryId, BoundaryExchange],
        sekitori_demotees: Sequence[Competitor],
        rng: RandomSource,
    ) -> None:
        """
        Re-sort every rule-governed tier by performance, then apply the
        boundary exchanges: arrivals from above go to the top, arrivals from
        below to the bottom. The tracked competitor is left where it is.
        """
        before = {d: list(self.rosters[d]) for d in LOWER_DIVISIONS}
        ids = {c.id: c for d in LOWER_DIVISIONS for c in before[d]}
        chain = (Division.JURYO,) + LOWER_DIVISIONS

        for index, division in enumerate(LOWER_DIVISIONS):
            upper_rule = boundary_between(chain[index], division)
            lower_rule = boundary_between(division, chain[index + 2]) if index + 2 < len(chain) else None
            up = exchanges.get(upper_rule.id) if upper_rule else None
            down = exchanges.get(lower_rule.id) if lower_rule else None

            leaving = set()
            if up is not None:
                leaving.update(up.promoted_ids)
            if down is not None:
                leaving.update(down.demoted_ids)

            tier_records = records.get(division, {})
            stayers = [c for c in before[division] if not c.is_subject and c.id not in leaving]
            keyed = [(self._performance_key(c, tier_records, rng), c.id, c) for c in stayers]
            stayers = [c for _, _, c in sorted(keyed, key=lambda t: (t[0], t[1]))]

            if division == Division.MAKUSHITA:
                from_above = [c for c in sekitori_demotees if not c.is_subject]
            else:
                from_above = [
                    ids[i] for i in (up.demoted_ids if up else [])
                    if i in ids and not ids[i].is_subject
                ]
            from_below = []
            if down is not None:
                below_records = records.get(chain[index + 2], {})
                arrivals = [ids[i] for i in down.promoted_ids if i in ids and not ids[i].is_subject]
                keyed = [(self._performance_key(c, below_records, rng), c.id, c) for c in arrivals]
                from_below = [c for _, _, c in sorted(keyed, key=lambda t: (t[0], t[1]))]

            self.rosters[division] = from_above + stayers + from_below

        for division in LOWER_DIVISIONS:
            self.reindex(division)

    # ==================== headcounts ====================

    @staticmethod
    def _take(roster: List[Competitor], from_end: bool) -> Optional[Competitor]:
        indices = range(len(roster) - 1, -1, -1) if from_end else range(len(roster))
        for index in indices:
            if not roster[index].is_subject:
                return roster.pop(index)
        return None

    def balance_headcounts(self) -> int:
        """
        Push overflow down and pull shortfall up, tier by tier. Jonokuchi
        overflow returns to the Maezumo pool. Returns how many moved.
        """
        moved = 0
        self.sort_roster(Division.MAKUUCHI)
        chain = DIVISION_ORDER
        for index, division in enumerate(chain[:-1]):
            below = chain[index + 1]
            roster = self.rosters[division]
            while len(roster) > self.capacity(division):
                competitor = self._take(roster, from_end=True)
                if competitor is None:
                    break
                self.rosters[below].insert(0, competitor)
                moved += 1
            while len(roster) < self.minimum(division):
                competitor = self._take(self.rosters[below], from_end=False)
                if competitor is None:
                    break
                roster.append(competitor)
                moved += 1
        for division in DIVISION_ORDER:
            self.reindex(division)
        if moved:
            logger.debug(f"Headcount balancing moved {moved} competitors")
        return moved

    def headcounts(self) -> Dict[str, int]:
        return {d.value: len(self.rosters[d]) for d in DIVISION_ORDER}


# =====================================================
# Factory
# =====================================================

def create_world(
    rng: RandomSource,
    year: int = 2024,
    month: int = 1,
    subject: Optional[Competitor] = None,
    headcount: Optional[Dict[Division, int]] = None,
) -> SimulationWorld:
    """
    Populate every tier with generated competitors. The tracked competitor,
    when given, is placed by its own rank.
    """
    world = SimulationWorld(year=year, month=month)
    sizes = dict(INITIAL_HEADCOUNT)
    if headcount:
        sizes.update(headcount)
    for division in DIVISION_ORDER:
        roster = [world.make_npc(division, rng) for _ in range(sizes.get(division, 0))]
        roster.sort(key=lambda c: (-c.base_power, c.id))
        world.rosters[division] = roster
    # seat the opening titles; reindex keeps the Yokozuna and Ozeki counts
    for slot, competitor in enumerate(world.rosters[Division.MAKUUCHI], start=1):
        competitor.rank = slot_to_rank(Division.MAKUUCHI, slot, world.layout)
    for division in DIVISION_ORDER:
        world.reindex(division)
    if subject is not None:
        subject.is_subject = True
        world.place(subject)
        world.balance_headcounts()
    logger.debug(f"World created: {world.headcounts()}")
    return world


def make_subject(
    shikona: str,
    age: int,
    power: float,
    growth_rate: float,
) -> Competitor:
    return Competitor(
        id=SUBJECT_ID,
        shikona=shikona,
        rank=MAEZUMO_RANK,
        base_power=power,
        growth_bias=growth_rate,
        volatility=0.0,
        age=age,
        is_subject=True,
    )

