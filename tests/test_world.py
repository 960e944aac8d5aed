"""
Simulation world and pool lifecycle tests
"""
from banzuke.coordinates import is_legal_rank, rank_to_slot
from banzuke.ranks import (
    DIVISION_ORDER,
    HEADCOUNT_BOUNDS,
    LOWER_DIVISIONS,
    MAEZUMO_RANK,
    Division,
    Side,
    Title,
    ranked,
)
from simulation.collaborators import seeded_random
from simulation.competitors import SUBJECT_ID
from simulation.lifecycle import HARD_MAX_ACTIVE, PoolLifecycle
from simulation.world import create_world, make_subject

from conftest import CountingRandom, make_record


def _world(seed=1):
    subject = make_subject("Kaiseiyama", 18, 42.0, 1.2)
    return create_world(seeded_random(seed), 2024, 1, subject)


# =====================================================
# World
# =====================================================

class TestCreateWorld:
    """Initial pool"""

    def test_quota_tiers_full(self):
        world = _world()
        assert len(world.roster(Division.MAKUUCHI)) == 42
        assert len(world.roster(Division.JURYO)) == 28

    def test_lower_tiers_within_bounds(self):
        world = _world()
        for division in LOWER_DIVISIONS:
            low, high = HEADCOUNT_BOUNDS[division]
            assert low <= len(world.roster(division)) <= high

    def test_subject_starts_in_maezumo(self):
        world = _world()
        subject = world.subject()
        assert subject.id == SUBJECT_ID
        assert subject.rank == MAEZUMO_RANK
        assert subject in world.roster(Division.MAEZUMO)

    def test_opening_titles_seated(self):
        world = _world()
        titles = [c.rank.title for c in world.roster(Division.MAKUUCHI)]
        assert titles.count(Title.YOKOZUNA) == 2
        assert titles.count(Title.OZEKI) == 2
        assert titles.count(Title.MAEGASHIRA) == 34

    def test_ranks_unique_per_tier(self):
        world = _world()
        for division in DIVISION_ORDER[:-1]:
            ranks = [c.rank for c in world.roster(division)]
            assert len(set(ranks)) == len(ranks)

    def test_same_seed_same_world(self):
        first, second = _world(9), _world(9)
        assert [c.shikona for c in first.competitors()] == [c.shikona for c in second.competitors()]


class TestRosterOperations:
    """Placement, re-ranking and headcount balancing"""

    def test_reindex_keeps_subject_pinned(self):
        world = _world()
        subject = world.subject()
        subject.rank = ranked(Division.JONOKUCHI, 5, Side.WEST)
        world.place(subject)
        world.reindex(Division.JONOKUCHI)
        assert subject.rank == ranked(Division.JONOKUCHI, 5, Side.WEST)
        ranks = [c.rank for c in world.roster(Division.JONOKUCHI)]
        assert len(set(ranks)) == len(ranks)

    def test_place_keeps_slot_order(self):
        world = _world()
        subject = world.subject()
        subject.rank = ranked(Division.SANDANME, 40)
        world.place(subject)
        roster = world.roster(Division.SANDANME)
        slots = [rank_to_slot(c.rank) for c in roster]
        assert subject not in world.roster(Division.MAEZUMO)
        assert slots.index(rank_to_slot(subject.rank)) == roster.index(subject)

    def test_juryo_overflow_pushed_down(self):
        world = _world()
        extra = world.make_npc(Division.JURYO, seeded_random(2))
        extra.rank = ranked(Division.JURYO, 14, Side.WEST)
        world.roster(Division.JURYO).append(extra)
        world.balance_headcounts()
        assert len(world.roster(Division.JURYO)) == 28
        assert extra in world.roster(Division.MAKUSHITA)

    def test_shortfall_pulled_up(self):
        world = _world()
        del world.roster(Division.MAKUUCHI)[-3:]
        world.balance_headcounts()
        assert len(world.roster(Division.MAKUUCHI)) == 42
        assert len(world.roster(Division.JURYO)) == 28

    def test_retired_titleholders_refilled_from_juryo(self):
        world = _world()
        makuuchi = world.roster(Division.MAKUUCHI)
        yokozuna = next(c for c in makuuchi if c.rank.title == Title.YOKOZUNA)
        sekiwake = next(c for c in makuuchi if c.rank.title == Title.SEKIWAKE)
        juryo_top = world.roster(Division.JURYO)[0]
        for veteran in (yokozuna, sekiwake):
            veteran.age = 41
        PoolLifecycle().retire(world, {}, CountingRandom([0.5]))
        world.balance_headcounts()

        makuuchi = world.roster(Division.MAKUUCHI)
        assert len(makuuchi) == 42
        assert len(world.roster(Division.JURYO)) == 28
        assert juryo_top in makuuchi
        assert world.layout.yokozuna == 1
        assert world.layout.sekiwake == 2
        ranks = [c.rank for c in makuuchi]
        assert len(set(ranks)) == 42
        assert all(is_legal_rank(r, world.layout) for r in ranks)
        assert [c.rank.title for c in makuuchi].count(Title.SEKIWAKE) == 2

    def test_juryo_guests_most_junior(self):
        world = _world()
        guests = world.juryo_guests(6)
        assert len(guests) == 6
        assert all(g.rank.division == Division.JURYO for g in guests)
        assert {g.rank.number for g in guests} == {12, 13, 14}

    def test_calendar_wraps_and_ages(self):
        world = _world()
        world.month = 11
        subject = world.subject()
        age = subject.age
        world.advance_calendar()
        assert (world.year, world.month) == (2025, 1)
        assert subject.age == age + 1


# =====================================================
# Lifecycle
# =====================================================

class TestPoolLifecycle:
    """Intake, graduation, evolution and retirement"""

    def test_march_intake_is_large(self):
        size = PoolLifecycle().intake_size(3, 700, CountingRandom([0.0]))
        assert size == 50

    def test_recovery_intake_below_soft_minimum(self):
        size = PoolLifecycle().intake_size(7, 600, CountingRandom([0.0]))
        assert size == 3 + 15

    def test_intake_capped_at_hard_maximum(self):
        size = PoolLifecycle().intake_size(3, HARD_MAX_ACTIVE - 10, CountingRandom([0.99]))
        assert size == 10

    def test_intake_adds_to_maezumo(self):
        world = _world()
        before = len(world.roster(Division.MAEZUMO))
        added = PoolLifecycle().intake(world, seeded_random(4))
        assert len(world.roster(Division.MAEZUMO)) == before + added
        assert world.intake_count == added

    def test_maezumo_graduates_to_jonokuchi(self):
        world = _world()
        maezumo = [c for c in world.roster(Division.MAEZUMO) if not c.is_subject]
        records = {c.id: make_record(MAEZUMO_RANK, 2) for c in maezumo}
        graduated = PoolLifecycle().promote_maezumo(world, records, seeded_random(4))
        assert graduated == len(maezumo)
        assert world.roster(Division.MAEZUMO) == [world.subject()]
        assert all(c.rank.division == Division.JONOKUCHI for c in maezumo)

    def test_retirement_certain_at_forty(self):
        world = _world()
        veteran = world.roster(Division.JURYO)[0]
        veteran.age = 40
        assert PoolLifecycle().retirement_probability(veteran, None) == 1.0

    def test_subject_never_retired_by_pool(self):
        world = _world()
        world.subject().age = 45
        PoolLifecycle().retire(world, {}, CountingRandom([0.0]))
        assert world.subject() is not None

    def test_npc_evolution_bounded(self):
        world = _world()
        npc = world.roster(Division.JONIDAN)[0]
        record = make_record(npc.rank, 7)
        lifecycle = PoolLifecycle()
        for _ in range(200):
            lifecycle.evolve_npc(npc, record, CountingRandom([0.99]))
        assert npc.base_power <= 180.0
        assert 0.85 <= npc.form <= 1.15
