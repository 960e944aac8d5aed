"""
Championship resolution tests
"""
from simulation.collaborators import seeded_random
from simulation.yusho import YushoEntry, resolve_yusho, run_playoff

from conftest import CountingRandom


def _entries():
    return [
        YushoEntry("A", 12, 3, 1, 120.0),
        YushoEntry("B", 12, 3, 5, 110.0),
        YushoEntry("C", 12, 3, 9, 105.0),
        YushoEntry("D", 11, 4, 2, 118.0),
        YushoEntry("E", 11, 4, 14, 100.0),
        YushoEntry("F", 9, 6, 3, 115.0),
    ]


class TestResolveYusho:
    """Winner and runner-up set"""

    def test_empty_tier(self):
        resolution = resolve_yusho([], CountingRandom())
        assert resolution.winner_id is None
        assert resolution.runner_up_ids == set()

    def test_single_leader_consumes_no_randomness(self):
        rng = CountingRandom()
        entries = [
            YushoEntry("A", 7, 0, 3),
            YushoEntry("B", 6, 1, 1),
            YushoEntry("C", 6, 1, 8),
            YushoEntry("D", 5, 2, 2),
        ]
        resolution = resolve_yusho(entries, rng)
        assert resolution.winner_id == "A"
        assert resolution.runner_up_ids == {"B", "C"}
        assert resolution.playoff_ids == []
        assert rng.calls == 0

    def test_two_way_tie_consults_rng_once(self):
        rng = CountingRandom([0.1])
        entries = [YushoEntry("A", 13, 2, 4), YushoEntry("B", 13, 2, 1), YushoEntry("C", 10, 5, 2)]
        resolution = resolve_yusho(entries, rng)
        assert rng.calls == 1
        assert resolution.winner_id in {"A", "B"}
        assert resolution.playoff_bouts == 1
        loser = ({"A", "B"} - {resolution.winner_id}).pop()
        assert resolution.runner_up_ids == {loser, "C"}

    def test_identical_co_leaders_one_playoff_draw(self):
        """Equal wins, slot and power: one even playoff bout, id breaks the seed tie"""
        entries = [YushoEntry("B", 7, 0, 1, 70.0), YushoEntry("A", 7, 0, 1, 70.0), YushoEntry("C", 5, 2, 3, 70.0)]
        low, high = CountingRandom([0.49]), CountingRandom([0.51])
        first = resolve_yusho(entries, low)
        second = resolve_yusho(list(reversed(entries)), high)
        assert (low.calls, high.calls) == (1, 1)
        assert first.winner_id == "A"
        assert first.runner_up_ids == {"B", "C"}
        assert second.winner_id == "B"
        assert second.runner_up_ids == {"A", "C"}
        assert first.playoff_ids == ["A", "B"]

    def test_higher_seed_wins_on_low_draw(self):
        """Seed order is by slot; a draw below the edge-adjusted probability keeps the higher seed"""
        entries = [YushoEntry("A", 13, 2, 4), YushoEntry("B", 13, 2, 1)]
        assert resolve_yusho(entries, CountingRandom([0.0])).winner_id == "B"
        assert resolve_yusho(entries, CountingRandom([0.999])).winner_id == "A"

    def test_exactly_one_winner_outside_runner_up(self):
        resolution = resolve_yusho(_entries(), seeded_random(11))
        assert resolution.winner_id in {"A", "B", "C"}
        assert resolution.winner_id not in resolution.runner_up_ids
        assert resolution.runner_up_ids == {"A", "B", "C", "D", "E"} - {resolution.winner_id}
        assert "F" not in resolution.runner_up_ids

    def test_input_order_does_not_matter(self):
        forward = resolve_yusho(_entries(), seeded_random(5))
        backward = resolve_yusho(list(reversed(_entries())), seeded_random(5))
        assert forward.winner_id == backward.winner_id
        assert forward.runner_up_ids == backward.runner_up_ids

    def test_same_seed_same_champion(self):
        winners = {resolve_yusho(_entries(), seeded_random(42)).winner_id for _ in range(5)}
        assert len(winners) == 1


class TestPlayoff:
    """Single-elimination playoff"""

    def test_three_way_gives_top_seed_a_bye(self):
        rng = CountingRandom([0.0])
        contenders = [YushoEntry("A", 12, 3, 1), YushoEntry("B", 12, 3, 5), YushoEntry("C", 12, 3, 9)]
        winner, bouts = run_playoff(contenders, rng)
        assert bouts == 2
        assert rng.calls == 2
        assert winner.id == "A"
