"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from banzuke.ranks import Division, Rank, Side, ranked, scheduled_bout_count
from banzuke.records import TournamentRecord
from simulation.collaborators import BoutResult, DailyMatchups, seeded_random
from simulation.competitors import SUBJECT_ID, Competitor
from simulation.injury import SimpleInjuryModel


class CountingRandom:
    """Deterministic source that remembers how often it was consulted"""

    def __init__(self, values=(0.5,)):
        self.values = list(values)
        self.calls = 0

    def __call__(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class AlwaysWinResolver:
    """The first competitor handed in always wins"""

    def resolve(self, competitor, opponent, context, rng):
        return BoutResult(is_win=True, technique="oshidashi")


class IdleMatchmaker:
    """Never pairs anyone"""

    def pair(self, participants, faced, rng, day, total_days):
        return DailyMatchups()


def make_record(rank: Rank, wins: int, losses: int = None, absences: int = 0, **kwargs) -> TournamentRecord:
    """Record at rank; losses default to the rest of the scheduled bouts"""
    if losses is None:
        losses = scheduled_bout_count(rank.division) - wins - absences
    return TournamentRecord(
        year=kwargs.pop("year", 2024),
        month=kwargs.pop("month", 1),
        rank=rank,
        wins=wins,
        losses=losses,
        absences=absences,
        **kwargs,
    )


def make_competitor(competitor_id: str, rank: Rank, power: float = 60.0, subject: bool = False) -> Competitor:
    return Competitor(
        id=competitor_id,
        shikona=f"Shikona{competitor_id}",
        rank=rank,
        base_power=power,
        volatility=0.0 if subject else 1.0,
        is_subject=subject,
    )


@pytest.fixture(scope="function")
def rng():
    """Seeded random source"""
    return seeded_random(7)


@pytest.fixture(scope="function")
def counting_rng():
    return CountingRandom()


@pytest.fixture(scope="function")
def jonokuchi_field():
    """Tracked competitor plus nine generated opponents in Jonokuchi"""
    field = [make_competitor(SUBJECT_ID, ranked(Division.JONOKUCHI, 5, Side.EAST), subject=True)]
    for number in range(1, 10):
        field.append(make_competitor(f"NPC{number:05d}", ranked(Division.JONOKUCHI, number, Side.WEST)))
    return field


@pytest.fixture(scope="function")
def quiet_injuries():
    """Injury model that never injures"""
    return SimpleInjuryModel(enabled=False)
