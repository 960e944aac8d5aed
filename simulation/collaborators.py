"""
Collaborator contracts consumed by the tournament orchestrator

Bout resolution, daily pairing, injury, special prizes. Default
implementations live in bout.py, matchmaking.py, injury.py and prizes.py.
"""
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Protocol, Sequence, Set, Tuple

from banzuke.records import SpecialPrize

from .competitors import Competitor, Participant

RandomSource = Callable[[], float]


def seeded_random(seed: int) -> RandomSource:
    """Independent reproducible source for one career"""
    return random.Random(seed).random


@dataclass
class BoutContext:
    day: int
    current_wins: int = 0
    current_losses: int = 0
    consecutive_wins: int = 0
    is_last_day: bool = False
    is_championship_contention: bool = False
    previous_outcome: Optional[str] = None


@dataclass
class BoutResult:
    is_win: bool
    technique: str = "yorikiri"


@dataclass
class DailyMatchups:
    pairs: List[Tuple[Participant, Participant]] = field(default_factory=list)
    bye_ids: List[str] = field(default_factory=list)


@dataclass
class Participation:
    must_sit_out: bool = False


@dataclass
class Injury:
    name: str
    severity: float
    cycles_out: int = 0


FacedPairs = Set[FrozenSet[str]]


class BoutResolver(Protocol):
    def resolve(
        self,
        competitor: Participant,
        opponent: Participant,
        context: BoutContext,
        rng: RandomSource,
    ) -> BoutResult:
        ...


class Matchmaker(Protocol):
    def pair(
        self,
        participants: Sequence[Participant],
        faced: FacedPairs,
        rng: RandomSource,
        day: int,
        total_days: int,
    ) -> DailyMatchups:
        ...


class InjuryModel(Protocol):
    def participation(self, competitor: Competitor) -> Participation:
        ...

    def rate(self, competitor: Competitor) -> float:
        ...

    def generate(self, competitor: Competitor, year: int, month: int, rng: RandomSource) -> Injury:
        ...

    def apply(self, competitor: Competitor, injury: Injury) -> None:
        ...

    def battle_penalty(self, competitor: Competitor, participant: Participant) -> Participant:
        ...

    def recover(self, competitor: Competitor) -> None:
        ...


class PrizeEvaluator(Protocol):
    def evaluate(
        self,
        participants: Sequence[Participant],
        winner_id: Optional[str],
        rng: RandomSource,
    ) -> Dict[str, Set[SpecialPrize]]:
        ...
