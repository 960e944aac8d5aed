"""
Tournament records

A TournamentRecord is produced once per competitor per cycle and never mutated.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field, model_validator

from .ranks import Rank, scheduled_bout_count


class BoutOutcome(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    ABSENT = "ABSENT"


class SpecialPrize(str, Enum):
    """Sansho"""
    SHUKUN = "Shukun"   # outstanding performance
    KANTO = "Kanto"     # fighting spirit
    GINO = "Gino"       # technique


class BoutLogEntry(BaseModel):
    """One scheduled day of the tracked competitor"""
    day: int = Field(..., ge=1, le=15)
    outcome: BoutOutcome
    opponent_id: Optional[str] = None
    opponent_shikona: Optional[str] = None
    opponent_rank: Optional[Rank] = None
    technique: Optional[str] = None

    class Config:
        frozen = True


class TournamentRecord(BaseModel):
    """One competitor's result for one cycle"""
    year: int = Field(..., description="Cycle year")
    month: int = Field(..., ge=1, le=12, description="Cycle month")
    rank: Rank = Field(..., description="Rank held during the cycle")
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    absences: int = Field(default=0, ge=0)
    championship: bool = Field(default=False, description="Yusho")
    runner_up: bool = Field(default=False, description="Jun-yusho")
    special_prizes: FrozenSet[SpecialPrize] = Field(default_factory=frozenset)
    gold_stars: int = Field(default=0, ge=0, description="Kinboshi")
    technique_tally: Dict[str, int] = Field(default_factory=dict)

    class Config:
        frozen = True

    @model_validator(mode="after")
    def check_bout_count(self) -> "TournamentRecord":
        expected = scheduled_bout_count(self.rank.division)
        total = self.wins + self.losses + self.absences
        if total != expected:
            raise ValueError(
                f"{self.rank.label()} record accounts for {total} bouts, expected {expected}"
            )
        if self.championship and self.runner_up:
            raise ValueError("A champion cannot also be runner-up")
        return self

    @property
    def bouts(self) -> int:
        return self.wins + self.losses + self.absences

    @property
    def is_full_absence(self) -> bool:
        return self.absences == self.bouts

    @property
    def kachikoshi(self) -> bool:
        """Winning record (absences count as losses)"""
        return self.wins > self.losses + self.absences

    @property
    def differential(self) -> int:
        return self.wins - self.losses - self.absences

    def to_dict(self) -> Dict:
        return self.model_dump(mode="json")


def full_absence_record(year: int, month: int, rank: Rank) -> TournamentRecord:
    return TournamentRecord(
        year=year,
        month=month,
        rank=rank,
        absences=scheduled_bout_count(rank.division),
    )
