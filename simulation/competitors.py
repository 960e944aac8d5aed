"""
Competitor state

Competitor persists across cycles (owned by the world); Participant is the
per-cycle view of one competitor inside one division's tournament.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from banzuke.ranks import Rank
from banzuke.records import TournamentRecord

SUBJECT_ID = "PLAYER"
GUEST_PREFIX = "JURYO_GUEST_"


@dataclass
class Competitor:
    id: str
    shikona: str
    rank: Rank
    base_power: float
    growth_bias: float = 0.0
    form: float = 1.0
    volatility: float = 1.5
    age: int = 18
    active: bool = True
    is_subject: bool = False
    retirement_bias: float = 1.0
    # injury state
    injury_severity: float = 0.0
    cycles_out: int = 0
    damage: float = 0.0
    # Ozeki flags
    on_probation: bool = False
    reinstatement_eligible: bool = False
    # most recent first, capped
    recent_records: List[TournamentRecord] = field(default_factory=list)
    basho_count: int = 0
    consecutive_full_absences: int = 0

    HISTORY_DEPTH = 6

    def push_record(self, record: TournamentRecord) -> None:
        self.recent_records = [record] + self.recent_records[: self.HISTORY_DEPTH - 1]
        self.basho_count += 1
        if record.is_full_absence:
            self.consecutive_full_absences += 1
        else:
            self.consecutive_full_absences = 0

    def seasonal_power(self, noise: float = 0.0) -> float:
        return self.base_power * self.form + noise

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "shikona": self.shikona,
            "rank": self.rank.label(),
            "base_power": round(self.base_power, 2),
            "age": self.age,
            "active": self.active,
        }


@dataclass
class Participant:
    """One entrant of one division's tournament"""
    id: str
    shikona: str
    slot: int
    power: float
    rank: Rank
    wins: int = 0
    losses: int = 0
    byes: int = 0
    active: bool = True
    is_subject: bool = False
    is_guest: bool = False
    competitor: Optional[Competitor] = None
    consecutive_wins: int = 0
    previous_outcome: Optional[str] = None
    techniques: Dict[str, int] = field(default_factory=dict)
    gold_stars: int = 0

    @property
    def differential(self) -> int:
        return self.wins - self.losses
