"""
Simulation schemas

Typed issue reporting and the persisted career snapshot.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import datetime
from enum import Enum

from banzuke.coordinates import rank_value
from banzuke.ranks import Rank
from banzuke.records import TournamentRecord

from .errors import SimulationError


class ValidationSeverity(str, Enum):
    """Issue severity"""
    CRITICAL = "critical"   # cycle aborted
    HIGH = "high"           # invariant broken
    MEDIUM = "medium"       # recovered, result altered
    LOW = "low"             # recovered, log only
    INFO = "info"


class ValidationError(BaseModel):
    """One issue"""
    error_type: str = Field(..., description="Issue type")
    severity: ValidationSeverity = Field(..., description="Severity")
    message: str = Field(..., description="Message")
    field: Optional[str] = Field(None, description="Related field")
    value: Optional[Any] = Field(None, description="Offending value")
    suggestion: Optional[str] = Field(None, description="Suggested fix")

    @classmethod
    def from_exception(
        cls,
        exc: SimulationError,
        severity: ValidationSeverity = ValidationSeverity.MEDIUM,
        suggestion: Optional[str] = None,
    ) -> "ValidationError":
        return cls(
            error_type=exc.error_type,
            severity=severity,
            message=exc.message,
            field=exc.context.get("field"),
            value=exc.context.get("value"),
            suggestion=suggestion,
        )


class ValidationResult(BaseModel):
    """Validation outcome"""
    is_valid: bool = Field(default=True, description="Overall validity")
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationError] = Field(default_factory=list)
    pass_rate: float = Field(default=1.0, description="Pass rate (0-1)")
    validated_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_critical_errors(self) -> bool:
        return any(e.severity in [ValidationSeverity.CRITICAL, ValidationSeverity.HIGH] for e in self.errors)


class CareerStatus(str, Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class CareerSnapshot(BaseModel):
    """Everything needed to reload a career verbatim"""
    subject_id: str = Field(..., description="Tracked competitor id")
    shikona: str = Field(..., description="Ring name")
    seed: int = Field(..., description="Seed the career was run with")
    status: CareerStatus = Field(default=CareerStatus.ACTIVE)
    current_rank: Rank = Field(..., description="Rank for the next cycle")
    age: int = Field(..., ge=0)
    on_probation: bool = Field(default=False, description="Ozeki kadoban")
    reinstatement_eligible: bool = Field(default=False, description="Ex-Ozeki return window")
    history: List[TournamentRecord] = Field(default_factory=list)
    retirement_reason: Optional[str] = None

    @property
    def basho_count(self) -> int:
        return len(self.history)

    def summary(self) -> Dict[str, Any]:
        wins = sum(r.wins for r in self.history)
        losses = sum(r.losses for r in self.history)
        absences = sum(r.absences for r in self.history)
        return {
            "subject_id": self.subject_id,
            "shikona": self.shikona,
            "basho": self.basho_count,
            "record": f"{wins}-{losses}-{absences}",
            "championships": sum(1 for r in self.history if r.championship),
            "highest_rank": min(self.history, key=lambda r: rank_value(r.rank)).rank.label() if self.history else None,
            "status": self.status.value,
        }
