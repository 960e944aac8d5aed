"""
Career simulation

Tournament orchestration, the competitor world, the career engine and
its ambient services (configuration, events, monitoring, persistence).
"""
from .errors import SimulationError, InvalidRankShape, IncompleteSchedule, EmptyField, MissingPlayer
from .schemas import (
    ValidationSeverity,
    ValidationError,
    ValidationResult,
    CareerStatus,
    CareerSnapshot,
)
from .collaborators import (
    RandomSource,
    BoutContext,
    BoutResult,
    DailyMatchups,
    Participation,
    Injury,
    BoutResolver,
    Matchmaker,
    InjuryModel,
    PrizeEvaluator,
    seeded_random,
)
from .competitors import Competitor, Participant, SUBJECT_ID
from .yusho import YushoEntry, YushoResolution, resolve_yusho
from .bout import LogisticBoutResolver
from .matchmaking import StandingsMatchmaker
from .injury import SimpleInjuryModel
from .prizes import SanshoEvaluator
from .basho import TournamentOrchestrator, DivisionTournament
from .world import SimulationWorld, create_world, make_subject
from .lifecycle import PoolLifecycle
from .events import CareerEvent, CareerEventType, EventPublisher
from .validators import RecordValidator
from .monitoring import BalanceMonitor, MetricType, Alert, AlertSeverity
from .engine import CareerEngine, CareerStep
from .runner import run_simulation, run_batch, CareerResult, BatchReport
from .persistence import save_snapshot, load_snapshot

__all__ = [
    "SimulationError",
    "InvalidRankShape",
    "IncompleteSchedule",
    "EmptyField",
    "MissingPlayer",
    "ValidationSeverity",
    "ValidationError",
    "ValidationResult",
    "CareerStatus",
    "CareerSnapshot",
    "RandomSource",
    "BoutContext",
    "BoutResult",
    "DailyMatchups",
    "Participation",
    "Injury",
    "BoutResolver",
    "Matchmaker",
    "InjuryModel",
    "PrizeEvaluator",
    "seeded_random",
    "Competitor",
    "Participant",
    "SUBJECT_ID",
    "YushoEntry",
    "YushoResolution",
    "resolve_yusho",
    "LogisticBoutResolver",
    "StandingsMatchmaker",
    "SimpleInjuryModel",
    "SanshoEvaluator",
    "TournamentOrchestrator",
    "DivisionTournament",
    "SimulationWorld",
    "create_world",
    "make_subject",
    "PoolLifecycle",
    "CareerEvent",
    "CareerEventType",
    "EventPublisher",
    "RecordValidator",
    "BalanceMonitor",
    "MetricType",
    "Alert",
    "AlertSeverity",
    "CareerEngine",
    "CareerStep",
    "run_simulation",
    "run_batch",
    "CareerResult",
    "BatchReport",
    "save_snapshot",
    "load_snapshot",
]
