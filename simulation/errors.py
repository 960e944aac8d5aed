"""
Simulation error taxonomy

InvalidRankShape, IncompleteSchedule and EmptyField are recovered inside a
cycle and reported as ValidationError issues; MissingPlayer aborts the cycle.
"""


class SimulationError(Exception):
    """Base class for simulation failures"""

    error_type = "SIMULATION_ERROR"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidRankShape(SimulationError):
    """Tier/number/side combination outside legal bounds"""

    error_type = "INVALID_RANK_SHAPE"


class IncompleteSchedule(SimulationError):
    """Matchmaking did not schedule every bout day"""

    error_type = "INCOMPLETE_SCHEDULE"


class EmptyField(SimulationError):
    """A tier had no eligible opponents"""

    error_type = "EMPTY_FIELD"


class MissingPlayer(SimulationError):
    """A required participant was not constructed before the tournament"""

    error_type = "MISSING_PLAYER"
