"""
Injury model

Only the tracked competitor carries injury state. A severe injury ends the
current cycle and may keep the competitor out of following cycles.
"""
from dataclasses import replace

from .collaborators import Injury, Participation, RandomSource
from .competitors import Competitor, Participant

BASE_RATE = 0.004
AGE_RATE = 0.0006
DAMAGE_RATE = 0.002
MAX_RATE = 0.05

SEVERE_INJURY = 0.6
PENALTY_PER_SEVERITY = 0.25

INJURY_NAMES = (
    "knee sprain",
    "ankle sprain",
    "shoulder strain",
    "elbow strain",
    "lower back strain",
    "torn bicep",
)


class SimpleInjuryModel:
    """Age- and wear-driven injury rate, severity-driven absence"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def participation(self, competitor: Competitor) -> Participation:
        return Participation(must_sit_out=competitor.cycles_out > 0)

    def rate(self, competitor: Competitor) -> float:
        if not self.enabled:
            return 0.0
        rate = (
            BASE_RATE
            + max(0, competitor.age - 28) * AGE_RATE
            + competitor.damage * DAMAGE_RATE
        )
        return min(MAX_RATE, rate)

    def generate(self, competitor: Competitor, year: int, month: int, rng: RandomSource) -> Injury:
        severity = rng() ** 1.6
        name = INJURY_NAMES[min(len(INJURY_NAMES) - 1, int(rng() * len(INJURY_NAMES)))]
        # the current cycle counts as one
        cycles_out = 0
        if severity >= SEVERE_INJURY:
            cycles_out = 1 + int((severity - SEVERE_INJURY) * 5)
        return Injury(name=name, severity=round(severity, 3), cycles_out=cycles_out)

    def apply(self, competitor: Competitor, injury: Injury) -> None:
        competitor.injury_severity = max(competitor.injury_severity, injury.severity)
        competitor.damage += injury.severity * 0.5
        competitor.cycles_out = max(competitor.cycles_out, injury.cycles_out)

    def battle_penalty(self, competitor: Competitor, participant: Participant) -> Participant:
        if competitor.injury_severity <= 0:
            return participant
        factor = 1.0 - PENALTY_PER_SEVERITY * competitor.injury_severity
        return replace(participant, power=participant.power * factor)

    def recover(self, competitor: Competitor) -> None:
        """End-of-cycle healing"""
        if competitor.cycles_out > 0:
            competitor.cycles_out -= 1
        competitor.injury_severity = round(competitor.injury_severity * 0.5, 3)
        if competitor.injury_severity < 0.05:
            competitor.injury_severity = 0.0
