"""
Competitor pool lifecycle

Recruit intake into Maezumo, Maezumo graduation into Jonokuchi, strength
and form evolution, and retirement.
"""
import math
from typing import Dict, List, Optional

from loguru import logger

from banzuke.coordinates import clamp
from banzuke.ranks import DIVISION_ORDER, SEKITORI_DIVISIONS, Division
from banzuke.records import TournamentRecord

from .collaborators import RandomSource
from .competitors import Competitor
from .world import SimulationWorld, uniform_int

# Active headcount targets across all tiers
SOFT_MIN_ACTIVE = 630
HARD_MAX_ACTIVE = 900

# (low, high) monthly recruit intake
MONTHLY_INTAKE: Dict[int, tuple] = {3: (50, 80), 5: (10, 20)}
DEFAULT_INTAKE = (3, 8)

# Jonokuchi insertion band (1-based roster position) by Maezumo wins
MAEZUMO_RISE_BAND: Dict[int, tuple] = {3: (8, 12), 2: (18, 22)}
MAEZUMO_DEFAULT_BAND = (28, 30)

POWER_FLOOR = 20.0
POWER_CEILING = 180.0
FORM_RANGE = (0.85, 1.15)

RETIREMENT_CERTAIN_AGE = 40


def noise(rng: RandomSource, amplitude: float) -> float:
    return (rng() * 2 - 1) * amplitude


class PoolLifecycle:
    """
    Population dynamics of one world.

    Usage:
        lifecycle = PoolLifecycle()
        lifecycle.intake(world, rng)
        lifecycle.promote_maezumo(world, records, rng)
        lifecycle.retire(world, records, rng)
    """

    def __init__(
        self,
        soft_min_active: int = SOFT_MIN_ACTIVE,
        hard_max_active: int = HARD_MAX_ACTIVE,
    ):
        self.soft_min_active = soft_min_active
        self.hard_max_active = hard_max_active

    # ==================== intake ====================

    def intake_size(self, month: int, active: int, rng: RandomSource) -> int:
        low, high = MONTHLY_INTAKE.get(month, DEFAULT_INTAKE)
        size = uniform_int(rng, low, high)
        if active < self.soft_min_active:
            size += math.ceil((self.soft_min_active - active) / 2)
        return max(0, min(size, self.hard_max_active - active))

    def intake(self, world: SimulationWorld, rng: RandomSource) -> int:
        size = self.intake_size(world.month, world.active_count(), rng)
        for _ in range(size):
            world.rosters[Division.MAEZUMO].append(world.make_npc(Division.MAEZUMO, rng))
        world.intake_count += size
        if size:
            logger.debug(f"{world.year}-{world.month:02d}: {size} recruits entered Maezumo")
        return size

    # ==================== Maezumo ====================

    def promote_maezumo(
        self,
        world: SimulationWorld,
        records: Dict[str, TournamentRecord],
        rng: RandomSource,
    ) -> int:
        """Every non-subject who fought in Maezumo debuts in Jonokuchi by rise band"""
        graduates = [
            c for c in world.rosters[Division.MAEZUMO]
            if not c.is_subject and c.id in records and not records[c.id].is_full_absence
        ]
        graduates.sort(key=lambda c: (-records[c.id].wins, c.id))
        jonokuchi = world.rosters[Division.JONOKUCHI]
        for competitor in graduates:
            low, high = MAEZUMO_RISE_BAND.get(records[competitor.id].wins, MAEZUMO_DEFAULT_BAND)
            position = clamp(uniform_int(rng, low, high) - 1, 0, len(jonokuchi))
            jonokuchi.insert(position, competitor)
        graduated = {c.id for c in graduates}
        world.rosters[Division.MAEZUMO] = [c for c in world.rosters[Division.MAEZUMO] if c.id not in graduated]
        world.reindex(Division.JONOKUCHI)
        world.reindex(Division.MAEZUMO)
        return len(graduates)

    # ==================== evolution ====================

    def evolve_npc(self, competitor: Competitor, record: TournamentRecord, rng: RandomSource) -> None:
        differential = record.differential
        if record.rank.division in SEKITORI_DIVISIONS:
            delta = differential * 0.35 + competitor.growth_bias * 0.9 + noise(rng, 0.8)
        else:
            delta = differential * 0.24 + competitor.growth_bias * 0.8 + noise(rng, 0.8)
        if competitor.age < 24:
            delta += 0.6
        elif competitor.age >= 30:
            delta -= (competitor.age - 29) * 0.3
        competitor.base_power = clamp(competitor.base_power + delta, POWER_FLOOR, POWER_CEILING)
        competitor.form = clamp(
            competitor.form + differential * 0.005 + noise(rng, 0.03),
            *FORM_RANGE,
        )

    def evolve_subject(
        self,
        competitor: Competitor,
        record: TournamentRecord,
        rng: RandomSource,
    ) -> None:
        age = competitor.age
        if age < 23:
            growth = competitor.growth_bias
        elif age < 27:
            growth = competitor.growth_bias * 0.7
        elif age < 30:
            growth = competitor.growth_bias * 0.3
        else:
            growth = -0.4 * (age - 29)
        delta = (
            growth
            + max(0, record.differential) * 0.15
            + noise(rng, 0.6)
            - competitor.injury_severity * 2
        )
        competitor.base_power = clamp(competitor.base_power + delta, POWER_FLOOR, POWER_CEILING)
        competitor.form = clamp(
            competitor.form + record.differential * 0.004 + noise(rng, 0.02),
            *FORM_RANGE,
        )

    # ==================== retirement ====================

    def retirement_probability(self, competitor: Competitor, record: Optional[TournamentRecord]) -> float:
        age = competitor.age
        if age >= RETIREMENT_CERTAIN_AGE:
            return 1.0
        probability = 0.004 + max(0, age - 24) * 0.004 + max(0, age - 32) * 0.03
        division = competitor.rank.division
        if division not in SEKITORI_DIVISIONS and division != Division.MAKUSHITA and age >= 25:
            probability += 0.02
        if record is not None and record.is_full_absence:
            probability += 0.05
        return clamp(probability * competitor.retirement_bias, 0.0, 1.0)

    def retire(
        self,
        world: SimulationWorld,
        records: Dict[str, TournamentRecord],
        rng: RandomSource,
    ) -> List[Competitor]:
        retired: List[Competitor] = []
        for division in DIVISION_ORDER[:-1]:
            roster = world.rosters[division]
            keep = []
            for competitor in roster:
                if competitor.is_subject:
                    keep.append(competitor)
                    continue
                if rng() < self.retirement_probability(competitor, records.get(competitor.id)):
                    competitor.active = False
                    retired.append(competitor)
                else:
                    keep.append(competitor)
            world.rosters[division] = keep
        world.retired_count += len(retired)
        if retired:
            logger.debug(f"{world.year}-{world.month:02d}: {len(retired)} retirements")
        return retired

