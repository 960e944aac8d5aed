"""
Championship (yusho) resolution

Everyone at the top win count enters a seeded single-elimination playoff.
A lone leader wins without a playoff and without consuming randomness.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .collaborators import RandomSource

DEFAULT_PLAYOFF_POWER = 78.0
SEED_EDGE_PER_SLOT = 0.05
SEED_EDGE_CAP = 2.8
PLAYOFF_SLOPE = 0.08


@dataclass
class YushoEntry:
    id: str
    wins: int
    losses: int
    slot: int
    power: Optional[float] = None


@dataclass
class YushoResolution:
    winner_id: Optional[str] = None
    runner_up_ids: Set[str] = field(default_factory=set)
    playoff_ids: List[str] = field(default_factory=list)
    top_wins: int = 0
    runner_up_wins: int = -1
    playoff_bouts: int = 0


def standing_key(entry: YushoEntry):
    return (-entry.wins, entry.losses, entry.slot, entry.id)


def seed_key(entry: YushoEntry):
    return (entry.slot, -entry.wins, entry.id)


def playoff_bout(a: YushoEntry, b: YushoEntry, rng: RandomSource) -> YushoEntry:
    """a is the higher seed and gets a small edge"""
    edge = max(-SEED_EDGE_CAP, min(SEED_EDGE_CAP, (b.slot - a.slot) * SEED_EDGE_PER_SLOT))
    a_power = (a.power if a.power is not None else DEFAULT_PLAYOFF_POWER) + edge
    b_power = b.power if b.power is not None else DEFAULT_PLAYOFF_POWER
    p = 1.0 / (1.0 + math.exp(-PLAYOFF_SLOPE * (a_power - b_power)))
    return a if rng() < p else b


def run_playoff(contenders: Sequence[YushoEntry], rng: RandomSource) -> tuple:
    """(winner, bouts fought)"""
    bracket = sorted(contenders, key=seed_key)
    bouts = 0
    while len(bracket) > 1:
        next_round: List[YushoEntry] = []
        left, right = 0, len(bracket) - 1
        if len(bracket) % 2 == 1:
            next_round.append(bracket[0])
            left = 1
        while left < right:
            next_round.append(playoff_bout(bracket[left], bracket[right], rng))
            bouts += 1
            left += 1
            right -= 1
        bracket = sorted(next_round, key=seed_key)
    return bracket[0], bouts


def resolve_yusho(entries: Sequence[YushoEntry], rng: RandomSource) -> YushoResolution:
    """Winner and runner-up set for one tier"""
    if not entries:
        return YushoResolution()

    standings = sorted(entries, key=standing_key)
    top_wins = standings[0].wins
    contenders = [e for e in standings if e.wins == top_wins]
    if len(contenders) == 1:
        winner, bouts = contenders[0], 0
    else:
        winner, bouts = run_playoff(contenders, rng)

    runner_up_wins = next((e.wins for e in standings if e.wins < top_wins), -1)
    runner_up_ids = {
        e.id
        for e in standings
        if e.id != winner.id
        and (e.wins == top_wins or (runner_up_wins >= 0 and e.wins == runner_up_wins))
    }
    return YushoResolution(
        winner_id=winner.id,
        runner_up_ids=runner_up_ids,
        playoff_ids=[e.id for e in contenders] if len(contenders) > 1 else [],
        top_wins=top_wins,
        runner_up_wins=runner_up_wins,
        playoff_bouts=bouts,
    )
