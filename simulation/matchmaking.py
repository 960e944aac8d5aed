"""
Daily pairing

Participants with equal standings meet first; no pair repeats inside one
cycle; an odd field gives one bye to whoever has had the fewest byes
(most junior first, the tracked competitor last).
"""
from typing import List, Optional, Sequence

from .collaborators import DailyMatchups, FacedPairs, RandomSource
from .competitors import Participant

# How many legal opponents are considered for each pairing
CANDIDATE_WINDOW = 3


def pair_key(a: Participant, b: Participant) -> frozenset:
    return frozenset((a.id, b.id))


class StandingsMatchmaker:
    """Swiss-style pairing by current wins, then banzuke order"""

    def __init__(self, window: int = CANDIDATE_WINDOW):
        self.window = max(1, window)

    def _pick_bye(self, participants: Sequence[Participant]) -> Participant:
        return min(participants, key=lambda p: (p.is_subject, p.byes, -p.slot, p.id))

    def pair(
        self,
        participants: Sequence[Participant],
        faced: FacedPairs,
        rng: RandomSource,
        day: int,
        total_days: int,
    ) -> DailyMatchups:
        matchups = DailyMatchups()
        pool: List[Participant] = sorted(participants, key=lambda p: (-p.wins, p.slot, p.id))
        if len(pool) % 2 == 1:
            bye = self._pick_bye(pool)
            bye.byes += 1
            matchups.bye_ids.append(bye.id)
            pool = [p for p in pool if p.id != bye.id]

        paired = set()
        for index, a in enumerate(pool):
            if a.id in paired:
                continue
            options: List[Participant] = []
            for b in pool[index + 1:]:
                if b.id in paired or pair_key(a, b) in faced:
                    continue
                options.append(b)
                if len(options) >= self.window:
                    break
            opponent: Optional[Participant] = None
            if options:
                opponent = options[min(len(options) - 1, int(rng() * len(options)))]
            if opponent is None:
                continue
            paired.add(a.id)
            paired.add(opponent.id)
            matchups.pairs.append((a, opponent))
        return matchups
