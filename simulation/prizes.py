"""
Special prizes (sansho), Makuuchi only
"""
from typing import Dict, Optional, Sequence, Set

from banzuke.ranks import Title
from banzuke.records import SpecialPrize

from .collaborators import RandomSource
from .competitors import Participant

PRIZE_MIN_WINS = 10
GINO_MIN_TECHNIQUES = 6


class SanshoEvaluator:
    """Shukun, Kanto and Gino for double-digit winners below Ozeki"""

    def evaluate(
        self,
        participants: Sequence[Participant],
        winner_id: Optional[str],
        rng: RandomSource,
    ) -> Dict[str, Set[SpecialPrize]]:
        prizes: Dict[str, Set[SpecialPrize]] = {}
        for p in sorted(participants, key=lambda x: x.slot):
            if p.is_guest or p.rank.title in (Title.YOKOZUNA, Title.OZEKI):
                continue
            if p.wins < PRIZE_MIN_WINS:
                continue
            awarded: Set[SpecialPrize] = set()
            if p.id == winner_id or (p.rank.title in (Title.SEKIWAKE, Title.KOMUSUBI) and p.wins >= 11):
                awarded.add(SpecialPrize.SHUKUN)
            if p.rank.title == Title.MAEGASHIRA and p.wins >= 11:
                awarded.add(SpecialPrize.KANTO)
            elif rng() < 0.5:
                awarded.add(SpecialPrize.KANTO)
            if len(p.techniques) >= GINO_MIN_TECHNIQUES and rng() < 0.4:
                awarded.add(SpecialPrize.GINO)
            prizes[p.id] = awarded
        return prizes
