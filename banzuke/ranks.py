"""
Banzuke rank model

Seven tiers, senior to junior:
- Makuuchi (title tier: Yokozuna, Ozeki, Sekiwake, Komusubi, Maegashira)
- Juryo (quota tier, fixed headcount)
- Makushita, Sandanme, Jonidan, Jonokuchi (rule-governed lower tiers)
- Maezumo (unranked entry pool)
"""
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field


# =====================================================
# Tiers, sides, titles
# =====================================================

class Division(str, Enum):
    """Ranking tier"""
    MAKUUCHI = "Makuuchi"
    JURYO = "Juryo"
    MAKUSHITA = "Makushita"
    SANDANME = "Sandanme"
    JONIDAN = "Jonidan"
    JONOKUCHI = "Jonokuchi"
    MAEZUMO = "Maezumo"


class Side(str, Enum):
    """East outranks West at equal number"""
    EAST = "East"
    WEST = "West"


class Title(str, Enum):
    """Makuuchi titles, senior to junior"""
    YOKOZUNA = "Yokozuna"
    OZEKI = "Ozeki"
    SEKIWAKE = "Sekiwake"
    KOMUSUBI = "Komusubi"
    MAEGASHIRA = "Maegashira"


DIVISION_ORDER: Tuple[Division, ...] = (
    Division.MAKUUCHI,
    Division.JURYO,
    Division.MAKUSHITA,
    Division.SANDANME,
    Division.JONIDAN,
    Division.JONOKUCHI,
    Division.MAEZUMO,
)

SEKITORI_DIVISIONS: Tuple[Division, ...] = (Division.MAKUUCHI, Division.JURYO)

LOWER_DIVISIONS: Tuple[Division, ...] = (
    Division.MAKUSHITA,
    Division.SANDANME,
    Division.JONIDAN,
    Division.JONOKUCHI,
)

TITLE_ORDER: Tuple[Title, ...] = (
    Title.YOKOZUNA,
    Title.OZEKI,
    Title.SEKIWAKE,
    Title.KOMUSUBI,
    Title.MAEGASHIRA,
)

NAMED_TITLES: Tuple[Title, ...] = TITLE_ORDER[:4]
SANYAKU_TITLES: Tuple[Title, ...] = (Title.SEKIWAKE, Title.KOMUSUBI)


# =====================================================
# Limits
# =====================================================

# Largest legal number per tier (Makuuchi: Maegashira)
MAX_NUMBER: Dict[Division, int] = {
    Division.MAKUUCHI: 17,
    Division.JURYO: 14,
    Division.MAKUSHITA: 60,
    Division.SANDANME: 90,
    Division.JONIDAN: 100,
    Division.JONOKUCHI: 30,
}

# Fixed headcount of the quota tiers
DIVISION_SIZE: Dict[Division, int] = {
    Division.MAKUUCHI: 42,
    Division.JURYO: 28,
}

# (soft, hard) headcount of the rule-governed tiers
HEADCOUNT_BOUNDS: Dict[Division, Tuple[int, int]] = {
    Division.MAKUSHITA: (100, 120),
    Division.SANDANME: (150, 180),
    Division.JONIDAN: (160, 200),
    Division.JONOKUCHI: (40, 60),
}

SCHEDULED_BOUTS: Dict[Division, int] = {
    Division.MAKUUCHI: 15,
    Division.JURYO: 15,
    Division.MAKUSHITA: 7,
    Division.SANDANME: 7,
    Division.JONIDAN: 7,
    Division.JONOKUCHI: 7,
    Division.MAEZUMO: 3,
}

TOURNAMENT_DAYS = 15


def scheduled_bout_count(division: Division) -> int:
    """Bouts a competitor of this tier fights per cycle"""
    return SCHEDULED_BOUTS[division]


def scheduled_bout_day(division: Division, bout_index: int) -> int:
    """Calendar day of the n-th bout (0-based). Sekitori fight daily, others every other day."""
    if division in SEKITORI_DIVISIONS:
        return min(TOURNAMENT_DAYS, bout_index + 1)
    return min(TOURNAMENT_DAYS, 1 + bout_index * 2)


def scheduled_days(division: Division) -> Tuple[int, ...]:
    return tuple(scheduled_bout_day(division, i) for i in range(scheduled_bout_count(division)))


def division_index(division: Division) -> int:
    return DIVISION_ORDER.index(division)


# =====================================================
# Rank
# =====================================================

class Rank(BaseModel):
    """
    One banzuke position.

    Makuuchi ranks carry a title; named titles are numbered inside the title
    (Ozeki 1 East, Ozeki 1 West, Ozeki 2 East ...). Maezumo carries no number.
    """
    division: Division = Field(..., description="Tier")
    title: Optional[Title] = Field(None, description="Makuuchi title")
    number: Optional[int] = Field(None, description="Number inside the tier or title")
    side: Side = Field(default=Side.EAST, description="East/West")

    class Config:
        frozen = True

    @property
    def is_sekitori(self) -> bool:
        return self.division in SEKITORI_DIVISIONS

    @property
    def is_lower(self) -> bool:
        return self.division in LOWER_DIVISIONS

    @property
    def is_named_title(self) -> bool:
        return self.division == Division.MAKUUCHI and self.title in NAMED_TITLES

    def label(self) -> str:
        if self.division == Division.MAEZUMO:
            return "Maezumo"
        head = self.title.value if self.division == Division.MAKUUCHI and self.title else self.division.value
        side = "e" if self.side == Side.EAST else "w"
        return f"{head} {self.number or 1}{side}"

    def __str__(self) -> str:
        return self.label()


def makuuchi(title: Title, number: int = 1, side: Side = Side.EAST) -> Rank:
    return Rank(division=Division.MAKUUCHI, title=title, number=number, side=side)


def ranked(division: Division, number: int, side: Side = Side.EAST) -> Rank:
    if division == Division.MAKUUCHI:
        return makuuchi(Title.MAEGASHIRA, number, side)
    return Rank(division=division, number=number, side=side)


MAEZUMO_RANK = Rank(division=Division.MAEZUMO)


# =====================================================
# Makuuchi layout
# =====================================================

@dataclass
class MakuuchiLayout:
    """Slot counts per named title; the rest of the 42 Makuuchi slots are Maegashira"""
    yokozuna: int = 2
    ozeki: int = 2
    sekiwake: int = 2
    komusubi: int = 2

    @property
    def titled_total(self) -> int:
        return self.yokozuna + self.ozeki + self.sekiwake + self.komusubi

    @property
    def maegashira_slots(self) -> int:
        return DIVISION_SIZE[Division.MAKUUCHI] - self.titled_total

    def count(self, title: Title) -> int:
        if title == Title.MAEGASHIRA:
            return self.maegashira_slots
        return getattr(self, title.value.lower())

    def normalized(self) -> "MakuuchiLayout":
        """At least two Sekiwake and Komusubi, and enough titled slots that Maegashira fits in 17 numbers."""
        yokozuna = max(0, self.yokozuna)
        ozeki = max(0, self.ozeki)
        sekiwake = max(2, self.sekiwake)
        komusubi = max(2, self.komusubi)
        min_titled = DIVISION_SIZE[Division.MAKUUCHI] - MAX_NUMBER[Division.MAKUUCHI] * 2
        shortfall = min_titled - (yokozuna + ozeki + sekiwake + komusubi)
        if shortfall > 0:
            komusubi += shortfall
        return MakuuchiLayout(yokozuna=yokozuna, ozeki=ozeki, sekiwake=sekiwake, komusubi=komusubi)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


DEFAULT_MAKUUCHI_LAYOUT = MakuuchiLayout()
