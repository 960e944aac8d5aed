"""
Title-tier directives

Decides Yokozuna promotion, Ozeki kadoban/demotion/return, Ozeki promotion
via the three-cycle sanyaku chain, and Komusubi -> Sekiwake.
"""
from dataclasses import dataclass, asdict
from typing import Dict, Optional, Sequence

from .ranks import NAMED_TITLES, Division, Title
from .records import TournamentRecord


@dataclass
class TopDirective:
    """Advisory next title plus kadoban/return flags"""
    preferred_title: Optional[Title] = None
    next_is_probationary: bool = False      # kadoban
    next_is_reinstatement: bool = False     # may return to Ozeki with 10 wins
    promotion_bonus: float = 0.0

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["preferred_title"] = self.preferred_title.value if self.preferred_title else None
        return data


# Yokozuna promotion bonuses
BONUS_DOUBLE_YUSHO = 30
BONUS_YUSHO_AND_JUN = 24
BONUS_STRONG_EQUIVALENT = 20
BONUS_NEAR_MISS = 14
BONUS_SOLO_YUSHO = 8

OZEKI_CHAIN_TOTAL = 33
OZEKI_CHAIN_CURRENT = 10
OZEKI_RETURN_WINS = 10
OZEKI_KEEP_WINS = 8
KOMUSUBI_TO_SEKIWAKE_WINS = 9


def _title(record: TournamentRecord) -> Optional[Title]:
    if record.rank.division != Division.MAKUUCHI:
        return None
    return record.rank.title or Title.MAEGASHIRA


def history_score(record: TournamentRecord) -> float:
    """Weighted recent-form score used to order sekitori with equal records"""
    diff = record.wins - (record.losses + record.absences)
    return (
        diff * 2
        + record.wins * 0.45
        + (5 if record.championship else 0)
        + (2.5 if record.runner_up else 0)
    )


def evaluate_yokozuna_promotion(
    record: TournamentRecord,
    past_records: Sequence[TournamentRecord] = (),
) -> tuple:
    """(promote, bonus) for an Ozeki"""
    if _title(record) != Title.OZEKI:
        return False, 0
    prev = past_records[0] if past_records else None
    if prev is None or _title(prev) != Title.OZEKI:
        return False, BONUS_SOLO_YUSHO if record.championship else 0

    total = record.wins + prev.wins
    if record.championship and prev.championship:
        return True, BONUS_DOUBLE_YUSHO
    yusho_and_jun = (
        (record.championship and prev.runner_up) or (prev.championship and record.runner_up)
    )
    if yusho_and_jun and total >= 27:
        return True, BONUS_YUSHO_AND_JUN
    if record.championship and total >= 28 and prev.wins >= 13:
        return True, BONUS_STRONG_EQUIVALENT
    if record.championship and total >= 26:
        return False, BONUS_NEAR_MISS
    if record.championship:
        return False, BONUS_SOLO_YUSHO
    return False, 0


def satisfies_sanyaku_chain(
    record: TournamentRecord,
    past_records: Sequence[TournamentRecord] = (),
) -> bool:
    """Current plus two prior cycles at Komusubi or above, 33+ wins combined, 10+ now"""
    if len(past_records) < 2:
        return False
    chain = [record, past_records[0], past_records[1]]
    if not all(_title(r) in NAMED_TITLES for r in chain):
        return False
    total = sum(r.wins for r in chain)
    return total >= OZEKI_CHAIN_TOTAL and record.wins >= OZEKI_CHAIN_CURRENT


def resolve_top_directive(
    record: TournamentRecord,
    past_records: Sequence[TournamentRecord] = (),
    on_probation: bool = False,
    reinstatement_eligible: bool = False,
) -> TopDirective:
    """
    Directive for one Makuuchi competitor.

    past_records is most recent first. Records outside Makuuchi yield no directive.
    """
    title = _title(record)
    if title is None:
        return TopDirective()

    promote, bonus = evaluate_yokozuna_promotion(record, past_records)

    if title == Title.YOKOZUNA:
        return TopDirective(preferred_title=Title.YOKOZUNA)

    if title == Title.OZEKI:
        if promote:
            return TopDirective(preferred_title=Title.YOKOZUNA, promotion_bonus=bonus)
        if record.wins >= OZEKI_KEEP_WINS:
            return TopDirective(preferred_title=Title.OZEKI, promotion_bonus=bonus)
        if on_probation:
            return TopDirective(
                preferred_title=Title.SEKIWAKE,
                next_is_reinstatement=True,
                promotion_bonus=bonus,
            )
        return TopDirective(
            preferred_title=Title.OZEKI,
            next_is_probationary=True,
            promotion_bonus=bonus,
        )

    if title == Title.SEKIWAKE and reinstatement_eligible and record.wins >= OZEKI_RETURN_WINS:
        return TopDirective(preferred_title=Title.OZEKI)

    if satisfies_sanyaku_chain(record, past_records):
        return TopDirective(preferred_title=Title.OZEKI)

    if title == Title.KOMUSUBI and record.wins >= KOMUSUBI_TO_SEKIWAKE_WINS:
        return TopDirective(preferred_title=Title.SEKIWAKE)

    return TopDirective(promotion_bonus=bonus)
