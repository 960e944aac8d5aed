"""
Tournament orchestrator

Runs one division's cycle day by day and produces a TournamentRecord for
every participant, plus the tracked competitor's bout log.

Per participant state: ACTIVE -> (each scheduled day) WIN / LOSS / ABSENT -> COMPLETED.
A forced withdrawal records every remaining scheduled day ABSENT in one pass.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from loguru import logger

from banzuke.coordinates import clamp, rank_to_slot
from banzuke.ranks import (
    DIVISION_SIZE,
    TOURNAMENT_DAYS,
    Division,
    MakuuchiLayout,
    Title,
    scheduled_bout_count,
    scheduled_days,
)
from banzuke.records import BoutLogEntry, BoutOutcome, SpecialPrize, TournamentRecord

from .bout import LogisticBoutResolver
from .collaborators import (
    BoutContext,
    BoutResolver,
    FacedPairs,
    InjuryModel,
    Matchmaker,
    PrizeEvaluator,
    RandomSource,
)
from .competitors import GUEST_PREFIX, Competitor, Participant
from .errors import EmptyField, IncompleteSchedule, MissingPlayer
from .injury import SimpleInjuryModel
from .matchmaking import StandingsMatchmaker, pair_key
from .prizes import SanshoEvaluator
from .schemas import ValidationError, ValidationSeverity
from .yusho import YushoEntry, YushoResolution, resolve_yusho

# Seasonal strength bounds per tier
POWER_RANGE: Dict[Division, tuple] = {
    Division.MAKUUCHI: (95, 165),
    Division.JURYO: (80, 125),
    Division.MAKUSHITA: (68, 102),
    Division.SANDANME: (56, 90),
    Division.JONIDAN: (45, 80),
    Division.JONOKUCHI: (35, 70),
    Division.MAEZUMO: (20, 60),
}


def noise(rng: RandomSource, amplitude: float) -> float:
    return (rng() * 2 - 1) * amplitude


@dataclass
class DivisionTournament:
    """Everything one division's cycle produced"""
    division: Division
    records: Dict[str, TournamentRecord] = field(default_factory=dict)
    bout_log: List[BoutLogEntry] = field(default_factory=list)
    yusho: YushoResolution = field(default_factory=YushoResolution)
    participants: List[Participant] = field(default_factory=list)
    issues: List[ValidationError] = field(default_factory=list)

    def record_for(self, competitor_id: str) -> Optional[TournamentRecord]:
        return self.records.get(competitor_id)


@dataclass
class _SubjectLog:
    """Running tally for the tracked competitor"""
    entries: Dict[int, BoutLogEntry] = field(default_factory=dict)
    wins: int = 0
    losses: int = 0
    absences: int = 0

    def add(self, entry: BoutLogEntry) -> bool:
        if entry.day in self.entries:
            return False
        self.entries[entry.day] = entry
        if entry.outcome == BoutOutcome.WIN:
            self.wins += 1
        elif entry.outcome == BoutOutcome.LOSS:
            self.losses += 1
        else:
            self.absences += 1
        return True

    @property
    def accounted(self) -> int:
        return self.wins + self.losses + self.absences


class TournamentOrchestrator:
    """
    Division tournament runner.

    Usage:
        orchestrator = TournamentOrchestrator()
        result = orchestrator.run_division(Division.JURYO, entrants, 2024, 1, rng)
    """

    def __init__(
        self,
        resolver: Optional[BoutResolver] = None,
        matchmaker: Optional[Matchmaker] = None,
        injury_model: Optional[InjuryModel] = None,
        prize_evaluator: Optional[PrizeEvaluator] = None,
    ):
        self.resolver = resolver or LogisticBoutResolver()
        self.matchmaker = matchmaker or StandingsMatchmaker()
        self.injury_model = injury_model or SimpleInjuryModel()
        self.prize_evaluator = prize_evaluator or SanshoEvaluator()

    # ==================== field ====================

    def _participant(
        self,
        competitor: Competitor,
        division: Division,
        layout: Optional[MakuuchiLayout],
        rng: RandomSource,
    ) -> Participant:
        low, high = POWER_RANGE[division]
        if competitor.is_subject:
            power = competitor.seasonal_power()
        else:
            power = clamp(
                competitor.seasonal_power(noise(rng, competitor.volatility) + noise(rng, 1.2)),
                low,
                high,
            )
        return Participant(
            id=competitor.id,
            shikona=competitor.shikona,
            slot=rank_to_slot(competitor.rank, layout),
            power=power,
            rank=competitor.rank,
            is_subject=competitor.is_subject,
            competitor=competitor,
        )

    def _guest(self, competitor: Competitor, rng: RandomSource) -> Participant:
        low, high = POWER_RANGE[Division.JURYO]
        return Participant(
            id=f"{GUEST_PREFIX}{competitor.id}",
            shikona=competitor.shikona,
            slot=rank_to_slot(competitor.rank) - DIVISION_SIZE[Division.JURYO],
            power=clamp(competitor.seasonal_power(noise(rng, 1.6)), low, high),
            rank=competitor.rank,
            is_guest=True,
            competitor=competitor,
        )

    def build_field(
        self,
        division: Division,
        entrants: Sequence[Competitor],
        rng: RandomSource,
        guests: Sequence[Competitor] = (),
        layout: Optional[MakuuchiLayout] = None,
    ) -> List[Participant]:
        ordered = sorted(
            (c for c in entrants if c.active),
            key=lambda c: (rank_to_slot(c.rank, layout), c.id),
        )
        participants = [self._participant(c, division, layout, rng) for c in ordered]
        participants += [self._guest(c, rng) for c in guests]
        return participants

    # ==================== bouts ====================

    def _context(self, p: Participant, bout_index: int, bouts: int, day: int) -> BoutContext:
        is_last = bout_index == bouts - 1
        return BoutContext(
            day=day,
            current_wins=p.wins,
            current_losses=p.losses,
            consecutive_wins=p.consecutive_wins,
            is_last_day=is_last,
            is_championship_contention=is_last and p.wins >= bouts - 2,
            previous_outcome=p.previous_outcome,
        )

    @staticmethod
    def _settle(winner: Participant, loser: Participant, technique: Optional[str], division: Division) -> None:
        winner.wins += 1
        winner.consecutive_wins += 1
        winner.previous_outcome = BoutOutcome.WIN.value
        loser.losses += 1
        loser.consecutive_wins = 0
        loser.previous_outcome = BoutOutcome.LOSS.value
        if technique:
            winner.techniques[technique] = winner.techniques.get(technique, 0) + 1
        if (
            division == Division.MAKUUCHI
            and winner.rank.title == Title.MAEGASHIRA
            and loser.rank.title == Title.YOKOZUNA
            and not winner.is_guest
        ):
            winner.gold_stars += 1

    def _opponent_entry(self, day: int, outcome: BoutOutcome, opponent: Participant, technique=None) -> BoutLogEntry:
        return BoutLogEntry(
            day=day,
            outcome=outcome,
            opponent_id=opponent.id,
            opponent_shikona=opponent.shikona,
            opponent_rank=opponent.rank,
            technique=technique,
        )

    def _subject_bout(
        self,
        subject: Participant,
        opponent: Participant,
        bout_index: int,
        bouts: int,
        day: int,
        division: Division,
        year: int,
        month: int,
        rng: RandomSource,
        log: _SubjectLog,
        remaining_days: Sequence[int],
    ) -> None:
        competitor = subject.competitor
        context = self._context(subject, bout_index, bouts, day)
        contender = self.injury_model.battle_penalty(competitor, subject)
        result = self.resolver.resolve(contender, opponent, context, rng)
        if result.is_win:
            self._settle(subject, opponent, result.technique, division)
            log.add(self._opponent_entry(day, BoutOutcome.WIN, opponent, result.technique))
            return

        self._settle(opponent, subject, result.technique, division)
        log.add(self._opponent_entry(day, BoutOutcome.LOSS, opponent, result.technique))
        if rng() < self.injury_model.rate(competitor):
            injury = self.injury_model.generate(competitor, year, month, rng)
            self.injury_model.apply(competitor, injury)
            logger.info(f"{competitor.shikona} injured on day {day}: {injury.name} ({injury.severity})")
            if self.injury_model.participation(competitor).must_sit_out:
                subject.active = False
                for later in remaining_days:
                    log.add(BoutLogEntry(day=later, outcome=BoutOutcome.ABSENT))

    # ==================== cycle ====================

    def run_division(
        self,
        division: Division,
        entrants: Sequence[Competitor],
        year: int,
        month: int,
        rng: RandomSource,
        guests: Sequence[Competitor] = (),
        layout: Optional[MakuuchiLayout] = None,
        subject_id: Optional[str] = None,
    ) -> DivisionTournament:
        """
        Simulate one division for one cycle.

        subject_id, when given, must be among the entrants; its bout log is kept.
        """
        result = DivisionTournament(division=division)
        bouts = scheduled_bout_count(division)
        days = scheduled_days(division)

        participants = self.build_field(division, entrants, rng, guests, layout)
        result.participants = participants
        subject: Optional[Participant] = None
        if subject_id is not None:
            subject = next((p for p in participants if p.id == subject_id), None)
            if subject is None:
                raise MissingPlayer(
                    f"Player participant was not initialized for {division.value}",
                    field="subject_id",
                    value=subject_id,
                )

        log = _SubjectLog()
        if subject is not None:
            competitor = subject.competitor
            if self.injury_model.participation(competitor).must_sit_out:
                subject.active = False
                for day in days:
                    log.add(BoutLogEntry(day=day, outcome=BoutOutcome.ABSENT))
            elif len([p for p in participants if not p.is_subject]) == 0:
                error = EmptyField(f"No opponents in {division.value}", field="division", value=division.value)
                logger.warning(error.message)
                result.issues.append(ValidationError.from_exception(error, suggestion="Check roster intake"))
                subject.active = False
                for day in days:
                    log.add(BoutLogEntry(day=day, outcome=BoutOutcome.ABSENT))

        faced: FacedPairs = set()
        for bout_index, day in enumerate(days):
            pool = [p for p in participants if p.active]
            if len(pool) < 2:
                break
            matchups = self.matchmaker.pair(pool, faced, rng, day, TOURNAMENT_DAYS)
            for a, b in matchups.pairs:
                faced.add(pair_key(a, b))
                if subject is not None and subject.active and (a is subject or b is subject):
                    opponent = b if a is subject else a
                    self._subject_bout(
                        subject, opponent, bout_index, bouts, day, division,
                        year, month, rng, log, days[bout_index + 1:],
                    )
                    continue
                bout = self.resolver.resolve(a, b, self._context(a, bout_index, bouts, day), rng)
                if bout.is_win:
                    self._settle(a, b, bout.technique, division)
                else:
                    self._settle(b, a, bout.technique, division)
            if subject is not None and day not in log.entries:
                # bye or not scheduled
                log.add(BoutLogEntry(day=day, outcome=BoutOutcome.ABSENT))
                subject.previous_outcome = BoutOutcome.ABSENT.value

        if subject is not None:
            if log.accounted < bouts:
                missing = [d for d in days if d not in log.entries]
                error = IncompleteSchedule(
                    f"{subject.shikona}: {len(missing)} unscheduled days padded as absent",
                    field="bout_log",
                    value=missing,
                )
                logger.warning(error.message)
                result.issues.append(ValidationError.from_exception(error, severity=ValidationSeverity.LOW))
                for day in missing:
                    log.add(BoutLogEntry(day=day, outcome=BoutOutcome.ABSENT))
            result.bout_log = sorted(log.entries.values(), key=lambda e: e.day)

        self._finish(result, participants, subject, log, year, month, rng)
        return result

    def _finish(
        self,
        result: DivisionTournament,
        participants: List[Participant],
        subject: Optional[Participant],
        log: _SubjectLog,
        year: int,
        month: int,
        rng: RandomSource,
    ) -> None:
        division = result.division
        bouts = scheduled_bout_count(division)
        hosts = [p for p in participants if not p.is_guest]

        prizes: Dict[str, Set[SpecialPrize]] = {}
        if division != Division.MAEZUMO:
            result.yusho = resolve_yusho(
                [YushoEntry(p.id, p.wins, p.losses, p.slot, p.power) for p in hosts if p.wins + p.losses > 0],
                rng,
            )
            if division == Division.MAKUUCHI:
                prizes = self.prize_evaluator.evaluate(hosts, result.yusho.winner_id, rng)

        for p in hosts:
            if p is subject:
                wins, losses, absences = log.wins, log.losses, log.absences
            else:
                wins, losses = p.wins, p.losses
                absences = bouts - wins - losses
            result.records[p.id] = TournamentRecord(
                year=year,
                month=month,
                rank=p.rank,
                wins=wins,
                losses=losses,
                absences=absences,
                championship=p.id == result.yusho.winner_id,
                runner_up=p.id in result.yusho.runner_up_ids,
                special_prizes=frozenset(prizes.get(p.id, set())),
                gold_stars=p.gold_stars,
                technique_tally=dict(p.techniques),
            )
        if result.yusho.winner_id:
            logger.debug(
                f"{division.value} {year}-{month:02d}: yusho {result.yusho.winner_id} "
                f"({result.yusho.top_wins} wins, playoff {len(result.yusho.playoff_ids)})"
            )
