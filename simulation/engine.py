"""
Career engine

One step() runs one full cycle of the world around the tracked competitor:

1. recruit intake
2. every division's tournament (the tracked competitor's with a bout log)
3. boundary exchanges at all five tier boundaries
4. the sekitori committee for Makuuchi and Juryo
5. the lower-tier rule engine for the tracked competitor below Juryo
6. roster rebuild, Maezumo graduation, retirement and headcount balancing
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from loguru import logger

from banzuke.boundary import (
    BOUNDARIES,
    BOUNDARY_ORDER,
    BoundaryExchange,
    BoundaryId,
    BoundarySnapshot,
    ExchangeReason,
    compute_neighbor_half_step_nudge,
    resolve_boundary_exchange,
)
from banzuke.calculator import RankChangeCalculator, classify_change
from banzuke.committee import BanzukeCommittee, CommitteeDecision, SekitoriEntry
from banzuke.coordinates import rank_to_slot
from banzuke.lower_division import LowerDivisionQuota
from banzuke.ranks import (
    DIVISION_ORDER,
    MAEZUMO_RANK,
    Division,
    Rank,
    Title,
)
from banzuke.records import BoutLogEntry, TournamentRecord

from .basho import DivisionTournament, TournamentOrchestrator
from .collaborators import RandomSource, seeded_random
from .competitors import SUBJECT_ID, Competitor
from .config import SimulationConfig, simulation_config
from .errors import InvalidRankShape, MissingPlayer
from .events import CareerEvent, CareerEventType, EventPublisher
from .injury import SimpleInjuryModel
from .lifecycle import PoolLifecycle
from .schemas import CareerSnapshot, CareerStatus, ValidationError, ValidationSeverity
from .validators import RecordValidator
from .world import SimulationWorld, create_world, make_subject

GUEST_THRESHOLD_NUMBER = 15


@dataclass
class CareerStep:
    """Result of one step: an intermediate cycle or the completed career"""
    kind: str
    status: CareerStatus = CareerStatus.ACTIVE
    record: Optional[TournamentRecord] = None
    bout_log: List[BoutLogEntry] = field(default_factory=list)
    next_rank: Optional[Rank] = None
    issues: List[ValidationError] = field(default_factory=list)
    events: List[CareerEvent] = field(default_factory=list)
    exchanges: Dict[BoundaryId, BoundaryExchange] = field(default_factory=dict)

    @property
    def is_completed(self) -> bool:
        return self.kind == "COMPLETED"


class CareerEngine:
    """
    Cycle-by-cycle career simulation.

    Usage:
        engine = CareerEngine(config, rng)
        while True:
            step = engine.step()
            if step.is_completed:
                break
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[RandomSource] = None,
        orchestrator: Optional[TournamentOrchestrator] = None,
        lifecycle: Optional[PoolLifecycle] = None,
        publisher: Optional[EventPublisher] = None,
        world: Optional[SimulationWorld] = None,
    ):
        self.config = config or simulation_config
        self.rng = rng or seeded_random(self.config.seed)
        self.orchestrator = orchestrator or TournamentOrchestrator(
            injury_model=SimpleInjuryModel(enabled=self.config.injuries_enabled)
        )
        self.lifecycle = lifecycle or PoolLifecycle()
        self.publisher = publisher or EventPublisher()
        self.validator = RecordValidator()

        if world is None:
            subject = make_subject(
                self.config.shikona,
                self.config.initial_age,
                self.config.initial_power,
                self.config.growth_rate,
            )
            world = create_world(self.rng, self.config.start_year, self.config.start_month, subject)
        self.world = world
        self.committee = BanzukeCommittee(self.world.layout)
        self.history: List[TournamentRecord] = []
        self.status = CareerStatus.ACTIVE
        self.retirement_reason: Optional[str] = None
        self.unmatched_cycles = 0

    # ==================== helpers ====================

    def _subject(self) -> Competitor:
        subject = self.world.subject()
        if subject is None:
            raise MissingPlayer("Player participant was not initialized", field="subject_id", value=SUBJECT_ID)
        return subject

    def _event(self, event_type: CareerEventType, year: int, month: int, **data) -> CareerEvent:
        event = CareerEvent(event_type=event_type, subject_id=SUBJECT_ID, year=year, month=month, data=data)
        self.publisher.publish(event)
        return event

    def _run_tournaments(self, subject: Competitor, year: int, month: int) -> Dict[Division, DivisionTournament]:
        results: Dict[Division, DivisionTournament] = {}
        subject_division = subject.rank.division
        for division in DIVISION_ORDER:
            entrants = self.world.rosters[division]
            guests: List[Competitor] = []
            if (
                division == Division.MAKUSHITA
                and subject_division == Division.MAKUSHITA
                and (subject.rank.number or 99) <= GUEST_THRESHOLD_NUMBER
            ):
                guests = self.world.juryo_guests(self.config.juryo_guest_count)
            results[division] = self.orchestrator.run_division(
                division,
                entrants,
                year,
                month,
                self.rng,
                guests=guests,
                layout=self.world.layout if division == Division.MAKUUCHI else None,
                subject_id=SUBJECT_ID if division == subject_division else None,
            )
        return results

    def _snapshots(self, division: Division, result: DivisionTournament) -> List[BoundarySnapshot]:
        snapshots = []
        for competitor in self.world.rosters[division]:
            record = result.records.get(competitor.id)
            if record is None:
                continue
            rank = record.rank
            snapshots.append(BoundarySnapshot(
                id=competitor.id,
                number=rank.number or 1,
                slot=rank_to_slot(rank, self.world.layout if division == Division.MAKUUCHI else None),
                wins=record.wins,
                losses=record.losses + record.absences,
                absences=record.absences,
                eligible=division != Division.MAKUUCHI or rank.title == Title.MAEGASHIRA,
            ))
        return snapshots

    def _exchanges(self, results: Dict[Division, DivisionTournament]) -> Dict[BoundaryId, BoundaryExchange]:
        exchanges = {}
        for boundary_id in BOUNDARY_ORDER:
            rule = BOUNDARIES[boundary_id]
            exchanges[boundary_id] = resolve_boundary_exchange(
                rule,
                self._snapshots(rule.upper, results[rule.upper]),
                self._snapshots(rule.lower, results[rule.lower]),
                subject_id=SUBJECT_ID,
            )
        return exchanges

    def _sekitori_entries(self, division: Division, records: Dict[str, TournamentRecord], ids=None) -> List[SekitoriEntry]:
        entries = []
        for competitor in self.world.rosters[division]:
            if competitor.id not in records or (ids is not None and competitor.id not in ids):
                continue
            entries.append(SekitoriEntry(
                id=competitor.id,
                record=records[competitor.id],
                past_records=competitor.recent_records[1:],
                on_probation=competitor.on_probation,
                reinstatement_eligible=competitor.reinstatement_eligible,
            ))
        return entries

    def _quota(self, subject: Competitor, exchanges: Dict[BoundaryId, BoundaryExchange], results) -> LowerDivisionQuota:
        def exchange(boundary_id):
            return exchanges.get(boundary_id, BoundaryExchange())

        division = subject.rank.division
        nudge = 0
        if division in results:
            nudge = compute_neighbor_half_step_nudge(self._snapshots(division, results[division]), SUBJECT_ID)
        return LowerDivisionQuota(
            can_promote_to_juryo=exchange(BoundaryId.JURYO_MAKUSHITA).subject_promoted,
            can_promote_to_makushita=exchange(BoundaryId.MAKUSHITA_SANDANME).subject_promoted,
            can_promote_to_sandanme=exchange(BoundaryId.SANDANME_JONIDAN).subject_promoted,
            can_promote_to_jonidan=exchange(BoundaryId.JONIDAN_JONOKUCHI).subject_promoted,
            can_demote_to_sandanme=exchange(BoundaryId.MAKUSHITA_SANDANME).subject_demoted,
            can_demote_to_jonidan=exchange(BoundaryId.SANDANME_JONIDAN).subject_demoted,
            can_demote_to_jonokuchi=exchange(BoundaryId.JONIDAN_JONOKUCHI).subject_demoted,
            neighbor_nudge=nudge,
        )

    # ==================== cycle ====================

    def step(self) -> CareerStep:
        if self.status == CareerStatus.RETIRED:
            return CareerStep(kind="COMPLETED", status=self.status)

        world = self.world
        year, month = world.year, world.month
        subject = self._subject()
        events: List[CareerEvent] = []
        issues: List[ValidationError] = []

        if self.config.intake_enabled:
            self.lifecycle.intake(world, self.rng)

        results = self._run_tournaments(subject, year, month)
        subject_result = results[subject.rank.division]
        record = subject_result.records.get(SUBJECT_ID)
        if record is None:
            raise MissingPlayer("Player participant was not initialized", field="records", value=year * 100 + month)
        for result in results.values():
            issues.extend(result.issues)

        records: Dict[Division, Dict[str, TournamentRecord]] = {d: r.records for d, r in results.items()}
        for division in DIVISION_ORDER:
            for competitor in world.rosters[division]:
                if competitor.id in records[division]:
                    competitor.push_record(records[division][competitor.id])

        validation = self.validator.validate(record)
        issues.extend(validation.errors)

        if record.championship:
            events.append(self._event(CareerEventType.YUSHO, year, month, rank=record.rank.label(), wins=record.wins))
        elif record.runner_up:
            events.append(self._event(CareerEventType.JUN_YUSHO, year, month, rank=record.rank.label(), wins=record.wins))

        # boundaries
        exchanges = self._exchanges(results)
        world.last_exchanges = exchanges
        unmatched = [b for b, e in exchanges.items() if e.reason == ExchangeReason.UNMATCHED_MANDATORY]
        if unmatched:
            self.unmatched_cycles += 1
            events.append(self._event(
                CareerEventType.UNMATCHED_MANDATORY, year, month,
                boundaries=[b.value for b in unmatched],
                dropped=sum(len(exchanges[b].dropped_mandatory_ids) for b in unmatched),
            ))

        # sekitori committee
        promotee_ids = set(exchanges[BoundaryId.JURYO_MAKUSHITA].promoted_ids)
        self.committee.layout = world.layout
        decision: CommitteeDecision = self.committee.decide(
            self._sekitori_entries(Division.MAKUUCHI, records[Division.MAKUUCHI]),
            self._sekitori_entries(Division.JURYO, records[Division.JURYO]),
            self._sekitori_entries(Division.MAKUSHITA, records[Division.MAKUSHITA], promotee_ids),
            exchanges[BoundaryId.MAKUUCHI_JURYO],
            exchanges[BoundaryId.JURYO_MAKUSHITA],
        )

        # the tracked competitor's next rank
        calculator = RankChangeCalculator(self.rng, decision.layout)
        was_probation = subject.on_probation
        was_reinstatement = subject.reinstatement_eligible
        if SUBJECT_ID in decision.ranks:
            change = calculator.next_rank(record, committee_rank=decision.ranks[SUBJECT_ID])
            subject.on_probation = decision.probation.get(SUBJECT_ID, False)
            subject.reinstatement_eligible = decision.reinstatement.get(SUBJECT_ID, False)
        else:
            change = calculator.next_rank(record, quota=self._quota(subject, exchanges, results))
            subject.on_probation = False
            subject.reinstatement_eligible = False
        next_rank = change.next_rank
        if change.clamped_from is not None:
            issues.append(ValidationError.from_exception(
                InvalidRankShape(
                    f"{change.clamped_from.label()} does not fit the banzuke, clamped to {next_rank.label()}",
                    field="next_rank",
                    value=change.clamped_from.label(),
                ),
                severity=ValidationSeverity.LOW,
                suggestion="Committee ranks should stay inside the current layout",
            ))

        movement = classify_change(record.rank, next_rank)
        if movement == "PROMOTION":
            events.append(self._event(CareerEventType.PROMOTION, year, month, frm=record.rank.label(), to=next_rank.label()))
            logger.info(f"{subject.shikona}: promoted to {next_rank.division.value} ({next_rank.label()})")
        elif movement == "DEMOTION":
            events.append(self._event(CareerEventType.DEMOTION, year, month, frm=record.rank.label(), to=next_rank.label()))
        if subject.on_probation and not was_probation:
            events.append(self._event(CareerEventType.KADOBAN, year, month, rank=next_rank.label()))
        if was_reinstatement and record.rank.title == Title.SEKIWAKE and next_rank.title == Title.OZEKI:
            events.append(self._event(CareerEventType.OZEKI_RETURN, year, month, wins=record.wins))

        # rosters
        for division in DIVISION_ORDER:
            for competitor in world.rosters[division]:
                if not competitor.is_subject and competitor.id in records[division]:
                    self.lifecycle.evolve_npc(competitor, records[division][competitor.id], self.rng)
        demotees = world.apply_committee(decision)
        world.rebuild_lower_tiers(records, exchanges, demotees, self.rng)
        subject.rank = next_rank
        world.place(subject)
        world.reindex(next_rank.division)

        self.lifecycle.promote_maezumo(world, records[Division.MAEZUMO], self.rng)
        flat_records = {i: r for tier in records.values() for i, r in tier.items()}
        self.lifecycle.retire(world, flat_records, self.rng)
        world.balance_headcounts()

        self.orchestrator.injury_model.recover(subject)
        self.lifecycle.evolve_subject(subject, record, self.rng)
        world.advance_calendar()
        self.history.append(record)

        reason = self._retirement_reason(subject)
        if reason:
            self.status = CareerStatus.RETIRED
            self.retirement_reason = reason
            subject.active = False
            events.append(self._event(CareerEventType.RETIREMENT, year, month, reason=reason, basho=len(self.history)))
            logger.info(f"{subject.shikona} retired after {len(self.history)} basho ({reason})")

        logger.debug(
            f"{year}-{month:02d} {record.rank.label()} {record.wins}-{record.losses}-{record.absences}"
            f" -> {next_rank.label()}"
        )
        return CareerStep(
            kind="BASHO",
            status=self.status,
            record=record,
            bout_log=subject_result.bout_log,
            next_rank=next_rank,
            issues=issues,
            events=events,
            exchanges=exchanges,
        )

    def _retirement_reason(self, subject: Competitor) -> Optional[str]:
        if subject.age >= self.config.retirement_age:
            return "age"
        if len(self.history) >= self.config.max_basho:
            return "max_basho"
        if subject.consecutive_full_absences >= self.config.max_consecutive_absences:
            return "absences"
        return None

    # ==================== snapshot ====================

    def snapshot(self) -> CareerSnapshot:
        subject = self.world.subject()
        current_rank = subject.rank if subject is not None else MAEZUMO_RANK
        return CareerSnapshot(
            subject_id=SUBJECT_ID,
            shikona=self.config.shikona,
            seed=self.config.seed,
            status=self.status,
            current_rank=current_rank,
            age=subject.age if subject is not None else self.config.initial_age,
            on_probation=subject.on_probation if subject is not None else False,
            reinstatement_eligible=subject.reinstatement_eligible if subject is not None else False,
            history=list(self.history),
            retirement_reason=self.retirement_reason,
        )
