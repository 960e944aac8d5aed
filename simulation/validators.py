"""
Record validation

Checks TournamentRecords (or their raw dict form) against the bout-count
invariant, legal rank shapes and award consistency.
"""

from typing import Any, Dict, List, Optional, Sequence, Union
from pydantic import ValidationError as PydanticValidationError
from loguru import logger

from banzuke.coordinates import is_legal_rank
from banzuke.ranks import MAX_NUMBER, NAMED_TITLES, Division, MakuuchiLayout, Rank, Title
from banzuke.records import TournamentRecord

from .errors import InvalidRankShape
from .schemas import ValidationError, ValidationResult, ValidationSeverity


class RecordValidator:
    """
    TournamentRecord validation

    - schema and bout-count invariant (CRITICAL)
    - legal rank shape (HIGH)
    - championship / gold star / technique consistency (MEDIUM, LOW)
    """

    def __init__(self, layout: Optional[MakuuchiLayout] = None):
        self.layout = layout

    def _rank_shape_ok(self, rank: Rank) -> bool:
        if self.layout is not None:
            return is_legal_rank(rank, self.layout)
        if rank.division == Division.MAEZUMO:
            return rank.number is None
        if rank.number is None or rank.number < 1:
            return False
        if rank.division != Division.MAKUUCHI:
            return rank.title is None and rank.number <= MAX_NUMBER[rank.division]
        if rank.title in NAMED_TITLES:
            return True
        return rank.title == Title.MAEGASHIRA and rank.number <= MAX_NUMBER[Division.MAKUUCHI]

    def validate(self, record: Union[TournamentRecord, Dict[str, Any]]) -> ValidationResult:
        errors: List[ValidationError] = []
        warnings: List[ValidationError] = []

        data = record.model_dump() if isinstance(record, TournamentRecord) else record
        try:
            parsed = TournamentRecord.model_validate(data)
        except PydanticValidationError as e:
            for error in e.errors():
                errors.append(ValidationError(
                    error_type="RECORD_INVARIANT_FAILED",
                    severity=ValidationSeverity.CRITICAL,
                    message=error["msg"],
                    field=".".join(str(loc) for loc in error["loc"]) or None,
                    value=error.get("input") if not isinstance(error.get("input"), dict) else None,
                    suggestion="wins + losses + absences must equal the tier's scheduled bouts"
                ))
            return ValidationResult(is_valid=False, errors=errors, pass_rate=0.0)

        if not self._rank_shape_ok(parsed.rank):
            errors.append(ValidationError.from_exception(
                InvalidRankShape(f"Illegal rank {parsed.rank.label()}", field="rank", value=parsed.rank.label()),
                severity=ValidationSeverity.HIGH,
                suggestion="Clamp to the nearest legal rank"
            ))

        if parsed.championship and parsed.wins < parsed.losses + parsed.absences:
            warnings.append(ValidationError(
                error_type="LOSING_CHAMPION",
                severity=ValidationSeverity.MEDIUM,
                message=f"Champion with a losing record {parsed.wins}-{parsed.losses}-{parsed.absences}",
                field="championship",
            ))

        if parsed.gold_stars > 0 and parsed.rank.title != Title.MAEGASHIRA:
            errors.append(ValidationError(
                error_type="GOLD_STAR_RANK",
                severity=ValidationSeverity.MEDIUM,
                message=f"Gold stars at {parsed.rank.label()}",
                field="gold_stars",
                value=parsed.gold_stars,
            ))

        if sum(parsed.technique_tally.values()) > parsed.wins:
            warnings.append(ValidationError(
                error_type="TECHNIQUE_TALLY",
                severity=ValidationSeverity.LOW,
                message="More winning techniques than wins",
                field="technique_tally",
                value=dict(parsed.technique_tally),
            ))

        return ValidationResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            pass_rate=1.0 if not errors else 0.0,
        )

    def validate_batch(self, records: Sequence[Union[TournamentRecord, Dict[str, Any]]]) -> ValidationResult:
        all_errors: List[ValidationError] = []
        all_warnings: List[ValidationError] = []
        passed = 0

        for record in records:
            result = self.validate(record)
            if result.is_valid:
                passed += 1
            all_errors.extend(result.errors)
            all_warnings.extend(result.warnings)

        total = len(records)
        pass_rate = passed / total if total > 0 else 1.0
        if all_errors:
            logger.warning(f"Record validation: {total - passed}/{total} failed")
        return ValidationResult(
            is_valid=len(all_errors) == 0,
            errors=all_errors,
            warnings=all_warnings,
            pass_rate=pass_rate,
        )
