# =============================================================================
# core/validator.py - Input record validation
# =============================================================================

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Sequence

from core.exceptions import SchemaError
from core.models import Action, InputRecord, INPUT_FIELDS


REQUIRED_FIELDS: Dict[Action, FrozenSet[str]] = {
    Action.CREATE: frozenset(INPUT_FIELDS),
    Action.MODIFY: frozenset(INPUT_FIELDS),
    Action.DELETE: frozenset({'username'}),
    Action.REPORT: frozenset({'username'}),
}


@dataclass
class ValidationResult:
    """Outcome of a successful schema check plus advisory row warnings"""
    record_count: int
    warnings: List[str] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


class RecordValidator:
    """Checks a batch of input records against the action's required columns"""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def required_fields(action: Action) -> FrozenSet[str]:
        return REQUIRED_FIELDS[action]

    def validate(self, records: Sequence[InputRecord], action: Action) -> ValidationResult:
        """
        Validate records for the given action.

        The schema is taken from the first record only. Row-level problems
        are returned as warnings and never raise.

        Raises:
            SchemaError: If there are no records or required columns are missing
        """
        if not records:
            raise SchemaError("Input contains no records")

        observed = set(records[0].columns)
        missing = sorted(self.required_fields(action) - observed)
        if missing:
            raise SchemaError(
                f"Missing required columns for {action.value}: {', '.join(missing)}",
                missing_fields=missing,
            )

        result = ValidationResult(record_count=len(records))
        for row_number, record in enumerate(records, start=1):
            if not record.username.strip():
                result.warnings.append(f"Row {row_number}: username is blank")
            elif action == Action.CREATE and not record.email.strip():
                result.warnings.append(f"Row {row_number} ({record.username}): email is blank")

        for warning in result.warnings:
            self.logger.warning(warning)
        self.logger.info(f"Validated {len(records)} records for {action.value} "
                         f"({result.warning_count} warnings)")
        return result
