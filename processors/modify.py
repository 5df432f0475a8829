# =============================================================================
# processors/modify.py - Modify processor
# =============================================================================

from typing import Any, Dict

from core.base_processor import BaseActionProcessor
from core.exceptions import NotFoundError
from core.models import Action, InputRecord, OutcomeStatus, ProcessingOutcome


class ModifyUserProcessor(BaseActionProcessor):
    """Updates profile fields of existing accounts"""

    action = Action.MODIFY

    def process_record(self, record: InputRecord) -> ProcessingOutcome:
        username = record.username.strip()
        current = self.gateway.get_user(username)
        if not current:
            raise NotFoundError(f"User {username} not found in directory")

        changes = self.compute_changes(record, current)
        if not changes:
            return self.make_outcome(record, OutcomeStatus.SUCCESS, notes=("no changes",))

        self.logger.info(f"Updating {username}: "
                         + ", ".join(f"{key} '{current.get(key, '')}' -> '{value}'" for key, value in changes.items()))
        result = self.gateway.update_user(username, changes)
        if not result.success:
            return self.error_outcome(record, result.message)

        return self.make_outcome(record, OutcomeStatus.SUCCESS,
                                 notes=(f"updated {', '.join(changes)}",))

    @staticmethod
    def compute_changes(record: InputRecord, current: Dict[str, Any]) -> Dict[str, str]:
        """Fields whose trimmed values differ (case-sensitive) from the directory"""
        return {
            key: value for key, value in record.profile().items()
            if value != str(current.get(key) or "").strip()
        }
