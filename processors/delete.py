# =============================================================================
# processors/delete.py - Delete processor
# =============================================================================

from core.base_processor import BaseActionProcessor
from core.exceptions import NotFoundError
from core.models import Action, InputRecord, OutcomeStatus, ProcessingOutcome


class DeleteUserProcessor(BaseActionProcessor):
    """Disables and then deletes accounts.

    A failed delete after a successful disable leaves the account disabled;
    it is not re-enabled.
    """

    action = Action.DELETE

    def process_record(self, record: InputRecord) -> ProcessingOutcome:
        username = record.username.strip()
        current = self.gateway.get_user(username)
        if not current:
            raise NotFoundError(f"User {username} not found in directory")
        display_name = current.get('displayName') or record.display_name

        disabled = self.gateway.disable_user(username)
        if not disabled.success:
            return self.error_outcome(record, disabled.message)

        deleted = self.gateway.delete_user(username)
        if not deleted.success:
            return self.make_outcome(
                record, OutcomeStatus.ERROR, display_name=display_name,
                error_detail=f"{deleted.message} (account left disabled)",
            )

        return self.make_outcome(record, OutcomeStatus.SUCCESS, display_name=display_name)
