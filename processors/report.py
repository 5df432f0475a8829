# =============================================================================
# processors/report.py - Directory user report
# =============================================================================

from typing import Any, Dict, List, Sequence

from core.base_processor import BaseActionProcessor
from core.models import Action, InputRecord, OutcomeStatus, ProcessingOutcome


class UserReportProcessor(BaseActionProcessor):
    """Lists every directory user as a read-only outcome; input rows are ignored"""

    action = Action.REPORT

    def process_records(self, records: Sequence[InputRecord]) -> List[ProcessingOutcome]:
        if records:
            self.logger.info(f"Report ignores the {len(records)} input records")

        users = self.gateway.list_all_users()
        self.logger.info(f"Reporting on {len(users)} directory users")

        outcomes = []
        for user in users:
            outcome = self.user_to_outcome(user)
            self.record_outcome(outcome)
            outcomes.append(outcome)
        return outcomes

    def process_record(self, record: InputRecord) -> ProcessingOutcome:
        """Not used: a report lists the whole directory and ignores input rows"""
        raise NotImplementedError("Report works on the whole directory, not single records")

    def user_to_outcome(self, user: Dict[str, Any]) -> ProcessingOutcome:
        notes = () if user.get('enabled', True) else ("disabled",)
        return ProcessingOutcome(
            username=user.get('username', ''),
            action=self.action,
            status=OutcomeStatus.SUCCESS,
            display_name=user.get('displayName', ''),
            email=user.get('email', ''),
            department=user.get('department', ''),
            notes=notes,
        )
