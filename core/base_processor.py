# =============================================================================
# core/base_processor.py - Abstract base processor
# =============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
import logging

from core.aggregator import OutcomeAggregator
from core.directory_gateway import DirectoryGateway
from core.exceptions import ProvisioningError
from core.models import (
    Action, DepartmentGroupPolicy, InputRecord, OutcomeStatus, ProcessingOutcome,
)
from core.password import PasswordStrategy
from core.resolver import AccountOptions, IdempotencyResolver
from utils.home_directory import HomeDirectoryProvisioner
from utils.notifier import EmailNotifier


@dataclass
class ProcessingContext:
    """Everything an action processor needs for one run"""
    gateway: DirectoryGateway
    aggregator: OutcomeAggregator
    account_options: AccountOptions
    group_policy: DepartmentGroupPolicy = field(default_factory=DepartmentGroupPolicy)
    password_strategy: PasswordStrategy = field(default_factory=PasswordStrategy.generated)
    home_provisioner: Optional[HomeDirectoryProvisioner] = None
    notifier: Optional[EmailNotifier] = None
    dry_run: bool = False


class BaseActionProcessor(ABC):
    """Abstract base class for per-action record processors"""

    action: Action

    def __init__(self, context: ProcessingContext):
        self.context = context
        self.gateway = context.gateway
        self.resolver = IdempotencyResolver(context.gateway)
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def process_record(self, record: InputRecord) -> ProcessingOutcome:
        """Run the action for one record and return its outcome"""
        pass

    def process_records(self, records: Sequence[InputRecord]) -> List[ProcessingOutcome]:
        """Main processing workflow: one outcome per record, in input order"""
        self.logger.info(f"Starting {self.action.value} of {len(records)} records"
                         + (" (dry run)" if self.context.dry_run else ""))

        outcomes = []
        for index, record in enumerate(records, start=1):
            self.logger.debug(f"Processing record {index}/{len(records)}: {record.username or '<blank>'}")
            outcome = self.process_single_record(record)
            self.record_outcome(outcome)
            outcomes.append(outcome)

        return outcomes

    def process_single_record(self, record: InputRecord) -> ProcessingOutcome:
        """Process one record, turning any failure into an ERROR outcome"""
        if not record.username.strip():
            return self.error_outcome(record, "username is blank")

        try:
            return self.process_record(record)
        except ProvisioningError as e:
            return self.error_outcome(record, str(e))
        except Exception as e:
            self.logger.exception(f"Unexpected error processing {record.username}")
            return self.error_outcome(record, f"{e.__class__.__name__}: {e}")

    def record_outcome(self, outcome: ProcessingOutcome) -> None:
        self.context.aggregator.record(outcome)

        if outcome.status == OutcomeStatus.ERROR:
            self.logger.error(f"{outcome.action.value} {outcome.username}: {outcome.error_detail}")
        elif outcome.status == OutcomeStatus.WARNING:
            self.logger.warning(f"{outcome.action.value} {outcome.username}: {'; '.join(outcome.notes)}")
        else:
            self.logger.info(f"{outcome.action.value} {outcome.username}: success")

        counters = self.context.aggregator.summary()
        self.logger.debug(f"Progress: {counters.success_count} ok, {counters.failure_count} failed, "
                          f"{counters.warning_count} warnings")

    def note_warning(self, message: str) -> None:
        """Log and count a sub-step warning that has no outcome row"""
        self.logger.warning(message)
        self.context.aggregator.note_warning(message)

    def make_outcome(self, record: InputRecord, status: OutcomeStatus, **kwargs) -> ProcessingOutcome:
        return ProcessingOutcome(
            username=record.username.strip(),
            action=self.action,
            status=status,
            display_name=kwargs.pop('display_name', record.display_name),
            email=record.email.strip(),
            department=record.department.strip(),
            **kwargs
        )

    def error_outcome(self, record: InputRecord, detail: str) -> ProcessingOutcome:
        return self.make_outcome(record, OutcomeStatus.ERROR, error_detail=detail or "unknown error")
