# =============================================================================
# core/pipeline.py - Provisioning pipeline
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Type

from core.aggregator import OutcomeAggregator
from core.base_processor import BaseActionProcessor, ProcessingContext
from core.directory_gateway import DirectoryGateway
from core.dry_run import DryRunGateway
from core.models import Action, DepartmentGroupPolicy, InputRecord, ProcessingOutcome, RunCounters
from core.password import PasswordStrategy
from core.resolver import AccountOptions
from core.validator import RecordValidator, ValidationResult
from processors.create import CreateUserProcessor
from processors.delete import DeleteUserProcessor
from processors.modify import ModifyUserProcessor
from processors.report import UserReportProcessor
from utils.home_directory import HomeDirectoryProvisioner
from utils.notifier import EmailNotifier


PROCESSOR_MAP: Dict[Action, Type[BaseActionProcessor]] = {
    Action.CREATE: CreateUserProcessor,
    Action.MODIFY: ModifyUserProcessor,
    Action.DELETE: DeleteUserProcessor,
    Action.REPORT: UserReportProcessor,
}


@dataclass(frozen=True)
class RunResult:
    """Ordered outcomes and final counters of one run"""
    action: Action
    outcomes: Tuple[ProcessingOutcome, ...]
    counters: RunCounters
    validation: Optional[ValidationResult] = None
    dry_run: bool = False

    @property
    def succeeded(self) -> bool:
        return self.counters.failure_count == 0


class ProvisioningPipeline:
    """Validates a batch and runs the selected action over it, one record at a time"""

    def __init__(self, gateway: DirectoryGateway, account_options: AccountOptions,
                 group_policy: Optional[DepartmentGroupPolicy] = None,
                 password_strategy: Optional[PasswordStrategy] = None,
                 home_provisioner: Optional[HomeDirectoryProvisioner] = None,
                 notifier: Optional[EmailNotifier] = None,
                 dry_run: bool = False):
        self.gateway = DryRunGateway(gateway) if dry_run else gateway
        self.account_options = account_options
        self.group_policy = group_policy or DepartmentGroupPolicy()
        self.password_strategy = password_strategy or PasswordStrategy.generated()
        self.home_provisioner = home_provisioner
        self.notifier = notifier
        self.dry_run = dry_run
        self.validator = RecordValidator()
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate(self, records: Sequence[InputRecord], action: Action) -> Optional[ValidationResult]:
        """Schema-check the batch; a report without input needs no validation

        Raises:
            SchemaError: If the batch is empty or missing required columns
        """
        if action == Action.REPORT and not records:
            return None
        return self.validator.validate(records, action)

    def run(self, action: Action, records: Sequence[InputRecord] = (),
            validation: Optional[ValidationResult] = None) -> RunResult:
        """Process the batch; pass a prior validation result to skip re-validating"""
        if validation is None:
            validation = self.validate(records, action)

        aggregator = OutcomeAggregator()
        if validation is not None:
            for warning in validation.warnings:
                aggregator.note_warning(warning)

        context = ProcessingContext(
            gateway=self.gateway,
            aggregator=aggregator,
            account_options=self.account_options,
            group_policy=self.group_policy,
            password_strategy=self.password_strategy,
            home_provisioner=self.home_provisioner,
            notifier=self.notifier,
            dry_run=self.dry_run,
        )
        processor = PROCESSOR_MAP[action](context)
        processor.process_records(records)

        aggregator.log_summary()
        return RunResult(
            action=action,
            outcomes=aggregator.outcomes,
            counters=aggregator.summary(),
            validation=validation,
            dry_run=self.dry_run,
        )
