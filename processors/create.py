# =============================================================================
# processors/create.py - Create processor
# =============================================================================

from dataclasses import replace
from typing import List, Optional

from core.base_processor import BaseActionProcessor
from core.models import Action, InputRecord, OutcomeStatus, ProcessingOutcome
from utils.home_directory import HomeDirectoryError
from utils.notifier import NotificationError


class CreateUserProcessor(BaseActionProcessor):
    """Creates accounts: OU, user, department groups, home folder, welcome mail"""

    action = Action.CREATE

    def process_record(self, record: InputRecord) -> ProcessingOutcome:
        username = record.username.strip()
        department = record.department.strip()
        options = self.context.account_options

        if department:
            ou = self.resolver.ensure_organizational_unit(
                department, options.users_root, f"Users of the {department} department"
            )
            if ou.failed:
                return self.error_outcome(record, ou.reason)

        password = self.context.password_strategy.next_password()
        user = self.resolver.ensure_user_account(record, password, options)

        if user.already_exists:
            return self.make_outcome(record, OutcomeStatus.WARNING, notes=(user.reason,))
        if user.failed:
            return self.error_outcome(record, user.reason)

        notes = self.assign_groups(username, department)
        home_directory = self.provision_home_directory(username, notes)

        outcome = self.make_outcome(
            record, OutcomeStatus.SUCCESS,
            generated_password=password if self.context.password_strategy.is_generated else None,
            home_directory=home_directory,
            notes=tuple(notes),
        )
        self.send_notification(outcome, notes)
        return replace(outcome, notes=tuple(notes))

    def assign_groups(self, username: str, department: str) -> List[str]:
        """Add the user to every policy group, continuing past failures"""
        notes = []
        for group_name in self.context.group_policy.groups_for(department):
            result = self.resolver.ensure_group_membership(group_name, username)
            if result.failed:
                message = f"group {group_name}: {result.reason}"
                self.context.aggregator.note_warning(f"{username}: {message}")
                notes.append(message)
        return notes

    def provision_home_directory(self, username: str, notes: List[str]) -> Optional[str]:
        provisioner = self.context.home_provisioner
        if provisioner is None:
            return None

        try:
            if self.context.dry_run:
                path = str(provisioner.path_for(username))
                self.logger.info(f"[DRY-RUN] Would create home directory {path} for {username}")
                return path
            return provisioner.provision(self.gateway, username)
        except HomeDirectoryError as e:
            self.note_warning(f"{username}: home directory: {e}")
            notes.append(f"home directory: {e}")
            return None

    def send_notification(self, outcome: ProcessingOutcome, notes: List[str]) -> None:
        notifier = self.context.notifier
        if notifier is None:
            return

        if self.context.dry_run:
            self.logger.info(f"[DRY-RUN] Would send welcome email to {outcome.email or '<none>'}")
            return

        try:
            notifier.send_welcome(outcome)
        except NotificationError as e:
            self.note_warning(f"{outcome.username}: notification: {e}")
            notes.append(f"notification: {e}")
