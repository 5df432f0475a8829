# =============================================================================
# core/resolver.py - Create-if-absent resolution against the directory
# =============================================================================

import logging
from dataclasses import dataclass

from core.directory_gateway import DirectoryGateway
from core.models import (
    EnsureResult, EnsureStatus, ErrorKind, InputRecord, OrganizationalUnit, OutcomeStatus, UserAccount,
)


GROUP_NOT_FOUND = "group not found"


@dataclass(frozen=True)
class AccountOptions:
    """Directory placement settings for new accounts"""
    domain: str
    users_root: str
    enabled: bool = True
    must_change_password: bool = True


class IdempotencyResolver:
    """Decides create-vs-skip for each directory entity kind.

    Every gateway call is attempted exactly once. Nothing here raises for an
    entity that already exists.
    """

    def __init__(self, gateway: DirectoryGateway):
        self.gateway = gateway
        self.logger = logging.getLogger(self.__class__.__name__)

    def ensure_organizational_unit(self, name: str, parent_path: str,
                                   description: str = "") -> EnsureResult:
        ou = OrganizationalUnit(name=name, parent_path=parent_path, description=description)

        if self.gateway.organizational_unit_exists(ou.path):
            self.logger.debug(f"OU already exists: {ou.path}")
            return EnsureResult(EnsureStatus.ALREADY_EXISTS)

        result = self.gateway.create_organizational_unit(ou.name, ou.parent_path, ou.description)
        if not result.success:
            self.logger.error(f"Failed to create OU {ou.path}: {result.message}")
            return EnsureResult(EnsureStatus.FAILED, result.message, OutcomeStatus.ERROR, result.kind)

        self.logger.info(f"Created OU: {ou.path}")
        return EnsureResult(EnsureStatus.CREATED)

    def build_account(self, record: InputRecord, password: str,
                      options: AccountOptions) -> UserAccount:
        """Resolve the full attribute set for a new user"""
        username = record.username.strip()
        department = record.department.strip()
        ou_path = OrganizationalUnit(department, options.users_root).path if department else options.users_root
        return UserAccount(
            username=username,
            display_name=record.display_name,
            principal_name=f"{username}@{options.domain}",
            ou_path=ou_path,
            attributes={
                'givenName': record.first_name.strip(),
                'sn': record.last_name.strip(),
                'mail': record.email.strip(),
                'department': department,
                'title': record.job_title.strip(),
            },
            enabled=options.enabled,
            must_change_password=options.must_change_password,
            password=password,
        )

    def ensure_user_account(self, record: InputRecord, password: str,
                            options: AccountOptions) -> EnsureResult:
        """Create the user unless the username is already taken.

        ALREADY_EXISTS carries WARNING severity; the caller continues with
        the next record.
        """
        username = record.username.strip()

        if self.gateway.user_exists(username):
            self.logger.warning(f"User {username} already exists, skipping")
            return EnsureResult(EnsureStatus.ALREADY_EXISTS, "user already exists", OutcomeStatus.WARNING)

        account = self.build_account(record, password, options)
        result = self.gateway.create_user(account)
        if not result.success:
            self.logger.error(f"Failed to create user {username}: {result.message}")
            return EnsureResult(EnsureStatus.FAILED, result.message, OutcomeStatus.ERROR, result.kind)

        self.logger.info(f"Created user {username} ({account.principal_name}) in {account.ou_path}")
        return EnsureResult(EnsureStatus.CREATED)

    def ensure_group_membership(self, group_name: str, username: str) -> EnsureResult:
        """Add the user to the group; all failures are warnings"""
        if not self.gateway.group_exists(group_name):
            self.logger.warning(f"Group {group_name} not found, cannot add {username}")
            return EnsureResult(EnsureStatus.FAILED, GROUP_NOT_FOUND, OutcomeStatus.WARNING)

        result = self.gateway.add_group_member(group_name, username)
        if not result.success and result.kind == ErrorKind.CONFLICT:
            self.logger.debug(f"{username} is already a member of {group_name}")
            return EnsureResult(EnsureStatus.ALREADY_EXISTS)
        if not result.success:
            self.logger.warning(f"Failed to add {username} to {group_name}: {result.message}")
            return EnsureResult(EnsureStatus.FAILED, result.message, OutcomeStatus.WARNING, result.kind)

        self.logger.info(f"Added {username} to group {group_name}")
        return EnsureResult(EnsureStatus.CREATED)
