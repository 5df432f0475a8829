# =============================================================================
# core/dry_run.py - Read-through gateway that suppresses mutations
# =============================================================================

import logging
from typing import Any, Dict, List, Set

from core.directory_gateway import DirectoryGateway
from core.models import OperationResult, OrganizationalUnit, UserAccount


class DryRunGateway(DirectoryGateway):
    """Delegates reads to the wrapped gateway and logs every mutation
    as "would ..." instead of performing it.

    Users and OUs it would have created or deleted are remembered for the
    rest of the run, so existence checks answer as they would live.
    """

    def __init__(self, delegate: DirectoryGateway):
        self.delegate = delegate
        self.logger = logging.getLogger(self.__class__.__name__)
        self._created_users: Set[str] = set()
        self._deleted_users: Set[str] = set()
        self._created_ous: Set[str] = set()

    def _would(self, message: str) -> OperationResult:
        self.logger.info(f"[DRY-RUN] Would {message}")
        return OperationResult.ok(f"dry-run: {message}")

    def organizational_unit_exists(self, path: str) -> bool:
        if path.lower() in self._created_ous:
            return True
        return self.delegate.organizational_unit_exists(path)

    def create_organizational_unit(self, name: str, parent_path: str,
                                   description: str) -> OperationResult:
        self._created_ous.add(OrganizationalUnit(name, parent_path).path.lower())
        return self._would(f"create OU {name} under {parent_path}")

    def user_exists(self, username: str) -> bool:
        key = username.lower()
        if key in self._deleted_users:
            return False
        if key in self._created_users:
            return True
        return self.delegate.user_exists(username)

    def get_user(self, username: str) -> Dict[str, Any]:
        if username.lower() in self._deleted_users:
            return {}
        return self.delegate.get_user(username)

    def create_user(self, account: UserAccount) -> OperationResult:
        key = account.username.lower()
        self._created_users.add(key)
        self._deleted_users.discard(key)
        return self._would(f"create user {account.username} ({account.principal_name}) in {account.ou_path}")

    def update_user(self, username: str, changes: Dict[str, str]) -> OperationResult:
        return self._would(f"update user {username}: {sorted(changes)}")

    def disable_user(self, username: str) -> OperationResult:
        return self._would(f"disable user {username}")

    def delete_user(self, username: str) -> OperationResult:
        key = username.lower()
        self._deleted_users.add(key)
        self._created_users.discard(key)
        return self._would(f"delete user {username}")

    def group_exists(self, name: str) -> bool:
        return self.delegate.group_exists(name)

    def add_group_member(self, group_name: str, username: str) -> OperationResult:
        return self._would(f"add {username} to group {group_name}")

    def list_all_users(self) -> List[Dict[str, Any]]:
        return self.delegate.list_all_users()
