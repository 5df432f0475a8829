# =============================================================================
# core/directory_gateway.py - Directory service gateway contract
# =============================================================================

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from core.models import OperationResult, UserAccount


# Keys of the user attribute dictionaries returned by get_user/list_all_users
USER_ATTRIBUTE_KEYS = (
    'username', 'firstName', 'lastName', 'displayName', 'email',
    'department', 'jobTitle', 'enabled', 'distinguishedName',
)


class DirectoryGateway(ABC):
    """
    Operations the provisioning pipeline needs from a directory service.

    Existence checks return plain booleans. Mutations return an
    OperationResult instead of raising, so callers can branch on the
    ErrorKind. get_user returns an empty dictionary when the user is absent.
    """

    @abstractmethod
    def organizational_unit_exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def create_organizational_unit(self, name: str, parent_path: str,
                                   description: str) -> OperationResult:
        pass

    @abstractmethod
    def user_exists(self, username: str) -> bool:
        pass

    @abstractmethod
    def get_user(self, username: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_user(self, account: UserAccount) -> OperationResult:
        pass

    @abstractmethod
    def update_user(self, username: str, changes: Dict[str, str]) -> OperationResult:
        """Apply changes keyed by input column name (firstName, email, ...)
        or by raw directory attribute name"""
        pass

    @abstractmethod
    def disable_user(self, username: str) -> OperationResult:
        pass

    @abstractmethod
    def delete_user(self, username: str) -> OperationResult:
        pass

    @abstractmethod
    def group_exists(self, name: str) -> bool:
        pass

    @abstractmethod
    def add_group_member(self, group_name: str, username: str) -> OperationResult:
        pass

    @abstractmethod
    def list_all_users(self) -> List[Dict[str, Any]]:
        pass
