from typing import Any

import pytest

from core.directory_gateway import DirectoryGateway
from core.models import ErrorKind, InputRecord, OperationResult, UserAccount
from core.resolver import AccountOptions

MUTATIONS = {
    "create_organizational_unit", "create_user", "update_user",
    "disable_user", "delete_user", "add_group_member",
}

ROOT = "OU=Staff,DC=x,DC=local"


class FakeGateway(DirectoryGateway):
    """In-memory directory that records every call made against it"""

    def __init__(self, users=None, groups=(), ous=()):
        self.users: dict[str, dict[str, Any]] = {name: dict(attrs) for name, attrs in (users or {}).items()}
        self.groups: dict[str, set[str]] = {name: set() for name in groups}
        self.ous: set[str] = set(ous)
        self.calls: list[tuple] = []
        self.failures: dict[str, OperationResult] = {}
        self.connected = False

    # test helpers
    def fail(self, operation: str, kind: ErrorKind = ErrorKind.OTHER, message: str = "boom") -> None:
        self.failures[operation] = OperationResult.failed(kind, message)

    def calls_to(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    def mutation_calls(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in MUTATIONS]

    def _mutate(self, operation: str, *args):
        self.calls.append((operation, *args))
        return self.failures.get(operation)

    # connection lifecycle used by main()
    def connect(self) -> bool:
        self.connected = True
        return True

    def disconnect(self) -> None:
        self.connected = False

    # DirectoryGateway
    def organizational_unit_exists(self, path):
        self.calls.append(("organizational_unit_exists", path))
        return path in self.ous

    def create_organizational_unit(self, name, parent_path, description):
        failure = self._mutate("create_organizational_unit", name, parent_path, description)
        if failure:
            return failure
        path = f"OU={name},{parent_path}"
        if path in self.ous:
            return OperationResult.failed(ErrorKind.CONFLICT, f"{path} exists")
        self.ous.add(path)
        return OperationResult.ok()

    def user_exists(self, username):
        self.calls.append(("user_exists", username))
        return username in self.users

    def get_user(self, username):
        self.calls.append(("get_user", username))
        return dict(self.users.get(username, {}))

    def create_user(self, account: UserAccount):
        failure = self._mutate("create_user", account)
        if failure:
            return failure
        self.users[account.username] = {
            "username": account.username,
            "firstName": account.attributes.get("givenName", ""),
            "lastName": account.attributes.get("sn", ""),
            "displayName": account.display_name,
            "email": account.attributes.get("mail", ""),
            "department": account.attributes.get("department", ""),
            "jobTitle": account.attributes.get("title", ""),
            "enabled": account.enabled,
            "distinguishedName": f"CN={account.display_name},{account.ou_path}",
        }
        return OperationResult.ok()

    def update_user(self, username, changes):
        failure = self._mutate("update_user", username, dict(changes))
        if failure:
            return failure
        self.users[username].update(changes)
        return OperationResult.ok()

    def disable_user(self, username):
        failure = self._mutate("disable_user", username)
        if failure:
            return failure
        self.users[username]["enabled"] = False
        return OperationResult.ok()

    def delete_user(self, username):
        failure = self._mutate("delete_user", username)
        if failure:
            return failure
        del self.users[username]
        return OperationResult.ok()

    def group_exists(self, name):
        self.calls.append(("group_exists", name))
        return name in self.groups

    def add_group_member(self, group_name, username):
        failure = self._mutate("add_group_member", group_name, username)
        if failure:
            return failure
        if username in self.groups[group_name]:
            return OperationResult.failed(ErrorKind.CONFLICT, "already a member")
        self.groups[group_name].add(username)
        return OperationResult.ok()

    def list_all_users(self):
        self.calls.append(("list_all_users",))
        return [dict(user) for user in self.users.values()]


def make_user(username: str, **overrides) -> dict[str, Any]:
    user = {
        "username": username,
        "firstName": "John",
        "lastName": "Doe",
        "displayName": "John Doe",
        "email": "john.doe@x.local",
        "department": "IT",
        "jobTitle": "Dev",
        "enabled": True,
        "distinguishedName": f"CN=John Doe,OU=IT,{ROOT}",
    }
    user.update(overrides)
    return user


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(groups=("IT Staff", "VPN Users", "Domain Users"))


@pytest.fixture
def options() -> AccountOptions:
    return AccountOptions(domain="x.local", users_root=ROOT)


@pytest.fixture
def jdoe() -> InputRecord:
    return InputRecord(
        first_name="John", last_name="Doe", username="jdoe",
        department="IT", job_title="Dev", email="john.doe@x.local",
    )
