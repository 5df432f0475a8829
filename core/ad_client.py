# =============================================================================
# core/ad_client.py - Active Directory gateway
# =============================================================================

import logging
from typing import Dict, Any, List, Optional

from ldap3 import Server, Connection, ALL, BASE, SUBTREE, MODIFY_REPLACE
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import escape_rdn

from core.directory_gateway import DirectoryGateway
from core.models import ErrorKind, OperationResult, UserAccount

# userAccountControl flags
ACCOUNTDISABLE = 0x2
NORMAL_ACCOUNT = 0x200

USER_OBJECT_CLASSES = ['top', 'person', 'organizationalPerson', 'user']
USER_ATTRIBUTES = [
    'sAMAccountName', 'givenName', 'sn', 'displayName', 'mail',
    'department', 'title', 'userAccountControl', 'distinguishedName',
]

# Input column -> AD attribute
ATTRIBUTE_MAP = {
    'firstName': 'givenName',
    'lastName': 'sn',
    'email': 'mail',
    'department': 'department',
    'jobTitle': 'title',
}

RESULT_CODE_KINDS = {
    32: ErrorKind.NOT_FOUND,
    50: ErrorKind.PERMISSION_DENIED,
    68: ErrorKind.CONFLICT,
    51: ErrorKind.TRANSIENT_FAILURE,
    52: ErrorKind.TRANSIENT_FAILURE,
    53: ErrorKind.TRANSIENT_FAILURE,
    81: ErrorKind.TRANSIENT_FAILURE,
}


class ActiveDirectoryClient(DirectoryGateway):
    """Active Directory implementation of the directory gateway"""

    def __init__(self, server_url: str, username: str, password: str, base_dn: str,
                 use_ssl: bool = True, page_size: int = 500):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.use_ssl = use_ssl
        self.page_size = page_size
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, use_ssl=self.use_ssl, get_info=ALL)
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True
            )
            self.logger.info("Successfully connected to Active Directory")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    # ------------------------------------------------------------------
    # Organizational units
    # ------------------------------------------------------------------

    def organizational_unit_exists(self, path: str) -> bool:
        conn = self._require_connection()
        return bool(conn.search(search_base=path, search_filter='(objectClass=organizationalUnit)',
                                search_scope=BASE, attributes=['ou']))

    def create_organizational_unit(self, name: str, parent_path: str,
                                   description: str) -> OperationResult:
        conn = self._require_connection()
        dn = f"OU={escape_rdn(name)},{parent_path}"
        attributes = {'ou': name}
        if description:
            attributes['description'] = description

        if conn.add(dn, ['top', 'organizationalUnit'], attributes):
            return OperationResult.ok(f"Created {dn}")
        return self._failure(f"create OU {dn}")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def user_exists(self, username: str) -> bool:
        return self._find_user_entry(username) is not None

    def get_user(self, username: str) -> Dict[str, Any]:
        entry = self._find_user_entry(username)
        if entry is None:
            self.logger.debug(f"User {username} not found in AD")
            return {}
        return self._entry_to_user(entry.entry_dn, entry.entry_attributes_as_dict)

    def create_user(self, account: UserAccount) -> OperationResult:
        """Create the user disabled, set its password, then enable it.

        AD refuses to enable an account without a password, so the three
        steps run in this order. If a step after the add fails, the new entry
        is deleted again so a later run does not see a half-built account.
        """
        conn = self._require_connection()
        dn = f"CN={escape_rdn(account.display_name or account.username)},{account.ou_path}"
        attributes = {
            'sAMAccountName': account.username,
            'userPrincipalName': account.principal_name,
            'displayName': account.display_name,
            'userAccountControl': NORMAL_ACCOUNT | ACCOUNTDISABLE,
        }
        attributes.update({key: value for key, value in account.attributes.items() if value})

        if not conn.add(dn, USER_OBJECT_CLASSES, attributes):
            return self._failure(f"create user {account.username}")

        if account.password and not conn.extend.microsoft.modify_password(dn, account.password):
            return self._remove_partial_user(dn, self._failure(f"set password for {account.username}"))

        changes = {}
        if account.enabled:
            changes['userAccountControl'] = [(MODIFY_REPLACE, [NORMAL_ACCOUNT])]
        if account.must_change_password:
            changes['pwdLastSet'] = [(MODIFY_REPLACE, [0])]
        if changes and not conn.modify(dn, changes):
            return self._remove_partial_user(dn, self._failure(f"enable user {account.username}"))

        return OperationResult.ok(f"Created {dn}")

    def _remove_partial_user(self, dn: str, failure: OperationResult) -> OperationResult:
        """Delete an entry whose creation did not complete; the original failure is kept"""
        if self.connection.delete(dn):
            self.logger.warning(f"Removed partially created entry {dn}")
            return OperationResult.failed(failure.kind, f"{failure.message} (partial entry removed)")

        self.logger.error(f"Could not remove partially created entry {dn}: {self.connection.result}")
        return OperationResult.failed(
            failure.kind, f"{failure.message} (account left disabled at {dn}, remove it manually)"
        )

    def update_user(self, username: str, changes: Dict[str, str]) -> OperationResult:
        conn = self._require_connection()
        current = self.get_user(username)
        if not current:
            return OperationResult.failed(ErrorKind.NOT_FOUND, f"User {username} not found")

        modifications = {}
        for key, value in changes.items():
            attribute = ATTRIBUTE_MAP.get(key, key)
            modifications[attribute] = [(MODIFY_REPLACE, [value] if value else [])]

        if 'firstName' in changes or 'lastName' in changes:
            first = changes.get('firstName', current.get('firstName', ''))
            last = changes.get('lastName', current.get('lastName', ''))
            display_name = " ".join(part for part in (first, last) if part)
            if display_name:
                modifications['displayName'] = [(MODIFY_REPLACE, [display_name])]

        if conn.modify(current['distinguishedName'], modifications):
            return OperationResult.ok(f"Updated {username}")
        return self._failure(f"update user {username}")

    def disable_user(self, username: str) -> OperationResult:
        conn = self._require_connection()
        entry = self._find_user_entry(username)
        if entry is None:
            return OperationResult.failed(ErrorKind.NOT_FOUND, f"User {username} not found")

        uac = self._first(entry.entry_attributes_as_dict.get('userAccountControl')) or NORMAL_ACCOUNT
        if conn.modify(entry.entry_dn, {'userAccountControl': [(MODIFY_REPLACE, [int(uac) | ACCOUNTDISABLE])]}):
            return OperationResult.ok(f"Disabled {username}")
        return self._failure(f"disable user {username}")

    def delete_user(self, username: str) -> OperationResult:
        conn = self._require_connection()
        entry = self._find_user_entry(username)
        if entry is None:
            return OperationResult.failed(ErrorKind.NOT_FOUND, f"User {username} not found")

        if conn.delete(entry.entry_dn):
            return OperationResult.ok(f"Deleted {username}")
        return self._failure(f"delete user {username}")

    def list_all_users(self) -> List[Dict[str, Any]]:
        conn = self._require_connection()
        users = []
        entries = conn.extend.standard.paged_search(
            search_base=self.base_dn,
            search_filter='(&(objectCategory=person)(objectClass=user))',
            search_scope=SUBTREE,
            attributes=USER_ATTRIBUTES,
            paged_size=self.page_size,
            generator=True
        )
        for entry in entries:
            if entry.get('type') != 'searchResEntry':
                continue
            users.append(self._entry_to_user(entry['dn'], entry.get('attributes', {})))

        self.logger.info(f"Listed {len(users)} users from AD")
        return users

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def group_exists(self, name: str) -> bool:
        return self._find_group_dn(name) is not None

    def add_group_member(self, group_name: str, username: str) -> OperationResult:
        conn = self._require_connection()
        group_dn = self._find_group_dn(group_name)
        if group_dn is None:
            return OperationResult.failed(ErrorKind.NOT_FOUND, f"Group {group_name} not found")
        entry = self._find_user_entry(username)
        if entry is None:
            return OperationResult.failed(ErrorKind.NOT_FOUND, f"User {username} not found")

        if conn.extend.microsoft.add_members_to_groups([entry.entry_dn], [group_dn]):
            return OperationResult.ok(f"Added {username} to {group_name}")
        return self._failure(f"add {username} to {group_name}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_connection(self) -> Connection:
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")
        return self.connection

    def _find_user_entry(self, username: str):
        """Internal method to look a user up by sAMAccountName"""
        conn = self._require_connection()
        search_filter = (f"(&(objectCategory=person)(objectClass=user)"
                         f"(sAMAccountName={escape_filter_chars(username)}))")
        conn.search(search_base=self.base_dn, search_filter=search_filter,
                    search_scope=SUBTREE, attributes=USER_ATTRIBUTES)

        if not conn.entries:
            return None
        if len(conn.entries) > 1:
            self.logger.warning(f"Multiple users found for {username}, using first match")
        return conn.entries[0]

    def _find_group_dn(self, name: str) -> Optional[str]:
        conn = self._require_connection()
        escaped = escape_filter_chars(name)
        conn.search(search_base=self.base_dn,
                    search_filter=f"(&(objectClass=group)(|(cn={escaped})(sAMAccountName={escaped})))",
                    search_scope=SUBTREE, attributes=['cn'])
        if not conn.entries:
            return None
        return conn.entries[0].entry_dn

    def _entry_to_user(self, dn: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        uac = self._first(attributes.get('userAccountControl')) or 0
        return {
            'username': self._text(attributes.get('sAMAccountName')),
            'firstName': self._text(attributes.get('givenName')),
            'lastName': self._text(attributes.get('sn')),
            'displayName': self._text(attributes.get('displayName')),
            'email': self._text(attributes.get('mail')),
            'department': self._text(attributes.get('department')),
            'jobTitle': self._text(attributes.get('title')),
            'enabled': self._is_account_active(int(uac)),
            'distinguishedName': dn,
        }

    def _failure(self, operation: str) -> OperationResult:
        result = self.connection.result if self.connection else {}
        code = result.get('result')
        detail = result.get('message') or result.get('description') or 'unknown error'
        kind = RESULT_CODE_KINDS.get(code, ErrorKind.OTHER)
        self.logger.debug(f"LDAP failure during {operation}: {result}")
        return OperationResult.failed(kind, f"Failed to {operation}: {detail}")

    @staticmethod
    def _first(values):
        if isinstance(values, (list, tuple)):
            return values[0] if values else None
        return values

    def _text(self, values) -> str:
        value = self._first(values)
        return str(value).strip() if value is not None else ""

    def _is_account_active(self, user_account_control: int) -> bool:
        """Check if user account is active based on userAccountControl flags"""
        return not bool(user_account_control & ACCOUNTDISABLE)
