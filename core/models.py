# =============================================================================
# core/models.py - Unified data models
# =============================================================================

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional, Tuple
from enum import Enum

from core.exceptions import InputError


class Action(Enum):
    """Enumeration of provisioning actions"""
    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    REPORT = "report"

    @classmethod
    def parse(cls, value: str) -> "Action":
        """Resolve an action name case-insensitively"""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InputError(f"Unrecognized action: {value}") from None


class OutcomeStatus(Enum):
    """Terminal status of one processed record"""
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class EnsureStatus(Enum):
    """Result of an idempotent ensure operation"""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


class ErrorKind(Enum):
    """Kinds of directory failures reported by the gateway"""
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    CONFLICT = "conflict"
    TRANSIENT_FAILURE = "transient_failure"
    OTHER = "other"


# Canonical input columns, in report order
INPUT_FIELDS = ('firstName', 'lastName', 'username', 'department', 'jobTitle', 'email')


@dataclass(frozen=True)
class InputRecord:
    """One row of the input table"""
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    department: str = ""
    job_title: str = ""
    email: str = ""
    columns: Tuple[str, ...] = INPUT_FIELDS

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InputRecord":
        """Build a record from a canonical-keyed CSV row, trimming values"""
        def value(key: str) -> str:
            raw = row.get(key)
            return str(raw).strip() if raw is not None else ""

        return cls(
            first_name=value('firstName'),
            last_name=value('lastName'),
            username=value('username'),
            department=value('department'),
            job_title=value('jobTitle'),
            email=value('email'),
            columns=tuple(key for key in row.keys() if key in INPUT_FIELDS),
        )

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name.strip(), self.last_name.strip()) if part)

    def profile(self) -> Dict[str, str]:
        """Profile fields compared on Modify, keyed by column name"""
        return {
            'firstName': self.first_name.strip(),
            'lastName': self.last_name.strip(),
            'email': self.email.strip(),
            'department': self.department.strip(),
            'jobTitle': self.job_title.strip(),
        }


@dataclass(frozen=True)
class OrganizationalUnit:
    name: str
    parent_path: str
    description: str = ""

    @property
    def path(self) -> str:
        return f"OU={self.name},{self.parent_path}"


@dataclass(frozen=True)
class UserAccount:
    """Attribute set for a new directory user"""
    username: str
    display_name: str
    principal_name: str
    ou_path: str
    attributes: Dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    must_change_password: bool = True
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class GroupMembership:
    group_name: str
    member_username: str


@dataclass(frozen=True)
class OperationResult:
    """Typed result of a mutating gateway call"""
    success: bool
    kind: Optional[ErrorKind] = None
    message: str = ""

    @classmethod
    def ok(cls, message: str = "") -> "OperationResult":
        return cls(True, None, message)

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> "OperationResult":
        return cls(False, kind, message)


@dataclass(frozen=True)
class EnsureResult:
    """Tri-state result of the idempotency resolver"""
    status: EnsureStatus
    reason: str = ""
    severity: OutcomeStatus = OutcomeStatus.SUCCESS
    kind: Optional[ErrorKind] = None

    @property
    def created(self) -> bool:
        return self.status == EnsureStatus.CREATED

    @property
    def already_exists(self) -> bool:
        return self.status == EnsureStatus.ALREADY_EXISTS

    @property
    def failed(self) -> bool:
        return self.status == EnsureStatus.FAILED


@dataclass(frozen=True)
class ProcessingOutcome:
    """Per-record processing result"""
    username: str
    action: Action
    status: OutcomeStatus
    display_name: str = ""
    email: str = ""
    department: str = ""
    error_detail: Optional[str] = None
    generated_password: Optional[str] = field(default=None, repr=False)
    home_directory: Optional[str] = None
    notes: Tuple[str, ...] = ()

    def __post_init__(self):
        if (self.status == OutcomeStatus.ERROR) != (self.error_detail is not None):
            raise ValueError("error_detail must be set exactly when status is ERROR")


@dataclass
class RunCounters:
    """Run-scoped outcome counters"""
    success_count: int = 0
    failure_count: int = 0
    warning_count: int = 0


DEFAULT_GROUPS = ("Domain Users",)


@dataclass(frozen=True)
class DepartmentGroupPolicy:
    """Read-only department -> groups table used on Create"""
    mapping: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    default_groups: Tuple[str, ...] = DEFAULT_GROUPS

    def __post_init__(self):
        frozen = {str(department).strip().lower(): tuple(groups)
                  for department, groups in dict(self.mapping).items()}
        object.__setattr__(self, 'mapping', MappingProxyType(frozen))
        object.__setattr__(self, 'default_groups', tuple(self.default_groups))

    def groups_for(self, department: str) -> Tuple[str, ...]:
        """Groups for a department, falling back to the default groups"""
        return self.mapping.get((department or "").strip().lower(), self.default_groups)
