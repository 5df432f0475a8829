# =============================================================================
# core/exceptions.py - Provisioning exceptions
# =============================================================================

from typing import Iterable


class ProvisioningError(Exception):
    """Base class for provisioning errors"""


class InputError(ProvisioningError):
    """Input source missing, unreadable or unusable - fatal for the run"""


class SchemaError(ProvisioningError):
    """Input records do not carry the columns required by the action"""

    def __init__(self, message: str, missing_fields: Iterable[str] = ()):
        super().__init__(message)
        self.missing_fields = tuple(missing_fields)


class NotFoundError(ProvisioningError):
    """Directory entity expected to exist was not found"""
