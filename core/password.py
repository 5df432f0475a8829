# =============================================================================
# core/password.py - Initial password policy
# =============================================================================
#
# Generated passwords are provisioning placeholders only. Every account is
# created with "must change password at next logon" set.

import secrets
from dataclasses import dataclass, field
from typing import Optional

UPPERCASE = ''.join(c for c in 'ABCDEFGHIJKLMNOPQRSTUVWXYZ' if c not in 'IO')
LOWERCASE = ''.join(c for c in 'abcdefghijklmnopqrstuvwxyz' if c not in 'lo')
DIGITS = '23456789'
SYMBOLS = '!@#$%&*?'

CHARACTER_CLASSES = (UPPERCASE, LOWERCASE, DIGITS, SYMBOLS)
ALL_CHARACTERS = ''.join(CHARACTER_CLASSES)

DEFAULT_LENGTH = 12
MIN_LENGTH = len(CHARACTER_CLASSES)

_random = secrets.SystemRandom()


def generate_password(length: int = DEFAULT_LENGTH) -> str:
    """Generate a password holding at least one character of every class"""
    if length < MIN_LENGTH:
        raise ValueError(f"Password length must be at least {MIN_LENGTH}")

    chars = [_random.choice(charset) for charset in CHARACTER_CLASSES]
    chars.extend(_random.choice(ALL_CHARACTERS) for _ in range(length - len(chars)))
    _random.shuffle(chars)
    return ''.join(chars)


def meets_complexity(password: str) -> bool:
    """True if the password contains a character from each class"""
    return all(any(c in charset for c in password) for charset in CHARACTER_CLASSES)


@dataclass(frozen=True)
class PasswordStrategy:
    """Explicit choice between a fixed initial password and generated ones"""
    fixed_value: Optional[str] = field(default=None, repr=False)
    length: int = DEFAULT_LENGTH

    @classmethod
    def fixed(cls, value: str) -> "PasswordStrategy":
        if not value:
            raise ValueError("Fixed password must not be empty")
        return cls(fixed_value=value)

    @classmethod
    def generated(cls, length: int = DEFAULT_LENGTH) -> "PasswordStrategy":
        if length < MIN_LENGTH:
            raise ValueError(f"Password length must be at least {MIN_LENGTH}, got {length}")
        return cls(fixed_value=None, length=length)

    @property
    def is_generated(self) -> bool:
        return self.fixed_value is None

    def next_password(self) -> str:
        if self.fixed_value is not None:
            return self.fixed_value
        return generate_password(self.length)
