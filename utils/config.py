# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import json
import os
from typing import Optional, List
from dotenv import load_dotenv

from core.models import DepartmentGroupPolicy


# Used when DEPARTMENT_GROUPS_FILE is not set
DEFAULT_DEPARTMENT_GROUPS = {
    "IT": ["IT Staff", "VPN Users", "Remote Desktop Users"],
    "HR": ["HR Staff", "HR Confidential"],
    "Finance": ["Finance Staff", "Finance Reports"],
    "Sales": ["Sales Staff", "CRM Users"],
    "Marketing": ["Marketing Staff"],
}

TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Configuration value missing or malformed"""


class Config:
    """Configuration management"""

    def __init__(self, env_file: Optional[str] = None):
        load_dotenv(env_file)

    @staticmethod
    def _flag(name: str, default: bool) -> bool:
        value = os.getenv(name)
        if value is None or value.strip() == "":
            return default
        return value.strip().lower() in TRUE_VALUES

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def base_dn(self) -> Optional[str]:
        return os.getenv("BASE_DN")

    @property
    def ad_use_ssl(self) -> bool:
        return self._flag("AD_USE_SSL", True)

    @property
    def ad_domain(self) -> str:
        """UPN suffix; derived from the DC components of BASE_DN when unset"""
        domain = os.getenv("AD_DOMAIN")
        if domain:
            return domain
        parts = [part.split("=", 1)[1] for part in (self.base_dn or "").split(",")
                 if part.strip().lower().startswith("dc=")]
        return ".".join(part.strip() for part in parts)

    @property
    def users_root_dn(self) -> Optional[str]:
        return os.getenv("USERS_ROOT_DN") or self.base_dn

    @property
    def default_password(self) -> Optional[str]:
        return os.getenv("DEFAULT_PASSWORD") or None

    @property
    def default_group(self) -> str:
        return os.getenv("DEFAULT_GROUP", "Domain Users")

    @property
    def department_groups_file(self) -> Optional[str]:
        return os.getenv("DEPARTMENT_GROUPS_FILE")

    @property
    def home_root(self) -> Optional[str]:
        return os.getenv("HOME_ROOT")

    @property
    def home_drive(self) -> str:
        return os.getenv("HOME_DRIVE", "H:")

    @property
    def smtp_server(self) -> Optional[str]:
        return os.getenv("SMTP_SERVER")

    @property
    def smtp_port(self) -> int:
        value = os.getenv("SMTP_PORT", "25")
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"SMTP_PORT must be a number, got {value!r}") from None

    @property
    def smtp_username(self) -> str:
        return os.getenv("SMTP_USERNAME", "")

    @property
    def smtp_password(self) -> str:
        return os.getenv("SMTP_PASSWORD", "")

    @property
    def smtp_from(self) -> str:
        return os.getenv("SMTP_FROM", "provisioning@localhost")

    @property
    def smtp_use_tls(self) -> bool:
        return self._flag("SMTP_USE_TLS", True)

    @property
    def admin_email(self) -> Optional[str]:
        return os.getenv("ADMIN_EMAIL") or None

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        required = [self.ad_server, self.ad_username, self.ad_password, self.base_dn]
        return all(required)

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
            (self.base_dn, "BASE_DN")
        ]
        return [name for var, name in vars_and_names if not var]

    def load_group_policy(self) -> DepartmentGroupPolicy:
        """Build the department -> groups policy once for the run"""
        mapping = DEFAULT_DEPARTMENT_GROUPS
        path = self.department_groups_file
        if path:
            try:
                with open(path, 'r', encoding='utf-8') as file:
                    mapping = json.load(file)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Could not load department groups from {path}: {e}") from e

            if not isinstance(mapping, dict) or not all(
                    isinstance(groups, list) and all(isinstance(g, str) for g in groups)
                    for groups in mapping.values()):
                raise ConfigError(f"{path} must map department names to lists of group names")

        return DepartmentGroupPolicy(mapping=mapping, default_groups=(self.default_group,))
