# =============================================================================
# utils/home_directory.py - Home directory provisioning
# =============================================================================

import logging
from pathlib import Path

# Path separators on either platform and the drive separator
UNSAFE_CHARACTERS = ("/", "\\", ":")


class HomeDirectoryError(Exception):
    """Home directory could not be provisioned"""


class HomeDirectoryProvisioner:
    """Creates <root>/<username> and records it on the directory account.

    Permissions on the created folder are left to the file server's
    inherited ACLs.
    """

    def __init__(self, root: str, drive: str = "H:"):
        self.root = Path(root)
        self.drive = drive
        self.logger = logging.getLogger(__name__)

    def path_for(self, username: str) -> Path:
        """Folder for the user directly under the root

        Raises:
            HomeDirectoryError: If the username would escape the root
        """
        if not username or username in (".", "..") or any(sep in username for sep in UNSAFE_CHARACTERS):
            raise HomeDirectoryError(f"Username {username!r} cannot be used as a folder name")
        return self.root / username

    def provision(self, gateway, username: str) -> str:
        """Create the folder and set homeDirectory/homeDrive; returns the path"""
        path = self.path_for(username)

        if not self.root.is_dir():
            raise HomeDirectoryError(f"Home directory root {self.root} does not exist")

        try:
            path.mkdir(exist_ok=True)
        except OSError as e:
            raise HomeDirectoryError(f"Could not create {path}: {e}") from e

        result = gateway.update_user(username, {'homeDirectory': str(path), 'homeDrive': self.drive})
        if not result.success:
            raise HomeDirectoryError(f"Created {path} but could not update account: {result.message}")

        self.logger.info(f"Provisioned home directory {path} for {username}")
        return str(path)
