"""
Data directory discovery.

Locates the opencode data directory and the per-project session storage
directories beneath it. Nothing here ever creates a directory.
"""

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

APP_NAME = "opencode"
PROJECT_SUBDIR = "project"


class DataDirectoryNotFoundError(FileNotFoundError):
    """Raised when the opencode data directory does not exist."""
    def __init__(self, data_dir: Path):
        super().__init__(
            f"opencode data directory not found: {data_dir}. "
            "Please ensure opencode is installed and has generated usage data."
        )
        self.data_dir = data_dir


def _data_home() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg:
        return Path(xdg)
    if sys.platform == "win32":
        local = os.environ.get("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    return Path.home() / ".local" / "share"


def default_data_dir() -> Path:
    """Platform-specific default location of opencode's project data."""
    return _data_home() / APP_NAME / PROJECT_SUBDIR


def resolve_base_data_dir(explicit_dir: Optional[str] = None) -> Path:
    """Resolve the base data directory.

    Args:
        explicit_dir: Directory given by the user; the platform default is
            used when omitted

    Returns:
        Absolute path of an existing directory

    Raises:
        DataDirectoryNotFoundError: If the directory does not exist or is not a directory
    """
    data_dir = Path(explicit_dir).expanduser().resolve() if explicit_dir else default_data_dir()
    if not data_dir.is_dir():
        raise DataDirectoryNotFoundError(data_dir)
    return data_dir


def list_project_dirs(base_dir: Path) -> List[Path]:
    """List the immediate subdirectories of the base directory, sorted by name.

    A base directory that disappeared is treated as holding no projects.
    Any other I/O error is propagated.
    """
    try:
        entries = sorted(Path(base_dir).iterdir())
    except FileNotFoundError:
        logger.warning(
            "Base data directory not found at %s. No opencode projects will be processed.",
            base_dir
        )
        return []
    except OSError as e:
        logger.error("Error reading project directories from %s: %s", base_dir, e)
        raise
    return [entry for entry in entries if entry.is_dir()]


def session_storage_dir(project_dir: Path) -> Path:
    """Session storage location of a project."""
    return Path(project_dir) / "storage" / "session"


def list_session_storage_dirs(base_dir: Path) -> List[Path]:
    """Session storage directory of every project under the base directory."""
    return [session_storage_dir(project) for project in list_project_dirs(base_dir)]
