"""
Data files for nexparse

The datatype tables ship in the package's data/ directory. A user can copy a
file to their own data directory and edit it; from then on the user copy is
read instead of the packaged one, until it is reset.
"""

import os
import platform
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .utils.logging import NexusLogger

DATATYPES_FILE = "datatypes.yaml"
ENV_DATA_DIR = "NEXPARSE_DATA_DIR"


def _default_user_dir() -> Path:
    """Per-user configuration directory for the current OS"""
    system = platform.system()
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "nexparse"
    if system == "Windows":
        return Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming")) / "nexparse"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "nexparse"


class DataManager:
    """Finds, reads and overrides the YAML data files"""

    def __init__(self):
        self.package_data_dir = Path(__file__).parent / "data"

        # Not created until something is written there
        custom = os.environ.get(ENV_DATA_DIR)
        self.user_data_dir = Path(custom).expanduser() if custom else _default_user_dir()

    def effective_path(self, filename: str) -> Optional[Path]:
        """The file that load_data_file would read: user copy first, then package"""
        for directory in (self.user_data_dir, self.package_data_dir):
            candidate = directory / filename
            if candidate.is_file():
                return candidate
        return None

    def load_data_file(self, filename: str) -> Dict[str, Any]:
        """Read a YAML data file; an unreadable or missing file gives {}"""
        path = self.effective_path(filename)
        if path is None:
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            NexusLogger.warning(f"Could not read {path}: {e}")
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            NexusLogger.warning(f"Ignoring {path}: expected a mapping at the top level")
            return {}
        return data

    def save_user_data(self, filename: str, data: Dict[str, Any]) -> None:
        """Write data as the user's copy of filename"""
        self.user_data_dir.mkdir(parents=True, exist_ok=True)
        path = self.user_data_dir / filename
        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        except OSError as e:
            NexusLogger.error(f"Could not write {path}: {e}")
            return
        NexusLogger.info(f"Saved {path}")

    def _user_files(self) -> List[Path]:
        if not self.user_data_dir.is_dir():
            return []
        return sorted(p for p in self.user_data_dir.iterdir() if p.is_file())

    def reset_to_defaults(self, filename: Optional[str] = None) -> int:
        """Remove user copies so the packaged files apply again

        Args:
            filename: One file to reset, or None for every user file

        Returns:
            Number of user files removed
        """
        if filename:
            targets = [self.user_data_dir / filename]
        else:
            targets = self._user_files()

        removed = 0
        for path in targets:
            if path.is_file():
                path.unlink()
                removed += 1
                NexusLogger.info(f"{path.name} reset to the packaged default")

        if not removed:
            NexusLogger.info(f"{filename or 'No user files'} already using the packaged defaults")
        return removed

    def get_data_info(self) -> Dict[str, Any]:
        """Directories, the files in each, and which copy of each file is in effect"""
        package_files = []
        if self.package_data_dir.is_dir():
            package_files = sorted(p.name for p in self.package_data_dir.iterdir() if p.is_file())
        user_files = [p.name for p in self._user_files()]

        return {
            "package_data_dir": str(self.package_data_dir),
            "user_data_dir": str(self.user_data_dir),
            "package_files": package_files,
            "user_files": user_files,
            "effective": {name: str(self.effective_path(name)) for name in package_files},
        }

    def copy_package_to_user(self, filename: str) -> bool:
        """Start a user copy of a packaged file; an existing copy is never replaced"""
        source = self.package_data_dir / filename
        target = self.user_data_dir / filename

        if not source.is_file():
            NexusLogger.error(f"No packaged data file named {filename}")
            return False
        if target.exists():
            NexusLogger.warning(f"{target} already exists, reset it first to start over")
            return False

        try:
            self.user_data_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as e:
            NexusLogger.error(f"Could not copy {filename}: {e}")
            return False
        NexusLogger.info(f"Copied {filename} to {self.user_data_dir}")
        return True


_data_manager: Optional[DataManager] = None


def get_data_manager() -> DataManager:
    """Shared DataManager, created on first use"""
    global _data_manager
    if _data_manager is None:
        _data_manager = DataManager()
    return _data_manager


def load_datatypes() -> Dict[str, Any]:
    """Datatype table (symbols and equates per DATATYPE), user copy first"""
    return get_data_manager().load_data_file(DATATYPES_FILE)
