from __future__ import annotations

import fcntl
import os
import sys
from pathlib import Path
from typing import Any, Dict

import yaml

from concierge.configuration.ai_settings import AISettings
from concierge.util.logger import get_logger

logger = get_logger("app_configuration")


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. CONCIERGE_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller), use the executable's directory.
    3. Otherwise, assume running from source and use the directory above ``src/``.
    """
    if env_home := os.getenv("CONCIERGE_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[3]


BASE_DIR = resolve_base_dir()
CONFIG_PATH = BASE_DIR / "config" / "app_config.yml"

DEFAULT_SETTINGS_FILE = "./data/settings.json"
DEFAULT_DM_LOG_FILE = "./data/dms.json"
DEFAULT_STATIC_DIR = "./public"


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    Holds the runtime knobs that are not part of the dashboard-editable
    ``settings.json``: the command prefix, where the data files live, the AI
    backend and the dashboard bind address. A missing or malformed file is
    logged and treated as empty, so every accessor has a default.
    """

    def __init__(self, config_path: Path = CONFIG_PATH, base_dir: Path = BASE_DIR) -> None:
        self.config_path = Path(config_path)
        self.base_dir = Path(base_dir)
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found; using defaults.", self.config_path)
            return {}
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
            return {}
        return data

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    def _path(self, section: str, key: str, default: str) -> Path:
        value = self._section(section).get(key) or default
        return Path(str(value))

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and return the loaded mapping (empty on error)."""
        self._data = self.load_from_disk()
        return self._data

    def resolve_path(self, path: Path) -> Path:
        """Anchor a relative path from the config file at the project base directory."""
        path = Path(path)
        return path if path.is_absolute() else self.base_dir / path

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def command_prefix(self) -> str:
        """Single prefix that marks a message as a command (default ``!``)."""
        value = str(self._data.get("command_prefix") or "!")
        return value

    @property
    def settings_file(self) -> Path:
        return self._path("paths", "settings_file", DEFAULT_SETTINGS_FILE)

    @property
    def dm_log_file(self) -> Path:
        return self._path("paths", "dm_log_file", DEFAULT_DM_LOG_FILE)

    @property
    def ai_settings(self) -> AISettings:
        return AISettings(self._section("ai_settings"))

    @property
    def dashboard_host(self) -> str:
        return str(self._section("dashboard").get("host") or "127.0.0.1")

    @property
    def dashboard_port(self) -> int:
        try:
            return int(self._section("dashboard").get("port", 3000))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid dashboard port; using 3000")
            return 3000

    @property
    def dashboard_static_dir(self) -> Path:
        return self._path("dashboard", "static_dir", DEFAULT_STATIC_DIR)
