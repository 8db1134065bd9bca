"""
Process-wide application settings read from ``config/app_config.yml``.

Sections:

- ``ai_settings``: completion endpoint (see :class:`AISettings`)
- ``reform`` and ``limits``: workflow timings and per-guild caps (see
  :class:`ReformSettings`)
- ``database_path``: JSON document holding per-guild configuration
- ``bot_owner_id``: Discord user allowed to run ``/delete_all``

A missing or unreadable file is logged and treated as empty, so every
setting falls back to its default.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path
from typing import Any, Dict

import yaml

from aireform.configuration.settings import AISettings, ReformSettings
from aireform.util.logger import get_logger

logger = get_logger("app_configuration")

CONFIG_PATH = Path(os.getenv("AIREFORM_CONFIG") or "./config/app_config.yml").resolve()
DEFAULT_DATABASE_PATH = "./data/db.json"


class AppConfig:
    """Cached view of the YAML settings file.

    The file is read under a shared ``fcntl`` lock so an editor saving it at
    the same moment cannot hand us half a document. Call :meth:`reload` to
    pick up edits.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = Path(config_path)
        self._data: Dict[str, Any] = {}
        self.reload()

    def load_from_disk(self) -> Dict[str, Any]:
        """Parse the YAML file; anything but a mapping counts as empty."""
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    loaded = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] %s does not exist; using defaults", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Could not read %s (%s); using defaults", self.config_path, exc)
            return {}

        if not isinstance(loaded, dict):
            logger.warning("[APP CONFIGURATION] %s is not a mapping; using defaults", self.config_path)
            return {}
        return loaded

    def reload(self) -> Dict[str, Any]:
        self._data = self.load_from_disk()
        logger.debug("[APP CONFIGURATION] Loaded sections: %s", ", ".join(self._data) or "none")
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Raw parsed mapping (treat as read-only)."""
        return self._data

    def section(self, name: str) -> Dict[str, Any]:
        value = self._data.get(name)
        return value if isinstance(value, dict) else {}

    @property
    def ai_settings(self) -> AISettings:
        return AISettings(self.section("ai_settings"))

    @property
    def reform_settings(self) -> ReformSettings:
        return ReformSettings(self.section("reform"), self.section("limits"))

    @property
    def database_path(self) -> Path:
        return Path(str(self._data.get("database_path") or DEFAULT_DATABASE_PATH)).resolve()

    @property
    def bot_owner_id(self) -> int | None:
        raw = self._data.get("bot_owner_id")
        if raw in (None, ""):
            return None
        try:
            return int(raw)
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] bot_owner_id %r is not a user id; /delete_all is disabled", raw)
            return None


app_config = AppConfig(CONFIG_PATH)
