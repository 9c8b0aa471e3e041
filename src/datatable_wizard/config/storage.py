"""Configuration persistence.

The configuration lives as one JSON string under a fixed key in a small
local key-value file, the same way a browser keeps it in localStorage.
Failures are logged and reported as False/None so callers never crash on
a broken store.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from datatable_wizard.config.models import Configuration, create_configuration

logger = logging.getLogger(__name__)

CONFIG_KEY = "datatable-configuration"
STORE_ENV_VAR = "DATATABLE_WIZARD_STORE"


def default_store_path() -> Path:
    env_path = os.getenv(STORE_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.home() / ".datatable-wizard" / "storage.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def stamp_timestamps(config: Configuration) -> Configuration:
    """Copy of the configuration with createdAt kept (or set) and updatedAt refreshed."""
    now = _now()
    return config.model_copy(update={"created_at": config.created_at or now, "updated_at": now})


class ConfigStore:
    """Load/save the table configuration in a JSON key-value file."""

    def __init__(self, path: Path | None = None, key: str = CONFIG_KEY):
        self.path = Path(path) if path else default_store_path()
        self.key = key

    def _read_items(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        items = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(items, dict):
            raise ValueError(f"{self.path} does not hold a key-value object")
        return items

    def _write_items(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(items, indent=2, ensure_ascii=False), encoding="utf-8")

    def save(self, config: Configuration) -> bool:
        """Store the configuration, stamping createdAt (first save) and updatedAt."""
        try:
            stamped = stamp_timestamps(config)
            items = self._read_items()
            items[self.key] = json.dumps(stamped.to_dict(), ensure_ascii=False)
            self._write_items(items)
            logger.debug("Saved configuration to %s", self.path)
            return True
        except (OSError, ValueError) as e:
            logger.error("Error saving configuration: %s", e)
            return False

    def load(self) -> Configuration | None:
        try:
            stored = self._read_items().get(self.key)
            if not stored:
                return None
            return create_configuration(json.loads(stored))
        except (OSError, ValueError, ValidationError) as e:
            logger.error("Error loading configuration: %s", e)
            return None

    def clear(self) -> bool:
        try:
            items = self._read_items()
            if items.pop(self.key, None) is not None:
                self._write_items(items)
            return True
        except (OSError, ValueError) as e:
            logger.error("Error clearing configuration: %s", e)
            return False

    def exists(self) -> bool:
        try:
            return self.key in self._read_items()
        except (OSError, ValueError) as e:
            logger.error("Error checking configuration: %s", e)
            return False

    def update(self, updates: dict) -> bool:
        """Merge top-level fields (camelCase keys) into the stored configuration."""
        current = self.load()
        if current is None:
            try:
                return self.save(create_configuration(updates))
            except ValidationError as e:
                logger.error("Error updating configuration: %s", e)
                return False

        try:
            merged = create_configuration({**current.to_dict(), **updates})
        except ValidationError as e:
            logger.error("Error updating configuration: %s", e)
            return False
        return self.save(merged)
