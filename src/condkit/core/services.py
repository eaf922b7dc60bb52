from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from .config import ConfigStore, SectionConfig
from .events import EventBus
from .labels import LabelProvider

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

DEFAULT_SETTINGS: Dict[str, Dict[str, Any]] = {
    "builder": {"catalog_path": None, "log_level": "info"},
    "labels": {},
}


class CoreServices:
    """Shared services handed to the builder session and its renderer."""

    def __init__(
        self,
        app_name: str = "CondKit",
        data_dir: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.app_name = app_name
        self.data_dir = data_dir or self._resolve_data_dir(app_name)
        self._config_store = ConfigStore(self.data_dir / "config.json", defaults=DEFAULT_SETTINGS)
        builder_settings = self._config_store.get_section("builder")
        self._logger = logger or self._configure_logger(app_name, builder_settings.get("log_level"))
        self.event_bus = EventBus()
        self.labels = LabelProvider(self._config_store.get_section("labels").as_dict())

    @staticmethod
    def _resolve_data_dir(app_name: str) -> Path:
        if os.name == "nt":
            base = Path(os.getenv("APPDATA", Path.home() / "AppData" / "Roaming"))
        else:
            base = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
        return base / app_name.lower()

    @staticmethod
    def _configure_logger(app_name: str, level_name: Optional[str] = None) -> logging.Logger:
        logger = logging.getLogger(app_name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
            )
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(_LOG_LEVELS.get(str(level_name or "info").lower(), logging.INFO))
        return logger

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def get_logger(self, name: str) -> logging.Logger:
        return self._logger.getChild(name)

    @property
    def config_store(self) -> ConfigStore:
        return self._config_store

    def get_section(self, name: str) -> SectionConfig:
        return self._config_store.get_section(name)

    def builder_settings(self) -> SectionConfig:
        """Return the ``builder`` section (catalog path, log level)."""
        return self._config_store.get_section("builder")

    def catalog_path(self) -> Optional[Path]:
        raw = self.builder_settings().get("catalog_path")
        if not raw:
            return None
        path = Path(str(raw)).expanduser()
        if not path.is_absolute():
            path = self.data_dir / path
        return path

    def reload_labels(self) -> LabelProvider:
        self.labels = LabelProvider(self._config_store.get_section("labels").as_dict())
        return self.labels
