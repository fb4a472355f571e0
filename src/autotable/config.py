"""Configuration for autotable stores and records."""

from __future__ import annotations

import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class AutotableConfig:
    """Context attached to every record: where stores live and how they are opened."""

    data_dir: str = "."
    default_store: str = "autotable"
    journal_mode: str = "WAL"
    log_level: str = "WARNING"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> AutotableConfig:
        """Build a config from AUTOTABLE_* environment variables."""
        defaults = cls()
        return cls(
            data_dir=os.getenv("AUTOTABLE_DATA_DIR", defaults.data_dir),
            default_store=os.getenv("AUTOTABLE_STORE", defaults.default_store),
            journal_mode=os.getenv("AUTOTABLE_JOURNAL_MODE", defaults.journal_mode),
            log_level=os.getenv("AUTOTABLE_LOG_LEVEL", defaults.log_level).upper(),
            log_json=os.getenv("AUTOTABLE_LOG_JSON", "false").lower() in _TRUTHY,
        )
