"""
Application configuration management for RingStat.

Handles dashboard defaults and the location of the scoring-data export.
Settings are persisted to ~/.ringstat/config.json.
"""

import json
import os
from pathlib import Path
from typing import Optional

from ringstat.utils.constants import (
    DEFAULT_LEADERBOARD_LIMIT,
    DEFAULT_MAX_WORKERS,
    DEFAULT_SCORE_TREND_LIMIT,
    DEFAULT_TREND_LIMIT,
)


class Config:
    """Manages application settings with JSON file persistence."""

    _APP_DIR = Path.home() / ".ringstat"
    _CONFIG_FILE = _APP_DIR / "config.json"

    _defaults = {
        "trend_period": "monthly",      # "daily", "weekly", "monthly"
        "trend_metric": "avgScore",
        "trend_limit": DEFAULT_TREND_LIMIT,
        "leaderboard_sort": "avgScore",
        "leaderboard_limit": DEFAULT_LEADERBOARD_LIMIT,
        "time_range": "all",            # "all" or a number of days
        "max_workers": DEFAULT_MAX_WORKERS,
        "score_trend_limit": DEFAULT_SCORE_TREND_LIMIT,
        "data_file": "",
    }

    _instance: Optional["Config"] = None
    _settings: dict

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._settings = {}
            cls._instance._load()
        return cls._instance

    def _load(self):
        """Load settings from disk, merging with defaults."""
        if self._CONFIG_FILE.exists():
            try:
                with open(self._CONFIG_FILE) as f:
                    saved = json.load(f)
                self._settings = {**self._defaults, **saved}
            except (json.JSONDecodeError, IOError):
                self._settings = dict(self._defaults)
        else:
            self._settings = dict(self._defaults)

    def save(self):
        """Persist current settings to disk."""
        self._APP_DIR.mkdir(parents=True, exist_ok=True)
        with open(self._CONFIG_FILE, "w") as f:
            json.dump(self._settings, f, indent=2)

    def get(self, key: str, default=None):
        """Get a setting value."""
        return self._settings.get(key, default)

    def set(self, key: str, value):
        """Set a setting value and save."""
        self._settings[key] = value
        self.save()

    @classmethod
    def get_data_file(cls) -> Optional[Path]:
        """Get the scoring-data export path from environment or config."""
        instance = cls()
        # Environment variable takes priority
        env_path = os.environ.get("RINGSTAT_DATA_FILE", "")
        if env_path:
            return Path(env_path)
        configured = instance.get("data_file", "")
        return Path(configured) if configured else None
