"""Pydantic-based settings loaded from YAML with env-var overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from applytrack.schemas import ScoreWeights

_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class AppSettings(BaseSettings):
    """Application configuration with YAML + env var support.

    Env vars are prefixed with ``APPLYTRACK_``.
    Example: ``APPLYTRACK_MARKET_API_URL=https://market.example.com/api/job-value``
    """

    model_config = {"env_prefix": "APPLYTRACK_"}

    # --- storage ---
    state_dir: str = ".state"
    db_file: str = "applytrack.db"

    # --- market data ---
    market_api_url: str = ""  # empty = local estimates only
    market_api_token: str = ""
    market_timeout: float = Field(default=10.0, gt=0)
    market_max_attempts: int = Field(default=2, ge=1)
    market_retry_delay: float = Field(default=0.5, ge=0)  # seconds, doubled per retry

    # --- scoring ---
    salary_weight: float = Field(default=1.0, ge=0)
    benefits_weight: float = Field(default=0.5, ge=0)

    # --- analytics ---
    recent_window_days: int = Field(default=30, ge=1)
    trend_months: int = Field(default=6, ge=1)

    # --- reminders ---
    reminder_window_hours: int = Field(default=24, ge=1)

    # --- dashboard ---
    dashboard_port: int = 8787

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def db_path(self) -> Path:
        return Path(self.state_dir) / self.db_file

    def score_weights(self) -> ScoreWeights:
        return ScoreWeights(salary=self.salary_weight, benefits=self.benefits_weight)

    # ---- factory ----

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> "AppSettings":
        """Load settings from a YAML file, then overlay env vars.

        Env vars (``APPLYTRACK_*``) take priority over YAML values.
        """
        if path is None:
            path = _PROJECT_ROOT / "settings.yaml"
        path = Path(path)
        raw: dict[str, Any] = {}
        if path.exists():
            with open(path) as fh:
                raw = yaml.safe_load(fh) or {}

        # Let env vars override YAML: remove YAML keys that have an env override
        prefix = "APPLYTRACK_"
        for key in list(raw.keys()):
            env_key = f"{prefix}{key.upper()}"
            if env_key in os.environ:
                del raw[key]

        return cls(**raw)
