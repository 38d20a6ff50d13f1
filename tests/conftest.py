"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from applytrack.reporting.tracker import ApplicationTracker

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def tmp_settings_yaml(tmp_path):
    """Write a minimal settings.yaml and return its path."""
    content = """\
state_dir: "{state}"
db_file: "test.db"
market_api_url: "https://market.example.com/api/job-value"
market_max_attempts: 3
market_retry_delay: 0
salary_weight: 1.0
benefits_weight: 0.75
recent_window_days: 14
log_level: "debug"
""".format(state=str(tmp_path / ".state"))
    p = tmp_path / "settings.yaml"
    p.write_text(content)
    return p


@pytest.fixture()
def tracker(tmp_path):
    t = ApplicationTracker(tmp_path / "tracker.db")
    try:
        yield t
    finally:
        t.close()
