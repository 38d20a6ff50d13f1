"""Tests for the dashboard payloads and CLI entry point."""

from __future__ import annotations

from datetime import timedelta

import pytest

from applytrack.__main__ import run
from applytrack.dashboard.server import NotFound, build_payload
from applytrack.market.resolver import MarketDataResolver
from applytrack.orchestrator import ApplyTrackService
from applytrack.settings import AppSettings


@pytest.fixture()
def service(tmp_path, tracker, now):
    settings = AppSettings(state_dir=str(tmp_path / ".state"))
    return ApplyTrackService(settings, tracker=tracker, resolver=MarketDataResolver(), clock=lambda: now)


def test_sankey_empty_is_flagged_not_fabricated(service):
    payload = build_payload("/api/sankey", {}, service)
    assert payload == {"nodes": [], "links": [], "empty": True}


def test_sankey_and_stats(service, now):
    app_id = service.tracker.add_application("Acme", "Dev", date_applied=now - timedelta(days=2))
    service.tracker.update_status(app_id, "Accepted")

    sankey = build_payload("/api/sankey", {}, service)
    assert sankey["empty"] is False
    assert {"source": "Offer Received", "target": "Accepted", "value": 1} in sankey["links"]

    stats = build_payload("/api/stats", {}, service)
    assert stats["totalApplications"] == 1
    assert stats["statusCounts"] == {"Accepted": 1}
    assert stats["sankeyData"]["links"] == sankey["links"]


def test_applications_and_exports(service, now):
    service.tracker.add_application("Acme", "Dev", date_applied=now)
    rows = build_payload("/api/applications", {}, service)
    assert rows[0]["company"] == "Acme"
    assert "Acme" in build_payload("/api/export/csv", {}, service)


def test_activity_days_param(service, now):
    service.tracker.add_application("Old", "Dev", date_applied=now - timedelta(days=20))
    assert build_payload("/api/activity", {"days": ["7"]}, service)["count"] == 0
    assert build_payload("/api/activity", {"days": ["nonsense"]}, service)["count"] == 1


def test_activity_zero_days(service, now):
    service.tracker.add_application("Yesterday", "Dev", date_applied=now - timedelta(days=1))
    assert build_payload("/api/activity", {"days": ["0"]}, service)["count"] == 0
    assert build_payload("/api/activity", {}, service)["count"] == 1


def test_upcoming_reminders_route(service, now):
    service.tracker.add_reminder("Call back", now + timedelta(hours=5), priority="High")
    service.tracker.add_reminder("Next week", now + timedelta(days=7))

    payload = build_payload("/api/reminders/upcoming", {}, service)
    assert payload["count"] == 1
    assert payload["data"][0]["title"] == "Call back"
    assert payload["data"][0]["priority"] == "High"
    assert payload["data"][0]["dueDate"] == (now + timedelta(hours=5)).isoformat()

    wider = build_payload("/api/reminders/upcoming", {"hours": ["200"]}, service)
    assert wider["count"] == 2
    assert build_payload("/api/reminders", {"completed": ["true"]}, service)["count"] == 0


def test_contacts_route(service):
    contact_id = service.tracker.add_contact("Jane Roe", "Acme")
    service.tracker.add_interaction(contact_id, "Email", "Sent resume")
    payload = build_payload("/api/contacts", {}, service)
    assert payload["count"] == 1
    assert payload["data"][0]["interactions"][0]["notes"] == "Sent resume"


def test_unknown_route(service):
    with pytest.raises(NotFound):
        build_payload("/api/nope", {}, service)


def test_cli_compare_file(tmp_path):
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(f'state_dir: "{tmp_path / ".state"}"\n')
    offers = tmp_path / "offers.yaml"
    offers.write_text("offers:\n  - company: Acme\n    salary: 100000\n  - company: Globex\n")

    assert run(["--settings", str(settings_file), "compare", "--file", str(offers)]) == 0


def test_cli_reports_domain_errors(tmp_path):
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(f'state_dir: "{tmp_path / ".state"}"\n')
    offers = tmp_path / "offers.yaml"
    offers.write_text("offers:\n  - company: Solo\n    salary: 100000\n")

    assert run(["--settings", str(settings_file), "compare", "--file", str(offers)]) == 1


def test_cli_report_and_ranking_exports(tmp_path):
    settings_file = tmp_path / "settings.yaml"
    settings_file.write_text(f'state_dir: "{tmp_path / ".state"}"\n')
    offers = tmp_path / "offers.yaml"
    offers.write_text("offers:\n  - company: Acme\n    salary: 100000\n  - company: Globex\n")
    out = tmp_path / "exports"
    base = ["--settings", str(settings_file)]

    assert run(base + ["export", "--report", "stats", "--output-dir", str(out)]) == 0
    assert (out / "stats_export.json").exists()

    assert run(base + ["compare", "--file", str(offers), "--export", "csv", "--output-dir", str(out)]) == 0
    assert "Acme" in (out / "offer_ranking.csv").read_text()

    assert run(base + ["reminders", "--hours", "12"]) == 0
