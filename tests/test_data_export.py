"""Tests for report and ranking files."""

from __future__ import annotations

import csv
import json
from datetime import timedelta

import pytest

from applytrack.market.resolver import MarketDataResolver
from applytrack.orchestrator import ApplyTrackService
from applytrack.reporting.data_export import export_ranking, export_report, ranking_rows
from applytrack.schemas import OfferInput
from applytrack.settings import AppSettings


@pytest.fixture()
def service(tmp_path, tracker, now):
    settings = AppSettings(state_dir=str(tmp_path / ".state"))
    return ApplyTrackService(settings, tracker=tracker, resolver=MarketDataResolver(), clock=lambda: now)


@pytest.fixture()
def populated(service, now):
    t = service.tracker
    t.add_application("Initech", "Tester", date_applied=now - timedelta(days=2))
    hooli = t.add_application("Hooli", "Dev, Backend", date_applied=now - timedelta(days=10))
    t.update_status(hooli, "Rejected")
    return service


def test_applications_report_csv(populated, tmp_path):
    dest = export_report(populated, "applications", tmp_path / "out", fmt="csv")
    assert dest.name == "applications_export.csv"
    rows = list(csv.DictReader(dest.open()))
    assert [r["company"] for r in rows] == ["Initech", "Hooli"]


def test_sankey_report(populated, tmp_path):
    doc = json.loads(export_report(populated, "sankey", tmp_path).read_text())
    assert doc["empty"] is False
    assert {"source": "Applied", "target": "Rejected", "value": 1} in doc["links"]

    rows = list(csv.DictReader(export_report(populated, "sankey", tmp_path, fmt="csv").open()))
    assert {"source": "Applied", "target": "Pending", "value": "1"} in rows


def test_stats_report(populated, tmp_path):
    doc = json.loads(export_report(populated, "stats", tmp_path).read_text())
    assert doc["totalApplications"] == 2
    assert doc["rejectionRate"] == pytest.approx(50.0)

    rows = list(csv.DictReader(export_report(populated, "stats", tmp_path, fmt="csv").open()))
    metrics = {r["metric"]: r["value"] for r in rows}
    assert metrics["totalApplications"] == "2"
    assert metrics["status:Rejected"] == "1"
    assert metrics["month:2025-06"] == "2"


def test_activity_report(populated, tmp_path):
    doc = json.loads(export_report(populated, "activity", tmp_path).read_text())
    assert [row["type"] for row in doc] == ["Application", "Application", "Status Change"]


def test_empty_store_writes_empty_csv(service, tmp_path):
    dest = export_report(service, "applications", tmp_path, fmt="csv")
    assert dest.read_text() == ""


def test_unknown_report_or_format(service, tmp_path):
    with pytest.raises(ValueError):
        export_report(service, "salaries", tmp_path)
    with pytest.raises(ValueError):
        export_report(service, "stats", tmp_path, fmt="xml")


def test_ranking_file_keeps_unscored_offers_blank(service, tmp_path):
    ranked = service.compare_offers(
        [OfferInput(company="Acme", salary=100_000), OfferInput(company="Mystery")]
    )
    rows = ranking_rows(ranked)
    assert rows[0]["company"] == "Acme"
    assert rows[1]["scoreComputable"] is False
    assert rows[1]["totalScore"] is None

    dest = export_ranking(ranked, tmp_path, fmt="csv")
    assert dest.name == "offer_ranking.csv"
    written = list(csv.DictReader(dest.open()))
    assert written[0]["totalScore"] == "100000.0"
    assert written[1]["totalScore"] == ""

    doc = json.loads(export_ranking(ranked, tmp_path).read_text())
    assert doc[1]["totalScore"] is None
