"""Tests for aggregate statistics and the activity timeline."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from applytrack.analytics.stats import activity_timeline, compute_stats
from applytrack.exceptions import InvalidStatusError
from applytrack.models import Activity, JobApplication, PipelineStage


def test_empty(now):
    stats = compute_stats([], now)
    assert stats.total_applications == 0
    assert stats.rejection_rate == 0.0
    assert stats.success_rate == 0.0
    assert stats.average_response_days is None
    assert stats.applications_by_month == []
    assert stats.flow.is_empty


def test_counts_and_rates(now):
    apps = [
        JobApplication(status="Applied", date_applied=now - timedelta(days=3)),
        JobApplication(status="Interviewing", date_applied=now - timedelta(days=10)),
        JobApplication(status="Offer Received", date_applied=now - timedelta(days=40)),
        JobApplication(status="Rejected", date_applied=now - timedelta(days=60)),
    ]
    stats = compute_stats(apps, now)
    assert stats.total_applications == 4
    assert stats.recent_applications == 2
    assert stats.total_interviews == 2
    assert stats.total_offers == 1
    assert stats.rejection_rate == pytest.approx(25.0)
    assert stats.success_rate == pytest.approx(25.0)
    assert stats.status_counts == {
        "Applied": 1,
        "Interviewing": 1,
        "Offer Received": 1,
        "Rejected": 1,
    }
    assert stats.flow.count(PipelineStage.APPLIED, PipelineStage.REJECTED) == 1


def test_average_response_days_uses_first_interview(now):
    applied = now - timedelta(days=30)
    apps = [
        JobApplication(
            status="Interviewing",
            date_applied=applied,
            interview_dates=(applied + timedelta(days=9), applied + timedelta(days=4)),
        ),
        JobApplication(
            status="Interviewing",
            date_applied=applied,
            interview_dates=(applied + timedelta(days=7),),
        ),
        # interview logged before the application date is ignored
        JobApplication(
            status="Interviewing",
            date_applied=applied,
            interview_dates=(applied - timedelta(days=2),),
        ),
    ]
    # (4 + 7) / 2 = 5.5 rounds half up
    assert compute_stats(apps, now).average_response_days == 6


def test_applications_by_month(now):
    apps = [
        JobApplication(status="Applied", date_applied=now.replace(month=6, day=1)),
        JobApplication(status="Applied", date_applied=now.replace(month=6, day=10)),
        JobApplication(status="Applied", date_applied=now.replace(month=3, day=2)),
        JobApplication(status="Applied", date_applied=now.replace(year=2024, month=11)),
        JobApplication(status="Applied"),
    ]
    assert compute_stats(apps, now).applications_by_month == [("2025-03", 1), ("2025-06", 2)]


def test_invalid_status(now):
    with pytest.raises(InvalidStatusError):
        compute_stats([JobApplication(status="Hired")], now)


def test_activity_timeline(now):
    app = JobApplication(
        status="Interviewing",
        company="Acme",
        date_applied=now - timedelta(days=5),
        activities=(
            Activity(occurred_at=now - timedelta(days=1), kind="Status Change", description="moved"),
            Activity(occurred_at=now - timedelta(days=90), kind="Note Added", description="old"),
        ),
    )
    old = JobApplication(status="Rejected", date_applied=now - timedelta(days=45))

    events = activity_timeline([app, old], now, days=30)
    assert [e.kind for e in events] == ["Application", "Status Change"]
    assert events[0].details == "Applied to Acme (status: Interviewing)"
    assert events[0].occurred_at < events[1].occurred_at


def test_naive_now_against_stored_dates(tracker):
    tracker.add_application("Acme", "Dev", date_applied=datetime(2025, 6, 1))
    naive_now = datetime(2025, 6, 15)

    stats = compute_stats(tracker.list_applications(), naive_now)
    assert stats.recent_applications == 1
    assert stats.applications_by_month == [("2025-06", 1)]
    assert [e.kind for e in activity_timeline(tracker.list_applications(), naive_now)] == [
        "Application"
    ]


def test_naive_application_dates_with_aware_now(now):
    naive_applied = datetime(2025, 6, 10)
    app = JobApplication(
        status="Interviewing",
        date_applied=naive_applied,
        interview_dates=(naive_applied + timedelta(days=3),),
    )
    stats = compute_stats([app], now)
    assert stats.recent_applications == 1
    assert stats.average_response_days == 3
