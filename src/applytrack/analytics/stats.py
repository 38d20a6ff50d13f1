"""Aggregate statistics and activity timeline over stored applications."""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Sequence

from applytrack.analytics.flow import reconstruct_flow
from applytrack.models import (
    ApplicationStats,
    ApplicationStatus,
    JobApplication,
    TimelineEvent,
    as_utc,
    shift_months,
)

_INTERVIEWED = frozenset(
    {
        ApplicationStatus.INTERVIEWING,
        ApplicationStatus.OFFER_RECEIVED,
        ApplicationStatus.ACCEPTED,
    }
)
_OFFERED = frozenset({ApplicationStatus.OFFER_RECEIVED, ApplicationStatus.ACCEPTED})


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def average_response_days(applications: Sequence[JobApplication]) -> int | None:
    """Mean whole days from applying to the first interview, or ``None``."""
    spans: list[int] = []
    for app in applications:
        if app.date_applied is None or not app.interview_dates:
            continue
        first = min(as_utc(d) for d in app.interview_dates)
        days = (first - as_utc(app.date_applied)).days
        if days >= 0:
            spans.append(days)
    if not spans:
        return None
    return _round_half_up(sum(spans) / len(spans))


def applications_by_month(
    applications: Sequence[JobApplication],
    now: datetime,
    months: int = 6,
) -> list[tuple[str, int]]:
    cutoff = shift_months(as_utc(now), -months)
    buckets: Counter[str] = Counter(
        app.date_applied.strftime("%Y-%m")
        for app in applications
        if app.date_applied is not None and as_utc(app.date_applied) >= cutoff
    )
    return sorted(buckets.items())


def compute_stats(
    applications: Sequence[JobApplication],
    now: datetime,
    recent_days: int = 30,
    months: int = 6,
) -> ApplicationStats:
    """Summarise *applications* relative to *now*.

    Statuses are validated up front; an unknown value raises
    :class:`InvalidStatusError` before any figure is computed. Naive datetimes,
    *now* included, are read as UTC.
    """
    now = as_utc(now)
    statuses = [ApplicationStatus.parse(app.status) for app in applications]
    total = len(applications)
    counts = Counter(status.value for status in statuses)

    recent_cutoff = now - timedelta(days=recent_days)
    recent = sum(
        1
        for app in applications
        if app.date_applied is not None and as_utc(app.date_applied) >= recent_cutoff
    )
    offers = sum(1 for s in statuses if s in _OFFERED)

    return ApplicationStats(
        total_applications=total,
        recent_applications=recent,
        total_interviews=sum(1 for s in statuses if s in _INTERVIEWED),
        total_offers=offers,
        rejection_rate=_percent(counts.get(ApplicationStatus.REJECTED.value, 0), total),
        success_rate=_percent(offers, total),
        average_response_days=average_response_days(applications),
        status_counts=dict(counts),
        applications_by_month=applications_by_month(applications, now, months),
        flow=reconstruct_flow(applications),
    )


def activity_timeline(
    applications: Sequence[JobApplication],
    now: datetime,
    days: int = 30,
) -> list[TimelineEvent]:
    """Application and activity events from the last *days* days, oldest first."""
    start = as_utc(now) - timedelta(days=days)
    events: list[TimelineEvent] = []
    for app in applications:
        applied = as_utc(app.date_applied) if app.date_applied is not None else None
        if applied is not None and applied >= start:
            status = ApplicationStatus.parse(app.status).value
            target = app.company or "a job"
            events.append(
                TimelineEvent(
                    occurred_at=applied,
                    kind="Application",
                    details=f"Applied to {target} (status: {status})",
                )
            )
        for activity in app.activities:
            occurred = as_utc(activity.occurred_at)
            if occurred >= start:
                events.append(
                    TimelineEvent(
                        occurred_at=occurred,
                        kind=activity.kind,
                        details=activity.description,
                    )
                )
    events.sort(key=lambda e: e.occurred_at)
    return events
