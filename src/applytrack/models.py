"""Domain models for applytrack."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from applytrack.exceptions import InvalidStatusError, InvalidValueError


def as_utc(moment: datetime) -> datetime:
    """Attach UTC to a naive *moment*; aware values pass through unchanged."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def shift_months(moment: datetime, months: int) -> datetime:
    """Move *moment* by whole calendar months, clamping the day to the month's end."""
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ApplicationStatus(str, Enum):
    """Status a job application can hold."""

    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER_RECEIVED = "Offer Received"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    NOT_APPLIED = "Not Applied"

    @classmethod
    def parse(cls, value: ApplicationStatus | str) -> ApplicationStatus:
        """Resolve *value* to a member, tolerating case and missing spaces.

        Raises :class:`InvalidStatusError` for anything unrecognised.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
            key = value.replace(" ", "").replace("_", "").lower()
            for member in cls:
                if member.value.replace(" ", "").lower() == key:
                    return member
        raise InvalidStatusError(value)


class PipelineStage(str, Enum):
    """Node of the application funnel."""

    APPLIED = "Applied"
    INTERVIEWING = "Interviewing"
    OFFER_RECEIVED = "Offer Received"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    WITHDRAWN = "Withdrawn"
    PENDING = "Pending"  # still at Applied with no further movement


def _choice_key(value: str) -> str:
    return value.replace(" ", "").replace("_", "").replace("-", "").lower()


class _Choice(str, Enum):
    @classmethod
    def parse(cls, value: Any) -> Any:
        """Resolve *value* to a member, ignoring case, spaces and hyphens."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = _choice_key(value)
            for member in cls:
                if _choice_key(member.value) == key:
                    return member
        raise InvalidValueError(cls._field_name(), value)

    @classmethod
    def _field_name(cls) -> str:
        return cls.__name__


class ReminderPriority(_Choice):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def _field_name(cls) -> str:
        return "reminder priority"


class RepeatFrequency(_Choice):
    """How often a reminder comes back once completed."""

    NONE = "None"
    DAILY = "Daily"
    WEEKLY = "Weekly"
    BIWEEKLY = "Bi-weekly"
    MONTHLY = "Monthly"

    @classmethod
    def _field_name(cls) -> str:
        return "repeat frequency"

    def next_due(self, due_at: datetime) -> datetime | None:
        """Following due date, or ``None`` for a one-off reminder."""
        if self is RepeatFrequency.DAILY:
            return due_at + timedelta(days=1)
        if self is RepeatFrequency.WEEKLY:
            return due_at + timedelta(days=7)
        if self is RepeatFrequency.BIWEEKLY:
            return due_at + timedelta(days=14)
        if self is RepeatFrequency.MONTHLY:
            return shift_months(due_at, 1)
        return None


class ContactRole(_Choice):
    RECRUITER = "Recruiter"
    HIRING_MANAGER = "Hiring Manager"
    HR = "HR"
    TEAM_MEMBER = "Team Member"
    OTHER = "Other"

    @classmethod
    def _field_name(cls) -> str:
        return "contact role"


class InteractionKind(_Choice):
    EMAIL = "Email"
    PHONE = "Phone"
    VIDEO_CALL = "Video Call"
    IN_PERSON = "In-person"
    OTHER = "Other"

    @classmethod
    def _field_name(cls) -> str:
        return "interaction type"


@dataclass(frozen=True)
class Activity:
    """Single entry in an application's activity log."""

    occurred_at: datetime
    kind: str = "Other"
    description: str = ""


@dataclass(frozen=True)
class JobApplication:
    """Read-only snapshot of a stored application."""

    status: ApplicationStatus | str
    has_interview_history: bool = False
    has_offer: bool = False
    company: str = ""
    title: str = ""
    location: str = ""
    date_applied: datetime | None = None
    interview_dates: tuple[datetime, ...] = ()
    activities: tuple[Activity, ...] = ()


@dataclass(frozen=True)
class FlowEdge:
    """Inferred transition between two stages."""

    source: PipelineStage
    target: PipelineStage
    count: int


@dataclass(frozen=True)
class FlowGraph:
    """Directed, weighted funnel of application transitions."""

    nodes: frozenset[PipelineStage] = frozenset()
    edges: tuple[FlowEdge, ...] = ()

    def count(self, source: PipelineStage, target: PipelineStage) -> int:
        for edge in self.edges:
            if edge.source is source and edge.target is target:
                return edge.count
        return 0

    @property
    def is_empty(self) -> bool:
        return not self.edges

    def to_dict(self) -> dict[str, Any]:
        """Sankey payload: ``{"nodes": [...], "links": [...]}``."""
        ordered = [stage for stage in PipelineStage if stage in self.nodes]
        return {
            "nodes": [{"id": s.value, "name": s.value} for s in ordered],
            "links": [
                {"source": e.source.value, "target": e.target.value, "value": e.count}
                for e in self.edges
            ],
        }


@dataclass(frozen=True)
class TimelineEvent:
    """One row of the activity timeline."""

    occurred_at: datetime
    kind: str
    details: str


@dataclass
class ApplicationStats:
    """Aggregate numbers for a user's applications."""

    total_applications: int = 0
    recent_applications: int = 0
    total_interviews: int = 0
    total_offers: int = 0
    rejection_rate: float = 0.0
    success_rate: float = 0.0
    average_response_days: int | None = None
    status_counts: dict[str, int] = field(default_factory=dict)
    applications_by_month: list[tuple[str, int]] = field(default_factory=list)
    flow: FlowGraph = field(default_factory=FlowGraph)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalApplications": self.total_applications,
            "recentApplications": self.recent_applications,
            "totalInterviews": self.total_interviews,
            "totalOffers": self.total_offers,
            "rejectionRate": self.rejection_rate,
            "successRate": self.success_rate,
            "averageResponseDays": self.average_response_days,
            "statusCounts": dict(self.status_counts),
            "applicationsByMonth": [
                {"date": month, "count": count} for month, count in self.applications_by_month
            ],
            "sankeyData": self.flow.to_dict(),
        }


@dataclass(frozen=True)
class Reminder:
    """Follow-up task, optionally tied to an application or a contact."""

    id: int
    title: str
    due_at: datetime
    description: str = ""
    priority: ReminderPriority = ReminderPriority.MEDIUM
    completed: bool = False
    repeat_frequency: RepeatFrequency = RepeatFrequency.NONE
    application_id: int | None = None
    contact_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "dueDate": self.due_at.isoformat(),
            "priority": self.priority.value,
            "completed": self.completed,
            "repeatFrequency": self.repeat_frequency.value,
            "applicationId": self.application_id,
            "contactId": self.contact_id,
        }


@dataclass(frozen=True)
class Interaction:
    occurred_at: datetime
    kind: InteractionKind
    notes: str


@dataclass(frozen=True)
class Contact:
    """Person met during the search, with the applications they relate to."""

    id: int
    name: str
    company: str
    role: ContactRole = ContactRole.RECRUITER
    email: str = ""
    phone: str = ""
    notes: str = ""
    last_contacted: datetime | None = None
    application_ids: tuple[int, ...] = ()
    interactions: tuple[Interaction, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "role": self.role.value,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "lastContacted": self.last_contacted.isoformat() if self.last_contacted else None,
            "applicationIds": list(self.application_ids),
            "interactions": [
                {"date": i.occurred_at.isoformat(), "type": i.kind.value, "notes": i.notes}
                for i in self.interactions
            ],
        }
