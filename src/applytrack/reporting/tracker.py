"""SQLite-backed application history, contacts and reminders."""

from __future__ import annotations

import csv
import io
import json
import logging
import sqlite3
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path

from applytrack.exceptions import (
    ApplicationNotFoundError,
    ContactNotFoundError,
    InvalidValueError,
    ReminderNotFoundError,
)
from applytrack.models import (
    Activity,
    ApplicationStatus,
    Contact,
    ContactRole,
    Interaction,
    InteractionKind,
    JobApplication,
    Reminder,
    ReminderPriority,
    RepeatFrequency,
    as_utc,
)
from applytrack.schemas import Benefits, OfferInput

logger = logging.getLogger(__name__)

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS applications (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    company         TEXT NOT NULL,
    title           TEXT NOT NULL,
    location        TEXT DEFAULT '',
    status          TEXT NOT NULL,
    date_applied    TEXT,
    salary          REAL,
    notes           TEXT DEFAULT '',
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS interviews (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    application_id  INTEGER NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
    kind            TEXT DEFAULT 'Other',
    scheduled_at    TEXT,
    completed       INTEGER DEFAULT 0,
    notes           TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS offers (
    application_id      INTEGER PRIMARY KEY REFERENCES applications(id) ON DELETE CASCADE,
    base_salary         REAL,
    bonus               REAL DEFAULT 0,
    health_insurance    INTEGER DEFAULT 0,
    dental_insurance    INTEGER DEFAULT 0,
    vision_insurance    INTEGER DEFAULT 0,
    retirement_401k     INTEGER DEFAULT 0,
    paid_time_off_days  REAL DEFAULT 0,
    remote_work         INTEGER DEFAULT 0,
    flexible_hours      INTEGER DEFAULT 0,
    stock_options       INTEGER DEFAULT 0,
    recorded_at         TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS activities (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    application_id  INTEGER NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
    kind            TEXT NOT NULL,
    description     TEXT DEFAULT '',
    occurred_at     TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS status_history (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    application_id  INTEGER NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
    status          TEXT NOT NULL,
    notes           TEXT DEFAULT '',
    changed_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS contacts (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    name            TEXT NOT NULL,
    company         TEXT NOT NULL,
    role            TEXT NOT NULL,
    email           TEXT DEFAULT '',
    phone           TEXT DEFAULT '',
    notes           TEXT DEFAULT '',
    last_contacted  TEXT,
    created_at      TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS contact_interactions (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    contact_id      INTEGER NOT NULL REFERENCES contacts(id) ON DELETE CASCADE,
    kind            TEXT NOT NULL,
    notes           TEXT NOT NULL,
    occurred_at     TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS contact_applications (
    contact_id      INTEGER NOT NULL REFERENCES contacts(id) ON DELETE CASCADE,
    application_id  INTEGER NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
    PRIMARY KEY (contact_id, application_id)
);

CREATE TABLE IF NOT EXISTS reminders (
    id                  INTEGER PRIMARY KEY AUTOINCREMENT,
    title               TEXT NOT NULL,
    description         TEXT DEFAULT '',
    due_at              TEXT NOT NULL,
    priority            TEXT NOT NULL,
    completed           INTEGER DEFAULT 0,
    repeat_frequency    TEXT NOT NULL,
    application_id      INTEGER REFERENCES applications(id) ON DELETE SET NULL,
    contact_id          INTEGER REFERENCES contacts(id) ON DELETE SET NULL,
    created_at          TEXT NOT NULL
);
"""

_BENEFIT_COLUMNS = (
    "health_insurance",
    "dental_insurance",
    "vision_insurance",
    "retirement_401k",
    "remote_work",
    "flexible_hours",
    "stock_options",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return as_utc(value).isoformat()


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class ApplicationTracker:
    """Persistent job-application store kept in SQLite."""

    def __init__(self, db_path: str | Path) -> None:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_SCHEMA)
        logger.info("Tracker database ready at %s.", db_path)

    # ---- applications ----

    def add_application(
        self,
        company: str,
        title: str,
        status: ApplicationStatus | str = ApplicationStatus.APPLIED,
        location: str = "",
        date_applied: datetime | None = None,
        salary: float | None = None,
        notes: str = "",
    ) -> int:
        """Insert an application and return its ID."""
        status = ApplicationStatus.parse(status)
        now = _now()
        cur = self._conn.execute(
            "INSERT INTO applications (company, title, location, status, date_applied, "
            "salary, notes, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (company, title, location, status.value, _iso(date_applied), salary, notes, now),
        )
        app_id = cur.lastrowid
        self._conn.execute(
            "INSERT INTO status_history (application_id, status, notes, changed_at) "
            "VALUES (?, ?, '', ?)",
            (app_id, status.value, now),
        )
        self._conn.commit()
        return app_id  # type: ignore[return-value]

    def update_status(
        self,
        application_id: int,
        status: ApplicationStatus | str,
        notes: str = "",
    ) -> None:
        """Change the current status, appending to the history and activity log."""
        status = ApplicationStatus.parse(status)
        previous = self._require(application_id)["status"]
        now = _now()
        self._conn.execute(
            "UPDATE applications SET status=? WHERE id=?", (status.value, application_id)
        )
        self._conn.execute(
            "INSERT INTO status_history (application_id, status, notes, changed_at) "
            "VALUES (?, ?, ?, ?)",
            (application_id, status.value, notes, now),
        )
        self._conn.execute(
            "INSERT INTO activities (application_id, kind, description, occurred_at) "
            "VALUES (?, 'Status Change', ?, ?)",
            (application_id, f"Status changed from {previous} to {status.value}", now),
        )
        self._conn.commit()
        logger.info("Application %d: %s -> %s.", application_id, previous, status.value)

    def add_interview(
        self,
        application_id: int,
        scheduled_at: datetime,
        kind: str = "Other",
        completed: bool = False,
        notes: str = "",
    ) -> int:
        self._require(application_id)
        cur = self._conn.execute(
            "INSERT INTO interviews (application_id, kind, scheduled_at, completed, notes) "
            "VALUES (?, ?, ?, ?, ?)",
            (application_id, kind, _iso(scheduled_at), int(completed), notes),
        )
        self._conn.commit()
        return cur.lastrowid  # type: ignore[return-value]

    def record_offer(self, application_id: int, offer: OfferInput) -> None:
        """Store (or replace) the offer details for an application."""
        self._require(application_id)
        b = offer.benefits
        self._conn.execute(
            "INSERT OR REPLACE INTO offers (application_id, base_salary, bonus, "
            + ", ".join(_BENEFIT_COLUMNS)
            + ", paid_time_off_days, recorded_at) VALUES (?, ?, ?, "
            + ", ".join("?" for _ in _BENEFIT_COLUMNS)
            + ", ?, ?)",
            (
                application_id,
                offer.salary,
                offer.bonus,
                *(int(getattr(b, col)) for col in _BENEFIT_COLUMNS),
                b.paid_time_off_days,
                _now(),
            ),
        )
        self._conn.commit()

    def add_activity(
        self,
        application_id: int,
        kind: str,
        description: str = "",
        occurred_at: datetime | None = None,
    ) -> None:
        self._require(application_id)
        when = _iso(occurred_at) or _now()
        self._conn.execute(
            "INSERT INTO activities (application_id, kind, description, occurred_at) "
            "VALUES (?, ?, ?, ?)",
            (application_id, kind, description, when),
        )
        self._conn.commit()

    # ---- queries ----

    def get_application(self, application_id: int) -> dict:
        return dict(self._require(application_id))

    def get_status_history(self, application_id: int) -> list[dict]:
        self._require(application_id)
        cur = self._conn.execute(
            "SELECT status, notes, changed_at FROM status_history "
            "WHERE application_id=? ORDER BY id",
            (application_id,),
        )
        return [dict(r) for r in cur.fetchall()]

    def list_applications(self) -> list[JobApplication]:
        """Snapshot every stored application for the analytics functions."""
        interviews: dict[int, list[datetime]] = defaultdict(list)
        has_interview: set[int] = set()
        for row in self._conn.execute("SELECT application_id, scheduled_at FROM interviews"):
            has_interview.add(row["application_id"])
            when = _parse(row["scheduled_at"])
            if when is not None:
                interviews[row["application_id"]].append(when)

        with_offer = {
            row["application_id"]
            for row in self._conn.execute(
                "SELECT application_id FROM offers WHERE base_salary IS NOT NULL"
            )
        }

        activities: dict[int, list[Activity]] = defaultdict(list)
        for row in self._conn.execute(
            "SELECT application_id, kind, description, occurred_at FROM activities ORDER BY id"
        ):
            activities[row["application_id"]].append(
                Activity(
                    occurred_at=_parse(row["occurred_at"]),  # type: ignore[arg-type]
                    kind=row["kind"],
                    description=row["description"] or "",
                )
            )

        result: list[JobApplication] = []
        for row in self._conn.execute("SELECT * FROM applications ORDER BY id"):
            app_id = row["id"]
            result.append(
                JobApplication(
                    status=row["status"],
                    has_interview_history=app_id in has_interview,
                    has_offer=app_id in with_offer,
                    company=row["company"],
                    title=row["title"],
                    location=row["location"] or "",
                    date_applied=_parse(row["date_applied"]),
                    interview_dates=tuple(sorted(interviews[app_id])),
                    activities=tuple(activities[app_id]),
                )
            )
        return result

    def get_offer_input(self, application_id: int) -> OfferInput:
        """Build a comparison input from the stored offer, or the listed salary."""
        app = self._require(application_id)
        row = self._conn.execute(
            "SELECT * FROM offers WHERE application_id=?", (application_id,)
        ).fetchone()
        display = {"company": app["company"], "role": app["title"], "location": app["location"] or ""}
        if row is None:
            return OfferInput(salary=app["salary"], **display)

        salary = row["base_salary"] if row["base_salary"] is not None else app["salary"]
        benefits = Benefits(
            paid_time_off_days=row["paid_time_off_days"] or 0,
            **{col: bool(row[col]) for col in _BENEFIT_COLUMNS},
        )
        return OfferInput(salary=salary, bonus=row["bonus"] or 0, benefits=benefits, **display)

    # ---- contacts ----

    def add_contact(
        self,
        name: str,
        company: str,
        role: ContactRole | str = ContactRole.RECRUITER,
        email: str = "",
        phone: str = "",
        notes: str = "",
    ) -> int:
        """Insert a contact and return its ID."""
        name, company = name.strip(), company.strip()
        if not name:
            raise InvalidValueError("contact name", name)
        if not company:
            raise InvalidValueError("contact company", company)
        role = ContactRole.parse(role)
        cur = self._conn.execute(
            "INSERT INTO contacts (name, company, role, email, phone, notes, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (name, company, role.value, email, phone, notes, _now()),
        )
        self._conn.commit()
        return cur.lastrowid  # type: ignore[return-value]

    def add_interaction(
        self,
        contact_id: int,
        kind: InteractionKind | str,
        notes: str,
        occurred_at: datetime | None = None,
    ) -> None:
        """Log a conversation with a contact and bump its last-contacted date."""
        kind = InteractionKind.parse(kind)
        if not notes.strip():
            raise InvalidValueError("interaction notes", notes)
        self._require_contact(contact_id)
        when = _iso(occurred_at) or _now()
        self._conn.execute(
            "INSERT INTO contact_interactions (contact_id, kind, notes, occurred_at) "
            "VALUES (?, ?, ?, ?)",
            (contact_id, kind.value, notes, when),
        )
        self._conn.execute("UPDATE contacts SET last_contacted=? WHERE id=?", (when, contact_id))
        self._conn.commit()

    def link_contact(self, contact_id: int, application_id: int) -> bool:
        """Attach a contact to an application.

        Returns False when the two were already linked.
        """
        contact = self._require_contact(contact_id)
        self._require(application_id)
        cur = self._conn.execute(
            "INSERT OR IGNORE INTO contact_applications (contact_id, application_id) VALUES (?, ?)",
            (contact_id, application_id),
        )
        if cur.rowcount == 0:
            return False
        self._conn.execute(
            "INSERT INTO activities (application_id, kind, description, occurred_at) "
            "VALUES (?, 'Contact Added', ?, ?)",
            (
                application_id,
                f"Contact {contact['name']} ({contact['role']}) added to job",
                _now(),
            ),
        )
        self._conn.commit()
        return True

    def get_contact(self, contact_id: int) -> Contact:
        return self._contact_from_row(self._require_contact(contact_id))

    def list_contacts(self, application_id: int | None = None) -> list[Contact]:
        if application_id is None:
            rows = self._conn.execute("SELECT * FROM contacts ORDER BY id").fetchall()
        else:
            rows = self._conn.execute(
                "SELECT c.* FROM contacts c "
                "JOIN contact_applications ca ON ca.contact_id = c.id "
                "WHERE ca.application_id=? ORDER BY c.id",
                (application_id,),
            ).fetchall()
        return [self._contact_from_row(r) for r in rows]

    def delete_contact(self, contact_id: int) -> None:
        """Remove a contact; reminders pointing at it keep existing unlinked."""
        self._require_contact(contact_id)
        self._conn.execute("DELETE FROM contacts WHERE id=?", (contact_id,))
        self._conn.commit()

    # ---- reminders ----

    def add_reminder(
        self,
        title: str,
        due_at: datetime,
        description: str = "",
        priority: ReminderPriority | str = ReminderPriority.MEDIUM,
        repeat_frequency: RepeatFrequency | str = RepeatFrequency.NONE,
        application_id: int | None = None,
        contact_id: int | None = None,
    ) -> int:
        """Insert a reminder and return its ID.

        A reminder tied to an application also lands in that application's
        activity log.
        """
        title = title.strip()
        if not title:
            raise InvalidValueError("reminder title", title)
        priority = ReminderPriority.parse(priority)
        repeat_frequency = RepeatFrequency.parse(repeat_frequency)
        if application_id is not None:
            self._require(application_id)
        if contact_id is not None:
            self._require_contact(contact_id)

        now = _now()
        cur = self._conn.execute(
            "INSERT INTO reminders (title, description, due_at, priority, repeat_frequency, "
            "application_id, contact_id, created_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                title,
                description,
                _iso(due_at),
                priority.value,
                repeat_frequency.value,
                application_id,
                contact_id,
                now,
            ),
        )
        if application_id is not None:
            self._conn.execute(
                "INSERT INTO activities (application_id, kind, description, occurred_at) "
                "VALUES (?, 'Reminder Set', ?, ?)",
                (application_id, f"Reminder set: {title} for {due_at:%Y-%m-%d}", now),
            )
        self._conn.commit()
        return cur.lastrowid  # type: ignore[return-value]

    def complete_reminder(self, reminder_id: int) -> Reminder:
        """Mark a reminder done.

        A repeating reminder stays open and moves to its next due date
        instead. Completing an already completed reminder changes nothing.
        """
        reminder = self.get_reminder(reminder_id)
        if reminder.completed:
            return reminder
        next_due = reminder.repeat_frequency.next_due(reminder.due_at)
        if next_due is None:
            self._conn.execute("UPDATE reminders SET completed=1 WHERE id=?", (reminder_id,))
        else:
            self._conn.execute(
                "UPDATE reminders SET due_at=? WHERE id=?", (_iso(next_due), reminder_id)
            )
            logger.info("Reminder %d rescheduled for %s.", reminder_id, next_due.isoformat())
        if reminder.application_id is not None:
            self._conn.execute(
                "INSERT INTO activities (application_id, kind, description, occurred_at) "
                "VALUES (?, 'Other', ?, ?)",
                (reminder.application_id, f"Completed reminder: {reminder.title}", _now()),
            )
        self._conn.commit()
        return self.get_reminder(reminder_id)

    def get_reminder(self, reminder_id: int) -> Reminder:
        row = self._conn.execute("SELECT * FROM reminders WHERE id=?", (reminder_id,)).fetchone()
        if row is None:
            raise ReminderNotFoundError(f"No reminder with id {reminder_id}")
        return _reminder_from_row(row)

    def list_reminders(
        self,
        completed: bool | None = None,
        application_id: int | None = None,
    ) -> list[Reminder]:
        """Reminders ordered by due date, optionally filtered."""
        query = "SELECT * FROM reminders WHERE 1=1"
        params: list[object] = []
        if completed is not None:
            query += " AND completed=?"
            params.append(int(completed))
        if application_id is not None:
            query += " AND application_id=?"
            params.append(application_id)
        reminders = [_reminder_from_row(r) for r in self._conn.execute(query, params)]
        reminders.sort(key=lambda r: (r.due_at, r.id))
        return reminders

    def upcoming_reminders(self, now: datetime, hours: int = 24) -> list[Reminder]:
        """Open reminders due between *now* and *hours* later, soonest first."""
        start = as_utc(now)
        end = start + timedelta(hours=hours)
        return [r for r in self.list_reminders(completed=False) if start <= r.due_at <= end]

    def delete_reminder(self, reminder_id: int) -> None:
        self.get_reminder(reminder_id)
        self._conn.execute("DELETE FROM reminders WHERE id=?", (reminder_id,))
        self._conn.commit()

    # ---- export ----

    def export_json(self, since_date: str = "") -> str:
        """Export applications as JSON (for UI consumption)."""
        query = (
            "SELECT a.id, a.company, a.title, a.location, a.status, a.date_applied, "
            "a.salary, o.base_salary AS offer_salary "
            "FROM applications a LEFT JOIN offers o ON o.application_id = a.id "
        )
        params: list[str] = []
        if since_date:
            query += "WHERE a.date_applied >= ? "
            params.append(since_date)
        query += "ORDER BY a.date_applied DESC, a.id DESC"
        cur = self._conn.execute(query, params)
        rows = [dict(r) for r in cur.fetchall()]
        return json.dumps(rows, indent=2)

    def export_csv(self, since_date: str = "") -> str:
        """Export applications as CSV string."""
        data = json.loads(self.export_json(since_date))
        if not data:
            return ""
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=list(data[0].keys()), lineterminator="\n")
        writer.writeheader()
        writer.writerows(data)
        return buf.getvalue()

    def close(self) -> None:
        self._conn.close()

    # ---- internals ----

    def _require(self, application_id: int) -> sqlite3.Row:
        row = self._conn.execute(
            "SELECT * FROM applications WHERE id=?", (application_id,)
        ).fetchone()
        if row is None:
            raise ApplicationNotFoundError(f"No application with id {application_id}")
        return row

    def _require_contact(self, contact_id: int) -> sqlite3.Row:
        row = self._conn.execute("SELECT * FROM contacts WHERE id=?", (contact_id,)).fetchone()
        if row is None:
            raise ContactNotFoundError(f"No contact with id {contact_id}")
        return row

    def _contact_from_row(self, row: sqlite3.Row) -> Contact:
        interactions = tuple(
            Interaction(
                occurred_at=_parse(r["occurred_at"]),  # type: ignore[arg-type]
                kind=InteractionKind.parse(r["kind"]),
                notes=r["notes"],
            )
            for r in self._conn.execute(
                "SELECT kind, notes, occurred_at FROM contact_interactions "
                "WHERE contact_id=? ORDER BY id",
                (row["id"],),
            )
        )
        application_ids = tuple(
            r["application_id"]
            for r in self._conn.execute(
                "SELECT application_id FROM contact_applications "
                "WHERE contact_id=? ORDER BY application_id",
                (row["id"],),
            )
        )
        return Contact(
            id=row["id"],
            name=row["name"],
            company=row["company"],
            role=ContactRole.parse(row["role"]),
            email=row["email"] or "",
            phone=row["phone"] or "",
            notes=row["notes"] or "",
            last_contacted=_parse(row["last_contacted"]),
            application_ids=application_ids,
            interactions=interactions,
        )


def _reminder_from_row(row: sqlite3.Row) -> Reminder:
    return Reminder(
        id=row["id"],
        title=row["title"],
        due_at=_parse(row["due_at"]),  # type: ignore[arg-type]
        description=row["description"] or "",
        priority=ReminderPriority.parse(row["priority"]),
        completed=bool(row["completed"]),
        repeat_frequency=RepeatFrequency.parse(row["repeat_frequency"]),
        application_id=row["application_id"],
        contact_id=row["contact_id"],
    )
