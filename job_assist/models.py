"""
Domain records handed to the prompt builders.

The tracker stores these elsewhere; here they arrive as JSON objects and are
turned into dataclasses with `from_dict()`. Dates are ISO-8601 strings on the
wire and `datetime` / `date` values once parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime, timezone
from typing import List, Optional

STATUS_LABELS = {
    "pending":     "Pending",
    "in_progress": "In progress",
    "accepted":    "Accepted",
    "rejected":    "Rejected",
}


@dataclass
class Company:
    """The employer behind an application."""

    name: str
    sector: str = ""
    website: str = ""
    company_id: str = ""

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Company"]:
        if not data:
            return None
        return cls(
            name=(data.get("name") or "").strip(),
            sector=(data.get("sector") or "").strip(),
            website=(data.get("website") or "").strip(),
            company_id=str(data.get("id") or ""),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Activity:
    """One entry of an application's history (email sent, call, interview …)."""

    description: str
    created_at: datetime
    kind: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Activity":
        created = _parse_datetime(data.get("created_at"))
        if created is None:
            raise ValueError("activity.created_at is required")
        return cls(
            description=(data.get("description") or "").strip(),
            created_at=created,
            kind=(data.get("type") or "").strip(),
        )


@dataclass
class Application:
    """A job application as stored by the tracker."""

    title: str
    status: str = "pending"
    company: Optional[Company] = None
    location: str = ""
    salary_range: str = ""
    job_url: str = ""
    notes: str = ""
    applied_at: Optional[date] = None
    deadline: Optional[date] = None
    application_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Application":
        return cls(
            title=(data.get("title") or "").strip(),
            status=(data.get("status") or "pending").strip(),
            company=Company.from_dict(data.get("company")),
            location=(data.get("location") or "").strip(),
            salary_range=(data.get("salary_range") or "").strip(),
            job_url=(data.get("job_url") or "").strip(),
            notes=(data.get("notes") or "").strip(),
            applied_at=_parse_date(data.get("applied_at")),
            deadline=_parse_date(data.get("deadline")),
            application_id=str(data.get("id") or ""),
        )

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, self.status or "Unknown")

    @property
    def company_name(self) -> str:
        return self.company.name if self.company and self.company.name else ""


@dataclass
class Document:
    """A CV or cover letter written by the user."""

    type: str
    content: str
    title: str = ""
    document_id: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Document":
        content = data.get("content") or ""
        if not isinstance(content, str):
            raise ValueError("document.content must be a string")
        return cls(
            type=(data.get("type") or "").strip(),
            content=content,
            title=(data.get("title") or "").strip(),
            document_id=str(data.get("id") or ""),
        )


# ── application helpers ───────────────────────────────────────

def last_interaction(activities: List[Activity]) -> Optional[Activity]:
    """Most recent activity, or None when there is no history."""
    if not activities:
        return None
    return max(activities, key=lambda a: a.created_at)


def days_since_last_interaction(
    activities: List[Activity], now: Optional[datetime] = None
) -> Optional[int]:
    """Whole days between the latest activity and `now`."""
    last = last_interaction(activities)
    if last is None:
        return None
    now = now or datetime.now(timezone.utc)
    return abs(now - last.created_at).days


def days_until_deadline(application: Application, today: Optional[date] = None) -> Optional[int]:
    """Days left before the deadline; negative once it has passed."""
    if application.deadline is None:
        return None
    today = today or date.today()
    return (application.deadline - today).days


def days_since_applied(application: Application, today: Optional[date] = None) -> Optional[int]:
    if application.applied_at is None:
        return None
    today = today or date.today()
    return (today - application.applied_at).days


# ── parsing ───────────────────────────────────────────────────

def _parse_datetime(value) -> Optional[datetime]:
    """ISO-8601 string → aware datetime (naive values are taken as UTC)."""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value) -> Optional[date]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value)
    if "T" in text or " " in text:
        return _parse_datetime(text).date()
    return date.fromisoformat(text)
