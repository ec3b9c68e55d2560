"""Job records tracked by the application, and their status/origin taxonomy.

A :class:`Job` is immutable; edits go through :meth:`Job.with_changes` so the
store can keep the only authoritative copy of each record. Persistence rows use
snake_case names, which match the attribute names one-to-one. Rows written by
the camelCase web front-end are still accepted when loading.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class JobStatus(str, Enum):
    """Narrative progression of a job record; not strictly linear."""

    APPLIED = "Applied"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    DRAFT = "Draft"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for member in cls:
            if member.value.lower() == text.lower() or member.name.lower() == text.lower():
                return member
        raise ValueError(f"Unknown job status: {value!r}")


class JobOrigin(str, Enum):
    """Which of the two logical lists a record was created in."""

    APPLICATION = "application"
    OFFER = "offer"

    @classmethod
    def parse(cls, value: Any) -> Optional["JobOrigin"]:
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return None


# camelCase aliases emitted by the original web client
_CAMEL_ALIASES = {
    "date_applied": "dateApplied",
    "cover_letter": "coverLetter",
    "interview_guide": "interviewGuide",
}


@dataclass(frozen=True)
class Job:
    """A single job-search record."""

    id: str
    company: str
    role: str
    status: JobStatus
    date_applied: str
    origin: Optional[JobOrigin] = None
    location: str = ""
    salary: str = ""
    email: str = ""
    description: str = ""
    cover_letter: str = ""
    interview_guide: str = ""

    def with_changes(self, **changes: Any) -> "Job":
        """Return a copy with ``changes`` applied; status/origin strings are coerced."""

        if "status" in changes:
            changes["status"] = JobStatus.parse(changes["status"])
        if "origin" in changes and changes["origin"] is not None:
            changes["origin"] = JobOrigin.parse(changes["origin"])
        return replace(self, **changes)

    def to_record(self) -> Dict[str, Any]:
        """Serialise to the persistence row shape (``id`` excluded)."""

        record = asdict(self)
        record.pop("id")
        record["status"] = self.status.value
        record["origin"] = self.origin.value if self.origin else None
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Job":
        """Hydrate a job from a persistence row, tolerating missing or legacy fields."""

        def text(key: str) -> str:
            value = record.get(key)
            if value is None and key in _CAMEL_ALIASES:
                value = record.get(_CAMEL_ALIASES[key])
            return "" if value is None else str(value)

        try:
            status = JobStatus.parse(record.get("status"))
        except ValueError:
            status = JobStatus.APPLIED

        return cls(
            id=text("id"),
            company=text("company"),
            role=text("role"),
            status=status,
            date_applied=text("date_applied"),
            origin=JobOrigin.parse(record.get("origin")),
            location=text("location"),
            salary=text("salary"),
            email=text("email"),
            description=text("description"),
            cover_letter=text("cover_letter"),
            interview_guide=text("interview_guide"),
        )


def new_job(
    company: str,
    role: str,
    *,
    origin: JobOrigin = JobOrigin.APPLICATION,
    status: Optional[JobStatus] = None,
    location: str = "",
    salary: str = "",
    email: str = "",
    description: str = "",
    date_applied: Optional[str] = None,
) -> Job:
    """Build a draft job with the creation defaults applied.

    Applications start as ``Applied`` and offers as ``Offer``. Blank locations
    and salaries get the same placeholders the entry form used.
    """

    origin = JobOrigin.parse(origin) or JobOrigin.APPLICATION
    if status is None:
        status = JobStatus.OFFER if origin is JobOrigin.OFFER else JobStatus.APPLIED
    return Job(
        id="",
        company=company.strip(),
        role=role.strip(),
        status=JobStatus.parse(status),
        date_applied=date_applied or date.today().isoformat(),
        origin=origin,
        location=location.strip() or "Remote",
        salary=salary.strip() or "Negotiable",
        email=email.strip(),
        description=description or "",
    )
