"""Summary figures for the dashboard."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .jobs import Job, JobOrigin, JobStatus
from .partition import classify


@dataclass
class ActivityDay:
    day: str
    applications: int = 0
    offers: int = 0


@dataclass
class JobStats:
    total_applications: int
    by_status: Dict[JobStatus, int]
    accepted: Tuple[Job, ...]
    activity: List[ActivityDay] = field(default_factory=list)

    @property
    def interviewing(self) -> int:
        return self.by_status[JobStatus.INTERVIEW]

    @property
    def offers(self) -> int:
        return self.by_status[JobStatus.OFFER]

    @property
    def rejected(self) -> int:
        return self.by_status[JobStatus.REJECTED]


def summarize(jobs: Iterable[Job], *, days: int = 7, today: Optional[date] = None) -> JobStats:
    """Count jobs per status and per day over the trailing ``days`` window.

    Applications are counted on their ``date_applied``; records in ``Offer`` or
    ``Accepted`` status count towards the offers series on the same date.
    """

    if days <= 0:
        raise ValueError("days must be positive")
    jobs = list(jobs)
    today = today or date.today()

    statuses = Counter(job.status for job in jobs)
    by_status = {status: statuses.get(status, 0) for status in JobStatus}

    applications_by_day: Counter = Counter()
    offers_by_day: Counter = Counter()
    for job in jobs:
        if not job.date_applied:
            continue
        if classify(job) is JobOrigin.APPLICATION:
            applications_by_day[job.date_applied] += 1
        if job.status in (JobStatus.OFFER, JobStatus.ACCEPTED):
            offers_by_day[job.date_applied] += 1

    activity = []
    for offset in range(days - 1, -1, -1):
        day = (today - timedelta(days=offset)).isoformat()
        activity.append(ActivityDay(day=day, applications=applications_by_day[day], offers=offers_by_day[day]))

    return JobStats(
        total_applications=sum(1 for job in jobs if classify(job) is JobOrigin.APPLICATION),
        by_status=by_status,
        accepted=tuple(job for job in jobs if job.status is JobStatus.ACCEPTED),
        activity=activity,
    )
