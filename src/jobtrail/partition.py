"""Split the job collection into the applications and offers lists.

Every caller that needs to know whether a record is an offer goes through
:func:`classify`. Results are recomputed on each call and never cached.
"""
from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple

from .jobs import Job, JobOrigin, JobStatus


class Partition(NamedTuple):
    applications: Tuple[Job, ...]
    offers: Tuple[Job, ...]


def classify(job: Job) -> JobOrigin:
    """Return the list a job belongs to.

    ``origin`` wins when present; legacy records without one are offers only
    while their status is ``Offer``.
    """

    if job.origin is not None:
        return job.origin
    return JobOrigin.OFFER if job.status is JobStatus.OFFER else JobOrigin.APPLICATION


def is_offer(job: Job) -> bool:
    return classify(job) is JobOrigin.OFFER


def partition(jobs: Iterable[Job]) -> Partition:
    """Return ``(applications, offers)`` preserving the input order."""

    applications: List[Job] = []
    offers: List[Job] = []
    for job in jobs:
        (offers if is_offer(job) else applications).append(job)
    return Partition(tuple(applications), tuple(offers))


def active_content_field(job: Job) -> str:
    """Name of the generated-content attribute shown for ``job``."""

    return "interview_guide" if is_offer(job) else "cover_letter"


def active_content(job: Job) -> str:
    return getattr(job, active_content_field(job))
