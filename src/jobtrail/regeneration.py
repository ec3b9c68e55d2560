"""Fill and refresh the generated content shown for each job.

Applications carry a cover letter and offers an interview guide. A failed
generation never surfaces as an exception here; the active field receives a
fixed placeholder instead so the record always ends up with some text.
"""
from __future__ import annotations

from typing import Protocol, Set

from .jobs import Job
from .log import get_logger
from .partition import active_content_field, is_offer
from .store import JobStore, UnknownJobError

log = get_logger(__name__)

COVER_LETTER_PLACEHOLDER = "Error generating cover letter."
INTERVIEW_GUIDE_PLACEHOLDER = "Error generating interview guide."


class RegenerationInProgressError(RuntimeError):
    """Raised when a job already has a generation request outstanding."""


class ContentGenerator(Protocol):
    async def generate_cover_letter(self, company: str, role: str, description: str) -> str: ...

    async def generate_interview_guide(self, company: str, role: str, description: str) -> str: ...


def placeholder_for(job: Job) -> str:
    return INTERVIEW_GUIDE_PLACEHOLDER if is_offer(job) else COVER_LETTER_PLACEHOLDER


class RegenerationController:
    """Run at most one generation per job and write results through the store."""

    def __init__(self, store: JobStore, generator: ContentGenerator) -> None:
        self.store = store
        self.generator = generator
        self._in_flight: Set[str] = set()

    def is_generating(self, job_id: str) -> bool:
        return self.store.record_key(job_id) in self._in_flight

    async def _generate(self, job: Job, *, blank_description: str) -> str:
        description = job.description.strip() or blank_description
        try:
            if is_offer(job):
                text = await self.generator.generate_interview_guide(job.company, job.role, description)
            else:
                text = await self.generator.generate_cover_letter(job.company, job.role, description)
        except Exception as exc:
            log.warning("Generation failed for %s @ %s, using placeholder: %s", job.role, job.company, exc)
            return placeholder_for(job)
        if not text or not text.strip():
            log.warning("Generation for %s @ %s came back empty, using placeholder", job.role, job.company)
            return placeholder_for(job)
        return text

    async def prepare(self, job: Job) -> Job:
        """Return ``job`` with its active content generated (or the placeholder)."""

        blank = "General Role" if is_offer(job) else "General Application"
        text = await self._generate(job, blank_description=blank)
        return job.with_changes(**{active_content_field(job): text})

    async def create(self, job: Job) -> Job:
        """Generate content for a new job, then add it to the store."""

        prepared = await self.prepare(job)
        return await self.store.add(prepared)

    async def regenerate(self, job_id: str, *, observing_chat: bool = False) -> Job:
        """Regenerate the active content of a stored job.

        Raises :class:`RegenerationInProgressError` while a previous request for
        the same job is still running.
        """

        job = self.store.get(job_id)
        if job is None:
            raise UnknownJobError(job_id)
        key = self.store.record_key(job.id)
        if key in self._in_flight:
            raise RegenerationInProgressError(f"Content for {job.role} at {job.company} is already being generated")

        field = active_content_field(job)
        self._in_flight.add(key)
        try:
            text = await self._generate(job, blank_description=job.description)
            # the store copy may have been edited or reconciled while generating;
            # the text still belongs to the field it was generated for
            latest = self.store.get(job.id)
            if latest is None:
                raise UnknownJobError(job.id)
            updated = latest.with_changes(**{field: text})
            return await self.store.update(updated, observing_chat=observing_chat)
        finally:
            self._in_flight.discard(key)
