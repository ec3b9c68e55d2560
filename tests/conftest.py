"""Shared fakes for the persistence and generation boundaries."""

import asyncio
from typing import Dict, List, Optional, Set

import pytest

from jobtrail.jobs import Job, JobOrigin, JobStatus


class FakeJobService:
    """In-memory job service whose calls can be failed or held open."""

    def __init__(self, rows: Optional[List[dict]] = None):
        # kept oldest-first; list() returns newest-first like the real services
        self.rows: Dict[str, dict] = {row["id"]: dict(row) for row in rows or []}
        self.calls: List[tuple] = []
        self.fail_on: Set[str] = set()
        self.gates: Dict[str, asyncio.Event] = {}
        self.resume: Optional[dict] = None
        self.resume_saves: List[dict] = []
        self._counter = 0

    def hold(self, operation: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[operation] = gate
        return gate

    async def _run(self, operation: str) -> None:
        gate = self.gates.get(operation)
        if gate is not None:
            await gate.wait()
        if operation in self.fail_on:
            raise ConnectionError(f"{operation} failed")

    async def create(self, record):
        self.calls.append(("create", None, dict(record)))
        await self._run("create")
        self._counter += 1
        job_id = f"job-{self._counter}"
        self.rows[job_id] = dict(record, id=job_id)
        return job_id

    async def update(self, job_id, record):
        self.calls.append(("update", job_id, dict(record)))
        await self._run("update")
        self.rows[job_id] = dict(record, id=job_id)

    async def delete(self, job_id):
        self.calls.append(("delete", job_id, None))
        await self._run("delete")
        self.rows.pop(job_id, None)

    async def list(self):
        self.calls.append(("list", None, None))
        await self._run("list")
        return list(reversed(list(self.rows.values())))

    async def load_resume(self):
        return self.resume

    async def save_resume(self, record):
        self.resume_saves.append(record)
        await self._run("save_resume")
        self.resume = record

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls if call[0] != "list"]


class FakeGenerator:
    """Stand-in for the AI content generator."""

    def __init__(self, *, fail: bool = False, text: str = "Generated text"):
        self.fail = fail
        self.text = text
        self.requests: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None

    async def _produce(self, kind, company, role, description):
        self.requests.append((kind, company, role, description))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("generation backend unavailable")
        return f"{self.text} ({kind})" if self.text else self.text

    async def generate_cover_letter(self, company, role, description):
        return await self._produce("cover_letter", company, role, description)

    async def generate_interview_guide(self, company, role, description):
        return await self._produce("interview_guide", company, role, description)


def make_job(
    job_id: str = "",
    *,
    company: str = "Acme",
    role: str = "Engineer",
    status: JobStatus = JobStatus.APPLIED,
    origin: Optional[JobOrigin] = JobOrigin.APPLICATION,
    description: str = "Build things",
) -> Job:
    return Job(
        id=job_id,
        company=company,
        role=role,
        status=status,
        date_applied="2026-10-01",
        origin=origin,
        location="Remote",
        salary="Negotiable",
        description=description,
    )


def row_for(job: Job) -> dict:
    return dict(job.to_record(), id=job.id)


@pytest.fixture
def service():
    return FakeJobService()
