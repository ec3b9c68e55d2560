"""Authoritative in-memory collection of job records.

Every mutation is applied to the local collection first and only then handed
to the persistence service. Readers therefore see the optimistic state
immediately, and nothing suspends between a mutation and its local effect.

Failure policy differs by operation:

* ``add`` is rolled back when the remote create fails.
* ``update`` and ``delete`` keep their local effect; the error is raised to the
  caller and the remote copy may lag until the next :meth:`JobStore.load`.

Remote calls for one logical record run one at a time in the order they were
issued, including calls made while the record still carries its temporary id.
Locally the last applied mutation wins, and remotely the last issued write wins.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple
from uuid import uuid4

from .jobs import Job
from .log import get_logger
from .notifier import TransitionNotifier
from .persistence import JobService, PersistenceError

log = get_logger(__name__)

TEMP_PREFIX = "local-"


class UnknownJobError(KeyError):
    """Raised when an operation targets an id the store does not hold."""


def is_temporary_id(job_id: str) -> bool:
    return job_id.startswith(TEMP_PREFIX)


class JobStore:
    """Owns the job collection (newest first) and its optimistic writes."""

    def __init__(self, service: JobService, *, notifier: Optional[TransitionNotifier] = None) -> None:
        self.service = service
        self.notifier = notifier
        self._jobs: List[Job] = []
        # temporary id -> id assigned by the service
        self._aliases: Dict[str, str] = {}
        # service id -> temporary id it replaced; both share one lock key
        self._keys: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}

    @property
    def jobs(self) -> Tuple[Job, ...]:
        return tuple(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def get(self, job_id: str) -> Optional[Job]:
        index = self._index(job_id)
        return self._jobs[index] if index is not None else None

    def record_key(self, job_id: str) -> str:
        """Stable key for a record, the same before and after its id is reconciled."""

        return self._key(self._resolve(job_id))

    def is_pending(self, job_id: str) -> bool:
        """True while a remote write for this record has not resolved."""

        return self._pending.get(self.record_key(job_id), 0) > 0

    def pending_ids(self) -> List[str]:
        return [job.id for job in self._jobs if self.is_pending(job.id)]

    async def load(self) -> Tuple[Job, ...]:
        """Replace the collection with the rows held by the service."""

        if self._pending:
            log.warning("Reloading jobs with %d record(s) still syncing", len(self._pending))
        try:
            rows = await self.service.list()
        except Exception as exc:
            log.error("Loading jobs failed: %s", exc)
            raise PersistenceError(f"Could not load jobs: {exc}") from exc
        self._jobs = [Job.from_record(row) for row in rows]
        # aliases still referenced by an in-flight write stay until it settles
        live = set(self._pending)
        self._aliases = {temp: remote for temp, remote in self._aliases.items() if temp in live}
        self._keys = {remote: temp for remote, temp in self._keys.items() if temp in live}
        log.info("Loaded %d job(s)", len(self._jobs))
        return self.jobs

    async def add(self, job: Job) -> Job:
        """Insert ``job`` at the head, then swap in the service id once created.

        If the create call fails the record is removed again and
        :class:`PersistenceError` is raised.
        """

        temp_id = f"{TEMP_PREFIX}{uuid4().hex}"
        self._jobs.insert(0, job.with_changes(id=temp_id))
        record = job.to_record()

        async with self._writing(temp_id):
            try:
                remote_id = await self.service.create(record)
            except Exception as exc:
                self._jobs = [existing for existing in self._jobs if existing.id != temp_id]
                log.error("Creating %s @ %s failed, reverted: %s", job.role, job.company, exc)
                raise PersistenceError(f"Could not save {job.role} at {job.company}: {exc}") from exc

            index = self._position(temp_id)
            self._aliases[temp_id] = remote_id
            self._keys[remote_id] = temp_id
            if index is None:
                # deleted locally while the create was in flight; the queued delete removes the row
                log.info("Job %s was deleted before its creation was confirmed", remote_id)
                return job.with_changes(id=remote_id)
            reconciled = self._jobs[index].with_changes(id=remote_id)
            self._jobs[index] = reconciled
            log.debug("Created job %s (%s @ %s)", remote_id, job.role, job.company)
            return reconciled

    async def update(self, job: Job, *, observing_chat: bool = False) -> Job:
        """Replace the stored record with ``job`` and persist it.

        A status change is reported to the notifier before anything is sent to
        the service. Remote failures are raised but not rolled back. The
        creation date is never changed by an update.
        """

        index = self._index(job.id)
        if index is None:
            raise UnknownJobError(job.id)
        previous = self._jobs[index]
        current = job.with_changes(id=previous.id, date_applied=previous.date_applied)
        self._jobs[index] = current
        if self.notifier is not None and previous.status is not current.status:
            self.notifier.status_changed(previous, current, observing_chat=observing_chat)

        record = current.to_record()
        async with self._writing(current.id):
            remote_id = self._remote_id(current.id)
            if remote_id is None:
                log.warning("Update to %s dropped: the job was never created remotely", current.id)
                raise PersistenceError(f"Job {current.id} was not saved, so the update could not be stored")
            try:
                await self.service.update(remote_id, record)
            except Exception as exc:
                log.error("Updating job %s failed (local change kept): %s", remote_id, exc)
                raise PersistenceError(
                    f"Could not save changes to {current.role} at {current.company}: {exc}"
                ) from exc
        return current.with_changes(id=remote_id)

    async def delete(self, job_id: str) -> None:
        """Remove the record locally and from the service; no rollback on failure."""

        index = self._index(job_id)
        local_id = self._resolve(job_id)
        if index is not None:
            local_id = self._jobs[index].id
            del self._jobs[index]
        else:
            log.debug("Delete for %s which is not held locally", job_id)

        async with self._writing(local_id):
            remote_id = self._remote_id(local_id)
            if remote_id is None:
                log.debug("Delete for %s skipped: never created remotely", local_id)
                return
            try:
                await self.service.delete(remote_id)
            except Exception as exc:
                log.error("Deleting job %s failed (local removal kept): %s", remote_id, exc)
                raise PersistenceError(f"Could not delete job {remote_id}: {exc}") from exc

    def _resolve(self, job_id: str) -> str:
        return self._aliases.get(job_id, job_id)

    def _key(self, job_id: str) -> str:
        return self._keys.get(job_id, job_id)

    def _position(self, exact_id: str) -> Optional[int]:
        for index, job in enumerate(self._jobs):
            if job.id == exact_id:
                return index
        return None

    def _index(self, job_id: str) -> Optional[int]:
        return self._position(self._resolve(job_id))

    def _remote_id(self, job_id: str) -> Optional[str]:
        if job_id in self._aliases:
            return self._aliases[job_id]
        if is_temporary_id(job_id):
            return None
        return job_id

    @asynccontextmanager
    async def _writing(self, job_id: str) -> AsyncIterator[None]:
        key = self._key(job_id)
        self._pending[key] = self._pending.get(key, 0) + 1
        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            self._pending[key] -= 1
            if not self._pending[key]:
                del self._pending[key]
                self._locks.pop(key, None)
