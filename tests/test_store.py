"""Tests for optimistic writes, reconciliation and rollback in the job store."""

import asyncio
import itertools

import pytest

from conftest import FakeJobService, make_job, row_for
from jobtrail.jobs import JobStatus
from jobtrail.notifier import TransitionNotifier
from jobtrail.persistence import PersistenceError
from jobtrail.store import JobStore, UnknownJobError, is_temporary_id


def loaded_store(*jobs, notifier=None):
    """Store preloaded with ``jobs`` (given oldest first)."""
    service = FakeJobService([row_for(job) for job in jobs])
    store = JobStore(service, notifier=notifier)
    asyncio.run(store.load())
    return store, service


class TestAdd:
    """Optimistic create with reconciliation and rollback."""

    def test_add_is_visible_before_remote_confirmation(self, service):
        """The record sits at the head with a temporary id while the create is pending."""
        store = JobStore(service)

        async def scenario():
            gate = service.hold("create")
            task = asyncio.create_task(store.add(make_job(company="Globex")))
            await asyncio.sleep(0)
            head = store.jobs[0]
            assert is_temporary_id(head.id)
            assert head.company == "Globex"
            assert store.is_pending(head.id)
            assert store.pending_ids() == [head.id]
            gate.set()
            return await task

        created = asyncio.run(scenario())
        assert created.id == "job-1"
        assert not store.is_pending("job-1")

    def test_reconciliation_keeps_position_and_fields(self):
        """A confirmed create swaps only the id, in place, with no duplicate entry."""
        older = make_job("old-1", company="Initech")
        store, service = loaded_store(older)
        submitted = make_job(company="Hooli", role="Designer")

        created = asyncio.run(store.add(submitted))

        assert [job.id for job in store.jobs] == ["job-1", "old-1"]
        assert len([job for job in store.jobs if job.id == created.id]) == 1
        assert store.jobs[0] == submitted.with_changes(id="job-1")

    def test_failed_create_is_rolled_back(self, service):
        """A rejected create leaves no trace of the record and raises."""
        store = JobStore(service)
        service.fail_on.add("create")
        submitted = make_job(company="Vandelay")

        with pytest.raises(PersistenceError):
            asyncio.run(store.add(submitted))

        assert store.jobs == ()
        assert not any(job.company == "Vandelay" for job in store.jobs)
        assert not any(is_temporary_id(job.id) for job in store.jobs)

    def test_failed_create_leaves_other_records(self):
        """Rollback removes only the failed record."""
        store, service = loaded_store(make_job("keep-1"))
        service.fail_on.add("create")

        with pytest.raises(PersistenceError):
            asyncio.run(store.add(make_job(company="Gone")))

        assert [job.id for job in store.jobs] == ["keep-1"]


class TestUpdateAndDelete:
    """Update/delete keep their local effect even when the remote call fails."""

    def test_update_applies_locally_and_persists(self):
        store, service = loaded_store(make_job("a"))
        job = store.get("a")

        asyncio.run(store.update(job.with_changes(salary="100k")))

        assert store.get("a").salary == "100k"
        assert service.rows["a"]["salary"] == "100k"

    def test_failed_update_is_not_rolled_back(self):
        store, service = loaded_store(make_job("a"))
        service.fail_on.add("update")

        with pytest.raises(PersistenceError):
            asyncio.run(store.update(store.get("a").with_changes(location="Berlin")))

        assert store.get("a").location == "Berlin"
        assert not store.is_pending("a")

    def test_failed_delete_is_not_rolled_back(self):
        store, service = loaded_store(make_job("a"), make_job("b"))
        service.fail_on.add("delete")

        with pytest.raises(PersistenceError):
            asyncio.run(store.delete("a"))

        assert [job.id for job in store.jobs] == ["b"]

    def test_update_keeps_creation_date(self):
        """The applied date is fixed at creation; an update cannot move it."""
        store, service = loaded_store(make_job("a"))

        updated = asyncio.run(store.update(store.get("a").with_changes(date_applied="1999-01-01", salary="90k")))

        assert updated.date_applied == "2026-10-01"
        assert store.get("a").date_applied == "2026-10-01"
        assert store.get("a").salary == "90k"
        assert service.rows["a"]["date_applied"] == "2026-10-01"

    def test_update_unknown_id_raises(self, service):
        store = JobStore(service)
        with pytest.raises(UnknownJobError):
            asyncio.run(store.update(make_job("missing")))
        assert service.operations() == []


class TestSameRecordOrdering:
    """Remote writes for one record run in issue order, across id reconciliation."""

    def test_update_during_pending_create_targets_real_id(self, service):
        store = JobStore(service)

        async def scenario():
            gate = service.hold("create")
            add_task = asyncio.create_task(store.add(make_job()))
            await asyncio.sleep(0)
            temp = store.jobs[0]
            update_task = asyncio.create_task(store.update(temp.with_changes(status=JobStatus.INTERVIEW)))
            await asyncio.sleep(0)
            # optimistic update visible; its remote call waits for the create
            assert store.jobs[0].status is JobStatus.INTERVIEW
            assert service.operations() == ["create"]
            gate.set()
            return await add_task, await update_task

        created, updated = asyncio.run(scenario())

        assert service.operations() == ["create", "update"]
        assert service.calls[-1][1] == "job-1"
        assert created.id == updated.id == "job-1"
        assert store.jobs[0].status is JobStatus.INTERVIEW
        assert len(store) == 1

    def test_delete_during_pending_create_removes_remote_row(self, service):
        store = JobStore(service)

        async def scenario():
            gate = service.hold("create")
            add_task = asyncio.create_task(store.add(make_job()))
            await asyncio.sleep(0)
            temp_id = store.jobs[0].id
            delete_task = asyncio.create_task(store.delete(temp_id))
            await asyncio.sleep(0)
            assert store.jobs == ()
            gate.set()
            await add_task
            await delete_task

        asyncio.run(scenario())

        assert store.jobs == ()
        assert service.operations() == ["create", "delete"]
        assert service.calls[-1][1] == "job-1"
        assert service.rows == {}

    def test_update_after_failed_create_is_reported(self, service):
        store = JobStore(service)
        service.fail_on.add("create")

        async def scenario():
            gate = service.hold("create")
            add_task = asyncio.create_task(store.add(make_job()))
            await asyncio.sleep(0)
            temp = store.jobs[0]
            update_task = asyncio.create_task(store.update(temp.with_changes(salary="90k")))
            await asyncio.sleep(0)
            gate.set()
            results = await asyncio.gather(add_task, update_task, return_exceptions=True)
            return results

        add_result, update_result = asyncio.run(scenario())

        assert isinstance(add_result, PersistenceError)
        assert isinstance(update_result, PersistenceError)
        assert store.jobs == ()
        assert service.operations() == ["create"]

    def test_consecutive_updates_reach_service_in_issue_order(self):
        store, service = loaded_store(make_job("a"))

        async def scenario():
            gate = service.hold("update")
            first = asyncio.create_task(store.update(store.get("a").with_changes(salary="1")))
            await asyncio.sleep(0)
            second = asyncio.create_task(store.update(store.get("a").with_changes(salary="2")))
            await asyncio.sleep(0)
            assert store.get("a").salary == "2"
            assert store.is_pending("a")
            gate.set()
            await asyncio.gather(first, second)

        asyncio.run(scenario())

        updates = [call[2]["salary"] for call in service.calls if call[0] == "update"]
        assert updates == ["1", "2"]
        assert service.rows["a"]["salary"] == "2"
        assert not store.is_pending("a")


class TestStatusNotifications:
    """Status changes through the store drive the notifier exactly once."""

    def test_unchanged_status_never_notifies(self):
        notifier = TransitionNotifier()
        store, _ = loaded_store(make_job("a", status=JobStatus.REJECTED), notifier=notifier)
        before = len(notifier.messages)

        asyncio.run(store.update(store.get("a").with_changes(salary="more")))

        assert len(notifier.messages) == before
        assert notifier.unread is False

    @pytest.mark.parametrize(
        "old,new",
        [(a, b) for a, b in itertools.product(JobStatus, JobStatus) if a is not b],
    )
    def test_transition_coverage(self, old, new):
        notifier = TransitionNotifier()
        store, _ = loaded_store(make_job("a", status=old), notifier=notifier)
        before = len(notifier.messages)

        asyncio.run(store.update(store.get("a").with_changes(status=new)))

        expected = 1 if new in (JobStatus.ACCEPTED, JobStatus.REJECTED) else 0
        assert len(notifier.messages) == before + expected
        assert notifier.unread is bool(expected)

    def test_notification_happens_before_remote_confirmation(self):
        notifier = TransitionNotifier()
        store, service = loaded_store(make_job("a", status=JobStatus.OFFER), notifier=notifier)

        async def scenario():
            gate = service.hold("update")
            task = asyncio.create_task(store.update(store.get("a").with_changes(status=JobStatus.ACCEPTED)))
            await asyncio.sleep(0)
            assert notifier.unread is True
            gate.set()
            await task

        asyncio.run(scenario())

    def test_failed_update_still_notified_once(self):
        notifier = TransitionNotifier()
        store, service = loaded_store(make_job("a", status=JobStatus.INTERVIEW), notifier=notifier)
        service.fail_on.add("update")
        before = len(notifier.messages)

        with pytest.raises(PersistenceError):
            asyncio.run(store.update(store.get("a").with_changes(status=JobStatus.REJECTED)))

        assert len(notifier.messages) == before + 1


class TestLoad:
    def test_load_orders_newest_first(self):
        store, _ = loaded_store(make_job("first"), make_job("second"))
        assert [job.id for job in store.jobs] == ["second", "first"]

    def test_load_forgets_settled_temporary_ids(self, service):
        store = JobStore(service)
        asyncio.run(store.add(make_job()))
        assert is_temporary_id(store.record_key("job-1"))

        asyncio.run(store.load())

        assert store.record_key("job-1") == "job-1"
        assert store._aliases == {}
        assert store._keys == {}

    def test_load_failure_keeps_collection(self):
        store, service = loaded_store(make_job("a"))
        service.fail_on.add("list")
        with pytest.raises(PersistenceError):
            asyncio.run(store.load())
        assert [job.id for job in store.jobs] == ["a"]
