"""Tests for splitting jobs into the applications and offers lists."""

import pytest

from conftest import make_job
from jobtrail.jobs import JobOrigin, JobStatus
from jobtrail.partition import active_content, active_content_field, classify, partition


def mixed_jobs():
    return [
        make_job("1", origin=JobOrigin.APPLICATION, status=JobStatus.APPLIED),
        make_job("2", origin=JobOrigin.OFFER, status=JobStatus.OFFER),
        make_job("3", origin=None, status=JobStatus.OFFER),
        make_job("4", origin=None, status=JobStatus.INTERVIEW),
        make_job("5", origin=JobOrigin.APPLICATION, status=JobStatus.OFFER),
        make_job("6", origin=JobOrigin.OFFER, status=JobStatus.REJECTED),
    ]


class TestPartition:
    def test_every_record_lands_in_exactly_one_list(self):
        jobs = mixed_jobs()
        applications, offers = partition(jobs)
        assert len(applications) + len(offers) == len(jobs)
        assert {job.id for job in applications}.isdisjoint(job.id for job in offers)

    def test_lists_keep_collection_order(self):
        applications, offers = partition(mixed_jobs())
        assert [job.id for job in applications] == ["1", "4", "5"]
        assert [job.id for job in offers] == ["2", "3", "6"]

    def test_empty_collection(self):
        assert partition([]) == ((), ())


class TestClassify:
    @pytest.mark.parametrize(
        "origin,status,expected",
        [
            (JobOrigin.OFFER, JobStatus.APPLIED, JobOrigin.OFFER),
            (JobOrigin.APPLICATION, JobStatus.OFFER, JobOrigin.APPLICATION),
            (None, JobStatus.OFFER, JobOrigin.OFFER),
            (None, JobStatus.APPLIED, JobOrigin.APPLICATION),
            (None, JobStatus.ACCEPTED, JobOrigin.APPLICATION),
        ],
    )
    def test_origin_wins_then_status(self, origin, status, expected):
        assert classify(make_job(origin=origin, status=status)) is expected

    def test_legacy_record_moves_when_status_changes(self):
        job = make_job("x", origin=None, status=JobStatus.OFFER)
        assert partition([job]).offers == (job,)

        moved = job.with_changes(status=JobStatus.INTERVIEW)

        assert partition([moved]).applications == (moved,)
        assert partition([moved]).offers == ()


class TestActiveContent:
    def test_application_shows_cover_letter(self):
        job = make_job(origin=JobOrigin.APPLICATION).with_changes(cover_letter="Dear team", interview_guide="Q&A")
        assert active_content_field(job) == "cover_letter"
        assert active_content(job) == "Dear team"

    def test_offer_shows_interview_guide(self):
        job = make_job(origin=JobOrigin.OFFER).with_changes(cover_letter="Dear team", interview_guide="Q&A")
        assert active_content_field(job) == "interview_guide"
        assert active_content(job) == "Q&A"
