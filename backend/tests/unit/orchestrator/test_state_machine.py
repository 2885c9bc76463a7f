"""
Unit Tests for the Job State Machine
"""
import pytest

from genforge.core.exceptions import JobStateError
from genforge.modules.orchestrator.state_machine import (
    JOB_TRANSITIONS,
    can_transition,
    ensure_mutable,
    transition,
)
from genforge.schemas.job import Job, JobStatus


def make_job(status: JobStatus = JobStatus.QUEUED) -> Job:
    return Job(id="job-1", prompt="landing page", status=status)


class TestTransitions:
    @pytest.mark.parametrize("from_status,to_status,allowed", [
        (JobStatus.QUEUED, JobStatus.RUNNING, True),
        (JobStatus.QUEUED, JobStatus.COMPLETED, False),
        (JobStatus.RUNNING, JobStatus.COMPLETED, True),
        (JobStatus.RUNNING, JobStatus.FAILED, True),
        (JobStatus.RUNNING, JobStatus.QUEUED, False),
        (JobStatus.COMPLETED, JobStatus.FAILED, False),
        (JobStatus.FAILED, JobStatus.RUNNING, False),
    ])
    def test_can_transition(self, from_status, to_status, allowed):
        assert can_transition(from_status, to_status) is allowed

    def test_terminal_states_have_no_exits(self):
        assert JOB_TRANSITIONS[JobStatus.COMPLETED] == set()
        assert JOB_TRANSITIONS[JobStatus.FAILED] == set()

    def test_forward_path(self):
        job = make_job()

        transition(job, JobStatus.RUNNING)
        transition(job, JobStatus.COMPLETED)

        assert job.status == JobStatus.COMPLETED

    def test_skipping_running_raises(self):
        job = make_job()

        with pytest.raises(JobStateError, match="queued"):
            transition(job, JobStatus.COMPLETED)
        assert job.status == JobStatus.QUEUED

    @pytest.mark.parametrize("status", [JobStatus.COMPLETED, JobStatus.FAILED])
    def test_terminal_job_is_immutable(self, status):
        job = make_job(status)

        with pytest.raises(JobStateError) as exc_info:
            ensure_mutable(job)
        assert exc_info.value.details == {"job_id": "job-1"}
        assert exc_info.value.code == "INVALID_JOB_STATE"


class TestSnapshot:
    def test_snapshot_is_a_copy(self):
        job = make_job()
        job.metadata["mode"] = "full"

        snapshot = job.snapshot()
        job.metadata["mode"] = "blueprint"
        job.progress = 40

        assert snapshot.metadata == {"mode": "full"}
        assert snapshot.progress == 0
        assert not snapshot.is_terminal
        assert snapshot.duration_seconds is None

    def test_to_dict_omits_empty_result(self):
        payload = make_job().snapshot().to_dict()

        assert payload["status"] == "queued"
        assert "result" not in payload
        assert "error" not in payload
