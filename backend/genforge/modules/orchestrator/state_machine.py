"""
Job lifecycle state machine

    QUEUED → RUNNING → COMPLETED
                    └→ FAILED

Transitions only move forward. COMPLETED and FAILED are terminal: once a
job reaches them no field may change.
"""

from typing import Dict, Set

from genforge.core.exceptions import JobStateError
from genforge.schemas.job import Job, JobStatus


JOB_TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.QUEUED: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def can_transition(from_status: JobStatus, to_status: JobStatus) -> bool:
    return to_status in JOB_TRANSITIONS.get(from_status, set())


def ensure_mutable(job: Job) -> None:
    """Raise if the job is already terminal"""
    if job.status.is_terminal:
        raise JobStateError(job.id, f"Job {job.id} is {job.status.value} and can no longer change")


def transition(job: Job, to_status: JobStatus) -> None:
    """Move a job to a new status, validating against JOB_TRANSITIONS"""
    ensure_mutable(job)
    if not can_transition(job.status, to_status):
        allowed = sorted(s.value for s in JOB_TRANSITIONS.get(job.status, set()))
        raise JobStateError(
            job.id,
            f"Invalid transition for job {job.id}: {job.status.value} → {to_status.value}. Allowed: {allowed}"
        )
    job.status = to_status
