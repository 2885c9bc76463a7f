"""
Job data model

Job is the worker-owned mutable record. Readers only ever receive a
JobSnapshot, a frozen deep copy taken at query time.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class JobStatus(str, Enum):
    """Job lifecycle states"""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobMode(str, Enum):
    """What the worker does with a job"""
    FULL = "full"            # multi-phase pipeline
    BLUEPRINT = "blueprint"  # classify + single templated execution


class StepStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobStep:
    """One named unit of work inside a job"""
    name: str
    status: StepStatus = StepStatus.RUNNING
    started_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "startedAt": _iso(self.started_at),
            "endedAt": _iso(self.ended_at),
        }


@dataclass
class Job:
    """A submitted generation request and its lifecycle"""
    id: str
    prompt: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    status: JobStatus = JobStatus.QUEUED
    progress: int = 0
    steps: List[JobStep] = field(default_factory=list)
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def find_step(self, name: str) -> Optional[JobStep]:
        for step in reversed(self.steps):
            if step.name == name:
                return step
        return None

    def snapshot(self) -> "JobSnapshot":
        return JobSnapshot(
            id=self.id,
            prompt=self.prompt,
            metadata=copy.deepcopy(self.metadata),
            status=self.status,
            progress=self.progress,
            steps=tuple(copy.copy(step) for step in self.steps),
            result=copy.deepcopy(self.result),
            error=self.error,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )


@dataclass(frozen=True)
class JobSnapshot:
    """Immutable view of a Job at one point in time"""
    id: str
    prompt: str
    metadata: Dict[str, Any]
    status: JobStatus
    progress: int
    steps: Tuple[JobStep, ...]
    result: Optional[Dict[str, Any]]
    error: Optional[str]
    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Query payload for the transport layer"""
        data: Dict[str, Any] = {
            "id": self.id,
            "status": self.status.value,
            "progress": self.progress,
            "steps": [step.to_dict() for step in self.steps],
            "createdAt": _iso(self.created_at),
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
        }
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        return data
