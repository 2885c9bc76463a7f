"""
Generation Queue - job lifecycle owner

┌────────────┐  add_job   ┌──────────────┐   worker loop (single task)
│  caller    │──────────► │ FIFO pending │ ─────────────────────────────┐
└────────────┘  job id    └──────────────┘                              │
      ▲                                                                 ▼
      │ get_job (snapshot)              ┌───────────────────────────────────┐
      └──────────────────────────────── │ QUEUED → RUNNING → COMPLETED/FAILED│
                                        │ steps + monotonic progress        │
                                        └───────────────┬───────────────────┘
                                                        │ notify
                                                        ▼
                                              ProgressBroadcaster

The worker is the only mutator of a Job. It processes one job at a time,
records every error as the job's failure, and moves on to the next job.
"""

import asyncio
import time
import uuid
from typing import Any, Dict, Optional

from genforge.core.config import Settings
from genforge.core.exceptions import InvalidRequestError, JobNotFoundError
from genforge.core.logging_config import logger, set_job_id
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.orchestrator.app_pipeline import AppPipeline, PipelinePhase
from genforge.modules.orchestrator.event_bus import EventType, ProgressBroadcaster, ProgressEvent
from genforge.modules.orchestrator.state_machine import ensure_mutable, transition
from genforge.modules.prompts.registry import PromptRegistry
from genforge.modules.prompts.templates import template_id_for_domain
from genforge.schemas.blueprint import build_blueprint
from genforge.schemas.job import Job, JobMode, JobSnapshot, JobStatus, JobStep, StepStatus, utc_now


# Progress reached when each phase completes (full mode)
PHASE_PROGRESS: Dict[PipelinePhase, int] = {
    PipelinePhase.ARCHITECTURE: 20,
    PipelinePhase.DESIGN: 35,
    PipelinePhase.DEVELOPMENT: 70,
    PipelinePhase.REVIEW: 80,
    PipelinePhase.TESTING: 95,
}

STEP_CLASSIFY = "classify"
STEP_BLUEPRINT = "blueprint"
CLASSIFY_PROGRESS = 20
BLUEPRINT_PROGRESS = 90
STARTED_PROGRESS = 5


class GenerationQueue:
    """FIFO job queue with a single worker task"""

    def __init__(
        self,
        settings: Settings,
        classifier: DomainClassifier,
        registry: PromptRegistry,
        pipeline: AppPipeline,
        broadcaster: ProgressBroadcaster
    ):
        self.settings = settings
        self.classifier = classifier
        self.registry = registry
        self.pipeline = pipeline
        self.broadcaster = broadcaster

        self._jobs: Dict[str, Job] = {}
        self._pending: "asyncio.Queue[str]" = asyncio.Queue()
        self._current_job_id: Optional[str] = None
        self._worker: Optional[asyncio.Task] = None
        self._completed_count = 0
        self._failed_count = 0

    # ========== Lifecycle ==========

    def start(self) -> None:
        """Start the worker task (idempotent); needs a running event loop"""
        if self._worker is not None and not self._worker.done():
            return
        self._worker = asyncio.get_running_loop().create_task(self._worker_loop())
        logger.info("[GenerationQueue] Worker started")

    async def stop(self) -> None:
        """Cancel the worker; a job in progress is abandoned as-is"""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("[GenerationQueue] Worker stopped")

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def join(self) -> None:
        """Wait until every queued job has reached a terminal state"""
        await self._pending.join()

    # ========== Submission & Query ==========

    def add_job(self, prompt: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        """
        Create a queued job and return its id without waiting for processing.

        Raises:
            InvalidRequestError: blank prompt or unknown mode; nothing is enqueued
        """
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidRequestError("Prompt must not be empty", field="prompt")

        metadata = dict(metadata or {})
        mode = metadata.get("mode", self.settings.DEFAULT_JOB_MODE)
        try:
            metadata["mode"] = JobMode(mode).value
        except ValueError:
            raise InvalidRequestError(
                f"Unknown job mode '{mode}'. Use one of: {[m.value for m in JobMode]}",
                field="mode"
            )

        job_id = str(uuid.uuid4())
        while job_id in self._jobs:
            job_id = str(uuid.uuid4())

        job = Job(id=job_id, prompt=prompt, metadata=metadata)
        self._jobs[job_id] = job
        self._pending.put_nowait(job_id)

        logger.log_job_event(job_id, "created", status=job.status.value, mode=metadata["mode"])
        self._publish(job, EventType.JOB_CREATED)
        return job_id

    def get_job(self, job_id: str) -> JobSnapshot:
        """
        Raises:
            JobNotFoundError: unknown id
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job.snapshot()

    @property
    def queue_size(self) -> int:
        """Jobs waiting to start"""
        return self._pending.qsize()

    @property
    def processing(self) -> bool:
        return self._current_job_id is not None

    def get_stats(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.running else "stopped",
            "queueSize": self.queue_size,
            "processing": self.processing,
            "currentJob": self._current_job_id,
            "totalJobs": len(self._jobs),
            "completed": self._completed_count,
            "failed": self._failed_count,
            "cache": self.registry.cache.get_stats(),
            "broadcaster": self.broadcaster.get_stats(),
        }

    # ========== Exposed contract ==========

    def submit(self, prompt: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        return self.add_job(prompt, metadata)

    def query(self, job_id: str) -> Dict[str, Any]:
        return self.get_job(job_id).to_dict()

    def result(self, job_id: str) -> Dict[str, Any]:
        """Final payload once the job is terminal, progress otherwise"""
        snapshot = self.get_job(job_id)

        if snapshot.status == JobStatus.COMPLETED:
            return {
                "success": True,
                "result": snapshot.result,
                "metadata": snapshot.metadata,
                "duration": snapshot.duration_seconds,
            }
        if snapshot.status == JobStatus.FAILED:
            return {
                "success": False,
                "status": snapshot.status.value,
                "error": snapshot.error,
                "duration": snapshot.duration_seconds,
            }
        return {
            "message": "Generation in progress",
            "status": snapshot.status.value,
            "progress": snapshot.progress,
        }

    # ========== Worker ==========

    async def _worker_loop(self) -> None:
        while True:
            job_id = await self._pending.get()
            try:
                await self._process(self._jobs[job_id])
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # _process records failures itself; this only guards the loop
                logger.log_error_with_context(e, context=f"worker loop (job {job_id})")
            finally:
                self._current_job_id = None
                set_job_id("")
                self._pending.task_done()

    async def _process(self, job: Job) -> None:
        self._current_job_id = job.id
        set_job_id(job.id)

        transition(job, JobStatus.RUNNING)
        job.started_at = utc_now()
        self._set_progress(job, STARTED_PROGRESS)
        logger.log_job_event(job.id, "started", status=job.status.value, progress=job.progress)
        self._publish(job, EventType.JOB_UPDATED)

        start = time.monotonic()
        try:
            if job.metadata.get("mode") == JobMode.BLUEPRINT.value:
                result = await self._run_blueprint(job)
            else:
                result = await self._run_full(job)
        except Exception as e:
            self._fail(job, e)
            return
        finally:
            logger.log_performance(f"job.{job.metadata.get('mode')}", (time.monotonic() - start) * 1000,
                                   threshold_ms=300000)

        self._complete(job, result)

    async def _run_full(self, job: Job) -> Dict[str, Any]:
        def on_phase(phase: PipelinePhase, status: str) -> None:
            if status == "started":
                self._begin_step(job, phase.value)
            elif status == "completed":
                self._end_step(job, phase.value, StepStatus.COMPLETED, PHASE_PROGRESS[phase])
            else:
                self._end_step(job, phase.value, StepStatus.FAILED)

        generated = await self.pipeline.generate_app(job.prompt, on_phase=on_phase, job_id=job.id)
        return {"mode": JobMode.FULL.value, **generated.to_dict()}

    async def _run_blueprint(self, job: Job) -> Dict[str, Any]:
        self._begin_step(job, STEP_CLASSIFY)
        domain = self.classifier.detect(job.prompt)
        self._end_step(job, STEP_CLASSIFY, StepStatus.COMPLETED, CLASSIFY_PROGRESS)

        self._begin_step(job, STEP_BLUEPRINT)
        prompt_id = template_id_for_domain(domain)
        execution = await self.registry.execute(prompt_id, {"description": job.prompt})
        blueprint = build_blueprint(domain, execution.output)
        self._end_step(job, STEP_BLUEPRINT, StepStatus.COMPLETED, BLUEPRINT_PROGRESS)

        return {
            "mode": JobMode.BLUEPRINT.value,
            "domain": domain,
            "promptId": prompt_id,
            "blueprint": blueprint.to_dict(),
            "quality": execution.quality,
            "fromCache": execution.from_cache,
        }

    # ========== Job mutation (worker only) ==========

    def _set_progress(self, job: Job, value: int) -> None:
        ensure_mutable(job)
        job.progress = max(job.progress, min(100, int(value)))

    def _begin_step(self, job: Job, name: str) -> None:
        ensure_mutable(job)
        job.steps.append(JobStep(name=name))
        logger.log_job_event(job.id, f"step {name} started", progress=job.progress)
        self._publish(job, EventType.JOB_UPDATED)

    def _end_step(self, job: Job, name: str, status: StepStatus, progress: Optional[int] = None) -> None:
        ensure_mutable(job)
        step = job.find_step(name)
        if step is None:
            step = JobStep(name=name)
            job.steps.append(step)
        step.status = status
        step.ended_at = utc_now()
        if progress is not None:
            self._set_progress(job, progress)
        logger.log_job_event(job.id, f"step {name} {status.value}", progress=job.progress)
        self._publish(job, EventType.JOB_UPDATED)

    def _complete(self, job: Job, result: Dict[str, Any]) -> None:
        ensure_mutable(job)
        job.result = result
        job.completed_at = utc_now()
        self._set_progress(job, 100)
        transition(job, JobStatus.COMPLETED)
        self._completed_count += 1

        logger.log_job_event(job.id, "completed", status=job.status.value, progress=job.progress)
        self._publish(job, EventType.JOB_COMPLETED)

    def _fail(self, job: Job, error: Exception) -> None:
        ensure_mutable(job)
        for step in job.steps:
            if step.status == StepStatus.RUNNING:
                step.status = StepStatus.FAILED
                step.ended_at = utc_now()
        job.error = str(error) or type(error).__name__
        job.completed_at = utc_now()
        transition(job, JobStatus.FAILED)
        self._failed_count += 1

        logger.log_error_with_context(error, context=f"job {job.id}")
        logger.log_job_event(job.id, "failed", status=job.status.value, progress=job.progress)
        self._publish(job, EventType.JOB_COMPLETED, {"error": job.error})

    def _publish(self, job: Job, event_type: EventType, data: Optional[Dict[str, Any]] = None) -> None:
        self.broadcaster.notify(ProgressEvent(
            type=event_type,
            job_id=job.id,
            status=job.status.value,
            progress=job.progress,
            steps=[step.to_dict() for step in job.steps],
            data=dict(data or {}),
        ))
