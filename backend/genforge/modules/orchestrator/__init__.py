"""
Orchestration Module

Components:
- GenerationQueue: FIFO job queue with a single worker
- ProgressBroadcaster: pub/sub for job lifecycle events
- AppPipeline: architecture → design → development → review → testing
- state_machine: job status transitions

Usage:
    from genforge.core.context import create_context

    context = create_context(settings)
    context.start()
    job_id = context.queue.add_job("Build an online store for sneakers")
"""

from genforge.modules.orchestrator.app_pipeline import AppPipeline, PipelinePhase, PHASE_ORDER
from genforge.modules.orchestrator.event_bus import EventType, ProgressBroadcaster, ProgressEvent, Subscription
from genforge.modules.orchestrator.job_queue import GenerationQueue
from genforge.modules.orchestrator.state_machine import JOB_TRANSITIONS, can_transition, transition

__all__ = [
    "AppPipeline",
    "PipelinePhase",
    "PHASE_ORDER",
    "EventType",
    "ProgressBroadcaster",
    "ProgressEvent",
    "Subscription",
    "GenerationQueue",
    "JOB_TRANSITIONS",
    "can_transition",
    "transition",
]
