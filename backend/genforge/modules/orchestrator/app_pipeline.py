"""
Multi-Phase App Pipeline

Expands one request into a full artifact set, strictly in order:

┌──────────────┐   ┌──────────┐   ┌─────────────┐   ┌────────┐   ┌─────────┐
│ ARCHITECTURE │──►│  DESIGN  │──►│ DEVELOPMENT │──►│ REVIEW │──►│ TESTING │
│  Blueprint   │   │ Design   │   │  FileSet    │   │ Report │   │ FileSet │
│              │   │ System   │   │ (app)       │   │        │   │ (tests) │
└──────────────┘   └──────────┘   └─────────────┘   └────────┘   └─────────┘

Any phase failure aborts the run with PipelinePhaseError; nothing partial is
returned. Retries only happen inside prompt-registry executions and the
model client, never at the pipeline level.
"""

import asyncio
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from genforge.core.config import Settings
from genforge.core.exceptions import PipelinePhaseError
from genforge.core.logging_config import logger, set_phase
from genforge.modules.agents.architect_agent import ArchitectAgent
from genforge.modules.agents.base_agent import AgentContext
from genforge.modules.agents.designer_agent import DesignerAgent
from genforge.modules.agents.developer_agent import DeveloperAgent
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.agents.reviewer_agent import ReviewerAgent
from genforge.modules.agents.tester_agent import TesterAgent
from genforge.modules.prompts.registry import PromptRegistry
from genforge.schemas.artifacts import AppGenerationResult, GenerationStats
from genforge.utils.model_client import ModelClient, ModelParameters


class PipelinePhase(str, Enum):
    ARCHITECTURE = "architecture"
    DESIGN = "design"
    DEVELOPMENT = "development"
    REVIEW = "review"
    TESTING = "testing"


PHASE_ORDER = [
    PipelinePhase.ARCHITECTURE,
    PipelinePhase.DESIGN,
    PipelinePhase.DEVELOPMENT,
    PipelinePhase.REVIEW,
    PipelinePhase.TESTING,
]

# on_phase(phase, status) where status is "started" | "completed" | "failed"
PhaseCallback = Callable[[PipelinePhase, str], Any]


class AppPipeline:
    """Coordinates the five pipeline agents"""

    def __init__(
        self,
        architect: ArchitectAgent,
        designer: DesignerAgent,
        developer: DeveloperAgent,
        reviewer: ReviewerAgent,
        tester: TesterAgent
    ):
        self.architect = architect
        self.designer = designer
        self.developer = developer
        self.reviewer = reviewer
        self.tester = tester

    @classmethod
    def build(
        cls,
        settings: Settings,
        model_client: ModelClient,
        registry: PromptRegistry,
        classifier: DomainClassifier
    ) -> "AppPipeline":
        params = ModelParameters.from_settings(settings)
        return cls(
            architect=ArchitectAgent(model_client, params, registry, classifier),
            designer=DesignerAgent(model_client, params),
            developer=DeveloperAgent(model_client, params, use_streaming=settings.USE_STREAMING_CODEGEN),
            reviewer=ReviewerAgent(model_client, params, strip_console_logs=settings.REVIEW_STRIP_CONSOLE_LOGS),
            tester=TesterAgent(model_client, params),
        )

    async def generate_app(
        self,
        prompt: str,
        on_phase: Optional[PhaseCallback] = None,
        job_id: str = "",
        on_fragment: Optional[Callable[[str], None]] = None
    ) -> AppGenerationResult:
        """
        Run all five phases.

        Raises:
            PipelinePhaseError: a phase failed; ``.phase`` names it, ``.cause`` is the original error
        """
        context = AgentContext(user_request=prompt, job_id=job_id, on_fragment=on_fragment)
        start = time.monotonic()
        logger.info(f"[AppPipeline] Starting 5-phase generation ({len(prompt)} chars)")

        context.blueprint = await self._run_phase(
            PipelinePhase.ARCHITECTURE, lambda: self.architect.process(context), on_phase
        )
        context.design_system = await self._run_phase(
            PipelinePhase.DESIGN, lambda: self.designer.process(context), on_phase
        )
        context.files = await self._run_phase(
            PipelinePhase.DEVELOPMENT, lambda: self.developer.process(context), on_phase
        )
        context.files, context.review_report = await self._run_phase(
            PipelinePhase.REVIEW, lambda: self.reviewer.process(context), on_phase
        )
        context.test_files = await self._run_phase(
            PipelinePhase.TESTING, lambda: self.tester.process(context), on_phase
        )

        all_files = context.files.merge(context.test_files)
        stats = GenerationStats(
            total_files=len(all_files),
            app_files=len(context.files),
            test_files=len(context.test_files),
            components=len(context.blueprint.components),
            pages=len(context.blueprint.pages),
            quality_score=context.review_report.score,
        )

        logger.info(
            f"[AppPipeline] Generation complete: {stats.total_files} files "
            f"({stats.app_files} app, {stats.test_files} test), score {stats.quality_score}/100"
        )
        logger.log_performance("pipeline.generate_app", (time.monotonic() - start) * 1000, threshold_ms=300000)

        return AppGenerationResult(
            blueprint=context.blueprint,
            design_system=context.design_system,
            files=all_files,
            review_report=context.review_report,
            stats=stats,
        )

    async def _run_phase(
        self,
        phase: PipelinePhase,
        run: Callable[[], Awaitable[Any]],
        on_phase: Optional[PhaseCallback]
    ) -> Any:
        await self._notify(on_phase, phase, "started")
        set_phase(phase.value)
        logger.info(f"[AppPipeline] PHASE {PHASE_ORDER.index(phase) + 1}: {phase.value}")

        try:
            result = await run()
        except Exception as e:
            logger.log_error_with_context(e, context=f"pipeline phase {phase.value}")
            set_phase("")
            await self._notify(on_phase, phase, "failed")
            raise PipelinePhaseError(phase.value, e) from e

        set_phase("")
        await self._notify(on_phase, phase, "completed")
        return result

    @staticmethod
    async def _notify(on_phase: Optional[PhaseCallback], phase: PipelinePhase, status: str) -> None:
        if on_phase is None:
            return
        result = on_phase(phase, status)
        if asyncio.iscoroutine(result):
            await result
