"""
Engine wiring

Builds every long-lived component once and hands them out together, so the
CLI and tests share one construction path:

    Settings ─► ModelClient ─► PromptRegistry (+ ExecutionCache, QualityGate)
                    │                 │
                    ▼                 ▼
              AppPipeline ◄── DomainClassifier
                    │
                    ▼
            GenerationQueue ──► ProgressBroadcaster
"""

from dataclasses import dataclass
from typing import Optional

from genforge.core.config import Settings
from genforge.core.logging_config import logger
from genforge.modules.agents.domain_classifier_agent import DomainClassifier
from genforge.modules.orchestrator.app_pipeline import AppPipeline
from genforge.modules.orchestrator.event_bus import ProgressBroadcaster
from genforge.modules.orchestrator.job_queue import GenerationQueue
from genforge.modules.prompts.registry import PromptRegistry
from genforge.modules.prompts.templates import BUILTIN_TEMPLATES
from genforge.services.execution_cache import ExecutionCache
from genforge.services.quality_gate import HeuristicQualityEvaluator
from genforge.utils.model_client import AnthropicModelClient, ModelClient
from genforge.utils.offline_model_client import OfflineModelClient


@dataclass
class GenerationContext:
    settings: Settings
    model_client: ModelClient
    cache: ExecutionCache
    registry: PromptRegistry
    classifier: DomainClassifier
    broadcaster: ProgressBroadcaster
    pipeline: AppPipeline
    queue: GenerationQueue

    def start(self) -> None:
        """Start the queue worker; call from inside a running event loop"""
        self.queue.start()

    async def stop(self) -> None:
        await self.queue.stop()
        await self.broadcaster.close()


def create_model_client(settings: Settings) -> ModelClient:
    if settings.USE_MOCK_MODEL:
        return OfflineModelClient()
    return AnthropicModelClient(settings)


def create_context(settings: Settings, model_client: Optional[ModelClient] = None) -> GenerationContext:
    """Wire up the engine from settings; pass ``model_client`` to inject a fake"""
    client = model_client if model_client is not None else create_model_client(settings)

    cache = ExecutionCache()
    registry = PromptRegistry(
        client,
        cache=cache,
        evaluator=HeuristicQualityEvaluator(),
        quality_threshold=settings.QUALITY_THRESHOLD,
    )
    for template in BUILTIN_TEMPLATES:
        registry.register_prompt(template)

    classifier = DomainClassifier(default_domain=settings.DEFAULT_DOMAIN)
    broadcaster = ProgressBroadcaster(
        queue_size=settings.SUBSCRIBER_QUEUE_SIZE,
        max_history=settings.EVENT_HISTORY_SIZE,
    )
    pipeline = AppPipeline.build(settings, client, registry, classifier)
    queue = GenerationQueue(settings, classifier, registry, pipeline, broadcaster)

    logger.info(
        f"[Context] Engine ready: {len(registry.list_prompts())} prompts, "
        f"model={'offline' if isinstance(client, OfflineModelClient) else settings.MODEL_NAME}"
    )
    return GenerationContext(
        settings=settings,
        model_client=client,
        cache=cache,
        registry=registry,
        classifier=classifier,
        broadcaster=broadcaster,
        pipeline=pipeline,
        queue=queue,
    )
