"""
Integration Tests - full generation flow through the wired engine

Uses the offline model, so no API key or network is needed.
"""
import pytest

from genforge.core.context import create_context, create_model_client
from genforge.modules.orchestrator.event_bus import EventType
from genforge.schemas.job import JobStatus
from genforge.utils.model_client import AnthropicModelClient
from genforge.utils.offline_model_client import OfflineModelClient


pytestmark = pytest.mark.integration


class TestContextWiring:
    def test_model_client_selection(self, settings):
        assert isinstance(create_model_client(settings), OfflineModelClient)

        live = settings.model_copy(update={"USE_MOCK_MODEL": False})
        assert isinstance(create_model_client(live), AnthropicModelClient)

    def test_builtin_prompts_registered(self, settings, offline_model):
        context = create_context(settings, model_client=offline_model)

        assert context.registry.list_prompts() == ["ecommerce-v1", "saas-v1", "landing-v1", "dashboard-v1"]
        assert context.registry.cache is context.cache
        assert context.classifier.default_domain == settings.DEFAULT_DOMAIN


class TestGenerationFlow:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt,domain", [
        ("an online store for handmade candles", "ecommerce"),
        ("a subscription platform for team invoicing", "saas"),
        ("a landing page to launch our startup waitlist", "landing"),
        ("an analytics dashboard with charts for sales metrics", "dashboard"),
    ])
    async def test_full_job_per_domain(self, context, prompt, domain):
        job_id = context.queue.add_job(prompt)
        await context.queue.join()

        snapshot = context.queue.get_job(job_id)
        assert snapshot.status == JobStatus.COMPLETED, snapshot.error
        assert snapshot.result["blueprint"]["projectType"] == domain
        assert snapshot.result["files"]["src/App.jsx"].startswith("import React")
        assert snapshot.result["reviewReport"]["passed"] is True
        assert "tests/e2e/app.spec.ts" in snapshot.result["files"]

    @pytest.mark.asyncio
    async def test_events_follow_job_to_completion(self, context):
        events = []
        context.broadcaster.subscribe(events.append)

        job_id = context.queue.add_job("an online store for sneakers")
        await context.queue.join()
        await context.broadcaster.flush()

        types = [event.type for event in events if event.job_id == job_id]
        assert types[0] == EventType.JOB_CREATED
        assert types[-1] == EventType.JOB_COMPLETED
        assert types.count(EventType.JOB_COMPLETED) == 1
        # started + five phases started/completed
        assert types.count(EventType.JOB_UPDATED) == 11

    @pytest.mark.asyncio
    async def test_mixed_jobs_share_the_cache(self, context):
        full_id = context.queue.add_job("an online store for sneakers")
        blueprint_id = context.queue.add_job("an online store for sneakers", {"mode": "blueprint"})
        await context.queue.join()

        assert context.queue.get_job(full_id).status == JobStatus.COMPLETED
        assert context.queue.get_job(blueprint_id).result["fromCache"] is True
        assert context.queue.get_stats()["cache"]["hits"] >= 1
