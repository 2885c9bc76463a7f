"""
Unit Tests for the Multi-Phase App Pipeline
"""
import pytest

from genforge.core.context import create_context
from genforge.core.exceptions import PipelinePhaseError
from genforge.modules.orchestrator.app_pipeline import PHASE_ORDER, PipelinePhase


PROMPT = "Build an online store for sneakers"


@pytest.fixture
def pipeline(settings, offline_model):
    return create_context(settings, model_client=offline_model).pipeline


class TestGenerateApp:
    """Offline end-to-end pipeline run"""

    @pytest.mark.asyncio
    async def test_full_run_stats(self, pipeline):
        result = await pipeline.generate_app(PROMPT)

        assert result.blueprint.domain == "ecommerce"
        assert result.stats.app_files == 13
        assert result.stats.test_files == 8
        assert result.stats.total_files == 21
        assert result.stats.components == 6
        assert result.stats.pages == 6
        assert result.stats.quality_score == 100
        assert result.review_report.passed

    @pytest.mark.asyncio
    async def test_result_files_include_app_and_tests(self, pipeline):
        result = await pipeline.generate_app(PROMPT)

        paths = result.files.paths
        assert paths[0] == "src/App.jsx"
        assert "src/components/ProductCard.jsx" in paths
        assert "src/pages/product-detail.jsx" in paths
        assert "tests/e2e/app.spec.ts" in paths
        assert "tests/unit/ProductCard.test.tsx" in paths
        assert result.to_dict()["stats"]["totalFiles"] == 21

    @pytest.mark.asyncio
    async def test_phase_callbacks_in_order(self, pipeline):
        calls = []

        await pipeline.generate_app(PROMPT, on_phase=lambda phase, status: calls.append((phase, status)))

        expected = []
        for phase in PHASE_ORDER:
            expected += [(phase, "started"), (phase, "completed")]
        assert calls == expected

    @pytest.mark.asyncio
    async def test_async_phase_callback_is_awaited(self, pipeline):
        seen = []

        async def on_phase(phase, status):
            seen.append(status)

        await pipeline.generate_app(PROMPT, on_phase=on_phase)

        assert seen.count("completed") == 5


class TestPhaseFailure:
    """A failing phase aborts the run"""

    @pytest.mark.asyncio
    async def test_review_failure_aborts(self, pipeline):
        calls = []
        tester_called = []

        async def broken_review(context):
            raise RuntimeError("reviewer crashed")

        async def tester(context):
            tester_called.append(True)

        pipeline.reviewer.process = broken_review
        pipeline.tester.process = tester

        with pytest.raises(PipelinePhaseError) as exc_info:
            await pipeline.generate_app(PROMPT, on_phase=lambda phase, status: calls.append((phase, status)))

        assert exc_info.value.phase == "review"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.details["cause_type"] == "RuntimeError"
        assert calls[-1] == (PipelinePhase.REVIEW, "failed")
        assert tester_called == []

    @pytest.mark.asyncio
    async def test_design_failure_reports_design_phase(self, pipeline, offline_model):
        offline_model.set_response("Create design system", '{"colors": "red"}')

        with pytest.raises(PipelinePhaseError) as exc_info:
            await pipeline.generate_app(PROMPT)

        assert exc_info.value.phase == "design"
