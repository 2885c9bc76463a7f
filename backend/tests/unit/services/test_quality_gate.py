"""
Unit Tests for the Quality Gate and Heuristic Evaluator
"""
import pytest

from genforge.core.exceptions import ModelInvocationError, ValidationError
from genforge.modules.prompts.templates import ECOMMERCE_V1, ValidationRules
from genforge.services.quality_gate import (
    AttemptOutcome,
    HeuristicQualityEvaluator,
    OutcomeKind,
    QualityGate,
)


def scripted(*outcomes):
    """Attempt function returning the given outcomes in order"""
    remaining = list(outcomes)
    calls = []

    async def attempt():
        calls.append(1)
        return remaining.pop(0)

    attempt.calls = calls
    return attempt


class TestHeuristicQualityEvaluator:
    """Scoring on a 0-10 scale"""

    rules = ECOMMERCE_V1.validation

    def test_complete_output_scores_ten(self, ecommerce_output):
        assert HeuristicQualityEvaluator().evaluate(ecommerce_output, self.rules) == 10.0

    def test_missing_features_cost_one_each(self):
        output = {
            "features": {"cart": True, "checkout": False},
            "pages": ["home", "products", "detail", "bag", "pay", "done"],
            "components": ["Header", "Card", "Item", "Form", "Footer"],
        }

        assert HeuristicQualityEvaluator().evaluate(output, self.rules) == 8.0

    def test_short_lists_cost_two_each(self):
        output = {
            "features": {"cart": True, "checkout": True, "search": True},
            "pages": ["home"],
            "components": ["Header"],
        }

        assert HeuristicQualityEvaluator().evaluate(output, self.rules) == 6.0

    def test_feature_named_by_page_or_component_counts(self):
        output = {
            "features": {},
            "pages": ["home", "products", "detail", "cart", "checkout", "done"],
            "components": ["Header", "SearchBar", "Item", "Form", "Footer"],
        }

        assert HeuristicQualityEvaluator().evaluate(output, self.rules) == 10.0

    def test_feature_list_form(self):
        output = {"features": ["Cart", "checkout", "search"], "pages": ["a"] * 6, "components": ["b"] * 5}

        assert HeuristicQualityEvaluator().evaluate(output, self.rules) == 10.0

    def test_score_is_clamped_at_zero(self):
        rules = ValidationRules(min_pages=5, min_components=5, required_features=tuple("abcdefghij"))

        assert HeuristicQualityEvaluator().evaluate({}, rules) == 0.0


class TestQualityGate:
    """Exactly one retry, threshold 7"""

    @pytest.mark.asyncio
    async def test_first_success_returns_without_retry(self):
        attempt = scripted(AttemptOutcome.scored({"v": 1}, 9.0))

        result = await QualityGate(threshold=7.0).run(attempt)

        assert result.passed
        assert not result.retried
        assert result.outcome.output == {"v": 1}
        assert len(attempt.calls) == 1

    @pytest.mark.asyncio
    async def test_score_equal_to_threshold_passes(self):
        result = await QualityGate(threshold=7.0).run(scripted(AttemptOutcome.scored({}, 7.0)))

        assert result.passed

    @pytest.mark.asyncio
    async def test_below_threshold_retries_once(self):
        attempt = scripted(AttemptOutcome.scored({"v": 1}, 5.0), AttemptOutcome.scored({"v": 2}, 9.0))

        result = await QualityGate(threshold=7.0).run(attempt)

        assert result.passed
        assert result.retried
        assert result.outcome.output == {"v": 2}
        assert result.attempts[0].kind == OutcomeKind.BELOW_THRESHOLD

    @pytest.mark.asyncio
    async def test_retry_below_threshold_is_still_used(self):
        attempt = scripted(AttemptOutcome.scored({"v": 1}, 3.0), AttemptOutcome.scored({"v": 2}, 4.0))

        result = await QualityGate(threshold=7.0).run(attempt)

        assert not result.passed
        assert result.outcome.kind == OutcomeKind.BELOW_THRESHOLD
        assert result.outcome.output == {"v": 2}
        assert len(attempt.calls) == 2

    @pytest.mark.asyncio
    async def test_model_error_then_success(self):
        attempt = scripted(
            AttemptOutcome.model_error(ModelInvocationError("timeout")),
            AttemptOutcome.scored({"v": 2}, 8.0),
        )

        result = await QualityGate().run(attempt)

        assert result.outcome.output == {"v": 2}
        assert result.attempts[0].kind == OutcomeKind.MODEL_ERROR

    @pytest.mark.asyncio
    async def test_second_error_is_raised(self):
        attempt = scripted(
            AttemptOutcome.scored({"v": 1}, 2.0),
            AttemptOutcome.validation_error(ValidationError("missing pages")),
        )

        with pytest.raises(ValidationError, match="missing pages"):
            await QualityGate().run(attempt)
        assert len(attempt.calls) == 2

    @pytest.mark.asyncio
    async def test_never_more_than_two_attempts(self):
        attempt = scripted(
            AttemptOutcome.model_error(ModelInvocationError("first")),
            AttemptOutcome.model_error(ModelInvocationError("second")),
            AttemptOutcome.scored({"v": 3}, 10.0),
        )

        with pytest.raises(ModelInvocationError, match="second"):
            await QualityGate().run(attempt)
        assert len(attempt.calls) == 2
