"""
Prompt Registry - templated, cached, quality-gated prompt execution

    execute(prompt_id, variables)
        │
        ├─ fingerprint(prompt_id, variables) ── cache hit ──► from_cache=True
        │
        └─ QualityGate.run(attempt)                 (at most 2 attempts)
              attempt: render → model.invoke → repair → validate → evaluate
        │
        └─ cache only if the final outcome passed the threshold
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from genforge.core.exceptions import (
    MalformedOutputError,
    ModelInvocationError,
    PromptNotFoundError,
    ValidationError,
)
from genforge.core.logging_config import logger
from genforge.modules.prompts.templates import PromptTemplate
from genforge.services.execution_cache import ExecutionCache, fingerprint
from genforge.services.quality_gate import (
    AttemptOutcome,
    HeuristicQualityEvaluator,
    OutcomeKind,
    QualityEvaluator,
    QualityGate,
)
from genforge.utils.json_repair import extract_json_from_response
from genforge.utils.model_client import ModelClient


@dataclass
class ExecutionResult:
    output: Any
    quality: float
    from_cache: bool
    attempts: int = 0
    prompt_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output": self.output,
            "quality": self.quality,
            "fromCache": self.from_cache,
            "attempts": self.attempts,
            "promptId": self.prompt_id,
        }


class PromptRegistry:
    """Holds templates and executes them against the model"""

    def __init__(
        self,
        model_client: ModelClient,
        cache: Optional[ExecutionCache] = None,
        evaluator: Optional[QualityEvaluator] = None,
        quality_threshold: float = 7.0,
        model_override: Optional[str] = None
    ):
        self.model_client = model_client
        self.cache = cache if cache is not None else ExecutionCache()
        self.evaluator = evaluator or HeuristicQualityEvaluator()
        self.gate = QualityGate(threshold=quality_threshold)
        self.model_override = model_override
        self._templates: Dict[str, PromptTemplate] = {}
        self._lock = threading.Lock()

    # ========== Registration ==========

    def register_prompt(self, template: PromptTemplate) -> None:
        """Store a template; re-registering an id replaces it"""
        with self._lock:
            replaced = template.id in self._templates
            self._templates[template.id] = template
        logger.info(f"[PromptRegistry] {'Replaced' if replaced else 'Registered'} prompt: {template.id}")

    def get_prompt(self, prompt_id: str) -> PromptTemplate:
        with self._lock:
            template = self._templates.get(prompt_id)
        if template is None:
            raise PromptNotFoundError(prompt_id)
        return template

    def list_prompts(self) -> List[str]:
        with self._lock:
            return list(self._templates)

    # ========== Execution ==========

    async def execute(self, prompt_id: str, variables: Dict[str, Any]) -> ExecutionResult:
        """
        Execute a registered template.

        Raises:
            PromptNotFoundError: unknown prompt id
            ModelInvocationError: model call failed on the retry too
            ValidationError: output missing required structure on the retry too
        """
        template = self.get_prompt(prompt_id)
        key = fingerprint(prompt_id, variables)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info(f"[PromptRegistry] {prompt_id}: served from cache (quality {cached.quality:.1f}/10)")
            return ExecutionResult(
                output=cached.output,
                quality=cached.quality,
                from_cache=True,
                attempts=0,
                prompt_id=prompt_id,
            )

        start = time.monotonic()
        result = await self.gate.run(lambda: self._attempt(template, variables), label=prompt_id)
        outcome = result.outcome

        if outcome.kind == OutcomeKind.SUCCESS:
            self.cache.put(key, prompt_id, outcome.output, outcome.quality)

        logger.info(
            f"[PromptRegistry] {prompt_id}: quality {outcome.quality:.1f}/10 "
            f"after {len(result.attempts)} attempt(s)"
        )
        logger.log_performance(f"prompt.execute:{prompt_id}", (time.monotonic() - start) * 1000)

        return ExecutionResult(
            output=outcome.output,
            quality=outcome.quality,
            from_cache=False,
            attempts=len(result.attempts),
            prompt_id=prompt_id,
        )

    async def _attempt(self, template: PromptTemplate, variables: Dict[str, Any]) -> AttemptOutcome:
        """One independent model call, classified into an AttemptOutcome"""
        rendered = template.render(variables)
        try:
            raw = await self.model_client.invoke(rendered, template.parameters(self.model_override))
        except ModelInvocationError as e:
            return AttemptOutcome.model_error(e)
        except Exception as e:
            logger.log_error_with_context(e, context=f"model invoke for {template.id}")
            return AttemptOutcome.model_error(ModelInvocationError(f"{type(e).__name__}: {e}"))

        if not template.structured_output:
            return AttemptOutcome.scored(raw, 10.0)

        try:
            repaired = extract_json_from_response(raw)
            if repaired.repaired:
                logger.info(f"[PromptRegistry] {template.id}: output repaired at stage '{repaired.stage}'")

            self.validate(template, repaired.value, partial=repaired.partial)
            quality = float(self.evaluator.evaluate(repaired.value, template.validation))
        except ValidationError as e:
            return AttemptOutcome.validation_error(e)
        except Exception as e:
            logger.log_error_with_context(e, context=f"output handling for {template.id}")
            return AttemptOutcome.validation_error(MalformedOutputError(
                f"Output of {template.id} could not be processed: {type(e).__name__}: {e}",
                prompt_id=template.id,
            ))

        return AttemptOutcome.scored(repaired.value, quality, repair_stage=repaired.stage)

    @staticmethod
    def validate(template: PromptTemplate, output: Any, partial: bool = False) -> None:
        """
        Required structure must be present. Counts below minimum only lower
        the quality score; absence is an error.
        """
        error_cls = MalformedOutputError if partial else ValidationError
        violations: List[str] = []

        if not isinstance(output, dict):
            raise error_cls(
                f"Output of {template.id} is not an object",
                prompt_id=template.id,
                violations=["output must be an object"],
            )

        for element in template.validation.minimum_counts():
            if not isinstance(output.get(element), list):
                violations.append(f"missing list '{element}'")

        if template.validation.required_features and output.get("features") is None:
            violations.append("missing 'features'")

        if violations:
            raise error_cls(
                f"Output of {template.id} failed validation: {', '.join(violations)}",
                prompt_id=template.id,
                violations=violations,
            )
