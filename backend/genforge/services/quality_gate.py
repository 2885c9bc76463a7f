"""
Quality Gate - bounded retry around a single prompt execution

Every attempt ends in an explicit AttemptOutcome:

    SUCCESS          quality >= threshold
    BELOW_THRESHOLD  output is valid but scored under the threshold
    MODEL_ERROR      the model call itself failed
    VALIDATION_ERROR output is missing required structure

Anything other than SUCCESS on the first attempt buys exactly one more
attempt. The second attempt's output is used whatever it scores; if the
second attempt errors, its error is raised to the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from genforge.core.exceptions import GenForgeError
from genforge.core.logging_config import logger
from genforge.modules.prompts.templates import ValidationRules


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    BELOW_THRESHOLD = "below_threshold"
    MODEL_ERROR = "model_error"
    VALIDATION_ERROR = "validation_error"


@dataclass
class AttemptOutcome:
    """Result of one execution attempt"""
    kind: OutcomeKind
    output: Any = None
    quality: float = 0.0
    error: Optional[GenForgeError] = None
    repair_stage: Optional[str] = None

    @property
    def has_output(self) -> bool:
        return self.kind in (OutcomeKind.SUCCESS, OutcomeKind.BELOW_THRESHOLD)

    @classmethod
    def scored(cls, output: Any, quality: float, repair_stage: Optional[str] = None) -> "AttemptOutcome":
        return cls(kind=OutcomeKind.SUCCESS, output=output, quality=quality, repair_stage=repair_stage)

    @classmethod
    def model_error(cls, error: GenForgeError) -> "AttemptOutcome":
        return cls(kind=OutcomeKind.MODEL_ERROR, error=error)

    @classmethod
    def validation_error(cls, error: GenForgeError) -> "AttemptOutcome":
        return cls(kind=OutcomeKind.VALIDATION_ERROR, error=error)


@dataclass
class GateResult:
    outcome: AttemptOutcome
    attempts: List[AttemptOutcome] = field(default_factory=list)

    @property
    def retried(self) -> bool:
        return len(self.attempts) > 1

    @property
    def passed(self) -> bool:
        return self.outcome.kind == OutcomeKind.SUCCESS


class QualityEvaluator(Protocol):
    """Scores a validated output on a 0-10 scale"""

    def evaluate(self, output: Dict[str, Any], rules: ValidationRules) -> float:
        ...


class HeuristicQualityEvaluator:
    """
    Start at 10, -2 for every structural element under its minimum count,
    -1 for every required feature that is neither a truthy flag nor named by
    a page or component. Clamped to [0, 10].
    """

    STRUCTURE_PENALTY = 2
    FEATURE_PENALTY = 1

    def evaluate(self, output: Dict[str, Any], rules: ValidationRules) -> float:
        score = 10.0

        for element, minimum in rules.minimum_counts().items():
            items = output.get(element) or []
            if len(items) < minimum:
                score -= self.STRUCTURE_PENALTY

        for feature in rules.required_features:
            if not self.has_feature(output, feature):
                score -= self.FEATURE_PENALTY

        return max(0.0, min(10.0, score))

    @staticmethod
    def has_feature(output: Dict[str, Any], feature: str) -> bool:
        needle = feature.lower()
        features = output.get("features")

        if isinstance(features, dict):
            for name, enabled in features.items():
                if str(name).lower() == needle and enabled:
                    return True
        elif isinstance(features, list):
            if any(str(item).lower() == needle for item in features):
                return True

        for element in ("pages", "components"):
            for unit in output.get(element) or []:
                if needle in str(unit).lower():
                    return True
        return False


class QualityGate:
    """Runs an attempt function with a fixed budget of one retry"""

    MAX_RETRIES = 1

    def __init__(self, threshold: float = 7.0):
        self.threshold = threshold

    def judge(self, outcome: AttemptOutcome) -> AttemptOutcome:
        """Downgrade a scored success that misses the threshold"""
        if outcome.kind == OutcomeKind.SUCCESS and outcome.quality < self.threshold:
            outcome.kind = OutcomeKind.BELOW_THRESHOLD
        return outcome

    async def run(self, attempt: Callable[[], Awaitable[AttemptOutcome]], label: str = "") -> GateResult:
        attempts: List[AttemptOutcome] = []

        first = self.judge(await attempt())
        attempts.append(first)
        if first.kind == OutcomeKind.SUCCESS:
            return GateResult(outcome=first, attempts=attempts)

        logger.warning(
            f"[QualityGate] {label} attempt 1 -> {first.kind.value}"
            + (f" (quality {first.quality:.1f}/10)" if first.has_output else f": {first.error}")
            + ", retrying once"
        )

        second = self.judge(await attempt())
        attempts.append(second)

        if second.has_output:
            if second.kind == OutcomeKind.BELOW_THRESHOLD:
                logger.warning(f"[QualityGate] {label} retry still below threshold ({second.quality:.1f}/10), using it")
            else:
                logger.info(f"[QualityGate] {label} retry passed ({second.quality:.1f}/10)")
            return GateResult(outcome=second, attempts=attempts)

        logger.error(f"[QualityGate] {label} retry failed with {second.kind.value}: {second.error}")
        raise second.error
