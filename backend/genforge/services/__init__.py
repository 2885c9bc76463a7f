from genforge.services.execution_cache import ExecutionCache, fingerprint
from genforge.services.quality_gate import HeuristicQualityEvaluator, QualityGate

__all__ = [
    "ExecutionCache",
    "fingerprint",
    "HeuristicQualityEvaluator",
    "QualityGate",
]
