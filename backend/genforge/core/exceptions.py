"""
Custom Exceptions for GenForge
==============================

Submission and query errors (InvalidRequestError, JobNotFoundError) are
raised synchronously to the caller. Everything raised while a job is being
processed is caught at the job boundary and recorded as the job's failure.

Usage:
    from genforge.core.exceptions import InvalidRequestError, PipelinePhaseError

    if not prompt.strip():
        raise InvalidRequestError("Prompt must not be empty", field="prompt")
"""

from typing import Optional, Any, Dict


class GenForgeError(Exception):
    """Base exception for all GenForge errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Request Errors (400-type)
# ============================================

class InvalidRequestError(GenForgeError):
    """Submission rejected before a job was created"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="INVALID_REQUEST", details=details)


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(GenForgeError):
    """Base class for not found errors"""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class JobNotFoundError(ResourceNotFoundError):
    """Job not found"""

    def __init__(self, job_id: str):
        super().__init__("Job", job_id)


class PromptNotFoundError(ResourceNotFoundError):
    """Prompt template not registered"""

    def __init__(self, prompt_id: str):
        super().__init__("Prompt", prompt_id)


# ============================================
# Job State Errors
# ============================================

class JobStateError(GenForgeError):
    """Illegal job transition or mutation of a terminal job"""

    def __init__(self, job_id: str, message: str):
        super().__init__(message, code="INVALID_JOB_STATE", details={"job_id": job_id})


# ============================================
# Model Errors
# ============================================

class ModelInvocationError(GenForgeError):
    """External generative model call failed"""

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        partial_text: Optional[str] = None
    ):
        super().__init__(message, code="MODEL_INVOCATION_FAILED")
        self.retryable = retryable
        self.partial_text = partial_text
        if partial_text:
            self.details["partial_length"] = len(partial_text)


# ============================================
# Output Validation Errors
# ============================================

class ValidationError(GenForgeError):
    """Model output failed the template's validation rules"""

    def __init__(self, message: str, prompt_id: Optional[str] = None, violations: Optional[list] = None):
        details: Dict[str, Any] = {}
        if prompt_id:
            details["prompt_id"] = prompt_id
        if violations:
            details["violations"] = list(violations)
        super().__init__(message, code="VALIDATION_ERROR", details=details)
        self.violations = list(violations or [])


class MalformedOutputError(ValidationError):
    """Repair only recovered partial data and it still fails validation"""

    def __init__(self, message: str, prompt_id: Optional[str] = None, violations: Optional[list] = None):
        super().__init__(message, prompt_id=prompt_id, violations=violations)
        self.code = "MALFORMED_OUTPUT"


# ============================================
# Pipeline Errors
# ============================================

class PipelinePhaseError(GenForgeError):
    """A multi-phase pipeline phase failed; the whole run is aborted"""

    def __init__(self, phase: str, cause: Exception):
        super().__init__(
            f"Pipeline phase '{phase}' failed: {cause}",
            code="PIPELINE_PHASE_FAILED",
            details={"phase": phase, "cause_type": type(cause).__name__}
        )
        self.phase = phase
        self.cause = cause


# ============================================
# Helper function for transport responses
# ============================================

def error_response(error: GenForgeError) -> Dict[str, Any]:
    """Convert exception to the exposed error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
