"""
GenForge - Centralized Logging Configuration
Supports both development (plain text) and production (JSON structured) logging
"""

import logging
import sys
import json
import traceback
from datetime import datetime, timezone
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict
from contextvars import ContextVar

from genforge.core.config import settings


# Context variables for job tracing
job_id_var: ContextVar[str] = ContextVar('job_id', default='')
phase_var: ContextVar[str] = ContextVar('phase', default='')


def get_job_id() -> str:
    """Get current job ID from context"""
    return job_id_var.get() or ''


def set_job_id(job_id: str) -> None:
    """Set job ID in context"""
    job_id_var.set(job_id)


def get_phase() -> str:
    """Get current pipeline phase from context"""
    return phase_var.get() or ''


def set_phase(phase: str) -> None:
    """Set pipeline phase in context"""
    phase_var.set(phase)


_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'exc_info', 'exc_text', 'thread', 'threadName',
    'message', 'taskName', 'job_id', 'phase',
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production
    Outputs one JSON object per record for log aggregation tools
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        job_id = get_job_id()
        if job_id:
            log_data["job_id"] = job_id

        phase = get_phase()
        if phase:
            log_data["phase"] = phase

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info) if record.exc_info[0] else None
            }

        # Extra fields passed via `extra=`
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS and not key.startswith('_'):
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """
    Formatter that includes context variables (job_id, phase)
    Used for development with readable output
    """

    def format(self, record: logging.LogRecord) -> str:
        record.job_id = get_job_id() or '-'
        record.phase = get_phase() or '-'
        return super().format(record)


class GenForgeLogger(logging.Logger):
    """
    Custom logger with convenience methods for structured logging
    """

    def log_job_event(self, job_id: str, event: str, status: str = None,
                      progress: int = None, **kwargs) -> None:
        """Log job lifecycle events"""
        self.info(
            f"Job {job_id}: {event}" +
            (f" [{status}]" if status else "") +
            (f" ({progress}%)" if progress is not None else ""),
            extra={
                "event_type": "job",
                "job_event": event,
                "job_status": status,
                "job_progress": progress,
                **kwargs
            }
        )

    def log_agent_event(self, agent_name: str, event: str, **kwargs) -> None:
        """Log pipeline agent events"""
        self.info(
            f"Agent {agent_name}: {event}",
            extra={
                "event_type": "agent",
                "agent_name": agent_name,
                "agent_event": event,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: str = None,
                               **kwargs) -> None:
        """Log error with full context"""
        self.error(
            f"Error in {context}: {type(error).__name__}: {str(error)}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )

    def log_performance(self, operation: str, duration_ms: float,
                        threshold_ms: float = 30000, **kwargs) -> None:
        """Log performance metrics, warn if over threshold"""
        level = logging.WARNING if duration_ms > threshold_ms else logging.DEBUG
        self.log(
            level,
            f"Performance: {operation} took {duration_ms:.2f}ms" +
            (f" (threshold: {threshold_ms}ms)" if duration_ms > threshold_ms else ""),
            extra={
                "event_type": "performance",
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
                "exceeded_threshold": duration_ms > threshold_ms,
                **kwargs
            }
        )


def setup_logging() -> GenForgeLogger:
    """Setup logging configuration based on environment"""

    logging.setLoggerClass(GenForgeLogger)

    logger = logging.getLogger("genforge")
    logger.__class__ = GenForgeLogger  # Ensure it's our custom class
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.propagate = False

    logger.handlers.clear()

    if settings.is_production:
        json_formatter = JSONFormatter()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(json_formatter)
        logger.addHandler(console_handler)

        if settings.LOG_FILE:
            log_file = Path(settings.LOG_FILE)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10485760,  # 10MB
                backupCount=10
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(json_formatter)
            logger.addHandler(file_handler)

    else:
        detailed_format = (
            "%(asctime)s | %(levelname)-8s | "
            "[%(job_id)s] [%(phase)s] | "
            "%(funcName)s:%(lineno)d | %(message)s"
        )
        simple_format = "%(levelname)-8s | [%(job_id)s] %(message)s"

        detailed_formatter = ContextualFormatter(detailed_format)
        simple_formatter = ContextualFormatter(simple_format)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

        if settings.LOG_FILE:
            log_file = Path(settings.LOG_FILE)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10485760,  # 10MB
                backupCount=5
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)

    logger.debug(
        "Logging initialized",
        extra={
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "json_logging": settings.is_production
        }
    )

    return logger


logger: GenForgeLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_job_id',
    'set_job_id',
    'get_phase',
    'set_phase',
    'GenForgeLogger',
    'JSONFormatter',
    'ContextualFormatter',
]
