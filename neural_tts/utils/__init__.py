"""Utility modules."""

from neural_tts.utils.logging import (
    ContextLogger,
    LogContext,
    get_log_context,
    get_logger,
    setup_logging,
)
from neural_tts.utils.timing import Timer

__all__ = [
    "ContextLogger",
    "LogContext",
    "get_log_context",
    "get_logger",
    "setup_logging",
    "Timer",
]
