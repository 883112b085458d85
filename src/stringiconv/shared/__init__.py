"""Shared utilities for stringiconv.

This module provides configuration objects, step result types and logging
helpers used across the conversion layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    TranscodeConfig,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    StepResult,
    StepStatus,
    TranscodeMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "TranscodeConfig",
    "CorrelationLogger",
    "get_logger",
    "StepResult",
    "StepStatus",
    "TranscodeMetrics",
]
