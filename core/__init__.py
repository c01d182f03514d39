"""Core modules: AI client, error taxonomy, text signals and input validation."""

from .errors import (
    ExternalServiceError,
    HardStageFailure,
    SoftStageFailure,
    ValidationError,
    classify_error,
)

__all__ = [
    'ExternalServiceError',
    'HardStageFailure',
    'SoftStageFailure',
    'ValidationError',
    'classify_error',
]
