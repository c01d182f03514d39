"""
Error Taxonomy
==============
Exceptions raised by stages and collaborators, plus classification of
collaborator failures into kinds the caller can map to status codes.

- ValidationError:     malformed input, raised before any external call
- ExternalServiceError: a collaborator failed (auth / rate_limit / timeout / network / config / unknown)
- HardStageFailure:    stage failure that aborts the run
- SoftStageFailure:    stage failure that is degraded and continued
"""

import asyncio
from typing import Any, Dict, List, Optional


ERROR_KINDS = ("auth", "rate_limit", "timeout", "network", "config", "unknown")

ERROR_STATUS = {
    "validation": 400,
    "auth": 500,
    "rate_limit": 429,
    "timeout": 408,
    "network": 503,
    "config": 500,
    "unknown": 500,
    "stage": 500,
}

# Message fragments per kind, checked in this order
_KIND_PATTERNS = [
    ("auth", ["api key", "api_key", "authentication", "unauthorized", "401", "403", "permission denied"]),
    ("rate_limit", ["rate limit", "rate_limit", "429", "quota", "overloaded"]),
    ("timeout", ["timeout", "timed out", "deadline exceeded"]),
    ("network", ["network", "connection", "enotfound", "econnrefused", "econnreset", "fetch failed", "dns"]),
    ("config", ["config", "not configured", "missing setting"]),
]


class ListingAgentError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(ListingAgentError):
    """Input failed validation."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class ExternalServiceError(ListingAgentError):
    """A collaborator (AI, comparables, catalog, publisher) failed."""

    def __init__(self, message: str, kind: str = "unknown", service: str = "", cause: Optional[BaseException] = None):
        super().__init__(message)
        if kind not in ERROR_KINDS:
            kind = "unknown"
        self.kind = kind
        self.service = service
        self.cause = cause

    @property
    def retryable(self) -> bool:
        return self.kind in ("rate_limit", "timeout", "network")


class StageFailure(ListingAgentError):
    """A pipeline stage failed."""

    hard = False

    def __init__(self, stage: str, reason: str, cause: Optional[BaseException] = None):
        super().__init__(f"{stage}: {reason}")
        self.stage = stage
        self.reason = reason
        self.cause = cause

    @property
    def kind(self) -> str:
        if isinstance(self.cause, ValidationError):
            return "validation"
        if self.cause is not None:
            return classify_error(self.cause)
        return "unknown"


class HardStageFailure(StageFailure):
    """Stage failure that aborts the run."""

    hard = True


class SoftStageFailure(StageFailure):
    """Stage failure that is logged and degraded."""


def classify_error(exc: BaseException) -> str:
    """
    Classifies an exception into auth / rate_limit / timeout / network / config / unknown.

    Already-classified ExternalServiceErrors keep their kind. Otherwise the
    exception type is checked first, then the message text.
    """
    if isinstance(exc, ExternalServiceError):
        return exc.kind
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "timeout"
    if isinstance(exc, ConnectionError):
        return "network"

    status = getattr(exc, "status_code", None)
    if status in (401, 403):
        return "auth"
    if status == 429:
        return "rate_limit"
    if status == 408:
        return "timeout"

    message = f"{type(exc).__name__} {exc}".lower()
    for kind, fragments in _KIND_PATTERNS:
        if any(f in message for f in fragments):
            return kind
    return "unknown"


def to_service_error(exc: BaseException, service: str) -> ExternalServiceError:
    """Wraps any exception as a classified ExternalServiceError."""
    if isinstance(exc, ExternalServiceError):
        return exc
    return ExternalServiceError(str(exc) or type(exc).__name__, kind=classify_error(exc), service=service, cause=exc)


def status_for(exc: BaseException) -> int:
    """Caller-facing status code for an exception."""
    if isinstance(exc, ValidationError):
        return ERROR_STATUS["validation"]
    if isinstance(exc, StageFailure):
        kind = exc.kind
        return ERROR_STATUS.get(kind, ERROR_STATUS["stage"])
    return ERROR_STATUS.get(classify_error(exc), 500)


def error_payload(exc: BaseException) -> Dict[str, Any]:
    """Transport-agnostic error description."""
    if isinstance(exc, ValidationError):
        kind = "validation"
    elif isinstance(exc, StageFailure):
        kind = exc.kind
    else:
        kind = classify_error(exc)

    payload: Dict[str, Any] = {
        "error": str(exc),
        "kind": kind,
        "status": status_for(exc),
    }
    if isinstance(exc, StageFailure):
        payload["stage"] = exc.stage
    if isinstance(exc, ValidationError) and exc.fields:
        payload["fields"] = exc.fields
    return payload
