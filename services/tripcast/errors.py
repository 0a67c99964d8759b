"""
Error taxonomy for the forecast pipeline.

Every pipeline error carries an explicit ``kind``. The stage-1 retry boundary
inspects the kind rather than the exception class:

  TRANSIENT  provider trouble (network, timeout, non-2xx, malformed payload).
             Retried with exponential backoff by the forecast fetch stage.
  FATAL      persistence failures, consistency violations, illegal status
             transitions. Never retried automatically.
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    TRANSIENT = "transient"
    FATAL = "fatal"


class PipelineError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = ErrorKind.FATAL

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


class ProviderError(PipelineError):
    """The weather provider could not deliver a usable forecast."""

    kind = ErrorKind.TRANSIENT

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ProcessingError(PipelineError):
    """Resolving, caching, or linking forecasts for a trip failed."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.FATAL,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.kind = kind
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_provider(cls, exc: ProviderError) -> "ProcessingError":
        return cls(
            f"Failed to fetch weather data: {exc}",
            kind=ErrorKind.TRANSIENT,
            cause=exc,
        )

    @classmethod
    def from_persistence(cls, exc: BaseException) -> "ProcessingError":
        return cls(
            f"Failed to save forecast data: {exc}",
            kind=ErrorKind.FATAL,
            cause=exc,
        )


class ValidationInvariantViolation(PipelineError):
    """A state the pipeline guarantees cannot happen was observed anyway."""


class InvalidTransition(PipelineError):
    """A trip status change not allowed by the transition table."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal trip status transition {current!r} -> {target!r}")
