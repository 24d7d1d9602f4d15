"""Exceptions for the fetch pipeline.

Two families live here. Programming and setup errors (`ConfigurationError`,
`InvariantViolationError`, `RequestEncodeError`) are raised where they are
detected. Fetch errors (`FetchError` and its subclasses) are never raised by
the pipeline; they are delivered as `Failure(error)` to the caller's callback.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fetchpipe.core.types import describe_envelope

if TYPE_CHECKING:
    from fetchpipe.core.types import ResponseEnvelope


class FetchPipelineError(Exception):
    """Base exception for fetch pipeline errors."""


class ConfigurationError(FetchPipelineError):
    """Raised when settings or pipeline configuration are invalid."""


class RequestEncodeError(FetchPipelineError):
    """Raised when a request body cannot be encoded."""


class InvariantViolationError(FetchPipelineError):
    """Raised when a pipeline collaborator breaks its contract."""

    def __init__(self, message: str, *, stage_name: str | None = None):
        """Record the stage where the violation was observed."""
        super().__init__(message)
        self.stage_name = stage_name


# --- Fetch error taxonomy (delivered through Failure, never raised) ---


class FetchError(FetchPipelineError):
    """Base class for errors produced by the default classifier.

    Every fetch error keeps the full envelope for diagnostics.
    """

    def __init__(self, envelope: ResponseEnvelope, message: str | None = None):
        """Store the envelope and build a diagnostic message."""
        self.envelope = envelope
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        return f"{type(self).__name__} ({describe_envelope(self.envelope)})"


class TransportFailure(FetchError):
    """No HTTP response was received."""


class NoBody(FetchError):
    """The response was accepted but carried no body."""


class HTTPStatusError(FetchError):
    """The response status code was outside the accepted range."""

    def __init__(self, status_code: int, envelope: ResponseEnvelope):
        """Store the rejected status code."""
        self.status_code = status_code
        super().__init__(
            envelope,
            f"HTTP status {status_code} not accepted"
            f" ({describe_envelope(envelope)})",
        )


class DecodeFailure(FetchError):
    """The success body could not be decoded into the requested type."""

    def __init__(self, cause: BaseException, envelope: ResponseEnvelope):
        """Store the underlying decode error."""
        self.cause = cause
        super().__init__(
            envelope,
            f"Decoding failed: {type(cause).__name__}: {cause}"
            f" ({describe_envelope(envelope)})",
        )
        self.__cause__ = cause
