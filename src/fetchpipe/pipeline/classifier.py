"""Default response classification policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fetchpipe.core.exceptions import (
    ConfigurationError,
    DecodeFailure,
    FetchError,
    HTTPStatusError,
    NoBody,
    TransportFailure,
)
from fetchpipe.core.types import (
    Failure,
    ResponseEnvelope,
    ResponseMetadata,
    Result,
    Success,
)

if TYPE_CHECKING:
    from fetchpipe.config import FetchSettings

DEFAULT_ACCEPTED_STATUS = (200, 299)


class DefaultClassifier:
    """Classifies envelopes into success bytes or a `FetchError`.

    Checks run in a fixed order: missing (or non-HTTP) metadata, then the
    status code, then body presence. Reordering them changes which error a
    malformed envelope produces.
    """

    __slots__ = ("_max_status", "_min_status")

    def __init__(
        self, accepted_status: tuple[int, int] = DEFAULT_ACCEPTED_STATUS
    ) -> None:
        """Create a classifier accepting an inclusive status range."""
        low, high = accepted_status
        if low > high:
            raise ConfigurationError(
                f"accepted_status must be an ascending range, got {low}..{high}"
            )
        self._min_status = low
        self._max_status = high

    @classmethod
    def from_settings(cls, settings: FetchSettings) -> DefaultClassifier:
        """Build a classifier from resolved settings."""
        return cls((settings.accepted_status_min, settings.accepted_status_max))

    @property
    def accepted_status(self) -> tuple[int, int]:
        """Inclusive range of accepted status codes."""
        return (self._min_status, self._max_status)

    def accepts(self, status_code: int) -> bool:
        """Return True when ``status_code`` is in the accepted range."""
        return self._min_status <= status_code <= self._max_status

    def extract(self, envelope: ResponseEnvelope) -> Result[bytes, FetchError]:
        """Return the body on success, otherwise the matching `FetchError`."""
        metadata = envelope.metadata
        if not isinstance(metadata, ResponseMetadata):
            return Failure(TransportFailure(envelope))
        if not self.accepts(metadata.status_code):
            return Failure(HTTPStatusError(metadata.status_code, envelope))
        if envelope.body is None:
            return Failure(NoBody(envelope))
        return Success(envelope.body)

    def from_decode_error(
        self, error: Exception, envelope: ResponseEnvelope
    ) -> FetchError:
        """Wrap a decoder exception together with the original envelope."""
        return DecodeFailure(error, envelope)

    def __repr__(self) -> str:
        return f"DefaultClassifier(accepted_status={self.accepted_status!r})"
