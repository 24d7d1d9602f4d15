"""Capability protocols for the fetch pipeline.

Any object with the right methods is accepted; nothing here is meant to be
subclassed. Each protocol is small so collaborators stay easy to test and
reason about.
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from fetchpipe.core.request import FetchRequest
from fetchpipe.core.types import ResponseEnvelope, Result


@runtime_checkable
class ErrorClassifier[E: Exception](Protocol):
    """Turns a raw envelope into success bytes or a typed error."""

    def extract(self, envelope: ResponseEnvelope) -> Result[bytes, E]:
        """Return ``Success(body)`` or ``Failure(error)`` for ``envelope``.

        Must be a pure function of the envelope: no mutation, no retention.
        """
        ...

    def from_decode_error(self, error: Exception, envelope: ResponseEnvelope) -> E:
        """Build the error delivered when decoding the success body fails."""
        ...


@runtime_checkable
class Decoder[T](Protocol):
    """Synchronous, context-free conversion of bytes into a value."""

    def decode(self, data: bytes) -> T:
        """Decode ``data``; raise any ``Exception`` on failure."""
        ...


@runtime_checkable
class ExecutionContext(Protocol):
    """Submit-and-continue scheduling target."""

    def schedule(self, work: Callable[[], None]) -> None:
        """Enqueue ``work`` and return immediately without running it."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Performs a request and reports whatever came back."""

    async def send(self, request: FetchRequest) -> ResponseEnvelope:
        """Issue ``request``.

        Body, metadata and transport error are captured independently; the
        transport reports failures through the envelope instead of raising.
        """
        ...
