"""Shared test doubles for pipeline tests."""

import asyncio
from typing import Any

from fetchpipe.core.request import FetchRequest
from fetchpipe.core.types import ResponseEnvelope, ResponseMetadata
from fetchpipe.pipeline.contexts import current_context


def http_envelope(
    status: int = 200,
    body: bytes | None = b"{}",
    *,
    error: BaseException | None = None,
    headers: dict[str, str] | None = None,
) -> ResponseEnvelope:
    """Build an envelope carrying HTTP metadata."""
    return ResponseEnvelope(
        body=body,
        metadata=ResponseMetadata(status_code=status, headers=headers or {}),
        transport_error=error,
    )


class StubTransport:
    """Returns a fixed envelope (or raises) after an optional gate opens."""

    def __init__(
        self,
        envelope: ResponseEnvelope | None = None,
        *,
        raises: BaseException | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.envelope = envelope if envelope is not None else http_envelope()
        self.raises = raises
        self.gate = gate
        self.requests: list[FetchRequest] = []
        self.closed = False

    async def send(self, request: FetchRequest) -> ResponseEnvelope:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.raises is not None:
            raise self.raises
        return self.envelope

    async def aclose(self) -> None:
        self.closed = True


class Recorder:
    """Callback that records each outcome and the context it ran on."""

    def __init__(self) -> None:
        self.outcomes: list[Any] = []
        self.contexts: list[object | None] = []

    def __call__(self, outcome: Any) -> None:
        self.outcomes.append(outcome)
        self.contexts.append(current_context())

    @property
    def single(self) -> Any:
        assert len(self.outcomes) == 1, f"expected one outcome, got {self.outcomes}"
        return self.outcomes[0]


class CountingDecoder:
    """Wraps a decoder and counts invocations."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: list[bytes] = []

    def decode(self, data: bytes) -> Any:
        self.calls.append(data)
        return self.inner.decode(data)
