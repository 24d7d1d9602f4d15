"""Core data types that flow through the fetch pipeline.

This module defines the immutable data structures that represent a response
as it moves through the pipeline stages. The transport produces a
`ResponseEnvelope`, the classifier turns it into a `Result`, and the decoder
turns success bytes into the caller's value.
"""

from __future__ import annotations

import dataclasses
from types import MappingProxyType
import typing

# --- Minimal guard helpers (clarity > boilerplate) ---

T = typing.TypeVar("T")


def _freeze_mapping(
    m: dict[str, T] | typing.Mapping[str, T] | None,
) -> typing.Mapping[str, T] | None:
    """Return an immutable mapping view or None.

    Accepts dict or Mapping; wraps dicts in MappingProxyType while preserving type.
    """
    if m is None or isinstance(m, MappingProxyType):
        return m
    return MappingProxyType(dict(m))


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            enhanced_message = f"{field_name}: {message}"
            raise exc(enhanced_message)
        raise exc(message)


# --- Result Monad for Robust Error Handling ---
# Every fetch outcome travels through this single channel, so nothing has to
# be raised across the asynchronous hand-off between contexts.

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result in the pipeline."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failure in the pipeline, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


def is_result(value: object) -> bool:
    """Return True when ``value`` is a ``Success`` or ``Failure``."""
    return isinstance(value, Success | Failure)


# --- Response Data Models ---


@dataclasses.dataclass(frozen=True, slots=True)
class ResponseMetadata:
    """Protocol-level metadata of an HTTP response.

    Only this type counts as an HTTP response for classification. Any other
    object placed in ``ResponseEnvelope.metadata`` is treated as a response
    of some other protocol.
    """

    status_code: int
    headers: typing.Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    url: str | None = None

    def __post_init__(self) -> None:
        """Validate status code and freeze headers."""
        _require(
            condition=isinstance(self.status_code, int)
            and not isinstance(self.status_code, bool),
            message="must be an int",
            field_name="status_code",
            exc=TypeError,
        )
        _require(
            condition=self.status_code >= 0,
            message=f"must be >= 0, got {self.status_code}",
            field_name="status_code",
        )
        object.__setattr__(self, "headers", _freeze_mapping(self.headers))

    def header(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return default


@dataclasses.dataclass(frozen=True, slots=True)
class ResponseEnvelope:
    """The raw outcome of one transport call.

    ``body``, ``metadata`` and ``transport_error`` are independent: a real
    network failure can carry an error together with a partial body, or
    metadata without a body. Nothing is inferred from one field to another.
    """

    body: bytes | None = None
    metadata: object | None = None
    transport_error: BaseException | None = None

    def __post_init__(self) -> None:
        """Validate field types."""
        _require(
            condition=self.body is None or isinstance(self.body, bytes),
            message=f"must be bytes or None, got {type(self.body).__name__}",
            field_name="body",
            exc=TypeError,
        )
        _require(
            condition=self.transport_error is None
            or isinstance(self.transport_error, BaseException),
            message="must be an exception or None",
            field_name="transport_error",
            exc=TypeError,
        )

    @property
    def http_metadata(self) -> ResponseMetadata | None:
        """Return the metadata when it is an HTTP response, else None."""
        if isinstance(self.metadata, ResponseMetadata):
            return self.metadata
        return None

    @property
    def status_code(self) -> int | None:
        """Return the HTTP status code, if any."""
        meta = self.http_metadata
        return meta.status_code if meta is not None else None


def describe_envelope(envelope: ResponseEnvelope, *, max_body: int = 512) -> str:
    """Render a single-line diagnostic summary of an envelope.

    Missing parts are shown as ``…``. Bodies that are not valid UTF-8 are
    reported by size only.
    """
    error = (
        f"{type(envelope.transport_error).__name__}: {envelope.transport_error}"
        if envelope.transport_error is not None
        else "…"
    )
    meta = envelope.http_metadata
    if meta is not None:
        metadata = f"HTTP {meta.status_code}" + (f" {meta.url}" if meta.url else "")
    elif envelope.metadata is not None:
        metadata = repr(envelope.metadata)
    else:
        metadata = "…"
    if envelope.body is None:
        body = "…"
    else:
        try:
            text = envelope.body.decode("utf-8")
        except UnicodeDecodeError:
            body = f"<{len(envelope.body)} bytes, undecodable>"
        else:
            body = text if len(text) <= max_body else text[:max_body] + "…"
    return f"error: {error} -- metadata: {metadata} -- body: {body}"
