"""Request description consumed by transports."""

from __future__ import annotations

import dataclasses
from enum import Enum
import json
from types import MappingProxyType
import typing

import httpx

from fetchpipe.core.exceptions import RequestEncodeError
from fetchpipe.core.types import _freeze_mapping, _require


class HTTPMethod(str, Enum):
    """HTTP methods supported by the request builder."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    DELETE = "DELETE"
    PATCH = "PATCH"


@dataclasses.dataclass(frozen=True, slots=True)
class FetchRequest:
    """A fully specified HTTP request: method, URL, headers and body."""

    url: str
    method: HTTPMethod = HTTPMethod.GET
    headers: typing.Mapping[str, str] = dataclasses.field(
        default_factory=lambda: MappingProxyType({})
    )
    body: bytes | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate invariants and freeze headers."""
        _require(
            condition=isinstance(self.url, str) and self.url.strip() != "",
            message="must be a non-empty str",
            field_name="url",
            exc=TypeError,
        )
        if not isinstance(self.method, HTTPMethod):
            try:
                object.__setattr__(self, "method", HTTPMethod(str(self.method).upper()))
            except ValueError as e:
                raise ValueError(f"method: unsupported HTTP method {self.method!r}") from e
        _require(
            condition=self.body is None or isinstance(self.body, bytes),
            message="must be bytes or None",
            field_name="body",
            exc=TypeError,
        )
        _require(
            condition=self.timeout is None or self.timeout > 0,
            message="must be > 0 when provided",
            field_name="timeout",
        )
        object.__setattr__(self, "headers", _freeze_mapping(self.headers))

    @classmethod
    def build(
        cls,
        url: str,
        method: HTTPMethod | str = HTTPMethod.GET,
        headers: typing.Mapping[str, str] | None = None,
    ) -> FetchRequest:
        """Build a request for ``url`` with the given method and headers."""
        return cls(url=url, method=method, headers=dict(headers or {}))  # type: ignore[arg-type]

    def with_json(self, payload: typing.Any) -> FetchRequest:
        """Return a copy carrying ``payload`` encoded as a JSON body.

        Raises:
            RequestEncodeError: If the payload is not JSON serializable.
        """
        try:
            body = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise RequestEncodeError(f"Cannot encode request body: {e}") from e
        headers = dict(self.headers)
        if not any(key.lower() == "content-type" for key in headers):
            headers["Content-Type"] = "application/json"
        return dataclasses.replace(self, body=body, headers=headers)

    def with_headers(self, **headers: str) -> FetchRequest:
        """Return a copy with ``headers`` merged over the existing ones."""
        merged = {**self.headers, **headers}
        return dataclasses.replace(self, headers=merged)


def join_url(base: str, path: str) -> str | None:
    """Resolve ``path`` relative to ``base``.

    A single leading ``/`` on ``path`` is dropped so the path is appended to
    the base rather than replacing its path component. Returns None when the
    result is not a valid URL.
    """
    if path.startswith("/"):
        path = path[1:]
    try:
        joined = httpx.URL(base).join(path)
    except (httpx.InvalidURL, TypeError):
        return None
    if not joined.scheme or not joined.host:
        return None
    return str(joined)
