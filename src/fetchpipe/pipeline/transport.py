"""httpx-backed transport.

The transport never raises for network problems. Whatever httpx reports is
captured into a `ResponseEnvelope` so the classifier can decide what it means.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

import httpx

from fetchpipe.core.types import ResponseEnvelope, ResponseMetadata

if TYPE_CHECKING:
    from fetchpipe.config import FetchSettings
    from fetchpipe.core.request import FetchRequest

logger = logging.getLogger(__name__)


class HTTPXTransport:
    """Sends `FetchRequest` objects with an ``httpx.AsyncClient``.

    A client passed in stays owned by the caller; a client created here is
    closed by `aclose`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        settings: FetchSettings | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Wrap ``client`` or build one from ``settings``."""
        self._owns_client = client is None
        self._client = client or self._build_client(settings, **client_kwargs)

    @staticmethod
    def _build_client(
        settings: FetchSettings | None, **client_kwargs: Any
    ) -> httpx.AsyncClient:
        if settings is None:
            return httpx.AsyncClient(**client_kwargs)
        options: dict[str, Any] = {
            "timeout": httpx.Timeout(settings.timeout_seconds),
            "follow_redirects": settings.follow_redirects,
            "max_redirects": settings.max_redirects,
            "headers": {"User-Agent": settings.user_agent},
            "limits": httpx.Limits(max_connections=settings.max_connections),
        }
        options.update(client_kwargs)
        return httpx.AsyncClient(**options)

    @property
    def client(self) -> httpx.AsyncClient:
        """The underlying httpx client."""
        return self._client

    async def send(self, request: FetchRequest) -> ResponseEnvelope:
        """Perform ``request`` and capture body, metadata and error as-is.

        The response is streamed so that a connection lost after the status
        line keeps its metadata: the envelope then carries metadata and the
        error with no body.
        """
        kwargs: dict[str, Any] = {
            "headers": dict(request.headers),
            "content": request.body,
        }
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout
        try:
            response = await self._client.send(
                self._client.build_request(
                    request.method.value, request.url, **kwargs
                ),
                stream=True,
            )
        except httpx.HTTPError as e:
            logger.debug(
                "Transport error for %s %s: %s", request.method.value, request.url, e
            )
            return ResponseEnvelope(transport_error=e)

        metadata = ResponseMetadata(
            status_code=response.status_code,
            headers=dict(response.headers),
            url=str(response.url),
        )
        try:
            body = await response.aread()
        except httpx.HTTPError as e:
            logger.debug(
                "Body read failed for %s %s (HTTP %d): %s",
                request.method.value,
                request.url,
                response.status_code,
                e,
            )
            return ResponseEnvelope(metadata=metadata, transport_error=e)
        finally:
            await response.aclose()
        return ResponseEnvelope(body=body, metadata=metadata)

    async def aclose(self) -> None:
        """Close the client when this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
