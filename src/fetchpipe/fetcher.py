"""The primary user-facing entry point: fetch, classify, decode, deliver.

A call to `FetchPipeline.fetch` runs these stages, strictly in order:

1. send the request through the transport (inside an asyncio task)
2. capture the result as a `ResponseEnvelope`
3. resolve the per-call configuration (weak unless ``retain_config``)
4. hop to the decode context
5. classify the envelope
6. decode the success body (skipped when classification failed)
7. hop to the callback context
8. invoke the callback with the `Result`

The callback fires at most once. It does not fire at all when the
configuration was released before the response arrived (and retention was
not requested) or when the returned task is cancelled first. Every other
outcome, including every transport, status and decode error, is delivered as
`Failure`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import dataclasses
from functools import partial
import logging
import threading
from typing import TYPE_CHECKING, Any, Self
import weakref

from fetchpipe._dev_flags import dev_validate_enabled
from fetchpipe.config import FetchSettings, resolve_settings
from fetchpipe.core.exceptions import ConfigurationError, InvariantViolationError
from fetchpipe.core.request import FetchRequest
from fetchpipe.core.types import (
    Failure,
    ResponseEnvelope,
    Result,
    Success,
    _require,
    is_result,
)
from fetchpipe.pipeline.base import (
    Decoder,
    ErrorClassifier,
    ExecutionContext,
    Transport,
)
from fetchpipe.pipeline.classifier import DefaultClassifier
from fetchpipe.pipeline.contexts import AsyncioContext
from fetchpipe.pipeline.transport import HTTPXTransport
from fetchpipe.telemetry import TelemetryContext

if TYPE_CHECKING:
    from fetchpipe.telemetry import TelemetryContextProtocol, TelemetryReporter

logger = logging.getLogger(__name__)

# --- Telemetry scopes/keys ---
T_TRANSPORT = "fetch.transport"
T_DECODE = "fetch.decode"
T_DROPPED = "fetch.dropped"
T_FAILURE = "fetch.failure"


@dataclasses.dataclass(frozen=True, slots=True, weakref_slot=True)
class PipelineConfig[T, E: Exception]:
    """Per-call collaborators: how to classify, decode and where to run.

    Unless ``retain_config`` is set, the pipeline only keeps a weak reference
    to this object while the request is in flight. Dropping the last strong
    reference before the response arrives silently cancels delivery.
    """

    classifier: ErrorClassifier[E]
    decoder: Decoder[T]
    decode_context: ExecutionContext
    callback_context: ExecutionContext
    retain_config: bool = False

    def __post_init__(self) -> None:
        """Validate that every collaborator provides its capability."""
        _require(
            condition=isinstance(self.classifier, ErrorClassifier),
            message="must provide extract() and from_decode_error()",
            field_name="classifier",
            exc=ConfigurationError,
        )
        _require(
            condition=isinstance(self.decoder, Decoder),
            message="must provide decode()",
            field_name="decoder",
            exc=ConfigurationError,
        )
        for name in ("decode_context", "callback_context"):
            _require(
                condition=isinstance(getattr(self, name), ExecutionContext),
                message="must provide schedule()",
                field_name=name,
                exc=ConfigurationError,
            )

    @classmethod
    def create(
        cls,
        decoder: Decoder[T],
        *,
        classifier: ErrorClassifier[E] | None = None,
        decode_context: ExecutionContext | None = None,
        callback_context: ExecutionContext | None = None,
        retain_config: bool = False,
    ) -> PipelineConfig[T, E]:
        """Build a config with defaults for everything but the decoder.

        Missing contexts default to an `AsyncioContext` on the running loop,
        so this must be called from inside a coroutine unless both contexts
        are given.
        """
        if decode_context is None or callback_context is None:
            loop_context = AsyncioContext()
            if decode_context is None:
                decode_context = loop_context
            if callback_context is None:
                callback_context = loop_context
        return cls(
            classifier=(
                classifier if classifier is not None else DefaultClassifier()  # type: ignore[arg-type]
            ),
            decoder=decoder,
            decode_context=decode_context,
            callback_context=callback_context,
            retain_config=retain_config,
        )


# --- Per-call handles: explicit liveness check before each stage ---


class _RetainedHandle:
    __slots__ = ("_config",)

    def __init__(self, config: PipelineConfig[Any, Any]) -> None:
        self._config = config

    def resolve(self) -> PipelineConfig[Any, Any] | None:
        return self._config


class _WeakHandle:
    __slots__ = ("_ref",)

    def __init__(self, config: PipelineConfig[Any, Any]) -> None:
        self._ref = weakref.ref(config)

    def resolve(self) -> PipelineConfig[Any, Any] | None:
        return self._ref()


type _ConfigHandle = _RetainedHandle | _WeakHandle


class _OnceCallback:
    """Forwards the first outcome to the wrapped callback and ignores the rest."""

    __slots__ = ("_callback", "_lock")

    def __init__(self, callback: Callable[[Any], None]) -> None:
        self._callback: Callable[[Any], None] | None = callback
        self._lock = threading.Lock()

    @property
    def fired(self) -> bool:
        return self._callback is None

    def __call__(self, outcome: Result[Any, Any]) -> None:
        with self._lock:
            callback, self._callback = self._callback, None
        if callback is None:
            logger.debug("Ignoring repeated delivery of %r", outcome)
            return
        callback(outcome)


class FetchPipeline:
    """Runs requests through transport, classification, decoding and delivery.

    The pipeline keeps no state shared between calls apart from the set of
    in-flight tasks. Classifiers and decoders may be reused concurrently.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        telemetry: TelemetryContextProtocol | None = None,
        settings: FetchSettings | None = None,
        owns_transport: bool = False,
        validate: bool | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            transport: Performs the HTTP requests.
            telemetry: Optional telemetry context (no-op by default).
            settings: Settings used by `make_config` defaults.
            owns_transport: Close the transport in `aclose`.
            validate: Enable dev-time validation (overrides
                FETCHPIPE_PIPELINE_VALIDATE).
        """
        if not isinstance(transport, Transport):
            raise ConfigurationError("transport must provide an async send() method")
        self._transport = transport
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()
        self.settings = settings
        self._owns_transport = owns_transport
        self._validate = dev_validate_enabled(override=validate)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def transport(self) -> Transport:
        """The transport requests are sent through."""
        return self._transport

    @property
    def in_flight(self) -> int:
        """Number of calls whose transport stage has not finished."""
        return len(self._tasks)

    def make_config[T](
        self,
        decoder: Decoder[T],
        *,
        decode_context: ExecutionContext | None = None,
        callback_context: ExecutionContext | None = None,
        retain_config: bool | None = None,
    ) -> PipelineConfig[T, Any]:
        """Build a `PipelineConfig` using this pipeline's settings as defaults."""
        settings = self.settings or FetchSettings()
        return PipelineConfig.create(
            decoder,
            classifier=DefaultClassifier.from_settings(settings),
            decode_context=decode_context,
            callback_context=callback_context,
            retain_config=(
                settings.retain_config if retain_config is None else retain_config
            ),
        )

    def fetch[T, E: Exception](
        self,
        request: FetchRequest,
        config: PipelineConfig[T, E],
        callback: Callable[[Result[T, E]], None],
    ) -> asyncio.Task[None]:
        """Start a fetch and return immediately.

        Must be called with a running event loop. The returned task covers the
        transport stage; cancelling it before the response arrives means the
        callback never fires.
        """
        if not isinstance(config, PipelineConfig):
            raise ConfigurationError("config must be a PipelineConfig")
        if not callable(callback):
            raise ConfigurationError("callback must be callable")
        handle: _ConfigHandle = (
            _RetainedHandle(config) if config.retain_config else _WeakHandle(config)
        )
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._run(request, handle, _OnceCallback(callback)),
            name=f"fetch {request.method.value} {request.url}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def fetch_result[T, E: Exception](
        self, request: FetchRequest, config: PipelineConfig[T, E]
    ) -> Result[T, E]:
        """Await the outcome of a fetch delivered on the callback context."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Result[T, E]] = loop.create_future()

        def _settle(outcome: Result[T, E]) -> None:
            if not future.done():
                future.set_result(outcome)

        def _resolve(outcome: Result[T, E]) -> None:
            loop.call_soon_threadsafe(_settle, outcome)

        task = self.fetch(request, config, _resolve)
        try:
            return await future
        except asyncio.CancelledError:
            task.cancel()
            raise

    # --- Stages ---

    async def _run(
        self,
        request: FetchRequest,
        handle: _ConfigHandle,
        deliver: _OnceCallback,
    ) -> None:
        with self._telemetry(T_TRANSPORT, method=request.method.value):
            envelope = await self._send(request)

        config = handle.resolve()
        if config is None:
            self._drop(request, stage="transport")
            return
        logger.debug("Response for %s received; hopping to decode context", request.url)
        config.decode_context.schedule(
            partial(self._decode_stage, request, envelope, handle, deliver)
        )

    async def _send(self, request: FetchRequest) -> ResponseEnvelope:
        try:
            envelope = await self._transport.send(request)
        except Exception as e:
            logger.debug("Transport raised for %s; capturing as envelope", request.url)
            return ResponseEnvelope(transport_error=e)
        if not isinstance(envelope, ResponseEnvelope):
            raise InvariantViolationError(
                f"Transport returned {type(envelope).__name__}; expected ResponseEnvelope.",
                stage_name="transport",
            )
        return envelope

    def _decode_stage(
        self,
        request: FetchRequest,
        envelope: ResponseEnvelope,
        handle: _ConfigHandle,
        deliver: _OnceCallback,
    ) -> None:
        config = handle.resolve()
        if config is None:
            self._drop(request, stage="decode")
            return
        with self._telemetry(T_DECODE):
            outcome = self._classify_and_decode(config, envelope)
        if isinstance(outcome, Failure):
            self._telemetry.count(T_FAILURE, error=type(outcome.error).__name__)
        config.callback_context.schedule(partial(deliver, outcome))

    def _classify_and_decode(
        self, config: PipelineConfig[Any, Any], envelope: ResponseEnvelope
    ) -> Result[Any, Any]:
        extracted = config.classifier.extract(envelope)
        if not is_result(extracted):
            raise InvariantViolationError(
                "Classifier returned a non-Result value; expected Success|Failure.",
                stage_name="classify",
            )
        if isinstance(extracted, Failure):
            if self._validate:
                self._check_error(extracted.error, stage_name="classify")
            return extracted

        try:
            value = config.decoder.decode(extracted.value)
        except Exception as e:
            error = config.classifier.from_decode_error(e, envelope)
            if self._validate:
                self._check_error(error, stage_name="decode")
            return Failure(error)
        return Success(value)

    @staticmethod
    def _check_error(error: object, *, stage_name: str) -> None:
        if not isinstance(error, Exception):
            raise InvariantViolationError(
                f"Classifier produced {type(error).__name__}; expected an Exception.",
                stage_name=stage_name,
            )

    def _drop(self, request: FetchRequest, *, stage: str) -> None:
        logger.debug(
            "Configuration released before %s stage; dropping response for %s %s",
            stage,
            request.method.value,
            request.url,
        )
        self._telemetry.count(T_DROPPED, stage=stage)

    # --- Lifecycle ---

    async def aclose(self) -> None:
        """Close the transport when this pipeline owns it."""
        if self._owns_transport:
            close = getattr(self._transport, "aclose", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def create_pipeline(
    settings: FetchSettings | None = None,
    *,
    transport: Transport | None = None,
    reporters: tuple[TelemetryReporter, ...] = (),
    validate: bool | None = None,
) -> FetchPipeline:
    """Create a pipeline with optional settings and transport.

    If no settings are provided they are resolved from the environment. If no
    transport is provided an `HTTPXTransport` is built from the settings and
    owned (closed) by the pipeline.
    """
    # This is the only place where ambient configuration is resolved.
    final_settings = settings if settings is not None else resolve_settings()
    owns_transport = transport is None
    final_transport = transport or HTTPXTransport(settings=final_settings)
    telemetry = TelemetryContext(
        *reporters, enabled=True if final_settings.telemetry_enabled else None
    )
    return FetchPipeline(
        final_transport,
        telemetry=telemetry,
        settings=final_settings,
        owns_transport=owns_transport,
        validate=validate,
    )
