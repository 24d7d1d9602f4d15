"""Generic fetch-and-decode pipeline with single-fire, context-aware delivery."""

import importlib.metadata
import logging

from fetchpipe.config import FetchSettings, resolve_settings
from fetchpipe.core.exceptions import (
    ConfigurationError,
    DecodeFailure,
    FetchError,
    FetchPipelineError,
    HTTPStatusError,
    InvariantViolationError,
    NoBody,
    RequestEncodeError,
    TransportFailure,
)
from fetchpipe.core.request import FetchRequest, HTTPMethod, join_url
from fetchpipe.core.types import (
    Failure,
    ResponseEnvelope,
    ResponseMetadata,
    Result,
    Success,
    describe_envelope,
)
from fetchpipe.fetcher import FetchPipeline, PipelineConfig, create_pipeline
from fetchpipe.pipeline import (
    AsyncioContext,
    Decoder,
    DefaultClassifier,
    ErrorClassifier,
    ExecutionContext,
    HTTPXTransport,
    JSONDecoder,
    ManualContext,
    ModelDecoder,
    TextDecoder,
    ThreadPoolContext,
    Transport,
    current_context,
)
from fetchpipe.telemetry import InMemoryReporter, TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("fetchpipe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Pipeline
    "FetchPipeline",
    "PipelineConfig",
    "create_pipeline",
    # Requests and responses
    "FetchRequest",
    "HTTPMethod",
    "join_url",
    "ResponseEnvelope",
    "ResponseMetadata",
    "describe_envelope",
    "Result",
    "Success",
    "Failure",
    # Collaborators
    "ErrorClassifier",
    "DefaultClassifier",
    "Decoder",
    "JSONDecoder",
    "ModelDecoder",
    "TextDecoder",
    "ExecutionContext",
    "AsyncioContext",
    "ThreadPoolContext",
    "ManualContext",
    "current_context",
    "Transport",
    "HTTPXTransport",
    # Settings
    "FetchSettings",
    "resolve_settings",
    # Errors
    "FetchPipelineError",
    "ConfigurationError",
    "InvariantViolationError",
    "RequestEncodeError",
    "FetchError",
    "TransportFailure",
    "NoBody",
    "HTTPStatusError",
    "DecodeFailure",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    "InMemoryReporter",
]
