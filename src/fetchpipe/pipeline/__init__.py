"""Pluggable pipeline collaborators: classifier, decoders, contexts, transport."""

from fetchpipe.pipeline.base import Decoder, ErrorClassifier, ExecutionContext, Transport
from fetchpipe.pipeline.classifier import DefaultClassifier
from fetchpipe.pipeline.contexts import (
    AsyncioContext,
    ManualContext,
    ThreadPoolContext,
    current_context,
)
from fetchpipe.pipeline.decoders import JSONDecoder, ModelDecoder, TextDecoder
from fetchpipe.pipeline.transport import HTTPXTransport

__all__ = [
    "AsyncioContext",
    "Decoder",
    "DefaultClassifier",
    "ErrorClassifier",
    "ExecutionContext",
    "HTTPXTransport",
    "JSONDecoder",
    "ManualContext",
    "ModelDecoder",
    "TextDecoder",
    "ThreadPoolContext",
    "Transport",
    "current_context",
]
