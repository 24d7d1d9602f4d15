"""Decoder adapters.

Decoders are plain synchronous objects with a ``decode(data)`` method. They
raise on failure; the pipeline hands the exception to the classifier's
``from_decode_error`` together with the envelope.
"""

from __future__ import annotations

from collections.abc import Callable
import json
from typing import Any

from pydantic import TypeAdapter


class JSONDecoder:
    """Decode bytes with the standard library ``json`` module."""

    __slots__ = ("_object_hook", "_parse_float")

    def __init__(
        self,
        *,
        object_hook: Callable[[dict[str, Any]], Any] | None = None,
        parse_float: Callable[[str], Any] | None = None,
    ) -> None:
        """Configure optional ``json.loads`` hooks."""
        self._object_hook = object_hook
        self._parse_float = parse_float

    def decode(self, data: bytes) -> Any:
        """Parse ``data`` as JSON; raises ``json.JSONDecodeError`` on bad input."""
        return json.loads(
            data, object_hook=self._object_hook, parse_float=self._parse_float
        )


class ModelDecoder[T]:
    """Decode JSON bytes straight into ``target`` using pydantic.

    ``target`` can be anything pydantic validates: a ``BaseModel``, a
    dataclass, a ``TypedDict``, ``list[Item]`` and so on. Malformed JSON and
    schema mismatches both raise ``pydantic.ValidationError``.
    """

    __slots__ = ("_adapter", "_strict", "target")

    def __init__(self, target: type[T] | Any, *, strict: bool | None = None) -> None:
        """Build a reusable ``TypeAdapter`` for ``target``."""
        self.target = target
        self._adapter: TypeAdapter[T] = TypeAdapter(target)
        self._strict = strict

    def decode(self, data: bytes) -> T:
        """Validate ``data`` against the target type."""
        return self._adapter.validate_json(data, strict=self._strict)

    def __repr__(self) -> str:
        name = getattr(self.target, "__name__", repr(self.target))
        return f"ModelDecoder({name})"


class TextDecoder:
    """Decode bytes into ``str``."""

    __slots__ = ("encoding",)

    def __init__(self, encoding: str = "utf-8") -> None:
        """Use ``encoding`` strictly; invalid bytes raise."""
        self.encoding = encoding

    def decode(self, data: bytes) -> str:
        """Return ``data`` decoded as text."""
        return data.decode(self.encoding)
