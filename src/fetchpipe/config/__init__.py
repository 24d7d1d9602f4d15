"""Settings resolution for the fetch pipeline.

Precedence, highest first: programmatic overrides, environment variables
(``FETCHPIPE_*``), an optional ``.env`` file, then defaults.

Usage:
    settings = resolve_settings()
    settings = resolve_settings({"timeout_seconds": 5})
"""

from collections.abc import Mapping
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from fetchpipe.config.schema import FetchSettings
from fetchpipe.core.exceptions import ConfigurationError

log = logging.getLogger(__name__)

__all__ = ["FetchSettings", "resolve_settings"]


def resolve_settings(
    overrides: Mapping[str, Any] | None = None,
    *,
    env_file: str | Path | None = None,
) -> FetchSettings:
    """Resolve settings from overrides, environment and an optional .env file.

    Raises:
        ConfigurationError: If any source provides an invalid value.
    """
    if env_file is not None and not Path(env_file).exists():
        raise ConfigurationError(f"Environment file not found: {env_file}")
    try:
        settings = FetchSettings(
            _env_file=env_file,  # type: ignore[call-arg]
            **dict(overrides or {}),
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid fetch settings: {e}") from e
    log.debug("Resolved fetch settings: %s", settings.to_dict())
    return settings
