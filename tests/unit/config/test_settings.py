import pytest

from fetchpipe.config import FetchSettings, resolve_settings
from fetchpipe.core.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


def test_defaults():
    settings = resolve_settings()

    assert settings.timeout_seconds == 30.0
    assert (settings.accepted_status_min, settings.accepted_status_max) == (200, 299)
    assert settings.retain_config is False
    assert settings.follow_redirects is True


def test_environment_values_are_coerced(monkeypatch):
    monkeypatch.setenv("FETCHPIPE_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("FETCHPIPE_RETAIN_CONFIG", "true")
    monkeypatch.setenv("FETCHPIPE_ACCEPTED_STATUS_MAX", "399")

    settings = resolve_settings()

    assert settings.timeout_seconds == 2.5
    assert settings.retain_config is True
    assert settings.accepted_status_max == 399


def test_overrides_take_precedence_over_environment(monkeypatch):
    monkeypatch.setenv("FETCHPIPE_USER_AGENT", "from-env")

    settings = resolve_settings({"user_agent": "from-code"})

    assert settings.user_agent == "from-code"


def test_env_file_is_read(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("FETCHPIPE_MAX_REDIRECTS=2\n", encoding="utf-8")

    assert resolve_settings(env_file=env_file).max_redirects == 2


def test_missing_env_file_is_an_error(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        resolve_settings(env_file=tmp_path / "missing.env")


@pytest.mark.parametrize(
    "overrides",
    [
        {"timeout_seconds": 0},
        {"max_connections": 0},
        {"accepted_status_min": 300, "accepted_status_max": 200},
        {"user_agent": ""},
    ],
)
def test_invalid_values_raise_configuration_error(overrides):
    with pytest.raises(ConfigurationError):
        resolve_settings(overrides)


def test_settings_are_frozen():
    settings = FetchSettings()

    with pytest.raises(Exception):  # noqa: B017 - pydantic raises ValidationError
        settings.timeout_seconds = 1  # type: ignore[misc]


def test_to_dict_round_trips_field_names():
    assert set(FetchSettings().to_dict()) == {
        "timeout_seconds",
        "follow_redirects",
        "max_redirects",
        "max_connections",
        "user_agent",
        "accepted_status_min",
        "accepted_status_max",
        "retain_config",
        "telemetry_enabled",
    }
