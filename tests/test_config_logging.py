"""Settings overrides and structlog configuration."""

import pytest
import structlog
from structlog.testing import capture_logs

from shapeguard import DecodeError, compile, configure_logging, from_descriptor, number, string
from shapeguard.config import Settings, get_settings


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_defaults():
    settings = Settings()
    assert settings.DEFAULT_CHARSET == "a-zA-Z0-9"
    assert settings.EMIT_SCHEMA_DIALECT is True
    assert settings.LOG_LEVEL == "info"


def test_default_charset_from_env(monkeypatch):
    monkeypatch.setenv("SHAPEGUARD_DEFAULT_CHARSET", "0-9")
    get_settings.cache_clear()
    validator = string.of(3)
    assert validator("123")
    assert not validator("abc")


def test_step_tolerance_from_env(monkeypatch):
    monkeypatch.setenv("SHAPEGUARD_STEP_TOLERANCE", "0.01")
    get_settings.cache_clear()
    assert number.step(0.5)(1.001)
    assert not number.step(0.5)(1.1)


def test_compile_emits_debug_event(reset_structlog):
    configure_logging(level="debug", debug=False)
    with capture_logs() as logs:
        compile({"a": number})
    events = [log for log in logs if log["event"] == "pattern_compiled"]
    assert events
    assert events[0]["log_level"] == "debug"
    assert "duration_ms" in events[0]


def test_level_filters_debug_events(reset_structlog):
    configure_logging(level="warning", debug=True)
    with capture_logs() as logs:
        compile({"a": number})
    assert not [log for log in logs if log["event"] == "pattern_compiled"]


def test_decode_failures_are_logged(reset_structlog):
    configure_logging(level="info")
    with capture_logs() as logs:
        with pytest.raises(DecodeError):
            from_descriptor({"type": "tuple"})
    failures = [log for log in logs if log["event"] == "descriptor_decode_failed"]
    assert failures
    assert failures[0]["code"] == "DESCRIPTOR_UNSUPPORTED"
