"""Tests for settings, logging configuration and structured errors."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator

import orjson
import pytest

from jsonbuilder import BuildError, EncodingError, ErrorCode, InvocationError, configure_logging
from jsonbuilder.foundation.config import LoggingSettings, clear_settings_cache, get_settings
from jsonbuilder.observability import ROOT_LOGGER


@pytest.fixture
def fresh_settings() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def restore_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


# ═════════════════════════════════════════════════════════════════════════════
# Settings
# ═════════════════════════════════════════════════════════════════════════════


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch, fresh_settings: None) -> None:
    monkeypatch.setenv("JSONBUILDER_CACHE_WRITE_BUDGET", "7")
    monkeypatch.setenv("JSONBUILDER_ENCODER_INDENT", "true")
    monkeypatch.setenv("JSONBUILDER_BUILDER_MAX_WORKERS", "4")

    settings = get_settings()
    assert settings.cache.write_budget == 7
    assert settings.encoder.indent is True
    assert settings.builder.max_workers == 4
    assert get_settings() is settings


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch, fresh_settings: None) -> None:
    monkeypatch.delenv("JSONBUILDER_CACHE_WRITE_BUDGET", raising=False)
    settings = get_settings()
    assert settings.cache.write_budget == 50
    assert settings.cache.strict is False
    assert settings.logging.format == "text"


def test_log_level_normalized() -> None:
    assert LoggingSettings(level="debug").level == "DEBUG"


# ═════════════════════════════════════════════════════════════════════════════
# Logging
# ═════════════════════════════════════════════════════════════════════════════


def test_json_logging(restore_logger: logging.Logger) -> None:
    stream = io.StringIO()
    configure_logging(LoggingSettings(level="DEBUG", format="json"), stream=stream)

    logging.getLogger("jsonbuilder.cache").warning("cache write failed key=%s", "posts/1")

    entry = orjson.loads(stream.getvalue().splitlines()[-1])
    assert entry["event"] == "cache write failed key=posts/1"
    assert entry["level"] == "warning"
    assert entry["logger"] == "jsonbuilder.cache"
    assert "timestamp" in entry


def test_text_logging_without_timestamps(restore_logger: logging.Logger) -> None:
    stream = io.StringIO()
    configure_logging(LoggingSettings(level="INFO", format="text", include_timestamps=False), stream=stream)

    logging.getLogger("jsonbuilder.builder").info("hello")
    logging.getLogger("jsonbuilder.builder").debug("hidden")

    assert stream.getvalue() == "[INFO] jsonbuilder.builder: hello\n"


def test_configure_logging_replaces_handler(restore_logger: logging.Logger) -> None:
    before = len(restore_logger.handlers)
    configure_logging()
    configure_logging()
    assert len(restore_logger.handlers) == before + 1


# ═════════════════════════════════════════════════════════════════════════════
# Errors
# ═════════════════════════════════════════════════════════════════════════════


def test_invocation_error_render() -> None:
    exc = InvocationError.unresolved("author", 3, False)
    assert exc.error.code == ErrorCode.UNRESOLVED_INVOCATION
    assert exc.error.is_caller_error
    assert str(exc).startswith("[UNRESOLVED_INVOCATION] invoke: cannot resolve 'author' with 3 argument(s)")


def test_build_error_serializes() -> None:
    error = EncodingError.create("encode", "bad value", value_type="object").error
    assert not error.is_caller_error
    assert error.model_dump() == {
        "operation": "encode",
        "message": "bad value",
        "code": ErrorCode.ENCODING_ERROR,
        "metadata": {"value_type": "object"},
        "is_caller_error": False,
    }


def test_build_error_is_frozen() -> None:
    error = BuildError(operation="set", message="m", code=ErrorCode.STRUCTURE_CONFLICT)
    with pytest.raises(Exception):
        error.message = "changed"  # type: ignore[misc]
