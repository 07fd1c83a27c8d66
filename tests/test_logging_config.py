"""Tests for the logging configuration."""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

from menubridge.config import logging as log_mod
from menubridge.config.settings import RuntimeConfig
from menubridge.const import LOG_STREAM_ENV


def _record(name: str = "menubridge.reader") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Error decoding metrics: %s",
        args=("bad",),
        exc_info=None,
    )


def test_formatter_trims_prefix_and_serialises_extras() -> None:
    record = _record()
    record.payload = b'{"k'  # type: ignore[attr-defined]
    record.length = 3  # type: ignore[attr-defined]

    payload = json.loads(log_mod.StructuredLogFormatter().format(record))

    assert payload["logger"] == "reader"
    assert payload["level"] == "WARNING"
    assert payload["message"] == "Error decoding metrics: bad"
    assert payload["extra"] == {"payload": "[7B 22 6B]", "length": 3}
    assert payload["ts"].endswith("Z")


def test_formatter_keeps_foreign_logger_names() -> None:
    payload = json.loads(log_mod.StructuredLogFormatter().format(_record("asyncio")))
    assert payload["logger"] == "asyncio"
    assert "extra" not in payload


def test_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(log_mod.StructuredLogFormatter().format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_build_handler_prefers_stream_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv(LOG_STREAM_ENV, "1")
    handler = log_mod._build_handler(str(tmp_path / "bridge.log"))
    try:
        assert type(handler) is logging.StreamHandler
    finally:
        handler.close()


def test_build_handler_uses_log_file(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(LOG_STREAM_ENV, raising=False)
    log_file = tmp_path / "logs" / "bridge.log"

    handler = log_mod._build_handler(str(log_file))
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert log_file.parent.is_dir()
    finally:
        handler.close()


def test_build_handler_falls_back_to_stderr(monkeypatch, tmp_path) -> None:
    monkeypatch.delenv(LOG_STREAM_ENV, raising=False)
    with (
        patch.object(log_mod, "SYSLOG_SOCKET", tmp_path / "missing"),
        patch.object(log_mod, "SYSLOG_SOCKET_FALLBACK", tmp_path / "missing-too"),
    ):
        handler = log_mod._build_handler()
    assert type(handler) is logging.StreamHandler


def test_configure_logging_sets_level(monkeypatch) -> None:
    monkeypatch.setenv(LOG_STREAM_ENV, "1")
    config = RuntimeConfig(socket_path="/tmp/kl-log.sock", debug_logging=True)

    log_mod.configure_logging(config)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert any(isinstance(h.formatter, log_mod.StructuredLogFormatter) for h in root.handlers)


def test_configure_logging_passes_log_file_to_handler(tmp_path) -> None:
    config = RuntimeConfig(socket_path="/tmp/kl-log.sock", log_file=str(tmp_path / "bridge.log"))

    with patch("menubridge.config.logging.dictConfig") as mock_dict_config:
        log_mod.configure_logging(config)

    config_arg = mock_dict_config.call_args[0][0]
    handler_conf = config_arg["handlers"]["menubridge"]
    assert handler_conf["log_file"] == str(tmp_path / "bridge.log")
    assert config_arg["root"]["level"] == "INFO"
