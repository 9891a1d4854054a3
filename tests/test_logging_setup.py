import io
import logging

from ynap import logging_setup
from ynap.logging_setup import configure_logging, get_logger, parse_level


def test_parse_level_names_and_numbers():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("20") == 20
    assert parse_level(logging.ERROR) == logging.ERROR


def test_parse_level_env_fallback(monkeypatch):
    monkeypatch.setenv("YNAP_LOG_LEVEL", "INFO")
    assert parse_level(None) == logging.INFO
    assert parse_level("nonsense") == logging.INFO


def test_parse_level_default(monkeypatch):
    monkeypatch.delenv("YNAP_LOG_LEVEL", raising=False)
    assert parse_level(None) == logging.WARNING


def test_configure_logging_routes_package_loggers(monkeypatch):
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(logging_setup, "_HANDLER", None)
    pkg_logger = logging.getLogger("ynap")
    monkeypatch.setattr(pkg_logger, "handlers", [])
    stream = io.StringIO()

    configure_logging("INFO", stream=stream)
    get_logger("ynap.pipeline").info("3 transactions")

    assert "INFO ynap.pipeline: 3 transactions" in stream.getvalue()
    assert len(pkg_logger.handlers) == 1


def test_configure_logging_again_with_stream_replaces_handler(monkeypatch):
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    monkeypatch.setattr(logging_setup, "_HANDLER", None)
    pkg_logger = logging.getLogger("ynap")
    monkeypatch.setattr(pkg_logger, "handlers", [])
    stream = io.StringIO()

    configure_logging("INFO")
    configure_logging("INFO", stream=stream)
    get_logger("ynap.loader").info("loaded rules")

    assert "INFO ynap.loader: loaded rules" in stream.getvalue()
    assert pkg_logger.handlers == [logging_setup._HANDLER]
