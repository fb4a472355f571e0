"""Tests for structlog configuration and the events the library emits."""

from __future__ import annotations

import pytest
import structlog
from structlog.testing import capture_logs

from autotable import AutotableConfig, Manager
from autotable.logging import configure_from_config, configure_logging, get_logger
from autotable.storage import close_store, open_store
from tests.conftest import Simple, Widened


@pytest.fixture
def debug_logging():
    configure_logging("DEBUG")
    yield
    configure_logging("WARNING")


def _events(logs):
    return [log["event"] for log in logs]


class TestConfigureLogging:
    def test_warning_filters_info(self):
        configure_logging("WARNING")
        with capture_logs() as logs:
            get_logger("autotable.test").info("quiet")
            get_logger("autotable.test").warning("loud")
        assert _events(logs) == ["loud"]

    def test_json_renderer_selected(self):
        configure_logging("INFO", json_output=True)
        try:
            renderer = structlog.get_config()["processors"][-1]
        finally:
            configure_logging("WARNING")
        assert isinstance(renderer, structlog.processors.JSONRenderer)

    def test_console_renderer_by_default(self):
        configure_logging("WARNING")
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.dev.ConsoleRenderer)

    def test_level_and_renderer_from_config(self):
        try:
            configure_from_config(AutotableConfig(log_level="DEBUG", log_json=True))
            renderer = structlog.get_config()["processors"][-1]
            with capture_logs() as logs:
                get_logger("autotable.test").debug("verbose")
        finally:
            configure_logging("WARNING")
        assert isinstance(renderer, structlog.processors.JSONRenderer)
        assert _events(logs) == ["verbose"]


class TestEmittedEvents:
    def test_store_events(self, config, debug_logging):
        with capture_logs() as logs:
            open_store("logged", config)
            close_store("logged")
        assert _events(logs) == ["store_opened", "store_closed"]
        assert logs[0]["log_level"] == "debug"

    def test_schema_events(self, config, debug_logging):
        with capture_logs() as logs:
            record = Manager(Simple, config).create()
            record.save()
            Manager(Widened, config).reconcile()
        events = _events(logs)
        assert "schema_repair" in events
        assert "table_created" in events
        assert "column_added" in events


class TestConfig:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AUTOTABLE_DATA_DIR", "/tmp/stores")
        monkeypatch.setenv("AUTOTABLE_STORE", "main")
        monkeypatch.setenv("AUTOTABLE_LOG_LEVEL", "debug")
        monkeypatch.setenv("AUTOTABLE_LOG_JSON", "yes")
        config = AutotableConfig.from_env()
        assert config.data_dir == "/tmp/stores"
        assert config.default_store == "main"
        assert config.log_level == "DEBUG"
        assert config.log_json is True
        assert config.journal_mode == "WAL"

    def test_defaults(self, monkeypatch):
        for name in ("AUTOTABLE_DATA_DIR", "AUTOTABLE_STORE", "AUTOTABLE_LOG_JSON"):
            monkeypatch.delenv(name, raising=False)
        config = AutotableConfig.from_env()
        assert config.data_dir == "."
        assert config.default_store == "autotable"
        assert config.log_json is False
