"""
Tests for logging setup and formatters.
"""

import json
import logging

import pytest

from repo_sync.logging_config import HumanFormatter, JSONFormatter, setup_logging


def _record(msg="Fetching refs", name="repo_sync.mirror.manager", **extra):
    record = logging.LogRecord(name, logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestFormatters:

    def test_json_includes_repo(self):
        data = json.loads(JSONFormatter().format(_record(repo="alpha")))

        assert data["level"] == "INFO"
        assert data["logger"] == "repo_sync.mirror.manager"
        assert data["message"] == "Fetching refs"
        assert data["repo"] == "alpha"

    def test_json_without_repo(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert "repo" not in data

    def test_human_format(self):
        line = HumanFormatter().format(_record())

        assert "INFO" in line
        assert "[manager" in line
        assert line.endswith("Fetching refs")


class TestSetupLogging:

    def test_defaults_from_env(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("LOG_FORMAT", "json")

        setup_logging()

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        setup_logging(level="DEBUG", format_type="text")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, HumanFormatter)

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        setup_logging(level="chatty")

        assert logging.getLogger().level == logging.INFO
