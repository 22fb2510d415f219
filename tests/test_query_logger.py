"""
Tests for query timing and logging.
"""

import logging

import pytest

from docmachine import Document
from docmachine.store import InMemoryDatabase

LOGGER_NAME = "docmachine.tests.queries"

db = InMemoryDatabase()


class Event(Document, database=db):
    name: str


class LoggedEvent(Document, database=db, logger=LOGGER_NAME, collection="events"):
    name: str


@pytest.fixture(autouse=True)
def clear_storage():
    db.drop()
    Event.reset_runtime()
    LoggedEvent.reset_runtime()
    Event.set_logger(None)
    yield
    db.drop()


class TestRuntime:
    """Test that finders are timed whether or not a logger is set."""

    def test_finders_accumulate_runtime(self, caplog):
        Event.create(name="launch")
        caplog.set_level(logging.DEBUG)

        first = Event.all()
        after_first = Event.query_runtime
        second = Event.all()

        assert [e.name for e in first] == ["launch"]
        assert [e.name for e in second] == ["launch"]
        assert after_first > 0
        assert Event.query_runtime > after_first
        assert [r for r in caplog.records if r.name.startswith("docmachine")] == []

    def test_runtime_is_per_type(self):
        Event.first()

        assert Event.query_runtime > 0
        assert LoggedEvent.query_runtime == 0.0

    def test_reset_runtime_returns_previous_total(self):
        Event.first()
        total = Event.query_runtime

        assert Event.reset_runtime() == total
        assert Event.query_runtime == 0.0

    def test_failed_query_adds_no_runtime(self):
        def boom():
            raise RuntimeError("store unavailable")

        with pytest.raises(RuntimeError, match="store unavailable"):
            Event.log("find_many", {}, boom)

        assert Event.query_runtime == 0.0


class TestLogging:
    """Test DEBUG log lines."""

    def test_finder_logs_modifiers(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

        LoggedEvent.all(order="name", limit=10)

        [record] = [r for r in caplog.records if r.name == LOGGER_NAME]
        assert record.levelno == logging.DEBUG
        assert record.getMessage().startswith("find_many (")
        assert record.getMessage().endswith("ms)  {'sort': [('name', 1)], 'limit': 10}")

    def test_nothing_logged_above_debug(self, caplog):
        caplog.set_level(logging.INFO, logger=LOGGER_NAME)

        LoggedEvent.all()

        assert [r for r in caplog.records if r.name == LOGGER_NAME] == []

    def test_set_logger_accepts_logger_instance(self, caplog):
        logger = logging.getLogger(LOGGER_NAME)
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
        Event.set_logger(logger)

        Event.first()

        assert Event.logger is logger
        assert [r.getMessage().split(" ")[0] for r in caplog.records if r.name == LOGGER_NAME] == ["find_one"]

    def test_class_keyword_resolves_logger_name(self):
        assert LoggedEvent.logger is logging.getLogger(LOGGER_NAME)

    def test_log_without_func(self, caplog):
        caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)

        assert LoggedEvent.log("refresh", "events") is None

        assert [r.getMessage() for r in caplog.records if r.name == LOGGER_NAME] == ["refresh (0.0ms)  events"]
        assert LoggedEvent.query_runtime == 0.0

    def test_format_log_entry(self):
        assert LoggedEvent.format_log_entry("find_one (1.0ms)") == "find_one (1.0ms)"
        assert LoggedEvent.format_log_entry("find_one (1.0ms)", {"limit": 1}) == "find_one (1.0ms)  {'limit': 1}"
