"""
Tests for the NotificationSink adapters.
"""

import logging

import pytest

from bookworm.domain.value_objects import Notification, NotificationLevel
from bookworm.infrastructure.notifications import (
    LoggingNotificationSink,
    RecordingNotificationSink,
)


def _note(message: str, level: NotificationLevel = NotificationLevel.INFO) -> Notification:
    return Notification(level=level, message=message)


class TestRecordingNotificationSink:

    def test_drain_returns_oldest_first_once(self):
        sink = RecordingNotificationSink()
        sink.notify(_note("first"))
        sink.notify(_note("second", NotificationLevel.ERROR))

        assert [n.message for n in sink.drain()] == ["first", "second"]
        assert sink.drain() == []

    def test_pending_does_not_remove(self):
        sink = RecordingNotificationSink()
        sink.notify(_note("kept"))

        assert len(sink.pending()) == 1
        assert sink.count() == 1

    def test_oldest_dropped_when_full(self):
        sink = RecordingNotificationSink(max_pending=2)
        for message in ("a", "b", "c"):
            sink.notify(_note(message))

        assert [n.message for n in sink.pending()] == ["b", "c"]

    def test_count_by_level(self):
        sink = RecordingNotificationSink()
        sink.notify(_note("ok", NotificationLevel.SUCCESS))
        sink.notify(_note("bad", NotificationLevel.ERROR))
        sink.notify(_note("worse", NotificationLevel.ERROR))

        assert sink.count(NotificationLevel.ERROR) == 2
        assert sink.count(NotificationLevel.INFO) == 0

    def test_downstream_receives_everything(self):
        downstream = RecordingNotificationSink()
        sink = RecordingNotificationSink(downstream=downstream)

        sink.notify(_note("hello"))

        assert [n.message for n in downstream.pending()] == ["hello"]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RecordingNotificationSink(max_pending=0)


class TestLoggingNotificationSink:

    def test_error_notifications_log_at_error(self, caplog):
        with caplog.at_level(logging.INFO, logger="bookworm.notifications"):
            LoggingNotificationSink().notify(_note("Failed to fetch books", NotificationLevel.ERROR))
            LoggingNotificationSink().notify(_note("Loaded 3 books", NotificationLevel.SUCCESS))

        levels = [(r.levelno, r.getMessage()) for r in caplog.records]
        assert levels == [
            (logging.ERROR, "[error] Failed to fetch books"),
            (logging.INFO, "[success] Loaded 3 books"),
        ]
