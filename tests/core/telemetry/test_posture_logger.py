"""Tests for the posture log sink and its JSON file store."""

from __future__ import annotations

import json

import pytest

from airposture.core.telemetry.loggers import posture_logger
from airposture.core.telemetry.loggers.posture_logger import (
    AsyncPostureLogger,
    JsonFileStore,
    PostureData,
    PostureLogEntry,
    PostureLogger,
    format_timestamp,
)

T0 = 1_700_000_000.0


def entry(pitch: float = -10.0, roll: float = 2.0, good: bool = True, t: float = T0) -> PostureLogEntry:
    return PostureLogEntry.from_reading(t, pitch, roll, good)


@pytest.fixture()
def store(tmp_path):
    return JsonFileStore(tmp_path)


def test_timestamp_is_utc_iso8601_with_milliseconds():
    assert format_timestamp(0.123) == "1970-01-01T00:00:00.123Z"


def test_entry_status_from_verdict():
    assert entry(good=True).status == "good"
    assert entry(good=False).status == "bad"


def test_upload_writes_document_keyed_by_user(store, tmp_path):
    logger = PostureLogger(store, user_id="alice")

    logger.append(entry(-12.5, 3.0, good=False))

    path = tmp_path / "posture" / "alice.json"
    document = json.loads(path.read_text())
    assert document == {
        "userId": "alice",
        "sessions": [{
            "timestamp": format_timestamp(T0),
            "pitch": -12.5,
            "roll": 3.0,
            "status": "bad",
        }],
    }


def test_append_uploads_only_when_interval_elapsed(store, monkeypatch):
    logger = PostureLogger(store, user_id="bob", upload_interval=30.0)
    uploads = []
    monkeypatch.setattr(logger, "upload", lambda: uploads.append(1) or True)

    for i in range(5):
        logger.append(entry(t=T0 + i))

    assert len(uploads) == 1
    assert len(logger.posture_data.sessions) == 5


def test_start_logging_loads_then_appends(store):
    store.save(PostureData("carol", [entry(-1.0, t=T0 - 100)]))
    logger = PostureLogger(store, user_id="carol")

    logger.start_logging()
    logger.append(entry(-2.0))

    saved = store.load("carol")
    assert [e.pitch for e in saved.sessions] == [-1.0, -2.0]
    assert logger.get_session_summary()["total_readings"] == 1


def test_corrupt_document_starts_fresh(store, tmp_path):
    path = tmp_path / "posture" / "dave.json"
    path.parent.mkdir(parents=True)
    path.write_text("{not json")
    logger = PostureLogger(store, user_id="dave")

    logger.start_logging()

    assert logger.posture_data.sessions == []


def test_upload_failure_is_reported_not_raised(store, monkeypatch):
    logger = PostureLogger(store, user_id="erin")

    def fail(_data):
        raise OSError("read-only file system")

    monkeypatch.setattr(store, "save", fail)

    assert logger.upload() is False
    logger.append(entry())  # must not raise


def test_session_summary_statistics(store):
    logger = PostureLogger(store, user_id="frank", upload_interval=3600.0)
    for pitch, good in [(-10.0, True), (-30.0, False), (-20.0, True), (-40.0, False)]:
        logger.append(entry(pitch, 0.0, good))

    summary = logger.finalize_session()

    assert summary["total_readings"] == 4
    assert summary["good"] == 2
    assert summary["bad"] == 2
    assert summary["bad_ratio"] == pytest.approx(0.5)
    assert summary["avg_pitch"] == pytest.approx(-25.0)
    assert summary["min_pitch"] == -40.0
    assert len(store.load("frank").sessions) == 4


def test_empty_session_summary(store):
    summary = PostureLogger(store, user_id="gina").get_session_summary()

    assert summary["total_readings"] == 0
    assert summary["bad_ratio"] == 0.0
    assert summary["avg_pitch"] is None


def test_async_logger_defers_writes_until_finalize(store, tmp_path):
    logger = AsyncPostureLogger(store, user_id="hank", upload_interval=3600.0)
    logger.start_logging()

    for i in range(10):
        logger.append(entry(t=T0 + i))

    # Initial upload on a fresh file only happens on flush/finalize
    assert not (tmp_path / "posture" / "hank.json").exists()

    summary = logger.finalize_session()

    assert summary["total_readings"] == 10
    assert len(store.load("hank").sessions) == 10


def test_async_logger_drops_when_queue_full(store):
    logger = AsyncPostureLogger(store, user_id="iris", upload_interval=3600.0, queue_maxsize=2)

    for i in range(5):
        logger.append(entry(t=T0 + i))

    summary = logger.finalize_session()
    assert summary["total_readings"] == 2


def test_async_flush_is_idempotent_after_shutdown(store):
    logger = AsyncPostureLogger(store, user_id="jack", upload_interval=3600.0)
    logger.start_logging()
    logger.append(entry())

    logger.finalize_session()
    logger._shutdown()

    assert len(store.load("jack").sessions) == 1


def test_async_logger_registers_exit_hook_only_when_started(store, monkeypatch):
    hooks = []
    monkeypatch.setattr(posture_logger.atexit, "register", hooks.append)

    logger = AsyncPostureLogger(store, user_id="kate", upload_interval=3600.0)
    assert hooks == []

    logger.start_logging()
    logger.start_logging()
    assert hooks == [logger._shutdown]

    logger.finalize_session()


def test_unstarted_async_logger_keeps_existing_history(store):
    store.save(PostureData("liam", [entry(-1.0, t=T0 - 100)]))
    logger = AsyncPostureLogger(store, user_id="liam", upload_interval=3600.0)

    logger._shutdown()
    summary = logger.finalize_session()

    assert summary["total_readings"] == 0
    assert [e.pitch for e in store.load("liam").sessions] == [-1.0]
