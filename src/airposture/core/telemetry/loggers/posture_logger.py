"""
Posture log sink with periodic upload.

This module receives the readings accepted by the 1 Hz logger gate and keeps
a per-user posture document that is periodically written to storage. On
startup the existing document is loaded first so that new readings are
appended to the wearer's history (load-then-append).

Document format:
    {"userId": "alice",
     "sessions": [{"timestamp": "2025-01-01T12:00:00.123Z",
                   "pitch": -12.5, "roll": 3.1, "status": "good"}, ...]}

Loggers:
- PostureLogger: Synchronous upload from the caller thread when due
- AsyncPostureLogger: Non-blocking intake, uploads from a background thread

Usage:
    store = JsonFileStore(Path("data"))
    logger = AsyncPostureLogger(store, user_id="alice", upload_interval=30.0)
    logger.start_logging()
    logger.append(PostureLogEntry.from_reading(time.time(), -12.5, 3.1, True))
    summary = logger.finalize_session()
"""

import atexit
import json
import logging
import os
import queue
import threading
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

log = logging.getLogger(__name__)


def format_timestamp(epoch_seconds: float) -> str:
    """ISO-8601 UTC with millisecond fractional seconds, e.g. 2025-01-01T12:00:00.123Z."""
    moment = datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class PostureLogEntry:
    """One logged posture reading (raw angles, relative verdict)."""
    timestamp: str
    pitch: float
    roll: float
    status: str  # "good" or "bad"

    @classmethod
    def from_reading(cls, timestamp: float, pitch: float, roll: float, is_good: bool) -> "PostureLogEntry":
        return cls(
            timestamp=format_timestamp(timestamp),
            pitch=pitch,
            roll=roll,
            status="good" if is_good else "bad",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostureLogEntry":
        return cls(
            timestamp=str(data["timestamp"]),
            pitch=float(data["pitch"]),
            roll=float(data["roll"]),
            status=str(data["status"]),
        )


@dataclass
class PostureData:
    """Per-user posture history document."""
    user_id: str
    sessions: List[PostureLogEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "sessions": [asdict(entry) for entry in self.sessions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PostureData":
        return cls(
            user_id=str(data["userId"]),
            sessions=[PostureLogEntry.from_dict(item) for item in data.get("sessions", [])],
        )


class JsonFileStore:
    """Stores posture documents as ``<base_dir>/posture/<userId>.json``."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def key(self, user_id: str) -> Path:
        return self.base_dir / "posture" / f"{user_id}.json"

    def load(self, user_id: str) -> Optional[PostureData]:
        path = self.key(user_id)
        if not path.exists():
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return PostureData.from_dict(json.load(f))

    def save(self, data: PostureData) -> None:
        path = self.key(data.user_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data.to_dict(), f)
        os.replace(tmp_path, path)


class PostureLogger:
    """
    Posture log sink.

    - append(): intake from the core, never raises
    - upload(): writes the whole document to the store
    - Uploads automatically once ``upload_interval`` has elapsed
    """

    def __init__(self, store: JsonFileStore, user_id: str = "default", upload_interval: float = 30.0):
        """
        Args:
            store: Storage backend keyed by user id
            user_id: Owner of the posture document
            upload_interval: Seconds between uploads (default: 30.0)
        """
        self.store = store
        self.user_id = user_id
        self.upload_interval = upload_interval

        self._data_lock = threading.Lock()
        self.posture_data = PostureData(user_id=user_id)
        self.session_entries: List[PostureLogEntry] = []
        self.last_upload_time = float("-inf")
        self.session_start = time.time()

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def start_logging(self) -> None:
        """Load the existing document so new readings append to it."""
        try:
            existing = self.store.load(self.user_id)
        except (OSError, ValueError, KeyError) as e:
            log.warning("No readable posture file for %s, starting fresh: %s", self.user_id, e)
            existing = None

        with self._data_lock:
            if existing is None:
                self.posture_data.sessions = []
            else:
                self.posture_data.sessions = list(existing.sessions) + self.posture_data.sessions

        log.info("Started logging posture sessions. Current count: %d", len(self.posture_data.sessions))

    def append(self, entry: PostureLogEntry) -> None:
        """Record one reading; uploads when the upload interval has elapsed."""
        self._record(entry)
        log.debug("Logged posture: %s | pitch %.1f, roll %.1f", entry.status.upper(), entry.pitch, entry.roll)

        now = time.time()
        if now - self.last_upload_time >= self.upload_interval:
            self.last_upload_time = now
            self.upload()

    def _record(self, entry: PostureLogEntry) -> None:
        with self._data_lock:
            self.posture_data.sessions.append(entry)
            self.session_entries.append(entry)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(self) -> bool:
        """Write the full document. Failures are logged, never raised."""
        with self._data_lock:
            snapshot = PostureData(self.user_id, list(self.posture_data.sessions))

        try:
            self.store.save(snapshot)
        except (OSError, TypeError, ValueError) as e:
            log.error("Failed to upload posture data: %s", e)
            return False

        log.info("Uploaded posture data (%d sessions)", len(snapshot.sessions))
        return True

    # ------------------------------------------------------------------
    # Session Management
    # ------------------------------------------------------------------

    def get_session_summary(self) -> Dict[str, Any]:
        """Statistics over the readings logged since this logger started."""
        with self._data_lock:
            entries = list(self.session_entries)

        good = sum(1 for e in entries if e.status == "good")
        bad = len(entries) - good
        pitches = [e.pitch for e in entries]
        rolls = [e.roll for e in entries]

        return {
            "user_id": self.user_id,
            "duration_seconds": time.time() - self.session_start,
            "total_readings": len(entries),
            "good": good,
            "bad": bad,
            "bad_ratio": bad / len(entries) if entries else 0.0,
            "avg_pitch": sum(pitches) / len(pitches) if pitches else None,
            "avg_roll": sum(rolls) / len(rolls) if rolls else None,
            "min_pitch": min(pitches) if pitches else None,
        }

    def finalize_session(self) -> Dict[str, Any]:
        """Upload pending readings and return the session summary."""
        self.upload()
        summary = self.get_session_summary()
        log.info(
            "Posture session finalized: %d readings, %.0f%% bad",
            summary["total_readings"], summary["bad_ratio"] * 100,
        )
        return summary


# ======================================================================
# ASYNC POSTURE LOGGER - Non-blocking intake
# ======================================================================

class AsyncPostureLogger(PostureLogger):
    """
    Posture logger that never blocks the sensor thread.

    Features:
    - Bounded queue for non-blocking intake
    - Background thread drains the queue and uploads every upload_interval
    - Graceful shutdown with atexit (final upload)

    Risk:
    - Readings still queued may be lost on an abrupt crash
      (mitigated with atexit flush)
    """

    def __init__(
        self,
        store: JsonFileStore,
        user_id: str = "default",
        upload_interval: float = 30.0,
        queue_maxsize: int = 2000,
    ):
        """
        Args:
            store: Storage backend keyed by user id
            user_id: Owner of the posture document
            upload_interval: Seconds between automatic uploads (default: 30.0)
            queue_maxsize: Maximum queued readings (prevents OOM)
        """
        super().__init__(store, user_id=user_id, upload_interval=upload_interval)

        self._intake_queue: queue.Queue = queue.Queue(maxsize=queue_maxsize)
        self._shutdown_flag = threading.Event()
        self._dirty = False

        self._flush_thread = threading.Thread(
            target=self._flush_worker,
            daemon=True,
            name="PostureLogFlusher",
        )
        self._started = False

    def start_logging(self) -> None:
        super().start_logging()
        if not self._started:
            self._started = True
            # Only a loaded document may be written back at exit
            atexit.register(self._shutdown)
            self._flush_thread.start()
            log.info("Async posture log enabled (upload every %.0fs)", self.upload_interval)

    def append(self, entry: PostureLogEntry) -> None:
        """Queue the reading instead of touching storage."""
        try:
            self._intake_queue.put_nowait(entry)
        except queue.Full:
            log.warning("Posture log queue full, dropping reading at %s", entry.timestamp)

    def _drain(self) -> int:
        drained = 0
        while True:
            try:
                entry = self._intake_queue.get_nowait()
            except queue.Empty:
                return drained
            self._record(entry)
            drained += 1

    def _flush_worker(self) -> None:
        """
        Background thread.

        1. Move queued readings into the document
        2. Upload once upload_interval has passed and there is new data
        """
        last_upload = time.time()

        while not self._shutdown_flag.is_set():
            try:
                entry = self._intake_queue.get(timeout=0.1)
                self._record(entry)
                self._dirty = True
            except queue.Empty:
                pass

            now = time.time()
            if self._dirty and now - last_upload >= self.upload_interval:
                self._drain()
                self._dirty = False
                self.upload()
                last_upload = now

    def flush(self) -> bool:
        """Drain the intake queue and upload immediately."""
        self._drain()
        self._dirty = False
        return self.upload()

    def _shutdown(self) -> None:
        """
        Graceful shutdown: stop the thread and upload pending readings.

        Called automatically by atexit once logging has started. A logger
        that never loaded the stored document does not upload.
        """
        if self._shutdown_flag.is_set():
            return
        self._shutdown_flag.set()

        if self._flush_thread.is_alive():
            self._flush_thread.join(timeout=5.0)
            if self._flush_thread.is_alive():
                log.warning("Posture log flush thread did not terminate cleanly")

        if self._started:
            self.flush()

    def finalize_session(self) -> Dict[str, Any]:
        self._shutdown()
        self._drain()
        if not self._started:
            log.warning("Posture log was never started, skipping upload for %s", self.user_id)
            return self.get_session_summary()
        return super().finalize_session()
