"""
Ephemeral on-disk cache for downloaded attachments.

Downloaded files live in a temp directory for a fixed TTL. Each entry owns a
one-shot APScheduler job that deletes the file and drops the entry when the
TTL elapses; invalidating the entry cancels that job.
"""

import logging
import os
import re
import tempfile
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 10 * 60
TEMP_DIR = Path(tempfile.gettempdir()) / "trello-mcp-server"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


@dataclass
class CachedAttachment:
    """A downloaded attachment file. ``downloaded_at`` is epoch seconds."""

    file_path: Path
    file_name: str
    file_size: int
    mime_type: str
    card_id: str
    attachment_id: str
    downloaded_at: float
    job_id: str | None = None


class AttachmentCache:
    """
    Attachment cache keyed by attachment id.

    An entry is valid while it is younger than the TTL and its file still
    exists. Expiry jobs run on the scheduler's worker thread, so all map
    access goes through a lock.
    """

    def __init__(
        self,
        temp_dir: Path | str = TEMP_DIR,
        ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        scheduler: BackgroundScheduler | None = None,
    ):
        self.temp_dir = Path(temp_dir)
        self.ttl = ttl
        self.clock = clock
        self.scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._entries: dict[str, CachedAttachment] = {}
        self._lock = threading.RLock()

    def ensure_temp_dir(self) -> Path:
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        return self.temp_dir

    def path_for(self, attachment_id: str, file_name: str) -> Path:
        """Temp file path for an attachment, with an ASCII-safe file name."""
        safe_name = _UNSAFE_CHARS.sub("_", file_name)
        return self.temp_dir / f"{attachment_id}_{safe_name}"

    def get(self, attachment_id: str) -> CachedAttachment | None:
        with self._lock:
            return self._entries.get(attachment_id)

    def is_valid(self, entry: CachedAttachment) -> bool:
        """Check TTL and that the file was not deleted behind our back."""
        expired = self.clock() - entry.downloaded_at >= self.ttl
        return not expired and os.path.exists(entry.file_path)

    def expires_at(self, entry: CachedAttachment) -> float:
        return entry.downloaded_at + self.ttl

    def put(self, entry: CachedAttachment) -> CachedAttachment:
        """
        Store an entry and schedule its cleanup after the TTL.

        Any previous entry for the same attachment is replaced; its job is
        cancelled and its file removed unless the new entry reuses the path.
        """
        with self._lock:
            previous = self._entries.get(entry.attachment_id)
            if previous is not None:
                self._cancel_job(previous)
                if Path(previous.file_path) != Path(entry.file_path):
                    _unlink(previous.file_path)

            entry.job_id = f"expire_{entry.attachment_id}"
            remaining = max(self.expires_at(entry) - self.clock(), 0)
            self._start_scheduler()
            self.scheduler.add_job(
                func=self._expire,
                trigger="date",
                run_date=datetime.now(timezone.utc) + timedelta(seconds=remaining),
                id=entry.job_id,
                args=[entry.attachment_id, entry.downloaded_at],
                replace_existing=True,
                misfire_grace_time=None,
            )
            self._entries[entry.attachment_id] = entry

        logger.debug(f"Cached attachment {entry.attachment_id} at {entry.file_path} for {remaining:.0f}s")
        return entry

    def invalidate(self, attachment_id: str) -> None:
        """Cancel the cleanup job, delete the file and drop the entry. Idempotent."""
        with self._lock:
            entry = self._entries.pop(attachment_id, None)
            if entry is None:
                return
            self._cancel_job(entry)
            _unlink(entry.file_path)
        logger.debug(f"Invalidated cached attachment {attachment_id}")

    def clear_all(self) -> None:
        with self._lock:
            attachment_ids = list(self._entries)
        for attachment_id in attachment_ids:
            self.invalidate(attachment_id)
        if attachment_ids:
            logger.info(f"Cleared {len(attachment_ids)} cached attachment(s)")

    def shutdown(self) -> None:
        """Clear the cache and stop the scheduler."""
        self.clear_all()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expire(self, attachment_id: str, downloaded_at: float) -> None:
        """Scheduler callback. Skips entries that were replaced since scheduling."""
        with self._lock:
            entry = self._entries.get(attachment_id)
            if entry is None or entry.downloaded_at != downloaded_at:
                return
            del self._entries[attachment_id]
            _unlink(entry.file_path)
        logger.debug(f"Expired cached attachment {attachment_id}")

    def _cancel_job(self, entry: CachedAttachment) -> None:
        if entry.job_id is None:
            return
        try:
            self.scheduler.remove_job(entry.job_id)
        except JobLookupError:
            # already fired
            pass

    def _start_scheduler(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()


def _unlink(file_path: Path | str) -> None:
    try:
        os.unlink(file_path)
    except OSError:
        pass
