"""
Snapshot writer: ordered saves with latest-wins coalescing.

Every submit carries a full snapshot, so only the newest pending blob needs
writing. One worker thread does all writes, so a blob submitted earlier can
never land after one submitted later.

In background mode on_error runs on the worker thread.
"""
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Single-writer save queue, synchronous or background."""

    def __init__(
        self,
        write: Callable[[bytes], None],
        background: bool = True,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self._write = write
        self.background = background
        self.on_error = on_error
        self._cond = threading.Condition()
        self._pending: Optional[bytes] = None
        self._busy = False
        self._closed = False
        self._thread: Optional[threading.Thread] = None
        if background:
            self._thread = threading.Thread(
                target=self._worker, name="smartlist-writer", daemon=True
            )
            self._thread.start()

    def submit(self, blob: bytes) -> None:
        """
        Queue a snapshot for writing.

        Synchronous mode writes now and lets errors propagate. Background
        mode replaces any older pending blob and returns immediately.
        """
        if self._closed:
            raise RuntimeError("SnapshotWriter is closed")
        if not self.background:
            self._write(blob)
            return
        with self._cond:
            if self._pending is not None:
                logger.debug("Superseding unwritten snapshot")
            self._pending = blob
            self._cond.notify_all()

    def _worker(self):
        while True:
            with self._cond:
                while self._pending is None and not self._closed:
                    self._cond.wait()
                if self._pending is None:
                    return  # closed and drained
                blob, self._pending = self._pending, None
                self._busy = True
            try:
                self._write(blob)
            except Exception as e:
                logger.error(f"Background save failed: {e}")
                if self.on_error:
                    try:
                        self.on_error(e)
                    except Exception:
                        logger.exception("Error in save failure handler")
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until nothing is pending or being written. False on timeout."""
        if not self.background:
            return True
        with self._cond:
            return self._cond.wait_for(
                lambda: self._pending is None and not self._busy, timeout=timeout
            )

    def close(self, timeout: Optional[float] = None) -> None:
        """Drain pending writes and stop the worker. Safe to call twice."""
        if self._closed:
            return
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout)
