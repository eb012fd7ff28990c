import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait

logger = logging.getLogger(__name__)


class CacheWriter:
    """Fire-and-forget persistence of freshly fetched forecast rows.

    Writes run on a single background worker inside an application context.
    Failures are logged from a done-callback and never reach the request.
    """

    def __init__(self, app, store, inline=False):
        self.app = app
        self.store = store
        self.inline = inline
        self._executor = None if inline else ThreadPoolExecutor(max_workers=1, thread_name_prefix='cache-writer')
        self._pending = set()
        self._lock = threading.Lock()

    def submit(self, coordinate, city, rows):
        if coordinate is None or not rows:
            return None
        rows = list(rows)

        if self.inline:
            try:
                self._write(coordinate, city, rows)
            except Exception as e:
                logger.error(f"Inline cache write failed for {coordinate}: {e}")
            return None

        future = self._executor.submit(self._write, coordinate, city, rows)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._on_done)
        return future

    def _write(self, coordinate, city, rows):
        with self.app.app_context():
            return self.store.upsert_daily(coordinate, city, rows)

    def _on_done(self, future):
        with self._lock:
            self._pending.discard(future)
        exc = future.exception()
        if exc is not None:
            logger.error(f"Background cache write failed: {exc}")

    def flush(self, timeout=None):
        """Block until queued writes finish. Used by tests and shutdown."""
        with self._lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)

    def shutdown(self):
        if self._executor is not None:
            self._executor.shutdown(wait=True)
