# Overview: Background job queue for daily rollups; jobs are enqueued by the sale processor.

from __future__ import annotations

import queue
import threading
import time
from typing import Callable, Optional

from flask import Flask

ROLLUP_MODES = ("thread", "inline", "disabled")


def _default_handler(date_key: str) -> None:
    from .services.reporting_service import daily_rollup

    daily_rollup(date_key)


class RollupQueue:
    """
    Fire-and-forget queue of daily rollup jobs.

    Modes (ROLLUP_MODE config):
    - thread:   a daemon worker consumes jobs inside an app context
    - inline:   the job runs immediately in the caller's thread
    - disabled: jobs are dropped

    A failing job is logged and swallowed in every mode; it never reaches the
    code that enqueued it.
    """

    def __init__(self, app: Optional[Flask] = None, handler: Optional[Callable[[str], None]] = None):
        self.app: Optional[Flask] = None
        self.mode = "disabled"
        self.handler = handler or _default_handler
        self._jobs: "queue.Queue[str]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        mode = app.config.get("ROLLUP_MODE", "thread")
        if mode not in ROLLUP_MODES:
            raise ValueError(f"ROLLUP_MODE must be one of {', '.join(ROLLUP_MODES)}")
        self.app = app
        self.mode = mode
        app.extensions["rollup_queue"] = self

    def enqueue(self, date_key: str) -> None:
        if self.mode == "disabled" or self.app is None:
            return
        if self.mode == "inline":
            self._run(date_key)
            return
        self._ensure_worker()
        self._jobs.put(date_key)

    def wait_idle(self, timeout: float = 10.0) -> bool:
        """Block until every queued job has been processed. Returns False on timeout."""
        deadline = time.monotonic() + timeout
        while self._jobs.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.01)
        return True

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(target=self._work, name="rollup-worker", daemon=True)
            self._worker.start()

    def _work(self) -> None:
        while True:
            date_key = self._jobs.get()
            try:
                self._run(date_key)
            finally:
                self._jobs.task_done()

    def _run(self, date_key: str) -> None:
        app = self.app
        try:
            with app.app_context():
                self.handler(date_key)
        except Exception:
            app.logger.exception("Rollup job for %s failed", date_key)
