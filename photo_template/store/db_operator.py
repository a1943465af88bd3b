from __future__ import annotations

import contextlib
import queue
import sqlite3
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from photo_template.logger import get_logger

_logger = get_logger("db_operator")


@dataclass
class _DbTask:
    fn: Callable[..., Any]
    args: tuple
    kwargs: dict
    future: Future
    retries: int = 3


class DbOperator:
    """Serialized DB operation queue / worker.

    Owns a worker thread that executes queued tasks, each against a fresh
    sqlite3 connection. Applies basic PRAGMAs (WAL, busy_timeout) and retries
    transient `sqlite3.OperationalError`.
    """

    def __init__(self, db_path: Path | str, busy_timeout_ms: int = 5000):
        self._db_path = Path(db_path)
        self._queue: queue.Queue[_DbTask] = queue.Queue()
        self._thread = threading.Thread(target=self._worker, name="photo-template-db", daemon=True)
        self._stop_event = threading.Event()
        self._busy_timeout_ms = int(busy_timeout_ms)
        self._thread.start()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _open_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.DatabaseError:
            _logger.debug("PRAGMA journal_mode=WAL failed", exc_info=True)
        try:
            conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        except sqlite3.DatabaseError:
            _logger.debug("PRAGMA busy_timeout failed", exc_info=True)
        return conn

    def schedule_write(self, fn: Callable[..., Any], *args, retries: int = 3, **kwargs) -> Future:
        fut: Future = Future()
        self._queue.put(_DbTask(fn=fn, args=args, kwargs=kwargs, future=fut, retries=retries))
        return fut

    def schedule_read(self, fn: Callable[..., Any], *args, **kwargs) -> Future:
        # Reads share the queue to keep a single-writer model.
        fut: Future = Future()
        self._queue.put(_DbTask(fn=fn, args=args, kwargs=kwargs, future=fut, retries=1))
        return fut

    def _run_task(self, task: _DbTask) -> None:
        attempt = 0
        while True:
            conn = None
            try:
                conn = self._open_conn()
                res = task.fn(conn, *task.args, **task.kwargs)
                conn.commit()
                task.future.set_result(res)
                return
            except sqlite3.OperationalError as exc:
                attempt += 1
                if attempt > (task.retries or 0):
                    task.future.set_exception(exc)
                    return
                _logger.debug("db task retry %d after: %s", attempt, exc)
                time.sleep(0.05 * attempt)
            except Exception as exc:
                task.future.set_exception(exc)
                return
            finally:
                if conn is not None:
                    with contextlib.suppress(sqlite3.Error):
                        conn.close()

    def _worker(self) -> None:
        while not self._stop_event.is_set() or not self._queue.empty():
            try:
                task = self._queue.get(timeout=0.1)
            except queue.Empty:
                continue
            try:
                if task.future.set_running_or_notify_cancel():
                    self._run_task(task)
            finally:
                self._queue.task_done()

    def shutdown(self, wait: bool = True) -> None:
        self._stop_event.set()
        if wait:
            self._thread.join(timeout=5)

    def is_alive(self) -> bool:
        return self._thread.is_alive()
