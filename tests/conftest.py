"""Pytest configuration.

Several test modules build QObjects and widgets. A single `QApplication` is
created for the whole session before collection and shut down at the end.
"""

from __future__ import annotations

import os
from typing import Any

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    # Headless CI has no display server.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    global _APP

    app = QApplication.instance()
    # Keep a strong ref so it isn't GC'd mid-session.
    _APP = QApplication([]) if app is None else app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Quit the app and pump events once so worker threads can settle."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()
