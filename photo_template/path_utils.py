"""Path normalization utilities.

Templates, uploaded images and generated archives are all referenced by
absolute, OS-native path strings. Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from pathlib import Path

_DRIVE_PREFIX_LEN = 2


def _normalize_drive_letter(path_str: str) -> str:
    # Normalize drive letter casing on Windows ("c:\\" -> "C:\\").
    if len(path_str) >= _DRIVE_PREFIX_LEN and path_str[1] == ":":
        return path_str[0].upper() + path_str[1:]
    return path_str


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    """Absolute, OS-native path string (Windows uses backslashes)."""
    return _normalize_drive_letter(str(abs_path(path)))


def local_path_from_url(value: str) -> str:
    """Accept either a plain path or a ``file:`` URL and return a plain path."""
    s = str(value or "").strip()
    if s.startswith("file:"):
        # Deferred so the module stays importable without Qt.
        from PySide6.QtCore import QUrl

        url = QUrl(s)
        if url.isLocalFile():
            return url.toLocalFile()
    return s
