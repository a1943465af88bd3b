from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger
from .path_utils import abs_path_str

_logger = get_logger("settings")


def default_data_dir() -> str:
    env = (os.getenv("PHOTO_TEMPLATE_DATA_DIR") or "").strip()
    if env:
        return abs_path_str(env)
    return abs_path_str(Path.home() / ".photo_template")


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "jpeg_quality": 90,
        "trash_template_images": True,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self.settings_path) or ".", exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    # ---- resolved locations ----
    @property
    def data_dir(self) -> str:
        val = self.get("data_dir")
        return abs_path_str(val) if isinstance(val, str) and val.strip() else default_data_dir()

    def _data_path(self, key: str, default_name: str) -> str:
        val = self.get(key)
        if isinstance(val, str) and val.strip():
            return abs_path_str(val)
        return abs_path_str(Path(self.data_dir) / default_name)

    @property
    def db_path(self) -> str:
        return self._data_path("db_path", "photo_template.db")

    @property
    def images_dir(self) -> str:
        return self._data_path("images_dir", "template_images")

    @property
    def output_dir(self) -> str:
        return self._data_path("output_dir", "generated_images")

    @property
    def jpeg_quality(self) -> int:
        try:
            q = int(self.get("jpeg_quality"))
        except (TypeError, ValueError):
            _logger.warning("invalid jpeg_quality: %r", self.get("jpeg_quality"))
            q = int(self.DEFAULTS["jpeg_quality"])
        return max(1, min(100, q))

    @property
    def trash_template_images(self) -> bool:
        return bool(self.get("trash_template_images"))

    @property
    def last_source_dir(self) -> str | None:
        val = self.get("last_source_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None

    def remember_source_dir(self, path: str) -> None:
        if not path:
            return
        self.set("last_source_dir", abs_path_str(path))
