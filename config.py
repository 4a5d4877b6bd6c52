"""Simple JSON-based config store."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "https://recipe-backend-tcrn.onrender.com"
DEFAULT_HOTKEY = "Key.f9"
DEFAULT_SAMPLE_RATE = 16000
SERVER_URL_ENV = "VOICE_RECIPE_SERVER_URL"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voice_recipe" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_server_url(self) -> str:
        env_url = os.getenv(SERVER_URL_ENV, "")
        if env_url:
            return env_url.rstrip("/")
        data = self._read_all()
        return str(data.get("server_url", DEFAULT_SERVER_URL)).rstrip("/")

    def set_server_url(self, url: str) -> None:
        data = self._read_all()
        data["server_url"] = url.rstrip("/")
        self._write_all(data)

    def get_hotkey(self) -> str:
        data = self._read_all()
        return str(data.get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        data = self._read_all()
        data["hotkey"] = hotkey
        self._write_all(data)

    def get_sample_rate(self) -> int:
        data = self._read_all()
        try:
            return int(data.get("sample_rate", DEFAULT_SAMPLE_RATE))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid sample_rate in %s", self._path)
            return DEFAULT_SAMPLE_RATE

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Config file %s is unreadable, using defaults", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
