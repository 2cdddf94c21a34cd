"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from languages import DEFAULT_SOURCE, DEFAULT_TARGET, LANGUAGES

DEFAULTS = {
    "server_url": "http://localhost:3000",
    "source_language": DEFAULT_SOURCE,
    "target_language": DEFAULT_TARGET,
    "hotkey": "Key.f9",
    "upload_timeout_s": 10.0,
    "probe_interval_s": 15.0,
    "simulate_capture": False,
    "auto_copy": False,
    "log_level": "INFO",
}


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "voice_translator" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_server_url(self) -> str:
        return str(self._get("server_url")).rstrip("/")

    def set_server_url(self, url: str) -> None:
        self._set("server_url", url.strip().rstrip("/"))

    def get_source_language(self) -> str:
        return self._get_language("source_language")

    def set_source_language(self, name: str) -> None:
        self._set("source_language", name)

    def get_target_language(self) -> str:
        return self._get_language("target_language")

    def set_target_language(self, name: str) -> None:
        self._set("target_language", name)

    def get_hotkey(self) -> str:
        return str(self._get("hotkey"))

    def set_hotkey(self, hotkey: str) -> None:
        self._set("hotkey", hotkey)

    def get_upload_timeout_s(self) -> float:
        return self._get_float("upload_timeout_s")

    def get_probe_interval_s(self) -> float:
        return self._get_float("probe_interval_s")

    def get_simulate_capture(self) -> bool:
        return bool(self._get("simulate_capture"))

    def get_auto_copy(self) -> bool:
        return bool(self._get("auto_copy"))

    def set_auto_copy(self, enabled: bool) -> None:
        self._set("auto_copy", enabled)

    def get_log_level(self) -> str:
        return str(self._get("log_level")).upper()

    def _get(self, key: str) -> Any:
        return self._read_all().get(key, DEFAULTS[key])

    def _get_language(self, key: str) -> str:
        value = self._get(key)
        if value not in LANGUAGES:
            return DEFAULTS[key]
        return value

    def _get_float(self, key: str) -> float:
        try:
            value = float(self._get(key))
        except (TypeError, ValueError):
            return DEFAULTS[key]
        return value if value > 0 else DEFAULTS[key]

    def _set(self, key: str, value: Any) -> None:
        data = self._read_all()
        if key in data and data[key] == value:
            return
        data[key] = value
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
