"""Protocol interfaces used by RecordingSession."""

from __future__ import annotations

from typing import Optional, Protocol

from models import TranslationResult
from recorder import CaptureHandle


class Recorder(Protocol):
    def start(self) -> CaptureHandle: ...

    def stop(self) -> None: ...


class PermissionGate(Protocol):
    def ensure_permission(self) -> bool: ...


class Uploader(Protocol):
    def upload(
        self,
        handle: CaptureHandle,
        target_language: str,
        server_url: str,
        deadline_s: Optional[float] = None,
    ) -> TranslationResult: ...


class AvailabilityGate(Protocol):
    def check_now(self) -> bool: ...

    def mark_unreachable(self) -> None: ...


class ConfigStore(Protocol):
    def get_server_url(self) -> str: ...

    def set_server_url(self, url: str) -> None: ...

    def get_source_language(self) -> str: ...

    def set_source_language(self, name: str) -> None: ...

    def get_target_language(self) -> str: ...

    def set_target_language(self, name: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...
