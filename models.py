"""Core data models for the app."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from errors import describe_error
from languages import LANGUAGES, LanguagePair


class RecordingState(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    PROCESSING = "PROCESSING"


class PermissionStatus(str, Enum):
    UNDETERMINED = "undetermined"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class StartResult:
    started: bool
    error_code: str = ""


@dataclass
class TranslationResult:
    text: str = ""
    error_code: str = ""
    status_code: Optional[int] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return not self.error_code

    @property
    def message(self) -> str:
        """Text to show the user: the translation, or a readable error."""
        if self.ok:
            return self.text
        return describe_error(self.error_code, self.status_code, self.detail)

    @classmethod
    def failure(
        cls, error_code: str, status_code: Optional[int] = None, detail: str = ""
    ) -> "TranslationResult":
        return cls(error_code=error_code, status_code=status_code, detail=detail)


@dataclass
class ServerAvailability:
    reachable: bool = False
    last_checked_at: Optional[float] = None

    def is_stale(self, freshness_s: float, now: float) -> bool:
        if self.last_checked_at is None:
            return True
        return now - self.last_checked_at > freshness_s


TargetCallback = Callable[[str], None]


@dataclass
class SessionContext:
    """Process-wide state shared by the session, the monitor and the UI.

    Target-language observers receive the new target's wire code whenever a
    user action changes it. ``reconcile_target`` adopts the service's own
    setting without notifying, so it is never pushed back.
    """

    server_url: str = "http://localhost:3000"
    languages: LanguagePair = field(default_factory=LanguagePair)
    availability: ServerAvailability = field(default_factory=ServerAvailability)
    _observers: List[TargetCallback] = field(default_factory=list, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def on_target_change(self, callback: TargetCallback) -> None:
        self._observers.append(callback)

    def select_source(self, name: str) -> None:
        with self._lock:
            self.languages = LanguagePair(source=name, target=self.languages.target)

    def select_target(self, name: str) -> None:
        with self._lock:
            previous = self.languages.target
            self.languages = LanguagePair(source=self.languages.source, target=name)
            changed = previous != name
        if changed:
            self._notify()

    def swap_languages(self) -> None:
        with self._lock:
            previous = self.languages.target
            self.languages = self.languages.swap()
            changed = previous != self.languages.target
        if changed:
            self._notify()

    def reconcile_target(self, name: str) -> bool:
        """Adopt a target reported by the service. Returns True if it changed."""
        if name not in LANGUAGES:
            return False
        with self._lock:
            if self.languages.target == name:
                return False
            self.languages = LanguagePair(source=self.languages.source, target=name)
            return True

    def _notify(self) -> None:
        code = self.languages.target_code
        for callback in list(self._observers):
            callback(code)
