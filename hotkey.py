"""Global record/stop hotkey based on pynput."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Fires ``on_trigger`` once per key press; auto-repeat is ignored until release."""

    def __init__(self, hotkey_name: str = "Key.f9") -> None:
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._held = False
        self._lock = threading.Lock()
        self._on_trigger: Optional[Callable[[], None]] = None

    def start(self, on_trigger: Callable[[], None]) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")
        self._on_trigger = on_trigger
        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None

    def _on_press(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            if self._held:
                return
            self._held = True
        if self._on_trigger:
            self._on_trigger()

    def _on_release(self, key: object) -> None:
        if str(key) != self._hotkey_name:
            return
        with self._lock:
            self._held = False
