"""Microphone capability gate."""

from __future__ import annotations

import logging

from models import PermissionStatus

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class MicrophonePermissionGate:
    """Resolves microphone access before a recording may start.

    Desktop platforms have no separate permission API: access is requested by
    probing the default input device, which is also what triggers the OS
    consent dialog where one exists. A denial is cached until the next call,
    which asks again.
    """

    def __init__(self, sample_rate: int = 16000, channels: int = 1) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._status = PermissionStatus.UNDETERMINED

    @property
    def status(self) -> PermissionStatus:
        return self._status

    def ensure_permission(self) -> bool:
        if self._status == PermissionStatus.GRANTED:
            return True
        self._status = self._request()
        return self._status == PermissionStatus.GRANTED

    def _request(self) -> PermissionStatus:
        if sd is None:
            logger.warning("sounddevice is not installed, microphone unavailable")
            return PermissionStatus.DENIED
        try:
            sd.query_devices(kind="input")
            sd.check_input_settings(
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="int16",
            )
        except Exception as exc:
            logger.warning("microphone access denied: %s", exc)
            return PermissionStatus.DENIED
        return PermissionStatus.GRANTED


class StaticPermissionGate:
    """Fixed answer, used with the simulated capture backend."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.requests = 0

    def ensure_permission(self) -> bool:
        self.requests += 1
        return self.granted
