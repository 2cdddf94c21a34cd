"""Microphone capture backends and the capture handle they fill."""

from __future__ import annotations

import io
import logging
import threading
import time
import wave
from typing import Any, Optional

from models import AudioFrame

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)

UPLOAD_FILENAME = "recording.wav"
UPLOAD_CONTENT_TYPE = "audio/wav"


def _pcm_to_wav(
    pcm: bytes,
    sample_rate: int = 16000,
    channels: int = 1,
    sample_width: int = 2,
) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(sample_width)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return buf.getvalue()


class CaptureHandle:
    """One utterance: live while recording, read-only once finalized.

    Frames arriving after ``finalize()`` are ignored. ``release()`` drops the
    buffered audio once the upload attempt has settled.
    """

    filename = UPLOAD_FILENAME
    content_type = UPLOAD_CONTENT_TYPE

    def __init__(self, sample_rate: int = 16000, channels: int = 1, max_seconds: float = 60.0) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self._max_bytes = int(max_seconds * sample_rate * channels * 2)
        self._pcm = bytearray()
        self._lock = threading.Lock()
        self.finalized = False
        self.released = False
        self.dropped_chunks = 0

    def append(self, frame: AudioFrame) -> bool:
        with self._lock:
            if self.finalized:
                return False
            if len(self._pcm) + len(frame.pcm16_bytes) > self._max_bytes:
                self.dropped_chunks += 1
                return False
            self._pcm.extend(frame.pcm16_bytes)
            return True

    def finalize(self) -> None:
        with self._lock:
            self.finalized = True

    def release(self) -> None:
        with self._lock:
            self.finalized = True
            self.released = True
            self._pcm = bytearray()

    @property
    def is_empty(self) -> bool:
        return not self._pcm

    @property
    def duration_s(self) -> float:
        return len(self._pcm) / float(self.sample_rate * self.channels * 2)

    def audio_bytes(self) -> bytes:
        """WAV-encoded utterance, or ``b""`` when nothing was captured."""
        with self._lock:
            if not self._pcm:
                return b""
            pcm = bytes(self._pcm)
        return _pcm_to_wav(pcm, self.sample_rate, self.channels)


class SoundDeviceRecorder:
    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        max_seconds: float = 60.0,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.max_seconds = max_seconds
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self._handle: Optional[CaptureHandle] = None

    def start(self) -> CaptureHandle:
        with self._lock:
            if self._running and self._handle is not None:
                return self._handle
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            handle = CaptureHandle(self.sample_rate, self.channels, self.max_seconds)
            blocksize = int(self.sample_rate * (self.chunk_ms / 1000.0))
            self._handle = handle
            self._stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=blocksize,
                callback=self._on_audio,
            )
            self._stream.start()
            self._running = True
            return handle

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._stream is not None:
                self._stream.stop()
                self._stream.close()
                self._stream = None
            if self._handle is not None:
                self._handle.finalize()
                if self._handle.dropped_chunks:
                    logger.warning(
                        "utterance truncated at %.0fs, %d chunks dropped",
                        self.max_seconds,
                        self._handle.dropped_chunks,
                    )
                self._handle = None

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        handle = self._handle
        if not self._running or handle is None:
            return
        if np is None:
            return
        payload = np.asarray(indata, dtype=np.int16).tobytes()
        handle.append(
            AudioFrame(
                pcm16_bytes=payload,
                sample_rate=self.sample_rate,
                channels=self.channels,
                timestamp_ms=int(time.time() * 1000),
            )
        )


class SimulatedRecorder:
    """Stand-in backend for machines without a capture device.

    ``stop()`` waits ``delay_s`` and fills the handle with a short synthetic
    tone, so the rest of the pipeline runs unchanged.
    """

    def __init__(
        self,
        delay_s: float = 0.5,
        tone_seconds: float = 1.0,
        sample_rate: int = 16000,
        frequency_hz: float = 440.0,
    ) -> None:
        self.delay_s = delay_s
        self.tone_seconds = tone_seconds
        self.sample_rate = sample_rate
        self.frequency_hz = frequency_hz
        self._handle: Optional[CaptureHandle] = None

    def start(self) -> CaptureHandle:
        if self._handle is None:
            self._handle = CaptureHandle(self.sample_rate, 1)
        return self._handle

    def stop(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        time.sleep(self.delay_s)
        handle.append(AudioFrame(pcm16_bytes=self._tone(), sample_rate=self.sample_rate))
        handle.finalize()

    def _tone(self) -> bytes:
        if np is None:
            raise RuntimeError("numpy is not installed")
        t = np.arange(int(self.sample_rate * self.tone_seconds)) / self.sample_rate
        wave_data = 0.2 * np.sin(2 * np.pi * self.frequency_hz * t)
        return (wave_data * 32767).astype(np.int16).tobytes()
