"""State-machine based recording session: Idle -> Recording -> Processing -> Idle."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from errors import (
    CAPTURE_FAILED,
    PERMISSION_DENIED,
    SESSION_BUSY,
    UNREACHABLE,
    UPLOAD_FAILED,
    describe_error,
)
from interfaces import AvailabilityGate, PermissionGate, Recorder, Uploader
from models import RecordingState, SessionContext, StartResult, TranslationResult
from recorder import CaptureHandle

logger = logging.getLogger(__name__)

StateCallback = Callable[[RecordingState, RecordingState], None]
StatusCallback = Callable[[bool, bool], None]
CompleteCallback = Callable[[TranslationResult], None]
ErrorCallback = Callable[[str, str], None]


class RecordingSession:
    def __init__(
        self,
        recorder: Recorder,
        permission_gate: PermissionGate,
        uploader: Uploader,
        availability: AvailabilityGate,
        context: SessionContext,
        upload_deadline_s: float = 10.0,
        require_reachable: bool = True,
        on_state_change: Optional[StateCallback] = None,
        on_status: Optional[StatusCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._recorder = recorder
        self._permission_gate = permission_gate
        self._uploader = uploader
        self._availability = availability
        self._context = context
        self._upload_deadline_s = upload_deadline_s
        self._require_reachable = require_reachable
        self._on_state_change = on_state_change
        self._on_status = on_status
        self._on_complete = on_complete
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = RecordingState.IDLE
        self._handle: Optional[CaptureHandle] = None
        self._last_result: Optional[TranslationResult] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecordingState.RECORDING

    @property
    def is_processing(self) -> bool:
        return self._state == RecordingState.PROCESSING

    @property
    def last_result(self) -> Optional[TranslationResult]:
        return self._last_result

    def start(self) -> StartResult:
        with self._lock:
            if self._state != RecordingState.IDLE:
                return StartResult(started=False, error_code=SESSION_BUSY)
            if not self._permission_gate.ensure_permission():
                return self._refuse(PERMISSION_DENIED)
            if self._require_reachable and not self._availability.check_now():
                return self._refuse(UNREACHABLE)
            try:
                handle = self._recorder.start()
            except Exception as exc:
                logger.exception("capture backend failed to start")
                self._emit_error(CAPTURE_FAILED, str(exc))
                return StartResult(started=False, error_code=CAPTURE_FAILED)
            self._handle = handle
            self._transition(RecordingState.RECORDING)
            return StartResult(started=True)

    def stop(self) -> Optional[TranslationResult]:
        """Finish the utterance and block until its upload settles.

        Returns None when not recording, so repeated taps are harmless.
        """
        with self._lock:
            if self._state != RecordingState.RECORDING:
                return None
            handle = self._handle
            self._transition(RecordingState.PROCESSING)
            finalized = self._safe_stop_recorder()
            target_language = self._context.languages.target_code
            server_url = self._context.server_url

        if handle is None or not finalized:
            result = TranslationResult.failure(CAPTURE_FAILED)
        else:
            result = self._run_upload(handle, target_language, server_url)

        with self._lock:
            if result.error_code == UNREACHABLE:
                self._availability.mark_unreachable()
            if handle is not None:
                handle.release()
            self._handle = None
            self._last_result = result
            self._transition(RecordingState.IDLE)

        if self._on_complete:
            self._on_complete(result)
        return result

    def toggle(self) -> None:
        if self._state == RecordingState.RECORDING:
            self.stop()
        else:
            self.start()

    def cancel(self, reason: str) -> None:
        """Abandon a live recording. An upload in flight is left to finish."""
        with self._lock:
            if self._state != RecordingState.RECORDING:
                return
            logger.info("recording cancelled: %s", reason)
            self._safe_stop_recorder()
            if self._handle is not None:
                self._handle.release()
            self._handle = None
            self._transition(RecordingState.IDLE)

    def _refuse(self, code: str) -> StartResult:
        self._emit_error(code, describe_error(code))
        return StartResult(started=False, error_code=code)

    def _run_upload(
        self, handle: CaptureHandle, target_language: str, server_url: str
    ) -> TranslationResult:
        try:
            return self._uploader.upload(
                handle, target_language, server_url, self._upload_deadline_s
            )
        except Exception as exc:
            logger.exception("upload raised")
            return TranslationResult.failure(UPLOAD_FAILED, detail=str(exc))

    def _safe_stop_recorder(self) -> bool:
        try:
            self._recorder.stop()
        except Exception:
            logger.exception("capture backend failed to stop")
            return False
        return True

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _transition(self, to_state: RecordingState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("session %s -> %s", from_state.value, to_state.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
        if self._on_status:
            self._on_status(
                to_state == RecordingState.RECORDING,
                to_state == RecordingState.PROCESSING,
            )
