from __future__ import annotations

import random
import threading
import time
from typing import Optional

import httpx

from availability import AvailabilityMonitor

from errors import CAPTURE_FAILED, PERMISSION_DENIED, SESSION_BUSY, UNREACHABLE, UPLOAD_FAILED
from languages import LanguagePair
from models import AudioFrame, RecordingState, SessionContext, TranslationResult
from recorder import CaptureHandle
from session_controller import RecordingSession


class FakeRecorder:
    def __init__(self, fail_start: bool = False) -> None:
        self.fail_start = fail_start
        self.handles: list[CaptureHandle] = []
        self.stopped = 0

    def start(self) -> CaptureHandle:
        if self.fail_start:
            raise RuntimeError("no input device")
        handle = CaptureHandle()
        self.handles.append(handle)
        return handle

    def stop(self) -> None:
        self.stopped += 1
        handle = self.handles[-1]
        handle.append(AudioFrame(pcm16_bytes=b"\x01\x00" * 160))
        handle.finalize()

    def live_handles(self) -> int:
        return sum(1 for h in self.handles if not h.released)


class FakeGate:
    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.requests = 0

    def ensure_permission(self) -> bool:
        self.requests += 1
        return self.granted


class FakeAvailability:
    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable
        self.marked_unreachable = 0

    def check_now(self) -> bool:
        return self.reachable

    def mark_unreachable(self) -> None:
        self.marked_unreachable += 1
        self.reachable = False


class FakeUploader:
    def __init__(self, result: Optional[TranslationResult] = None, raises: bool = False) -> None:
        self.result = result or TranslationResult(text="namaste")
        self.raises = raises
        self.calls: list[tuple[str, str, Optional[float]]] = []
        self.release: Optional[threading.Event] = None
        self.entered = threading.Event()

    def upload(self, handle, target_language, server_url, deadline_s=None):  # noqa: ANN001
        self.calls.append((target_language, server_url, deadline_s))
        assert not handle.is_empty
        self.entered.set()
        if self.release is not None:
            self.release.wait(timeout=2.0)
        if self.raises:
            raise RuntimeError("boom")
        return self.result


def _session(
    recorder: Optional[FakeRecorder] = None,
    gate: Optional[FakeGate] = None,
    uploader: Optional[FakeUploader] = None,
    availability: Optional[FakeAvailability] = None,
    **kwargs,
) -> RecordingSession:
    context = SessionContext(
        server_url="http://translator:3000",
        languages=LanguagePair(source="english", target="hindi"),
    )
    return RecordingSession(
        recorder=recorder or FakeRecorder(),
        permission_gate=gate or FakeGate(),
        uploader=uploader or FakeUploader(),
        availability=availability or FakeAvailability(),
        context=context,
        upload_deadline_s=2.5,
        **kwargs,
    )


def test_happy_path_goes_through_processing() -> None:
    recorder = FakeRecorder()
    uploader = FakeUploader()
    transitions: list[tuple[RecordingState, RecordingState]] = []
    results: list[TranslationResult] = []

    session = _session(
        recorder=recorder,
        uploader=uploader,
        on_state_change=lambda f, t: transitions.append((f, t)),
        on_complete=results.append,
    )

    assert session.start().started is True
    assert session.state == RecordingState.RECORDING
    result = session.stop()

    assert result is not None and result.text == "namaste"
    assert results == [result]
    assert uploader.calls == [("hi", "http://translator:3000", 2.5)]
    assert transitions == [
        (RecordingState.IDLE, RecordingState.RECORDING),
        (RecordingState.RECORDING, RecordingState.PROCESSING),
        (RecordingState.PROCESSING, RecordingState.IDLE),
    ]
    assert recorder.handles[0].released is True
    assert session.last_result is result


def test_status_events_are_ordered() -> None:
    statuses: list[tuple[bool, bool]] = []
    session = _session(on_status=lambda rec, proc: statuses.append((rec, proc)))

    session.start()
    session.stop()

    assert statuses == [(True, False), (False, True), (False, False)]


def test_stop_while_idle_is_noop() -> None:
    recorder = FakeRecorder()
    transitions: list[tuple[RecordingState, RecordingState]] = []
    session = _session(recorder=recorder, on_state_change=lambda f, t: transitions.append((f, t)))

    assert session.stop() is None
    session.start()
    session.stop()
    assert session.stop() is None  # double tap

    assert recorder.stopped == 1
    assert len(transitions) == 3


def test_permission_denied_refuses_start() -> None:
    recorder = FakeRecorder()
    errors: list[tuple[str, str]] = []
    session = _session(
        recorder=recorder,
        gate=FakeGate(granted=False),
        on_error=lambda c, m: errors.append((c, m)),
    )

    result = session.start()

    assert result.started is False
    assert result.error_code == PERMISSION_DENIED
    assert session.state == RecordingState.IDLE
    assert recorder.handles == []
    assert errors[0][0] == PERMISSION_DENIED


def test_unreachable_refuses_start_until_restored() -> None:
    availability = FakeAvailability(reachable=False)
    session = _session(availability=availability)

    result = session.start()
    assert result.error_code == UNREACHABLE
    assert session.state == RecordingState.IDLE

    availability.reachable = True
    assert session.start().started is True
    assert session.state == RecordingState.RECORDING


def test_permission_and_unreachable_are_distinct() -> None:
    session = _session(gate=FakeGate(granted=False), availability=FakeAvailability(False))

    assert session.start().error_code == PERMISSION_DENIED


def test_reachability_gate_can_be_disabled() -> None:
    session = _session(availability=FakeAvailability(reachable=False), require_reachable=False)

    assert session.start().started is True


def test_start_while_processing_is_rejected() -> None:
    uploader = FakeUploader()
    uploader.release = threading.Event()
    recorder = FakeRecorder()
    session = _session(recorder=recorder, uploader=uploader)

    session.start()
    worker = threading.Thread(target=session.stop, daemon=True)
    worker.start()
    assert uploader.entered.wait(timeout=1.0)

    assert session.state == RecordingState.PROCESSING
    assert session.start().error_code == SESSION_BUSY
    session.toggle()  # must not cancel or restart
    assert session.stop() is None
    assert len(recorder.handles) == 1

    uploader.release.set()
    worker.join(timeout=2.0)
    assert session.state == RecordingState.IDLE
    assert len(uploader.calls) == 1


def test_unreachable_upload_marks_service_unreachable() -> None:
    availability = FakeAvailability()
    uploader = FakeUploader(result=TranslationResult.failure(UNREACHABLE))
    session = _session(uploader=uploader, availability=availability)

    session.start()
    result = session.stop()

    assert result is not None
    assert result.ok is False
    assert "translation server" in result.message
    assert availability.marked_unreachable == 1
    assert session.state == RecordingState.IDLE


def test_uploader_exception_becomes_result() -> None:
    session = _session(uploader=FakeUploader(raises=True))

    session.start()
    result = session.stop()

    assert result is not None
    assert result.error_code == UPLOAD_FAILED
    assert session.state == RecordingState.IDLE


def test_capture_failure_keeps_idle() -> None:
    errors: list[tuple[str, str]] = []
    session = _session(
        recorder=FakeRecorder(fail_start=True),
        on_error=lambda c, m: errors.append((c, m)),
    )

    result = session.start()

    assert result.error_code == CAPTURE_FAILED
    assert session.state == RecordingState.IDLE
    assert errors == [(CAPTURE_FAILED, "no input device")]


def test_toggle_dispatches_start_then_stop() -> None:
    uploader = FakeUploader()
    session = _session(uploader=uploader)

    session.toggle()
    assert session.state == RecordingState.RECORDING
    session.toggle()
    assert session.state == RecordingState.IDLE
    assert len(uploader.calls) == 1


def test_cancel_releases_recording() -> None:
    recorder = FakeRecorder()
    uploader = FakeUploader()
    session = _session(recorder=recorder, uploader=uploader)

    session.start()
    session.cancel("app quit")

    assert session.state == RecordingState.IDLE
    assert recorder.handles[0].released is True
    assert uploader.calls == []


def test_cancel_from_idle_is_noop() -> None:
    session = _session()
    session.cancel("noop")
    assert session.state == RecordingState.IDLE


def test_random_start_stop_sequences_never_skip_processing() -> None:
    rng = random.Random(7)
    recorder = FakeRecorder()
    transitions: list[tuple[RecordingState, RecordingState]] = []
    max_live = 0

    def on_change(f: RecordingState, t: RecordingState) -> None:
        nonlocal max_live
        transitions.append((f, t))
        max_live = max(max_live, recorder.live_handles())

    session = _session(recorder=recorder, on_state_change=on_change)
    for _ in range(200):
        rng.choice([session.start, session.stop, session.toggle])()

    allowed = {
        (RecordingState.IDLE, RecordingState.RECORDING),
        (RecordingState.RECORDING, RecordingState.PROCESSING),
        (RecordingState.PROCESSING, RecordingState.IDLE),
    }
    assert transitions
    assert set(transitions) <= allowed
    assert max_live <= 1


def test_stop_waits_for_upload_before_idle() -> None:
    uploader = FakeUploader()
    uploader.release = threading.Event()
    session = _session(uploader=uploader)
    session.start()

    def release_later() -> None:
        time.sleep(0.05)
        assert session.state == RecordingState.PROCESSING
        uploader.release.set()

    threading.Thread(target=release_later, daemon=True).start()
    session.stop()
    assert session.state == RecordingState.IDLE


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_monitor_gates_start_across_outage_and_recovery() -> None:
    service_up = {"value": False}
    probes: list[httpx.Request] = []

    def service(request: httpx.Request) -> httpx.Response:
        probes.append(request)
        if not service_up["value"]:
            return httpx.Response(503)
        return httpx.Response(200, json={"currentLanguage": "hi"})

    clock = FakeClock()
    context = SessionContext(
        server_url="http://translator:3000",
        languages=LanguagePair(source="english", target="hindi"),
    )
    monitor = AvailabilityMonitor(
        context,
        freshness_s=3.0,
        transport=httpx.MockTransport(service),
        clock=clock,
    )
    uploader = FakeUploader(result=TranslationResult.failure(UNREACHABLE))
    session = RecordingSession(
        recorder=FakeRecorder(),
        permission_gate=FakeGate(),
        uploader=uploader,
        availability=monitor,
        context=context,
    )

    # service down: refused after a fresh probe
    assert session.start().error_code == UNREACHABLE
    assert session.state == RecordingState.IDLE
    assert len(probes) == 1

    # restored, but the cached status is still fresh
    service_up["value"] = True
    clock.now += 1.0
    assert session.start().error_code == UNREACHABLE
    assert len(probes) == 1

    # stale cache: probe again and start
    clock.now += 5.0
    assert session.start().started is True
    assert context.availability.reachable is True

    # the upload cannot reach the service, which flips the cached status
    session.stop()
    assert context.availability.reachable is False
    assert context.availability.last_checked_at == clock.now
    assert session.start().error_code == UNREACHABLE
    assert len(probes) == 2

    clock.now += 5.0
    uploader.result = TranslationResult(text="namaste")
    assert session.start().started is True
    assert session.stop().text == "namaste"
    assert len(probes) == 3
