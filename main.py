"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading

import recorder as recorder_mod
from availability import AvailabilityMonitor
from clipboard import ClipboardService
from config import JsonConfigStore
from hotkey import GlobalHotkeyAdapter
from language_sync import LanguageSync
from languages import LANGUAGES, LanguagePair, display_name
from models import RecordingState, ServerAvailability, SessionContext, TranslationResult
from overlay import OverlayWindow
from permission import MicrophonePermissionGate, StaticPermissionGate
from recorder import SimulatedRecorder, SoundDeviceRecorder
from session_controller import RecordingSession
from upload_client import HttpUploadClient

try:
    from PySide6.QtCore import QObject, Signal, QSize
    from PySide6.QtGui import QAction, QIcon, QPixmap, QPainter, QColor, QBrush
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#4B9CFF"        # blue
ICON_RECORDING = "#FF4444"   # red
ICON_PROCESSING = "#FFB020"  # amber
ICON_OFFLINE = "#888888"     # grey


class UIBridge(QObject):
    state_signal = Signal(str, str)  # from_state, to_state
    result_signal = Signal(bool, str)  # ok, message
    error_signal = Signal(str)
    availability_signal = Signal(bool)


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        logging.basicConfig(
            level=self.config_store.get_log_level(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        self.overlay = OverlayWindow()
        self.clipboard = ClipboardService()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.result_signal.connect(self._on_result_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.availability_signal.connect(self._on_availability_ui)

        self._shown_pair: LanguagePair | None = None
        self.context = SessionContext(
            server_url=self.config_store.get_server_url(),
            languages=LanguagePair(
                source=self.config_store.get_source_language(),
                target=self.config_store.get_target_language(),
            ),
        )
        self.monitor = AvailabilityMonitor(
            self.context,
            interval_s=self.config_store.get_probe_interval_s(),
            on_change=self._on_availability,
        )
        self.language_sync = LanguageSync(self.context, on_failure=self._on_sync_failure)
        self.language_sync.attach()

        simulate = self.config_store.get_simulate_capture() or recorder_mod.sd is None
        if simulate:
            logger.info("no capture device support, using simulated recordings")
        self.session = RecordingSession(
            recorder=SimulatedRecorder() if simulate else SoundDeviceRecorder(),
            permission_gate=StaticPermissionGate() if simulate else MicrophonePermissionGate(),
            uploader=HttpUploadClient(),
            availability=self.monitor,
            context=self.context,
            upload_deadline_s=self.config_store.get_upload_timeout_s(),
            require_reachable=not simulate,
            on_state_change=self._on_state_change,
            on_complete=self._on_complete,
            on_error=self._on_error,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_OFFLINE))
        self._setup_menu()
        self._refresh_languages()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        self.record_action = QAction("Record", menu)
        self.record_action.triggered.connect(self._toggle_recording)
        menu.addAction(self.record_action)
        menu.addSeparator()

        self.source_action = QAction("", menu)
        self.source_action.triggered.connect(self._pick_source)
        menu.addAction(self.source_action)

        self.target_action = QAction("", menu)
        self.target_action.triggered.connect(self._pick_target)
        menu.addAction(self.target_action)

        swap_action = QAction("Swap Languages", menu)
        swap_action.triggered.connect(self._swap_languages)
        menu.addAction(swap_action)
        menu.addSeparator()

        copy_action = QAction("Copy Last Translation", menu)
        copy_action.triggered.connect(self._copy_last)
        menu.addAction(copy_action)

        auto_copy_action = QAction("Copy Translations Automatically", menu)
        auto_copy_action.setCheckable(True)
        auto_copy_action.setChecked(self.config_store.get_auto_copy())
        auto_copy_action.toggled.connect(self.config_store.set_auto_copy)
        menu.addAction(auto_copy_action)

        server_action = QAction("Set Server URL", menu)
        server_action.triggered.connect(self._set_server_url)
        menu.addAction(server_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------

    def _toggle_recording(self) -> None:
        # stop() blocks until the upload settles; keep it off the Qt thread
        threading.Thread(target=self.session.toggle, daemon=True).start()

    def _choose_language(self, title: str, current: str) -> str | None:
        names = sorted(LANGUAGES)
        labels = [display_name(name) for name in names]
        value, ok = QInputDialog.getItem(
            None, title, "Language", labels, names.index(current), False
        )
        if not ok:
            return None
        return names[labels.index(value)]

    def _pick_source(self) -> None:
        name = self._choose_language("Source Language", self.context.languages.source)
        if name is None:
            return
        self.context.select_source(name)
        self._refresh_languages()

    def _pick_target(self) -> None:
        name = self._choose_language("Target Language", self.context.languages.target)
        if name is None:
            return
        self.context.select_target(name)
        self._refresh_languages()

    def _swap_languages(self) -> None:
        self.context.swap_languages()
        self._refresh_languages()

    def _refresh_languages(self) -> None:
        pair = self.context.languages
        self._shown_pair = pair
        self.config_store.set_source_language(pair.source)
        self.config_store.set_target_language(pair.target)
        self.source_action.setText(f"From: {display_name(pair.source)}")
        self.target_action.setText(f"To: {display_name(pair.target)}")
        self.overlay.set_language_pair(pair.label())
        self._update_tooltip()

    def _copy_last(self) -> None:
        result = self.session.last_result
        if result is None or not result.ok:
            return
        self.clipboard.copy_text(result.text)

    def _set_server_url(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Server URL", "Translation server URL", text=self.context.server_url
        )
        if not ok or not value.strip():
            return
        self.config_store.set_server_url(value)
        self.context.server_url = self.config_store.get_server_url()
        threading.Thread(target=self.monitor.check_availability, daemon=True).start()
        QMessageBox.information(None, "Saved", "Server URL saved and applied.")

    # ------------------------------------------------------------------
    # Callbacks (called from worker threads → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: RecordingState, to_state: RecordingState) -> None:
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_complete(self, result: TranslationResult) -> None:
        self.ui.result_signal.emit(result.ok, result.message)

    def _on_error(self, code: str, message: str) -> None:
        self.ui.error_signal.emit(message)

    def _on_availability(self, availability: ServerAvailability) -> None:
        self.ui.availability_signal.emit(availability.reachable)

    def _on_sync_failure(self, target_language: str, reason: str) -> None:
        self.ui.error_signal.emit(f"Language sync failed ({target_language}): {reason}")

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == RecordingState.RECORDING.value:
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.record_action.setText("Stop")
            self.overlay.show_status("🎙️ Listening...")
        elif to_state == RecordingState.PROCESSING.value:
            self.tray.setIcon(_create_icon(ICON_PROCESSING))
            self.record_action.setText("Translating...")
            self.record_action.setEnabled(False)
            self.overlay.show_status("Translating...")
        elif to_state == RecordingState.IDLE.value:
            self.record_action.setText("Record")
            self.record_action.setEnabled(True)
            self._on_availability_ui(self.context.availability.reachable)

    def _on_result_ui(self, ok: bool, message: str) -> None:
        if not ok:
            self.overlay.show_error(message)
            return
        self.overlay.show_translation(message)
        if self.config_store.get_auto_copy():
            self.clipboard.copy_text(message)

    def _on_error_ui(self, message: str) -> None:
        self.overlay.show_error(message)

    def _on_availability_ui(self, reachable: bool) -> None:
        if self.session.state == RecordingState.IDLE:
            self.tray.setIcon(_create_icon(ICON_IDLE if reachable else ICON_OFFLINE))
        # probes may have pulled a new target language from the server
        if self.context.languages != self._shown_pair:
            self._refresh_languages()
        else:
            self._update_tooltip()

    def _update_tooltip(self) -> None:
        status = "Ready" if self.context.availability.reachable else "Server unreachable"
        self.tray.setToolTip(f"Voice Translator — {self.context.languages.label()} — {status}")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        self.monitor.start()
        try:
            self.hotkey.start(on_trigger=self._toggle_recording)
        except Exception as exc:
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.session.cancel("app quit")
        self.monitor.stop()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
