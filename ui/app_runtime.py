"""GUI runtime bootstrap and wiring for Uttr."""

import logging
import sys
from collections.abc import Sequence

from PyQt6.QtWidgets import QApplication, QSystemTrayIcon

from config import LOG_FILE, LOG_LEVEL, binding_hotkeys, load_app_settings, save_app_settings
from core.actions import build_binding_registry
from core.app_config import AppConfig
from core.audio_recorder import AudioRecordingManager
from core.coordinator import TranscriptionCoordinator
from core.groq_client import GroqClient
from core.http_client import close_shared_client
from core.shortcut_router import ShortcutRouter
from core.signal_listener import SignalListener
from core.text_output import deliver_text
from core.transcription_manager import TranscriptionManager
from hotkeys import HotkeyManager
from ui.feedback_bridge import FeedbackBridge
from ui.overlay import RecordingOverlay
from ui.tray_icon import TrayIcon

logger = logging.getLogger(__name__)


def _configure_logging():
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    handlers = [logging.StreamHandler()]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
    )


def _deliver(text: str):
    try:
        deliver_text(text, load_app_settings()["output_mode"])
    except (RuntimeError, ValueError) as e:
        logger.warning("Text output failed: %s", e)


def _wire_feedback(bridge: FeedbackBridge, overlay: RecordingOverlay, tray: TrayIcon):
    # Signals are emitted from worker threads; slots run on the Qt main thread.
    bridge.show_requested.connect(overlay.show_state)
    bridge.hide_requested.connect(lambda: overlay.hide_animated())
    bridge.position_requested.connect(overlay.update_position)
    bridge.levels_changed.connect(overlay.set_levels)
    bridge.tray_state_requested.connect(tray.set_state)
    bridge.error_reported.connect(
        lambda message: tray.showMessage("Uttr", message, QSystemTrayIcon.MessageIcon.Warning, 5000)
    )


def _wire_tray(tray: TrayIcon, coordinator: TranscriptionCoordinator, app: QApplication):
    tray.action_cancel.triggered.connect(lambda: coordinator.cancel_current_operation(abort_in_flight=True))
    tray.action_push_to_talk.toggled.connect(lambda checked: save_app_settings({"push_to_talk": bool(checked)}))
    tray.action_quit.triggered.connect(app.quit)


def run_gui_app(argv: Sequence[str] | None = None) -> int:
    _configure_logging()
    logger.info("Starting Uttr")

    # SIGUSR2 must be blocked before Qt, audio, or hotkey threads start.
    signals = SignalListener(on_trigger=lambda *_: None)
    signals.prepare()

    qt_argv = list(argv) if argv is not None else sys.argv
    app = QApplication(qt_argv)
    app.setQuitOnLastWindowClosed(False)

    config = AppConfig.from_env()
    settings = load_app_settings()

    overlay = RecordingOverlay(settings_provider=load_app_settings)
    tray = TrayIcon(push_to_talk=settings["push_to_talk"])
    bridge = FeedbackBridge(settings_provider=load_app_settings, parent=overlay)
    _wire_feedback(bridge, overlay, tray)

    recorder = AudioRecordingManager(on_levels=bridge.emit_levels)
    transcriber = TranscriptionManager(GroqClient(config), settings_provider=load_app_settings)
    hotkeys = HotkeyManager(bindings=binding_hotkeys(settings), cancel_hotkey=settings["hotkey_cancel"])
    coordinator = TranscriptionCoordinator(
        recorder=recorder,
        transcriber=transcriber,
        feedback=bridge,
        shortcuts=hotkeys,
        output=_deliver,
    )
    router = ShortcutRouter(coordinator, build_binding_registry(coordinator), load_app_settings)
    hotkeys.on_event = router.handle_shortcut_event
    signals.attach(coordinator.handle_transcribe_input)
    _wire_tray(tray, coordinator, app)

    try:
        hotkeys.start()
        signals.start()
        tray.show()
        return app.exec()
    finally:
        coordinator.cancel_current_operation(abort_in_flight=True)
        hotkeys.stop()
        signals.stop()
        close_shared_client()
        logger.info("Exiting Uttr")
