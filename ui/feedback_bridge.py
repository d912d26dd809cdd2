"""Thread-safe bridge from session callbacks into Qt signals."""

import sys

from PyQt6.QtCore import QObject, pyqtSignal

from core.feedback import TrayIconState, schedule_retries


class FeedbackBridge(QObject):
    """Emit Qt signals so overlay and tray updates run on the main Qt thread.

    Implements the ``FeedbackPresenter`` interface used by the coordinator.
    On macOS the overlay can miss a state change while its window is being
    shown, so ``show`` is re-emitted after each configured retry delay.
    """

    show_requested = pyqtSignal(str)
    hide_requested = pyqtSignal()
    position_requested = pyqtSignal()
    levels_changed = pyqtSignal(list)
    tray_state_requested = pyqtSignal(str)
    error_reported = pyqtSignal(str)

    def __init__(self, settings_provider=None, platform: str | None = None, parent=None):
        super().__init__(parent)
        self._settings_provider = settings_provider
        self._platform = platform or sys.platform

    def _retry_delays(self) -> list:
        if self._platform != "darwin" or self._settings_provider is None:
            return []
        return list(self._settings_provider().get("overlay_retry_delays_ms") or [])

    def show(self, state_label: str):
        self.show_requested.emit(state_label)
        delays = self._retry_delays()
        if delays:
            schedule_retries(delays, lambda: self.show_requested.emit(state_label), name="uttr-overlay-retry")

    def hide(self):
        self.hide_requested.emit()

    def update_position(self):
        self.position_requested.emit()

    def emit_levels(self, values):
        self.levels_changed.emit([float(v) for v in values])

    def set_tray_icon(self, state: TrayIconState):
        self.tray_state_requested.emit(TrayIconState(state).value)

    def report_error(self, message: str):
        self.error_reported.emit(message)
