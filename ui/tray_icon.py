from PyQt6.QtGui import QAction, QColor, QIcon, QPainter, QPixmap
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon

from core.feedback import TrayIconState


def _make_circle_icon(color: str) -> QIcon:
    """Generate a simple colored circle icon for the tray."""
    size = 64
    pixmap = QPixmap(size, size)
    pixmap.fill(QColor("transparent"))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.RenderHint.Antialiasing)
    painter.setBrush(QColor(color))
    painter.setPen(QColor(color).darker(120))
    painter.drawEllipse(4, 4, size - 8, size - 8)
    painter.end()
    return QIcon(pixmap)


_ICON_COLORS = {
    TrayIconState.IDLE: "#888888",
    TrayIconState.RECORDING: "#c62828",
    TrayIconState.TRANSCRIBING: "#f9a825",
}
_TOOLTIPS = {
    TrayIconState.IDLE: "Idle",
    TrayIconState.RECORDING: "Recording",
    TrayIconState.TRANSCRIBING: "Transcribing",
}


class TrayIcon(QSystemTrayIcon):
    """System tray icon with context menu for Uttr."""

    def __init__(self, push_to_talk: bool = True, parent=None):
        self._icons = {state: _make_circle_icon(color) for state, color in _ICON_COLORS.items()}
        super().__init__(self._icons[TrayIconState.IDLE], parent)
        self._state = TrayIconState.IDLE
        self.setToolTip("Uttr — Idle")
        self._build_menu(push_to_talk)

    @property
    def state(self) -> TrayIconState:
        return self._state

    def _build_menu(self, push_to_talk: bool):
        menu = QMenu()
        self.action_cancel = QAction("Cancel")
        self.action_cancel.setEnabled(False)
        self.action_push_to_talk = QAction("Push to Talk")
        self.action_push_to_talk.setCheckable(True)
        self.action_push_to_talk.setChecked(bool(push_to_talk))
        self.action_quit = QAction("Quit")

        menu.addAction(self.action_cancel)
        menu.addSeparator()
        menu.addAction(self.action_push_to_talk)
        menu.addSeparator()
        menu.addAction(self.action_quit)
        # QSystemTrayIcon does not own the menu.
        self._menu = menu
        self.setContextMenu(menu)

    def set_state(self, state: str):
        """Update icon, tooltip, and the Cancel entry. state: 'idle', 'recording', or 'transcribing'."""
        try:
            state = TrayIconState(state)
        except ValueError:
            state = TrayIconState.IDLE
        self._state = state
        self.setIcon(self._icons[state])
        self.setToolTip(f"Uttr — {_TOOLTIPS[state]}")
        self.action_cancel.setEnabled(state is not TrayIconState.IDLE)
