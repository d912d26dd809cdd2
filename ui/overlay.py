"""Small always-on-top pill that shows the session state and mic levels."""

import logging
import sys

from PyQt6.QtCore import QPropertyAnimation, QRectF, Qt, QTimer
from PyQt6.QtGui import QColor, QCursor, QGuiApplication, QPainter, QPainterPath
from PyQt6.QtWidgets import QWidget

from core.overlay_geometry import (
    OVERLAY_HEIGHT,
    OVERLAY_WIDTH,
    OverlayPosition,
    calculate_overlay_position,
    pick_work_area,
)

logger = logging.getLogger(__name__)

_STATE_COLORS = {
    "recording": "#ff1744",
    "transcribing": "#ffb300",
    "processing": "#29b6f6",
}
_LABELS = {
    "recording": "Listening",
    "transcribing": "Transcribing",
    "processing": "Processing",
}


def _rect_tuple(rect) -> tuple[float, float, float, float]:
    return float(rect.x()), float(rect.y()), float(rect.width()), float(rect.height())


class RecordingOverlay(QWidget):
    """Frameless overlay. All methods must be called on the Qt main thread."""

    def __init__(self, settings_provider, parent=None):
        super().__init__(parent)
        self._settings_provider = settings_provider
        self._state = ""
        self._levels: list[float] = []

        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
            | Qt.WindowType.WindowDoesNotAcceptFocus
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setAttribute(Qt.WidgetAttribute.WA_ShowWithoutActivating, True)
        self.setFixedSize(int(OVERLAY_WIDTH), int(OVERLAY_HEIGHT))

        self._fade = QPropertyAnimation(self, b"windowOpacity", self)
        self._fade.setDuration(150)
        self._fade.finished.connect(self._on_fade_finished)

        self._hide_timer = QTimer(self)
        self._hide_timer.setSingleShot(True)
        self._hide_timer.timeout.connect(self._fade_out)

    @property
    def state(self) -> str:
        return self._state

    def _position(self) -> OverlayPosition:
        return OverlayPosition.parse(self._settings_provider().get("overlay_position"))

    def show_state(self, state_label: str):
        if self._position() is OverlayPosition.NONE:
            return
        self._hide_timer.stop()
        if state_label != self._state:
            self._levels = []
        self._state = state_label
        self.update_position()
        if not self.isVisible() or self._fade.endValue() == 0.0:
            self._fade.stop()
            self.setWindowOpacity(0.0)
            self.show()
            self._fade.setStartValue(0.0)
            self._fade.setEndValue(1.0)
            self._fade.start()
        self.update()

    def hide_animated(self, delay_ms: int | None = None):
        if delay_ms is None:
            delay_ms = int(self._settings_provider().get("overlay_hide_delay_ms", 300))
        self._hide_timer.start(max(0, int(delay_ms)))

    def _fade_out(self):
        if not self.isVisible():
            return
        self._fade.stop()
        self._fade.setStartValue(self.windowOpacity())
        self._fade.setEndValue(0.0)
        self._fade.start()

    def _on_fade_finished(self):
        if self._fade.endValue() == 0.0:
            self.hide()
            self._state = ""
            self._levels = []

    def set_levels(self, values: list):
        if self._state != "recording":
            return
        self._levels = [max(0.0, min(1.0, float(v))) for v in values]
        self.update()

    def update_position(self):
        position = self._position()
        screens = QGuiApplication.screens()
        if not screens:
            return
        primary = QGuiApplication.primaryScreen()
        area = pick_work_area(
            (float(QCursor.pos().x()), float(QCursor.pos().y())),
            [_rect_tuple(s.availableGeometry()) for s in screens],
            _rect_tuple(primary.availableGeometry()) if primary else None,
        )
        if area is None:
            return
        point = calculate_overlay_position(area, position, sys.platform, float(self.width()), float(self.height()))
        if point is None:
            return
        self.move(int(point[0]), int(point[1]))

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        rect = QRectF(self.rect()).adjusted(1, 1, -1, -1)
        path = QPainterPath()
        path.addRoundedRect(rect, rect.height() / 2, rect.height() / 2)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QColor(20, 20, 20, 220))
        painter.drawPath(path)

        accent = QColor(_STATE_COLORS.get(self._state, "#9e9e9e"))
        painter.setBrush(accent)
        dot = rect.height() * 0.3
        painter.drawEllipse(QRectF(rect.x() + 12, rect.center().y() - dot / 2, dot, dot))

        if self._state == "recording" and self._levels:
            self._paint_levels(painter, rect, accent)
        else:
            painter.setPen(QColor("#eeeeee"))
            text_rect = rect.adjusted(12 + dot + 8, 0, -12, 0)
            painter.drawText(
                text_rect,
                int(Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft),
                _LABELS.get(self._state, self._state.title()),
            )
        painter.end()

    def _paint_levels(self, painter: QPainter, rect: QRectF, color: QColor):
        left = rect.x() + 36
        width = rect.right() - 14 - left
        count = len(self._levels)
        slot = width / count
        bar = max(1.0, slot * 0.6)
        max_height = rect.height() - 14
        painter.setBrush(color)
        for i, level in enumerate(self._levels):
            height = max(2.0, max_height * level)
            x = left + i * slot + (slot - bar) / 2
            y = rect.center().y() - height / 2
            painter.drawRoundedRect(QRectF(x, y, bar, height), bar / 2, bar / 2)
