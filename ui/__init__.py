"""Public UI interfaces for app composition."""

from ui.feedback_bridge import FeedbackBridge
from ui.overlay import RecordingOverlay
from ui.tray_icon import TrayIcon

__all__ = [
    "FeedbackBridge",
    "RecordingOverlay",
    "TrayIcon",
]
