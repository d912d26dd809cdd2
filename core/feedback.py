"""UI feedback capability interface and the headless implementation.

Callbacks reach the presenter from hotkey, signal, and transcription worker
threads. Implementations must be safe to call from any thread; the Qt
implementation lives in ``ui.feedback_bridge``.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Iterable, Protocol, Sequence

logger = logging.getLogger(__name__)


class TrayIconState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"


class FeedbackPresenter(Protocol):
    def show(self, state_label: str) -> None: ...

    def hide(self) -> None: ...

    def update_position(self) -> None: ...

    def emit_levels(self, values: Sequence[float]) -> None: ...

    def set_tray_icon(self, state: TrayIconState) -> None: ...

    def report_error(self, message: str) -> None: ...


class LoggingFeedback:
    """Feedback presenter for headless runs: state changes go to the log."""

    def __init__(self, on_error: Callable[[str], None] | None = None):
        self._on_error = on_error
        self._visible_state = ""

    @property
    def visible_state(self) -> str:
        return self._visible_state

    def show(self, state_label: str):
        self._visible_state = state_label
        logger.info("Overlay: %s", state_label)

    def hide(self):
        self._visible_state = ""
        logger.debug("Overlay hidden")

    def update_position(self):
        pass

    def emit_levels(self, values):
        pass

    def set_tray_icon(self, state: TrayIconState):
        logger.debug("Tray icon -> %s", state.value)

    def report_error(self, message: str):
        logger.error("%s", message)
        if self._on_error:
            self._on_error(message)


def schedule_once(delay_seconds: float, callback: Callable[[], None], name: str = "uttr-timer") -> threading.Timer:
    """Run ``callback`` once after ``delay_seconds`` on a daemon timer thread.

    There is no cancellation handle contract; failures inside the callback
    are logged at debug level and otherwise ignored.
    """

    def _run():
        try:
            callback()
        except Exception as e:
            logger.debug("Scheduled task %s failed: %s", name, e)

    timer = threading.Timer(max(0.0, float(delay_seconds)), _run)
    timer.daemon = True
    timer.name = name
    timer.start()
    return timer


def schedule_retries(delays_ms: Iterable[int], callback: Callable[[], None], name: str = "uttr-retry"):
    """Schedule ``callback`` after each delay, each measured from the previous one."""
    elapsed = 0.0
    timers = []
    for delay in delays_ms:
        elapsed += max(0, int(delay)) / 1000.0
        timers.append(schedule_once(elapsed, callback, name=name))
    return timers
