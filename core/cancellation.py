"""Process-wide cancellation: return every collaborator to a safe idle state."""

import logging

from core.feedback import TrayIconState
from core.session import CancelState

logger = logging.getLogger(__name__)


def _best_effort(step: str, fn, *args, default=None):
    try:
        return fn(*args)
    except Exception as e:
        logger.warning("Cancellation step '%s' failed: %s", step, e)
        return default


def cancel_current_operation(recorder, transcriber, feedback, shortcuts, coordinator, abort_in_flight: bool = False) -> CancelState:
    """Cancel recording (and optionally an in-flight transcription) and go idle.

    Steps run in order and each is independent: a failing step is logged and
    the next one still runs.
    """
    logger.info("Initiating operation cancellation...")

    if shortcuts is not None:
        _best_effort("unregister cancel shortcut", shortcuts.unregister_cancel_shortcut)

    recording_was_active = bool(_best_effort("query capture", recorder.is_recording, default=False))
    # Always cancel: a stream may still be opening and not yet report itself.
    _best_effort("cancel capture", recorder.cancel)

    _best_effort("restore tray icon", feedback.set_tray_icon, TrayIconState.IDLE)
    _best_effort("hide overlay", feedback.hide)

    _best_effort("unload model", transcriber.maybe_unload_immediately, "cancellation")

    interrupted = _best_effort(
        "notify coordinator",
        coordinator.notify_cancel,
        recording_was_active,
        abort_in_flight,
        default=False,
    )
    logger.info("Operation cancellation completed - returned to idle state")
    return CancelState(recording_was_active=recording_was_active, interrupted=bool(interrupted))
