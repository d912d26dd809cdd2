"""Session coordinator: turns trigger edges into one race-free session.

Trigger sources (hotkeys, the signal listener, UI actions) call in from their
own threads. Every decision is a guarded transition on ``SessionStateMachine``;
collaborator calls happen outside the state lock, and transcription runs on a
worker thread whose result is applied only if its session is still current.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from core.cancellation import cancel_current_operation
from core.errors import ConfigError
from core.feedback import FeedbackPresenter, TrayIconState
from core.session import Mode, SessionOwner, SessionState, SessionStateMachine

logger = logging.getLogger(__name__)

TRANSCRIBE_BINDINGS = frozenset({"transcribe", "transcribe_translate"})
CANCEL_BINDING = "cancel"


def is_transcribe_binding(binding_id: str) -> bool:
    return binding_id in TRANSCRIBE_BINDINGS


def _start_daemon_thread(target: Callable[[], None]):
    threading.Thread(target=target, name="uttr-transcribe", daemon=True).start()


class TranscriptionCoordinator:
    """Single authority over whether a recording/transcription session is active."""

    def __init__(
        self,
        recorder,
        transcriber,
        feedback: FeedbackPresenter,
        shortcuts=None,
        output: Optional[Callable[[str], None]] = None,
        on_transcription: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
        run_async: Callable[[Callable[[], None]], None] = _start_daemon_thread,
    ):
        self._recorder = recorder
        self._transcriber = transcriber
        self._feedback = feedback
        self._shortcuts = shortcuts
        self._output = output
        self._on_transcription = on_transcription
        self._on_error = on_error
        self._run_async = run_async
        self._machine = SessionStateMachine()
        # Serializes overlay, tray and cancel-shortcut updates against the
        # transitions that make them stale.
        self._ui_lock = threading.RLock()

    @property
    def state(self) -> SessionState:
        return self._machine.state

    @property
    def is_recording(self) -> bool:
        return self._machine.state is SessionState.RECORDING

    # -- Trigger entry points --

    def handle_transcribe_input(self, binding_id: str, token: str, pressed: bool, push_to_talk: bool) -> bool:
        """Apply one press/release edge. Returns True if it changed the session."""
        owner = SessionOwner(binding_id, token)
        mode = Mode.from_push_to_talk(push_to_talk)

        if mode is Mode.PUSH_TO_TALK:
            if pressed:
                return self._start(owner)
            return self._stop(owner)

        if not pressed:
            logger.debug("Ignoring release of '%s' in toggle mode", binding_id)
            return False
        state, current_owner, _ = self._machine.snapshot()
        if state is SessionState.IDLE:
            return self._start(owner)
        if state is SessionState.RECORDING and current_owner is not None:
            if current_owner.accepts_stop_from(owner):
                return self._stop(owner)
        logger.debug("Ignoring press of '%s' (%s) while %s", binding_id, token, state.value)
        return False

    def handle_cancel(self, binding_id: str, pressed: bool) -> bool:
        """Cancel the current recording. No-op on release or when not recording."""
        if not pressed or not self.is_recording:
            logger.debug("Ignoring cancel from '%s' (pressed=%s, state=%s)", binding_id, pressed, self.state.value)
            return False
        return self.cancel_current_operation()

    def cancel_current_operation(self, abort_in_flight: bool = False) -> bool:
        result = cancel_current_operation(
            self._recorder,
            self._transcriber,
            self._feedback,
            self._shortcuts,
            self,
            abort_in_flight=abort_in_flight,
        )
        return result.interrupted

    def notify_cancel(self, recording_was_active: bool, abort_in_flight: bool = False) -> bool:
        """Bring the state machine to idle after the cancellation helper ran."""
        with self._ui_lock:
            interrupted = self._machine.abort(include_in_flight=abort_in_flight)
            if interrupted is not None:
                # A start racing the cancel may have shown itself after the helper hid the UI.
                self._show_idle()
        if interrupted is None:
            logger.debug("Cancel found no session to interrupt (recording_was_active=%s)", recording_was_active)
            return False
        if interrupted is SessionState.RECORDING:
            logger.info("Recording cancelled; captured audio discarded")
        else:
            logger.info("Abandoned in-flight session (%s); its result will be discarded", interrupted.value)
        return True

    # -- Transitions --

    def _start(self, owner: SessionOwner) -> bool:
        try:
            self._transcriber.ensure_configured()
        except ConfigError as e:
            self._report_error(str(e))
            return False

        generation = self._machine.begin(owner)
        if generation is None:
            logger.debug("Ignoring start from '%s': session already %s", owner.binding_id, self.state.value)
            return False
        logger.info("Session %d started by '%s' (%s)", generation, owner.binding_id, owner.token)

        self._best_effort(self._transcriber.initiate_model_load)
        try:
            self._recorder.start()
        except Exception as e:
            logger.error("Failed to start capture: %s", e)
            self._report_error(f"Failed to start recording: {e}")
            self._finish(generation)
            return False

        if not self._machine.is_current(generation, SessionState.RECORDING):
            # Stopped or cancelled while the stream was opening.
            if self._machine.state is SessionState.IDLE:
                self._best_effort(self._recorder.cancel)
            return True

        self._present_recording(generation)
        return True

    def _present_recording(self, generation: int) -> bool:
        with self._ui_lock:
            if not self._machine.is_current(generation, SessionState.RECORDING):
                return False
            if self._shortcuts is not None:
                self._best_effort(self._shortcuts.register_cancel_shortcut)
            if not self._machine.is_current(generation, SessionState.RECORDING):
                # Stopped while the shortcut was being registered.
                if self._shortcuts is not None:
                    self._best_effort(self._shortcuts.unregister_cancel_shortcut)
                return False
            self._feedback.set_tray_icon(TrayIconState.RECORDING)
            self._feedback.show(SessionState.RECORDING.value)
            return True

    def _stop(self, owner: SessionOwner) -> bool:
        generation = self._machine.stop(owner)
        if generation is None:
            logger.debug("Ignoring stop from '%s': no matching recording", owner.binding_id)
            return False

        if self._shortcuts is not None:
            with self._ui_lock:
                self._best_effort(self._shortcuts.unregister_cancel_shortcut)
        try:
            samples = self._recorder.stop()
        except Exception as e:
            logger.error("Failed to stop capture: %s", e)
            self._report_error(f"Failed to stop recording: {e}")
            self._finish(generation)
            return True

        if samples is None or len(samples) == 0:
            logger.info("No audio captured; nothing to transcribe")
            self._finish(generation)
            return True

        with self._ui_lock:
            if not self._machine.is_current(generation, SessionState.TRANSCRIBING):
                return True
            self._feedback.set_tray_icon(TrayIconState.TRANSCRIBING)
            self._feedback.show(SessionState.TRANSCRIBING.value)
        translate = True if owner.binding_id == "transcribe_translate" else None
        self._run_async(lambda: self._transcribe(generation, samples, translate))
        return True

    def _transcribe(self, generation: int, samples, translate):
        try:
            text = self._transcriber.transcribe(samples, translate=translate)
        except Exception as e:
            if self._machine.generation != generation:
                logger.info("Discarding failure of superseded session %d: %s", generation, e)
                return
            logger.error("Transcription failed: %s", e)
            self._report_error(str(e))
            self._finish(generation)
            return

        if not self._machine.advance(generation, SessionState.TRANSCRIBING, SessionState.PROCESSING):
            logger.info("Discarding stale transcription result for session %d", generation)
            return

        with self._ui_lock:
            if self._machine.is_current(generation, SessionState.PROCESSING):
                self._feedback.show(SessionState.PROCESSING.value)
        try:
            if text:
                if self._on_transcription:
                    self._on_transcription(text)
                if self._output:
                    self._output(text)
            else:
                logger.info("Transcription returned no text")
        except Exception as e:
            logger.error("Delivering transcription failed: %s", e)
            self._report_error(f"Failed to deliver text: {e}")
        finally:
            self._finish(generation)

    def _finish(self, generation: int):
        with self._ui_lock:
            if not self._machine.finish(generation):
                return
            self._show_idle()
        if self._machine.state is SessionState.IDLE and self._recorder.is_recording():
            # A stream opened after this session was already stopped.
            self._best_effort(self._recorder.cancel)
        logger.debug("Session %d returned to idle", generation)

    def _show_idle(self):
        if self._shortcuts is not None:
            self._best_effort(self._shortcuts.unregister_cancel_shortcut)
        self._best_effort(self._feedback.hide)
        self._best_effort(lambda: self._feedback.set_tray_icon(TrayIconState.IDLE))

    def _report_error(self, message: str):
        try:
            self._feedback.report_error(message)
        except Exception as e:
            logger.debug("Feedback error report failed: %s", e)
        if self._on_error:
            self._on_error(message)

    @staticmethod
    def _best_effort(fn):
        try:
            fn()
        except Exception as e:
            logger.warning("%s failed: %s", getattr(fn, "__name__", "step"), e)
