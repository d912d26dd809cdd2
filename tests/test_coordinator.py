"""Tests for TranscriptionCoordinator session flow with fake collaborators."""

import threading
import unittest

import numpy as np

from core.coordinator import TranscriptionCoordinator
from core.errors import CaptureError, ConfigError, TranscriptionError
from core.feedback import TrayIconState
from core.session import SessionState


class FakeRecorder:
    def __init__(self, samples=None):
        self.samples = np.full(1600, 0.1, dtype=np.float32) if samples is None else samples
        self.recording = False
        self.starts = 0
        self.cancels = 0
        self.start_error = None

    def is_recording(self):
        return self.recording

    def start(self):
        if self.start_error:
            raise self.start_error
        self.starts += 1
        self.recording = True

    def stop(self):
        self.recording = False
        return self.samples

    def cancel(self):
        self.cancels += 1
        self.recording = False


class FakeTranscriber:
    def __init__(self, text="hello world"):
        self.text = text
        self.error = None
        self.config_error = None
        self.calls = []
        self.unload_reasons = []

    def ensure_configured(self):
        if self.config_error:
            raise self.config_error

    def initiate_model_load(self):
        pass

    def maybe_unload_immediately(self, reason):
        self.unload_reasons.append(reason)

    def transcribe(self, samples, translate=None):
        self.calls.append((len(samples), translate))
        if self.error:
            raise self.error
        return self.text


class FakeFeedback:
    def __init__(self):
        self.events = []
        self.errors = []

    def show(self, state_label):
        self.events.append(("show", state_label))

    def hide(self):
        self.events.append(("hide",))

    def update_position(self):
        pass

    def emit_levels(self, values):
        pass

    def set_tray_icon(self, state):
        self.events.append(("tray", state))

    def report_error(self, message):
        self.errors.append(message)


class FakeShortcuts:
    def __init__(self):
        self.registered = 0
        self.active = False
        self.on_register = None

    def register_cancel_shortcut(self):
        self.registered += 1
        self.active = True
        if self.on_register:
            self.on_register()

    def unregister_cancel_shortcut(self):
        self.active = False


class CoordinatorTestCase(unittest.TestCase):
    def setUp(self):
        self.recorder = FakeRecorder()
        self.transcriber = FakeTranscriber()
        self.feedback = FakeFeedback()
        self.shortcuts = FakeShortcuts()
        self.output = []
        self.pending = []
        self.coordinator = self._build(run_async=lambda fn: fn())

    def _build(self, run_async):
        return TranscriptionCoordinator(
            recorder=self.recorder,
            transcriber=self.transcriber,
            feedback=self.feedback,
            shortcuts=self.shortcuts,
            output=self.output.append,
            run_async=run_async,
        )


class PushToTalkTests(CoordinatorTestCase):
    def test_hold_and_release_delivers_text(self):
        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)
        self.assertEqual(self.shortcuts.registered, 1)
        self.assertIn(("tray", TrayIconState.RECORDING), self.feedback.events)
        self.assertIn(("show", "recording"), self.feedback.events)

        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True))

        self.assertEqual(self.output, ["hello world"])
        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertFalse(self.shortcuts.active)
        self.assertEqual(self.transcriber.calls, [(1600, None)])
        shows = [e[1] for e in self.feedback.events if e[0] == "show"]
        self.assertEqual(shows, ["recording", "transcribing", "processing"])
        self.assertEqual(self.feedback.events[-2:], [("hide",), ("tray", TrayIconState.IDLE)])

    def test_output_runs_while_processing(self):
        seen = []
        coordinator = TranscriptionCoordinator(
            recorder=self.recorder,
            transcriber=self.transcriber,
            feedback=self.feedback,
            output=lambda text: seen.append(coordinator.state),
            run_async=lambda fn: fn(),
        )
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertEqual(seen, [SessionState.PROCESSING])
        self.assertEqual(coordinator.state, SessionState.IDLE)

    def test_release_while_idle_is_noop(self):
        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True))
        self.assertEqual(self.transcriber.calls, [])
        self.assertEqual(self.feedback.events, [])

    def test_translate_binding_requests_translation(self):
        self.coordinator.handle_transcribe_input("transcribe_translate", "Ctrl+Alt+T", True, True)
        self.coordinator.handle_transcribe_input("transcribe_translate", "Ctrl+Alt+T", False, True)
        self.assertEqual(self.transcriber.calls, [(1600, True)])

    def test_concurrent_presses_start_one_session(self):
        barrier = threading.Barrier(2)
        results = {}

        def press(binding_id, token):
            barrier.wait()
            results[binding_id] = self.coordinator.handle_transcribe_input(binding_id, token, True, True)

        threads = [
            threading.Thread(target=press, args=("transcribe", "Ctrl+Alt+Space")),
            threading.Thread(target=press, args=("transcribe_translate", "Ctrl+Alt+T")),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        self.assertEqual(sorted(results.values()), [False, True])
        self.assertEqual(self.recorder.starts, 1)
        self.assertEqual(self.feedback.events.count(("show", "recording")), 1)
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)

    def test_release_during_shortcut_registration_leaves_no_recording_ui(self):
        self.shortcuts.on_register = lambda: self.coordinator.handle_transcribe_input(
            "transcribe", "Ctrl+Alt+Space", False, True
        )

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertFalse(self.shortcuts.active)
        self.assertEqual(self.output, ["hello world"])
        self.assertNotIn(("show", "recording"), self.feedback.events)
        self.assertNotIn(("tray", TrayIconState.RECORDING), self.feedback.events)
        self.assertEqual(self.feedback.events[-1], ("tray", TrayIconState.IDLE))

    def test_hotkey_release_stops_signal_started_session(self):
        self.coordinator.handle_transcribe_input("transcribe", "SIGUSR2", True, False)

        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True))

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.output, ["hello world"])

    def test_second_binding_cannot_start_or_stop_active_session(self):
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)

        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe_translate", "Ctrl+Alt+T", True, True))
        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe_translate", "Ctrl+Alt+T", False, True))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)
        self.assertEqual(self.recorder.starts, 1)

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)
        self.assertEqual(self.transcriber.calls, [(1600, None)])
        self.assertEqual(self.coordinator.state, SessionState.IDLE)


class ToggleTests(CoordinatorTestCase):
    def test_presses_alternate_start_and_stop(self):
        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, False))
        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, False))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)

        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, False))
        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.output, ["hello world"])

    def test_signal_during_hotkey_session_is_ignored(self):
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, False)

        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "SIGUSR2", True, False))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, False)
        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.output, ["hello world"])

    def test_hotkey_of_same_binding_stops_signal_session(self):
        self.coordinator.handle_transcribe_input("transcribe", "SIGUSR2", True, False)

        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe_translate", "Ctrl+Alt+T", True, False))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)

        self.assertTrue(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, False))
        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.transcriber.calls, [(1600, None)])

    def test_signal_presses_toggle_on_their_own(self):
        self.coordinator.handle_transcribe_input("transcribe", "SIGUSR2", True, False)
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)
        self.coordinator.handle_transcribe_input("transcribe", "SIGUSR2", True, False)
        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.output, ["hello world"])


class CancelTests(CoordinatorTestCase):
    def test_cancel_discards_recording(self):
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)

        self.assertTrue(self.coordinator.handle_cancel("cancel", True))

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.recorder.cancels, 1)
        self.assertEqual(self.transcriber.unload_reasons, ["cancellation"])
        self.assertFalse(self.shortcuts.active)

        # The held key's release must not start a transcription.
        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True))
        self.assertEqual(self.transcriber.calls, [])
        self.assertEqual(self.output, [])

    def test_cancel_while_stream_opens_releases_microphone(self):
        coordinator = self.coordinator
        recorder = self.recorder

        def opening_start():
            coordinator.handle_cancel("cancel", True)
            recorder.starts += 1
            recorder.recording = True

        recorder.start = opening_start

        self.assertTrue(coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True))

        self.assertFalse(recorder.recording)
        self.assertEqual(coordinator.state, SessionState.IDLE)
        self.assertFalse(self.shortcuts.active)
        self.assertNotIn(("show", "recording"), self.feedback.events)

        # The held key's release is ignored; the next session works normally.
        self.assertFalse(coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True))
        del recorder.start
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)
        self.assertEqual(self.output, ["hello world"])
        self.assertEqual(coordinator.state, SessionState.IDLE)

    def test_cancel_release_and_idle_are_noops(self):
        self.assertFalse(self.coordinator.handle_cancel("cancel", True))
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        self.assertFalse(self.coordinator.handle_cancel("cancel", False))
        self.assertEqual(self.coordinator.state, SessionState.RECORDING)

    def test_cancel_without_abort_leaves_transcription_running(self):
        coordinator = self._build(run_async=self.pending.append)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertFalse(coordinator.cancel_current_operation())
        self.assertEqual(coordinator.state, SessionState.TRANSCRIBING)

        self.pending.pop()()
        self.assertEqual(self.output, ["hello world"])
        self.assertEqual(coordinator.state, SessionState.IDLE)

    def test_aborted_transcription_result_is_discarded(self):
        coordinator = self._build(run_async=self.pending.append)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertTrue(coordinator.cancel_current_operation(abort_in_flight=True))
        self.assertEqual(coordinator.state, SessionState.IDLE)

        # A new session starts before the old worker finishes.
        coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        self.pending.pop(0)()

        self.assertEqual(self.output, [])
        self.assertEqual(coordinator.state, SessionState.RECORDING)


class FailureTests(CoordinatorTestCase):
    def test_missing_api_key_reports_and_stays_idle(self):
        self.transcriber.config_error = ConfigError("Groq API key is required.")

        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True))

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.recorder.starts, 0)
        self.assertEqual(self.feedback.errors, ["Groq API key is required."])

    def test_capture_failure_returns_to_idle(self):
        self.recorder.start_error = CaptureError("no microphone")

        self.assertFalse(self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True))

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertIn("no microphone", self.feedback.errors[0])

    def test_transcription_failure_returns_to_idle(self):
        self.transcriber.error = TranscriptionError("Groq API request failed (500): boom", status_code=500)

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertEqual(self.coordinator.state, SessionState.IDLE)
        self.assertEqual(self.output, [])
        self.assertEqual(self.feedback.errors, ["Groq API request failed (500): boom"])
        self.assertEqual(self.feedback.events[-1], ("tray", TrayIconState.IDLE))

    def test_empty_capture_skips_transcription(self):
        self.recorder.samples = np.zeros(0, dtype=np.float32)

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertEqual(self.transcriber.calls, [])
        self.assertEqual(self.coordinator.state, SessionState.IDLE)

    def test_empty_text_is_not_delivered(self):
        self.transcriber.text = ""

        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", True, True)
        self.coordinator.handle_transcribe_input("transcribe", "Ctrl+Alt+Space", False, True)

        self.assertEqual(self.output, [])
        self.assertEqual(self.coordinator.state, SessionState.IDLE)


if __name__ == "__main__":
    unittest.main()
