"""Headless CLI runtime wiring for Uttr."""

import argparse
import logging
import os
import sys
import time
from collections.abc import Sequence

from config import binding_hotkeys, load_app_settings
from core.actions import build_binding_registry
from core.app_config import AppConfig
from core.coordinator import TranscriptionCoordinator
from core.errors import ConfigError, TranscriptionError
from core.feedback import LoggingFeedback
from core.groq_client import GroqClient, read_wav_samples
from core.http_client import close_shared_client
from core.shortcut_router import ShortcutRouter
from core.signal_listener import SignalListener, send_trigger
from core.text_output import deliver_text
from core.transcription_manager import TranscriptionManager


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Uttr Headless Dictation")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_run = sub.add_parser("run", help="Listen for hotkeys and SIGUSR2, print transcriptions")
    p_run.add_argument("--no-hotkeys", action="store_true", help="Only react to SIGUSR2")
    p_run.add_argument("--deliver", action="store_true", help="Also paste/type text per output_mode setting")

    p_transcribe = sub.add_parser("transcribe", help="Transcribe a 16-bit PCM WAV file")
    p_transcribe.add_argument("file", help="Path to WAV file")
    p_transcribe.add_argument("--translate", action="store_true", help="Translate to English")

    p_trigger = sub.add_parser("trigger", help="Toggle transcription in a running instance")
    p_trigger.add_argument("--pid", type=int, required=True, help="Process id of the running instance")
    return parser


def _configure_logging(level_name: str, log_file: str = ""):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, str(level_name or "").upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
    )


def cmd_run(config: AppConfig, use_hotkeys: bool = True, deliver: bool = False, signals: SignalListener | None = None) -> int:
    """Headless session loop; prints each transcription to stdout."""
    from core.audio_recorder import AudioRecordingManager

    def on_text(text: str):
        print(text)
        sys.stdout.flush()

    def on_error(error: str):
        print(f"[ERROR] {error}", file=sys.stderr)

    settings = load_app_settings()
    hotkeys = None
    if use_hotkeys:
        from hotkeys import HotkeyManager

        hotkeys = HotkeyManager(bindings=binding_hotkeys(settings), cancel_hotkey=settings["hotkey_cancel"])

    transcriber = TranscriptionManager(GroqClient(config), settings_provider=load_app_settings)
    coordinator = TranscriptionCoordinator(
        recorder=AudioRecordingManager(),
        transcriber=transcriber,
        feedback=LoggingFeedback(on_error=on_error),
        shortcuts=hotkeys,
        output=(lambda text: deliver_text(text, load_app_settings()["output_mode"])) if deliver else None,
        on_transcription=on_text,
    )
    router = ShortcutRouter(coordinator, build_binding_registry(coordinator), load_app_settings)
    if signals is None:
        signals = SignalListener(on_trigger=coordinator.handle_transcribe_input)
    else:
        signals.attach(coordinator.handle_transcribe_input)

    signals.start()
    if hotkeys:
        hotkeys.on_event = router.handle_shortcut_event
        hotkeys.start()

    print(f"[INFO] Ready. Send SIGUSR2 to pid {os.getpid()} to toggle. Press Ctrl+C to stop.", file=sys.stderr)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n[INFO] Stopping...", file=sys.stderr)
        coordinator.cancel_current_operation(abort_in_flight=True)
        return 0
    finally:
        if hotkeys:
            hotkeys.stop()
        signals.stop()


def cmd_transcribe(config: AppConfig, file_path: str, translate: bool = False) -> int:
    """Transcribe a WAV file through the same client the live session uses."""
    transcriber = TranscriptionManager(GroqClient(config), settings_provider=load_app_settings)
    try:
        samples = read_wav_samples(file_path)
        text = transcriber.transcribe(samples, translate=translate or None)
    except (ConfigError, TranscriptionError, ValueError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    print(text)
    return 0


def cmd_trigger(pid: int) -> int:
    try:
        send_trigger(pid)
    except (OSError, RuntimeError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    config = AppConfig.from_env()
    _configure_logging(args.log_level or config.log_level, config.log_file)

    signals = None
    if args.command == "run":
        # Block SIGUSR2 before any audio/hotkey thread exists.
        signals = SignalListener(on_trigger=lambda *_: None)
        signals.prepare()

    try:
        if args.command == "run":
            return cmd_run(config, use_hotkeys=not args.no_hotkeys, deliver=args.deliver, signals=signals)
        if args.command == "transcribe":
            return cmd_transcribe(config, args.file, translate=args.translate)
        if args.command == "trigger":
            return cmd_trigger(args.pid)
        parser.error(f"Unknown command: {args.command}")
        return 2
    finally:
        close_shared_client()
