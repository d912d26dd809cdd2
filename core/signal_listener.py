"""External trigger: SIGUSR2 toggles transcription regardless of hotkey mode.

The signal is blocked in the thread that calls ``prepare()`` (and therefore in
every thread started afterwards) and consumed with ``sigwait`` on a dedicated
daemon thread. Call ``prepare()`` early in startup, before audio, hotkey, or
GUI threads exist, so no other thread receives the signal's default action.
"""

import logging
import os
import signal
import threading
from typing import Callable, Optional

from core.session import SIGNAL_TOKEN, TriggerEvent, TriggerSource

logger = logging.getLogger(__name__)

SIGNAL_BINDING = "transcribe"


def signal_supported() -> bool:
    return hasattr(signal, "SIGUSR2") and hasattr(signal, "sigwait")


def _spawn(target: Callable[[], None]):
    threading.Thread(target=target, name="uttr-signal-forward", daemon=True).start()


class SignalListener:
    """Forwards each SIGUSR2 as a toggle-style press of the transcribe binding."""

    def __init__(
        self,
        on_trigger: Callable[[str, str, bool, bool], object],
        spawn: Callable[[Callable[[], None]], None] = _spawn,
    ):
        self._on_trigger = on_trigger
        self._spawn = spawn
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._prepared = False
        self._signum = getattr(signal, "SIGUSR2", None)

    @property
    def running(self) -> bool:
        return self._running

    def attach(self, on_trigger: Callable[[str, str, bool, bool], object]):
        """Point the listener at its consumer once that exists (after ``prepare()``)."""
        self._on_trigger = on_trigger

    def prepare(self) -> bool:
        if not signal_supported():
            logger.warning("SIGUSR2 is not available on this platform; signal trigger disabled")
            return False
        if not self._prepared:
            signal.pthread_sigmask(signal.SIG_BLOCK, {self._signum})
            self._prepared = True
        return True

    def start(self) -> bool:
        if self._running:
            return True
        if not self.prepare():
            return False
        self._running = True
        self._thread = threading.Thread(target=self._listen_loop, name="uttr-signal", daemon=True)
        self._thread.start()
        logger.debug("SIGUSR2 signal handler registered (pid %d)", os.getpid())
        return True

    def stop(self):
        self._running = False
        thread = self._thread
        self._thread = None
        if thread is None or not thread.is_alive():
            return
        # Wake sigwait so the loop can observe the stop flag.
        signal.pthread_kill(thread.ident, self._signum)
        thread.join(timeout=1)

    def _listen_loop(self):
        while self._running:
            received = signal.sigwait({self._signum})
            if not self._running:
                break
            if received == self._signum:
                logger.debug("Received SIGUSR2")
                self.dispatch()

    def dispatch(self):
        """Synthesize one trigger event and forward it without blocking."""
        event = TriggerEvent(SIGNAL_BINDING, SIGNAL_TOKEN, pressed=True, source=TriggerSource.SIGNAL)
        self._spawn(lambda: self._forward(event))

    def _forward(self, event: TriggerEvent):
        try:
            # Fixed toggle semantics: push_to_talk is always False for the signal.
            self._on_trigger(event.binding_id, event.token, event.pressed, False)
        except Exception:
            logger.exception("Forwarding %s trigger failed", event.token)


def send_trigger(pid: int):
    """Ask a running instance to toggle transcription."""
    if not signal_supported():
        raise RuntimeError("SIGUSR2 is not available on this platform")
    os.kill(pid, signal.SIGUSR2)
