"""Session state, trigger events, and the guarded state machine.

The state machine is the only place the session state is mutated. Every
method is a single check-and-set under a short-held lock; callers never hold
the lock while talking to audio, network, or UI collaborators.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum

SIGNAL_TOKEN = "SIGUSR2"


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    PROCESSING = "processing"


class Mode(str, Enum):
    PUSH_TO_TALK = "push_to_talk"
    TOGGLE = "toggle"

    @classmethod
    def from_push_to_talk(cls, push_to_talk: bool) -> "Mode":
        return cls.PUSH_TO_TALK if push_to_talk else cls.TOGGLE


class TriggerSource(str, Enum):
    HOTKEY = "hotkey"
    SIGNAL = "signal"


@dataclass(frozen=True)
class TriggerEvent:
    binding_id: str
    token: str
    pressed: bool
    source: TriggerSource = TriggerSource.HOTKEY


@dataclass(frozen=True)
class SessionOwner:
    """The trigger (binding plus physical token) that started a session."""

    binding_id: str
    token: str

    def accepts_stop_from(self, other: "SessionOwner") -> bool:
        """Same trigger, or any edge of the same binding for a signal-started session."""
        if self.binding_id != other.binding_id:
            return False
        return self.token == other.token or self.token == SIGNAL_TOKEN


@dataclass(frozen=True)
class CancelState:
    recording_was_active: bool
    interrupted: bool


class SessionStateMachine:
    """Owns the single SessionState value and its generation counter.

    The generation increments when a session begins and when one is aborted,
    so work started for an older generation can tell it has been superseded.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._owner: SessionOwner | None = None
        self._generation = 0

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def owner(self) -> SessionOwner | None:
        with self._lock:
            return self._owner

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def snapshot(self) -> tuple[SessionState, SessionOwner | None, int]:
        with self._lock:
            return self._state, self._owner, self._generation

    def begin(self, owner: SessionOwner) -> int | None:
        """idle -> recording. Returns the new generation, or None if not idle."""
        with self._lock:
            if self._state is not SessionState.IDLE:
                return None
            self._state = SessionState.RECORDING
            self._owner = owner
            self._generation += 1
            return self._generation

    def stop(self, owner: SessionOwner) -> int | None:
        """recording -> transcribing, only for a trigger the session owner accepts."""
        with self._lock:
            if self._state is not SessionState.RECORDING or self._owner is None:
                return None
            if not self._owner.accepts_stop_from(owner):
                return None
            self._state = SessionState.TRANSCRIBING
            return self._generation

    def is_current(self, generation: int, state: SessionState) -> bool:
        with self._lock:
            return self._generation == generation and self._state is state

    def advance(self, generation: int, expected: SessionState, target: SessionState) -> bool:
        with self._lock:
            if self._generation != generation or self._state is not expected:
                return False
            self._state = target
            return True

    def finish(self, generation: int) -> bool:
        """Any state -> idle for the given generation. False if superseded."""
        with self._lock:
            if self._generation != generation or self._state is SessionState.IDLE:
                return False
            self._state = SessionState.IDLE
            self._owner = None
            return True

    def abort(self, include_in_flight: bool = False) -> SessionState | None:
        """Force idle from recording (and optionally transcribing/processing).

        Returns the state that was interrupted, or None when nothing was.
        """
        abortable = {SessionState.RECORDING}
        if include_in_flight:
            abortable.update((SessionState.TRANSCRIBING, SessionState.PROCESSING))
        with self._lock:
            previous = self._state
            if previous not in abortable:
                return None
            self._state = SessionState.IDLE
            self._owner = None
            self._generation += 1
            return previous
