"""Actions for non-transcription bindings and the immutable binding registry."""

from __future__ import annotations

import logging
import threading
import time
from types import MappingProxyType
from typing import Mapping, Optional

from core.coordinator import CANCEL_BINDING, TRANSCRIBE_BINDINGS

logger = logging.getLogger(__name__)


class Action:
    """Press/release handler for a binding that does not drive the session."""

    def start(self, binding_id: str, token: str):
        raise NotImplementedError

    def stop(self, binding_id: str, token: str):
        raise NotImplementedError


class CancelAction(Action):
    def __init__(self, coordinator):
        self._coordinator = coordinator

    def start(self, binding_id: str, token: str):
        self._coordinator.handle_cancel(binding_id, True)

    def stop(self, binding_id: str, token: str):
        pass


class TestAction(Action):
    """Logs how long a binding was held; useful to check a hotkey is wired."""

    __test__ = False

    def __init__(self):
        self._lock = threading.Lock()
        self._pressed_at: dict[str, float] = {}
        self.last_hold_seconds: Optional[float] = None

    def start(self, binding_id: str, token: str):
        with self._lock:
            self._pressed_at[binding_id] = time.monotonic()
        logger.info("Test binding '%s' pressed (%s)", binding_id, token)

    def stop(self, binding_id: str, token: str):
        with self._lock:
            started = self._pressed_at.pop(binding_id, None)
            if started is not None:
                self.last_hold_seconds = time.monotonic() - started
        logger.info("Test binding '%s' released after %.2fs", binding_id, self.last_hold_seconds or 0.0)


class _CoordinatorRouted:
    def __repr__(self):
        return "COORDINATOR"


COORDINATOR = _CoordinatorRouted()


class BindingRegistry:
    """Maps binding ids to COORDINATOR or an Action. Fixed after construction."""

    def __init__(self, entries: Mapping[str, object]):
        self._entries = MappingProxyType(dict(entries))

    def resolve(self, binding_id: str):
        return self._entries.get(binding_id)

    def is_coordinator_routed(self, binding_id: str) -> bool:
        return self._entries.get(binding_id) is COORDINATOR

    def __contains__(self, binding_id: str) -> bool:
        return binding_id in self._entries


def build_binding_registry(coordinator, extra_actions: Optional[Mapping[str, Action]] = None) -> BindingRegistry:
    entries: dict[str, object] = {binding: COORDINATOR for binding in TRANSCRIBE_BINDINGS}
    entries[CANCEL_BINDING] = CancelAction(coordinator)
    entries["test"] = TestAction()
    if extra_actions:
        entries.update(extra_actions)
    return BindingRegistry(entries)
