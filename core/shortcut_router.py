"""Dispatch raw shortcut edges to the coordinator or to a registered action."""

import logging
from typing import Callable

from core.actions import BindingRegistry
from core.coordinator import CANCEL_BINDING

logger = logging.getLogger(__name__)


class ShortcutRouter:
    def __init__(self, coordinator, registry: BindingRegistry, settings_provider: Callable[[], dict]):
        self._coordinator = coordinator
        self._registry = registry
        self._settings_provider = settings_provider

    def handle_shortcut_event(self, binding_id: str, token: str, pressed: bool):
        """Route one press/release edge. Never raises into the listener thread."""
        try:
            self._dispatch(binding_id, token, pressed)
        except Exception:
            logger.exception("Shortcut '%s' (%s, pressed=%s) failed", binding_id, token, pressed)

    def _dispatch(self, binding_id: str, token: str, pressed: bool):
        entry = self._registry.resolve(binding_id)
        if entry is None:
            logger.warning(
                "No action defined for shortcut id '%s'. Shortcut: '%s', Pressed: %s",
                binding_id,
                token,
                pressed,
            )
            return

        if self._registry.is_coordinator_routed(binding_id):
            push_to_talk = bool(self._settings_provider().get("push_to_talk", True))
            self._coordinator.handle_transcribe_input(binding_id, token, pressed, push_to_talk)
            return

        if binding_id == CANCEL_BINDING:
            if pressed and self._coordinator.is_recording:
                entry.start(binding_id, token)
            return

        if pressed:
            entry.start(binding_id, token)
        else:
            entry.stop(binding_id, token)
