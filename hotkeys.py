import logging
import threading

from pynput import keyboard

logger = logging.getLogger(__name__)

DEFAULT_HOTKEY_CANCEL = "Esc"
CANCEL_BINDING = "cancel"

_MODIFIER_MAP = {
    "ctrl": "<ctrl>",
    "control": "<ctrl>",
    "alt": "<alt>",
    "option": "<alt>",
    "shift": "<shift>",
    "cmd": "<cmd>",
    "win": "<cmd>",
    "super": "<cmd>",
}
_MODIFIERS = frozenset(_MODIFIER_MAP.values())

_NAMED_KEYS = {
    "esc": "<esc>",
    "escape": "<esc>",
    "space": "<space>",
    "tab": "<tab>",
    "enter": "<enter>",
    "return": "<enter>",
    "backspace": "<backspace>",
    "delete": "<delete>",
    "insert": "<insert>",
    "home": "<home>",
    "end": "<end>",
    "pause": "<pause>",
    **{f"f{n}": f"<f{n}>" for n in range(1, 13)},
}

# pynput Key names for left/right variants collapse onto one token.
_KEY_NAME_ALIASES = {
    "ctrl_l": "<ctrl>",
    "ctrl_r": "<ctrl>",
    "ctrl": "<ctrl>",
    "alt_l": "<alt>",
    "alt_r": "<alt>",
    "alt_gr": "<alt>",
    "alt": "<alt>",
    "shift_l": "<shift>",
    "shift_r": "<shift>",
    "shift": "<shift>",
    "cmd_l": "<cmd>",
    "cmd_r": "<cmd>",
    "cmd": "<cmd>",
}


class HotkeyManager:
    """Global hotkeys that report press and release edges per binding.

    ``on_event(binding_id, hotkey_string, pressed)`` runs on the pynput
    listener thread. Holding a combination yields exactly one press and one
    release, whatever the OS key auto-repeat does.
    """

    def __init__(self, on_event=None, bindings: dict | None = None, cancel_hotkey: str = DEFAULT_HOTKEY_CANCEL):
        self.on_event = on_event
        self._lock = threading.Lock()
        self._bindings: dict[str, frozenset] = {}
        self._labels: dict[str, str] = {}
        self._active: set[str] = set()
        self._pressed: set[str] = set()
        self._cancel_hotkey = cancel_hotkey
        _normalize_hotkey(cancel_hotkey)
        self._listener = None
        self._running = False
        for binding_id, hotkey in (bindings or {}).items():
            self.register_binding(binding_id, hotkey)

    def start(self):
        if self._running:
            return
        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.daemon = True
        self._listener.start()
        self._running = True
        logger.info("Hotkeys active: %s", ", ".join(f"{b}={h}" for b, h in self.get_hotkeys().items()))

    def stop(self):
        if self._listener:
            self._listener.stop()
            self._listener = None
        self._running = False
        with self._lock:
            self._pressed.clear()
            self._active.clear()

    def register_binding(self, binding_id: str, hotkey: str):
        keys = parse_hotkey(hotkey)
        with self._lock:
            self._bindings[binding_id] = keys
            self._labels[binding_id] = hotkey

    def unregister_binding(self, binding_id: str):
        with self._lock:
            self._bindings.pop(binding_id, None)
            self._labels.pop(binding_id, None)
            self._active.discard(binding_id)

    def register_cancel_shortcut(self):
        self.register_binding(CANCEL_BINDING, self._cancel_hotkey)
        logger.debug("Cancel shortcut registered: %s", self._cancel_hotkey)

    def unregister_cancel_shortcut(self):
        self.unregister_binding(CANCEL_BINDING)
        logger.debug("Cancel shortcut unregistered")

    def update_hotkeys(self, bindings: dict, cancel_hotkey: str | None = None):
        # Validate before mutating the active bindings.
        parsed = {binding_id: parse_hotkey(hotkey) for binding_id, hotkey in bindings.items()}
        if cancel_hotkey:
            _normalize_hotkey(cancel_hotkey)

        with self._lock:
            cancel_registered = CANCEL_BINDING in self._bindings
            self._bindings = dict(parsed)
            self._labels = dict(bindings)
            self._active.clear()
            if cancel_hotkey:
                self._cancel_hotkey = cancel_hotkey
        if cancel_registered:
            self.register_cancel_shortcut()

    def get_hotkeys(self) -> dict[str, str]:
        with self._lock:
            return dict(self._labels)

    def _on_press(self, key):
        token = key_to_token(key)
        if token:
            self.handle_key(token, True)

    def _on_release(self, key):
        token = key_to_token(key)
        if token:
            self.handle_key(token, False)

    def handle_key(self, token: str, pressed: bool):
        """Update held keys and emit binding edges (outside the lock)."""
        edges = []
        with self._lock:
            if pressed:
                if token in self._pressed:
                    return
                self._pressed.add(token)
                for binding_id, keys in self._bindings.items():
                    if binding_id not in self._active and token in keys and keys <= self._pressed:
                        self._active.add(binding_id)
                        edges.append((binding_id, self._labels[binding_id], True))
            else:
                self._pressed.discard(token)
                for binding_id in list(self._active):
                    if token in self._bindings.get(binding_id, ()):
                        self._active.discard(binding_id)
                        edges.append((binding_id, self._labels[binding_id], False))

        if not self.on_event:
            return
        for binding_id, label, edge in edges:
            self.on_event(binding_id, label, edge)


def key_to_token(key) -> str | None:
    """Map a pynput Key/KeyCode to the token used in parsed hotkeys."""
    name = getattr(key, "name", None)
    if name:
        return _KEY_NAME_ALIASES.get(name, f"<{name}>")
    char = getattr(key, "char", None)
    if char:
        # Ctrl+letter arrives as a control character on some platforms.
        if len(char) == 1 and ord(char) < 32:
            char = chr(ord(char) + 96)
        return char.lower()
    return None


def parse_hotkey(hotkey: str) -> frozenset:
    return frozenset(_normalize_hotkey(hotkey).split("+"))


def _normalize_hotkey(hotkey: str) -> str:
    if not hotkey or not isinstance(hotkey, str):
        raise ValueError("Hotkey must be a non-empty string.")

    parts = [p.strip().lower() for p in hotkey.split("+") if p.strip()]
    if not parts:
        raise ValueError("Hotkey must be a non-empty string.")

    normalized_parts = []
    for part in parts:
        mapped = _MODIFIER_MAP.get(part) or _NAMED_KEYS.get(part)
        if mapped:
            normalized_parts.append(mapped)
            continue
        if len(part) == 1 and part.isalnum():
            normalized_parts.append(part)
            continue
        raise ValueError(
            f"Unsupported key '{part}'. Use modifiers (Ctrl/Alt/Shift) plus a letter, digit, or named key."
        )

    if len(normalized_parts) == 1:
        only = normalized_parts[0]
        if only in _MODIFIERS or not only.startswith("<"):
            raise ValueError("Use at least one modifier and one key (example: Ctrl+Alt+R).")
        return only

    if not any(p in _MODIFIERS for p in normalized_parts):
        raise ValueError("Hotkey must include at least one modifier (Ctrl/Alt/Shift/Cmd).")

    if normalized_parts[-1] in _MODIFIERS:
        raise ValueError("Hotkey must end with a non-modifier key.")

    return "+".join(normalized_parts)
