"""Tests for hotkey parsing and press/release edge detection."""

from __future__ import annotations

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

# pynput needs a display server; the edge logic does not.
try:
    import pynput.keyboard  # noqa: F401
except Exception:
    sys.modules["pynput"] = MagicMock()
    sys.modules["pynput.keyboard"] = sys.modules["pynput"].keyboard

from hotkeys import CANCEL_BINDING, HotkeyManager, _normalize_hotkey, key_to_token, parse_hotkey


def _manager(bindings=None):
    events = []
    manager = HotkeyManager(
        on_event=lambda *args: events.append(args),
        bindings=bindings or {"transcribe": "Ctrl+Alt+Space"},
    )
    return manager, events


def test_normalize_modifiers_letters_and_named_keys():
    assert _normalize_hotkey("Ctrl+Alt+Space") == "<ctrl>+<alt>+<space>"
    assert _normalize_hotkey("control + option + r") == "<ctrl>+<alt>+r"
    assert _normalize_hotkey("Esc") == "<esc>"
    assert _normalize_hotkey("F9") == "<f9>"


@pytest.mark.parametrize("hotkey", ["", "r", "Ctrl", "Ctrl+Alt", "Space+R", "Ctrl+Alt+??"])
def test_invalid_hotkeys_rejected(hotkey):
    with pytest.raises(ValueError):
        _normalize_hotkey(hotkey)


def test_press_and_release_edges_once_per_hold():
    manager, events = _manager()

    manager.handle_key("<ctrl>", True)
    manager.handle_key("<alt>", True)
    manager.handle_key("<space>", True)
    manager.handle_key("<space>", True)  # auto-repeat
    manager.handle_key("<space>", False)
    manager.handle_key("<alt>", False)

    assert events == [
        ("transcribe", "Ctrl+Alt+Space", True),
        ("transcribe", "Ctrl+Alt+Space", False),
    ]


def test_release_of_modifier_ends_binding():
    manager, events = _manager()
    for token in ("<ctrl>", "<alt>", "<space>"):
        manager.handle_key(token, True)

    manager.handle_key("<ctrl>", False)

    assert events[-1] == ("transcribe", "Ctrl+Alt+Space", False)


def test_cancel_shortcut_only_while_registered():
    manager, events = _manager()

    manager.handle_key("<esc>", True)
    manager.handle_key("<esc>", False)
    assert events == []

    manager.register_cancel_shortcut()
    manager.handle_key("<esc>", True)
    manager.unregister_cancel_shortcut()
    manager.handle_key("<esc>", False)

    assert events == [(CANCEL_BINDING, "Esc", True)]
    assert CANCEL_BINDING not in manager.get_hotkeys()


def test_update_hotkeys_validates_before_applying():
    manager, _ = _manager()
    with pytest.raises(ValueError):
        manager.update_hotkeys({"transcribe": "r"})
    assert manager.get_hotkeys() == {"transcribe": "Ctrl+Alt+Space"}

    manager.register_cancel_shortcut()
    manager.update_hotkeys({"transcribe": "Ctrl+Shift+D"}, cancel_hotkey="F12")
    assert manager.get_hotkeys() == {"transcribe": "Ctrl+Shift+D", CANCEL_BINDING: "F12"}


def test_key_to_token_maps_names_and_control_chars():
    assert key_to_token(SimpleNamespace(name="ctrl_l")) == "<ctrl>"
    assert key_to_token(SimpleNamespace(name="space")) == "<space>"
    assert key_to_token(SimpleNamespace(name=None, char="\x12")) == "r"
    assert key_to_token(SimpleNamespace(name=None, char="T")) == "t"
    assert key_to_token(SimpleNamespace(name=None, char=None)) is None


def test_parse_hotkey_is_order_insensitive():
    assert parse_hotkey("Alt+Ctrl+R") == parse_hotkey("Ctrl+Alt+R")
