"""Deliver transcribed text: paste, type, or copy. Degrades gracefully headless."""

import logging
import sys
import time

logger = logging.getLogger(__name__)

_pyperclip = None
_pyautogui = None


def _get_pyperclip():
    global _pyperclip
    if _pyperclip is None:
        try:
            import pyperclip
            _pyperclip = pyperclip
        except ImportError:
            _pyperclip = False
            logger.debug("pyperclip not available (headless mode)")
    return _pyperclip if _pyperclip else None


def _get_pyautogui():
    global _pyautogui
    if _pyautogui is None:
        try:
            import pyautogui
            _pyautogui = pyautogui
        except (ImportError, KeyError, OSError):
            # pyautogui raises KeyError/OSError on import without a display
            _pyautogui = False
            logger.debug("pyautogui not available (headless mode)")
    return _pyautogui if _pyautogui else None


def copy_to_clipboard(text: str):
    """Copy text to the system clipboard. No-op if pyperclip is unavailable."""
    pc = _get_pyperclip()
    if pc:
        pc.copy(text)
    else:
        logger.debug("Clipboard unavailable, skipping copy")


def paste_to_active_window(text: str, restore_clipboard: bool = True):
    """Put text on the clipboard, send the platform paste shortcut, then restore the old clipboard."""
    pc = _get_pyperclip()
    pg = _get_pyautogui()
    if not pc or not pg:
        raise RuntimeError("paste_to_active_window requires a display (not available in headless mode)")
    previous = pc.paste() if restore_clipboard else None
    pc.copy(text)
    time.sleep(0.05)
    pg.hotkey(*_paste_hotkey_keys())
    if previous is not None:
        time.sleep(0.1)
        pc.copy(previous)


def type_to_active_window(text: str, interval: float = 0.01):
    """Type text character-by-character into the currently focused window."""
    pg = _get_pyautogui()
    if not pg:
        raise RuntimeError("type_to_active_window requires a display (not available in headless mode)")
    pg.typewrite(text, interval=interval)


def deliver_text(text: str, mode: str = "paste"):
    """Send text to the user according to ``mode`` (paste, type, clipboard, none)."""
    if not text:
        return
    if mode == "paste":
        paste_to_active_window(text)
    elif mode == "type":
        type_to_active_window(text)
    elif mode == "clipboard":
        copy_to_clipboard(text)
    elif mode == "none":
        logger.debug("Output disabled; transcription not delivered")
    else:
        raise ValueError(f"Unknown output mode '{mode}'")


def _paste_hotkey_keys() -> tuple[str, str]:
    """Return the paste shortcut for the current platform."""
    if sys.platform == "darwin":
        return ("command", "v")
    return ("ctrl", "v")
