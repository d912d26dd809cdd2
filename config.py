import os
import json
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Hotkey defaults defined here to avoid circular import with hotkeys.py
DEFAULT_HOTKEY_TRANSCRIBE = "Ctrl+Alt+Space"
DEFAULT_HOTKEY_TRANSCRIBE_TRANSLATE = "Ctrl+Alt+T"
DEFAULT_HOTKEY_CANCEL = "Esc"

GROQ_MODEL = os.getenv("GROQ_MODEL", "whisper-large-v3-turbo")
GROQ_LANGUAGE = os.getenv("GROQ_LANGUAGE", "auto")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "").strip()

OVERLAY_POSITIONS = ("top", "bottom", "none")
MODEL_UNLOAD_OPTIONS = ("never", "immediately")
OUTPUT_MODES = ("paste", "type", "clipboard", "none")

_SETTINGS_PATH = Path(__file__).with_name("settings.json")

DEFAULT_SETTINGS = {
    "hotkey_transcribe": DEFAULT_HOTKEY_TRANSCRIBE,
    "hotkey_transcribe_translate": DEFAULT_HOTKEY_TRANSCRIBE_TRANSLATE,
    "hotkey_cancel": DEFAULT_HOTKEY_CANCEL,
    "hotkey_test": "",
    "push_to_talk": True,
    "overlay_position": "bottom",
    "stt_model": GROQ_MODEL,
    "stt_language": GROQ_LANGUAGE,
    "translate_to_english": False,
    "model_unload_timeout": "never",
    "output_mode": "paste",
    "overlay_hide_delay_ms": 300,
    "overlay_retry_delays_ms": [90, 180],
    "groq_api_key": "",
}

# Keys whose empty string is a meaningful value (binding disabled / use env key).
_BLANK_ALLOWED = {"hotkey_test", "groq_api_key"}
_CHOICES = {
    "overlay_position": OVERLAY_POSITIONS,
    "model_unload_timeout": MODEL_UNLOAD_OPTIONS,
    "output_mode": OUTPUT_MODES,
}


def _coerce_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def _coerce_delays(value, default: list) -> list:
    if not isinstance(value, list):
        return list(default)
    delays = []
    for item in value:
        try:
            delay = int(item)
        except (TypeError, ValueError):
            return list(default)
        delays.append(max(0, delay))
    return delays


def _merge_value(key: str, value, current):
    default = DEFAULT_SETTINGS[key]
    if key == "overlay_retry_delays_ms":
        return _coerce_delays(value, current)
    if isinstance(default, bool):
        return value if isinstance(value, bool) else current
    if isinstance(default, int):
        return _coerce_int(value, current) if value is not None else current
    if not isinstance(value, str):
        return current
    value = value.strip()
    if key in _CHOICES:
        lowered = value.lower()
        return lowered if lowered in _CHOICES[key] else current
    if value or key in _BLANK_ALLOWED:
        return value
    return current


def load_app_settings() -> dict:
    settings = DEFAULT_SETTINGS.copy()
    settings["overlay_retry_delays_ms"] = list(DEFAULT_SETTINGS["overlay_retry_delays_ms"])
    if not _SETTINGS_PATH.exists():
        return settings
    try:
        loaded = json.loads(_SETTINGS_PATH.read_text(encoding="utf-8"))
        if isinstance(loaded, dict):
            for key in DEFAULT_SETTINGS:
                if key in loaded:
                    settings[key] = _merge_value(key, loaded[key], settings[key])
    except (json.JSONDecodeError, OSError):
        pass
    return settings


def save_app_settings(settings: dict):
    payload = load_app_settings()
    for key in DEFAULT_SETTINGS:
        if key in settings:
            payload[key] = _merge_value(key, settings[key], payload[key])
    _SETTINGS_PATH.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def binding_hotkeys(settings: dict) -> dict[str, str]:
    """Map binding ids to their configured hotkey strings, skipping blanks."""
    bindings = {
        "transcribe": settings.get("hotkey_transcribe", ""),
        "transcribe_translate": settings.get("hotkey_transcribe_translate", ""),
        "test": settings.get("hotkey_test", ""),
    }
    return {binding: hotkey for binding, hotkey in bindings.items() if hotkey}
