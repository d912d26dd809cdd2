import io
import logging
import wave
from typing import TYPE_CHECKING

import httpx
import numpy as np

from core.errors import ConfigError, TranscriptionError
from core.http_client import get_shared_client

if TYPE_CHECKING:
    from core.app_config import AppConfig

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
UPLOAD_FILENAME = "uttr.wav"
_LANGUAGE_ALIASES = {"zh-Hans": "zh", "zh-Hant": "zh"}


def normalize_language(language: str | None) -> str | None:
    """Map a UI language choice to the API's ``language`` field (None = omit)."""
    value = (language or "").strip()
    if value in ("", "auto"):
        return None
    return _LANGUAGE_ALIASES.get(value, value)


def build_wav_bytes(samples, sample_rate: int = SAMPLE_RATE) -> bytes:
    """Encode float samples in [-1.0, 1.0] as 16-bit mono PCM WAV."""
    audio = np.asarray(samples, dtype=np.float32).reshape(-1)
    pcm = (np.clip(audio, -1.0, 1.0) * np.iinfo(np.int16).max).astype("<i2")
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(sample_rate)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


def read_wav_samples(path: str, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """Load a 16-bit PCM WAV file as mono float32 samples at ``sample_rate``."""
    with wave.open(path, "rb") as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"{path}: only 16-bit PCM WAV files are supported")
        channels = wf.getnchannels()
        source_rate = wf.getframerate()
        raw = wf.readframes(wf.getnframes())
    audio = np.frombuffer(raw, dtype="<i2").astype(np.float32) / np.iinfo(np.int16).max
    if channels > 1:
        audio = audio.reshape(-1, channels).mean(axis=1)
    if source_rate != sample_rate and audio.size:
        duration = audio.size / float(source_rate)
        target = np.linspace(0.0, duration, int(duration * sample_rate), endpoint=False)
        audio = np.interp(target, np.arange(audio.size) / float(source_rate), audio).astype(np.float32)
    return audio


class GroqClient:
    """Wrapper for Groq's OpenAI-compatible speech-to-text API."""

    def __init__(self, config: "AppConfig | None" = None, api_key=None, api_url=None, timeout=None):
        if config:
            self.api_key = api_key or config.api_key
            self.api_url = api_url or config.api_url
            self.timeout = timeout or config.request_timeout
        else:
            from core.app_config import DEFAULT_API_URL

            self.api_key = api_key or ""
            self.api_url = api_url or DEFAULT_API_URL
            self.timeout = timeout or 90.0

    def ensure_configured(self, api_key: str | None = None):
        if not str(api_key or self.api_key or "").strip():
            raise ConfigError("Groq API key is required. Set GROQ_API_KEY in your environment or .env file.")

    def endpoint(self, translate: bool = False) -> str:
        path = "audio/translations" if translate else "audio/transcriptions"
        return f"{self.api_url.rstrip('/')}/{path}"

    def transcribe_samples(
        self,
        samples,
        model: str,
        language: str | None = None,
        translate: bool = False,
        api_key: str | None = None,
    ) -> str:
        """Upload samples as WAV and return the transcribed text."""
        key = str(api_key or self.api_key or "").strip()
        self.ensure_configured(key)

        wav = build_wav_bytes(samples)
        data = {"model": model, "response_format": "json"}
        normalized = normalize_language(language)
        if normalized:
            data["language"] = normalized
        files = {"file": (UPLOAD_FILENAME, wav, "audio/wav")}
        url = self.endpoint(translate)

        logger.debug(
            "STT request -> %s | model=%s language=%s bytes=%d",
            url,
            model,
            data.get("language", "auto"),
            len(wav),
        )
        try:
            resp = get_shared_client().post(
                url,
                headers={"Authorization": f"Bearer {key}"},
                data=data,
                files=files,
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise TranscriptionError(f"Groq request failed: {e}") from e

        if not resp.is_success:
            body = resp.text or "Unable to read Groq error response body"
            raise TranscriptionError(
                f"Groq API request failed ({resp.status_code}): {body}",
                status_code=resp.status_code,
                body=body,
            )
        return self._extract_text(resp)

    @staticmethod
    def _extract_text(resp: httpx.Response) -> str:
        try:
            payload = resp.json()
        except ValueError as e:
            raise TranscriptionError(f"Failed to parse Groq response: {e}", body=resp.text) from e
        text = payload.get("text") if isinstance(payload, dict) else None
        if not isinstance(text, str):
            raise TranscriptionError(
                "Failed to parse Groq response: missing 'text' field",
                body=resp.text,
            )
        return text
