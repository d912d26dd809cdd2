"""Transcription manager: model lifecycle and remote transcription calls.

The "model" is remote, so loading it means validating credentials and
warming the pooled HTTP connection; unloading releases that connection.
"""

import logging
import threading
from typing import Callable, Optional

import numpy as np

from core.groq_client import GroqClient
from core.http_client import close_shared_client, get_shared_client

logger = logging.getLogger(__name__)


class TranscriptionManager:
    """Owns the loaded-model state and invokes the transcription client.

    Safe to call from several threads: the coordinator's worker threads and
    the cancellation helper may overlap.
    """

    def __init__(self, client: GroqClient, settings_provider: Callable[[], dict]):
        self.client = client
        self._settings_provider = settings_provider
        self._lock = threading.Lock()
        self._loaded_model: Optional[str] = None

    @property
    def loaded_model(self) -> Optional[str]:
        with self._lock:
            return self._loaded_model

    def is_model_loaded(self) -> bool:
        return self.loaded_model is not None

    def _api_key(self, settings: dict) -> str:
        return str(settings.get("groq_api_key") or "").strip() or self.client.api_key

    def ensure_configured(self):
        """Raise ConfigError when no API key is available."""
        self.client.ensure_configured(self._api_key(self._settings_provider()))

    def load_model(self):
        settings = self._settings_provider()
        model = settings.get("stt_model", "")
        with self._lock:
            if self._loaded_model == model:
                return
            get_shared_client()
            self._loaded_model = model
        logger.info("Transcription model ready: %s", model)

    def initiate_model_load(self):
        """Load the model in the background so it is ready when recording stops."""

        def worker():
            try:
                self.load_model()
            except Exception as e:
                logger.warning("Background model load failed: %s", e)

        threading.Thread(target=worker, name="uttr-model-load", daemon=True).start()

    def unload_model(self):
        with self._lock:
            model, self._loaded_model = self._loaded_model, None
        if model is None:
            return
        close_shared_client()
        logger.info("Transcription model unloaded: %s", model)

    def maybe_unload_immediately(self, reason: str):
        settings = self._settings_provider()
        if settings.get("model_unload_timeout") != "immediately":
            return
        if not self.is_model_loaded():
            return
        logger.debug("Unloading model immediately (%s)", reason)
        self.unload_model()

    def transcribe(self, samples, translate: Optional[bool] = None) -> str:
        """Transcribe float samples; empty audio yields an empty string without a request."""
        audio = np.asarray(samples, dtype=np.float32).reshape(-1)
        if audio.size == 0:
            logger.debug("No samples to transcribe")
            return ""

        settings = self._settings_provider()
        if translate is None:
            translate = bool(settings.get("translate_to_english", False))
        self.load_model()
        try:
            text = self.client.transcribe_samples(
                audio,
                model=settings.get("stt_model", ""),
                language=settings.get("stt_language", "auto"),
                translate=translate,
                api_key=self._api_key(settings),
            )
        finally:
            self.maybe_unload_immediately("transcription complete")
        return text.strip()
