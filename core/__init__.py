"""Public core APIs for composition roots and external integrations."""

from core.app_config import AppConfig
from core.coordinator import TranscriptionCoordinator
from core.groq_client import GroqClient
from core.http_client import close_shared_client, get_shared_client
from core.session import SessionState
from core.transcription_manager import TranscriptionManager

__all__ = [
    "AppConfig",
    "GroqClient",
    "SessionState",
    "TranscriptionCoordinator",
    "TranscriptionManager",
    "get_shared_client",
    "close_shared_client",
]
