"""Application configuration as an injectable dataclass."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_API_URL = "https://api.groq.com/openai/v1"


@dataclass
class AppConfig:
    """Process-level configuration loaded from environment variables."""

    # API
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    request_timeout: float = 90.0

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    @staticmethod
    def from_env() -> "AppConfig":
        """Load config from .env file and environment variables."""
        load_dotenv()
        return AppConfig(
            api_key=os.getenv("GROQ_API_KEY", "").strip(),
            api_url=os.getenv("GROQ_API_URL", DEFAULT_API_URL).rstrip("/"),
            request_timeout=_env_float("GROQ_TIMEOUT_SECONDS", 90.0),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE", "").strip(),
        )


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return default
