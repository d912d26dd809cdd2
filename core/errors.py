"""Error types raised by collaborators of the session coordinator."""


class ConfigError(RuntimeError):
    """Required configuration (usually the API key) is missing."""


class CaptureError(RuntimeError):
    """The microphone stream could not be opened or closed."""


class TranscriptionError(RuntimeError):
    """The transcription request failed or returned an unusable response."""

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
