import logging
import threading
from typing import Callable, Optional

import numpy as np
import sounddevice as sd

from core.errors import CaptureError

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
DTYPE = "float32"
LEVEL_BUCKETS = 16


def compute_levels(block: np.ndarray, buckets: int = LEVEL_BUCKETS) -> list[float]:
    """Split an audio block into ``buckets`` slices and return their RMS in [0, 1]."""
    audio = np.asarray(block, dtype=np.float32).reshape(-1)
    if audio.size == 0 or buckets <= 0:
        return [0.0] * max(0, buckets)
    levels = []
    for chunk in np.array_split(audio, buckets):
        if chunk.size == 0:
            levels.append(0.0)
            continue
        rms = float(np.sqrt(np.mean(np.square(chunk))))
        # sqrt lifts quiet speech into a visible range
        levels.append(min(1.0, float(np.sqrt(rms * 4.0))))
    return levels


class AudioRecordingManager:
    """Records mono float32 audio from the default mic; start/stop/cancel."""

    def __init__(
        self,
        sample_rate=SAMPLE_RATE,
        on_levels: Optional[Callable[[list[float]], None]] = None,
        level_buckets: int = LEVEL_BUCKETS,
    ):
        self.sample_rate = sample_rate
        self.on_levels = on_levels
        self._level_buckets = level_buckets
        self._frames: list[np.ndarray] = []
        self._stream = None
        self._lock = threading.Lock()
        self._recording = False

    def is_recording(self) -> bool:
        with self._lock:
            return self._recording

    def start(self):
        """Open the default input stream and begin buffering samples."""
        with self._lock:
            if self._recording:
                return
            self._frames.clear()
            try:
                stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=CHANNELS,
                    dtype=DTYPE,
                    callback=self._audio_callback,
                )
                stream.start()
            except Exception as e:
                raise CaptureError(f"Failed to open microphone: {e}") from e
            self._stream = stream
            self._recording = True
        logger.debug("Capture started at %d Hz", self.sample_rate)

    def stop(self) -> np.ndarray:
        """Stop recording and return the captured samples (float32, [-1, 1])."""
        with self._lock:
            stream, self._stream = self._stream, None
            self._recording = False
            frames = list(self._frames)
            self._frames.clear()
        self._close(stream)
        if not frames:
            return np.zeros(0, dtype=np.float32)
        samples = np.concatenate(frames, axis=0).reshape(-1).astype(np.float32)
        logger.debug("Capture stopped (%d samples)", samples.size)
        return samples

    def cancel(self):
        """Stop recording and discard anything buffered."""
        with self._lock:
            stream, self._stream = self._stream, None
            was_recording = self._recording
            self._recording = False
            self._frames.clear()
        self._close(stream)
        if was_recording:
            logger.info("Capture cancelled, buffered audio discarded")

    def _close(self, stream):
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            raise CaptureError(f"Failed to close microphone: {e}") from e

    def _audio_callback(self, indata, frames, time_info, status):
        if status:
            logger.debug("Input stream status: %s", status)
        with self._lock:
            if not self._recording:
                return
            self._frames.append(indata.copy())
        if self.on_levels:
            self.on_levels(compute_levels(indata, self._level_buckets))
