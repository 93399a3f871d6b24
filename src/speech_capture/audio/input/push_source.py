"""Push-based audio source for external producers (network streams, tests)."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

import numpy as np

from ...core.errors import AudioSourceError, SpeechCaptureError
from .types import AudioChunk, ChunkSink, ErrorSink

logger = logging.getLogger(__name__)


class PushAudioSource:
    """
    An AudioSource fed by the caller.

    The actual 'pushing' happens externally through `push()`; chunks pushed while the
    source is stopped are ignored. Multi-channel samples may be pushed interleaved or as
    a (frames, channels) array.
    """

    def __init__(
        self,
        sink: ChunkSink,
        on_error: ErrorSink,
        sample_rate: Optional[int] = None,
        channels: Optional[int] = None,
    ):
        self._sink = sink
        self._on_error = on_error
        self._running = threading.Event()
        self.sample_rate = sample_rate
        self.channels = channels

    def start(self) -> None:
        self._running.set()
        logger.info("PushAudioSource started")

    def stop(self) -> None:
        self._running.clear()
        logger.info("PushAudioSource stopped")

    def is_capturing(self) -> bool:
        return self._running.is_set()

    def push(self, pcm, timestamp_s: Optional[float] = None) -> bool:
        """External API to push samples. Returns False if the source is not running."""
        if not self._running.is_set():
            logger.debug("PushAudioSource not running, ignoring chunk")
            return False
        chunk = AudioChunk(
            pcm=np.asarray(pcm, dtype=np.float32).reshape(-1),
            sample_rate=self.sample_rate,
            timestamp_s=timestamp_s if timestamp_s is not None else time.time(),
        )
        self._sink(chunk)
        return True

    def fail(self, error: Exception) -> None:
        """Report a producer-side failure to the session."""
        if not isinstance(error, SpeechCaptureError):
            error = AudioSourceError(f"Audio source failed: {error}")
        self._on_error(error)
