"""Audio input subsystem data types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, runtime_checkable

import numpy as np

from ...core.errors import SpeechCaptureError


@dataclass
class AudioChunk:
    """Variable-size block of samples delivered by an audio source."""
    pcm: np.ndarray          # shape: (n_samples,) float32, interleaved if multi-channel
    sample_rate: Optional[int]  # None when the source follows the configured input rate
    timestamp_s: float


class InputSource(str, Enum):
    """Mutually exclusive audio source backends."""
    MICROPHONE = "microphone"
    PUSH = "push"
    FILE = "file"


ChunkSink = Callable[[AudioChunk], object]
ErrorSink = Callable[[SpeechCaptureError], None]


@runtime_checkable
class AudioSource(Protocol):
    """Protocol for audio input sources."""

    # Native sample rate of the source, or None if it follows the configured input rate
    sample_rate: Optional[int]
    # Interleaved channel count of the source, or None if it follows the configuration
    channels: Optional[int]

    def start(self) -> None:
        """Start producing chunks into the sink."""
        ...

    def stop(self) -> None:
        """Stop producing chunks and release the input."""
        ...

    def is_capturing(self) -> bool:
        ...


AudioSourceFactory = Callable[[ChunkSink, ErrorSink], AudioSource]
