"""Reshaping of variable-size input chunks into fixed-duration analysis windows."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class WindowGeometry:
    """How one input chunk of `chunk_size` samples is cut into analysis windows."""
    chunk_size: int
    windows_per_chunk: int
    window_size: int
    chunk_length_s: float
    window_length_s: float


@dataclass(frozen=True)
class SpeechLengthLimits:
    """Millisecond limits expressed in analysis windows."""
    min_chunks: int
    max_chunks: int
    allowed_delay_chunks: int

    @classmethod
    def from_ms(
        cls,
        min_length_ms: float,
        max_length_ms: float,
        allowed_delay_ms: float,
        analysis_chunk_length_ms: float,
    ) -> "SpeechLengthLimits":
        return cls(
            min_chunks=round_half_up(min_length_ms / analysis_chunk_length_ms),
            max_chunks=round_half_up(max_length_ms / analysis_chunk_length_ms),
            allowed_delay_chunks=round_half_up(allowed_delay_ms / analysis_chunk_length_ms),
        )


class WindowScheduler:
    """
    Cuts chunks into `windows_per_chunk` consecutive windows of `window_size` samples.

    Chunks hold interleaved samples of `channels` channels. Durations are computed from
    frames, and every window holds whole frames, so multi-channel audio is analysed in
    real time rather than in samples.

    Geometry is computed from the observed chunk size and recomputed whenever a chunk of
    a different size arrives. The last window of a chunk may be shorter; windows never
    extend past the chunk boundary.
    """

    def __init__(self, sample_rate: int, analysis_chunk_length_ms: int, channels: int = 1):
        if sample_rate <= 0 or analysis_chunk_length_ms <= 0 or channels <= 0:
            raise ValueError("sample_rate, analysis_chunk_length_ms and channels must be positive")
        self._sample_rate = sample_rate
        self._analysis_ms = analysis_chunk_length_ms
        self._channels = channels
        self.geometry: Optional[WindowGeometry] = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def needs_configure(self, chunk_size: int) -> bool:
        return self.geometry is None or self.geometry.chunk_size != chunk_size

    def configure(self, chunk_size: int) -> WindowGeometry:
        frames = chunk_size // self._channels
        if frames <= 0:
            raise ValueError(f"chunk_size must hold at least one frame, got {chunk_size}")

        # ceil(chunk_ms / analysis_ms) in integer arithmetic
        windows_per_chunk = -(-(frames * 1000) // (self._sample_rate * self._analysis_ms))
        window_size = -(-frames // windows_per_chunk) * self._channels
        chunk_length_s = frames / self._sample_rate

        self.geometry = WindowGeometry(
            chunk_size=chunk_size,
            windows_per_chunk=windows_per_chunk,
            window_size=window_size,
            chunk_length_s=chunk_length_s,
            window_length_s=chunk_length_s / windows_per_chunk,
        )
        logger.debug(
            "Window geometry: chunk=%d samples (%d ch) -> %d windows of %d samples",
            chunk_size, self._channels, windows_per_chunk, window_size,
        )
        return self.geometry

    def windows(self, chunk: np.ndarray) -> Iterator[np.ndarray]:
        """Yield the analysis windows of `chunk`. Call `configure` first if its size changed."""
        geometry = self.geometry
        if geometry is None or geometry.chunk_size != len(chunk):
            raise ValueError(f"Scheduler not configured for chunk size {len(chunk)}")

        length = len(chunk)
        for i in range(geometry.windows_per_chunk):
            start = i * geometry.window_size
            if start >= length:
                break
            end = min(start + geometry.window_size, length)
            yield chunk[start:end]
