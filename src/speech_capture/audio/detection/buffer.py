"""Accumulation of the in-progress utterance."""

from __future__ import annotations

import numpy as np


class SegmentBuffer:
    """
    Sample windows of the current utterance.

    `length_chunks` counts only windows that count toward the utterance length (speech
    windows); retained pause windows add samples but not length. In detect-only mode
    no samples are stored at all.
    """

    def __init__(self, detect_only: bool = False):
        self._detect_only = detect_only
        self._parts: list[np.ndarray] = []
        self.num_samples = 0
        self.length_chunks = 0
        self.silence_run = 0

    def append(self, window: np.ndarray, counts_toward_length: bool) -> None:
        if counts_toward_length:
            self.length_chunks += 1
        if not self._detect_only:
            self._parts.append(np.array(window, dtype=np.float32, copy=True))
            self.num_samples += len(window)

    def reset(self) -> None:
        self._parts = []
        self.num_samples = 0
        self.length_chunks = 0
        self.silence_run = 0

    def is_long_enough(self, min_chunks: int) -> bool:
        return self.length_chunks > min_chunks

    def samples(self) -> np.ndarray:
        """Copy of the accumulated samples."""
        if not self._parts:
            return np.array([], dtype=np.float32)
        return np.concatenate(self._parts)
