"""Adaptive ambient noise tracking."""

from __future__ import annotations


class AmbientTracker:
    """
    Running average of non-speech levels and the detection threshold derived from it.

    The threshold is `average + offset_db`, clamped to at most 0 dB, and starts at 0 dB
    before any observation.
    """

    def __init__(self, offset_db: float):
        self.offset_db = offset_db
        self.total = 0.0
        self.count = 0
        self.average = 0.0
        self._threshold = 0.0

    def update(self, level: float) -> None:
        self.count += 1
        self.total += level
        self.average = self.total / self.count
        self._threshold = min(0.0, self.average + self.offset_db)

    def threshold(self) -> float:
        return self._threshold
