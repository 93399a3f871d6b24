"""Audio output data types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np


@dataclass(frozen=True)
class EncodedAudio:
    """Encoder output: payload plus the format it is in."""

    data: Any
    sample_rate: int
    channels: int = 1


@runtime_checkable
class SegmentEncoder(Protocol):
    """Turns the samples of a finished segment into a deliverable result."""

    def encode(
        self,
        samples: np.ndarray,
        input_sample_rate: int,
        output_sample_rate: int,
        channels: int,
    ) -> Any:
        """Return an EncodedAudio (or any payload) or raise EncodingError."""
        ...
