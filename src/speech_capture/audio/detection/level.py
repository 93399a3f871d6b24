"""Signal level of an analysis window."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from ...core.errors import DetectionError


def amplitude_to_db(amplitude: float) -> float:
    """Convert a linear amplitude to decibels. Zero maps to -inf."""
    if amplitude <= 0.0:
        return -math.inf
    return 20.0 * math.log10(amplitude)


def audio_level(window: np.ndarray) -> Optional[float]:
    """
    RMS level of `window` in dB.

    Returns None when the window carries no usable signal (empty or all zeros), so that
    -inf never reaches threshold comparisons or the ambient average.

    Raises:
        DetectionError: if the window contains non-finite samples.
    """
    if len(window) == 0:
        return None

    rms = float(np.sqrt(np.mean(np.square(window, dtype=np.float64))))
    if not math.isfinite(rms):
        raise DetectionError("Malformed analysis window: non-finite samples")

    level = amplitude_to_db(rms)
    if level == -math.inf:
        return None
    return level
