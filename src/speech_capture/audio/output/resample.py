"""Sample-rate conversion of finished segments."""

from __future__ import annotations

import logging
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ...core.errors import ResamplingError

logger = logging.getLogger(__name__)


def deinterleave(samples: np.ndarray, channels: int) -> np.ndarray:
    """Interleaved samples -> (frames, channels). A trailing partial frame is dropped."""
    frames = len(samples) // channels
    return np.asarray(samples[:frames * channels], dtype=np.float32).reshape(frames, channels)


def resample(samples: np.ndarray, from_rate: int, to_rate: int, channels: int = 1) -> np.ndarray:
    """
    Resample interleaved float32 samples from `from_rate` to `to_rate`.

    Uses polyphase filtering with the reduced rate ratio; each channel is filtered
    independently. Returns interleaved float32 samples.
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ResamplingError(f"Invalid sample rates: {from_rate} -> {to_rate}")
    if from_rate == to_rate:
        return np.array(samples, dtype=np.float32, copy=True)

    g = gcd(int(from_rate), int(to_rate))
    up, down = int(to_rate) // g, int(from_rate) // g
    logger.debug("Resampling %d samples %d -> %d Hz (up=%d, down=%d)", len(samples), from_rate, to_rate, up, down)

    try:
        frames = deinterleave(samples, channels)
        resampled = resample_poly(frames, up, down, axis=0)
    except Exception as e:
        raise ResamplingError(f"Resampling {from_rate} -> {to_rate} Hz failed: {e}") from e
    return resampled.astype(np.float32).reshape(-1)
