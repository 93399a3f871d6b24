"""Encoders producing the delivered form of a finished segment."""

from __future__ import annotations

import io
import logging
import wave

import numpy as np

from ...core.errors import EncodingError
from ...core.events import ResultType
from .resample import deinterleave, resample
from .types import EncodedAudio, SegmentEncoder

logger = logging.getLogger(__name__)


def float_to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Clip to [-1, 1] and scale asymmetrically to the int16 range."""
    clipped = np.clip(np.asarray(samples, dtype=np.float32), -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 32768.0, clipped * 32767.0)
    return scaled.astype(np.int16)


class WavEncoder:
    """16-bit PCM WAV bytes at the output sample rate. Mono or stereo only."""

    def encode(
        self,
        samples: np.ndarray,
        input_sample_rate: int,
        output_sample_rate: int,
        channels: int,
    ) -> EncodedAudio:
        if channels not in (1, 2):
            raise EncodingError(f"WAV encoding supports one or two channels, got {channels}")

        samples = resample(samples, input_sample_rate, output_sample_rate, channels)
        pcm16 = float_to_pcm16(samples)

        buf = io.BytesIO()
        try:
            with wave.open(buf, "wb") as wave_file:
                wave_file.setnchannels(channels)
                wave_file.setsampwidth(2)
                wave_file.setframerate(output_sample_rate)
                wave_file.writeframes(pcm16.astype("<i2").tobytes())
        except wave.Error as e:
            raise EncodingError(f"WAV encoding failed: {e}") from e

        logger.debug("Encoded %d samples to %d WAV bytes", len(pcm16), buf.tell())
        return EncodedAudio(data=buf.getvalue(), sample_rate=output_sample_rate, channels=channels)


class BufferEncoder:
    """float32 ndarray of shape (frames, channels) at the output sample rate."""

    def encode(
        self,
        samples: np.ndarray,
        input_sample_rate: int,
        output_sample_rate: int,
        channels: int,
    ) -> EncodedAudio:
        samples = resample(samples, input_sample_rate, output_sample_rate, channels)
        return EncodedAudio(
            data=deinterleave(samples, channels),
            sample_rate=output_sample_rate,
            channels=channels,
        )


class RawSamplesEncoder:
    """Raw float32 samples as captured, at the input sample rate."""

    def encode(
        self,
        samples: np.ndarray,
        input_sample_rate: int,
        output_sample_rate: int,
        channels: int,
    ) -> EncodedAudio:
        return EncodedAudio(
            data=np.array(samples, dtype=np.float32, copy=True),
            sample_rate=input_sample_rate,
            channels=channels,
        )


def create_encoder(result_type: ResultType) -> SegmentEncoder:
    """Default encoder for a result type. Detection-only sessions have no encoder."""
    if result_type == ResultType.WAV_BLOB:
        return WavEncoder()
    if result_type == ResultType.NATIVE_BUFFER:
        return BufferEncoder()
    if result_type == ResultType.RAW_DATA:
        return RawSamplesEncoder()
    raise ValueError(f"No encoder for result type {result_type}")
