"""Audio output module: encoding and resampling of finished segments."""

from .types import EncodedAudio, SegmentEncoder
from .encoder import WavEncoder, BufferEncoder, RawSamplesEncoder, create_encoder, float_to_pcm16
from .resample import resample, deinterleave

__all__ = [
    "EncodedAudio",
    "SegmentEncoder",
    "WavEncoder",
    "BufferEncoder",
    "RawSamplesEncoder",
    "create_encoder",
    "float_to_pcm16",
    "resample",
    "deinterleave",
]
