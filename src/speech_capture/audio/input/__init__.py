"""Audio input module.

The microphone backend is not imported here so that sounddevice (and PortAudio) is only
required when a microphone source is actually used.
"""

from .types import AudioChunk, AudioSource, AudioSourceFactory, ChunkSink, ErrorSink, InputSource
from .chunk_queue import ChunkQueue, OverflowPolicy
from .push_source import PushAudioSource
from .file_source import WavFileSource, read_wav

__all__ = [
    "AudioChunk",
    "AudioSource",
    "AudioSourceFactory",
    "ChunkSink",
    "ErrorSink",
    "InputSource",
    "ChunkQueue",
    "OverflowPolicy",
    "PushAudioSource",
    "WavFileSource",
    "read_wav",
]
