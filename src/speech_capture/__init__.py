"""Realtime speech detection and capture from a continuous audio stream."""

from .config.settings import CaptureConfig, load_config
from .core.errors import (
    ErrorCode,
    SpeechCaptureError,
    ConfigurationError,
    AudioSourceError,
    DetectionError,
    EncodingError,
    ResamplingError,
    QueueOverflowError,
)
from .core.events import CaptureStatus, ResultType, SpeechResult
from .audio.input import InputSource, OverflowPolicy, PushAudioSource
from .session import CaptureSession, CaptureDiagnostics

__all__ = [
    "CaptureConfig",
    "load_config",
    "ErrorCode",
    "SpeechCaptureError",
    "ConfigurationError",
    "AudioSourceError",
    "DetectionError",
    "EncodingError",
    "ResamplingError",
    "QueueOverflowError",
    "CaptureStatus",
    "ResultType",
    "SpeechResult",
    "InputSource",
    "OverflowPolicy",
    "PushAudioSource",
    "CaptureSession",
    "CaptureDiagnostics",
]
