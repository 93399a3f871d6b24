"""Core module."""

from .shutdown import GracefulShutdown, StopSignal
from .worker import CycleWorker
from .errors import (
    ErrorCode,
    SpeechCaptureError,
    ConfigurationError,
    AudioSourceError,
    DetectionError,
    EncodingError,
    ResamplingError,
    QueueOverflowError,
)
from .events import (
    CaptureStatus,
    ResultType,
    StatusEvent,
    SegmentReady,
    DetectionFailed,
    DetectionEvent,
    SpeechResult,
)

__all__ = [
    "GracefulShutdown",
    "StopSignal",
    "CycleWorker",
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
    "StatusEvent",
    "SegmentReady",
    "DetectionFailed",
    "DetectionEvent",
    "SpeechResult",
]
