"""Error codes and exception hierarchy for speech capture."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    NO_ERROR = 0
    INVALID_PARAMETER = 1
    MISSING_PARAMETER = 2
    NO_AUDIO_SUPPORT = 3
    CAPTURE_ALREADY_STARTED = 4
    AUDIOINPUT_NOT_AVAILABLE = 5
    RESAMPLING_UNSUPPORTED = 6
    RESAMPLING_ERROR = 7
    QUEUE_OVERFLOW = 8
    UNSPECIFIED = 999


class SpeechCaptureError(Exception):
    """Base class for all errors reported by a capture session."""

    default_code = ErrorCode.UNSPECIFIED

    def __init__(self, message: str, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ConfigurationError(SpeechCaptureError):
    """Invalid or missing session configuration. Prevents the session from starting."""

    default_code = ErrorCode.INVALID_PARAMETER


class AudioSourceError(SpeechCaptureError):
    """The audio source failed. Fatal to the session."""

    default_code = ErrorCode.AUDIOINPUT_NOT_AVAILABLE


class DetectionError(SpeechCaptureError):
    """Processing of an analysis window failed. The in-progress utterance is lost."""


class EncodingError(SpeechCaptureError):
    """A finished segment could not be encoded. Only that segment is lost."""


class ResamplingError(EncodingError):
    default_code = ErrorCode.RESAMPLING_ERROR


class QueueOverflowError(SpeechCaptureError):
    """Raised to the producer when the input queue is full and the policy is `raise`."""

    default_code = ErrorCode.QUEUE_OVERFLOW
