from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union
import time

import numpy as np

from .errors import SpeechCaptureError


class CaptureStatus(Enum):
    """Status notifications delivered to the status callback."""
    SPEECH_STARTED = 1
    SPEECH_STOPPED = 2
    SPEECH_ERROR = 3
    CAPTURE_STARTED = 4
    CAPTURE_STOPPED = 5
    CAPTURE_ERROR = 6
    ENCODING_ERROR = 7
    SPEECH_MAX_LENGTH = 8
    SPEECH_MIN_LENGTH = 9


class ResultType(str, Enum):
    """How a finished segment is delivered to the result callback."""
    WAV_BLOB = "wav_blob"              # 16-bit PCM WAV bytes at the target sample rate
    NATIVE_BUFFER = "native_buffer"    # float32 ndarray (frames, channels) at the target sample rate
    RAW_DATA = "raw_data"              # raw float32 samples at the input sample rate
    DETECTION_ONLY = "detection_only"  # no audio, only the detection itself


@dataclass(frozen=True)
class StatusEvent:
    """Detection engine emitted a status transition."""
    status: CaptureStatus


@dataclass(frozen=True)
class SegmentReady:
    """An utterance passed the minimum-length check and is ready for encoding."""
    samples: Optional[np.ndarray]  # None in detect-only mode
    length_chunks: int


@dataclass(frozen=True)
class DetectionFailed:
    """Processing a window failed; the engine has been reset to SILENT."""
    error: SpeechCaptureError


# Events produced by DetectionEngine, in emission order
DetectionEvent = Union[StatusEvent, SegmentReady, DetectionFailed]


@dataclass(frozen=True)
class SpeechResult:
    """One delivered utterance."""
    data: Any  # bytes, np.ndarray, encoder-defined payload, or None for detection-only
    result_type: ResultType
    sample_rate: int
    channels: int
    length_chunks: int
    num_samples: int = 0
    timestamp: float = field(default_factory=time.time)
