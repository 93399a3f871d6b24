"""Speech boundary detection: levels, ambient tracking, windowing and the state machine."""

from .level import audio_level, amplitude_to_db
from .ambient import AmbientTracker
from .windowing import WindowScheduler, WindowGeometry, SpeechLengthLimits, round_half_up
from .buffer import SegmentBuffer
from .engine import DetectionEngine, DetectionStats, INITIAL_LEVEL_DB

__all__ = [
    "audio_level",
    "amplitude_to_db",
    "AmbientTracker",
    "WindowScheduler",
    "WindowGeometry",
    "SpeechLengthLimits",
    "round_half_up",
    "SegmentBuffer",
    "DetectionEngine",
    "DetectionStats",
    "INITIAL_LEVEL_DB",
]
