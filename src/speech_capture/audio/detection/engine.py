"""Speech boundary detection state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import numpy as np

from ...core.errors import DetectionError, SpeechCaptureError
from ...core.events import (
    CaptureStatus,
    DetectionEvent,
    DetectionFailed,
    SegmentReady,
    StatusEvent,
)
from .ambient import AmbientTracker
from .buffer import SegmentBuffer
from .level import audio_level
from .windowing import SpeechLengthLimits, WindowGeometry, WindowScheduler

if TYPE_CHECKING:
    from ...config.settings import CaptureConfig

logger = logging.getLogger(__name__)

# Level reported before any usable signal was observed
INITIAL_LEVEL_DB = -50.0


@dataclass
class DetectionStats:
    """Counters exposed through session diagnostics."""
    start_events: int = 0
    continue_events: int = 0
    stop_events: int = 0
    min_length_events: int = 0
    max_length_events: int = 0
    analysis_iterations: int = 0
    silent_iterations: int = 0
    total_speech_chunks: int = 0
    chunks_processed: int = 0
    samples_processed: int = 0


class DetectionEngine:
    """
    Consumes input chunks one analysis window at a time and decides when an utterance
    starts, continues and ends.

    Chunks are interleaved when `channels` > 1; a window is classified on the RMS of all
    its samples and buffered as whole frames.

    States are SILENT and SPEAKING. Every call returns the events it produced, in order;
    the engine never calls out to collaborators itself.
    """

    def __init__(
        self,
        cfg: "CaptureConfig",
        input_sample_rate: Optional[int] = None,
        chunk_size_hint: Optional[int] = None,
        channels: Optional[int] = None,
    ):
        self._cfg = cfg
        self.channels = channels or cfg.channels
        self._scheduler = WindowScheduler(
            sample_rate=input_sample_rate or cfg.input_sample_rate,
            analysis_chunk_length_ms=cfg.analysis_chunk_length_ms,
            channels=self.channels,
        )
        self.ambient = AmbientTracker(offset_db=cfg.threshold_db)
        self.buffer = SegmentBuffer(detect_only=cfg.detect_only)
        self.stats = DetectionStats()
        self.speaking = False
        self.last_level = INITIAL_LEVEL_DB
        self.limits: SpeechLengthLimits
        # buffer_size counts frames
        self.configure(chunk_size_hint or cfg.buffer_size * self.channels)

    @property
    def geometry(self) -> WindowGeometry:
        return self._scheduler.geometry

    @property
    def sample_rate(self) -> int:
        return self._scheduler.sample_rate

    def configure(self, chunk_size: int) -> WindowGeometry:
        """Recompute window geometry and chunk-count limits for a new chunk size."""
        geometry = self._scheduler.configure(chunk_size)
        self.limits = SpeechLengthLimits.from_ms(
            min_length_ms=self._cfg.min_length_ms,
            max_length_ms=self._cfg.max_length_ms,
            allowed_delay_ms=self._cfg.allowed_delay_ms,
            analysis_chunk_length_ms=self._cfg.analysis_chunk_length_ms,
        )
        return geometry

    def process_chunk(self, pcm: np.ndarray) -> list[DetectionEvent]:
        """Run every analysis window of one input chunk through the state machine."""
        events: list[DetectionEvent] = []
        try:
            chunk = np.asarray(pcm, dtype=np.float32).reshape(-1)
            if len(chunk) == 0:
                return events

            if self._scheduler.needs_configure(len(chunk)):
                logger.info("Input chunk size changed to %d samples, recalculating windows", len(chunk))
                self.configure(len(chunk))

            self.stats.chunks_processed += 1
            self.stats.samples_processed += len(chunk)

            for window in self._scheduler.windows(chunk):
                if not self._process_window(window, events):
                    # Max length reached: ignore the rest of this chunk
                    break
        except Exception as e:
            self._fail(e, events)
        return events

    def flush(self) -> list[DetectionEvent]:
        """Finalize an open utterance on manual stop."""
        events: list[DetectionEvent] = []
        if self.speaking:
            self._finalize(events)
        return events

    def reset(self) -> None:
        """Back to SILENT with an empty buffer. Ambient state is kept."""
        self.speaking = False
        self.buffer.reset()

    def _process_window(self, window: np.ndarray, events: list[DetectionEvent]) -> bool:
        if self.speaking and self.buffer.length_chunks + 1 > self.limits.max_chunks:
            self.stats.max_length_events += 1
            self._finalize(events)
            events.append(StatusEvent(CaptureStatus.SPEECH_MAX_LENGTH))
            return False

        if self._is_speech(window):
            if not self.speaking:
                self._start_speech(window, events)
            else:
                self._continue_speech(window, pause=False)
        else:
            if self.speaking:
                self.buffer.silence_run += 1
                if self.buffer.silence_run > self.limits.allowed_delay_chunks:
                    self._finalize(events)
                elif not self._cfg.compress_pauses:
                    self._continue_speech(window, pause=True)

            # Pauses inside an utterance also feed the ambient baseline
            self.ambient.update(self.last_level)
        return True

    def _is_speech(self, window: np.ndarray) -> bool:
        self.stats.analysis_iterations += 1
        level = audio_level(window)
        if level is None:
            self.stats.silent_iterations += 1
            return False

        self.last_level = level
        if level > self.ambient.threshold():
            self.stats.total_speech_chunks += 1
            return True
        self.stats.silent_iterations += 1
        return False

    def _start_speech(self, window: np.ndarray, events: list[DetectionEvent]) -> None:
        self.stats.start_events += 1
        self.speaking = True
        self.buffer.reset()
        self._continue_speech(window, pause=False)
        logger.info("Speech started (level %.1f dB, threshold %.1f dB)", self.last_level, self.ambient.threshold())
        events.append(StatusEvent(CaptureStatus.SPEECH_STARTED))

    def _continue_speech(self, window: np.ndarray, pause: bool) -> None:
        self.stats.continue_events += 1
        self.buffer.append(window, counts_toward_length=not pause)
        if not pause:
            self.buffer.silence_run = 0

    def _finalize(self, events: list[DetectionEvent]) -> None:
        self.stats.stop_events += 1
        length_chunks = self.buffer.length_chunks

        if self.buffer.is_long_enough(self.limits.min_chunks):
            samples = None if self._cfg.detect_only else self.buffer.samples()
            logger.info(
                "Speech segment finalized: %d chunks, %d samples",
                length_chunks, self.buffer.num_samples,
            )
            events.append(SegmentReady(samples=samples, length_chunks=length_chunks))
        else:
            self.stats.min_length_events += 1
            logger.info("Speech too short (%d chunks), discarded", length_chunks)
            events.append(StatusEvent(CaptureStatus.SPEECH_MIN_LENGTH))

        self.speaking = False
        self.buffer.reset()
        events.append(StatusEvent(CaptureStatus.SPEECH_STOPPED))

    def _fail(self, exc: Exception, events: list[DetectionEvent]) -> None:
        if isinstance(exc, SpeechCaptureError):
            error = exc
        else:
            error = DetectionError(f"Failed to process audio chunk: {exc}")
        logger.error("Detection error: %s", error.message, exc_info=exc)
        self.reset()
        events.append(DetectionFailed(error))
