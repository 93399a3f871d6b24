"""Capture session: drives audio input through speech detection to delivered results."""

from __future__ import annotations

import dataclasses
import functools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from .audio.detection import (
    INITIAL_LEVEL_DB,
    DetectionEngine,
    DetectionStats,
    SpeechLengthLimits,
    WindowGeometry,
)
from .audio.input import (
    AudioChunk,
    AudioSource,
    AudioSourceFactory,
    ChunkQueue,
    InputSource,
    PushAudioSource,
    WavFileSource,
)
from .audio.output import EncodedAudio, SegmentEncoder, create_encoder
from .config.settings import CaptureConfig
from .core.errors import (
    AudioSourceError,
    ConfigurationError,
    EncodingError,
    ErrorCode,
    SpeechCaptureError,
)
from .core.events import (
    CaptureStatus,
    DetectionEvent,
    DetectionFailed,
    ResultType,
    SegmentReady,
    SpeechResult,
    StatusEvent,
)
from .core.shutdown import GracefulShutdown, StopSignal
from .core.worker import CycleWorker

logger = logging.getLogger(__name__)

ResultCallback = Callable[[SpeechResult], Any]
ErrorCallback = Callable[[SpeechCaptureError], Any]
StatusCallback = Callable[[CaptureStatus], Any]

ENCODER_THREAD_PREFIX = "SegmentEncoder"


@dataclass(frozen=True)
class CaptureDiagnostics:
    """Point-in-time snapshot of a session's counters and derived parameters."""
    capturing: bool
    speaking: bool
    ambient_average_level: float
    current_level: float
    current_threshold: float
    ambient_observations: int
    current_speech_chunks: int
    current_speech_samples: int
    silence_run: int
    input_queue_length: int
    input_samples_total: int
    dropped_chunks: int
    input_events: int
    cycles: int
    sample_rate: int
    input_sample_rate: int
    channels: int
    detection: DetectionStats
    geometry: Optional[WindowGeometry]
    limits: Optional[SpeechLengthLimits]
    last_error_code: ErrorCode


class CaptureLoop(CycleWorker[AudioChunk]):
    """Periodically drains the input queue into the detection engine."""

    def __init__(
        self,
        stop_signal: StopSignal,
        chunk_queue: ChunkQueue,
        engine: DetectionEngine,
        dispatch: Callable[[list[DetectionEvent]], None],
        on_exit: Callable[[], None],
        interval_s: float,
        max_chunks_per_cycle: int,
    ):
        super().__init__(
            name="CaptureLoopThread",
            stop_signal=stop_signal,
            input_queue=chunk_queue,
            interval_s=interval_s,
            max_items_per_cycle=max_chunks_per_cycle,
        )
        self._engine = engine
        self._dispatch = dispatch
        self._on_exit = on_exit

    def handle(self, item: AudioChunk) -> None:
        self._dispatch(self._engine.process_chunk(item.pcm))

    def cleanup(self) -> None:
        self._on_exit()


class CaptureSession:
    """
    Realtime speech capture over one audio source.

    Audio chunks pushed by the source are queued and analysed every
    `analysis_chunk_length_ms` on a dedicated thread. Utterances that pass the length
    checks are encoded on a thread pool and delivered to `on_result`; status changes go
    to `on_status` and recoverable errors to `on_error`. Callbacks are invoked from the
    capture loop thread or from encoder threads; status callbacks are serialized.

    The source backend is chosen by `config.input_source` unless a `source_factory` is
    given; a custom `encoder` replaces the default one for the configured result type.
    """

    def __init__(
        self,
        source_factory: Optional[AudioSourceFactory] = None,
        encoder: Optional[SegmentEncoder] = None,
    ):
        self._source_factory = source_factory
        self._custom_encoder = encoder

        self._cfg: Optional[CaptureConfig] = None
        self._on_result: Optional[ResultCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._on_status: Optional[StatusCallback] = None

        self._stop_signal: Optional[GracefulShutdown] = None
        self._queue: Optional[ChunkQueue] = None
        self._source: Optional[AudioSource] = None
        self._engine: Optional[DetectionEngine] = None
        self._encoder: Optional[SegmentEncoder] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._loop: Optional[CaptureLoop] = None

        self._capturing = False
        self._input_events = 0
        self._input_sample_rate = 0
        self._channels = 1
        self._last_error_code = ErrorCode.NO_ERROR
        self._status_lock = threading.RLock()
        self._in_status_callback = threading.local()

    @property
    def config(self) -> Optional[CaptureConfig]:
        return self._cfg

    @property
    def source(self) -> Optional[AudioSource]:
        """The active audio source, e.g. a PushAudioSource to feed samples into."""
        return self._source

    def start(
        self,
        config: Union[CaptureConfig, Mapping[str, Any], None],
        on_result: ResultCallback,
        on_error: Optional[ErrorCallback] = None,
        on_status: Optional[StatusCallback] = None,
    ) -> None:
        """
        Validate configuration and callbacks, open the audio source and start detection.

        Raises:
            ConfigurationError: missing/invalid callbacks or configuration, or the
                selected audio source is unavailable.
        """
        if self._capturing:
            self._last_error_code = ErrorCode.CAPTURE_ALREADY_STARTED
            logger.warning("Capture already started")
            self._emit_status(CaptureStatus.CAPTURE_ERROR)
            return

        try:
            self._check_callbacks(on_result, on_error, on_status)
            cfg = self._validate_config(config)
            self._cfg = cfg
            self._on_result, self._on_error, self._on_status = on_result, on_error, on_status
            self._input_events = 0
            self._queue = ChunkQueue(maxsize=cfg.max_queue_chunks, policy=cfg.overflow_policy)
            self._source = self._create_source(cfg)
        except ConfigurationError as e:
            self._last_error_code = e.code
            logger.error("Cannot start capture: %s", e.message)
            raise

        self._last_error_code = ErrorCode.NO_ERROR
        self._input_sample_rate = self._source.sample_rate or cfg.input_sample_rate
        self._channels = getattr(self._source, "channels", None) or cfg.channels
        self._engine = DetectionEngine(
            cfg,
            input_sample_rate=self._input_sample_rate,
            channels=self._channels,
        )
        if cfg.result_type == ResultType.DETECTION_ONLY:
            self._encoder = None
        else:
            self._encoder = self._custom_encoder or create_encoder(cfg.result_type)

        self._stop_signal = GracefulShutdown()
        self._executor = ThreadPoolExecutor(
            max_workers=cfg.encoder_workers,
            thread_name_prefix=ENCODER_THREAD_PREFIX,
        )
        self._loop = CaptureLoop(
            stop_signal=self._stop_signal,
            chunk_queue=self._queue,
            engine=self._engine,
            dispatch=self._dispatch,
            on_exit=self._finish_capture,
            interval_s=cfg.analysis_chunk_length_ms / 1000.0,
            max_chunks_per_cycle=cfg.max_chunks_per_cycle,
        )

        self._capturing = True
        logger.info(
            "Capture started: %s source, input %d Hz x %d ch, output %d Hz, %s",
            cfg.input_source.value, self._input_sample_rate, self._channels, cfg.sample_rate,
            cfg.result_type.value,
        )
        self._emit_status(CaptureStatus.CAPTURE_STARTED)
        self._loop.start()
        if self._stop_signal.is_set():
            # Stopped from the CAPTURE_STARTED callback; the loop tears down at once
            return

        try:
            self._source.start()
        except Exception as e:
            self._on_source_error(AudioSourceError(f"Audio source failed to start: {e}"))

    def stop(self) -> None:
        """
        Stop capturing. An open utterance is finalized (subject to the minimum length)
        and in-flight encodings are awaited before returning. Called from a callback,
        it only requests the stop.
        """
        loop = self._loop
        if loop is None:
            return
        self._stop_signal.stop()

        current = threading.current_thread()
        if (
            loop.ident is None
            or current is loop
            or current.name.startswith(ENCODER_THREAD_PREFIX)
            or getattr(self._in_status_callback, "active", False)
        ):
            # Called from a callback; teardown completes on the loop thread
            return

        loop.join()
        source = self._source
        if isinstance(source, threading.Thread) and source.is_alive() and source is not current:
            source.join(timeout=2.0)
        if self._executor is not None:
            self._executor.shutdown(wait=True)

    def is_capturing(self) -> bool:
        return self._capturing

    def is_speaking_now(self) -> bool:
        return self._engine is not None and self._engine.speaking

    def current_level(self) -> float:
        """Last usable signal level in dB."""
        if self._engine is None:
            return INITIAL_LEVEL_DB
        return self._engine.last_level

    def last_error_code(self) -> ErrorCode:
        return self._last_error_code

    def diagnostics(self) -> CaptureDiagnostics:
        engine = self._engine
        chunk_queue = self._queue
        return CaptureDiagnostics(
            capturing=self._capturing,
            speaking=self.is_speaking_now(),
            ambient_average_level=engine.ambient.average if engine else 0.0,
            current_level=self.current_level(),
            current_threshold=engine.ambient.threshold() if engine else 0.0,
            ambient_observations=engine.ambient.count if engine else 0,
            current_speech_chunks=engine.buffer.length_chunks if engine else 0,
            current_speech_samples=engine.buffer.num_samples if engine else 0,
            silence_run=engine.buffer.silence_run if engine else 0,
            input_queue_length=chunk_queue.qsize() if chunk_queue else 0,
            input_samples_total=chunk_queue.pushed_samples if chunk_queue else 0,
            dropped_chunks=chunk_queue.dropped if chunk_queue else 0,
            input_events=self._input_events,
            cycles=self._loop.cycles if self._loop else 0,
            sample_rate=self._cfg.sample_rate if self._cfg else 0,
            input_sample_rate=self._input_sample_rate,
            channels=self._channels,
            detection=dataclasses.replace(engine.stats) if engine else DetectionStats(),
            geometry=engine.geometry if engine else None,
            limits=engine.limits if engine else None,
            last_error_code=self._last_error_code,
        )

    @staticmethod
    def _check_callbacks(on_result, on_error, on_status) -> None:
        if on_result is None:
            raise ConfigurationError("Mandatory parameter 'on_result' is missing.", ErrorCode.MISSING_PARAMETER)
        if not callable(on_result):
            raise ConfigurationError("Parameter 'on_result' must be callable.", ErrorCode.INVALID_PARAMETER)
        if on_error is not None and not callable(on_error):
            raise ConfigurationError("Parameter 'on_error' must be callable.", ErrorCode.INVALID_PARAMETER)
        if on_status is not None and not callable(on_status):
            raise ConfigurationError("Parameter 'on_status' must be callable.", ErrorCode.INVALID_PARAMETER)

    @staticmethod
    def _validate_config(config: Union[CaptureConfig, Mapping[str, Any], None]) -> CaptureConfig:
        if isinstance(config, CaptureConfig):
            return config
        try:
            return CaptureConfig.model_validate(dict(config or {}))
        except (ValidationError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}", ErrorCode.INVALID_PARAMETER) from e

    def _create_source(self, cfg: CaptureConfig) -> AudioSource:
        if self._source_factory is not None:
            return self._source_factory(self._enqueue, self._on_source_error)

        if cfg.input_source == InputSource.PUSH:
            return PushAudioSource(self._enqueue, self._on_source_error)

        if cfg.input_source == InputSource.FILE:
            try:
                return WavFileSource(self._enqueue, self._on_source_error, cfg.input_file, chunk_size=cfg.buffer_size)
            except AudioSourceError as e:
                raise ConfigurationError(e.message, ErrorCode.AUDIOINPUT_NOT_AVAILABLE) from e

        try:
            from .audio.input.mic import Mic
        except (ImportError, OSError) as e:
            raise ConfigurationError(
                f"Microphone input is not available: {e}", ErrorCode.AUDIOINPUT_NOT_AVAILABLE
            ) from e
        return Mic(
            self._enqueue,
            self._on_source_error,
            sample_rate=cfg.input_sample_rate,
            channels=cfg.channels,
            blocksize=cfg.buffer_size,
            device=cfg.input_device,
        )

    def _enqueue(self, chunk: AudioChunk) -> bool:
        """Sink handed to the audio source. May run on the source's thread."""
        self._input_events += 1
        if not self._capturing:
            return False
        return self._queue.push(chunk)

    def _on_source_error(self, error: SpeechCaptureError) -> None:
        self._report_error(error, CaptureStatus.CAPTURE_ERROR)
        if self._stop_signal is not None:
            self._stop_signal.stop()

    def _finish_capture(self) -> None:
        """Runs on the loop thread once it exits."""
        self._dispatch(self._engine.flush())
        try:
            self._source.stop()
        except Exception as e:
            logger.warning(f"Error stopping audio source: {e}", exc_info=True)
        self._capturing = False
        self._queue.clear()
        # Queued encodings still complete; stop() waits for them when it can
        self._executor.shutdown(wait=False)
        logger.info("Capture stopped")
        self._emit_status(CaptureStatus.CAPTURE_STOPPED)

    def _dispatch(self, events: list[DetectionEvent]) -> None:
        for event in events:
            if isinstance(event, StatusEvent):
                self._emit_status(event.status)
            elif isinstance(event, SegmentReady):
                self._produce_result(event)
            elif isinstance(event, DetectionFailed):
                self._report_error(event.error, CaptureStatus.SPEECH_ERROR)

    def _produce_result(self, segment: SegmentReady) -> None:
        cfg = self._cfg
        if self._encoder is None:
            self._deliver(SpeechResult(
                data=None,
                result_type=cfg.result_type,
                sample_rate=cfg.sample_rate,
                channels=self._channels,
                length_chunks=segment.length_chunks,
            ))
            return

        future = self._executor.submit(
            self._encoder.encode,
            segment.samples,
            self._input_sample_rate,
            cfg.sample_rate,
            self._channels,
        )
        future.add_done_callback(functools.partial(self._on_encoded, segment))

    def _on_encoded(self, segment: SegmentReady, future: Future) -> None:
        cfg = self._cfg
        try:
            encoded = future.result()
        except SpeechCaptureError as e:
            self._report_error(e, CaptureStatus.ENCODING_ERROR)
            return
        except Exception as e:
            self._report_error(EncodingError(f"Encoding failed: {e}"), CaptureStatus.ENCODING_ERROR)
            return

        if isinstance(encoded, EncodedAudio):
            data, sample_rate, channels = encoded.data, encoded.sample_rate, encoded.channels
        else:
            data, sample_rate, channels = encoded, cfg.sample_rate, self._channels

        self._deliver(SpeechResult(
            data=data,
            result_type=cfg.result_type,
            sample_rate=sample_rate,
            channels=channels,
            length_chunks=segment.length_chunks,
            num_samples=len(segment.samples),
        ))

    def _deliver(self, result: SpeechResult) -> None:
        self._safe_call(self._on_result, result)

    def _report_error(self, error: SpeechCaptureError, status: CaptureStatus) -> None:
        self._last_error_code = error.code
        logger.error("%s: %s", status.name, error.message)
        if self._on_error is not None:
            self._safe_call(self._on_error, error)
        self._emit_status(status)

    def _emit_status(self, status: CaptureStatus) -> None:
        logger.debug("Status: %s", status.name)
        if self._on_status is not None:
            with self._status_lock:
                outer = getattr(self._in_status_callback, "active", False)
                self._in_status_callback.active = True
                try:
                    self._safe_call(self._on_status, status)
                finally:
                    self._in_status_callback.active = outer

    @staticmethod
    def _safe_call(callback: Callable[[Any], Any], arg: Any) -> None:
        try:
            callback(arg)
        except Exception:
            logger.exception("Callback %r raised", callback)
