"""WAV file playback as an audio source."""

from __future__ import annotations

import logging
import threading
import time
import wave
from pathlib import Path
from typing import Optional, Union

import numpy as np

from ...core.errors import AudioSourceError, QueueOverflowError
from .types import AudioChunk, ChunkSink, ErrorSink

logger = logging.getLogger(__name__)


def read_wav(path: Union[str, Path]) -> tuple[np.ndarray, int, int]:
    """Read a 16-bit PCM WAV file. Returns (interleaved float32 samples, sample_rate, channels)."""
    with wave.open(str(path), "rb") as wav_file:
        if wav_file.getsampwidth() != 2:
            raise AudioSourceError(f"{path}: only 16-bit PCM WAV files are supported")
        sample_rate = wav_file.getframerate()
        channels = wav_file.getnchannels()
        frames = wav_file.readframes(wav_file.getnframes())

    pcm = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    return pcm, sample_rate, channels


class WavFileSource(threading.Thread):
    """
    Streams a WAV file into the sink in `chunk_size` sample blocks.

    With `realtime=True` each chunk is paced by its duration, like a live input.
    `finished` is set once the whole file has been pushed or the source was stopped.
    """

    def __init__(
        self,
        sink: ChunkSink,
        on_error: ErrorSink,
        path: Union[str, Path],
        chunk_size: int = 16384,
        realtime: bool = True,
    ):
        super().__init__(name="WavFileSourceThread", daemon=True)
        self._sink = sink
        self._on_error = on_error
        self._path = Path(path)
        self._chunk_size = chunk_size
        self._realtime = realtime
        self._stop_event = threading.Event()
        self.finished = threading.Event()
        self.sample_rate: Optional[int] = None
        self.channels = 1

        try:
            self._pcm, self.sample_rate, self.channels = read_wav(self._path)
        except (OSError, EOFError, wave.Error) as e:
            raise AudioSourceError(f"Cannot read {self._path}: {e}") from e

    def run(self) -> None:
        step = self._chunk_size * self.channels
        chunk_s = self._chunk_size / self.sample_rate
        logger.info("Streaming %s (%d Hz, %d samples)", self._path, self.sample_rate, len(self._pcm))
        try:
            for start in range(0, len(self._pcm), step):
                if self._stop_event.is_set():
                    break
                chunk = AudioChunk(
                    pcm=self._pcm[start:start + step].copy(),
                    sample_rate=self.sample_rate,
                    timestamp_s=time.time(),
                )
                try:
                    self._sink(chunk)
                except QueueOverflowError:
                    logger.warning("Input queue is full, dropping file chunk")
                if self._realtime:
                    self._stop_event.wait(chunk_s)
        except Exception as e:
            logger.error(f"Error streaming {self._path}: {e}", exc_info=True)
            self._on_error(AudioSourceError(f"File source failed: {e}"))
        finally:
            self.finished.set()
            logger.info("File source finished")

    def stop(self) -> None:
        self._stop_event.set()

    def is_capturing(self) -> bool:
        return self.is_alive() and not self._stop_event.is_set()
