"""Microphone audio capture."""

from __future__ import annotations

import threading
import time
import logging
from typing import Optional

import numpy as np
import sounddevice as sd

from ...core.errors import AudioSourceError, QueueOverflowError
from .types import AudioChunk, ChunkSink, ErrorSink

logger = logging.getLogger(__name__)


class Mic(threading.Thread):
    """
    Continuously captures microphone audio and pushes AudioChunk into the sink.

    Important: keep callback lightweight; no detection here.
    """

    def __init__(
        self,
        sink: ChunkSink,
        on_error: ErrorSink,
        sample_rate: int = 16000,
        channels: int = 1,
        blocksize: int = 16384,
        device: Optional[int] = None,
    ):
        super().__init__(name="MicThread", daemon=True)
        self._sink = sink
        self._on_error = on_error
        self._blocksize = blocksize
        self._device = device
        self._stop_event = threading.Event()
        self._running = False
        self.sample_rate: Optional[int] = sample_rate
        self.channels = channels

    def run(self) -> None:
        """Microphone capture loop."""

        def audio_callback(indata, frames, time_info, status):
            """Callback function for sounddevice audio stream."""
            if status:
                logger.warning(f"Audio callback status: {status}")

            # indata shape is (frames, channels); C-order flattening interleaves channels
            pcm = np.ascontiguousarray(indata, dtype=np.float32).reshape(-1)

            chunk = AudioChunk(
                pcm=pcm,
                sample_rate=self.sample_rate,
                timestamp_s=time.time(),
            )

            try:
                self._sink(chunk)
            except QueueOverflowError:
                logger.warning("Input queue is full, dropping audio chunk")

        try:
            with sd.InputStream(
                callback=audio_callback,
                samplerate=self.sample_rate,
                channels=self.channels,
                blocksize=self._blocksize,
                dtype="float32",
                device=self._device,
            ):
                self._running = True
                logger.info("Microphone capture started (%d Hz, blocksize %d)", self.sample_rate, self._blocksize)
                while not self._stop_event.is_set():
                    time.sleep(0.1)
        except Exception as e:
            logger.error(f"Error in microphone capture: {e}", exc_info=True)
            self._on_error(AudioSourceError(f"Microphone capture failed: {e}"))
        finally:
            self._running = False
            logger.info("Microphone capture stopped")

    def stop(self) -> None:
        self._stop_event.set()

    def is_capturing(self) -> bool:
        return self._running and not self._stop_event.is_set()


def list_input_devices() -> list[dict]:
    """Return sounddevice input devices as dicts with an added `index` key."""
    devices = []
    for index, info in enumerate(sd.query_devices()):
        if info.get("max_input_channels", 0) > 0:
            devices.append({"index": index, **dict(info)})
    return devices
