"""Bounded FIFO between audio sources and the capture loop."""

from __future__ import annotations

import logging
import queue
from enum import Enum

from ...core.errors import QueueOverflowError
from .types import AudioChunk

logger = logging.getLogger(__name__)


class OverflowPolicy(str, Enum):
    DROP_OLDEST = "drop_oldest"
    DROP_NEWEST = "drop_newest"
    RAISE = "raise"


class ChunkQueue(queue.Queue):
    """
    Single-producer/single-consumer chunk queue with an explicit overflow policy.

    `maxsize=0` makes the queue unbounded.
    """

    def __init__(self, maxsize: int = 0, policy: OverflowPolicy = OverflowPolicy.DROP_OLDEST):
        super().__init__(maxsize=maxsize)
        self.policy = policy
        self.dropped = 0
        self.pushed_samples = 0

    def push(self, chunk: AudioChunk) -> bool:
        """Enqueue without blocking. Returns False if a chunk had to be dropped."""
        try:
            self.put_nowait(chunk)
            self.pushed_samples += len(chunk.pcm)
            return True
        except queue.Full:
            pass

        if self.policy == OverflowPolicy.RAISE:
            raise QueueOverflowError(f"Input queue full ({self.maxsize} chunks)")

        self.dropped += 1
        if self.policy == OverflowPolicy.DROP_NEWEST:
            logger.warning("Input queue full, dropping newest chunk")
            return False

        logger.warning("Input queue full, dropping oldest chunk")
        try:
            self.get_nowait()
            self.task_done()
        except queue.Empty:
            # Consumer drained it between checks
            pass
        self.put_nowait(chunk)
        self.pushed_samples += len(chunk.pcm)
        return False

    def clear(self) -> None:
        while True:
            try:
                self.get_nowait()
            except queue.Empty:
                return
            self.task_done()
