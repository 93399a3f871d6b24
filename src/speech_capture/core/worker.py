"""Reusable worker thread utilities."""

from __future__ import annotations

import queue
import threading
from typing import Generic, TypeVar

from .shutdown import StopSignal

T = TypeVar("T")


class CycleWorker(threading.Thread, Generic[T]):
    """
    Base class for a periodic queue-draining worker thread.

    Every `interval_s` the worker drains at most `max_items_per_cycle` items from its
    input queue and hands each to `handle(item)`. A cycle always runs to completion;
    the stop signal is only observed between cycles.

    Subclasses implement `handle(item)` and optionally `cleanup()`, which runs on the
    worker thread after the loop exits.
    """

    def __init__(
        self,
        *,
        name: str,
        stop_signal: StopSignal,
        input_queue: "queue.Queue[T]",
        interval_s: float = 0.1,
        max_items_per_cycle: int = 1,
        daemon: bool = True,
    ):
        super().__init__(name=name, daemon=daemon)
        self._stop_signal = stop_signal
        self._input_queue = input_queue
        self._interval_s = interval_s
        self._max_items_per_cycle = max_items_per_cycle
        self.cycles = 0

    def run(self) -> None:
        try:
            while not self._stop_signal.is_set():
                self.run_cycle()
                self._stop_signal.wait(self._interval_s)
        finally:
            self.cleanup()

    def run_cycle(self) -> int:
        """Drain and handle up to `max_items_per_cycle` items. Returns the number handled."""
        self.cycles += 1
        handled = 0
        while handled < self._max_items_per_cycle:
            try:
                item = self._input_queue.get_nowait()
            except queue.Empty:
                break

            try:
                self.handle(item)
            finally:
                self._input_queue.task_done()
            handled += 1
        return handled

    def handle(self, item: T) -> None:
        raise NotImplementedError

    def cleanup(self) -> None:
        """Hook executed on the worker thread when the loop exits."""
