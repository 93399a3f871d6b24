"""Tests for the periodic queue worker."""

import queue

import pytest

from speech_capture.core.shutdown import GracefulShutdown
from speech_capture.core.worker import CycleWorker

from .conftest import wait_for


class RecordingWorker(CycleWorker[int]):
    def __init__(self, stop_signal, input_queue, **kwargs):
        super().__init__(name="RecordingWorker", stop_signal=stop_signal, input_queue=input_queue, **kwargs)
        self.handled = []
        self.cleaned_up = False

    def handle(self, item):
        self.handled.append(item)

    def cleanup(self):
        self.cleaned_up = True


class TestCycleWorker:
    def test_cycle_drains_at_most_max_items(self):
        q = queue.Queue()
        for i in range(5):
            q.put(i)
        worker = RecordingWorker(GracefulShutdown(), q, max_items_per_cycle=2)

        assert worker.run_cycle() == 2
        assert worker.run_cycle() == 2
        assert worker.run_cycle() == 1
        assert worker.run_cycle() == 0

        assert worker.handled == [0, 1, 2, 3, 4]
        assert worker.cycles == 4

    def test_task_done_even_if_handle_fails(self):
        q = queue.Queue()
        q.put(1)

        class FailingWorker(RecordingWorker):
            def handle(self, item):
                raise RuntimeError("boom")

        worker = FailingWorker(GracefulShutdown(), q)
        with pytest.raises(RuntimeError):
            worker.run_cycle()

        q.join()

    def test_thread_runs_until_stopped(self):
        q = queue.Queue()
        stop_signal = GracefulShutdown()
        worker = RecordingWorker(stop_signal, q, interval_s=0.01)
        worker.start()

        q.put("a")
        q.put("b")
        assert wait_for(lambda: worker.handled == ["a", "b"])

        stop_signal.stop()
        worker.join(timeout=1.0)

        assert not worker.is_alive()
        assert worker.cleaned_up
