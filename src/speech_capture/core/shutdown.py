import threading
from typing import Optional, Protocol


class StopSignal(Protocol):
    """Protocol for stop signals observed by worker threads."""

    def is_set(self) -> bool: ...

    def wait(self, timeout: Optional[float] = None) -> bool: ...


class GracefulShutdown:
    def __init__(self):
        self.stop_event = threading.Event()

    def stop(self):
        self.stop_event.set()

    def is_set(self) -> bool:
        return self.stop_event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stopped or timeout elapses. Returns True if stopped."""
        return self.stop_event.wait(timeout)
