import os
import time

import numpy as np
import pytest

SAMPLE_RATE = 16000
WINDOW = 1600  # 100 ms at 16 kHz


def tone_at(level_db, n=WINDOW):
    """Square wave whose RMS level is exactly `level_db`."""
    amplitude = 10 ** (level_db / 20.0)
    signs = np.where(np.arange(n) % 2 == 0, 1.0, -1.0)
    return (amplitude * signs).astype(np.float32)


def windows_at(*levels_db, n=WINDOW):
    """One chunk made of consecutive windows at the given levels."""
    return np.concatenate([tone_at(level, n) for level in levels_db])


def wait_for(predicate, timeout=5.0, interval=0.01):
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def clean_env():
    """Remove SPEECH_CAPTURE_* variables for the duration of a test."""
    original_env = os.environ.copy()
    for key in list(os.environ):
        if key.startswith("SPEECH_CAPTURE_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)
