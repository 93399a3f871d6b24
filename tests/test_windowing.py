"""Tests for analysis window scheduling."""

import numpy as np
import pytest

from speech_capture.audio.detection import SpeechLengthLimits, WindowScheduler, round_half_up


class TestRoundHalfUp:
    @pytest.mark.parametrize("value, expected", [
        (2.5, 3),
        (3.5, 4),
        (4.0, 4),
        (4.49, 4),
        (0.5, 1),
    ])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestSpeechLengthLimits:
    def test_default_limits(self):
        limits = SpeechLengthLimits.from_ms(
            min_length_ms=500,
            max_length_ms=10000,
            allowed_delay_ms=400,
            analysis_chunk_length_ms=100,
        )
        assert limits == SpeechLengthLimits(min_chunks=5, max_chunks=100, allowed_delay_chunks=4)

    def test_half_rounds_up(self):
        limits = SpeechLengthLimits.from_ms(
            min_length_ms=250,
            max_length_ms=1050,
            allowed_delay_ms=150,
            analysis_chunk_length_ms=100,
        )
        assert limits.min_chunks == 3
        assert limits.max_chunks == 11
        assert limits.allowed_delay_chunks == 2


class TestWindowScheduler:
    @pytest.fixture
    def scheduler(self):
        return WindowScheduler(sample_rate=16000, analysis_chunk_length_ms=100)

    def test_chunk_shorter_than_window(self, scheduler):
        geometry = scheduler.configure(1024)

        assert geometry.windows_per_chunk == 1
        assert geometry.window_size == 1024
        assert geometry.chunk_length_s == pytest.approx(0.064)

    def test_default_buffer_size(self, scheduler):
        geometry = scheduler.configure(16384)

        # 1024 ms -> ceil(10.24) windows
        assert geometry.windows_per_chunk == 11
        assert geometry.window_size == 1490
        assert geometry.window_length_s == pytest.approx(1.024 / 11)

    def test_exact_multiple(self, scheduler):
        geometry = scheduler.configure(16000)
        assert geometry.windows_per_chunk == 10
        assert geometry.window_size == 1600

    def test_windows_cover_chunk_exactly(self, scheduler):
        chunk = np.arange(16384, dtype=np.float32)
        scheduler.configure(len(chunk))

        windows = list(scheduler.windows(chunk))

        assert len(windows) == 11
        assert all(len(w) == 1490 for w in windows[:-1])
        assert len(windows[-1]) == 16384 - 10 * 1490
        np.testing.assert_array_equal(np.concatenate(windows), chunk)

    def test_trailing_windows_past_end_are_skipped(self):
        # 5 samples at 1.5 samples per window: 4 windows of 2 samples, the last starts past the end
        scheduler = WindowScheduler(sample_rate=500, analysis_chunk_length_ms=3)
        geometry = scheduler.configure(5)
        assert geometry.windows_per_chunk == 4
        assert geometry.window_size == 2

        windows = list(scheduler.windows(np.ones(5, dtype=np.float32)))
        assert [len(w) for w in windows] == [2, 2, 1]

    def test_needs_configure(self, scheduler):
        assert scheduler.needs_configure(1024)
        scheduler.configure(1024)
        assert not scheduler.needs_configure(1024)
        assert scheduler.needs_configure(2048)

    def test_reconfigure_on_new_size(self, scheduler):
        scheduler.configure(1024)
        geometry = scheduler.configure(2048)

        assert geometry.chunk_size == 2048
        assert geometry.windows_per_chunk == 2
        assert geometry.window_size == 1024

    def test_unconfigured_size_raises(self, scheduler):
        scheduler.configure(1024)
        with pytest.raises(ValueError):
            list(scheduler.windows(np.zeros(2048, dtype=np.float32)))

    def test_invalid_chunk_size(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.configure(0)

    def test_invalid_parameters(self):
        with pytest.raises(ValueError):
            WindowScheduler(sample_rate=0, analysis_chunk_length_ms=100)


class TestStereoWindowScheduler:
    @pytest.fixture
    def scheduler(self):
        return WindowScheduler(sample_rate=16000, analysis_chunk_length_ms=100, channels=2)

    def test_duration_counts_frames(self, scheduler):
        # 3200 interleaved samples are 1600 frames, one 100 ms window
        geometry = scheduler.configure(3200)

        assert geometry.windows_per_chunk == 1
        assert geometry.window_size == 3200
        assert geometry.chunk_length_s == pytest.approx(0.1)

    def test_windows_hold_whole_frames(self, scheduler):
        chunk = np.arange(32768, dtype=np.float32)
        geometry = scheduler.configure(len(chunk))

        assert geometry.windows_per_chunk == 11
        assert geometry.window_size == 2980

        windows = list(scheduler.windows(chunk))
        assert all(len(w) % 2 == 0 for w in windows)
        np.testing.assert_array_equal(np.concatenate(windows), chunk)

    def test_chunk_smaller_than_a_frame(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.configure(1)

    def test_invalid_channels(self):
        with pytest.raises(ValueError):
            WindowScheduler(sample_rate=16000, analysis_chunk_length_ms=100, channels=0)
