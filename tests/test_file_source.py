"""Tests for WAV file and push audio sources."""

import wave

import numpy as np
import pytest
from unittest.mock import Mock

from speech_capture.audio.input import PushAudioSource, WavFileSource, read_wav
from speech_capture.core.errors import AudioSourceError


def write_wav(path, pcm16, sample_rate=16000, channels=1, sampwidth=2):
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sampwidth)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(np.asarray(pcm16).astype("<i2" if sampwidth == 2 else "u1").tobytes())
    return path


class TestReadWav:
    def test_samples_scaled_to_float(self, tmp_path):
        path = write_wav(tmp_path / "a.wav", [0, 16384, -32768], sample_rate=8000)

        pcm, rate, channels = read_wav(path)

        assert rate == 8000
        assert channels == 1
        assert pcm.dtype == np.float32
        np.testing.assert_allclose(pcm, [0.0, 0.5, -1.0])

    def test_only_16_bit(self, tmp_path):
        path = write_wav(tmp_path / "b.wav", [128, 129], sampwidth=1)

        with pytest.raises(AudioSourceError):
            read_wav(path)


class TestWavFileSource:
    def test_streams_all_chunks(self, tmp_path):
        path = write_wav(tmp_path / "speech.wav", np.arange(2500) % 100)
        chunks = []

        source = WavFileSource(chunks.append, Mock(), path, chunk_size=1000, realtime=False)
        source.start()

        assert source.finished.wait(2.0)
        source.join(timeout=1.0)
        assert source.sample_rate == 16000
        assert [len(c.pcm) for c in chunks] == [1000, 1000, 500]
        assert all(c.sample_rate == 16000 for c in chunks)
        np.testing.assert_allclose(
            np.concatenate([c.pcm for c in chunks]),
            (np.arange(2500) % 100) / 32768.0,
            rtol=1e-6,
        )

    def test_stereo_chunks_hold_whole_frames(self, tmp_path):
        path = write_wav(tmp_path / "stereo.wav", np.zeros(2000), channels=2)
        chunks = []

        source = WavFileSource(chunks.append, Mock(), path, chunk_size=400, realtime=False)
        source.start()
        assert source.finished.wait(2.0)

        assert source.channels == 2
        assert [len(c.pcm) for c in chunks] == [800, 800, 400]

    def test_stop_interrupts_realtime_playback(self, tmp_path):
        # Ten one-second chunks
        path = write_wav(tmp_path / "long.wav", np.zeros(160000))
        chunks = []

        source = WavFileSource(chunks.append, Mock(), path, chunk_size=16000, realtime=True)
        source.start()
        source.stop()

        assert source.finished.wait(2.0)
        assert len(chunks) <= 1
        assert not source.is_capturing()

    def test_missing_file(self, tmp_path):
        with pytest.raises(AudioSourceError):
            WavFileSource(Mock(), Mock(), tmp_path / "missing.wav")

    def test_sink_failure_reported(self, tmp_path):
        path = write_wav(tmp_path / "speech.wav", np.zeros(100))
        on_error = Mock()

        source = WavFileSource(Mock(side_effect=RuntimeError("sink broke")), on_error, path, realtime=False)
        source.start()
        assert source.finished.wait(2.0)

        on_error.assert_called_once()
        assert isinstance(on_error.call_args[0][0], AudioSourceError)


class TestPushAudioSource:
    def test_push_while_running(self):
        sink = Mock()
        source = PushAudioSource(sink, Mock(), sample_rate=22050)
        source.start()

        assert source.push([[0.1], [0.2]], timestamp_s=12.5)

        chunk = sink.call_args[0][0]
        assert chunk.sample_rate == 22050
        assert chunk.timestamp_s == 12.5
        assert chunk.pcm.dtype == np.float32
        assert chunk.pcm.shape == (2,)

    def test_push_when_stopped_is_ignored(self):
        sink = Mock()
        source = PushAudioSource(sink, Mock())

        assert source.push(np.zeros(10)) is False
        source.start()
        source.stop()
        assert source.push(np.zeros(10)) is False
        sink.assert_not_called()

    def test_fail_wraps_foreign_errors(self):
        on_error = Mock()
        source = PushAudioSource(Mock(), on_error)

        source.fail(ConnectionResetError("peer went away"))

        error = on_error.call_args[0][0]
        assert isinstance(error, AudioSourceError)
        assert "peer went away" in error.message
