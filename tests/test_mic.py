"""Tests for microphone audio capture."""

import pytest
import time
import numpy as np
from unittest.mock import Mock, patch, MagicMock

try:
    from speech_capture.audio.input.mic import Mic, list_input_devices
except (ImportError, OSError):
    pytest.skip("sounddevice/PortAudio not available", allow_module_level=True)

from speech_capture.audio.input import AudioChunk, ChunkQueue, OverflowPolicy
from speech_capture.core.errors import AudioSourceError


def mock_stream_context():
    context = MagicMock()
    context.__enter__ = Mock(return_value=MagicMock())
    context.__exit__ = Mock(return_value=False)
    return context


class TestMic:
    """Test cases for Mic class."""

    @pytest.fixture
    def chunks_queue(self):
        """Queue for audio chunks."""
        return ChunkQueue(maxsize=100)

    @pytest.fixture
    def on_error(self):
        return Mock()

    def test_mic_pushes_audio_chunks(self, chunks_queue, on_error):
        """Test that Mic wraps callback blocks into AudioChunk and pushes them to the sink."""
        mic = Mic(chunks_queue.push, on_error, sample_rate=16000, blocksize=1600)

        captured_callback = None
        context = mock_stream_context()

        def capture_callback(*args, **kwargs):
            nonlocal captured_callback
            captured_callback = kwargs.get('callback') or (args[0] if args else None)
            return context

        with patch('speech_capture.audio.input.mic.sd.InputStream', side_effect=capture_callback):
            mic.start()
            time.sleep(0.3)

            assert captured_callback is not None, "sd.InputStream should have been called with callback parameter"
            assert mic.is_capturing()

            mock_audio_data = np.random.randn(1600, 1).astype(np.float32)
            captured_callback(mock_audio_data, 1600, {}, None)

            chunk = chunks_queue.get_nowait()
            assert isinstance(chunk, AudioChunk)
            assert chunk.sample_rate == 16000
            assert chunk.pcm.dtype == np.float32
            assert chunk.pcm.shape == (1600,)

            mic.stop()
            mic.join(timeout=1.0)

        assert not mic.is_alive()
        assert not mic.is_capturing()
        on_error.assert_not_called()

    def test_stereo_blocks_are_interleaved(self, chunks_queue, on_error):
        mic = Mic(chunks_queue.push, on_error, channels=2)
        context = mock_stream_context()

        with patch('speech_capture.audio.input.mic.sd.InputStream', return_value=context) as mock_input_stream:
            mic.start()
            time.sleep(0.2)

            callback = mock_input_stream.call_args[1]['callback']
            block = np.array([[0.1, -0.1], [0.2, -0.2]], dtype=np.float32)
            callback(block, 2, {}, None)

            mic.stop()
            mic.join(timeout=1.0)

        chunk = chunks_queue.get_nowait()
        np.testing.assert_allclose(chunk.pcm, [0.1, -0.1, 0.2, -0.2])

    def test_mic_handles_full_queue(self, on_error):
        """Test that Mic handles a full queue without blocking or raising."""
        chunks_queue = ChunkQueue(maxsize=1, policy=OverflowPolicy.RAISE)
        mic = Mic(chunks_queue.push, on_error)
        context = mock_stream_context()

        with patch('speech_capture.audio.input.mic.sd.InputStream', return_value=context) as mock_input_stream:
            mic.start()
            time.sleep(0.2)

            callback = mock_input_stream.call_args[1]['callback']
            for _ in range(3):
                callback(np.random.randn(320, 1).astype(np.float32), 320, {}, None)

            mic.stop()
            mic.join(timeout=1.0)

        assert not mic.is_alive()
        assert chunks_queue.qsize() == 1
        on_error.assert_not_called()

    def test_mic_uses_configured_format(self, chunks_queue, on_error):
        """Test that Mic passes its parameters to the input stream."""
        mic = Mic(chunks_queue.push, on_error, sample_rate=44100, channels=1, blocksize=4096, device=3)
        context = mock_stream_context()

        with patch('speech_capture.audio.input.mic.sd.InputStream', return_value=context) as mock_input_stream:
            mic.start()
            time.sleep(0.2)
            mic.stop()
            mic.join(timeout=1.0)

        call_kwargs = mock_input_stream.call_args[1]
        assert call_kwargs['samplerate'] == 44100
        assert call_kwargs['channels'] == 1
        assert call_kwargs['blocksize'] == 4096
        assert call_kwargs['device'] == 3
        assert call_kwargs['dtype'] == "float32"

    def test_stream_failure_reported(self, chunks_queue, on_error):
        mic = Mic(chunks_queue.push, on_error)

        with patch('speech_capture.audio.input.mic.sd.InputStream', side_effect=RuntimeError("no device")):
            mic.start()
            mic.join(timeout=1.0)

        on_error.assert_called_once()
        error = on_error.call_args[0][0]
        assert isinstance(error, AudioSourceError)
        assert not mic.is_capturing()


class TestListInputDevices:
    def test_only_input_devices(self):
        devices = [
            {"name": "Speakers", "max_input_channels": 0, "default_samplerate": 48000.0},
            {"name": "USB Mic", "max_input_channels": 1, "default_samplerate": 16000.0},
        ]
        with patch('speech_capture.audio.input.mic.sd.query_devices', return_value=devices):
            result = list_input_devices()

        assert result == [{"index": 1, "name": "USB Mic", "max_input_channels": 1, "default_samplerate": 16000.0}]
