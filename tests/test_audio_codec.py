"""
Tests for audio decoding and waveform computation.

Covers:
- AudioBuffer normalisation of sample arrays
- AudioDecodeContext decoding WAV bytes through soundfile
- compute_waveform min/max summarisation, mixdown and channel splitting
- create_from_audio callback contract for both source forms
"""

import io
from unittest.mock import MagicMock

import numpy as np
import pytest
import soundfile as sf

from waveform_builder.codec.audio import (
    AudioBuffer,
    AudioDecodeContext,
    compute_waveform,
    create_from_audio,
)
from waveform_builder.errors import AudioDecodeError


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def _make_wav_bytes(samples: np.ndarray, sample_rate: int = 8000) -> bytes:
    """Encode float samples as an in-memory 16-bit WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    return buffer.getvalue()


def _ramp(frames: int, channels: int = 1) -> np.ndarray:
    ramp = np.linspace(-1.0, 1.0, frames, dtype=np.float32)
    if channels == 1:
        return ramp
    return np.stack([ramp * (c + 1) / channels for c in range(channels)], axis=1)


# ---------------------------------------------------------------------------
#  AudioBuffer
# ---------------------------------------------------------------------------

class TestAudioBuffer:
    """Tests for the AudioBuffer container."""

    def test_mono_array_becomes_2d(self):
        """A 1-D array is treated as a single channel."""
        buffer = AudioBuffer(samples=np.zeros(100), sample_rate=1000)

        assert buffer.samples.shape == (100, 1)
        assert buffer.samples.dtype == np.float32
        assert buffer.channels == 1
        assert buffer.frames == 100
        assert buffer.duration == pytest.approx(0.1)

    def test_stereo_array(self):
        """A (frames, 2) array has two channels."""
        buffer = AudioBuffer(samples=np.zeros((50, 2)), sample_rate=100)
        assert buffer.channels == 2
        assert buffer.duration == pytest.approx(0.5)


# ---------------------------------------------------------------------------
#  AudioDecodeContext
# ---------------------------------------------------------------------------

class TestAudioDecodeContext:
    """Tests for decoding encoded audio bytes."""

    def test_decodes_wav(self):
        """WAV bytes decode to an AudioBuffer."""
        data = _make_wav_bytes(_ramp(800, channels=2), sample_rate=8000)
        buffer = AudioDecodeContext().decode(data)

        assert buffer.sample_rate == 8000
        assert buffer.channels == 2
        assert buffer.frames == 800

    def test_empty_data_raises(self):
        """Empty input is rejected before decoding."""
        with pytest.raises(AudioDecodeError, match="empty"):
            AudioDecodeContext().decode(b"")

    def test_garbage_raises(self):
        """Bytes libsndfile cannot read raise AudioDecodeError."""
        with pytest.raises(AudioDecodeError, match="Unable to decode audio data"):
            AudioDecodeContext().decode(b"this is not audio at all" * 10)


# ---------------------------------------------------------------------------
#  compute_waveform
# ---------------------------------------------------------------------------

class TestComputeWaveform:
    """Tests for min/max waveform computation."""

    def test_output_format(self):
        """Output is version 2, 8-bit data at the requested scale."""
        buffer = AudioBuffer(samples=_ramp(1000), sample_rate=8000)
        waveform = compute_waveform(buffer, scale=100)

        assert waveform.bits == 8
        assert waveform.version == 2
        assert waveform.scale == 100
        assert waveform.sample_rate == 8000
        assert waveform.length == 10

    def test_partial_final_block_is_kept(self):
        """Frames that do not fill a block still produce a pixel."""
        buffer = AudioBuffer(samples=np.zeros(1050), sample_rate=8000)
        assert compute_waveform(buffer, scale=100).length == 11

    def test_min_max_scaled_to_int8(self):
        """Full-scale samples map to the 8-bit range."""
        samples = np.array([1.0, -1.0, 0.5, -0.5], dtype=np.float32)
        waveform = compute_waveform(AudioBuffer(samples=samples, sample_rate=4), scale=2)
        mins, maxs = waveform.channel(0)

        assert mins.tolist() == [-127, -64]
        assert maxs.tolist() == [127, 63]

    def test_mixdown_to_mono(self):
        """Without split_channels the channels are averaged."""
        samples = np.array([[1.0, 0.0], [1.0, 0.0]], dtype=np.float32)
        waveform = compute_waveform(AudioBuffer(samples=samples, sample_rate=2), scale=2)

        assert waveform.channels == 1
        assert waveform.channel(0)[1].tolist() == [63]

    def test_split_channels(self):
        """With split_channels each audio channel gets its own waveform channel."""
        buffer = AudioBuffer(samples=_ramp(400, channels=2), sample_rate=8000)
        waveform = compute_waveform(buffer, scale=100, split_channels=True)
        assert waveform.channels == 2

    def test_invalid_scale_raises(self):
        """Scale must be positive."""
        buffer = AudioBuffer(samples=np.zeros(10), sample_rate=10)
        with pytest.raises(AudioDecodeError, match="scale"):
            compute_waveform(buffer, scale=0)

    def test_invalid_sample_rate_raises(self):
        """Sample rate must be positive."""
        buffer = AudioBuffer(samples=np.zeros(10), sample_rate=0)
        with pytest.raises(AudioDecodeError, match="sample rate"):
            compute_waveform(buffer, scale=2)


# ---------------------------------------------------------------------------
#  create_from_audio
# ---------------------------------------------------------------------------

class TestCreateFromAudio:
    """Tests for the callback-based audio decode entry point."""

    def test_from_audio_buffer(self):
        """A decoded buffer is summarised and reported."""
        callback = MagicMock()
        buffer = AudioBuffer(samples=_ramp(1024), sample_rate=8000)

        create_from_audio(
            {"audio_buffer": buffer, "split_channels": False, "scale": 256, "disable_worker": True},
            callback,
        )

        callback.assert_called_once()
        error, waveform = callback.call_args[0]
        assert error is None
        assert waveform.length == 4
        assert waveform.scale == 256

    def test_from_encoded_bytes(self):
        """Encoded bytes are decoded through the decode context."""
        callback = MagicMock()
        data = _make_wav_bytes(_ramp(800, channels=2))

        create_from_audio(
            {
                "decode_context": AudioDecodeContext(),
                "array_buffer": data,
                "split_channels": True,
                "scale": 200,
            },
            callback,
        )

        error, waveform = callback.call_args[0]
        assert error is None
        assert waveform.channels == 2
        assert waveform.length == 4

    def test_decode_failure_reported(self):
        """Undecodable bytes are reported, not raised."""
        callback = MagicMock()

        create_from_audio(
            {"decode_context": AudioDecodeContext(), "array_buffer": b"nope" * 50, "scale": 10},
            callback,
        )

        error, waveform = callback.call_args[0]
        assert isinstance(error, AudioDecodeError)
        assert waveform is None

    def test_missing_source_reported(self):
        """Options without any audio source are reported as a decode error."""
        callback = MagicMock()
        create_from_audio({"scale": 10}, callback)

        error, _ = callback.call_args[0]
        assert isinstance(error, AudioDecodeError)

    def test_wrong_buffer_type_reported(self):
        """audio_buffer must be an AudioBuffer."""
        callback = MagicMock()
        create_from_audio({"audio_buffer": [0.0, 0.1], "scale": 10}, callback)

        error, _ = callback.call_args[0]
        assert isinstance(error, AudioDecodeError)
        assert "AudioBuffer" in str(error)
