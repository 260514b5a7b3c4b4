"""
Audio decoding and waveform computation.

Turns raw audio into 8-bit waveform data: either from an ``AudioBuffer``
that has already been decoded, or from encoded audio bytes (WAV, FLAC,
OGG, MP3 where libsndfile supports it) decoded through an
``AudioDecodeContext``.

Each output pixel holds the minimum and maximum sample of ``scale``
consecutive frames, scaled to the signed 8-bit range.

Example:
    >>> context = AudioDecodeContext()
    >>> def done(error, waveform):
    ...     print(error or waveform)
    >>> create_from_audio({
    ...     "decode_context": context,
    ...     "array_buffer": Path("track.wav").read_bytes(),
    ...     "split_channels": False,
    ...     "scale": 512,
    ... }, done)
"""

import io
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import numpy as np
import soundfile as sf

from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.errors import AudioDecodeError, WaveformBuilderError

logger = logging.getLogger(__name__)

INT8_MAX = 127
INT8_MIN = -128

WaveformCallback = Callable[[Optional[BaseException], Optional[WaveformData]], None]


@dataclass
class AudioBuffer:
    """
    Decoded PCM audio.

    Attributes:
        samples: Float samples in [-1.0, 1.0], shaped (frames, channels)
        sample_rate: Sample rate in Hz
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        samples = np.asarray(self.samples, dtype=np.float32)
        if samples.ndim == 1:
            samples = samples.reshape(-1, 1)
        self.samples = samples

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def frames(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.frames / self.sample_rate if self.sample_rate else 0.0


class AudioDecodeContext:
    """
    Decodes encoded audio bytes into an ``AudioBuffer`` using soundfile.

    Args:
        dtype: Sample type requested from libsndfile
    """

    def __init__(self, dtype: str = "float32") -> None:
        self.dtype = dtype

    def decode(self, data: bytes) -> AudioBuffer:
        """
        Decode an in-memory audio file.

        Args:
            data: Encoded audio file contents

        Returns:
            AudioBuffer with samples shaped (frames, channels)

        Raises:
            AudioDecodeError: If libsndfile cannot read the data
        """
        if not data:
            raise AudioDecodeError("Audio data is empty")

        try:
            samples, sample_rate = sf.read(
                io.BytesIO(data), dtype=self.dtype, always_2d=True
            )
        except (sf.LibsndfileError, RuntimeError, TypeError) as exc:
            raise AudioDecodeError(
                f"Unable to decode audio data: {exc}", cause=exc
            ) from exc

        return AudioBuffer(samples=samples, sample_rate=int(sample_rate))


def compute_waveform(buffer: AudioBuffer, scale: int, split_channels: bool = False) -> WaveformData:
    """
    Summarise an audio buffer as 8-bit min/max waveform data.

    Args:
        buffer: Decoded audio
        scale: Number of frames per output pixel
        split_channels: Keep channels separate instead of mixing to mono

    Returns:
        Version 2, 8-bit WaveformData

    Raises:
        AudioDecodeError: If the scale or buffer is unusable
    """
    if scale <= 0:
        raise AudioDecodeError(f"Invalid scale: {scale}", context={"scale": scale})
    if buffer.sample_rate <= 0:
        raise AudioDecodeError(
            f"Invalid sample rate: {buffer.sample_rate}",
            context={"sample_rate": buffer.sample_rate},
        )

    samples = buffer.samples
    if not split_channels:
        samples = samples.mean(axis=1, keepdims=True)

    frames, channels = samples.shape
    length = -(-frames // scale)  # ceil

    # Pad the final partial block with zeros so every pixel covers ``scale`` frames
    padded = np.zeros((length * scale, channels), dtype=np.float32)
    padded[:frames] = samples
    blocks = padded.reshape(length, scale, channels)

    mins = np.floor(blocks.min(axis=1) * INT8_MAX)
    maxs = np.floor(blocks.max(axis=1) * INT8_MAX)

    data = np.stack([mins, maxs], axis=-1)
    data = np.clip(data, INT8_MIN, INT8_MAX).astype(np.int16)

    return WaveformData(data, buffer.sample_rate, scale, bits=8, version=2)


def create_from_audio(options: Dict[str, Any], callback: WaveformCallback) -> None:
    """
    Compute waveform data from audio and report through ``callback``.

    Options (one of the two source forms):
        audio_buffer: AudioBuffer that is already decoded
        decode_context + array_buffer: decoder and encoded audio bytes

    Common options:
        split_channels: Keep channels separate (default False)
        scale: Frames per pixel (default 512)
        disable_worker: Accepted for parity with background decoders;
            decoding always runs on the calling thread

    Args:
        options: Decode options
        callback: Called once with ``(error, None)`` or ``(None, waveform)``
    """
    split_channels = bool(options.get("split_channels", False))
    scale = int(options.get("scale", 512))

    try:
        buffer = options.get("audio_buffer")
        if buffer is None:
            context = options.get("decode_context")
            if context is None:
                raise AudioDecodeError("No audio buffer or decode context supplied")
            buffer = context.decode(options.get("array_buffer") or b"")

        if not isinstance(buffer, AudioBuffer):
            raise AudioDecodeError(
                "audio_buffer must be an AudioBuffer",
                context={"type": type(buffer).__name__},
            )

        waveform = compute_waveform(buffer, scale, split_channels=split_channels)
    except WaveformBuilderError as exc:
        if not isinstance(exc, AudioDecodeError):
            exc = AudioDecodeError(exc.message, cause=exc)
        callback(exc, None)
        return
    except (ValueError, MemoryError) as exc:
        callback(AudioDecodeError(f"Unable to compute waveform: {exc}", cause=exc), None)
        return

    logger.debug(
        "Computed waveform from %d frame(s): %r",
        buffer.frames,
        waveform,
    )
    callback(None, waveform)
