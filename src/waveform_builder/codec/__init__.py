"""
Codec module for waveform data and audio decoding.

Provides parsing of precomputed audiowaveform data (binary and JSON) and
computation of waveform data from raw audio.
"""

from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.codec.audio import (
    AudioBuffer,
    AudioDecodeContext,
    compute_waveform,
    create_from_audio,
)

__all__ = [
    "WaveformData",
    "AudioBuffer",
    "AudioDecodeContext",
    "compute_waveform",
    "create_from_audio",
]
