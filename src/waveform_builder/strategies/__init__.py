"""
Waveform acquisition strategies.

Provides the three mutually exclusive ways of obtaining waveform data:
fetching precomputed data, loading local precomputed data, and computing
it from audio.
"""

from waveform_builder.strategies.audio import AudioWaveformDecoder
from waveform_builder.strategies.base import check_supported
from waveform_builder.strategies.local import LocalWaveformLoader
from waveform_builder.strategies.remote import RemoteWaveformFetcher

__all__ = [
    "AudioWaveformDecoder",
    "LocalWaveformLoader",
    "RemoteWaveformFetcher",
    "check_supported",
]
