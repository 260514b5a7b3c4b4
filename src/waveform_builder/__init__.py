"""
Waveform Builder

Obtains waveform summary data for an audio asset by fetching precomputed
audiowaveform data, decoding it from memory, or computing it from audio.
"""

__version__ = "0.1.0"
__author__ = "Waveform Builder Team"

from waveform_builder.acquisition import Acquisition
from waveform_builder.builder import WaveformBuilder
from waveform_builder.codec import AudioBuffer, AudioDecodeContext, WaveformData
from waveform_builder.config import Config
from waveform_builder.models import (
    AcquisitionOptions,
    AudioSource,
    FormatCapabilities,
    LocalSource,
    MediaElement,
    RemoteSource,
    ResponseFormat,
)

__all__ = [
    "Acquisition",
    "AcquisitionOptions",
    "AudioBuffer",
    "AudioDecodeContext",
    "AudioSource",
    "Config",
    "FormatCapabilities",
    "LocalSource",
    "MediaElement",
    "RemoteSource",
    "ResponseFormat",
    "WaveformBuilder",
    "WaveformData",
    "__version__",
]
