"""
Data models for acquisition options and host media.

Provides Pydantic models for the waveform sources and shared acquisition
options, plus the media element reference used by the audio decode path.
"""

from waveform_builder.models.media import CANPLAY, MediaElement
from waveform_builder.models.options import (
    AcquisitionOptions,
    AudioSource,
    FormatCapabilities,
    LocalSource,
    RemoteSource,
    ResponseFormat,
)

__all__ = [
    "CANPLAY",
    "MediaElement",
    "AcquisitionOptions",
    "AudioSource",
    "FormatCapabilities",
    "LocalSource",
    "RemoteSource",
    "ResponseFormat",
]
