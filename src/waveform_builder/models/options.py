"""
Pydantic models for waveform acquisition options.

Defines the three mutually exclusive waveform sources (remote URLs, local
data, audio to decode), the shared acquisition options, and the response
format capability descriptor.

Example:
    >>> options = AcquisitionOptions(
    ...     remote=RemoteSource(binary_url="https://cdn.example.com/track.dat"),
    ...     zoom_levels=[256, 512, 1024],
    ... )
    >>> options.configured_sources()
    ['remote']
"""

from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator


class ResponseFormat(str, Enum):
    """Response body formats a waveform fetch can request."""
    BINARY = "binary"
    JSON = "json"


# Selection order when a remote source offers several URLs
RESPONSE_FORMAT_PRIORITY: Tuple[ResponseFormat, ...] = (
    ResponseFormat.BINARY,
    ResponseFormat.JSON,
)


class FormatCapabilities(BaseModel):
    """
    Response formats the current environment can consume.

    Decided once (usually from configuration) and injected into the
    builder, rather than checked on every fetch.
    """
    model_config = ConfigDict(frozen=True)

    formats: Tuple[ResponseFormat, ...] = RESPONSE_FORMAT_PRIORITY

    def supports(self, response_format: ResponseFormat) -> bool:
        """Check whether ``response_format`` can be consumed."""
        return response_format in self.formats


class RemoteSource(BaseModel):
    """
    Precomputed waveform data available over HTTP.

    Attributes:
        binary_url: URL of audiowaveform binary (.dat) data
        json_url: URL of audiowaveform JSON data
    """
    binary_url: Optional[str] = None
    json_url: Optional[str] = None

    def url_for(self, response_format: ResponseFormat) -> Optional[str]:
        """Get the URL configured for ``response_format``, if any."""
        if response_format == ResponseFormat.BINARY:
            return self.binary_url or None
        return self.json_url or None


class LocalSource(BaseModel):
    """
    Precomputed waveform data already held in memory.

    Payload types are checked when the data is used, not here, so that
    unusable payloads are reported through the acquisition callback.

    Attributes:
        json_data: Parsed JSON waveform data (alias ``json``)
        binary: Binary waveform data (bytes, bytearray or memoryview)
    """
    model_config = ConfigDict(populate_by_name=True)

    json_data: Any = Field(default=None, alias="json")
    binary: Any = None


class AudioSource(BaseModel):
    """
    Audio to compute waveform data from.

    Either ``audio_buffer`` (already decoded) or a ``media_element`` whose
    source URL is fetched and decoded with ``decode_context``.

    Attributes:
        audio_buffer: Decoded AudioBuffer
        decode_context: AudioDecodeContext used for fetched audio bytes
        media_element: MediaElement providing the media URL
        multi_channel: Produce one waveform channel per audio channel
        scale: Frames per pixel; replaced by the first zoom level
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    audio_buffer: Any = None
    decode_context: Any = None
    media_element: Any = None
    multi_channel: bool = False
    scale: PositiveInt = 512


class AcquisitionOptions(BaseModel):
    """
    Options for ``WaveformBuilder.acquire()``.

    Exactly one of ``remote``, ``local`` or ``audio`` must be set.

    Attributes:
        remote: Remote waveform data URLs
        local: In-memory waveform data
        audio: Audio to decode
        audio_context: Deprecated, use ``audio=AudioSource(decode_context=...)``
        with_credentials: Send cookies/auth with HTTP requests
        zoom_levels: Zoom levels in samples per pixel; the first is the
            scale used when computing waveform data from audio.
            None means the configured default.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    remote: Optional[RemoteSource] = None
    local: Optional[LocalSource] = None
    audio: Optional[AudioSource] = None
    audio_context: Any = None
    with_credentials: bool = False
    zoom_levels: Optional[List[PositiveInt]] = None

    @field_validator("zoom_levels")
    @classmethod
    def validate_zoom_levels(cls, v: Optional[List[int]]) -> Optional[List[int]]:
        """Validate that zoom_levels, when given, is non-empty."""
        if v is not None and not v:
            raise ValueError("zoom_levels must contain at least one level")
        return v

    def configured_sources(self) -> List[str]:
        """Names of the waveform sources that are set."""
        sources = []
        if self.remote is not None:
            sources.append("remote")
        if self.local is not None:
            sources.append("local")
        if self.audio is not None or self.audio_context is not None:
            sources.append("audio")
        return sources
