"""
Waveform data codec for the audiowaveform binary and JSON formats.

Reads precomputed waveform summaries (min/max pairs per pixel and channel)
as produced by audiowaveform, and writes them back out.

Binary layout (little-endian):
    int32   version            1 or 2
    uint32  flags              bit 0 set = 8-bit samples, clear = 16-bit
    int32   sample_rate
    int32   samples_per_pixel
    uint32  length             number of min/max pairs per channel
    int32   channels           version 2 only
    data                       interleaved min, max per channel per pixel

JSON layout:
    {"version": 2, "channels": 1, "sample_rate": 44100,
     "samples_per_pixel": 512, "bits": 8, "length": 3,
     "data": [min, max, min, max, ...]}

Example:
    >>> waveform = WaveformData.create(Path("track.dat").read_bytes())
    >>> waveform.channels, waveform.bits
    (2, 8)
"""

import json
import struct
from typing import Any, Dict, Mapping, Tuple, Union

import numpy as np

from waveform_builder.errors import WaveformDataError

_HEADER_V1 = struct.Struct("<iIiiI")
_HEADER_CHANNELS = struct.Struct("<i")

FLAG_8_BIT = 0x1
SUPPORTED_VERSIONS = (1, 2)
SUPPORTED_BITS = (8, 16)

WaveformPayload = Union[bytes, bytearray, memoryview, Mapping[str, Any], str]


class WaveformData:
    """
    Decoded waveform summary.

    Samples are held as an integer array shaped ``(length, channels, 2)``
    where the last axis is ``(min, max)``.

    Attributes:
        sample_rate: Sample rate of the audio the waveform was computed from
        scale: Number of audio samples summarised by each pixel
        bits: Sample resolution, 8 or 16
        version: Format version the data was read from
    """

    def __init__(
        self,
        data: np.ndarray,
        sample_rate: int,
        scale: int,
        bits: int = 8,
        version: int = 2,
    ) -> None:
        if data.ndim != 3 or data.shape[2] != 2:
            raise WaveformDataError(
                "Waveform data must be shaped (length, channels, 2)",
                context={"shape": list(data.shape)},
            )
        if sample_rate <= 0 or scale <= 0:
            raise WaveformDataError(
                "Waveform sample rate and scale must be positive",
                context={"sample_rate": sample_rate, "scale": scale},
            )

        self._data = data.astype(np.int16, copy=False)
        self.sample_rate = int(sample_rate)
        self.scale = int(scale)
        self.bits = int(bits)
        self.version = int(version)

    # -------------------------------------------------------------------
    #  Construction
    # -------------------------------------------------------------------

    @classmethod
    def create(cls, payload: WaveformPayload) -> "WaveformData":
        """
        Build waveform data from a binary or JSON payload.

        Args:
            payload: Binary ``.dat`` bytes, a parsed JSON mapping, or JSON text

        Returns:
            WaveformData instance

        Raises:
            WaveformDataError: If the payload is malformed or of unknown type
        """
        if isinstance(payload, (bytes, bytearray, memoryview)):
            return cls.from_bytes(bytes(payload))
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise WaveformDataError("Invalid waveform JSON", cause=exc) from exc
        if isinstance(payload, Mapping):
            return cls.from_dict(payload)

        raise WaveformDataError(
            "Unknown waveform data format",
            context={"type": type(payload).__name__},
        )

    @classmethod
    def from_bytes(cls, buffer: bytes) -> "WaveformData":
        """Parse the audiowaveform binary format."""
        if len(buffer) < _HEADER_V1.size:
            raise WaveformDataError(
                "Waveform data is too short to contain a header",
                context={"size": len(buffer)},
            )

        version, flags, sample_rate, scale, length = _HEADER_V1.unpack_from(buffer, 0)
        offset = _HEADER_V1.size

        if version not in SUPPORTED_VERSIONS:
            raise WaveformDataError(
                f"Unsupported waveform data format version: {version}",
                context={"version": version},
            )

        channels = 1
        if version == 2:
            if len(buffer) < offset + _HEADER_CHANNELS.size:
                raise WaveformDataError("Waveform data header is truncated")
            (channels,) = _HEADER_CHANNELS.unpack_from(buffer, offset)
            offset += _HEADER_CHANNELS.size

        bits = 8 if flags & FLAG_8_BIT else 16
        dtype = np.int8 if bits == 8 else np.dtype("<i2")
        count = length * channels * 2

        available = (len(buffer) - offset) // np.dtype(dtype).itemsize
        if channels <= 0 or available < count:
            raise WaveformDataError(
                "Waveform data is truncated",
                context={"expected": count, "actual": available},
            )

        samples = np.frombuffer(buffer, dtype=dtype, count=count, offset=offset)
        data = samples.reshape(length, channels, 2)
        return cls(data, sample_rate, scale, bits=bits, version=version)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WaveformData":
        """Parse the audiowaveform JSON format."""
        try:
            version = int(data.get("version", 1))
            channels = int(data.get("channels", 1)) if version == 2 else 1
            sample_rate = int(data["sample_rate"])
            scale = int(data["samples_per_pixel"])
            bits = int(data["bits"])
            length = int(data["length"])
            values = np.asarray(data["data"], dtype=np.int32)
        except (KeyError, TypeError, ValueError) as exc:
            raise WaveformDataError("Invalid waveform JSON", cause=exc) from exc

        if version not in SUPPORTED_VERSIONS:
            raise WaveformDataError(
                f"Unsupported waveform data format version: {version}",
                context={"version": version},
            )
        if bits not in SUPPORTED_BITS:
            raise WaveformDataError(
                f"Unsupported waveform bit depth: {bits}",
                context={"bits": bits},
            )

        count = length * channels * 2
        if channels <= 0 or values.ndim != 1 or values.size < count:
            raise WaveformDataError(
                "Waveform JSON data is truncated",
                context={"expected": count, "actual": int(values.size)},
            )

        return cls(
            values[:count].reshape(length, channels, 2),
            sample_rate,
            scale,
            bits=bits,
            version=version,
        )

    # -------------------------------------------------------------------
    #  Properties
    # -------------------------------------------------------------------

    @property
    def channels(self) -> int:
        return int(self._data.shape[1])

    @property
    def length(self) -> int:
        """Number of min/max pairs per channel."""
        return int(self._data.shape[0])

    @property
    def duration(self) -> float:
        """Duration of the summarised audio, in seconds."""
        return self.length * self.scale / self.sample_rate

    @property
    def pixels_per_second(self) -> float:
        return self.sample_rate / self.scale

    def channel(self, index: int) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get the min and max arrays of a single channel.

        Args:
            index: Zero-based channel index

        Returns:
            Tuple of (min_values, max_values)

        Raises:
            IndexError: If the channel does not exist
        """
        if not 0 <= index < self.channels:
            raise IndexError(f"Channel {index} out of range (channels={self.channels})")
        return self._data[:, index, 0].copy(), self._data[:, index, 1].copy()

    # -------------------------------------------------------------------
    #  Serialization
    # -------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the audiowaveform JSON layout (always version 2)."""
        return {
            "version": 2,
            "channels": self.channels,
            "sample_rate": self.sample_rate,
            "samples_per_pixel": self.scale,
            "bits": self.bits,
            "length": self.length,
            "data": self._data.reshape(-1).tolist(),
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict())

    def to_bytes(self) -> bytes:
        """Serialize to the audiowaveform binary layout (version 2)."""
        flags = FLAG_8_BIT if self.bits == 8 else 0
        dtype = np.int8 if self.bits == 8 else np.dtype("<i2")
        header = _HEADER_V1.pack(2, flags, self.sample_rate, self.scale, self.length)
        header += _HEADER_CHANNELS.pack(self.channels)
        return header + self._data.astype(dtype).tobytes()

    def __repr__(self) -> str:
        return (
            f"WaveformData(channels={self.channels}, bits={self.bits}, "
            f"sample_rate={self.sample_rate}, scale={self.scale}, length={self.length})"
        )
