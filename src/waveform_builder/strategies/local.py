"""
Local waveform data strategy.

Builds waveform data from precomputed audiowaveform data already in memory.
"""

from collections.abc import Mapping
from typing import Any, Callable, Optional

from waveform_builder.acquisition import Acquisition
from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.errors import (
    ConfigurationError,
    DecodeError,
    FormatIncompatibleError,
    WaveformBuilderError,
)
from waveform_builder.models.options import LocalSource
from waveform_builder.strategies.base import check_supported

_BINARY_TYPES = (bytes, bytearray, memoryview)


class LocalWaveformLoader:
    """Decodes caller-supplied waveform data."""

    def __init__(self, codec: Callable[[Any], WaveformData] = WaveformData.create) -> None:
        self.codec = codec

    @staticmethod
    def select_payload(source: LocalSource) -> Optional[Any]:
        """Return the JSON payload if it is a mapping, else usable binary data, else None."""
        if isinstance(source.json_data, Mapping):
            return source.json_data
        if isinstance(source.binary, _BINARY_TYPES):
            return source.binary
        return None

    def build(self, source: LocalSource, acquisition: Acquisition) -> None:
        """
        Decode local waveform data and report it through ``acquisition``.

        Args:
            source: In-memory waveform data
            acquisition: Receives the outcome
        """
        if not isinstance(source, LocalSource):
            acquisition.resolve(ConfigurationError("The local option must be a LocalSource"))
            return

        payload = self.select_payload(source)
        if payload is None:
            acquisition.resolve(FormatIncompatibleError(
                "Unable to determine a compatible local waveform data format"
            ))
            return

        try:
            waveform = self.codec(payload)
            check_supported(waveform)
        except WaveformBuilderError as exc:
            acquisition.resolve(exc)
            return
        except Exception as exc:
            acquisition.resolve(DecodeError(f"Unable to decode waveform data: {exc}", cause=exc))
            return

        acquisition.resolve(None, waveform)
