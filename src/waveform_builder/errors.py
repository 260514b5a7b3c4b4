"""
Error taxonomy for waveform acquisition.

Every failure the builder can report derives from ``WaveformBuilderError``.
Errors are never raised out of ``WaveformBuilder.acquire()``; they are handed
to the acquisition callback as its first argument.
"""

from typing import Any, Dict, Optional


class WaveformBuilderError(Exception):
    """
    Base class for all waveform acquisition errors.

    Attributes:
        message: Human-readable description of the failure
        cause: Underlying exception, if any
        context: Extra details (URLs, status codes, channel counts, ...)
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "error": type(self).__name__,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data


class ConfigurationError(WaveformBuilderError):
    """Acquisition options are malformed."""


class ConfigurationConflictError(ConfigurationError):
    """Zero, or more than one, waveform source was configured."""


class EnvironmentIncompatibleError(WaveformBuilderError):
    """No configured URL matches a response format this environment supports."""


class FormatIncompatibleError(WaveformBuilderError):
    """Locally supplied waveform data is neither a JSON mapping nor bytes."""


class UnsupportedWaveformError(WaveformBuilderError):
    """Waveform has a channel count or bit depth the builder does not accept."""


class TransportError(WaveformBuilderError):
    """Base class for HTTP transport outcomes other than success."""


class TransportStatusError(TransportError):
    """The server answered with a status that does not count as success."""

    def __init__(self, status: int, url: str = "") -> None:
        super().__init__(
            f"Unable to fetch remote data. HTTP status {status}",
            context={"status": status, "url": url},
        )
        self.status = status


class TransportFailureError(TransportError):
    """The request failed before a response could be read."""


class TransportAbortError(TransportError):
    """The request was aborted by the caller."""


class DecodeError(WaveformBuilderError):
    """Waveform or audio data could not be decoded."""


class WaveformDataError(DecodeError):
    """Waveform data payload is malformed."""


class AudioDecodeError(DecodeError):
    """Raw audio could not be decoded or summarised."""


__all__ = [
    "WaveformBuilderError",
    "ConfigurationError",
    "ConfigurationConflictError",
    "EnvironmentIncompatibleError",
    "FormatIncompatibleError",
    "UnsupportedWaveformError",
    "TransportError",
    "TransportStatusError",
    "TransportFailureError",
    "TransportAbortError",
    "DecodeError",
    "WaveformDataError",
    "AudioDecodeError",
]
