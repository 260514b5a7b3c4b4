"""
Remote waveform data strategy.

Fetches precomputed audiowaveform data over HTTP, preferring the binary
format over JSON when the environment supports both and both URLs are set.

See https://github.com/bbc/audiowaveform/blob/master/doc/DataFormat.md for
the binary and JSON data formats.
"""

import logging
from typing import Any, Callable, Optional, Tuple

from waveform_builder.acquisition import Acquisition
from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.errors import (
    ConfigurationError,
    DecodeError,
    EnvironmentIncompatibleError,
    WaveformBuilderError,
)
from waveform_builder.models.options import (
    RESPONSE_FORMAT_PRIORITY,
    FormatCapabilities,
    RemoteSource,
    ResponseFormat,
)
from waveform_builder.strategies.base import check_supported, send_request
from waveform_builder.transport.http import HttpRequest, LoadEvent

logger = logging.getLogger(__name__)


class RemoteWaveformFetcher:
    """
    Fetches waveform data from a RemoteSource.

    Args:
        transport: HTTP transport (see ``HttpTransport``)
        capabilities: Response formats this environment can consume
        codec: Callable turning a payload into WaveformData
    """

    def __init__(
        self,
        transport: Any,
        capabilities: Optional[FormatCapabilities] = None,
        codec: Callable[[Any], WaveformData] = WaveformData.create,
    ) -> None:
        self.transport = transport
        self.capabilities = capabilities or FormatCapabilities()
        self.codec = codec

    def select_format(self, source: RemoteSource) -> Optional[Tuple[ResponseFormat, str]]:
        """
        Pick the response format and URL to request.

        Formats are tried in priority order (binary, then JSON); a format
        is used if the environment supports it and its URL is set.

        Returns:
            (response_format, url), or None if nothing usable is configured
        """
        for response_format in RESPONSE_FORMAT_PRIORITY:
            if not self.capabilities.supports(response_format):
                continue
            url = source.url_for(response_format)
            if url:
                return response_format, url
        return None

    def fetch(
        self,
        source: RemoteSource,
        with_credentials: bool,
        acquisition: Acquisition,
    ) -> Optional[HttpRequest]:
        """
        Fetch and decode remote waveform data.

        Args:
            source: Remote waveform URLs
            with_credentials: Send cookies/auth
            acquisition: Receives the outcome

        Returns:
            The in-flight request, or None if no request was issued
        """
        if not isinstance(source, RemoteSource):
            acquisition.resolve(ConfigurationError("The remote option must be a RemoteSource"))
            return None

        selected = self.select_format(source)
        if selected is None:
            acquisition.resolve(EnvironmentIncompatibleError(
                "Unable to determine a compatible remote waveform format for this environment",
                context={"supported": [f.value for f in self.capabilities.formats]},
            ))
            return None

        response_format, url = selected
        logger.debug("Fetching %s waveform data from %s", response_format.value, url)

        def on_success(event: LoadEvent) -> None:
            try:
                payload = event.payload
                if response_format == ResponseFormat.JSON and isinstance(
                    payload, (bytes, bytearray, memoryview)
                ):
                    payload = bytes(payload).decode("utf-8")
                waveform = self.codec(payload)
                check_supported(waveform)
            except WaveformBuilderError as exc:
                acquisition.resolve(exc)
                return
            except Exception as exc:
                acquisition.resolve(DecodeError(
                    f"Unable to decode waveform data: {exc}",
                    cause=exc,
                    context={"url": url},
                ))
                return

            logger.info("Fetched waveform data from %s: %r", url, waveform)
            acquisition.resolve(None, waveform)

        return send_request(
            self.transport,
            url,
            response_format,
            with_credentials,
            acquisition,
            on_success,
        )
