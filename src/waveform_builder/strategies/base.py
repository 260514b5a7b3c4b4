"""
Helpers shared by the waveform acquisition strategies.

Covers the request wiring common to every network strategy (status checks,
handle release, error and abort reporting) and the waveform checks applied
to precomputed data.
"""

import logging
from typing import Any, Callable

from waveform_builder.acquisition import Acquisition
from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.errors import (
    TransportAbortError,
    TransportFailureError,
    TransportStatusError,
    UnsupportedWaveformError,
)
from waveform_builder.models.options import ResponseFormat
from waveform_builder.transport.content_range import is_successful_response
from waveform_builder.transport.http import HttpRequest, LoadEvent

logger = logging.getLogger(__name__)

SUPPORTED_CHANNELS = (1, 2)
SUPPORTED_BITS = 8


def check_supported(waveform: WaveformData) -> None:
    """
    Reject waveforms the builder cannot use.

    Raises:
        UnsupportedWaveformError: If the waveform is not mono/stereo or
            not 8-bit
    """
    if waveform.channels not in SUPPORTED_CHANNELS:
        raise UnsupportedWaveformError(
            "Only mono or stereo waveforms are currently supported",
            context={"channels": waveform.channels},
        )
    if waveform.bits != SUPPORTED_BITS:
        raise UnsupportedWaveformError(
            f"{waveform.bits}-bit waveform data is not supported",
            context={"bits": waveform.bits},
        )


def send_request(
    transport: Any,
    url: str,
    response_format: ResponseFormat,
    with_credentials: bool,
    acquisition: Acquisition,
    on_success: Callable[[LoadEvent], None],
) -> HttpRequest:
    """
    Issue a GET and route its outcome.

    The request is attached to ``acquisition`` before it is sent and
    released as soon as its outcome is known, before anything is reported.
    Responses other than 200 (or a 206 spanning the whole resource) become
    TransportStatusError; failures and aborts become TransportFailureError
    and TransportAbortError.

    Args:
        transport: Object with ``request(url, response_format, with_credentials)``
        url: Resource URL
        response_format: Requested body format
        with_credentials: Send cookies/auth
        acquisition: Acquisition receiving the outcome
        on_success: Called with the LoadEvent of a successful response

    Returns:
        The sent request
    """
    request = transport.request(url, response_format, with_credentials)

    def handle_load(event: LoadEvent) -> None:
        acquisition.release()
        if not is_successful_response(event.status, event.headers):
            logger.debug("GET %s returned HTTP %d", url, event.status)
            acquisition.resolve(TransportStatusError(event.status, url))
            return
        on_success(event)

    def handle_error(exc: BaseException) -> None:
        acquisition.release()
        acquisition.resolve(
            TransportFailureError("HTTP request failed", cause=exc, context={"url": url})
        )

    def handle_abort() -> None:
        acquisition.release()
        acquisition.resolve(TransportAbortError("HTTP request aborted", context={"url": url}))

    request.on_load(handle_load)
    request.on_error(handle_error)
    request.on_abort(handle_abort)

    acquisition.attach(request)
    request.send()
    return request
