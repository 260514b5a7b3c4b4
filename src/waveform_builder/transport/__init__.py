"""
HTTP transport for waveform and audio downloads.

Provides a cancellable GET request built on requests, and validation of
``206 Partial Content`` responses that actually carry the whole resource.
"""

from waveform_builder.transport.content_range import (
    is_complete_despite_partial_status,
    is_successful_response,
)
from waveform_builder.transport.http import HttpRequest, HttpTransport, LoadEvent

__all__ = [
    "is_complete_despite_partial_status",
    "is_successful_response",
    "HttpRequest",
    "HttpTransport",
    "LoadEvent",
]
