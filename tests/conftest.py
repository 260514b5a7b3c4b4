"""
Shared test fixtures.

Provides pytest fixtures for common test resources including:
- Test configuration
- A fake HTTP transport whose requests are completed by the test
- Waveform payload builders (binary and JSON)
- A callback recorder
"""

import os
import struct
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np
import pytest

from waveform_builder.builder import WaveformBuilder
from waveform_builder.config import Config
from waveform_builder.models.options import ResponseFormat
from waveform_builder.transport.http import LoadEvent


# ---------------------------------------------------------------------------
#  Fake transport
# ---------------------------------------------------------------------------

class FakeRequest:
    """HttpRequest stand-in; the test decides how and when it settles."""

    def __init__(self, url: str, response_format: ResponseFormat, with_credentials: bool):
        self.url = url
        self.response_format = response_format
        self.with_credentials = with_credentials
        self.sent = False
        self.aborted = False
        self.settled = False
        self._load: List[Callable] = []
        self._error: List[Callable] = []
        self._abort: List[Callable] = []

    def on_load(self, handler):
        self._load.append(handler)
        return self

    def on_error(self, handler):
        self._error.append(handler)
        return self

    def on_abort(self, handler):
        self._abort.append(handler)
        return self

    def send(self):
        self.sent = True

    def _settle(self) -> bool:
        if self.settled:
            return False
        self.settled = True
        return True

    def abort(self):
        self.aborted = True
        if self._settle():
            for handler in self._abort:
                handler()

    def respond(self, status: int = 200, payload: Any = b"", headers: Optional[Dict[str, str]] = None):
        if self._settle():
            event = LoadEvent(status=status, headers=headers or {}, payload=payload, url=self.url)
            for handler in self._load:
                handler(event)

    def fail(self, exc: Optional[BaseException] = None):
        if self._settle():
            for handler in self._error:
                handler(exc or ConnectionError("connection refused"))


class FakeTransport:
    """Records every request created through it."""

    def __init__(self):
        self.requests: List[FakeRequest] = []
        self.closed = False

    def request(self, url, response_format, with_credentials=False):
        request = FakeRequest(url, ResponseFormat(response_format), with_credentials)
        self.requests.append(request)
        return request

    @property
    def last(self) -> FakeRequest:
        return self.requests[-1]

    def close(self):
        self.closed = True


class CallbackRecorder:
    """Acquisition callback that records every invocation."""

    def __init__(self):
        self.calls: List[Tuple[Optional[BaseException], Any]] = []

    def __call__(self, error, result):
        self.calls.append((error, result))

    @property
    def error(self) -> Optional[BaseException]:
        assert len(self.calls) == 1, f"expected one callback, got {len(self.calls)}"
        return self.calls[0][0]

    @property
    def result(self) -> Any:
        assert len(self.calls) == 1, f"expected one callback, got {len(self.calls)}"
        return self.calls[0][1]


# ---------------------------------------------------------------------------
#  Payload builders
# ---------------------------------------------------------------------------

def _waveform_dict(
    channels: int = 1,
    bits: int = 8,
    length: int = 4,
    sample_rate: int = 44100,
    scale: int = 512,
    version: int = 2,
) -> Dict[str, Any]:
    data = []
    for i in range(length):
        for _ in range(channels):
            data.extend([-i, i])
    payload = {
        "version": version,
        "sample_rate": sample_rate,
        "samples_per_pixel": scale,
        "bits": bits,
        "length": length,
        "data": data,
    }
    if version == 2:
        payload["channels"] = channels
    return payload


def _waveform_bytes(
    channels: int = 1,
    bits: int = 8,
    length: int = 4,
    sample_rate: int = 44100,
    scale: int = 512,
    version: int = 2,
) -> bytes:
    flags = 1 if bits == 8 else 0
    header = struct.pack("<iIiiI", version, flags, sample_rate, scale, length)
    if version == 2:
        header += struct.pack("<i", channels)
    dtype = np.int8 if bits == 8 else np.dtype("<i2")
    values = np.array(_waveform_dict(channels=channels, length=length)["data"], dtype=dtype)
    return header + values.tobytes()


# ---------------------------------------------------------------------------
#  Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config(monkeypatch) -> Config:
    """
    Create test configuration independent of the environment.

    Returns:
        Config: Test configuration
    """
    for name in list(os.environ):
        if name.startswith("WAVEFORM_BUILDER_"):
            monkeypatch.delenv(name)
    return Config(_env_file=None, zoom_levels=[512, 1024, 2048])


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Fake HTTP transport."""
    return FakeTransport()


@pytest.fixture
def builder(config: Config, fake_transport: FakeTransport) -> WaveformBuilder:
    """WaveformBuilder wired to the fake transport."""
    return WaveformBuilder(config=config, transport=fake_transport)


@pytest.fixture
def recorder() -> CallbackRecorder:
    """Callback recorder."""
    return CallbackRecorder()


@pytest.fixture
def make_waveform_dict() -> Callable[..., Dict[str, Any]]:
    """Factory for audiowaveform JSON payloads."""
    return _waveform_dict


@pytest.fixture
def make_waveform_bytes() -> Callable[..., bytes]:
    """Factory for audiowaveform binary payloads."""
    return _waveform_bytes


@pytest.fixture
def make_recorder() -> Callable[[], CallbackRecorder]:
    """Factory for additional callback recorders."""
    return CallbackRecorder
