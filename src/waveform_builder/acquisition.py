"""
Per-call acquisition handle.

``WaveformBuilder.acquire()`` returns an ``Acquisition``. It owns the call's
in-flight HTTP request (if any), delivers the single completion callback,
and mirrors the outcome into a ``concurrent.futures.Future`` so that
synchronous callers can block on it.

Example:
    >>> acquisition = builder.acquire(options)
    >>> waveform = acquisition.result(timeout=30)
"""

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Optional

from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.transport.http import HttpRequest

logger = logging.getLogger(__name__)

AcquisitionCallback = Callable[[Optional[BaseException], Optional[WaveformData]], None]


class Acquisition:
    """
    Handle for one waveform acquisition.

    The callback runs at most once, with ``(error, None)`` or
    ``(None, waveform)``. Later resolutions are ignored.

    Args:
        callback: Completion callback
        on_attach: Hook run when a request is attached
        on_done: Hook run after resolution, before the callback
    """

    def __init__(
        self,
        callback: Optional[AcquisitionCallback] = None,
        on_done: Optional[Callable[["Acquisition"], None]] = None,
        on_attach: Optional[Callable[["Acquisition"], None]] = None,
    ) -> None:
        self._callback = callback
        self._on_done = on_done
        self._on_attach = on_attach
        self._future: Future = Future()
        self._lock = threading.Lock()
        self._request: Optional[HttpRequest] = None
        self._done = False

    # -------------------------------------------------------------------
    #  State
    # -------------------------------------------------------------------

    @property
    def request(self) -> Optional[HttpRequest]:
        """The in-flight request, or None."""
        return self._request

    @property
    def done(self) -> bool:
        return self._done

    # -------------------------------------------------------------------
    #  Used by strategies
    # -------------------------------------------------------------------

    def attach(self, request: HttpRequest) -> None:
        """Record ``request`` as this acquisition's in-flight request."""
        with self._lock:
            self._request = request

        if self._on_attach is not None:
            self._on_attach(self)

    def release(self) -> None:
        """Forget the in-flight request once its outcome is known."""
        with self._lock:
            self._request = None

    def resolve(
        self,
        error: Optional[BaseException] = None,
        result: Optional[WaveformData] = None,
    ) -> bool:
        """
        Complete the acquisition.

        Args:
            error: Failure to report, or None on success
            result: Waveform data on success

        Returns:
            True if this call completed the acquisition, False if it was
            already complete
        """
        with self._lock:
            if self._done:
                logger.debug("Ignoring repeated resolution of acquisition: %s", error)
                return False
            self._done = True
            self._request = None

        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(result)

        if self._on_done is not None:
            self._on_done(self)

        if self._callback is not None:
            self._callback(error, result)
        return True

    # -------------------------------------------------------------------
    #  Used by callers
    # -------------------------------------------------------------------

    def cancel(self) -> bool:
        """
        Abort the in-flight request, if any.

        The abort is reported as a TransportAbortError through the callback,
        which may run on the calling thread before this method returns.

        Returns:
            True if a request was aborted
        """
        request = self._request
        if request is None:
            return False
        request.abort()
        return True

    def result(self, timeout: Optional[float] = None) -> WaveformData:
        """
        Block until the acquisition completes.

        Raises:
            WaveformBuilderError: The acquisition's error
            concurrent.futures.TimeoutError: If ``timeout`` expires first
        """
        return self._future.result(timeout)

    def exception(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Block until completion and return the error, or None on success."""
        return self._future.exception(timeout)

    def __repr__(self) -> str:
        state = "done" if self._done else ("in-flight" if self._request else "pending")
        return f"Acquisition({state})"
