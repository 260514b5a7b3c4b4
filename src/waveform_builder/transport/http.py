"""
Cancellable HTTP GET transport built on requests.

Each ``HttpRequest`` runs on a worker thread from the transport's executor
and settles exactly once with one of three outcomes:

- load: a response was read in full (any status code)
- error: the request failed before a full response was read
- abort: ``abort()`` was called before the request settled

Bodies are streamed in chunks so an aborted download stops reading early.

Example:
    >>> transport = HttpTransport()
    >>> request = transport.request("https://cdn.example.com/track.dat", ResponseFormat.BINARY)
    >>> request.on_load(lambda event: print(event.status, len(event.payload)))
    >>> request.send()
"""

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Mapping, Optional

import requests

from waveform_builder.models.options import ResponseFormat
from waveform_builder.transport.content_range import get_header

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

REQUEST_TIMEOUT = 15  # seconds
CHUNK_SIZE = 64 * 1024
DEFAULT_MAX_WORKERS = 2
DEFAULT_USER_AGENT = "waveform-builder"

_ACCEPT_HEADERS = {
    ResponseFormat.BINARY: "application/octet-stream, */*;q=0.8",
    ResponseFormat.JSON: "application/json, */*;q=0.8",
}

LoadHandler = Callable[["LoadEvent"], None]
ErrorHandler = Callable[[BaseException], None]
AbortHandler = Callable[[], None]


@dataclass
class LoadEvent:
    """
    A fully read HTTP response.

    Attributes:
        status: HTTP status code
        headers: Response headers (case-insensitive for requests responses)
        payload: Body bytes, left for the caller to decode
        url: Final URL after redirects
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    payload: bytes = b""
    url: str = ""

    def get_header(self, name: str) -> Optional[str]:
        """Get a response header value, or None if absent."""
        return get_header(self.headers, name)


class HttpRequest:
    """
    A single cancellable GET request.

    Handlers are registered with ``on_load``, ``on_error`` and ``on_abort``
    before ``send()``. Exactly one handler group runs, once.
    """

    def __init__(
        self,
        session: requests.Session,
        url: str,
        response_format: ResponseFormat,
        executor: Executor,
        timeout: float = REQUEST_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.url = url
        self.response_format = ResponseFormat(response_format)
        self._session = session
        self._executor = executor
        self._timeout = timeout
        self._chunk_size = chunk_size
        self._headers = dict(headers or {})

        self._load_handlers: List[LoadHandler] = []
        self._error_handlers: List[ErrorHandler] = []
        self._abort_handlers: List[AbortHandler] = []

        self._lock = threading.Lock()
        self._aborted = threading.Event()
        self._sent = False
        self._settled = False
        self._response: Optional[requests.Response] = None
        self._future: Optional[Future] = None

    # -------------------------------------------------------------------
    #  Handler registration
    # -------------------------------------------------------------------

    def on_load(self, handler: LoadHandler) -> "HttpRequest":
        self._load_handlers.append(handler)
        return self

    def on_error(self, handler: ErrorHandler) -> "HttpRequest":
        self._error_handlers.append(handler)
        return self

    def on_abort(self, handler: AbortHandler) -> "HttpRequest":
        self._abort_handlers.append(handler)
        return self

    # -------------------------------------------------------------------
    #  State
    # -------------------------------------------------------------------

    @property
    def aborted(self) -> bool:
        return self._aborted.is_set()

    @property
    def settled(self) -> bool:
        with self._lock:
            return self._settled

    # -------------------------------------------------------------------
    #  Operations
    # -------------------------------------------------------------------

    def send(self) -> None:
        """
        Start the request on the transport's executor.

        Raises:
            RuntimeError: If the request was already sent
        """
        with self._lock:
            if self._sent:
                raise RuntimeError(f"Request already sent: {self.url}")
            self._sent = True
            if self._settled:
                return

        logger.debug("GET %s (%s)", self.url, self.response_format.value)
        self._future = self._executor.submit(self._run)
        self._future.add_done_callback(self._log_unhandled)

    def abort(self) -> None:
        """
        Abort the request.

        Abort handlers run on the calling thread unless the request has
        already settled, in which case this does nothing.
        """
        self._aborted.set()

        response = self._response
        if response is not None:
            response.close()

        if self._settle():
            logger.debug("Aborted GET %s", self.url)
            for handler in self._abort_handlers:
                handler()

    # -------------------------------------------------------------------
    #  Internal methods
    # -------------------------------------------------------------------

    def _settle(self) -> bool:
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            return True

    def _run(self) -> None:
        if self._aborted.is_set():
            return

        try:
            event = self._fetch()
        except Exception as exc:
            if self._aborted.is_set():
                logger.debug("GET %s interrupted by abort: %s", self.url, exc)
                return
            if self._settle():
                logger.debug("GET %s failed: %s", self.url, exc)
                for handler in self._error_handlers:
                    handler(exc)
            return

        if event is None:
            return

        if self._settle():
            for handler in self._load_handlers:
                handler(event)

    def _fetch(self) -> Optional[LoadEvent]:
        response = self._session.get(
            self.url,
            headers=self._headers,
            timeout=self._timeout,
            stream=True,
        )
        self._response = response

        try:
            chunks = []
            for chunk in response.iter_content(chunk_size=self._chunk_size):
                if self._aborted.is_set():
                    return None
                chunks.append(chunk)
            body = b"".join(chunks)
        finally:
            response.close()

        return LoadEvent(
            status=response.status_code,
            headers=response.headers,
            payload=body,
            url=response.url or self.url,
        )

    def _log_unhandled(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Unhandled exception in handler for GET %s",
                self.url,
                exc_info=(type(exc), exc, exc.__traceback__),
            )


class HttpTransport:
    """
    Factory for ``HttpRequest`` objects sharing sessions and a worker pool.

    Credentialed requests use ``session`` (carrying cookies and auth set by
    the caller); other requests use a separate anonymous session.

    Args:
        session: Session used when credentials are allowed
        executor: Executor running requests (default: a private thread pool)
        timeout: Connect/read timeout in seconds
        chunk_size: Streaming chunk size in bytes
        max_workers: Thread pool size when no executor is given
        user_agent: User-Agent header value
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        executor: Optional[Executor] = None,
        timeout: float = REQUEST_TIMEOUT,
        chunk_size: int = CHUNK_SIZE,
        max_workers: int = DEFAULT_MAX_WORKERS,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.user_agent = user_agent

        self._owns_session = session is None
        self._session = session or requests.Session()
        self._anonymous_session = requests.Session()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="waveform-http",
        )

    @classmethod
    def from_config(cls, config: Any, **kwargs: Any) -> "HttpTransport":
        """Create a transport from a ``Config`` instance."""
        return cls(
            timeout=config.request_timeout,
            chunk_size=config.chunk_size,
            max_workers=config.max_workers,
            user_agent=config.user_agent,
            **kwargs,
        )

    def request(
        self,
        url: str,
        response_format: ResponseFormat,
        with_credentials: bool = False,
    ) -> HttpRequest:
        """
        Create an unsent GET request.

        Args:
            url: Resource URL
            response_format: How the body should be interpreted
            with_credentials: Send the credentialed session's cookies/auth

        Returns:
            HttpRequest ready for handler registration and ``send()``
        """
        response_format = ResponseFormat(response_format)
        session = self._session if with_credentials else self._anonymous_session
        headers = {
            "User-Agent": self.user_agent,
            "Accept": _ACCEPT_HEADERS[response_format],
        }

        return HttpRequest(
            session,
            url,
            response_format,
            self._executor,
            timeout=self.timeout,
            chunk_size=self.chunk_size,
            headers=headers,
        )

    def close(self) -> None:
        """Release owned sessions and shut down an owned worker pool."""
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        if self._owns_session:
            self._session.close()
        self._anonymous_session.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
