"""
Host media element reference.

A minimal stand-in for a playback element: it carries the media source URL
once one has been selected, and a one-shot ``canplay`` notification for
consumers that need the URL before it is known.
"""

import logging
import threading
from typing import Callable, Dict, List

logger = logging.getLogger(__name__)

CANPLAY = "canplay"


class MediaElement:
    """
    Media element with a current source URL and one-shot event handlers.

    Attributes:
        current_src: The selected media URL, or "" if none is selected yet

    Example:
        >>> media = MediaElement()
        >>> media.once("canplay", lambda: print(media.current_src))
        >>> media.set_source("https://cdn.example.com/track.mp3")
        https://cdn.example.com/track.mp3
    """

    def __init__(self, current_src: str = "") -> None:
        self.current_src = current_src
        self._handlers: Dict[str, List[Callable[[], None]]] = {}
        self._lock = threading.Lock()

    def once(self, event: str, handler: Callable[[], None]) -> None:
        """
        Register a handler that runs the next time ``event`` fires.

        Args:
            event: Event name, e.g. "canplay"
            handler: Zero-argument callable
        """
        with self._lock:
            self._handlers.setdefault(event, []).append(handler)

    def emit(self, event: str) -> int:
        """
        Fire ``event``, running and discarding its pending handlers.

        Returns:
            Number of handlers that ran
        """
        with self._lock:
            handlers = self._handlers.pop(event, [])

        for handler in handlers:
            handler()

        if handlers:
            logger.debug("Dispatched '%s' to %d handler(s)", event, len(handlers))
        return len(handlers)

    def set_source(self, url: str) -> None:
        """Select a media URL and announce that the media can play."""
        self.current_src = url
        self.emit(CANPLAY)
