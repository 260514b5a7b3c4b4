"""
Waveform builder: selects and runs one waveform acquisition strategy.

Waveform data is obtained in exactly one of three ways:

1. **remote** -- fetch precomputed audiowaveform data over HTTP
2. **local** -- decode precomputed audiowaveform data held in memory
3. **audio** -- compute waveform data from an AudioBuffer, or by
   downloading the media element's source and decoding it

Every outcome, including configuration mistakes, is reported through the
single callback passed to ``acquire()``; nothing is raised.

Example:
    >>> builder = WaveformBuilder()
    >>> def on_waveform(error, waveform):
    ...     if error:
    ...         print(f"Failed: {error}")
    ...     else:
    ...         print(f"{waveform.channels} channel(s), {waveform.duration:.1f}s")
    >>> acquisition = builder.acquire(
    ...     {"remote": {"binary_url": "https://cdn.example.com/track.dat"}},
    ...     on_waveform,
    ... )
    >>> acquisition.cancel()  # or builder.cancel()
"""

import logging
import threading
from typing import Any, Callable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError

from waveform_builder.acquisition import Acquisition, AcquisitionCallback
from waveform_builder.codec.audio import AudioBuffer, AudioDecodeContext, create_from_audio
from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.config import Config, get_config
from waveform_builder.errors import ConfigurationConflictError, ConfigurationError
from waveform_builder.models.media import CANPLAY
from waveform_builder.models.options import (
    AcquisitionOptions,
    AudioSource,
    FormatCapabilities,
)
from waveform_builder.strategies.audio import AudioDecoder, AudioWaveformDecoder
from waveform_builder.strategies.local import LocalWaveformLoader
from waveform_builder.strategies.remote import RemoteWaveformFetcher
from waveform_builder.transport.http import HttpTransport

logger = logging.getLogger(__name__)


class WaveformBuilder:
    """
    Loads or computes waveform data.

    One builder is typically created per session. It holds no state between
    calls apart from the acquisitions that still have a request in flight,
    which ``cancel()`` aborts.

    Args:
        config: Application Config (optional, uses default if None)
        transport: HTTP transport (default: HttpTransport from config)
        capabilities: Consumable response formats (default: from config)
        codec: Payload to WaveformData decoder
        audio_decoder: ``decoder(options, callback)`` computing waveforms from audio
        media_element: Fallback media element for the audio fetch path
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        transport: Optional[Any] = None,
        capabilities: Optional[FormatCapabilities] = None,
        codec: Callable[[Any], WaveformData] = WaveformData.create,
        audio_decoder: AudioDecoder = create_from_audio,
        media_element: Optional[Any] = None,
    ) -> None:
        if config is None:
            config = get_config()

        self.config = config
        self.media_element = media_element

        self._owns_transport = transport is None
        self.transport = transport or HttpTransport.from_config(config)
        self.capabilities = capabilities or config.capabilities()

        self._remote = RemoteWaveformFetcher(self.transport, self.capabilities, codec)
        self._local = LocalWaveformLoader(codec)
        self._audio = AudioWaveformDecoder(self.transport, audio_decoder)

        self._lock = threading.Lock()
        self._pending: Set[Acquisition] = set()

    # -------------------------------------------------------------------
    #  Public API
    # -------------------------------------------------------------------

    def acquire(
        self,
        options: Union[AcquisitionOptions, Mapping[str, Any]],
        callback: Optional[AcquisitionCallback] = None,
    ) -> Acquisition:
        """
        Load or create waveform data.

        Args:
            options: AcquisitionOptions, or a mapping validated into one
            callback: Called once with ``(error, None)`` or ``(None, waveform)``

        Returns:
            Acquisition handle for cancelling or waiting on this call
        """
        acquisition = Acquisition(callback, on_done=self._discard, on_attach=self._track)

        try:
            if not isinstance(options, AcquisitionOptions):
                options = AcquisitionOptions.model_validate(options)
        except ValidationError as exc:
            acquisition.resolve(ConfigurationError(
                f"Invalid acquisition options: {exc.error_count()} validation error(s)",
                cause=exc,
                context={"errors": [error["msg"] for error in exc.errors()]},
            ))
            return acquisition

        sources = options.configured_sources()
        if len(sources) > 1:
            acquisition.resolve(ConfigurationConflictError(
                "You may only pass one source (remote, local or audio) to build waveform data",
                context={"sources": sources},
            ))
            return acquisition
        if not sources:
            acquisition.resolve(ConfigurationConflictError(
                "You must pass remote, local or audio options to build waveform data"
            ))
            return acquisition

        audio = options.audio
        if options.audio_context is not None:
            logger.warning(
                "The audio_context option is deprecated, "
                "please pass audio=AudioSource(decode_context=...) instead"
            )
            audio = (audio or AudioSource()).model_copy(
                update={"decode_context": options.audio_context}
            )

        zoom_levels = options.zoom_levels or self.config.zoom_levels
        with_credentials = options.with_credentials
        if "with_credentials" not in options.model_fields_set:
            with_credentials = self.config.with_credentials

        if options.remote is not None:
            self._remote.fetch(options.remote, with_credentials, acquisition)
        elif options.local is not None:
            self._local.build(options.local, acquisition)
        else:
            self._build_from_audio(audio, zoom_levels, with_credentials, acquisition)

        return acquisition

    def cancel(self) -> int:
        """
        Abort every request this builder has in flight.

        Each abort is reported as a TransportAbortError through the
        corresponding acquisition's callback, which may run before this
        method returns.

        Returns:
            Number of requests aborted
        """
        with self._lock:
            pending = list(self._pending)
        return sum(1 for acquisition in pending if acquisition.cancel())

    @property
    def in_flight(self) -> List[Acquisition]:
        """Acquisitions with a request currently in flight."""
        with self._lock:
            return [a for a in self._pending if a.request is not None]

    def close(self) -> None:
        """Close the transport if this builder created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "WaveformBuilder":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -------------------------------------------------------------------
    #  Internal methods
    # -------------------------------------------------------------------

    def _track(self, acquisition: Acquisition) -> None:
        with self._lock:
            if not acquisition.done:
                self._pending.add(acquisition)

    def _discard(self, acquisition: Acquisition) -> None:
        with self._lock:
            self._pending.discard(acquisition)

    def _build_from_audio(
        self,
        audio: AudioSource,
        zoom_levels: List[int],
        with_credentials: bool,
        acquisition: Acquisition,
    ) -> None:
        # The decoded waveform must match the finest zoom level
        if audio.scale != zoom_levels[0]:
            logger.debug("Using decode scale %d (was %d)", zoom_levels[0], audio.scale)
            audio = audio.model_copy(update={"scale": zoom_levels[0]})

        if audio.audio_buffer is not None:
            if not isinstance(audio.audio_buffer, AudioBuffer):
                acquisition.resolve(ConfigurationError(
                    "The audio.audio_buffer option must be an AudioBuffer"
                ))
                return
            self._audio.decode_buffer(
                audio.audio_buffer, audio.multi_channel, audio.scale, acquisition
            )
            return

        decode_context = audio.decode_context
        if decode_context is None:
            decode_context = AudioDecodeContext()
        elif not isinstance(decode_context, AudioDecodeContext):
            acquisition.resolve(ConfigurationError(
                "The audio.decode_context option must be a valid AudioDecodeContext"
            ))
            return

        media = audio.media_element or self.media_element
        if media is None:
            acquisition.resolve(ConfigurationError(
                "A media element is required to fetch audio for decoding"
            ))
            return

        def request_audio() -> None:
            self._audio.fetch_and_decode(
                getattr(media, "current_src", ""),
                decode_context,
                audio.multi_channel,
                audio.scale,
                with_credentials,
                acquisition,
            )

        # Until the media element has selected a source, wait for it to
        # report that it can play
        if getattr(media, "current_src", "") or not hasattr(media, "once"):
            request_audio()
        else:
            logger.debug("Media source not selected yet, waiting for '%s'", CANPLAY)
            media.once(CANPLAY, request_audio)
