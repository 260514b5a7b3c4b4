"""
Audio decode strategy.

Computes waveform data from audio, either from an AudioBuffer the caller
has already decoded or by downloading the media file and decoding it.
Channel and bit-depth checks are left to the decoder, which always
produces 8-bit data.
"""

import logging
from typing import Any, Callable, Dict, Optional

from waveform_builder.acquisition import Acquisition
from waveform_builder.codec.audio import AudioBuffer, AudioDecodeContext, create_from_audio
from waveform_builder.models.options import ResponseFormat
from waveform_builder.strategies.base import send_request
from waveform_builder.transport.http import HttpRequest, LoadEvent

logger = logging.getLogger(__name__)

AudioDecoder = Callable[[Dict[str, Any], Callable[..., Any]], None]


class AudioWaveformDecoder:
    """
    Builds waveform data from audio.

    Args:
        transport: HTTP transport used to download media
        decoder: Callable ``decoder(options, callback)``; see ``create_from_audio``
    """

    def __init__(self, transport: Any, decoder: AudioDecoder = create_from_audio) -> None:
        self.transport = transport
        self.decoder = decoder

    def decode_buffer(
        self,
        audio_buffer: AudioBuffer,
        multi_channel: bool,
        scale: int,
        acquisition: Acquisition,
    ) -> None:
        """Compute waveform data from an already decoded buffer."""
        self.decoder(
            {
                "audio_buffer": audio_buffer,
                "split_channels": multi_channel,
                "scale": scale,
                "disable_worker": True,
            },
            acquisition.resolve,
        )

    def fetch_and_decode(
        self,
        media_url: str,
        decode_context: AudioDecodeContext,
        multi_channel: bool,
        scale: int,
        with_credentials: bool,
        acquisition: Acquisition,
    ) -> Optional[HttpRequest]:
        """
        Download media and compute waveform data from it.

        An empty ``media_url`` is logged and ignored without reporting
        anything; callers retry once the media element has a source.

        Args:
            media_url: Media file URL
            decode_context: Decoder for the downloaded bytes
            multi_channel: One waveform channel per audio channel
            scale: Frames per pixel
            with_credentials: Send cookies/auth
            acquisition: Receives the outcome

        Returns:
            The in-flight request, or None if no request was issued
        """
        if not media_url:
            logger.warning("The media element source is invalid; waiting for a media URL")
            return None

        logger.debug("Fetching audio from %s (scale=%d)", media_url, scale)

        def on_success(event: LoadEvent) -> None:
            self.decoder(
                {
                    "decode_context": decode_context,
                    "array_buffer": event.payload,
                    "split_channels": multi_channel,
                    "scale": scale,
                },
                acquisition.resolve,
            )

        return send_request(
            self.transport,
            media_url,
            ResponseFormat.BINARY,
            with_credentials,
            acquisition,
            on_success,
        )
