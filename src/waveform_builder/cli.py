"""
Command-line interface for the waveform builder.

Usage:
    waveform-builder remote --binary-url URL       # Fetch binary waveform data
    waveform-builder remote --json-url URL         # Fetch JSON waveform data
    waveform-builder local track.dat               # Decode local waveform data
    waveform-builder audio track.wav               # Compute waveform from a file
    waveform-builder audio https://cdn/track.mp3   # Download audio and compute
    waveform-builder audio track.wav --output track.dat --zoom-levels 256,512
    waveform-builder remote --json-url URL --output-json   # JSON summary
"""

import argparse
import json
import logging
import sys
from concurrent.futures import TimeoutError as FuturesTimeoutError
from pathlib import Path
from typing import Any, Dict, List, Optional

from waveform_builder.builder import WaveformBuilder
from waveform_builder.codec.audio import AudioDecodeContext
from waveform_builder.codec.waveform_data import WaveformData
from waveform_builder.config import get_config
from waveform_builder.errors import WaveformBuilderError
from waveform_builder.models.media import MediaElement
from waveform_builder.models.options import (
    AcquisitionOptions,
    AudioSource,
    LocalSource,
    RemoteSource,
)

DEFAULT_TIMEOUT = 120.0  # seconds


def _parse_zoom_levels(value: str) -> List[int]:
    try:
        levels = [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid zoom levels: {value}")
    if not levels or any(level <= 0 for level in levels):
        raise argparse.ArgumentTypeError(f"Invalid zoom levels: {value}")
    return levels


def _fail(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)
    sys.exit(1)


def _summarize(waveform: WaveformData) -> Dict[str, Any]:
    return {
        "channels": waveform.channels,
        "bits": waveform.bits,
        "sample_rate": waveform.sample_rate,
        "scale": waveform.scale,
        "length": waveform.length,
        "duration": round(waveform.duration, 3),
    }


def _run(args, options: AcquisitionOptions) -> None:
    """Run one acquisition and report the result."""
    config = get_config()

    with WaveformBuilder(config=config) as builder:
        acquisition = builder.acquire(options)
        try:
            waveform = acquisition.result(timeout=args.timeout)
        except FuturesTimeoutError:
            builder.cancel()
            _fail(f"Timed out after {args.timeout:g}s")
        except WaveformBuilderError as exc:
            _fail(str(exc))

    if args.output:
        output = Path(args.output)
        if output.suffix.lower() == ".json":
            output.write_text(waveform.to_json(), encoding="utf-8")
        else:
            output.write_bytes(waveform.to_bytes())

    summary = _summarize(waveform)

    # JSON output mode (for CI/automation)
    if args.output_json:
        print(json.dumps(summary, indent=2))
        return

    print(f"Waveform: {summary['channels']} channel(s), {summary['bits']}-bit")
    print(f"  Sample rate: {summary['sample_rate']} Hz, scale: {summary['scale']}")
    print(f"  Length: {summary['length']} pixel(s), duration: {summary['duration']}s")
    if args.output:
        print(f"  Written to: {args.output}")


def cmd_remote(args):
    """Fetch precomputed waveform data from a URL."""
    if not args.binary_url and not args.json_url:
        _fail("Pass --binary-url and/or --json-url")

    options = AcquisitionOptions(
        remote=RemoteSource(binary_url=args.binary_url, json_url=args.json_url),
        zoom_levels=args.zoom_levels,
    )
    if args.with_credentials:
        options.with_credentials = True
    _run(args, options)


def cmd_local(args):
    """Decode precomputed waveform data from a file."""
    path = Path(args.file)
    if not path.exists():
        _fail(f"File not found: {path}")

    if path.suffix.lower() == ".json":
        try:
            source = LocalSource(json=json.loads(path.read_text(encoding="utf-8")))
        except json.JSONDecodeError as exc:
            _fail(f"Invalid JSON in {path}: {exc}")
    else:
        source = LocalSource(binary=path.read_bytes())

    _run(args, AcquisitionOptions(local=source, zoom_levels=args.zoom_levels))


def cmd_audio(args):
    """Compute waveform data from an audio file or URL."""
    target: str = args.source

    if "://" in target:
        audio = AudioSource(
            decode_context=AudioDecodeContext(),
            media_element=MediaElement(current_src=target),
            multi_channel=args.multi_channel,
        )
    else:
        path = Path(target)
        if not path.exists():
            _fail(f"File not found: {path}")
        try:
            audio_buffer = AudioDecodeContext().decode(path.read_bytes())
        except WaveformBuilderError as exc:
            _fail(str(exc))
        audio = AudioSource(audio_buffer=audio_buffer, multi_channel=args.multi_channel)

    options = AcquisitionOptions(audio=audio, zoom_levels=args.zoom_levels)
    if args.with_credentials:
        options.with_credentials = True
    _run(args, options)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--zoom-levels",
        type=_parse_zoom_levels,
        default=None,
        help="Comma-separated zoom levels in samples per pixel (first is the decode scale)",
    )
    parser.add_argument(
        "--with-credentials",
        action="store_true",
        default=False,
        help="Send cookies/auth with HTTP requests",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the waveform to this file (.json for JSON, otherwise binary .dat)",
    )
    parser.add_argument(
        "--output-json",
        action="store_true",
        default=False,
        help="Output summary as JSON (for CI/automation)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Give up after this many seconds",
    )


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        prog="waveform-builder",
        description="Waveform Builder -- fetch, load or compute audio waveform data",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # remote
    sub_remote = subparsers.add_parser("remote", help="Fetch precomputed waveform data")
    sub_remote.add_argument("--binary-url", default=None, help="Binary (.dat) waveform URL")
    sub_remote.add_argument("--json-url", default=None, help="JSON waveform URL")
    _add_common_arguments(sub_remote)
    sub_remote.set_defaults(func=cmd_remote)

    # local
    sub_local = subparsers.add_parser("local", help="Decode a local waveform data file")
    sub_local.add_argument("file", help="Waveform file (.json or binary .dat)")
    _add_common_arguments(sub_local)
    sub_local.set_defaults(func=cmd_local)

    # audio
    sub_audio = subparsers.add_parser("audio", help="Compute waveform data from audio")
    sub_audio.add_argument("source", help="Audio file path or URL")
    sub_audio.add_argument(
        "--multi-channel",
        action="store_true",
        default=False,
        help="Keep one waveform channel per audio channel",
    )
    _add_common_arguments(sub_audio)
    sub_audio.set_defaults(func=cmd_audio)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    args.func(args)


if __name__ == "__main__":
    main()
