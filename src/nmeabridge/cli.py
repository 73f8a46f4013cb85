"""Command line entry point for ``nmea-bridge``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Iterable, Sequence
from typing import TextIO

from nmeabridge._constants import DEFAULT_CONFIG_FILENAME
from nmeabridge.bridge import NmeaBridge
from nmeabridge.config import BridgeConfig
from nmeabridge.config_store import ConfigStore
from nmeabridge.exceptions import NmeaBridgeError
from nmeabridge.ingestion.decoder import decode

_logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nmea-bridge",
        description="Bridge an NMEA 0183 gateway to WebSocket push clients.",
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("NMEA_BRIDGE_CONFIG", DEFAULT_CONFIG_FILENAME),
        help="Path of the JSON configuration file (env: NMEA_BRIDGE_CONFIG).",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=_LOG_LEVELS,
        default=os.environ.get("NMEA_BRIDGE_LOG_LEVEL", "INFO").upper(),
        help="Logging verbosity (env: NMEA_BRIDGE_LOG_LEVEL).",
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("serve", help="Run the bridge until interrupted (default).")
    decode_parser = commands.add_parser(
        "decode",
        help="Decode captured NMEA text and print one JSON message per record.",
    )
    decode_parser.add_argument(
        "files",
        nargs="*",
        type=argparse.FileType("r", encoding="ascii", errors="replace"),
        help="Log files to decode (default: stdin).",
    )
    return parser.parse_args(argv)


def decode_stream(lines: Iterable[str], out: TextIO) -> int:
    """Write the push-channel message for every decodable line; return the count."""
    count = 0
    for line in lines:
        text = line.strip()
        if not text:
            continue
        record = decode(text)
        if record is None:
            continue
        out.write(json.dumps(record.to_message(text)) + "\n")
        count += 1
    return count


def _run_decode(args: argparse.Namespace) -> int:
    sources = args.files or [sys.stdin]
    total = 0
    for source in sources:
        try:
            total += decode_stream(source, sys.stdout)
        finally:
            if source is not sys.stdin:
                source.close()
    _logger.info("Decoded %d record(s)", total)
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    store = ConfigStore(args.config)
    try:
        config = BridgeConfig.from_env(store.load())
    except NmeaBridgeError as exc:
        _logger.error("%s", exc)
        return 2
    bridge = NmeaBridge(config, store)
    try:
        asyncio.run(bridge.run_until_signalled())
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        # Typically the push channel port is already in use.
        _logger.error("Bridge failed: %s", exc)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "decode":
        return _run_decode(args)
    return _run_serve(args)
