"""Custom exception hierarchy for nmeabridge."""

from __future__ import annotations


class NmeaBridgeError(Exception):
    """Base exception for all nmeabridge errors."""


class SentenceError(NmeaBridgeError):
    """A line could not be turned into a record.

    Never escapes :func:`nmeabridge.ingestion.decoder.decode`; the line is dropped.
    """

    def __init__(self, message: str, *, sentence: str = "") -> None:
        self.sentence = sentence
        super().__init__(message)


class ChecksumMismatchError(SentenceError):
    """Sentence checksum missing or not matching its body."""


class MalformedSentenceError(SentenceError):
    """Unknown sentence type, failed status gate, or unparseable field."""


class GatewayConnectionError(NmeaBridgeError):
    """The upstream gateway link could not be established or was lost."""

    def __init__(
        self,
        message: str,
        *,
        host: str = "",
        port: int | None = None,
    ) -> None:
        self.host = host
        self.port = port
        super().__init__(message)


class GatewayBindError(GatewayConnectionError):
    """UDP listener could not bind its port.

    Unlike TCP failures this is terminal until an explicit reconnect.
    """


class BridgeConfigError(NmeaBridgeError):
    """Invalid or unreadable configuration."""


class BridgeControlError(BridgeConfigError):
    """A control request carried a malformed body or an invalid patch."""
