"""nmeabridge - Bridge NMEA 0183 gateway data to browser push clients."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("nmea-bridge")
except PackageNotFoundError:
    __version__ = "0+local"
from nmeabridge.bridge import NmeaBridge
from nmeabridge.config import BridgeConfig, NmeaSettings, NmeaSettingsPatch, PushChannelSettings
from nmeabridge.config_store import ConfigStore
from nmeabridge.connection import ConnectionManager, ConnectionState
from nmeabridge.exceptions import (
    BridgeConfigError,
    BridgeControlError,
    ChecksumMismatchError,
    GatewayBindError,
    GatewayConnectionError,
    MalformedSentenceError,
    NmeaBridgeError,
    SentenceError,
)
from nmeabridge.ingestion import StreamAssembler, decode
from nmeabridge.models import (
    BaroRecord,
    DecodedRecord,
    DepthRecord,
    PositionRecord,
    SogCogRecord,
    WindApparentRecord,
    WindMwdRecord,
    WindTrueRecord,
)

__all__ = [
    "__version__",
    "BaroRecord",
    "BridgeConfig",
    "BridgeConfigError",
    "BridgeControlError",
    "ChecksumMismatchError",
    "ConfigStore",
    "ConnectionManager",
    "ConnectionState",
    "DecodedRecord",
    "DepthRecord",
    "GatewayBindError",
    "GatewayConnectionError",
    "MalformedSentenceError",
    "NmeaBridge",
    "NmeaBridgeError",
    "NmeaSettings",
    "NmeaSettingsPatch",
    "PositionRecord",
    "PushChannelSettings",
    "SentenceError",
    "SogCogRecord",
    "StreamAssembler",
    "WindApparentRecord",
    "WindMwdRecord",
    "WindTrueRecord",
    "decode",
]
