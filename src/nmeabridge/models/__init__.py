"""Data models for decoded NMEA records."""

from nmeabridge.models._base import NmeaBaseModel
from nmeabridge.models.records import (
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
    "BaroRecord",
    "DecodedRecord",
    "DepthRecord",
    "NmeaBaseModel",
    "PositionRecord",
    "SogCogRecord",
    "WindApparentRecord",
    "WindMwdRecord",
    "WindTrueRecord",
]
