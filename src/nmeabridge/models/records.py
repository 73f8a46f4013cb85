"""Decoded record models, one per observation kind.

Speeds are knots, angles degrees, pressure hectopascals, temperature
Celsius, depth metres. Optional fields are ``None`` when the sentence did
not carry them.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

from nmeabridge.models._base import NmeaBaseModel

Latitude = Annotated[float, Field(ge=-90.0, le=90.0)]
Longitude = Annotated[float, Field(ge=-180.0, le=180.0)]


class PositionRecord(NmeaBaseModel):
    """Position fix from RMC or GLL. RMC also supplies speed and course."""

    type: Literal["position"] = "position"
    latitude: Latitude
    longitude: Longitude
    sog: float | None = None
    cog_true: float | None = None


class SogCogRecord(NmeaBaseModel):
    """Speed and course over ground from VTG."""

    type: Literal["sog_cog"] = "sog_cog"
    sog: float | None = None
    cog_true: float | None = None


class WindApparentRecord(NmeaBaseModel):
    type: Literal["wind_apparent"] = "wind_apparent"
    wind_apparent_angle: float | None = None
    wind_apparent_speed: float | None = None


class WindTrueRecord(NmeaBaseModel):
    type: Literal["wind_true"] = "wind_true"
    wind_true_angle: float | None = None
    wind_true_speed: float | None = None


class WindMwdRecord(NmeaBaseModel):
    """True wind direction (relative to north) and speed from MWD."""

    type: Literal["wind_mwd"] = "wind_mwd"
    wind_true_direction: float | None = None
    wind_true_speed: float | None = None


class BaroRecord(NmeaBaseModel):
    """Barometric pressure and/or air temperature from MDA or XDR."""

    type: Literal["baro"] = "baro"
    baro_pressure_hpa: float | None = Field(default=None, alias="baroPressureHPa")
    temperature: float | None = None


class DepthRecord(NmeaBaseModel):
    type: Literal["depth"] = "depth"
    depth: float


DecodedRecord = Annotated[
    PositionRecord
    | SogCogRecord
    | WindApparentRecord
    | WindTrueRecord
    | WindMwdRecord
    | BaroRecord
    | DepthRecord,
    Field(discriminator="type"),
]
"""Tagged union of every record the decoder can produce."""
