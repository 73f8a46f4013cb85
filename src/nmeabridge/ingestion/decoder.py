"""NMEA 0183 sentence decoder.

Handles the sentences most commonly forwarded by NMEA 2000 gateway devices.
:func:`decode` is pure: one line in, one record (or ``None``) out.

Sentence identity always strips exactly two talker characters after ``$``
(``$GPRMC`` -> ``RMC``, ``$IIDBT`` -> ``DBT``). A leading field too short to
hold a talker ID and a three-letter type is not a sentence we can route.
"""

from __future__ import annotations

import logging
import string
from collections.abc import Callable
from functools import reduce

from pydantic import ValidationError

from nmeabridge._constants import (
    BAR_TO_HPA,
    CHECKSUM_SEPARATOR,
    FIELD_SEPARATOR,
    SENTENCE_START,
    TALKER_ID_LENGTH,
    TYPE_CODE_LENGTH,
)
from nmeabridge.exceptions import ChecksumMismatchError, MalformedSentenceError, SentenceError
from nmeabridge.ingestion.normalize import field, optional_float, parse_coordinate, to_knots
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

_logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset(string.hexdigits)


def compute_checksum(body: str) -> int:
    """XOR of every character code in *body* (the text between ``$`` and ``*``)."""
    return reduce(lambda acc, ch: acc ^ ord(ch), body, 0)


def verify_checksum(line: str) -> str:
    """Validate ``$<body>*HH`` and return ``<body>``.

    Raises :class:`ChecksumMismatchError` when the marker or digits are
    missing or the digits disagree with the body.
    """
    if not line.startswith(SENTENCE_START):
        raise MalformedSentenceError("missing sentence start", sentence=line)
    star = line.rfind(CHECKSUM_SEPARATOR)
    if star < 0:
        raise ChecksumMismatchError("missing checksum", sentence=line)
    digits = line[star + 1 :]
    if len(digits) != 2 or not set(digits) <= _HEX_DIGITS:
        raise ChecksumMismatchError(f"bad checksum digits {digits!r}", sentence=line)
    body = line[1:star]
    if compute_checksum(body) != int(digits, 16):
        raise ChecksumMismatchError("checksum mismatch", sentence=line)
    return body


def sentence_type(line: str) -> str | None:
    """Return the talker-less type code of *line* (e.g. ``RMC``), or ``None``.

    Does not validate the checksum.
    """
    if not line.startswith(SENTENCE_START):
        return None
    address = line[1:].split(FIELD_SEPARATOR, 1)[0].split(CHECKSUM_SEPARATOR, 1)[0]
    if len(address) < TALKER_ID_LENGTH + TYPE_CODE_LENGTH:
        return None
    return address[TALKER_ID_LENGTH:]


# ------------------------------------------------------------------
# Per-sentence parsers. ``parts[0]`` is the sentence address.
# ------------------------------------------------------------------


def _require(value: float | None, what: str) -> float:
    if value is None:
        raise MalformedSentenceError(f"missing {what}")
    return value


def _parse_rmc(parts: list[str]) -> PositionRecord:
    # $xxRMC,hhmmss,A,llll.ll,a,yyyyy.yy,a,sog,cog,ddmmyy,...
    if field(parts, 2) != "A":
        raise MalformedSentenceError("RMC fix not active")
    return PositionRecord(
        latitude=parse_coordinate(field(parts, 3), field(parts, 4), axis="latitude"),
        longitude=parse_coordinate(field(parts, 5), field(parts, 6), axis="longitude"),
        sog=optional_float(field(parts, 7)),
        cog_true=optional_float(field(parts, 8)),
    )


def _parse_gll(parts: list[str]) -> PositionRecord:
    # $xxGLL,llll.ll,a,yyyyy.yy,a,hhmmss,A,...
    status = field(parts, 6)
    if status is not None and status != "A":
        raise MalformedSentenceError("GLL data not valid")
    return PositionRecord(
        latitude=parse_coordinate(field(parts, 1), field(parts, 2), axis="latitude"),
        longitude=parse_coordinate(field(parts, 3), field(parts, 4), axis="longitude"),
    )


def _parse_vtg(parts: list[str]) -> SogCogRecord:
    # $xxVTG,cog,T,cog_mag,M,sog_kn,N,sog_kmh,K,...
    return SogCogRecord(
        cog_true=optional_float(field(parts, 1)),
        sog=optional_float(field(parts, 5)),
    )


def _parse_mwv(parts: list[str]) -> WindApparentRecord | WindTrueRecord:
    # $xxMWV,angle,R|T,speed,unit,A
    status = field(parts, 5)
    if status is not None and status != "A":
        raise MalformedSentenceError("MWV data not valid")
    angle = optional_float(field(parts, 1))
    speed = optional_float(field(parts, 3))
    if speed is not None:
        speed = to_knots(speed, field(parts, 4))

    reference = field(parts, 2)
    if reference == "R":
        return WindApparentRecord(wind_apparent_angle=angle, wind_apparent_speed=speed)
    if reference == "T":
        return WindTrueRecord(wind_true_angle=angle, wind_true_speed=speed)
    raise MalformedSentenceError(f"unknown MWV reference {reference!r}")


def _parse_mwd(parts: list[str]) -> WindMwdRecord:
    # $xxMWD,dir_true,T,dir_mag,M,speed_kn,N,speed_ms,M
    return WindMwdRecord(
        wind_true_direction=optional_float(field(parts, 1)),
        wind_true_speed=optional_float(field(parts, 5)),
    )


def _parse_mda(parts: list[str]) -> BaroRecord:
    # $xxMDA,baro_inHg,I,baro_bar,B,air_C,C,...
    pressure_bar = optional_float(field(parts, 3))
    temperature = optional_float(field(parts, 5))
    if pressure_bar is None and temperature is None:
        raise MalformedSentenceError("MDA without pressure or temperature")
    return BaroRecord(
        baro_pressure_hpa=pressure_bar * BAR_TO_HPA if pressure_bar is not None else None,
        temperature=temperature,
    )


def _parse_xdr(parts: list[str]) -> BaroRecord:
    # $xxXDR,P,value,B,name  (pressure, bar)
    # $xxXDR,C,value,C,name  (temperature, Celsius)
    kind = field(parts, 1)
    if kind == "P" and field(parts, 3) == "B":
        pressure_bar = _require(optional_float(field(parts, 2)), "XDR pressure")
        return BaroRecord(baro_pressure_hpa=pressure_bar * BAR_TO_HPA)
    if kind == "C":
        return BaroRecord(temperature=_require(optional_float(field(parts, 2)), "XDR temperature"))
    raise MalformedSentenceError(f"unsupported XDR transducer {kind!r}")


def _parse_dbt(parts: list[str]) -> DepthRecord:
    # $xxDBT,feet,f,metres,M,fathoms,F
    return DepthRecord(depth=_require(optional_float(field(parts, 3)), "DBT depth"))


def _parse_dpt(parts: list[str]) -> DepthRecord:
    # $xxDPT,metres,offset
    return DepthRecord(depth=_require(optional_float(field(parts, 1)), "DPT depth"))


_PARSERS: dict[str, Callable[[list[str]], DecodedRecord]] = {
    "RMC": _parse_rmc,
    "GLL": _parse_gll,
    "VTG": _parse_vtg,
    "MWV": _parse_mwv,
    "MWD": _parse_mwd,
    "MDA": _parse_mda,
    "XDR": _parse_xdr,
    "DBT": _parse_dbt,
    "DPT": _parse_dpt,
}

SUPPORTED_TYPES: frozenset[str] = frozenset(_PARSERS)


def parse_sentence(line: str) -> DecodedRecord:
    """Decode *line* or raise a :class:`SentenceError` explaining why not."""
    body = verify_checksum(line)
    parts = body.split(FIELD_SEPARATOR)
    code = sentence_type(line)
    if code is None:
        raise MalformedSentenceError("sentence address too short", sentence=line)
    parser = _PARSERS.get(code)
    if parser is None:
        raise MalformedSentenceError(f"unsupported sentence type {code!r}", sentence=line)
    try:
        return parser(parts)
    except ValidationError as exc:
        # Out-of-range values rejected by the record model.
        raise MalformedSentenceError(f"{code} failed validation: {exc.error_count()} error(s)", sentence=line) from exc


def decode(line: str) -> DecodedRecord | None:
    """Decode one line of gateway text into a record.

    Returns ``None`` for anything that is not a valid, supported sentence;
    the reason is logged at DEBUG and never raised.
    """
    text = line.strip()
    try:
        return parse_sentence(text)
    except SentenceError as exc:
        _logger.debug("Dropped sentence %r: %s", text, exc)
        return None
