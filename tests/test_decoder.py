"""Tests for sentence checksum validation and per-type decoding."""

from __future__ import annotations

import pytest

from nmeabridge.exceptions import ChecksumMismatchError, MalformedSentenceError
from nmeabridge.ingestion.decoder import (
    SUPPORTED_TYPES,
    compute_checksum,
    decode,
    parse_sentence,
    sentence_type,
    verify_checksum,
)
from nmeabridge.models import (
    BaroRecord,
    DepthRecord,
    PositionRecord,
    SogCogRecord,
    WindApparentRecord,
    WindMwdRecord,
    WindTrueRecord,
)

RMC = "$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6A"

# ------------------------------------------------------------------
# Checksum
# ------------------------------------------------------------------


class TestChecksum:
    def test_compute_matches_known_sentence(self) -> None:
        body = RMC[1 : RMC.rindex("*")]
        assert compute_checksum(body) == 0x6A

    def test_verify_returns_body(self) -> None:
        assert verify_checksum("$SDDPT,4.2,0.5*54") == "SDDPT,4.2,0.5"

    def test_lowercase_hex_digits_accepted(self) -> None:
        assert decode(RMC[:-2] + "6a") is not None

    def test_wrong_checksum_rejected(self) -> None:
        with pytest.raises(ChecksumMismatchError):
            verify_checksum(RMC[:-2] + "00")

    def test_missing_checksum_rejected(self) -> None:
        with pytest.raises(ChecksumMismatchError):
            verify_checksum("$SDDPT,4.2,0.5")

    def test_single_digit_checksum_rejected(self) -> None:
        with pytest.raises(ChecksumMismatchError):
            verify_checksum("$SDDPT,4.2,0.5*5")

    def test_trailing_text_after_checksum_rejected(self) -> None:
        with pytest.raises(ChecksumMismatchError):
            verify_checksum("$SDDPT,4.2,0.5*54XX")

    def test_missing_dollar_rejected(self) -> None:
        with pytest.raises(MalformedSentenceError):
            verify_checksum("SDDPT,4.2,0.5*54")

    def test_flipping_any_body_byte_rejects(self) -> None:
        star = RMC.rindex("*")
        for index in range(1, star):
            original = RMC[index]
            replacement = "0" if original != "0" else "1"
            mutated = RMC[:index] + replacement + RMC[index + 1 :]
            assert decode(mutated) is None, mutated


# ------------------------------------------------------------------
# Sentence identity
# ------------------------------------------------------------------


def test_sentence_type_strips_two_character_talker() -> None:
    assert sentence_type(RMC) == "RMC"
    assert sentence_type("$IIDBT,,f,003.5,M,,F*17") == "DBT"
    assert sentence_type("$SDDPT*00") == "DPT"


def test_sentence_type_short_address_is_none() -> None:
    assert sentence_type("$DBT,,f,003.5,M,,F*17") is None
    assert sentence_type("no dollar") is None


def test_short_address_dropped_even_with_valid_checksum() -> None:
    assert decode("$DBT,,f,003.5,M,,F*17") is None


def test_supported_types() -> None:
    assert SUPPORTED_TYPES == {"RMC", "GLL", "VTG", "MWV", "MWD", "MDA", "XDR", "DBT", "DPT"}


def test_unsupported_type_dropped() -> None:
    assert decode("$GPGSV,3,1,11,03,03,111,00*4A") is None
    assert decode("$GPZDA,201530.00,04,07,2002,00,00*60") is None
    with pytest.raises(MalformedSentenceError):
        parse_sentence("$GPGSV,3,1,11,03,03,111,00*4A")


# ------------------------------------------------------------------
# Worked examples
# ------------------------------------------------------------------


def test_rmc_position() -> None:
    record = decode(RMC)

    assert isinstance(record, PositionRecord)
    assert record.latitude == pytest.approx(48.1173, abs=1e-4)
    assert record.longitude == pytest.approx(11.5167, abs=1e-4)
    assert record.sog == pytest.approx(22.4)
    assert record.cog_true == pytest.approx(84.4)


def test_rmc_with_zeroed_checksum_dropped() -> None:
    assert decode(RMC[:-2] + "00") is None


def test_mwv_apparent_knots() -> None:
    record = decode("$WIMWV,045.0,R,12.0,N,A*11")

    assert isinstance(record, WindApparentRecord)
    assert record.wind_apparent_angle == pytest.approx(45.0)
    assert record.wind_apparent_speed == pytest.approx(12.0)


def test_dbt_depth() -> None:
    record = decode("$IIDBT,,f,003.5,M,,F*17")

    assert isinstance(record, DepthRecord)
    assert record.depth == pytest.approx(3.5)


def test_surrounding_whitespace_ignored() -> None:
    assert decode("  $IIDBT,,f,003.5,M,,F*17\r\n") == decode("$IIDBT,,f,003.5,M,,F*17")


def test_decode_is_idempotent() -> None:
    first = decode(RMC)
    second = decode(RMC)

    assert first is not None
    assert first == second
    assert first.to_message(RMC) == second.to_message(RMC)


# ------------------------------------------------------------------
# Per-type behaviour
# ------------------------------------------------------------------


def test_rmc_void_fix_dropped() -> None:
    assert decode("$GPRMC,123519,V,4807.038,N,01131.000,E,022.4,084.4,230394,003.1,W*7D") is None


def test_rmc_latitude_out_of_range_dropped() -> None:
    assert decode("$GPRMC,123519,A,9107.038,N,01131.000,E,022.4,084.4,230394,003.1,W*6E") is None


def test_rmc_longitude_out_of_range_dropped() -> None:
    assert decode("$GPRMC,123519,A,4807.038,N,18131.000,E,022.4,084.4,230394,003.1,W*62") is None


def test_gll_position_west() -> None:
    record = decode("$GPGLL,4916.45,N,12311.12,W,225444,A*31")

    assert isinstance(record, PositionRecord)
    assert record.latitude == pytest.approx(49.27416, abs=1e-4)
    assert record.longitude == pytest.approx(-123.18533, abs=1e-4)
    assert record.sog is None
    assert record.cog_true is None


def test_gll_without_status_accepted() -> None:
    record = decode("$GPGLL,4916.45,S,12311.12,E*7E")

    assert isinstance(record, PositionRecord)
    assert record.latitude == pytest.approx(-49.27416, abs=1e-4)
    assert record.longitude == pytest.approx(123.18533, abs=1e-4)


def test_gll_invalid_status_dropped() -> None:
    assert decode("$GPGLL,4916.45,N,12311.12,W,225444,V*26") is None


def test_vtg_course_and_speed() -> None:
    record = decode("$GPVTG,054.7,T,034.4,M,005.5,N,010.2,K*48")

    assert isinstance(record, SogCogRecord)
    assert record.cog_true == pytest.approx(54.7)
    assert record.sog == pytest.approx(5.5)


def test_mwv_true_wind_metres_per_second() -> None:
    record = decode("$WIMWV,270.0,T,10.0,M,A*12")

    assert isinstance(record, WindTrueRecord)
    assert record.wind_true_angle == pytest.approx(270.0)
    assert record.wind_true_speed == pytest.approx(19.4384, abs=1e-3)


def test_mwv_kilometres_per_hour() -> None:
    record = decode("$WIMWV,090.0,R,36.0,K,A*1A")

    assert isinstance(record, WindApparentRecord)
    assert record.wind_apparent_speed == pytest.approx(19.4384, abs=1e-3)


def test_mwv_invalid_status_dropped() -> None:
    assert decode("$WIMWV,045.0,R,12.0,N,V*06") is None


def test_mwv_unknown_unit_dropped() -> None:
    assert decode("$WIMWV,045.0,R,12.0,X,A*07") is None


def test_mwd_direction_and_speed() -> None:
    record = decode("$WIMWD,270.0,T,268.0,M,15.5,N,8.0,M*6A")

    assert isinstance(record, WindMwdRecord)
    assert record.wind_true_direction == pytest.approx(270.0)
    assert record.wind_true_speed == pytest.approx(15.5)


def test_mda_pressure_and_temperature() -> None:
    record = decode("$WIMDA,29.9,I,1.0132,B,18.5,C*0F")

    assert isinstance(record, BaroRecord)
    assert record.baro_pressure_hpa == pytest.approx(1013.2)
    assert record.temperature == pytest.approx(18.5)


def test_mda_without_values_dropped() -> None:
    assert decode("$WIMDA,29.9,I,,B,,C*02") is None


def test_xdr_pressure() -> None:
    record = decode("$WIXDR,P,1.0132,B,Barometer*08")

    assert isinstance(record, BaroRecord)
    assert record.baro_pressure_hpa == pytest.approx(1013.2)
    assert record.temperature is None


def test_xdr_temperature() -> None:
    record = decode("$WIXDR,C,18.5,C,AirTemp*34")

    assert isinstance(record, BaroRecord)
    assert record.temperature == pytest.approx(18.5)
    assert record.baro_pressure_hpa is None


def test_xdr_other_transducer_dropped() -> None:
    assert decode("$WIXDR,H,55.0,P,Humidity*6F") is None


def test_dpt_depth() -> None:
    record = decode("$SDDPT,4.2,0.5*54")

    assert isinstance(record, DepthRecord)
    assert record.depth == pytest.approx(4.2)


def test_garbage_never_raises() -> None:
    for line in ("", "   ", "$", "$*", "$GP*ZZ", "hello world", "$GPRMC,,,*"):
        assert decode(line) is None


def test_non_decimal_numbers_drop_sentence() -> None:
    assert decode("$GPVTG,054.7,T,034.4,M,5_5,N,010.2,K*39") is None
    assert decode("$SDDPT,1e1,0.5*19") is None
