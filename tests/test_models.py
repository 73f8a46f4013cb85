"""Tests for decoded record models and their push-channel serialisation."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from nmeabridge.models import (
    BaroRecord,
    DecodedRecord,
    DepthRecord,
    PositionRecord,
    SogCogRecord,
    WindApparentRecord,
    WindTrueRecord,
)

# ------------------------------------------------------------------
# to_message
# ------------------------------------------------------------------


class TestToMessage:
    def test_camel_case_keys_and_raw(self) -> None:
        record = PositionRecord(latitude=48.1, longitude=11.5, sog=22.4, cog_true=84.4)

        assert record.to_message("$GPRMC...") == {
            "type": "position",
            "latitude": 48.1,
            "longitude": 11.5,
            "sog": 22.4,
            "cogTrue": 84.4,
            "_raw": "$GPRMC...",
        }

    def test_absent_fields_omitted_not_zero(self) -> None:
        message = PositionRecord(latitude=1.0, longitude=2.0).to_message()

        assert "sog" not in message
        assert "cogTrue" not in message
        assert "_raw" not in message

    def test_baro_pressure_key(self) -> None:
        message = BaroRecord(baro_pressure_hpa=1013.2).to_message()

        assert message == {"type": "baro", "baroPressureHPa": 1013.2}

    def test_wind_keys(self) -> None:
        apparent = WindApparentRecord(wind_apparent_angle=45.0, wind_apparent_speed=12.0).to_message()
        true = WindTrueRecord(wind_true_angle=270.0).to_message()

        assert apparent == {"type": "wind_apparent", "windApparentAngle": 45.0, "windApparentSpeed": 12.0}
        assert true == {"type": "wind_true", "windTrueAngle": 270.0}


# ------------------------------------------------------------------
# Validation
# ------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(("latitude", "longitude"), [(90.5, 0.0), (-91.0, 0.0), (0.0, 180.5), (0.0, -181.0)])
    def test_out_of_range_coordinates_rejected(self, latitude: float, longitude: float) -> None:
        with pytest.raises(ValidationError):
            PositionRecord(latitude=latitude, longitude=longitude)

    def test_records_are_frozen(self) -> None:
        record = DepthRecord(depth=3.5)
        with pytest.raises(ValidationError):
            record.depth = 4.0  # type: ignore[misc]

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SogCogRecord(sog=1.0, heading=2.0)  # type: ignore[call-arg]

    def test_populate_by_alias(self) -> None:
        record = BaroRecord.model_validate({"baroPressureHPa": 1000.0, "temperature": 20.0})

        assert record.baro_pressure_hpa == 1000.0


def test_discriminated_union_selects_record_by_type() -> None:
    adapter = TypeAdapter(DecodedRecord)

    record = adapter.validate_python({"type": "sog_cog", "sog": 5.5, "cogTrue": 54.7})

    assert isinstance(record, SogCogRecord)
    assert record.cog_true == 54.7
