"""Tests for the shared data models."""

from __future__ import annotations

import math

import pytest

from parkguard.models import BatchProgress, VesselSample


class TestVesselSample:
    def test_negative_and_nan_speed_become_zero(self):
        assert VesselSample(position=(9.4, 41.2), speed=-3.0).speed == 0.0
        assert VesselSample(position=(9.4, 41.2), speed=math.nan).speed == 0.0
        assert VesselSample(position=(9.4, 41.2), speed=None).speed == 0.0

    def test_coordinates(self):
        sample = VesselSample(position=(9.4, 41.2))
        assert sample.longitude == 9.4
        assert sample.latitude == 41.2

    def test_vessel_id_preference(self):
        assert VesselSample(position=(0, 0), uuid="u", mmsi="m").vessel_id == "u"
        assert VesselSample(position=(0, 0), mmsi="m", imo="i").vessel_id == "m"
        assert VesselSample(position=(0, 0), name="Aurora").vessel_id == "Aurora"

    def test_from_mapping_short_keys(self):
        sample = VesselSample.from_mapping({
            "lat": 41.21, "lon": 9.41, "speed": 3.2, "course": 90,
            "mmsi": 247000001, "destination": "Olbia",
        })
        assert sample.position == (9.41, 41.21)
        assert sample.speed == 3.2
        assert sample.course == 90.0
        assert sample.mmsi == "247000001"
        assert sample.extra == {"destination": "Olbia"}

    def test_from_mapping_nested_vessel(self):
        sample = VesselSample.from_mapping({
            "latitude": 41.21, "longitude": 9.41,
            "vessel": {"speed": 0.4, "name": "Aurora"},
        })
        assert sample.speed == 0.4
        assert sample.name == "Aurora"
        assert sample.heading is None

    def test_from_mapping_requires_position(self):
        with pytest.raises(ValueError):
            VesselSample.from_mapping({"lat": 41.21, "speed": 1.0})

    def test_extra_is_read_only(self):
        sample = VesselSample(position=(0, 0), extra={"a": 1})
        with pytest.raises(TypeError):
            sample.extra["b"] = 2


class TestBatchProgress:
    def test_percent(self):
        assert BatchProgress.of(50, 137).percent == 36
        assert BatchProgress.of(137, 137).percent == 100

    def test_clamped(self):
        assert BatchProgress.of(140, 137).percent == 100

    def test_empty_total(self):
        assert BatchProgress.of(0, 0).percent == 100
