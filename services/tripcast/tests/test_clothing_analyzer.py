"""
Tests for ClothingAnalyzer -- tier boundaries, rain/UV triggers, and data gaps.

Every case builds DailyForecast records directly; the analyzer only needs
date, temperature_min/max/avg, precipitation_probability, and uv_index_max.
"""

from datetime import timedelta

import pytest

from services.tripcast.pipeline.clothing_analyzer import (
    CATEGORIES,
    FOOTWEAR_COLD,
    FOOTWEAR_DEFAULT,
    FOOTWEAR_RAIN,
    NO_ACCESSORIES,
    NO_DATA,
    ClothingAnalyzer,
    WeatherStats,
    analyze,
)
from services.tripcast.tests.conftest import TRIP_START, make_daily


def _day(offset: int = 0, **values):
    return make_daily("Boston", TRIP_START + timedelta(days=offset), **values)


def _mild(**values):
    """One mild, dry, low-UV day with the given overrides."""
    base = {
        "temperature_min": 60.0,
        "temperature_max": 70.0,
        "temperature_avg": 65.0,
        "precipitation_probability": 0.0,
        "uv_index_max": 2,
    }
    base.update(values)
    return [_day(0, **base)]


# ---------------------------------------------------------------------------
# Output shape
# ---------------------------------------------------------------------------

class TestOutputShape:
    def test_exactly_five_categories(self):
        result = analyze(_mild())
        assert tuple(result) == CATEGORIES
        assert all(isinstance(v, str) and v for v in result.values())

    def test_empty_input_yields_no_data_everywhere(self):
        assert analyze([]) == {c: NO_DATA for c in CATEGORIES}

    def test_none_input_yields_no_data_everywhere(self):
        assert analyze(None) == {c: NO_DATA for c in CATEGORIES}
        assert ClothingAnalyzer(None).stats is None

    def test_order_of_input_does_not_matter(self):
        days = [
            _day(0, temperature_min=38.0, temperature_avg=45.0),
            _day(1, temperature_min=55.0, temperature_avg=62.0, uv_index_max=7),
            _day(2, temperature_min=48.0, temperature_avg=51.0, precipitation_probability=45.0),
        ]
        assert analyze(list(reversed(days))) == analyze(days)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

class TestWeatherStats:
    def test_aggregates_across_days(self):
        stats = ClothingAnalyzer([
            _day(0, temperature_min=40.0, temperature_max=60.0, temperature_avg=50.0, uv_index_max=4),
            _day(1, temperature_min=45.0, temperature_max=70.0, temperature_avg=60.0, uv_index_max=7),
        ]).stats
        assert stats.min_temp == 40.0
        assert stats.max_temp == 70.0
        assert stats.avg_temp == pytest.approx(55.0)
        assert stats.max_uv == 7
        assert stats.high_uv is True
        assert stats.will_rain is False

    def test_missing_values_are_skipped(self):
        stats = WeatherStats.from_forecasts([
            _day(0, temperature_min=None, temperature_avg=None, uv_index_max=None,
                 precipitation_probability=None),
            _day(1, temperature_min=50.0, temperature_avg=60.0, uv_index_max=None),
        ])
        assert stats.min_temp == 50.0
        assert stats.avg_temp == pytest.approx(60.0)
        assert stats.max_uv == 0
        assert stats.high_uv is False

    def test_all_values_missing(self):
        stats = WeatherStats.from_forecasts([
            _day(0, temperature_min=None, temperature_max=None, temperature_avg=None,
                 uv_index_max=None, precipitation_probability=None),
        ])
        assert stats.min_temp is None
        assert stats.max_temp is None
        assert stats.avg_temp == 0
        assert stats.will_rain is False


# ---------------------------------------------------------------------------
# Temperature tiers
# ---------------------------------------------------------------------------

class TestOuterwearAndTops:
    @pytest.mark.parametrize("avg,outerwear,tops", [
        (40.9, "Heavy winter coat or insulated parka",
               "Thermal base layers and long-sleeve sweaters"),
        (41.0, "Winter jacket or heavy sweater", "Long-sleeve shirts and sweaters"),
        (49.9, "Winter jacket or heavy sweater", "Long-sleeve shirts and sweaters"),
        (50.0, "Light jacket, cardigan, or sweater", "Long-sleeve shirts or light sweaters"),
        (67.9, "Light jacket, cardigan, or sweater", "Long-sleeve shirts or light sweaters"),
        (68.0, "Light cardigan or no jacket needed", "T-shirts, polo shirts, and light tops"),
        (76.9, "Light cardigan or no jacket needed", "T-shirts, polo shirts, and light tops"),
        (77.0, "Light cardigan or no jacket needed", "T-shirts, tank tops, and breathable fabrics"),
    ])
    def test_tiers_by_average(self, avg, outerwear, tops):
        result = analyze(_mild(temperature_avg=avg))
        assert result["outerwear"] == outerwear
        assert result["tops"] == tops

    def test_rain_appends_jacket_to_outerwear(self):
        result = analyze(_mild(temperature_avg=55.0, precipitation_probability=80.0))
        assert result["outerwear"] == (
            "Light jacket, cardigan, or sweater. Also bring a waterproof rain jacket"
        )


class TestBottoms:
    @pytest.mark.parametrize("min_temp,expected", [
        (40.9, "Insulated pants or jeans with thermal layers"),
        (41.0, "Jeans or casual pants"),
        (67.9, "Jeans or casual pants"),
        (68.0, "Shorts, light pants, or skirts"),
    ])
    def test_tiers_by_minimum(self, min_temp, expected):
        assert analyze(_mild(temperature_min=min_temp))["bottoms"] == expected

    def test_unknown_minimum_uses_warmest_tier(self):
        result = analyze(_mild(temperature_min=None))
        assert result["bottoms"] == "Shorts, light pants, or skirts"


class TestFootwear:
    def test_rain_wins_over_cold(self):
        result = analyze(_mild(temperature_min=30.0, precipitation_probability=60.0))
        assert result["footwear"] == FOOTWEAR_RAIN

    def test_cold_without_rain(self):
        assert analyze(_mild(temperature_min=49.9))["footwear"] == FOOTWEAR_COLD

    def test_cold_boundary_is_exclusive(self):
        assert analyze(_mild(temperature_min=50.0))["footwear"] == FOOTWEAR_DEFAULT

    def test_unknown_minimum_is_not_cold(self):
        assert analyze(_mild(temperature_min=None))["footwear"] == FOOTWEAR_DEFAULT


# ---------------------------------------------------------------------------
# Rain and UV triggers
# ---------------------------------------------------------------------------

class TestRainThreshold:
    def test_exactly_thirty_percent_is_dry(self):
        result = analyze(_mild(precipitation_probability=30.0))
        assert result["footwear"] == FOOTWEAR_DEFAULT
        assert "Umbrella" not in result["accessories"]
        assert "rain jacket" not in result["outerwear"]

    def test_just_above_thirty_percent_is_rain(self):
        result = analyze(_mild(precipitation_probability=30.1))
        assert result["footwear"] == FOOTWEAR_RAIN
        assert result["accessories"].startswith("Umbrella")

    def test_one_rainy_day_is_enough(self):
        days = _mild() + [_day(1, precipitation_probability=31.0)]
        assert analyze(days)["footwear"] == FOOTWEAR_RAIN


class TestAccessories:
    def test_uv_six_triggers_sun_protection(self):
        result = analyze(_mild(uv_index_max=6))
        assert result["accessories"] == "Sunglasses and sunscreen (UV index 6)"

    def test_uv_five_on_a_mild_day_needs_nothing(self):
        result = analyze(_mild(uv_index_max=5))
        assert result["accessories"] == NO_ACCESSORIES

    def test_hot_day_triggers_sun_protection_even_with_low_uv(self):
        result = analyze(_mild(temperature_max=77.5, uv_index_max=3))
        assert result["accessories"] == "Sunglasses and sunscreen (UV index 3)"

    def test_max_exactly_warm_does_not_trigger(self):
        result = analyze(_mild(temperature_max=77.0, uv_index_max=3))
        assert result["accessories"] == NO_ACCESSORIES

    def test_very_cold_adds_winter_gear(self):
        result = analyze(_mild(temperature_min=35.0, temperature_max=45.0, temperature_avg=40.0))
        assert result["accessories"] == "Hat, scarf, and gloves"

    def test_all_accessories_in_order(self):
        result = analyze(_mild(
            temperature_min=35.0,
            temperature_max=80.0,
            precipitation_probability=70.0,
            uv_index_max=7,
        ))
        assert result["accessories"] == (
            "Umbrella, Hat, scarf, and gloves, Sunglasses and sunscreen (UV index 7)"
        )


# ---------------------------------------------------------------------------
# Whole-trip examples
# ---------------------------------------------------------------------------

def test_cold_wet_winter_trip():
    days = [
        _day(0, temperature_min=30.0, temperature_max=40.0, temperature_avg=35.0,
             precipitation_probability=20.0, uv_index_max=1),
        _day(1, temperature_min=33.0, temperature_max=42.0, temperature_avg=38.0,
             precipitation_probability=65.0, uv_index_max=1),
    ]
    assert analyze(days) == {
        "outerwear": "Heavy winter coat or insulated parka. Also bring a waterproof rain jacket",
        "tops": "Thermal base layers and long-sleeve sweaters",
        "bottoms": "Insulated pants or jeans with thermal layers",
        "footwear": FOOTWEAR_RAIN,
        "accessories": "Umbrella, Hat, scarf, and gloves",
    }


def test_hot_sunny_summer_trip():
    days = [
        _day(i, temperature_min=72.0, temperature_max=90.0, temperature_avg=82.0,
             precipitation_probability=5.0, uv_index_max=9)
        for i in range(3)
    ]
    assert analyze(days) == {
        "outerwear": "Light cardigan or no jacket needed",
        "tops": "T-shirts, tank tops, and breathable fabrics",
        "bottoms": "Shorts, light pants, or skirts",
        "footwear": FOOTWEAR_DEFAULT,
        "accessories": "Sunglasses and sunscreen (UV index 9)",
    }
