"""
ClothingAnalyzer -- deterministic packing rules over a trip's daily forecasts.

Input:  forecasts (anything with date, temperature_min/max/avg,
        precipitation_probability, uv_index_max). Order is not trusted.
Output: {"outerwear", "tops", "bottoms", "footwear", "accessories"} -> text

Temperatures are Fahrenheit (the provider is queried with units=imperial).

Aggregates (missing per-day values are skipped):
  min_temp   lowest temperature_min               (None if no day has one)
  max_temp   highest temperature_max              (None if no day has one)
  avg_temp   mean of temperature_avg              (0 if no day has one)
  max_uv     highest uv_index_max                 (0 if no day has one)
  will_rain  any precipitation_probability > 30.0 (missing counts as 0)
  high_uv    any uv_index_max >= 6                (missing counts as 0)

Tier tables are ordered (upper_bound, label) pairs; the first bound the value
is strictly below wins, so a value sitting exactly on a bound lands in the
warmer tier. A None aggregate never satisfies a bound.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Optional

VERY_COLD = 41.0   # 5°C
COLD = 50.0        # 10°C
COOL = 68.0        # 20°C
WARM = 77.0        # 25°C

RAIN_THRESHOLD = 30.0  # precipitation probability %, strictly above
HIGH_UV = 6            # UV index, at or above

CATEGORIES = ("outerwear", "tops", "bottoms", "footwear", "accessories")

NO_DATA = "No data available"
NO_ACCESSORIES = "No special accessories needed"
RAIN_JACKET_SUFFIX = ". Also bring a waterproof rain jacket"

OUTERWEAR_TIERS: tuple[tuple[float, str], ...] = (
    (VERY_COLD, "Heavy winter coat or insulated parka"),
    (COLD, "Winter jacket or heavy sweater"),
    (COOL, "Light jacket, cardigan, or sweater"),
)
OUTERWEAR_DEFAULT = "Light cardigan or no jacket needed"

TOPS_TIERS: tuple[tuple[float, str], ...] = (
    (VERY_COLD, "Thermal base layers and long-sleeve sweaters"),
    (COLD, "Long-sleeve shirts and sweaters"),
    (COOL, "Long-sleeve shirts or light sweaters"),
    (WARM, "T-shirts, polo shirts, and light tops"),
)
TOPS_DEFAULT = "T-shirts, tank tops, and breathable fabrics"

BOTTOMS_TIERS: tuple[tuple[float, str], ...] = (
    (VERY_COLD, "Insulated pants or jeans with thermal layers"),
    (COOL, "Jeans or casual pants"),
)
BOTTOMS_DEFAULT = "Shorts, light pants, or skirts"

FOOTWEAR_RAIN = "Waterproof boots or water-resistant shoes"
FOOTWEAR_COLD = "Insulated boots or closed-toe shoes"
FOOTWEAR_DEFAULT = "Sneakers, sandals, or comfortable walking shoes"

UMBRELLA = "Umbrella"
WINTER_ACCESSORIES = "Hat, scarf, and gloves"
SUN_PROTECTION = "Sunglasses and sunscreen (UV index {uv})"


def _below(value: Optional[float], bound: float) -> bool:
    return value is not None and value < bound


def _pick_tier(
    value: Optional[float],
    tiers: tuple[tuple[float, str], ...],
    default: str,
) -> str:
    for bound, label in tiers:
        if _below(value, bound):
            return label
    return default


@dataclass(frozen=True)
class WeatherStats:
    min_temp: Optional[float]
    max_temp: Optional[float]
    avg_temp: float
    max_uv: int
    will_rain: bool
    high_uv: bool

    @classmethod
    def from_forecasts(cls, forecasts: list[Any]) -> "WeatherStats":
        mins = [f.temperature_min for f in forecasts if f.temperature_min is not None]
        maxes = [f.temperature_max for f in forecasts if f.temperature_max is not None]
        avgs = [f.temperature_avg for f in forecasts if f.temperature_avg is not None]
        uvs = [f.uv_index_max for f in forecasts if f.uv_index_max is not None]
        return cls(
            min_temp=min(mins) if mins else None,
            max_temp=max(maxes) if maxes else None,
            avg_temp=sum(avgs) / len(avgs) if avgs else 0,
            max_uv=max(uvs) if uvs else 0,
            will_rain=any(
                (f.precipitation_probability or 0) > RAIN_THRESHOLD for f in forecasts
            ),
            high_uv=any((f.uv_index_max or 0) >= HIGH_UV for f in forecasts),
        )


class ClothingAnalyzer:
    def __init__(self, forecasts: Optional[Iterable[Any]]) -> None:
        self._forecasts = sorted(forecasts or [], key=lambda f: f.date)
        self._stats = WeatherStats.from_forecasts(self._forecasts) if self._forecasts else None

    @property
    def stats(self) -> Optional[WeatherStats]:
        return self._stats

    def analyze(self) -> dict[str, str]:
        if self._stats is None:
            return {category: NO_DATA for category in CATEGORIES}

        return {
            "outerwear": self._outerwear(),
            "tops": self._tops(),
            "bottoms": self._bottoms(),
            "footwear": self._footwear(),
            "accessories": self._accessories(),
        }

    def _outerwear(self) -> str:
        recommendation = _pick_tier(self._stats.avg_temp, OUTERWEAR_TIERS, OUTERWEAR_DEFAULT)
        if self._stats.will_rain:
            recommendation += RAIN_JACKET_SUFFIX
        return recommendation

    def _tops(self) -> str:
        return _pick_tier(self._stats.avg_temp, TOPS_TIERS, TOPS_DEFAULT)

    def _bottoms(self) -> str:
        return _pick_tier(self._stats.min_temp, BOTTOMS_TIERS, BOTTOMS_DEFAULT)

    def _footwear(self) -> str:
        if self._stats.will_rain:
            return FOOTWEAR_RAIN
        if _below(self._stats.min_temp, COLD):
            return FOOTWEAR_COLD
        return FOOTWEAR_DEFAULT

    def _accessories(self) -> str:
        stats = self._stats
        items = []
        if stats.will_rain:
            items.append(UMBRELLA)
        if _below(stats.min_temp, VERY_COLD):
            items.append(WINTER_ACCESSORIES)
        if stats.high_uv or (stats.max_temp is not None and stats.max_temp > WARM):
            items.append(SUN_PROTECTION.format(uv=stats.max_uv))
        return ", ".join(items) if items else NO_ACCESSORIES


def analyze(forecasts: Optional[Iterable[Any]]) -> dict[str, str]:
    """Functional shortcut for ClothingAnalyzer(forecasts).analyze()."""
    return ClothingAnalyzer(forecasts).analyze()
