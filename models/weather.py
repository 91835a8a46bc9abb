"""Domain models for per-sol Mars weather readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

DIRECTION_COUNT = 16
DEGREES_PER_DIRECTION = 360.0 / DIRECTION_COUNT

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE",
    "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW",
    "W", "WNW", "NW", "NNW",
)


@dataclass(frozen=True, slots=True)
class WeatherRecord:
    """Normalized weather reading for a single sol."""

    sol: str
    average_temperature: float = 0.0
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    average_pressure: float = 0.0
    wind_speed_average: Optional[float] = None
    wind_speed_max: Optional[float] = None
    dominant_wind_direction: Optional[str] = None
    wind_direction_histogram: Dict[int, float] = field(default_factory=dict)
    max_wind_direction_value: float = 0.0
    season: Optional[str] = None
    northern_season: Optional[str] = None
    southern_season: Optional[str] = None
    first_observed_at: Optional[str] = None
    last_observed_at: Optional[str] = None


@dataclass(frozen=True, slots=True)
class WindRosePetal:
    """One direction of the wind rose, scaled against the busiest direction."""

    index: int
    compass_point: str
    angle_degrees: float
    count: float
    ratio: float


@dataclass(frozen=True, slots=True)
class WeatherSummary:
    sol: str
    average_temperature: float
    min_temperature: Optional[float]
    max_temperature: Optional[float]
    average_pressure: float
    wind_speed_average: Optional[float]
    wind_speed_max: Optional[float]
    dominant_wind_direction: str
    season: str
    northern_season: str
    southern_season: str
    first_observed_at: str
    last_observed_at: str
