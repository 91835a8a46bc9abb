"""Transformation of InSight weather payloads into per-sol records."""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from models.weather import (
    COMPASS_POINTS,
    DEGREES_PER_DIRECTION,
    DIRECTION_COUNT,
    WeatherRecord,
    WeatherSummary,
    WindRosePetal,
)

logger = logging.getLogger(__name__)

_SOL_KEY_PATTERN = re.compile(r"^[0-9]+$")
_UNKNOWN = "Unknown"


class ParseError(ValueError):
    """Raised when a weather payload is not a JSON object."""


def parse_weather(raw: str | bytes) -> List[WeatherRecord]:
    """Parse a weather payload into records ordered newest sol first.

    Only a document that is not a JSON object is an error. Sub-objects that
    are missing or malformed leave their fields at their defaults.
    """
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Invalid weather payload: {exc}") from exc

    if not isinstance(document, dict):
        raise ParseError("Weather payload is not a JSON object")

    records: List[WeatherRecord] = []
    for sol in _ordered_sol_keys(document):
        sol_data = document.get(sol)
        if not isinstance(sol_data, dict):
            logger.debug("Skipping sol without data", extra={"sol": sol})
            continue
        records.append(_build_record(sol, sol_data))

    logger.debug("Parsed weather payload", extra={"record_count": len(records)})
    return records


def _ordered_sol_keys(document: Mapping[str, Any]) -> List[str]:
    declared = document.get("sol_keys")
    if isinstance(declared, list):
        candidates: Iterable[str] = (str(key) for key in declared)
    elif declared is not None:
        logger.warning("sol_keys is not a list", extra={"reason": type(declared).__name__})
        return []
    else:
        candidates = (key for key in document if _SOL_KEY_PATTERN.match(key))

    unique: Dict[str, None] = {}
    for key in candidates:
        unique.setdefault(key, None)
    return sorted(unique, key=_sol_number, reverse=True)


def _sol_number(key: str) -> int:
    try:
        return int(key)
    except ValueError:
        return 0


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _section(sol_data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = sol_data.get(name)
    return section if isinstance(section, dict) else {}


def _build_record(sol: str, sol_data: Mapping[str, Any]) -> WeatherRecord:
    temperature = _section(sol_data, "AT")
    wind_speed = _section(sol_data, "HWS")
    pressure = _section(sol_data, "PRE")
    wind_direction = _section(sol_data, "WD")

    histogram, max_value = _wind_histogram(sol, wind_direction)
    most_common = wind_direction.get("most_common")
    dominant = _as_str(most_common.get("compass_point")) if isinstance(most_common, dict) else None

    return WeatherRecord(
        sol=sol,
        average_temperature=_as_float(temperature.get("av")) or 0.0,
        min_temperature=_as_float(temperature.get("mn")),
        max_temperature=_as_float(temperature.get("mx")),
        average_pressure=_as_float(pressure.get("av")) or 0.0,
        wind_speed_average=_as_float(wind_speed.get("av")),
        wind_speed_max=_as_float(wind_speed.get("mx")),
        dominant_wind_direction=dominant,
        wind_direction_histogram=histogram,
        max_wind_direction_value=max_value,
        season=_as_str(sol_data.get("Season")),
        northern_season=_as_str(sol_data.get("Northern_season")),
        southern_season=_as_str(sol_data.get("Southern_season")),
        first_observed_at=_as_str(sol_data.get("First_UTC")),
        last_observed_at=_as_str(sol_data.get("Last_UTC")),
    )


def _wind_histogram(sol: str, wind_direction: Mapping[str, Any]) -> tuple[Dict[int, float], float]:
    histogram: Dict[int, float] = {}
    max_value = 0.0
    for index in range(DIRECTION_COUNT):
        entry = wind_direction.get(str(index))
        if not isinstance(entry, dict):
            continue
        count = _as_float(entry.get("ct"))
        if count is None or count < 0:
            logger.debug(
                "Ignoring malformed wind direction count",
                extra={"sol": sol, "reason": f"direction {index}"},
            )
            continue
        histogram[index] = count
        if count > max_value:
            max_value = count
    return histogram, max_value


def wind_rose(record: WeatherRecord) -> List[WindRosePetal]:
    """Petals for every reported direction, ordered clockwise from north."""
    peak = record.max_wind_direction_value
    petals = []
    for index in sorted(record.wind_direction_histogram):
        count = record.wind_direction_histogram[index]
        petals.append(
            WindRosePetal(
                index=index,
                compass_point=COMPASS_POINTS[index],
                angle_degrees=index * DEGREES_PER_DIRECTION,
                count=count,
                ratio=count / peak if peak > 0 else 0.0,
            )
        )
    return petals


def summarize_latest(records: Sequence[WeatherRecord]) -> Optional[WeatherSummary]:
    """Flatten the newest record, filling text gaps with placeholders."""
    if not records:
        return None
    latest = records[0]
    return WeatherSummary(
        sol=latest.sol,
        average_temperature=latest.average_temperature,
        min_temperature=latest.min_temperature,
        max_temperature=latest.max_temperature,
        average_pressure=latest.average_pressure,
        wind_speed_average=latest.wind_speed_average,
        wind_speed_max=latest.wind_speed_max,
        dominant_wind_direction=latest.dominant_wind_direction or "N/A",
        season=latest.season or _UNKNOWN,
        northern_season=latest.northern_season or _UNKNOWN,
        southern_season=latest.southern_season or _UNKNOWN,
        first_observed_at=latest.first_observed_at or "",
        last_observed_at=latest.last_observed_at or "",
    )


def find_record(records: Iterable[WeatherRecord], sol: str) -> Optional[WeatherRecord]:
    for record in records:
        if record.sol == sol:
            return record
    return None
