from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_WEATHER_URL_ENV = "MARS_WEATHER_API_URL"
_WEATHER_KEY_ENV = "MARS_WEATHER_API_KEY"
_WEATHER_TIMEOUT_ENV = "MARS_WEATHER_TIMEOUT"
_PRIMARY_HOST_ENV = "ROBOT_PRIMARY_HOST"
_SECONDARY_HOST_ENV = "ROBOT_SECONDARY_HOST"
_ROBOT_PORT_ENV = "ROBOT_PORT"
_CONNECT_TIMEOUT_ENV = "ROBOT_CONNECT_TIMEOUT"
_SIMULATION_DELAY_ENV = "ROBOT_SIMULATION_DELAY"
_HISTORY_PATH_ENV = "COMMAND_HISTORY_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_WEATHER_URL = "https://api.nasa.gov/insight_weather/"
DEFAULT_WEATHER_KEY = "DEMO_KEY"


@dataclass(frozen=True)
class Settings:
    weather_api_url: str
    weather_api_key: str
    weather_timeout: float
    robot_primary_host: str
    robot_secondary_host: str
    robot_port: int
    robot_connect_timeout: Optional[float]
    simulation_delay: float
    history_path: Optional[str]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_port(default: int) -> int:
    value = os.getenv(_ROBOT_PORT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if 0 < parsed < 65536 else default


def _read_float_env(name: str, default: Optional[float], allow_zero: bool = False) -> Optional[float]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if parsed > 0 or (allow_zero and parsed == 0):
        return parsed
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        weather_api_url=_read_str_env(_WEATHER_URL_ENV, DEFAULT_WEATHER_URL),
        weather_api_key=_read_str_env(_WEATHER_KEY_ENV, DEFAULT_WEATHER_KEY),
        weather_timeout=_read_float_env(_WEATHER_TIMEOUT_ENV, 15.0) or 15.0,
        robot_primary_host=_read_str_env(_PRIMARY_HOST_ENV, "10.0.2.2"),
        robot_secondary_host=_read_str_env(_SECONDARY_HOST_ENV, "127.0.0.1"),
        robot_port=_read_port(1056),
        robot_connect_timeout=_read_float_env(_CONNECT_TIMEOUT_ENV, None),
        simulation_delay=_read_float_env(_SIMULATION_DELAY_ENV, 0.5, allow_zero=True) or 0.0,
        history_path=_read_optional_env(_HISTORY_PATH_ENV, "./tmp/robot_command_history.json"),
        log_level=_read_log_level("INFO"),
    )
