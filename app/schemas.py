"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.commands import CommandName, CommandStyle


class WeatherRecordOut(BaseModel):
    """Normalized weather reading for one sol."""

    sol: str
    average_temperature: float
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    average_pressure: float
    wind_speed_average: Optional[float] = None
    wind_speed_max: Optional[float] = None
    dominant_wind_direction: Optional[str] = None
    wind_direction_histogram: Dict[int, float] = Field(default_factory=dict)
    max_wind_direction_value: float = Field(0.0, ge=0)
    season: Optional[str] = None
    northern_season: Optional[str] = None
    southern_season: Optional[str] = None
    first_observed_at: Optional[str] = None
    last_observed_at: Optional[str] = None


class WindRosePetalOut(BaseModel):
    index: int = Field(..., ge=0, le=15)
    compass_point: str
    angle_degrees: float
    count: float = Field(..., ge=0)
    ratio: float = Field(..., ge=0, le=1)


class WeatherDetail(BaseModel):
    """A single sol together with the data needed to draw its wind rose."""

    record: WeatherRecordOut
    wind_rose: List[WindRosePetalOut] = Field(default_factory=list)


class WeatherSummaryOut(BaseModel):
    sol: str
    average_temperature: float
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    average_pressure: float
    wind_speed_average: Optional[float] = None
    wind_speed_max: Optional[float] = None
    dominant_wind_direction: str
    season: str
    northern_season: str
    southern_season: str
    first_observed_at: str
    last_observed_at: str


class CommandRequest(BaseModel):
    command: CommandName = Field(..., description="Command to send to the robot.")


class RobotStateOut(BaseModel):
    """Control panel state as last observed by the controller."""

    motors_started: bool
    simulation_mode: bool
    connected_endpoint: Optional[str] = None
    last_response: str
    notification: Optional[str] = None
    session_history: List[str] = Field(default_factory=list)
    available_commands: List[CommandName] = Field(default_factory=list)


class CommandResponse(BaseModel):
    command: str
    response: str
    delivered: bool
    simulated: bool
    state: RobotStateOut


class HistoryEntryOut(BaseModel):
    number: int = Field(..., ge=1)
    command: str
    label: str
    style: Optional[CommandStyle] = None


class HistoryResponse(BaseModel):
    """Stored commands, newest first."""

    total: int = Field(..., ge=0)
    entries: List[HistoryEntryOut] = Field(default_factory=list)
