"""HTTP route definitions for the service."""

from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    CommandRequest,
    CommandResponse,
    HistoryEntryOut,
    HistoryResponse,
    RobotStateOut,
    WeatherDetail,
    WeatherRecordOut,
    WeatherSummaryOut,
    WindRosePetalOut,
)
from datastore.command_history import CommandHistoryStore, build_default_history_store
from models.weather import WeatherRecord
from services.robot_controller import RobotController, RobotState, build_default_controller
from services.weather_client import FetchError, MarsWeatherClient, build_default_weather_client
from services.weather_parser import ParseError, find_record, summarize_latest, wind_rose

router = APIRouter()


def get_weather_client() -> MarsWeatherClient:
    return build_default_weather_client()


def get_controller() -> RobotController:
    return build_default_controller()


def get_history() -> CommandHistoryStore:
    return build_default_history_store()


def _load_records(client: MarsWeatherClient) -> List[WeatherRecord]:
    try:
        return client.fetch_records()
    except FetchError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    except ParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc


def _record_out(record: WeatherRecord) -> WeatherRecordOut:
    return WeatherRecordOut(**asdict(record))


def _state_out(controller: RobotController, state: RobotState) -> RobotStateOut:
    return RobotStateOut(
        motors_started=state.motors_started,
        simulation_mode=state.simulation_mode,
        connected_endpoint=state.connected_endpoint,
        last_response=state.last_response,
        notification=state.notification,
        session_history=list(state.session_history),
        available_commands=controller.available_commands(),
    )


@router.get(
    "/weather",
    response_model=List[WeatherRecordOut],
    summary="List weather records, newest sol first.",
)
def list_weather(client: MarsWeatherClient = Depends(get_weather_client)) -> List[WeatherRecordOut]:
    return [_record_out(record) for record in _load_records(client)]


@router.get(
    "/weather/latest",
    response_model=WeatherSummaryOut,
    summary="Summary of the most recent sol.",
)
def latest_weather(client: MarsWeatherClient = Depends(get_weather_client)) -> WeatherSummaryOut:
    summary = summarize_latest(_load_records(client))
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Aucune donnée météo n'a pu être extraite",
        )
    return WeatherSummaryOut(**asdict(summary))


@router.get(
    "/weather/{sol}",
    response_model=WeatherDetail,
    summary="Weather detail and wind rose for one sol.",
)
def weather_detail(
    sol: str,
    client: MarsWeatherClient = Depends(get_weather_client),
) -> WeatherDetail:
    record = find_record(_load_records(client), sol)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sol {sol!r} not found.",
        )
    return WeatherDetail(
        record=_record_out(record),
        wind_rose=[WindRosePetalOut(**asdict(petal)) for petal in wind_rose(record)],
    )


@router.get(
    "/robot/status",
    response_model=RobotStateOut,
    summary="Current control panel state.",
)
def robot_status(controller: RobotController = Depends(get_controller)) -> RobotStateOut:
    return _state_out(controller, controller.state)


@router.post(
    "/robot/connect",
    response_model=RobotStateOut,
    summary="Probe the command server and choose real or simulated mode.",
)
def robot_connect(controller: RobotController = Depends(get_controller)) -> RobotStateOut:
    return _state_out(controller, controller.connect())


@router.post(
    "/robot/commands",
    response_model=CommandResponse,
    summary="Send one command to the robot.",
)
def send_command(
    request: CommandRequest,
    controller: RobotController = Depends(get_controller),
) -> CommandResponse:
    outcome = controller.issue(request.command.value)
    return CommandResponse(
        command=outcome.command,
        response=outcome.response,
        delivered=outcome.delivered,
        simulated=outcome.simulated,
        state=_state_out(controller, outcome.state),
    )


@router.get(
    "/robot/history",
    response_model=HistoryResponse,
    summary="Stored command history, newest first.",
)
def command_history(history: CommandHistoryStore = Depends(get_history)) -> HistoryResponse:
    entries = history.entries_for_display()
    return HistoryResponse(
        total=len(entries),
        entries=[HistoryEntryOut(**asdict(entry)) for entry in entries],
    )


@router.delete(
    "/robot/history",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Erase the stored command history.",
)
def clear_history(history: CommandHistoryStore = Depends(get_history)) -> None:
    history.clear()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
