from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

import typer

from models.commands import HistoryEntry
from models.weather import WeatherRecord, WeatherSummary, WindRosePetal
from services.robot_controller import CommandOutcome

_BAR_WIDTH = 20


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float], unit: str = "") -> str:
    if value is None:
        return "-"
    return f"{value:.1f}{unit}"


def render_records(records: Sequence[WeatherRecord]) -> None:
    echo_heading("Mars Weather")
    if not records:
        typer.echo("No weather data available.")
        return
    for record in records:
        typer.echo(
            f"  - sol {record.sol}: {_fmt(record.average_temperature, '°C')} "
            f"(min {_fmt(record.min_temperature)}, max {_fmt(record.max_temperature)}), "
            f"pressure {_fmt(record.average_pressure, ' Pa')}, "
            f"wind {_fmt(record.wind_speed_average, ' m/s')} {record.dominant_wind_direction or ''}".rstrip()
        )


def render_record(record: WeatherRecord, petals: Sequence[WindRosePetal]) -> None:
    echo_heading(f"Sol {record.sol}")
    echo_key_values(
        [
            ("average_temperature", _fmt(record.average_temperature, "°C")),
            ("min_temperature", _fmt(record.min_temperature, "°C")),
            ("max_temperature", _fmt(record.max_temperature, "°C")),
            ("average_pressure", _fmt(record.average_pressure, " Pa")),
            ("wind_speed_average", _fmt(record.wind_speed_average, " m/s")),
            ("wind_speed_max", _fmt(record.wind_speed_max, " m/s")),
            ("dominant_wind_direction", record.dominant_wind_direction or "N/A"),
            ("season", record.season or "Unknown"),
            ("first_observed_at", record.first_observed_at or ""),
            ("last_observed_at", record.last_observed_at or ""),
        ]
    )

    typer.echo()
    echo_heading("Wind Rose")
    if not petals:
        typer.echo("No wind direction data.")
        return
    for petal in petals:
        bar = "#" * round(petal.ratio * _BAR_WIDTH)
        typer.echo(f"  {petal.compass_point:>3} {petal.angle_degrees:6.1f}° {bar} {petal.count:g}")


def render_summary(summary: WeatherSummary) -> None:
    echo_heading(f"Latest sol {summary.sol}")
    echo_key_values(
        [
            ("average_temperature", _fmt(summary.average_temperature, "°C")),
            ("average_pressure", _fmt(summary.average_pressure, " Pa")),
            ("wind_speed_average", _fmt(summary.wind_speed_average, " m/s")),
            ("wind_speed_max", _fmt(summary.wind_speed_max, " m/s")),
            ("dominant_wind_direction", summary.dominant_wind_direction),
            ("season", summary.season),
            ("northern_season", summary.northern_season),
            ("southern_season", summary.southern_season),
            ("first_observed_at", summary.first_observed_at),
            ("last_observed_at", summary.last_observed_at),
        ]
    )


def render_outcome(outcome: CommandOutcome) -> None:
    state = outcome.state
    if state.simulation_mode:
        typer.secho("Mode simulation (sans serveur)", fg=typer.colors.YELLOW)
    colour = typer.colors.GREEN if outcome.delivered else typer.colors.RED
    typer.secho(f"{outcome.command}: {outcome.response}", fg=colour)
    motors = "En marche" if state.motors_started else "À l'arrêt"
    typer.echo(f"Moteurs: {motors}")


def render_history(entries: Sequence[HistoryEntry]) -> None:
    echo_heading("Historique des commandes")
    if not entries:
        typer.echo("Aucune commande envoyée.")
        return
    for entry in entries:
        typer.echo(f"  #{entry.number} {entry.label} ({entry.command})")
