from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from cli.render import render_history, render_outcome, render_record, render_records, render_summary
from datastore.command_history import CommandHistoryStore
from logging_config import configure_logging
from models.commands import CommandName
from services.command_client import CommandClient, SocketTransport
from services.endpoints import CONNECTION_FAILED_MESSAGE, CommandConnectionError, Endpoint
from services.robot_controller import RobotController
from services.weather_client import FetchError, MarsWeatherClient
from services.weather_parser import ParseError, find_record, summarize_latest, wind_rose
from settings import get_settings
from tools.mock_robot import MockRobotServer


@dataclass
class CLIState:
    weather_client: MarsWeatherClient
    history: CommandHistoryStore
    endpoints: List[Endpoint]
    transport: SocketTransport
    simulation_delay: float


app = typer.Typer(
    help="Mars weather viewer and robot remote control.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
weather_app = typer.Typer(help="Browse Mars weather per sol.")
robot_app = typer.Typer(help="Send commands to the robot-control server.")
history_app = typer.Typer(help="Inspect the stored command history.")
app.add_typer(weather_app, name="weather")
app.add_typer(robot_app, name="robot")
app.add_typer(history_app, name="history")


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    weather_url: Optional[str] = typer.Option(
        None,
        "--weather-url",
        help="Weather feed URL (defaults to MARS_WEATHER_API_URL env).",
    ),
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        help="Weather feed API key (defaults to MARS_WEATHER_API_KEY env).",
    ),
    host: Optional[List[str]] = typer.Option(
        None,
        "--host",
        help="Command server host, tried in the order given (repeatable).",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        help="Command server port (defaults to ROBOT_PORT env or 1056).",
    ),
    history_path: Optional[Path] = typer.Option(
        None,
        "--history-path",
        help="File holding the command history (defaults to COMMAND_HISTORY_PATH env).",
    ),
) -> None:
    """Entry point for the CLI."""
    settings = get_settings()

    weather_client = MarsWeatherClient(
        base_url=weather_url or settings.weather_api_url,
        api_key=api_key or settings.weather_api_key,
        timeout=settings.weather_timeout,
    )
    server_port = port if port is not None else settings.robot_port
    hosts = host or [settings.robot_primary_host, settings.robot_secondary_host]
    if history_path is None and settings.history_path:
        history_path = Path(settings.history_path)

    ctx.obj = CLIState(
        weather_client=weather_client,
        history=CommandHistoryStore(persistence_path=history_path),
        endpoints=[Endpoint(name, server_port) for name in hosts],
        transport=SocketTransport(connect_timeout=settings.robot_connect_timeout),
        simulation_delay=settings.simulation_delay,
    )
    ctx.call_on_close(weather_client.close)


def _fetch_records(state: CLIState):
    try:
        return state.weather_client.fetch_records()
    except (FetchError, ParseError) as exc:
        _fail(f"Impossible de charger la météo: {exc}")


@weather_app.command("list")
def weather_list(ctx: typer.Context) -> None:
    """List every sol in the feed, newest first."""
    render_records(_fetch_records(_get_state(ctx)))


@weather_app.command("latest")
def weather_latest(ctx: typer.Context) -> None:
    """Show a summary of the most recent sol."""
    summary = summarize_latest(_fetch_records(_get_state(ctx)))
    if summary is None:
        _fail("Aucune donnée météo n'a pu être extraite")
    render_summary(summary)


@weather_app.command("show")
def weather_show(
    ctx: typer.Context,
    sol: str = typer.Argument(..., help="Sol number as listed by `weather list`."),
) -> None:
    """Show one sol with its wind rose."""
    record = find_record(_fetch_records(_get_state(ctx)), sol)
    if record is None:
        _fail(f"Sol {sol} not found.")
    render_record(record, wind_rose(record))


@robot_app.command("probe")
def robot_probe(ctx: typer.Context) -> None:
    """Check which command server endpoint accepts connections."""
    state = _get_state(ctx)
    client = CommandClient(state.endpoints, state.transport)
    try:
        endpoint = client.probe()
    except CommandConnectionError as exc:
        _fail(exc.message)
    typer.secho(f"Connexion réussie à {endpoint}", fg=typer.colors.GREEN)


@robot_app.command("send")
def robot_send(
    ctx: typer.Context,
    command: CommandName = typer.Argument(..., case_sensitive=False, help="Command to send."),
    simulate_offline: bool = typer.Option(
        True,
        "--simulate-offline/--no-simulate-offline",
        help="Fabricate a reply when no server is reachable.",
    ),
) -> None:
    """Send one command, recording it in the history when delivered."""
    state = _get_state(ctx)
    controller = RobotController(
        history=state.history,
        endpoints=state.endpoints,
        transport=state.transport,
        simulation_delay=state.simulation_delay,
    )
    if controller.connect().simulation_mode and not simulate_offline:
        _fail(CONNECTION_FAILED_MESSAGE)

    outcome = controller.issue(command.value)
    render_outcome(outcome)
    if not outcome.delivered:
        raise typer.Exit(code=1)


@robot_app.command("serve")
def robot_serve(
    host: str = typer.Option("127.0.0.1", "--bind", help="Address to listen on."),
    port: int = typer.Option(1056, "--listen-port", help="Port to listen on."),
) -> None:
    """Run a local mock robot server until interrupted."""
    server = MockRobotServer(host=host, port=port)
    typer.echo(f"Mock robot server listening on {host}:{server.address[1]} (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        typer.echo("Shutting down...")
    finally:
        server.stop()


@history_app.command("show")
def history_show(ctx: typer.Context) -> None:
    """List stored commands, newest first."""
    render_history(_get_state(ctx).history.entries_for_display())


@history_app.command("clear")
def history_clear(ctx: typer.Context) -> None:
    """Erase the stored command history."""
    _get_state(ctx).history.clear()
    typer.secho("Historique effacé.", fg=typer.colors.GREEN)


def run() -> None:
    """Console entry point."""
    configure_logging()
    app()
