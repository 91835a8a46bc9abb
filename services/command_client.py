"""Line-oriented command exchange with the robot-control server."""

from __future__ import annotations

import logging
import socket
import time
from functools import lru_cache
from typing import List, Optional, Protocol, Sequence

from models.commands import CommandName, lookup_command, validate_command_text
from services.endpoints import CommandConnectionError, Endpoint, first_successful
from settings import get_settings

logger = logging.getLogger(__name__)

NO_RESPONSE = "No response"

SIMULATED_RESPONSES = {
    CommandName.START: "SUCCESS: Moteurs démarrés",
    CommandName.STOP: "SUCCESS: Moteurs arrêtés",
    CommandName.DIRECT_LEFT: "SUCCESS: Tourne à gauche",
    CommandName.DIRECT_RIGHT: "SUCCESS: Tourne à droite",
    CommandName.DIRECT_FRONT: "SUCCESS: Avance tout droit",
}


class CommandTransport(Protocol):
    simulated: bool

    def exchange(self, endpoint: Endpoint, command: str) -> str:
        ...

    def open(self, endpoint: Endpoint) -> None:
        ...


class SocketTransport:
    """Fresh TCP connection per exchange, closed once the reply line is read."""

    simulated = False

    def __init__(self, connect_timeout: Optional[float] = None) -> None:
        self.connect_timeout = connect_timeout

    def exchange(self, endpoint: Endpoint, command: str) -> str:
        with self._connect(endpoint) as sock:
            sock.sendall(f"{command}\n".encode("utf-8"))
            with sock.makefile("r", encoding="utf-8", errors="replace", newline="\n") as reader:
                line = reader.readline()
        response = line.rstrip("\r\n")
        return response or NO_RESPONSE

    def open(self, endpoint: Endpoint) -> None:
        with self._connect(endpoint):
            pass

    def _connect(self, endpoint: Endpoint) -> socket.socket:
        if self.connect_timeout is None:
            return socket.create_connection((endpoint.host, endpoint.port))
        return socket.create_connection(
            (endpoint.host, endpoint.port), timeout=self.connect_timeout
        )


class SimulatedTransport:
    """Fabricates replies locally after a fixed delay, without any network."""

    simulated = True

    def __init__(self, delay: float = 0.5) -> None:
        self.delay = delay

    def exchange(self, endpoint: Endpoint, command: str) -> str:
        if self.delay > 0:
            time.sleep(self.delay)
        known = lookup_command(command)
        if known is None:
            return f"SUCCESS: {command}"
        return SIMULATED_RESPONSES[known]

    def open(self, endpoint: Endpoint) -> None:
        return None


class CommandClient:
    """Sends one command per call, trying each endpoint in order."""

    def __init__(self, endpoints: Sequence[Endpoint], transport: CommandTransport) -> None:
        if not endpoints:
            raise ValueError("At least one endpoint is required.")
        self.endpoints: List[Endpoint] = list(endpoints)
        self.transport = transport

    @property
    def simulated(self) -> bool:
        return self.transport.simulated

    def send(self, command: str) -> str:
        validate_command_text(command)
        endpoint, response = first_successful(
            self.endpoints, lambda target: self.transport.exchange(target, command)
        )
        logger.info(
            "Command acknowledged",
            extra={
                "command": command,
                "endpoint": str(endpoint),
                "simulation": self.transport.simulated,
            },
        )
        return response

    def probe(self) -> Endpoint:
        endpoint, _ = first_successful(self.endpoints, self.transport.open)
        logger.info("Command server reachable", extra={"endpoint": str(endpoint)})
        return endpoint


def select_client(
    endpoints: Sequence[Endpoint],
    transport: Optional[CommandTransport] = None,
    simulation_delay: float = 0.5,
) -> tuple[CommandClient, Optional[Endpoint]]:
    """Probe once and pick the real transport or the simulated fallback.

    Returns the client together with the endpoint that answered the probe,
    or ``None`` when the client is simulated.
    """
    client = CommandClient(endpoints, transport or SocketTransport())
    try:
        reached = client.probe()
    except CommandConnectionError:
        logger.warning("No command server reachable, using simulation", extra={"simulation": True})
        return CommandClient(endpoints, SimulatedTransport(delay=simulation_delay)), None
    return client, reached


def default_endpoints() -> List[Endpoint]:
    settings = get_settings()
    return [
        Endpoint(settings.robot_primary_host, settings.robot_port),
        Endpoint(settings.robot_secondary_host, settings.robot_port),
    ]


@lru_cache
def build_default_transport() -> SocketTransport:
    return SocketTransport(connect_timeout=get_settings().robot_connect_timeout)
