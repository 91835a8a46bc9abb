"""State container for the robot control panel."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from threading import Lock
from typing import List, Optional, Sequence

from datastore.command_history import CommandHistoryStore, build_default_history_store
from models.commands import DIRECTION_COMMANDS, CommandName, lookup_command
from services.command_client import (
    CommandClient,
    CommandTransport,
    build_default_transport,
    default_endpoints,
    select_client,
)
from services.endpoints import CommandConnectionError, Endpoint
from settings import get_settings

logger = logging.getLogger(__name__)

CONNECTED_MESSAGE = "Connexion au serveur réussie"
SIMULATION_MESSAGE = "Mode simulation activé (pas de connexion au serveur)"

# The server only answers free text; these markers are all the state we get.
_FAILURE_MARKERS = ("ERROR", "ERREUR")
_MOTORS_OFF_MARKER = "MOTEURS SONT COUPES"


def is_failure_response(response: str) -> bool:
    upper = response.upper()
    return any(marker in upper for marker in _FAILURE_MARKERS)


def reports_motors_off(response: str) -> bool:
    return _MOTORS_OFF_MARKER in response.upper()


@dataclass(frozen=True)
class RobotState:
    motors_started: bool = False
    simulation_mode: bool = False
    connected_endpoint: Optional[str] = None
    last_response: str = ""
    notification: Optional[str] = None
    session_history: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CommandOutcome:
    command: str
    response: str
    delivered: bool
    simulated: bool
    state: RobotState


class RobotController:
    """Owns the panel state and applies command replies to it.

    Commands are issued one at a time; a second caller waits for the first
    exchange to finish.
    """

    def __init__(
        self,
        history: CommandHistoryStore,
        endpoints: Sequence[Endpoint],
        transport: CommandTransport,
        simulation_delay: float = 0.5,
    ) -> None:
        self.history = history
        self.endpoints = list(endpoints)
        self._transport = transport
        self._simulation_delay = simulation_delay
        self._client: Optional[CommandClient] = None
        self._state = RobotState()
        self._lock = Lock()

    @property
    def state(self) -> RobotState:
        return self._state

    def connect(self) -> RobotState:
        """Probe the server and pick the real or simulated transport."""
        with self._lock:
            return self._connect_locked()

    def _connect_locked(self) -> RobotState:
        client, reached = select_client(
            self.endpoints, self._transport, simulation_delay=self._simulation_delay
        )
        self._client = client
        if reached is None:
            self._state = replace(
                self._state,
                simulation_mode=True,
                connected_endpoint=None,
                last_response=SIMULATION_MESSAGE,
                notification=None,
            )
        else:
            self._state = replace(
                self._state,
                simulation_mode=False,
                connected_endpoint=str(reached),
                last_response=CONNECTED_MESSAGE,
                notification=f"Connexion réussie à {reached}",
            )
        return self._state

    def available_commands(self) -> List[CommandName]:
        started = self._state.motors_started
        commands = [CommandName.STOP] if started else [CommandName.START]
        commands.extend(
            name for name in CommandName if name in DIRECTION_COMMANDS
        )
        return commands

    def issue(self, command: str) -> CommandOutcome:
        with self._lock:
            if self._client is None:
                self._connect_locked()
            client = self._client
            assert client is not None

            try:
                response = client.send(command)
            except CommandConnectionError as exc:
                logger.warning("Command not delivered", extra={"command": command, "reason": exc.message})
                self._state = replace(
                    self._state, last_response=exc.message, notification=exc.message
                )
                return CommandOutcome(
                    command=command,
                    response=exc.message,
                    delivered=False,
                    simulated=client.simulated,
                    state=self._state,
                )

            motors_started = self._next_motor_state(command, response)
            notification = None
            if not client.simulated:
                self.history.append(command)
                notification = f"Commande: {command}, Réponse: {response}"

            self._state = replace(
                self._state,
                motors_started=motors_started,
                last_response=response,
                notification=notification,
                session_history=self._state.session_history + (command,),
            )
            return CommandOutcome(
                command=command,
                response=response,
                delivered=True,
                simulated=client.simulated,
                state=self._state,
            )

    def _next_motor_state(self, command: str, response: str) -> bool:
        current = self._state.motors_started
        known = lookup_command(command)
        if known is CommandName.START:
            return True if not is_failure_response(response) else current
        if known is CommandName.STOP:
            return False if not is_failure_response(response) else current
        if known in DIRECTION_COMMANDS and reports_motors_off(response):
            return False
        return current


@lru_cache
def build_default_controller() -> RobotController:
    settings = get_settings()
    return RobotController(
        history=build_default_history_store(),
        endpoints=default_endpoints(),
        transport=build_default_transport(),
        simulation_delay=settings.simulation_delay,
    )
