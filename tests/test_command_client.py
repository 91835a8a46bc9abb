from __future__ import annotations

import socket
import threading
import time
from typing import List

import pytest

from services.command_client import (
    NO_RESPONSE,
    CommandClient,
    SimulatedTransport,
    SocketTransport,
    select_client,
)
from services.endpoints import (
    CONNECTION_FAILED_MESSAGE,
    CommandConnectionError,
    Endpoint,
    first_successful,
)
from tools.mock_robot import MockRobotServer


class RecordingTransport:
    """Transport double that fails for chosen endpoints."""

    simulated = False

    def __init__(self, failing: set[Endpoint], response: str = "OK") -> None:
        self.failing = failing
        self.response = response
        self.calls: List[tuple[str, Endpoint]] = []

    def exchange(self, endpoint: Endpoint, command: str) -> str:
        self.calls.append(("exchange", endpoint))
        if endpoint in self.failing:
            raise ConnectionRefusedError(f"refused {endpoint}")
        return self.response

    def open(self, endpoint: Endpoint) -> None:
        self.calls.append(("open", endpoint))
        if endpoint in self.failing:
            raise TimeoutError("timed out")


PRIMARY = Endpoint("10.0.2.2", 1056)
SECONDARY = Endpoint("127.0.0.1", 1056)


def test_send_falls_back_to_secondary_endpoint(refused_endpoint: Endpoint, robot_endpoint: Endpoint) -> None:
    client = CommandClient([refused_endpoint, robot_endpoint], SocketTransport(connect_timeout=2.0))

    response = client.send("START")

    assert response == "SUCCESS: Moteurs démarrés"


def test_send_uses_primary_when_reachable(robot_server: MockRobotServer, robot_endpoint: Endpoint) -> None:
    client = CommandClient([robot_endpoint, PRIMARY], SocketTransport(connect_timeout=2.0))

    assert client.send("DIRECT_LEFT") == "ERREUR: LES MOTEURS SONT COUPES"
    assert client.send("START") == "SUCCESS: Moteurs démarrés"
    assert client.send("DIRECT_LEFT") == "SUCCESS: Tourne à gauche"
    assert robot_server.robot.motors_started is True


def test_send_raises_when_every_endpoint_fails(refused_endpoint: Endpoint) -> None:
    client = CommandClient([refused_endpoint, refused_endpoint], SocketTransport(connect_timeout=2.0))

    with pytest.raises(CommandConnectionError) as excinfo:
        client.send("STOP")

    assert str(excinfo.value) == CONNECTION_FAILED_MESSAGE
    assert len(excinfo.value.failures) == 2
    assert isinstance(excinfo.value, ConnectionError)


def test_fallback_order_and_fresh_attempt_per_endpoint() -> None:
    transport = RecordingTransport(failing={PRIMARY}, response="done")
    client = CommandClient([PRIMARY, SECONDARY], transport)

    assert client.send("STOP") == "done"
    assert transport.calls == [("exchange", PRIMARY), ("exchange", SECONDARY)]


def test_no_further_retry_after_both_fail() -> None:
    transport = RecordingTransport(failing={PRIMARY, SECONDARY})
    client = CommandClient([PRIMARY, SECONDARY], transport)

    with pytest.raises(CommandConnectionError):
        client.send("START")

    assert transport.calls == [("exchange", PRIMARY), ("exchange", SECONDARY)]


def test_probe_returns_first_reachable_endpoint(refused_endpoint: Endpoint, robot_endpoint: Endpoint) -> None:
    client = CommandClient([refused_endpoint, robot_endpoint], SocketTransport(connect_timeout=2.0))

    assert client.probe() == robot_endpoint


def test_probe_fails_when_nothing_listens() -> None:
    transport = RecordingTransport(failing={PRIMARY, SECONDARY})
    client = CommandClient([PRIMARY, SECONDARY], transport)

    with pytest.raises(CommandConnectionError):
        client.probe()
    assert transport.calls == [("open", PRIMARY), ("open", SECONDARY)]


def test_empty_reply_becomes_sentinel() -> None:
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen()
    received: List[bytes] = []

    def accept_once() -> None:
        conn, _ = listener.accept()
        with conn:
            received.append(conn.recv(1024))

    worker = threading.Thread(target=accept_once, daemon=True)
    worker.start()
    try:
        endpoint = Endpoint("127.0.0.1", listener.getsockname()[1])
        response = CommandClient([endpoint], SocketTransport(connect_timeout=2.0)).send("STOP")
    finally:
        worker.join(timeout=2.0)
        listener.close()

    assert response == NO_RESPONSE
    assert received == [b"STOP\n"]


def test_commands_with_separators_are_rejected() -> None:
    transport = RecordingTransport(failing=set())
    client = CommandClient([PRIMARY], transport)

    with pytest.raises(ValueError):
        client.send("START,STOP")
    with pytest.raises(ValueError):
        client.send("START\nSTOP")
    assert transport.calls == []


def test_simulated_transport_fabricates_replies() -> None:
    client = CommandClient([PRIMARY], SimulatedTransport(delay=0.05))

    started = time.monotonic()
    response = client.send("DIRECT_FRONT")

    assert response == "SUCCESS: Avance tout droit"
    assert time.monotonic() - started >= 0.04
    assert client.simulated is True


def test_select_client_prefers_real_transport() -> None:
    transport = RecordingTransport(failing={PRIMARY})

    client, reached = select_client([PRIMARY, SECONDARY], transport)

    assert reached == SECONDARY
    assert client.transport is transport


def test_select_client_falls_back_to_simulation() -> None:
    transport = RecordingTransport(failing={PRIMARY, SECONDARY})

    client, reached = select_client([PRIMARY, SECONDARY], transport, simulation_delay=0)

    assert reached is None
    assert isinstance(client.transport, SimulatedTransport)
    assert client.send("START") == "SUCCESS: Moteurs démarrés"


def test_first_successful_requires_endpoints() -> None:
    with pytest.raises(ValueError):
        first_successful([], lambda endpoint: endpoint)


def test_first_successful_stops_at_first_success() -> None:
    seen: List[Endpoint] = []

    def action(endpoint: Endpoint) -> str:
        seen.append(endpoint)
        return str(endpoint)

    reached, result = first_successful([PRIMARY, SECONDARY], action)

    assert reached == PRIMARY
    assert result == "10.0.2.2:1056"
    assert seen == [PRIMARY]
