from __future__ import annotations

import socket
from typing import Iterator

import pytest

from services.endpoints import Endpoint
from tools.mock_robot import MockRobotServer


@pytest.fixture()
def robot_server() -> Iterator[MockRobotServer]:
    with MockRobotServer(host="127.0.0.1", port=0) as server:
        yield server


@pytest.fixture()
def robot_endpoint(robot_server: MockRobotServer) -> Endpoint:
    host, port = robot_server.address
    return Endpoint(host, port)


@pytest.fixture()
def refused_endpoint() -> Endpoint:
    """An address whose listening socket has just been closed."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return Endpoint("127.0.0.1", port)
