"""Local robot-control server answering one line per command line."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Optional, Tuple

from models.commands import DIRECTION_COMMANDS, CommandName, lookup_command

logger = logging.getLogger(__name__)

MOTORS_OFF_RESPONSE = "ERREUR: LES MOTEURS SONT COUPES"
UNKNOWN_RESPONSE = "ERREUR: commande inconnue"

_DIRECTION_RESPONSES = {
    CommandName.DIRECT_LEFT: "SUCCESS: Tourne à gauche",
    CommandName.DIRECT_RIGHT: "SUCCESS: Tourne à droite",
    CommandName.DIRECT_FRONT: "SUCCESS: Avance tout droit",
}


class MockRobot:
    """Motor state machine shared by every client connection."""

    def __init__(self) -> None:
        self.motors_started = False
        self._lock = threading.Lock()

    def handle(self, command: str) -> str:
        known = lookup_command(command.strip().upper())
        with self._lock:
            if known is CommandName.START:
                self.motors_started = True
                return "SUCCESS: Moteurs démarrés"
            if known is CommandName.STOP:
                self.motors_started = False
                return "SUCCESS: Moteurs arrêtés"
            if known in DIRECTION_COMMANDS:
                if not self.motors_started:
                    return MOTORS_OFF_RESPONSE
                return _DIRECTION_RESPONSES[known]
        return UNKNOWN_RESPONSE


class MockRobotServer:
    """Threaded TCP server; port 0 binds an ephemeral port."""

    def __init__(self, host: str = "127.0.0.1", port: int = 1056, robot: Optional[MockRobot] = None) -> None:
        self.robot = robot or MockRobot()
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind((host, port))
        self._socket.listen()
        self._socket.settimeout(0.2)
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        host, port = self._socket.getsockname()[:2]
        return host, port

    def start(self) -> None:
        self._thread = threading.Thread(target=self.serve_forever, daemon=True)
        self._thread.start()

    def serve_forever(self) -> None:
        logger.info("Mock robot server listening", extra={"endpoint": "%s:%s" % self.address})
        while not self._stopped.is_set():
            try:
                conn, addr = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            client_thread = threading.Thread(target=self._handle_client, args=(conn, addr), daemon=True)
            client_thread.start()

    def stop(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        self._socket.close()

    def __enter__(self) -> "MockRobotServer":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def _handle_client(self, conn: socket.socket, addr) -> None:
        buffer = ""
        try:
            with conn:
                while True:
                    data = conn.recv(1024)
                    if not data:
                        break
                    buffer += data.decode("utf-8", errors="replace")
                    while "\n" in buffer:
                        line, buffer = buffer.split("\n", 1)
                        command = line.strip()
                        if not command:
                            continue
                        response = self.robot.handle(command)
                        logger.info("Mock robot replied", extra={"command": command, "reason": response})
                        conn.sendall(f"{response}\n".encode("utf-8"))
        except OSError as exc:
            logger.warning("Mock robot client error", extra={"endpoint": str(addr), "reason": str(exc)})
