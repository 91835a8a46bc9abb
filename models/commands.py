"""Robot command vocabulary and display metadata."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommandName(str, Enum):
    """Commands understood by the robot-control server."""

    START = "START"
    STOP = "STOP"
    DIRECT_LEFT = "DIRECT_LEFT"
    DIRECT_RIGHT = "DIRECT_RIGHT"
    DIRECT_FRONT = "DIRECT_FRONT"


class CommandStyle(str, Enum):
    start = "start"
    stop = "stop"
    turn = "turn"
    forward = "forward"


COMMAND_LABELS = {
    CommandName.START: "DÉMARRER",
    CommandName.STOP: "ARRÊTER",
    CommandName.DIRECT_LEFT: "TOURNER À GAUCHE",
    CommandName.DIRECT_RIGHT: "TOURNER À DROITE",
    CommandName.DIRECT_FRONT: "AVANCER TOUT DROIT",
}

COMMAND_STYLES = {
    CommandName.START: CommandStyle.start,
    CommandName.STOP: CommandStyle.stop,
    CommandName.DIRECT_LEFT: CommandStyle.turn,
    CommandName.DIRECT_RIGHT: CommandStyle.turn,
    CommandName.DIRECT_FRONT: CommandStyle.forward,
}

DIRECTION_COMMANDS = frozenset(
    {CommandName.DIRECT_LEFT, CommandName.DIRECT_RIGHT, CommandName.DIRECT_FRONT}
)


def lookup_command(value: str) -> Optional[CommandName]:
    """Return the known command for ``value`` or ``None`` for free-form names."""
    try:
        return CommandName(value)
    except ValueError:
        return None


def command_label(value: str) -> str:
    known = lookup_command(value)
    return COMMAND_LABELS[known] if known is not None else value


def command_style(value: str) -> Optional[CommandStyle]:
    known = lookup_command(value)
    return COMMAND_STYLES[known] if known is not None else None


def validate_command_text(value: str) -> str:
    """Reject names that would break the comma-joined history or the line protocol."""
    if not value:
        raise ValueError("Command name must not be empty.")
    if "," in value:
        raise ValueError(f"Command name {value!r} must not contain a comma.")
    if "\n" in value or "\r" in value:
        raise ValueError(f"Command name {value!r} must not contain a line break.")
    return value


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """A history line as shown to the user, newest first."""

    number: int
    command: str
    label: str
    style: Optional[CommandStyle]
