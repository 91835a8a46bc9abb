from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional

from models.commands import HistoryEntry, command_label, command_style, validate_command_text
from settings import get_settings

logger = logging.getLogger(__name__)

PREFERENCES_NAME = "robot_command_history"
HISTORY_KEY = "command_history"
_SEPARATOR = ","


class CommandHistoryStore:
    """Append-only command log kept as one comma-joined preference value.

    Updates within one store are serialized; separate processes sharing the
    same file still overwrite each other (last writer wins).
    """

    def __init__(self, name: str = PREFERENCES_NAME, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self._values: Dict[str, str] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, command: str) -> None:
        validate_command_text(command)
        with self._lock:
            history = self._read_history()
            history.append(command)
            self._values[HISTORY_KEY] = _SEPARATOR.join(history)
            self._persist()
        logger.debug("Recorded command", extra={"command": command})

    def read_all(self) -> List[str]:
        with self._lock:
            return self._read_history()

    def clear(self) -> None:
        with self._lock:
            self._load_from_disk()
            self._values.pop(HISTORY_KEY, None)
            self._persist()
        logger.info("Cleared command history")

    def entries_for_display(self) -> List[HistoryEntry]:
        """Newest first, numbered down from the total count."""
        history = self.read_all()
        total = len(history)
        return [
            HistoryEntry(
                number=total - offset,
                command=command,
                label=command_label(command),
                style=command_style(command),
            )
            for offset, command in enumerate(reversed(history))
        ]

    def _read_history(self) -> List[str]:
        self._load_from_disk()
        raw = self._values.get(HISTORY_KEY, "")
        return raw.split(_SEPARATOR) if raw else []

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        self.persistence_path.write_text(json.dumps(self._values, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable history file",
                extra={"reason": str(self.persistence_path)},
            )
            data = {}

        if not isinstance(data, dict):
            data = {}
        self._values = {key: value for key, value in data.items() if isinstance(value, str)}


@lru_cache
def build_default_history_store(path: Optional[str] = None) -> CommandHistoryStore:
    settings = get_settings()
    history_path = settings.history_path if path is None else path
    persistence = Path(history_path) if history_path else None
    return CommandHistoryStore(name=PREFERENCES_NAME, persistence_path=persistence)
