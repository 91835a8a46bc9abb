from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.command_client", logging.INFO, __file__, 1, "Command acknowledged", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_known_extra_keys_are_appended() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(command="START", endpoint="127.0.0.1:1056", unrelated="x"))

    assert line == "Command acknowledged | endpoint=127.0.0.1:1056 command=START"


def test_none_values_are_skipped() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["sol"])

    assert formatter.format(_record(sol=None)) == "Command acknowledged"


def test_only_domain_keys_are_appended_by_default() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(sol="675", simulation=True, elapsed_ms=12))

    assert line == "Command acknowledged | sol=675 simulation=True"
