"""Ordered endpoint fallback shared by command exchanges and probes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECTION_FAILED_MESSAGE = "Erreur: impossible de se connecter au serveur"


@dataclass(frozen=True, slots=True)
class Endpoint:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class CommandConnectionError(ConnectionError):
    """Every candidate endpoint failed."""

    def __init__(
        self,
        message: str = CONNECTION_FAILED_MESSAGE,
        failures: Sequence[Tuple[Endpoint, BaseException]] = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.failures: List[Tuple[Endpoint, BaseException]] = list(failures)


def first_successful(
    endpoints: Sequence[Endpoint],
    action: Callable[[Endpoint], T],
) -> Tuple[Endpoint, T]:
    """Run ``action`` against each endpoint in order and stop at the first success."""
    if not endpoints:
        raise ValueError("At least one endpoint is required.")

    failures: List[Tuple[Endpoint, BaseException]] = []
    for endpoint in endpoints:
        try:
            result = action(endpoint)
        except OSError as exc:
            logger.info(
                "Endpoint attempt failed",
                extra={"endpoint": str(endpoint), "reason": str(exc) or type(exc).__name__},
            )
            failures.append((endpoint, exc))
            continue
        return endpoint, result

    raise CommandConnectionError(failures=failures)
