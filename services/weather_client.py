"""HTTP client for the InSight Mars weather feed."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import List, Optional

import httpx

from models.weather import WeatherRecord
from services.weather_parser import parse_weather
from settings import get_settings

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when the weather feed cannot be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MarsWeatherClient:
    """One-shot GET against the weather feed, no retries."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._api_key = api_key
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout, connect=timeout, read=timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def fetch_raw(self) -> str:
        params = {"api_key": self._api_key, "feedtype": "json", "ver": "1.0"}
        try:
            response = self._client.get(self.base_url, params=params)
        except httpx.HTTPError as exc:
            logger.warning("Weather request failed", extra={"reason": str(exc)})
            raise FetchError(f"Weather request failed: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Weather feed returned an error status",
                extra={"status_code": response.status_code},
            )
            raise FetchError(
                f"Erreur de connexion avec le code: {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    def fetch_records(self) -> List[WeatherRecord]:
        """Fetch and parse the feed; may raise FetchError or ParseError."""
        records = parse_weather(self.fetch_raw())
        logger.info("Fetched weather records", extra={"record_count": len(records)})
        return records


@lru_cache
def build_default_weather_client() -> MarsWeatherClient:
    settings = get_settings()
    return MarsWeatherClient(
        base_url=settings.weather_api_url,
        api_key=settings.weather_api_key,
        timeout=settings.weather_timeout,
    )
