"""Open-Meteo current weather API provider implementation."""
import asyncio
import logging

import requests

from weather_data import WeatherReading
from weather_provider import (
    InvalidCoordinatesError,
    NoConnectionError,
    UncategorizedError,
    UnexpectedResponseError,
    UpstreamError,
    WeatherDecodeError,
    WeatherProviderBase,
)

logger = logging.getLogger(__name__)

CURRENT_PARAMS = (
    "temperature_2m,apparent_temperature,precipitation,rain,showers,snowfall,"
    "cloud_cover,wind_speed_10m,wind_direction_10m,wind_gusts_10m"
)


class OpenMeteoProvider(WeatherProviderBase):
    """
    Weather provider using the Open-Meteo forecast API.

    No API key is needed: https://open-meteo.com/en/docs
    """

    BASE_URL = "https://api.open-meteo.com/v1/forecast"

    def __init__(self, wind_speed_unit: str = "mph", timeout: int = 10):
        """
        Initialize Open-Meteo provider.

        Args:
            wind_speed_unit: "mph", "kmh", "ms" or "kn" (the API defaults to kmh)
            timeout: HTTP request timeout in seconds
        """
        self.wind_speed_unit = wind_speed_unit
        self.timeout = timeout

    async def current_weather(self, latitude: str, longitude: str) -> WeatherReading:
        if not latitude.strip() or not longitude.strip():
            raise InvalidCoordinatesError(latitude, longitude)
        return await asyncio.to_thread(self._fetch, latitude, longitude)

    def _fetch(self, latitude: str, longitude: str) -> WeatherReading:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": CURRENT_PARAMS,
            "wind_speed_unit": self.wind_speed_unit,
        }

        logger.info("Retrieving weather data for location lat: %s long: %s", latitude, longitude)
        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            logger.error("Connection error during weather request: %s", e)
            raise NoConnectionError() from e
        except requests.exceptions.RequestException as e:
            logger.error("Network error during weather request: %s", e)
            raise UncategorizedError(f"Network error: {e}") from e

        logger.info("Weather API response status: %s", response.status_code)
        if not response.ok:
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise WeatherDecodeError(f"Error when decoding data from Weather API: {e}") from e

        if not isinstance(data, dict):
            raise UnexpectedResponseError(
                f"Expected a JSON object from Weather API, got {type(data).__name__}"
            )
        logger.debug("Weather API response data keys: %s", list(data.keys()))

        try:
            reading = WeatherReading.from_open_meteo(data)
        except KeyError as e:
            raise WeatherDecodeError(f"Error when decoding data from Weather API: missing {e}") from e
        except (TypeError, ValueError) as e:
            raise WeatherDecodeError(f"Error when decoding data from Weather API: {e}") from e

        logger.info("Successfully retrieved weather data")
        return reading

    def _handle_error_response(self, response: requests.Response) -> None:
        """Parse and raise error from an Open-Meteo error response."""
        body = response.text
        try:
            error_data = response.json()
            reason = error_data.get("reason", "Unknown error")
        except (ValueError, AttributeError):
            logger.error("Non-JSON error response: HTTP %s, body: %s", response.status_code, body[:500])
            raise UpstreamError(
                f"HTTP {response.status_code}: {body[:200]}",
                status_code=response.status_code,
                body=body,
            )

        logger.error("Open-Meteo API error response: %s", error_data)
        raise UpstreamError(
            f"Error from OpenMeteo: {reason}",
            status_code=response.status_code,
            body=body,
        )
