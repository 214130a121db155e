"""maps.co Geocoding API provider implementation."""
import asyncio
import logging
from typing import List, Optional

import requests

from weather_data import Place
from weather_provider import (
    EmptyQueryError,
    GeocodingDecodeError,
    GeocodingProviderBase,
    MissingCredentialError,
    NoConnectionError,
    UncategorizedError,
    UnexpectedResponseError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

API_KEY_ENV = "GEOCODING_API_KEY"


class MapsCoGeocodingProvider(GeocodingProviderBase):
    """
    Geocoding provider using the maps.co search API.

    Requires an API key from https://geocode.maps.co. The free tier rejects
    requests that arrive less than a second after the previous one with HTTP 429.
    """

    BASE_URL = "https://geocode.maps.co/search"

    def __init__(self, api_key: Optional[str], timeout: int = 10):
        """
        Initialize maps.co provider.

        Args:
            api_key: maps.co API key. May be None; searches then fail with
                MissingCredentialError instead of reaching the network.
            timeout: HTTP request timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout

    async def geocoded_places(self, location: str) -> List[Place]:
        if not location.strip():
            raise EmptyQueryError()
        if not self.api_key:
            raise MissingCredentialError(
                f"{API_KEY_ENV} not set. Generate an API key at maps.co and set "
                f"{API_KEY_ENV} in your environment."
            )
        return await asyncio.to_thread(self._fetch, location)

    def _fetch(self, location: str) -> List[Place]:
        params = {"q": location, "api_key": self.api_key}

        logger.info("Searching for %s...", location)
        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            logger.error("Connection error during geocoding request: %s", e)
            raise NoConnectionError() from e
        except requests.exceptions.RequestException as e:
            logger.error("Network error during geocoding request: %s", e)
            raise UncategorizedError(f"Network error: {e}") from e

        if response.status_code != 200:
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise GeocodingDecodeError(f"Error when decoding data from Geocoding API: {e}") from e

        if not isinstance(data, list):
            raise UnexpectedResponseError(
                f"Expected a JSON array from Geocoding API, got {type(data).__name__}"
            )

        try:
            places = [Place.from_geocoding(item) for item in data]
        except KeyError as e:
            raise GeocodingDecodeError(f"Error when decoding data from Geocoding API: missing {e}") from e
        except TypeError as e:
            raise GeocodingDecodeError(f"Error when decoding data from Geocoding API: {e}") from e

        logger.info("Geocoding data request successful. Found %d results", len(places))
        return places

    def _handle_error_response(self, response: requests.Response) -> None:
        body = response.text
        logger.error("Geocoding request failed: HTTP %s, body: %s", response.status_code, body[:500])
        if response.status_code == 429:
            message = "Geocoding request rate limited; wait a second between searches."
        elif response.status_code in (401, 403):
            message = "Geocoding request rejected; check the configured API key."
        else:
            message = f"Some error occurred when processing the Geocoding request (HTTP {response.status_code})."
        raise UpstreamError(message, status_code=response.status_code, body=body)
