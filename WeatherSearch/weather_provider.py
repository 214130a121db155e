"""Provider abstractions - allows swapping different geocoding and weather APIs."""
from abc import ABC, abstractmethod
from typing import List, Optional

from weather_data import Place, WeatherReading


class GeocodingProviderBase(ABC):
    """Abstract base class for geocoding data providers."""

    @abstractmethod
    async def geocoded_places(self, location: str) -> List[Place]:
        """
        Look up places matching a named location.

        Args:
            location: Free-text place name, e.g. "Paris"

        Returns:
            List[Place]: Matches, ordered by relevance (may be empty)

        Raises:
            APIError: If the provider fails to fetch or decode data
        """
        pass


class WeatherProviderBase(ABC):
    """Abstract base class for weather data providers."""

    @abstractmethod
    async def current_weather(self, latitude: str, longitude: str) -> WeatherReading:
        """
        Fetch current weather for a pair of coordinates.

        Returns:
            WeatherReading: Current weather information

        Raises:
            APIError: If the provider fails to fetch or decode data
        """
        pass


class APIError(Exception):
    """Base exception for every geocoding or weather failure."""
    pass


class EmptyQueryError(APIError):
    def __init__(self):
        super().__init__("At least one query parameter was empty.")


class InvalidCoordinatesError(APIError):
    def __init__(self, latitude: str, longitude: str):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"At least one coordinate parameter was invalid. "
            f"Latitude: '{latitude}' longitude: '{longitude}'"
        )


class MissingCredentialError(APIError):
    """Raised when an API key is not configured. A configuration problem, not a transport one."""
    pass


class UnexpectedResponseError(APIError):
    """The response decoded as JSON but not into the expected top-level shape."""
    pass


class GeocodingDecodeError(APIError):
    pass


class WeatherDecodeError(APIError):
    pass


class NoConnectionError(APIError):
    """Raised when the host is unreachable. Callers may want to show this persistently."""

    def __init__(self, message: str = "Please check your internet connection."):
        super().__init__(message)


class UpstreamError(APIError):
    """The upstream service answered with a non-200 status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class UncategorizedError(APIError):
    pass
