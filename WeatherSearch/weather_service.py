"""Weather service with caching in front of the geocoding and weather providers."""
import logging
from typing import List, Optional

from weather_cache import WeatherCache, cache_key
from weather_data import Place, WeatherReading
from weather_provider import EmptyQueryError, GeocodingProviderBase, WeatherProviderBase

logger = logging.getLogger(__name__)


class WeatherService:
    """
    Service that wraps the weather and geocoding providers.

    Weather lookups are cached per coordinate pair so the weather API is
    not hammered; a fresh reading is only fetched once the cached one is
    older than the cache TTL (default: 2 minutes). Geocoding lookups are
    passed straight through.

    Two concurrent misses for the same coordinates both reach the weather
    provider; in-flight requests are not coalesced.
    """

    def __init__(
        self,
        geocoder: GeocodingProviderBase,
        provider: WeatherProviderBase,
        cache: Optional[WeatherCache] = None,
    ):
        """
        Initialize weather service.

        Args:
            geocoder: Provider used for place searches
            provider: Provider used for current weather
            cache: Reading cache; a new one with the default TTL if omitted
        """
        self.geocoder = geocoder
        self.provider = provider
        self.cache = cache if cache is not None else WeatherCache()

    async def geocoded_places(self, location: str) -> List[Place]:
        """
        Search for places matching location. Not cached.

        Raises:
            EmptyQueryError: location is empty or only whitespace
            APIError: If the geocoding provider fails
        """
        if not location.strip():
            raise EmptyQueryError()
        return await self.geocoder.geocoded_places(location)

    async def current_weather(self, latitude: str, longitude: str) -> WeatherReading:
        """
        Get current weather for the coordinates, using the cache if still fresh.

        A reading is only cached after the provider returns it successfully;
        provider errors propagate unchanged and leave the cache as it was.

        Raises:
            APIError: If the cache is cold and the weather provider fails
        """
        key = cache_key(latitude, longitude)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("Using cached data for weather data request for latitude: %s longitude: %s",
                        latitude, longitude)
            return cached

        logger.info("Calling API for new data for weather data request for latitude: %s longitude: %s",
                    latitude, longitude)
        reading = await self.provider.current_weather(latitude, longitude)
        self.cache.put(key, reading)
        return reading
