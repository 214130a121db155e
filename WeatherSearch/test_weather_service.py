"""Tests for weather service."""
import asyncio

import pytest
from test_weather_cache import FakeClock, make_reading
from weather_cache import WeatherCache, cache_key
from weather_data import Place
from weather_provider import (
    EmptyQueryError,
    GeocodingProviderBase,
    NoConnectionError,
    UpstreamError,
    WeatherProviderBase,
)
from weather_service import WeatherService


class MockProvider(WeatherProviderBase):
    """Mock weather provider for testing."""

    def __init__(self, return_data=None, raise_error=None):
        self.return_data = return_data
        self.raise_error = raise_error
        self.call_count = 0
        self.calls = []

    async def current_weather(self, latitude, longitude):
        self.call_count += 1
        self.calls.append((latitude, longitude))
        await asyncio.sleep(0)  # yield like a real network call
        if self.raise_error:
            raise self.raise_error
        return self.return_data


class MockGeocoder(GeocodingProviderBase):
    """Mock geocoding provider for testing."""

    def __init__(self, places=None, raise_error=None):
        self.places = places or []
        self.raise_error = raise_error
        self.queries = []

    async def geocoded_places(self, location):
        self.queries.append(location)
        if self.raise_error:
            raise self.raise_error
        return self.places


@pytest.fixture
def sample_weather():
    return make_reading(16.4)


@pytest.fixture
def clock():
    return FakeClock()


def make_service(provider, clock, geocoder=None):
    return WeatherService(geocoder or MockGeocoder(), provider, WeatherCache(clock=clock))


def test_weather_service_caching(sample_weather, clock):
    """Test that service caches results."""
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)

    # First call should hit provider
    result1 = asyncio.run(service.current_weather("50.20", "-7.29"))
    assert provider.call_count == 1
    assert result1 == sample_weather

    # Second call within TTL should use cache
    result2 = asyncio.run(service.current_weather("50.20", "-7.29"))
    assert provider.call_count == 1  # Still 1, not 2
    assert result2 == sample_weather


def test_weather_service_miss_populates_cache(sample_weather, clock):
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)

    asyncio.run(service.current_weather("50.20", "-7.29"))

    assert service.cache.get(cache_key("50.20", "-7.29")) == sample_weather
    assert provider.calls == [("50.20", "-7.29")]


def test_weather_service_saved_location_scenario(sample_weather, clock):
    """Fetch at 0s, cached at 30s, fetched again at 130s."""
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)

    assert asyncio.run(service.current_weather("50.20", "-7.29")) == sample_weather
    assert provider.call_count == 1

    clock.advance(30)
    assert asyncio.run(service.current_weather("50.20", "-7.29")) == sample_weather
    assert provider.call_count == 1

    clock.advance(100)
    asyncio.run(service.current_weather("50.20", "-7.29"))
    assert provider.call_count == 2


def test_weather_service_error_does_not_populate_cache(clock):
    provider = MockProvider(raise_error=UpstreamError("Error from OpenMeteo: bad", status_code=400))
    service = make_service(provider, clock)

    with pytest.raises(UpstreamError):
        asyncio.run(service.current_weather("50.20", "-7.29"))

    assert service.cache.get(cache_key("50.20", "-7.29")) is None
    assert len(service.cache) == 0


def test_weather_service_error_after_expiry_is_not_masked(sample_weather, clock):
    """An expired reading is never served in place of a failed fetch."""
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)
    asyncio.run(service.current_weather("50.20", "-7.29"))

    clock.advance(121)
    provider.raise_error = NoConnectionError()

    with pytest.raises(NoConnectionError):
        asyncio.run(service.current_weather("50.20", "-7.29"))
    assert service.cache.get(cache_key("50.20", "-7.29")) is None


def test_weather_service_textually_different_coordinates_miss(sample_weather, clock):
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)

    asyncio.run(service.current_weather("50.20", "-7.29"))
    asyncio.run(service.current_weather("50.200", "-7.29"))

    assert provider.call_count == 2


def test_weather_service_concurrent_misses_each_fetch(sample_weather, clock):
    """Misses for the same key are not coalesced."""
    provider = MockProvider(return_data=sample_weather)
    service = make_service(provider, clock)

    async def fetch_twice():
        return await asyncio.gather(
            service.current_weather("50.20", "-7.29"),
            service.current_weather("50.20", "-7.29"),
        )

    results = asyncio.run(fetch_twice())

    assert results == [sample_weather, sample_weather]
    assert provider.call_count == 2
    assert len(service.cache) == 1


def test_weather_service_geocoding_passes_through(clock):
    places = [Place(place_id=1, display_name="Paris, France", lat="48.85", lon="2.35")]
    geocoder = MockGeocoder(places=places)
    service = make_service(MockProvider(), clock, geocoder)

    assert asyncio.run(service.geocoded_places("paris")) == places
    assert asyncio.run(service.geocoded_places("paris")) == places
    assert geocoder.queries == ["paris", "paris"]


def test_weather_service_geocoding_rejects_blank_query(clock):
    geocoder = MockGeocoder()
    service = make_service(MockProvider(), clock, geocoder)

    with pytest.raises(EmptyQueryError):
        asyncio.run(service.geocoded_places("   "))
    assert geocoder.queries == []


def test_weather_service_geocoding_error_propagates(clock):
    geocoder = MockGeocoder(raise_error=NoConnectionError())
    service = make_service(MockProvider(), clock, geocoder)

    with pytest.raises(NoConnectionError):
        asyncio.run(service.geocoded_places("paris"))
