"""Weather and place domain models - pure data structures independent of any API."""
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict


@dataclass(frozen=True)
class Place:
    """A physical location returned by the geocoding service."""
    place_id: int
    display_name: str
    lat: str  # kept as the service returns it, see weather_cache.cache_key
    lon: str

    @classmethod
    def from_geocoding(cls, payload: Dict[str, Any]) -> "Place":
        """
        Build a Place from one maps.co search result.

        The wire keys are snake_case and map one-to-one onto the dataclass fields;
        anything else in the payload (boundingbox, importance, ...) is ignored.

        Raises:
            KeyError: A required field is missing
            TypeError: A field has the wrong JSON type
        """
        if not isinstance(payload, dict):
            raise TypeError(f"Expected an object, got {type(payload).__name__}")

        values = {}
        for field in fields(cls):
            if field.name not in payload:
                raise KeyError(field.name)
            values[field.name] = payload[field.name]

        if isinstance(values["place_id"], bool) or not isinstance(values["place_id"], int):
            raise TypeError("place_id must be an integer")
        for name in ("display_name", "lat", "lon"):
            if not isinstance(values[name], str):
                raise TypeError(f"{name} must be a string")
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CurrentConditions:
    """Current weather conditions at a location."""
    temperature: float  # air temperature at 2m
    apparent_temperature: float
    precipitation: float  # rain + showers + snow, preceding hour
    rain: float
    showers: float
    snowfall: float
    cloud_cover: float  # percentage
    wind_speed: float  # at 10m
    wind_direction: float  # degrees, at 10m
    wind_gusts: float  # at 10m


@dataclass(frozen=True)
class UnitLabels:
    """Unit label for each field of CurrentConditions."""
    temperature: str
    apparent_temperature: str
    precipitation: str
    rain: str
    showers: str
    snowfall: str
    cloud_cover: str
    wind_speed: str
    wind_direction: str
    wind_gusts: str


# Open-Meteo wire names. Several carry a height suffix, so these are mapped
# explicitly rather than by a generic snake_case conversion.
CURRENT_FIELD_KEYS = {
    "temperature": "temperature_2m",
    "apparent_temperature": "apparent_temperature",
    "precipitation": "precipitation",
    "rain": "rain",
    "showers": "showers",
    "snowfall": "snowfall",
    "cloud_cover": "cloud_cover",
    "wind_speed": "wind_speed_10m",
    "wind_direction": "wind_direction_10m",
    "wind_gusts": "wind_gusts_10m",
}


@dataclass(frozen=True)
class WeatherReading:
    """Domain model for a current-weather response."""
    latitude: float
    longitude: float
    current: CurrentConditions
    current_units: UnitLabels

    @classmethod
    def from_open_meteo(cls, payload: Dict[str, Any]) -> "WeatherReading":
        """
        Build a WeatherReading from an Open-Meteo forecast response.

        Raises:
            KeyError: A required field is missing
            TypeError, ValueError: A field has the wrong type
        """
        current = payload["current"]
        units = payload["current_units"]
        if not isinstance(current, dict) or not isinstance(units, dict):
            raise TypeError("'current' and 'current_units' must be objects")

        return cls(
            latitude=_number(payload["latitude"]),
            longitude=_number(payload["longitude"]),
            current=CurrentConditions(**{
                name: _number(current[key]) for name, key in CURRENT_FIELD_KEYS.items()
            }),
            current_units=UnitLabels(**{
                name: _string(units[key]) for name, key in CURRENT_FIELD_KEYS.items()
            }),
        )


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected a number, got {value!r}")
    return float(value)


def _string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {value!r}")
    return value
