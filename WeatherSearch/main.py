"""Command line front end: place search, current weather and saved locations."""
import argparse
import asyncio
import logging
import os
import sys
import threading
from dataclasses import dataclass
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from geocoding_provider import API_KEY_ENV, MapsCoGeocodingProvider
from location_search import SEARCH_DEBOUNCE_SECONDS, LocationSearch, SearchResults
from open_meteo_provider import OpenMeteoProvider
from saved_locations import DEFAULT_SAVED_LOCATIONS_FILE, SavedLocations
from weather_cache import WEATHER_CACHE_TTL_SECONDS, WeatherCache
from weather_data import Place, WeatherReading
from weather_provider import APIError, NoConnectionError
from weather_service import WeatherService


@dataclass
class Config:
    geocoding_api_key: Optional[str]
    cache_ttl: float = WEATHER_CACHE_TTL_SECONDS
    debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    timeout: int = 10
    saved_locations_file: str = DEFAULT_SAVED_LOCATIONS_FILE


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("weather-search")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Look up places by name")
    search.add_argument("text")

    weather = commands.add_parser("weather", help="Current weather for coordinates")
    weather.add_argument("lat")
    weather.add_argument("lon")

    commands.add_parser("saved", help="Current weather for every saved place")

    toggle = commands.add_parser("toggle", help="Save or unsave a search result")
    toggle.add_argument("text")
    toggle.add_argument("index", type=int, help="1-based position in the search results")

    commands.add_parser("live", help="Debounced search, one search-field value per stdin line")
    return parser.parse_args(argv)


def setup_logging(log_file: Optional[str], verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.WARNING
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=handlers,
    )


def load_config() -> Config:
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        logging.warning("%s not set; place searches will fail", API_KEY_ENV)

    try:
        config = Config(
            geocoding_api_key=api_key,
            cache_ttl=float(os.getenv("WEATHER_CACHE_TTL", WEATHER_CACHE_TTL_SECONDS)),
            debounce_seconds=float(os.getenv("SEARCH_DEBOUNCE_MS", SEARCH_DEBOUNCE_SECONDS * 1000)) / 1000,
            timeout=int(os.getenv("HTTP_TIMEOUT", "10")),
            saved_locations_file=os.path.expanduser(
                os.getenv("SAVED_LOCATIONS_FILE", DEFAULT_SAVED_LOCATIONS_FILE)
            ),
        )
    except ValueError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc

    logging.info("Configuration loaded: cache_ttl=%ss debounce=%ss timeout=%ss",
                 config.cache_ttl, config.debounce_seconds, config.timeout)
    return config


def build_weather_service(config: Config) -> WeatherService:
    service = WeatherService(
        geocoder=MapsCoGeocodingProvider(api_key=config.geocoding_api_key, timeout=config.timeout),
        provider=OpenMeteoProvider(timeout=config.timeout),
        cache=WeatherCache(ttl_seconds=config.cache_ttl),
    )
    logging.info("Weather service ready (cache ttl=%ss)", config.cache_ttl)
    return service


def format_weather_lines(reading: WeatherReading) -> List[str]:
    c, u = reading.current, reading.current_units
    return [
        f"Temperature  {c.temperature:g}{u.temperature} (feels like {c.apparent_temperature:g}{u.apparent_temperature})",
        f"Precipitation {c.precipitation:g}{u.precipitation} "
        f"(rain {c.rain:g}{u.rain}, showers {c.showers:g}{u.showers}, snow {c.snowfall:g}{u.snowfall})",
        f"Cloud cover  {c.cloud_cover:g}{u.cloud_cover}",
        f"Wind         {c.wind_speed:g}{u.wind_speed} from {c.wind_direction:g}{u.wind_direction}, "
        f"gusts {c.wind_gusts:g}{u.wind_gusts}",
    ]


def format_places(places: List[Place], saved: Optional[SavedLocations] = None) -> List[str]:
    lines = []
    for i, place in enumerate(places, start=1):
        star = "*" if saved is not None and saved.is_saved(place.place_id) else " "
        lines.append(f"{i:>2}.{star} {place.display_name} ({place.lat}, {place.lon})")
    return lines


def print_results(results: SearchResults) -> None:
    if results.no_results:
        print("No results. Please try a different query.")
        return
    for line in format_places(list(results.places)):
        print(line)
    print()


async def run_search(service: WeatherService, text: str) -> None:
    places = await service.geocoded_places(text)
    print_results(SearchResults(places=tuple(places), no_results=not places))


async def run_weather(service: WeatherService, lat: str, lon: str) -> None:
    reading = await service.current_weather(lat, lon)
    for line in format_weather_lines(reading):
        print(line)


async def run_saved(service: WeatherService, saved: SavedLocations) -> None:
    if not saved.places:
        print("No saved locations. Use 'toggle' to save one.")
        return
    for place in saved.places:
        print(place.display_name)
        try:
            reading = await service.current_weather(place.lat, place.lon)
        except NoConnectionError:
            raise
        except APIError as err:
            logging.error("Weather fetch failed for %s: %s", place.display_name, err)
            print(f"  Weather unavailable: {err}")
            continue
        for line in format_weather_lines(reading):
            print(f"  {line}")


async def run_toggle(service: WeatherService, saved: SavedLocations, text: str, index: int) -> None:
    places = await service.geocoded_places(text)
    if not 1 <= index <= len(places):
        raise SystemExit(f"No result #{index} for '{text}' ({len(places)} found)")
    place = places[index - 1]
    if saved.toggle(place):
        print(f"Saved {place.display_name}")
    else:
        print(f"Removed {place.display_name}")


def start_line_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue, stream: TextIO) -> threading.Thread:
    """
    Read stream line by line on a daemon thread and hand each line to lines.

    None is queued at end of input. A read still blocked on a terminal
    does not hold up interpreter shutdown.
    """
    def read() -> None:
        for line in iter(stream.readline, ""):
            loop.call_soon_threadsafe(lines.put_nowait, line)
        loop.call_soon_threadsafe(lines.put_nowait, None)

    reader = threading.Thread(target=read, name="stdin-reader", daemon=True)
    reader.start()
    return reader


async def run_live(service: WeatherService, debounce_seconds: float) -> None:
    def report_error(text: str, err: APIError) -> None:
        print(f"Search for '{text}' failed: {err}", file=sys.stderr)

    lines: asyncio.Queue = asyncio.Queue()
    async with LocationSearch(service, debounce_seconds=debounce_seconds, on_error=report_error) as search:
        search.subscribe(print_results)
        start_line_reader(asyncio.get_running_loop(), lines, sys.stdin)
        while True:
            line = await lines.get()
            if line is None:
                break
            search.update_text(line.rstrip("\n"))
        await search.drain()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config()
    service = build_weather_service(config)

    if args.command == "search":
        command = run_search(service, args.text)
    elif args.command == "weather":
        command = run_weather(service, args.lat, args.lon)
    elif args.command == "saved":
        command = run_saved(service, SavedLocations(config.saved_locations_file))
    elif args.command == "toggle":
        command = run_toggle(service, SavedLocations(config.saved_locations_file), args.text, args.index)
    else:
        command = run_live(service, config.debounce_seconds)

    try:
        asyncio.run(command)
    except NoConnectionError as err:
        logging.error("No connection: %s", err)
        raise SystemExit(f"No internet connection. {err}")
    except APIError as err:
        logging.error("Request failed: %s", err)
        raise SystemExit(f"Error: {err}")
    except KeyboardInterrupt:
        logging.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
