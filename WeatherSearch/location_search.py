"""
Debounced live location search.

Turns a fast stream of search-field values into place lookups issued at
most once per debounce window, and publishes the results of the most
recently issued lookup only.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from weather_data import Place
from weather_provider import APIError

logger = logging.getLogger(__name__)

# maps.co rejects requests less than a second after the previous one
SEARCH_DEBOUNCE_SECONDS = 1.0


@dataclass(frozen=True)
class SearchResults:
    """Published state of a search: the matching places and whether the last lookup found nothing."""
    places: Tuple[Place, ...] = ()
    no_results: bool = False


class SearchState(enum.Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"


class LocationSearch:
    """
    Pipeline from search text to published place results.

    Feed it text with update_text() and read results from `results` or a
    subscribe() callback. Each lookup is tagged with a sequence number when
    issued; a response is applied only if its tag is still the newest one,
    so a slow reply to an old query never overwrites a newer query's results.

    Usage:
        async with LocationSearch(service) as search:
            search.update_text("par")
            search.update_text("paris")
            await search.drain()
            print(search.results.places)
    """

    def __init__(
        self,
        service,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        on_error: Optional[Callable[[str, APIError], None]] = None,
    ):
        """
        Args:
            service: Anything with an async geocoded_places(text) method,
                normally a WeatherService
            debounce_seconds: Quiet period required before a value is looked up
            on_error: Called with (text, error) when the newest lookup fails
        """
        self.service = service
        self.debounce_seconds = debounce_seconds
        self._on_error = on_error

        self._updates: asyncio.Queue = asyncio.Queue()
        self._subscribers: List[Callable[[SearchResults], None]] = []
        self._results = SearchResults()

        self._last_text = ""
        self._pending: Optional[str] = None
        self._issued = 0
        self._latest_request: Optional[asyncio.Task] = None
        self._requests: Set[asyncio.Task] = set()
        self._worker: Optional[asyncio.Task] = None

    @property
    def results(self) -> SearchResults:
        return self._results

    @property
    def issued_count(self) -> int:
        """Number of lookups issued so far; also the newest sequence number."""
        return self._issued

    @property
    def state(self) -> SearchState:
        if self._pending is not None:
            return SearchState.DEBOUNCING
        if self._latest_request is not None and not self._latest_request.done():
            return SearchState.IN_FLIGHT
        return SearchState.IDLE

    def subscribe(self, callback: Callable[[SearchResults], None]) -> Callable[[], None]:
        """Call callback with every newly published SearchResults. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update_text(self, text: str) -> None:
        """Report the current value of the search field."""
        self._updates.put_nowait(text)

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    async def drain(self, poll_seconds: float = 0.01) -> None:
        """Wait until queued text has settled and every issued lookup has finished."""
        while not self._updates.empty() or self._pending is not None or self._requests:
            await asyncio.sleep(poll_seconds)

    async def aclose(self) -> None:
        """Stop the pipeline. Lookups still in flight are cancelled and their results dropped."""
        tasks = list(self._requests)
        if self._worker is not None:
            tasks.append(self._worker)
            self._worker = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pending = None

    async def __aenter__(self) -> "LocationSearch":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = 0.0
        while True:
            if self._pending is None:
                text = await self._updates.get()
            else:
                try:
                    text = await asyncio.wait_for(
                        self._updates.get(), timeout=max(deadline - loop.time(), 0)
                    )
                except asyncio.TimeoutError:
                    settled, self._pending = self._pending, None
                    self._settle(settled)
                    continue

            # Repeats are dropped before they can restart the timer
            if text == self._last_text:
                continue
            self._last_text = text
            self._pending = text
            deadline = loop.time() + self.debounce_seconds

    def _settle(self, text: str) -> None:
        if not text.strip():
            logger.debug("Search text cleared, keeping previous results")
            return

        self._issued += 1
        seq = self._issued
        logger.debug("Issuing search #%d for '%s'", seq, text)
        task = asyncio.create_task(self._lookup(seq, text))
        self._latest_request = task
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)

    async def _lookup(self, seq: int, text: str) -> None:
        try:
            places = await self.service.geocoded_places(text)
        except APIError as e:
            if seq != self._issued:
                logger.debug("Ignoring error from superseded search #%d: %s", seq, e)
                return
            logger.error("Error occurred when searching for query: '%s': %s", text, e)
            if self._on_error is not None:
                self._on_error(text, e)
            return
        except Exception:
            logger.exception("Unexpected error when searching for query: '%s'", text)
            return

        if seq != self._issued:
            logger.debug("Discarding results of superseded search #%d for '%s'", seq, text)
            return

        self._publish(SearchResults(places=tuple(places), no_results=not places))

    def _publish(self, results: SearchResults) -> None:
        self._results = results
        for callback in list(self._subscribers):
            try:
                callback(results)
            except Exception:
                logger.exception("Search results subscriber failed")
