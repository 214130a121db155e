"""Persistent, ordered list of the user's saved places."""
import json
import logging
import os
from typing import List

from weather_data import Place

logger = logging.getLogger(__name__)

DEFAULT_SAVED_LOCATIONS_FILE = os.path.join(
    os.path.expanduser("~"), ".weather-search", "saved_locations.json"
)


class SavedLocations:
    """
    Saved places, stored as a JSON array on disk.

    The list is loaded once on construction and written back after every
    change. A missing file means nothing is saved yet; an unreadable one is
    logged and treated the same way.
    """

    def __init__(self, path: str = DEFAULT_SAVED_LOCATIONS_FILE):
        self.path = path
        self._places: List[Place] = self.load()

    @property
    def places(self) -> List[Place]:
        return list(self._places)

    def load(self) -> List[Place]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return [Place.from_geocoding(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error("Error when trying to load saved locations from %s: %s", self.path, e)
            return []

    def save(self, places: List[Place]) -> None:
        """Replace the saved list and persist it."""
        self._places = list(places)
        self.persist()

    def persist(self) -> None:
        """Write the saved list to disk, creating the directory if needed."""
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump([place.to_dict() for place in self._places], f, indent=2)
        except OSError as e:
            logger.error("Error when trying to persist saved locations to %s: %s", self.path, e)
            return
        logger.debug("Persisted %d saved locations to %s", len(self._places), self.path)

    def is_saved(self, place_id: int) -> bool:
        return any(place.place_id == place_id for place in self._places)

    def toggle(self, place: Place) -> bool:
        """
        Remove place if it is saved, otherwise append it.

        Returns:
            bool: True if the place is saved after the call
        """
        if self.is_saved(place.place_id):
            self._places = [p for p in self._places if p.place_id != place.place_id]
            saved = False
        else:
            self._places.append(place)
            saved = True
        self.persist()
        return saved
