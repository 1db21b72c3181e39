import logging
import threading
from collections.abc import Iterator
from typing import Protocol

from branchcov.location import Location
from branchcov.values import BranchValue

logger = logging.getLogger(__name__)

# Read-only view handed out to callers
TableSnapshot = dict[Location, frozenset[BranchValue]]


class CoverageTable:
    """Sparse record of the distinct branch values observed at each location.

    Keyed by the composite (function, instruction) location. A location is
    present only after a value was added there, and entries are never removed.
    All access goes through one lock so concurrent callbacks cannot tear a set.
    """

    def __init__(self) -> None:
        self._entries: dict[Location, set[BranchValue]] = {}
        self._lock = threading.Lock()

    # Returns True if the value was new at this location
    def add(self, location: Location, value: BranchValue) -> bool:
        with self._lock:
            observed = self._entries.get(location)
            if observed is None:
                observed = set()
                self._entries[location] = observed
            if value in observed:
                return False
            observed.add(value)
        logger.debug(f"New branch value {value} at {location}")
        return True

    def snapshot(self) -> TableSnapshot:
        with self._lock:
            return {location: frozenset(observed) for location, observed in self._entries.items()}

    def entries(self) -> Iterator[tuple[Location, frozenset[BranchValue]]]:
        """Yield (location, values) in ascending location order."""
        snapshot = self.snapshot()
        for location in sorted(snapshot):
            yield location, snapshot[location]

    def values_at(self, location: Location) -> frozenset[BranchValue]:
        with self._lock:
            return frozenset(self._entries.get(location, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CoverageStore(Protocol):
    """What the recorder needs from a table, in memory or shared."""

    def add(self, location: Location, value: BranchValue) -> bool: ...

    def values_at(self, location: Location) -> frozenset[BranchValue]: ...

    def snapshot(self) -> TableSnapshot: ...

    def entries(self) -> Iterator[tuple[Location, frozenset[BranchValue]]]: ...

    def __len__(self) -> int: ...
