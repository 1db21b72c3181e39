"""Redis-backed coverage table shared by the worker processes of one run.

Each covered location is a Redis set of encoded branch values, and an index set
lists the covered locations. `SADD` is atomic on the server, so insertions from
several processes serialize without a client-side lock. Keys are scoped to a
run id and removed by `discard()` when the run ends.
"""

import logging
from collections.abc import Iterator

from redis import Redis
from redis.exceptions import WatchError

from branchcov.constants import REDIS_KEY_PREFIX
from branchcov.errors import InvalidBranchValue, InvalidLocation
from branchcov.location import Location
from branchcov.table import TableSnapshot
from branchcov.values import BranchKind, BranchValue

logger = logging.getLogger(__name__)

_KIND_TAGS = {BranchKind.BOOLEAN: "b", BranchKind.INTEGER: "i"}
_TAG_KINDS = {tag: kind for kind, tag in _KIND_TAGS.items()}


def encode_value(value: BranchValue) -> str:
    return f"{_KIND_TAGS[value.kind]}:{value.value}"


def decode_value(member: bytes | str) -> BranchValue:
    text = member.decode("utf-8") if isinstance(member, bytes) else member
    tag, _, raw = text.partition(":")
    if tag not in _TAG_KINDS:
        raise InvalidBranchValue(f"unknown encoded branch value {text!r}")
    return BranchValue(_TAG_KINDS[tag], int(raw)).validate()


def encode_location(location: Location) -> str:
    return f"{location.function_index}:{location.instruction_index}"


def decode_location(member: bytes | str) -> Location:
    text = member.decode("utf-8") if isinstance(member, bytes) else member
    func, sep, instr = text.partition(":")
    if not sep:
        raise InvalidLocation(f"unknown encoded location {text!r}")
    return Location.of(int(func), int(instr))


class RedisCoverageTable:
    def __init__(self, redis: Redis, run_id: str):
        self.redis = redis
        self.run_id = run_id
        self.index_key = f"{REDIS_KEY_PREFIX}:{run_id}:locations"

    def _location_key(self, location: Location) -> str:
        return f"{REDIS_KEY_PREFIX}:{self.run_id}:{encode_location(location)}"

    # Returns True if the value was new at this location
    def add(self, location: Location, value: BranchValue) -> bool:
        pipe = self.redis.pipeline(transaction=True)
        pipe.sadd(self._location_key(location), encode_value(value))
        pipe.sadd(self.index_key, encode_location(location))
        added, _ = pipe.execute()
        if added:
            logger.debug(f"New branch value {value} at {location} (run {self.run_id})")
        return bool(added)

    def values_at(self, location: Location) -> frozenset[BranchValue]:
        return frozenset(decode_value(m) for m in self.redis.smembers(self._location_key(location)))

    def snapshot(self) -> TableSnapshot:
        """Read every location set of the run in one MULTI transaction.

        The index key is WATCHed; if another process covers a new location
        before the transaction runs, the read is retried.
        """
        with self.redis.pipeline(transaction=True) as pipe:
            while True:
                try:
                    pipe.watch(self.index_key)
                    locations = sorted(decode_location(m) for m in pipe.smembers(self.index_key))
                    pipe.multi()
                    for location in locations:
                        pipe.smembers(self._location_key(location))
                    results = pipe.execute()
                    break
                except WatchError:
                    logger.debug(f"Coverage index for run {self.run_id} changed during snapshot, retrying")
                    continue

        snapshot: TableSnapshot = {}
        for location, members in zip(locations, results):
            observed = frozenset(decode_value(m) for m in members)
            if observed:
                snapshot[location] = observed
        return snapshot

    def entries(self) -> Iterator[tuple[Location, frozenset[BranchValue]]]:
        """Yield (location, values) in ascending location order."""
        snapshot = self.snapshot()
        for location in sorted(snapshot):
            yield location, snapshot[location]

    def __len__(self) -> int:
        return self.redis.scard(self.index_key)

    def discard(self) -> None:
        """Delete every key of this run."""
        keys = [self._location_key(decode_location(m)) for m in self.redis.smembers(self.index_key)]
        keys.append(self.index_key)
        self.redis.delete(*keys)
        logger.info(f"Discarded coverage table for run {self.run_id} ({len(keys) - 1} locations)")
