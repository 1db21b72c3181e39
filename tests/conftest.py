from unittest.mock import MagicMock

import pytest
from redis import Redis
from redis.exceptions import WatchError

from branchcov.recorder import CoverageRecorder


@pytest.fixture
def recorder():
    return CoverageRecorder()


@pytest.fixture
def redis_client():
    """MagicMock Redis client backed by a dict of sets, covering the set commands the table uses."""
    store: dict[str, set[bytes]] = {}

    def _encode(value):
        return value if isinstance(value, bytes) else str(value).encode("utf-8")

    def sadd(key, *values):
        members = store.setdefault(key, set())
        before = len(members)
        members.update(_encode(v) for v in values)
        return len(members) - before

    def smembers(key):
        return set(store.get(key, set()))

    def scard(key):
        return len(store.get(key, set()))

    def delete(*keys):
        return sum(1 for k in keys if store.pop(k, None) is not None)

    def pipeline(transaction=True):
        """Commands run immediately after watch() and are queued after multi() or without a watch."""
        queued = []
        state = {"watching": False, "multi": False}
        pipe = MagicMock()
        pipe.__enter__.return_value = pipe
        pipe.__exit__.return_value = False

        def command(fn):
            def call(*args):
                if state["watching"] and not state["multi"]:
                    return fn(*args)
                queued.append((fn, args))
                return pipe

            return call

        def watch(*keys):
            state["watching"] = True

        def multi():
            state["multi"] = True

        def execute():
            state["watching"] = state["multi"] = False
            if client.watch_failures:
                client.watch_failures -= 1
                queued.clear()
                raise WatchError("Watched variable changed.")
            out = [fn(*args) for fn, args in queued]
            queued.clear()
            return out

        pipe.sadd.side_effect = command(sadd)
        pipe.smembers.side_effect = command(smembers)
        pipe.watch.side_effect = watch
        pipe.multi.side_effect = multi
        pipe.execute.side_effect = execute
        client.pipes.append(pipe)
        return pipe

    client = MagicMock(spec=Redis)
    client.sadd.side_effect = sadd
    client.smembers.side_effect = smembers
    client.scard.side_effect = scard
    client.delete.side_effect = delete
    client.pipeline.side_effect = pipeline
    client.store = store
    client.pipes = []
    client.watch_failures = 0
    return client
