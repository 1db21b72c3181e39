"""Replay a recorded trace of host callbacks into a recorder.

A trace is JSON lines, one callback per line::

    {"hook": "br_table", "location": {"func": 3, "instr": 12}, "args": [[0, 1], 2, 1]}

`args` holds the callback's arguments after the location, in the host's order.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from branchcov.constants import HOOK_BR_IF, HOOK_BR_TABLE, HOOK_IF, HOOK_SELECT
from branchcov.errors import CoverageContractError, TraceError
from branchcov.location import Location
from branchcov.recorder import CoverageRecorder

logger = logging.getLogger(__name__)

# hook name -> (recorder method, number of args after the location)
_DISPATCH = {
    HOOK_IF: ("if_", 1),
    HOOK_BR_IF: ("br_if", 2),
    HOOK_BR_TABLE: ("br_table", 3),
    HOOK_SELECT: ("select", 1),
}


@dataclass
class ReplayStats:
    events: int = 0
    rejected: int = 0

    @property
    def accepted(self) -> int:
        return self.events - self.rejected


def decode_event(lineno: int, line: str) -> tuple[str, Location, list[Any]]:
    try:
        event = json.loads(line)
    except json.JSONDecodeError as e:
        raise TraceError(lineno, f"invalid JSON: {e}") from e
    if not isinstance(event, dict):
        raise TraceError(lineno, "event must be a JSON object")

    hook = event.get("hook")
    if not isinstance(hook, str) or hook not in _DISPATCH:
        raise TraceError(lineno, f"unknown hook {hook!r}")

    args = event.get("args", [])
    if not isinstance(args, list):
        raise TraceError(lineno, "args must be a list")
    _, arity = _DISPATCH[hook]
    if len(args) != arity:
        raise TraceError(lineno, f"hook {hook} takes {arity} args, got {len(args)}")

    if "location" not in event:
        raise TraceError(lineno, "missing location")
    return hook, Location.from_mapping(event["location"]), args


def _decode_line(lineno: int, raw: str | bytes) -> str:
    if isinstance(raw, str):
        return raw.strip()
    try:
        return raw.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise TraceError(lineno, f"invalid UTF-8: {e}") from e


def replay_trace(lines: Iterable[str | bytes], recorder: CoverageRecorder, strict: bool = False) -> ReplayStats:
    """Feed every event of a trace to the recorder.

    Lines may be str or raw bytes; bytes are decoded as UTF-8 per line, so an
    undecodable line is rejected like any other malformed event.
    """
    stats = ReplayStats()
    for lineno, raw in enumerate(lines, start=1):
        if not raw.strip():
            continue
        stats.events += 1
        try:
            hook, location, args = decode_event(lineno, _decode_line(lineno, raw))
            method, _ = _DISPATCH[hook]
            getattr(recorder, method)(location, *args)
        except (TraceError, CoverageContractError) as e:
            if strict:
                raise
            stats.rejected += 1
            logger.warning(f"Rejected trace event at line {lineno}: {e}")

    logger.info(f"Replayed {stats.events} events ({stats.rejected} rejected)")
    return stats
