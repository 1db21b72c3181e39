from collections.abc import Mapping
from typing import Any, NamedTuple

from branchcov.errors import InvalidLocation


def _check_index(name: str, value: Any) -> int:
    # bool is an int subclass, but never a valid index
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidLocation(f"{name} must be an integer, got {type(value).__name__}: {value!r}")
    if value < 0:
        raise InvalidLocation(f"{name} must be >= 0, got {value}")
    return value


class Location(NamedTuple):
    """Static position of a branch instruction: (function index, instruction index).

    Indices are defined by the host's indexing scheme. There is no upper bound
    check, the recorder does not know how many functions or instructions the
    analyzed program has. Ordering is by function first, then instruction.
    """

    function_index: int
    instruction_index: int

    @classmethod
    def of(cls, function_index: Any, instruction_index: Any) -> "Location":
        return cls(
            _check_index("function_index", function_index),
            _check_index("instruction_index", instruction_index),
        )

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "Location":
        """Build a location from a host payload.

        Accepts the host's `{"func": F, "instr": I}` shape as well as
        `{"function_index": F, "instruction_index": I}`.
        """
        if not isinstance(payload, Mapping):
            raise InvalidLocation(f"location payload must be a mapping, got {type(payload).__name__}")
        if "func" in payload or "instr" in payload:
            keys = ("func", "instr")
        else:
            keys = ("function_index", "instruction_index")
        missing = [k for k in keys if k not in payload]
        if missing:
            raise InvalidLocation(f"location payload missing {', '.join(missing)}: {dict(payload)!r}")
        return cls.of(payload[keys[0]], payload[keys[1]])

    def validate(self) -> "Location":
        """Check a directly constructed location, returning it unchanged."""
        _check_index("function_index", self.function_index)
        _check_index("instruction_index", self.instruction_index)
        return self
