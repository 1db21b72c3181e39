from enum import IntEnum
from typing import Any, NamedTuple

from branchcov.errors import InvalidBranchValue


class BranchKind(IntEnum):
    """Shape of a branch value. The numeric order is the sort order: booleans first."""

    BOOLEAN = 0
    INTEGER = 1


class BranchValue(NamedTuple):
    """Runtime value that selected a control-flow successor.

    The kind is part of the identity, so `boolean(True)` and `integer(1)`
    are different members of a coverage set. Tuple ordering gives a total
    order: all booleans before all integers, `false < true`, integers ascending.
    """

    kind: BranchKind
    value: int

    @classmethod
    def boolean(cls, condition: Any) -> "BranchValue":
        """Project a condition payload; ints follow i32 truthiness (nonzero is true)."""
        if isinstance(condition, bool):
            return cls(BranchKind.BOOLEAN, int(condition))
        if isinstance(condition, int):
            return cls(BranchKind.BOOLEAN, int(condition != 0))
        raise InvalidBranchValue(f"condition must be a bool or int, got {type(condition).__name__}: {condition!r}")

    @classmethod
    def integer(cls, index: Any) -> "BranchValue":
        """Project a resolved table index. Negative sentinels are kept as is."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidBranchValue(f"table index must be an integer, got {type(index).__name__}: {index!r}")
        return cls(BranchKind.INTEGER, index)

    def validate(self) -> "BranchValue":
        if not isinstance(self.kind, BranchKind):
            raise InvalidBranchValue(f"unknown branch kind {self.kind!r}")
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise InvalidBranchValue(f"branch value must be an integer, got {self.value!r}")
        if self.kind == BranchKind.BOOLEAN and self.value not in (0, 1):
            raise InvalidBranchValue(f"boolean branch value must be 0 or 1, got {self.value}")
        return self

    @property
    def python_value(self) -> bool | int:
        if self.kind == BranchKind.BOOLEAN:
            return bool(self.value)
        return self.value

    def __str__(self) -> str:
        if self.kind == BranchKind.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)


def as_branch_value(value: Any) -> BranchValue:
    """Coerce a raw `record` argument into a validated BranchValue.

    A plain bool becomes a boolean value and a plain int an integer value,
    matching how the host's callbacks pass them.
    """
    if isinstance(value, BranchValue):
        return value.validate()
    if isinstance(value, bool):
        return BranchValue.boolean(value)
    if isinstance(value, int):
        return BranchValue.integer(value)
    raise InvalidBranchValue(f"unsupported branch value {type(value).__name__}: {value!r}")
