import logging
import sys
from typing import Any, NamedTuple, TextIO

from branchcov.constants import REPORT_LINE_FORMAT
from branchcov.location import Location
from branchcov.table import CoverageStore, CoverageTable
from branchcov.values import BranchValue, as_branch_value

logger = logging.getLogger(__name__)


class CoverageEntry(NamedTuple):
    """One covered location and the distinct values seen there."""

    function_index: int
    instruction_index: int
    observed: frozenset[BranchValue]

    @property
    def location(self) -> Location:
        return Location(self.function_index, self.instruction_index)

    def format(self) -> str:
        return REPORT_LINE_FORMAT.format(
            function=self.function_index,
            instruction=self.instruction_index,
            values=", ".join(str(v) for v in sorted(self.observed)),
        )


def _as_location(location: Any) -> Location:
    if isinstance(location, Location):
        return location.validate()
    if isinstance(location, tuple) and len(location) == 2:
        return Location.of(*location)
    return Location.from_mapping(location)


class CoverageRecorder:
    """Accumulates branch coverage from the host's branch callbacks.

    The four callbacks (`if_`, `br_if`, `br_table`, `select`) project their
    payload onto a BranchValue and delegate to `record`. Accumulation is
    idempotent and order independent. `report` can be called any number of
    times and the recorder keeps accepting events afterwards.
    """

    def __init__(self, table: CoverageStore | None = None) -> None:
        self.table: CoverageStore = table if table is not None else CoverageTable()

    def record(self, location: Any, value: Any) -> None:
        """Record that `value` was observed at `location`.

        Both arguments are validated before the table is touched, so a
        malformed event raises InvalidLocation / InvalidBranchValue and leaves
        every other location unchanged.
        """
        loc = _as_location(location)
        branch = as_branch_value(value)
        self.table.add(loc, branch)

    # Host callbacks

    def if_(self, location: Any, condition: Any) -> None:
        self.record(location, BranchValue.boolean(condition))

    def br_if(self, location: Any, conditional_target: Any, condition: Any) -> None:
        self.record(location, BranchValue.boolean(condition))

    def br_table(self, location: Any, table: Any, default_target: Any, table_index: Any) -> None:
        # Only the resolved index counts, the default target label is not stored
        self.record(location, BranchValue.integer(table_index))

    def select(self, location: Any, condition: Any) -> None:
        self.record(location, BranchValue.boolean(condition))

    # Queries

    def report(self) -> list[CoverageEntry]:
        return [
            CoverageEntry(location.function_index, location.instruction_index, observed)
            for location, observed in self.table.entries()
            if observed
        ]

    def format_report(self) -> list[str]:
        return [entry.format() for entry in self.report()]

    def results(self, stream: TextIO | None = None) -> list[str]:
        """Write the report, one line per covered location, and return the lines."""
        out = stream if stream is not None else sys.stdout
        entries = self.report()
        lines = [entry.format() for entry in entries]
        for line in lines:
            out.write(line + "\n")
        out.flush()
        logger.info(
            f"Branch coverage: {len(entries)} locations, {sum(len(e.observed) for e in entries)} distinct branch values"
        )
        return lines

    def covered_values(self, location: Any) -> frozenset[BranchValue]:
        return self.table.values_at(_as_location(location))

    def branch_count(self) -> int:
        return sum(len(observed) for observed in self.table.snapshot().values())

    def merge(self, other: "CoverageRecorder") -> int:
        """Union another recorder's coverage into this one; returns the number of new values."""
        new = 0
        for location, observed in other.table.entries():
            for value in observed:
                if self.table.add(location, value):
                    new += 1
        logger.debug(f"Merged {new} new branch values")
        return new

    def __len__(self) -> int:
        return len(self.table)
