"""Branch coverage recorder for instrumentation host callbacks."""

from branchcov.errors import CoverageContractError, InvalidBranchValue, InvalidLocation
from branchcov.location import Location
from branchcov.recorder import CoverageEntry, CoverageRecorder
from branchcov.table import CoverageTable
from branchcov.values import BranchKind, BranchValue

__all__ = [
    "BranchKind",
    "BranchValue",
    "CoverageContractError",
    "CoverageEntry",
    "CoverageRecorder",
    "CoverageTable",
    "InvalidBranchValue",
    "InvalidLocation",
    "Location",
]
