class CoverageContractError(ValueError):
    """The host passed an event that violates the callback contract."""


class InvalidLocation(CoverageContractError):
    pass


class InvalidBranchValue(CoverageContractError):
    pass


class HookConfigError(ValueError):
    """Malformed hook-selection configuration line."""

    def __init__(self, line: int, reason: str):
        super().__init__(f"line {line}: {reason}")
        self.line = line
        self.reason = reason


class TraceError(ValueError):
    """Malformed event in a replayed callback trace."""

    def __init__(self, line: int, reason: str):
        super().__init__(f"trace line {line}: {reason}")
        self.line = line
        self.reason = reason
