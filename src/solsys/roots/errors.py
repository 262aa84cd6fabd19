"""Exceptions raised by the root and extremum finders."""


class RootFindingError(ArithmeticError):
    """Base class for root and extremum search failures."""

    pass


class PreconditionViolationError(RootFindingError):
    """Raised when a search is started with arguments that break its contract,
    such as a root bracket whose endpoints do not straddle zero.
    """

    pass


class IterationLimitExceededError(RootFindingError):
    """Raised when root refinement does not converge within its iteration cap."""

    def __init__(self, iterations: int, best: float):
        super().__init__(
            f"No convergence after {iterations} iterations (best estimate {best})"
        )
        self.iterations = iterations
        self.best = best
