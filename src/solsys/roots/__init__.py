"""Root and extremum search utilities."""

from .errors import (
    IterationLimitExceededError,
    PreconditionViolationError,
    RootFindingError,
)
from .finder import (
    RealPoint,
    RealRange,
    bracket_roots,
    find_extremum,
    find_roots,
    normalize,
    refine_root,
)

__all__ = [
    "IterationLimitExceededError",
    "PreconditionViolationError",
    "RootFindingError",
    "RealPoint",
    "RealRange",
    "bracket_roots",
    "find_extremum",
    "find_roots",
    "normalize",
    "refine_root",
]
