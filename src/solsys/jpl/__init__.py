"""
JPL binary ephemeris reader.

This module reads the fixed-record binary ephemerides published by JPL
(DE200, DE405, DE430 and relatives) and interpolates their Chebyshev
coefficients into planetary and lunar state vectors.
"""

from .bodies import Body
from .chebyshev import interpolate, split
from .ephemeris import Ephemeris, Nutations, RecordCache, StateVector
from .errors import (
    EphemerisError,
    FormatMismatchError,
    IOFailureError,
    NotFoundError,
    OutOfRangeError,
    UnavailableError,
)
from .header import EphemerisFormat, EphemerisHeader, Pointer

__all__ = [
    "Body",
    "interpolate",
    "split",
    "Ephemeris",
    "Nutations",
    "RecordCache",
    "StateVector",
    "EphemerisError",
    "FormatMismatchError",
    "IOFailureError",
    "NotFoundError",
    "OutOfRangeError",
    "UnavailableError",
    "EphemerisFormat",
    "EphemerisHeader",
    "Pointer",
]
