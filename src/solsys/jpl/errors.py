"""Exceptions raised while reading a JPL binary ephemeris."""


class EphemerisError(Exception):
    """Base class for all ephemeris errors."""

    pass


class NotFoundError(EphemerisError, FileNotFoundError):
    """Raised when the ephemeris file does not exist or cannot be opened."""

    pass


class FormatMismatchError(EphemerisError, ValueError):
    """Raised when a file does not match the selected ephemeris format."""

    pass


class OutOfRangeError(EphemerisError, ValueError):
    """Raised when an epoch lies outside the span covered by the file.

    This is an expected outcome when probing near the ends of an ephemeris.
    """

    def __init__(self, jd: float, start: float, stop: float):
        super().__init__(
            f"Julian date {jd} is outside the ephemeris span [{start}, {stop}]"
        )
        self.jd = jd
        self.start = start
        self.stop = stop


class UnavailableError(EphemerisError, LookupError):
    """Raised when nutations or librations are requested but not on file."""

    pass


class IOFailureError(EphemerisError, OSError):
    """Raised when reading coefficient data fails after the file was opened."""

    pass
