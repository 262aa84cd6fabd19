"""
Reader for JPL binary planetary and lunar ephemerides.

An Ephemeris owns an open file handle, the decoded header, and a cache of
the most recently read coefficient record. It is not safe to share one
instance between threads; open the same file once per thread instead.
"""

import time
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterable, List, NamedTuple, Optional, Set, Tuple, Union

import numpy as np

from ..logging import get_logger
from ..space_time.julian import EpochLike, as_two_part_date
from .bodies import (
    BODY_SLOTS,
    EMB_SLOT,
    MOON_SLOT,
    PLANET_SLOTS,
    SUN_SLOT,
    Body,
)
from .chebyshev import interpolate
from .errors import (
    IOFailureError,
    NotFoundError,
    OutOfRangeError,
    UnavailableError,
)
from .header import (
    FIXED_PREFIX_LENGTH,
    HEADER_RECORD_COUNT,
    LIBRATION_COMPONENTS,
    EphemerisFormat,
    EphemerisHeader,
    Pointer,
    select_format,
)

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400.0


@dataclass
class StateVector:
    """Position and velocity of a body."""

    position: np.ndarray
    velocity: np.ndarray

    @classmethod
    def zero(cls) -> "StateVector":
        return cls(np.zeros(3), np.zeros(3))

    @classmethod
    def from_array(cls, values: np.ndarray) -> "StateVector":
        values = np.asarray(values, dtype=np.float64)
        return cls(values[:3].copy(), values[3:6].copy())

    def as_array(self) -> np.ndarray:
        return np.concatenate((self.position, self.velocity))

    def __sub__(self, other: "StateVector") -> "StateVector":
        return StateVector(self.position - other.position, self.velocity - other.velocity)


class Nutations(NamedTuple):
    """Nutation angles and their rates, in radians and radians per time unit."""

    dpsi: float
    deps: float
    dpsi_rate: float
    deps_rate: float


@dataclass
class RecordCache:
    """The one coefficient record currently held in memory."""

    index: Optional[int] = None
    coefficients: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def loaded(self) -> bool:
        return self.index is not None

    def load(self, index: int, coefficients: np.ndarray) -> None:
        self.index = index
        self.coefficients = coefficients

    def clear(self) -> None:
        self.index = None
        self.coefficients = np.zeros(0)


class Ephemeris:
    """
    A JPL binary ephemeris file opened for reading.

    Output units are chosen per instance: AU and AU/day by default, or km
    and km/s when km is True. interpolate_bodies() returns planets relative
    to the Sun unless barycentric is True; state() always works from
    barycentric states and is unaffected by that setting.
    """

    def __init__(
        self,
        path: str,
        fmt: Optional[EphemerisFormat] = None,
        km: bool = False,
        barycentric: bool = False,
    ):
        """
        Open an ephemeris file and decode its header.

        Args:
            path: Path to the binary ephemeris
            fmt: Record layout; looked up from the file's DE number if omitted
            km: Report km and km/s instead of AU and AU/day
            barycentric: Report raw planet states relative to the solar
                system barycenter instead of the Sun

        Raises:
            NotFoundError: If the file does not exist or cannot be opened
            FormatMismatchError: If the file does not match the format
        """
        self.path = path
        self.km = km
        self.barycentric = barycentric
        self._cache = RecordCache()

        start_time = time.time()
        try:
            self._handle: Optional[BinaryIO] = open(path, "rb")
        except FileNotFoundError as e:
            raise NotFoundError(f"No ephemeris file at {path}") from e
        except OSError as e:
            raise NotFoundError(f"Cannot open ephemeris file at {path}: {e}") from e

        try:
            prefix = self._handle.read(FIXED_PREFIX_LENGTH)
            self.format = select_format(prefix, fmt)
            self._handle.seek(0)
            data = self._handle.read(HEADER_RECORD_COUNT * self.format.record_size)
            self.header = EphemerisHeader.decode(data, self.format)
        except Exception:
            self._handle.close()
            self._handle = None
            raise

        logger.info(
            f"Opened DE{self.header.de_number} ephemeris {path} "
            f"({self.header.start} to {self.header.stop}) "
            f"in {time.time() - start_time:.3f}s"
        )

    @classmethod
    def open(
        cls,
        path: str,
        fmt: Optional[EphemerisFormat] = None,
        km: bool = False,
        barycentric: bool = False,
    ) -> "Ephemeris":
        """Open an ephemeris file. See the class constructor for arguments."""
        return cls(path, fmt=fmt, km=km, barycentric=barycentric)

    def __enter__(self) -> "Ephemeris":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Release the file handle. Calling it again does nothing."""
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logger.debug(f"Closed ephemeris {self.path}")
        self._cache.clear()

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def cache(self) -> RecordCache:
        return self._cache

    @property
    def title(self) -> str:
        return self.header.title

    @property
    def de_number(self) -> int:
        return self.header.de_number

    @property
    def au(self) -> float:
        return self.header.au

    @property
    def emrat(self) -> float:
        return self.header.emrat

    @property
    def time_span(self) -> Tuple[float, float, float]:
        return self.header.time_span

    def constants(self) -> Tuple[List[str], List[float], Tuple[float, float, float]]:
        """Return constant names, their values, and (start, stop, step)."""
        return list(self.header.names), list(self.header.values), self.header.time_span

    def constant(self, name: str) -> float:
        """Look up one constant by name, e.g. "AU" or "EMRAT".

        Raises:
            KeyError: If the file has no constant of that name
        """
        return self.header.constants()[name.strip().upper()]

    def state(
        self,
        epoch: EpochLike,
        target: Union[Body, int],
        center: Union[Body, int],
    ) -> Union[StateVector, Nutations]:
        """
        Position and velocity of target relative to center.

        Args:
            epoch: TDB Julian date as a TwoPartDate, float or datetime
            target: Body to locate; NUTATIONS and LIBRATIONS ignore center
            center: Body the result is relative to

        Returns:
            A StateVector, or Nutations when target is NUTATIONS

        Raises:
            OutOfRangeError: If the epoch is outside the file's span
            UnavailableError: If nutations or librations are not on file
            IOFailureError: If a coefficient record cannot be read
        """
        target = Body(target)
        if target == Body.NUTATIONS:
            return self.nutations(epoch)
        if target == Body.LIBRATIONS:
            return self.librations(epoch)
        if target == center:
            return StateVector.zero()

        center = Body(center)
        if center in (Body.NUTATIONS, Body.LIBRATIONS):
            raise ValueError(f"{center.name} cannot be used as a center")

        slots: Set[int] = set()
        for body in (target, center):
            k = body - 1
            if k < BODY_SLOTS:
                slots.add(k)
            if k == MOON_SLOT:
                slots.add(EMB_SLOT)
            if k == EMB_SLOT:
                slots.add(MOON_SLOT)
            if body == Body.EARTH_MOON_BARYCENTER:
                slots.add(EMB_SLOT)

        sun, states = self._interpolate_slots(epoch, slots, barycentric=True)

        pv = np.zeros((Body.EARTH_MOON_BARYCENTER, 6))
        for slot, values in states.items():
            pv[slot] = values
        pv[SUN_SLOT] = sun
        pv[Body.EARTH_MOON_BARYCENTER - 1] = pv[EMB_SLOT]

        if {target, center} == {Body.EARTH, Body.MOON}:
            # The Moon stays geocentric and Earth is the origin
            pv[EMB_SLOT] = 0.0
        else:
            if EMB_SLOT in slots:
                pv[EMB_SLOT] -= pv[MOON_SLOT] / (1.0 + self.header.emrat)
            if MOON_SLOT in slots:
                pv[MOON_SLOT] += pv[EMB_SLOT]

        return StateVector.from_array(pv[target - 1] - pv[center - 1])

    def interpolate_bodies(
        self, epoch: EpochLike, bodies: Iterable[Union[Body, int]]
    ) -> Dict[Body, StateVector]:
        """
        Raw interpolated states, without any Earth/Moon correction.

        Planets are heliocentric, or barycentric if this instance was opened
        with barycentric=True. The Moon is geocentric, the Earth-Moon
        barycenter is reported as such, and the Sun is always barycentric.

        Raises:
            ValueError: If a requested body has no coefficients of its own
        """
        requested = [Body(body) for body in bodies]
        slots: Dict[Body, int] = {}
        for body in requested:
            if body == Body.EARTH_MOON_BARYCENTER:
                slots[body] = EMB_SLOT
            elif body == Body.SUN:
                continue
            elif body in (Body.EARTH, Body.SOLAR_SYSTEM_BARYCENTER) or body > Body.SUN:
                raise ValueError(f"{body.name} is not stored directly on the file")
            else:
                slots[body] = body - 1

        sun, states = self._interpolate_slots(
            epoch, set(slots.values()), barycentric=self.barycentric
        )
        result = {body: StateVector.from_array(states[slot]) for body, slot in slots.items()}
        if Body.SUN in requested:
            result[Body.SUN] = StateVector.from_array(sun)
        return result

    def nutations(self, epoch: EpochLike) -> Nutations:
        """
        Nutation in longitude and obliquity, with rates.

        Raises:
            UnavailableError: If the file carries no nutations
        """
        pointer = self.header.nutation
        if not pointer.present:
            logger.debug(f"No nutations on {self.path}")
            raise UnavailableError("No nutations on the ephemeris file")
        coefficients, t, _ = self._locate(epoch)
        values = self._evaluate(coefficients, pointer, t, 2)
        return Nutations(*(float(v) for v in values))

    def librations(self, epoch: EpochLike) -> StateVector:
        """
        Lunar libration angles and rates.

        Raises:
            UnavailableError: If the file carries no librations
        """
        pointer = self.header.libration
        if not pointer.present:
            logger.debug(f"No librations on {self.path}")
            raise UnavailableError("No librations on the ephemeris file")
        coefficients, t, _ = self._locate(epoch)
        return StateVector.from_array(
            self._evaluate(coefficients, pointer, t, LIBRATION_COMPONENTS)
        )

    def _interpolate_slots(
        self, epoch: EpochLike, slots: Set[int], barycentric: bool
    ) -> Tuple[np.ndarray, Dict[int, np.ndarray]]:
        """Interpolate the barycentric Sun and the requested coefficient slots."""
        coefficients, t, aufac = self._locate(epoch)

        sun = self._evaluate(coefficients, self.header.pointers[SUN_SLOT], t, 3) * aufac

        states: Dict[int, np.ndarray] = {}
        for slot in sorted(slots):
            values = self._evaluate(coefficients, self.header.pointers[slot], t, 3) * aufac
            if slot < PLANET_SLOTS and not barycentric:
                values = values - sun
            states[slot] = values
        return sun, states

    def _locate(self, epoch: EpochLike) -> Tuple[np.ndarray, Tuple[float, float], float]:
        """Find the record holding an epoch and the position within it.

        Returns:
            The record's coefficients, the (fraction, interval length) pair
            for interpolation, and the distance scale factor
        """
        whole, fraction = as_two_part_date(epoch).midnight_parts()
        start, stop, step = self.header.time_span

        jd = whole + fraction
        if jd < start or jd > stop:
            logger.debug(f"Julian date {jd} outside {self.path}")
            raise OutOfRangeError(jd, start, stop)

        record_index = int((whole - start) / step) + HEADER_RECORD_COUNT
        if whole == stop:
            record_index -= 1
        record_start = (record_index - HEADER_RECORD_COUNT) * step + start
        position = (whole - record_start + fraction) / step

        coefficients = self._load_record(record_index)

        if self.km:
            t = (position, step * SECONDS_PER_DAY)
            aufac = 1.0
        else:
            t = (position, step)
            aufac = 1.0 / self.header.au
        return coefficients, t, aufac

    def _load_record(self, record_index: int) -> np.ndarray:
        """Return a record's coefficients, reading it from disk if not cached."""
        if self._cache.index == record_index:
            return self._cache.coefficients

        if self._handle is None:
            raise IOFailureError(f"Ephemeris {self.path} is closed")

        self._cache.clear()
        size = self.format.coefficient_count * 8
        try:
            self._handle.seek(record_index * self.format.record_size)
            data = self._handle.read(size)
        except OSError as e:
            raise IOFailureError(f"Failed to read record {record_index}: {e}") from e
        if len(data) != size:
            raise IOFailureError(
                f"Short read of record {record_index}: expected {size} bytes, got {len(data)}"
            )

        dtype = np.dtype(np.float64).newbyteorder(self.header.byteorder)
        coefficients = np.frombuffer(data, dtype=dtype).astype(np.float64)
        self._cache.load(record_index, coefficients)
        logger.debug(f"Loaded record {record_index} from {self.path}")
        return coefficients

    @staticmethod
    def _evaluate(
        coefficients: np.ndarray, pointer: Pointer, t: Tuple[float, float], ncm: int
    ) -> np.ndarray:
        return interpolate(
            coefficients[pointer.offset - 1 :], t, pointer.ncf, ncm, pointer.na
        )
