"""
Header records of a JPL binary ephemeris file.

The first two records of the file describe its contents. Record 1 holds,
at fixed byte offsets:

- three 84-byte titles
- 400 six-byte constant names
- start, stop and step Julian dates (3 doubles)
- the number of constants (int32)
- km per AU and the Earth/Moon mass ratio (2 doubles)
- a 12x3 table of coefficient pointers (int32)
- the DE number (int32)
- the libration pointer (3 int32)
- up to 600 more constant names, as many as fit in the record

Record 2 holds the constant values as doubles. Both records are one
format-dependent record length long; the file itself does not record that
length, so it is selected from the DE number or given explicitly.
"""

import struct
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

from .errors import FormatMismatchError

TITLE_LENGTH = 84
TITLE_COUNT = 3
NAME_LENGTH = 6
OLD_MAX_NAMES = 400
MAX_NAMES = 1000
POINTER_COUNT = 12
NUTATION_POINTER = 11
HEADER_RECORD_COUNT = 2

_TITLES_OFFSET = 0
_NAMES_OFFSET = _TITLES_OFFSET + TITLE_COUNT * TITLE_LENGTH
_SPAN_OFFSET = _NAMES_OFFSET + OLD_MAX_NAMES * NAME_LENGTH
_NCON_OFFSET = _SPAN_OFFSET + 3 * 8
_AU_OFFSET = _NCON_OFFSET + 4
_EMRAT_OFFSET = _AU_OFFSET + 8
_POINTERS_OFFSET = _EMRAT_OFFSET + 8
_DE_NUMBER_OFFSET = _POINTERS_OFFSET + POINTER_COUNT * 3 * 4
_LIBRATION_OFFSET = _DE_NUMBER_OFFSET + 4
_NAMES2_OFFSET = _LIBRATION_OFFSET + 3 * 4

# Bytes of record 1 needed before the DE number and pointers can be read
FIXED_PREFIX_LENGTH = _NAMES2_OFFSET

# Components per pointer entry: 3 for bodies, 2 for nutations
_COMPONENTS = (3,) * 11 + (2,)
LIBRATION_COMPONENTS = 3


@dataclass(frozen=True)
class EphemerisFormat:
    """Record layout of one family of JPL ephemerides.

    Attributes:
        de_number: DE number the format is registered under
        ksize: Record length in 4-byte words
    """

    de_number: int
    ksize: int

    @property
    def record_size(self) -> int:
        """Record length in bytes."""
        return 4 * self.ksize

    @property
    def coefficient_count(self) -> int:
        """Number of doubles in each coefficient record."""
        return self.ksize // 2

    @classmethod
    def for_de_number(cls, de_number: int) -> "EphemerisFormat":
        """Look up the registered format for a DE number.

        Raises:
            FormatMismatchError: If the DE number is not registered
        """
        ksize = KNOWN_KSIZES.get(de_number)
        if ksize is None:
            raise FormatMismatchError(
                f"No record layout known for DE{de_number}; pass an explicit format"
            )
        return cls(de_number=de_number, ksize=ksize)


KNOWN_KSIZES: Dict[int, int] = {
    200: 1652,
    403: 2036,
    404: 1456,
    405: 2036,
    406: 1456,
    421: 2036,
    422: 2036,
    430: 2036,
    431: 2036,
}


class Pointer(NamedTuple):
    """Location of one body's coefficients within a record.

    offset is 1-based into the record's array of doubles.
    """

    offset: int
    ncf: int
    na: int

    @property
    def present(self) -> bool:
        return self.ncf > 0

    def end(self, ncm: int) -> int:
        """Index one past the last coefficient this pointer covers (0-based)."""
        return self.offset - 1 + self.ncf * ncm * self.na


@dataclass
class EphemerisHeader:
    """Decoded contents of the two header records."""

    titles: List[str]
    names: List[str]
    values: List[float]
    start: float
    stop: float
    step: float
    au: float
    emrat: float
    pointers: Tuple[Pointer, ...]
    libration: Pointer
    de_number: int
    byteorder: str = "<"

    @property
    def ncon(self) -> int:
        return len(self.names)

    @property
    def time_span(self) -> Tuple[float, float, float]:
        return self.start, self.stop, self.step

    @property
    def title(self) -> str:
        return self.titles[0]

    @property
    def nutation(self) -> Pointer:
        return self.pointers[NUTATION_POINTER]

    def constants(self) -> Dict[str, float]:
        return dict(zip(self.names, self.values))

    def implied_coefficient_count(self) -> int:
        """Doubles per record implied by the pointer table."""
        ends = [
            pointer.end(ncm)
            for pointer, ncm in zip(self.pointers, _COMPONENTS)
            if pointer.present
        ]
        if self.libration.present:
            ends.append(self.libration.end(LIBRATION_COMPONENTS))
        return max(ends)

    @classmethod
    def decode(cls, data: bytes, fmt: EphemerisFormat) -> "EphemerisHeader":
        """Decode the two header records.

        Args:
            data: At least two records of raw file bytes
            fmt: Record layout to decode against

        Returns:
            The decoded header

        Raises:
            FormatMismatchError: If the data is truncated, implausible in
                either byte order, or does not fit the format
        """
        size = fmt.record_size
        if size < FIXED_PREFIX_LENGTH:
            raise FormatMismatchError(
                f"Record size {size} is smaller than the fixed header layout"
            )
        if len(data) < HEADER_RECORD_COUNT * size:
            raise FormatMismatchError(
                f"Expected {HEADER_RECORD_COUNT * size} header bytes, got {len(data)}"
            )

        record1 = data[:size]
        record2 = data[size : 2 * size]
        byteorder = detect_byteorder(record1)

        titles = [
            _decode_text(record1, _TITLES_OFFSET + i * TITLE_LENGTH, TITLE_LENGTH)
            for i in range(TITLE_COUNT)
        ]
        start, stop, step = struct.unpack_from(byteorder + "3d", record1, _SPAN_OFFSET)
        (ncon,) = struct.unpack_from(byteorder + "i", record1, _NCON_OFFSET)
        (au,) = struct.unpack_from(byteorder + "d", record1, _AU_OFFSET)
        (emrat,) = struct.unpack_from(byteorder + "d", record1, _EMRAT_OFFSET)
        raw_pointers = struct.unpack_from(
            byteorder + f"{POINTER_COUNT * 3}i", record1, _POINTERS_OFFSET
        )
        (de_number,) = struct.unpack_from(byteorder + "i", record1, _DE_NUMBER_OFFSET)
        libration = Pointer(
            *struct.unpack_from(byteorder + "3i", record1, _LIBRATION_OFFSET)
        )
        pointers = tuple(
            Pointer(*raw_pointers[i * 3 : i * 3 + 3]) for i in range(POINTER_COUNT)
        )

        name_capacity = OLD_MAX_NAMES + min(
            MAX_NAMES - OLD_MAX_NAMES, (size - _NAMES2_OFFSET) // NAME_LENGTH
        )
        value_capacity = min(MAX_NAMES, size // 8)
        if ncon > min(name_capacity, value_capacity):
            raise FormatMismatchError(
                f"{ncon} constants do not fit in a {size}-byte record"
            )

        names = []
        for i in range(ncon):
            if i < OLD_MAX_NAMES:
                offset = _NAMES_OFFSET + i * NAME_LENGTH
            else:
                offset = _NAMES2_OFFSET + (i - OLD_MAX_NAMES) * NAME_LENGTH
            names.append(_decode_text(record1, offset, NAME_LENGTH).strip())
        values = list(struct.unpack_from(byteorder + f"{ncon}d", record2, 0))

        header = cls(
            titles=titles,
            names=names,
            values=values,
            start=start,
            stop=stop,
            step=step,
            au=au,
            emrat=emrat,
            pointers=pointers,
            libration=libration,
            de_number=de_number,
            byteorder=byteorder,
        )
        header.validate(fmt)
        return header

    def validate(self, fmt: EphemerisFormat) -> None:
        """Check header invariants against the selected format.

        Raises:
            FormatMismatchError: If any invariant does not hold
        """
        if not self.start < self.stop:
            raise FormatMismatchError(
                f"Start date {self.start} is not before stop date {self.stop}"
            )
        if not self.step > 0.0:
            raise FormatMismatchError(f"Invalid record step {self.step}")
        if not self.au > 0.0:
            raise FormatMismatchError(f"Invalid AU value {self.au}")

        # Only nutations and librations may be left out of a file
        for index, pointer in enumerate(self.pointers + (self.libration,)):
            if not pointer.present and index >= NUTATION_POINTER:
                continue
            if pointer.ncf < 2 or pointer.na < 1 or pointer.offset < 1:
                raise FormatMismatchError(f"Invalid coefficient pointer {index}: {pointer}")

        known = KNOWN_KSIZES.get(self.de_number)
        if known is not None and known != fmt.ksize:
            raise FormatMismatchError(
                f"DE{self.de_number} uses {known}-word records, "
                f"but the selected format has {fmt.ksize}"
            )

        implied = self.implied_coefficient_count()
        if implied != fmt.coefficient_count:
            raise FormatMismatchError(
                f"Pointer table implies {implied} coefficients per record, "
                f"but the selected format holds {fmt.coefficient_count}"
            )


def detect_byteorder(record1: bytes) -> str:
    """Determine the byte order of a header record.

    JPL distributes files in both byte orders; the one whose time span and
    constant count decode to plausible values wins.

    Raises:
        FormatMismatchError: If neither byte order is plausible
    """
    for byteorder in ("<", ">"):
        start, stop, step = struct.unpack_from(byteorder + "3d", record1, _SPAN_OFFSET)
        (ncon,) = struct.unpack_from(byteorder + "i", record1, _NCON_OFFSET)
        (de_number,) = struct.unpack_from(byteorder + "i", record1, _DE_NUMBER_OFFSET)
        if (
            0 <= ncon <= MAX_NAMES
            and 0 < de_number < 100000
            and start < stop
            and step > 0.0
        ):
            return byteorder
    raise FormatMismatchError("Header is not a JPL binary ephemeris in either byte order")


def read_de_number(prefix: bytes) -> int:
    """Read the DE number from the fixed leading part of record 1.

    Raises:
        FormatMismatchError: If the prefix is too short or implausible
    """
    if len(prefix) < FIXED_PREFIX_LENGTH:
        raise FormatMismatchError(
            f"File is shorter than the {FIXED_PREFIX_LENGTH}-byte header layout"
        )
    byteorder = detect_byteorder(prefix)
    (de_number,) = struct.unpack_from(byteorder + "i", prefix, _DE_NUMBER_OFFSET)
    return de_number


def _decode_text(data: bytes, offset: int, length: int) -> str:
    return data[offset : offset + length].decode("ascii", errors="replace").rstrip(" \x00")


def select_format(prefix: bytes, fmt: Optional[EphemerisFormat]) -> EphemerisFormat:
    """Pick the record layout for a file, given its leading bytes."""
    if fmt is not None:
        return fmt
    return EphemerisFormat.for_de_number(read_de_number(prefix))
