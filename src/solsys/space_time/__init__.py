"""Time handling for ephemeris lookups."""

from .julian import TwoPartDate, as_two_part_date, gregorian_to_jdn, split

__all__ = ["TwoPartDate", "as_two_part_date", "gregorian_to_jdn", "split"]
