from enum import IntEnum


class Body(IntEnum):
    """
    Target and center numbering used by JPL ephemerides.

    NUTATIONS and LIBRATIONS are not bodies but are requested the same way.
    """

    MERCURY = 1
    VENUS = 2
    EARTH = 3
    MARS = 4
    JUPITER = 5
    SATURN = 6
    URANUS = 7
    NEPTUNE = 8
    PLUTO = 9
    MOON = 10
    SUN = 11
    SOLAR_SYSTEM_BARYCENTER = 12
    EARTH_MOON_BARYCENTER = 13
    NUTATIONS = 14
    LIBRATIONS = 15

    @classmethod
    def from_name(cls, name: str) -> "Body":
        """Look up a body by case-insensitive name or number.

        Args:
            name: A name such as "mars", "earth_moon_barycenter", "EMB" or "4"

        Returns:
            The matching Body

        Raises:
            ValueError: If the name is not recognized
        """
        key = name.strip().upper().replace("-", "_").replace(" ", "_")
        if key.isdigit():
            return cls(int(key))
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown body: {name}")


_ALIASES = {
    "SSB": Body.SOLAR_SYSTEM_BARYCENTER,
    "EMB": Body.EARTH_MOON_BARYCENTER,
}

# Coefficient slots in each record, numbered from zero. Slot 2 holds the
# Earth-Moon barycenter and slot 9 the geocentric Moon.
EMB_SLOT = 2
MOON_SLOT = 9
SUN_SLOT = 10
NUTATION_SLOT = 11
PLANET_SLOTS = 9
BODY_SLOTS = 10
