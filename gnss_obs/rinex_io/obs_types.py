"""
Observation-type catalogs and the meaning of observation codes.

RINEX 2 declares one list of two-character codes shared by every system
("# / TYPES OF OBSERV"); RINEX 3 declares a list of three-character codes
per system ("SYS / # / OBS TYPES").  Both are kept in an
`ObservationTypeCatalog`, with RINEX 2 using the system key `" "`.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

# RINEX 2 observables apply to every system; they are stored under this key
UNIVERSAL_SYSTEM = " "

OBSERVATION_LETTERS = {
    "C": "pseudorange",
    "P": "pseudorange",  # RINEX 2 P-code pseudorange
    "L": "carrier",
    "D": "doppler",
    "S": "cnr",
}

SYSTEM_LETTER_TO_ID_MAP = {
    "G": "GPS",
    "R": "GLO",
    "E": "GAL",
    "J": "QZS",
    "C": "BDS",
    "I": "IRS",
    "S": "SBS",
}

# band number -> (band name, carrier frequency in Hz); GLONASS FDMA bands
# take the satellite's frequency slot number k
Frequency = Union[float, Callable[[int], float]]

BAND_INFO: Dict[str, Dict[str, Tuple[str, Frequency]]] = {
    "GPS": {
        "1": ("L1", 1575.42e6),
        "2": ("L2", 1227.60e6),
        "5": ("L5", 1176.45e6),
    },
    "GLO": {
        "1": ("G1", lambda k: 1602e6 + k * 562.5e3),
        "2": ("G2", lambda k: 1246e6 + k * 437.5e3),
        "3": ("G3", 1202.025e6),
        "4": ("G1a", 1600.995e6),
        "6": ("G2a", 1248.06e6),
    },
    "GAL": {
        "1": ("E1", 1575.42e6),
        "5": ("E5a", 1176.45e6),
        "6": ("E6", 1278.75e6),
        "7": ("E5b", 1207.140e6),
        "8": ("E5", 1191.795e6),
    },
    "BDS": {
        # band 1 is the RINEX 3.02 spelling of B1
        "1": ("B1", 1561.098e6),
        "2": ("B1", 1561.098e6),
        "5": ("B2a", 1176.45e6),
        "6": ("B3", 1268.52e6),
        "7": ("B2b", 1207.14e6),
        "8": ("B2", 1191.795e6),
    },
    "QZS": {
        "1": ("L1", 1575.42e6),
        "2": ("L2", 1227.60e6),
        "5": ("L5", 1176.45e6),
        "6": ("LEX", 1278.75e6),
    },
    "SBS": {
        "1": ("L1", 1575.42e6),
        "5": ("L5", 1176.45e6),
    },
    "IRS": {
        "5": ("L5", 1176.45e6),
        "9": ("S", 2492.028e6),
    },
}


@dataclass(frozen=True)
class ObsCodeInfo:
    code: str
    system_letter: str
    # "pseudorange", "carrier", "doppler", "cnr", or None for unknown letters
    category: Optional[str]
    band: str
    band_name: Optional[str]
    frequency: Optional[float]
    # RINEX 3 tracking-mode attribute, e.g. "C" in "L1C"; None for RINEX 2 codes
    attribute: Optional[str]


def describe_obs_code(
    code: str, system_letter: str = "G", glonass_slot: Optional[int] = None
) -> ObsCodeInfo:
    """
    Describe what an observation code measures.

    Args:
        code: two-character (RINEX 2) or three-character (RINEX 3) code
        system_letter: system of the satellite the value belongs to; blank
            means GPS, as in RINEX 2 PRN lists
        glonass_slot: frequency slot number, needed for GLONASS G1/G2
            frequencies

    Returns:
        ObsCodeInfo for the code
    """
    code = code.strip()
    if system_letter == UNIVERSAL_SYSTEM:
        system_letter = "G"
    category = OBSERVATION_LETTERS.get(code[:1])
    band = code[1:2]
    attribute = code[2:3] or None
    band_name: Optional[str] = None
    frequency: Optional[float] = None
    system_id = SYSTEM_LETTER_TO_ID_MAP.get(system_letter)
    if system_id is not None and band in BAND_INFO[system_id]:
        band_name, freq = BAND_INFO[system_id][band]
        if callable(freq):
            frequency = freq(glonass_slot) if glonass_slot is not None else None
        else:
            frequency = freq
    return ObsCodeInfo(
        code=code,
        system_letter=system_letter,
        category=category,
        band=band,
        band_name=band_name,
        frequency=frequency,
        attribute=attribute,
    )


class ObservationTypeCatalog(Mapping[str, Tuple[str, ...]]):
    """
    System letter -> ordered observation codes, built from header lines.

    An entry is declared with its length and then filled by one or more
    header lines.  Once an entry holds its declared number of codes it no
    longer changes.
    """

    def __init__(self) -> None:
        self._codes: Dict[str, List[str]] = {}
        self._declared: Dict[str, int] = {}

    def declare(self, system_letter: str, count: int) -> bool:
        """
        Start an entry of `count` codes.

        Returns:
            False (and leaves the catalog unchanged) if the system already
            has a complete entry
        """
        if system_letter in self._declared and self.is_complete(system_letter):
            logging.warning(
                f"Ignoring redeclaration of observation types for system {system_letter!r}"
            )
            return False
        self._codes[system_letter] = []
        self._declared[system_letter] = count
        return True

    def extend(self, system_letter: str, codes: List[str]) -> int:
        """
        Append codes to a declared entry, stopping at its declared length.

        Returns:
            number of codes appended
        """
        entry = self._codes[system_letter]
        n = 0
        for code in codes:
            if len(entry) >= self._declared[system_letter]:
                break
            entry.append(code)
            n += 1
        return n

    def is_declared(self, system_letter: str) -> bool:
        return system_letter in self._declared

    def is_complete(self, system_letter: str) -> bool:
        return len(self._codes[system_letter]) >= self._declared[system_letter]

    def declared_length(self, system_letter: str) -> int:
        return self._declared[system_letter]

    def length(self, system_letter: str) -> int:
        return len(self._codes[system_letter])

    def codes_for(self, prn: str) -> Tuple[str, ...]:
        """Codes for a satellite: its own system's entry, else the RINEX 2 list."""
        if prn[:1] in self._codes:
            return tuple(self._codes[prn[:1]])
        return tuple(self._codes[UNIVERSAL_SYSTEM])

    def describe(self, prn: str, index: int, glonass_slot: Optional[int] = None) -> ObsCodeInfo:
        return describe_obs_code(self.codes_for(prn)[index], prn[:1], glonass_slot)

    def __getitem__(self, system_letter: str) -> Tuple[str, ...]:
        return tuple(self._codes[system_letter])

    def __iter__(self) -> Iterator[str]:
        return iter(self._codes)

    def __len__(self) -> int:
        return len(self._codes)

    def __repr__(self) -> str:
        return f"ObservationTypeCatalog({self._codes!r})"
