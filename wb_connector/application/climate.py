"""
Codes and record types of the World Bank Climate Data API.

The code registries are immutable maps built once at import time. Lookups
that miss raise UnknownCodeError instead of silently defaulting.
"""

import dataclasses
import enum
import functools
import types
from typing import Dict, List, Mapping, Sequence

from .exceptions import UnknownCodeError


class Variable(enum.Enum):
    """Variables captured by the climate models."""

    TEMPERATURE = "tas"
    PRECIPITATION = "pr"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> "Variable":
        return _lookup(_VARIABLES, "Variable", code)


class Scenario(enum.Enum):
    """
    Emissions scenarios (SRES) used by the climate models.

    C20C3M is the "20th century climate in coupled models" control run, which
    is what the API reports when a record carries no scenario.
    """

    A2 = "a2"
    B1 = "b1"
    C20C3M = "20c3m"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> "Scenario":
        return _lookup(_SCENARIOS, "Scenario", code)


class Gcm(enum.Enum):
    """General Circulation Models served by the climate API."""

    BCM_2_0 = ("bccr_bcm2_0", "BCM 2.0")
    CSIRO_MARK_3_5 = ("csiro_mk3_5", "CSIRO Mark 3.5")
    ECHAM_4_6 = ("ingv_echam4", "ECHAM 4.6")
    CGCM_3_1_T47 = ("cccma_cgcm3_1", "CGCM 3.1 (T47)")
    CNRM_CM3 = ("cnrm_cm3", "CNRM CM3")
    GFDL_CM2_0 = ("gfdl_cm2_0", "GFDL CM2.0")
    GFDL_CM2_1 = ("gfdl_cm2_1", "GFDL CM2.1")
    IPSL_CM4 = ("ipsl_cm4", "IPSL-CM4")
    MIROC_3_2_MEDRES = ("miroc3_2_medres", "MIROC 3.2 (medres)")
    ECHO_G = ("miub_echo_g", "ECHO-G")
    ECHAM5_MPI_OM = ("mpi_echam5", "ECHAM5/MPI-OM")
    MRI_CGCM2_3_2 = ("mri_cgcm2_3_2a", "MRI-CGCM2.3.2")
    INMCM3_0 = ("inmcm3_0", "INMCM3.0")
    UKMO_HADCM3 = ("ukmo_hadcm3", "UKMO HadCM3")
    UKMO_HADGEM1 = ("ukmo_hadgem1", "UKMO HadGEM1")

    def __init__(self, code: str, label: str):
        self.code = code
        self.label = label

    @classmethod
    def from_code(cls, code: str) -> "Gcm":
        return _lookup(_GCMS, "GCM", code)


class Month(enum.IntEnum):
    """Column keys of the monthly climate table."""

    JAN = 1
    FEB = 2
    MAR = 3
    APR = 4
    MAY = 5
    JUN = 6
    JUL = 7
    AUG = 8
    SEP = 9
    OCT = 10
    NOV = 11
    DEC = 12


def _lookup(registry: Mapping, kind: str, code):
    try:
        return registry[code]
    except (KeyError, TypeError):
        raise UnknownCodeError(kind, code) from None


_VARIABLES: Mapping[str, Variable] = types.MappingProxyType(
    {member.code: member for member in Variable}
)
_SCENARIOS: Mapping[str, Scenario] = types.MappingProxyType(
    {member.code: member for member in Scenario}
)
_GCMS: Mapping[str, Gcm] = types.MappingProxyType(
    {member.code: member for member in Gcm}
)


@functools.total_ordering
@dataclasses.dataclass(frozen=True)
class ClimateKey:
    """Composite row key of the climate table."""

    start: int
    end: int
    gcm: Gcm
    scenario: Scenario
    variable: Variable

    def _sort_key(self):
        return (
            self.start,
            self.end,
            self.gcm.code,
            self.scenario.code,
            self.variable.code,
        )

    def __lt__(self, other):
        if not isinstance(other, ClimateKey):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __str__(self) -> str:
        return (
            f"[{self.start}-{self.end}, {self.gcm.code}, "
            f"{self.scenario.code}, {self.variable.code}]"
        )


@dataclasses.dataclass(frozen=True)
class MonthlyRecord:
    """Twelve monthly averages (January first) for one climate key."""

    key: ClimateKey
    values: Sequence[float]

    def __post_init__(self):
        if len(self.values) != len(Month):
            raise ValueError(
                f"Monthly values should contain {len(Month)} entries, "
                f"got {len(self.values)}"
            )
        object.__setattr__(self, "values", tuple(self.values))

    def by_month(self) -> Dict[Month, float]:
        return dict(zip(Month, self.values))

    def to_payload(self) -> Dict:
        """Encodes the record in the shape the climate API serves it."""
        return {
            "scenario": self.key.scenario.code,
            "gcm": self.key.gcm.code,
            "variable": self.key.variable.code,
            "fromYear": self.key.start,
            "toYear": self.key.end,
            "monthVals": list(self.values),
        }


# Year ranges published by the climate API for monthly averages.
YEAR_RANGES: List[tuple] = [
    (1920, 1939),
    (1940, 1959),
    (1960, 1979),
    (1980, 1999),
    (2020, 2039),
    (2040, 2059),
    (2060, 2079),
    (2080, 2099),
]
