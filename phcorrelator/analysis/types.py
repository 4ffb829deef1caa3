"""
# types.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Plain data types shared by the correlator tools, bins and calculator."""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple

import numpy as np


class Axis(Enum):
    """Spacing of generated bin edges."""
    NORM = "norm"
    LOG = "log"


class Weight(Enum):
    """Per-particle quantity used in the EEC weight."""
    E = "e"
    ET = "et"
    PT = "pt"


class Pattern(IntEnum):
    """Beam polarization patterns.

    The first four are pp patterns (blue/yellow up/down), the last two
    are pAu patterns where only the blue beam is polarized.
    """
    PPBUYU = 0
    PPBDYU = 1
    PPBUYD = 2
    PPBDYD = 3
    PABU = 4
    PABD = 5


class SpinBin(IntEnum):
    """Spin sub-index of a histogram cell. INT is spin integrated."""
    INT = 0
    BU = 1
    BD = 2
    YU = 3
    YD = 4
    BUYU = 5
    BUYD = 6
    BDYU = 7
    BDYD = 8


@dataclass(frozen=True)
class Jet:
    pt: float
    eta: float
    phi: float
    cf: float = 0.0
    charge: float = 0.0
    pattern: int = -1


@dataclass(frozen=True)
class Cst:
    z: float
    jt: float
    eta: float
    phi: float


class HistIndex(NamedTuple):
    """Identifies one histogram cell: (pt bin, cf bin, charge bin, spin bin)."""
    pt: int = 0
    cf: int = 0
    chrg: int = 0
    spin: int = SpinBin.INT


@dataclass
class HistContent:
    """Quantities handed to the histogram manager for one pair."""
    weight: float
    dist: float
    phi_coll_b: float = 0.0
    phi_coll_y: float = 0.0
    phi_boer_b: float = 0.0
    phi_boer_y: float = 0.0
    spin_b: float = 0.0
    spin_y: float = 0.0
    pattern: int = -1


@dataclass(frozen=True)
class KinematicVector:
    """Massless 4-vector: 3-momentum plus an energy equal to its magnitude."""
    px: float
    py: float
    pz: float
    e: float

    @classmethod
    def from_vect(cls, vect: np.ndarray) -> "KinematicVector":
        px, py, pz = (float(c) for c in vect)
        return cls(px, py, pz, float(np.linalg.norm(vect)))

    @property
    def vect(self) -> np.ndarray:
        return np.array([self.px, self.py, self.pz])

    @property
    def mag(self) -> float:
        return float(np.sqrt(self.px**2 + self.py**2 + self.pz**2))

    @property
    def pt(self) -> float:
        return float(np.hypot(self.px, self.py))

    @property
    def et(self) -> float:
        """Transverse energy, E * pT / |p|."""
        mag = self.mag
        if mag == 0.0:
            return 0.0
        return self.e * self.pt / mag
