"""
# bins.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Bin definitions for histograms filled during correlator calculations."""
from typing import Dict, List, Sequence

from phcorrelator.analysis.ana_tools import get_bin_edges
from phcorrelator.analysis.types import Axis


class Binning:
    """
    Edges of one variable's histogram axis.

    Built either from (num, start, stop, axis) or, through `from_edges`,
    from an explicit increasing sequence of edges.
    """

    def __init__(self, num: int, start: float, stop: float, axis: Axis = Axis.NORM):
        self.num = num
        self.start = start
        self.stop = stop
        self.edges = get_bin_edges(num, start, stop, axis)

    @classmethod
    def from_edges(cls, edges: Sequence[float]) -> "Binning":
        """Wrap explicit edges. The caller guarantees they are increasing."""
        binning = cls.__new__(cls)
        binning.edges = list(edges)
        binning.num = len(binning.edges) - 1
        binning.start = binning.edges[0]
        binning.stop = binning.edges[-1]
        return binning

    def get_bins(self) -> List[float]:
        return list(self.edges)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Binning):
            return NotImplemented
        return self.edges == other.edges

    def __repr__(self) -> str:
        return f"Binning(num={self.num}, start={self.start}, stop={self.stop})"


class Bins:
    """
    Named registry of binnings (RL, energy, ...).

    `add` only accepts new names; `set` and `get` only accept existing ones.
    """

    def __init__(self):
        self._bins: Dict[str, Binning] = {
            "energy": Binning(202, -1.0, 100.0),
            "side": Binning(75, 1e-5, 1.0, Axis.LOG),
            "logside": Binning(75, -5.0, 0.0),
        }

    def add(self, name: str, binning: Binning) -> None:
        if name in self._bins:
            raise ValueError(f"Binning '{name}' already exists")
        self._bins[name] = binning

    def set(self, name: str, binning: Binning) -> None:
        if name not in self._bins:
            raise KeyError(f"No binning named '{name}'")
        self._bins[name] = binning

    def get(self, name: str) -> Binning:
        if name not in self._bins:
            raise KeyError(f"No binning named '{name}'")
        return self._bins[name]

    def names(self) -> List[str]:
        """
        Registered names. The defaults are "energy", "side" (RL) and
        "logside" (log10 RL); the latter is spelled without a hyphen.
        """
        return list(self._bins)

    def __contains__(self, name: str) -> bool:
        return name in self._bins
