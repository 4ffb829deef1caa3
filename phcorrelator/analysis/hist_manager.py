"""
# hist_manager.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Histogram booking, filling and saving for correlator calculations.

Every histogram cell is identified by a HistIndex (pt, cf, charge, spin).
For the pt and charge axes the last index of an enabled axis is the
integrated bin; the cf axis has no integrated bin. Histograms are plain
numpy arrays of summed weights and are written to a single .npz archive.
"""
import itertools
import logging
import math
import os
from typing import Dict, List, Optional

import numpy as np

from phcorrelator.analysis.bins import Binning, Bins
from phcorrelator.analysis.types import HistContent, HistIndex, SpinBin

logger = logging.getLogger(__name__)

# histogram name -> binning names of its axes
EEC_HISTS = {
    "eec_stat": ("side",),
    "eec": ("side",),
    "log_eec": ("logside",),
}
EEC_SPIN_HISTS = {
    "eec_vs_phi_coll_b": ("side", "angle"),
    "eec_vs_phi_coll_y": ("side", "angle"),
    "eec_spin_b": ("side",),
    "eec_spin_y": ("side",),
}


def _find_bin(edges: np.ndarray, value: float) -> Optional[int]:
    """Index of the [low, high) bin holding `value`, None when outside."""
    if not edges[0] <= value < edges[-1]:
        return None
    return int(np.searchsorted(edges, value, side="right")) - 1


class HistManager:
    """
    Numpy-backed accumulator for EEC histograms.

    Usage:
        manager = HistManager()
        manager.do_pt_jet_bins(3)
        manager.set_do_eec_hists(True)
        manager.generate_hists()
        manager.fill_eec_hists(HistIndex(0, 0, 0, 0), content)
        manager.save_hists("eec.npz")
    """

    def __init__(self, bins: Optional[Bins] = None):
        self._bins = bins if bins is not None else Bins()
        if "angle" not in self._bins:
            self._bins.add("angle", Binning(36, 0.0, 2.0 * math.pi))

        # histogram families
        self._do_eec_hists = False
        self._do_e3c_hists = False
        self._do_lec_hists = False

        # binning dimensions
        self._do_pt_jet_bins = False
        self._do_cf_jet_bins = False
        self._do_charge_bins = False
        self._do_spin_bins = False
        self._n_pt_jet = 0
        self._n_cf_jet = 0
        self._n_charge = 0

        self._hist_tag = ""
        self._edges: Dict[str, np.ndarray] = {}
        self._hists: Dict[HistIndex, Dict[str, np.ndarray]] = {}

    # ------------------------------ Flags ------------------------------- #

    def get_do_eec_hists(self) -> bool:
        return self._do_eec_hists

    def get_do_e3c_hists(self) -> bool:
        return self._do_e3c_hists

    def get_do_lec_hists(self) -> bool:
        return self._do_lec_hists

    def get_do_pt_jet_bins(self) -> bool:
        return self._do_pt_jet_bins

    def get_do_cf_jet_bins(self) -> bool:
        return self._do_cf_jet_bins

    def get_do_charge_bins(self) -> bool:
        return self._do_charge_bins

    def get_do_spin_bins(self) -> bool:
        return self._do_spin_bins

    def get_hist_tag(self) -> str:
        return self._hist_tag

    # ----------------------------- Setters ------------------------------ #

    def set_do_eec_hists(self, do_eec: bool) -> None:
        self._do_eec_hists = do_eec

    def set_do_e3c_hists(self, do_e3c: bool) -> None:
        self._do_e3c_hists = do_e3c

    def set_do_lec_hists(self, do_lec: bool) -> None:
        self._do_lec_hists = do_lec

    def set_hist_tag(self, tag: str) -> None:
        self._hist_tag = tag

    def do_pt_jet_bins(self, n_bins: int) -> None:
        self._do_pt_jet_bins = True
        self._n_pt_jet = n_bins

    def do_cf_jet_bins(self, n_bins: int) -> None:
        self._do_cf_jet_bins = True
        self._n_cf_jet = n_bins

    def do_charge_bins(self, n_bins: int) -> None:
        self._do_charge_bins = True
        self._n_charge = n_bins

    def do_spin_bins(self, spin: bool) -> None:
        self._do_spin_bins = spin

    # ---------------------------- Accessors ----------------------------- #

    def axis_sizes(self) -> HistIndex:
        """Number of cells along each axis, integrated bins included."""
        return HistIndex(
            self._n_pt_jet + 1 if self._do_pt_jet_bins else 1,
            max(self._n_cf_jet, 1) if self._do_cf_jet_bins else 1,
            self._n_charge + 1 if self._do_charge_bins else 1,
            len(SpinBin) if self._do_spin_bins else 1,
        )

    def get_indices(self) -> List[HistIndex]:
        return list(self._hists)

    def get_hist(self, index: HistIndex, name: str) -> np.ndarray:
        return self._hists[HistIndex(*index)][name]

    def get_edges(self, binning: str) -> np.ndarray:
        return self._edges[binning]

    @property
    def n_cells(self) -> int:
        return len(self._hists)

    # ---------------------------- Lifecycle ----------------------------- #

    def _book_hists(self) -> Dict[str, np.ndarray]:
        definitions = dict(EEC_HISTS)
        if self._do_spin_bins:
            definitions.update(EEC_SPIN_HISTS)
        return {
            name: np.zeros(tuple(len(self._edges[axis]) - 1 for axis in axes))
            for name, axes in definitions.items()
        }

    def generate_hists(self) -> None:
        """Book one set of histograms per cell of the enabled axes."""
        self._edges = {
            name: np.asarray(self._bins.get(name).get_bins(), dtype=float)
            for name in self._bins.names()
        }

        self._hists = {}
        if not self._do_eec_hists:
            logger.info("EEC histograms disabled, no cells generated")
            return

        sizes = self.axis_sizes()
        for cell in itertools.product(*(range(size) for size in sizes)):
            self._hists[HistIndex(*cell)] = self._book_hists()
        logger.info(
            "Generated %d histogram cells (pt=%d, cf=%d, charge=%d, spin=%d)",
            len(self._hists), *sizes
        )

    def fill_eec_hists(self, index: HistIndex, content: HistContent) -> None:
        """Add one pair to the histograms of a cell."""
        key = HistIndex(*index)
        if key not in self._hists:
            raise KeyError(f"No histograms generated for index {tuple(key)}")
        hists = self._hists[key]

        side = self._edges["side"]
        ibin = _find_bin(side, content.dist)
        if ibin is not None:
            hists["eec_stat"][ibin] += 1.0
            hists["eec"][ibin] += content.weight

        if content.dist > 0.0:
            ilog = _find_bin(self._edges["logside"], math.log10(content.dist))
            if ilog is not None:
                hists["log_eec"][ilog] += content.weight

        if not self._do_spin_bins or ibin is None:
            return

        hists["eec_spin_b"][ibin] += content.weight * content.spin_b
        hists["eec_spin_y"][ibin] += content.weight * content.spin_y

        angle = self._edges["angle"]
        for name, phi in (("eec_vs_phi_coll_b", content.phi_coll_b),
                          ("eec_vs_phi_coll_y", content.phi_coll_y)):
            iphi = _find_bin(angle, phi)
            if iphi is not None:
                hists[name][ibin, iphi] += content.weight

    def save_hists(self, path: str) -> str:
        """Write every histogram and the bin edges to one .npz archive."""
        arrays = {f"edges_{name}": edges for name, edges in self._edges.items()}
        for index, hists in self._hists.items():
            cell = f"pt{index.pt}_cf{index.cf}_ch{index.chrg}_sp{index.spin}"
            for name, values in hists.items():
                arrays[f"{self._hist_tag}{name}_{cell}"] = values

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        save_path = path if path.endswith(".npz") else path + ".npz"
        np.savez_compressed(save_path, **arrays)
        logger.info("Saved %d histogram cells to %s", len(self._hists), save_path)
        return save_path
