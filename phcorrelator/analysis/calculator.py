"""
# calculator.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Driver for n-point energy-energy correlator calculations.

The Calculator turns one jet plus a pair of its constituents into an EEC
weight, the pair separation (RL) and the spin-dependent dihadron angles,
works out which histogram cells the pair belongs to and hands the result
to a histogram manager.
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from phcorrelator.analysis import ana_tools
from phcorrelator.analysis.hist_manager import HistManager
from phcorrelator.analysis.types import (
    Cst,
    HistContent,
    HistIndex,
    Jet,
    KinematicVector,
    Pattern,
    SpinBin,
    Weight,
)

logger = logging.getLogger(__name__)

# spin sub-indices filled in addition to the spin-integrated one
SPIN_INDICES_BY_PATTERN = {
    Pattern.PPBUYU: (SpinBin.BU, SpinBin.YU, SpinBin.BUYU),
    Pattern.PPBDYU: (SpinBin.BD, SpinBin.YU, SpinBin.BDYU),
    Pattern.PPBUYD: (SpinBin.BU, SpinBin.YD, SpinBin.BUYD),
    Pattern.PPBDYD: (SpinBin.BD, SpinBin.YD, SpinBin.BDYD),
    Pattern.PABU: (SpinBin.BU,),
    Pattern.PABD: (SpinBin.BD,),
}


class State(Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    INITIALIZED = "initialized"
    FINALIZED = "finalized"


def _find_interval(value: float, intervals: Sequence[Tuple[float, float]]) -> int:
    """Index of the last [low, high) interval holding value, 0 if none."""
    found = 0
    for ibin, (low, high) in enumerate(intervals):
        if low <= value < high:
            found = ibin
    return found


class Calculator:
    """
    EEC calculator.

    Configure bins and weights, call `init`, feed pairs through `calc_eec`
    and finish with `end`:

        calc = Calculator(Weight.PT, 1.0)
        calc.set_pt_jet_bins([(5.0, 10.0), (10.0, 20.0)])
        calc.set_do_spin_bins(True)
        calc.init(do_eec=True)
        for jet, csts in pairs:
            calc.calc_eec(jet, csts)
        calc.end("eec.npz")

    The histogram manager is created here unless one is passed in.
    """

    def __init__(self, weight: Weight = Weight.PT, power: float = 1.0,
                 manager: Optional[HistManager] = None):
        self._weight_type = Weight(weight)
        self._weight_power = power
        self._ptjet_bins: List[Tuple[float, float]] = []
        self._cfjet_bins: List[Tuple[float, float]] = []
        self._chrg_bins: List[Tuple[float, float]] = []
        self._manager = manager if manager is not None else HistManager()
        self._state = State.UNCONFIGURED

    # ----------------------------- Getters ------------------------------ #

    def get_manager(self) -> HistManager:
        return self._manager

    @property
    def state(self) -> State:
        return self._state

    @property
    def weight_type(self) -> Weight:
        return self._weight_type

    @property
    def weight_power(self) -> float:
        return self._weight_power

    # ----------------------------- Setters ------------------------------ #

    def _configure(self) -> None:
        if self._state in (State.INITIALIZED, State.FINALIZED):
            raise RuntimeError(f"Calculator cannot be reconfigured once {self._state.value}")
        self._state = State.CONFIGURED

    def set_weight_power(self, power: float) -> None:
        self._configure()
        self._weight_power = power

    def set_weight_type(self, weight: Weight) -> None:
        self._configure()
        self._weight_type = Weight(weight)

    def set_hist_tag(self, tag: str) -> None:
        self._configure()
        self._manager.set_hist_tag(tag)

    def set_pt_jet_bins(self, bins: Sequence[Tuple[float, float]]) -> None:
        self._configure()
        self._ptjet_bins = [(float(lo), float(hi)) for lo, hi in bins]
        self._manager.do_pt_jet_bins(len(self._ptjet_bins))

    def set_cf_jet_bins(self, bins: Sequence[Tuple[float, float]]) -> None:
        self._configure()
        self._cfjet_bins = [(float(lo), float(hi)) for lo, hi in bins]
        self._manager.do_cf_jet_bins(len(self._cfjet_bins))

    def set_charge_bins(self, bins: Sequence[Tuple[float, float]]) -> None:
        self._configure()
        self._chrg_bins = [(float(lo), float(hi)) for lo, hi in bins]
        self._manager.do_charge_bins(len(self._chrg_bins))

    def set_do_spin_bins(self, spin: bool) -> None:
        self._configure()
        self._manager.do_spin_bins(spin)

    # --------------------------- Calculations --------------------------- #

    def init(self, do_eec: bool, do_e3c: bool = False, do_lec: bool = False) -> None:
        """Switch histogram families on/off and generate the histograms."""
        self._configure()
        self._manager.set_do_eec_hists(do_eec)
        self._manager.set_do_e3c_hists(do_e3c)
        self._manager.set_do_lec_hists(do_lec)
        self._manager.generate_hists()
        self._state = State.INITIALIZED
        logger.info(
            "Calculator initialized: weight=%s, power=%g, eec=%s, e3c=%s, lec=%s",
            self._weight_type.value, self._weight_power, do_eec, do_e3c, do_lec
        )

    def get_cst_weight(self, cst: KinematicVector, jet: KinematicVector) -> float:
        """Weight of a constituent relative to its jet."""
        if self._weight_type == Weight.E:
            numer, denom = cst.e, jet.e
        elif self._weight_type == Weight.ET:
            numer, denom = cst.et, jet.et
        else:
            numer, denom = cst.pt, jet.pt
        return numer ** self._weight_power / denom ** self._weight_power

    def get_hist_indices(self, jet: Jet) -> List[HistIndex]:
        """
        Indices of the histograms a jet contributes to.

        Four indices per spin sub-index, always in the order
            integrated pt + integrated charge
            pt bin + integrated charge
            integrated pt + charge bin
            pt bin + charge bin
        (all at the jet's cf bin). The spin-integrated block comes first,
        then the blue, yellow and blue-and-yellow blocks when spin binning
        is on, giving 4 (unknown pattern), 8 (pAu) or 16 (pp) entries.
        """
        pt_bin = cf_bin = chrg_bin = 0
        if self._manager.get_do_pt_jet_bins():
            pt_bin = _find_interval(jet.pt, self._ptjet_bins)
        if self._manager.get_do_cf_jet_bins():
            cf_bin = _find_interval(jet.cf, self._cfjet_bins)
        if self._manager.get_do_charge_bins():
            chrg_bin = _find_interval(jet.charge, self._chrg_bins)

        spin_indices = [SpinBin.INT]
        if self._manager.get_do_spin_bins():
            spin_indices.extend(SPIN_INDICES_BY_PATTERN.get(jet.pattern, ()))

        pt_int = len(self._ptjet_bins)
        chrg_int = len(self._chrg_bins)
        indices = []
        for spin in spin_indices:
            indices.append(HistIndex(pt_int, cf_bin, chrg_int, spin))
            indices.append(HistIndex(pt_bin, cf_bin, chrg_int, spin))
            indices.append(HistIndex(pt_int, cf_bin, chrg_bin, spin))
            indices.append(HistIndex(pt_bin, cf_bin, chrg_bin, spin))
        return indices

    def get_dihadron_angles(self, cst_a: KinematicVector, cst_b: KinematicVector,
                            pattern: int) -> Tuple[float, float]:
        """
        Blue and yellow spin angles relative to the dihadron plane.

        Each beam's spin azimuth (around that beam, from the pair momentum)
        minus the relative-momentum azimuth (around the pair momentum, from
        the yellow beam), in [0, 2pi).
        """
        blue_beam, yellow_beam = ana_tools.get_beams()
        blue_spin, yellow_spin = ana_tools.get_spins(pattern)

        pc = cst_a.vect + cst_b.vect
        pc_mag = np.linalg.norm(pc)
        pc_unit = pc / pc_mag if pc_mag > 0.0 else pc
        rc = 0.5 * (cst_a.vect - cst_b.vect)

        pb_unit = blue_beam / np.linalg.norm(blue_beam)
        pa_unit = yellow_beam / np.linalg.norm(yellow_beam)

        theta_sb = ana_tools.get_plane_angle(pb_unit, pc, blue_spin)
        theta_sa = ana_tools.get_plane_angle(pa_unit, pc, yellow_spin)
        theta_rc = ana_tools.get_plane_angle(pc_unit, yellow_beam, rc)

        return (
            ana_tools.wrap_full_angle(theta_sb - theta_rc),
            ana_tools.wrap_full_angle(theta_sa - theta_rc),
        )

    def calc_eec(self, jet: Jet, csts: Tuple[Cst, Cst], evt_weight: float = 1.0) -> HistContent:
        """
        Run the EEC calculation for one constituent pair.

        `evt_weight` allows weighting by ckin, spin, etc. Returns the content
        handed to the histogram manager.
        """
        if self._state != State.INITIALIZED:
            raise RuntimeError(f"Calculator must be initialized before calculating (state={self._state.value})")

        vec_jet = ana_tools.get_jet_vector(jet, norm=False)
        vec_cst_a = ana_tools.get_cst_vector(csts[0], jet.pt, norm=False)
        vec_cst_b = ana_tools.get_cst_vector(csts[1], jet.pt, norm=False)

        weight_a = self.get_cst_weight(vec_cst_a, vec_jet)
        weight_b = self.get_cst_weight(vec_cst_b, vec_jet)
        dist = ana_tools.get_cst_dist(csts)
        weight = weight_a * weight_b * evt_weight

        content = HistContent(weight, dist)
        if self._manager.get_do_spin_bins():
            blue_spin, yellow_spin = ana_tools.get_spins(jet.pattern)
            content.phi_coll_b, content.phi_coll_y = self.get_dihadron_angles(
                vec_cst_a, vec_cst_b, jet.pattern
            )
            content.spin_b = float(blue_spin[1])
            content.spin_y = float(yellow_spin[1])
            content.pattern = jet.pattern

        if self._manager.get_do_eec_hists():
            for index in self.get_hist_indices(jet):
                self._manager.fill_eec_hists(index, content)
        return content

    def calc_e3c(self, jet: Jet, csts: Tuple[Cst, Cst, Cst], evt_weight: float = 1.0) -> HistContent:
        raise NotImplementedError("Three-point correlators are not implemented yet")

    def end(self, output: str) -> str:
        """Save histograms and finish the calculation."""
        if self._state != State.INITIALIZED:
            raise RuntimeError(f"Calculator must be initialized before ending (state={self._state.value})")
        path = self._manager.save_hists(output)
        self._state = State.FINALIZED
        return path
