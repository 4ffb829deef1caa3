#!/usr/bin/env python3
"""
# test_calculator.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Correlator Calculator Test Suite

Tests cover:
- Constituent weights for every weight type and power
- Histogram index enumeration (pt/cf/charge bins, spin patterns)
- Dihadron spin angles
- End-to-end EEC calculation and histogram filling
- Calculator state handling
"""

# Standard library imports
import math
import os
import shutil
import sys
import tempfile
from pathlib import Path

# Third-party imports
import numpy as np

# Path setup
SCRIPT_PATH = Path(__file__).resolve()
ANALYSIS_DIR = SCRIPT_PATH.parent                             # .../phcorrelator/analysis
PACKAGE_DIR = ANALYSIS_DIR.parent                             # .../phcorrelator
REPO_ROOT = PACKAGE_DIR.parent                                # .../repository root

# Add repository root to path for local imports
sys.path.insert(0, str(REPO_ROOT))

from phcorrelator import config
from phcorrelator.analysis.calculator import Calculator, State
from phcorrelator.analysis.hist_manager import HistManager
from phcorrelator.analysis.types import Cst, HistIndex, Jet, Pattern, SpinBin, Weight


class RecordingManager(HistManager):
    """HistManager that remembers every fill."""

    def __init__(self):
        super().__init__()
        self.fills = []

    def fill_eec_hists(self, index, content):
        self.fills.append((index, content))
        super().fill_eec_hists(index, content)


def _make_calculator(spin=True, weight=Weight.PT, power=1.0):
    manager = RecordingManager()
    calc = Calculator(weight, power, manager=manager)
    calc.set_pt_jet_bins([(0.0, 20.0)])
    calc.set_charge_bins([(0.0, 2.0)])
    calc.set_do_spin_bins(spin)
    calc.init(do_eec=True)
    return calc, manager


# ====================================================================== #
# ========================== Weight Tests ============================== #
# ====================================================================== #

def test_cst_weights():
    """Test constituent weights for E, ET and pT."""
    print(">> Testing constituent weights...\n")

    jet = Jet(pt=10.0, eta=0.0, phi=0.0)
    pair = (Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0), Cst(z=0.2, jt=0.0, eta=0.0, phi=0.0))

    for weight in Weight:
        calc, _ = _make_calculator(spin=False, weight=weight)
        content = calc.calc_eec(jet, pair)
        assert math.isclose(content.weight, 0.5 * 0.2, rel_tol=1e-9), weight
    print("[✓] Test 1 passed: central pair weight = 0.1 for E, ET and pT")

    calc, _ = _make_calculator(spin=False, power=2.0)
    content = calc.calc_eec(jet, pair)
    assert math.isclose(content.weight, 0.25 * 0.04, rel_tol=1e-9)
    print("[✓] Test 2 passed: power 2")

    calc, _ = _make_calculator(spin=False)
    content = calc.calc_eec(jet, pair, evt_weight=3.0)
    assert math.isclose(content.weight, 0.3, rel_tol=1e-9)
    print("[✓] Test 3 passed: event weight multiplies")

    # Forward jet: its energy includes pz, its pT does not
    fwd_jet = Jet(pt=10.0, eta=1.0, phi=0.0)
    fwd_pair = (Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0), Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0))
    calc_pt, _ = _make_calculator(spin=False, weight=Weight.PT)
    calc_e, _ = _make_calculator(spin=False, weight=Weight.E)
    w_pt = calc_pt.calc_eec(fwd_jet, fwd_pair).weight
    w_e = calc_e.calc_eec(fwd_jet, fwd_pair).weight
    assert not math.isclose(w_pt, w_e)
    print(f"[✓] Test 4 passed: forward pair pT weight {w_pt:.4f} differs from E weight {w_e:.4f}")

    calc = Calculator()
    assert calc.weight_type == Weight.PT and calc.weight_power == 1.0
    calc.set_weight_type("e")
    calc.set_weight_power(0.5)
    assert calc.weight_type == Weight.E and calc.weight_power == 0.5
    print("[✓] Test 5 passed: defaults and setters")

    print("\nAll weight tests passed! [✓]\n")


# ====================================================================== #
# ======================= Index Enumeration Tests ====================== #
# ====================================================================== #

def test_hist_indices_order():
    """Test the four pt/charge combinations of one spin block."""
    print(">> Testing histogram index order...\n")

    calc = Calculator()
    calc.set_pt_jet_bins([(0.0, 5.0), (5.0, 10.0), (10.0, 20.0)])
    calc.set_cf_jet_bins([(0.0, 0.5), (0.5, 1.0)])
    calc.set_charge_bins([(-1.0, 0.0), (0.0, 1.0)])
    calc.init(do_eec=True)

    jet = Jet(pt=7.0, eta=0.0, phi=0.0, cf=0.75, charge=-0.5, pattern=Pattern.PPBUYU)
    indices = calc.get_hist_indices(jet)
    assert indices == [
        HistIndex(3, 1, 2, SpinBin.INT),
        HistIndex(1, 1, 2, SpinBin.INT),
        HistIndex(3, 1, 0, SpinBin.INT),
        HistIndex(1, 1, 0, SpinBin.INT),
    ]
    print(f"[✓] Test 1 passed: indices = {[tuple(i) for i in indices]}")

    # Unmatched values fall back to bin 0
    jet = Jet(pt=50.0, eta=0.0, phi=0.0, cf=2.0, charge=9.0)
    indices = calc.get_hist_indices(jet)
    assert indices[3] == HistIndex(0, 0, 0, SpinBin.INT)
    print("[✓] Test 2 passed: out-of-range jet keeps bin 0")

    # Intervals are half open
    jet = Jet(pt=5.0, eta=0.0, phi=0.0, cf=0.5, charge=0.0)
    assert calc.get_hist_indices(jet)[3] == HistIndex(1, 1, 1, SpinBin.INT)
    print("[✓] Test 3 passed: lower edges inclusive, upper edges exclusive")

    print("\nAll index order tests passed! [✓]\n")


def test_spin_pattern_indices():
    """Test spin sub-indices for every pattern."""
    print(">> Testing spin pattern fan-out...\n")

    calc, _ = _make_calculator(spin=True)
    expected = {
        Pattern.PPBUYU: [SpinBin.INT, SpinBin.BU, SpinBin.YU, SpinBin.BUYU],
        Pattern.PPBDYU: [SpinBin.INT, SpinBin.BD, SpinBin.YU, SpinBin.BDYU],
        Pattern.PPBUYD: [SpinBin.INT, SpinBin.BU, SpinBin.YD, SpinBin.BUYD],
        Pattern.PPBDYD: [SpinBin.INT, SpinBin.BD, SpinBin.YD, SpinBin.BDYD],
        Pattern.PABU: [SpinBin.INT, SpinBin.BU],
        Pattern.PABD: [SpinBin.INT, SpinBin.BD],
        -1: [SpinBin.INT],
        17: [SpinBin.INT],
    }
    for pattern, spins in expected.items():
        jet = Jet(pt=10.0, eta=0.0, phi=0.0, charge=1.0, pattern=pattern)
        indices = calc.get_hist_indices(jet)
        assert len(indices) == config.N_BINS_PER_SPIN * len(spins), (pattern, len(indices))
        blocks = [indices[i].spin for i in range(0, len(indices), config.N_BINS_PER_SPIN)]
        assert blocks == spins, (pattern, blocks)
        for i, index in enumerate(indices):
            assert index.spin == spins[i // config.N_BINS_PER_SPIN]
        if len(spins) > 1:
            assert indices[config.BLUE_SPIN_START].spin in (SpinBin.BU, SpinBin.BD)
        if len(spins) == 4:
            assert indices[config.YELL_SPIN_START].spin in (SpinBin.YU, SpinBin.YD)
    print("[✓] Test 1 passed: 16 cells for pp, 8 for pAu, 4 for unknown patterns")

    calc, _ = _make_calculator(spin=False)
    for pattern in Pattern:
        jet = Jet(pt=10.0, eta=0.0, phi=0.0, charge=1.0, pattern=pattern)
        assert len(calc.get_hist_indices(jet)) == 4
    print("[✓] Test 2 passed: spin binning off gives 4 cells")

    print("\nAll spin pattern tests passed! [✓]\n")


# ====================================================================== #
# ========================= Spin Angle Tests =========================== #
# ====================================================================== #

def test_dihadron_angles():
    """Test spin-dihadron angles for a symmetric pair."""
    print(">> Testing dihadron angles...\n")

    calc, _ = _make_calculator(spin=True)
    jet = Jet(pt=10.0, eta=0.0, phi=0.0, charge=1.0, pattern=Pattern.PPBUYU)
    # pair momentum along x, relative momentum along +y
    pair = (Cst(z=0.4, jt=0.0, eta=0.0, phi=0.1), Cst(z=0.4, jt=0.0, eta=0.0, phi=-0.1))

    content = calc.calc_eec(jet, pair)
    assert abs(content.phi_coll_b) < 1e-9
    assert math.isclose(content.phi_coll_y, np.pi, rel_tol=1e-9)
    assert content.spin_b == 1.0 and content.spin_y == 1.0
    assert content.pattern == Pattern.PPBUYU
    print(f"[✓] Test 1 passed: blue = {content.phi_coll_b:.3f}, yellow = {content.phi_coll_y:.3f}")

    jet = Jet(pt=10.0, eta=0.0, phi=0.0, charge=1.0, pattern=Pattern.PPBDYD)
    content = calc.calc_eec(jet, pair)
    assert math.isclose(content.phi_coll_b, np.pi, rel_tol=1e-9)
    assert content.spin_b == -1.0 and content.spin_y == -1.0
    print("[✓] Test 2 passed: flipping the blue spin shifts its angle by pi")

    # Generic pair: angles land in [0, 2pi)
    jet = Jet(pt=12.0, eta=0.05, phi=0.0, charge=1.0, pattern=Pattern.PPBUYD)
    pair = (Cst(z=0.6, jt=0.3, eta=0.2, phi=0.1), Cst(z=0.3, jt=0.1, eta=-0.1, phi=-0.2))
    content = calc.calc_eec(jet, pair)
    for angle in (content.phi_coll_b, content.phi_coll_y):
        assert 0.0 <= angle < 2.0 * np.pi
    print("[✓] Test 3 passed: generic angles in [0, 2pi)")

    # pAu: yellow beam unpolarized, so its angle is undefined
    jet = Jet(pt=12.0, eta=0.05, phi=0.0, charge=1.0, pattern=Pattern.PABU)
    content = calc.calc_eec(jet, pair)
    assert 0.0 <= content.phi_coll_b < 2.0 * np.pi
    assert math.isnan(content.phi_coll_y)
    assert content.spin_b == 1.0 and content.spin_y == 0.0
    print("[✓] Test 4 passed: pAu yellow angle is nan")

    # Spin binning off leaves the spin fields at their defaults
    calc, _ = _make_calculator(spin=False)
    content = calc.calc_eec(jet, pair)
    assert content.phi_coll_b == 0.0 and content.spin_b == 0.0 and content.pattern == -1
    print("[✓] Test 5 passed: no spin content without spin binning")

    print("\nAll dihadron angle tests passed! [✓]\n")


# ====================================================================== #
# =========================== End-to-End =============================== #
# ====================================================================== #

def test_end_to_end_fill():
    """Test the full EEC calculation for a collinear pair."""
    print(">> Testing end-to-end EEC calculation...\n")

    calc, manager = _make_calculator(spin=True)
    jet = Jet(pt=10.0, eta=0.0, phi=0.0, cf=0.5, charge=1.0, pattern=Pattern.PPBUYU)
    pair = (Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0), Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0))

    content = calc.calc_eec(jet, pair)
    assert content.dist == 0.0
    assert math.isclose(content.weight, 0.25, rel_tol=1e-9)
    print(f"[✓] Test 1 passed: RL = {content.dist}, weight = {content.weight:.3f}")

    assert len(manager.fills) == 16
    assert len({index for index, _ in manager.fills}) == 16
    assert all(c is content for _, c in manager.fills)
    print("[✓] Test 2 passed: 16 cells filled once each")

    # Without pt/charge binning every emitted index is still filled
    manager = RecordingManager()
    calc = Calculator(manager=manager)
    calc.set_do_spin_bins(True)
    calc.init(do_eec=True)
    calc.calc_eec(jet, pair)
    indices = calc.get_hist_indices(jet)
    assert len(indices) == 16
    assert len(manager.fills) == len(indices)
    assert [index for index, _ in manager.fills] == indices
    for spin in (SpinBin.INT, SpinBin.BU, SpinBin.YU, SpinBin.BUYU):
        assert sum(1 for index, _ in manager.fills if index == (0, 0, 0, spin)) == 4
    print("[✓] Test 3 passed: repeated indices of unbinned axes are filled each time")

    # EEC histograms off: nothing is filled
    manager = RecordingManager()
    calc = Calculator(manager=manager)
    calc.init(do_eec=False)
    content = calc.calc_eec(jet, pair)
    assert manager.fills == []
    assert math.isclose(content.weight, 0.25, rel_tol=1e-9)
    print("[✓] Test 4 passed: disabled EEC histograms receive no fills")

    print("\nAll end-to-end tests passed! [✓]\n")


def test_end_to_end_histograms():
    """Test the histograms produced by several pairs and the saved output."""
    print(">> Testing histogram output...\n")

    test_dir = tempfile.mkdtemp(prefix="phcorrelator_calc_")
    try:
        calc = Calculator(Weight.PT, 1.0)
        calc.set_pt_jet_bins([(0.0, 20.0)])
        calc.set_hist_tag("test_")
        calc.init(do_eec=True)

        jet = Jet(pt=10.0, eta=0.0, phi=0.0, charge=1.0)
        pair = (Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0), Cst(z=0.2, jt=0.0, eta=0.0, phi=0.1))
        calc.calc_eec(jet, pair)
        calc.calc_eec(jet, pair, evt_weight=2.0)

        manager = calc.get_manager()
        eec = manager.get_hist(HistIndex(0, 0, 0, SpinBin.INT), "eec")
        stat = manager.get_hist(HistIndex(0, 0, 0, SpinBin.INT), "eec_stat")
        # charge axis unbinned: each cell appears twice per pair
        assert math.isclose(eec.sum(), 2.0 * (0.1 + 0.2), rel_tol=1e-9)
        assert stat.sum() == 4.0
        integrated = manager.get_hist(HistIndex(1, 0, 0, SpinBin.INT), "eec")
        assert np.allclose(integrated, eec)
        print("[✓] Test 1 passed: binned and integrated cells agree")

        path = calc.end(os.path.join(test_dir, "eec"))
        assert calc.state == State.FINALIZED
        assert path.endswith(".npz") and os.path.exists(path)
        with np.load(path) as data:
            assert "test_eec_pt0_cf0_ch0_sp0" in data.files
            assert "edges_side" in data.files
        print(f"[✓] Test 2 passed: histograms saved to {os.path.basename(path)}")
    finally:
        shutil.rmtree(test_dir, ignore_errors=True)

    print("\nAll histogram output tests passed! [✓]\n")


# ====================================================================== #
# ============================ State Tests ============================= #
# ====================================================================== #

def test_calculator_states():
    """Test the configure -> init -> end sequence."""
    print(">> Testing calculator states...\n")

    calc = Calculator()
    jet = Jet(pt=10.0, eta=0.0, phi=0.0)
    pair = (Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0), Cst(z=0.5, jt=0.0, eta=0.0, phi=0.0))
    assert calc.state == State.UNCONFIGURED
    assert isinstance(calc.get_manager(), HistManager)
    manager = RecordingManager()
    assert Calculator(manager=manager).get_manager() is manager

    try:
        calc.calc_eec(jet, pair)
        assert False, "Expected RuntimeError before init"
    except RuntimeError:
        pass
    print("[✓] Test 1 passed: calculation before init rejected")

    calc.set_pt_jet_bins([(0.0, 20.0)])
    assert calc.state == State.CONFIGURED
    calc.init(do_eec=True)
    assert calc.state == State.INITIALIZED

    try:
        calc.set_charge_bins([(0.0, 1.0)])
        assert False, "Expected RuntimeError when reconfiguring"
    except RuntimeError:
        pass
    print("[✓] Test 2 passed: setters rejected after init")

    try:
        calc.calc_e3c(jet, pair + (pair[0],))
        assert False, "Expected NotImplementedError for E3C"
    except NotImplementedError:
        pass
    print("[✓] Test 3 passed: E3C is a stub")

    print("\nAll state tests passed! [✓]\n")


# ============================================================================
# Main Test Runner
# ============================================================================

def main():
    """Run all tests."""
    try:
        test_cst_weights()
        test_hist_indices_order()
        test_spin_pattern_indices()
        test_dihadron_angles()
        test_end_to_end_fill()
        test_end_to_end_histograms()
        test_calculator_states()

        print()
        print("=" * 70)
        print("Test suite completed successfully! [✓]")
        print("=" * 70)

    except AssertionError as e:
        print("\n" + "=" * 70)
        print("Test suite completed with failures! [✗]")
        print("=" * 70)
        print(f"Assertion error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
    sys.exit(0)
