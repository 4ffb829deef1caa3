"""
# __init__.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Correlator analysis: kinematics tools, binning, histogramming and the calculator."""
from .types import (
    Axis,
    Cst,
    HistContent,
    HistIndex,
    Jet,
    KinematicVector,
    Pattern,
    SpinBin,
    Weight,
)
from .bins import Binning, Bins
from .hist_manager import HistManager
from .calculator import Calculator
from .eec import CalculateEECTool

__all__ = [
    'Axis',
    'Binning',
    'CalculateEECTool',
    'Bins',
    'Calculator',
    'Cst',
    'HistContent',
    'HistIndex',
    'HistManager',
    'Jet',
    'KinematicVector',
    'Pattern',
    'SpinBin',
    'Weight',
]
