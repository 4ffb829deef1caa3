"""
# config.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import sys

import numpy as np


def _frozen(*components):
    vec = np.array(components, dtype=float)
    vec.setflags(write=False)
    return vec


# Base used by the log/exp pair when building log-uniform bins.
LOG_BASE = 10.0

# Beam directions (blue travels along +z, yellow along -z).
BLUE_BEAM = _frozen(0.0, 0.0, 1.0)
YELLOW_BEAM = _frozen(0.0, 0.0, -1.0)

# Transverse spin directions.
SPIN_UP = _frozen(0.0, 1.0, 0.0)
SPIN_DOWN = _frozen(0.0, -1.0, 0.0)
SPIN_NULL = _frozen(0.0, 0.0, 0.0)

# Layout of the list returned by Calculator.get_hist_indices for pp:
#   [0, 4)   spin integrated
#   [4, 8)   blue beam
#   [8, 12)  yellow beam
#   [12, 16) blue and yellow
N_BINS_PER_SPIN = 4
BLUE_SPIN_START = 4
YELL_SPIN_START = 8

# Configure tqdm to prevent multiple line printing
TQDM_CONFIG = {
    'file': sys.stderr,
    'ncols': 80,
    'leave': True,
    'dynamic_ncols': False
}
