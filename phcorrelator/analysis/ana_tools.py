"""
# ana_tools.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""
Geometry and kinematics helpers for correlator calculations.

Everything here is a pure function of its arguments: angle wrapping,
constituent separations, bin-edge generation, reconstruction of massless
4-vectors from (pt, eta, phi) or (z, jt, eta, phi) inputs, and the fixed
beam/spin direction tables.
"""
import math
from typing import List, Optional, Tuple

import numpy as np

from phcorrelator import config
from phcorrelator.analysis.types import Axis, Cst, Jet, KinematicVector, Pattern

TWO_PI = 2.0 * np.pi

# (blue spin, yellow spin) for every recognized pattern
_SPINS_BY_PATTERN = {
    Pattern.PPBUYU: (config.SPIN_UP, config.SPIN_UP),
    Pattern.PPBDYU: (config.SPIN_DOWN, config.SPIN_UP),
    Pattern.PPBUYD: (config.SPIN_UP, config.SPIN_DOWN),
    Pattern.PPBDYD: (config.SPIN_DOWN, config.SPIN_DOWN),
    Pattern.PABU: (config.SPIN_UP, config.SPIN_NULL),
    Pattern.PABD: (config.SPIN_DOWN, config.SPIN_NULL),
}


# ====================================================================== #
# ========================= Scalar helpers ============================= #
# ====================================================================== #

def exp_base(arg: float, base: Optional[float] = None) -> float:
    """Raise the logarithm base to `arg`."""
    base = config.LOG_BASE if base is None else base
    return base ** arg


def log_base(arg: float, base: Optional[float] = None) -> float:
    """Logarithm of `arg` in the configured base."""
    base = config.LOG_BASE if base is None else base
    return math.log10(arg) / math.log10(base)


def angular_distance(eta_a: float, phi_a: float, eta_b: float, phi_b: float) -> float:
    """Distance in (eta, phi) with the phi difference reduced to [-pi, pi]."""
    return math.hypot(eta_a - eta_b, math.remainder(phi_a - phi_b, TWO_PI))


def get_cst_dist(csts: Tuple[Cst, Cst]) -> float:
    """Angular distance between the two constituents of a pair."""
    first, second = csts
    return angular_distance(first.eta, first.phi, second.eta, second.phi)


def get_variance(err: float, counts: float) -> float:
    """Variance recovered from a per-entry standard error and its counts."""
    sqvar = err * math.sqrt(counts)
    return sqvar * sqvar


# ====================================================================== #
# ========================== Angle wrapping ============================ #
# ====================================================================== #

def wrap_hadron_angle(angle: float) -> float:
    """Take an angle in (0, pi) and constrain it to (-pi/2, pi/2)."""
    if angle > np.pi / 2.0:
        angle -= np.pi
    return angle


def wrap_doubled_hadron_angle(angle: float) -> float:
    """Constrain a doubled hadron angle to (-pi/2, pi/2)."""
    pi_div2 = np.pi / 2.0
    pi3_div2 = 3.0 * np.pi / 2.0

    if pi_div2 < angle <= pi3_div2:
        angle -= np.pi
    elif angle > pi3_div2:
        angle -= TWO_PI
    elif -pi3_div2 <= angle < -pi_div2:
        angle += np.pi
    elif angle < -pi3_div2:
        angle += TWO_PI
    return angle


def wrap_spin_hadron_angle(angle: float) -> float:
    """Constrain a spin-hadron angle to (0, pi)."""
    if angle > np.pi:
        angle -= np.pi
    elif angle < 0.0:
        angle += np.pi
    return angle


def wrap_full_angle(angle: float) -> float:
    """Bring an angle in (-2pi, 4pi) into [0, 2pi)."""
    if angle < 0.0:
        angle += TWO_PI
    if angle >= TWO_PI:
        angle -= TWO_PI
    return angle


# ====================================================================== #
# ============================ Bin edges =============================== #
# ====================================================================== #

def get_bin_edges(num: int, start: float, stop: float, axis: Axis = Axis.LOG) -> List[float]:
    """
    Divide [start, stop] into `num` bins and return the num + 1 edges.

    With a LOG axis the range is divided uniformly in log space and the
    edges are transformed back before returning.

    Raises:
        ValueError: if num is not positive or start > stop.
    """
    if num <= 0:
        raise ValueError(f"Number of bins must be positive, got {num}")
    if start > stop:
        raise ValueError(f"Bin range is inverted: start={start} > stop={stop}")

    use_log = axis == Axis.LOG
    start_use = log_base(start) if use_log else start
    stop_use = log_base(stop) if use_log else stop
    step = (stop_use - start_use) / num

    edges = []
    edge = start_use
    for _ in range(num):
        edges.append(edge)
        edge += step
    edges.append(edge)

    if use_log:
        edges = [exp_base(e) for e in edges]
    return edges


# ====================================================================== #
# ========================= Vector building ============================ #
# ====================================================================== #

def _finish_vector(vect: np.ndarray, norm: bool) -> KinematicVector:
    if norm:
        vect = vect * (1.0 / np.linalg.norm(vect))
    return KinematicVector.from_vect(vect)


def get_jet_vector(jet: Jet, norm: bool = False) -> KinematicVector:
    """
    Jet 4-vector in cartesian coordinates.

    The transverse components are the total momentum pz / cos(theta)
    projected on phi, so for eta != 0 the vector's pT is pt * cosh(eta)
    rather than the jet pt. The energy is set to the magnitude of the
    3-vector. If `norm` is set the 3-vector is scaled to unit length first.
    """
    th = 2.0 * math.atan(math.exp(-jet.eta))
    pz = jet.pt / math.tan(th)
    p = pz / math.cos(th)
    px = p * math.cos(jet.phi)
    py = p * math.sin(jet.phi)
    return _finish_vector(np.array([px, py, pz]), norm)


def get_cst_vector(cst: Cst, pt_jet: float, norm: bool = False) -> KinematicVector:
    """
    Constituent 4-vector from its momentum fraction and jT.

    The energy is set to the magnitude of the 3-vector.
    """
    pt_cst = cst.z * pt_jet
    p_cst = math.sqrt(pt_cst * pt_cst + cst.jt * cst.jt)

    th = 2.0 * math.atan(math.exp(-cst.eta))
    px = p_cst * math.sin(th) * math.cos(cst.phi)
    py = p_cst * math.sin(th) * math.sin(cst.phi)
    pz = p_cst * math.cos(th)
    return _finish_vector(np.array([px, py, pz]), norm)


def get_weighted_avg_vector(va: np.ndarray, vb: np.ndarray, norm: bool = False) -> np.ndarray:
    """Magnitude-weighted average of two 3-vectors."""
    mag_a = np.linalg.norm(va)
    mag_b = np.linalg.norm(vb)
    wa = mag_a / (mag_a + mag_b)
    wb = mag_b / (mag_a + mag_b)

    total = np.asarray(va) * wa + np.asarray(vb) * wb
    if norm:
        total = total * (1.0 / np.linalg.norm(total))
    return total


def get_beams() -> Tuple[np.ndarray, np.ndarray]:
    """Blue and yellow beam directions."""
    return config.BLUE_BEAM, config.YELLOW_BEAM


def get_spins(pattern: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Blue and yellow spin vectors for a spin pattern.

    Unknown patterns return null vectors for both beams.
    """
    return _SPINS_BY_PATTERN.get(pattern, (config.SPIN_NULL, config.SPIN_NULL))


def get_plane_angle(axis: np.ndarray, ref: np.ndarray, vec: np.ndarray) -> float:
    """
    Azimuth of `vec` around `axis`, measured from `ref`, in [0, 2pi).

    The cosine comes from the normalized cross products of the axis with
    both vectors, the sign from (ref x vec) . axis. Returns nan when either
    vector is parallel to the axis (or null), since the plane is undefined.
    """
    norm_ref = np.cross(axis, ref)
    norm_vec = np.cross(axis, vec)
    mag_ref = np.linalg.norm(norm_ref)
    mag_vec = np.linalg.norm(norm_vec)
    if mag_ref == 0.0 or mag_vec == 0.0:
        return float("nan")

    cos_angle = np.dot(norm_ref, norm_vec) / (mag_ref * mag_vec)
    sin_angle = np.dot(np.cross(ref, vec), axis) / (mag_ref * mag_vec)

    angle = math.acos(float(np.clip(cos_angle, -1.0, 1.0)))
    if not sin_angle > 0.0:
        angle = -angle
    return wrap_full_angle(angle)
