# Setup repository path for imports
import sys
from pathlib import Path

# Add repository root to path for local imports
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

# =========================================================== #
# ======================== IMPORTS ========================== #
# =========================================================== #

import json
import logging

import numpy as np

from phcorrelator.logging_config import setup_logging
from phcorrelator.analysis import CalculateEECTool, Pattern

# =========================================================== #
# ======================= CONFIGURATION ===================== #
# =========================================================== #

demo_files_dir = Path(__file__).resolve().parent / 'eec_sandbox'

N_EVENTS = 200
JETS_PER_EVENT = 2
SEED = 1234

PT_JET_BINS = [[5.0, 10.0], [10.0, 15.0], [15.0, 20.0], [20.0, 50.0]]
CHARGE_BINS = [[-100.0, 0.0], [0.0, 100.0]]


def make_jet(rng):
    """Toy jet: a handful of constituents spread around the jet axis."""
    pt = rng.uniform(5.0, 40.0)
    eta = rng.uniform(-0.7, 0.7)
    phi = rng.uniform(-np.pi, np.pi)
    n_cst = rng.integers(2, 8)

    z = rng.dirichlet(np.ones(n_cst))
    csts = [
        {
            "z": float(z[i]),
            "jt": float(rng.exponential(0.3)),
            "eta": float(eta + rng.normal(0.0, 0.15)),
            "phi": float(phi + rng.normal(0.0, 0.15)),
        }
        for i in range(n_cst)
    ]
    return {
        "pt": float(pt),
        "eta": float(eta),
        "phi": float(phi),
        "cf": float(rng.uniform(0.0, 1.0)),
        "charge": float(rng.choice([-1.0, 1.0])),
        "pattern": int(rng.choice([p.value for p in Pattern])),
        "constituents": csts,
    }


def write_events(path, rng):
    with open(path, "w") as f:
        for _ in range(N_EVENTS):
            jets = [make_jet(rng) for _ in range(JETS_PER_EVENT)]
            f.write(json.dumps({"data": {"jets": jets}}) + "\n")


def main():
    logger = setup_logging(level=logging.INFO, log_file=None)

    demo_files_dir.mkdir(parents=True, exist_ok=True)
    base_directory = str(demo_files_dir)

    rng = np.random.default_rng(SEED)
    write_events(demo_files_dir / "toy_jets.jsonl", rng)
    logger.info("Wrote %d toy events to %s", N_EVENTS, demo_files_dir / "toy_jets.jsonl")

    tool = CalculateEECTool(
        base_directory=base_directory,
        input_file="toy_jets.jsonl",
        output_file="toy_jets_eec.npz",
        weight_type="pt",
        weight_power=1.0,
        pt_jet_bins=PT_JET_BINS,
        charge_bins=CHARGE_BINS,
        do_spin_bins=True,
        hist_tag="toy_",
    )
    tool._setup()
    result = tool._run()
    logger.info("EEC tool result: %s", result)

    output = json.loads(result)
    if output.get("status") != "ok":
        sys.exit(1)

    with np.load(demo_files_dir / output["output_file"]) as data:
        side = data["edges_side"]
        eec = data["toy_eec_pt4_cf0_ch2_sp0"]
    centers = np.sqrt(side[:-1] * side[1:])
    peak = centers[np.argmax(eec)]
    logger.info("Integrated EEC peaks at RL = %.3g", peak)


if __name__ == "__main__":
    main()
