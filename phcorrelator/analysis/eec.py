"""
# eec.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
import itertools
import json
import os
from typing import List, Optional

from orchestral.tools.base.tool import BaseTool
from orchestral.tools.base.field_utils import RuntimeField, StateField
from tqdm import tqdm

from phcorrelator.config import TQDM_CONFIG
from phcorrelator.analysis.calculator import Calculator
from phcorrelator.analysis.types import Cst, Jet, Weight

# ====================================================================== #
# ======================== EEC Calculation Tool ======================== #
# ====================================================================== #

class CalculateEECTool(BaseTool):
    """
    Fill two-point energy-energy correlator histograms from a jet dataset.

    **Input (JSONL, one event per line):**
    {"data": {"jets": [
        {"pt": 10.0, "eta": 0.1, "phi": 1.2, "cf": 0.5, "charge": 1.0,
         "pattern": 0, "evt_weight": 1.0,
         "constituents": [{"z": 0.3, "jt": 0.2, "eta": 0.05, "phi": 1.1}, ...]},
        ...
    ]}}

    `cf`, `charge`, `pattern` and `evt_weight` are optional. Every unique
    pair of constituents of every jet is passed to the calculator.

    **Binning:**
    - pt_jet_bins / cf_jet_bins / charge_bins: [[low, high], ...] half-open
      intervals; omitting a list leaves that axis integrated only
    - do_spin_bins: also sort by beam polarization pattern

    **Output:**
    - .npz archive with one array per histogram and cell plus bin edges
    - JSON summary with event, jet, pair and cell counts

    Weight = (X_cst / X_jet)^power for each constituent, with X one of
    E ("e"), ET ("et") or pT ("pt").
    """
    # --------------------------- Runtime fields --------------------------- #
    input_file: str = RuntimeField(
        description="Path to input .jsonl file with jets and their constituents"
    )
    output_file: Optional[str] = RuntimeField(
        default=None,
        description="Path to save output .npz histograms (auto-generated if not provided)"
    )
    weight_type: str = RuntimeField(
        default="pt",
        description="Quantity used for constituent weights: 'e', 'et' or 'pt'"
    )
    weight_power: float = RuntimeField(
        default=1.0,
        description="Power the constituent and jet quantities are raised to"
    )
    pt_jet_bins: Optional[List[List[float]]] = RuntimeField(
        default=None,
        description="Jet pT bins as [[low, high], ...] (e.g., [[5, 10], [10, 20]])"
    )
    cf_jet_bins: Optional[List[List[float]]] = RuntimeField(
        default=None,
        description="Jet charged-fraction bins as [[low, high], ...]"
    )
    charge_bins: Optional[List[List[float]]] = RuntimeField(
        default=None,
        description="Jet charge bins as [[low, high], ...]"
    )
    do_spin_bins: bool = RuntimeField(
        default=False,
        description="Sort histograms by beam spin pattern"
    )
    hist_tag: str = RuntimeField(
        default="",
        description="Prefix added to every histogram name"
    )
    event_index: Optional[int] = RuntimeField(
        default=None,
        description="Process only this event index"
    )
    # ---------------------------------------------------------------------- #

    # ---------------------------- State fields ---------------------------- #
    base_directory: str = StateField(default=".", description="Base directory for safe paths")
    # ---------------------------------------------------------------------- #

    def _setup(self):
        """Setup base directory and validate it exists."""
        self.base_directory = os.path.abspath(self.base_directory)
        if not os.path.exists(self.base_directory):
            raise ValueError(f"Base directory does not exist: {self.base_directory}")

    def _safe_path(self, rel: str) -> Optional[str]:
        """Ensures that the path is within the allowed base directory."""
        if not rel:
            return None
        full = os.path.abspath(os.path.join(self.base_directory, rel))
        # Allow only if inside base_directory
        if full.startswith(self.base_directory + os.sep) or full == self.base_directory:
            return full
        return None

    def _build_calculator(self) -> Calculator:
        """Configure and initialize a calculator from the runtime fields."""
        calc = Calculator(Weight(self.weight_type.lower()), float(self.weight_power))
        if self.hist_tag:
            calc.set_hist_tag(self.hist_tag)
        if self.pt_jet_bins is not None:
            calc.set_pt_jet_bins([tuple(b) for b in self.pt_jet_bins])
        if self.cf_jet_bins is not None:
            calc.set_cf_jet_bins([tuple(b) for b in self.cf_jet_bins])
        if self.charge_bins is not None:
            calc.set_charge_bins([tuple(b) for b in self.charge_bins])
        calc.set_do_spin_bins(bool(self.do_spin_bins))
        calc.init(do_eec=True)
        return calc

    @staticmethod
    def _parse_jet(jet: dict) -> Jet:
        return Jet(
            pt=float(jet["pt"]),
            eta=float(jet["eta"]),
            phi=float(jet["phi"]),
            cf=float(jet.get("cf", 0.0)),
            charge=float(jet.get("charge", 0.0)),
            pattern=int(jet.get("pattern", -1)),
        )

    @staticmethod
    def _parse_cst(cst: dict) -> Cst:
        return Cst(
            z=float(cst["z"]),
            jt=float(cst["jt"]),
            eta=float(cst["eta"]),
            phi=float(cst["phi"]),
        )

    def _run(self) -> str:
        """Run the EEC calculation over every jet in the input file."""
        src = self._safe_path(self.input_file)
        if not src:
            return self.format_error(
                error="Access Denied",
                reason="input_file escapes base_directory"
            )
        if not os.path.exists(src):
            return self.format_error(
                error="File Not Found",
                reason=f"Input file not found: {self.input_file}"
            )
        if not self.input_file.endswith('.jsonl'):
            return self.format_error(
                error="Invalid Format",
                reason="Input file must be .jsonl"
            )

        # Auto-generate output file if not provided
        if self.output_file is None:
            input_basename = os.path.splitext(os.path.basename(self.input_file))[0]
            self.output_file = os.path.join(
                os.path.dirname(self.input_file) if os.path.dirname(self.input_file) else ".",
                f"{input_basename}_eec.npz"
            )

        dst = self._safe_path(self.output_file)
        if not dst:
            return self.format_error(
                error="Access Denied",
                reason="output_file escapes base_directory"
            )

        try:
            Weight(self.weight_type.lower())
        except ValueError:
            return self.format_error(
                error="Invalid Weight",
                reason=f"Unknown weight_type '{self.weight_type}'. Use one of {[w.value for w in Weight]}"
            )

        try:
            with open(src, 'r') as f:
                events = [json.loads(line) for line in f if line.strip()]
        except Exception as e:
            return self.format_error(
                error="Read Error",
                reason=str(e)
            )

        if self.event_index is not None:
            if self.event_index < 0 or self.event_index >= len(events):
                return self.format_error(
                    error="Index Error",
                    reason=f"event_index {self.event_index} out of range [0, {len(events)-1}]"
                )
            events = [events[self.event_index]]

        try:
            calc = self._build_calculator()

            n_jets = 0
            n_pairs = 0
            for ev in tqdm(events, desc="Calculating EECs", unit="evt", **TQDM_CONFIG):
                if "data" not in ev or "jets" not in ev["data"]:
                    return self.format_error(
                        error="Invalid Format",
                        reason="Event missing 'data.jets' key"
                    )

                for jet_data in ev["data"]["jets"]:
                    jet = self._parse_jet(jet_data)
                    csts = [self._parse_cst(c) for c in jet_data.get("constituents", [])]
                    evt_weight = float(jet_data.get("evt_weight", 1.0))
                    n_jets += 1

                    for pair in itertools.combinations(csts, 2):
                        calc.calc_eec(jet, pair, evt_weight)
                        n_pairs += 1

            save_path = calc.end(dst)

            result = {
                "status": "ok",
                "output_file": os.path.relpath(save_path, self.base_directory),
                "n_events": len(events),
                "n_jets": n_jets,
                "n_pairs": n_pairs,
                "n_cells": calc.get_manager().n_cells,
            }
            return json.dumps(result, separators=(",", ":"), ensure_ascii=False)

        except Exception as e:
            return self.format_error(
                error="Processing Error",
                reason=str(e)
            )
