# -*- coding: utf-8 -*-
"""
api.py
Central API between callers (CLI, notebooks, apps) and the core engine.

- RunOutputs dataclass
- run_simulation(...) loads the dataset once, builds the simulator from inputs
  and computes it
- steps_table(...) per-stage pandas view of a computed simulator
- sweep_countries(...) compares one stage across every known country
- write_run_log(...) helper for simple JSON logs
"""

from __future__ import annotations
import os
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from wikicarbone.core.catalog import Db
from wikicarbone.core.inputs import Inputs, decode_inputs, from_inputs, to_inputs
from wikicarbone.core.io import default_data_dir, load_db, load_examples
from wikicarbone.core.lifecycle import DEFAULT_STAGES, STAGE_ORDER
from wikicarbone.core.models import InvalidInputError
from wikicarbone.core.simulator import Simulator
from wikicarbone.core.step import Label

logger = logging.getLogger(__name__)

STEP_COLUMNS = [
    "stage",
    "country",
    "mass_kg",
    "waste_kg",
    "co2_kg",
    "kwh",
    "heat_mj",
    "transport_road_km",
    "transport_sea_km",
    "transport_air_km",
    "transport_co2_kg",
]


def _env_flag_truthy(var_name: str) -> bool:
    """
    Return True when the environment variable is set to a truthy value.
    Accepted truthy values: '1', 'true', 'yes', 'on' (case insensitive).
    """
    raw = os.environ.get(var_name, "")
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _is_debug_io_enabled() -> bool:
    return _env_flag_truthy("WIKICARBONE_DEBUG_IO")


# ==============================
# Dataclasses
# ==============================
@dataclass
class RunOutputs:
    """Results of one simulation.

    Attributes:
        simulator: fully computed Simulator
        steps: per-stage table (see STEP_COLUMNS)
        total_co2e_kg: final score
        meta: inputs and dataset used
    """
    simulator: Simulator
    steps: pd.DataFrame
    total_co2e_kg: float
    meta: Dict[str, Any] = field(default_factory=dict)


# ==============================
# Helpers
# ==============================
def _resolve_db(data: Db | str | Path | None) -> Db:
    if isinstance(data, Db):
        return data
    return load_db(data)


def _coerce_inputs(inputs: Inputs | Dict[str, Any]) -> Inputs:
    if isinstance(inputs, Inputs):
        return inputs
    return decode_inputs(inputs)


def steps_table(simulator: Simulator) -> pd.DataFrame:
    """One row per stage, in stage order, indexed by stage token."""
    rows = []
    for step in simulator.life_cycle:
        rows.append({
            "stage": step.label.value,
            "country": step.country,
            "mass_kg": step.mass.in_kg(),
            "waste_kg": step.waste.in_kg(),
            "co2_kg": step.co2,
            "kwh": step.kwh.in_kwh(),
            "heat_mj": step.heat.in_mj(),
            "transport_road_km": step.transport.road,
            "transport_sea_km": step.transport.sea,
            "transport_air_km": step.transport.air,
            "transport_co2_kg": step.transport.co2,
        })
    return pd.DataFrame(rows, columns=STEP_COLUMNS).set_index("stage")


def write_run_log(log_dir: str, payload: Dict[str, Any]) -> str:
    """
    Write a compact JSON log (inputs + total CO2e). Returns the file path.

    Log files are named with UTC timestamp: run_YYYYMMDDTHHMMSSffffffZ.json
    """
    os.makedirs(log_dir, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    fpath = os.path.join(log_dir, f"run_{ts}.json")
    with open(fpath, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return fpath


def example_inputs(name: str, data_dir: str | Path | None = None) -> Inputs:
    """Inputs of a named example from the dataset's examples.yml."""
    base = Path(data_dir) if data_dir is not None else default_data_dir()
    examples = load_examples(base / "examples.yml")
    if name not in examples:
        raise InvalidInputError(f"Unknown example '{name}'. Available: {sorted(examples)}")
    return decode_inputs(examples[name])


# ==============================
# Main API
# ==============================
def run_simulation(data: Db | str | Path | None, inputs: Inputs | Dict[str, Any]) -> RunOutputs:
    """
    Execute the simulator for the given inputs.
    Steps:
      1) Load (cached) dataset, or use the given Db
      2) Validate inputs and build the simulator
      3) Run the compute pipeline
      4) Shape per-stage table
    """
    db = _resolve_db(data)
    inputs = _coerce_inputs(inputs)
    if _is_debug_io_enabled():
        logger.info("Simulation inputs: %s", json.dumps(inputs.to_dict()))

    simulator = from_inputs(db, inputs)
    logger.info(
        "Simulated %s / %s (%.3f kg): %.4f kg CO2e",
        inputs.product, inputs.material, inputs.mass, simulator.co2,
    )
    return RunOutputs(
        simulator=simulator,
        steps=steps_table(simulator),
        total_co2e_kg=simulator.co2,
        meta={
            "inputs": to_inputs(simulator).to_dict(),
            "data_dir": None if isinstance(data, Db) else str(data or default_data_dir()),
        },
    )


def sweep_countries(
    data: Db | str | Path | None,
    inputs: Inputs | Dict[str, Any],
    label: Label,
    countries: Optional[List[str]] = None,
) -> pd.DataFrame:
    """Recompute ``inputs`` with ``label``'s country replaced by each country in turn.

    Returns a DataFrame indexed by country with the stage CO2, the transport
    CO2 and the total score, sorted by total.
    """
    if label not in STAGE_ORDER:
        raise InvalidInputError(f"Cannot sweep stage '{label.value}'")
    db = _resolve_db(data)
    base = _coerce_inputs(inputs)
    idx = STAGE_ORDER.index(label)
    base_countries = list(base.countries)
    if len(base_countries) <= idx:
        base_countries += [c for _, _, c in DEFAULT_STAGES[len(base_countries):]]

    rows = []
    for code in countries or db.countries.codes():
        trial = list(base_countries)
        trial[idx] = code
        sim = from_inputs(db, Inputs(base.mass, base.material, base.product, trial))
        rows.append({
            "country": code,
            "stage_co2_kg": sim.step(label).co2,
            "transport_co2_kg": sim.transport.co2,
            "total_co2_kg": sim.co2,
        })
    df = pd.DataFrame(rows, columns=["country", "stage_co2_kg", "transport_co2_kg", "total_co2_kg"])
    return df.set_index("country").sort_values("total_co2_kg")


__all__ = [
    "STEP_COLUMNS",
    "RunOutputs",
    "run_simulation",
    "steps_table",
    "sweep_countries",
    "write_run_log",
    "example_inputs",
]
