#!/usr/bin/env python3
"""
Textile simulator CLI.

Runs one or several simulations without a UI. Inputs come from the command
line, from a named example of the dataset, or from a YAML/JSON spec that
describes a batch:

    python -m wikicarbone.cli.simulate_cli run --example tshirt-coton-asie
    python -m wikicarbone.cli.simulate_cli run --product tshirt --material coton \
        --mass 0.17 --countries CN IN TR CN FR
    python -m wikicarbone.cli.simulate_cli run --spec configs/batch.yml --output results.csv
    python -m wikicarbone.cli.simulate_cli sweep --example tshirt-coton-asie --stage making

Spec files can be either a list of runs or a mapping containing ``defaults``
and ``runs``. Each run entry supports:

    name: Optional label for summaries/logs
    example: name of an example from examples.yml
    inputs: {mass, material, product, countries}   # merged on top of example
    data_dir: override for the dataset directory
    log_dir: logs/textile
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from wikicarbone.api import (
    RunOutputs,
    example_inputs,
    run_simulation,
    sweep_countries,
    write_run_log,
)
from wikicarbone.core.inputs import Inputs, decode_inputs
from wikicarbone.core.io import default_data_dir
from wikicarbone.core.step import Label

logger = logging.getLogger(__name__)


# -----------------------------
# Utilities
# -----------------------------

def _fmt_float(value: Any) -> str:
    if value is None:
        return "n/a"
    try:
        return f"{float(value):,.4f}"
    except (TypeError, ValueError):
        return str(value)


def _merge_defaults(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_any(path: Path) -> Any:
    """Load arbitrary JSON/YAML content."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def _resolve_path(raw: Optional[str | Path], base: Path) -> Optional[Path]:
    """Absolute paths as-is; relative ones against the spec directory."""
    if raw is None:
        return None
    candidate = Path(raw).expanduser()
    if candidate.is_absolute():
        return candidate
    return (base / candidate).resolve()


# -----------------------------
# Run plans
# -----------------------------

@dataclass
class RunPlan:
    name: str
    data_dir: Path
    inputs: Inputs
    log_dir: Optional[Path]


@dataclass
class RunRecord:
    plan: RunPlan
    result: RunOutputs
    summary: Dict[str, Any]


def _inputs_from_raw(raw: Dict[str, Any], data_dir: Path) -> Inputs:
    payload: Dict[str, Any] = {}
    if raw.get("example"):
        payload = example_inputs(str(raw["example"]), data_dir).to_dict()
    payload = _merge_defaults(payload, raw.get("inputs") or {})
    return decode_inputs(payload)


def _enumerate_run_specs(spec_data: Any, base_dir: Path) -> List[Dict[str, Any]]:
    """Normalize spec content into a list of per-run dictionaries."""
    if spec_data is None:
        return []
    if isinstance(spec_data, list):
        runs_raw = spec_data
        defaults: Dict[str, Any] = {}
    elif isinstance(spec_data, dict):
        runs_raw = spec_data.get("runs") if "runs" in spec_data else [spec_data]
        defaults = spec_data.get("defaults") or {}
    else:
        raise ValueError("Spec must be a list or mapping.")
    if not isinstance(runs_raw, list):
        raise ValueError("'runs' must be a list of run definitions.")

    out: List[Dict[str, Any]] = []
    for idx, raw in enumerate(runs_raw):
        if not isinstance(raw, dict):
            raise ValueError("Each run entry must be a dict.")
        combined = _merge_defaults(defaults, raw)
        combined["_spec_base_dir"] = base_dir
        combined["_index"] = idx
        out.append(combined)
    return out


def _build_run_plan(raw: Dict[str, Any], default_dir: Path) -> RunPlan:
    base_dir: Path = raw.get("_spec_base_dir", Path.cwd())
    idx: int = raw.get("_index", 0)
    data_dir = _resolve_path(raw.get("data_dir"), base_dir) or default_dir
    name = str(raw.get("name") or raw.get("example") or f"run{idx + 1}")
    log_dir = _resolve_path(raw.get("log_dir"), base_dir) if raw.get("log_dir") else None
    return RunPlan(name=name, data_dir=data_dir, inputs=_inputs_from_raw(raw, data_dir), log_dir=log_dir)


def _plans_from_spec(spec_path: Path, default_dir: Path) -> List[RunPlan]:
    spec_data = _load_any(spec_path)
    return [_build_run_plan(raw, default_dir) for raw in _enumerate_run_specs(spec_data, spec_path.parent)]


def _single_run_plan(args: argparse.Namespace) -> RunPlan:
    data_dir = Path(args.data_dir).expanduser().resolve()
    raw: Dict[str, Any] = {"inputs": {}}
    if args.example:
        raw["example"] = args.example
    for key in ("mass", "material", "product"):
        value = getattr(args, key)
        if value is not None:
            raw["inputs"][key] = value
    if args.countries:
        raw["inputs"]["countries"] = list(args.countries)
    name = args.name or args.example or "run"
    log_dir = Path(args.log_dir).expanduser() if args.log_dir else None
    return RunPlan(name=name, data_dir=data_dir, inputs=_inputs_from_raw(raw, data_dir), log_dir=log_dir)


def _summarize_result(plan: RunPlan, result: RunOutputs) -> Dict[str, Any]:
    sim = result.simulator
    summary: Dict[str, Any] = {
        "name": plan.name,
        "product": plan.inputs.product,
        "material": plan.inputs.material,
        "mass_kg": plan.inputs.mass,
        "countries": "-".join(sim.life_cycle.countries()),
        "total_co2e_kg": result.total_co2e_kg,
        "transport_co2e_kg": sim.transport.co2,
    }
    for step in sim.life_cycle:
        summary[f"{step.label.value}_co2e_kg"] = step.co2
    return summary


def _write_summary(path: Path, rows: List[Dict[str, Any]]) -> None:
    if not rows:
        return
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".json":
        path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        return
    if suffix == ".csv":
        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)
        with path.open("w", newline="", encoding="utf-8") as fh:
            writer = csv.DictWriter(fh, fieldnames=fieldnames)
            writer.writeheader()
            for row in rows:
                writer.writerow({k: row.get(k, "") for k in fieldnames})
        return
    raise ValueError(f"Unsupported output format for '{path}'. Use .csv or .json.")


def run_batch(
    plans: List[RunPlan],
    log_dir_default: Optional[Path] = None,
    steps_dir: Optional[Path] = None,
    fail_fast: bool = False,
) -> Tuple[List[Dict[str, Any]], int, List[RunRecord]]:
    summaries: List[Dict[str, Any]] = []
    failures = 0
    records: List[RunRecord] = []
    for plan in plans:
        try:
            result = run_simulation(plan.data_dir, plan.inputs)
            summary = _summarize_result(plan, result)
            summaries.append(summary)
            print(f"{plan.name}: {_fmt_float(result.total_co2e_kg)} kg CO2e")
            log_dir = plan.log_dir or log_dir_default
            if log_dir:
                payload = {
                    "name": plan.name,
                    "data_dir": str(plan.data_dir),
                    "inputs": plan.inputs.to_dict(),
                    "results": summary,
                    "simulator": result.simulator.to_dict(),
                }
                path_written = write_run_log(str(log_dir), payload)
                print(f"  ↳ log written to {path_written}")
            if steps_dir is not None:
                steps_dir.mkdir(parents=True, exist_ok=True)
                out = steps_dir / f"{plan.name}_steps.csv"
                result.steps.to_csv(out)
                print(f"  ↳ steps written to {out}")
            records.append(RunRecord(plan=plan, result=result, summary=summary))
        except (ValueError, KeyError, OSError) as exc:
            failures += 1
            print(f"{plan.name}: FAILED: {exc}", file=sys.stderr)
            if fail_fast:
                raise
            summaries.append({"name": plan.name, "error": str(exc)})
    return summaries, failures, records


# -----------------------------
# Entry point
# -----------------------------

def _add_input_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("--data-dir", type=str, default=str(default_data_dir()), help="Dataset directory (default: datasets/textile or $WIKICARBONE_DATA_DIR).")
    p.add_argument("--example", type=str, help="Named example from examples.yml used as base inputs.")
    p.add_argument("--product", type=str, help="Product id (e.g. tshirt).")
    p.add_argument("--material", type=str, help="Material id (e.g. coton).")
    p.add_argument("--mass", type=float, help="Finished product mass in kg.")
    p.add_argument("--countries", nargs="+", help="Country codes per stage, in stage order.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Textile life-cycle CO2 simulator.")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING).")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Execute one or more simulations.")
    _add_input_arguments(run_parser)
    run_parser.add_argument("--spec", type=Path, help="YAML/JSON file describing runs.")
    run_parser.add_argument("--name", type=str, help="Friendly name for a single run.")
    run_parser.add_argument("--output", type=Path, help="Optional CSV/JSON summary output path.")
    run_parser.add_argument("--steps-dir", type=Path, help="Write a per-stage CSV for each run into this directory.")
    run_parser.add_argument("--log-dir", type=str, help="Directory to store detailed JSON logs per run.")
    run_parser.add_argument("--fail-fast", action="store_true", help="Abort on first failure.")

    sweep_parser = subparsers.add_parser("sweep", help="Compare every country for one stage.")
    _add_input_arguments(sweep_parser)
    sweep_parser.add_argument("--stage", required=True, choices=[l.value for l in Label if l != Label.DEFAULT], help="Stage to sweep.")
    sweep_parser.add_argument("--output", type=Path, help="Optional CSV output path.")
    return parser


def _run_command(args: argparse.Namespace) -> int:
    default_dir = Path(args.data_dir).expanduser().resolve()
    if args.spec:
        try:
            plans = _plans_from_spec(args.spec, default_dir)
        except (ValueError, KeyError, OSError, yaml.YAMLError) as exc:
            print(f"Failed to read spec: {exc}", file=sys.stderr)
            return 2
    else:
        if not (args.example or args.product):
            print("Provide --spec, --example or --product/--material/--mass.", file=sys.stderr)
            return 2
        try:
            plans = [_single_run_plan(args)]
        except (ValueError, KeyError) as exc:
            print(f"Failed to build run plan: {exc}", file=sys.stderr)
            return 2
    log_dir_default = Path(args.log_dir).expanduser() if args.log_dir else None
    try:
        summaries, failures, _ = run_batch(
            plans,
            log_dir_default=log_dir_default,
            steps_dir=args.steps_dir,
            fail_fast=args.fail_fast,
        )
    except (ValueError, KeyError, OSError) as exc:
        print(f"Execution aborted: {exc}", file=sys.stderr)
        return 3
    if args.output:
        try:
            _write_summary(args.output, summaries)
            print(f"Summary written to {args.output}")
        except (ValueError, OSError) as exc:
            print(f"Failed to write summary: {exc}", file=sys.stderr)
            return 4
    return 0 if failures == 0 else 5


def _sweep_command(args: argparse.Namespace) -> int:
    if not (args.example or args.product):
        print("Provide --example or --product/--material/--mass.", file=sys.stderr)
        return 2
    try:
        plan = _single_run_plan(argparse.Namespace(**{**vars(args), "name": None, "log_dir": None}))
        df = sweep_countries(plan.data_dir, plan.inputs, Label.from_token(args.stage))
    except (ValueError, KeyError, OSError) as exc:
        print(f"Sweep failed: {exc}", file=sys.stderr)
        return 3
    print(df.to_string(float_format=lambda v: f"{v:,.4f}"))
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(args.output)
        print(f"Sweep written to {args.output}")
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))
    if args.command == "run":
        return _run_command(args)
    if args.command == "sweep":
        return _sweep_command(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
