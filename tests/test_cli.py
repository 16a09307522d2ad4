import csv
import json
from pathlib import Path

import yaml

from wikicarbone.cli.simulate_cli import RunPlan, main, run_batch
from wikicarbone.core.inputs import Inputs


def test_run_example_writes_outputs(tmp_path, data_dir):
    out = tmp_path / "summary.csv"
    rc = main([
        "run",
        "--data-dir", str(data_dir),
        "--example", "tshirt-coton-asie",
        "--output", str(out),
        "--log-dir", str(tmp_path / "logs"),
        "--steps-dir", str(tmp_path / "steps"),
    ])
    assert rc == 0
    with out.open(encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert len(rows) == 1
    assert rows[0]["name"] == "tshirt-coton-asie"
    assert rows[0]["countries"] == "CN-CN-CN-CN-FR"
    assert float(rows[0]["total_co2e_kg"]) > 0.0
    assert list((tmp_path / "logs").glob("run_*.json"))
    assert (tmp_path / "steps" / "tshirt-coton-asie_steps.csv").is_file()


def test_run_overrides_example_inputs(tmp_path, data_dir):
    out = tmp_path / "summary.json"
    rc = main([
        "run", "--data-dir", str(data_dir),
        "--example", "tshirt-coton-asie", "--mass", "0.3", "--countries", "IN", "IN",
        "--output", str(out),
    ])
    assert rc == 0
    row = json.loads(out.read_text(encoding="utf-8"))[0]
    assert row["mass_kg"] == 0.3
    assert row["countries"] == "IN-IN-CN-CN-FR"


def test_spec_batch_counts_failures(tmp_path, data_dir):
    spec = tmp_path / "batch.yml"
    spec.write_text(yaml.safe_dump({
        "defaults": {"data_dir": str(data_dir)},
        "runs": [
            {"example": "jean-coton-inde"},
            {"name": "custom", "inputs": {"mass": 0.5, "material": "laine", "product": "pull"}},
            {"name": "broken", "inputs": {"mass": 0.5, "material": "laine", "product": "chaussette"}},
        ],
    }), encoding="utf-8")
    out = tmp_path / "summary.json"
    rc = main(["run", "--spec", str(spec), "--output", str(out)])
    assert rc == 5
    rows = json.loads(out.read_text(encoding="utf-8"))
    assert [r["name"] for r in rows] == ["jean-coton-inde", "custom", "broken"]
    assert "error" in rows[2]


def test_bad_spec_and_missing_inputs(tmp_path, data_dir):
    spec = tmp_path / "bad.yml"
    spec.write_text(yaml.safe_dump([{"example": "nope", "data_dir": str(data_dir)}]), encoding="utf-8")
    assert main(["run", "--spec", str(spec)]) == 2
    assert main(["run", "--data-dir", str(data_dir)]) == 2
    assert main([]) == 1


def test_sweep_command(tmp_path, data_dir):
    out = tmp_path / "sweep.csv"
    rc = main([
        "sweep", "--data-dir", str(data_dir),
        "--example", "tshirt-coton-asie", "--stage", "ennoblement",
        "--output", str(out),
    ])
    assert rc == 0
    with out.open(encoding="utf-8") as fh:
        rows = list(csv.DictReader(fh))
    assert {r["country"] for r in rows} >= {"FR", "CN", "MA"}


def test_run_batch_direct(tmp_path, data_dir):
    plan = RunPlan(
        name="unit",
        data_dir=Path(data_dir),
        inputs=Inputs(0.17, "coton", "tshirt", ["CN", "CN", "CN", "CN", "FR"]),
        log_dir=None,
    )
    summaries, failures, records = run_batch([plan], log_dir_default=tmp_path)
    assert failures == 0
    assert records[0].summary["total_co2e_kg"] == summaries[0]["total_co2e_kg"]
    assert list(tmp_path.glob("run_*.json"))
