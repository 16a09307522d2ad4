"""I/O utilities: YAML dataset loaders.

A dataset directory holds:
  processes.yml   process table keyed by UUID
  countries.yml   country profiles (electricity / heat / dyeing process per country)
  materials.yml   material catalog
  products.yml    product catalog
  transports.yml  mode processes, default distances and country-to-country routes
  examples.yml    ready-made input scenarios

The bundled dataset lives in the repository (`datasets/textile`) and is not
shipped in wheels; installed copies must point WIKICARBONE_DATA_DIR (or
`--data-dir`) at a dataset directory.
"""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .catalog import CountryProfiles, Db, ProcessCatalog
from .models import CountryProfile, Material, ProcessRecord, Product
from .transport import TransportResolver

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = REPO_ROOT / "datasets" / "textile"
DATA_DIR_ENV = "WIKICARBONE_DATA_DIR"


def default_data_dir() -> Path:
    """Data directory from WIKICARBONE_DATA_DIR, else the bundled textile dataset."""
    raw = os.environ.get(DATA_DIR_ENV, "").strip()
    return Path(raw) if raw else DEFAULT_DATA_DIR


def safe_yaml_load(filepath: str | Path, default=None):
    """Safe YAML loader: returns default when file missing or invalid."""
    try:
        p = Path(filepath)
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or default
    except FileNotFoundError:
        logger.warning("YAML file not found: %s, returning default", filepath)
        return default
    except yaml.YAMLError as e:
        logger.error("Error reading YAML %s: %s", filepath, e)
        return default


def load_list_from_yaml(filepath: str | Path, key: str) -> List[Dict[str, Any]]:
    """Load a YAML list, unwrapping ``{key: [...]}`` when present."""
    data = safe_yaml_load(filepath, default=[]) or []
    if isinstance(data, dict):
        data = data.get(key) or []
    if not isinstance(data, list):
        logger.error("Expected a list in %s, got %s", filepath, type(data).__name__)
        return []
    return [item for item in data if isinstance(item, dict)]


def _opt_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def load_processes(filepath: str | Path) -> ProcessCatalog:
    records = []
    for item in load_list_from_yaml(filepath, "processes"):
        uuid = _opt_str(item.get("uuid"))
        if not uuid:
            logger.warning("Skipping process without uuid in %s: %s", filepath, item.get("name"))
            continue
        records.append(
            ProcessRecord(
                uuid=uuid,
                name=str(item.get("name") or uuid),
                unit=str(item.get("unit") or "kg"),
                climate_change=float(item.get("climate_change", 0.0) or 0.0),
                waste=float(item.get("waste", 0.0) or 0.0),
                elec_mj=float(item.get("elec_mj", 0.0) or 0.0),
                heat_mj=float(item.get("heat_mj", 0.0) or 0.0),
                elec_pppm=float(item.get("elec_pppm", 0.0) or 0.0),
            )
        )
    logger.debug("Loaded %d processes from %s", len(records), filepath)
    return ProcessCatalog(records)


def load_countries(filepath: str | Path) -> CountryProfiles:
    profiles = []
    for item in load_list_from_yaml(filepath, "countries"):
        code = _opt_str(item.get("code"))
        if not code:
            continue
        profiles.append(
            CountryProfile(
                code=code.upper(),
                name=str(item.get("name") or code),
                electricity_process_uuid=_opt_str(item.get("electricity")),
                heat_process_uuid=_opt_str(item.get("heat")),
                dyeing_process_uuid=_opt_str(item.get("dyeing")),
            )
        )
    return CountryProfiles(profiles)


def load_materials(filepath: str | Path) -> Dict[str, Material]:
    out: Dict[str, Material] = {}
    for item in load_list_from_yaml(filepath, "materials"):
        try:
            m = Material.from_dict(item)
        except KeyError as e:
            logger.warning("Skipping material missing %s in %s", e, filepath)
            continue
        out[m.id] = m
    return out


def load_products(filepath: str | Path) -> Dict[str, Product]:
    out: Dict[str, Product] = {}
    for item in load_list_from_yaml(filepath, "products"):
        try:
            p = Product.from_dict(item)
        except KeyError as e:
            logger.warning("Skipping product missing %s in %s", e, filepath)
            continue
        out[p.id] = p
    return out


def load_transports(filepath: str | Path) -> TransportResolver:
    raw = safe_yaml_load(filepath, default={}) or {}
    if not isinstance(raw, dict):
        logger.error("Invalid transport table at %s", filepath)
        return TransportResolver()
    return TransportResolver.from_routes(
        raw.get("routes") or [],
        raw.get("modes") or {},
        domestic=raw.get("domestic"),
        fallback=raw.get("fallback"),
        initial=raw.get("initial"),
    )


def load_examples(filepath: str | Path) -> Dict[str, Dict[str, Any]]:
    """Named input scenarios: {name: {mass, material, product, countries}}."""
    out: Dict[str, Dict[str, Any]] = {}
    for item in load_list_from_yaml(filepath, "examples"):
        name = _opt_str(item.get("name"))
        if name and isinstance(item.get("inputs"), dict):
            out[name] = dict(item["inputs"])
    return out


def load_db_uncached(data_dir: str | Path) -> Db:
    base = Path(data_dir)
    if not base.is_dir():
        raise FileNotFoundError(
            f"Dataset directory not found: {base}. Set {DATA_DIR_ENV} or pass --data-dir."
        )
    db = Db(
        processes=load_processes(base / "processes.yml"),
        countries=load_countries(base / "countries.yml"),
        materials=load_materials(base / "materials.yml"),
        products=load_products(base / "products.yml"),
        transport=load_transports(base / "transports.yml"),
    )
    logger.info(
        "Loaded dataset %s: %d processes, %d countries, %d materials, %d products",
        base, len(db.processes), len(db.countries.codes()), len(db.materials), len(db.products),
    )
    return db.validate()


@lru_cache(maxsize=8)
def _load_db_cached(resolved: str) -> Db:
    return load_db_uncached(resolved)


def load_db(data_dir: str | Path | None = None) -> Db:
    """Load (once per directory) and validate the dataset."""
    base = Path(data_dir) if data_dir is not None else default_data_dir()
    return _load_db_cached(str(base.resolve()))


__all__ = [
    "DEFAULT_DATA_DIR",
    "DATA_DIR_ENV",
    "default_data_dir",
    "safe_yaml_load",
    "load_list_from_yaml",
    "load_processes",
    "load_countries",
    "load_materials",
    "load_products",
    "load_transports",
    "load_examples",
    "load_db_uncached",
    "load_db",
]
