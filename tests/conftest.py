from pathlib import Path
import sys
import pytest
import yaml

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from wikicarbone.core.catalog import CountryProfiles, Db, ProcessCatalog
from wikicarbone.core.models import CountryProfile, Material, ProcessRecord, Product
from wikicarbone.core.transport import TransportResolver


@pytest.fixture(scope="session")
def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@pytest.fixture(scope="session")
def data_dir(repo_root: Path) -> Path:
    d = repo_root / "datasets" / "textile"
    if not d.exists():
        pytest.skip("datasets/textile directory not found; skipping data-dependent tests.")
    return d


@pytest.fixture(scope="session")
def yload():
    def _load(p: Path):
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    return _load


# Synthetic dataset with round numbers so expected values can be worked out by hand.
#   MAT   material  2.0 kgCO2e/kg, 2% waste
#   WEAVE weaving   10% waste, 0.001 kWh per pick-per-metre
#   KNIT  knitting  5% waste, 3.6 MJ (= 1 kWh) per kg
#   MAKE  making    0.5 kgCO2e/kg, 5% waste, 7.2 MJ (= 2 kWh) per kg
#   DYE   dyeing    1.0 kgCO2e/kg, 10 MJ heat and 3.6 MJ electricity per kg
#   grids: AA 0.5/kWh, BB 0.1/kWh; heat 0.1/MJ
#   ZZ has no electricity, heat or dyeing process
#   transport: AA-BB 100 km road + 1000 km sea, domestic 50 km road, fallback 10 km road,
#   initial leg into material & spinning 20 km road
PROCESSES = [
    ProcessRecord("MAT", "Material yarn", "kg", climate_change=2.0, waste=0.02),
    ProcessRecord("WEAVE", "Weaving", "kg", waste=0.1, elec_pppm=0.001),
    ProcessRecord("KNIT", "Knitting", "kg", waste=0.05, elec_mj=3.6),
    ProcessRecord("MAKE", "Making", "kg", climate_change=0.5, waste=0.05, elec_mj=7.2),
    ProcessRecord("DYE", "Dyeing", "kg", climate_change=1.0, heat_mj=10.0, elec_mj=3.6),
    ProcessRecord("ELEC_A", "Grid AA", "kWh", climate_change=0.5),
    ProcessRecord("ELEC_B", "Grid BB", "kWh", climate_change=0.1),
    ProcessRecord("HEAT", "Steam", "MJ", climate_change=0.1),
    ProcessRecord("ROAD", "Truck", "t.km", climate_change=0.2),
    ProcessRecord("SEA", "Ship", "t.km", climate_change=0.01),
    ProcessRecord("AIR", "Plane", "t.km", climate_change=1.0),
]

COUNTRIES = [
    CountryProfile("AA", "Country A", "ELEC_A", "HEAT", "DYE"),
    CountryProfile("BB", "Country B", "ELEC_B", "HEAT", "DYE"),
    CountryProfile("ZZ", "Unmodelled"),
    CountryProfile("CN", "Default upstream", "ELEC_A", "HEAT", "DYE"),
    CountryProfile("FR", "Default market", "ELEC_B", "HEAT", "DYE"),
]

MATERIALS = {"mat": Material("mat", "Material", "MAT")}

PRODUCTS = {
    "woven": Product("woven", "Woven", 0.17, "WEAVE", "MAKE", knitted=False, pcr_waste=0.0, ppm=1000, grammage=200),
    "knitted": Product("knitted", "Knitted", 0.17, "KNIT", "MAKE", knitted=True),
    "recycled": Product("recycled", "With PCR waste", 0.2, "WEAVE", "MAKE", pcr_waste=0.1, ppm=1000, grammage=200),
}


def make_db(**overrides) -> Db:
    kwargs = dict(
        processes=ProcessCatalog(PROCESSES),
        countries=CountryProfiles(COUNTRIES),
        materials=dict(MATERIALS),
        products=dict(PRODUCTS),
        transport=TransportResolver.from_routes(
            [{"from": "AA", "to": "BB", "road": 100, "sea": 1000}],
            {"road": "ROAD", "sea": "SEA", "air": "AIR"},
            domestic={"road": 50},
            fallback={"road": 10},
            initial={"road": 20},
        ),
    )
    kwargs.update(overrides)
    return Db(**kwargs)


@pytest.fixture
def db() -> Db:
    return make_db().validate()
