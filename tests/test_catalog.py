import pytest

from wikicarbone.core.catalog import ProcessCatalog
from wikicarbone.core.models import InvalidInputError, Material, UnknownProcessError


def test_process_lookup_miss_is_fatal(db):
    assert db.processes.get("MAT").climate_change == 2.0
    with pytest.raises(UnknownProcessError):
        db.processes.get("nope")


def test_country_profile_miss_is_none(db):
    assert db.countries.electricity(db.processes, "AA").name == "Grid AA"
    assert db.countries.electricity(db.processes, "ZZ") is None
    assert db.countries.heat(db.processes, "ZZ") is None
    assert db.countries.dyeing(db.processes, "XX") is None
    assert db.countries.find("XX") is None


def test_unknown_material_or_product_is_input_error(db):
    with pytest.raises(InvalidInputError):
        db.material("silk")
    with pytest.raises(InvalidInputError):
        db.product("hat")


def test_validate_rejects_dangling_references(db):
    from dataclasses import replace

    broken = replace(db, materials={"x": Material("x", "X", "MISSING")})
    with pytest.raises(UnknownProcessError):
        broken.validate()


def test_catalog_container_protocol(db):
    assert "MAKE" in db.processes
    assert len(db.processes) == 11
    assert isinstance(db.processes, ProcessCatalog)
    assert {p.uuid for p in db.processes} >= {"MAT", "DYE"}
