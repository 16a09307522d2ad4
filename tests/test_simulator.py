import pytest
from dataclasses import replace

from wikicarbone.core.inputs import Inputs, from_inputs
from wikicarbone.core.lifecycle import STAGE_ORDER
from wikicarbone.core.models import InvalidInputError, UnknownProcessError
from wikicarbone.core.simulator import PIPELINE, Simulator, compute
from wikicarbone.core.step import Label
from wikicarbone.core.units import Mass

ALL_AA = ["AA", "AA", "AA", "AA", "AA"]


def _sim(db, product="woven", countries=ALL_AA, mass=0.17):
    return from_inputs(db, Inputs(mass=mass, material="mat", product=product, countries=list(countries)))


def test_masses_walk_backward_from_finished_product(db):
    sim = _sim(db)
    lc = sim.life_cycle
    # making: 0.17 * 1.05
    assert lc.step_mass(Label.MAKING).in_kg() == pytest.approx(0.1785)
    assert sim.step(Label.MAKING).waste.in_kg() == pytest.approx(0.0085)
    # ennoblement carries the making mass, no waste of its own
    assert lc.step_mass(Label.ENNOBLEMENT).in_kg() == pytest.approx(0.1785)
    assert sim.step(Label.ENNOBLEMENT).waste == Mass(0.0)
    # weaving: +10%
    assert lc.step_mass(Label.WEAVING_KNITTING).in_kg() == pytest.approx(0.19635)
    assert sim.step(Label.WEAVING_KNITTING).waste.in_kg() == pytest.approx(0.01785)
    # material: +2%
    assert lc.step_mass(Label.MATERIAL_AND_SPINNING).in_kg() == pytest.approx(0.200277)
    assert sim.step(Label.MATERIAL_AND_SPINNING).waste.in_kg() == pytest.approx(0.0039270)
    # distribution is exactly the product mass
    assert lc.step_mass(Label.DISTRIBUTION) == Mass(0.17)


def test_mass_is_monotonic_upstream(db):
    for product in ("woven", "knitted", "recycled"):
        sim = _sim(db, product=product)
        masses = [s.mass.in_kg() for s in sim.life_cycle]
        assert all(a >= b for a, b in zip(masses, masses[1:])), product
        assert all(s.waste.in_kg() >= 0.0 for s in sim.life_cycle)


def test_pcr_waste_raises_making_mass(db):
    sim = _sim(db, product="recycled", mass=0.2)
    assert sim.step(Label.MAKING).mass.in_kg() == pytest.approx(0.21 / 0.9)


def test_stage_co2_for_woven_product(db):
    sim = _sim(db)
    # material: 2.0 * 0.200277
    assert sim.step(Label.MATERIAL_AND_SPINNING).co2 == pytest.approx(0.400554)
    # weaving: 196.35 g * 1000 / 200 * 0.001 kWh = 0.98175 kWh at 0.5
    weaving = sim.step(Label.WEAVING_KNITTING)
    assert weaving.kwh.in_kwh() == pytest.approx(0.98175)
    assert weaving.co2 == pytest.approx(0.490875)
    # ennoblement: dyeing 0.1785 + heat 1.785 MJ * 0.1 + 0.1785 kWh * 0.5
    ennoblement = sim.step(Label.ENNOBLEMENT)
    assert ennoblement.heat.in_mj() == pytest.approx(1.785)
    assert ennoblement.kwh.in_kwh() == pytest.approx(0.1785)
    assert ennoblement.co2 == pytest.approx(0.1785 + 0.1785 + 0.08925)
    # making: 0.5 * 0.1785 + 2 kWh/kg * 0.1785 * 0.5
    making = sim.step(Label.MAKING)
    assert making.kwh.in_kwh() == pytest.approx(0.357)
    assert making.co2 == pytest.approx(0.08925 + 0.1785)
    assert sim.step(Label.DISTRIBUTION).co2 == 0.0


def test_knitted_electricity_uses_ennoblement_mass(db):
    sim = _sim(db, product="knitted")
    weaving = sim.step(Label.WEAVING_KNITTING)
    ennoblement_mass = sim.life_cycle.step_mass(Label.ENNOBLEMENT).in_kg()
    assert weaving.kwh.in_kwh() == pytest.approx(ennoblement_mass * 1.0)
    assert weaving.co2 == pytest.approx(ennoblement_mass * 0.5)


def test_transport_and_final_score(db):
    sim = _sim(db)
    steps = sim.life_cycle.as_list()
    # initial leg: 20 km road on the material & spinning mass
    assert steps[0].transport.road == 20.0
    assert steps[0].transport.co2 > 0.0
    assert steps[0].transport.co2 == pytest.approx(steps[0].mass.in_tonnes() * 20.0 * 0.2)
    # domestic legs: 50 km road at 0.2 per t.km on the downstream mass
    for step in steps[1:]:
        assert step.transport.road == 50.0
        assert step.transport.co2 == pytest.approx(step.mass.in_tonnes() * 50.0 * 0.2)
    assert sim.transport.road == 220.0
    assert sim.transport.co2 == pytest.approx(sum(s.transport.co2 for s in steps))
    assert sim.co2 == pytest.approx(sum(s.co2 for s in steps) + sim.transport.co2)


def test_compute_is_idempotent(db):
    sim = _sim(db, countries=["AA", "BB", "ZZ", "BB", "AA"])
    assert compute(db, sim) == sim
    assert compute(db, compute(db, sim)) == sim


def test_co2_is_never_negative(db):
    for countries in (ALL_AA, ["BB"] * 5, ["ZZ"] * 5, ["AA", "ZZ", "BB", "ZZ", "AA"]):
        sim = _sim(db, countries=countries)
        assert all(s.co2 >= 0.0 for s in sim.life_cycle)
        assert sim.co2 >= 0.0


def test_unmodelled_country_contributes_zero(db):
    sim = _sim(db, countries=["AA", "AA", "ZZ", "ZZ", "AA"])
    ennoblement = sim.step(Label.ENNOBLEMENT)
    assert ennoblement.co2 == 0.0
    assert ennoblement.heat.in_mj() == 0.0
    assert ennoblement.kwh.in_kwh() == 0.0
    assert ennoblement.process_info.electricity is None
    assert ennoblement.process_info.heat is None
    assert ennoblement.process_info.dyeing is None
    making = sim.step(Label.MAKING)
    # process term only, no grid term
    assert making.co2 == pytest.approx(0.5 * making.mass.in_kg())
    assert making.process_info.electricity is None


def test_changing_one_country_only_moves_that_stage(db):
    base = _sim(db, countries=ALL_AA)
    moved = _sim(db, countries=["AA", "AA", "BB", "AA", "AA"])
    for label in STAGE_ORDER:
        assert base.step(label).mass == moved.step(label).mass
        assert base.step(label).waste == moved.step(label).waste
        if label != Label.ENNOBLEMENT:
            assert base.step(label).co2 == moved.step(label).co2
            assert base.step(label).process_info == moved.step(label).process_info
    b, m = base.step(Label.ENNOBLEMENT), moved.step(Label.ENNOBLEMENT)
    # dyeing and heat identical, electricity 0.5 -> 0.1 per kWh
    assert b.co2 - m.co2 == pytest.approx(b.kwh.in_kwh() * (0.5 - 0.1))
    assert m.process_info.electricity == "Grid BB"


def test_pipeline_has_twelve_ordered_passes():
    names = [f.__name__ for f in PIPELINE]
    assert len(names) == 12
    assert names.index("seed_final_mass") < names.index("compute_making_waste")
    assert names.index("compute_material_waste") < names.index("compute_material_co2")
    assert names[-1] == "compute_final_co2_score"


def test_invalid_simulators_are_rejected(db):
    sim = _sim(db)
    with pytest.raises(InvalidInputError):
        compute(db, replace(sim, mass=Mass(-1.0)))
    with pytest.raises(InvalidInputError):
        compute(db, replace(sim, mass=Mass(float("nan"))))
    with pytest.raises(InvalidInputError):
        compute(db, replace(sim, product=replace(sim.product, pcr_waste=1.0)))


def test_unknown_process_uuid_propagates(db):
    sim = _sim(db)
    broken = replace(sim, material=replace(sim.material, process_uuid="MISSING"))
    with pytest.raises(UnknownProcessError):
        compute(db, broken)


def test_simulator_step_raises_for_missing_label(db):
    sim = _sim(db)
    assert isinstance(sim, Simulator)
    with pytest.raises(KeyError):
        sim.step(Label.DEFAULT)
