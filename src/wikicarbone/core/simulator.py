"""
Core simulator: a fixed, ordered pipeline of passes over the life cycle.

Each pass is a pure function (Simulator, Db) -> Simulator that reads the current state and
rewrites specific steps. Masses are settled first, walking backward from the finished product
(downstream waste decides how much upstream stages must process), then CO2 is priced per stage,
then transport, then the aggregate. Passes never accumulate into previous values, so running
compute on its own output gives the same result.

The order of PIPELINE is load-bearing: later passes read fields written by earlier ones.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Tuple

from . import formula
from .catalog import Db
from .lifecycle import LifeCycle
from .models import InvalidInputError, Material, Product
from .step import Label, Step, process_info_for, step_from_dict, step_to_dict
from .transport import TransportSummary, sum_summaries
from .units import Energy, Mass

logger = logging.getLogger(__name__)

UPSTREAM_OF_MAKING = (Label.MATERIAL_AND_SPINNING, Label.WEAVING_KNITTING, Label.ENNOBLEMENT)


@dataclass(frozen=True)
class Simulator:
    """Aggregate root: inputs plus the fully computed life cycle.

    Attributes:
        mass: finished product mass
        material: material the product is made of
        product: product definition (fabric, making, waste rates)
        life_cycle: the five steps
        co2: total score, kg CO2e
        transport: aggregate transport summary
    """
    mass: Mass
    material: Material
    product: Product
    life_cycle: LifeCycle = field(default_factory=LifeCycle.default)
    co2: float = 0.0
    transport: TransportSummary = field(default_factory=TransportSummary.default)

    def step(self, label: Label) -> Step:
        found = self.life_cycle.get_step(label)
        if found is None:
            raise KeyError(f"No step '{label.value}' in life cycle")
        return found

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mass": self.mass.in_kg(),
            "material": self.material.to_dict(),
            "product": self.product.to_dict(),
            "lifeCycle": [step_to_dict(s) for s in self.life_cycle],
            "co2": self.co2,
            "transport": self.transport.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Simulator":
        steps = payload["lifeCycle"]
        if not isinstance(steps, list):
            raise TypeError(f"lifeCycle must be a list, got {type(steps).__name__}")
        return cls(
            mass=Mass.kilograms(payload["mass"]),
            material=Material.from_dict(payload["material"]),
            product=Product.from_dict(payload["product"]),
            life_cycle=LifeCycle(tuple(step_from_dict(s) for s in steps)),
            co2=float(payload["co2"]),
            transport=TransportSummary.from_dict(payload["transport"]),
        )


def validate(simulator: Simulator) -> Simulator:
    """Boundary checks that would otherwise surface as NaN/inf deep in the pipeline."""
    kg = simulator.mass.in_kg()
    if kg != kg or kg in (float("inf"), float("-inf")) or kg < 0.0:
        raise InvalidInputError(f"Mass must be a finite non-negative number, got {kg}")
    pcr = simulator.product.pcr_waste
    if not 0.0 <= pcr < 1.0:
        raise InvalidInputError(
            f"Product '{simulator.product.id}' PCR waste rate must be in [0, 1), got {pcr}"
        )
    return simulator


# ===================================================================
#                      Pipeline passes (ordered)
# ===================================================================
def _set_life_cycle(simulator: Simulator, life_cycle: LifeCycle) -> Simulator:
    return replace(simulator, life_cycle=life_cycle)


def initialize_steps(simulator: Simulator, db: Db) -> Simulator:
    """1. Attach each step's country process info."""
    return _set_life_cycle(
        simulator,
        simulator.life_cycle.map(
            lambda s: replace(s, process_info=process_info_for(db, s.label, s.country))
        ),
    )


def seed_final_mass(simulator: Simulator, db: Db) -> Simulator:
    """2. Finished product mass goes on Distribution, the anchor of the backward walk."""
    return _set_life_cycle(
        simulator,
        simulator.life_cycle.update_step(
            Label.DISTRIBUTION,
            lambda s: replace(
                s,
                mass=simulator.mass,
                waste=Mass(0.0),
                co2=0.0,
                heat=Energy.megajoules(0.0),
                kwh=Energy.kilowatt_hours(0.0),
            ),
        ),
    )


def compute_making_waste(simulator: Simulator, db: Db) -> Simulator:
    """3. Making waste, then propagate the making mass to every upstream stage."""
    making_process = db.processes.get(simulator.product.making_process_uuid)
    final_mass = simulator.life_cycle.step_mass(Label.DISTRIBUTION)
    stage_mass, waste = formula.making_waste(making_process.waste, simulator.product.pcr_waste, final_mass)
    logger.debug("Making: %.6f kg in, %.6f kg waste", stage_mass.in_kg(), waste.in_kg())
    life_cycle = simulator.life_cycle.update_step(
        Label.MAKING, lambda s: replace(s, mass=stage_mass, waste=waste)
    ).update_steps(
        UPSTREAM_OF_MAKING, lambda s: replace(s, mass=stage_mass, waste=Mass(0.0))
    )
    return _set_life_cycle(simulator, life_cycle)


def compute_weaving_knitting_waste(simulator: Simulator, db: Db) -> Simulator:
    """4. Fabric waste is a property of the product's fabric process, not the country."""
    fabric_process = db.processes.get(simulator.product.fabric_process_uuid)
    base = simulator.life_cycle.step_mass(Label.MAKING)
    stage_mass, waste = formula.generic_waste(fabric_process.waste, base)
    logger.debug("Weaving/knitting: %.6f kg in, %.6f kg waste", stage_mass.in_kg(), waste.in_kg())
    life_cycle = simulator.life_cycle.update_step(
        Label.WEAVING_KNITTING, lambda s: replace(s, mass=stage_mass, waste=waste)
    ).update_step(
        Label.MATERIAL_AND_SPINNING, lambda s: replace(s, mass=stage_mass)
    )
    return _set_life_cycle(simulator, life_cycle)


def compute_material_waste(simulator: Simulator, db: Db) -> Simulator:
    """5. Material & spinning waste from the material process."""
    material_process = db.processes.get(simulator.material.process_uuid)
    base = simulator.life_cycle.step_mass(Label.WEAVING_KNITTING)
    stage_mass, waste = formula.generic_waste(material_process.waste, base)
    logger.debug("Material & spinning: %.6f kg in, %.6f kg waste", stage_mass.in_kg(), waste.in_kg())
    return _set_life_cycle(
        simulator,
        simulator.life_cycle.update_step(
            Label.MATERIAL_AND_SPINNING, lambda s: replace(s, mass=stage_mass, waste=waste)
        ),
    )


def compute_material_co2(simulator: Simulator, db: Db) -> Simulator:
    """6. Material CO2; no energy term at this stage."""
    material_process = db.processes.get(simulator.material.process_uuid)
    return _set_life_cycle(
        simulator,
        simulator.life_cycle.update_step(
            Label.MATERIAL_AND_SPINNING,
            lambda s: replace(
                s,
                co2=formula.material_co2(material_process.climate_change, s.mass),
                heat=Energy.megajoules(0.0),
                kwh=Energy.kilowatt_hours(0.0),
            ),
        ),
    )


def compute_weaving_knitting_co2(simulator: Simulator, db: Db) -> Simulator:
    """7. Electricity for knitting (per kg) or weaving (per pick-per-metre), priced on the local grid."""
    product = simulator.product
    fabric_process = db.processes.get(product.fabric_process_uuid)

    def _update(step: Step) -> Step:
        if product.knitted:
            # knitting is measured on the mass handed to ennoblement
            kwh = formula.knitting_kwh(fabric_process.elec_mj, simulator.life_cycle.step_mass(Label.ENNOBLEMENT))
        else:
            kwh = formula.weaving_kwh(fabric_process.elec_pppm, product.ppm, product.grammage, step.mass)
        electricity = db.countries.electricity(db.processes, step.country)
        return replace(
            step,
            co2=formula.electricity_co2(electricity, kwh),
            kwh=kwh,
            heat=Energy.megajoules(0.0),
        )

    return _set_life_cycle(simulator, simulator.life_cycle.update_step(Label.WEAVING_KNITTING, _update))


def compute_dyeing_co2(simulator: Simulator, db: Db) -> Simulator:
    """8. Ennoblement: dyeing process + heat + electricity, each zero when not modelled."""
    def _update(step: Step) -> Step:
        co2, heat_mj, kwh = formula.dyeing(
            db.countries.dyeing(db.processes, step.country),
            db.countries.heat(db.processes, step.country),
            db.countries.electricity(db.processes, step.country),
            step.mass,
        )
        return replace(step, co2=co2, heat=heat_mj, kwh=kwh)

    return _set_life_cycle(simulator, simulator.life_cycle.update_step(Label.ENNOBLEMENT, _update))


def compute_making_co2(simulator: Simulator, db: Db) -> Simulator:
    """9. Making process CO2 plus its electricity on the local grid."""
    making_process = db.processes.get(simulator.product.making_process_uuid)

    def _update(step: Step) -> Step:
        co2, kwh = formula.making(
            making_process,
            db.countries.electricity(db.processes, step.country),
            step.mass,
        )
        return replace(step, co2=co2, kwh=kwh, heat=Energy.megajoules(0.0))

    return _set_life_cycle(simulator, simulator.life_cycle.update_step(Label.MAKING, _update))


def compute_step_transport(simulator: Simulator, db: Db) -> Simulator:
    """10. Initial leg into the first step, then each downstream step's input mass from the upstream country."""
    first = simulator.life_cycle.as_list()[0]
    updated = [replace(first, transport=db.transport.initial_summary(db.processes, first.mass))]
    for upstream, downstream in simulator.life_cycle.transport_pairs():
        summary = db.transport.summary_between(db.processes, upstream.country, downstream.country, downstream.mass)
        updated.append(replace(downstream, transport=summary))
    return _set_life_cycle(simulator, LifeCycle(tuple(updated)))


def compute_transport_summary(simulator: Simulator, db: Db) -> Simulator:
    """11. Aggregate the per-step transport summaries."""
    return replace(simulator, transport=sum_summaries(s.transport for s in simulator.life_cycle))


def compute_final_co2_score(simulator: Simulator, db: Db) -> Simulator:
    """12. Sum of step CO2 plus aggregate transport CO2."""
    total = sum(s.co2 for s in simulator.life_cycle) + simulator.transport.co2
    logger.debug("Final score: %.6f kg CO2e", total)
    return replace(simulator, co2=total)


PIPELINE: Tuple[Callable[[Simulator, Db], Simulator], ...] = (
    initialize_steps,
    seed_final_mass,
    compute_making_waste,
    compute_weaving_knitting_waste,
    compute_material_waste,
    compute_material_co2,
    compute_weaving_knitting_co2,
    compute_dyeing_co2,
    compute_making_co2,
    compute_step_transport,
    compute_transport_summary,
    compute_final_co2_score,
)


def compute(db: Db, simulator: Simulator) -> Simulator:
    """Run every pass in order and return the computed simulator."""
    result = validate(simulator)
    for step_fn in PIPELINE:
        result = step_fn(result, db)
    return result


__all__ = [
    "Simulator",
    "PIPELINE",
    "compute",
    "validate",
    "initialize_steps",
    "seed_final_mass",
    "compute_making_waste",
    "compute_weaving_knitting_waste",
    "compute_material_waste",
    "compute_material_co2",
    "compute_weaving_knitting_co2",
    "compute_dyeing_co2",
    "compute_making_co2",
    "compute_step_transport",
    "compute_transport_summary",
    "compute_final_co2_score",
]
