"""User inputs and (de)serialization.

Inputs are the only editable state. A Simulator is always rebuilt from them
and recomputed, so there is no stored derived value that can go stale.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .catalog import Db
from .lifecycle import STAGE_ORDER, LifeCycle
from .models import DecodeError, InvalidInputError
from .simulator import Simulator, compute
from .step import update_country
from .units import Mass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Inputs:
    """mass (kg), material id, product id and per-stage countries (stage order)."""
    mass: float
    material: str
    product: str
    countries: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mass": self.mass,
            "material": self.material,
            "product": self.product,
            "countries": list(self.countries),
        }


def from_inputs(db: Db, inputs: Inputs) -> Simulator:
    """Validate inputs, build a Simulator and compute it."""
    if len(inputs.countries) > len(STAGE_ORDER):
        raise InvalidInputError(
            f"At most {len(STAGE_ORDER)} countries expected, got {len(inputs.countries)}"
        )
    material = db.material(inputs.material)
    product = db.product(inputs.product)

    life_cycle = LifeCycle.default()
    for label, country in zip(STAGE_ORDER, inputs.countries):
        if country not in db.countries:
            raise InvalidInputError(f"Unknown country '{country}' for stage '{label.value}'")
        life_cycle = life_cycle.update_step(label, lambda s, c=country: update_country(s, c, db))

    try:
        mass = Mass.kilograms(inputs.mass)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Invalid mass {inputs.mass!r}: {e}") from None

    simulator = Simulator(mass=mass, material=material, product=product, life_cycle=life_cycle)
    return compute(db, simulator)


def to_inputs(simulator: Simulator) -> Inputs:
    return Inputs(
        mass=simulator.mass.in_kg(),
        material=simulator.material.id,
        product=simulator.product.id,
        countries=simulator.life_cycle.countries(),
    )


def update_inputs(inputs: Inputs, **changes) -> Inputs:
    return replace(inputs, **changes)


# ===================================================================
#                           Wire format
# ===================================================================
def encode(simulator: Simulator) -> Dict[str, Any]:
    return simulator.to_dict()


def decode(payload: Any) -> Simulator:
    """Rebuild a Simulator from its encoded mapping; raises DecodeError.

    An unknown step label token decodes to ``Label.DEFAULT``, but a life
    cycle must hold the five production stages in order, so a payload with
    such a step is still rejected as a whole.
    """
    if not isinstance(payload, dict):
        raise DecodeError(f"Simulator payload must be a mapping, got {type(payload).__name__}")
    try:
        return Simulator.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Invalid simulator payload: {e}") from e


def dumps(simulator: Simulator, **kwargs) -> str:
    return json.dumps(encode(simulator), **kwargs)


def loads(text: str) -> Simulator:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}") from e
    return decode(payload)


def encode_inputs(inputs: Inputs) -> Dict[str, Any]:
    return inputs.to_dict()


def decode_inputs(payload: Any) -> Inputs:
    """Parse the input shape ``{mass, material, product, countries}``."""
    if not isinstance(payload, dict):
        raise DecodeError(f"Inputs payload must be a mapping, got {type(payload).__name__}")
    try:
        countries = payload.get("countries") or []
        if not isinstance(countries, list):
            raise TypeError("'countries' must be a list")
        return Inputs(
            mass=float(payload["mass"]),
            material=str(payload["material"]),
            product=str(payload["product"]),
            countries=[str(c) for c in countries],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Invalid inputs payload: {e}") from e


def inputs_from_json(text: str) -> Inputs:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON: {e}") from e
    return decode_inputs(payload)


def default_inputs(db: Db, product_id: Optional[str] = None, material_id: Optional[str] = None) -> Inputs:
    """Inputs for a product at its default mass with default countries."""
    product = db.product(product_id) if product_id else next(iter(db.products.values()))
    material = db.material(material_id) if material_id else next(iter(db.materials.values()))
    return Inputs(
        mass=product.mass,
        material=material.id,
        product=product.id,
        countries=LifeCycle.default().countries(),
    )


__all__ = [
    "Inputs",
    "from_inputs",
    "to_inputs",
    "update_inputs",
    "encode",
    "decode",
    "dumps",
    "loads",
    "encode_inputs",
    "decode_inputs",
    "inputs_from_json",
    "default_inputs",
]
