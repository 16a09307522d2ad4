"""Shared domain records and error types.

All records are frozen: catalogs hand them out by reference and nothing
downstream is allowed to modify them.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ===================================================================
#                             Errors
# ===================================================================
class UnknownProcessError(KeyError):
    """A process UUID is not in the catalog. Datasets are inconsistent; not recoverable."""


class InvalidInputError(ValueError):
    """User inputs rejected at the boundary (bad mass, rates, ids...)."""


class DecodeError(ValueError):
    """Serialized simulator or inputs could not be decoded."""


# ===================================================================
#                           Data Models
# ===================================================================
@dataclass(frozen=True)
class ProcessRecord:
    """One process of the impact database.

    climate_change is expressed per ``unit`` (kg CO2e/kg, /kWh, /MJ or /t.km).
    elec_mj and heat_mj are demands per kg processed; elec_pppm is the weaving
    electricity in kWh per pick-per-metre.
    """

    uuid: str
    name: str
    unit: str = "kg"
    climate_change: float = 0.0
    waste: float = 0.0
    elec_mj: float = 0.0
    heat_mj: float = 0.0
    elec_pppm: float = 0.0


@dataclass(frozen=True)
class CountryProfile:
    code: str
    name: str
    electricity_process_uuid: Optional[str] = None
    heat_process_uuid: Optional[str] = None
    dyeing_process_uuid: Optional[str] = None


@dataclass(frozen=True)
class Material:
    id: str
    name: str
    process_uuid: str
    category: str = "natural"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Material":
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            process_uuid=str(payload["process_uuid"]),
            category=str(payload.get("category") or "natural"),
        )


@dataclass(frozen=True)
class Product:
    """Product definition: default mass, fabric and making processes.

    ppm is the stitch density (picks per metre) and grammage the fabric
    weight in g/m²; both only matter for woven products.
    """

    id: str
    name: str
    mass: float
    fabric_process_uuid: str
    making_process_uuid: str
    knitted: bool = False
    pcr_waste: float = 0.0
    ppm: int = 0
    grammage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Product":
        return cls(
            id=str(payload["id"]),
            name=str(payload["name"]),
            mass=float(payload["mass"]),
            fabric_process_uuid=str(payload["fabric_process_uuid"]),
            making_process_uuid=str(payload["making_process_uuid"]),
            knitted=bool(payload.get("knitted", False)),
            pcr_waste=float(payload.get("pcr_waste", 0.0)),
            ppm=int(payload.get("ppm", 0)),
            grammage=int(payload.get("grammage", 0)),
        )


__all__ = [
    "UnknownProcessError",
    "InvalidInputError",
    "DecodeError",
    "ProcessRecord",
    "CountryProfile",
    "Material",
    "Product",
]
