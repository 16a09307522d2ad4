"""A single production stage of the life cycle."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional

from .transport import TransportSummary
from .units import Energy, Mass, zero_kwh, zero_mass, zero_mj


class Label(Enum):
    DEFAULT = "default"
    MATERIAL_AND_SPINNING = "material-spinning"
    WEAVING_KNITTING = "weaving-knitting"
    ENNOBLEMENT = "ennoblement"
    MAKING = "making"
    DISTRIBUTION = "distribution"

    @classmethod
    def from_token(cls, token) -> "Label":
        """Decode a label token; anything unknown maps to DEFAULT."""
        for label in cls:
            if label.value == token:
                return label
        return cls.DEFAULT

    @property
    def title(self) -> str:
        return LABEL_TITLES[self]


LABEL_TITLES = {
    Label.DEFAULT: "Default",
    Label.MATERIAL_AND_SPINNING: "Material & spinning",
    Label.WEAVING_KNITTING: "Weaving & knitting",
    Label.ENNOBLEMENT: "Ennoblement",
    Label.MAKING: "Making",
    Label.DISTRIBUTION: "Distribution",
}

# stages whose process info shows electricity / heat / dyeing
_ELECTRICITY_STAGES = {Label.WEAVING_KNITTING, Label.ENNOBLEMENT, Label.MAKING}
_HEAT_STAGES = {Label.ENNOBLEMENT}
_DYEING_STAGES = {Label.ENNOBLEMENT}


@dataclass(frozen=True)
class ProcessInfo:
    """Display names of the country processes used by a step."""

    electricity: Optional[str] = None
    heat: Optional[str] = None
    dyeing: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"electricity": self.electricity, "heat": self.heat, "dyeing": self.dyeing}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ProcessInfo":
        if not isinstance(payload, dict):
            raise TypeError(f"processInfo must be a mapping, got {type(payload).__name__}")
        def _opt(key):
            value = payload.get(key)
            return None if value is None else str(value)
        return cls(electricity=_opt("electricity"), heat=_opt("heat"), dyeing=_opt("dyeing"))


@dataclass(frozen=True)
class Step:
    label: Label
    country: str
    editable: bool = False
    mass: Mass = field(default_factory=zero_mass)
    waste: Mass = field(default_factory=zero_mass)
    transport: TransportSummary = field(default_factory=TransportSummary.default)
    co2: float = 0.0
    heat: Energy = field(default_factory=zero_mj)
    kwh: Energy = field(default_factory=zero_kwh)
    process_info: ProcessInfo = field(default_factory=ProcessInfo)

    @classmethod
    def create(cls, label: Label, editable: bool, country: str) -> "Step":
        if label == Label.MATERIAL_AND_SPINNING:
            transport = TransportSummary.default_initial()
        else:
            transport = TransportSummary.default()
        return cls(label=label, country=country, editable=editable, transport=transport)

    def with_mass(self, mass: Mass) -> "Step":
        return replace(self, mass=mass)


def process_info_for(db, label: Label, country: str) -> ProcessInfo:
    """Names of the electricity/heat/dyeing processes applicable at a stage.

    Ennoblement energy demand comes from the dyeing process, so a country
    without one shows no electricity or heat process there either.
    """
    countries, catalog = db.countries, db.processes

    def _name(lookup) -> Optional[str]:
        proc = lookup(catalog, country)
        return proc.name if proc is not None else None

    dyeing = _name(countries.dyeing) if label in _DYEING_STAGES else None
    if label == Label.ENNOBLEMENT and dyeing is None:
        return ProcessInfo()
    return ProcessInfo(
        electricity=_name(countries.electricity) if label in _ELECTRICITY_STAGES else None,
        heat=_name(countries.heat) if label in _HEAT_STAGES else None,
        dyeing=dyeing,
    )


def update_country(step: Step, country: str, db) -> Step:
    """Replace the country and refresh the display process info only."""
    return replace(step, country=country, process_info=process_info_for(db, step.label, country))


def step_to_dict(step: Step) -> Dict[str, Any]:
    return {
        "label": step.label.value,
        "country": step.country,
        "editable": step.editable,
        "mass": step.mass.in_kg(),
        "waste": step.waste.in_kg(),
        "transport": step.transport.to_dict(),
        "co2": step.co2,
        "heat": step.heat.in_mj(),
        "kwh": step.kwh.in_kwh(),
        "processInfo": step.process_info.to_dict(),
    }


def step_from_dict(payload: Dict[str, Any]) -> Step:
    if not isinstance(payload, dict):
        raise TypeError(f"Step must be a mapping, got {type(payload).__name__}")
    return Step(
        label=Label.from_token(payload.get("label")),
        country=str(payload["country"]),
        editable=bool(payload.get("editable", False)),
        mass=Mass.kilograms(payload["mass"]),
        waste=Mass.kilograms(payload["waste"]),
        transport=TransportSummary.from_dict(payload.get("transport") or {}),
        co2=float(payload["co2"]),
        heat=Energy.megajoules(payload["heat"]),
        kwh=Energy.kilowatt_hours(payload["kwh"]),
        process_info=ProcessInfo.from_dict(payload.get("processInfo") or {}),
    )


__all__ = [
    "Label",
    "LABEL_TITLES",
    "ProcessInfo",
    "Step",
    "process_info_for",
    "update_country",
    "step_to_dict",
    "step_from_dict",
]
