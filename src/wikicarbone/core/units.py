"""Physical quantities used by the engine.

Mass is always carried in kilograms. Energy keeps the unit it was built in
(kWh or MJ) so a value read back from JSON compares equal to the one that was
written; conversions go through ``in_kwh()`` / ``in_mj()``.
"""
from __future__ import annotations

from dataclasses import dataclass

MJ_PER_KWH = 3.6

KWH = "kWh"
MJ = "MJ"


@dataclass(frozen=True, order=True)
class Mass:
    """Mass in kilograms."""

    kg: float = 0.0

    @classmethod
    def kilograms(cls, value: float) -> "Mass":
        return cls(float(value))

    @classmethod
    def grams(cls, value: float) -> "Mass":
        return cls(float(value) / 1000.0)

    def in_kg(self) -> float:
        return self.kg

    def in_grams(self) -> float:
        return self.kg * 1000.0

    def in_tonnes(self) -> float:
        return self.kg / 1000.0

    def __add__(self, other):
        if not isinstance(other, Mass):
            raise TypeError(f"cannot add {type(other).__name__} to Mass")
        return Mass(self.kg + other.kg)

    def __sub__(self, other):
        if not isinstance(other, Mass):
            raise TypeError(f"cannot subtract {type(other).__name__} from Mass")
        return Mass(self.kg - other.kg)

    def scale(self, factor: float) -> "Mass":
        return Mass(self.kg * float(factor))


@dataclass(frozen=True)
class Energy:
    """Energy quantity tagged with its unit (``kWh`` or ``MJ``)."""

    value: float = 0.0
    unit: str = KWH

    def __post_init__(self):
        if self.unit not in (KWH, MJ):
            raise ValueError(f"Unsupported energy unit: {self.unit!r}")

    @classmethod
    def kilowatt_hours(cls, value: float) -> "Energy":
        return cls(float(value), KWH)

    @classmethod
    def megajoules(cls, value: float) -> "Energy":
        return cls(float(value), MJ)

    def in_kwh(self) -> float:
        if self.unit == KWH:
            return self.value
        return self.value / MJ_PER_KWH

    def in_mj(self) -> float:
        if self.unit == MJ:
            return self.value
        return self.value * MJ_PER_KWH

    def _in(self, unit: str) -> float:
        return self.in_kwh() if unit == KWH else self.in_mj()

    def __add__(self, other):
        if not isinstance(other, Energy):
            raise TypeError(f"cannot add {type(other).__name__} to Energy")
        return Energy(self.value + other._in(self.unit), self.unit)

    def __sub__(self, other):
        if not isinstance(other, Energy):
            raise TypeError(f"cannot subtract {type(other).__name__} from Energy")
        return Energy(self.value - other._in(self.unit), self.unit)

    def scale(self, factor: float) -> "Energy":
        return Energy(self.value * float(factor), self.unit)


def zero_mass() -> Mass:
    return Mass(0.0)


def zero_kwh() -> Energy:
    return Energy(0.0, KWH)


def zero_mj() -> Energy:
    return Energy(0.0, MJ)


def apply_intensity(climate_change: float, unit: str, amount) -> float:
    """kg CO2e for ``amount`` of a flow measured in ``unit``.

    ``climate_change`` is the intensity per unit (kg CO2e/kg, /kWh, /MJ).
    The amount must match the unit's dimension: a Mass for ``kg``, an Energy
    for ``kWh``/``MJ``.
    """
    if unit == "kg":
        if not isinstance(amount, Mass):
            raise TypeError(f"intensity per kg needs a Mass, got {type(amount).__name__}")
        return climate_change * amount.in_kg()
    if unit in (KWH, MJ):
        if not isinstance(amount, Energy):
            raise TypeError(f"intensity per {unit} needs an Energy, got {type(amount).__name__}")
        return climate_change * amount._in(unit)
    raise ValueError(f"Unsupported intensity unit: {unit!r}")


__all__ = [
    "MJ_PER_KWH",
    "KWH",
    "MJ",
    "Mass",
    "Energy",
    "zero_mass",
    "zero_kwh",
    "zero_mj",
    "apply_intensity",
]
