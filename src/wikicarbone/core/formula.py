"""
Arithmetic rules of the life cycle, kept apart from the pipeline so each one can be checked on its own.
Masses flow backward: a stage must process more than it yields, so waste is added going upstream.
Emissions are then priced forward, per stage, once masses are settled. Everything here is plain
math on units; catalog lookups happen in the simulator.
"""
from __future__ import annotations

from typing import Optional, Tuple

from .models import InvalidInputError, ProcessRecord
from .units import Energy, Mass, apply_intensity


def generic_waste(waste_rate: float, base_mass: Mass) -> Tuple[Mass, Mass]:
    """Mass processed and waste produced when ``base_mass`` must come out of a stage.

    Waste is a relative increase: processed = base + base * rate.
    """
    waste = base_mass.scale(waste_rate)
    return base_mass + waste, waste


def making_waste(making_waste_rate: float, pcr_waste_rate: float, final_mass: Mass) -> Tuple[Mass, Mass]:
    """Making stage: mass = (m + m * making_rate) / (1 - pcr_rate); waste = mass - m."""
    if not 0.0 <= pcr_waste_rate < 1.0:
        raise InvalidInputError(f"PCR waste rate must be in [0, 1), got {pcr_waste_rate}")
    stage_mass = Mass((final_mass.kg + final_mass.kg * making_waste_rate) / (1.0 - pcr_waste_rate))
    return stage_mass, stage_mass - final_mass


def material_co2(climate_change: float, mass: Mass) -> float:
    return apply_intensity(climate_change, "kg", mass)


def knitting_kwh(elec_mj_per_kg: float, mass: Mass) -> Energy:
    """Knitted fabric: electricity proportional to mass."""
    return Energy.kilowatt_hours(Energy.megajoules(elec_mj_per_kg).in_kwh() * mass.in_kg())


def weaving_kwh(elec_pppm: float, ppm: int, grammage: int, mass: Mass) -> Energy:
    """Woven fabric: electricity per pick-per-metre over the woven area.

    kWh = (mass_g * ppm / grammage) * elec_pppm
    """
    if grammage <= 0:
        raise InvalidInputError(f"Woven products need a positive grammage, got {grammage}")
    return Energy.kilowatt_hours((mass.in_grams() * ppm / grammage) * elec_pppm)


def electricity_co2(electricity: Optional[ProcessRecord], kwh: Energy) -> float:
    """CO2 of consuming ``kwh`` on a country grid; zero when the grid is not modelled."""
    if electricity is None:
        return 0.0
    return apply_intensity(electricity.climate_change, electricity.unit, kwh)


def heat_co2(heat: Optional[ProcessRecord], mj: Energy) -> float:
    if heat is None:
        return 0.0
    return apply_intensity(heat.climate_change, heat.unit, mj)


def dyeing(
    dyeing_process: Optional[ProcessRecord],
    heat_process: Optional[ProcessRecord],
    electricity_process: Optional[ProcessRecord],
    mass: Mass,
) -> Tuple[float, Energy, Energy]:
    """Ennoblement: dyeing + heat + electricity terms.

    Returns (co2, heat MJ, electricity kWh). Each term is zero when the
    country lacks the matching process; energy demands come from the dyeing
    process so no dyeing process means no heat or electricity either.
    """
    if dyeing_process is None:
        return 0.0, Energy.megajoules(0.0), Energy.kilowatt_hours(0.0)
    dyeing_co2 = apply_intensity(dyeing_process.climate_change, "kg", mass)
    heat_mj = Energy.megajoules(dyeing_process.heat_mj * mass.in_kg())
    kwh = Energy.kilowatt_hours(Energy.megajoules(dyeing_process.elec_mj * mass.in_kg()).in_kwh())
    total = dyeing_co2 + heat_co2(heat_process, heat_mj) + electricity_co2(electricity_process, kwh)
    return total, heat_mj, kwh


def making(
    making_process: ProcessRecord,
    electricity_process: Optional[ProcessRecord],
    mass: Mass,
) -> Tuple[float, Energy]:
    """Making: process CO2 plus electricity on the local grid. Returns (co2, kWh)."""
    process_co2 = apply_intensity(making_process.climate_change, "kg", mass)
    kwh = Energy.kilowatt_hours(Energy.megajoules(making_process.elec_mj * mass.in_kg()).in_kwh())
    return process_co2 + electricity_co2(electricity_process, kwh), kwh


__all__ = [
    "generic_waste",
    "making_waste",
    "material_co2",
    "knitting_kwh",
    "weaving_kwh",
    "electricity_co2",
    "heat_co2",
    "dyeing",
    "making",
]
