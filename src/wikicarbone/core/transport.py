"""Transport summaries and the country-to-country resolver.

A summary holds the kilometres travelled per mode (road, sea, air) and the
resulting kg CO2e. Emissions use the mode processes of the catalog, whose
climate_change is expressed per tonne-kilometre.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .units import Mass

logger = logging.getLogger(__name__)

MODES = ("road", "sea", "air")

# raw fibre shipped to the spinning mill, used when a dataset sets no `initial` leg
INITIAL_DISTANCES = {"road": 500.0, "sea": 0.0, "air": 0.0}


@dataclass(frozen=True)
class TransportSummary:
    road: float = 0.0
    sea: float = 0.0
    air: float = 0.0
    co2: float = 0.0

    @classmethod
    def default(cls) -> "TransportSummary":
        return cls()

    @classmethod
    def default_initial(cls) -> "TransportSummary":
        """First-stage leg before pricing: fibre to the spinning mill, no CO2 yet."""
        return cls(co2=0.0, **INITIAL_DISTANCES)

    def distance(self, mode: str) -> float:
        return float(getattr(self, mode))

    def __add__(self, other: "TransportSummary") -> "TransportSummary":
        if not isinstance(other, TransportSummary):
            return NotImplemented
        return TransportSummary(
            road=self.road + other.road,
            sea=self.sea + other.sea,
            air=self.air + other.air,
            co2=self.co2 + other.co2,
        )

    def to_dict(self) -> Dict[str, float]:
        return {"road": self.road, "sea": self.sea, "air": self.air, "co2": self.co2}

    @classmethod
    def from_dict(cls, payload: Dict[str, float]) -> "TransportSummary":
        if not isinstance(payload, dict):
            raise TypeError(f"Transport summary must be a mapping, got {type(payload).__name__}")
        return cls(
            road=float(payload.get("road", 0.0)),
            sea=float(payload.get("sea", 0.0)),
            air=float(payload.get("air", 0.0)),
            co2=float(payload.get("co2", 0.0)),
        )


def sum_summaries(summaries: Iterable[TransportSummary]) -> TransportSummary:
    total = TransportSummary()
    for s in summaries:
        total = total + s
    return total


def _pair(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a <= b else (b, a)


@dataclass(frozen=True)
class TransportResolver:
    """Distances between countries plus the process used for each mode.

    Routes are symmetric. Same-country legs use ``domestic``; unknown pairs
    use ``fallback``. ``initial`` is the leg into the first stage (fibre to
    the spinning mill), which has no upstream country.
    """

    routes: Dict[Tuple[str, str], Dict[str, float]] = field(default_factory=dict)
    mode_processes: Dict[str, str] = field(default_factory=dict)
    domestic: Dict[str, float] = field(default_factory=lambda: {"road": 500.0})
    fallback: Dict[str, float] = field(default_factory=lambda: {"road": 1000.0, "sea": 15000.0})
    initial: Dict[str, float] = field(default_factory=lambda: dict(INITIAL_DISTANCES))

    @classmethod
    def from_routes(
        cls,
        routes: Iterable[Dict],
        mode_processes: Dict[str, str],
        domestic: Optional[Dict[str, float]] = None,
        fallback: Optional[Dict[str, float]] = None,
        initial: Optional[Dict[str, float]] = None,
    ) -> "TransportResolver":
        table: Dict[Tuple[str, str], Dict[str, float]] = {}
        for r in routes or []:
            a = str(r["from"]).upper()
            b = str(r["to"]).upper()
            table[_pair(a, b)] = {m: float(r.get(m, 0.0) or 0.0) for m in MODES}
        kwargs = {}
        for key, value in (("domestic", domestic), ("fallback", fallback), ("initial", initial)):
            if value is not None:
                kwargs[key] = {m: float(value.get(m, 0.0) or 0.0) for m in MODES}
        return cls(routes=table, mode_processes=dict(mode_processes or {}), **kwargs)

    def distances_between(self, country_from: str, country_to: str) -> Dict[str, float]:
        if country_from == country_to:
            return dict(self.domestic)
        found = self.routes.get(_pair(country_from, country_to))
        if found is None:
            logger.debug("No route %s -> %s; using fallback distances", country_from, country_to)
            return dict(self.fallback)
        return dict(found)

    def summary_for(self, catalog, distances: Dict[str, float], mass: Mass) -> TransportSummary:
        """Price ``distances`` (km per mode) for shipping ``mass``."""
        tonnes = mass.in_tonnes()
        co2 = 0.0
        for mode in MODES:
            km = float(distances.get(mode, 0.0) or 0.0)
            if km <= 0.0:
                continue
            uuid = self.mode_processes.get(mode)
            if not uuid:
                raise KeyError(f"No transport process configured for mode '{mode}'")
            co2 += catalog.get(uuid).climate_change * tonnes * km
        return TransportSummary(
            road=float(distances.get("road", 0.0) or 0.0),
            sea=float(distances.get("sea", 0.0) or 0.0),
            air=float(distances.get("air", 0.0) or 0.0),
            co2=co2,
        )

    def summary_between(self, catalog, country_from: str, country_to: str, mass: Mass) -> TransportSummary:
        return self.summary_for(catalog, self.distances_between(country_from, country_to), mass)

    def initial_summary(self, catalog, mass: Mass) -> TransportSummary:
        return self.summary_for(catalog, self.initial, mass)


__all__ = [
    "MODES",
    "INITIAL_DISTANCES",
    "TransportSummary",
    "TransportResolver",
    "sum_summaries",
]
