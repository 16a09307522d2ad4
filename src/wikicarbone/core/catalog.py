"""Read-only lookups used by the engine.

Two lookup policies live here:
  - process UUIDs: a miss means the datasets are inconsistent, raise
    UnknownProcessError and let it propagate
  - country profiles: a miss is expected (not every country is modelled for
    every stage), return None and let callers contribute zero
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import (
    CountryProfile,
    InvalidInputError,
    Material,
    ProcessRecord,
    Product,
    UnknownProcessError,
)
from .transport import TransportResolver

logger = logging.getLogger(__name__)


class ProcessCatalog:
    """Immutable process table keyed by UUID."""

    __slots__ = ("_by_uuid",)

    def __init__(self, records: Iterable[ProcessRecord]):
        self._by_uuid: Dict[str, ProcessRecord] = {r.uuid: r for r in records}

    def get(self, uuid: str) -> ProcessRecord:
        try:
            return self._by_uuid[uuid]
        except KeyError:
            raise UnknownProcessError(f"Process '{uuid}' not found in catalog") from None

    def __contains__(self, uuid) -> bool:
        return uuid in self._by_uuid

    def __len__(self) -> int:
        return len(self._by_uuid)

    def __iter__(self):
        return iter(self._by_uuid.values())


class CountryProfiles:
    """Country table keyed by code, resolving each country's energy processes."""

    __slots__ = ("_by_code",)

    def __init__(self, profiles: Iterable[CountryProfile]):
        self._by_code: Dict[str, CountryProfile] = {p.code: p for p in profiles}

    def find(self, code: str) -> Optional[CountryProfile]:
        return self._by_code.get(code)

    def codes(self) -> List[str]:
        return list(self._by_code)

    def __contains__(self, code) -> bool:
        return code in self._by_code

    def _process(self, catalog: ProcessCatalog, code: str, attr: str) -> Optional[ProcessRecord]:
        profile = self.find(code)
        if profile is None:
            logger.debug("Country '%s' has no profile", code)
            return None
        uuid = getattr(profile, attr)
        if not uuid:
            logger.debug("Country '%s' has no %s", code, attr)
            return None
        return catalog.get(uuid)

    def electricity(self, catalog: ProcessCatalog, code: str) -> Optional[ProcessRecord]:
        return self._process(catalog, code, "electricity_process_uuid")

    def heat(self, catalog: ProcessCatalog, code: str) -> Optional[ProcessRecord]:
        return self._process(catalog, code, "heat_process_uuid")

    def dyeing(self, catalog: ProcessCatalog, code: str) -> Optional[ProcessRecord]:
        return self._process(catalog, code, "dyeing_process_uuid")


@dataclass(frozen=True)
class Db:
    """Everything the engine reads: processes, countries, catalogs, transport."""

    processes: ProcessCatalog
    countries: CountryProfiles
    materials: Dict[str, Material] = field(default_factory=dict)
    products: Dict[str, Product] = field(default_factory=dict)
    transport: TransportResolver = field(default_factory=TransportResolver)

    def material(self, material_id: str) -> Material:
        try:
            return self.materials[material_id]
        except KeyError:
            raise InvalidInputError(f"Unknown material '{material_id}'") from None

    def product(self, product_id: str) -> Product:
        try:
            return self.products[product_id]
        except KeyError:
            raise InvalidInputError(f"Unknown product '{product_id}'") from None

    def validate(self) -> "Db":
        """Check every process reference resolves; raises UnknownProcessError."""
        for m in self.materials.values():
            self.processes.get(m.process_uuid)
        for p in self.products.values():
            self.processes.get(p.fabric_process_uuid)
            self.processes.get(p.making_process_uuid)
        for code in self.countries.codes():
            profile = self.countries.find(code)
            for uuid in (
                profile.electricity_process_uuid,
                profile.heat_process_uuid,
                profile.dyeing_process_uuid,
            ):
                if uuid:
                    self.processes.get(uuid)
        for uuid in self.transport.mode_processes.values():
            self.processes.get(uuid)
        return self


__all__ = [
    "ProcessCatalog",
    "CountryProfiles",
    "Db",
]
