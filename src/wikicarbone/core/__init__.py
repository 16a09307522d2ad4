"""
Core package.

The computation engine of the textile simulator. Submodules, leaf first:
  - units: Mass / Energy quantities
  - models: immutable records (processes, countries, materials, products) and errors
  - transport: transport summaries and the country-to-country resolver
  - catalog: read-only lookups (process catalog, country profiles, Db bundle)
  - io: YAML dataset loaders
  - step, lifecycle: the five production stages
  - formula: arithmetic rules of each stage
  - simulator: the ordered compute pipeline
  - inputs: user inputs and JSON (de)serialization
"""

from . import units, models, transport, catalog, io  # leaves
from . import step, lifecycle, formula, simulator, inputs  # engine

__all__ = [
    "units",
    "models",
    "transport",
    "catalog",
    "io",
    "step",
    "lifecycle",
    "formula",
    "simulator",
    "inputs",
]
