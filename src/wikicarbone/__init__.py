"""Textile life-cycle CO2 simulator."""

__version__ = "0.1.0"
