"""Adaptive static-analysis guard."""

__version__ = "0.3.0"
