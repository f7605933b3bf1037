"""Stat normalization and fantasy scoring for the 100-point pick'em."""

__version__ = "0.1.0"
