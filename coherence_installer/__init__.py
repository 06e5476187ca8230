"""Coherence installer -- generates the Coherence setup of a Phoenix project."""

__version__ = "0.3.0"
