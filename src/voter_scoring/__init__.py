"""Voter participation scoring engine and batch recomputation pipeline."""

__version__ = "0.1.0"
