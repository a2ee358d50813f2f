"""
Delta metrics module.

Session, monthly and annual absolute and percentage deltas of the spot
price against resolved reference closes.
"""

from .deltas import DeltaCalculator, horizon_delta

__all__ = ["DeltaCalculator", "horizon_delta"]
