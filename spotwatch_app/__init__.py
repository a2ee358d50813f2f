"""
Spotwatch - Market Status Engine

Polls a spot-price feed for a single traded commodity and decides whether
the market is open, on a scheduled break, closed, or unexpectedly frozen.
Maintains session, monthly and annual deltas against calendar-anchored
reference closes.
"""

__version__ = "0.1.0"
__author__ = "Spotwatch Team"
