"""
Price feed collaborators.

Spot and historical-close sources consumed by the poller and the reference
resolver, plus the payload parsers for the metals feed.
"""
