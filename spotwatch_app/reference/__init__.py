"""
Reference close module.

Resolves calendar-anchored historical closes with bounded fallback over
non-trading days, and derives the deduplicated trading-day series used for
the median signal.
"""
