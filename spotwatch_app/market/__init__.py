"""
Market calendar module.

Computes the weekly scheduled trading window in the exchange timezone and
the scheduled status (open, break, closed) for any instant.
"""
