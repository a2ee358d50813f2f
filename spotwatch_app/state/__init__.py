"""
Market status state machine and runtime record.

Layers a freeze-confirmation heuristic over the scheduled trading calendar:
OPEN ⇄ BREAK ⇄ CLOSED, with OPEN/BREAK → FROZEN after repeated identical
spot readings and FROZEN → scheduled status on the first price change.
"""
