"""
Scheduling module.

A single re-armable timer drives spot polling; a separate daily trigger in the
exchange timezone drives the reference close refresh.
"""
