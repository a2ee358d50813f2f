"""
Utility functions module.

Time Semantics:
- All instants inside the engine are timezone-aware; naive values are
  treated as UTC
- Calendar arithmetic happens in the exchange timezone, resolving the UTC
  offset for the specific date in question through the tz database
- Calendar dates for reference closes are exchange-local dates
"""
