"""
Event store boundary for the admin API.

Design intent:
- Run one parameterized statement per operation against the events table.
- Bind every externally supplied value; never interpolate it into SQL text.
- Surface missing rows and empty patches as typed errors for the router.
"""
