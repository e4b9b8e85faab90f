"""Routing — pattern compilation, conditions, mapping tables, and filters.

Mappings are registered on a controller during setup and tried in
priority order on every dispatch; nothing here holds per-request state.
"""
