"""
Energy-flow attribution engine for the building-operations dashboard.

Turns independently sampled meter telemetry (total grid meter, solar meter,
chargers) into a per-building decomposition of power flow: solar to house,
solar to grid, grid to house, and, for buildings inside a complex, how much
grid import could be covered by siblings' exported solar.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-101)

TODO:
- None
"""
