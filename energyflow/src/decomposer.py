"""
Flow decomposer: turns a BuildingSnapshot into a FlowResult.

First derives the signed net quantities:

- ``solar_net_kw = solar_export_kw - solar_import_kw`` (positive = surplus)
- ``grid_net_kw = total_import_kw - total_export_kw`` (positive = importing)

then splits house consumption into solar-covered and grid-covered shares
under one of four mutually exclusive regimes, checked in this order:

1. EXPORTING: solar producing and the grid boundary exporting.
2. SOLAR_ASSISTED: solar producing and the grid boundary importing.
3. SOLAR_CONSUMING: no net production, the solar point draws power.
4. GRID_ONLY: no net production and no solar-side draw.

Export vs. import is decided by the net grid meter alone, never by whether
solar is net-positive: self-consumption inside a complex can mask a solar
surplus at the grid boundary.

Outputs depend on the snapshot only.  No history, smoothing or hysteresis.

CHANGELOG:
- 2026-10-19: Treat non-finite charging as zero (STORY-114)
- 2026-10-19: Split no-production branch into SOLAR_CONSUMING and GRID_ONLY (STORY-108)
- 2026-10-19: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

import math

from energyflow.src.models import BuildingSnapshot, FlowRegime, FlowResult


def decompose(
    snapshot: BuildingSnapshot,
    charging_kw: float | None = None,
) -> FlowResult:
    """Decompose a building's aggregated totals into energy flows.

    Args:
        snapshot: Aggregated totals for one building at one instant.
        charging_kw: EV charging power to attribute to the house.  Defaults
            to ``snapshot.charging_kw``.  Negative or non-finite values
            count as zero.

    Returns:
        A FlowResult.  Defined for every input, including all-zero.
    """
    if charging_kw is None:
        charging_kw = snapshot.charging_kw
    if not math.isfinite(charging_kw) or charging_kw < 0:
        charging_kw = 0.0

    solar_net = snapshot.solar_export_kw - snapshot.solar_import_kw
    solar_production = max(solar_net, 0.0)
    solar_consumption = max(-solar_net, 0.0)

    grid_net = snapshot.total_import_kw - snapshot.total_export_kw
    grid_export = max(-grid_net, 0.0)

    solar_to_house = 0.0
    solar_to_grid = 0.0
    grid_to_house = 0.0

    if solar_production > 0 and grid_net < 0:
        regime = FlowRegime.EXPORTING
        # Export beyond what solar produced (e.g. another generator behind
        # the total meter) is not attributed to solar.
        solar_to_grid = min(grid_export, solar_production)
        solar_to_house = solar_production - solar_to_grid
        actual = solar_to_house + charging_kw
    elif solar_production > 0:
        regime = FlowRegime.SOLAR_ASSISTED
        solar_to_house = solar_production
        grid_to_house = grid_net
        actual = solar_to_house + grid_to_house + charging_kw
    else:
        regime = (
            FlowRegime.SOLAR_CONSUMING
            if solar_consumption > 0
            else FlowRegime.GRID_ONLY
        )
        grid_to_house = max(grid_net, 0.0)
        actual = grid_to_house + charging_kw + solar_consumption

    coverage = solar_production / actual * 100 if actual > 0 else 0.0

    return FlowResult(
        regime=regime,
        solar_net_kw=solar_net,
        solar_production_kw=solar_production,
        solar_consumption_kw=solar_consumption,
        grid_net_kw=grid_net,
        charging_kw=charging_kw,
        actual_house_consumption_kw=actual,
        solar_to_house_kw=solar_to_house,
        solar_to_grid_kw=solar_to_grid,
        grid_to_house_kw=grid_to_house,
        solar_coverage_pct=coverage,
        unattributed_export_kw=grid_export - solar_to_grid,
    )
