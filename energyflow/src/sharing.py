"""
Complex sharing estimator for buildings inside a multi-building complex.

For an import-positive building, estimates how much of its grid draw could
instead be served by the solar its siblings are exporting at the same
instant.  The result is informational capacity attribution: nothing in the
metering proves which building's export reached which consumer, so it must
not be used as settlement-grade billing input.

Absence of a result (``None``) means "not applicable": the building is not
importing, or no sibling is exporting.  Division only happens when
``grid_net_kw > 0``.

CHANGELOG:
- 2026-10-19: Add estimate_building_sharing (STORY-106)
- 2026-10-19: Initial creation (STORY-104)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from energyflow.src.directory import find_complex
from energyflow.src.models import (
    Building,
    ComplexSharingResult,
    FlowResult,
    SharingContributor,
)

logger = logging.getLogger(__name__)


def estimate_sharing(
    building_id: str,
    complex_members: Iterable[str],
    per_building_flow: Mapping[str, FlowResult],
) -> ComplexSharingResult | None:
    """Estimate the sibling-solar share of a building's grid import.

    Args:
        building_id: The building whose import is being attributed.
        complex_members: All member ids of the building's complex.  The
            building itself may be listed; it is skipped.
        per_building_flow: Decomposition of each building at the same instant.
            Members missing from the map contribute nothing.

    Returns:
        A ComplexSharingResult, or ``None`` when the building is not importing
        or no sibling exports solar.
    """
    own = per_building_flow.get(building_id)
    if own is None or own.grid_net_kw <= 0:
        return None
    grid_net = own.grid_net_kw

    contributors: list[SharingContributor] = []
    seen: set[str] = {building_id}
    for member_id in complex_members:
        if member_id in seen:
            continue
        seen.add(member_id)
        flow = per_building_flow.get(member_id)
        if flow is None:
            logger.debug("Complex member '%s' has no flow, skipping", member_id)
            continue
        if flow.solar_to_grid_kw > 0:
            contributors.append(
                SharingContributor(
                    building_id=member_id, contributed_kw=flow.solar_to_grid_kw
                )
            )

    total_export = sum(c.contributed_kw for c in contributors)
    if total_export <= 0:
        return None

    potential = min(grid_net, total_export)
    solar_pct = potential / grid_net * 100

    return ComplexSharingResult(
        building_id=building_id,
        grid_net_kw=grid_net,
        total_export_kw=total_export,
        potential_shared_kw=potential,
        grid_only_kw=grid_net - potential,
        solar_share_pct=solar_pct,
        grid_share_pct=100 - solar_pct,
        contributors=tuple(contributors),
    )


def estimate_building_sharing(
    building_id: str,
    buildings: Iterable[Building],
    per_building_flow: Mapping[str, FlowResult],
) -> ComplexSharingResult | None:
    """Look up the building's complex and estimate sharing within it.

    Returns ``None`` for buildings outside any complex.
    """
    complex_ = find_complex(building_id, buildings)
    if complex_ is None:
        return None
    return estimate_sharing(building_id, complex_.group_buildings, per_building_flow)
