"""
Site-level facade: one pass over a SiteSnapshot.

For every physical building: pre-filter its readings through the meter
directory, normalize them into a BuildingSnapshot, and decompose it.  Each
building is decomposed exactly once per pass, and the resulting flows are
then shared with the complex sharing estimator instead of being re-derived
for every sibling lookup.

The pass holds no state between calls; running it for different snapshots
concurrently is safe.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import logging

from energyflow.src.decomposer import decompose
from energyflow.src.directory import (
    index_meters,
    physical_buildings,
    readings_for_building,
)
from energyflow.src.models import BuildingFlowReport, FlowResult, SiteSnapshot
from energyflow.src.normalizer import latest_readings, normalize
from energyflow.src.sharing import estimate_building_sharing

logger = logging.getLogger(__name__)


def compute_site(site: SiteSnapshot) -> dict[str, BuildingFlowReport]:
    """Decompose every building in a site snapshot and attach sharing.

    When several samples exist for the same meter and direction, only the
    newest is used.

    Args:
        site: Directory and readings for one refresh.

    Returns:
        Reports keyed by building id, in directory order.  Complexes (group
        buildings) have no meters and get no report of their own.
    """
    meter_index = index_meters(site.meters)
    readings = latest_readings(site.readings)
    buildings = physical_buildings(site.buildings)

    snapshots = {
        b.id: normalize(readings_for_building(readings, meter_index, b.id))
        for b in buildings
    }
    flows: dict[str, FlowResult] = {
        building_id: decompose(snapshot) for building_id, snapshot in snapshots.items()
    }

    reports: dict[str, BuildingFlowReport] = {}
    for building_id, flow in flows.items():
        reports[building_id] = BuildingFlowReport(
            building_id=building_id,
            ts=site.ts,
            snapshot=snapshots[building_id],
            flow=flow,
            sharing=estimate_building_sharing(building_id, site.buildings, flows),
        )

    logger.debug("Computed flows for %d buildings", len(reports))
    return reports
