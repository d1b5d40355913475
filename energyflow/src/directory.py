"""
Building and meter directory helpers.

The dashboard owns the building directory (``is_group`` / ``group_buildings``)
and the meter directory (``meter_id -> (building_id, role)``).  These helpers
answer the two questions the engine asks of them: which complex a building
belongs to, and which readings belong to a building.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from energyflow.src.models import Building, MeterInfo, MeterReading

logger = logging.getLogger(__name__)


def find_complex(building_id: str, buildings: Iterable[Building]) -> Building | None:
    """Return the first group building whose membership lists ``building_id``."""
    for candidate in buildings:
        if candidate.is_group and building_id in candidate.group_buildings:
            return candidate
    return None


def physical_buildings(buildings: Iterable[Building]) -> list[Building]:
    """Return the buildings that carry meters, i.e. everything but complexes."""
    return [b for b in buildings if not b.is_group]


def index_meters(meters: Iterable[MeterInfo]) -> dict[str, MeterInfo]:
    """Build the ``meter_id -> MeterInfo`` lookup used for pre-filtering."""
    return {m.meter_id: m for m in meters}


def readings_for_building(
    readings: Iterable[MeterReading],
    meter_index: dict[str, MeterInfo],
    building_id: str,
) -> list[MeterReading]:
    """Select the readings whose meter the directory places in a building.

    The directory is authoritative: a reading is kept when its meter is
    registered to ``building_id``, and the directory's role replaces the
    role the reading arrived with.  Readings from unregistered meters are
    dropped.

    Args:
        readings: Raw readings for the whole site.
        meter_index: Output of :func:`index_meters`.
        building_id: Building to select.

    Returns:
        The building's readings, in input order.
    """
    selected: list[MeterReading] = []
    for reading in readings:
        info = meter_index.get(reading.meter_id)
        if info is None:
            logger.debug(
                "Reading for unregistered meter '%s' dropped", reading.meter_id
            )
            continue
        if info.building_id != building_id:
            continue
        if reading.role != info.role or reading.building_id != info.building_id:
            reading = reading.model_copy(
                update={"role": info.role, "building_id": info.building_id}
            )
        selected.append(reading)
    return selected
