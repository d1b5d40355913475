"""
Building aggregator: folds normalized meter records into a BuildingSnapshot.

A pure fold with no side effects and no building-to-building interaction.
Roles that do not feed the flow model (heating, other, apartment) are
skipped here as well as in the normalizer, so the fold is safe to call with
any NormalizedReading sequence.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable

from energyflow.src.models import (
    BuildingSnapshot,
    Direction,
    MeterRole,
    NormalizedReading,
)

_SNAPSHOT_FIELD: dict[tuple[MeterRole, Direction], str] = {
    (MeterRole.TOTAL_GRID, Direction.IMPORT): "total_import_kw",
    (MeterRole.TOTAL_GRID, Direction.EXPORT): "total_export_kw",
    (MeterRole.SOLAR, Direction.IMPORT): "solar_import_kw",
    (MeterRole.SOLAR, Direction.EXPORT): "solar_export_kw",
    (MeterRole.CHARGER, Direction.IMPORT): "charging_kw",
}
"""Maps (role, direction) -> BuildingSnapshot field that accumulates it."""


def aggregate(records: Iterable[NormalizedReading]) -> BuildingSnapshot:
    """Sum normalized records into per-building totals by meter role.

    Args:
        records: Normalized readings for one building at one instant.

    Returns:
        A BuildingSnapshot. Roles without any record yield ``0.0``.
    """
    totals = dict.fromkeys(_SNAPSHOT_FIELD.values(), 0.0)
    for record in records:
        field = _SNAPSHOT_FIELD.get((record.role, record.direction))
        if field is not None:
            totals[field] += record.power_kw
    return BuildingSnapshot(**totals)
