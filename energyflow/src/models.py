"""
Pydantic value objects for meter telemetry and derived energy flows.

Every model is frozen: instances are created fresh per computation, never
mutated, and hashable so a site pass can key decompositions by
``(building_id, snapshot)``.

Power fields ending in ``_kw`` are kilowatts; raw meter samples carry watts.

CHANGELOG:
- 2026-10-19: Accept interval energy samples; bound snapshot fields (STORY-114)
- 2026-10-19: Add directory and site payload models (STORY-106)
- 2026-10-19: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MeterRole(StrEnum):
    """Role a meter plays inside a building."""

    TOTAL_GRID = "total_grid"
    SOLAR = "solar"
    CHARGER = "charger"
    HEATING = "heating"
    OTHER = "other"
    APARTMENT = "apartment"


class Direction(StrEnum):
    """Direction of a sample on a bidirectional metering point."""

    IMPORT = "import"
    EXPORT = "export"


class FlowRegime(StrEnum):
    """Branch of the decomposer that produced a FlowResult."""

    EXPORTING = "exporting"
    SOLAR_ASSISTED = "solar_assisted"
    SOLAR_CONSUMING = "solar_consuming"
    GRID_ONLY = "grid_only"


class _ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)


class MeterReading(_ValueObject):
    """A single raw sample from one meter.

    Attributes:
        meter_id: Identifier of the physical meter.
        building_id: Building the meter is installed in.
        role: Meter role. Kept as a plain string so legacy names such as
            ``total_meter`` or ``solar_meter`` pass through to the
            normalizer, which maps them.
        power_w: Instantaneous power in watts.
        energy_kwh: Energy over the metering interval, as stored in the
            dashboard's quarter-hour series.  Used only when ``power_w``
            is absent.
        interval_min: Length of the interval ``energy_kwh`` covers.
        source_tag: ``"import"`` / ``"export"`` (or a legacy tag ending in
            ``_export``). Empty means import.
        timestamp: Sampling instant.
    """

    meter_id: str
    building_id: str
    role: str
    power_w: float | None = None
    energy_kwh: float | None = None
    interval_min: int = Field(default=15, gt=0)
    source_tag: str = ""
    timestamp: datetime | None = None


class NormalizedReading(_ValueObject):
    """Canonical per-meter record: role, direction and non-negative kW."""

    meter_id: str
    role: MeterRole
    direction: Direction
    power_kw: float = Field(ge=0.0)


class BuildingSnapshot(_ValueObject):
    """Per-building totals by meter role at one sampling instant.

    All fields are sums of non-negative samples.  ``ge=0`` also rejects NaN,
    so a snapshot built by hand carries the same guarantee.
    """

    total_import_kw: float = Field(default=0.0, ge=0.0)
    total_export_kw: float = Field(default=0.0, ge=0.0)
    solar_import_kw: float = Field(default=0.0, ge=0.0)
    solar_export_kw: float = Field(default=0.0, ge=0.0)
    charging_kw: float = Field(default=0.0, ge=0.0)


class FlowResult(_ValueObject):
    """Decomposition of a building's power flow.

    Sign conventions:
        solar_net_kw: positive = producing surplus, negative = drawing
            through the solar metering point (e.g. at night).
        grid_net_kw: positive = importing, negative = exporting.

    All other fields are ``>= 0``.
    """

    regime: FlowRegime
    solar_net_kw: float
    solar_production_kw: float
    solar_consumption_kw: float
    grid_net_kw: float
    charging_kw: float
    actual_house_consumption_kw: float
    solar_to_house_kw: float
    solar_to_grid_kw: float
    grid_to_house_kw: float
    solar_coverage_pct: float = 0.0
    unattributed_export_kw: float = 0.0


class SharingContributor(_ValueObject):
    """A sibling building's exported solar, as reported by its own flow."""

    building_id: str
    contributed_kw: float


class ComplexSharingResult(_ValueObject):
    """Estimated share of a building's grid import coverable by siblings.

    This is a capacity estimate for display. No metering proves which
    building's export reached which consumer, so it is not billing input.
    """

    building_id: str
    grid_net_kw: float
    total_export_kw: float
    potential_shared_kw: float
    grid_only_kw: float
    solar_share_pct: float
    grid_share_pct: float
    contributors: tuple[SharingContributor, ...] = ()


class Building(_ValueObject):
    """Building directory entry. Group buildings represent complexes."""

    id: str
    name: str = ""
    is_group: bool = False
    group_buildings: tuple[str, ...] = ()

    @field_validator("group_buildings", mode="before")
    @classmethod
    def _null_members_mean_none(cls, v: object) -> object:
        """The dashboard sends ``null`` for buildings without members."""
        return () if v is None else v


class MeterInfo(_ValueObject):
    """Meter directory entry: where a meter lives and what it measures."""

    meter_id: str
    building_id: str
    role: str


class SiteSnapshot(_ValueObject):
    """Everything a collaborator hands the engine for one refresh."""

    ts: datetime | None = None
    buildings: tuple[Building, ...] = ()
    meters: tuple[MeterInfo, ...] = ()
    readings: tuple[MeterReading, ...] = ()


class BuildingFlowReport(_ValueObject):
    """Engine output for one building at one instant."""

    building_id: str
    ts: datetime | None = None
    snapshot: BuildingSnapshot
    flow: FlowResult
    sharing: ComplexSharingResult | None = None
