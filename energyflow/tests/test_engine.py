"""
Tests for the site-level compute pass.

Builds a small site (a two-building complex plus a standalone building) from
raw readings and checks the per-building flows and sharing results.

CHANGELOG:
- 2026-10-19: Cover quarter-hour energy readings (STORY-114)
- 2026-10-19: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from energyflow.src.engine import compute_site
from energyflow.src.models import (
    Building,
    FlowRegime,
    MeterInfo,
    MeterReading,
    SiteSnapshot,
)

_TS = datetime(2026, 10, 19, 12, 15, 0, tzinfo=UTC)


def _r(
    meter_id: str, power_w: float, tag: str = "", ts: datetime = _TS
) -> MeterReading:
    """Reading whose building and role come from the meter directory."""
    return MeterReading(
        meter_id=meter_id,
        building_id="",
        role="",
        power_w=power_w,
        source_tag=tag,
        timestamp=ts,
    )


def _site(readings: list[MeterReading]) -> SiteSnapshot:
    return SiteSnapshot(
        ts=_TS,
        buildings=(
            Building(id="A", name="House A"),
            Building(id="B", name="House B"),
            Building(id="S", name="Standalone"),
            Building(id="C", name="Complex", is_group=True, group_buildings=("A", "B")),
        ),
        meters=(
            MeterInfo(meter_id="a-grid", building_id="A", role="total_meter"),
            MeterInfo(meter_id="a-ev", building_id="A", role="charger"),
            MeterInfo(meter_id="b-grid", building_id="B", role="total_meter"),
            MeterInfo(meter_id="b-pv", building_id="B", role="solar_meter"),
            MeterInfo(meter_id="s-grid", building_id="S", role="total_grid"),
            MeterInfo(meter_id="s-apt", building_id="S", role="apartment"),
        ),
        readings=tuple(readings),
    )


@pytest.fixture()
def site() -> SiteSnapshot:
    return _site(
        [
            # A imports 4 kW and charges a car at 2 kW.
            _r("a-grid", 4000.0, "total_meter"),
            _r("a-ev", 2000.0, "charger"),
            # B produces 6 kW of solar and exports 2.5 kW.
            _r("b-grid", 0.0, "total_meter"),
            _r("b-grid", 2500.0, "total_meter_export"),
            _r("b-pv", 0.0, "solar_meter"),
            _r("b-pv", 6000.0, "solar_meter_export"),
            # S imports 1 kW; its apartment meter is billing-only.
            _r("s-grid", 1000.0, "import"),
            _r("s-apt", 800.0),
        ]
    )


class TestComputeSite:
    """End-to-end pass over raw readings."""

    def test_reports_every_physical_building(self, site: SiteSnapshot) -> None:
        reports = compute_site(site)
        assert list(reports) == ["A", "B", "S"]
        assert all(r.ts == _TS for r in reports.values())

    def test_importing_member(self, site: SiteSnapshot) -> None:
        report = compute_site(site)["A"]
        assert report.snapshot.total_import_kw == pytest.approx(4.0)
        assert report.snapshot.charging_kw == pytest.approx(2.0)
        assert report.flow.regime == FlowRegime.GRID_ONLY
        assert report.flow.actual_house_consumption_kw == pytest.approx(6.0)

    def test_exporting_member(self, site: SiteSnapshot) -> None:
        report = compute_site(site)["B"]
        assert report.flow.regime == FlowRegime.EXPORTING
        assert report.flow.solar_to_grid_kw == pytest.approx(2.5)
        assert report.flow.solar_to_house_kw == pytest.approx(3.5)
        assert report.sharing is None

    def test_sharing_attached_to_importing_member(self, site: SiteSnapshot) -> None:
        sharing = compute_site(site)["A"].sharing
        assert sharing is not None
        assert sharing.potential_shared_kw == pytest.approx(2.5)
        assert sharing.grid_only_kw == pytest.approx(1.5)
        assert sharing.solar_share_pct == pytest.approx(62.5)
        assert [c.building_id for c in sharing.contributors] == ["B"]

    def test_standalone_building_has_no_sharing(self, site: SiteSnapshot) -> None:
        report = compute_site(site)["S"]
        assert report.flow.grid_to_house_kw == pytest.approx(1.0)
        assert report.flow.actual_house_consumption_kw == pytest.approx(1.0)
        assert report.sharing is None

    def test_each_building_decomposed_once(self, site: SiteSnapshot) -> None:
        from energyflow.src import engine

        with patch.object(engine, "decompose", wraps=engine.decompose) as spy:
            compute_site(site)
        assert spy.call_count == 3

    def test_only_latest_sample_used(self) -> None:
        earlier = _TS - timedelta(minutes=15)
        site = _site(
            [
                _r("s-grid", 9000.0, "import", ts=earlier),
                _r("s-grid", 1000.0, "import"),
            ]
        )
        assert compute_site(site)["S"].snapshot.total_import_kw == pytest.approx(1.0)

    def test_quarter_hour_energy_readings(self) -> None:
        """Dashboard kWh series are averaged to power over the interval."""
        site = _site(
            [
                MeterReading(
                    meter_id="s-grid",
                    building_id="",
                    role="",
                    energy_kwh=0.5,
                    timestamp=_TS,
                )
            ]
        )
        report = compute_site(site)["S"]
        assert report.snapshot.total_import_kw == pytest.approx(2.0)
        assert report.flow.grid_to_house_kw == pytest.approx(2.0)

    def test_empty_site(self) -> None:
        assert compute_site(SiteSnapshot()) == {}

    def test_building_without_readings_is_all_zero(self) -> None:
        report = compute_site(_site([]))["A"]
        assert report.flow.actual_house_consumption_kw == 0.0
        assert report.sharing is None
