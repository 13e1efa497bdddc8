"""
Unit tests for drivereport/core/assembler.py

Tests the overview table, detail section pagination, legacy aliases and
start-page back-references.
"""

import pytest

from drivereport.core import assembler
from drivereport.core.ingest import normalize_driver
from drivereport.core.models import DetailSection, DriverRank, Page, Period, ReportConfig, ReportObject
from drivereport.core.tone import collect_tone_overrides
from drivereport.core.highlights import overview_references


def _report(driver, config, overrides=None):
    return ReportObject(
        driver_id=driver.driver_id,
        driver_name=driver.driver_name,
        office_name=driver.office_name,
        company_name=driver.company_name,
        page_title=config.page_title,
        period=Period(),
        avg_violation_rate_pct=0.0,
        rank=DriverRank(position=1, total=1),
        sections=assembler.build_summary_sections(driver, config, overrides),
    )


def _day_scenes(count):
    url = "https://www.google.com/maps/search/?api=1&query=35.6,139.7"
    return [
        {"capturedAt": f"2024-04-02T10:{i:02d}:00+09:00", "MapViewUrl": url}
        for i in range(count)
    ]


class TestSummarySections:
    """Test build_summary_sections."""

    def test_rows_grouped_by_maneuver(self, report_config, drivers):
        driver = normalize_driver(drivers[0])
        sections = assembler.build_summary_sections(driver, report_config)

        assert [s.title for s in sections] == ["左折"]
        row = sections[0].rows[0]
        assert row.no == 1
        assert row.name == "左折前の一時停止"
        assert row.rate == 25
        assert row.detail == "(1回/4回)"
        assert row.count == 1
        assert row.risk == 3.5

    def test_threshold_tones(self, report_config, drivers):
        driver = normalize_driver(drivers[0])
        rows = assembler.build_summary_sections(driver, report_config)[0].rows
        assert [(r.tone, r.tag) for r in rows] == [("danger", "!"), ("good", "good")]

    def test_override_tones(self, report_config, drivers):
        """Driver 102's event 2 is 10% (danger by rate) but the overview tags it good."""
        driver = normalize_driver(drivers[1])
        overrides = collect_tone_overrides(overview_references(driver, report_config))
        rows = assembler.build_summary_sections(driver, report_config, overrides)[0].rows
        assert [r.tone for r in rows] == ["danger", "good"]

        plain = assembler.build_summary_sections(driver, report_config)[0].rows
        assert [r.tone for r in plain] == ["danger", "danger"]

    def test_unknown_event_skipped(self, report_config):
        driver = normalize_driver({"driverId": 1, "events": [{"id": 42, "violations": 1, "total": 2}]})
        assert assembler.build_summary_sections(driver, report_config) == []


class TestDetailSections:
    """Test build_detail_section and scene annotation."""

    def test_scenes_annotated(self, report_config, drivers):
        driver = normalize_driver(drivers[0])
        detail = assembler.build_detail_section(report_config.detail_sections[0], driver, report_config)

        assert detail.key == "sasetumae"
        assert len(detail.pages) == 1
        scenes = detail.pages[0].scenes()
        assert [s["dateLabel"] for s in scenes] == ["4/3", "4/2"]
        newest, oldest = scenes
        assert newest["lat"] == 35.6
        assert newest["lon"] == 139.7
        assert newest["mapUrl"] == "https://www.google.com/maps/search/?api=1&query=35.6,139.7"
        assert oldest["labels"] == {"risk_type": "高"}

    def test_missing_event_gives_empty_section(self, report_config, drivers):
        driver = normalize_driver(drivers[2])
        detail = assembler.build_detail_section(report_config.detail_sections[1], driver, report_config)
        assert detail.pages == []
        assert detail.highlights == []
        assert detail.event_id == 2

    def test_config_page_limits_applied(self, report_config):
        driver = normalize_driver({"driverId": 1, "events": [{"id": 1, "scenes": _day_scenes(10)}]})
        detail = assembler.build_detail_section(report_config.detail_sections[0], driver, report_config)
        assert [p.scene_count for p in detail.pages] == [3, 4, 3]


class TestPageNumbers:
    """Test compute_start_pages and assemble_details."""

    def test_start_pages_count_empty_sections_as_one(self):
        details = [
            DetailSection(key="a", title="", event_id=1, pages=[Page(), Page(), Page()]),
            DetailSection(key="b", title="", event_id=2, pages=[]),
            DetailSection(key="c", title="", event_id=3, pages=[Page()]),
        ]
        assert assembler.compute_start_pages(details) == {1: 2, 2: 5, 3: 6}

    def test_rows_point_at_section_start(self, report_config):
        driver = normalize_driver({
            "driverId": 1,
            "events": [
                {"id": 1, "violations": 1, "total": 10, "scenes": _day_scenes(10)},
                {"id": 2, "violations": 0, "total": 5},
                {"id": 3, "violations": 0, "total": 5},
            ],
        })
        report = _report(driver, report_config)
        assembler.assemble_details(report, driver, report_config)

        pages = {row.no: row.page_number for s in report.sections for row in s.rows}
        assert pages == {1: 2, 2: 5, 3: None}
        assert [len(d.pages) for d in report.detail_sections] == [3, 0]

    def test_legacy_aliases(self, report_config, drivers):
        driver = normalize_driver(drivers[0])
        report = _report(driver, report_config)
        assembler.assemble_details(report, driver, report_config)

        out = report.to_dict()
        assert len(out["sasetumaePages"]) == 1
        assert [h["kind"] for h in out["highlights_sasetumae"]] == ["danger", "warn"]
        assert out["sasetuchuuPages"] == []
        assert out["highlights_sasetuchuu"] == []

    def test_failure_degrades_to_no_details(self, report_config, drivers, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("pagination failed")

        monkeypatch.setattr(assembler, "build_pages", boom)
        driver = normalize_driver(drivers[0])
        report = _report(driver, report_config)
        assembler.assemble_details(report, driver, report_config)

        out = report.to_dict()
        assert out["detailSections"] == []
        assert out["sasetumaePages"] == []
        assert all(row["pageNumber"] is None for s in out["sections"] for row in s["rows"])
        assert [s["title"] for s in out["sections"]] == ["左折"]

    @pytest.mark.parametrize("section_count", [0, 1, 2])
    def test_detail_sections_follow_config(self, report_config, drivers, section_count):
        config = ReportConfig(
            item_map=report_config.item_map,
            detail_sections=report_config.detail_sections[:section_count],
        )
        driver = normalize_driver(drivers[0])
        report = _report(driver, config)
        assembler.assemble_details(report, driver, config)
        assert len(report.detail_sections) == section_count
