"""
Integration tests for drivereport/core/reports.py

Runs whole batches through generate_reports and checks the report dicts
the templates receive.
"""

import pytest

from drivereport.core import reports as rp
from drivereport.core.reports import find_report, generate_reports
from drivereport.utils.error_handling import ConfigurationError, ReportBuildError, ValidationError


class TestGenerateReports:
    """Test generate_reports end to end."""

    def test_one_report_per_driver_in_order(self, drivers, config_dict):
        reports = generate_reports(drivers, config_dict)
        assert [r["driverId"] for r in reports] == [101, 102, 103]

    def test_header_fields(self, drivers, config_dict):
        report = generate_reports(drivers, config_dict)[0]
        assert report["driverName"] == "山田 太郎"
        assert report["officeName"] == "東京営業所"
        assert report["companyName"] == "テスト運輸"
        assert report["pageTitle"] == "安全運転診断レポート"
        assert report["period"]["startDate"] == "2024-04-01"
        assert report["period"]["days"] == 30

    def test_snake_case_driver_normalized(self, drivers, config_dict):
        report = generate_reports(drivers, config_dict)[1]
        assert report["driverName"] == "佐藤 花子"
        assert report["officeName"] == "大阪営業所"
        assert report["companyName"] is None

    def test_rate_and_rank(self, drivers, config_dict):
        reports = generate_reports(drivers, config_dict)
        assert [r["avgViolationRatePct"] for r in reports] == [7.1, 21.4, 0.0]
        assert [r["rank"] for r in reports] == [
            {"position": 2, "total": 3},
            {"position": 3, "total": 3},
            {"position": 1, "total": 3},
        ]

    def test_precomputed_rank_is_ignored(self, drivers, config_dict):
        drivers[0]["rank"] = {"position": 99, "total": 99}
        drivers[0]["avgViolationRatePct"] = 50
        report = generate_reports(drivers, config_dict)[0]
        assert report["rank"] == {"position": 2, "total": 3}
        assert report["avgViolationRatePct"] == 7.1

    def test_threshold_tones(self, drivers, config_dict):
        """25% is danger and 0% is good under thresholds 10/5/0."""
        config_dict["toneMode"] = "threshold"
        rows = generate_reports(drivers, config_dict)[0]["sections"][0]["rows"]
        assert [(r["rate"], r["tone"], r["tag"]) for r in rows] == [
            (25, "danger", "!"),
            (0, "good", "good"),
        ]

    def test_override_tones(self, drivers, config_dict):
        rows = generate_reports(drivers, config_dict)[1]["sections"][0]["rows"]
        assert [r["tone"] for r in rows] == ["danger", "good"]
        assert rows[1]["tags"] == ["good"]

    def test_page_numbers_and_details(self, drivers, config_dict):
        report = generate_reports(drivers, config_dict)[0]
        rows = report["sections"][0]["rows"]
        assert [r["pageNumber"] for r in rows] == [2, 3]
        assert [d["key"] for d in report["detailSections"]] == ["sasetumae", "sasetuchuu"]
        assert len(report["sasetumaePages"]) == 1
        assert report["sasetuchuuPages"] == []

    def test_map_points(self, drivers, config_dict):
        reports = generate_reports(drivers, config_dict)
        assert reports[0]["mapPoints"] == [{"lat": 35.6, "lon": 139.7}, {"lat": 35.6, "lon": 139.7}]
        assert reports[1]["mapPoints"] == []

    def test_highlights_never_blank(self, drivers, config_dict):
        drivers[1]["stats"] = {"highlights": {"warn": {"title": " ", "body": ""}}}
        for report in generate_reports(drivers, config_dict):
            all_highlights = list(report["highlights_gaiyou"])
            for detail in report["detailSections"]:
                all_highlights.extend(detail["highlights"])
            for highlight in all_highlights:
                assert highlight["title"].strip()
                assert highlight["text"].strip()

    def test_thread_pool_matches_sequential(self, drivers, config_dict):
        sequential = generate_reports(drivers, config_dict)
        parallel = generate_reports(drivers, config_dict, max_workers=4)
        assert parallel == sequential

    @pytest.mark.parametrize("driver_id", [None, 7])
    def test_shared_driver_ids_keep_own_rate_and_rank(self, config_dict, driver_id):
        batch = [
            {"driverId": driver_id, "events": [{"id": 1, "violations": 5, "total": 10}]},
            {"driverId": driver_id, "events": [{"id": 1, "violations": 0, "total": 10}]},
        ]
        reports = generate_reports(batch, config_dict)
        assert [r["avgViolationRatePct"] for r in reports] == [50.0, 0.0]
        assert [r["rank"]["position"] for r in reports] == [2, 1]

        parallel = generate_reports(batch, config_dict, max_workers=2)
        assert parallel == reports

    def test_empty_batch(self, config_dict):
        assert generate_reports([], config_dict) == []


class TestGenerateReportsErrors:
    """Test error propagation."""

    def test_missing_config(self, drivers):
        with pytest.raises(ConfigurationError):
            generate_reports(drivers, None)

    def test_invalid_driver_record(self, config_dict):
        with pytest.raises(ValidationError):
            generate_reports(["not a driver"], config_dict)

    def test_driver_failure_names_driver(self, drivers, config_dict, monkeypatch):
        def boom(*args, **kwargs):
            raise KeyError("itemMap")

        monkeypatch.setattr(rp, "build_summary_sections", boom)
        with pytest.raises(ReportBuildError) as exc_info:
            generate_reports(drivers, config_dict)
        assert exc_info.value.driver_id == 101
        assert "driver=101" in str(exc_info.value)


class TestFindReport:
    """Test find_report."""

    def test_string_and_int_ids_match(self, drivers, config_dict):
        reports = generate_reports(drivers, config_dict)
        assert find_report(reports, "102")["driverName"] == "佐藤 花子"
        assert find_report(reports, 103)["driverId"] == 103

    def test_unknown_driver(self, drivers, config_dict):
        assert find_report(generate_reports(drivers, config_dict), "999") is None
