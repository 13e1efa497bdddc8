"""
Unit tests for drivereport/common/config.py
"""

import json
from pathlib import Path

import pytest

from drivereport.common.config import (
    coerce_page_limits,
    get_config_path,
    load_config_document,
    load_report_config,
    parse_report_config,
)
from drivereport.core.models import ItemInfo, PageLimits
from drivereport.utils.error_handling import ConfigurationError


SHIPPED_CONFIG = Path(__file__).resolve().parents[1] / "config" / "report_config.yml"


class TestParseReportConfig:
    """Test parse_report_config."""

    def test_fixture_document(self, report_config):
        assert report_config.page_title == "安全運転診断レポート"
        assert report_config.item_map[1] == ItemInfo(name="左折前の一時停止", maneuver="左折", page=2)
        assert set(report_config.highlight_groups) == {"highlights_gaiyou", "highlights_sasetumae"}
        assert report_config.highlight_groups["highlights_gaiyou"]["danger"].id == 1
        assert [s.key for s in report_config.detail_sections] == ["sasetumae", "sasetuchuu"]
        assert report_config.detail_sections[0].highlights_key == "highlights_sasetumae"
        assert report_config.detail_sections[1].highlights_key is None
        assert report_config.page_limits == PageLimits(first=3, other=4)
        assert report_config.scene_labels == {"risk_type": {"3": "高"}}

    def test_defaults(self):
        config = parse_report_config({})
        assert config.page_limits == PageLimits(first=14, other=22)
        assert config.pagination_mode == "strict"
        assert config.tone_mode == "override"
        assert config.detail_sections == ()

    def test_unknown_modes_fall_back(self):
        config = parse_report_config({"paginationMode": "fancy", "toneMode": "loud"})
        assert config.pagination_mode == "strict"
        assert config.tone_mode == "override"

    def test_snake_case_keys(self):
        config = parse_report_config({
            "page_title": "T",
            "detail_sections": [{"key": "a", "event_id": "5", "highlights_key": "highlights_a"}],
            "pagination_mode": "simple",
        })
        assert config.page_title == "T"
        assert config.detail_sections[0].event_id == 5
        assert config.detail_sections[0].highlights_key == "highlights_a"
        assert config.pagination_mode == "simple"

    def test_bad_entries_skipped(self):
        config = parse_report_config({
            "itemMap": {"1": "not a mapping", "2": {"name": "B"}},
            "detailSections": [{"title": "no key"}, "junk", {"key": "ok"}],
        })
        assert list(config.item_map) == [2]
        assert [s.key for s in config.detail_sections] == ["ok"]

    def test_malformed_ids_do_not_raise(self):
        config = parse_report_config({
            "itemMap": {"²": {"name": "A"}, "--5": {"name": "B"}},
            "highlights_gaiyou": {"danger": {"id": "--5"}},
            "detailSections": [{"key": "a", "eventId": "²"}],
            "thresholds": {"danger": 10 ** 400},
            "detailPageLimits": {"first": 10 ** 400},
        })
        assert config.item_map["²"].name == "A"
        assert config.item_map["--5"].name == "B"
        assert config.highlight_groups["highlights_gaiyou"]["danger"].id == "--5"
        assert config.detail_sections[0].event_id == "²"
        assert config.thresholds.danger == 10.0
        assert config.page_limits.first == 14

    @pytest.mark.parametrize("raw", [None, [], "config"])
    def test_missing_document(self, raw):
        with pytest.raises(ConfigurationError):
            parse_report_config(raw)

    @pytest.mark.parametrize("raw,expected", [
        ({"first": 10, "other": 20}, PageLimits(10, 20)),
        ({"firstPage": "8", "otherPages": 12.0}, PageLimits(8, 12)),
        ({"first": 0, "other": -1}, PageLimits(14, 22)),
        ({"first": "x"}, PageLimits(14, 22)),
        (None, PageLimits(14, 22)),
    ])
    def test_page_limits(self, raw, expected):
        assert coerce_page_limits(raw) == expected


class TestLoadConfig:
    """Test loading the configuration document from disk."""

    def test_yaml_file(self, tmp_path, config_dict):
        path = tmp_path / "report.yml"
        path.write_text(json.dumps(config_dict, ensure_ascii=False), encoding="utf-8")
        config = load_report_config(path)
        assert config.page_limits == PageLimits(first=3, other=4)

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yml"
        path.write_text("pageTitle: カスタム\n", encoding="utf-8")
        monkeypatch.setenv("REPORT_CONFIG_PATH", str(path))
        assert get_config_path() == path
        assert load_config_document()["pageTitle"] == "カスタム"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config_document(tmp_path / "absent.yml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config_document(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("pageTitle: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config_document(path)

    def test_shipped_config_parses(self):
        config = load_report_config(SHIPPED_CONFIG)
        assert [s.key for s in config.detail_sections] == ["sasetumae", "sasetuchuu"]
        assert config.page_limits == PageLimits(first=14, other=22)
        assert config.item_map[4].name == "一時停止標識"
