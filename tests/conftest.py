"""
Pytest configuration for the report engine tests.

Shared fixtures: a configuration document and a small driver batch in the
shapes the engine receives them (parsed JSON, mixed field casing).
"""

import copy

import pytest

from drivereport.common.config import parse_report_config


MAP_URL = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"


def make_scene(captured_at, lat=35.6, lon=139.7, **extra):
    """Scene record with a map search URL."""
    scene = {"capturedAt": captured_at, "MapViewUrl": MAP_URL.format(lat=lat, lon=lon)}
    scene.update(extra)
    return scene


_CONFIG = {
    "pageTitle": "安全運転診断レポート",
    "itemMap": {
        "1": {"name": "左折前の一時停止", "maneuver": "左折", "page": 2},
        "2": {"name": "左折中の速度", "maneuver": "左折", "page": 3},
        "3": {"name": "右折時の確認", "maneuver": "右折", "page": 4},
    },
    "highlights_gaiyou": {
        "danger": {"id": 1, "badge": "要注意", "text_template": "%TOTAL%回中%VIOLATIONS%回（%RATE%%）"},
        "good": {"id": 2, "badge": "良好", "text_template": "%TOTAL%回すべて良好"},
    },
    "highlights_sasetumae": {
        "danger": {"badge": "要注意", "text_template": "違反%VIOLATIONS%回"},
        "warn": {"badge": "注意", "text_template": "違反率%RATE%%"},
    },
    "detailSections": [
        {"key": "sasetumae", "title": "左折前の一時停止", "eventId": 1, "highlightsKey": "highlights_sasetumae"},
        {"key": "sasetuchuu", "title": "左折中の速度", "eventId": 2},
    ],
    "thresholds": {"danger": 10, "warn": 5, "good": 0},
    "detailPageLimits": {"first": 3, "other": 4},
    "sceneLabels": {"risk_type": {"3": "高"}},
}


_DRIVERS = [
    {
        "driverId": 101,
        "driverName": "山田 太郎",
        "officeName": "東京営業所",
        "companyName": "テスト運輸",
        "period": {"startDate": "2024-04-01", "endDate": "2024-04-30", "days": 30},
        "events": [
            {
                "id": 1, "violations": 1, "total": 4, "risk": 3.5,
                "scenes": [
                    make_scene("2024-04-02T10:00:00+09:00", risk_type=3),
                    make_scene("2024-04-03T09:00:00+09:00"),
                ],
            },
            {"id": 2, "violations": 0, "total": 10, "risk": 0.5, "scenes": []},
        ],
    },
    {
        "driver_id": 102,
        "driver_name": "佐藤 花子",
        "office_name": "大阪営業所",
        "events": [
            {"id": 1, "violations": 2, "total": 4, "risk": 4.0, "scenes": []},
            {"id": 2, "violations": 1, "total": 10, "risk": 1.0, "scenes": []},
        ],
    },
    {
        "driverId": 103,
        "driverName": "鈴木 一郎",
        "events": [
            {"id": 1, "violations": 0, "total": 0, "scenes": []},
        ],
    },
]


@pytest.fixture
def config_dict():
    """Raw configuration document."""
    return copy.deepcopy(_CONFIG)


@pytest.fixture
def report_config(config_dict):
    """Parsed ReportConfig."""
    return parse_report_config(config_dict)


@pytest.fixture
def drivers():
    """Three-driver batch with mixed field casing."""
    return copy.deepcopy(_DRIVERS)
