"""
Input Normalization

Turns raw driver/event/scene mappings (snake_case or camelCase, several
historical field spellings) into the canonical dataclasses in
`drivereport.core.models`. Nothing past this module branches on naming
convention.
"""

from __future__ import annotations
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from drivereport.core.models import (
    DriverRecord,
    DriverStats,
    EventRecord,
    HighlightEntry,
    Period,
    SceneRecord,
)
from drivereport.utils.error_handling import ValidationError

logger = logging.getLogger(__name__)

# Canonical field -> accepted input keys, first present non-None wins
DRIVER_ALIASES = {
    "driver_id": ("driverId", "driver_id", "id"),
    "driver_name": ("driverName", "driver_name", "name"),
    "office_name": ("officeName", "office_name"),
    "company_name": ("companyName", "company_name"),
}

PERIOD_ALIASES = {
    "start_date": ("startDate", "start_date", "start", "from"),
    "end_date": ("endDate", "end_date", "end", "to"),
    "days": ("days", "dayCount", "day_count"),
    "total_minutes": ("totalMinutes", "total_minutes", "minutes"),
}

SCENE_ALIASES = {
    "captured_at": ("capturedAt", "captured_at", "datetime"),
    "map_view_url": ("MapViewUrl", "mapViewUrl", "map_view_url", "map_url", "mapUrl"),
    "street_view_url": ("streetViewUrl", "StreetViewUrl", "street_view_url"),
    "movie_url": ("movie_url", "movieUrl", "MovieUrl"),
    "risk_type": ("risk_type", "riskType"),
    "violation_type": ("violation_type", "violationType"),
    "timing": ("timing", "timing_type", "timingType"),
    "accel_decel": ("accel_decel", "accelDecel"),
    "is_latest_violation": (
        "is_latest_violation", "isLatestViolation", "latest_violation", "latestViolation",
    ),
}

HIGHLIGHT_ENTRY_ALIASES = {
    "title": ("title",),
    "body": ("body", "text"),
    "metric": ("metric",),
    "event_id": ("eventId", "event_id", "id"),
}

_TRUE = {"1", "true", "t", "yes", "y", "on"}
_INT_ID_RE = re.compile(r"-?[0-9]+")


def _pick(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _as_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE
    return bool(value)


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def normalize_event_id(value: Any) -> Any:
    """Use int ids wherever the input allows, so JSON string keys match."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_ID_RE.fullmatch(value.strip()):
        return int(value.strip())
    return value


def _require_mapping(raw: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{context}: expected a mapping, got {type(raw).__name__}")
    return raw


def normalize_scene(raw: Any) -> SceneRecord:
    """Normalize one scene record."""
    raw = _require_mapping(raw, "scene")
    consumed = {key for keys in SCENE_ALIASES.values() for key in keys}
    return SceneRecord(
        captured_at=_pick(raw, SCENE_ALIASES["captured_at"]),
        map_view_url=_as_str(_pick(raw, SCENE_ALIASES["map_view_url"])),
        street_view_url=_as_str(_pick(raw, SCENE_ALIASES["street_view_url"])),
        movie_url=_as_str(_pick(raw, SCENE_ALIASES["movie_url"])),
        risk_type=_pick(raw, SCENE_ALIASES["risk_type"]),
        violation_type=_pick(raw, SCENE_ALIASES["violation_type"]),
        timing=_pick(raw, SCENE_ALIASES["timing"]),
        accel_decel=_pick(raw, SCENE_ALIASES["accel_decel"]),
        is_latest_violation=_as_bool(_pick(raw, SCENE_ALIASES["is_latest_violation"])),
        extra={k: v for k, v in raw.items() if k not in consumed},
    )


def normalize_event(raw: Any) -> EventRecord:
    """Normalize one event record and its scenes."""
    raw = _require_mapping(raw, "event")
    scenes = raw.get("scenes")
    if not isinstance(scenes, list):
        scenes = []
    return EventRecord(
        id=normalize_event_id(_pick(raw, ("id", "eventId", "event_id"))),
        violations=_as_int(raw.get("violations")),
        total=_as_int(raw.get("total")),
        risk=_as_float(raw.get("risk")),
        scenes=[normalize_scene(s) for s in scenes],
    )


def normalize_period(raw: Any) -> Period:
    """Normalize the reporting period; anything missing stays None."""
    if not isinstance(raw, Mapping):
        return Period()
    return Period(
        start_date=_as_str(_pick(raw, PERIOD_ALIASES["start_date"])),
        end_date=_as_str(_pick(raw, PERIOD_ALIASES["end_date"])),
        days=_as_int(_pick(raw, PERIOD_ALIASES["days"]), default=None),
        total_minutes=_as_float(_pick(raw, PERIOD_ALIASES["total_minutes"])),
    )


def normalize_highlight_entry(raw: Any) -> HighlightEntry:
    """Normalize a pre-supplied highlight entry (a bare string is a body)."""
    if isinstance(raw, str):
        return HighlightEntry(body=raw)
    if not isinstance(raw, Mapping):
        return HighlightEntry()
    return HighlightEntry(
        title=_as_str(_pick(raw, HIGHLIGHT_ENTRY_ALIASES["title"])) or "",
        body=_as_str(_pick(raw, HIGHLIGHT_ENTRY_ALIASES["body"])) or "",
        metric=raw.get("metric"),
        event_id=normalize_event_id(_pick(raw, HIGHLIGHT_ENTRY_ALIASES["event_id"])),
    )


def _normalize_entries(raw: Any) -> Dict[str, HighlightEntry]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(kind): normalize_highlight_entry(entry) for kind, entry in raw.items()}


def normalize_stats(raw: Any) -> DriverStats:
    """Normalize the optional precomputed stats block."""
    if not isinstance(raw, Mapping):
        return DriverStats()
    overview = _pick(raw, ("highlights_gaiyou", "highlightsGaiyou", "highlights"))
    sections = _pick(raw, ("section_highlights", "sectionHighlights"))
    section_entries = {}
    if isinstance(sections, Mapping):
        section_entries = {str(key): _normalize_entries(v) for key, v in sections.items()}
    return DriverStats(
        highlights=_normalize_entries(overview),
        section_highlights=section_entries,
    )


def normalize_driver(raw: Any) -> DriverRecord:
    """
    Normalize one driver record.

    Args:
        raw: Parsed driver mapping in either naming convention

    Returns:
        DriverRecord with canonical fields

    Raises:
        ValidationError: If the record (or one of its events/scenes) is not a mapping
    """
    if isinstance(raw, DriverRecord):
        return raw
    raw = _require_mapping(raw, "driver")
    events = raw.get("events")
    if not isinstance(events, list):
        events = []
    driver = DriverRecord(
        driver_id=_pick(raw, DRIVER_ALIASES["driver_id"]),
        driver_name=_as_str(_pick(raw, DRIVER_ALIASES["driver_name"])),
        office_name=_as_str(_pick(raw, DRIVER_ALIASES["office_name"])),
        company_name=_as_str(_pick(raw, DRIVER_ALIASES["company_name"])),
        period=normalize_period(raw.get("period")),
        events=[normalize_event(e) for e in events],
        stats=normalize_stats(raw.get("stats")),
    )
    if driver.driver_id is None:
        logger.warning(f"Driver record without an id ({driver.driver_name!r})")
    return driver


def normalize_drivers(raws: Iterable[Any]) -> List[DriverRecord]:
    """Normalize a batch of driver records, preserving order."""
    return [normalize_driver(raw) for raw in raws]
