"""
Report Configuration Loader

Loads the report configuration document (page title, item map, highlight
templates, detail sections, thresholds, page limits, scene label maps) from
YAML or JSON and parses it into an immutable `ReportConfig`.
"""

from typing import Any, Dict, Mapping, Optional
from pathlib import Path
import logging

import yaml

from drivereport.core.ingest import normalize_event_id
from drivereport.core.tone import coerce_thresholds, finite_or
from drivereport.core.models import (
    DetailSectionConfig,
    HighlightMeta,
    ItemInfo,
    PageLimits,
    ReportConfig,
)
from drivereport.utils.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_FIRST_PAGE_LIMIT,
    DEFAULT_OTHER_PAGE_LIMIT,
    DEFAULT_PAGINATION_MODE,
    DEFAULT_TONE_MODE,
    HIGHLIGHT_GROUP_PREFIX,
    PAGINATION_SIMPLE,
    PAGINATION_STRICT,
    TONE_MODE_OVERRIDE,
    TONE_MODE_THRESHOLD,
)
from drivereport.utils.env import env_str
from drivereport.utils.error_handling import ConfigurationError

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Config file location, overridable with REPORT_CONFIG_PATH."""
    return Path(env_str("REPORT_CONFIG_PATH", DEFAULT_CONFIG_PATH))


def load_config_document(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the raw configuration document.

    Args:
        path: YAML or JSON file (defaults to get_config_path())

    Returns:
        dict: Parsed document

    Raises:
        ConfigurationError: If the file is missing, unreadable, or not a mapping
    """
    path = Path(path) if path is not None else get_config_path()
    logger.info(f"Loading report config from: {path.absolute()}")

    if not path.exists():
        logger.error(f"Report config not found at {path.absolute()}")
        raise ConfigurationError(
            f"Report config not found at {path}. "
            f"Set REPORT_CONFIG_PATH or create {DEFAULT_CONFIG_PATH}."
        )

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Report config at {path} is not valid YAML/JSON: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Report config at {path} must be a mapping")
    return raw


def load_report_config(path: Optional[Path] = None) -> ReportConfig:
    """Load and parse the configuration document."""
    return parse_report_config(load_config_document(path))


# ---------- Coercion helpers ----------

def _positive_int_or(value: Any, default: int) -> int:
    number = finite_or(value, float(default))
    number = int(number)
    return number if number > 0 else default


def coerce_page_limits(raw: Any) -> PageLimits:
    """Build first/other page capacities, falling back to 14/22."""
    raw = raw if isinstance(raw, Mapping) else {}
    first = raw.get("first", raw.get("firstPage", raw.get("first_page")))
    other = raw.get("other", raw.get("otherPages", raw.get("other_pages")))
    return PageLimits(
        first=_positive_int_or(first, DEFAULT_FIRST_PAGE_LIMIT),
        other=_positive_int_or(other, DEFAULT_OTHER_PAGE_LIMIT),
    )


def _parse_item_map(raw: Any) -> Dict[Any, ItemInfo]:
    if not isinstance(raw, Mapping):
        return {}
    items: Dict[Any, ItemInfo] = {}
    for key, info in raw.items():
        if not isinstance(info, Mapping):
            logger.warning(f"Skipping itemMap entry {key!r}: not a mapping")
            continue
        page = info.get("page")
        items[normalize_event_id(key)] = ItemInfo(
            name=str(info.get("name") or ""),
            maneuver=str(info.get("maneuver") or ""),
            page=page if isinstance(page, int) else None,
        )
    return items


def _parse_highlight_group(raw: Any) -> Dict[str, HighlightMeta]:
    if not isinstance(raw, Mapping):
        return {}
    group: Dict[str, HighlightMeta] = {}
    for kind, meta in raw.items():
        if not isinstance(meta, Mapping):
            continue
        group[str(kind)] = HighlightMeta(
            id=normalize_event_id(meta.get("id")),
            badge=str(meta.get("badge") or ""),
            text_template=str(meta.get("text_template") or meta.get("textTemplate") or ""),
        )
    return group


def _parse_detail_sections(raw: Any) -> tuple:
    if not isinstance(raw, list):
        return ()
    sections = []
    for entry in raw:
        if not isinstance(entry, Mapping) or not entry.get("key"):
            logger.warning(f"Skipping detail section without a key: {entry!r}")
            continue
        event_id = entry.get("eventId", entry.get("event_id"))
        sections.append(DetailSectionConfig(
            key=str(entry["key"]),
            title=str(entry.get("title") or ""),
            event_id=normalize_event_id(event_id),
            highlights_key=entry.get("highlightsKey") or entry.get("highlights_key"),
        ))
    return tuple(sections)


def _parse_scene_labels(raw: Any) -> Dict[str, Dict[str, str]]:
    if not isinstance(raw, Mapping):
        return {}
    labels: Dict[str, Dict[str, str]] = {}
    for field_name, mapping in raw.items():
        if isinstance(mapping, Mapping):
            labels[str(field_name)] = {str(code): str(label) for code, label in mapping.items()}
    return labels


def _choice(value: Any, allowed: tuple, default: str, name: str) -> str:
    if value is None:
        return default
    if value in allowed:
        return value
    logger.warning(f"Unknown {name} {value!r}, using {default!r}")
    return default


def parse_report_config(raw: Any) -> ReportConfig:
    """
    Parse a configuration document into a ReportConfig.

    Args:
        raw: Parsed configuration mapping

    Returns:
        ReportConfig

    Raises:
        ConfigurationError: If the document is absent or not a mapping
    """
    if isinstance(raw, ReportConfig):
        return raw
    if raw is None:
        raise ConfigurationError("Report configuration document is missing")
    if not isinstance(raw, Mapping):
        raise ConfigurationError(
            f"Report configuration must be a mapping, got {type(raw).__name__}"
        )

    highlight_groups = {
        key: _parse_highlight_group(value)
        for key, value in raw.items()
        if isinstance(key, str) and key.startswith(HIGHLIGHT_GROUP_PREFIX)
    }

    config = ReportConfig(
        page_title=str(raw.get("pageTitle") or raw.get("page_title") or ""),
        item_map=_parse_item_map(raw.get("itemMap", raw.get("item_map"))),
        highlight_groups=highlight_groups,
        detail_sections=_parse_detail_sections(raw.get("detailSections", raw.get("detail_sections"))),
        thresholds=coerce_thresholds(raw.get("thresholds")),
        page_limits=coerce_page_limits(raw.get("detailPageLimits", raw.get("detail_page_limits"))),
        scene_labels=_parse_scene_labels(raw.get("sceneLabels", raw.get("scene_labels"))),
        pagination_mode=_choice(
            raw.get("paginationMode", raw.get("pagination_mode")),
            (PAGINATION_STRICT, PAGINATION_SIMPLE), DEFAULT_PAGINATION_MODE, "pagination mode",
        ),
        tone_mode=_choice(
            raw.get("toneMode", raw.get("tone_mode")),
            (TONE_MODE_OVERRIDE, TONE_MODE_THRESHOLD), DEFAULT_TONE_MODE, "tone mode",
        ),
    )
    logger.info(
        f"Parsed report config: {len(config.item_map)} items, "
        f"{len(config.detail_sections)} detail sections, "
        f"{len(config.highlight_groups)} highlight groups"
    )
    return config
