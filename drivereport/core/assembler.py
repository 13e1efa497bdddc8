"""
Section / Detail Assembler

Builds the overview summary table and the configured detail sections of
one driver's report, mirrors legacy section keys onto the fields older
templates read, and writes each section's start page back onto the
summary rows so the overview can link into the detail pages.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional

from drivereport.core.geo import extract_lat_lng
from drivereport.core.highlights import build_section_highlights
from drivereport.core.models import (
    DetailSection,
    DetailSectionConfig,
    DriverRecord,
    ReportConfig,
    ReportObject,
    SceneRecord,
    SummaryRow,
    SummarySection,
    Tone,
)
from drivereport.core.pagination import build_pages
from drivereport.core.ranking import percent_rate
from drivereport.core.tone import resolve_tone, tone_tag
from drivereport.utils.constants import LEGACY_SECTION_ALIASES, OVERVIEW_PAGE_NUMBER
from drivereport.utils.error_handling import safe_execute

logger = logging.getLogger(__name__)


# ---------- Overview table ----------

def build_summary_sections(
    driver: DriverRecord,
    config: ReportConfig,
    overrides: Optional[Mapping[Any, List[Tone]]] = None,
) -> List[SummarySection]:
    """
    Group the driver's events into overview rows by maneuver.

    Events without an item-map entry are skipped. Maneuvers appear in the
    order their first event appears.
    """
    sections: Dict[str, SummarySection] = {}

    for event in driver.events:
        info = config.item_map.get(event.id)
        if info is None:
            logger.warning(f"driver={driver.driver_id} event={event.id!r} has no itemMap entry, skipped")
            continue

        rate = percent_rate(event.violations, event.total)
        tone = resolve_tone(event.id, rate, config.thresholds, overrides, config.tone_mode)

        section = sections.setdefault(info.maneuver, SummarySection(title=info.maneuver))
        section.rows.append(SummaryRow(
            no=event.id,
            name=info.name,
            tone=tone.tone,
            tag=tone_tag(tone.tone),
            tags=list(tone.tags),
            rate=rate,
            detail=f"({event.violations}回/{event.total}回)",
            count=event.violations,
            risk=event.risk,
        ))

    return list(sections.values())


# ---------- Detail sections ----------

def scene_labels(scene: SceneRecord, config: ReportConfig) -> Dict[str, Any]:
    """Display labels for the enumerated scene fields with a configured map."""
    labels: Dict[str, Any] = {}
    for field_name, mapping in config.scene_labels.items():
        value = getattr(scene, field_name, None)
        if value is None:
            value = scene.extra.get(field_name)
        if value is None:
            continue
        labels[field_name] = mapping.get(str(value), value)
    return labels


def annotate_scene(scene: SceneRecord, config: ReportConfig) -> Dict[str, Any]:
    """Scene as a template dict with lat/lon/mapUrl and labels resolved."""
    point = extract_lat_lng(scene.map_view_url, scene.street_view_url)
    out = scene.to_dict()
    out.update({
        "lat": point.lat,
        "lon": point.lon,
        "mapUrl": point.map_url,
        "labels": scene_labels(scene, config),
    })
    return out


def build_detail_section(
    section: DetailSectionConfig,
    driver: DriverRecord,
    config: ReportConfig,
) -> DetailSection:
    """
    Paginate one configured section's scenes and build its highlights.

    A missing event yields a section with no pages rather than an error.
    """
    event = driver.find_event(section.event_id)
    if event is None:
        logger.info(f"driver={driver.driver_id} sec={section.key} evId={section.event_id!r} not found")
    raw_scenes = event.scenes if event is not None else []

    scenes = [annotate_scene(s, config) for s in raw_scenes]
    pages = build_pages(
        scenes,
        config.page_limits.first,
        config.page_limits.other,
        config.pagination_mode,
    )
    highlights = build_section_highlights(section, event, driver, config)

    logger.info(
        f"driver={driver.driver_id} sec={section.key} evId={section.event_id!r} "
        f"scenes={len(scenes)} pages={len(pages)} highlights={len(highlights)}"
    )
    return DetailSection(
        key=section.key,
        title=section.title,
        event_id=section.event_id,
        pages=pages,
        highlights=highlights,
    )


def build_detail_sections(driver: DriverRecord, config: ReportConfig) -> List[DetailSection]:
    """All configured detail sections, in configuration order."""
    return [build_detail_section(section, driver, config) for section in config.detail_sections]


def apply_legacy_aliases(report: ReportObject, details: List[DetailSection]) -> None:
    """Mirror well-known section keys onto the legacy report fields."""
    for key, (pages_name, highlights_name) in LEGACY_SECTION_ALIASES.items():
        match = next((d for d in details if d.key == key), None)
        if match is None:
            continue
        report.legacy_pages[pages_name] = match.pages
        report.legacy_highlights[highlights_name] = match.highlights


def compute_start_pages(details: List[DetailSection]) -> Dict[Any, int]:
    """
    Start page of each section's event.

    The overview is page 1; each section takes max(1, len(pages)) pages and
    starts on the page after everything before it.
    """
    start_pages: Dict[Any, int] = {}
    page_counter = OVERVIEW_PAGE_NUMBER
    for detail in details:
        if detail.event_id is not None:
            start_pages[detail.event_id] = page_counter + 1
        page_counter += max(1, len(detail.pages))
    return start_pages


def assign_page_numbers(sections: List[SummarySection], start_pages: Mapping[Any, int]) -> None:
    """Write section start pages onto the matching overview rows."""
    for section in sections:
        for row in section.rows:
            page = start_pages.get(row.no)
            if page:
                row.page_number = page


def _assemble(report: ReportObject, driver: DriverRecord, config: ReportConfig) -> List[DetailSection]:
    logger.info(f"driver={driver.driver_id} starting detailSections build")
    details = build_detail_sections(driver, config)
    apply_legacy_aliases(report, details)
    assign_page_numbers(report.sections, compute_start_pages(details))
    logger.info(f"driver={driver.driver_id} detailSections total={len(details)}")
    return details


def assemble_details(report: ReportObject, driver: DriverRecord, config: ReportConfig) -> None:
    """
    Fill detail sections, legacy aliases and overview page numbers.

    Any failure degrades the report to no detail sections (and no legacy
    pages) instead of failing the driver.
    """
    details = safe_execute(
        _assemble, report, driver, config,
        default=None,
        error_context=f"detailSections generation error for driver={driver.driver_id}",
    )
    if details is None:
        report.detail_sections = []
        report.legacy_pages.clear()
        report.legacy_highlights.clear()
        for section in report.sections:
            for row in section.rows:
                row.page_number = None
        return
    report.detail_sections = details
