"""
Highlight Text Builder

Builds the callouts shown on the overview page and at the top of each
detail section. Text comes either from a configured template filled with an
event's counts, or directly from per-driver precomputed title/body text.
Title and text are never empty: missing values become fixed sentinels.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

from drivereport.core.expressions import render_template
from drivereport.core.models import (
    HIGHLIGHT_KINDS,
    DetailSectionConfig,
    DriverRecord,
    EventRecord,
    Highlight,
    HighlightEntry,
    HighlightMeta,
    ReportConfig,
    Tone,
)
from drivereport.core.ranking import percent_rate
from drivereport.utils.constants import BODY_UNSET, OVERVIEW_HIGHLIGHTS_KEY, TITLE_UNSET

logger = logging.getLogger(__name__)


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def resolve_title(title: Any, event_id: Any, config: ReportConfig) -> str:
    """
    Title with cross-reference fallback.

    Order: the given title, the item-map name of `event_id`, the title of a
    detail section showing that event, then the unset sentinel.
    """
    if not _blank(title):
        return str(title)
    if event_id is not None:
        name = config.item_name(event_id)
        if not _blank(name):
            return name
        section_title = config.section_title_for_event(event_id)
        if not _blank(section_title):
            return section_title
    return TITLE_UNSET


def resolve_text(text: Any) -> str:
    return BODY_UNSET if _blank(text) else str(text)


def event_values(event: EventRecord) -> Dict[str, Any]:
    """Template source values for one event."""
    return {
        "total": event.total,
        "violations": event.violations,
        "rate": percent_rate(event.violations, event.total),
        "risk": event.risk,
    }


def build_template_highlight(
    kind: str,
    meta: HighlightMeta,
    event: EventRecord,
    config: ReportConfig,
) -> Highlight:
    """
    Strategy (a): fill the configured template from the event's counts.

    Rate in the text is a whole-number percentage, round(v / t * 100).
    """
    values = event_values(event)
    return Highlight(
        kind=kind,
        badge=meta.badge or "",
        title=resolve_title(None, event.id, config),
        text=resolve_text(render_template(meta.text_template, values)),
    )


def build_direct_highlight(
    kind: str,
    meta: Optional[HighlightMeta],
    entry: HighlightEntry,
    config: ReportConfig,
) -> Highlight:
    """
    Strategy (b): take title/body from precomputed per-driver text.

    A blank title is resolved through the event's display name; `metric`
    is passed through unchanged.
    """
    event_id = entry.event_id if entry.event_id is not None else (meta.id if meta else None)
    return Highlight(
        kind=kind,
        badge=(meta.badge if meta else "") or "",
        title=resolve_title(entry.title, event_id, config),
        text=resolve_text(entry.body),
        metric=entry.metric,
    )


def build_overview_highlights(driver: DriverRecord, config: ReportConfig) -> List[Highlight]:
    """
    Overview (gaiyou) highlights in fixed kind order.

    A kind with a precomputed entry uses it; otherwise a configured kind
    whose event the driver has uses the template; otherwise it is skipped.
    """
    metas = config.highlight_groups.get(OVERVIEW_HIGHLIGHTS_KEY, {})
    highlights: List[Highlight] = []

    for kind in HIGHLIGHT_KINDS:
        meta = metas.get(kind.value)
        entry = driver.stats.highlights.get(kind.value)
        if entry is not None:
            highlights.append(build_direct_highlight(kind.value, meta, entry, config))
            continue
        if meta is None:
            continue
        event = driver.find_event(meta.id)
        if event is None:
            logger.debug(f"driver={driver.driver_id} overview {kind.value}: event {meta.id!r} not found")
            continue
        highlights.append(build_template_highlight(kind.value, meta, event, config))

    return highlights


def overview_references(driver: DriverRecord, config: ReportConfig) -> List[Tuple[str, Any]]:
    """
    (kind, event_id) pairs referenced by the overview highlights.

    Precomputed entries reference their own event id (or the configured
    one); template highlights reference the configured id when the driver
    has that event.
    """
    metas = config.highlight_groups.get(OVERVIEW_HIGHLIGHTS_KEY, {})
    references: List[Tuple[str, Any]] = []
    for kind in HIGHLIGHT_KINDS:
        meta = metas.get(kind.value)
        entry = driver.stats.highlights.get(kind.value)
        if entry is not None:
            event_id = entry.event_id if entry.event_id is not None else (meta.id if meta else None)
        elif meta is not None and driver.find_event(meta.id) is not None:
            event_id = meta.id
        else:
            continue
        if event_id is not None:
            references.append((kind.value, event_id))
    return references


def kind_metrics(kind: str, event: EventRecord) -> Dict[str, Any]:
    """Numbers attached to a detail highlight; danger/warn also get a metric."""
    rate = percent_rate(event.violations, event.total)
    metrics: Dict[str, Any] = {
        "risk": event.risk,
        "rate": rate,
        "violations": event.violations,
        "total": event.total,
    }
    if kind == Tone.DANGER.value:
        metrics["metric"] = event.risk
    elif kind == Tone.WARN.value:
        metrics["metric"] = f"{rate}% ({event.violations}回/{event.total}回)"
    return metrics


def build_section_highlights(
    section: DetailSectionConfig,
    event: Optional[EventRecord],
    driver: DriverRecord,
    config: ReportConfig,
) -> List[Highlight]:
    """
    Highlights for one detail section, in fixed kind order.

    Precomputed entries for the section win; otherwise the section's
    highlight group is filled from the section event. Without the event or
    a highlight group only precomputed entries are produced.
    """
    metas = config.highlight_groups.get(section.highlights_key or "", {})
    entries = driver.stats.section_highlights.get(section.key, {})
    highlights: List[Highlight] = []

    for kind in HIGHLIGHT_KINDS:
        meta = metas.get(kind.value)
        entry = entries.get(kind.value)
        if entry is not None:
            if entry.event_id is None and event is not None:
                entry = HighlightEntry(
                    title=entry.title, body=entry.body, metric=entry.metric, event_id=event.id,
                )
            highlights.append(build_direct_highlight(kind.value, meta, entry, config))
            continue
        if meta is None or event is None:
            continue
        highlight = build_template_highlight(kind.value, meta, event, config)
        for key, value in kind_metrics(kind.value, event).items():
            setattr(highlight, key, value)
        highlights.append(highlight)

    return highlights
