"""
Driver Report Data Models

Defines the input records (drivers, events, scenes), the parsed
configuration document, and the report objects handed to the rendering
layer. Inputs are normalized into these dataclasses once, at the ingestion
boundary; every `to_dict()` emits the camelCase keys the report templates
consume.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from drivereport.utils.constants import (
    DEFAULT_DANGER_THRESHOLD,
    DEFAULT_FIRST_PAGE_LIMIT,
    DEFAULT_GOOD_THRESHOLD,
    DEFAULT_OTHER_PAGE_LIMIT,
    DEFAULT_PAGINATION_MODE,
    DEFAULT_TONE_MODE,
    DEFAULT_WARN_THRESHOLD,
    LEGACY_SECTION_ALIASES,
    TONE_PRIORITY,
)


class Tone(str, Enum):
    """
    Severity classification driving row and highlight styling.

    Also used as the highlight "kind" enumeration.
    """
    DANGER = 'danger'
    WARN = 'warn'
    GOOD = 'good'

    def __str__(self) -> str:
        return self.value

    @property
    def priority(self) -> int:
        return TONE_PRIORITY[self.value]


# Fixed kind order for highlight generation
HIGHLIGHT_KINDS: Tuple[Tone, ...] = (Tone.DANGER, Tone.WARN, Tone.GOOD)


# ---------- Input records ----------

@dataclass
class Period:
    """Reporting period; every field is optional."""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    days: Optional[int] = None
    total_minutes: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startDate": self.start_date,
            "endDate": self.end_date,
            "days": self.days,
            "totalMinutes": self.total_minutes,
        }


@dataclass
class SceneRecord:
    """
    One observed occurrence of an event.

    Attributes:
        captured_at: Raw capture timestamp (ISO string or epoch millis)
        map_view_url: Map search URL carrying `query=lat,lng`
        street_view_url: Street View URL carrying `viewpoint=lat,lng`
        movie_url: Link to the recorded clip
        extra: Input fields with no canonical slot, passed through as-is
    """
    captured_at: Any = None
    map_view_url: Optional[str] = None
    street_view_url: Optional[str] = None
    movie_url: Optional[str] = None
    risk_type: Any = None
    violation_type: Any = None
    timing: Any = None
    accel_decel: Any = None
    is_latest_violation: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update({
            "capturedAt": self.captured_at,
            "MapViewUrl": self.map_view_url,
            "streetViewUrl": self.street_view_url,
            "movieUrl": self.movie_url,
            "riskType": self.risk_type,
            "violationType": self.violation_type,
            "timing": self.timing,
            "accelDecel": self.accel_decel,
            "isLatestViolation": self.is_latest_violation,
        })
        return out


@dataclass
class EventRecord:
    """Violation/total counts for one maneuver type, with its scenes."""
    id: Any
    violations: int = 0
    total: int = 0
    risk: Optional[float] = None
    scenes: List[SceneRecord] = field(default_factory=list)


@dataclass
class HighlightEntry:
    """Pre-supplied highlight text for one kind."""
    title: str = ""
    body: str = ""
    metric: Any = None
    event_id: Any = None


@dataclass
class DriverStats:
    """
    Precomputed per-driver text.

    Attributes:
        highlights: Overview entries keyed by kind
        section_highlights: Detail entries keyed by section key, then kind
    """
    highlights: Dict[str, HighlightEntry] = field(default_factory=dict)
    section_highlights: Dict[str, Dict[str, HighlightEntry]] = field(default_factory=dict)


@dataclass
class DriverRecord:
    """One driver's telemetry for a reporting period."""
    driver_id: Any
    driver_name: Optional[str] = None
    office_name: Optional[str] = None
    company_name: Optional[str] = None
    period: Period = field(default_factory=Period)
    events: List[EventRecord] = field(default_factory=list)
    stats: DriverStats = field(default_factory=DriverStats)

    def find_event(self, event_id: Any) -> Optional[EventRecord]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None


# ---------- Configuration document ----------

@dataclass(frozen=True)
class ItemInfo:
    """Display metadata for one event id."""
    name: str = ""
    maneuver: str = ""
    page: Optional[int] = None


@dataclass(frozen=True)
class HighlightMeta:
    """Configured highlight for one kind."""
    id: Any = None
    badge: str = ""
    text_template: str = ""


@dataclass(frozen=True)
class DetailSectionConfig:
    """One configured detail section."""
    key: str
    title: str = ""
    event_id: Any = None
    highlights_key: Optional[str] = None


@dataclass(frozen=True)
class ToneThresholds:
    """Rate boundaries (percent) for tone classification."""
    danger: float = DEFAULT_DANGER_THRESHOLD
    warn: float = DEFAULT_WARN_THRESHOLD
    good: float = DEFAULT_GOOD_THRESHOLD


@dataclass(frozen=True)
class PageLimits:
    """Row capacity of the first and of every following detail page."""
    first: int = DEFAULT_FIRST_PAGE_LIMIT
    other: int = DEFAULT_OTHER_PAGE_LIMIT


@dataclass(frozen=True)
class ReportConfig:
    """Parsed, read-only configuration document for one report run."""
    page_title: str = ""
    item_map: Dict[Any, ItemInfo] = field(default_factory=dict)
    highlight_groups: Dict[str, Dict[str, HighlightMeta]] = field(default_factory=dict)
    detail_sections: Tuple[DetailSectionConfig, ...] = ()
    thresholds: ToneThresholds = field(default_factory=ToneThresholds)
    page_limits: PageLimits = field(default_factory=PageLimits)
    scene_labels: Dict[str, Dict[str, str]] = field(default_factory=dict)
    pagination_mode: str = DEFAULT_PAGINATION_MODE
    tone_mode: str = DEFAULT_TONE_MODE

    def item_name(self, event_id: Any) -> str:
        info = self.item_map.get(event_id)
        return info.name if info else ""

    def section_title_for_event(self, event_id: Any) -> str:
        for section in self.detail_sections:
            if section.event_id == event_id and section.title:
                return section.title
        return ""


# ---------- Report output ----------

@dataclass
class Highlight:
    """
    Templated callout for one kind.

    `title` and `text` are never empty; the builders substitute sentinels.
    """
    kind: str
    badge: str
    title: str
    text: str
    risk: Optional[float] = None
    rate: Optional[int] = None
    violations: Optional[int] = None
    total: Optional[int] = None
    metric: Any = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "kind": self.kind,
            "badge": self.badge,
            "title": self.title,
            "text": self.text,
        }
        for key in ("risk", "rate", "violations", "total", "metric"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        return out


@dataclass
class SummaryRow:
    """One event row in the overview table."""
    no: Any
    name: str
    tone: str
    tag: str
    tags: List[str]
    rate: int
    detail: str
    count: int
    risk: Optional[float] = None
    page_number: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "no": self.no,
            "name": self.name,
            "tag": self.tag,
            "tags": list(self.tags),
            "tone": self.tone,
            "rate": self.rate,
            "detail": self.detail,
            "count": self.count,
            "risk": self.risk,
            "pageNumber": self.page_number,
        }


@dataclass
class SummarySection:
    """Overview rows grouped under one maneuver."""
    title: str
    rows: List[SummaryRow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "rows": [row.to_dict() for row in self.rows]}


@dataclass
class DateChunk:
    """Scenes sharing one year and one `M/D` label."""
    date_label: str
    scenes: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"dateLabel": self.date_label, "scenes": list(self.scenes)}


@dataclass
class PageGroup:
    """Consecutive date chunks of one year on one page."""
    year: int
    dates: List[DateChunk] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"year": self.year, "dates": [d.to_dict() for d in self.dates]}


@dataclass
class Page:
    """One printed detail page."""
    groups: List[PageGroup] = field(default_factory=list)
    limit: int = 0

    @property
    def scene_count(self) -> int:
        return sum(len(d.scenes) for g in self.groups for d in g.dates)

    def scenes(self) -> List[Dict[str, Any]]:
        return [s for g in self.groups for d in g.dates for s in d.scenes]

    def to_dict(self) -> Dict[str, Any]:
        return {"groups": [g.to_dict() for g in self.groups], "limit": self.limit}


@dataclass
class DetailSection:
    """One configured section's paginated scenes and highlights."""
    key: str
    title: str
    event_id: Any
    pages: List[Page] = field(default_factory=list)
    highlights: List[Highlight] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "eventId": self.event_id,
            "pages": [p.to_dict() for p in self.pages],
            "highlights": [h.to_dict() for h in self.highlights],
        }


@dataclass(frozen=True)
class DriverRank:
    """Position of a driver within its batch (1 = lowest violation rate)."""
    position: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {"position": self.position, "total": self.total}


@dataclass
class ReportObject:
    """Everything the templates need to render one driver's report."""
    driver_id: Any
    driver_name: Optional[str]
    office_name: Optional[str]
    company_name: Optional[str]
    page_title: str
    period: Period
    avg_violation_rate_pct: float
    rank: DriverRank
    highlights_gaiyou: List[Highlight] = field(default_factory=list)
    sections: List[SummarySection] = field(default_factory=list)
    detail_sections: List[DetailSection] = field(default_factory=list)
    map_points: List[Dict[str, float]] = field(default_factory=list)
    # Legacy template fields, keyed by output name
    legacy_pages: Dict[str, List[Page]] = field(default_factory=dict)
    legacy_highlights: Dict[str, List[Highlight]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "driverId": self.driver_id,
            "driverName": self.driver_name,
            "officeName": self.office_name,
            "companyName": self.company_name,
            "pageTitle": self.page_title,
            "period": self.period.to_dict(),
            "avgViolationRatePct": self.avg_violation_rate_pct,
            "rank": self.rank.to_dict(),
            "highlights_gaiyou": [h.to_dict() for h in self.highlights_gaiyou],
            "sections": [s.to_dict() for s in self.sections],
            "detailSections": [d.to_dict() for d in self.detail_sections],
            "mapPoints": list(self.map_points),
        }
        for pages_name, highlights_name in LEGACY_SECTION_ALIASES.values():
            out[pages_name] = []
            out[highlights_name] = []
        for name, pages in self.legacy_pages.items():
            out[name] = [p.to_dict() for p in pages]
        for name, highlights in self.legacy_highlights.items():
            out[name] = [h.to_dict() for h in highlights]
        return out
