"""
Scene Grouping & Pagination Engine

Sorts an event's scenes newest first, groups them by capture year and
`M/D` date label in fixed UTC+9 civil time, and folds the date chunks into
printed pages with a row budget (one capacity for the first page, another
for every following page).

Pagination modes:
- simple: a date chunk is atomic; a chunk that does not fit moves to a new
  page, and a chunk larger than a whole page overflows that page.
- strict: a chunk that fits on a fresh page is kept whole; a chunk larger
  than a page is sliced across pages so no page exceeds its capacity.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from drivereport.core.models import DateChunk, Page, PageGroup
from drivereport.utils.constants import (
    DEFAULT_FIRST_PAGE_LIMIT,
    DEFAULT_OTHER_PAGE_LIMIT,
    PAGINATION_SIMPLE,
    PAGINATION_STRICT,
    REPORT_TIMEZONE,
)

logger = logging.getLogger(__name__)

EPOCH = pd.Timestamp(0, unit="s", tz="UTC").tz_convert(REPORT_TIMEZONE)

CAPTURED_AT_KEY = "capturedAt"


# ---------- Timestamps ----------

def parse_captured_at(value: Any) -> pd.Timestamp:
    """
    Parse a capture timestamp into a UTC+9 pandas Timestamp.

    ISO strings with an offset are converted; naive values are taken as
    UTC+9 civil time; numbers are epoch milliseconds. Anything unparseable
    becomes the epoch.
    """
    if value is None or isinstance(value, bool):
        return EPOCH
    try:
        if isinstance(value, (int, float)):
            ts = pd.Timestamp(value, unit="ms", tz="UTC")
        else:
            text = value.strip() if isinstance(value, str) else value
            if isinstance(text, str) and not text:
                return EPOCH
            ts = pd.Timestamp(text)
        if pd.isna(ts):
            return EPOCH
        if ts.tzinfo is None:
            return ts.tz_localize(REPORT_TIMEZONE)
        return ts.tz_convert(REPORT_TIMEZONE)
    except (ValueError, TypeError, OverflowError):
        return EPOCH


def date_label(ts: pd.Timestamp) -> str:
    """`M/D` without zero padding."""
    return f"{ts.month}/{ts.day}"


def time_label(ts: pd.Timestamp) -> str:
    return f"{ts.hour:02d}:{ts.minute:02d}"


# ---------- Sorting & grouping ----------

def sort_scenes(scenes: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Newest first; scenes with equal timestamps keep their input order."""
    return sorted(scenes, key=lambda s: parse_captured_at(s.get(CAPTURED_AT_KEY)), reverse=True)


@dataclass
class YearGroup:
    """Date chunks of one capture year, in first-seen order."""
    year: int
    dates: List[DateChunk] = field(default_factory=list)


def group_scenes(sorted_scenes: Sequence[Dict[str, Any]]) -> List[YearGroup]:
    """
    Group already-sorted scenes by year, then by `M/D` label.

    Each scene is copied with `year`, `dateLabel` and `timeLabel` added.
    """
    by_year: Dict[int, Dict[str, List[Dict[str, Any]]]] = {}
    for scene in sorted_scenes:
        ts = parse_captured_at(scene.get(CAPTURED_AT_KEY))
        label = date_label(ts)
        labelled = dict(scene)
        labelled.update({"year": ts.year, "dateLabel": label, "timeLabel": time_label(ts)})
        by_year.setdefault(ts.year, {}).setdefault(label, []).append(labelled)

    return [
        YearGroup(year=year, dates=[DateChunk(date_label=md, scenes=items) for md, items in dates.items()])
        for year, dates in by_year.items()
    ]


# ---------- Pagination ----------

class _PageAccumulator:
    """Page under construction: merged year groups plus a row budget."""

    def __init__(self, limit: int):
        self.limit = limit
        self.groups: List[PageGroup] = []
        self.row_count = 0

    @property
    def remaining(self) -> int:
        return self.limit - self.row_count

    def add(self, year: int, label: str, scenes: List[Dict[str, Any]]) -> None:
        chunk = DateChunk(date_label=label, scenes=list(scenes))
        last = self.groups[-1] if self.groups else None
        if last is not None and last.year == year:
            last.dates.append(chunk)
        else:
            self.groups.append(PageGroup(year=year, dates=[chunk]))
        self.row_count += len(scenes)

    def to_page(self) -> Optional[Page]:
        if self.row_count <= 0:
            return None
        return Page(groups=self.groups, limit=self.limit)


def _positive(limit: Any, default: int) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def paginate(
    groups: Sequence[YearGroup],
    first_limit: int = DEFAULT_FIRST_PAGE_LIMIT,
    other_limit: int = DEFAULT_OTHER_PAGE_LIMIT,
    mode: str = PAGINATION_STRICT,
) -> List[Page]:
    """
    Fold grouped date chunks into pages.

    Args:
        groups: Output of group_scenes (newest first)
        first_limit: Row capacity of the first page
        other_limit: Row capacity of every following page
        mode: "strict" (split oversized chunks) or "simple" (atomic chunks)

    Returns:
        Pages in reverse-chronological order; none of them is empty
    """
    first_limit = _positive(first_limit, DEFAULT_FIRST_PAGE_LIMIT)
    other_limit = _positive(other_limit, DEFAULT_OTHER_PAGE_LIMIT)

    pages: List[Page] = []
    current = _PageAccumulator(first_limit)

    def close() -> _PageAccumulator:
        page = current.to_page()
        if page is not None:
            pages.append(page)
        return _PageAccumulator(other_limit)

    for group in groups:
        for chunk in group.dates:
            need = len(chunk.scenes)
            if need == 0:
                continue

            if mode == PAGINATION_SIMPLE or need <= other_limit:
                if current.row_count > 0 and current.row_count + need > current.limit:
                    current = close()
                if mode == PAGINATION_SIMPLE or need <= current.limit:
                    current.add(group.year, chunk.date_label, chunk.scenes)
                    continue

            # Strict mode, chunk larger than a page: slice it
            rest = list(chunk.scenes)
            while rest:
                if current.remaining <= 0:
                    current = close()
                take = rest[:current.remaining]
                current.add(group.year, chunk.date_label, take)
                rest = rest[len(take):]

    close()
    return pages


def build_pages(
    scenes: Sequence[Dict[str, Any]],
    first_limit: int = DEFAULT_FIRST_PAGE_LIMIT,
    other_limit: int = DEFAULT_OTHER_PAGE_LIMIT,
    mode: str = PAGINATION_STRICT,
) -> List[Page]:
    """Sort, group and paginate one section's scenes."""
    groups = group_scenes(sort_scenes(scenes))
    pages = paginate(groups, first_limit, other_limit, mode)
    logger.debug(
        f"Paginated {len(scenes)} scenes into {len(pages)} pages "
        f"(first={first_limit}, other={other_limit}, mode={mode})"
    )
    return pages
