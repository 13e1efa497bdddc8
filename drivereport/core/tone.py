"""
Tone Classifier

Maps a violation rate to a severity tone (danger / warn / good) using the
configured thresholds, or, in override mode, takes the tone from the
overview highlights that reference an event.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
import math

from drivereport.core.models import Tone, ToneThresholds
from drivereport.utils.constants import (
    DEFAULT_DANGER_THRESHOLD,
    DEFAULT_GOOD_THRESHOLD,
    DEFAULT_WARN_THRESHOLD,
    TONE_MODE_OVERRIDE,
)

logger = logging.getLogger(__name__)

# ---------- Data Models ----------

@dataclass(frozen=True)
class ToneResult:
    """Primary tone plus every override tag, highest priority first."""
    tone: str                 # "danger"|"warn"|"good"|""
    tags: Tuple[str, ...] = ()

# ---------- Thresholds ----------

def finite_or(value: Any, default: float) -> float:
    """float(value) when it is a finite number, else `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default

def coerce_thresholds(raw: Any) -> ToneThresholds:
    """
    Build tone thresholds, falling back per value to the 10/5/0 defaults.

    Example:
        >>> coerce_thresholds({"danger": "12", "warn": None})
        ToneThresholds(danger=12.0, warn=5.0, good=0.0)
    """
    raw = raw if isinstance(raw, Mapping) else {}
    return ToneThresholds(
        danger=finite_or(raw.get("danger"), DEFAULT_DANGER_THRESHOLD),
        warn=finite_or(raw.get("warn"), DEFAULT_WARN_THRESHOLD),
        good=finite_or(raw.get("good"), DEFAULT_GOOD_THRESHOLD),
    )

# ---------- Classification ----------

def classify_tone(rate: float, thresholds: Optional[ToneThresholds] = None) -> str:
    """
    Classify a violation rate (percent).

    rate >= danger -> "danger"; rate >= warn -> "warn"; rate <= good -> "good";
    anything in between has no tone.
    """
    th = thresholds or ToneThresholds()
    r = finite_or(rate, 0.0)

    if r >= th.danger:
        return Tone.DANGER.value
    if r >= th.warn:
        return Tone.WARN.value
    if r <= th.good:
        return Tone.GOOD.value
    return ""

def tone_tag(tone: str) -> str:
    """Row marker for a tone: '!' for danger/warn, 'good' for good."""
    if tone in (Tone.DANGER.value, Tone.WARN.value):
        return "!"
    if tone == Tone.GOOD.value:
        return "good"
    return ""

def _as_tone(kind: Any) -> Optional[Tone]:
    try:
        return Tone(str(kind))
    except ValueError:
        return None

def collect_tone_overrides(references: Iterable[Tuple[Any, Any]]) -> Dict[Any, List[Tone]]:
    """
    Tag events with the kinds of the overview highlights that reference them.

    Args:
        references: (kind, event_id) pairs; pairs with an unknown kind or no
            event id are ignored

    Returns:
        event_id -> tones, highest priority first, without duplicates
    """
    overrides: Dict[Any, List[Tone]] = {}
    for kind, event_id in references:
        tone = _as_tone(kind)
        if tone is None or event_id is None:
            continue
        tones = overrides.setdefault(event_id, [])
        if tone not in tones:
            tones.append(tone)
    for tones in overrides.values():
        tones.sort(key=lambda t: t.priority, reverse=True)
    return overrides

def resolve_tone(
    event_id: Any,
    rate: float,
    thresholds: Optional[ToneThresholds] = None,
    overrides: Optional[Mapping[Any, List[Tone]]] = None,
    mode: str = TONE_MODE_OVERRIDE,
) -> ToneResult:
    """
    Decide an event's tone.

    In override mode an event with override tags takes the highest-priority
    tag and keeps the full ordered set; every other event (and every event in
    threshold mode) is classified by rate.
    """
    if mode == TONE_MODE_OVERRIDE and overrides:
        tones = overrides.get(event_id)
        if tones:
            return ToneResult(tone=tones[0].value, tags=tuple(t.value for t in tones))

    tone = classify_tone(rate, thresholds)
    return ToneResult(tone=tone, tags=(tone,) if tone else ())
