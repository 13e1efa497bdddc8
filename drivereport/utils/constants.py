"""
Application Constants

This module contains all report-engine constants to avoid magic numbers
and keep defaults in one place.
"""

from datetime import timedelta, timezone

# Tone thresholds (violation rate, percent)
DEFAULT_DANGER_THRESHOLD = 10.0
DEFAULT_WARN_THRESHOLD = 5.0
DEFAULT_GOOD_THRESHOLD = 0.0

# Tone priority (higher wins when an event carries several override tags)
TONE_PRIORITY = {"danger": 3, "warn": 2, "good": 1}

# Detail page row capacities
DEFAULT_FIRST_PAGE_LIMIT = 14
DEFAULT_OTHER_PAGE_LIMIT = 22

# Pagination modes
PAGINATION_STRICT = "strict"
PAGINATION_SIMPLE = "simple"
DEFAULT_PAGINATION_MODE = PAGINATION_STRICT

# Tone modes
TONE_MODE_OVERRIDE = "override"
TONE_MODE_THRESHOLD = "threshold"
DEFAULT_TONE_MODE = TONE_MODE_OVERRIDE

# Highlight sentinels
TITLE_UNSET = "タイトル未設定"
BODY_UNSET = "本文未設定"
UNCOMPUTABLE_TEXT = "-"

# Config keys
HIGHLIGHT_GROUP_PREFIX = "highlights_"
OVERVIEW_HIGHLIGHTS_KEY = "highlights_gaiyou"

# Legacy section keys mirrored onto top-level report fields
LEGACY_SECTION_ALIASES = {
    "sasetumae": ("sasetumaePages", "highlights_sasetumae"),
    "sasetuchuu": ("sasetuchuuPages", "highlights_sasetuchuu"),
}

# Overview occupies the first printed page
OVERVIEW_PAGE_NUMBER = 1

# Civil timezone for date labels (JST, fixed offset)
REPORT_TIMEZONE = timezone(timedelta(hours=9))

# Canonical map search endpoint
MAP_SEARCH_URL_TEMPLATE = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"

# Dataset store
DEFAULT_DATASET_TTL_SECONDS = 3600
DEFAULT_DATASET_MAX_SIZE = 100

# Config file
DEFAULT_CONFIG_PATH = "config/report_config.yml"
