"""Keyword and pattern tables used to read calendar sheets.

Every heuristic used while walking sheets lives here as a named table or a
small predicate over a single string. The row and column logic in
``structure_detector`` and ``activity_extractor`` only calls into this
module.
"""

from __future__ import annotations

import re
from types import MappingProxyType

# =============================================================================
# Sheet layout
# =============================================================================

HEADER_SCAN_ROWS = 3
"""Headers are only looked for in the first rows of a sheet."""

DATA_START_ROW = 3
"""First zero-based row that may hold an activity."""

TITLE_SCAN_ROWS = 8
TITLE_MIN_LENGTH = 10

# =============================================================================
# Header cells
# =============================================================================

ACTIVITY_COLUMN_KEYWORDS: tuple[str, ...] = ("activity", "stage")

HEADER_TOKENS: frozenset[str] = frozenset(
    {"s/n", "sn", "no", "no.", "stage", "activity", "activities", "stage of activity"}
)
"""Activity cell values that repeat a header instead of naming an activity."""

_MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

MONTH_TOKENS: MappingProxyType[str, tuple[int, str]] = MappingProxyType(
    {
        **{name[:3]: (i, name.capitalize()) for i, name in enumerate(_MONTHS, 1)},
        **{name: (i, name.capitalize()) for i, name in enumerate(_MONTHS, 1)},
    }
)
"""Month header token -> (month number, full month name)."""

WEEK_PATTERN = re.compile(r"^(?:wk(\d+)|week\s*(\d+))$")

# =============================================================================
# Marker cells
# =============================================================================

MARKER_TOKENS: frozenset[str] = frozenset({"x", "✓", "✔", "•", "√"})

_NUMERIC_TEXT = re.compile(r"^[+-]?\d+(?:\.\d+)?$")
_NAME_PREFIX = re.compile(r"^(?:\d+(?:[.):\-]\s*|\s+)|\|\s*)+")
_BARE_INTEGER = re.compile(r"^\d+$")

# =============================================================================
# Workbook metadata
# =============================================================================

TITLE_KEYWORDS: tuple[str, ...] = ("CALENDAR", "PRODUCTION", "SCHEDULE", "SEASON")

SEASON_KEYWORDS: tuple[str, ...] = ("major", "minor", "dry", "wet")
DEFAULT_SEASON = "main"

YEAR_PATTERN = re.compile(r"20\d{2}")

BREED_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("cobb", "Cobb 500"),
    ("ross", "Ross 308"),
    ("isa", "Isa Brown"),
    ("lohmann", "Lohmann Brown"),
)

SEASONAL_COMMODITIES: tuple[str, ...] = (
    "maize",
    "rice",
    "cassava",
    "yam",
    "plantain",
    "cocoa",
    "coffee",
    "tomato",
    "pepper",
    "onion",
    "okra",
    "garden egg",
    "beans",
    "groundnut",
    "soybean",
    "cowpea",
    "oil palm",
    "coconut",
)

CYCLE_COMMODITIES: tuple[str, ...] = (
    "broiler",
    "layer",
    "cockerel",
    "duck",
    "turkey",
    "guinea fowl",
    "goose",
)

POULTRY_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("layer", ("layer", "egg production", "laying hen", "hen")),
    ("broiler", ("broiler", "meat production", "chicken meat", "fryer")),
    ("cockerel", ("cockerel", "rooster", "cock")),
    ("duck", ("duck", "waterfowl")),
    ("turkey", ("turkey",)),
    ("guinea fowl", ("guinea fowl", "guinea", "fowl")),
    ("goose", ("goose",)),
)
"""Poultry type -> phrases that name it, checked before plain commodity names."""


# =============================================================================
# Predicates
# =============================================================================


def normalize_token(text: str) -> str:
    """Lower-case, trim and drop a trailing full stop (``"Jan."`` -> ``"jan"``)."""
    return text.strip().lower().rstrip(".").strip()


def match_month(text: str) -> tuple[int, str] | None:
    """Return (month number, full name) when the whole cell is a month token."""
    return MONTH_TOKENS.get(normalize_token(text))


def match_week(text: str) -> int | None:
    """Return the week number when the whole cell is a week token."""
    match = WEEK_PATTERN.match(normalize_token(text))
    if match is None:
        return None
    return int(match.group(1) or match.group(2))


def is_activity_header(text: str) -> bool:
    lowered = text.strip().lower()
    return any(keyword in lowered for keyword in ACTIVITY_COLUMN_KEYWORDS)


def is_header_token(text: str) -> bool:
    return text.strip().lower() in HEADER_TOKENS


def is_bare_integer(text: str) -> bool:
    return bool(_BARE_INTEGER.match(text.strip()))


def is_numeric_text(text: str) -> bool:
    return bool(_NUMERIC_TEXT.match(text.strip()))


def is_marker_text(text: str) -> bool:
    """Whether a time-axis cell's text marks its period as active.

    A marker is a single character, a tick/cross/bullet token, a number or a
    date range written with a hyphen.
    """
    stripped = text.strip()
    if not stripped:
        return False
    return (
        len(stripped) == 1
        or stripped.lower() in MARKER_TOKENS
        or is_numeric_text(stripped)
        or "-" in stripped
    )


def clean_activity_name(name: str) -> str:
    """Strip row numbering and pipe characters from the front of a name.

    ``"2. Land preparation"`` and ``"| 3 Harvesting"`` become
    ``"Land preparation"`` and ``"Harvesting"``; ``"3rd weeding"`` is kept.
    Cleaning an already clean name returns it unchanged.
    """
    stripped = _NAME_PREFIX.sub("", name.strip())
    return " ".join(stripped.split())


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", text) is not None


def infer_commodity(text: str) -> str | None:
    """Find the commodity or poultry type named in free text.

    Poultry phrases are checked first, then seasonal and cycle commodity
    names. Matching is on whole words.
    """
    lowered = text.lower()
    for commodity, phrases in POULTRY_PATTERNS:
        if any(_contains_phrase(lowered, phrase) for phrase in phrases):
            return commodity
    for commodity in (*SEASONAL_COMMODITIES, *CYCLE_COMMODITIES):
        if _contains_phrase(lowered, commodity):
            return commodity
    return None


def is_title_text(text: str) -> bool:
    if len(text) <= TITLE_MIN_LENGTH:
        return False
    upper = text.upper()
    return any(keyword in upper for keyword in TITLE_KEYWORDS)


def extract_season(title: str | None) -> str:
    if not title:
        return DEFAULT_SEASON
    lowered = title.lower()
    for season in SEASON_KEYWORDS:
        if _contains_phrase(lowered, season):
            return season
    return DEFAULT_SEASON


def extract_year(text: str | None) -> int | None:
    if not text:
        return None
    match = YEAR_PATTERN.search(text)
    return int(match.group(0)) if match else None


def extract_breed_type(text: str | None) -> str | None:
    if not text:
        return None
    lowered = text.lower()
    for keyword, breed in BREED_KEYWORDS:
        if _contains_phrase(lowered, keyword):
            return breed
    return None
