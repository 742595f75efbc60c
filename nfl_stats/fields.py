# nfl_stats/fields.py
"""
Cell text -> typed values.

Every numeric parse defaults to 0 for absent, empty or non-numeric input.
Ratios built from parsed values default to 0 as well, so a zero default can
never leak out as NaN or Infinity.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Sequence, Union

SCHEDULED = "scheduled"
IN_PROGRESS = "in_progress"
FINAL = "final"
POSTPONED = "postponed"

LEAGUE_SIZE = 32

_WORD_RE = re.compile(r"[a-z]+")

StatKey = Union[str, Sequence[str]]


def safe_float(v: Any, default: float = 0.0) -> float:
    """Convert a value to float; tolerates '1,234', '45.2%' and blanks."""
    if v is None or isinstance(v, bool):
        return default
    if isinstance(v, (int, float)):
        return float(v) if math.isfinite(v) else default
    text = str(v).strip().replace(",", "").rstrip("%")
    if not text:
        return default
    try:
        out = float(text)
    except ValueError:
        return default
    return out if math.isfinite(out) else default


def safe_int(v: Any, default: int = 0) -> int:
    """Convert a value to int via safe_float; truncates toward zero."""
    f = safe_float(v, float(default))
    return int(f)


def parse_stat(cells: Mapping[str, str], key: StatKey) -> float:
    """
    Read a numeric stat from a row's cells.

    key is a data-stat name, or a sequence of names tried in order (templates
    rename columns between seasons). The first present, non-empty cell wins.
    """
    names = (key,) if isinstance(key, str) else tuple(key)
    for name in names:
        raw = cells.get(name)
        if raw is not None and str(raw).strip():
            return safe_float(raw)
    return 0.0


def parse_rank(cells: Mapping[str, str], key: StatKey) -> int:
    """Read a league rank; anything outside 1..32 is the unknown sentinel 0."""
    value = parse_stat(cells, key)
    if value != int(value):
        return 0
    rank = int(value)
    return rank if 1 <= rank <= LEAGUE_SIZE else 0


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when undefined."""
    if not denominator:
        return 0.0
    out = (numerator / denominator) * scale
    return out if math.isfinite(out) else 0.0


def map_status(raw: Any) -> str:
    """
    Map a free-text source status onto the four game states.

    Precedence: pre|scheduled, in|live, final|post, postponed|delayed.
    "postponed" contains "post" and "final" contains "in", so postponed and
    delayed are settled first and "in" only matches as a whole word.
    """
    text = str(raw or "").strip().lower()
    if not text:
        return SCHEDULED

    if "postponed" in text or "delayed" in text:
        return POSTPONED

    if "pre" in text or "scheduled" in text:
        return SCHEDULED

    words = _WORD_RE.findall(text)
    if "in" in words or "inprogress" in words or "live" in text:
        return IN_PROGRESS

    if "final" in text or "post" in text:
        return FINAL

    return SCHEDULED


def record_string(wins: int, losses: int, ties: int = 0) -> str:
    """Format a W-L record, appending ties only when there are any."""
    if ties:
        return f"{wins}-{losses}-{ties}"
    return f"{wins}-{losses}"
