# nfl_stats/teams.py
"""
Team identity reconciliation across sources.

PFR identifies teams by franchise URL slug (e.g. "sdg" for the Chargers) and
by display name; ESPN by numeric id, display name and its own abbreviation
("KC"). Everything downstream keys on the canonical code: PFR's team
abbreviation, lower-cased ("kan", "lac", "nwe").

The canonical game id is home-away-season-week and is the join key between
sources and cache entries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .result import InvalidInput

logger = logging.getLogger(__name__)

FIRST_WEEK = 1
LAST_WEEK = 18


@dataclass(frozen=True)
class Team:
    """One row of the fixed league table."""
    name: str
    code: str
    pfr_slug: str
    espn_abbrev: str


@dataclass(frozen=True)
class TeamRef:
    """A resolved (or best-effort synthesized) reference to a team."""
    code: str
    name: str
    pfr_slug: str
    resolved: bool = True


@dataclass(frozen=True)
class GameKey:
    """The four components a canonical game id is built from."""
    home_code: str
    away_code: str
    season: int
    week: int


class InvalidWeek(InvalidInput):
    """Week outside the regular season."""


TEAMS = (
    Team("Arizona Cardinals", "ari", "crd", "ARI"),
    Team("Atlanta Falcons", "atl", "atl", "ATL"),
    Team("Baltimore Ravens", "bal", "rav", "BAL"),
    Team("Buffalo Bills", "buf", "buf", "BUF"),
    Team("Carolina Panthers", "car", "car", "CAR"),
    Team("Chicago Bears", "chi", "chi", "CHI"),
    Team("Cincinnati Bengals", "cin", "cin", "CIN"),
    Team("Cleveland Browns", "cle", "cle", "CLE"),
    Team("Dallas Cowboys", "dal", "dal", "DAL"),
    Team("Denver Broncos", "den", "den", "DEN"),
    Team("Detroit Lions", "det", "det", "DET"),
    Team("Green Bay Packers", "gnb", "gnb", "GB"),
    Team("Houston Texans", "hou", "htx", "HOU"),
    Team("Indianapolis Colts", "ind", "clt", "IND"),
    Team("Jacksonville Jaguars", "jax", "jax", "JAX"),
    Team("Kansas City Chiefs", "kan", "kan", "KC"),
    Team("Las Vegas Raiders", "lvr", "rai", "LV"),
    Team("Los Angeles Chargers", "lac", "sdg", "LAC"),
    Team("Los Angeles Rams", "lar", "ram", "LAR"),
    Team("Miami Dolphins", "mia", "mia", "MIA"),
    Team("Minnesota Vikings", "min", "min", "MIN"),
    Team("New England Patriots", "nwe", "nwe", "NE"),
    Team("New Orleans Saints", "nor", "nor", "NO"),
    Team("New York Giants", "nyg", "nyg", "NYG"),
    Team("New York Jets", "nyj", "nyj", "NYJ"),
    Team("Philadelphia Eagles", "phi", "phi", "PHI"),
    Team("Pittsburgh Steelers", "pit", "pit", "PIT"),
    Team("San Francisco 49ers", "sfo", "sfo", "SF"),
    Team("Seattle Seahawks", "sea", "sea", "SEA"),
    Team("Tampa Bay Buccaneers", "tam", "tam", "TB"),
    Team("Tennessee Titans", "ten", "oti", "TEN"),
    Team("Washington Commanders", "was", "was", "WSH"),
)

# Former names still printed on older PFR season pages.
NAME_ALIASES = {
    "Oakland Raiders": "lvr",
    "San Diego Chargers": "lac",
    "St. Louis Rams": "lar",
    "Washington Redskins": "was",
    "Washington Football Team": "was",
}

_BY_CODE: Dict[str, Team] = {t.code: t for t in TEAMS}
_BY_SLUG: Dict[str, Team] = {t.pfr_slug: t for t in TEAMS}
_BY_NAME: Dict[str, Team] = {t.name.lower(): t for t in TEAMS}
_BY_NAME.update({alias.lower(): _BY_CODE[code] for alias, code in NAME_ALIASES.items()})
_BY_ESPN: Dict[str, Team] = {t.espn_abbrev: t for t in TEAMS}

_FALLBACK_STRIP_RE = re.compile(r"[\s\-]+")


def _lookup(key: str) -> Optional[Team]:
    k = key.strip()
    low = k.lower()
    return (
        _BY_CODE.get(low)
        or _BY_SLUG.get(low)
        or _BY_NAME.get(low)
        or _BY_ESPN.get(k.upper())
    )


def fallback_code(name: str) -> str:
    """Synthetic code for an unknown team: lower-cased, whitespace and '-' removed."""
    return _FALLBACK_STRIP_RE.sub("", (name or "").lower()) or "unknown"


def resolve_team(name_or_code: str) -> TeamRef:
    """
    Resolve a code, PFR slug, full/former name, or ESPN abbreviation.

    Unknown input never fails: a synthesized reference marked resolved=False
    is returned and the miss is logged.
    """
    team = _lookup(name_or_code or "")
    if team:
        return TeamRef(code=team.code, name=team.name, pfr_slug=team.pfr_slug)

    code = fallback_code(name_or_code)
    logger.warning("Unresolved team %r; using synthetic code %r", name_or_code, code)
    return TeamRef(code=code, name=(name_or_code or "").strip() or "Unknown", pfr_slug=code, resolved=False)


def team_name_for_code(code: str) -> str:
    """Full team name for a canonical code or slug; echoes the input when unknown."""
    team = _lookup(code or "")
    return team.name if team else code


def validate_week(week: int) -> int:
    """Return week when it is a regular-season week; raise InvalidWeek otherwise."""
    if isinstance(week, bool) or not isinstance(week, int):
        raise InvalidWeek(f"week must be an integer, got {week!r}")
    if not FIRST_WEEK <= week <= LAST_WEEK:
        raise InvalidWeek(f"week must be between {FIRST_WEEK} and {LAST_WEEK}, got {week}")
    return week


def make_game_id(home_code: str, away_code: str, season: int, week: int) -> str:
    """Build the canonical id home-away-season-week."""
    validate_week(week)
    for code in (home_code, away_code):
        if not code or "-" in code:
            raise InvalidInput(f"team code {code!r} cannot be used in a game id")
    return f"{home_code}-{away_code}-{int(season)}-{week}"


def parse_game_id(game_id: str) -> GameKey:
    """Inverse of make_game_id. Raises InvalidInput for anything it could not have built."""
    parts = (game_id or "").strip().split("-")
    if len(parts) != 4 or not all(parts):
        raise InvalidInput(f"malformed game id {game_id!r}")

    home, away, season_s, week_s = parts
    if not (season_s.isdigit() and week_s.isdigit()):
        raise InvalidInput(f"malformed game id {game_id!r}")

    week = validate_week(int(week_s))
    return GameKey(home_code=home, away_code=away, season=int(season_s), week=week)


def parse_week_or_none(value: Any) -> Optional[int]:
    """Regular-season week from an int or digit string; None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        week = value
    else:
        text = str(value if value is not None else "").strip()
        if not text.isdigit():
            return None
        week = int(text)
    return week if FIRST_WEEK <= week <= LAST_WEEK else None


def espn_abbrev_for(code: str) -> Optional[str]:
    """ESPN's abbreviation for a canonical code ("kan" -> "KC"), None when unknown."""
    team = _lookup(code or "")
    return team.espn_abbrev if team else None
