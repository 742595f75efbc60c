# nfl_stats/services/espn_service.py
"""
JSON sports API (ESPN) payloads -> normalized records.

Responsibilities:
  - scoreboard -> ScheduledGame entries with canonical ids, venue, records, leaders
  - current week
  - team roster
  - league-wide team statistics (ranked here; ESPN publishes no ranks)
  - player statistics

Each payload is checked for its expected shape first; anything else is
Err(Malformed), never an untyped dict passed downstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timezone
from typing import Any, Dict, List, Optional

from dateutil import parser as dateparser

from ..assembler import build_espn_team_stats, build_player_stats, extract_leaders, extract_records
from ..clients import EspnClient
from ..fields import map_status, safe_int
from ..models import TBD, PlayerStatLine, RosterPlayer, ScheduledGame, TeamStatRecord, Venue
from ..result import Err, InvalidInput, Malformed, Ok, Result
from ..retry import RetryPolicy
from ..teams import make_game_id, parse_week_or_none, resolve_team

logger = logging.getLogger(__name__)

_ISO_FMT = "%Y-%m-%dT%H:%M:%S.000Z"


def _as_list(payload: Any, key: str) -> Optional[list]:
    if not isinstance(payload, dict):
        return None
    value = payload.get(key)
    return value if isinstance(value, list) else None


def _iso_instant(raw: Any) -> Optional[str]:
    """ESPN dates look like '2025-09-05T00:20Z'; re-render in the shared ISO format."""
    if not isinstance(raw, str) or not raw:
        return None
    try:
        dt = dateparser.isoparse(raw)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(_ISO_FMT)


def _venue(comp: Dict[str, Any]) -> Venue:
    venue = comp.get("venue") if isinstance(comp.get("venue"), dict) else {}
    address = venue.get("address") if isinstance(venue.get("address"), dict) else {}
    return Venue(
        name=venue.get("fullName") or TBD,
        city=address.get("city") or TBD,
        state=address.get("state") or TBD,
    )


def parse_event(event: Any, season: int, default_week: int) -> Result[ScheduledGame, Malformed]:
    """One scoreboard event -> ScheduledGame, or Malformed naming what was missing."""
    if not isinstance(event, dict):
        return Err(Malformed("scoreboard event", "not an object"))

    event_id = str(event.get("id") or "")
    comps = event.get("competitions")
    comp = comps[0] if isinstance(comps, list) and comps and isinstance(comps[0], dict) else None
    if comp is None:
        return Err(Malformed("scoreboard event", f"{event_id or '?'} has no competition"))

    sides: Dict[str, Dict[str, Any]] = {}
    for c in comp.get("competitors") or []:
        if isinstance(c, dict) and c.get("homeAway") in ("home", "away") and isinstance(c.get("team"), dict):
            sides[c["homeAway"]] = c
    if "home" not in sides or "away" not in sides:
        return Err(Malformed("scoreboard event", f"{event_id or '?'} lacks a home/away competitor"))

    date_time = _iso_instant(event.get("date"))
    if date_time is None:
        return Err(Malformed("scoreboard event", f"{event_id or '?'} has no usable date"))

    week_block = event.get("week") if isinstance(event.get("week"), dict) else {}
    raw_week = week_block.get("number")
    week = default_week if raw_week is None else parse_week_or_none(raw_week)
    if week is None:
        return Err(Malformed("scoreboard event", f"{event_id or '?'} has week {raw_week!r} outside 1..18"))
    season_block = event.get("season") if isinstance(event.get("season"), dict) else {}
    season = safe_int(season_block.get("year"), season) or season

    home_team, away_team = sides["home"]["team"], sides["away"]["team"]
    home = resolve_team(str(home_team.get("displayName") or home_team.get("abbreviation") or ""))
    away = resolve_team(str(away_team.get("displayName") or away_team.get("abbreviation") or ""))

    status_block = event.get("status") if isinstance(event.get("status"), dict) else {}
    status_type = status_block.get("type") if isinstance(status_block.get("type"), dict) else {}

    try:
        game_id = make_game_id(home.code, away.code, season, week)
    except InvalidInput as e:
        return Err(Malformed("scoreboard event", f"{event_id or '?'}: {e}"))

    return Ok(
        ScheduledGame(
            game_id=game_id,
            season=season,
            week=week,
            date_time=date_time,
            status=map_status(status_type.get("name")),
            home=home,
            away=away,
            venue=_venue(comp),
            home_record=extract_records(sides["home"].get("records")),
            away_record=extract_records(sides["away"].get("records")),
            home_abbrev=home_team.get("abbreviation"),
            away_abbrev=away_team.get("abbreviation"),
            home_source_id=str(home_team.get("id") or "") or None,
            away_source_id=str(away_team.get("id") or "") or None,
            leaders=extract_leaders(comp.get("leaders")),
            source_id=event_id or None,
        )
    )


def parse_scoreboard(payload: Any, season: int, week: int) -> Result[List[ScheduledGame], Malformed]:
    """Whole scoreboard; malformed events are logged and dropped, a malformed envelope is an Err."""
    events = _as_list(payload, "events")
    if events is None:
        return Err(Malformed("scoreboard", "missing events[]"))

    games: List[ScheduledGame] = []
    for event in events:
        parsed = parse_event(event, season, week)
        if isinstance(parsed, Err):
            logger.warning("Skipping event: %s", parsed.error)
            continue
        games.append(parsed.value)
    return Ok(games)


def parse_roster(payload: Any) -> Result[List[RosterPlayer], Malformed]:
    """Flatten ESPN's position-grouped athlete lists."""
    groups = _as_list(payload, "athletes")
    if groups is None:
        return Err(Malformed("roster", "missing athletes[]"))

    items: List[Dict[str, Any]] = []
    for g in groups:
        if isinstance(g, dict) and isinstance(g.get("items"), list):
            items.extend(i for i in g["items"] if isinstance(i, dict))
        elif isinstance(g, dict) and g.get("id"):
            # some responses are flat athlete lists
            items.append(g)

    players: List[RosterPlayer] = []
    for item in items:
        athlete = item.get("athlete") if isinstance(item.get("athlete"), dict) else item
        player_id = str(athlete.get("id") or item.get("id") or "")
        name = athlete.get("displayName") or athlete.get("fullName") or item.get("fullName") or item.get("name") or ""
        if not player_id or not name:
            continue
        position = athlete.get("position") if isinstance(athlete.get("position"), dict) else {}
        players.append(
            RosterPlayer(player_id=player_id, name=str(name), position=str(position.get("abbreviation") or ""))
        )
    return Ok(players)


@dataclass
class EspnService:
    """Service wrapping the JSON API endpoints with retry and shape checks."""

    client: EspnClient
    retry: RetryPolicy

    def week_games(self, season: int, week: int) -> Result[List[ScheduledGame], object]:
        payload = self.retry.run(lambda: self.client.scoreboard(week, season))
        if isinstance(payload, Err):
            return payload
        return parse_scoreboard(payload.value, season, week)

    def current_week(self) -> Result[int, object]:
        payload = self.retry.run(self.client.current_scoreboard)
        if isinstance(payload, Err):
            return payload
        week_block = payload.value.get("week") if isinstance(payload.value, dict) else None
        week = parse_week_or_none(week_block.get("number")) if isinstance(week_block, dict) else None
        if week is None:
            return Err(Malformed("scoreboard", "missing week.number"))
        return Ok(week)

    def roster(self, team_id: str) -> Result[List[RosterPlayer], object]:
        payload = self.retry.run(lambda: self.client.team_roster(team_id))
        if isinstance(payload, Err):
            return payload
        return parse_roster(payload.value)

    def league_team_stats(self, season: int, week: int) -> Result[Dict[str, TeamStatRecord], object]:
        """Every team's stats keyed by canonical code."""
        payload = self.retry.run(lambda: self.client.team_statistics(season))
        if isinstance(payload, Err):
            return payload
        teams = _as_list(payload.value, "teams")
        if teams is None:
            return Err(Malformed("team statistics", "missing teams[]"))
        return Ok(build_espn_team_stats(teams, season, week))

    def player_stats(self, season: int) -> Result[List[PlayerStatLine], object]:
        payload = self.retry.run(lambda: self.client.player_statistics(season))
        if isinstance(payload, Err):
            return payload
        players = _as_list(payload.value, "players")
        if players is None:
            return Err(Malformed("player statistics", "missing players[]"))
        return Ok(build_player_stats(players, season))
