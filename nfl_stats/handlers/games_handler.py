# nfl_stats/handlers/games_handler.py
"""
Handler/controller responsible for every JSON payload the API serves.

Keeps Flask routes simple by concentrating orchestration here:
  - validate caller input (week, game id, team)
  - serve fresh cache entries, otherwise run the pipeline
  - fan out to sources / teams concurrently; one failed branch degrades to
    partial data, never fails its siblings
  - on total failure serve a stale entry (up to stale_ttl_ms) or raise
    SourceUnavailable

Payloads are cached in their JSON shape (to_dict output), so a cache hit
and a fresh build are indistinguishable to the route.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..assembler import assemble_game, merge_source_details
from ..cache import CacheMiss, TTLCache, cache_key
from ..models import ScheduledGame, TeamStatRecord
from ..result import Err, GameNotFound, InvalidInput, SourceUnavailable
from ..services.espn_service import EspnService
from ..services.schedule_service import ScheduleService
from ..services.team_stats_service import TeamStatsService
from ..teams import TeamRef, espn_abbrev_for, parse_game_id, resolve_team, validate_week

logger = logging.getLogger(__name__)


def _settle(label: str, future: Future) -> Optional[Any]:
    """Resolve one concurrent branch to its value, or None after logging why it failed."""
    try:
        result = future.result()
    except Exception:
        logger.exception("%s raised", label)
        return None
    if isinstance(result, Err):
        logger.warning("%s failed: %s", label, result.error)
        return None
    return result.value


@dataclass
class GamesHandler:
    """Orchestrates schedule, team stats and JSON API services into response payloads."""

    schedule_service: ScheduleService
    team_stats_service: TeamStatsService
    espn_service: EspnService
    cache: TTLCache
    cache_ttl_ms: int
    stale_ttl_ms: int
    max_workers: int
    season_provider: Callable[[], int]

    # -------------------------
    # Cache with stale fallback
    # -------------------------

    def _cached(self, key: str, loader: Callable[[], Optional[Any]], required: bool = True) -> Any:
        """
        Fresh cache entry, else loader(), else a stale entry.

        loader returns None when every source it consulted failed. With
        required=False that case yields None instead of SourceUnavailable.
        """
        fresh = self.cache.get(key, self.cache_ttl_ms)
        if not isinstance(fresh, CacheMiss):
            return fresh

        value = loader()
        if value is not None:
            self.cache.set(key, value)
            return value

        stale = self.cache.get(key, self.stale_ttl_ms)
        if not isinstance(stale, CacheMiss):
            logger.warning("All sources failed for %s; serving stale cache entry", key)
            return stale

        if not required:
            return None
        raise SourceUnavailable(f"no source could provide {key}")

    def _season(self, season: Optional[int]) -> int:
        if season is None:
            return self.season_provider()
        if isinstance(season, bool) or not isinstance(season, int) or season < 1920:
            raise InvalidInput(f"invalid season {season!r}")
        return season

    # -------------------------
    # Weeks
    # -------------------------

    def current_week(self) -> Dict[str, int]:
        """Current regular-season week according to the JSON API."""

        def loader() -> Optional[int]:
            week = self.espn_service.current_week()
            if isinstance(week, Err):
                logger.warning("current week failed: %s", week.error)
                return None
            return week.value

        return {"week": self._cached(cache_key("espn", "weeks", "current"), loader)}

    # -------------------------
    # Games
    # -------------------------

    def games_for_week(self, week: int, season: Optional[int] = None, include_stats: bool = True) -> List[Dict[str, Any]]:
        """
        Every game of one week as GameRecord dicts, sorted by kickoff.

        The HTML schedule is primary; the JSON API's view of the same
        canonical game fills venue, records and leaders, and stands in for
        the schedule entirely when the HTML source is down.
        """
        validate_week(week)
        season = self._season(season)
        key = cache_key("games", season, "week", week, "stats" if include_stats else "bare")

        def loader() -> Optional[List[Dict[str, Any]]]:
            games = self._schedule_for_week(season, week)
            if games is None:
                return None
            stats = self._stats_for_teams(_teams_of(games), season, week) if include_stats else {}
            records = [assemble_game(g, stats.get(g.home.code), stats.get(g.away.code)) for g in games]
            records.sort(key=lambda r: (r.date_time, r.game_id))
            return [r.to_dict() for r in records]

        return self._cached(key, loader)

    def game(self, game_id: str) -> Dict[str, Any]:
        """One GameRecord dict by canonical id; GameNotFound when its week has no such game."""
        parsed = parse_game_id(game_id)
        for g in self.games_for_week(parsed.week, parsed.season):
            if g["gameId"] == game_id:
                return g
        raise GameNotFound(f"no game {game_id}")

    def team_stats_for_game(self, game_id: str) -> Dict[str, Optional[Dict[str, Any]]]:
        """Both sides' TeamStatRecord dicts for one game (either may be None)."""
        g = self.game(game_id)
        return {"home": g["home"]["stats"], "away": g["away"]["stats"]}

    def _schedule_for_week(self, season: int, week: int) -> Optional[List[ScheduledGame]]:
        with ThreadPoolExecutor(max_workers=min(2, self.max_workers)) as pool:
            pfr_f = pool.submit(self.schedule_service.week_games, season, week)
            espn_f = pool.submit(self.espn_service.week_games, season, week)
            pfr = _settle(f"schedule {season} week {week}", pfr_f)
            espn = _settle(f"scoreboard {season} week {week}", espn_f)

        # An empty schedule is only trusted when the JSON source answered too.
        if not pfr and espn is None:
            return None
        if not pfr:
            return list(espn)

        by_id = {g.game_id: g for g in espn or []}
        return [merge_source_details(g, by_id.get(g.game_id)) for g in pfr]

    # -------------------------
    # Team statistics
    # -------------------------

    def _stats_for_teams(self, teams: Sequence[TeamRef], season: int, week: int) -> Dict[str, TeamStatRecord]:
        """
        One TeamStatRecord per team code where any source had one.

        Team pages are scraped concurrently; teams whose page failed are
        filled from the JSON API's league-wide statistics, fetched once.
        """
        stats: Dict[str, TeamStatRecord] = {}
        if not teams:
            return stats

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {t.code: pool.submit(self.team_stats_service.team_stats, t, season, week) for t in teams}
            for code, future in futures.items():
                record = _settle(f"team stats {code} {season}", future)
                if record is not None:
                    stats[code] = record

        missing = [t.code for t in teams if t.code not in stats]
        if missing:
            league = self._league_stats(season, week)
            for code in missing:
                if code in league:
                    stats[code] = league[code]
                else:
                    logger.warning("No statistics for %s %s week %s from any source", code, season, week)
        return stats

    def _league_stats(self, season: int, week: int) -> Dict[str, TeamStatRecord]:
        league = self.espn_service.league_team_stats(season, week)
        if isinstance(league, Err):
            logger.warning("league team stats %s failed: %s", season, league.error)
            return {}
        return league.value

    def team_stats(self, team: str, season: Optional[int] = None, week: int = 1) -> Optional[Dict[str, Any]]:
        """A single team's TeamStatRecord dict, or None when no source has it."""
        ref = _known_team(team)
        validate_week(week)
        season = self._season(season)

        def loader() -> Optional[Dict[str, Any]]:
            found = self._stats_for_teams([ref], season, week).get(ref.code)
            return found.to_dict() if found is not None else None

        return self._cached(cache_key("team-stats", ref.code, season, week), loader, required=False)

    # -------------------------
    # Players
    # -------------------------

    def roster(self, team: str) -> List[Dict[str, Any]]:
        """Current roster for a team."""
        ref = _known_team(team)
        abbrev = espn_abbrev_for(ref.code) or ref.code

        def loader() -> Optional[List[Dict[str, Any]]]:
            players = self.espn_service.roster(abbrev.lower())
            if isinstance(players, Err):
                logger.warning("roster %s failed: %s", ref.code, players.error)
                return None
            return [p.to_dict() for p in players.value]

        return self._cached(cache_key("roster", ref.code), loader)

    def player_stats(self, season: Optional[int] = None) -> List[Dict[str, Any]]:
        """League-wide player stat lines for a season."""
        season = self._season(season)

        def loader() -> Optional[List[Dict[str, Any]]]:
            lines = self.espn_service.player_stats(season)
            if isinstance(lines, Err):
                logger.warning("player stats %s failed: %s", season, lines.error)
                return None
            return [p.to_dict() for p in lines.value]

        return self._cached(cache_key("player-stats", season), loader)


def _teams_of(games: Sequence[ScheduledGame]) -> List[TeamRef]:
    seen: Dict[str, TeamRef] = {}
    for g in games:
        for ref in (g.home, g.away):
            seen.setdefault(ref.code, ref)
    return list(seen.values())


def _known_team(team: str) -> TeamRef:
    ref = resolve_team(team)
    if not ref.resolved:
        raise InvalidInput(f"unknown team {team!r}")
    return ref
