"""Shared fakes and HTML builders. Fakes are passed in through constructors; nothing global is patched."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from nfl_stats.cache import MemoryDocumentStore, TTLCache
from nfl_stats.handlers.games_handler import GamesHandler
from nfl_stats.models import Leader, ScheduledGame, StatRank, STAT_NAMES, TeamRecord, TeamStatRecord, Venue
from nfl_stats.result import Err, FetchFailure, Ok
from nfl_stats.teams import resolve_team

SEASON = 2025


class FakeClock:
    """Epoch-millis clock the tests move by hand."""

    def __init__(self, now: int = 1_700_000_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeScheduleService:
    def __init__(self, games: Optional[List[ScheduledGame]] = None, error=None) -> None:
        self.games = games or []
        self.error = error
        self.calls = 0

    def week_games(self, season, week):
        self.calls += 1
        if self.error is not None:
            return Err(self.error)
        return Ok([g for g in self.games if g.season == season and g.week == week])


class FakeTeamStatsService:
    """results maps team code -> Ok/Err, or an exception to raise."""

    def __init__(self, results: Optional[Dict[str, object]] = None) -> None:
        self.results = results or {}
        self.calls: List[str] = []

    def team_stats(self, team, season, week):
        self.calls.append(team.code)
        outcome = self.results.get(team.code, Err(FetchFailure(url=f"/teams/{team.pfr_slug}", status=404)))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeEspnService:
    def __init__(self) -> None:
        self.scoreboard = Ok([])
        self.week = Ok(5)
        self.rosters = Ok([])
        self.league = Err(FetchFailure(url="/teams/statistics", status=503))
        self.players = Ok([])
        self.roster_requests: List[str] = []

    def week_games(self, season, week):
        if isinstance(self.scoreboard, Err):
            return self.scoreboard
        return Ok([g for g in self.scoreboard.value if g.season == season and g.week == week])

    def current_week(self):
        return self.week

    def roster(self, team_id):
        self.roster_requests.append(team_id)
        return self.rosters

    def league_team_stats(self, season, week):
        return self.league

    def player_stats(self, season):
        return self.players


def make_game(home: str, away: str, week: int = 5, season: int = SEASON, **extra) -> ScheduledGame:
    h, a = resolve_team(home), resolve_team(away)
    return ScheduledGame(
        game_id=f"{h.code}-{a.code}-{season}-{week}",
        season=season,
        week=week,
        date_time=extra.pop("date_time", "2025-10-05T16:25:00.000Z"),
        status=extra.pop("status", "final"),
        home=h,
        away=a,
        **extra,
    )


def make_stats(code: str, season: int = SEASON, week: int = 5, source: str = "pfr") -> TeamStatRecord:
    ref = resolve_team(code)
    ranks = {name: StatRank(rank=10, value_per_game=1.0) for name in STAT_NAMES}
    return TeamStatRecord(
        team_id=ref.code,
        team_name=ref.name,
        season=season,
        week=week,
        record=TeamRecord(overall="4-1", home="2-0", road="2-1"),
        offense_rankings=ranks,
        defense_rankings=ranks,
        overall_offense_rank=10,
        overall_defense_rank=10,
        overall_team_rank=10,
        source=source,
    )


def espn_view(game: ScheduledGame) -> ScheduledGame:
    """The same game as the JSON API would report it."""
    return ScheduledGame(
        game_id=game.game_id,
        season=game.season,
        week=game.week,
        date_time=game.date_time,
        status="final",
        home=game.home,
        away=game.away,
        venue=Venue(name="GEHA Field at Arrowhead Stadium", city="Kansas City", state="MO"),
        home_record=TeamRecord(overall="4-1", home="2-0", road="2-1"),
        away_record=TeamRecord(overall="3-2", home="1-1", road="2-1"),
        home_abbrev="KC",
        away_abbrev="LAC",
        home_source_id="12",
        away_source_id="24",
        leaders={"passing": Leader(name="Patrick Mahomes", stats="24/33, 281 YDS", value=281.0)},
        source_id="401772000",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(store=MemoryDocumentStore(), clock=clock)


@pytest.fixture
def build_handler(cache):
    """Factory so each test wires exactly the fakes it needs."""

    def _build(schedule=None, team_stats=None, espn=None, max_workers=4) -> GamesHandler:
        return GamesHandler(
            schedule_service=schedule or FakeScheduleService(),
            team_stats_service=team_stats or FakeTeamStatsService(),
            espn_service=espn or FakeEspnService(),
            cache=cache,
            cache_ttl_ms=600_000,
            stale_ttl_ms=86_400_000,
            max_workers=max_workers,
            season_provider=lambda: SEASON,
        )

    return _build


def _cell(tag: str, stat: str, text: str, link: bool = False) -> str:
    body = f'<a href="#">{text}</a>' if link and text else text
    return f'<{tag} data-stat="{stat}">{body}</{tag}>'


def schedule_row(week, date, clock_time, winner, loser, location="", pts_win="27", pts_lose="20") -> str:
    return "<tr>" + "".join([
        _cell("th", "week_num", str(week)),
        _cell("td", "game_day_of_week", "Sun"),
        _cell("td", "game_date", date),
        _cell("td", "gametime", clock_time),
        _cell("td", "winner", winner, link=True),
        _cell("td", "game_location", location),
        _cell("td", "loser", loser, link=True),
        _cell("td", "boxscore_word", "boxscore", link=True),
        _cell("td", "pts_win", pts_win),
        _cell("td", "pts_lose", pts_lose),
    ]) + "</tr>"


@pytest.fixture
def schedule_page():
    """Build a season games page: schedule_page([schedule_row(...), ...])."""

    def _page(rows: List[str], table_id: str = "games") -> str:
        header = '<tr class="thead"><th data-stat="week_num">Week</th><td data-stat="winner">Winner/tie</td></tr>'
        return (
            "<html><body>"
            f'<table id="{table_id}"><thead><tr><th>Week</th></tr></thead>'
            f"<tbody>{header}{''.join(rows)}</tbody></table>"
            "</body></html>"
        )

    return _page
