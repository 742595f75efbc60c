# nfl_stats/clients.py
"""
Thin endpoint wrappers for the two upstream sources.
"""

from __future__ import annotations

from typing import Any, Dict
from urllib.parse import quote

from .fetcher import MarkupFetcher
from .result import Err, Ok, Result


class EspnClient:
    """JSON endpoints of the ESPN site API."""

    def __init__(self, fetcher: MarkupFetcher, base_url: str) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    def get_json(self, path: str) -> Result[Any, Any]:
        """GET base_url + path and decode JSON; transport and decode errors come back as Err."""
        fetched = self.fetcher.fetch(f"{self.base_url}{path}")
        if isinstance(fetched, Err):
            return fetched
        return fetched.value.json()

    def scoreboard(self, week: int, year: int) -> Result[Dict[str, Any], Any]:
        return self.get_json(f"/scoreboard?seasontype=2&week={int(week)}&year={int(year)}")

    def current_scoreboard(self) -> Result[Dict[str, Any], Any]:
        """Scoreboard relative to 'now'; its week block names the current week."""
        return self.get_json("/scoreboard")

    def team_roster(self, team_id: str) -> Result[Dict[str, Any], Any]:
        return self.get_json(f"/teams/{quote(str(team_id), safe='')}/roster")

    def team_statistics(self, season: int) -> Result[Dict[str, Any], Any]:
        return self.get_json(f"/teams/statistics?season={int(season)}&seasontype=2")

    def player_statistics(self, season: int) -> Result[Dict[str, Any], Any]:
        return self.get_json(f"/players/statistics?season={int(season)}&seasontype=2")


class PfrClient:
    """HTML pages of the sports-reference site."""

    def __init__(self, fetcher: MarkupFetcher, base_url: str) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    def get_html(self, path: str) -> Result[str, Any]:
        fetched = self.fetcher.fetch(f"{self.base_url}{path}")
        if isinstance(fetched, Err):
            return fetched
        return Ok(fetched.value.text)

    def team_page(self, slug: str, season: int) -> Result[str, Any]:
        """Team season page with the team-stats and games tables."""
        return self.get_html(f"/teams/{quote(slug, safe='')}/{int(season)}.htm")

    def season_schedule(self, season: int) -> Result[str, Any]:
        return self.get_html(f"/years/{int(season)}/games.htm")
