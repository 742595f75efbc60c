# nfl_stats/services/team_stats_service.py
"""
Per-team season statistics scraped from a team's sports-reference page.

Responsibilities:
  - fetch /teams/{slug}/{season}.htm
  - locate team-stats, conversions and games tables (several ids per table)
  - build a TeamStatRecord with composite rankings
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..assembler import build_pfr_team_stats
from ..clients import PfrClient
from ..extract import extract_table, parse_document
from ..models import TeamStatRecord
from ..result import Err, Ok, Result, unwrap_or
from ..retry import RetryPolicy
from ..teams import TeamRef

logger = logging.getLogger(__name__)

TEAM_STATS_TABLE_IDS = ("team_stats", "team_and_defense", "team_stats_and_rankings")
CONVERSIONS_TABLE_IDS = ("team_conversions", "conversions")
TEAM_GAMES_TABLE_IDS = ("games", "team_games")


@dataclass
class TeamStatsService:
    """Service responsible for one team's TeamStatRecord."""

    client: PfrClient
    retry: RetryPolicy

    def team_stats(self, team: TeamRef, season: int, week: int) -> Result[TeamStatRecord, object]:
        """
        Scrape and assemble one team's statistics.

        Only the team-stats table is required; missing conversions or games
        tables leave their fields at the unknown defaults.
        """
        page = self.retry.run(lambda: self.client.team_page(team.pfr_slug, season))
        if isinstance(page, Err):
            return page

        doc = parse_document(page.value)
        stats_table = extract_table(doc, TEAM_STATS_TABLE_IDS)
        if isinstance(stats_table, Err):
            logger.warning("Team %s %s: %s", team.code, season, stats_table.error)
            return stats_table

        conversions = unwrap_or(extract_table(doc, CONVERSIONS_TABLE_IDS), None)
        games = unwrap_or(extract_table(doc, TEAM_GAMES_TABLE_IDS), None)
        if conversions is None:
            logger.debug("Team %s %s: no conversions table", team.code, season)

        return Ok(build_pfr_team_stats(team, season, week, stats_table.value, conversions, games))
