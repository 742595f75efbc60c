# nfl_stats/services/schedule_service.py
"""
Season schedule from the sports-reference games page.

Responsibilities:
  - fetch /years/{season}/games.htm
  - locate the schedule table
  - turn rows into ScheduledGame entries keyed by canonical game id
  - infer status from kickoff time (the table has no live status)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List

from ..clients import PfrClient
from ..extract import (
    RawTable,
    extract_table,
    format_kickoff,
    infer_status,
    parse_document,
    parse_iso,
    schedule_rows,
    winner_loser_home_away,
)
from ..models import ScheduledGame
from ..result import Err, Malformed, Ok, Result
from ..retry import RetryPolicy
from ..teams import make_game_id, resolve_team

logger = logging.getLogger(__name__)

SCHEDULE_TABLE_IDS = ("games", "schedule", "games_played")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def games_from_table(table: RawTable, season: int, now: datetime) -> Result[List[ScheduledGame], Malformed]:
    """
    Convert schedule rows into ScheduledGame entries.

    Bad rows are skipped. A table that has rows but yields no game at all
    means the markup changed, which is Malformed rather than an empty season.
    """
    games: List[ScheduledGame] = []
    for week, row in schedule_rows(table):
        sides = winner_loser_home_away(row)
        if sides is None:
            continue

        date_time = format_kickoff(row.get("game_date"), row.get("gametime"))
        if date_time is None:
            continue

        home = resolve_team(sides[0])
        away = resolve_team(sides[1])
        games.append(
            ScheduledGame(
                game_id=make_game_id(home.code, away.code, season, week),
                season=season,
                week=week,
                date_time=date_time,
                status=infer_status(parse_iso(date_time), now),
                home=home,
                away=away,
            )
        )

    if table.rows and not games:
        logger.warning("Schedule table %r had %d rows but no usable games; markup may have changed",
                       table.table_id, len(table.rows))
        return Err(Malformed(f"schedule table {table.table_id}", f"{len(table.rows)} rows, no usable games"))
    return Ok(games)


@dataclass
class ScheduleService:
    """Service responsible for the full-season schedule."""

    client: PfrClient
    retry: RetryPolicy
    clock: Callable[[], datetime] = field(default=_utcnow)

    def season_games(self, season: int) -> Result[List[ScheduledGame], object]:
        """All regular-season games for a season, or the error that prevented reading them."""
        page = self.retry.run(lambda: self.client.season_schedule(season))
        if isinstance(page, Err):
            return page

        table = extract_table(parse_document(page.value), SCHEDULE_TABLE_IDS)
        if isinstance(table, Err):
            logger.warning("Season %s schedule: %s", season, table.error)
            return table

        return games_from_table(table.value, season, self.clock())

    def week_games(self, season: int, week: int) -> Result[List[ScheduledGame], object]:
        """Games for one week of a season."""
        games = self.season_games(season)
        if isinstance(games, Err):
            return games
        return Ok([g for g in games.value if g.week == week])
