# nfl_stats/extract.py
"""
HTML table extraction for the sports-reference pages.

Cells are addressed by their data-stat attribute, never by column position:
column order moves between season templates, data-stat names rarely do.
Several tables on PFR pages ship inside HTML comments and are revealed by
JavaScript in the browser, so comments are searched too.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional, Sequence, Union

from bs4 import BeautifulSoup, Comment
from bs4.element import Tag

from .fields import FINAL, IN_PROGRESS, SCHEDULED
from .result import Err, Ok, Result, TableNotFound
from .teams import parse_week_or_none

logger = logging.getLogger(__name__)

MIN_SCHEDULE_CELLS = 7
GAME_LENGTH_BUFFER = timedelta(hours=4)
AWAY_MARKER = "@"

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)
_ISO_FMT = "%Y-%m-%dT%H:%M:%S.000Z"


@dataclass(frozen=True)
class RawRow:
    """One table row: data-stat -> text, plus the row header label."""
    cells: Dict[str, str]
    label: str = ""
    td_count: int = 0

    def get(self, name: str, default: str = "") -> str:
        return self.cells.get(name, default)


@dataclass(frozen=True)
class RawTable:
    table_id: str
    rows: List[RawRow] = field(default_factory=list)

    def find_row(self, *needles: str) -> Optional[RawRow]:
        """First row whose header label contains any needle (case-insensitive)."""
        wanted = [n.lower() for n in needles]
        for row in self.rows:
            label = row.label.lower()
            if any(n in label for n in wanted):
                return row
        return None


Document = Union[BeautifulSoup, Tag]


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def _cell_text(cell: Tag) -> str:
    # Team cells wrap the name in a link; prefer the link text when present.
    link = cell.find("a")
    text = link.get_text(strip=True) if link else ""
    return text or cell.get_text(strip=True)


def _row_from_tag(tr: Tag) -> RawRow:
    cells: Dict[str, str] = {}
    label = ""
    td_count = 0
    for cell in tr.find_all(["th", "td"], recursive=False):
        text = _cell_text(cell)
        if cell.name == "th" and not label:
            label = text
        else:
            td_count += 1
        stat = cell.get("data-stat")
        if stat:
            cells[stat] = text
    return RawRow(cells=cells, label=label, td_count=td_count)


def _find_table_tag(document: Document, table_id: str) -> Optional[Tag]:
    table = document.find("table", id=table_id)
    if table is not None:
        return table

    for comment in document.find_all(string=lambda text: isinstance(text, Comment)):
        if table_id not in comment or "<table" not in comment:
            continue
        table = BeautifulSoup(str(comment), "html.parser").find("table", id=table_id)
        if table is not None:
            return table
    return None


def extract_table(document: Document, candidate_ids: Sequence[str]) -> Result[RawTable, TableNotFound]:
    """
    Locate a logical table by trying each identifier in priority order.

    Header rows inside tbody (PFR repeats them every few weeks) are dropped.
    """
    for table_id in candidate_ids:
        tag = _find_table_tag(document, table_id)
        if tag is None:
            continue

        body = tag.find("tbody") or tag
        rows = [
            _row_from_tag(tr)
            for tr in body.find_all("tr")
            if "thead" not in (tr.get("class") or [])
        ]
        return Ok(RawTable(table_id=table_id, rows=rows))

    return Err(TableNotFound(candidates=tuple(candidate_ids)))


def parse_week(text: str) -> Optional[int]:
    """Regular-season week number, or None for anything else (playoff labels, blanks)."""
    return parse_week_or_none(text)


def schedule_rows(table: RawTable, week_field: str = "week_num") -> Iterator[tuple]:
    """Yield (week, row) for rows that look like real regular-season games."""
    for row in table.rows:
        if row.td_count < MIN_SCHEDULE_CELLS:
            continue
        week = parse_week(row.get(week_field))
        if week is None:
            continue
        yield week, row


def format_kickoff(date: str, clock: str) -> Optional[str]:
    """
    Combine a YYYY-MM-DD date and a 12-hour 'H:MM(AM|PM)' clock into an ISO instant.

      ("2026-01-04", "1:00PM")  -> "2026-01-04T13:00:00.000Z"
      ("2026-01-04", "12:00AM") -> "2026-01-04T00:00:00.000Z"
      ("2026-01-04", "1:00")    -> "2026-01-04T12:00:00.000Z"  (logged)

    Returns None when the date itself is unusable.
    """
    try:
        day = datetime.strptime((date or "").strip(), "%Y-%m-%d")
    except ValueError:
        logger.warning("Unparsable game date %r", date)
        return None

    m = _CLOCK_RE.match((clock or "").strip())
    hour = minute = None
    if m:
        hour, minute, period = int(m.group(1)), int(m.group(2)), m.group(3).upper()
        if not (1 <= hour <= 12 and minute <= 59):
            hour = None
        elif period == "PM" and hour != 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0

    if hour is None:
        logger.warning("Invalid kickoff time %r on %s; defaulting to 12:00", clock, date)
        hour, minute = 12, 0

    return day.replace(hour=hour, minute=minute).strftime(_ISO_FMT)


def parse_iso(value: str) -> datetime:
    """Parse the ISO instants produced by format_kickoff (always UTC)."""
    return datetime.strptime(value, _ISO_FMT).replace(tzinfo=timezone.utc)


def infer_status(kickoff: datetime, now: datetime) -> str:
    """
    Schedule tables carry no live status; infer it from the clock.

    final once kickoff + 4h has passed, in_progress from kickoff until then.
    """
    if now > kickoff + GAME_LENGTH_BUFFER:
        return FINAL
    if now >= kickoff:
        return IN_PROGRESS
    return SCHEDULED


def winner_loser_home_away(row: RawRow) -> Optional[tuple]:
    """
    Return (home_name, away_name) for a season-schedule row.

    The '@' in game_location marks the winner as the away side; without it the
    first-listed team (the winner) was at home.
    """
    winner = row.get("winner")
    loser = row.get("loser")
    if not winner or not loser:
        return None

    if row.get("game_location").strip() == AWAY_MARKER:
        return loser, winner
    return winner, loser
