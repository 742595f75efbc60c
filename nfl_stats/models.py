# nfl_stats/models.py
"""
Domain models for the normalized statistics shape.

Records are frozen once assembled. to_dict() renders the camelCase JSON
consumed by the prompt builder and the UI; the set of keys never depends on
how complete the data was.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .teams import TeamRef

STAT_NAMES = (
    "totalYards",
    "passingYards",
    "rushingYards",
    "points",
    "turnovers",
    "sacks",
    "thirdDownPct",
    "redZonePct",
)

TBD = "TBD"


@dataclass(frozen=True)
class StatRank:
    """League rank (0 = unknown) and the per-game value behind it."""
    rank: int = 0
    value_per_game: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"rank": self.rank, "valuePerGame": round(self.value_per_game, 2)}


@dataclass(frozen=True)
class TeamRecord:
    """Season W-L strings."""
    overall: Optional[str] = None
    home: Optional[str] = None
    road: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"overall": self.overall, "home": self.home, "road": self.road}


@dataclass(frozen=True)
class TeamStatRecord:
    """One team's statistics for one season/week."""
    team_id: str
    team_name: str
    season: int
    week: int
    record: TeamRecord
    offense_rankings: Mapping[str, StatRank]
    defense_rankings: Mapping[str, StatRank]
    overall_offense_rank: int
    overall_defense_rank: int
    overall_team_rank: int
    source: str = "pfr"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamId": self.team_id,
            "teamName": self.team_name,
            "season": self.season,
            "week": self.week,
            "record": self.record.to_dict(),
            "offenseRankings": {k: self.offense_rankings.get(k, StatRank()).to_dict() for k in STAT_NAMES},
            "defenseRankings": {k: self.defense_rankings.get(k, StatRank()).to_dict() for k in STAT_NAMES},
            "overallOffenseRank": self.overall_offense_rank,
            "overallDefenseRank": self.overall_defense_rank,
            "overallTeamRank": self.overall_team_rank,
            "source": self.source,
        }


@dataclass(frozen=True)
class Venue:
    name: str = TBD
    city: str = TBD
    state: str = TBD

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "city": self.city, "state": self.state}


@dataclass(frozen=True)
class Leader:
    """Top performer in one category for a game."""
    name: str
    stats: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "stats": self.stats, "value": self.value}


@dataclass(frozen=True)
class ScheduledGame:
    """
    A source-neutral schedule entry before stats are attached.

    Produced by the schedule scrapers; records/venue/leaders are only known
    for sources that publish them.
    """
    game_id: str
    season: int
    week: int
    date_time: str
    status: str
    home: TeamRef
    away: TeamRef
    venue: Venue = field(default_factory=Venue)
    home_record: TeamRecord = field(default_factory=TeamRecord)
    away_record: TeamRecord = field(default_factory=TeamRecord)
    home_abbrev: Optional[str] = None
    away_abbrev: Optional[str] = None
    home_source_id: Optional[str] = None
    away_source_id: Optional[str] = None
    leaders: Optional[Mapping[str, Leader]] = None
    source_id: Optional[str] = None


@dataclass(frozen=True)
class TeamSide:
    """One side of a game as rendered on a game card."""
    team_id: str
    name: str
    abbrev: str
    overall_record: Optional[str]
    home_record: Optional[str]
    road_record: Optional[str]
    stats: Optional[TeamStatRecord]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "teamId": self.team_id,
            "name": self.name,
            "abbrev": self.abbrev,
            "record": self.overall_record,
            "overallRecord": self.overall_record,
            "homeRecord": self.home_record,
            "roadRecord": self.road_record,
            "stats": self.stats.to_dict() if self.stats is not None else None,
        }


@dataclass(frozen=True)
class GameRecord:
    """A scheduled or played game with both sides' statistics."""
    game_id: str
    season: int
    week: int
    status: str
    date_time: str
    home: TeamSide
    away: TeamSide
    venue: Venue
    source_id: Optional[str] = None
    leaders: Optional[Mapping[str, Leader]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "gameId": self.game_id,
            "season": self.season,
            "week": self.week,
            "status": self.status,
            "dateTime": self.date_time,
            "home": self.home.to_dict(),
            "away": self.away.to_dict(),
            "venue": self.venue.to_dict(),
            "sourceId": self.source_id,
        }
        # "no leader data" and "a leader with 0 yards" are different facts
        if self.leaders:
            out["leaders"] = {k: v.to_dict() for k, v in self.leaders.items()}
        return out


@dataclass(frozen=True)
class RosterPlayer:
    player_id: str
    name: str
    position: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"playerId": self.player_id, "name": self.name, "position": self.position}


@dataclass(frozen=True)
class PlayerStatLine:
    """Season totals for one player; sections exist only when the player recorded attempts."""
    player_id: str
    player_name: str
    position: str
    team_id: str
    season: int
    passing: Optional[Mapping[str, float]] = None
    rushing: Optional[Mapping[str, float]] = None
    receiving: Optional[Mapping[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "position": self.position,
            "teamId": self.team_id,
            "season": self.season,
        }
        for name in ("passing", "rushing", "receiving"):
            section: Optional[Mapping[str, float]] = getattr(self, name)
            if section is not None:
                out[name] = dict(section)
        return out
