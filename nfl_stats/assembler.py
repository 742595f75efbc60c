# nfl_stats/assembler.py
"""
Normalization into the shared GameRecord / TeamStatRecord shape.

Everything here is pure: parsed rows or decoded payloads in, frozen records
out. Missing statistics stay None (never an all-zero record standing in for
real data), and every record has the same keys regardless of completeness.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .extract import RawRow, RawTable
from .fields import parse_rank, parse_stat, record_string, safe_float, safe_ratio
from .models import (
    STAT_NAMES,
    Leader,
    GameRecord,
    PlayerStatLine,
    ScheduledGame,
    StatRank,
    TeamRecord,
    TeamSide,
    TeamStatRecord,
    Venue,
)
from .rankings import aggregate_rankings, overall_team_rank, rank_by_value
from .teams import TeamRef, parse_week_or_none, resolve_team

logger = logging.getLogger(__name__)

REGULAR_SEASON_GAMES = 17
RATING_COMPONENT_MAX = 2.375
RATING_MAX = 158.3

# data-stat candidates per stat, newest template first.
PFR_STAT_FIELDS: Dict[str, Sequence[str]] = {
    "totalYards": ("total_yards", "tot_yds"),
    "passingYards": ("pass_yds", "pass_net_yds"),
    "rushingYards": ("rush_yds",),
    "points": ("points", "pts"),
    "turnovers": ("turnovers", "to"),
    "sacks": ("sacks", "pass_sacked"),
}
PFR_RATE_FIELDS: Dict[str, Sequence[str]] = {
    "thirdDownPct": ("third_down_pct",),
    "redZonePct": ("red_zone_pct",),
}
PFR_RATE_PARTS: Dict[str, tuple] = {
    "thirdDownPct": ("third_down_success", "third_down_att"),
    "redZonePct": ("red_zone_scores", "red_zone_att"),
}

# ESPN flat stat names: (offense total, defense total)
ESPN_STAT_FIELDS: Dict[str, tuple] = {
    "totalYards": ("totalYards", "totalYardsAllowed"),
    "passingYards": ("passingYards", "passingYardsAllowed"),
    "rushingYards": ("rushingYards", "rushingYardsAllowed"),
    "points": ("pointsFor", "pointsAgainst"),
    "turnovers": ("giveaways", "takeaways"),
    "sacks": ("sacksAllowed", "sacks"),
}
# rate stat -> (defense prefix, conversions, attempts); defense reads opponentThirdDownConversions etc.
ESPN_RATE_FIELDS: Dict[str, tuple] = {
    "thirdDownPct": ("opponent", "thirdDownConversions", "thirdDownAttempts"),
    "redZonePct": ("opponent", "redZoneConversions", "redZoneAttempts"),
}
# Lower is better for these on offense; defense inverts every stat except takeaways and sacks.
_OFFENSE_LOWER_IS_BETTER = {"turnovers", "sacks"}
_DEFENSE_HIGHER_IS_BETTER = {"turnovers", "sacks"}


def passer_rating(completions: float, attempts: float, yards: float, touchdowns: float, interceptions: float) -> float:
    """
    NFL passer rating.

    Each of the four components is clamped to [0, 2.375] before summing and
    the final rating to [0, 158.3]. No attempts -> 0.
    """
    if not attempts or attempts <= 0:
        return 0.0

    def clamp(x: float) -> float:
        return max(0.0, min(RATING_COMPONENT_MAX, x))

    a = clamp((safe_ratio(completions, attempts) - 0.3) * 5)
    b = clamp((safe_ratio(yards, attempts) - 3) * 0.25)
    c = clamp(safe_ratio(touchdowns, attempts) * 20)
    d = clamp(RATING_COMPONENT_MAX - safe_ratio(interceptions, attempts) * 25)

    rating = ((a + b + c + d) / 6) * 100
    return round(max(0.0, min(RATING_MAX, rating)), 1)


def _composites(offense: Mapping[str, StatRank], defense: Mapping[str, StatRank]) -> tuple:
    off = aggregate_rankings(r.rank for r in offense.values())
    dfn = aggregate_rankings(r.rank for r in defense.values())
    return off, dfn, overall_team_rank(off, dfn)


# -------------------------
# PFR team pages
# -------------------------

def season_record(games: Optional[RawTable]) -> tuple:
    """
    (TeamRecord, games_played) from a team page's games table.

    Only regular-season rows count (week 1..18); playoff rows such as
    'Wild Card' are skipped. Overall comes from the latest non-empty
    team_record cell; home/road are tallied from W/L/T results, '@'
    marking road games.
    """
    if games is None:
        return TeamRecord(), 0

    latest = None
    home = [0, 0, 0]
    road = [0, 0, 0]
    played = 0
    for row in games.rows:
        if parse_week_or_none(row.get("week_num")) is None:
            continue

        rec = row.get("team_record").strip()
        if rec:
            latest = rec

        result = row.get("game_outcome") or row.get("game_result")
        result = result.strip().upper()[:1]
        if result not in ("W", "L", "T"):
            continue

        played += 1
        bucket = road if row.get("game_location").strip() == "@" else home
        bucket["WLT".index(result)] += 1

    if not played and latest is None:
        return TeamRecord(), 0

    overall = latest or record_string(home[0] + road[0], home[1] + road[1], home[2] + road[2])
    return TeamRecord(overall=overall, home=record_string(*home), road=record_string(*road)), played


def _pfr_side(
    rank_row: Optional[RawRow],
    totals_row: Optional[RawRow],
    conv_rank_row: Optional[RawRow],
    conv_totals_row: Optional[RawRow],
    games_played: int,
) -> Dict[str, StatRank]:
    out: Dict[str, StatRank] = {}
    for name, fields in PFR_STAT_FIELDS.items():
        rank = parse_rank(rank_row.cells, fields) if rank_row else 0
        total = parse_stat(totals_row.cells, fields) if totals_row else 0.0
        out[name] = StatRank(rank=rank, value_per_game=safe_ratio(total, games_played))

    for name, fields in PFR_RATE_FIELDS.items():
        rank = parse_rank(conv_rank_row.cells, fields) if conv_rank_row else 0
        pct = 0.0
        if conv_totals_row:
            pct = parse_stat(conv_totals_row.cells, fields)
            if not pct:
                made, att = PFR_RATE_PARTS[name]
                pct = safe_ratio(parse_stat(conv_totals_row.cells, made), parse_stat(conv_totals_row.cells, att), 100)
        out[name] = StatRank(rank=rank, value_per_game=pct)
    return out


def build_pfr_team_stats(
    team: TeamRef,
    season: int,
    week: int,
    stats_table: RawTable,
    conversions: Optional[RawTable],
    games: Optional[RawTable],
) -> TeamStatRecord:
    """
    Build a TeamStatRecord from a PFR team page.

    Rank rows are labelled 'Lg Rank Offense' / 'Lg Rank Defense'; totals rows
    'Team Stats' / 'Opp. Stats'. A rank row that is missing leaves its ranks
    at 0 rather than reading yardage totals as ranks.
    """
    record, played = season_record(games)

    team_row = stats_table.find_row("team stats")
    opp_row = stats_table.find_row("opp. stats", "opp stats", "opponent")
    off_rank_row = stats_table.find_row("offense", "offensive")
    def_rank_row = stats_table.find_row("defense", "defensive")

    conv_team = conversions.find_row("team stats") if conversions else None
    conv_opp = conversions.find_row("opp. stats", "opp stats", "opponent") if conversions else None
    conv_off = conversions.find_row("offense", "offensive") if conversions else None
    conv_def = conversions.find_row("defense", "defensive") if conversions else None

    if not played and team_row is not None:
        played = int(parse_stat(team_row.cells, ("g", "games")))

    offense = _pfr_side(off_rank_row, team_row, conv_off, conv_team, played)
    defense = _pfr_side(def_rank_row, opp_row, conv_def, conv_opp, played)
    off, dfn, overall = _composites(offense, defense)

    return TeamStatRecord(
        team_id=team.code,
        team_name=team.name,
        season=season,
        week=week,
        record=record,
        offense_rankings=offense,
        defense_rankings=defense,
        overall_offense_rank=off,
        overall_defense_rank=dfn,
        overall_team_rank=overall,
        source="pfr",
    )


# -------------------------
# ESPN payloads
# -------------------------

def _rate(stats: Mapping[str, float], made: str, att: str) -> Optional[float]:
    if made not in stats or att not in stats:
        return None
    return safe_ratio(stats[made], stats[att], 100)


def _stat_map(stats: Any) -> Dict[str, float]:
    out: Dict[str, float] = {}
    if not isinstance(stats, list):
        return out
    for s in stats:
        if isinstance(s, dict) and isinstance(s.get("name"), str):
            out[s["name"]] = safe_float(s.get("value"))
    return out


def build_espn_team_stats(teams: Sequence[Dict[str, Any]], season: int, week: int) -> Dict[str, TeamStatRecord]:
    """
    Normalize ESPN's league-wide team statistics into TeamStatRecords keyed by canonical code.

    ESPN publishes season totals but no ranks, so ranks are computed here
    across every team in the payload.
    """
    parsed: Dict[str, tuple] = {}
    for entry in teams:
        team = entry.get("team") if isinstance(entry, dict) else None
        if not isinstance(team, dict):
            continue
        ref = resolve_team(str(team.get("displayName") or team.get("abbreviation") or ""))
        parsed[ref.code] = (ref, _stat_map(entry.get("stats")))

    # None = the payload did not carry the stat; such teams rank 0 for it.
    per_game: Dict[str, Dict[str, Dict[str, Optional[float]]]] = {"offense": {}, "defense": {}}
    for code, (_, stats) in parsed.items():
        games = stats.get("gamesPlayed") or REGULAR_SEASON_GAMES
        off: Dict[str, Optional[float]] = {}
        dfn: Dict[str, Optional[float]] = {}
        for name, (off_key, def_key) in ESPN_STAT_FIELDS.items():
            off[name] = safe_ratio(stats[off_key], games) if off_key in stats else None
            dfn[name] = safe_ratio(stats[def_key], games) if def_key in stats else None
        for name, (prefix, made, att) in ESPN_RATE_FIELDS.items():
            off[name] = _rate(stats, made, att)
            dfn[name] = _rate(stats, prefix + made[0].upper() + made[1:], prefix + att[0].upper() + att[1:])
        per_game["offense"][code] = off
        per_game["defense"][code] = dfn

    ranks: Dict[str, Dict[str, Dict[str, int]]] = {"offense": {}, "defense": {}}
    for name in STAT_NAMES:
        off_vals = {c: v[name] for c, v in per_game["offense"].items()}
        def_vals = {c: v[name] for c, v in per_game["defense"].items()}
        ranks["offense"][name] = rank_by_value(off_vals, descending=name not in _OFFENSE_LOWER_IS_BETTER)
        ranks["defense"][name] = rank_by_value(def_vals, descending=name in _DEFENSE_HIGHER_IS_BETTER)

    out: Dict[str, TeamStatRecord] = {}
    for code, (ref, _) in parsed.items():
        offense = {
            n: StatRank(rank=ranks["offense"][n][code], value_per_game=per_game["offense"][code][n] or 0.0)
            for n in STAT_NAMES
        }
        defense = {
            n: StatRank(rank=ranks["defense"][n][code], value_per_game=per_game["defense"][code][n] or 0.0)
            for n in STAT_NAMES
        }
        off, dfn, overall = _composites(offense, defense)
        out[code] = TeamStatRecord(
            team_id=ref.code,
            team_name=ref.name,
            season=season,
            week=week,
            record=TeamRecord(),
            offense_rankings=offense,
            defense_rankings=defense,
            overall_offense_rank=off,
            overall_defense_rank=dfn,
            overall_team_rank=overall,
            source="espn",
        )
    return out


def extract_records(records: Any) -> TeamRecord:
    """Overall/home/road summaries from an ESPN competitor's records list."""
    found: Dict[str, str] = {}
    if isinstance(records, list):
        for r in records:
            if not isinstance(r, dict):
                continue
            name = str(r.get("name") or r.get("type") or "").lower()
            summary = r.get("summary")
            if isinstance(summary, str) and summary:
                found.setdefault(name, summary)
    return TeamRecord(
        overall=found.get("overall") or found.get("total"),
        home=found.get("home"),
        road=found.get("road") or found.get("away"),
    )


_LEADER_CATEGORIES = {
    "passing": "passingYards",
    "rushing": "rushingYards",
    "receiving": "receivingYards",
}


def extract_leaders(leaders: Any) -> Optional[Dict[str, Leader]]:
    """
    Top passing/rushing/receiving performer from ESPN's leaders block.

    Categories with no leader are left out; None when nothing is present.
    """
    if not isinstance(leaders, list):
        return None

    by_name = {l.get("name"): l for l in leaders if isinstance(l, dict)}
    out: Dict[str, Leader] = {}
    for key, category in _LEADER_CATEGORIES.items():
        group = by_name.get(category) or {}
        entries = group.get("leaders") if isinstance(group, dict) else None
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            continue
        top = entries[0]
        athlete = top.get("athlete") if isinstance(top.get("athlete"), dict) else {}
        out[key] = Leader(
            name=str(athlete.get("displayName") or "Unknown"),
            stats=str(top.get("displayValue") or ""),
            value=safe_float(top.get("value")),
        )
    return out or None


def build_player_stats(players: Iterable[Dict[str, Any]], season: int) -> List[PlayerStatLine]:
    """Normalize ESPN's flat per-player stat arrays, skipping entries without an athlete."""
    out: List[PlayerStatLine] = []
    for p in players:
        athlete = p.get("athlete") if isinstance(p, dict) else None
        if not isinstance(athlete, dict) or not athlete.get("id"):
            continue
        s = _stat_map(p.get("stats"))

        passing = rushing = receiving = None
        att = s.get("passingAttempts", 0.0)
        if att > 0:
            cmp_, yds = s.get("passingCompletions", 0.0), s.get("passingYards", 0.0)
            td, ints = s.get("passingTouchdowns", 0.0), s.get("passingInterceptions", 0.0)
            passing = {
                "yards": yds,
                "attempts": att,
                "completions": cmp_,
                "touchdowns": td,
                "interceptions": ints,
                "completionPercentage": round(safe_ratio(cmp_, att, 100), 1),
                "yardsPerAttempt": round(safe_ratio(yds, att), 2),
                "passerRating": passer_rating(cmp_, att, yds, td, ints),
            }

        rush_att = s.get("rushingAttempts", 0.0)
        if rush_att > 0:
            rush_yds = s.get("rushingYards", 0.0)
            rushing = {
                "yards": rush_yds,
                "attempts": rush_att,
                "touchdowns": s.get("rushingTouchdowns", 0.0),
                "yardsPerAttempt": round(safe_ratio(rush_yds, rush_att), 2),
                "fumbles": s.get("fumbles", 0.0),
            }

        targets = s.get("receivingTargets", 0.0)
        if targets > 0:
            rec, rec_yds = s.get("receptions", 0.0), s.get("receivingYards", 0.0)
            receiving = {
                "yards": rec_yds,
                "receptions": rec,
                "targets": targets,
                "touchdowns": s.get("receivingTouchdowns", 0.0),
                "yardsPerReception": round(safe_ratio(rec_yds, rec), 2),
                "catchPercentage": round(safe_ratio(rec, targets, 100), 1),
            }

        team = p.get("team") if isinstance(p.get("team"), dict) else {}
        position = athlete.get("position") if isinstance(athlete.get("position"), dict) else {}
        out.append(
            PlayerStatLine(
                player_id=str(athlete["id"]),
                player_name=str(athlete.get("displayName") or ""),
                position=str(position.get("displayName") or position.get("abbreviation") or "Unknown"),
                team_id=str(team.get("id") or ""),
                season=season,
                passing=passing,
                rushing=rushing,
                receiving=receiving,
            )
        )
    return out


# -------------------------
# Game assembly
# -------------------------

def _side(
    ref: TeamRef, abbrev: Optional[str], record: TeamRecord, stats: Optional[TeamStatRecord]
) -> TeamSide:
    # Source-published records win; fall back to the ones scraped with the stats.
    fallback = stats.record if stats is not None else TeamRecord()
    return TeamSide(
        team_id=ref.code,
        name=ref.name,
        abbrev=abbrev or ref.code.upper(),
        overall_record=record.overall or fallback.overall,
        home_record=record.home or fallback.home,
        road_record=record.road or fallback.road,
        stats=stats,
    )


def assemble_game(
    game: ScheduledGame,
    home_stats: Optional[TeamStatRecord],
    away_stats: Optional[TeamStatRecord],
) -> GameRecord:
    """Attach both sides' statistics (either may be None) to a schedule entry."""
    return GameRecord(
        game_id=game.game_id,
        season=game.season,
        week=game.week,
        status=game.status,
        date_time=game.date_time,
        home=_side(game.home, game.home_abbrev, game.home_record, home_stats),
        away=_side(game.away, game.away_abbrev, game.away_record, away_stats),
        venue=game.venue,
        source_id=game.source_id,
        leaders=game.leaders,
    )


def merge_source_details(primary: ScheduledGame, secondary: Optional[ScheduledGame]) -> ScheduledGame:
    """
    Fill what the HTML schedule lacks (venue, records, leaders, ids) from the
    JSON API's view of the same canonical game. Identity, kickoff and status
    stay with the primary.
    """
    if secondary is None:
        return primary

    venue = primary.venue if primary.venue != Venue() else secondary.venue
    return ScheduledGame(
        game_id=primary.game_id,
        season=primary.season,
        week=primary.week,
        date_time=primary.date_time,
        status=primary.status,
        home=primary.home,
        away=primary.away,
        venue=venue,
        home_record=secondary.home_record,
        away_record=secondary.away_record,
        home_abbrev=primary.home_abbrev or secondary.home_abbrev,
        away_abbrev=primary.away_abbrev or secondary.away_abbrev,
        home_source_id=secondary.home_source_id,
        away_source_id=secondary.away_source_id,
        leaders=primary.leaders or secondary.leaders,
        source_id=primary.source_id or secondary.source_id,
    )
