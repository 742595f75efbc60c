"""Tests for the source services, driven by fake endpoint clients."""

from datetime import datetime, timezone

import pytest

from conftest import schedule_row
from nfl_stats.result import Err, FetchFailure, Malformed, Ok, TableNotFound
from nfl_stats.retry import NO_RETRY
from nfl_stats.services import EspnService, ScheduleService, TeamStatsService
from nfl_stats.services.espn_service import parse_event, parse_roster, parse_scoreboard
from nfl_stats.teams import resolve_team


class FakePfrClient:
    def __init__(self, schedule=None, team_pages=None):
        self.schedule = schedule
        self.team_pages = team_pages or {}
        self.requested = []

    def season_schedule(self, season):
        self.requested.append(("schedule", season))
        return self.schedule

    def team_page(self, slug, season):
        self.requested.append(("team", slug, season))
        return self.team_pages.get(slug, Err(FetchFailure(url=f"/teams/{slug}/{season}.htm", status=404)))


class FakeEspnClient:
    def __init__(self, **payloads):
        self.payloads = payloads

    def scoreboard(self, week, year):
        return self.payloads["scoreboard"]

    def current_scoreboard(self):
        return self.payloads["current"]

    def team_roster(self, team_id):
        return self.payloads["roster"]

    def team_statistics(self, season):
        return self.payloads["team_stats"]

    def player_statistics(self, season):
        return self.payloads["players"]


def _after_week_five():
    return datetime(2025, 10, 6, 12, 0, tzinfo=timezone.utc)


class TestScheduleService:
    def test_end_to_end_week_scenario(self, schedule_page):
        html = schedule_page([
            schedule_row(5, "2025-10-05", "4:25PM", "Kansas City Chiefs", "Los Angeles Chargers"),
            schedule_row(6, "2025-10-12", "1:00PM", "Buffalo Bills", "New England Patriots", location="@"),
        ])
        service = ScheduleService(client=FakePfrClient(schedule=Ok(html)), retry=NO_RETRY, clock=_after_week_five)

        out = service.week_games(2025, 5)

        assert isinstance(out, Ok)
        assert len(out.value) == 1
        game = out.value[0]
        assert game.game_id == "kan-lac-2025-5"
        assert game.date_time == "2025-10-05T16:25:00.000Z"
        assert game.home.code == "kan"
        assert game.away.code == "lac"
        assert game.status == "final"

    def test_at_sign_swaps_home(self, schedule_page):
        html = schedule_page([schedule_row(6, "2025-10-12", "1:00PM", "Buffalo Bills", "New England Patriots", location="@")])
        service = ScheduleService(client=FakePfrClient(schedule=Ok(html)), retry=NO_RETRY, clock=_after_week_five)
        game = service.week_games(2025, 6).value[0]
        assert game.game_id == "nwe-buf-2025-6"
        assert game.status == "scheduled"

    def test_bad_date_row_is_skipped(self, schedule_page):
        html = schedule_page([
            schedule_row(5, "Oct 5", "4:25PM", "Kansas City Chiefs", "Los Angeles Chargers"),
            schedule_row(5, "2025-10-05", "1:00PM", "Detroit Lions", "Cincinnati Bengals"),
        ])
        service = ScheduleService(client=FakePfrClient(schedule=Ok(html)), retry=NO_RETRY, clock=_after_week_five)
        assert [g.game_id for g in service.week_games(2025, 5).value] == ["det-cin-2025-5"]

    def test_missing_table(self):
        service = ScheduleService(client=FakePfrClient(schedule=Ok("<html></html>")), retry=NO_RETRY)
        out = service.season_games(2025)
        assert isinstance(out, Err)
        assert isinstance(out.error, TableNotFound)

    def test_markup_drift_is_malformed(self, schedule_page, caplog):
        html = schedule_page(['<tr><th data-stat="week_num">5</th><td data-stat="x">1</td></tr>'])
        service = ScheduleService(client=FakePfrClient(schedule=Ok(html)), retry=NO_RETRY)
        with caplog.at_level("WARNING"):
            out = service.season_games(2025)
        assert isinstance(out, Err)
        assert isinstance(out.error, Malformed)
        assert "markup may have changed" in caplog.text

    def test_empty_table_is_an_empty_season(self, schedule_page):
        service = ScheduleService(client=FakePfrClient(schedule=Ok(schedule_page([]))), retry=NO_RETRY)
        assert service.season_games(2025) == Ok([])

    def test_fetch_failure_passes_through(self):
        failure = Err(FetchFailure(url="/years/2025/games.htm", status=503))
        service = ScheduleService(client=FakePfrClient(schedule=failure), retry=NO_RETRY)
        assert service.week_games(2025, 5) == failure


class TestTeamStatsService:
    def test_uses_pfr_slug(self):
        html = (
            '<!-- <table id="team_stats"><tbody><tr><th data-stat="player">Team Stats</th>'
            '<td data-stat="g">17</td><td data-stat="points">408</td></tr></tbody></table> -->'
        )
        client = FakePfrClient(team_pages={"sdg": Ok(html)})
        out = TeamStatsService(client=client, retry=NO_RETRY).team_stats(resolve_team("lac"), 2025, 5)
        assert isinstance(out, Ok)
        assert out.value.team_id == "lac"
        assert out.value.offense_rankings["points"].value_per_game == 24.0
        assert ("team", "sdg", 2025) in client.requested

    def test_missing_stats_table(self):
        client = FakePfrClient(team_pages={"kan": Ok("<html></html>")})
        out = TeamStatsService(client=client, retry=NO_RETRY).team_stats(resolve_team("kan"), 2025, 5)
        assert isinstance(out.error, TableNotFound)


def _event(event_id="401772000", home="Kansas City Chiefs", away="Los Angeles Chargers", **overrides):
    event = {
        "id": event_id,
        "date": "2025-10-05T20:25Z",
        "week": {"number": 5},
        "season": {"year": 2025},
        "status": {"type": {"name": "STATUS_FINAL"}},
        "competitions": [{
            "venue": {"fullName": "GEHA Field at Arrowhead Stadium", "address": {"city": "Kansas City", "state": "MO"}},
            "competitors": [
                {"homeAway": "home", "team": {"id": "12", "displayName": home, "abbreviation": "KC"},
                 "records": [{"name": "overall", "summary": "4-1"}]},
                {"homeAway": "away", "team": {"id": "24", "displayName": away, "abbreviation": "LAC"}},
            ],
        }],
    }
    event.update(overrides)
    return event


class TestEspnParsing:
    def test_event(self):
        out = parse_event(_event(), 2025, 5)
        game = out.value
        assert game.game_id == "kan-lac-2025-5"
        assert game.date_time == "2025-10-05T20:25:00.000Z"
        assert game.status == "final"
        assert game.venue.state == "MO"
        assert game.home_record.overall == "4-1"
        assert game.away_record.overall is None
        assert game.source_id == "401772000"
        assert game.leaders is None

    def test_event_without_competitors_is_malformed(self):
        out = parse_event(_event(competitions=[{"competitors": []}]), 2025, 5)
        assert isinstance(out.error, Malformed)

    @pytest.mark.parametrize("number", [0, 19, "Wild Card"])
    def test_event_week_outside_regular_season_is_malformed(self, number):
        out = parse_event(_event(week={"number": number}), 2025, 5)
        assert isinstance(out, Err)
        assert isinstance(out.error, Malformed)

    def test_event_without_week_uses_requested_week(self):
        event = _event()
        del event["week"]
        assert parse_event(event, 2025, 5).value.game_id == "kan-lac-2025-5"

    def test_scoreboard_skips_bad_events(self):
        payload = {"events": [_event(), "junk", _event(event_id="2", date=None)]}
        out = parse_scoreboard(payload, 2025, 5)
        assert [g.source_id for g in out.value] == ["401772000"]

    def test_scoreboard_without_events(self):
        assert isinstance(parse_scoreboard({"leagues": []}, 2025, 5), Err)

    def test_roster_groups_are_flattened(self):
        payload = {"athletes": [
            {"position": "offense", "items": [
                {"id": "1", "displayName": "Patrick Mahomes", "position": {"abbreviation": "QB"}},
                {"id": "", "displayName": "No Id"},
            ]},
            {"position": "defense", "items": [{"id": "2", "fullName": "Chris Jones", "position": {"abbreviation": "DT"}}]},
        ]}
        players = parse_roster(payload).value
        assert [(p.player_id, p.name, p.position) for p in players] == [
            ("1", "Patrick Mahomes", "QB"),
            ("2", "Chris Jones", "DT"),
        ]


class TestEspnService:
    def test_current_week(self):
        service = EspnService(client=FakeEspnClient(current=Ok({"week": {"number": 7}})), retry=NO_RETRY)
        assert service.current_week() == Ok(7)

    def test_current_week_missing(self):
        service = EspnService(client=FakeEspnClient(current=Ok({"events": []})), retry=NO_RETRY)
        assert isinstance(service.current_week().error, Malformed)

    def test_week_games(self):
        service = EspnService(client=FakeEspnClient(scoreboard=Ok({"events": [_event()]})), retry=NO_RETRY)
        assert [g.game_id for g in service.week_games(2025, 5).value] == ["kan-lac-2025-5"]

    def test_league_team_stats_requires_teams(self):
        service = EspnService(client=FakeEspnClient(team_stats=Ok({})), retry=NO_RETRY)
        assert isinstance(service.league_team_stats(2025, 5).error, Malformed)

    def test_transport_error_passes_through(self):
        failure = Err(FetchFailure(url="/players/statistics", status=500))
        service = EspnService(client=FakeEspnClient(players=failure), retry=NO_RETRY)
        assert service.player_stats(2025) == failure
