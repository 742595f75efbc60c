# app.py
"""
Flask entrypoint for the NFL stats service.

Routes (JSON):
  - /healthz
  - /api/v2/weeks/current
  - /api/v2/games?week=N[&season=Y][&stats=0]
  - /api/v2/games/<gameId>
  - /api/v2/games/<gameId>/team-stats
  - /api/v2/teams/<team>/stats?season=Y&week=N
  - /api/v2/teams/<team>/roster
  - /api/v2/players/stats?season=Y

Notes:
  - gameId is home-away-season-week with canonical team codes (kan-lac-2025-5).
  - <team> accepts a canonical code, PFR slug, full name or ESPN abbreviation.
  - Every error body is {code, message, status, correlationId}; the
    correlation id is echoed from X-Correlation-Id or generated.
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from nfl_stats.cache import SqliteDocumentStore, TTLCache
from nfl_stats.clients import EspnClient, PfrClient
from nfl_stats.config import AppConfig
from nfl_stats.fetcher import MarkupFetcher
from nfl_stats.handlers.games_handler import GamesHandler
from nfl_stats.log_config import setup_logging
from nfl_stats.result import InvalidInput, StatsError
from nfl_stats.retry import RetryPolicy
from nfl_stats.services import EspnService, ScheduleService, TeamStatsService

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


def build_handler(cfg: AppConfig) -> GamesHandler:
    """
    Wire fetcher, clients, cache and services once per process.

    Every dependency is passed explicitly so tests can build a handler from
    fakes instead.
    """
    fetcher = MarkupFetcher(timeout=cfg.fetch_timeout_seconds)
    retry = RetryPolicy(
        max_attempts=cfg.retry_max_attempts,
        base_delay=cfg.retry_base_delay_seconds,
        max_delay=cfg.retry_max_delay_seconds,
    )

    pfr = PfrClient(fetcher, cfg.pfr_base)
    espn = EspnClient(fetcher, cfg.espn_api_base)

    store = SqliteDocumentStore(cfg.cache_db_path) if cfg.cache_backend == "sqlite" else None

    return GamesHandler(
        schedule_service=ScheduleService(client=pfr, retry=retry),
        team_stats_service=TeamStatsService(client=pfr, retry=retry),
        espn_service=EspnService(client=espn, retry=retry),
        cache=TTLCache(store=store),
        cache_ttl_ms=cfg.cache_ttl_seconds * 1000,
        stale_ttl_ms=cfg.stale_ttl_seconds * 1000,
        max_workers=cfg.max_workers,
        season_provider=cfg.resolve_season,
    )


def create_app(config: Optional[AppConfig] = None, handler: Optional[GamesHandler] = None) -> Flask:
    """
    App factory.

    Builds the shared handler (and everything under it) once per process
    unless one is injected.
    """
    cfg = config or AppConfig()
    handler = handler or build_handler(cfg)

    app = Flask(__name__)

    # -------------------------
    # Correlation ids & errors
    # -------------------------

    @app.before_request
    def assign_correlation_id():
        g.correlation_id = (request.headers.get(CORRELATION_HEADER) or "").strip() or str(uuid.uuid4())

    @app.after_request
    def echo_correlation_id(response):
        cid = getattr(g, "correlation_id", None)
        if cid:
            response.headers[CORRELATION_HEADER] = cid
        return response

    def error_response(status: int, code: str, message: str):
        body = {
            "code": code,
            "message": message,
            "status": status,
            "correlationId": getattr(g, "correlation_id", None) or str(uuid.uuid4()),
        }
        return jsonify(body), status

    @app.errorhandler(StatsError)
    def handle_stats_error(e: StatsError):
        if e.status >= 500:
            logger.error("%s [%s]: %s", e.code, getattr(g, "correlation_id", "-"), e)
        return error_response(e.status, e.code, str(e))

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        code = (e.name or "error").lower().replace(" ", "_")
        return error_response(e.code or 500, code, e.description or e.name)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error [%s]", getattr(g, "correlation_id", "-"))
        return error_response(500, "internal_error", "Internal server error")

    # -------------------------
    # Shared parsing helpers
    # -------------------------

    def parse_int(name: str, required: bool = False) -> Optional[int]:
        """Parse an integer query param; malformed values are a 400, never a silent default."""
        raw = request.args.get(name)
        if raw is None or not raw.strip():
            if required:
                raise InvalidInput(f"Missing query param: {name}")
            return None
        try:
            return int(raw.strip())
        except ValueError:
            raise InvalidInput(f"Invalid {name}: {raw!r}") from None

    def parse_bool(name: str, default: bool = True) -> bool:
        """
        Parse a boolean-ish query param.

        Treats these as false: 0, false, no, off
        """
        raw = request.args.get(name)
        if raw is None:
            return default
        return raw.strip().lower() not in ("0", "false", "no", "off")

    # -------------------------
    # Weeks & games
    # -------------------------

    @app.get("/api/v2/weeks/current")
    def current_week():
        """Current regular-season week."""
        return jsonify(handler.current_week())

    @app.get("/api/v2/games")
    def games():
        """
        Games for one week.

        Query:
          - week=N (required, 1..18)
          - season=YYYY (optional, defaults to the configured/current season)
          - stats=1|0 (attach team statistics, default 1)
        """
        week = parse_int("week", required=True)
        season = parse_int("season")
        return jsonify(handler.games_for_week(week, season=season, include_stats=parse_bool("stats", True)))

    @app.get("/api/v2/games/<game_id>")
    def game(game_id: str):
        return jsonify(handler.game(game_id))

    @app.get("/api/v2/games/<game_id>/team-stats")
    def game_team_stats(game_id: str):
        return jsonify(handler.team_stats_for_game(game_id))

    # -------------------------
    # Teams & players
    # -------------------------

    @app.get("/api/v2/teams/<team>/stats")
    def team_stats(team: str):
        """
        One team's statistics.

        Query:
          - season=YYYY (optional)
          - week=N (optional, default 1; only stamps the record)
        """
        week = parse_int("week")
        if week is None:
            week = 1
        return jsonify(handler.team_stats(team, season=parse_int("season"), week=week))

    @app.get("/api/v2/teams/<team>/roster")
    def team_roster(team: str):
        return jsonify(handler.roster(team))

    @app.get("/api/v2/players/stats")
    def player_stats():
        return jsonify(handler.player_stats(parse_int("season")))

    # -------------------------
    # Health
    # -------------------------

    @app.get("/healthz")
    def health():
        """Simple health endpoint for Docker/monitoring checks."""
        return {"ok": True}

    return app


# WSGI entrypoint for gunicorn (app:app)
setup_logging()
app = create_app()

if __name__ == "__main__":
    # Dev server (not for production).
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "8000")), debug=True)
