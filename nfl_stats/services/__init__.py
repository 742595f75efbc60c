# nfl_stats/services/__init__.py
"""
Services package exports.
"""
from .espn_service import EspnService
from .schedule_service import ScheduleService
from .team_stats_service import TeamStatsService

__all__ = ["EspnService", "ScheduleService", "TeamStatsService"]
