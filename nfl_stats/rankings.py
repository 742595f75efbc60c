# nfl_stats/rankings.py
"""
Composite and league rankings.

A rank of 0 means "unknown" and is never averaged in. Composites are the
mean of the known ranks rounded half-up, so the unknown sentinel propagates
when nothing is known instead of being replaced by a made-up rank.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, Mapping, Optional


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def aggregate_rankings(ranks: Iterable[int]) -> int:
    """Mean of the non-zero ranks, rounded to the nearest integer; 0 when none are known."""
    known = [r for r in ranks if r and r > 0]
    if not known:
        return 0
    return _round_half_up(sum(known) / len(known))


def overall_team_rank(offense_rank: int, defense_rank: int) -> int:
    """Blend the two composites with the same zero rule."""
    return aggregate_rankings((offense_rank, defense_rank))


def rank_by_value(values: Mapping[str, Optional[float]], descending: bool = True) -> Dict[str, int]:
    """
    League ranks (1 = best) from raw per-team values.

    Ties share a rank and the next rank skips ("1224"). Teams whose value is
    None rank 0.

    Example:
      {"kan": 410.0, "buf": 395.5, "det": 410.0}  -> {"kan": 1, "det": 1, "buf": 3}
    """
    known = [(team, v) for team, v in values.items() if v is not None]
    known.sort(key=lambda tv: tv[1], reverse=descending)

    out: Dict[str, int] = {team: 0 for team in values}
    prev: Optional[float] = None
    rank = 0
    for i, (team, v) in enumerate(known, start=1):
        if prev is None or v != prev:
            rank = i
            prev = v
        out[team] = rank
    return out
