"""
Shared league model used by the scheduler, exchange and population packages.

Provides:
- Competitor / Rank: core data model
- LeagueRegistry: passed-by-reference store of all competitors
- Rank codec: dense rank score <-> structured rank
- LeagueError / MissingCompetitorError: error types
"""

from src.league.models import Competitor, Rank
from src.league.registry import LeagueRegistry, PopulationSnapshot, DivisionCount, rank_order_key
from src.league.rank_codec import (
    RankBand,
    DivisionLayout,
    decode,
    encode,
    layout_for,
    makuuchi_layout,
    single_band_layout,
)
from src.league.errors import LeagueError, MissingCompetitorError

__all__ = [
    'Competitor',
    'Rank',
    'LeagueRegistry',
    'PopulationSnapshot',
    'DivisionCount',
    'rank_order_key',
    'RankBand',
    'DivisionLayout',
    'decode',
    'encode',
    'layout_for',
    'makuuchi_layout',
    'single_band_layout',
    'LeagueError',
    'MissingCompetitorError',
]
