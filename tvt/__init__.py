from .models import (
    CaptainSelection,
    CaptainStatus,
    ChallengeFixture,
    ChipType,
    LiveScorePayload,
    ManagerEntry,
    Matchup,
    Side,
    SideLabel,
    StandingRow,
    StandingsPayload,
)
from .captains import (
    resolve_captain,
    resolve_matchup_captains,
    submit_captain_selection,
)
from .scoring import (
    base_league_points,
    compute_side_totals,
    pick_fallback_captain,
    score_matchup,
)
from .chips import apply_chips, compute_challenge_fixtures
from .standings import StandingsCalculator, replay_standings, sort_and_rank
from .cache import TTLCache
from .data_fetcher import FPLDataFetcher, get_fetcher
from .storage import JsonFileStore, SupabaseStore, TieredStore, get_store
from .live_score import LiveScorer
from .league import LeagueData
from .logging_config import setup_logging

__all__ = [
    # Models
    'CaptainSelection',
    'CaptainStatus',
    'ChallengeFixture',
    'ChipType',
    'LiveScorePayload',
    'ManagerEntry',
    'Matchup',
    'Side',
    'SideLabel',
    'StandingRow',
    'StandingsPayload',
    # Captains
    'resolve_captain',
    'resolve_matchup_captains',
    'submit_captain_selection',
    # Scoring
    'base_league_points',
    'compute_side_totals',
    'pick_fallback_captain',
    'score_matchup',
    # Chips
    'apply_chips',
    'compute_challenge_fixtures',
    # Standings
    'StandingsCalculator',
    'replay_standings',
    'sort_and_rank',
    # Provider data
    'TTLCache',
    'FPLDataFetcher',
    'get_fetcher',
    # Storage
    'JsonFileStore',
    'SupabaseStore',
    'TieredStore',
    'get_store',
    # Orchestration
    'LiveScorer',
    'LeagueData',
    'setup_logging',
]
