"""Request handling shared by the serverless functions in api/.

Each function takes already-decoded request input and returns
``(status_code, body)`` so the BaseHTTPRequestHandler wrappers stay thin.
"""

import logging
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from .captains import submit_captain_selection
from .data_fetcher import get_fetcher
from .errors import CaptainSelectionError, StorageUnavailableError
from .live_score import LiveScorer
from .standings import StandingsCalculator
from .storage import get_store

logger = logging.getLogger('tvt.api')


def parse_query(path: str) -> dict[str, str]:
    """First value of each query-string parameter."""
    return {key: values[0] for key, values in parse_qs(urlparse(path).query).items() if values}


def parse_gw(value: Optional[str]) -> Optional[int]:
    """Gameweek query parameter; anything non-numeric means 'use the active gameweek'."""
    if value is None:
        return None
    try:
        gw = int(value)
    except ValueError:
        return None
    return gw if gw > 0 else None


def _store_or_none(warnings: list[str]):
    try:
        return get_store()
    except StorageUnavailableError as e:
        logger.error(f'Storage unavailable: {e}')
        warnings.append('Storage is not configured; archived results unavailable.')
        return None


def live_score_response(query: dict[str, str], scorer: Optional[LiveScorer] = None) -> tuple[int, dict[str, Any]]:
    """GET /api/live-score?gw=&matchupId="""
    warnings: list[str] = []
    if scorer is None:
        scorer = LiveScorer(get_fetcher(), _store_or_none(warnings))
    payload = scorer.score_gameweek(parse_gw(query.get('gw')), query.get('matchupId') or None)
    payload.warnings = [*warnings, *payload.warnings]
    return 200, payload.to_dict()


def rankings_response(
    query: dict[str, str], calculator: Optional[StandingsCalculator] = None
) -> tuple[int, dict[str, Any]]:
    """GET /api/rankings?gw="""
    warnings: list[str] = []
    if calculator is None:
        store = _store_or_none(warnings)
        calculator = StandingsCalculator(LiveScorer(get_fetcher(), store), store)
    payload = calculator.compute(parse_gw(query.get('gw')))
    payload.warnings = [*warnings, *payload.warnings]
    return 200, payload.to_dict()


def captain_selection_response(body: Any, store=None, use_default_store: bool = True) -> tuple[int, dict[str, Any]]:
    """
    POST /api/captain-selection

    Args:
        body: Decoded JSON body
        store: ResultStore to write to
        use_default_store: Build the configured store when ``store`` is None
    """
    if store is None and use_default_store:
        try:
            store = get_store()
        except StorageUnavailableError as e:
            logger.error(f'Storage unavailable: {e}')
            store = None

    try:
        submit_captain_selection(body, store)
    except CaptainSelectionError as e:
        return e.status_code, {'error': e.message}
    return 200, {'ok': True}
