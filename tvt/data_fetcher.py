"""FPL data fetching using the public fantasy.premierleague.com API.

Every request has a timeout and is retried once. After a second failure the
fetcher returns None and the caller degrades to a zero/empty default with a
warning. Successful responses are cached with a per-endpoint TTL.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Iterable, Optional

import requests

from .cache import TTLCache
from .config import get_config
from .constants import (
    BOOTSTRAP_TTL_SECONDS,
    BOOTSTRAP_URL,
    EVENT_LIVE_URL,
    FIXTURES_TTL_SECONDS,
    FIXTURES_URL,
    LIVE_EVENT_TTL_SECONDS,
    PICKS_FETCH_WORKERS,
    PICKS_TTL_SECONDS,
    PICKS_URL,
    REQUEST_TIMEOUT_SECONDS,
    STARTED_LEAD_HOURS,
)
from .models import GameweekStatus, ManagerStats
from .utils import parse_timestamp, utc_now

logger = logging.getLogger('tvt.data_fetcher')

REQUEST_ATTEMPTS = 2


class FPLDataFetcher:
    """Fetches and caches FPL provider data."""

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.cache = cache if cache is not None else TTLCache()
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_json(self, url: str) -> Any:
        """
        GET a JSON document, retrying once on any failure.

        Timeouts, connection errors, non-2xx responses and undecodable
        bodies all count as failures.

        Returns:
            Decoded JSON, or None after the second failure
        """
        for attempt in range(1, REQUEST_ATTEMPTS + 1):
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning(f'Fetch failed ({attempt}/{REQUEST_ATTEMPTS}) for {url}: {e}')
        return None

    def _cached_fetch(self, key: tuple, url: str, ttl: float) -> Any:
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        data = self.fetch_json(url)
        if data is not None:
            self.cache.put(key, data, ttl)
        return data

    def get_bootstrap_static(self) -> Optional[dict]:
        """Events, elements (players) and clubs for the season."""
        return self._cached_fetch(('bootstrap',), BOOTSTRAP_URL, BOOTSTRAP_TTL_SECONDS)

    def get_fixtures(self, gw: int) -> Optional[list]:
        """Premier League fixtures for a gameweek."""
        return self._cached_fetch(('fixtures', gw), FIXTURES_URL.format(gw=gw), FIXTURES_TTL_SECONDS)

    def get_event_live(self, gw: int) -> Optional[dict]:
        """Live per-player stats for a gameweek."""
        return self._cached_fetch(
            ('event_live', gw), EVENT_LIVE_URL.format(gw=gw), LIVE_EVENT_TTL_SECONDS
        )

    def get_entry_picks(self, entry_id: int, gw: int) -> Optional[dict]:
        """A manager's picks and entry history for a gameweek."""
        return self._cached_fetch(
            ('picks', entry_id, gw),
            PICKS_URL.format(entry_id=entry_id, gw=gw),
            PICKS_TTL_SECONDS,
        )


@lru_cache(maxsize=1)
def get_fetcher() -> FPLDataFetcher:
    """Process-wide fetcher so provider caches survive across requests."""
    return FPLDataFetcher(cache=TTLCache(), timeout=get_config().request_timeout_seconds)


def _events(bootstrap: Any) -> list[dict]:
    events = bootstrap.get('events') if isinstance(bootstrap, dict) else None
    return [e for e in events if isinstance(e, dict)] if isinstance(events, list) else []


def find_event(bootstrap: Any, gw: int) -> Optional[dict]:
    for event in _events(bootstrap):
        if event.get('id') == gw:
            return event
    return None


def get_current_gameweek(bootstrap: Any) -> Optional[int]:
    """
    Active gameweek: the current one, else the next one, else the latest finished.
    """
    events = _events(bootstrap)
    if not events:
        return None

    for flag in ('is_current', 'is_next'):
        for event in events:
            if event.get(flag) and event.get('id'):
                return event['id']

    finished = [e['id'] for e in events if e.get('finished') and isinstance(e.get('id'), int)]
    return max(finished) if finished else None


def _deadline(event: dict) -> Optional[datetime]:
    return parse_timestamp(event.get('deadline_time'))


def has_gameweek_started(bootstrap: Any, gw: int, now: Optional[datetime] = None) -> bool:
    """True once the gameweek is current/previous/finished or its deadline has passed."""
    event = find_event(bootstrap, gw)
    if event is None:
        return False
    if event.get('is_current') or event.get('is_previous') or event.get('finished'):
        return True
    deadline = _deadline(event)
    return deadline is not None and (now or utc_now()) >= deadline


def build_gw_status(
    bootstrap: Any,
    gw: int,
    now: Optional[datetime] = None,
    lead_hours: float = STARTED_LEAD_HOURS,
) -> Optional[GameweekStatus]:
    """
    Status flags for a gameweek.

    ``is_started`` also turns true ``lead_hours`` before the deadline so
    the front end can announce the upcoming matchups.
    """
    event = find_event(bootstrap, gw)
    if event is None:
        return None

    deadline = _deadline(event)
    within_lead = deadline is not None and (now or utc_now()) >= deadline - timedelta(
        hours=lead_hours
    )
    return GameweekStatus(
        id=gw,
        name=event.get('name'),
        is_current=bool(event.get('is_current')),
        is_next=bool(event.get('is_next')),
        is_finished=bool(event.get('finished')),
        is_started=bool(
            event.get('is_current') or event.get('is_previous') or event.get('finished') or within_lead
        ),
    )


def build_element_to_team_map(bootstrap: Any) -> dict[int, int]:
    """Player (element) id -> Premier League club id."""
    elements = bootstrap.get('elements') if isinstance(bootstrap, dict) else None
    if not isinstance(elements, list):
        return {}
    return {
        element['id']: element['team']
        for element in elements
        if isinstance(element, dict)
        and isinstance(element.get('id'), int)
        and isinstance(element.get('team'), int)
    }


def is_fixture_started(fixture: dict, now: Optional[datetime] = None) -> bool:
    """Explicit ``started`` flag wins; otherwise compare kickoff to now."""
    started = fixture.get('started')
    if isinstance(started, bool):
        return started
    kickoff_raw = fixture.get('kickoff_time')
    if not kickoff_raw:
        return False
    kickoff = parse_timestamp(kickoff_raw)
    if kickoff is None:
        return True
    return kickoff <= (now or utc_now())


def build_team_has_unstarted_map(fixtures: Any, now: Optional[datetime] = None) -> dict[int, bool]:
    """Club id -> True for every club with a fixture that has not kicked off."""
    if not isinstance(fixtures, list):
        return {}
    now = now or utc_now()
    unstarted: dict[int, bool] = {}
    for fixture in fixtures:
        if not isinstance(fixture, dict) or is_fixture_started(fixture, now):
            continue
        for key in ('team_h', 'team_a'):
            if isinstance(fixture.get(key), int):
                unstarted[fixture[key]] = True
    return unstarted


def build_element_points_map(live_data: Any) -> dict[int, int]:
    """Player (element) id -> live total points."""
    elements = live_data.get('elements') if isinstance(live_data, dict) else None
    if not isinstance(elements, list):
        return {}
    points_map = {}
    for element in elements:
        if not isinstance(element, dict) or not isinstance(element.get('id'), int):
            continue
        points = (element.get('stats') or {}).get('total_points')
        points_map[element['id']] = points if isinstance(points, (int, float)) else 0
    return points_map


def get_gw_points_from_picks(picks_data: Any) -> int:
    points = ((picks_data or {}).get('entry_history') or {}).get('points')
    return points if isinstance(points, (int, float)) else 0


def compute_manager_stats(
    entry_id: int,
    picks_data: dict,
    element_points: dict[int, int],
    element_to_team: dict[int, int],
    team_has_unstarted: dict[int, bool],
) -> tuple[ManagerStats, bool]:
    """
    Derive a manager's gameweek points and players left to play.

    When live element points are available the score is recomputed as the
    multiplier-weighted sum over picks; otherwise the provider's
    entry_history total is used.

    Returns:
        Tuple of (ManagerStats, whether any pick lacked an element->club mapping)
    """
    picks = [p for p in picks_data.get('picks') or [] if isinstance(p, dict)]
    active_picks = [p for p in picks if (p.get('multiplier') or 0) > 0]

    gw_points = get_gw_points_from_picks(picks_data)
    if element_points:
        gw_points = sum(element_points.get(p.get('element'), 0) * p['multiplier'] for p in active_picks)

    players_left = 0
    missing_element = False
    if element_to_team and team_has_unstarted:
        for pick in active_picks:
            team_id = element_to_team.get(pick.get('element'))
            if not team_id:
                missing_element = True
                continue
            if team_has_unstarted.get(team_id):
                players_left += 1

    return ManagerStats(entry_id, int(gw_points), players_left), missing_element


def fetch_manager_stats(
    fetcher: FPLDataFetcher,
    entry_ids: Iterable[int],
    gw: int,
    element_points: dict[int, int],
    element_to_team: dict[int, int],
    team_has_unstarted: dict[int, bool],
    warnings: list[str],
    can_fetch_picks: bool = True,
    max_workers: int = PICKS_FETCH_WORKERS,
) -> dict[int, ManagerStats]:
    """
    Fetch picks for every manager concurrently and derive their stats.

    Managers whose picks cannot be fetched score 0 with a warning. Before
    the gameweek has started nobody's picks are fetched and everyone scores 0.

    Returns:
        Entry id -> ManagerStats
    """
    entry_ids = list(dict.fromkeys(entry_ids))
    if not can_fetch_picks:
        return {entry_id: ManagerStats(entry_id) for entry_id in entry_ids}

    def fetch(entry_id: int) -> Any:
        return fetcher.get_entry_picks(entry_id, gw)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(entry_ids) or 1))) as pool:
        picks_by_entry = dict(zip(entry_ids, pool.map(fetch, entry_ids)))

    stats: dict[int, ManagerStats] = {}
    missing_element = False
    for entry_id in entry_ids:
        picks_data = picks_by_entry.get(entry_id)
        if not isinstance(picks_data, dict):
            warnings.append(f'Failed to fetch picks for entryId={entry_id} (gw={gw}), using 0.')
            stats[entry_id] = ManagerStats(entry_id)
            continue
        manager_stats, missing = compute_manager_stats(
            entry_id, picks_data, element_points, element_to_team, team_has_unstarted
        )
        stats[entry_id] = manager_stats
        missing_element = missing_element or missing

    if missing_element:
        warnings.append('Missing element->team mapping for some players; treated as started.')

    return stats
