"""Per-gameweek live score orchestration.

Ties the provider client, league configuration, stored captain selections
and the scoring core together into the payload served by /api/live-score.
Finished gameweeks are archived and served from storage afterwards.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from .captains import index_selections, resolve_matchup_captains
from .chips import apply_chips, compute_challenge_fixtures
from .config import get_config
from .data_fetcher import (
    FPLDataFetcher,
    build_element_points_map,
    build_element_to_team_map,
    build_gw_status,
    build_team_has_unstarted_map,
    fetch_manager_stats,
    get_current_gameweek,
    has_gameweek_started,
)
from .errors import StorageError
from .league import LeagueData
from .models import ChipType, LiveScorePayload
from .schemas import LeagueConfig, MatchupConfig
from .scoring import normalize_archived_matchup, score_matchup
from .utils import utc_now

logger = logging.getLogger('tvt.live_score')


def _warn(warnings: list[str], message: str) -> None:
    warnings.append(message)
    logger.warning(message)


def unique_entry_ids(matchups: Iterable[MatchupConfig]) -> list[int]:
    """Entry ids across all sides, first-seen order."""
    seen: dict[int, None] = {}
    for matchup in matchups:
        for entry_id in [*matchup.home.managers, *matchup.away.managers]:
            seen.setdefault(entry_id, None)
    return list(seen)


class LiveScorer:
    """
    Computes LiveScorePayloads.

    Collaborators are injected so tests can substitute a fake fetcher,
    an in-memory store and a fixed clock.
    """

    def __init__(
        self,
        fetcher: FPLDataFetcher,
        store=None,
        league: Optional[LeagueData] = None,
        config: Optional[LeagueConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize scorer.

        Args:
            fetcher: Provider client
            store: ResultStore, or None to run without archives and selections
            league: League configuration (default: loaded from the data directory)
            config: League settings (default: data/league_config.json)
            clock: Returns the current aware datetime (default: utc_now)
        """
        self.fetcher = fetcher
        self.store = store
        self.league = league or LeagueData.from_config()
        self.config = config or get_config()
        self.clock = clock or utc_now

    def resolve_active_gw(self, bootstrap) -> Optional[int]:
        if bootstrap:
            return get_current_gameweek(bootstrap)
        return self.league.max_matchups_gw()

    def score_gameweek(self, gw: Optional[int] = None, matchup_id: Optional[str] = None) -> LiveScorePayload:
        """
        Build the payload for a gameweek.

        Args:
            gw: Gameweek to score (default: the active gameweek)
            matchup_id: Restrict the returned matchups to this id

        Returns:
            LiveScorePayload; anomalies are reported in ``warnings``
        """
        warnings: list[str] = []
        now = self.clock()

        bootstrap = self.fetcher.get_bootstrap_static()
        active_gw = self.resolve_active_gw(bootstrap)
        if not gw:
            gw = active_gw
        if not gw:
            gw = 1
            _warn(warnings, 'Unable to detect current gameweek, defaulted to 1.')

        gw_status = build_gw_status(bootstrap, gw, now, self.config.started_lead_hours)

        if active_gw and gw > active_gw:
            return LiveScorePayload(
                gw=gw,
                active_gw=active_gw,
                generated_at=now.isoformat(),
                warnings=[f'Gameweek {gw} has not started yet. Check back later.'],
                gw_status=gw_status,
            )

        is_past = bool(active_gw and gw < active_gw)
        is_finished = bool(gw_status and gw_status.is_finished)
        if is_past or is_finished:
            archived = self.load_archived(gw, warnings)
            if archived is not None:
                archived.active_gw = active_gw
                archived.gw_status = gw_status
                if matchup_id:
                    archived.matchups = [m for m in archived.matchups if m.id == matchup_id]
                return archived
            if is_past:
                _warn(
                    warnings,
                    f'Archived results for gameweek {gw} are not available; '
                    'computed from provider data.',
                )

        payload = self.compute(gw, active_gw, bootstrap, matchup_id, warnings, now)
        payload.gw_status = gw_status

        if is_finished:
            self.archive(payload)

        return payload

    def compute_for_archive(self, gw: int) -> Optional[LiveScorePayload]:
        """
        Recompute a finished gameweek from provider data, ignoring any archive.

        Returns:
            The payload, or None if the provider does not report the gameweek finished
        """
        warnings: list[str] = []
        now = self.clock()
        bootstrap = self.fetcher.get_bootstrap_static()
        gw_status = build_gw_status(bootstrap, gw, now, self.config.started_lead_hours)
        if gw_status is None or not gw_status.is_finished:
            logger.info(f'gw={gw} is not finished; not archiving')
            return None
        payload = self.compute(gw, self.resolve_active_gw(bootstrap), bootstrap, None, warnings, now)
        payload.gw_status = gw_status
        return payload

    def load_archived(self, gw: int, warnings: list[str]) -> Optional[LiveScorePayload]:
        """Archived payload with legacy matchups normalized, or None."""
        if self.store is None:
            return None
        try:
            data = self.store.load_results(gw, warnings)
        except StorageError as e:
            logger.error(f'Failed to load archived results for gw={gw}: {e}')
            _warn(warnings, 'Unable to load archived results from storage.')
            return None
        if data is None:
            return None

        payload = LiveScorePayload.from_dict(data)
        payload.matchups = [normalize_archived_matchup(m) for m in payload.matchups]
        payload.warnings = [*payload.warnings, *warnings]
        return payload

    def archive(self, payload: LiveScorePayload) -> bool:
        """Persist a payload; failure becomes a warning on the payload."""
        if self.store is None:
            return False
        try:
            self.store.save_results(payload.gw, payload.to_dict(), payload.warnings)
        except StorageError as e:
            logger.error(f'Failed to archive gw={payload.gw}: {e}')
            payload.warnings.append('Unable to persist finished gameweek results.')
            return False
        logger.info(f'Archived results for gw={payload.gw}')
        return True

    def load_selections(self, gw: int, warnings: list[str]):
        if self.store is None:
            return {}
        try:
            selections = self.store.load_captain_selections(gw, warnings)
        except StorageError as e:
            logger.error(f'Failed to load captain selections for gw={gw}: {e}')
            _warn(warnings, 'Unable to load captain selections from storage.')
            return {}
        return index_selections(selections)

    def challenge_entry_ids(self, gw: int, matchups: list[MatchupConfig]) -> list[int]:
        """Managers of every team involved in a challenge chip this gameweek."""
        entry_ids: list[int] = []
        for team_name, assignment in self.league.chips_for_gw(gw).items():
            if ChipType.CHALLENGE.value not in assignment.all_chip_types:
                continue
            for name in (team_name, assignment.challenge_opponent_team_name):
                position = self.league.find_team(name, matchups) if name else None
                if position is not None:
                    entry_ids.extend(position.managers)
        return entry_ids

    def compute(
        self,
        gw: int,
        active_gw: Optional[int],
        bootstrap,
        matchup_id: Optional[str],
        warnings: list[str],
        now: datetime,
    ) -> LiveScorePayload:
        """Score a gameweek from provider data."""
        selections = self.load_selections(gw, warnings)
        all_matchups = self.league.matchups_for_gw(gw, warnings)
        matchups = [m for m in all_matchups if m.id == matchup_id] if matchup_id else all_matchups

        element_to_team = build_element_to_team_map(bootstrap) if bootstrap else {}
        if not bootstrap:
            _warn(warnings, 'Failed to fetch bootstrap-static; players left to play set to 0.')

        fixtures = self.fetcher.get_fixtures(gw)
        if fixtures is None:
            _warn(warnings, f'Failed to fetch fixtures for gw={gw}; players left to play set to 0.')
        team_has_unstarted = build_team_has_unstarted_map(fixtures, now) if fixtures else {}

        live_event = self.fetcher.get_event_live(gw)
        if live_event is None:
            _warn(
                warnings, f'Failed to fetch live event data for gw={gw}; using entry_history points.'
            )
        element_points = build_element_points_map(live_event) if live_event else {}

        # Only the real deadline gates picks; the lead window is display-only
        can_fetch_picks = has_gameweek_started(bootstrap, gw, now) if bootstrap else True

        entry_ids = unique_entry_ids(matchups) + self.challenge_entry_ids(gw, all_matchups)
        manager_stats = fetch_manager_stats(
            self.fetcher,
            entry_ids,
            gw,
            element_points,
            element_to_team,
            team_has_unstarted,
            warnings,
            can_fetch_picks=can_fetch_picks,
            max_workers=self.config.picks_fetch_workers,
        )
        manager_meta = self.league.manager_meta()

        scored = [
            score_matchup(
                matchup,
                resolve_matchup_captains(gw, matchup.id, self.league.captains, selections),
                manager_stats,
                manager_meta,
                warnings,
            )
            for matchup in matchups
        ]
        bracket_teams = {name for m in all_matchups for name in (m.home.name, m.away.name)}
        apply_chips(scored, self.league.chips_for_gw(gw), gw, warnings, bracket_teams)

        challenge_fixtures = compute_challenge_fixtures(
            gw, all_matchups, self.league, selections, manager_stats, manager_meta, warnings
        )

        logger.info(
            f'Scored gw={gw}: {len(scored)} matchups, '
            f'{len(challenge_fixtures)} challenge fixtures, {len(warnings)} warnings'
        )
        return LiveScorePayload(
            gw=gw,
            active_gw=active_gw,
            generated_at=now.isoformat(),
            matchups=scored,
            challenge_fixtures=challenge_fixtures,
            warnings=warnings,
        )
