"""Shared fixtures: a fake FPL provider, a fixed clock and league builders."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from tvt.league import LeagueData
from tvt.schemas import (
    CaptainsFile,
    ChipsFile,
    LeagueConfig,
    MatchupsFile,
    TeamsFile,
)
from tvt.storage import JsonFileStore

NOW = datetime(2025, 3, 8, 18, 0, tzinfo=timezone.utc)


def make_bootstrap(current_gw: int, current_finished: bool = False, elements=None) -> dict:
    """Bootstrap-static with weekly deadlines; the current deadline passed 2 hours ago."""
    events = []
    for gw in range(1, 39):
        deadline = NOW + timedelta(days=7 * (gw - current_gw)) - timedelta(hours=2)
        events.append(
            {
                'id': gw,
                'name': f'Gameweek {gw}',
                'deadline_time': deadline.strftime('%Y-%m-%dT%H:%M:%SZ'),
                'is_current': gw == current_gw,
                'is_previous': gw == current_gw - 1,
                'is_next': gw == current_gw + 1,
                'finished': gw < current_gw or (gw == current_gw and current_finished),
            }
        )
    return {'events': events, 'elements': elements or []}


def make_picks(points: int, picks=None) -> dict:
    return {'entry_history': {'points': points}, 'picks': picks or []}


class FakeFetcher:
    """Stands in for FPLDataFetcher; None values simulate provider failures."""

    def __init__(self, bootstrap=None, fixtures=None, live=None, picks=None):
        self.bootstrap = bootstrap
        self.fixtures = fixtures
        self.live = live
        self.picks = picks or {}
        self.picks_requested = []

    def get_bootstrap_static(self):
        return self.bootstrap

    def get_fixtures(self, gw):
        return self.fixtures

    def get_event_live(self, gw):
        return self.live

    def get_entry_picks(self, entry_id, gw):
        self.picks_requested.append(entry_id)
        return self.picks.get(entry_id)


def matchup(matchup_id: str, home: str, away: str, home_managers=None, away_managers=None) -> dict:
    return {
        'id': matchup_id,
        'home': {'name': home, 'managers': home_managers or []},
        'away': {'name': away, 'managers': away_managers or []},
    }


def build_league(
    matchups_by_gw=None,
    matchups=None,
    captains=None,
    teams=None,
    chips=None,
) -> LeagueData:
    """LeagueData from plain dicts in the data-file (camelCase) format."""
    matchups_data = {}
    if matchups_by_gw is not None:
        matchups_data['matchupsByGameweek'] = matchups_by_gw
    if matchups is not None:
        matchups_data['matchups'] = matchups
    return LeagueData(
        matchups=MatchupsFile.model_validate(matchups_data),
        captains=CaptainsFile.model_validate(captains or {}),
        teams=TeamsFile.model_validate({'teams': teams or []}),
        chips=ChipsFile.model_validate({'byGameweek': chips or {}}),
    )


def team(name: str, *entry_ids: int) -> dict:
    return {
        'teamName': name,
        'members': [
            {'managerKey': f'{name}-{i}', 'managerName': f'Manager {entry_id}', 'entryId': entry_id}
            for i, entry_id in enumerate(entry_ids)
        ],
    }


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def league_config():
    return LeagueConfig()


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path / 'data')


@pytest.fixture
def baseline_dir(tmp_path):
    """Data directory with two-team baseline standings for each group."""
    data_dir = tmp_path / 'baseline'
    data_dir.mkdir()
    group_a = [
        {'team_name': 'Alpha', 'group': 'A', 'rank': 1, 'mp': 27, 'w': 15, 'd': 2, 'l': 10,
         'cp_bp': 4, 'points': 32, 'overall_scores': 3100, 'qualifying_for': 'TVT Playoffs',
         'baseline_gw': 27},
        {'team_name': 'Bravo', 'group': 'A', 'rank': 2, 'mp': 27, 'w': 14, 'd': 3, 'l': 10,
         'cp_bp': 2, 'points': 31, 'overall_scores': 3050, 'qualifying_for': 'TVT Playoffs',
         'baseline_gw': 27},
    ]
    group_b = [
        {'team_name': 'Charlie', 'group': 'B', 'rank': 1, 'mp': 27, 'w': 13, 'd': 1, 'l': 13,
         'cp_bp': 1, 'points': 27, 'overall_scores': 2990, 'qualifying_for': 'TVT Playoffs',
         'baseline_gw': 27},
        {'team_name': 'Delta', 'group': 'B', 'rank': 2, 'mp': 27, 'w': 12, 'd': 2, 'l': 13,
         'cp_bp': 0, 'points': 26, 'overall_scores': 2960, 'qualifying_for': 'TVT Playoffs',
         'baseline_gw': 27},
    ]
    (data_dir / 'standings_group_a.json').write_text(json.dumps(group_a))
    (data_dir / 'standings_group_b.json').write_text(json.dumps(group_b))
    return data_dir
