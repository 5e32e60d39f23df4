"""Tests for the request handling behind the serverless functions."""

import pytest

from conftest import FakeFetcher, build_league, make_bootstrap, make_picks, matchup, team
from tvt.api import (
    captain_selection_response,
    live_score_response,
    parse_gw,
    parse_query,
    rankings_response,
)
from tvt.errors import StorageError, StorageUnavailableError
from tvt.live_score import LiveScorer
from tvt.schemas import LeagueConfig
from tvt.standings import StandingsCalculator
from tvt.storage import ResultStore

VALID_BODY = {
    'gw': 28,
    'matchupId': 'm1',
    'side': 'home',
    'captainEntryId': 101,
    'status': 'selected',
}


class FailingStore(ResultStore):
    def __init__(self, error):
        self.error = error

    def insert_captain_selection(self, selection):
        raise self.error


class TestQueryParsing:
    """Tests for query string handling."""

    def test_parse_query(self):
        """Test that the first value of each parameter is kept."""
        assert parse_query('/api/live-score?gw=28&matchupId=m1&gw=29') == {
            'gw': '28',
            'matchupId': 'm1',
        }
        assert parse_query('/api/live-score') == {}

    @pytest.mark.parametrize(
        'value,expected',
        [('28', 28), (None, None), ('', None), ('abc', None), ('0', None), ('-3', None)],
    )
    def test_parse_gw(self, value, expected):
        """Test that only positive integers select a gameweek."""
        assert parse_gw(value) == expected


class TestCaptainSelectionResponse:
    """Tests for POST /api/captain-selection status codes."""

    def test_stored(self, store):
        """Test a valid submission is stored."""
        assert captain_selection_response(VALID_BODY, store) == (200, {'ok': True})
        assert len(store.load_captain_selections(28, [])) == 1

    def test_conflict(self, store):
        """Test that a second submission for the same side is rejected."""
        captain_selection_response(VALID_BODY, store)
        status, body = captain_selection_response(dict(VALID_BODY, captainEntryId=102), store)
        assert (status, body) == (409, {'error': 'Captain already selected.'})
        assert store.load_captain_selections(28, [])[0].captain_entry_id == 101

    @pytest.mark.parametrize(
        'body,message',
        [
            ('not an object', 'Invalid request.'),
            ({'gw': 28, 'side': 'home', 'status': 'selected'}, 'Invalid request.'),
            (dict(VALID_BODY, status='pending'), 'Invalid captain status.'),
            (dict(VALID_BODY, captainEntryId=None), 'Captain entryId is required.'),
        ],
    )
    def test_invalid(self, store, body, message):
        """Test that malformed submissions are 400s."""
        assert captain_selection_response(body, store) == (400, {'error': message})

    def test_no_storage(self):
        """Test that missing storage is a 503."""
        status, body = captain_selection_response(VALID_BODY, use_default_store=False)
        assert (status, body) == (503, {'error': 'Storage is not configured.'})

    def test_storage_failure(self):
        """Test that a failed write is a 500."""
        status, body = captain_selection_response(VALID_BODY, FailingStore(StorageError('down')))
        assert (status, body) == (500, {'error': 'Unable to save captain selection.'})

    def test_storage_unavailable_on_write(self):
        """Test that an unreachable store on write is a 503."""
        store = FailingStore(StorageUnavailableError('no credentials'))
        assert captain_selection_response(VALID_BODY, store)[0] == 503


class TestScoreResponses:
    """Tests for GET /api/live-score and /api/rankings."""

    def scorer(self, store, clock):
        league = build_league(
            matchups_by_gw={'28': [matchup('m1', 'Alpha', 'Bravo')]},
            teams=[team('Alpha', 101, 102), team('Bravo', 201, 202)],
        )
        fetcher = FakeFetcher(
            bootstrap=make_bootstrap(28),
            fixtures=[],
            live={'elements': []},
            picks={101: make_picks(8), 102: make_picks(12), 201: make_picks(5), 202: make_picks(5)},
        )
        return LiveScorer(fetcher, store, league=league, config=LeagueConfig(), clock=clock)

    def test_live_score(self, store, clock):
        """Test the live score body is the camelCase payload."""
        status, body = live_score_response({'gw': '28', 'matchupId': 'm1'}, self.scorer(store, clock))
        assert status == 200
        assert body['gw'] == 28
        assert body['activeGw'] == 28
        assert body['matchups'][0]['home']['totalPoints'] == 28
        assert body['gwStatus']['isCurrent'] is True

    def test_live_score_bad_gw_uses_active(self, store, clock):
        """Test that a non-numeric gw falls back to the active gameweek."""
        status, body = live_score_response({'gw': 'latest'}, self.scorer(store, clock))
        assert status == 200
        assert body['gw'] == 28

    def test_rankings(self, store, clock, baseline_dir):
        """Test that rankings replay live results onto the baseline."""
        calculator = StandingsCalculator(
            self.scorer(store, clock), store, config=LeagueConfig(), data_dir=baseline_dir
        )
        status, body = rankings_response({'gw': '28'}, calculator)
        assert status == 200
        assert body['baselineGw'] == 27
        alpha = next(row for row in body['groupA'] if row['team_name'] == 'Alpha')
        assert (alpha['mp'], alpha['w'], alpha['points']) == (28, 16, 34)
        assert body['sourceSummary'] == [{'gw': 28, 'source': 'live', 'archivedStatus': None}]
