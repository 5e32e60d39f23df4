"""Unit tests for the standings replay."""

import json

import pytest

from tvt.models import Matchup, Side, StandingRow
from tvt.schemas import LeagueConfig
from tvt.standings import (
    StandingsCalculator,
    apply_matchup_delta,
    build_group_index,
    clone_standings,
    is_archived_finished,
    load_baseline_standings,
    matchup_league_points,
    normalize_team_name,
    qualification_for_rank,
    replay_standings,
    sort_and_rank,
)


def row(name, group='A', **fields) -> StandingRow:
    return StandingRow(team_name=name, group=group, **fields)


def result(home, away, home_total, away_total, home_final=None, away_final=None) -> Matchup:
    return Matchup(
        id=f'{home}-{away}',
        home=Side(home, total_points=home_total),
        away=Side(away, total_points=away_total),
        home_final_league_points=home_final,
        away_final_league_points=away_final,
    )


class TestSortAndRank:
    """Tests for the tie-break chain and qualification tiers."""

    def test_tie_break_chain(self):
        """Test ordering by points, then w, then cp_bp, then overall_scores, then name."""
        rows = [
            row('Zed', points=10, w=4, cp_bp=1, overall_scores=500),
            row('Yak', points=10, w=4, cp_bp=1, overall_scores=500),
            row('Xen', points=10, w=4, cp_bp=1, overall_scores=600),
            row('Wok', points=10, w=4, cp_bp=2, overall_scores=100),
            row('Vim', points=10, w=5, cp_bp=0, overall_scores=0),
            row('Ugo', points=11, w=0, cp_bp=0, overall_scores=0),
        ]
        ranked = sort_and_rank(rows)
        assert [r.team_name for r in ranked] == ['Ugo', 'Vim', 'Wok', 'Xen', 'Yak', 'Zed']
        assert [r.rank for r in ranked] == [1, 2, 3, 4, 5, 6]

    def test_name_tie_break_ignores_case(self):
        """Test that equal rows are ordered by name without regard to case."""
        ranked = sort_and_rank([row('Banana'), row('apple'), row('cherry')])
        assert [r.team_name for r in ranked] == ['apple', 'Banana', 'cherry']

    @pytest.mark.parametrize(
        'rank,tier',
        [
            (1, 'TVT Playoffs'),
            (8, 'TVT Playoffs'),
            (9, "Challenger's Playoffs"),
            (14, "Challenger's Playoffs"),
            (15, 'Elimination Zone'),
            (20, 'Elimination Zone'),
        ],
    )
    def test_qualification_tiers(self, rank, tier):
        """Test tier boundaries."""
        assert qualification_for_rank(rank) == tier


class TestApplyMatchupDelta:
    """Tests for folding a single matchup."""

    def setup_tables(self):
        group_a = [row('Alpha'), row('Bravo')]
        group_b = [row('Charlie', 'B')]
        tables = {'A': clone_standings(group_a), 'B': clone_standings(group_b)}
        return tables, build_group_index(group_a, group_b)

    def test_win_uses_final_league_points(self):
        """Test W/L from totals and league points from the final values."""
        tables, index = self.setup_tables()
        applied = apply_matchup_delta(result('Alpha', 'Charlie', 40, 30, 4, 0), tables, index, [])
        assert applied
        alpha, charlie = tables['A']['Alpha'], tables['B']['Charlie']
        assert (alpha.w, alpha.points, alpha.overall_scores) == (1, 4, 40)
        assert (charlie.l, charlie.points, charlie.overall_scores) == (1, 0, 30)

    def test_draw_falls_back_to_base_rule(self):
        """Test that missing final league points fall back to 2/1/0."""
        tables, index = self.setup_tables()
        apply_matchup_delta(result('Alpha', 'Bravo', 25, 25), tables, index, [])
        assert tables['A']['Alpha'].d == 1
        assert tables['A']['Alpha'].points == 1
        assert tables['A']['Bravo'].points == 1

    def test_unknown_team_skips_whole_matchup(self):
        """Test that an unknown team leaves both rows untouched."""
        tables, index = self.setup_tables()
        warnings = []
        applied = apply_matchup_delta(result('Alpha', 'Ghost', 50, 10), tables, index, warnings)
        assert not applied
        assert warnings == ['Team not found in baseline: Ghost']
        assert tables['A']['Alpha'].w == 0
        assert tables['A']['Alpha'].overall_scores == 0

    def test_alias_resolves_to_baseline_name(self):
        """Test that a historical spelling maps to the baseline row."""
        tables, index = self.setup_tables()
        warnings = []
        apply_matchup_delta(
            result('Alpha Old', 'Bravo', 10, 20), tables, index, warnings, aliases={'Alpha Old': 'Alpha'}
        )
        assert warnings == []
        assert tables['A']['Alpha'].l == 1

    def test_builtin_aliases(self):
        """Test the built-in historical spellings."""
        aliases = {'xG Xorcists': 'XX Orcsits'}
        assert normalize_team_name('xG Xorcists', aliases) == 'XX Orcsits'
        assert normalize_team_name('Unknown', aliases) == 'Unknown'


class TestReplayStandings:
    """Tests for the multi-gameweek replay."""

    def baseline(self):
        return (
            [row('Alpha', points=10, mp=3), row('Bravo', points=9, mp=3)],
            [row('Charlie', 'B', points=8, mp=3), row('Delta', 'B', points=8, mp=3)],
        )

    def gameweeks(self):
        return {
            24: [result('Alpha', 'Bravo', 20, 30), result('Charlie', 'Delta', 15, 15)],
            25: [result('Bravo', 'Alpha', 10, 12), result('Delta', 'Charlie', 40, 12, 4, 0)],
            26: [result('Alpha', 'Bravo', 18, 18), result('Charlie', 'Delta', 22, 21)],
        }

    def test_baseline_not_modified(self):
        """Test that the input baseline rows are left untouched."""
        group_a, group_b = self.baseline()
        replay_standings(group_a, group_b, self.gameweeks().values(), [])
        assert group_a[0].mp == 3
        assert group_a[0].points == 10

    def test_replay_totals(self):
        """Test accumulated matches played, results and points."""
        group_a, group_b = self.baseline()
        ranked_a, ranked_b = replay_standings(group_a, group_b, self.gameweeks().values(), [])
        by_name = {r.team_name: r for r in ranked_a + ranked_b}
        assert by_name['Alpha'].mp == 6
        assert (by_name['Alpha'].w, by_name['Alpha'].d, by_name['Alpha'].l) == (1, 1, 1)
        assert by_name['Alpha'].points == 13
        assert by_name['Bravo'].points == 12
        assert by_name['Delta'].points == 8 + 1 + 4 + 0
        assert by_name['Charlie'].overall_scores == 15 + 12 + 22

    def test_fold_order_does_not_change_outcome(self):
        """Test that folding gameweeks 24, 25, 26 in any order gives the same ranks."""
        group_a, group_b = self.baseline()
        weeks = self.gameweeks()
        forward = replay_standings(group_a, group_b, [weeks[24], weeks[25], weeks[26]], [])
        reverse = replay_standings(group_a, group_b, [weeks[26], weeks[24], weeks[25]], [])
        assert forward == reverse

    def test_empty_gameweek_skipped(self):
        """Test that a gameweek with no matchups adds no matches played."""
        group_a, group_b = self.baseline()
        ranked_a, _ = replay_standings(group_a, group_b, [[], self.gameweeks()[24]], [])
        assert all(r.mp == 4 for r in ranked_a)


class TestArchivedStatus:
    """Tests for detecting finished archived payloads."""

    @pytest.mark.parametrize(
        'payload,expected',
        [
            (None, False),
            ({}, False),
            ({'gwStatus': 'finished'}, True),
            ({'gwStatus': 'live'}, False),
            ({'gwStatus': {'isFinished': True}}, True),
            ({'gwStatus': {'isFinished': False}}, False),
        ],
    )
    def test_is_archived_finished(self, payload, expected):
        """Test string and object forms of the archived status."""
        assert is_archived_finished(payload) is expected

    def test_league_points_prefers_final(self):
        """Test final league points are used when present."""
        assert matchup_league_points(result('A', 'B', 10, 20, 2, 0)) == (2, 0)
        assert matchup_league_points(result('A', 'B', 10, 20)) == (0, 2)


class FakeScorer:
    """Returns canned live payloads per gameweek."""

    def __init__(self, fetcher, payloads):
        self.fetcher = fetcher
        self.payloads = payloads
        self.scored = []

    def score_gameweek(self, gw=None, matchup_id=None):
        self.scored.append(gw)
        return self.payloads.get(gw)


class StaticFetcher:
    def __init__(self, bootstrap=None):
        self.bootstrap = bootstrap

    def get_bootstrap_static(self):
        return self.bootstrap


def archived(matchups, finished=True) -> dict:
    return {
        'gw': 0,
        'matchups': [m.to_dict() for m in matchups],
        'gwStatus': {'isFinished': finished},
    }


class TestStandingsCalculator:
    """Tests for source selection and the standings payload."""

    def test_load_baseline(self, baseline_dir):
        """Test that baseline files load into standing rows."""
        rows = load_baseline_standings(baseline_dir / 'standings_group_a.json')
        assert [r.team_name for r in rows] == ['Alpha', 'Bravo']
        assert rows[0].points == 32

    def test_malformed_baseline_raises(self, tmp_path):
        """Test that a non-list baseline file fails loudly."""
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'team_name': 'Alpha'}))
        with pytest.raises(ValueError):
            load_baseline_standings(path)

    def test_at_baseline_returns_snapshot(self, baseline_dir):
        """Test that gw at the baseline returns rows sorted by baseline rank."""
        scorer = FakeScorer(StaticFetcher(), {})
        calculator = StandingsCalculator(scorer, None, LeagueConfig(), baseline_dir)
        payload = calculator.compute(27)
        assert [r.team_name for r in payload.group_a] == ['Alpha', 'Bravo']
        assert payload.source_summary == []
        assert scorer.scored == []

    def test_source_summary(self, baseline_dir, store):
        """Test archived finished, archived live and live sources are reported."""
        store.save_results(28, archived([result('Alpha', 'Bravo', 10, 20), result('Charlie', 'Delta', 5, 5)]))
        store.save_results(
            29,
            archived([result('Alpha', 'Bravo', 30, 20), result('Charlie', 'Delta', 9, 1)], finished=False),
        )
        live = type('Payload', (), {'matchups': [result('Bravo', 'Alpha', 11, 12)]})()
        scorer = FakeScorer(StaticFetcher(), {30: live})
        calculator = StandingsCalculator(scorer, store, LeagueConfig(), baseline_dir)

        payload = calculator.compute(31)

        summary = [s.to_dict() for s in payload.source_summary]
        assert summary == [
            {'gw': 28, 'source': 'archived', 'archivedStatus': 'finished'},
            {'gw': 29, 'source': 'archived', 'archivedStatus': 'live'},
            {'gw': 30, 'source': 'live', 'archivedStatus': None},
            {'gw': 31, 'source': 'live', 'archivedStatus': None},
        ]
        assert scorer.scored == [30, 31]
        assert 'Archived results for gw=29 were captured before the gameweek finished.' in payload.warnings
        assert 'Unable to load live payload for gw=31.' in payload.warnings

        alpha = next(r for r in payload.group_a if r.team_name == 'Alpha')
        assert alpha.mp == 27 + 3
        assert (alpha.w, alpha.l) == (15 + 2, 10 + 1)

        charlie = next(r for r in payload.group_b if r.team_name == 'Charlie')
        # gw 30 only had group A matchups but every team still played
        assert charlie.mp == 27 + 3

    def test_default_gw_from_provider(self, baseline_dir):
        """Test that the active gameweek is used when none is requested."""
        bootstrap = {'events': [{'id': 27, 'is_current': True}]}
        calculator = StandingsCalculator(
            FakeScorer(StaticFetcher(bootstrap), {}), None, LeagueConfig(), baseline_dir
        )
        assert calculator.compute().gw == 27

    def test_default_gw_without_provider(self, baseline_dir):
        """Test that the baseline gameweek is used when the provider is down."""
        calculator = StandingsCalculator(FakeScorer(StaticFetcher(None), {}), None, LeagueConfig(), baseline_dir)
        assert calculator.compute().gw == 27

    def test_payload_wire_format(self, baseline_dir):
        """Test the ranked row keys in the serialized payload."""
        calculator = StandingsCalculator(FakeScorer(StaticFetcher(), {}), None, LeagueConfig(), baseline_dir)
        data = calculator.compute(20).to_dict()
        assert set(data) == {'gw', 'baselineGw', 'groupA', 'groupB', 'warnings', 'sourceSummary'}
        assert set(data['groupA'][0]) == {
            'rank', 'team_name', 'mp', 'w', 'd', 'l', 'cp_bp', 'points', 'overall_scores', 'qualifying_for',
        }
