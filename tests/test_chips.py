"""Unit tests for chip effects and challenge fixtures."""

import pytest

from conftest import build_league, matchup, team
from tvt.chips import apply_chip_to_side, apply_chips, compute_challenge_fixtures, parse_chip_types
from tvt.models import ChipType, ManagerStats, Matchup, Side
from tvt.schemas import ChipAssignment


def scored(home='Home', away='Away', home_points=1, away_points=1) -> Matchup:
    return Matchup(
        id='m1',
        home=Side(home),
        away=Side(away),
        home_base_league_points=home_points,
        away_base_league_points=away_points,
        home_final_league_points=home_points,
        away_final_league_points=away_points,
    )


def chips(**assignments):
    return {name: ChipAssignment.model_validate(value) for name, value in assignments.items()}


class TestApplyChipToSide:
    """Tests for single-team chip precedence."""

    def test_win_win_forces_two(self):
        """Test that win_win yields 2 league points after a loss."""
        assert apply_chip_to_side({ChipType.WIN_WIN}, 0, 'T', 28, []) == (ChipType.WIN_WIN, 2)

    @pytest.mark.parametrize('base,expected', [(0, 0), (1, 2), (2, 4)])
    def test_double_pointer(self, base, expected):
        """Test that double_pointer doubles base league points."""
        assert apply_chip_to_side({ChipType.DOUBLE_POINTER}, base, 'T', 28, []) == (
            ChipType.DOUBLE_POINTER,
            expected,
        )

    def test_win_win_beats_double_pointer(self):
        """Test that holding both chips applies win_win with exactly one warning."""
        warnings = []
        result = apply_chip_to_side(
            {ChipType.WIN_WIN, ChipType.DOUBLE_POINTER}, 0, 'Alpha', 28, warnings
        )
        assert result == (ChipType.WIN_WIN, 2)
        assert warnings == ['Team Alpha has both win_win and double_pointer (gw=28); win_win applied.']

    def test_challenge_only_labels(self):
        """Test that a challenge chip leaves league points unchanged."""
        assert apply_chip_to_side({ChipType.CHALLENGE}, 1, 'T', 28, []) == (ChipType.CHALLENGE, 1)

    def test_no_chip(self):
        """Test that no chip leaves final equal to base."""
        assert apply_chip_to_side(set(), 2, 'T', 28, []) == (None, 2)


class TestParseChipTypes:
    """Tests for chip configuration parsing."""

    def test_unknown_chip_warns(self):
        """Test that an unknown chip name is dropped with a warning."""
        warnings = []
        assignment = ChipAssignment.model_validate({'chipTypes': ['triple_captain', 'win_win']})
        assert parse_chip_types('Alpha', assignment, 28, warnings) == {ChipType.WIN_WIN}
        assert len(warnings) == 1
        assert 'triple_captain' in warnings[0]

    def test_chip_type_and_list_combined(self):
        """Test that chipType and chipTypes are merged."""
        assignment = ChipAssignment.model_validate(
            {'chipType': 'win_win', 'chipTypes': ['double_pointer']}
        )
        assert parse_chip_types('Alpha', assignment, 28, []) == {
            ChipType.WIN_WIN,
            ChipType.DOUBLE_POINTER,
        }


class TestApplyChips:
    """Tests for overlaying chips on a gameweek's matchups."""

    def test_both_sides(self):
        """Test chips applied independently to home and away."""
        matchups = [scored(home_points=1, away_points=1)]
        apply_chips(
            matchups,
            chips(Home={'chipType': 'double_pointer'}, Away={'chipType': 'win_win'}),
            28,
            [],
        )
        result = matchups[0]
        assert (result.home_final_league_points, result.away_final_league_points) == (2, 2)
        assert result.home_chip_type is ChipType.DOUBLE_POINTER
        assert result.away_chip_type is ChipType.WIN_WIN
        assert (result.home_base_league_points, result.away_base_league_points) == (1, 1)

    def test_chip_team_not_in_bracket(self):
        """Test that a scoring chip for an absent team produces a warning."""
        warnings = []
        apply_chips([scored()], chips(Ghost={'chipType': 'win_win'}), 28, warnings)
        assert warnings == ['Chip team not found: Ghost (gw=28, chip=win_win).']

    def test_challenge_chip_for_absent_team_not_reported_here(self):
        """Test that challenge chips are left to challenge fixture building."""
        warnings = []
        apply_chips([scored()], chips(Ghost={'chipType': 'challenge'}), 28, warnings)
        assert warnings == []

    def test_bracket_teams_override(self):
        """Test that teams outside a filtered matchup list are still known."""
        warnings = []
        apply_chips(
            [scored()],
            chips(Other={'chipType': 'double_pointer'}),
            28,
            warnings,
            bracket_teams={'Home', 'Away', 'Other'},
        )
        assert warnings == []


class TestChallengeFixtures:
    """Tests for challenge fixtures spawned by the challenge chip."""

    def league(self, chip_config):
        return build_league(
            matchups_by_gw={'28': [matchup('m1', 'Alpha', 'Bravo', [1, 2], [3, 4])]},
            captains={'byGameweek': {'28': {'m1': {'homeCaptain': 1, 'awayCaptain': 4}}}},
            teams=[team('Alpha', 1, 2), team('Bravo', 3, 4), team('Echo', 5, 6)],
            chips={'28': chip_config},
        )

    def stats(self):
        points = {1: 10, 2: 6, 3: 8, 4: 3, 5: 7, 6: 2}
        return {entry_id: ManagerStats(entry_id, gw_points=p) for entry_id, p in points.items()}

    def test_bracket_team_vs_roster_team(self):
        """Test a challenge from a bracket team against a roster-only team."""
        league = self.league({'Alpha': {'chipType': 'challenge', 'challengeOpponentTeamName': 'Echo'}})
        warnings = []
        fixtures = compute_challenge_fixtures(
            28, league.matchups_for_gw(28, warnings), league, {}, self.stats(), {}, warnings
        )
        assert warnings == []
        assert len(fixtures) == 1
        fixture = fixtures[0]
        # Alpha keeps its configured captain (1): 16 + 10
        assert fixture.challenger_tvt_points == 26
        # Echo is roster-only, so the fallback captain (6) applies: 9 + 2
        assert fixture.opponent_tvt_points == 11
        assert fixture.challenger_base_league_points == 2
        assert fixture.challenger_managers == [1, 2]
        assert fixture.opponent_managers == [5, 6]
        assert fixture.to_dict()['createdFromChip'] == 'challenge'

    def test_missing_opponent(self):
        """Test that a challenge without an opponent is skipped with a warning."""
        league = self.league({'Alpha': {'chipType': 'challenge'}})
        warnings = []
        fixtures = compute_challenge_fixtures(28, [], league, {}, self.stats(), {}, warnings)
        assert fixtures == []
        assert warnings == ['Challenge chip missing opponent for team=Alpha (gw=28).']

    def test_unknown_challenger(self):
        """Test that an unknown challenging team is skipped with a warning."""
        league = self.league({'Zulu': {'chipType': 'challenge', 'challengeOpponentTeamName': 'Echo'}})
        warnings = []
        fixtures = compute_challenge_fixtures(28, [], league, {}, self.stats(), {}, warnings)
        assert fixtures == []
        assert warnings == ['Challenge chip team not found: Zulu (gw=28).']

    def test_unknown_opponent(self):
        """Test that an unknown opponent is skipped with a warning."""
        league = self.league({'Alpha': {'chipType': 'challenge', 'challengeOpponentTeamName': 'Zulu'}})
        warnings = []
        fixtures = compute_challenge_fixtures(28, [], league, {}, self.stats(), {}, warnings)
        assert fixtures == []
        assert warnings == ['Challenge chip opponent not found: Zulu (gw=28).']
