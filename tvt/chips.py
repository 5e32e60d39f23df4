"""Chip modifiers.

Chips are configured per gameweek and team in data/chips.json:

- win_win: the team takes 2 league points whatever the result
- double_pointer: the team's league points are doubled (draw 1 -> 2, win 2 -> 4)
- challenge: leaves the bracket matchup alone and spawns a separate
  challenge fixture against a named opponent, scored like a matchup but
  reported on its own (challengerBaseLeaguePoints)

win_win beats double_pointer when a team holds both.
"""

import logging
from typing import Mapping, Optional

from .captains import SelectionMap, resolve_matchup_captains
from .league import LeagueData
from .models import (
    CaptainStatus,
    ChallengeFixture,
    ChipType,
    ManagerMeta,
    ManagerStats,
    Matchup,
    ResolvedCaptain,
    SideLabel,
)
from .schemas import ChipAssignment, MatchupConfig
from .scoring import base_league_points, compute_side_totals

logger = logging.getLogger('tvt.chips')


def _warn(warnings: list[str], message: str) -> None:
    warnings.append(message)
    logger.warning(message)


def parse_chip_types(
    team_name: str, assignment: Optional[ChipAssignment], gw: int, warnings: list[str]
) -> set[ChipType]:
    """Known chip types for a team; unknown names are reported and dropped."""
    chips: set[ChipType] = set()
    if assignment is None:
        return chips
    for name in assignment.all_chip_types:
        try:
            chips.add(ChipType(name))
        except ValueError:
            _warn(warnings, f'Unknown chip type {name} for team={team_name} (gw={gw}); ignored.')
    return chips


def apply_chip_to_side(
    chips: set[ChipType], base_points: int, team_name: str, gw: int, warnings: list[str]
) -> tuple[Optional[ChipType], int]:
    """
    Final league points for one team given its chips.

    Returns:
        Tuple of (chip type shown on the matchup, final league points)
    """
    if ChipType.WIN_WIN in chips:
        if ChipType.DOUBLE_POINTER in chips:
            _warn(
                warnings,
                f'Team {team_name} has both win_win and double_pointer (gw={gw}); '
                'win_win applied.',
            )
        return ChipType.WIN_WIN, 2
    if ChipType.DOUBLE_POINTER in chips:
        return ChipType.DOUBLE_POINTER, base_points * 2
    if ChipType.CHALLENGE in chips:
        return ChipType.CHALLENGE, base_points
    return None, base_points


def apply_chips(
    matchups: list[Matchup],
    chips_for_gw: Mapping[str, ChipAssignment],
    gw: int,
    warnings: list[str],
    bracket_teams: Optional[set[str]] = None,
) -> list[Matchup]:
    """
    Overlay chip effects onto scored matchups in place.

    Args:
        matchups: Matchups with base league points computed
        chips_for_gw: Team name -> chip assignment for this gameweek
        gw: Gameweek number
        warnings: Collector for non-fatal anomalies
        bracket_teams: Every team in the gameweek bracket, when ``matchups``
            is only part of it

    Returns:
        The same matchups, with final league points and chip types set
    """
    parsed = {
        team: parse_chip_types(team, assignment, gw, warnings)
        for team, assignment in chips_for_gw.items()
    }

    for matchup in matchups:
        home_chips = parsed.get(matchup.home.name, set())
        away_chips = parsed.get(matchup.away.name, set())

        matchup.home_chip_type, matchup.home_final_league_points = apply_chip_to_side(
            home_chips, matchup.home_base_league_points, matchup.home.name, gw, warnings
        )
        matchup.away_chip_type, matchup.away_final_league_points = apply_chip_to_side(
            away_chips, matchup.away_base_league_points, matchup.away.name, gw, warnings
        )

    if bracket_teams is None:
        bracket_teams = {name for m in matchups for name in (m.home.name, m.away.name)}
    for team_name, chips in parsed.items():
        for chip in sorted(chips - {ChipType.CHALLENGE}, key=lambda c: c.value):
            if team_name not in bracket_teams:
                _warn(warnings, f'Chip team not found: {team_name} (gw={gw}, chip={chip.value}).')

    return matchups


UNRESOLVED_CAPTAIN = ResolvedCaptain(None, CaptainStatus.PENDING)


def _challenge_captain(
    league: LeagueData,
    gw: int,
    matchup_id: Optional[str],
    side: Optional[SideLabel],
    selections: SelectionMap,
) -> ResolvedCaptain:
    if matchup_id is None or side is None:
        return UNRESOLVED_CAPTAIN
    return resolve_matchup_captains(gw, matchup_id, league.captains, selections)[side]


def compute_challenge_fixtures(
    gw: int,
    matchups: list[MatchupConfig],
    league: LeagueData,
    selections: SelectionMap,
    manager_stats: Mapping[int, ManagerStats],
    manager_meta: Mapping[int, ManagerMeta],
    warnings: list[str],
) -> list[ChallengeFixture]:
    """
    Build challenge fixtures for every challenge chip played this gameweek.

    Teams are located in the gameweek bracket first, then in the roster.
    Bracket teams keep their resolved captain; roster-only teams always get
    the automatic fallback captain.

    Args:
        gw: Gameweek number
        matchups: The gameweek's bracket with resolved manager lists
        league: League configuration
        selections: Stored captain selections for the gameweek
        manager_stats: Per-manager stats keyed by entry id
        manager_meta: Display metadata keyed by entry id
        warnings: Collector for non-fatal anomalies

    Returns:
        Challenge fixtures in chips.json order
    """
    fixtures = []

    for team_name, assignment in league.chips_for_gw(gw).items():
        if ChipType.CHALLENGE.value not in assignment.all_chip_types:
            continue

        opponent_name = assignment.challenge_opponent_team_name
        if not opponent_name:
            _warn(warnings, f'Challenge chip missing opponent for team={team_name} (gw={gw}).')
            continue

        challenger = league.find_team(team_name, matchups)
        if challenger is None:
            _warn(warnings, f'Challenge chip team not found: {team_name} (gw={gw}).')
            continue
        opponent = league.find_team(opponent_name, matchups)
        if opponent is None:
            _warn(warnings, f'Challenge chip opponent not found: {opponent_name} (gw={gw}).')
            continue

        challenger_side = compute_side_totals(
            team_name,
            challenger.managers,
            _challenge_captain(league, gw, challenger.matchup_id, challenger.side, selections),
            manager_stats,
            manager_meta,
            warnings,
            f'challenge-{gw}-{team_name}',
            SideLabel.HOME.value,
        )
        opponent_side = compute_side_totals(
            opponent_name,
            opponent.managers,
            _challenge_captain(league, gw, opponent.matchup_id, opponent.side, selections),
            manager_stats,
            manager_meta,
            warnings,
            f'challenge-{gw}-{opponent_name}',
            SideLabel.AWAY.value,
        )

        challenger_points, _ = base_league_points(
            challenger_side.total_points, opponent_side.total_points
        )
        fixtures.append(
            ChallengeFixture(
                gw=gw,
                challenger_team_name=team_name,
                opponent_team_name=opponent_name,
                challenger_managers=list(challenger.managers),
                opponent_managers=list(opponent.managers),
                challenger_tvt_points=challenger_side.total_points,
                opponent_tvt_points=opponent_side.total_points,
                challenger_base_league_points=challenger_points,
            )
        )

    return fixtures
