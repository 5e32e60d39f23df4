"""Validation functions for league configuration and scored results.

Every check returns a list of human-readable messages; callers append them
to the payload's warnings instead of failing the request.
"""

from collections import Counter

from .models import Matchup
from .schemas import MatchupConfig, MatchupsFile, TeamsFile

MANAGERS_PER_SIDE = 2


def validate_matchup_managers(matchup: MatchupConfig) -> list[str]:
    """
    Check that both sides of a matchup have exactly two managers.

    Args:
        matchup: Matchup with manager lists already resolved from the roster

    Returns:
        List of warning messages (empty if valid)
    """
    warnings = []
    for label, side in (('home', matchup.home), ('away', matchup.away)):
        if len(side.managers) != MANAGERS_PER_SIDE:
            warnings.append(
                f'Expected {MANAGERS_PER_SIDE} managers for {label} team={side.name} '
                f'(matchup={matchup.id}).'
            )
    return warnings


def validate_teams(teams: TeamsFile) -> list[str]:
    """
    Check the team roster.

    Checks:
    - Team names are unique
    - No entry id belongs to more than one team
    """
    warnings = []

    name_counts = Counter(team.team_name for team in teams.teams)
    duplicates = sorted(name for name, count in name_counts.items() if count > 1)
    if duplicates:
        warnings.append(f'Duplicate team names in roster: {", ".join(duplicates)}')

    owners: dict[int, str] = {}
    for team in teams.teams:
        for member in team.members:
            if member.entry_id is None:
                continue
            previous = owners.get(member.entry_id)
            if previous is not None and previous != team.team_name:
                warnings.append(
                    f'entryId={member.entry_id} belongs to both {previous} and {team.team_name}'
                )
            owners[member.entry_id] = team.team_name

    return warnings


def validate_bracket(matchups: MatchupsFile, teams: TeamsFile) -> list[str]:
    """
    Check every configured gameweek bracket.

    Checks:
    - Matchup ids are unique within a gameweek
    - No team appears twice in the same gameweek
    - Every bracket team exists in the roster (when a roster is configured)
    """
    warnings = []
    roster = {team.team_name for team in teams.teams}

    brackets: dict[str, list[MatchupConfig]] = dict(matchups.matchups_by_gameweek or {})
    if matchups.matchups:
        brackets['default'] = matchups.matchups

    for gw_key, bracket in brackets.items():
        id_counts = Counter(m.id for m in bracket)
        for matchup_id, count in id_counts.items():
            if count > 1:
                warnings.append(f'Duplicate matchup id={matchup_id} in gw={gw_key}')

        team_counts = Counter(name for m in bracket for name in (m.home.name, m.away.name))
        for name, count in team_counts.items():
            if count > 1:
                warnings.append(f'Team {name} plays {count} matchups in gw={gw_key}')
            if roster and name not in roster:
                warnings.append(f'Team {name} in gw={gw_key} bracket is not in the roster')

    return warnings


def validate_matchup_result(matchup: Matchup) -> list[str]:
    """
    Sanity-check a scored matchup.

    Checks:
    - Side totals equal base points plus captain bonus
    - Base league points form a 2/0 or 1/1 pair
    """
    warnings = []

    for side in (matchup.home, matchup.away):
        if side.total_points != side.base_points + side.captain_bonus:
            warnings.append(
                f'{side.name} total ({side.total_points}) != base ({side.base_points}) '
                f'+ captain bonus ({side.captain_bonus}) in matchup={matchup.id}'
            )

    pair = (matchup.home_base_league_points, matchup.away_base_league_points)
    if None not in pair and tuple(sorted(pair)) not in ((0, 2), (1, 1)):
        warnings.append(f'Invalid base league points {pair} in matchup={matchup.id}')

    return warnings
