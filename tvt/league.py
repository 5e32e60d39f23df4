"""League structure: the per-gameweek matchup bracket and team roster.

Matchups come from data/matchups.json, either keyed by gameweek
(``matchupsByGameweek``) or as a single flat ``matchups`` list reused every
gameweek. A side with an empty ``managers`` list is filled from the team's
members in data/teams.json.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import get_captains_file, get_chips_file, get_matchups_file, get_teams_file
from .models import ManagerMeta, SideLabel
from .schemas import (
    CaptainsFile,
    ChipAssignment,
    ChipsFile,
    MatchupConfig,
    MatchupsFile,
    TeamsFile,
)
from .validators import validate_matchup_managers

logger = logging.getLogger('tvt.league')


@dataclass
class BracketPosition:
    """Where a team sits in a gameweek: its matchup side, or roster only."""

    managers: list[int]
    matchup_id: Optional[str] = None
    side: Optional[SideLabel] = None


class LeagueData:
    """Read-only view over the league's configuration files."""

    def __init__(
        self,
        matchups: Optional[MatchupsFile] = None,
        captains: Optional[CaptainsFile] = None,
        teams: Optional[TeamsFile] = None,
        chips: Optional[ChipsFile] = None,
    ):
        self.matchups = matchups or MatchupsFile()
        self.captains = captains or CaptainsFile()
        self.teams = teams or TeamsFile()
        self.chips = chips or ChipsFile()

    @classmethod
    def from_config(cls) -> 'LeagueData':
        """Build from the cached data files in the data directory."""
        return cls(
            matchups=get_matchups_file(),
            captains=get_captains_file(),
            teams=get_teams_file(),
            chips=get_chips_file(),
        )

    def max_matchups_gw(self) -> Optional[int]:
        """Highest gameweek with a configured bracket, used when the provider is down."""
        by_gw = self.matchups.matchups_by_gameweek
        if not by_gw:
            return None
        return max(int(key) for key in by_gw)

    def team_managers(self) -> dict[str, list[int]]:
        """Map team name -> member entry ids (members without an entry id are skipped)."""
        return {
            team.team_name: [m.entry_id for m in team.members if m.entry_id is not None]
            for team in self.teams.teams
        }

    def manager_meta(self) -> dict[int, ManagerMeta]:
        meta: dict[int, ManagerMeta] = {}
        for team in self.teams.teams:
            for member in team.members:
                if member.entry_id is not None:
                    meta[member.entry_id] = ManagerMeta(
                        manager_name=member.manager_name,
                        fpl_team_name=member.fpl_team_name,
                    )
        return meta

    def raw_matchups_for_gw(self, gw: int, warnings: list[str]) -> list[MatchupConfig]:
        """Configured matchups for a gameweek, exactly as written in the file."""
        by_gw = self.matchups.matchups_by_gameweek
        if by_gw is not None:
            found = by_gw.get(str(gw))
            if found is not None:
                return found
            warnings.append(f'No matchups found for gw={gw}.')
            logger.warning(f'No matchups found for gw={gw}')
        return list(self.matchups.matchups or [])

    def matchups_for_gw(self, gw: int, warnings: list[str]) -> list[MatchupConfig]:
        """
        Matchups for a gameweek with manager lists resolved from the roster.

        Sides without exactly two managers are reported as warnings but kept.
        """
        roster = self.team_managers()
        resolved = []
        for matchup in self.raw_matchups_for_gw(gw, warnings):
            home_managers = matchup.home.managers or roster.get(matchup.home.name, [])
            away_managers = matchup.away.managers or roster.get(matchup.away.name, [])
            resolved_matchup = matchup.model_copy(
                update={
                    'home': matchup.home.model_copy(update={'managers': list(home_managers)}),
                    'away': matchup.away.model_copy(update={'managers': list(away_managers)}),
                }
            )
            warnings.extend(validate_matchup_managers(resolved_matchup))
            resolved.append(resolved_matchup)
        return resolved

    def chips_for_gw(self, gw: int) -> dict[str, ChipAssignment]:
        return self.chips.by_gameweek.get(str(gw), {})

    def find_team(self, team_name: str, matchups: list[MatchupConfig]) -> Optional[BracketPosition]:
        """
        Locate a team for a gameweek.

        Bracket membership wins; otherwise fall back to the roster's entry ids.
        Returns None if the team is in neither or has no known managers.
        """
        for matchup in matchups:
            if matchup.home.name == team_name:
                return BracketPosition(list(matchup.home.managers), matchup.id, SideLabel.HOME)
            if matchup.away.name == team_name:
                return BracketPosition(list(matchup.away.managers), matchup.id, SideLabel.AWAY)

        entry_ids = self.team_managers().get(team_name, [])
        if entry_ids:
            return BracketPosition(entry_ids)
        return None
