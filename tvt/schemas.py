"""Pydantic schemas for league data files and request bodies."""

from typing import Any, Optional

from pydantic import BaseModel, Field, StrictInt, field_validator

from .constants import DEFAULT_BASELINE_GW


class MatchupSideConfig(BaseModel):
    """One side of a configured matchup."""

    name: str = Field(..., min_length=1)
    managers: list[int] = Field(default_factory=list)

    class Config:
        extra = 'forbid'


class MatchupConfig(BaseModel):
    """A scheduled matchup between two league teams."""

    id: str = Field(..., min_length=1)
    home: MatchupSideConfig
    away: MatchupSideConfig

    class Config:
        extra = 'forbid'


class MatchupsFile(BaseModel):
    """Complete matchups.json file structure."""

    league_id: Optional[int] = Field(None, alias='leagueId')
    matchups_by_gameweek: Optional[dict[str, list[MatchupConfig]]] = Field(
        None, alias='matchupsByGameweek'
    )
    matchups: Optional[list[MatchupConfig]] = None

    @field_validator('matchups_by_gameweek')
    @classmethod
    def validate_gameweek_keys(cls, v):
        """Ensure gameweek keys are numeric."""
        if v is None:
            return v
        for key in v:
            if not key.isdigit():
                raise ValueError(f'Invalid gameweek key: {key}')
        return v

    class Config:
        extra = 'forbid'
        populate_by_name = True


class CaptainOverride(BaseModel):
    """Scheduled captains for one matchup."""

    home_captain: Optional[int] = Field(None, alias='homeCaptain')
    away_captain: Optional[int] = Field(None, alias='awayCaptain')

    class Config:
        extra = 'forbid'
        populate_by_name = True


class CaptainsFile(BaseModel):
    """Complete captains.json file structure."""

    default: dict[str, CaptainOverride] = Field(default_factory=dict)
    by_gameweek: dict[str, dict[str, CaptainOverride]] = Field(
        default_factory=dict, alias='byGameweek'
    )

    class Config:
        extra = 'forbid'
        populate_by_name = True


class TeamMember(BaseModel):
    """A manager belonging to a league team."""

    manager_key: str = Field(..., alias='managerKey')
    manager_name: str = Field(..., alias='managerName')
    entry_id: Optional[int] = Field(None, alias='entryId')
    fpl_team_name: Optional[str] = Field(None, alias='fplTeamName')

    class Config:
        extra = 'forbid'
        populate_by_name = True


class TeamConfig(BaseModel):
    team_name: str = Field(..., min_length=1, alias='teamName')
    members: list[TeamMember] = Field(default_factory=list)

    class Config:
        extra = 'forbid'
        populate_by_name = True


class TeamsFile(BaseModel):
    """Complete teams.json file structure."""

    league_id: Optional[int] = Field(None, alias='leagueId')
    teams: list[TeamConfig] = Field(default_factory=list)

    class Config:
        extra = 'forbid'
        populate_by_name = True


class ChipAssignment(BaseModel):
    """
    Chips a team plays in a gameweek.

    Chip names are kept as raw strings here; unknown names are reported
    as warnings by the chip modifier rather than rejecting the file.
    """

    chip_type: Optional[str] = Field(None, alias='chipType')
    chip_types: list[str] = Field(default_factory=list, alias='chipTypes')
    challenge_opponent_team_name: Optional[str] = Field(None, alias='challengeOpponentTeamName')

    @property
    def all_chip_types(self) -> list[str]:
        names = list(self.chip_types)
        if self.chip_type and self.chip_type not in names:
            names.insert(0, self.chip_type)
        return names

    class Config:
        extra = 'forbid'
        populate_by_name = True


class ChipsFile(BaseModel):
    """Complete chips.json file structure."""

    by_gameweek: dict[str, dict[str, ChipAssignment]] = Field(
        default_factory=dict, alias='byGameweek'
    )

    class Config:
        extra = 'forbid'
        populate_by_name = True


class BaselineStandingRow(BaseModel):
    """A row of a baseline standings snapshot."""

    team_name: str = Field(..., min_length=1)
    group: str = Field(..., pattern=r'^(A|B)$')
    rank: int = Field(..., ge=1)
    mp: int = Field(0, ge=0)
    w: int = Field(0, ge=0)
    d: int = Field(0, ge=0)
    l: int = Field(0, ge=0)  # noqa: E741
    cp_bp: int = 0
    points: int = 0
    overall_scores: int = 0
    qualifying_for: str = ''
    baseline_gw: int = DEFAULT_BASELINE_GW

    class Config:
        extra = 'ignore'


class LeagueConfig(BaseModel):
    """League configuration settings."""

    league_id: Optional[int] = None
    baseline_gw: int = Field(DEFAULT_BASELINE_GW, ge=0, le=38)
    group_a_file: str = 'standings_group_a.json'
    group_b_file: str = 'standings_group_b.json'
    started_lead_hours: float = Field(12, ge=0)
    picks_fetch_workers: int = Field(8, ge=1, le=64)
    request_timeout_seconds: float = Field(8, gt=0)
    team_name_aliases: dict[str, str] = Field(default_factory=dict)

    class Config:
        extra = 'forbid'


class CaptainSelectionRequest(BaseModel):
    """
    Body of a captain selection submission.

    Only the structural fields are validated here; status and captain id
    rules live in tvt.captains so each failure gets its own message.
    """

    gw: StrictInt
    matchup_id: str = Field(..., min_length=1, alias='matchupId')
    side: str = Field(..., pattern=r'^(home|away)$')
    captain_entry_id: Any = Field(None, alias='captainEntryId')
    status: Any = None

    class Config:
        extra = 'ignore'
        populate_by_name = True
