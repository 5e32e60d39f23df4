"""Data models for the TVT league scorer.

Python attributes are snake_case; ``to_dict``/``from_dict`` translate to the
camelCase payload consumed by the web front end and stored in archived
gameweek results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class CaptainStatus(str, Enum):
    """Provenance of a side's captain."""

    PENDING = 'pending'
    SELECTED = 'selected'
    UNANNOUNCED = 'unannounced'


class ChipType(str, Enum):
    """One-off chips a team can play in a gameweek."""

    DOUBLE_POINTER = 'double_pointer'
    WIN_WIN = 'win_win'
    CHALLENGE = 'challenge'


class SideLabel(str, Enum):
    HOME = 'home'
    AWAY = 'away'


class ResultSource(str, Enum):
    LIVE = 'live'
    ARCHIVED = 'archived'


def _optional_enum(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _int_or(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return int(value)
    return default


@dataclass
class ManagerStats:
    """Per-manager numbers derived from the FPL provider for one gameweek."""

    entry_id: int
    gw_points: int = 0
    players_left_to_play: int = 0


@dataclass
class ManagerMeta:
    manager_name: Optional[str] = None
    fpl_team_name: Optional[str] = None


@dataclass
class ResolvedCaptain:
    captain_entry_id: Optional[int]
    status: CaptainStatus


@dataclass
class ManagerEntry:
    """A single manager's contribution to a side."""

    entry_id: int
    gw_points: int = 0
    players_left_to_play: int = 0
    is_captain: bool = False
    manager_name: Optional[str] = None
    fpl_team_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            'entryId': self.entry_id,
            'gwPoints': self.gw_points,
            'playersLeftToPlay': self.players_left_to_play,
            'isCaptain': self.is_captain,
        }
        if self.manager_name is not None:
            data['managerName'] = self.manager_name
        if self.fpl_team_name is not None:
            data['fplTeamName'] = self.fpl_team_name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ManagerEntry':
        return cls(
            entry_id=_int_or(data.get('entryId')),
            gw_points=_int_or(data.get('gwPoints')),
            players_left_to_play=_int_or(data.get('playersLeftToPlay')),
            is_captain=bool(data.get('isCaptain', False)),
            manager_name=data.get('managerName'),
            fpl_team_name=data.get('fplTeamName'),
        )


@dataclass
class Side:
    """One of the two competing teams in a matchup."""

    name: str
    captain_entry_id: Optional[int] = None
    captain_status: CaptainStatus = CaptainStatus.PENDING
    base_points: int = 0
    captain_bonus: int = 0
    total_points: int = 0
    players_left_to_play: int = 0
    managers: list[ManagerEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            'name': self.name,
            'captainEntryId': self.captain_entry_id,
            'captainStatus': self.captain_status.value,
            'basePoints': self.base_points,
            'captainBonus': self.captain_bonus,
            'totalPoints': self.total_points,
            'playersLeftToPlay': self.players_left_to_play,
            'managers': [m.to_dict() for m in self.managers],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Side':
        captain = data.get('captainEntryId')
        return cls(
            name=data.get('name') or '',
            captain_entry_id=captain if isinstance(captain, int) and captain else None,
            captain_status=(
                _optional_enum(CaptainStatus, data.get('captainStatus')) or CaptainStatus.PENDING
            ),
            base_points=_int_or(data.get('basePoints')),
            captain_bonus=_int_or(data.get('captainBonus')),
            total_points=_int_or(data.get('totalPoints')),
            players_left_to_play=_int_or(data.get('playersLeftToPlay')),
            managers=[ManagerEntry.from_dict(m) for m in data.get('managers') or []],
        )


@dataclass
class Matchup:
    """
    A scored matchup between two sides.

    League points are None only for matchups read back from archived
    payloads that predate league-point scoring.
    """

    id: str
    home: Side
    away: Side
    home_base_league_points: Optional[int] = None
    away_base_league_points: Optional[int] = None
    home_final_league_points: Optional[int] = None
    away_final_league_points: Optional[int] = None
    home_chip_type: Optional[ChipType] = None
    away_chip_type: Optional[ChipType] = None

    def side(self, label: SideLabel) -> Side:
        return self.home if label is SideLabel.HOME else self.away

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'home': self.home.to_dict(),
            'away': self.away.to_dict(),
            'homeBaseLeaguePoints': self.home_base_league_points,
            'awayBaseLeaguePoints': self.away_base_league_points,
            'homeFinalLeaguePoints': self.home_final_league_points,
            'awayFinalLeaguePoints': self.away_final_league_points,
            'homeChipType': self.home_chip_type.value if self.home_chip_type else None,
            'awayChipType': self.away_chip_type.value if self.away_chip_type else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Matchup':
        def league_points(key: str) -> Optional[int]:
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            return int(value)

        return cls(
            id=str(data.get('id', '')),
            home=Side.from_dict(data.get('home') or {}),
            away=Side.from_dict(data.get('away') or {}),
            home_base_league_points=league_points('homeBaseLeaguePoints'),
            away_base_league_points=league_points('awayBaseLeaguePoints'),
            home_final_league_points=league_points('homeFinalLeaguePoints'),
            away_final_league_points=league_points('awayFinalLeaguePoints'),
            home_chip_type=_optional_enum(ChipType, data.get('homeChipType')),
            away_chip_type=_optional_enum(ChipType, data.get('awayChipType')),
        )


@dataclass
class ChallengeFixture:
    """A cross-group fixture spawned by a challenge chip."""

    gw: int
    challenger_team_name: str
    opponent_team_name: str
    challenger_managers: list[int] = field(default_factory=list)
    opponent_managers: list[int] = field(default_factory=list)
    challenger_tvt_points: int = 0
    opponent_tvt_points: int = 0
    challenger_base_league_points: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            'gw': self.gw,
            'challengerTeamName': self.challenger_team_name,
            'opponentTeamName': self.opponent_team_name,
            'challengerManagers': list(self.challenger_managers),
            'opponentManagers': list(self.opponent_managers),
            'challengerTvtPoints': self.challenger_tvt_points,
            'opponentTvtPoints': self.opponent_tvt_points,
            'challengerBaseLeaguePoints': self.challenger_base_league_points,
            'createdFromChip': ChipType.CHALLENGE.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'ChallengeFixture':
        return cls(
            gw=_int_or(data.get('gw')),
            challenger_team_name=data.get('challengerTeamName') or '',
            opponent_team_name=data.get('opponentTeamName') or '',
            challenger_managers=list(data.get('challengerManagers') or []),
            opponent_managers=list(data.get('opponentManagers') or []),
            challenger_tvt_points=_int_or(data.get('challengerTvtPoints')),
            opponent_tvt_points=_int_or(data.get('opponentTvtPoints')),
            challenger_base_league_points=_int_or(data.get('challengerBaseLeaguePoints')),
        )


@dataclass
class CaptainSelection:
    """A user-submitted captain choice, unique per (gw, matchup_id, side)."""

    gw: int
    matchup_id: str
    side: SideLabel
    captain_entry_id: Optional[int]
    status: CaptainStatus

    @property
    def key(self) -> tuple[int, str, SideLabel]:
        return (self.gw, self.matchup_id, self.side)

    def to_row(self) -> dict[str, Any]:
        return {
            'gw': self.gw,
            'matchup_id': self.matchup_id,
            'side': self.side.value,
            'captain_entry_id': self.captain_entry_id,
            'status': self.status.value,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Optional['CaptainSelection']:
        """Build from a stored row, or None if the row is unusable."""
        side = _optional_enum(SideLabel, row.get('side'))
        status = _optional_enum(CaptainStatus, row.get('status'))
        if not row.get('matchup_id') or side is None or status is None:
            return None
        captain = row.get('captain_entry_id')
        return cls(
            gw=_int_or(row.get('gw')),
            matchup_id=str(row['matchup_id']),
            side=side,
            captain_entry_id=captain if isinstance(captain, int) else None,
            status=status,
        )


@dataclass
class GameweekStatus:
    id: int
    name: Optional[str] = None
    is_current: bool = False
    is_next: bool = False
    is_finished: bool = False
    is_started: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'isCurrent': self.is_current,
            'isNext': self.is_next,
            'isFinished': self.is_finished,
            'isStarted': self.is_started,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'GameweekStatus':
        return cls(
            id=_int_or(data.get('id')),
            name=data.get('name'),
            is_current=bool(data.get('isCurrent')),
            is_next=bool(data.get('isNext')),
            is_finished=bool(data.get('isFinished')),
            is_started=bool(data.get('isStarted')),
        )


@dataclass
class LiveScorePayload:
    """Everything computed for one gameweek."""

    gw: int
    active_gw: Optional[int]
    generated_at: str
    matchups: list[Matchup] = field(default_factory=list)
    challenge_fixtures: list[ChallengeFixture] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    gw_status: Optional[GameweekStatus] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            'gw': self.gw,
            'activeGw': self.active_gw,
            'generatedAt': self.generated_at,
            'matchups': [m.to_dict() for m in self.matchups],
            'challengeFixtures': [c.to_dict() for c in self.challenge_fixtures],
            'warnings': list(self.warnings),
            'gwStatus': self.gw_status.to_dict() if self.gw_status else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'LiveScorePayload':
        """Read an archived payload; missing collections become empty."""
        status = data.get('gwStatus')
        active_gw = data.get('activeGw')
        return cls(
            gw=_int_or(data.get('gw')),
            active_gw=active_gw if isinstance(active_gw, int) else None,
            generated_at=data.get('generatedAt') or '',
            matchups=[
                Matchup.from_dict(m) for m in data.get('matchups') or [] if isinstance(m, dict)
            ],
            challenge_fixtures=[
                ChallengeFixture.from_dict(c)
                for c in data.get('challengeFixtures') or []
                if isinstance(c, dict)
            ],
            warnings=[w for w in data.get('warnings') or [] if isinstance(w, str)],
            gw_status=GameweekStatus.from_dict(status) if isinstance(status, dict) else None,
        )


@dataclass
class StandingRow:
    """A team's season standing within its group."""

    team_name: str
    group: str
    rank: int = 0
    mp: int = 0
    w: int = 0
    d: int = 0
    l: int = 0  # noqa: E741
    cp_bp: int = 0
    points: int = 0
    overall_scores: int = 0
    qualifying_for: str = ''
    baseline_gw: int = 0

    def to_ranked_dict(self) -> dict[str, Any]:
        return {
            'rank': self.rank,
            'team_name': self.team_name,
            'mp': self.mp,
            'w': self.w,
            'd': self.d,
            'l': self.l,
            'cp_bp': self.cp_bp,
            'points': self.points,
            'overall_scores': self.overall_scores,
            'qualifying_for': self.qualifying_for,
        }


@dataclass
class SourceSummary:
    gw: int
    source: ResultSource
    archived_status: Optional[str] = None  # 'finished' | 'live' | None

    def to_dict(self) -> dict[str, Any]:
        return {
            'gw': self.gw,
            'source': self.source.value,
            'archivedStatus': self.archived_status,
        }


@dataclass
class StandingsPayload:
    gw: int
    baseline_gw: int
    group_a: list[StandingRow] = field(default_factory=list)
    group_b: list[StandingRow] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    source_summary: list[SourceSummary] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            'gw': self.gw,
            'baselineGw': self.baseline_gw,
            'groupA': [row.to_ranked_dict() for row in self.group_a],
            'groupB': [row.to_ranked_dict() for row in self.group_b],
            'warnings': list(self.warnings),
            'sourceSummary': [s.to_dict() for s in self.source_summary],
        }
