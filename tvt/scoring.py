"""Side and matchup scoring.

TVT scoring rules:
- A side's base points are the sum of its managers' gameweek points
- The captain's points count twice (captain bonus = captain's points)
- With no usable captain, the lowest scorer on the side is captained
  (first in list order on ties)
- Matchup league points: win = 2, draw = 1, loss = 0
"""

import logging
from typing import Mapping, Optional

from .constants import DRAW_POINTS, LOSS_POINTS, WIN_POINTS
from .models import (
    CaptainStatus,
    ManagerEntry,
    ManagerMeta,
    ManagerStats,
    Matchup,
    ResolvedCaptain,
    Side,
    SideLabel,
)
from .schemas import MatchupConfig

logger = logging.getLogger('tvt.scoring')


def pick_fallback_captain(managers: list[ManagerEntry]) -> Optional[ManagerEntry]:
    """Lowest gw_points manager; the earliest one wins ties."""
    if not managers:
        return None
    lowest = managers[0]
    for manager in managers[1:]:
        if manager.gw_points < lowest.gw_points:
            lowest = manager
    return lowest


def compute_side_totals(
    name: str,
    managers: list[int],
    captain: ResolvedCaptain,
    manager_stats: Mapping[int, ManagerStats],
    manager_meta: Mapping[int, ManagerMeta],
    warnings: list[str],
    matchup_id: str,
    side_label: str,
) -> Side:
    """
    Aggregate one side of a matchup.

    Args:
        name: League team name
        managers: Entry ids on the side, in configured order
        captain: Resolved captain and its provenance
        manager_stats: Per-manager points and players left, keyed by entry id
        manager_meta: Display names keyed by entry id
        warnings: Collector for non-fatal anomalies
        matchup_id: Used in warning messages
        side_label: 'home' or 'away', used in warning messages

    Returns:
        Side with totals, the effective captain and per-manager entries
    """
    entries = []
    for entry_id in managers:
        stats = manager_stats.get(entry_id)
        meta = manager_meta.get(entry_id) or ManagerMeta()
        entries.append(
            ManagerEntry(
                entry_id=entry_id,
                gw_points=stats.gw_points if stats else 0,
                players_left_to_play=stats.players_left_to_play if stats else 0,
                manager_name=meta.manager_name,
                fpl_team_name=meta.fpl_team_name,
            )
        )

    base_points = sum(e.gw_points for e in entries)
    players_left_to_play = sum(e.players_left_to_play for e in entries)

    captain_id = captain.captain_entry_id
    if captain_id and captain_id not in managers:
        message = (
            f'Captain entryId={captain_id} not in managers for matchup={matchup_id} '
            f'({side_label}), bonus set to 0.'
        )
        warnings.append(message)
        logger.warning(message)
        captain_id = None

    if not captain_id:
        fallback = pick_fallback_captain(entries)
        captain_id = fallback.entry_id if fallback else None

    captain_bonus = 0
    for entry in entries:
        entry.is_captain = captain_id is not None and entry.entry_id == captain_id
        if entry.is_captain and captain_bonus == 0:
            captain_bonus = entry.gw_points

    return Side(
        name=name,
        captain_entry_id=captain_id,
        captain_status=captain.status,
        base_points=base_points,
        captain_bonus=captain_bonus,
        total_points=base_points + captain_bonus,
        players_left_to_play=players_left_to_play,
        managers=entries,
    )


def base_league_points(home_total: int, away_total: int) -> tuple[int, int]:
    """Win/draw/loss league points for (home, away)."""
    if home_total > away_total:
        return WIN_POINTS, LOSS_POINTS
    if home_total < away_total:
        return LOSS_POINTS, WIN_POINTS
    return DRAW_POINTS, DRAW_POINTS


def score_sides(matchup_id: str, home: Side, away: Side) -> Matchup:
    """Combine two aggregated sides into a matchup with base league points."""
    home_points, away_points = base_league_points(home.total_points, away.total_points)
    return Matchup(
        id=matchup_id,
        home=home,
        away=away,
        home_base_league_points=home_points,
        away_base_league_points=away_points,
        home_final_league_points=home_points,
        away_final_league_points=away_points,
    )


def score_matchup(
    matchup: MatchupConfig,
    captains: Mapping[SideLabel, ResolvedCaptain],
    manager_stats: Mapping[int, ManagerStats],
    manager_meta: Mapping[int, ManagerMeta],
    warnings: list[str],
) -> Matchup:
    """
    Score a configured matchup.

    Args:
        matchup: Matchup with resolved manager lists
        captains: SideLabel -> ResolvedCaptain for both sides
        manager_stats: Per-manager stats keyed by entry id
        manager_meta: Display metadata keyed by entry id
        warnings: Collector for non-fatal anomalies

    Returns:
        Matchup with totals, base league points and final = base
    """
    sides = {}
    for label, side_config in ((SideLabel.HOME, matchup.home), (SideLabel.AWAY, matchup.away)):
        sides[label] = compute_side_totals(
            side_config.name,
            side_config.managers,
            captains[label],
            manager_stats,
            manager_meta,
            warnings,
            matchup.id,
            label.value,
        )
    return score_sides(matchup.id, sides[SideLabel.HOME], sides[SideLabel.AWAY])


def _normalize_archived_side(side: Side) -> Side:
    """Apply the fallback captain to an archived side captured before one was set."""
    if side.captain_entry_id or side.captain_status is not CaptainStatus.PENDING:
        return side
    fallback = pick_fallback_captain(side.managers)
    if fallback is None:
        return side
    for manager in side.managers:
        manager.is_captain = manager.entry_id == fallback.entry_id
    side.captain_entry_id = fallback.entry_id
    side.captain_bonus = fallback.gw_points
    side.total_points = side.base_points + fallback.gw_points
    return side


def normalize_archived_matchup(matchup: Matchup) -> Matchup:
    """
    Bring an archived matchup up to the current payload shape.

    Fills in a fallback captain for sides still pending, and derives
    base/final league points when the record predates them.
    """
    matchup.home = _normalize_archived_side(matchup.home)
    matchup.away = _normalize_archived_side(matchup.away)
    if matchup.home_base_league_points is None or matchup.away_base_league_points is None:
        home_points, away_points = base_league_points(
            matchup.home.total_points, matchup.away.total_points
        )
        matchup.home_base_league_points = home_points
        matchup.away_base_league_points = away_points
        matchup.home_final_league_points = home_points
        matchup.away_final_league_points = away_points
    return matchup
