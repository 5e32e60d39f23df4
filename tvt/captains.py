"""Captain resolution and captain selection submissions.

A side's captain comes from the first of these that applies:

1. A stored selection for (gw, matchup, side), used verbatim.
2. A per-gameweek override in captains.json ``byGameweek``.
3. The matchup's scheduled default in captains.json ``default``.
4. Nothing: the captain is pending and the side aggregator picks a fallback.
"""

import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from .errors import (
    InvalidSelectionError,
    SelectionStorageError,
    SelectionStorageUnavailableError,
    StorageError,
    StorageUnavailableError,
)
from .models import CaptainSelection, CaptainStatus, ResolvedCaptain, SideLabel
from .schemas import CaptainOverride, CaptainSelectionRequest, CaptainsFile

logger = logging.getLogger('tvt.captains')

SelectionMap = Mapping[tuple[str, SideLabel], CaptainSelection]

SUBMITTABLE_STATUSES = (CaptainStatus.SELECTED, CaptainStatus.UNANNOUNCED)


def index_selections(selections: list[CaptainSelection]) -> dict[tuple[str, SideLabel], CaptainSelection]:
    """Key a gameweek's stored selections by (matchup_id, side)."""
    return {(s.matchup_id, s.side): s for s in selections}


def get_captain_config(
    captains: Optional[CaptainsFile], gw: int, matchup_id: str
) -> Optional[CaptainOverride]:
    """Per-gameweek override if present, else the scheduled default, else None."""
    if captains is None:
        return None
    override = captains.by_gameweek.get(str(gw), {}).get(matchup_id)
    if override is not None:
        return override
    return captains.default.get(matchup_id)


def resolve_captain(
    gw: int,
    matchup_id: str,
    side: SideLabel,
    captains: Optional[CaptainsFile],
    selections: SelectionMap,
) -> ResolvedCaptain:
    """
    Resolve the effective captain for one matchup side.

    Args:
        gw: Gameweek number
        matchup_id: Matchup key, unique within the gameweek
        side: Home or away
        captains: Captain configuration (may be None)
        selections: Stored selections for this gameweek keyed by (matchup_id, side)

    Returns:
        ResolvedCaptain with the captain id (or None) and its status
    """
    selection = selections.get((matchup_id, side))
    if selection is not None:
        return ResolvedCaptain(selection.captain_entry_id, selection.status)

    config = get_captain_config(captains, gw, matchup_id)
    if config is not None:
        captain = config.home_captain if side is SideLabel.HOME else config.away_captain
        if captain is not None:
            return ResolvedCaptain(captain, CaptainStatus.SELECTED)

    return ResolvedCaptain(None, CaptainStatus.PENDING)


def resolve_matchup_captains(
    gw: int,
    matchup_id: str,
    captains: Optional[CaptainsFile],
    selections: SelectionMap,
) -> dict[SideLabel, ResolvedCaptain]:
    """Resolve both sides of a matchup."""
    return {side: resolve_captain(gw, matchup_id, side, captains, selections) for side in SideLabel}


def parse_captain_selection(payload: Any) -> CaptainSelection:
    """
    Validate a submission body and build the selection to store.

    Raises:
        InvalidSelectionError: With a client-facing message
    """
    if not isinstance(payload, dict):
        raise InvalidSelectionError('Invalid request.')

    try:
        request = CaptainSelectionRequest.model_validate(payload)
    except ValidationError as e:
        logger.info(f'Rejected captain selection: {e.error_count()} validation error(s)')
        raise InvalidSelectionError('Invalid request.') from e

    try:
        status = CaptainStatus(request.status)
    except (TypeError, ValueError):
        status = None
    if status not in SUBMITTABLE_STATUSES:
        raise InvalidSelectionError('Invalid captain status.')

    captain_entry_id = request.captain_entry_id
    if status is CaptainStatus.SELECTED:
        if isinstance(captain_entry_id, bool) or not isinstance(captain_entry_id, int):
            raise InvalidSelectionError('Captain entryId is required.')
    else:
        captain_entry_id = None

    return CaptainSelection(
        gw=request.gw,
        matchup_id=request.matchup_id,
        side=SideLabel(request.side),
        captain_entry_id=captain_entry_id,
        status=status,
    )


def submit_captain_selection(payload: Any, store) -> CaptainSelection:
    """
    Validate and insert a captain selection.

    Selections are insert-only: a second submission for the same
    (gw, matchupId, side) raises SelectionConflictError and leaves the
    stored row untouched.

    Args:
        payload: Decoded JSON body
        store: A ResultStore, or None when storage is not configured

    Returns:
        The stored CaptainSelection

    Raises:
        CaptainSelectionError subclass carrying the HTTP status code
    """
    if store is None:
        raise SelectionStorageUnavailableError('Storage is not configured.')

    selection = parse_captain_selection(payload)

    try:
        store.insert_captain_selection(selection)
    except StorageUnavailableError as e:
        logger.error(f'Captain selection storage unavailable: {e}')
        raise SelectionStorageUnavailableError('Storage is not configured.') from e
    except StorageError as e:
        logger.error(f'Failed to save captain selection {selection.key}: {e}')
        raise SelectionStorageError('Unable to save captain selection.') from e

    logger.info(
        f'Captain selection stored: gw={selection.gw} matchup={selection.matchup_id} '
        f'side={selection.side.value} status={selection.status.value}'
    )
    return selection
