"""Persistence for finished-gameweek results and captain selections.

Two backends share one interface:

- JsonFileStore: results in ``results/gw-{N}.json`` and one file per captain
  selection under ``captain_selections/gw-{N}/``. Selection files are created
  exclusively, so the filesystem enforces insert-only uniqueness.
- SupabaseStore: ``gw_results`` and ``captain_selections`` tables. The unique
  key on (gw, matchup_id, side) enforces insert-only uniqueness.

TieredStore puts Supabase in front of the file store, which mirrors how
results were archived before the database existed.
"""

import json
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from .config import get_data_dir
from .errors import SelectionConflictError, StorageError, StorageUnavailableError
from .models import CaptainSelection
from .utils import load_json, save_json

logger = logging.getLogger('tvt.storage')

RESULTS_TABLE = 'gw_results'
SELECTIONS_TABLE = 'captain_selections'
UNIQUE_VIOLATION = '23505'

PERSIST_WARNING = 'Unable to persist finished gameweek results in storage.'


class ResultStore:
    """Interface for result and selection persistence."""

    def load_results(self, gw: int, warnings: list[str]) -> Optional[dict[str, Any]]:
        """Archived payload for a gameweek, or None if there isn't one."""
        raise NotImplementedError

    def load_results_many(self, gws: Iterable[int], warnings: list[str]) -> dict[int, dict[str, Any]]:
        """Archived payloads for several gameweeks (missing ones are omitted)."""
        results = {}
        for gw in gws:
            payload = self.load_results(gw, warnings)
            if payload is not None:
                results[gw] = payload
        return results

    def save_results(
        self, gw: int, payload: dict[str, Any], warnings: Optional[list[str]] = None
    ) -> None:
        """
        Persist a gameweek payload, replacing any previous copy.

        Raises:
            StorageError: The write failed
        """
        raise NotImplementedError

    def load_captain_selections(self, gw: int, warnings: list[str]) -> list[CaptainSelection]:
        raise NotImplementedError

    def insert_captain_selection(self, selection: CaptainSelection) -> None:
        """
        Insert a selection.

        Raises:
            SelectionConflictError: A selection already exists for the key
            StorageError: The write failed
        """
        raise NotImplementedError


def _safe_key(value: str) -> str:
    return re.sub(r'[^A-Za-z0-9_.-]', '_', value)


class JsonFileStore(ResultStore):
    """File-backed store rooted at a data directory."""

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def results_path(self, gw: int) -> Path:
        return self.root / 'results' / f'gw-{gw}.json'

    def selections_dir(self, gw: int) -> Path:
        return self.root / 'captain_selections' / f'gw-{gw}'

    def selection_path(self, selection: CaptainSelection) -> Path:
        name = f'{_safe_key(selection.matchup_id)}--{selection.side.value}.json'
        return self.selections_dir(selection.gw) / name

    def load_results(self, gw: int, warnings: list[str]) -> Optional[dict[str, Any]]:
        path = self.results_path(gw)
        if not path.exists():
            return None
        try:
            data = load_json(path)
        except (OSError, ValueError) as e:
            logger.error(f'Unreadable archived results for gw={gw}: {e}')
            warnings.append(f'Unable to read archived results file for gw={gw}.')
            return None
        return data if isinstance(data, dict) else None

    def save_results(
        self, gw: int, payload: dict[str, Any], warnings: Optional[list[str]] = None
    ) -> None:
        try:
            save_json(self.results_path(gw), payload)
        except (OSError, TypeError) as e:
            raise StorageError(f'Failed to write results for gw={gw}: {e}') from e

    def load_captain_selections(self, gw: int, warnings: list[str]) -> list[CaptainSelection]:
        directory = self.selections_dir(gw)
        if not directory.exists():
            return []
        selections = []
        for path in sorted(directory.glob('*.json')):
            try:
                row = load_json(path)
            except (OSError, ValueError) as e:
                logger.error(f'Unreadable captain selection {path}: {e}')
                warnings.append('Unable to load captain selections from storage.')
                continue
            selection = CaptainSelection.from_row(row) if isinstance(row, dict) else None
            if selection is not None:
                selections.append(selection)
        return selections

    def insert_captain_selection(self, selection: CaptainSelection) -> None:
        path = self.selection_path(selection)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # 'x' fails if the file exists, which is the uniqueness check
            with open(path, 'x', encoding='utf-8') as f:
                json.dump(selection.to_row(), f, indent=2)
        except FileExistsError as e:
            raise SelectionConflictError('Captain already selected.') from e
        except OSError as e:
            raise StorageError(f'Failed to write captain selection: {e}') from e


class SupabaseStore(ResultStore):
    """Supabase (Postgres) backed store."""

    def __init__(self, client):
        self.client = client

    @classmethod
    def from_env(cls) -> 'SupabaseStore':
        """
        Create a client from SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY.

        Raises:
            StorageUnavailableError: If credentials are missing
        """
        url = os.environ.get('SUPABASE_URL')
        key = os.environ.get('SUPABASE_SERVICE_ROLE_KEY')
        if not url or not key:
            raise StorageUnavailableError('SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set')

        from supabase import create_client

        return cls(create_client(url, key))

    def load_results(self, gw: int, warnings: list[str]) -> Optional[dict[str, Any]]:
        return self.load_results_many([gw], warnings).get(gw)

    def load_results_many(self, gws: Iterable[int], warnings: list[str]) -> dict[int, dict[str, Any]]:
        gws = list(gws)
        if not gws:
            return {}
        try:
            response = (
                self.client.table(RESULTS_TABLE).select('gw,payload').in_('gw', gws).execute()
            )
        except Exception as e:
            logger.error(f'Failed to load {RESULTS_TABLE}: {e}')
            raise StorageError(f'Unable to load {RESULTS_TABLE}: {e}') from e
        results = {}
        for row in response.data or []:
            if isinstance(row.get('gw'), int) and isinstance(row.get('payload'), dict):
                results[row['gw']] = row['payload']
        return results

    def save_results(
        self, gw: int, payload: dict[str, Any], warnings: Optional[list[str]] = None
    ) -> None:
        try:
            self.client.table(RESULTS_TABLE).upsert(
                {
                    'gw': gw,
                    'payload': payload,
                    'updated_at': datetime.now(timezone.utc).isoformat(),
                }
            ).execute()
        except Exception as e:
            raise StorageError(f'Failed to upsert {RESULTS_TABLE} gw={gw}: {e}') from e

    def load_captain_selections(self, gw: int, warnings: list[str]) -> list[CaptainSelection]:
        try:
            response = (
                self.client.table(SELECTIONS_TABLE)
                .select('gw,matchup_id,side,captain_entry_id,status')
                .eq('gw', gw)
                .execute()
            )
        except Exception as e:
            logger.error(f'Failed to load {SELECTIONS_TABLE}: {e}')
            raise StorageError(f'Unable to load {SELECTIONS_TABLE}: {e}') from e
        selections = []
        for row in response.data or []:
            selection = CaptainSelection.from_row(row)
            if selection is not None:
                selections.append(selection)
        return selections

    def insert_captain_selection(self, selection: CaptainSelection) -> None:
        try:
            self.client.table(SELECTIONS_TABLE).insert(selection.to_row()).execute()
        except Exception as e:
            if getattr(e, 'code', None) == UNIQUE_VIOLATION:
                raise SelectionConflictError('Captain already selected.') from e
            raise StorageError(f'Failed to insert captain selection: {e}') from e


class TieredStore(ResultStore):
    """Primary store with a file-store fallback for results."""

    def __init__(self, primary: ResultStore, fallback: ResultStore):
        self.primary = primary
        self.fallback = fallback

    def load_results(self, gw: int, warnings: list[str]) -> Optional[dict[str, Any]]:
        return self.load_results_many([gw], warnings).get(gw)

    def load_results_many(self, gws: Iterable[int], warnings: list[str]) -> dict[int, dict[str, Any]]:
        gws = list(gws)
        results: dict[int, dict[str, Any]] = {}
        try:
            results.update(self.primary.load_results_many(gws, warnings))
        except StorageError:
            warnings.append('Unable to load archived results from storage.')
        missing = [gw for gw in gws if gw not in results]
        if missing:
            results.update(self.fallback.load_results_many(missing, warnings))
        return results

    def save_results(
        self, gw: int, payload: dict[str, Any], warnings: Optional[list[str]] = None
    ) -> None:
        """Write to the primary; on failure record a warning and write to the fallback."""
        try:
            self.primary.save_results(gw, payload, warnings)
            return
        except StorageError as e:
            logger.warning(f'Primary store rejected results for gw={gw}, using fallback: {e}')

        if warnings is not None:
            warnings.append(PERSIST_WARNING)
        # the fallback copy carries the warning too
        if isinstance(payload.get('warnings'), list):
            payload = {**payload, 'warnings': [*payload['warnings'], PERSIST_WARNING]}
        self.fallback.save_results(gw, payload, warnings)

    def load_captain_selections(self, gw: int, warnings: list[str]) -> list[CaptainSelection]:
        try:
            return self.primary.load_captain_selections(gw, warnings)
        except StorageError:
            warnings.append('Unable to load captain selections from storage.')
            return []

    def insert_captain_selection(self, selection: CaptainSelection) -> None:
        self.primary.insert_captain_selection(selection)


def get_store(data_dir: Optional[Path] = None) -> ResultStore:
    """
    Build the configured store.

    Supabase is used when its credentials are present (with the file store
    as fallback); otherwise the file store under the data directory.
    Setting TVT_STORAGE=supabase makes missing credentials an error.

    Raises:
        StorageUnavailableError: If Supabase is required but not configured
    """
    file_store = JsonFileStore(data_dir or get_data_dir())
    wants_supabase = os.environ.get('TVT_STORAGE', '').lower() == 'supabase'
    has_credentials = bool(
        os.environ.get('SUPABASE_URL') and os.environ.get('SUPABASE_SERVICE_ROLE_KEY')
    )
    if wants_supabase or has_credentials:
        return TieredStore(SupabaseStore.from_env(), file_store)
    return file_store
