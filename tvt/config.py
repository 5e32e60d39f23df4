"""League configuration management."""

import os
from functools import lru_cache
from pathlib import Path

from .constants import TEAM_NAME_ALIASES
from .schemas import CaptainsFile, ChipsFile, LeagueConfig, MatchupsFile, TeamsFile
from .utils import load_json


def get_data_dir() -> Path:
    """Data directory, overridable with the TVT_DATA_DIR environment variable."""
    override = os.environ.get('TVT_DATA_DIR')
    if override:
        return Path(override)
    return Path(__file__).parent.parent / 'data'


@lru_cache(maxsize=1)
def get_config() -> LeagueConfig:
    """
    Load league configuration from data/league_config.json.

    Configuration is cached after first load. A missing file yields the
    defaults (baseline gameweek 27, standard baseline file names).

    Raises:
        ValueError: If the config file has invalid structure
    """
    config_path = get_data_dir() / 'league_config.json'
    if not config_path.exists():
        return LeagueConfig()
    return load_json(config_path, schema=LeagueConfig)


def get_team_name_aliases() -> dict[str, str]:
    """Built-in historical spellings merged with any configured ones."""
    return {**TEAM_NAME_ALIASES, **get_config().team_name_aliases}


def _load_optional(file_name: str, schema):
    """Load a data file if present; a missing file yields an empty schema instance."""
    path = get_data_dir() / file_name
    if not path.exists():
        return schema()
    return load_json(path, schema=schema)


@lru_cache(maxsize=1)
def get_matchups_file() -> MatchupsFile:
    """Load data/matchups.json (empty bracket if absent)."""
    return _load_optional('matchups.json', MatchupsFile)


@lru_cache(maxsize=1)
def get_captains_file() -> CaptainsFile:
    """Load data/captains.json (no scheduled captains if absent)."""
    return _load_optional('captains.json', CaptainsFile)


@lru_cache(maxsize=1)
def get_teams_file() -> TeamsFile:
    """Load data/teams.json (empty roster if absent)."""
    return _load_optional('teams.json', TeamsFile)


@lru_cache(maxsize=1)
def get_chips_file() -> ChipsFile:
    """Load data/chips.json (no chips if absent)."""
    return _load_optional('chips.json', ChipsFile)


def clear_config_cache() -> None:
    """
    Clear all cached configuration.

    Use this if data files are modified during runtime and need reloading.

    Example:
        from tvt.config import clear_config_cache, get_config
        clear_config_cache()
        config = get_config()  # Reloads from file
    """
    get_config.cache_clear()
    get_matchups_file.cache_clear()
    get_captains_file.cache_clear()
    get_teams_file.cache_clear()
    get_chips_file.cache_clear()
