"""Season standings: replay finished gameweeks onto a baseline snapshot.

The baseline files (standings_group_a.json / standings_group_b.json) hold
each team's record as of the baseline gameweek. Every later gameweek up to
the requested one is folded in, in increasing order:

1. Every team's matches played goes up by one
2. Each matchup adds W/D/L (from TVT points) and league points (final
   league points, or 2/1/0 when the source predates them)
3. overall_scores accumulates TVT points

Rows are then sorted within each group by points, wins, cp_bp,
overall_scores and finally team name, ignoring case.
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from .config import get_config, get_data_dir, get_team_name_aliases
from .constants import (
    ELIMINATION_TIER,
    GROUP_A,
    GROUP_B,
    QUALIFICATION_TIERS,
    TEAM_NAME_ALIASES,
)
from .data_fetcher import get_current_gameweek
from .errors import StorageError
from .models import (
    Matchup,
    ResultSource,
    SourceSummary,
    StandingRow,
    StandingsPayload,
)
from .schemas import BaselineStandingRow, LeagueConfig
from .scoring import base_league_points, normalize_archived_matchup
from .utils import load_json

logger = logging.getLogger('tvt.standings')

Table = dict[str, StandingRow]


def normalize_team_name(name: str, aliases: Optional[Mapping[str, str]] = None) -> str:
    """Map a historical spelling to the canonical baseline team name."""
    if aliases is None:
        aliases = get_team_name_aliases()
    return aliases.get(name, name)


def load_baseline_standings(path: Path | str) -> list[StandingRow]:
    """
    Load a baseline standings file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a list of valid rows
    """
    data = load_json(path)
    if not isinstance(data, list):
        raise ValueError(f'Baseline standings must be a list: {path}')
    rows = []
    for raw in data:
        row = BaselineStandingRow.model_validate(raw)
        rows.append(StandingRow(**row.model_dump()))
    return rows


def build_group_index(group_a: list[StandingRow], group_b: list[StandingRow]) -> dict[str, str]:
    """Team name -> group letter."""
    index = {row.team_name: GROUP_A for row in group_a}
    index.update({row.team_name: GROUP_B for row in group_b})
    return index


def clone_standings(rows: list[StandingRow]) -> Table:
    return {row.team_name: replace(row) for row in rows}


def matchup_tvt_points(matchup: Matchup) -> tuple[int, int]:
    return matchup.home.total_points, matchup.away.total_points


def matchup_league_points(matchup: Matchup) -> tuple[int, int]:
    """Final league points, or 2/1/0 from TVT points when they weren't recorded."""
    home, away = matchup.home_final_league_points, matchup.away_final_league_points
    if home is not None and away is not None:
        return home, away
    return base_league_points(*matchup_tvt_points(matchup))


def is_archived_finished(payload: Optional[Mapping[str, Any]]) -> bool:
    """Whether an archived payload was captured after its gameweek finished."""
    if not payload:
        return False
    status = payload.get('gwStatus')
    if isinstance(status, str):
        return status == 'finished'
    if isinstance(status, Mapping) and isinstance(status.get('isFinished'), bool):
        return status['isFinished']
    return False


def increment_matches_played(*tables: Table) -> None:
    for table in tables:
        for row in table.values():
            row.mp += 1


def apply_matchup_delta(
    matchup: Matchup,
    tables: Mapping[str, Table],
    group_index: Mapping[str, str],
    warnings: list[str],
    aliases: Optional[Mapping[str, str]] = None,
) -> bool:
    """
    Fold one matchup into the standings tables.

    A matchup involving a team missing from the baseline is skipped whole.

    Args:
        matchup: Scored matchup
        tables: Group letter -> team name -> StandingRow
        group_index: Team name -> group letter
        warnings: Collector for non-fatal anomalies
        aliases: Historical team name spellings

    Returns:
        True if the delta was applied
    """
    raw_home, raw_away = matchup.home.name, matchup.away.name
    if not raw_home or not raw_away:
        return False

    home_name = normalize_team_name(raw_home, aliases)
    away_name = normalize_team_name(raw_away, aliases)
    home_group = group_index.get(home_name)
    away_group = group_index.get(away_name)

    missing = False
    for raw_name, group in ((raw_home, home_group), (raw_away, away_group)):
        if group is None:
            message = f'Team not found in baseline: {raw_name}'
            warnings.append(message)
            logger.warning(message)
            missing = True
    if missing:
        return False

    home_row = tables[home_group][home_name]
    away_row = tables[away_group][away_name]

    home_points, away_points = matchup_tvt_points(matchup)
    if home_points > away_points:
        home_row.w += 1
        away_row.l += 1
    elif home_points < away_points:
        home_row.l += 1
        away_row.w += 1
    else:
        home_row.d += 1
        away_row.d += 1

    home_league, away_league = matchup_league_points(matchup)
    home_row.points += home_league
    away_row.points += away_league

    home_row.overall_scores += home_points
    away_row.overall_scores += away_points
    return True


def qualification_for_rank(rank: int) -> str:
    for cutoff, tier in QUALIFICATION_TIERS:
        if rank <= cutoff:
            return tier
    return ELIMINATION_TIER


def sort_and_rank(rows: Iterable[StandingRow]) -> list[StandingRow]:
    """Order rows by the tie-break chain and assign rank and qualification tier."""
    ranked = sorted(
        rows,
        key=lambda r: (
            -r.points, -r.w, -r.cp_bp, -r.overall_scores, r.team_name.casefold(), r.team_name
        ),
    )
    for position, row in enumerate(ranked, start=1):
        row.rank = position
        row.qualifying_for = qualification_for_rank(position)
    return ranked


def replay_standings(
    group_a: list[StandingRow],
    group_b: list[StandingRow],
    gameweeks: Iterable[list[Matchup]],
    warnings: list[str],
    aliases: Optional[Mapping[str, str]] = None,
) -> tuple[list[StandingRow], list[StandingRow]]:
    """
    Fold gameweek results onto the baseline and rank both groups.

    Args:
        group_a: Baseline rows for group A (not modified)
        group_b: Baseline rows for group B (not modified)
        gameweeks: Matchups per gameweek, in increasing gameweek order.
            A gameweek with no matchups is skipped (no matches played).
        warnings: Collector for non-fatal anomalies
        aliases: Historical team name spellings

    Returns:
        Tuple of (ranked group A, ranked group B)
    """
    tables = {GROUP_A: clone_standings(group_a), GROUP_B: clone_standings(group_b)}
    group_index = build_group_index(group_a, group_b)

    for matchups in gameweeks:
        if not matchups:
            continue
        increment_matches_played(*tables.values())
        for matchup in matchups:
            apply_matchup_delta(matchup, tables, group_index, warnings, aliases)

    return sort_and_rank(tables[GROUP_A].values()), sort_and_rank(tables[GROUP_B].values())


class StandingsCalculator:
    """Resolves each gameweek's results source and builds the standings payload."""

    def __init__(
        self,
        scorer,
        store=None,
        config: Optional[LeagueConfig] = None,
        data_dir: Optional[Path] = None,
    ):
        """
        Initialize calculator.

        Args:
            scorer: LiveScorer used for gameweeks with no archived record
            store: ResultStore holding archived payloads (optional)
            config: League settings (default: data/league_config.json)
            data_dir: Directory holding the baseline files
        """
        self.scorer = scorer
        self.store = store
        self.config = config or get_config()
        self.data_dir = Path(data_dir) if data_dir else get_data_dir()

    @property
    def aliases(self) -> dict[str, str]:
        return {**TEAM_NAME_ALIASES, **self.config.team_name_aliases}

    def load_baseline(self) -> tuple[list[StandingRow], list[StandingRow]]:
        return (
            load_baseline_standings(self.data_dir / self.config.group_a_file),
            load_baseline_standings(self.data_dir / self.config.group_b_file),
        )

    def default_gw(self) -> int:
        """Provider's active gameweek, or the baseline gameweek when unknown."""
        bootstrap = self.scorer.fetcher.get_bootstrap_static()
        active = get_current_gameweek(bootstrap) if bootstrap else None
        return active or self.config.baseline_gw

    def load_archived(self, gws: list[int], warnings: list[str]) -> dict[int, dict[str, Any]]:
        if self.store is None or not gws:
            return {}
        try:
            return self.store.load_results_many(gws, warnings)
        except StorageError as e:
            logger.error(f'Failed to load archived results: {e}')
            warnings.append('Unable to load archived results from storage.')
            return {}

    def resolve_gameweek(
        self, gw: int, archived: Optional[dict[str, Any]], warnings: list[str]
    ) -> tuple[Optional[list[Matchup]], SourceSummary]:
        """
        Pick the results source for one gameweek.

        Returns:
            Tuple of (matchups or None if nothing could be loaded, source summary)
        """
        if archived is not None:
            finished = is_archived_finished(archived)
            if not finished:
                message = f'Archived results for gw={gw} were captured before the gameweek finished.'
                warnings.append(message)
                logger.warning(message)
            matchups = [
                normalize_archived_matchup(Matchup.from_dict(m))
                for m in archived.get('matchups') or []
                if isinstance(m, dict)
            ]
            summary = SourceSummary(gw, ResultSource.ARCHIVED, 'finished' if finished else 'live')
            return matchups, summary

        summary = SourceSummary(gw, ResultSource.LIVE)
        try:
            payload = self.scorer.score_gameweek(gw)
        except (StorageError, ValueError) as e:
            logger.error(f'Live scoring failed for gw={gw}: {e}')
            payload = None
        if payload is None:
            warnings.append(f'Unable to load live payload for gw={gw}.')
            return None, summary
        return payload.matchups, summary

    def compute(self, gw: Optional[int] = None) -> StandingsPayload:
        """
        Standings as of a gameweek (default: the active gameweek).

        Raises:
            FileNotFoundError: If a baseline file is missing
            ValueError: If a baseline file is malformed
        """
        warnings: list[str] = []
        baseline_gw = self.config.baseline_gw
        if gw is None:
            gw = self.default_gw()

        group_a, group_b = self.load_baseline()

        if gw <= baseline_gw:
            return StandingsPayload(
                gw=gw,
                baseline_gw=baseline_gw,
                group_a=sorted(group_a, key=lambda r: r.rank),
                group_b=sorted(group_b, key=lambda r: r.rank),
                warnings=warnings,
            )

        gws = list(range(baseline_gw + 1, gw + 1))
        archived = self.load_archived(gws, warnings)

        results = []
        summaries = []
        for current_gw in gws:
            matchups, summary = self.resolve_gameweek(current_gw, archived.get(current_gw), warnings)
            summaries.append(summary)
            results.append(matchups or [])

        ranked_a, ranked_b = replay_standings(group_a, group_b, results, warnings, self.aliases)
        logger.info(f'Standings for gw={gw}: replayed {len(gws)} gameweeks from gw={baseline_gw}')
        return StandingsPayload(
            gw=gw,
            baseline_gw=baseline_gw,
            group_a=ranked_a,
            group_b=ranked_b,
            warnings=warnings,
            source_summary=summaries,
        )
