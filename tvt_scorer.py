#!/usr/bin/env python3
"""
TVT League Scorer CLI

Scores team-vs-team fantasy Premier League gameweeks from live FPL data,
prints season standings and archives finished gameweeks.

Usage:
    python tvt_scorer.py score --gw 28
    python tvt_scorer.py score --gw 28 --matchup m1 --json
    python tvt_scorer.py standings --gw 30
    python tvt_scorer.py archive --gw 28
    python tvt_scorer.py validate
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from tvt import (
    LiveScorer,
    StandingsCalculator,
    get_fetcher,
    get_store,
    setup_logging,
)
from tvt.errors import StorageError
from tvt.league import LeagueData
from tvt.models import LiveScorePayload
from tvt.validators import validate_bracket, validate_matchup_result, validate_teams


def print_payload(payload) -> None:
    print(f'Gameweek {payload.gw} (active: {payload.active_gw})')
    print('=' * 60)
    for matchup in payload.matchups:
        home, away = matchup.home, matchup.away
        print(
            f'  [{matchup.id}] {home.name} {home.total_points} - {away.total_points} {away.name}'
            f'  (league pts {matchup.home_final_league_points}-{matchup.away_final_league_points})'
        )
        for side in (home, away):
            captain = side.captain_entry_id if side.captain_entry_id else '-'
            print(
                f'      {side.name}: base {side.base_points} + captain {side.captain_bonus} '
                f'(captain {captain}, {side.captain_status.value}), '
                f'{side.players_left_to_play} left to play'
            )
    for fixture in payload.challenge_fixtures:
        print(
            f'  [challenge] {fixture.challenger_team_name} {fixture.challenger_tvt_points} - '
            f'{fixture.opponent_tvt_points} {fixture.opponent_team_name}'
        )
    if payload.warnings:
        print('\nWarnings:')
        for warning in payload.warnings:
            print(f'  - {warning}')


def print_standings(payload) -> None:
    for label, rows in (('Group A', payload.group_a), ('Group B', payload.group_b)):
        print(f'\n{label} (gw {payload.gw}, baseline gw {payload.baseline_gw})')
        print('=' * 60)
        for row in rows:
            print(
                f'  {row.rank:>2}. {row.team_name:<32} {row.points:>3} pts  '
                f'{row.w}-{row.d}-{row.l}  {row.overall_scores:>5}  {row.qualifying_for}'
            )
    if payload.warnings:
        print('\nWarnings:')
        for warning in payload.warnings:
            print(f'  - {warning}')


def cmd_score(args) -> int:
    scorer = LiveScorer(get_fetcher(), get_store())
    payload = scorer.score_gameweek(args.gw, args.matchup)
    if args.json:
        print(json.dumps(payload.to_dict(), indent=2))
    else:
        print_payload(payload)
    return 0


def cmd_standings(args) -> int:
    store = get_store()
    calculator = StandingsCalculator(LiveScorer(get_fetcher(), store), store)
    payload = calculator.compute(args.gw)
    if args.json:
        print(json.dumps(payload.to_dict(), indent=2))
    else:
        print_standings(payload)
    return 0


def cmd_archive(args) -> int:
    store = get_store()
    scorer = LiveScorer(get_fetcher(), store)
    payload = scorer.compute_for_archive(args.gw)
    if payload is None:
        print(f'Gameweek {args.gw} has not finished; nothing archived.')
        return 1
    warnings: list[str] = []
    try:
        store.save_results(payload.gw, payload.to_dict(), warnings)
    except StorageError as e:
        print(f'Failed to archive gameweek {args.gw}: {e}')
        return 1
    print(f'Archived gameweek {payload.gw} ({len(payload.matchups)} matchups)')
    for warning in warnings:
        print(f'  - {warning}')
    return 0


def cmd_validate(args) -> int:
    league = LeagueData.from_config()
    problems = validate_teams(league.teams) + validate_bracket(league.matchups, league.teams)

    last_gw = args.gw or league.max_matchups_gw()
    if last_gw:
        store = get_store()
        warnings: list[str] = []
        archived = store.load_results_many(range(1, last_gw + 1), warnings)
        problems.extend(warnings)
        for gw in sorted(archived):
            payload = LiveScorePayload.from_dict(archived[gw])
            for matchup in payload.matchups:
                problems.extend(f'gw={gw}: {m}' for m in validate_matchup_result(matchup))

    if not problems:
        print('League configuration and archived results look consistent.')
        return 0
    print(f'Found {len(problems)} problem(s):')
    for problem in problems:
        print(f'  - {problem}')
    return 1


def main():
    parser = argparse.ArgumentParser(description='TVT fantasy Premier League scorer')
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging',
    )
    parser.add_argument(
        '--log-dir',
        default=None,
        help='Write log files to this directory (default: no log file)',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    score = subparsers.add_parser('score', help='Score a gameweek')
    score.add_argument('--gw', '-g', type=int, default=None, help='Gameweek (default: active)')
    score.add_argument('--matchup', '-m', default=None, help='Only this matchup id')
    score.add_argument('--json', action='store_true', help='Print the JSON payload')
    score.set_defaults(func=cmd_score)

    standings = subparsers.add_parser('standings', help='Print season standings')
    standings.add_argument('--gw', '-g', type=int, default=None, help='Gameweek (default: active)')
    standings.add_argument('--json', action='store_true', help='Print the JSON payload')
    standings.set_defaults(func=cmd_standings)

    archive = subparsers.add_parser('archive', help='Score a finished gameweek and store it')
    archive.add_argument('--gw', '-g', type=int, required=True, help='Gameweek to archive')
    archive.set_defaults(func=cmd_archive)

    validate = subparsers.add_parser(
        'validate', help='Check the league configuration and archived results'
    )
    validate.add_argument(
        '--gw', '-g', type=int, default=None, help='Last gameweek to check (default: last configured)'
    )
    validate.set_defaults(func=cmd_validate)

    args = parser.parse_args()

    setup_logging(
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=logging.DEBUG if args.verbose else None,
        log_to_file=bool(args.log_dir),
    )

    sys.exit(args.func(args))


if __name__ == '__main__':
    main()
