#!/usr/bin/env python3
"""
scrape_profiles.py

Polite bulk scorer: runs the points pipeline for every enrolled participant,
one profile at a time with a delay between requests, and writes a JSON
report with each participant's points and progress.

Usage examples:
  studyjams-scrape --output reports/points.json
  studyjams-scrape --test-mode --dry-run --delay 1.5

Notes:
 - Be respectful: default delay=1.0s between requests, no concurrency.
 - Network failures are retried (--retries); private profiles and HTTP errors are not.
"""
import argparse
import dataclasses
import json
import logging
import time
from pathlib import Path

from .config import Settings, configure_logging
from .errors import NetworkError, PrivateProfile, StudyJamsError
from .pipeline import ProfileScorer

logger = logging.getLogger(__name__)


def summarize(participant, report=None, error=None, status="scored"):
    row = {
        'name': participant.display_name,
        'profileId': participant.profile_identifier,
        'profileUrl': participant.profile_url,
        'status': status,
    }
    if report is not None:
        result = report.result
        row.update({
            'userName': report.user_name,
            'totalPoints': result.total_points,
            'badgesCompleted': result.badges.count,
            'gamesCompleted': result.games.count,
            'overallPercentage': result.progress.overall.percentage,
            'completedBadges': [b.original_title for b in result.completed_badges],
            'completedGames': [g.original_title for g in result.completed_games],
            'profileCompletion': report.profile.statistics.get('completion', {}),
            'tags': list(report.profile.derived.get('tags') or ()),
        })
    if error is not None:
        row['error'] = str(error)
    return row


def score_participant(scorer, participant):
    try:
        report = scorer.calculate(participant.profile_url)
    except PrivateProfile as e:
        return summarize(participant, error=e, status='private'), False
    except NetworkError as e:
        return summarize(participant, error=e, status='error'), True
    except StudyJamsError as e:
        return summarize(participant, error=e, status='error'), False
    return summarize(participant, report=report), False


def run(scorer, participants, delay=1.0, retries=1):
    rows = []
    failed = []

    for index, participant in enumerate(participants):
        row, retryable = score_participant(scorer, participant)
        rows.append(row)
        if retryable:
            failed.append(index)
            logger.warning('Error fetching %s: %s', participant.profile_url, row.get('error'))
        elif row['status'] == 'scored':
            logger.info('%s: %s points', participant.display_name, row['totalPoints'])
        time.sleep(delay)

    for attempt in range(1, retries + 1):
        if not failed:
            break
        logger.info('Retry attempt %d for %d failed fetches...', attempt, len(failed))
        remaining = []
        for index in failed:
            row, retryable = score_participant(scorer, participants[index])
            rows[index] = row
            if retryable:
                remaining.append(index)
            time.sleep(delay)
        failed = remaining

    if failed:
        logger.warning('After %d retries, %d fetches still failed.', retries, len(failed))
    return rows


def main(argv=None):
    parser = argparse.ArgumentParser(description='Score every enrolled Cloud Skills Boost profile')
    parser.add_argument('--config-dir', type=Path, default=None)
    parser.add_argument('--output', '-o', default='points_report.json')
    parser.add_argument('--delay', '-d', type=float, default=1.0, help='Delay (s) between requests')
    parser.add_argument('--timeout', type=float, default=None)
    parser.add_argument('--retries', '-r', type=int, default=1, help='Retry attempts for network failures (default 1)')
    parser.add_argument('--test-mode', action='store_true', help='Use the test participant list')
    parser.add_argument('--dry-run', action='store_true', help='Do not write output file; just show results')
    parser.add_argument('--max', type=int, default=0, help='Maximum number of profiles to process (0 = all)')
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    overrides = {}
    if args.config_dir is not None:
        overrides['config_dir'] = args.config_dir
    if args.timeout is not None:
        overrides['timeout'] = args.timeout
    if args.test_mode:
        overrides['test_mode'] = True
    if overrides:
        settings = dataclasses.replace(settings, **overrides)

    configure_logging(settings.log_level)
    scorer = ProfileScorer.from_settings(settings)

    participants = scorer.roster.list_participants()
    logger.info('Loaded %d participants from %s', len(participants), settings.roster_path)
    if args.max > 0:
        participants = participants[:args.max]

    rows = run(scorer, participants, delay=args.delay, retries=args.retries)

    scored = sum(1 for r in rows if r['status'] == 'scored')
    private = sum(1 for r in rows if r['status'] == 'private')
    errors = sum(1 for r in rows if r['status'] == 'error')
    print(f'Done. Scored {scored} profiles, private: {private}, errors: {errors}')

    if not args.dry_run:
        with open(args.output, 'w', encoding='utf-8') as f:
            json.dump(rows, f, indent=4, ensure_ascii=False)
        print(f'Wrote report to {args.output}')
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
