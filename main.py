import argparse
import logging
import sys

from catchbadges.database.db_manager import DBManager
from catchbadges.jobs.check_user_badges import (
    CheckUserBadgesJob,
    build_manager,
    resync_all_users,
)
from catchbadges.utils.env import load_env
from catchbadges.utils.logs import setup_logging


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Award and revoke fishing badges')
    sub = parser.add_subparsers(dest='command', required=True)

    sync = sub.add_parser('sync', help='Sync badges for one user')
    sync.add_argument('--user', type=int, required=True)

    sub.add_parser('sync-all', help='Re-sync badges for every user')

    progress = sub.add_parser('progress', help='Show badge progress for one user')
    progress.add_argument('--user', type=int, required=True)
    return parser


def main(argv=None) -> int:
    args = _parser().parse_args(argv)
    load_env()
    setup_logging(logging.INFO)
    DBManager.init_pool()
    try:
        manager = build_manager()
        if args.command == 'sync':
            result = CheckUserBadgesJob(args.user, manager).handle()
            print(
                f'user {args.user}: earned {[b.slug for b in result.earned]} '
                f'revoked {[b.slug for b in result.revoked]}'
            )
        elif args.command == 'sync-all':
            summary = resync_all_users(manager)
            print(
                f'{summary.users} users, {summary.earned} earned, '
                f'{summary.revoked} revoked, failed: {summary.failed}'
            )
            return 1 if summary.failed else 0
        else:
            for item in manager.progress_all(args.user):
                mark = 'x' if item.earned else ' '
                print(
                    f'[{mark}] {item.badge.slug}: {item.current}/{item.required} '
                    f'({item.percentage}%)'
                )
    finally:
        DBManager.close_pool()
    return 0


if __name__ == '__main__':
    sys.exit(main())
