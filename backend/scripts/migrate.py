#!/usr/bin/env python3
"""
Apply, revert or inspect the schema migrations against DATABASE_URL (or --url).

Usage:
    python scripts/migrate.py upgrade [--revision head]
    python scripts/migrate.py downgrade [--revision base]
    python scripts/migrate.py current
    python scripts/migrate.py history
    python scripts/migrate.py sql [--revision head]
"""
import argparse
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.services.migration_service import MigrationException, MigrationService


def main(argv=None):
    parser = argparse.ArgumentParser(description="Products schema migrations.")
    parser.add_argument("--url", default=settings.DATABASE_URL, help="Database URL (defaults to DATABASE_URL)")
    sub = parser.add_subparsers(dest="mode", required=True)

    up = sub.add_parser("upgrade")
    up.add_argument("--revision", default="head")

    down = sub.add_parser("downgrade")
    down.add_argument("--revision", default="base")

    sub.add_parser("current")
    sub.add_parser("history")

    sql = sub.add_parser("sql", help="print the upgrade as a SQL script")
    sql.add_argument("--revision", default="head")

    args = parser.parse_args(argv)

    svc = MigrationService(args.url)
    try:
        if args.mode == "upgrade":
            print("Current revision:", svc.upgrade(args.revision))
        elif args.mode == "downgrade":
            print("Current revision:", svc.downgrade(args.revision))
        elif args.mode == "current":
            print("Current revision:", svc.current_revision())
            print("Head revision:", svc.head_revision())
        elif args.mode == "history":
            for rev, down_rev, doc in svc.history():
                print(f"{down_rev or '<base>'} -> {rev}: {doc}")
        elif args.mode == "sql":
            sys.stdout.write(svc.offline_sql(args.revision))
    except MigrationException as e:
        print("Migration failed:", e)
        return 1
    finally:
        svc.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
