#!/usr/bin/env python3
"""
Create the licensing schema: clients, products, discounts, contracts,
payments, and the partial unique index on active contracts.

Settings come from licensing_config (LICENSING_CONFIG / DATABASE_URL);
--db-url and --config override them.

Usage:
  python3 scripts/init_db.py
  python3 scripts/init_db.py --db-url sqlite:///licensing.db
  python3 scripts/init_db.py --drop     # drop every table first
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Create the licensing database schema")
    p.add_argument(
        "--config",
        default=None,
        help="Settings YAML (default: LICENSING_CONFIG or the bundled defaults)",
    )
    p.add_argument(
        "--db-url",
        default=None,
        help="Database URL (overrides settings and DATABASE_URL)",
    )
    p.add_argument(
        "--drop",
        action="store_true",
        help="Drop all tables before creating them",
    )
    return p.parse_args()


def main() -> int:
    args = _parse_args()

    from licensing_config import get_settings
    from licensing_kernel.db.engine import create_tables, drop_tables, init_engine_from_url
    from licensing_kernel.logging_config import configure_logging

    try:
        settings = get_settings(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"  ERROR: invalid settings: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level)
    db_url = args.db_url or settings.database_url

    print()
    print("  [1/2] Connecting...")
    try:
        engine = init_engine_from_url(
            db_url,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout,
            pool_recycle=settings.pool_recycle,
        )
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/2] Creating schema...")
    try:
        if args.drop:
            drop_tables(engine)
        create_tables(engine)
    except Exception as exc:
        print(f"  ERROR: could not create schema: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()

    print("  Done.")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
