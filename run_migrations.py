#!/usr/bin/env python
"""
Database migration helper.

Usage:
    python run_migrations.py create "migration message"  # Autogenerate a new revision
    python run_migrations.py upgrade [revision]          # Apply migrations (default: head)
    python run_migrations.py downgrade [revision]        # Roll back (default: -1)
    python run_migrations.py current                     # Show current revision
    python run_migrations.py history                     # Show revision history
    python run_migrations.py stamp [revision]            # Mark a database as migrated (default: head)
"""
import os
import sys

from alembic import command
from alembic.config import Config
from alembic.util import CommandError


alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))


def create_migration(message: str):
    command.revision(alembic_cfg, message=message, autogenerate=True)
    print(f"Migration '{message}' created")
    print("   Run 'python run_migrations.py upgrade' to apply it")


def upgrade_migrations(revision: str = "head"):
    print(f"Upgrading database to: {revision}")
    command.upgrade(alembic_cfg, revision)
    print("Database upgraded successfully")


def downgrade_migrations(revision: str = "-1"):
    print(f"Downgrading database to: {revision}")
    command.downgrade(alembic_cfg, revision)
    print("Database downgraded successfully")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    action = sys.argv[1].lower()
    arg = sys.argv[2] if len(sys.argv) > 2 else None

    try:
        if action == "create":
            if not arg:
                print("Error: Migration message required")
                sys.exit(1)
            create_migration(arg)
        elif action == "upgrade":
            upgrade_migrations(arg or "head")
        elif action == "downgrade":
            downgrade_migrations(arg or "-1")
        elif action == "current":
            command.current(alembic_cfg)
        elif action == "history":
            command.history(alembic_cfg, verbose=True)
        elif action == "stamp":
            # for databases created by AUTO_CREATE_TABLES
            command.stamp(alembic_cfg, arg or "head")
            print(f"Database stamped at: {arg or 'head'}")
        else:
            print(f"Unknown action: {action}")
            print(__doc__)
            sys.exit(1)
    except CommandError as e:
        print(f"Migration command '{action}' failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
