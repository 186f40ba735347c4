#!/usr/bin/env python3
"""
Data command endpoints for managing stored articles and schema.
"""

import logging
from argparse import Namespace
from pathlib import Path

from .base import BaseCommand

logger = logging.getLogger(__name__)

# Shipped inside the package so installed copies can migrate too
MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


class DataCommand(BaseCommand):
    """Handle data management operations."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute data subcommand."""
        try:
            if subcommand == "cleanup":
                return self.cleanup(args)
            elif subcommand == "migrate":
                return self.migrate(args)
            else:
                return self.unknown_subcommand(subcommand)

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"data {subcommand}")

    def cleanup(self, args: Namespace) -> int:
        """Delete articles past the retention window; their enrichment rows cascade."""
        days = args.days if getattr(args, 'days', None) is not None else self.config.app.retention_days
        if days < 1:
            raise ValueError("--days must be at least 1")

        print(f"🧹 Removing articles older than {days} days...")
        deleted = self.store.cleanup_old_articles(days)

        if deleted > 0:
            print(f"✅ Cleanup completed: {deleted} articles removed (enrichment results cascade-deleted)")
        else:
            print("✅ No old articles found to clean up")
        return 0

    def migrate(self, args: Namespace) -> int:
        """Apply the SQL migrations to the configured database."""
        if self.config.database.is_memory:
            raise ValueError("DATABASE_URL is not set; nothing to migrate")

        migrations_dir = Path(getattr(args, 'migrations_dir', None) or MIGRATIONS_DIR)
        if not migrations_dir.is_dir():
            raise FileNotFoundError(f"Migrations directory not found: {migrations_dir}")

        applied = self.store.apply_migrations(migrations_dir)
        for name in applied:
            print(f"  ✅ {name}")
        print(f"Applied {len(applied)} migrations from {migrations_dir}")
        return 0
