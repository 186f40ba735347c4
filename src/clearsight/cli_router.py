#!/usr/bin/env python3
"""
CLI Router for ClearSight.

Modular command architecture for news search and sentiment enrichment.
"""

import argparse
import logging
import sys
from typing import Optional, List

from .commands import get_command, COMMANDS
from .core.analysis.dispatch import FanOutPolicy, TricklePolicy
from .core.config import get_config_manager
from .core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CLIRouter:
    """
    CLI router for ClearSight commands.

    Command structure:
    - python run.py news search "climate policy" --max 10
    - python run.py news headlines --policy trickle
    - python run.py news compare 12 31
    - python run.py data cleanup --days 30
    - python run.py health
    """

    def __init__(self, container=None):
        """Initialize CLI router."""
        self.container = container
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser."""
        parser = argparse.ArgumentParser(
            description="ClearSight news sentiment enrichment",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog=self._get_examples_text()
        )

        subparsers = parser.add_subparsers(
            dest='command',
            help='Available commands',
            metavar='{command}'
        )

        self._add_news_parser(subparsers)
        self._add_data_parser(subparsers)
        self._add_health_parser(subparsers)

        return parser

    def _add_news_parser(self, subparsers):
        """Add news command parser."""
        news_parser = subparsers.add_parser(
            'news',
            help='Search news, enrich it with sentiment and compare articles'
        )

        news_subparsers = news_parser.add_subparsers(
            dest='subcommand',
            help='News operations',
            metavar='{search,headlines,compare}'
        )

        policies = [FanOutPolicy.name, TricklePolicy.name]

        search_parser = news_subparsers.add_parser('search', help='Search NewsAPI and score the results')
        search_parser.add_argument('query', help='Search query')
        search_parser.add_argument('--max', type=int, default=15, help='Maximum articles to fetch (default: 15)')
        search_parser.add_argument('--policy', choices=policies, default=None, help='Dispatch policy (default: DISPATCH_POLICY)')

        headlines_parser = news_subparsers.add_parser('headlines', help='Fetch top headlines and score them')
        headlines_parser.add_argument('--max', type=int, default=9, help='Maximum articles to fetch (default: 9)')
        headlines_parser.add_argument('--policy', choices=policies, default=None, help='Dispatch policy (default: DISPATCH_POLICY)')

        compare_parser = news_subparsers.add_parser('compare', help='Compare the rhetoric of two stored articles')
        compare_parser.add_argument('primary_id', type=int, help='Id of the primary article')
        compare_parser.add_argument('reference_id', type=int, help='Id of the reference article')

    def _add_data_parser(self, subparsers):
        """Add data command parser."""
        data_parser = subparsers.add_parser(
            'data',
            help='Data management operations'
        )

        data_subparsers = data_parser.add_subparsers(
            dest='subcommand',
            help='Data operations',
            metavar='{cleanup,migrate}'
        )

        cleanup_parser = data_subparsers.add_parser('cleanup', help='Delete articles past the retention window')
        cleanup_parser.add_argument('--days', type=int, default=None, help='Remove articles older than N days (default: RETENTION_DAYS)')

        migrate_parser = data_subparsers.add_parser('migrate', help='Apply SQL migrations to DATABASE_URL')
        migrate_parser.add_argument('--migrations-dir', default=None, help='Directory of *.sql files (default: the migrations shipped with clearsight)')

    def _add_health_parser(self, subparsers):
        """Add health command parser."""
        health_parser = subparsers.add_parser(
            'health',
            help='System health monitoring and diagnostics'
        )
        health_subparsers = health_parser.add_subparsers(
            dest='subcommand',
            help='Health operations',
            metavar='{check,integrations}'
        )
        health_parser.set_defaults(subcommand='check')

        health_subparsers.add_parser('check', help='Check store and configuration (default)')

        integrations_parser = health_subparsers.add_parser('integrations', help='Check integration configuration')
        integrations_parser.add_argument('--test', action='store_true', help='Test actual connections')

    def _get_examples_text(self) -> str:
        """Get examples text for help."""
        return """
Examples:
  python run.py news search "interest rates"
  python run.py news search "interest rates" --max 5 --policy trickle
  python run.py news headlines
  python run.py news compare 12 31

  python run.py data migrate
  python run.py data cleanup --days 30
  python run.py health
  python run.py health integrations --test
"""

    def route_command(self, args: Optional[List[str]] = None) -> int:
        """
        Route command to appropriate handler.

        Args:
            args: Command line arguments (uses sys.argv if None)

        Returns:
            Exit code
        """
        try:
            if args is None:
                args = sys.argv[1:]

            parsed_args = self.parser.parse_args(args)

            if not parsed_args.command:
                self.parser.print_help()
                return 1

            return self._handle_command(parsed_args)

        except SystemExit as e:
            # argparse calls sys.exit() on error or help
            return e.code if e.code is not None else 0

    def _handle_command(self, args: argparse.Namespace) -> int:
        """Handle command structure."""
        logger.debug(f"Handling command: {args.command}")

        if args.command not in COMMANDS:
            available = ', '.join(COMMANDS.keys())
            logger.error(f"Unknown command '{args.command}'. Available: {available}")
            return 1

        subcommand = getattr(args, 'subcommand', None)
        if not subcommand:
            logger.error(f"No subcommand specified for '{args.command}'")
            try:
                self.parser.parse_args([args.command, '--help'])
            except SystemExit:
                pass
            return 1

        command = get_command(args.command, self.container)
        return command.execute(subcommand, args)


def main(args: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        get_config_manager().update_logging()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    router = CLIRouter()
    return router.route_command(args)


if __name__ == '__main__':
    sys.exit(main())
