#!/usr/bin/env python3
"""
Health check command for monitoring system status.

Checks the article store, the configuration and, on request, live
connections to the scoring service.
"""

import logging
from argparse import Namespace

from .base import BaseCommand
from ..core.analysis.pipeline import run_sync
from ..core.exceptions import ClearsightError

logger = logging.getLogger(__name__)


class HealthCommand(BaseCommand):
    """Handle system health monitoring and diagnostics."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute health subcommand."""
        try:
            if subcommand == "check":
                return self.check(args)
            elif subcommand == "integrations":
                return self.integrations(args)
            else:
                return self.unknown_subcommand(subcommand)

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"health {subcommand}")

    def check(self, args: Namespace) -> int:
        """Run store and configuration checks."""
        print("🏥 System Health Check")
        print("=" * 50)

        overall_healthy = True

        print("\n📊 Store Status:")
        try:
            health = self.store.health_check()
            if health.get('connected'):
                print(f"  ✅ Store ({health.get('backend', 'unknown')}): OK")
                print(f"  📋 articles: {health.get('articles', 0)} records")
                for status, count in sorted(health.get('enrichment_results', {}).items()):
                    print(f"  📋 enrichment results ({status}): {count}")
            else:
                print("  ❌ Store connection: FAILED")
                print(f"     Error: {health.get('error', 'Unknown error')}")
                overall_healthy = False
        except ClearsightError as e:
            print(f"  ❌ Store check failed: {e}")
            overall_healthy = False

        print("\n⚙️  Configuration:")
        config = self.config
        print(f"  ✅ Dispatch policy: {config.app.dispatch_policy} "
              f"(max {config.app.max_concurrent_analyses} concurrent, {config.app.analysis_timeout_seconds:g}s timeout)")
        for name, configured in self.config.integration_status().items():
            icon = "✅" if configured else "⚠️ "
            print(f"  {icon} {name}: {'configured' if configured else 'not configured'}")
            if name == 'groq' and not configured:
                overall_healthy = False

        print("\n" + "=" * 50)
        print("✅ System healthy" if overall_healthy else "❌ System has problems")
        return 0 if overall_healthy else 1

    def integrations(self, args: Namespace) -> int:
        """Check integration configuration, optionally testing live connections."""
        status = self.config.integration_status()
        for name, configured in status.items():
            print(f"  {'✅' if configured else '❌'} {name}")

        if not getattr(args, 'test', False):
            return 0 if status.get('groq') else 1

        client = self._container.get('scoring_client')
        ok = run_sync(client.test_connection())
        print(f"  {'✅' if ok else '❌'} scoring service connection")
        return 0 if ok else 1
