#!/usr/bin/env python3
"""
News command endpoints: search, headlines and article comparison.
"""

import asyncio
import logging
from argparse import Namespace
from typing import Dict, List

from .base import BaseCommand
from ..core.analysis.dispatch import policy_from_config
from ..core.analysis.pipeline import run_sync
from ..core.analysis.scoring import Sentiment, classify, dominant_emotion, label, loaded_language_high
from ..core.models.enrichment import ArticleWithStatus, EnrichmentStatus, EnrichmentUpdate

logger = logging.getLogger(__name__)


class NewsCommand(BaseCommand):
    """Fetch news, enrich it with sentiment and compare articles."""

    def execute(self, subcommand: str, args: Namespace) -> int:
        """Execute news subcommand."""
        try:
            if subcommand == "search":
                return self.search(args)
            elif subcommand == "headlines":
                return self.headlines(args)
            elif subcommand == "compare":
                return self.compare(args)
            else:
                return self.unknown_subcommand(subcommand)

        except (Exception, KeyboardInterrupt) as e:
            return self.handle_error(e, f"news {subcommand}")

    def search(self, args: Namespace) -> int:
        """Search NewsAPI and enrich the results."""
        print(f"🔍 Searching for '{args.query}' (max {args.max})...")
        return self._fetch_and_show(args.query, args)

    def headlines(self, args: Namespace) -> int:
        """Fetch top headlines and enrich them."""
        print(f"📰 Fetching top {args.max} headlines...")
        return self._fetch_and_show(None, args)

    def compare(self, args: Namespace) -> int:
        """Run rhetoric on two stored articles and compare them."""
        primary = self.store.get_article(args.primary_id)
        reference = self.store.get_article(args.reference_id)
        if primary is None or reference is None:
            missing = args.primary_id if primary is None else args.reference_id
            raise ValueError(f"Article {missing} not found")

        pipeline = self.create_pipeline()
        print(f"⚖️  Comparing #{primary.id} '{primary.title}' with #{reference.id} '{reference.title}'...")

        async def _run():
            return await asyncio.gather(
                pipeline.run_rhetoric(primary),
                pipeline.run_rhetoric(reference),
                pipeline.run_comparison(primary, reference)
            )

        primary_rhetoric, reference_rhetoric, comparison = run_sync(_run())

        for name, article, row in (("Primary", primary, primary_rhetoric), ("Reference", reference, reference_rhetoric)):
            print(f"\n=== {name}: {article.title} ===")
            if row.status is not EnrichmentStatus.COMPLETE:
                print(f"  ❌ Rhetoric failed: {row.error_message}")
                continue
            result = row.computed_result
            print(f"  Tone: {result['overall_tone']} ({result['sentiment_label']})")
            for device in result.get('rhetorical_devices', []):
                print(f"  • {device['device']}: \"{device['example']}\"")
            if result.get('bias_indicators'):
                print(f"  Bias indicators: {', '.join(result['bias_indicators'])}")

        print("\n=== Comparison ===")
        if comparison.status is not EnrichmentStatus.COMPLETE:
            print(f"  ❌ Comparison failed: {comparison.error_message}")
            return 1
        for key, value in comparison.computed_result.items():
            print(f"  {key.replace('_', ' ').title()}: {value}")

        return 0

    def _fetch_and_show(self, query, args: Namespace) -> int:
        pipeline = self.create_pipeline()
        policy = policy_from_config(self.config, args.policy) if args.policy else None

        async def _run():
            batch = await pipeline.fetch_and_enrich(query=query, max_results=args.max, policy=policy)
            titles = {a.id: a.article.title for a in batch.articles}

            cached = len(batch.articles) - len(batch.pending_ids)
            print(f"📋 {len(batch.articles)} articles ({cached} cached, {len(batch.pending_ids)} scoring)")

            async for update in batch.updates():
                self._print_update(update, titles)
            return batch.merged()

        results = run_sync(_run())
        self._print_columns(results)
        return 0

    @staticmethod
    def _print_update(update: EnrichmentUpdate, titles: Dict[int, str]) -> None:
        title = titles.get(update.article_id, f"#{update.article_id}")[:70]
        if update.status is EnrichmentStatus.COMPLETE:
            print(f"  ✅ {label(update.computed_score):8} {update.computed_score:+.4f}  {title} ({update.latency_ms}ms)")
        else:
            print(f"  ❌ {'Error':8}          {title}: {update.error_message}")

    @staticmethod
    def _print_columns(results: List[ArticleWithStatus]) -> None:
        columns: Dict[Sentiment, List[ArticleWithStatus]] = {s: [] for s in Sentiment}
        unscored = []
        for item in results:
            if item.status is EnrichmentStatus.COMPLETE and item.computed_score is not None:
                columns[classify(item.computed_score)].append(item)
            else:
                unscored.append(item)

        for sentiment in (Sentiment.POSITIVE, Sentiment.NEUTRAL, Sentiment.NEGATIVE):
            items = sorted(columns[sentiment], key=lambda a: a.computed_score, reverse=True)
            print(f"\n=== {sentiment.label} ({len(items)}) ===")
            for item in items:
                extras = []
                emotion = dominant_emotion(item.computed_result)
                if emotion:
                    extras.append(f"{emotion[0]} {emotion[1]:.2f}")
                if loaded_language_high(item.computed_result):
                    extras.append("loaded language")
                suffix = f" [{', '.join(extras)}]" if extras else ""
                print(f"  {item.computed_score:+.4f}  #{item.id} {item.article.title[:70]}{suffix}")

        if unscored:
            print(f"\n=== Unscored ({len(unscored)}) ===")
            for item in unscored:
                print(f"  #{item.id} {item.article.title[:70]}: {item.error_message or item.status.value}")
