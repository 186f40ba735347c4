#!/usr/bin/env python3
"""
Article enrichment pipeline.

Two phases per batch:
1. Immediate: upsert the raw articles, look up cached sentiment results
   and hand back every article tagged complete or pending. No scoring call
   runs before this returns.
2. Incremental: pending articles are scored under the configured dispatch
   policy; each finished unit is published as an EnrichmentUpdate keyed by
   article id.

Concurrent batches that contain the same uncached article may both score
it. Each run writes its own enrichment row and the newest complete row
wins on the next lookup.
"""

import asyncio
import concurrent.futures
import logging
import time
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Union

from ..exceptions import AnalysisError, StorageError
from ..models.article import Article, ArticleInput
from ..models.enrichment import (
    AnalysisKind, ArticleWithStatus, EnrichmentResult, EnrichmentStatus, EnrichmentUpdate, ResultPatch
)
from .dispatch import DispatchPolicy, FanOutPolicy, WorkerPool
from .scoring import compute_score

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[EnrichmentUpdate], Any]

_DONE = object()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def run_sync(coro):
    """Run a coroutine to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    # Called from inside a running loop: use a private loop on a worker thread
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, coro).result()


class EnrichmentBatch:
    """Handle on one enrich() call: the immediate list plus the stream of updates."""

    def __init__(self, articles: List[ArticleWithStatus], on_update: Optional[UpdateCallback] = None):
        self.articles = articles
        self.on_update = on_update
        self._updates: List[EnrichmentUpdate] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    @property
    def pending_ids(self) -> List[int]:
        return [a.id for a in self.articles if a.status is EnrichmentStatus.PENDING]

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    def _start(self, coro) -> None:
        self._task = asyncio.create_task(coro)

    def _publish(self, update: EnrichmentUpdate) -> None:
        self._updates.append(update)
        self._queue.put_nowait(update)

        if self.on_update is not None:
            try:
                self.on_update(update)
            except Exception as e:
                logger.error(f"Update callback failed for article {update.article_id}: {e}")

    def _finish(self) -> None:
        self._queue.put_nowait(_DONE)

    async def updates(self) -> AsyncIterator[EnrichmentUpdate]:
        """
        Yield each update as its unit finishes, until the batch is drained.

        Completion order is not guaranteed; use article_id to match updates
        to the immediate list.
        """
        if self._task is None:
            return
        while True:
            update = await self._queue.get()
            if update is _DONE:
                self._queue.put_nowait(_DONE)
                return
            yield update

    async def wait(self) -> List[ArticleWithStatus]:
        """Wait for every dispatched unit and return the merged list."""
        if self._task is not None:
            await self._task
        return self.merged()

    def merged(self) -> List[ArticleWithStatus]:
        """The immediate list with every update received so far applied."""
        by_id: Dict[int, EnrichmentUpdate] = {u.article_id: u for u in self._updates}
        return [a.apply(by_id[a.id]) if a.id in by_id else a for a in self.articles]


class EnrichmentPipeline:
    """Cache-first sentiment enrichment plus on-demand rhetoric and comparison runs."""

    def __init__(self, store, client, policy: Optional[DispatchPolicy] = None, source=None):
        """
        Initialize enrichment pipeline.

        Args:
            store: ArticleStore or MemoryStore
            client: ScoringClient
            policy: Dispatch policy for pending units (default fan-out of 5)
            source: News source used by fetch_and_enrich
        """
        self.store = store
        self.client = client
        self.policy = policy or FanOutPolicy()
        self.source = source

    async def enrich(self,
                     raw_articles: Sequence[Union[ArticleInput, Dict[str, Any]]],
                     on_update: Optional[UpdateCallback] = None,
                     policy: Optional[DispatchPolicy] = None) -> EnrichmentBatch:
        """
        Upsert articles, serve cached scores and start scoring the rest.

        Returns as soon as the immediate list is known; scoring continues on
        the running event loop.

        Args:
            raw_articles: ArticleInput objects or normalized article maps
            on_update: Called with each EnrichmentUpdate as it lands
            policy: Override of the pipeline's dispatch policy for this batch

        Returns:
            Batch handle with the immediate list and the update stream

        Raises:
            StorageError: If the upsert or cache lookup fails
        """
        inputs = self._coerce_inputs(raw_articles)
        articles = await asyncio.to_thread(self.store.upsert, inputs)
        cached = await asyncio.to_thread(
            self.store.lookup_complete, [a.id for a in articles], AnalysisKind.SENTIMENT
        )

        immediate: List[ArticleWithStatus] = []
        pending: List[Article] = []
        for article in articles:
            hit = cached.get(article.id)
            if hit is not None:
                immediate.append(ArticleWithStatus(
                    article=article,
                    status=EnrichmentStatus.COMPLETE,
                    computed_score=hit.computed_score,
                    computed_result=hit.computed_result,
                    model_name=hit.model_name
                ))
            else:
                immediate.append(ArticleWithStatus(article=article, status=EnrichmentStatus.PENDING))
                pending.append(article)

        logger.info(f"Batch of {len(articles)} articles: {len(articles) - len(pending)} cached, {len(pending)} to score")

        batch = EnrichmentBatch(immediate, on_update)
        batch._start(self._dispatch(pending, batch, policy or self.policy))
        return batch

    def enrich_sync(self,
                    raw_articles: Sequence[Union[ArticleInput, Dict[str, Any]]],
                    on_update: Optional[UpdateCallback] = None,
                    policy: Optional[DispatchPolicy] = None) -> List[ArticleWithStatus]:
        """Run a whole batch from synchronous code and return the merged list."""
        async def _run():
            batch = await self.enrich(raw_articles, on_update=on_update, policy=policy)
            return await batch.wait()

        return run_sync(_run())

    async def fetch_and_enrich(self,
                               query: Optional[str] = None,
                               max_results: Optional[int] = None,
                               on_update: Optional[UpdateCallback] = None,
                               policy: Optional[DispatchPolicy] = None) -> EnrichmentBatch:
        """
        Fetch articles from the news source and enrich them.

        A query runs a search (default 15 results); no query fetches top
        headlines (default 9).

        Raises:
            EmptyQueryError: If the query is blank
            SourceError: If the news source fails
        """
        if self.source is None:
            raise ValueError("No news source configured for this pipeline")

        if query is None:
            raw = await asyncio.to_thread(self.source.top_headlines, max_results or 9)
        else:
            raw = await asyncio.to_thread(self.source.search, query, max_results or 15)

        return await self.enrich(raw, on_update=on_update, policy=policy)

    async def _dispatch(self, pending: List[Article], batch: EnrichmentBatch, policy: DispatchPolicy) -> None:
        try:
            await policy.dispatch(pending, lambda article, pool: self._enrich_one(article, pool, batch))
        finally:
            batch._finish()

    async def _enrich_one(self, article: Article, pool: WorkerPool, batch: EnrichmentBatch) -> None:
        """Score one article and persist the outcome. Never raises for per-article failures."""
        kind = AnalysisKind.SENTIMENT
        model_name = self.client.model_for(kind)

        try:
            row = await asyncio.to_thread(self.store.insert_pending, article.id, kind, model_name)
        except StorageError as e:
            logger.error(f"Could not record pending sentiment for article {article.id}: {e}")
            batch._publish(EnrichmentUpdate(
                article_id=article.id,
                status=EnrichmentStatus.ERROR,
                model_name=model_name,
                error_message=e.message
            ))
            return

        start = time.monotonic()
        try:
            reply = await pool.call(self.client.analyse_sentiment(article.analysis_text), kind.value)
            score = compute_score(reply.result)
            patch = ResultPatch(
                status=EnrichmentStatus.COMPLETE,
                latency_ms=_elapsed_ms(start),
                prompt_tokens=reply.prompt_tokens,
                completion_tokens=reply.completion_tokens,
                raw_response=reply.raw_response,
                computed_score=score,
                computed_result=reply.result.to_dict()
            )
        except AnalysisError as e:
            logger.warning(f"Sentiment for article {article.id} failed: {e}")
            patch = ResultPatch(
                status=EnrichmentStatus.ERROR,
                latency_ms=_elapsed_ms(start),
                error_message=e.message
            )
        except Exception as e:
            logger.error(f"Unexpected error scoring article {article.id}: {e}")
            patch = ResultPatch(
                status=EnrichmentStatus.ERROR,
                latency_ms=_elapsed_ms(start),
                error_message=f"Unexpected error: {e}"
            )

        await self._save_patch(row.id, patch)

        batch._publish(EnrichmentUpdate(
            article_id=article.id,
            status=patch.status,
            computed_score=patch.computed_score,
            computed_result=patch.computed_result,
            model_name=model_name,
            error_message=patch.error_message,
            latency_ms=patch.latency_ms
        ))

    async def _save_patch(self, result_id: int, patch: ResultPatch) -> Optional[EnrichmentResult]:
        try:
            return await asyncio.to_thread(self.store.patch_result, result_id, patch)
        except StorageError as e:
            logger.error(f"Could not persist {patch.status.value} for enrichment result {result_id}: {e}")
            return None

    async def run_rhetoric(self, article: Article) -> EnrichmentResult:
        """
        Run rhetorical analysis for one article and persist the row.

        Returns:
            The terminal enrichment row (complete or error)
        """
        return await self._run_single(
            AnalysisKind.RHETORIC,
            article,
            None,
            lambda: self.client.analyse_rhetoric(article.analysis_text)
        )

    async def run_comparison(self, primary: Article, reference: Article) -> EnrichmentResult:
        """Compare two articles; the row belongs to the primary and points at the reference."""
        return await self._run_single(
            AnalysisKind.COMPARISON,
            primary,
            reference.id,
            lambda: self.client.analyse_comparison(primary.analysis_text, reference.analysis_text)
        )

    async def _run_single(self,
                          kind: AnalysisKind,
                          article: Article,
                          reference_article_id: Optional[int],
                          call: Callable[[], Any]) -> EnrichmentResult:
        model_name = self.client.model_for(kind)
        row = await asyncio.to_thread(self.store.insert_pending, article.id, kind, model_name, reference_article_id)

        pool = WorkerPool(None, self.policy.unit_timeout)
        start = time.monotonic()
        try:
            reply = await pool.call(call(), kind.value)
            patch = ResultPatch(
                status=EnrichmentStatus.COMPLETE,
                latency_ms=_elapsed_ms(start),
                prompt_tokens=reply.prompt_tokens,
                completion_tokens=reply.completion_tokens,
                raw_response=reply.raw_response,
                computed_result=reply.result.to_dict()
            )
        except AnalysisError as e:
            logger.warning(f"{kind.value} for article {article.id} failed: {e}")
            patch = ResultPatch(
                status=EnrichmentStatus.ERROR,
                latency_ms=_elapsed_ms(start),
                error_message=e.message
            )
        except Exception as e:
            logger.error(f"Unexpected error in {kind.value} for article {article.id}: {e}")
            patch = ResultPatch(
                status=EnrichmentStatus.ERROR,
                latency_ms=_elapsed_ms(start),
                error_message=f"Unexpected error: {e}"
            )

        return await asyncio.to_thread(self.store.patch_result, row.id, patch)

    @staticmethod
    def _coerce_inputs(raw_articles: Sequence[Union[ArticleInput, Dict[str, Any]]]) -> List[ArticleInput]:
        inputs = []
        for raw in raw_articles:
            if isinstance(raw, ArticleInput):
                inputs.append(raw)
                continue
            if not isinstance(raw, dict):
                logger.warning(f"Skipping non-mapping article entry: {type(raw).__name__}")
                continue
            try:
                inputs.append(ArticleInput.from_dict(raw))
            except ValueError as e:
                logger.warning(f"Skipping invalid article: {e}")
        return inputs
