"""Aggregation orchestrator: sources -> fetch -> normalize -> dedup -> persist -> log."""

import asyncio
import logging
import random
import threading
from datetime import timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional

import pendulum
from pydantic import BaseModel, Field

from ..config import AggregationSettings
from ..db.store import Store
from ..ingestion import ErrorKind, FeedFetcher, FeedNormalizer, IngestionError, SourceResult
from ..models import AggregationStatus, Article, Source
from ..models.log import CRYPTO_AGGREGATION
from .dedup import Deduplicator
from .persister import BatchPersister
from .run_logger import RunLogger, terminal_status
from .stages import PipelineStage, new_stages, stage_stats

logger = logging.getLogger(__name__)

NO_SOURCES_MESSAGE = "No crypto sources configured"
NO_ARTICLES_MESSAGE = "No articles were fetched from any source"
NO_NEW_ARTICLES_MESSAGE = "No new articles to add - all fetched articles already exist in database"
SUCCESS_MESSAGE = "Crypto news aggregation completed successfully"


class SourceConfigError(Exception):
    """The source list could not be read; aborts the run."""


class RunOptions(BaseModel):
    """Options accepted by a trigger request."""

    force_update: bool = Field(False, alias="forceUpdate", description="Skip the store lookup")
    single_category: bool = Field(
        False, alias="singleCategory", description="Fetch a single randomly chosen source"
    )
    languages: List[str] = Field(default_factory=list, description="Requested languages")
    categories: Optional[List[str]] = Field(None, description="Keep only these categories")
    scheduled: bool = Field(False, description="Invoked by the scheduler")

    class Config:
        """Pydantic config."""

        populate_by_name = True


class RunSummary(BaseModel):
    """Response of a run, mirrored into the terminal log entry."""

    message: str = Field(..., description="Human readable outcome")
    count: int = Field(0, description="Articles inserted")
    status: str = Field("success", description="Terminal log status")
    sources: Optional[Dict[str, int]] = Field(None, description="New articles per source")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Source and batch errors")

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AggregationOrchestrator:
    """Runs one aggregation pass over every configured source."""

    def __init__(
        self,
        store: Store,
        settings: Optional[AggregationSettings] = None,
        fetcher: Optional[FeedFetcher] = None,
        normalizer: Optional[FeedNormalizer] = None,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            store: Store the run reads sources from and writes articles/logs to
            settings: Delays, retry and batch tuning
            fetcher: Feed fetcher (built from settings when omitted)
            normalizer: Feed normalizer
            rng: Random source for single-category selection
            sleep: Coroutine used for inter-source and inter-batch delays
        """
        self.store = store
        self.settings = settings or AggregationSettings()
        self.fetcher = fetcher or FeedFetcher.from_settings(self.settings, sleep=sleep)
        self.normalizer = normalizer or FeedNormalizer()
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.run_logger = RunLogger(store)
        self.deduplicator = Deduplicator(store)
        self.persister = BatchPersister(
            store,
            batch_size=self.settings.batch_size,
            batch_delay=self.settings.batch_delay,
            sleep=sleep,
        )

    def _load_sources(self) -> List[Source]:
        try:
            return self.store.get_sources()
        except Exception as e:
            raise SourceConfigError(f"Error fetching crypto sources: {e}") from e

    async def _process_source(self, source: Source) -> SourceResult:
        """Fetch and normalize one source, capturing its failure."""
        result = SourceResult(source_name=source.name, source_url=source.url, success=False)

        if not self.normalizer.supports(source):
            logger.info("%s source type not yet implemented for %s", source.type.upper(), source.name)
            result.skipped = True
            result.success = True
            return result

        try:
            body = await self.fetcher.fetch(source)
            result.articles = self.normalizer.normalize(source, body)
            result.success = True
        except IngestionError as e:
            logger.error("Error processing source %s: %s", source.name, e)
            result.error = str(e)
            result.error_kind = e.kind
        except Exception as e:
            logger.error("Error processing source %s: %s", source.name, e)
            result.error = str(e) or type(e).__name__
            result.error_kind = ErrorKind.FATAL

        return result

    async def _collect(
        self,
        sources: List[Source],
        cancel: Optional[threading.Event],
    ) -> List[SourceResult]:
        """Process sources sequentially with a pause between them."""
        results = []
        for i, source in enumerate(sources):
            if cancel is not None and cancel.is_set():
                logger.warning("Run cancelled; %d sources not fetched", len(sources) - i)
                break
            if i > 0 and self.settings.source_delay:
                await self.sleep(self.settings.source_delay)
            logger.info("Processing %s (%s)", source.name, source.type)
            results.append(await self._process_source(source))
        return results

    def _update_status(
        self,
        status: str,
        count: int = 0,
        error_message: Optional[str] = None,
        rate_limited: bool = False,
    ) -> None:
        """Record the run outcome on the settings row; failures are only logged."""
        now = pendulum.now("UTC")
        try:
            previous = self.store.get_status()
            cooldown_until = previous.cooldown_until
            if rate_limited:
                cooldown_until = now + timedelta(minutes=self.settings.cooldown_minutes)
            self.store.update_status(
                AggregationStatus(
                    last_run=now,
                    status=status,
                    articles_count=count,
                    error_message=error_message,
                    cooldown_until=cooldown_until,
                )
            )
        except Exception as e:
            logger.error("Error updating aggregation status: %s", e)

    def _finish(
        self,
        event_type: str,
        stages: List[PipelineStage],
        summary: RunSummary,
        insert_errors: Optional[List[Dict[str, Any]]] = None,
        extra: Optional[Dict[str, Any]] = None,
        rate_limited: bool = False,
    ) -> RunSummary:
        summary.status = terminal_status(insert_errors)
        details = {
            "message": summary.message,
            "count": summary.count,
            "sources": summary.sources,
            "errors": summary.errors,
            "stages": stage_stats(stages),
            "timestamp": pendulum.now("UTC").isoformat(),
        }
        if extra:
            details.update(extra)
        self.run_logger.finish(event_type, details, insert_errors=insert_errors)
        self._update_status(
            summary.status,
            count=summary.count,
            error_message=(
                "; ".join(f"batch {e['batch']}: {e['error']}" for e in insert_errors)
                if insert_errors
                else None
            ),
            rate_limited=rate_limited,
        )
        return summary

    async def run(
        self,
        options: Optional[RunOptions] = None,
        event_type: str = CRYPTO_AGGREGATION,
        cancel: Optional[threading.Event] = None,
    ) -> RunSummary:
        """
        Run the aggregation pipeline once.

        Per-source and per-batch failures are reported in the summary. Only a
        failure to read the source list (or another unexpected error) is
        logged as ``error`` and re-raised.
        """
        options = options or RunOptions()
        stages = new_stages()
        options_dump = options.model_dump(by_alias=True)

        self.run_logger.running(
            event_type,
            {
                "started_at": pendulum.now("UTC").isoformat(),
                "message": "Starting crypto news aggregation process",
                "options": options_dump,
            },
        )

        try:
            return await self._run(options, event_type, stages, cancel)
        except Exception as e:
            logger.error("Error in %s: %s", event_type, e)
            for stage in stages:
                if stage.running:
                    stage.fail(str(e))
            self.run_logger.finish(
                event_type,
                {
                    "error": str(e) or "An unknown error occurred",
                    "stages": stage_stats(stages),
                    "timestamp": pendulum.now("UTC").isoformat(),
                },
                failed=True,
            )
            self._update_status("error", error_message=str(e))
            raise

    async def _run(
        self,
        options: RunOptions,
        event_type: str,
        stages: List[PipelineStage],
        cancel: Optional[threading.Event],
    ) -> RunSummary:
        sources_stage, fetch_stage, dedup_stage, persist_stage = stages

        # Stage 1: sources
        sources_stage.start()
        sources = self._load_sources()
        if not sources:
            sources_stage.complete({"total_sources": 0})
            logger.info(NO_SOURCES_MESSAGE)
            return self._finish(event_type, stages, RunSummary(message=NO_SOURCES_MESSAGE, count=0))

        if options.single_category:
            sources = [self.rng.choice(sources)]
            logger.info("Single category mode: using %s", sources[0].name)
        sources_stage.complete({"total_sources": len(sources)})

        # Stage 2: fetch + normalize
        fetch_stage.start()
        results = await self._collect(sources, cancel)
        all_articles: List[Article] = []
        errors: List[Dict[str, Any]] = []
        for result in results:
            all_articles.extend(result.articles)
            if not result.success:
                errors.append(
                    {
                        "source": result.source_name,
                        "error": result.error or "Unknown error",
                        "kind": result.error_kind.value if result.error_kind else None,
                    }
                )
        rate_limited = any(r.error_kind == ErrorKind.RATE_LIMITED for r in results)
        cancelled = cancel is not None and cancel.is_set()

        if options.categories:
            wanted = {c.lower() for c in options.categories}
            all_articles = [a for a in all_articles if a.category.lower() in wanted]

        fetch_stage.complete(
            {
                "sources_processed": len(results),
                "failed_sources": len(errors),
                "skipped_sources": sum(1 for r in results if r.skipped),
                "total_articles": len(all_articles),
            }
        )
        logger.info("Total articles fetched from all sources: %d", len(all_articles))

        extra = {"cancelled": True} if cancelled else None

        if not all_articles:
            logger.info(NO_ARTICLES_MESSAGE)
            summary = RunSummary(message=NO_ARTICLES_MESSAGE, count=0, errors=errors or None)
            return self._finish(event_type, stages, summary, extra=extra, rate_limited=rate_limited)

        # Stage 3: dedup
        dedup_stage.start()
        dedup = self.deduplicator.deduplicate(all_articles, force_update=options.force_update)
        dedup_stage.complete(
            {
                "unique": len(dedup.unique),
                "duplicates": dedup.duplicates,
                "existing": dedup.existing,
                "new": len(dedup.new),
            }
        )

        if not dedup.new:
            logger.info(NO_NEW_ARTICLES_MESSAGE)
            summary = RunSummary(message=NO_NEW_ARTICLES_MESSAGE, count=0, errors=errors or None)
            return self._finish(event_type, stages, summary, extra=extra, rate_limited=rate_limited)

        # Stage 4: persist
        persist_stage.start()
        persisted = await self.persister.persist(
            dedup.new, overwrite=options.force_update, cancel=cancel
        )
        persist_stage.complete(
            {
                "batches": persisted.batches,
                "inserted": persisted.inserted_count,
                "failed_batches": len(persisted.insert_errors),
            }
        )
        if persisted.cancelled:
            extra = {"cancelled": True}

        source_stats: Dict[str, int] = {}
        for article in dedup.new:
            source_stats[article.source] = source_stats.get(article.source, 0) + 1

        if persisted.insert_errors:
            message = (
                "Crypto news aggregation completed with some errors: "
                f"{persisted.inserted_count} articles inserted, "
                f"{len(persisted.insert_errors)} errors"
            )
        else:
            message = SUCCESS_MESSAGE

        all_errors = errors + persisted.insert_errors
        summary = RunSummary(
            message=message,
            count=persisted.inserted_count,
            sources=source_stats,
            errors=all_errors or None,
        )
        extra = dict(extra or {})
        extra["insert_errors"] = persisted.insert_errors or None
        return self._finish(
            event_type,
            stages,
            summary,
            insert_errors=persisted.insert_errors,
            extra=extra,
            rate_limited=rate_limited,
        )

    def run_sync(
        self,
        options: Optional[RunOptions] = None,
        event_type: str = CRYPTO_AGGREGATION,
        cancel: Optional[threading.Event] = None,
    ) -> RunSummary:
        """Synchronous wrapper for run."""
        return asyncio.run(self.run(options, event_type=event_type, cancel=cancel))
