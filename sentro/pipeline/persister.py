"""Batched article inserts with per-batch failure isolation."""

import asyncio
import logging
import threading
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..db.store import Store
from ..models import Article

logger = logging.getLogger(__name__)

BATCH_SIZE = 20


class PersistResult(BaseModel):
    """Outcome of persisting a run's new articles."""

    inserted_count: int = Field(0, description="Rows the store reported as written")
    insert_errors: List[Dict[str, Any]] = Field(default_factory=list, description="Failed batches")
    batches: int = Field(0, description="Batches attempted")
    cancelled: bool = Field(False, description="Stopped early by cancellation")


class BatchPersister:
    """Insert articles in fixed-size batches."""

    def __init__(
        self,
        store: Store,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.store = store
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.sleep = sleep

    async def persist(
        self,
        articles: List[Article],
        overwrite: bool = False,
        cancel: Optional[threading.Event] = None,
    ) -> PersistResult:
        """
        Insert ``articles`` batch by batch.

        A failing batch is recorded and skipped. Cancellation is checked
        between batches, so an in-flight insert always completes.
        """
        result = PersistResult()
        total_batches = (len(articles) + self.batch_size - 1) // self.batch_size

        for index, start in enumerate(range(0, len(articles), self.batch_size)):
            if cancel is not None and cancel.is_set():
                logger.warning("Cancelled before batch %d of %d", index + 1, total_batches)
                result.cancelled = True
                break

            if index > 0 and self.batch_delay:
                await self.sleep(self.batch_delay)

            batch = articles[start : start + self.batch_size]
            result.batches += 1
            logger.info("Inserting batch %d of %d", index + 1, total_batches)

            try:
                rows = self.store.insert_articles(batch, overwrite=overwrite)
            except Exception as e:
                logger.error("Error inserting batch %d: %s", index + 1, e)
                result.insert_errors.append(
                    {"batch": index + 1, "batch_index": index, "error": str(e)}
                )
                continue

            inserted = len(rows or [])
            result.inserted_count += inserted
            logger.info("Successfully inserted %d articles in this batch", inserted)

        logger.info("Completed inserting %d out of %d articles", result.inserted_count, len(articles))
        return result
