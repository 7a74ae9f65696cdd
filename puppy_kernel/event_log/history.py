"""
History Pager: walks a long date range in day-sized batches.

Batches abut at day boundaries, so an event can be returned twice; results
are deduplicated by id. The cancel flag is checked between batches, and a
cancelled fetch returns None instead of a partial list.

EventLog queries are synchronous and run inline on the event loop. Each
batch is one bounded range query, and the pager yields to other tasks
between batches, so a long range never holds the loop for more than one
batch at a time.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from puppy_kernel.event_log.filters import chronological, dedupe
from puppy_kernel.event_log.store import EventLog
from puppy_kernel.models.event import Event

logger = logging.getLogger(__name__)


async def fetch_history(
    log: EventLog,
    start: datetime,
    end: datetime,
    batch_days: int = 1,
    cancel_event: Optional[asyncio.Event] = None,
) -> Optional[List[Event]]:
    if batch_days < 1:
        raise ValueError("batch_days must be at least 1")

    collected: List[Event] = []
    batch_start = start
    batches = 0

    while batch_start < end:
        if cancel_event is not None and cancel_event.is_set():
            logger.debug("History fetch cancelled after %d batches", batches)
            return None

        batch_end = min(batch_start + timedelta(days=batch_days), end)
        collected.extend(log.get_events(batch_start, batch_end))
        batches += 1
        batch_start = batch_end

        # Let other tasks run (and set the cancel flag) between batches
        await asyncio.sleep(0)

    if cancel_event is not None and cancel_event.is_set():
        logger.debug("History fetch cancelled after %d batches", batches)
        return None

    logger.debug("Fetched %d events in %d batches", len(collected), batches)
    return chronological(dedupe(collected))
