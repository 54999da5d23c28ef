# smartmart/services/summary_service.py
import asyncio
import logging
from collections.abc import Callable
from datetime import date
from functools import partial

from fastapi import HTTPException
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from smartmart.core.config import get_settings
from smartmart.schemas.product import InventorySummary
from smartmart.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)


class SummaryService:
    """
    Aggregates the four dashboard counters.

    Each counter is the size of one InventoryService query. The queries
    run concurrently in the thread pool, each on its own session, and are
    joined under a timeout. The result is all-or-nothing: if any query
    fails or the join times out, every counter is 0 and `degraded` is set.
    """

    def __init__(self, inventory: InventoryService, timeout_seconds: float | None = None):
        self.inventory = inventory
        self.timeout_seconds = (
            get_settings().SUMMARY_TIMEOUT_SECONDS
            if timeout_seconds is None
            else timeout_seconds
        )

    async def summarize(
        self,
        session_factory: Callable[[], Session],
        today: date | None = None,
    ) -> InventorySummary:
        queries = {
            "total": self.inventory.list_all,
            "low_stock": self.inventory.list_low_stock,
            "out_of_stock": self.inventory.list_out_of_stock,
            "expiring_soon": partial(self.inventory.list_expiring_soon, today=today),
        }

        def count(query) -> int:
            with session_factory() as session:
                return len(query(session))

        try:
            counts = await asyncio.wait_for(
                asyncio.gather(*(run_in_threadpool(count, q) for q in queries.values())),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "Inventory summary timed out after %.1fs; reporting zero counts",
                self.timeout_seconds,
            )
            return InventorySummary(degraded=True)
        except (HTTPException, SQLAlchemyError) as e:
            logger.error("Inventory summary failed; reporting zero counts: %s", e)
            return InventorySummary(degraded=True)

        return InventorySummary(**dict(zip(queries, counts)))
