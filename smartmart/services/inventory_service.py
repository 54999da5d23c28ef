# smartmart/services/inventory_service.py
import logging
from collections.abc import Callable
from datetime import date, timedelta
from typing import TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from smartmart.core.config import get_settings
from smartmart.models.product import Product
from smartmart.repositories.product_repo import ProductRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InventoryService:
    """
    Read-only inventory queries behind the dashboard.

    Responsibilities:
      - apply the configured low-stock threshold and expiry window
      - turn store failures into 503 responses
      - never treat an empty result as an error
    """

    def __init__(
        self,
        repo: ProductRepository,
        low_stock_threshold: int | None = None,
        expiry_window_days: int | None = None,
    ):
        settings = get_settings()
        self.repo = repo
        self.low_stock_threshold = (
            settings.LOW_STOCK_THRESHOLD
            if low_stock_threshold is None
            else low_stock_threshold
        )
        self.expiry_window_days = (
            settings.EXPIRY_WINDOW_DAYS
            if expiry_window_days is None
            else expiry_window_days
        )

    def _run(self, label: str, query: Callable[[], T]) -> T:
        try:
            return query()
        except SQLAlchemyError as e:
            logger.error("Product store query %r failed: %s", label, e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Product store unavailable",
            ) from e

    # ----- Queries -----

    def list_all(self, session: Session) -> list[Product]:
        return self._run("all", lambda: self.repo.list_all(session))

    def list_low_stock(self, session: Session) -> list[Product]:
        return self._run(
            "low-stock",
            lambda: self.repo.list_low_stock(session, self.low_stock_threshold),
        )

    def list_out_of_stock(self, session: Session) -> list[Product]:
        return self.list_with_quantity(session, 0)

    def list_with_quantity(self, session: Session, quantity: int) -> list[Product]:
        return self._run(
            f"stock={quantity}",
            lambda: self.repo.list_with_quantity(session, quantity),
        )

    def list_expiring_soon(
        self,
        session: Session,
        today: date | None = None,
        window_days: int | None = None,
    ) -> list[Product]:
        """
        Products with today <= expiry_date <= today + window_days.
        Already-expired products are not "expiring soon".
        """
        today = today or date.today()
        window = self.expiry_window_days if window_days is None else window_days
        if window < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="window_days must be >= 0",
            )
        end = today + timedelta(days=window)
        return self._run(
            "expiring-soon",
            lambda: self.repo.list_expiring_between(session, today, end),
        )

    def search(
        self,
        session: Session,
        query: str,
        category: str | None = None,
    ) -> list[Product]:
        query = (query or "").strip()
        category = (category or "").strip() or None
        return self._run(
            "search",
            lambda: self.repo.search(session, query, category),
        )

    def list_categories(self, session: Session) -> list[str]:
        return self._run(
            "categories",
            lambda: self.repo.distinct_categories(session),
        )
