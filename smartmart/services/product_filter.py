# smartmart/services/product_filter.py
"""
In-memory product filtering used by the dashboard listing and CSV export.

Works on anything product-shaped: ORM rows, ProductRead models or plain
dicts with snake_case keys. The input list is never mutated and the
relative order of the surviving products is preserved, so applying the
same filters twice yields the same result.
"""
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any, TypeVar

T = TypeVar("T")

STATUS_FILTERS = ("", "in", "out")
EXPIRY_FILTERS = ("", "expiring-soon")

DEFAULT_WINDOW_DAYS = 7


def _get(product: Any, key: str) -> Any:
    if isinstance(product, Mapping):
        return product.get(key)
    return getattr(product, key, None)


def _as_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.split("T", 1)[0])
    raise TypeError(f"unsupported expiry value: {value!r}")


def matches_search(product: Any, search: str) -> bool:
    # Name only; the server-side search also matches category.
    if not search:
        return True
    name = _get(product, "name")
    return bool(name) and search.lower() in name.lower()


def matches_status(product: Any, status_filter: str) -> bool:
    if not status_filter:
        return True
    quantity = _get(product, "quantity") or 0
    if status_filter == "in":
        return quantity > 0
    return quantity == 0


def matches_expiry(
    product: Any,
    expiry_filter: str,
    today: date,
    window_days: int,
    include_expired: bool,
) -> bool:
    if not expiry_filter:
        return True
    expiry = _as_date(_get(product, "expiry_date"))
    if expiry is None:
        return False
    if expiry > today + timedelta(days=window_days):
        return False
    return include_expired or expiry >= today


def matches_category(product: Any, category_filter: str) -> bool:
    if not category_filter:
        return True
    category = _get(product, "category")
    return bool(category) and category.lower() == category_filter.lower()


def filter_products(
    products: Iterable[T],
    search: str = "",
    status_filter: str = "",
    expiry_filter: str = "",
    category_filter: str = "",
    today: date | None = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
    include_expired: bool = False,
) -> list[T]:
    """
    Apply the dashboard filters (all ANDed) and return the matching products.

    Args:
        search: case-insensitive substring of the product name.
        status_filter: "" (any), "in" (quantity > 0) or "out" (quantity == 0).
        expiry_filter: "" (any) or "expiring-soon" (expiry set and within
            `window_days` of `today`).
        category_filter: case-insensitive exact category.
        today: reference date, defaults to the current date.
        include_expired: also keep already-expired products for
            "expiring-soon" (the legacy dashboard behaviour).

    Raises:
        ValueError: for an unknown status or expiry filter value.
    """
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"unknown status filter: {status_filter!r}")
    if expiry_filter not in EXPIRY_FILTERS:
        raise ValueError(f"unknown expiry filter: {expiry_filter!r}")

    today = today or date.today()

    return [
        p
        for p in products
        if matches_search(p, search)
        and matches_status(p, status_filter)
        and matches_expiry(p, expiry_filter, today, window_days, include_expired)
        and matches_category(p, category_filter)
    ]
