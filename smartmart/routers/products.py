# smartmart/routers/products.py
import uuid
from collections.abc import Callable
from typing import Literal

from fastapi import (
    APIRouter,
    Depends,
    File,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from sqlmodel import Session

from smartmart.core.auth import require_admin, require_auth
from smartmart.core.config import get_settings
from smartmart.database import get_session, get_session_factory
from smartmart.models.product import Product
from smartmart.repositories.product_repo import ProductRepository
from smartmart.schemas.product import (
    BulkUploadResult,
    InventorySummary,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from smartmart.services.inventory_service import InventoryService
from smartmart.services.product_filter import filter_products
from smartmart.services.product_service import ProductService
from smartmart.services.summary_service import SummaryService

router = APIRouter(prefix="/products", tags=["Products"])

settings = get_settings()

repo = ProductRepository()
inventory = InventoryService(repo)
summary_service = SummaryService(inventory)
service = ProductService(repo)

StatusFilter = Literal["", "in", "out"]
ExpiryFilter = Literal["", "expiring-soon"]


def _select_products(
    session: Session,
    stock: int | None,
    search: str,
    status_filter: str,
    expiry: str,
    category: str,
    include_expired: bool,
) -> list[Product]:
    products = (
        inventory.list_all(session)
        if stock is None
        else inventory.list_with_quantity(session, stock)
    )
    return filter_products(
        products,
        search=search,
        status_filter=status_filter,
        expiry_filter=expiry,
        category_filter=category,
        window_days=inventory.expiry_window_days,
        include_expired=include_expired,
    )


# -------- Listing & queries (public) --------


@router.get("", response_model=list[ProductRead])
def list_products(
    session: Session = Depends(get_session),
    stock: int | None = Query(default=None, ge=0),
    search: str = "",
    status_filter: StatusFilter = Query(default="", alias="status"),
    expiry: ExpiryFilter = "",
    category: str = "",
    include_expired: bool = Query(default=False, alias="includeExpired"),
):
    """
    List products.

    - `stock=N` keeps products with exactly N units (`stock=0` = out of stock).
    - `search`, `status` (in|out), `expiry` (expiring-soon) and `category`
      apply the dashboard filters; all are ANDed.
    """
    return _select_products(
        session, stock, search, status_filter, expiry, category, include_expired
    )


@router.get("/low-stock", response_model=list[ProductRead])
def list_low_stock(session: Session = Depends(get_session)):
    """Products with 0 < quantity <= LOW_STOCK_THRESHOLD."""
    return inventory.list_low_stock(session)


@router.get("/expiring-soon", response_model=list[ProductRead])
def list_expiring_soon(
    session: Session = Depends(get_session),
    window_days: int | None = Query(default=None, ge=0, alias="windowDays"),
):
    """Products expiring between today and today + window (default 7 days)."""
    return inventory.list_expiring_soon(session, window_days=window_days)


@router.get("/categories", response_model=list[str])
def list_categories(session: Session = Depends(get_session)):
    """Distinct product categories."""
    return inventory.list_categories(session)


@router.get("/search", response_model=list[ProductRead])
def search_products(
    q: str = "",
    category: str | None = None,
    session: Session = Depends(get_session),
):
    """
    Case-insensitive substring search on name or category,
    optionally restricted to one category.
    """
    return inventory.search(session, q, category)


@router.get("/summary", response_model=InventorySummary)
async def get_summary(
    session_factory: Callable[[], Session] = Depends(get_session_factory),
):
    """
    Dashboard counters: total, lowStock, outOfStock, expiringSoon.

    Counts fall back to 0 with `degraded=true` if the store is unavailable.
    """
    return await summary_service.summarize(session_factory)


@router.get(
    "/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
def export_products(
    session: Session = Depends(get_session),
    search: str = "",
    status_filter: StatusFilter = Query(default="", alias="status"),
    expiry: ExpiryFilter = "",
    category: str = "",
    include_expired: bool = Query(default=False, alias="includeExpired"),
):
    """
    Download the (optionally filtered) product list as `inventory_export.csv`.
    """
    products = _select_products(
        session, None, search, status_filter, expiry, category, include_expired
    )
    return Response(
        content=service.export_csv(products),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="inventory_export.csv"'},
    )


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Get a single product by id."""
    return service.get_product(session, product_id)


# -------- Mutations (authenticated) --------


@router.post(
    "",
    response_model=ProductRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_auth)],
)
def create_product(
    payload: ProductCreate,
    session: Session = Depends(get_session),
):
    """Create a new product."""
    return service.create_product(session, payload)


@router.post(
    "/bulk-upload",
    response_model=BulkUploadResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_auth)],
    summary="Create products from an uploaded CSV file",
)
def bulk_upload(
    file: UploadFile = File(...),
    session: Session = Depends(get_session),
):
    """
    Import products from a CSV file (multipart field `file`).

    - The whole file is rejected if any row is invalid.
    - Response message reads "<n> products".
    """
    raw = file.file.read(settings.MAX_CSV_BYTES + 1)
    if len(raw) > settings.MAX_CSV_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"CSV too large (max {settings.MAX_CSV_BYTES} bytes).",
        )
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="CSV must be UTF-8 encoded",
        )
    return service.import_csv(session, text)


@router.patch(
    "/{product_id}",
    response_model=ProductRead,
    dependencies=[Depends(require_auth)],
)
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    session: Session = Depends(get_session),
):
    """Partially update a product."""
    return service.update_product(session, product_id, payload)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_product(
    product_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Delete a product (admin only)."""
    service.delete_product(session, product_id)
    return None
