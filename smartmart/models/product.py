# smartmart/models/product.py
import uuid
from datetime import date, datetime, timezone

from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Inventory item held by the store.

    Stock states are derived, not stored:
      - out of stock  : quantity == 0
      - low stock     : 0 < quantity <= LOW_STOCK_THRESHOLD
      - expiring soon : expiry_date within the look-ahead window
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=255,
        index=True,
        description="Display name of the product",
    )

    # Expected to be unique per catalog but not enforced
    sku: str = Field(
        max_length=100,
        index=True,
        description="Stock-keeping identifier",
    )

    category: str = Field(
        max_length=100,
        index=True,
        description="Free-text category label",
    )

    price: float = Field(
        ge=0,
        description="Unit price",
    )

    quantity: int = Field(
        default=0,
        ge=0,
        index=True,
        description="Units currently on hand",
    )

    reorder_level: int = Field(
        default=5,
        ge=0,
        description="Per-product reorder hint shown on the dashboard",
    )

    expiry_date: date | None = Field(
        default=None,
        index=True,
        description="Expiry date; NULL means the product does not expire",
    )

    supplier: str | None = Field(default=None, max_length=255)
    barcode: str | None = Field(default=None, max_length=100)
    image_url: str | None = Field(default=None)
    description: str | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
