# smartmart/schemas/product.py
import uuid
from datetime import date, datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from smartmart.schemas.base import CamelModel


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("field cannot be empty")
    return v


def _blank_to_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


def _coerce_expiry(v: Any) -> Any:
    """
    Accept "", None, "YYYY-MM-DD" or a full ISO timestamp
    ("2025-01-31T00:00:00.000Z" as sent by browsers).
    """
    if v is None:
        return None
    if isinstance(v, str):
        v = v.strip()
        if not v:
            return None
        if "T" in v:
            return v.split("T", 1)[0]
    if isinstance(v, datetime):
        return v.date()
    return v


class ProductCreate(CamelModel):
    """
    Payload for creating a product (JSON body or one CSV row).

    - `price`, `quantity`, `reorderLevel` are coerced to numbers.
    - `expiryDate` is coerced to a date or null.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(max_length=255)
    sku: str = Field(max_length=100)
    category: str = Field(max_length=100)
    price: float = Field(ge=0)
    quantity: int = Field(default=0, ge=0)
    reorder_level: int = Field(default=5, ge=0)
    expiry_date: date | None = None
    supplier: str | None = Field(default=None, max_length=255)
    barcode: str | None = Field(default=None, max_length=100)
    image_url: str | None = None
    description: str | None = None

    @field_validator("name", "sku", "category")
    @classmethod
    def not_empty(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("supplier", "barcode", "image_url", "description")
    @classmethod
    def optional_text(cls, v: str | None) -> str | None:
        return _blank_to_none(v)

    @field_validator("expiry_date", mode="before")
    @classmethod
    def parse_expiry(cls, v: Any) -> Any:
        return _coerce_expiry(v)


class ProductUpdate(CamelModel):
    """
    Partial update payload for products.
    All fields are optional; explicit null clears optional fields.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=255)
    sku: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=100)
    price: float | None = Field(default=None, ge=0)
    quantity: int | None = Field(default=None, ge=0)
    reorder_level: int | None = Field(default=None, ge=0)
    expiry_date: date | None = None
    supplier: str | None = Field(default=None, max_length=255)
    barcode: str | None = Field(default=None, max_length=100)
    image_url: str | None = None
    description: str | None = None

    @field_validator("name", "sku", "category")
    @classmethod
    def not_empty(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v)

    @field_validator("supplier", "barcode", "image_url", "description")
    @classmethod
    def optional_text(cls, v: str | None) -> str | None:
        return _blank_to_none(v)

    @field_validator("expiry_date", mode="before")
    @classmethod
    def parse_expiry(cls, v: Any) -> Any:
        return _coerce_expiry(v)


class ProductRead(CamelModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    name: str
    sku: str
    category: str
    price: float
    quantity: int
    reorder_level: int
    expiry_date: date | None = None
    supplier: str | None = None
    barcode: str | None = None
    image_url: str | None = None
    description: str | None = None
    created_at: datetime


class InventorySummary(CamelModel):
    """
    Dashboard counters.

    `degraded` is true when the counts could not be computed and
    were reset to 0.
    """

    total: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    expiring_soon: int = 0
    degraded: bool = False


class BulkUploadResult(CamelModel):
    """Response for a CSV bulk upload."""

    message: str
    count: int
