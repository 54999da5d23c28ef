# smartmart/schemas/invoice.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from smartmart.schemas.base import CamelModel


class InvoiceLineCreate(CamelModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class InvoiceCreate(CamelModel):
    """
    Payload for `POST /invoices/generate`.

    Backend derives:
      - issued_by from token
      - unit prices from current product prices
      - subtotal / tax / total
    """

    model_config = ConfigDict(extra="forbid")

    customer_name: str | None = Field(default=None, max_length=255)
    note: str | None = None
    items: list[InvoiceLineCreate] = Field(min_length=1)

    @field_validator("customer_name", "note")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class InvoiceItemRead(CamelModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    quantity: int
    unit_price: float
    line_total: float


class InvoiceRead(CamelModel):
    """
    Invoice with its line items.
    """

    id: uuid.UUID
    invoice_number: str
    issued_by: uuid.UUID
    customer_name: str | None = None
    note: str | None = None
    subtotal: float
    tax_amount: float
    total_amount: float
    created_at: datetime
    items: list[InvoiceItemRead] = []
