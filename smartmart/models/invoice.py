# smartmart/models/invoice.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Invoice(SQLModel, table=True):
    """
    Sales invoice issued from the dashboard.

    Totals are frozen at generation time:
      total_amount = subtotal + tax_amount
    """

    __tablename__ = "invoices"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    invoice_number: str = Field(
        unique=True,
        index=True,
        description="Human readable number, INV-YYYYMMDD-XXXXXXXX",
    )

    issued_by: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    customer_name: str | None = Field(default=None, max_length=255)
    note: str | None = Field(default=None)

    subtotal: float = Field(ge=0)
    tax_amount: float = Field(ge=0)
    total_amount: float = Field(ge=0)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class InvoiceItem(SQLModel, table=True):
    """
    Line item inside an invoice.
    """

    __tablename__ = "invoice_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    invoice_id: uuid.UUID = Field(
        foreign_key="invoices.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    # Snapshot so the invoice survives product renames
    product_name: str

    quantity: int = Field(
        gt=0,
        description="Quantity sold (>=1)",
    )

    unit_price: float = Field(
        description="Unit price at time of invoicing (pre-tax)",
    )
