# smartmart/services/invoice_service.py
import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException, status
from sqlmodel import Session

from smartmart.core.config import get_settings
from smartmart.models.invoice import Invoice, InvoiceItem
from smartmart.models.product import Product
from smartmart.repositories.invoice_repo import InvoiceRepository
from smartmart.repositories.product_repo import ProductRepository
from smartmart.schemas.invoice import InvoiceCreate, InvoiceItemRead, InvoiceRead

logger = logging.getLogger(__name__)


class InvoiceService:
    """
    Business logic for invoices.

    Responsibilities:
      - Validate requested lines against products (existence, stock)
      - Compute subtotal, tax and total
      - Deduct quantity from products
      - Persist invoice + items in one commit
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        product_repo: ProductRepository,
        tax_rate: float | None = None,
    ):
        self.invoice_repo = invoice_repo
        self.product_repo = product_repo
        self.tax_rate = get_settings().INVOICE_TAX_RATE if tax_rate is None else tax_rate

    @staticmethod
    def _invoice_number(created_at: datetime) -> str:
        return f"INV-{created_at:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"

    def generate(
        self,
        session: Session,
        issued_by: uuid.UUID,
        payload: InvoiceCreate,
    ) -> InvoiceRead:
        """
        Turn the requested lines into an invoice.

        Steps:
          1. Merge duplicate product lines.
          2. Validate every line; report all problems at once (400).
          3. Compute totals from current product prices.
          4. Create Invoice and InvoiceItem rows.
          5. Deduct stock.
          6. Commit and return the full invoice.
        """
        # 1) Merge duplicates, keep first-seen order
        requested: dict[uuid.UUID, int] = {}
        for line in payload.items:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        # 2) Validate
        errors: list[dict[str, str]] = []
        product_map: dict[uuid.UUID, Product] = {}

        # Rows stay locked until commit
        for product_id, quantity in requested.items():
            product = self.product_repo.get_for_update(session, product_id)
            if not product:
                errors.append(
                    {"productId": str(product_id), "reason": "Product not found"}
                )
                continue
            if quantity > product.quantity:
                errors.append(
                    {
                        "productId": str(product_id),
                        "reason": f"Insufficient stock (have {product.quantity}, requested {quantity})",
                    }
                )
                continue
            product_map[product_id] = product

        if errors:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Invoice validation failed", "items": errors},
            )

        # 3) Totals
        subtotal = round(
            sum(product_map[pid].price * qty for pid, qty in requested.items()), 2
        )
        tax_amount = round(subtotal * self.tax_rate, 2)
        total_amount = round(subtotal + tax_amount, 2)

        # 4) Invoice + items
        created_at = datetime.now(timezone.utc)
        invoice = self.invoice_repo.add_invoice(
            session,
            Invoice(
                invoice_number=self._invoice_number(created_at),
                issued_by=issued_by,
                customer_name=payload.customer_name,
                note=payload.note,
                subtotal=subtotal,
                tax_amount=tax_amount,
                total_amount=total_amount,
                created_at=created_at,
            ),
        )
        items = self.invoice_repo.add_items(
            session,
            [
                InvoiceItem(
                    invoice_id=invoice.id,
                    product_id=pid,
                    product_name=product_map[pid].name,
                    quantity=qty,
                    unit_price=product_map[pid].price,
                )
                for pid, qty in requested.items()
            ],
        )

        # 5) Deduct stock
        for pid, qty in requested.items():
            product_map[pid].quantity -= qty
            session.add(product_map[pid])

        # 6) Commit
        session.commit()
        session.refresh(invoice)
        logger.info(
            "Invoice %s generated: %d line(s), total %.2f",
            invoice.invoice_number,
            len(items),
            total_amount,
        )

        return self._build_invoice_dto(invoice, items)

    def list_invoices(self, session: Session, skip: int = 0, limit: int = 50) -> list[Invoice]:
        return self.invoice_repo.list_all(session, skip, limit)

    def get_invoice(self, session: Session, invoice_id: uuid.UUID) -> InvoiceRead:
        invoice = self.invoice_repo.get_by_id(session, invoice_id)
        if not invoice:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Invoice not found",
            )
        items = self.invoice_repo.list_items(session, invoice.id)
        return self._build_invoice_dto(invoice, items)

    # -------- Helper DTO builder --------

    def _build_invoice_dto(self, invoice: Invoice, items: list[InvoiceItem]) -> InvoiceRead:
        return InvoiceRead(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            issued_by=invoice.issued_by,
            customer_name=invoice.customer_name,
            note=invoice.note,
            subtotal=invoice.subtotal,
            tax_amount=invoice.tax_amount,
            total_amount=invoice.total_amount,
            created_at=invoice.created_at,
            items=[
                InvoiceItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    product_name=it.product_name,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    line_total=round(it.quantity * it.unit_price, 2),
                )
                for it in items
            ],
        )
