# smartmart/repositories/invoice_repo.py
import uuid

from sqlmodel import Session, select

from smartmart.models.invoice import Invoice, InvoiceItem


class InvoiceRepository:
    """
    Data access layer for invoices and invoice_items.

    NOTE:
      - No commits here; invoice generation is a multi-step transaction
        (invoice row, items, stock deduction). The service commits.
    """

    def get_by_id(self, session: Session, invoice_id: uuid.UUID) -> Invoice | None:
        return session.get(Invoice, invoice_id)

    def list_all(self, session: Session, skip: int = 0, limit: int = 50) -> list[Invoice]:
        stmt = (
            select(Invoice)
            .order_by(Invoice.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def list_items(self, session: Session, invoice_id: uuid.UUID) -> list[InvoiceItem]:
        stmt = select(InvoiceItem).where(InvoiceItem.invoice_id == invoice_id)
        return list(session.exec(stmt).all())

    def add_invoice(self, session: Session, invoice: Invoice) -> Invoice:
        session.add(invoice)
        session.flush()
        return invoice

    def add_items(self, session: Session, items: list[InvoiceItem]) -> list[InvoiceItem]:
        session.add_all(items)
        session.flush()
        return items
