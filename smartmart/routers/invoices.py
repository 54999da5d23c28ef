# smartmart/routers/invoices.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from smartmart.core.auth import require_auth
from smartmart.database import get_session
from smartmart.models.user import User
from smartmart.repositories.invoice_repo import InvoiceRepository
from smartmart.repositories.product_repo import ProductRepository
from smartmart.schemas.invoice import InvoiceCreate, InvoiceRead
from smartmart.services.invoice_service import InvoiceService

router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"],
    dependencies=[Depends(require_auth)],
)

service = InvoiceService(InvoiceRepository(), ProductRepository())


@router.post(
    "/generate",
    response_model=InvoiceRead,
    status_code=status.HTTP_201_CREATED,
)
def generate_invoice(
    payload: InvoiceCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Generate an invoice from product lines and deduct the sold stock.

    - 400 with per-line reasons if any product is missing or short.
    """
    return service.generate(session, current_user.id, payload)


@router.get("", response_model=list[InvoiceRead])
def list_invoices(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    """List invoices, newest first (line items omitted)."""
    return service.list_invoices(session, skip, limit)


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """Get one invoice with its line items."""
    return service.get_invoice(session, invoice_id)
