# tests/test_invoices_api.py
import uuid

import pytest
from fastapi import HTTPException
from sqlalchemy.dialects import postgresql

from smartmart.models.product import Product
from smartmart.repositories.invoice_repo import InvoiceRepository
from smartmart.repositories.product_repo import ProductRepository
from smartmart.schemas.invoice import InvoiceCreate
from smartmart.services.invoice_service import InvoiceService

API = "/api/v1/invoices"


def test_generate_requires_auth(client):
    response = client.post(f"{API}/generate", json={"items": []})
    assert response.status_code == 401


def test_generate_invoice(client, session, make_product, user, auth_headers):
    milk = make_product(name="Milk", price=1.25, quantity=10)
    bread = make_product(name="Bread", price=2.0, quantity=5)

    response = client.post(
        f"{API}/generate",
        json={
            "customerName": "Corner Cafe",
            "items": [
                {"productId": str(milk.id), "quantity": 4},
                {"productId": str(bread.id), "quantity": 1},
                {"productId": str(milk.id), "quantity": 2},
            ],
        },
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    body = response.json()

    assert body["invoiceNumber"].startswith("INV-")
    assert body["customerName"] == "Corner Cafe"
    assert body["issuedBy"] == str(user.id)
    assert body["subtotal"] == 9.5
    assert body["taxAmount"] == 0.76
    assert body["totalAmount"] == 10.26

    lines = {item["productName"]: item for item in body["items"]}
    assert lines["Milk"]["quantity"] == 6
    assert lines["Milk"]["lineTotal"] == 7.5
    assert lines["Bread"]["unitPrice"] == 2.0

    session.expire_all()
    assert session.get(Product, milk.id).quantity == 4
    assert session.get(Product, bread.id).quantity == 4

    fetched = client.get(f"{API}/{body['id']}", headers=auth_headers(user)).json()
    assert fetched["invoiceNumber"] == body["invoiceNumber"]
    assert len(fetched["items"]) == 2

    listed = client.get(API, headers=auth_headers(user)).json()
    assert [inv["id"] for inv in listed] == [body["id"]]


def test_generate_reports_every_bad_line(client, session, make_product, user, auth_headers):
    milk = make_product(name="Milk", quantity=1)
    missing = uuid.uuid4()

    response = client.post(
        f"{API}/generate",
        json={
            "items": [
                {"productId": str(milk.id), "quantity": 3},
                {"productId": str(missing), "quantity": 1},
            ]
        },
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["message"] == "Invoice validation failed"
    reasons = {item["productId"]: item["reason"] for item in detail["items"]}
    assert reasons[str(milk.id)] == "Insufficient stock (have 1, requested 3)"
    assert reasons[str(missing)] == "Product not found"

    session.expire_all()
    assert session.get(Product, milk.id).quantity == 1


def test_generate_validates_payload(client, user, auth_headers):
    headers = auth_headers(user)
    assert client.post(f"{API}/generate", json={"items": []}, headers=headers).status_code == 422
    response = client.post(
        f"{API}/generate",
        json={"items": [{"productId": str(uuid.uuid4()), "quantity": 0}]},
        headers=headers,
    )
    assert response.status_code == 422


def test_get_unknown_invoice(client, user, auth_headers):
    response = client.get(f"{API}/{uuid.uuid4()}", headers=auth_headers(user))
    assert response.status_code == 404


def test_generate_checks_current_stock_not_cached_rows(session, session_factory, make_product, user):
    milk = make_product(name="Milk", quantity=5)
    assert session.get(Product, milk.id).quantity == 5

    # Another request sells most of the stock in the meantime
    with session_factory() as other:
        row = other.get(Product, milk.id)
        row.quantity = 1
        other.add(row)
        other.commit()

    service = InvoiceService(InvoiceRepository(), ProductRepository(), tax_rate=0)
    payload = InvoiceCreate(items=[{"productId": milk.id, "quantity": 3}])
    with pytest.raises(HTTPException) as exc_info:
        service.generate(session, user.id, payload)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail["items"][0]["reason"] == "Insufficient stock (have 1, requested 3)"


def test_locked_product_read_emits_for_update(monkeypatch, session, make_product):
    milk = make_product(name="Milk")
    statements = []
    original_exec = session.exec

    def recording_exec(stmt, *args, **kwargs):
        statements.append(stmt)
        return original_exec(stmt, *args, **kwargs)

    monkeypatch.setattr(session, "exec", recording_exec)
    assert ProductRepository().get_for_update(session, milk.id).id == milk.id
    sql = str(statements[0].compile(dialect=postgresql.dialect()))
    assert sql.endswith("FOR UPDATE")
