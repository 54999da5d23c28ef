# smartmart/repositories/product_repo.py
import uuid
from datetime import date

from sqlalchemy import func
from sqlmodel import Session, select

from smartmart.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - No FastAPI, no business logic (thresholds and windows are passed in).
    """

    # ----- Reads -----

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_for_update(self, session: Session, product_id: uuid.UUID) -> Product | None:
        """Load a product with a row lock held until the transaction ends."""
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.exec(stmt).first()

    def list_all(self, session: Session) -> list[Product]:
        stmt = select(Product).order_by(Product.name, Product.created_at)
        return list(session.exec(stmt).all())

    def list_with_quantity(self, session: Session, quantity: int) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.quantity == quantity)
            .order_by(Product.name)
        )
        return list(session.exec(stmt).all())

    def list_low_stock(self, session: Session, threshold: int) -> list[Product]:
        """Products with 0 < quantity <= threshold."""
        stmt = (
            select(Product)
            .where(Product.quantity > 0, Product.quantity <= threshold)
            .order_by(Product.quantity, Product.name)
        )
        return list(session.exec(stmt).all())

    def list_expiring_between(
        self,
        session: Session,
        start: date,
        end: date,
    ) -> list[Product]:
        """Products whose expiry_date falls in [start, end] (inclusive)."""
        stmt = (
            select(Product)
            .where(
                Product.expiry_date.is_not(None),
                Product.expiry_date >= start,
                Product.expiry_date <= end,
            )
            .order_by(Product.expiry_date, Product.name)
        )
        return list(session.exec(stmt).all())

    def search(
        self,
        session: Session,
        query: str,
        category: str | None = None,
    ) -> list[Product]:
        """
        Case-insensitive substring match on name or category.
        `query` is matched literally (LIKE wildcards are escaped).
        """
        stmt = select(Product)
        if query:
            stmt = stmt.where(
                Product.name.icontains(query, autoescape=True)
                | Product.category.icontains(query, autoescape=True)
            )
        if category:
            stmt = stmt.where(func.lower(Product.category) == category.lower())
        stmt = stmt.order_by(Product.name)
        return list(session.exec(stmt).all())

    def distinct_categories(self, session: Session) -> list[str]:
        stmt = select(Product.category).distinct().order_by(Product.category)
        return list(session.exec(stmt).all())

    # ----- Writes -----

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def create_many(self, session: Session, products: list[Product]) -> list[Product]:
        """Insert all products in a single transaction."""
        session.add_all(products)
        session.commit()
        for product in products:
            session.refresh(product)
        return products

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def delete(self, session: Session, product: Product) -> None:
        session.delete(product)
        session.commit()
