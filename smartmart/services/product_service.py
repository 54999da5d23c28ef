# smartmart/services/product_service.py
import logging
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from smartmart.models.product import Product
from smartmart.repositories.product_repo import ProductRepository
from smartmart.schemas.product import (
    BulkUploadResult,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from smartmart.services.csv_service import (
    CsvImportError,
    export_products_csv,
    parse_products_csv,
)

logger = logging.getLogger(__name__)


class ProductService:
    """
    Business logic for the product catalogue.

    Responsibilities:
      - single and bulk (CSV) creation
      - partial updates and deletion
      - CSV export of an already-selected product list
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    # ----- Products -----

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        product = Product(**payload.model_dump())
        return self.repo.create(session, product)

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.

        Only fields present in the payload are touched; required fields
        (name, sku, category, price, quantity, reorderLevel) cannot be
        set to null.
        """
        product = self.get_product(session, product_id)
        changes = payload.model_dump(exclude_unset=True)

        required = ("name", "sku", "category", "price", "quantity", "reorder_level")
        nulled = [field for field in required if field in changes and changes[field] is None]
        if nulled:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Fields cannot be null: {', '.join(nulled)}",
            )

        for field, value in changes.items():
            setattr(product, field, value)

        return self.repo.update(session, product)

    def delete_product(self, session: Session, product_id: uuid.UUID) -> None:
        product = self.get_product(session, product_id)
        self.repo.delete(session, product)

    # ----- CSV -----

    def import_csv(self, session: Session, text: str) -> BulkUploadResult:
        """
        Create every product in a CSV file, or none of them.

        Raises:
            HTTPException(400): with {"message", "rows"} describing every
                invalid row when the file is rejected.
        """
        try:
            payloads = parse_products_csv(text)
        except CsvImportError as e:
            logger.warning("CSV import rejected: %s", e.message)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": e.message, "rows": e.rows},
            ) from e

        products = [Product(**p.model_dump()) for p in payloads]
        created = self.repo.create_many(session, products)
        logger.info("CSV import created %d products", len(created))

        return BulkUploadResult(
            message=f"{len(created)} products",
            count=len(created),
        )

    @staticmethod
    def export_csv(products: list[Product]) -> str:
        """
        CSV text for the given products.

        Raises:
            HTTPException(404): nothing to export.
        """
        if not products:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No products to export.",
            )
        records = [
            ProductRead.model_validate(p).model_dump(by_alias=True, mode="json")
            for p in products
        ]
        return export_products_csv(records)
