from typing import List, Dict, Any, Optional
import logging

from marketplace.domain.interfaces import ProductRepository
from marketplace.domain.entities import Product
from marketplace.domain.errors import DataAccessError
from .db_connector import get_connection, release_connection

import psycopg2
from psycopg2.extras import RealDictCursor

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, vendor_id, name, description, price, image_url, stock, category, created_at"


def product_from_row(row: Dict[str, Any]) -> Product:
    return Product(
        id=str(row['id']),
        vendor_id=str(row['vendor_id']),
        name=row['name'],
        description=row.get('description'),
        price=float(row['price']),
        image_url=row.get('image_url'),
        stock=int(row['stock']),
        category=row.get('category'),
        created_at=row.get('created_at'),
    )


class PgProductRepository(ProductRepository):
    """
    Inventario del vendedor en public.products.
    Las actualizaciones y borrados se restringen al vendor_id de la sesión.
    """

    def _run(self, operation: str, sql: str, params: tuple, fetch: str = None, commit: bool = False):
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor(cursor_factory=RealDictCursor)
            cursor.execute(sql, params)
            result = None
            if fetch == "all":
                result = cursor.fetchall()
            elif fetch == "one":
                result = cursor.fetchone()
            if commit:
                conn.commit()
            return result

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos ({operation}): {e}")
            if conn:
                conn.rollback()
            raise DataAccessError(f"Database error during product {operation}.") from e
        except ConnectionError as e:
            logger.error(f"Sin conexión a la base de datos: {e}")
            raise DataAccessError("Database connection unavailable.") from e
        finally:
            if conn:
                release_connection(conn)

    def get_products_by_vendor_id(self, vendor_id: str) -> List[Product]:
        rows = self._run(
            "retrieval",
            f"SELECT {PRODUCT_COLUMNS} FROM public.products WHERE vendor_id = %s ORDER BY created_at DESC;",
            (vendor_id,),
            fetch="all",
        )
        return [product_from_row(row) for row in rows or []]

    def get_product(self, product_id: str, vendor_id: str) -> Optional[Product]:
        row = self._run(
            "retrieval",
            f"SELECT {PRODUCT_COLUMNS} FROM public.products WHERE id = %s AND vendor_id = %s;",
            (product_id, vendor_id),
            fetch="one",
        )
        return product_from_row(row) if row else None

    def insert_product(self, product: Product) -> Product:
        row = self._run(
            "insertion",
            f"""
                INSERT INTO public.products (vendor_id, name, description, price, image_url, stock, category)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING {PRODUCT_COLUMNS};
            """,
            (product.vendor_id, product.name, product.description, product.price,
             product.image_url, product.stock, product.category),
            fetch="one",
            commit=True,
        )
        return product_from_row(row)

    def update_product(self, product: Product) -> Product:
        row = self._run(
            "update",
            f"""
                UPDATE public.products
                SET name = %s, description = %s, price = %s, image_url = %s, stock = %s, category = %s
                WHERE id = %s AND vendor_id = %s
                RETURNING {PRODUCT_COLUMNS};
            """,
            (product.name, product.description, product.price, product.image_url,
             product.stock, product.category, product.id, product.vendor_id),
            fetch="one",
            commit=True,
        )
        if row is None:
            raise DataAccessError("Product not found.")
        return product_from_row(row)

    def delete_product(self, product_id: str, vendor_id: str) -> None:
        self._run(
            "deletion",
            "DELETE FROM public.products WHERE id = %s AND vendor_id = %s;",
            (product_id, vendor_id),
            commit=True,
        )
