from typing import List, Dict, Any
import logging

from marketplace.domain.interfaces import OrderRepository
from marketplace.domain.entities import Order, OrderStatus
from marketplace.domain.errors import DataAccessError
from .db_connector import get_connection, release_connection

import psycopg2

logger = logging.getLogger(__name__)


def order_from_row(row: Dict[str, Any]) -> Order:
    """
    Construye la entidad Order a partir de una fila.
    Un estado fuera de la enumeración lanza ValueError.
    """
    return Order(
        id=str(row['id']),
        customer_id=str(row['customer_id']),
        product_name=row['product_name'],
        product_price=float(row['product_price']),
        quantity=int(row['quantity']),
        total_amount=float(row['total_amount']),
        delivery_address=row['delivery_address'],
        customer_phone=row['customer_phone'],
        status=OrderStatus(row['status']),
        created_at=row['created_at'],
        rider_id=str(row['rider_id']) if row.get('rider_id') else None,
    )


class PgOrderRepository(OrderRepository):
    """
    Implementación concreta que lee los pedidos del Postgres de la plataforma usando psycopg2.
    """

    def get_orders_by_customer_id(self, customer_id: str) -> List[Order]:
        """
        Recupera todos los pedidos de un cliente, del más reciente al más antiguo.
        """
        conn = None
        orders = []
        try:
            conn = get_connection()
            cursor = conn.cursor()

            sql_query = """
                SELECT
                    id, customer_id, product_name, product_price, quantity,
                    total_amount, delivery_address, customer_phone, status,
                    created_at, rider_id
                FROM public.orders
                WHERE customer_id = %s
                ORDER BY created_at DESC;
            """
            cursor.execute(sql_query, (customer_id,))

            column_names = [desc[0] for desc in cursor.description]
            for row_tuple in cursor.fetchall():
                orders.append(order_from_row(dict(zip(column_names, row_tuple))))

            return orders

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al obtener pedidos del cliente {customer_id}: {e}")
            if conn:
                conn.rollback()
            raise DataAccessError("Database error during order retrieval by customer.") from e
        except ValueError as e:
            # Fila con un estado desconocido: se rechaza la carga completa
            logger.error(f"Pedido con datos inválidos para el cliente {customer_id}: {e}")
            raise DataAccessError("Invalid order data received.") from e
        except ConnectionError as e:
            logger.error(f"Sin conexión a la base de datos: {e}")
            raise DataAccessError("Database connection unavailable.") from e
        finally:
            if conn:
                release_connection(conn)
