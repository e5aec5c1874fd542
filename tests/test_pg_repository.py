from datetime import datetime
import pytest
import psycopg2
from unittest.mock import MagicMock, patch

from marketplace.infrastructure.persistence.pg_repository import PgOrderRepository, order_from_row
from marketplace.domain.entities import OrderStatus
from marketplace.domain.errors import DataAccessError

ORDER_COLUMNS = [
    "id", "customer_id", "product_name", "product_price", "quantity", "total_amount",
    "delivery_address", "customer_phone", "status", "created_at", "rider_id",
]

MOCK_DB_ROWS = [
    ("ord-2", "cust-1", "Suya Platter", 4500, 1, 4500, "Wuse II, Abuja", "+234 803 000 0000",
     "in_transit", datetime(2025, 2, 2, 12, 0), "rider-7"),
    ("ord-1", "cust-1", "Chin Chin", 800, 3, 2400, "Wuse II, Abuja", "+234 803 000 0000",
     "delivered", datetime(2025, 2, 1, 9, 0), None),
]


# --- Fixtures y Mocks Centrales ---

@pytest.fixture
def mock_db_connection():
    """Retorna un objeto MagicMock que simula una conexión de base de datos."""
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_cursor.description = [(name,) for name in ORDER_COLUMNS]
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn


@pytest.fixture
def pg_repo_with_mocks(mock_db_connection):
    """
    Crea una instancia de PgOrderRepository y 'mockea' get_connection y release_connection.
    """
    with patch(
            'marketplace.infrastructure.persistence.pg_repository.get_connection',
            return_value=mock_db_connection
    ) as get_conn_mock:
        with patch(
                'marketplace.infrastructure.persistence.pg_repository.release_connection'
        ) as release_conn_mock:
            repo = PgOrderRepository()

            repo.get_connection_mock = get_conn_mock
            repo.release_connection_mock = release_conn_mock
            repo.conn_mock = mock_db_connection
            repo.cursor_mock = mock_db_connection.cursor.return_value

            yield repo


# --- Tests Unitarios ---

def test_get_orders_by_customer_id_success(pg_repo_with_mocks):
    """Retorna entidades Order con los tipos correctos, en el orden de la consulta."""
    pg_repo_with_mocks.cursor_mock.fetchall.return_value = MOCK_DB_ROWS

    orders = pg_repo_with_mocks.get_orders_by_customer_id("cust-1")

    call_args, _ = pg_repo_with_mocks.cursor_mock.execute.call_args
    assert "WHERE customer_id = %s" in call_args[0]
    assert "ORDER BY created_at DESC" in call_args[0]
    assert call_args[1] == ("cust-1",)

    assert [o.id for o in orders] == ["ord-2", "ord-1"]
    assert orders[0].status is OrderStatus.IN_TRANSIT
    assert orders[0].product_price == 4500.0
    assert orders[0].rider_id == "rider-7"
    assert orders[1].rider_id is None

    pg_repo_with_mocks.release_connection_mock.assert_called_once_with(pg_repo_with_mocks.conn_mock)


def test_get_orders_by_customer_id_empty(pg_repo_with_mocks):
    pg_repo_with_mocks.cursor_mock.fetchall.return_value = []
    assert pg_repo_with_mocks.get_orders_by_customer_id("cust-1") == []


def test_get_orders_by_customer_id_db_error(pg_repo_with_mocks):
    """Un psycopg2.Error se traduce a DataAccessError, con rollback y liberación de la conexión."""
    pg_repo_with_mocks.cursor_mock.execute.side_effect = psycopg2.Error("connection reset")

    with pytest.raises(DataAccessError):
        pg_repo_with_mocks.get_orders_by_customer_id("cust-1")

    pg_repo_with_mocks.conn_mock.rollback.assert_called_once()
    pg_repo_with_mocks.release_connection_mock.assert_called_once()


def test_get_orders_rejects_unknown_status(pg_repo_with_mocks):
    bad_row = MOCK_DB_ROWS[0][:8] + ("refunded",) + MOCK_DB_ROWS[0][9:]
    pg_repo_with_mocks.cursor_mock.fetchall.return_value = [bad_row]

    with pytest.raises(DataAccessError):
        pg_repo_with_mocks.get_orders_by_customer_id("cust-1")


def test_get_orders_without_pool():
    with patch(
            'marketplace.infrastructure.persistence.pg_repository.get_connection',
            side_effect=ConnectionError("El pool de la base de datos no está inicializado.")
    ), patch('marketplace.infrastructure.persistence.pg_repository.release_connection') as release_mock:
        with pytest.raises(DataAccessError):
            PgOrderRepository().get_orders_by_customer_id("cust-1")
        release_mock.assert_not_called()


def test_order_from_row_stringifies_ids():
    row = dict(zip(ORDER_COLUMNS, MOCK_DB_ROWS[0]))
    row["id"] = 42
    order = order_from_row(row)
    assert order.id == "42"
    assert order.quantity == 1
