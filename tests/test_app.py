import json
from unittest.mock import Mock, patch

import pytest

from app import create_app
from marketplace.domain.entities import Role, Session


@pytest.fixture
def deps():
    auth_service = Mock()
    auth_service.get_session.return_value = Session(access_token="tok", user_id="cust-1")
    role_repository = Mock()
    role_repository.get_role.return_value = Role.CUSTOMER
    order_repository = Mock()
    order_repository.get_orders_by_customer_id.return_value = []
    return {
        "auth_service": auth_service,
        "order_repository": order_repository,
        "role_repository": role_repository,
        "product_repository": Mock(),
        "change_feed": Mock(),
        "storage_service": Mock(),
    }


@pytest.fixture
def client(deps):
    app = create_app(**deps)
    app.testing = True
    return app.test_client()


def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert json.loads(response.data) == {'status': 'ok'}


def test_blueprints_are_mounted(client):
    rules = {rule.rule for rule in client.application.url_map.iter_rules()}
    assert {
        '/auth/signin', '/auth/signup', '/auth/signout', '/auth/session',
        '/customer/orders', '/customer/orders/stream',
        '/vendor/products', '/vendor/products/<product_id>',
    } <= rules


def test_customer_orders_wired_to_repositories(client, deps):
    response = client.get('/customer/orders', headers={"Authorization": "Bearer tok"})

    assert response.status_code == 200
    deps["order_repository"].get_orders_by_customer_id.assert_called_once_with("cust-1")
    assert json.loads(response.data)["counts"] == {"active": 0, "history": 0}


def test_vendor_routes_check_role(client, deps):
    response = client.get('/vendor/products', headers={"Authorization": "Bearer tok"})

    assert response.status_code == 403
    deps["product_repository"].get_products_by_vendor_id.assert_not_called()


def test_injected_repositories_skip_database_setup(deps):
    with patch('app.init_db_pool') as init_pool, patch('app.initialize_database') as init_db:
        create_app(**deps)
    init_pool.assert_not_called()
    init_db.assert_not_called()


def test_database_failure_does_not_stop_startup(deps):
    deps["order_repository"] = None
    with patch('app.init_db_pool', side_effect=ConnectionError("Fallo en la conexión inicial a la base de datos.")), \
            patch('app.initialize_database') as init_db:
        app = create_app(**deps)
    init_db.assert_not_called()
    assert app is not None
