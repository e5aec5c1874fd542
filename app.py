# app.py
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from dotenv import load_dotenv  # Necesario para cargar variables de entorno

# Cargar variables de entorno del archivo .env (si existe) antes de leer Config
load_dotenv()

from config import Config
from marketplace.application.auth_use_cases import AuthUseCase
from marketplace.application.product_use_cases import ManageProductsUseCase
from marketplace.application.use_cases import OrderViewSynchronizer
from marketplace.infrastructure.auth.supabase_auth_client import SupabaseAuthClient
from marketplace.infrastructure.persistence.db_connector import init_db_pool
from marketplace.infrastructure.persistence.db_initializer import initialize_database
from marketplace.infrastructure.persistence.pg_product_repository import PgProductRepository
from marketplace.infrastructure.persistence.pg_repository import PgOrderRepository
from marketplace.infrastructure.persistence.pg_role_repository import PgRoleRepository
from marketplace.infrastructure.realtime.pg_change_feed import PgOrderChangeFeed
from marketplace.infrastructure.storage.storage_service import StorageService
from marketplace.infrastructure.web.flask_auth_routes import create_auth_api_blueprint
from marketplace.infrastructure.web.flask_routes import create_api_blueprint
from marketplace.infrastructure.web.flask_vendor_routes import create_vendor_api_blueprint

logger = logging.getLogger(__name__)


def create_app(
    auth_service=None,
    order_repository=None,
    role_repository=None,
    product_repository=None,
    change_feed=None,
    storage_service=None,
):
    """Crea, configura y cablea la aplicación Flask siguiendo la Arquitectura Limpia."""

    app = Flask(__name__)
    app.config.from_object(Config)

    # --- INICIALIZACIÓN DE LA BASE DE DATOS ---
    if order_repository is None:
        try:
            init_db_pool()
            initialize_database()
        except ConnectionError as e:
            # Las peticiones fallarán con LoadError hasta que la BD esté disponible
            logger.error(f"Fallo al inicializar la BD. {e}")

    # --- CABLEADO DE DEPENDENCIAS (Dependency Injection - DI) ---

    # 1. Infraestructura (plataforma externa)
    auth_service = auth_service or SupabaseAuthClient()
    order_repository = order_repository or PgOrderRepository()
    role_repository = role_repository or PgRoleRepository()
    product_repository = product_repository or PgProductRepository()
    change_feed = change_feed or PgOrderChangeFeed()
    storage_service = storage_service or StorageService()

    # 2. Capa de Aplicación: una instancia por petición, con su propio tablero de avisos
    def synchronizer_factory(notifier, on_change=None):
        return OrderViewSynchronizer(order_repository, role_repository, change_feed, notifier, on_change=on_change)

    def auth_case_factory(notifier):
        return AuthUseCase(auth_service, role_repository, notifier, site_url=Config.SITE_URL)

    def products_case_factory(notifier):
        return ManageProductsUseCase(
            product_repository, role_repository, storage_service, notifier,
            max_image_bytes=Config.MAX_IMAGE_BYTES,
        )

    # Configurar CORS
    CORS(app, resources={
        r"/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"]
        }
    })

    # 3. Capa de Presentación (Web)
    app.register_blueprint(create_auth_api_blueprint(auth_case_factory), url_prefix='/auth')
    app.register_blueprint(create_api_blueprint(synchronizer_factory, auth_service), url_prefix='/customer')
    app.register_blueprint(create_vendor_api_blueprint(products_case_factory, auth_service), url_prefix='/vendor')

    # --- Ruta de control ---
    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'})

    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.run(host='0.0.0.0', port=8080, debug=False, threaded=True)
