# config.py
import os


class Config:
    """Clase base de configuración, con variables de entorno para la plataforma y la DB."""
    # Plataforma (Supabase): auth REST, almacenamiento y secreto JWT del proyecto
    SUPABASE_URL = os.environ.get('SUPABASE_URL', 'http://localhost:54321').rstrip('/')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY', '')
    SUPABASE_JWT_SECRET = os.environ.get('SUPABASE_JWT_SECRET', 'super-secret-jwt-token-with-at-least-32-characters-long')
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8080')
    AUTH_TIMEOUT = int(os.environ.get('AUTH_TIMEOUT', '10'))

    # Base de datos (Postgres del proyecto)
    DB_HOST = os.environ.get('DB_HOST', 'localhost')
    DB_PORT = os.environ.get('DB_PORT', '54322')
    DB_NAME = os.environ.get('DB_NAME', 'postgres')
    DB_USER = os.environ.get('DB_USER', 'postgres')
    DB_PASSWORD = os.environ.get('DB_PASSWORD', 'postgres')
    # Parámetros para la inicialización de la BD
    RUN_DB_INIT_ON_STARTUP = os.environ.get('RUN_DB_INIT_ON_STARTUP', 'False').lower() == 'true'

    # Canal LISTEN/NOTIFY del feed de cambios de pedidos
    ORDERS_CHANNEL = os.environ.get('ORDERS_CHANNEL', 'orders_changes')

    # Almacenamiento de imágenes de productos (endpoint S3 compatible)
    STORAGE_BUCKET = os.environ.get('STORAGE_BUCKET', 'product-images')
    STORAGE_REGION = os.environ.get('STORAGE_REGION', 'us-east-1')
    STORAGE_ACCESS_KEY_ID = os.environ.get('STORAGE_ACCESS_KEY_ID', '')
    STORAGE_SECRET_ACCESS_KEY = os.environ.get('STORAGE_SECRET_ACCESS_KEY', '')
    MAX_IMAGE_BYTES = int(os.environ.get('MAX_IMAGE_BYTES', str(5 * 1024 * 1024)))
