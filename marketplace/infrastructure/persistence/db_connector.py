# marketplace/infrastructure/persistence/db_connector.py
import logging
import psycopg2
import psycopg2.extensions
from psycopg2 import pool
from config import Config

logger = logging.getLogger(__name__)

# Se usa un pool de conexiones para manejo eficiente en un entorno web
db_pool = None


def connection_params() -> dict:
    """Parámetros de conexión comunes al pool y a las conexiones dedicadas (LISTEN)."""
    return {
        "host": Config.DB_HOST,
        "port": Config.DB_PORT,
        "database": Config.DB_NAME,
        "user": Config.DB_USER,
        "password": Config.DB_PASSWORD,
    }


def init_db_pool():
    """Inicializa el pool de conexiones de PostgreSQL."""
    global db_pool
    if db_pool is None:
        try:
            db_pool = pool.SimpleConnectionPool(minconn=1, maxconn=10, **connection_params())
            logger.info("Pool de conexiones a la base de datos inicializado.")
        except psycopg2.Error as e:
            logger.error(f"No se pudo conectar a la base de datos. {e}")
            raise ConnectionError("Fallo en la conexión inicial a la base de datos.") from e


def get_connection():
    """Obtiene una conexión del pool."""
    if db_pool is None:
        raise ConnectionError("El pool de la base de datos no está inicializado.")
    return db_pool.getconn()


def release_connection(conn):
    """Devuelve una conexión al pool."""
    if db_pool:
        db_pool.putconn(conn)


def open_dedicated_connection():
    """Conexión fuera del pool, en modo autocommit, para suscripciones de larga vida."""
    conn = psycopg2.connect(**connection_params())
    conn.set_isolation_level(psycopg2.extensions.ISOLATION_LEVEL_AUTOCOMMIT)
    return conn
