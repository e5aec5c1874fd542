from typing import Optional
import logging

from marketplace.domain.interfaces import RoleRepository
from marketplace.domain.entities import Role
from marketplace.domain.errors import DataAccessError
from .db_connector import get_connection, release_connection

import psycopg2

logger = logging.getLogger(__name__)


class PgRoleRepository(RoleRepository):
    """Lectura y alta de roles en public.user_roles (un rol por usuario)."""

    def get_role(self, user_id: str) -> Optional[Role]:
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor()
            cursor.execute("SELECT role FROM public.user_roles WHERE user_id = %s;", (user_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            try:
                return Role(row[0])
            except ValueError:
                logger.warning(f"Rol desconocido '{row[0]}' para el usuario {user_id}")
                return None

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al consultar el rol de {user_id}: {e}")
            if conn:
                conn.rollback()
            raise DataAccessError("Database error during role lookup.") from e
        except ConnectionError as e:
            logger.error(f"Sin conexión a la base de datos: {e}")
            raise DataAccessError("Database connection unavailable.") from e
        finally:
            if conn:
                release_connection(conn)

    def insert_role(self, user_id: str, role: Role) -> None:
        conn = None
        try:
            conn = get_connection()
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO public.user_roles (user_id, role) VALUES (%s, %s);",
                (user_id, role.value)
            )
            conn.commit()

        except psycopg2.Error as e:
            logger.error(f"Error de base de datos al registrar el rol de {user_id}: {e}")
            if conn:
                conn.rollback()
            raise DataAccessError("Database error during role insertion.") from e
        except ConnectionError as e:
            logger.error(f"Sin conexión a la base de datos: {e}")
            raise DataAccessError("Database connection unavailable.") from e
        finally:
            if conn:
                release_connection(conn)
