from typing import Optional
import logging

from marketplace.domain.entities import Role, Session
from marketplace.domain.errors import AuthRequired, AccessDenied, DataAccessError
from marketplace.domain.interfaces import RoleRepository, Notifier

logger = logging.getLogger(__name__)

ACCESS_DENIED_NOTICES = {
    Role.CUSTOMER: "Access denied. Customer account required.",
    Role.VENDOR: "Access denied. Vendor account required.",
    Role.RIDER: "Access denied. Rider account required.",
}


def lookup_role(role_repository: RoleRepository, user_id: str) -> Optional[Role]:
    """
    Consulta el rol del usuario. Un fallo de consulta se trata igual que
    un usuario sin rol: no se concede acceso.
    """
    try:
        return role_repository.get_role(user_id)
    except DataAccessError as e:
        logger.error(f"No se pudo consultar el rol del usuario {user_id}: {e}")
        return None


def require_role(
    session: Optional[Session],
    expected: Role,
    role_repository: RoleRepository,
    notifier: Notifier,
) -> Role:
    """
    Verifica que exista sesión y que el rol del usuario sea el esperado.

    Raises:
        AuthRequired: si no hay sesión (redirige a /auth).
        AccessDenied: si el rol no coincide (aviso + redirige a /).
    """
    if session is None:
        raise AuthRequired()

    role = lookup_role(role_repository, session.user_id)
    if role is not expected:
        notice = ACCESS_DENIED_NOTICES[expected]
        logger.warning(f"Acceso denegado al usuario {session.user_id}: rol={role} esperado={expected.value}")
        notifier.error(notice)
        raise AccessDenied(notice)
    return role
