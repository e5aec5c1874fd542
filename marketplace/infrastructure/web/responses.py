from typing import Optional
from flask import jsonify, request

from marketplace.domain.errors import (
    MarketplaceError, AuthRequired, AccessDenied, LoadError,
    MutationError, ValidationError, AuthenticationError
)
from marketplace.application.notices import NoticeBoard

# Código HTTP por tipo de error (el más específico primero)
ERROR_STATUS = [
    (AuthRequired, 401),
    (AccessDenied, 403),
    (ValidationError, 422),
    (MutationError, 400),
    (AuthenticationError, 400),
    (LoadError, 503),
]


def bearer_token() -> Optional[str]:
    """Extrae el token del header Authorization ('Bearer <token>')."""
    auth_header = request.headers.get('Authorization', '')
    if not auth_header.startswith('Bearer '):
        return None
    return auth_header[7:].strip() or None


def status_for(error: MarketplaceError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


def error_response(error: MarketplaceError, notices: NoticeBoard):
    """Respuesta JSON uniforme para los errores de la aplicación."""
    body = {
        "message": error.notice,
        "error_type": type(error).__name__,
        "notices": notices.drain(),
    }
    if error.redirect_to:
        body["redirect_to"] = error.redirect_to
    if isinstance(error, ValidationError):
        body["errors"] = error.errors
    if isinstance(error, MutationError) and error.form is not None:
        body["form"] = error.form
    return jsonify(body), status_for(error)
