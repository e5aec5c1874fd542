# marketplace/domain/errors.py
from typing import Optional, Dict, Any


class MarketplaceError(Exception):
    """
    Error base de la aplicación.
    Cada error lleva el aviso (notice) que se muestra al usuario y,
    si aplica, la ruta a la que debe redirigirse.
    """
    default_notice = "Something went wrong"

    def __init__(self, notice: Optional[str] = None, redirect_to: Optional[str] = None):
        self.notice = notice or self.default_notice
        self.redirect_to = redirect_to
        super().__init__(self.notice)


class AuthRequired(MarketplaceError):
    """No hay sesión activa."""
    default_notice = "Please sign in to continue"

    def __init__(self, notice: Optional[str] = None, redirect_to: Optional[str] = "/auth"):
        super().__init__(notice, redirect_to)


class AccessDenied(MarketplaceError):
    """El rol del usuario no corresponde al tablero solicitado."""
    default_notice = "Access denied"

    def __init__(self, notice: Optional[str] = None, redirect_to: Optional[str] = "/"):
        super().__init__(notice, redirect_to)


class LoadError(MarketplaceError):
    """Fallo al consultar datos; el estado previo en memoria se conserva."""
    default_notice = "Failed to load orders"


class MutationError(MarketplaceError):
    """Fallo al crear, actualizar o eliminar; se devuelve el formulario para reintentar."""
    default_notice = "Failed to save changes"

    def __init__(self, notice: Optional[str] = None, form: Optional[Dict[str, Any]] = None):
        super().__init__(notice)
        self.form = form


class ValidationError(MutationError):
    """Formulario inválido. El aviso es el primer error de la lista."""

    def __init__(self, errors, form: Optional[Dict[str, Any]] = None):
        self.errors = list(errors)
        super().__init__(self.errors[0] if self.errors else None, form)


class AuthenticationError(MarketplaceError):
    """La plataforma rechazó las credenciales o el registro."""
    default_notice = "Authentication failed"


# --- Errores de infraestructura (los casos de uso los traducen) ---

class DataAccessError(Exception):
    """Fallo de transporte o de base de datos en un repositorio."""


class StorageError(Exception):
    """Fallo en el almacenamiento de objetos."""
