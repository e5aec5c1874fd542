from typing import Optional, Dict, Any, Callable, List
import logging

from marketplace.domain.entities import Role, Session, dashboard_path_for
from marketplace.domain.errors import (
    AuthenticationError, AccessDenied, ValidationError, DataAccessError
)
from marketplace.domain.interfaces import AuthServiceInterface, RoleRepository, Notifier
from marketplace.application.access_control import lookup_role

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

MIN_PASSWORD_LENGTH = 6
SIGN_UP_REQUIRED_FIELDS = ["full_name", "phone", "email", "password"]


class AuthStateSubscription:
    """Handle devuelto por on_auth_state_change."""

    def __init__(self, listeners: List[Callable], callback: Callable):
        self._listeners = listeners
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._listeners:
            self._listeners.remove(self._callback)


def validate_sign_up_form(form: Dict[str, Any]) -> List[str]:
    """Valida el formulario de registro. Retorna la lista de errores (vacía si es válido)."""
    errors = []
    for field in SIGN_UP_REQUIRED_FIELDS:
        value = form.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(f"Field required: {field}")
        elif not isinstance(value, str):
            errors.append(f"Field must be text: {field}")

    password = form.get("password")
    if isinstance(password, str) and password and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    role = form.get("role", Role.CUSTOMER.value)
    if not isinstance(role, str) or role not in {r.value for r in Role}:
        errors.append(f"Role must be one of: {', '.join(r.value for r in Role)}")
    return errors


class AuthUseCase:
    """
    Caso de uso: inicio de sesión, registro con selección de rol y cierre de sesión.
    Depende del servicio de identidad de la plataforma y del repositorio de roles.
    """

    def __init__(
        self,
        auth_service: AuthServiceInterface,
        role_repository: RoleRepository,
        notifier: Notifier,
        site_url: str = "",
    ):
        self.auth_service = auth_service
        self.role_repository = role_repository
        self.notifier = notifier
        self.site_url = site_url.rstrip("/")
        self._listeners: List[Callable[[str, Optional[Session]], None]] = []

    # --- Suscripción a cambios de estado de autenticación ---

    def on_auth_state_change(self, callback: Callable[[str, Optional[Session]], None]) -> AuthStateSubscription:
        self._listeners.append(callback)
        return AuthStateSubscription(self._listeners, callback)

    def _emit(self, event: str, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception as e:
                logger.error(f"Error en listener de autenticación ({event}): {e}")

    # --- Operaciones ---

    def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        return self.auth_service.get_session(access_token)

    def sign_in(self, email: str, password: str) -> Session:
        try:
            session = self.auth_service.sign_in_with_password(email, password)
        except AuthenticationError as e:
            self.notifier.error(e.notice)
            raise

        self.notifier.success("Welcome back! You have successfully signed in.")
        self._emit(SIGNED_IN, session)
        return session

    def sign_up(self, form: Dict[str, Any]) -> Optional[Session]:
        """
        Crea la cuenta con los datos de perfil y registra el rol elegido.
        Retorna la sesión si la plataforma confirmó la cuenta de inmediato,
        None si queda pendiente la confirmación por correo.
        """
        errors = validate_sign_up_form(form)
        if errors:
            self.notifier.error(errors[0])
            raise ValidationError(errors, form=_public_form(form))

        role = Role(form.get("role", Role.CUSTOMER.value))
        profile = {
            "full_name": form["full_name"].strip(),
            "phone": form["phone"].strip(),
            "redirect_to": f"{self.site_url}/",
        }

        try:
            result = self.auth_service.sign_up(form["email"].strip(), form["password"], profile)
        except AuthenticationError as e:
            self.notifier.error(e.notice)
            raise

        user_id = result.get("user_id")
        session = result.get("session")
        if user_id:
            try:
                self.role_repository.insert_role(user_id, role)
            except DataAccessError as e:
                logger.error(f"No se pudo registrar el rol {role.value} para {user_id}: {e}")
                self.notifier.error(str(e) or "Failed to save account role")
                raise AuthenticationError(str(e) or "Failed to save account role") from e

            self.notifier.success(f"Account created! Welcome to Jiffy NG as a {role.value}!")

        if session is not None:
            self._emit(SIGNED_IN, session)
        return session

    def sign_out(self, session: Optional[Session]) -> str:
        """Cierra la sesión y retorna la ruta a la que se redirige."""
        if session is not None:
            try:
                self.auth_service.sign_out(session)
            except AuthenticationError as e:
                # El token local se descarta igual
                logger.warning(f"Fallo al revocar la sesión de {session.user_id}: {e}")
        self._emit(SIGNED_OUT, None)
        return "/auth"

    def landing_for(self, session: Optional[Session]) -> str:
        """Ruta de destino: /auth sin sesión, o el tablero del rol del usuario."""
        if session is None:
            return "/auth"
        role = lookup_role(self.role_repository, session.user_id)
        if role is None:
            raise AccessDenied("No role assigned to this account")
        return dashboard_path_for(role)


def _public_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """Copia del formulario sin la contraseña, para devolverla al cliente."""
    return {k: v for k, v in form.items() if k != "password"}
