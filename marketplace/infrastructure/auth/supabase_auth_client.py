"""Cliente HTTP para el servicio de identidad (GoTrue) de la plataforma."""

import logging
from typing import Optional, Dict, Any

import jwt
import requests

from config import Config
from marketplace.domain.entities import Session
from marketplace.domain.errors import AuthenticationError
from marketplace.domain.interfaces import AuthServiceInterface

logger = logging.getLogger(__name__)

JWT_AUDIENCE = "authenticated"


def session_from_token_response(data: Dict[str, Any]) -> Session:
    """Convierte la respuesta de /token o /signup (con sesión) en un Session."""
    user = data.get("user") or {}
    return Session(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token"),
        user_id=user.get("id"),
        email=user.get("email"),
        expires_at=data.get("expires_at"),
        user_metadata=user.get("user_metadata") or {},
    )


class SupabaseAuthClient(AuthServiceInterface):
    """
    Cliente para comunicarse con el servicio de autenticación.
    Las sesiones se validan localmente verificando la firma del JWT.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        jwt_secret: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = (base_url or Config.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else Config.SUPABASE_ANON_KEY
        self.jwt_secret = jwt_secret or Config.SUPABASE_JWT_SECRET
        self.timeout = timeout or Config.AUTH_TIMEOUT

    def _headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.anon_key,
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _post(self, endpoint: str, payload: Optional[Dict[str, Any]] = None,
              params: Optional[Dict[str, str]] = None, access_token: Optional[str] = None) -> Dict[str, Any]:
        """Realiza un POST al servicio de auth y traduce los errores a AuthenticationError."""
        url = f"{self.base_url}/auth/v1{endpoint}"
        try:
            response = requests.post(
                url,
                json=payload or {},
                params=params,
                headers=self._headers(access_token),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Error al consumir el servicio de auth en {endpoint}: {e}")
            raise AuthenticationError("Authentication service unavailable, please try again") from e

        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"Auth rechazó {endpoint} ({response.status_code}): {message}")
            raise AuthenticationError(message)

        if not response.content:
            return {}
        return response.json()

    def sign_in_with_password(self, email: str, password: str) -> Session:
        data = self._post("/token", {"email": email, "password": password}, params={"grant_type": "password"})
        return session_from_token_response(data)

    def sign_up(self, email: str, password: str, profile: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra al usuario con sus datos de perfil.

        Returns:
            {'user_id': str | None, 'session': Session | None}
            La sesión solo existe si la plataforma confirmó la cuenta sin correo.
        """
        metadata = {k: v for k, v in profile.items() if k != "redirect_to"}
        params = {"redirect_to": profile["redirect_to"]} if profile.get("redirect_to") else None
        data = self._post("/signup", {"email": email, "password": password, "data": metadata}, params=params)

        if "access_token" in data:
            session = session_from_token_response(data)
            return {"user_id": session.user_id, "session": session}

        # Sin autoconfirmación la respuesta es el usuario (o {'user': ...})
        user = data.get("user") if "user" in data else data
        return {"user_id": (user or {}).get("id"), "session": None}

    def sign_out(self, session: Session) -> None:
        self._post("/logout", access_token=session.access_token)

    def get_session(self, access_token: Optional[str]) -> Optional[Session]:
        """Valida el token (firma, expiración y audiencia). None si no hay sesión válida."""
        if not access_token:
            return None
        try:
            claims = jwt.decode(
                access_token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=JWT_AUDIENCE,
            )
        except jwt.PyJWTError as e:
            logger.info(f"Token de sesión inválido: {e}")
            return None

        return Session(
            access_token=access_token,
            user_id=claims.get("sub"),
            email=claims.get("email"),
            expires_at=claims.get("exp"),
            user_metadata=claims.get("user_metadata") or {},
        )


def _error_message(response) -> str:
    """Extrae el mensaje de error de la respuesta de GoTrue (varía según versión)."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "Authentication failed"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return "Authentication failed"
