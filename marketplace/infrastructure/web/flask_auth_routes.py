from typing import Callable

from flask import Blueprint, jsonify, request, current_app

from marketplace.application.auth_use_cases import AuthUseCase
from marketplace.application.notices import NoticeBoard
from marketplace.domain.errors import MarketplaceError
from .responses import bearer_token, error_response


def _session_body(session):
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": session.expires_at,
        "user": {
            "id": session.user_id,
            "email": session.email,
            "user_metadata": session.user_metadata,
        },
    }


def _json_object():
    """Cuerpo JSON de la petición; cualquier cosa que no sea un objeto cuenta como vacío."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def create_auth_api_blueprint(auth_case_factory: Callable[[NoticeBoard], AuthUseCase]):
    """
    Función de fábrica para el Blueprint de autenticación (inicio de sesión,
    registro con rol, cierre de sesión y destino según rol).
    """
    auth_bp = Blueprint('auth', __name__)

    @auth_bp.route('/signin', methods=['POST'])
    def sign_in():
        data = _json_object()
        email, password = data.get("email"), data.get("password")
        if not (isinstance(email, str) and email and isinstance(password, str) and password):
            return jsonify({"message": "email and password are required"}), 400

        notices = NoticeBoard()
        auth_case = auth_case_factory(notices)
        try:
            session = auth_case.sign_in(email, password)
        except MarketplaceError as e:
            return error_response(e, notices)

        return jsonify({
            "session": _session_body(session),
            "redirect_to": "/",
            "notices": notices.drain(),
        }), 200

    @auth_bp.route('/signup', methods=['POST'])
    def sign_up():
        data = _json_object()
        notices = NoticeBoard()
        auth_case = auth_case_factory(notices)
        try:
            session = auth_case.sign_up(data)
        except MarketplaceError as e:
            current_app.logger.warning(f"Registro rechazado: {e.notice}")
            return error_response(e, notices)

        body = {"notices": notices.drain()}
        if session is not None:
            body["session"] = _session_body(session)
            body["redirect_to"] = "/"
        else:
            body["message"] = "Check your email to confirm your account."
        return jsonify(body), 201

    @auth_bp.route('/signout', methods=['POST'])
    def sign_out():
        notices = NoticeBoard()
        auth_case = auth_case_factory(notices)
        session = auth_case.get_session(bearer_token())
        redirect_to = auth_case.sign_out(session)
        return jsonify({"redirect_to": redirect_to, "notices": notices.drain()}), 200

    @auth_bp.route('/session', methods=['GET'])
    def get_session():
        """Retorna la sesión vigente y el tablero al que corresponde el usuario."""
        notices = NoticeBoard()
        auth_case = auth_case_factory(notices)
        session = auth_case.get_session(bearer_token())
        try:
            landing = auth_case.landing_for(session)
        except MarketplaceError as e:
            return error_response(e, notices)

        if session is None:
            return jsonify({"session": None, "redirect_to": landing}), 200
        return jsonify({"session": _session_body(session), "redirect_to": landing}), 200

    return auth_bp
