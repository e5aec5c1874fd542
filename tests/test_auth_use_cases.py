import pytest
from unittest.mock import Mock

from marketplace.application.auth_use_cases import (
    AuthUseCase, validate_sign_up_form, SIGNED_IN, SIGNED_OUT
)
from marketplace.application.notices import NoticeBoard
from marketplace.domain.entities import Role, Session
from marketplace.domain.errors import AuthenticationError, ValidationError, AccessDenied, DataAccessError

MOCK_SESSION = Session(access_token="access", user_id="user-1", email="ada@example.com", refresh_token="refresh")

VALID_SIGN_UP = {
    "email": "ada@example.com",
    "password": "secret123",
    "full_name": "Ada Obi",
    "phone": "+234 800 000 0000",
    "role": "vendor",
}


@pytest.fixture
def auth_service():
    return Mock()


@pytest.fixture
def role_repository():
    return Mock()


@pytest.fixture
def notices():
    return NoticeBoard()


@pytest.fixture
def use_case(auth_service, role_repository, notices):
    return AuthUseCase(auth_service, role_repository, notices, site_url="https://jiffy.ng/")


class TestValidateSignUpForm:

    def test_valid_form_has_no_errors(self):
        assert validate_sign_up_form(VALID_SIGN_UP) == []

    def test_missing_fields(self):
        errors = validate_sign_up_form({"email": "a@b.com", "password": "secret123"})
        assert "Field required: full_name" in errors
        assert "Field required: phone" in errors

    def test_short_password(self):
        errors = validate_sign_up_form({**VALID_SIGN_UP, "password": "12345"})
        assert errors == ["Password must be at least 6 characters"]

    def test_unknown_role(self):
        errors = validate_sign_up_form({**VALID_SIGN_UP, "role": "admin"})
        assert len(errors) == 1
        assert errors[0].startswith("Role must be one of")

    def test_numeric_phone_is_rejected(self):
        errors = validate_sign_up_form({**VALID_SIGN_UP, "phone": 8012345678})
        assert errors == ["Field must be text: phone"]

    def test_non_text_password_is_rejected(self):
        errors = validate_sign_up_form({**VALID_SIGN_UP, "password": 12345678})
        assert errors == ["Field must be text: password"]

    @pytest.mark.parametrize("role", [["vendor"], 1, None])
    def test_non_text_role_is_rejected(self, role):
        errors = validate_sign_up_form({**VALID_SIGN_UP, "role": role})
        assert len(errors) == 1
        assert errors[0].startswith("Role must be one of")

    def test_role_defaults_to_customer(self):
        form = dict(VALID_SIGN_UP)
        del form["role"]
        assert validate_sign_up_form(form) == []


class TestSignIn:

    def test_sign_in_success_emits_event(self, use_case, auth_service, notices):
        auth_service.sign_in_with_password.return_value = MOCK_SESSION
        listener = Mock()
        use_case.on_auth_state_change(listener)

        session = use_case.sign_in("ada@example.com", "secret123")

        assert session is MOCK_SESSION
        auth_service.sign_in_with_password.assert_called_once_with("ada@example.com", "secret123")
        listener.assert_called_once_with(SIGNED_IN, MOCK_SESSION)
        assert notices.drain() == [
            {"level": "success", "message": "Welcome back! You have successfully signed in."}
        ]

    def test_sign_in_failure_shows_platform_message(self, use_case, auth_service, notices):
        auth_service.sign_in_with_password.side_effect = AuthenticationError("Invalid login credentials")
        listener = Mock()
        use_case.on_auth_state_change(listener)

        with pytest.raises(AuthenticationError):
            use_case.sign_in("ada@example.com", "bad")

        listener.assert_not_called()
        assert notices.drain() == [{"level": "error", "message": "Invalid login credentials"}]

    def test_unsubscribed_listener_is_not_called(self, use_case, auth_service):
        auth_service.sign_in_with_password.return_value = MOCK_SESSION
        listener = Mock()
        subscription = use_case.on_auth_state_change(listener)
        subscription.unsubscribe()

        use_case.sign_in("ada@example.com", "secret123")

        listener.assert_not_called()

    def test_failing_listener_does_not_break_sign_in(self, use_case, auth_service):
        auth_service.sign_in_with_password.return_value = MOCK_SESSION
        use_case.on_auth_state_change(Mock(side_effect=RuntimeError("ui gone")))

        assert use_case.sign_in("ada@example.com", "secret123") is MOCK_SESSION


class TestSignUp:

    def test_sign_up_registers_role_and_profile(self, use_case, auth_service, role_repository, notices):
        auth_service.sign_up.return_value = {"user_id": "user-9", "session": None}

        session = use_case.sign_up(VALID_SIGN_UP)

        assert session is None
        auth_service.sign_up.assert_called_once_with(
            "ada@example.com",
            "secret123",
            {"full_name": "Ada Obi", "phone": "+234 800 000 0000", "redirect_to": "https://jiffy.ng/"},
        )
        role_repository.insert_role.assert_called_once_with("user-9", Role.VENDOR)
        assert notices.drain() == [
            {"level": "success", "message": "Account created! Welcome to Jiffy NG as a vendor!"}
        ]

    def test_sign_up_with_autoconfirm_emits_signed_in(self, use_case, auth_service):
        auth_service.sign_up.return_value = {"user_id": "user-1", "session": MOCK_SESSION}
        listener = Mock()
        use_case.on_auth_state_change(listener)

        assert use_case.sign_up(VALID_SIGN_UP) is MOCK_SESSION
        listener.assert_called_once_with(SIGNED_IN, MOCK_SESSION)

    def test_sign_up_invalid_form_never_calls_platform(self, use_case, auth_service, notices):
        with pytest.raises(ValidationError) as exc_info:
            use_case.sign_up({**VALID_SIGN_UP, "password": "123"})

        auth_service.sign_up.assert_not_called()
        assert "password" not in exc_info.value.form
        assert notices.drain()[0]["message"] == "Password must be at least 6 characters"

    def test_sign_up_non_text_field_is_a_notice(self, use_case, auth_service, notices):
        with pytest.raises(ValidationError) as exc_info:
            use_case.sign_up({**VALID_SIGN_UP, "phone": 8012345678})

        auth_service.sign_up.assert_not_called()
        assert exc_info.value.errors == ["Field must be text: phone"]
        assert notices.drain() == [{"level": "error", "message": "Field must be text: phone"}]

    def test_sign_up_role_insert_failure(self, use_case, auth_service, role_repository, notices):
        auth_service.sign_up.return_value = {"user_id": "user-9", "session": None}
        role_repository.insert_role.side_effect = DataAccessError("Database error during role insertion.")

        with pytest.raises(AuthenticationError) as exc_info:
            use_case.sign_up(VALID_SIGN_UP)

        assert exc_info.value.notice == "Database error during role insertion."
        assert notices.drain()[0]["level"] == "error"

    def test_sign_up_platform_error(self, use_case, auth_service, role_repository):
        auth_service.sign_up.side_effect = AuthenticationError("User already registered")

        with pytest.raises(AuthenticationError):
            use_case.sign_up(VALID_SIGN_UP)

        role_repository.insert_role.assert_not_called()


class TestSignOutAndLanding:

    def test_sign_out_revokes_and_redirects(self, use_case, auth_service):
        listener = Mock()
        use_case.on_auth_state_change(listener)

        assert use_case.sign_out(MOCK_SESSION) == "/auth"
        auth_service.sign_out.assert_called_once_with(MOCK_SESSION)
        listener.assert_called_once_with(SIGNED_OUT, None)

    def test_sign_out_tolerates_revocation_failure(self, use_case, auth_service):
        auth_service.sign_out.side_effect = AuthenticationError("token expired")
        assert use_case.sign_out(MOCK_SESSION) == "/auth"

    def test_landing_without_session(self, use_case):
        assert use_case.landing_for(None) == "/auth"

    @pytest.mark.parametrize("role, path", [
        (Role.CUSTOMER, "/customer"),
        (Role.VENDOR, "/vendor"),
        (Role.RIDER, "/rider"),
    ])
    def test_landing_by_role(self, use_case, role_repository, role, path):
        role_repository.get_role.return_value = role
        assert use_case.landing_for(MOCK_SESSION) == path

    def test_landing_without_role_is_denied(self, use_case, role_repository):
        role_repository.get_role.return_value = None
        with pytest.raises(AccessDenied):
            use_case.landing_for(MOCK_SESSION)
