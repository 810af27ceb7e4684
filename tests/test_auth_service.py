"""Unit tests for app.services.auth.AuthService over an in-memory store."""

import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.api.deps import AuthContext
from app.core.errors import ConflictError, InvalidCredentialsError, ServiceUnavailableError
from app.core.security import decode_access_token
from app.models import Role, User
from app.schemas.auth import SignInRequest, SignUpRequest
from app.services.auth import SIGN_OUT_MESSAGE, AuthService
from app.services.user_store import UserStore
from tests.support import make_session_factory, settings_with


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session_factory()()
        self.store = UserStore(self.session)
        self.settings = settings_with()
        self.service = AuthService(self.store, self.settings)

    def tearDown(self) -> None:
        self.session.close()


class TestSignUp(AuthServiceTestCase):
    def test_creates_user_and_issues_token(self) -> None:
        result = self.service.sign_up(SignUpRequest(email="A@X.com", password="secret1"))
        self.assertEqual(result.user.email, "a@x.com")
        self.assertEqual(result.user.role, "user")
        self.assertNotEqual(result.user.password_hash, "secret1")
        self.assertEqual(result.expires_in, 3600)
        claims = decode_access_token(result.token, self.settings)
        self.assertEqual(claims.user_id, result.user.id)
        self.assertIs(claims.role, Role.USER)

    def test_duplicate_email_conflicts_without_new_record(self) -> None:
        self.service.sign_up(SignUpRequest(email="a@x.com", password="secret1"))
        with self.assertRaises(ConflictError):
            self.service.sign_up(SignUpRequest(email="A@x.COM", password="other-secret"))
        self.assertEqual(self.session.query(User).count(), 1)

    def test_guest_role_can_be_requested(self) -> None:
        result = self.service.sign_up(
            SignUpRequest(email="g@x.com", password="secret1", role=Role.GUEST)
        )
        self.assertEqual(result.user.role, "guest")


class TestSignIn(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.service.sign_up(SignUpRequest(email="a@x.com", password="secret1"))

    def test_valid_credentials(self) -> None:
        result = self.service.sign_in(SignInRequest(email="a@x.com", password="secret1"))
        self.assertEqual(result.user.email, "a@x.com")
        self.assertEqual(decode_access_token(result.token, self.settings).user_id, result.user.id)

    def test_email_is_case_insensitive(self) -> None:
        result = self.service.sign_in(SignInRequest(email="A@X.COM", password="secret1"))
        self.assertEqual(result.user.email, "a@x.com")

    def test_wrong_password_and_unknown_email_are_indistinguishable(self) -> None:
        with self.assertRaises(InvalidCredentialsError) as wrong_password:
            self.service.sign_in(SignInRequest(email="a@x.com", password="wrong"))
        with self.assertRaises(InvalidCredentialsError) as unknown_email:
            self.service.sign_in(SignInRequest(email="nobody@x.com", password="secret1"))
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)
        self.assertEqual(wrong_password.exception.status_code, unknown_email.exception.status_code)


class TestSignOut(AuthServiceTestCase):
    def test_is_stateless(self) -> None:
        message = self.service.sign_out(AuthContext(user_id=1, role=Role.USER))
        self.assertEqual(message, SIGN_OUT_MESSAGE)
        self.assertEqual(self.session.query(User).count(), 0)


class TestStoreUnavailable(unittest.TestCase):
    """Connection failures from the store surface as ServiceUnavailableError, not domain errors."""

    def test_sign_in_when_database_is_down(self) -> None:
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        service = AuthService(UserStore(session), settings_with())
        with self.assertRaises(ServiceUnavailableError):
            service.sign_in(SignInRequest(email="a@x.com", password="secret1"))
        session.rollback.assert_called_once()
