"""Tests for fleetdesk.services.auth: login, register, verify_token and the authorization gate."""

import logging
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from fleetdesk.core.config import get_settings
from fleetdesk.core.security import create_access_token, dummy_password_hash
from fleetdesk.models.user import Role
from fleetdesk.services.auth import AuthService, parse_bearer, role_satisfies
from fleetdesk.services.errors import (
    DuplicateUserError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidTokenError,
)
from fleetdesk.services.user_store import UserStore
from tests.helpers import TEST_PASSWORD, InMemoryDatabase


class TestParseBearer(unittest.TestCase):
    def test_extracts_token(self) -> None:
        self.assertEqual(parse_bearer("Bearer abc.def.ghi"), "abc.def.ghi")

    def test_scheme_is_case_insensitive(self) -> None:
        self.assertEqual(parse_bearer("bearer abc"), "abc")

    def test_missing_header(self) -> None:
        for value in (None, "", "   "):
            with self.subTest(value=value):
                with self.assertRaises(InvalidTokenError) as ctx:
                    parse_bearer(value)
                self.assertEqual(ctx.exception.reason, "missing_header")

    def test_malformed_header(self) -> None:
        for value in ("abc.def.ghi", "Basic dXNlcjpwYXNz", "Bearer", "Bearer a b", "Token abc"):
            with self.subTest(value=value):
                with self.assertRaises(InvalidTokenError) as ctx:
                    parse_bearer(value)
                self.assertEqual(ctx.exception.reason, "malformed_header")


class TestRoleSatisfies(unittest.TestCase):
    def test_matrix(self) -> None:
        self.assertTrue(role_satisfies(Role.USER, None))
        self.assertTrue(role_satisfies(Role.ADMIN, None))
        self.assertTrue(role_satisfies(Role.USER, Role.USER))
        self.assertTrue(role_satisfies(Role.ADMIN, Role.USER))
        self.assertTrue(role_satisfies(Role.ADMIN, Role.ADMIN))
        self.assertFalse(role_satisfies(Role.USER, Role.ADMIN))


class AuthServiceTestCase(unittest.IsolatedAsyncioTestCase):
    """Service wired to a real in-memory store; each test gets a fresh session."""

    async def asyncSetUp(self) -> None:
        self.settings = get_settings()
        self.db = InMemoryDatabase()
        await self.db.create_all()
        self.session = self.db.sessionmaker()
        self.store = UserStore(self.session, timeout=5)
        self.service = AuthService(self.store, self.settings)

    async def asyncTearDown(self) -> None:
        await self.session.close()
        await self.db.dispose()

    def service_at(self, now: datetime) -> AuthService:
        return AuthService(self.store, self.settings, clock=lambda: now)


class TestRegisterAndLogin(AuthServiceTestCase):
    async def test_register_then_login_round_trip(self) -> None:
        user = await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        result = await self.service.login("novak", TEST_PASSWORD)
        self.assertEqual(result.user.id, user.id)
        verified = await self.service.verify_token(result.token)
        self.assertEqual(verified.id, user.id)

    async def test_register_stores_hash_not_plaintext(self) -> None:
        user = await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        self.assertNotEqual(user.password_hash, TEST_PASSWORD)
        self.assertTrue(user.password_hash.startswith("$2"))

    async def test_register_always_creates_user_role(self) -> None:
        user = await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        self.assertIs(user.role, Role.USER)

    async def test_register_duplicate_username(self) -> None:
        await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        with self.assertRaises(DuplicateUserError):
            await self.service.register("novak", "another@example.com", TEST_PASSWORD)

    async def test_register_duplicate_email(self) -> None:
        await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        with self.assertRaises(DuplicateUserError):
            await self.service.register("svoboda", "novak@example.com", TEST_PASSWORD)

    async def test_concurrent_registration_race_leaves_one_user(self) -> None:
        await self.service.register("alice", "alice@example.com", TEST_PASSWORD)
        # Second request passed its pre-check before the first committed.
        with patch.object(
            self.store, "exists_username_or_email", AsyncMock(return_value=False)
        ):
            with self.assertRaises(DuplicateUserError):
                await self.service.register("alice", "alice2@example.com", TEST_PASSWORD)
        self.assertEqual(await self.db.count_users("alice"), 1)

    async def test_hashing_failure_is_internal_error(self) -> None:
        with patch(
            "fleetdesk.services.auth.hash_password",
            side_effect=ValueError("entropy source unavailable"),
        ):
            with self.assertRaises(InternalError):
                await self.service.register("novak", "novak@example.com", TEST_PASSWORD)
        self.assertEqual(await self.db.count_users(), 0)

    async def test_login_wrong_password(self) -> None:
        await self.db.add_user("novak")
        with self.assertRaises(InvalidCredentialsError):
            await self.service.login("novak", "wrong-password")

    async def test_login_unknown_user(self) -> None:
        with self.assertRaises(InvalidCredentialsError):
            await self.service.login("nobody", TEST_PASSWORD)

    async def test_login_failures_have_identical_messages(self) -> None:
        await self.db.add_user("novak")
        with self.assertRaises(InvalidCredentialsError) as wrong_password:
            await self.service.login("novak", "wrong-password")
        with self.assertRaises(InvalidCredentialsError) as unknown_user:
            await self.service.login("nobody", "wrong-password")
        self.assertEqual(wrong_password.exception.message, unknown_user.exception.message)
        self.assertEqual(wrong_password.exception.status_code, unknown_user.exception.status_code)

    async def test_unknown_user_still_runs_bcrypt(self) -> None:
        with patch(
            "fleetdesk.services.auth.verify_password", return_value=False
        ) as mock_verify:
            with self.assertRaises(InvalidCredentialsError):
                await self.service.login("nobody", "whatever-password")
        mock_verify.assert_called_once_with(
            "whatever-password", dummy_password_hash(self.settings.BCRYPT_ROUNDS)
        )

    async def test_login_token_carries_identity(self) -> None:
        user = await self.db.add_user("dispatch", role=Role.ADMIN)
        result = await self.service.login("dispatch", TEST_PASSWORD)
        self.assertEqual(result.user.id, user.id)
        self.assertIs(result.user.role, Role.ADMIN)


class TestVerifyToken(AuthServiceTestCase):
    async def test_valid_six_days_later_invalid_eight_days_later(self) -> None:
        user = await self.db.add_user("novak")
        issued_at = datetime.now(UTC)
        issuer = self.service_at(issued_at)
        result = await issuer.login("novak", TEST_PASSWORD)

        verified = await self.service_at(issued_at + timedelta(days=6)).verify_token(result.token)
        self.assertEqual(verified.id, user.id)

        with self.assertRaises(InvalidTokenError) as ctx:
            await self.service_at(issued_at + timedelta(days=8)).verify_token(result.token)
        self.assertEqual(ctx.exception.reason, "expired")

    async def test_failure_reasons_distinct_but_message_same(self) -> None:
        user = await self.db.add_user("novak")
        good = create_access_token(user.id, user.username, user.role, self.settings)
        expired = create_access_token(
            user.id,
            user.username,
            user.role,
            self.settings,
            now=datetime.now(UTC) - timedelta(days=8),
        )
        header, payload, signature = good.split(".")
        tampered = f"{header}.{payload}.{signature[:-4]}AAAA"

        reasons = {}
        messages = set()
        for label, token in (("garbage", "garbage"), ("tampered", tampered), ("expired", expired)):
            with self.assertRaises(InvalidTokenError) as ctx:
                await self.service.verify_token(token)
            reasons[label] = ctx.exception.reason
            messages.add(ctx.exception.message)

        self.assertEqual(
            reasons,
            {"garbage": "malformed", "tampered": "bad_signature", "expired": "expired"},
        )
        self.assertEqual(len(messages), 1)

    async def test_deleted_user_token_is_invalid(self) -> None:
        user = await self.db.add_user("novak")
        token = create_access_token(user.id, user.username, user.role, self.settings)
        await self.db.delete_user(user.id)
        with self.assertRaises(InvalidTokenError) as ctx:
            await self.service.verify_token(token)
        self.assertEqual(ctx.exception.reason, "unknown_user")

    async def test_returns_live_role_not_token_role(self) -> None:
        user = await self.db.add_user("novak", role=Role.ADMIN)
        token = create_access_token(user.id, user.username, Role.ADMIN, self.settings)
        await self.db.set_role(user.id, Role.USER)
        verified = await self.service.verify_token(token)
        self.assertIs(verified.role, Role.USER)


class TestAuthLogging(AuthServiceTestCase):
    """Failure reasons must be readable in plain formatted log lines, not only in extras."""

    FORMAT = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    def formatted(self, records: list[logging.LogRecord]) -> str:
        return "\n".join(self.FORMAT.format(r) for r in records)

    async def test_token_failure_reasons_in_log_lines(self) -> None:
        user = await self.db.add_user("novak")
        good = create_access_token(user.id, user.username, user.role, self.settings)
        expired = create_access_token(
            user.id,
            user.username,
            user.role,
            self.settings,
            now=datetime.now(UTC) - timedelta(days=8),
        )
        header, payload, signature = good.split(".")
        tampered = f"{header}.{payload}.{signature[:-4]}AAAA"

        for token, reason in (
            ("garbage", "malformed"),
            (tampered, "bad_signature"),
            (expired, "expired"),
        ):
            with self.subTest(reason=reason):
                with self.assertLogs("fleetdesk.services.auth", level="INFO") as logs:
                    with self.assertRaises(InvalidTokenError):
                        await self.service.verify_token(token)
                self.assertIn(f"Token rejected: {reason}", self.formatted(logs.records))

    async def test_missing_header_reason_in_log_line(self) -> None:
        with self.assertLogs("fleetdesk.services.auth", level="INFO") as logs:
            with self.assertRaises(InvalidTokenError):
                await self.service.authorize(None)
        self.assertIn("Token rejected: missing_header", self.formatted(logs.records))

    async def test_login_failure_reasons_in_log_lines(self) -> None:
        await self.db.add_user("novak")
        with self.assertLogs("fleetdesk.services.auth", level="WARNING") as logs:
            with self.assertRaises(InvalidCredentialsError):
                await self.service.login("nobody", "wrong-password")
            with self.assertRaises(InvalidCredentialsError):
                await self.service.login("novak", "wrong-password")
        out = self.formatted(logs.records)
        self.assertIn("Login failed: unknown_user", out)
        self.assertIn("Login failed: bad_password", out)
        self.assertNotIn("wrong-password", out)


class TestAuthorize(AuthServiceTestCase):
    async def test_authenticated_access(self) -> None:
        user = await self.db.add_user("novak")
        token = create_access_token(user.id, user.username, user.role, self.settings)
        current = await self.service.authorize(f"Bearer {token}")
        self.assertEqual(current.id, user.id)
        self.assertEqual(current.username, "novak")
        self.assertIs(current.role, Role.USER)

    async def test_no_header_is_unauthorized(self) -> None:
        with self.assertRaises(InvalidTokenError):
            await self.service.authorize(None, required_role=Role.ADMIN)

    async def test_user_on_admin_endpoint_is_forbidden(self) -> None:
        user = await self.db.add_user("novak")
        token = create_access_token(user.id, user.username, user.role, self.settings)
        with self.assertRaises(ForbiddenError):
            await self.service.authorize(f"Bearer {token}", required_role=Role.ADMIN)

    async def test_admin_on_admin_endpoint(self) -> None:
        user = await self.db.add_user("dispatch", role=Role.ADMIN)
        token = create_access_token(user.id, user.username, user.role, self.settings)
        current = await self.service.authorize(f"Bearer {token}", required_role=Role.ADMIN)
        self.assertIs(current.role, Role.ADMIN)

    async def test_promoted_user_gets_admin_with_old_token(self) -> None:
        user = await self.db.add_user("novak")
        token = create_access_token(user.id, user.username, Role.USER, self.settings)
        await self.db.set_role(user.id, Role.ADMIN)
        current = await self.service.authorize(f"Bearer {token}", required_role=Role.ADMIN)
        self.assertIs(current.role, Role.ADMIN)

    async def test_demoted_admin_loses_admin_with_old_token(self) -> None:
        user = await self.db.add_user("dispatch", role=Role.ADMIN)
        token = create_access_token(user.id, user.username, Role.ADMIN, self.settings)
        await self.db.set_role(user.id, Role.USER)
        with self.assertRaises(ForbiddenError):
            await self.service.authorize(f"Bearer {token}", required_role=Role.ADMIN)


class TestAuthorizeFailsClosed(unittest.IsolatedAsyncioTestCase):
    """Store failures during the gate surface as InternalError, never as an authorized user."""

    async def test_store_failure_propagates(self) -> None:
        settings = get_settings()
        store = MagicMock()
        store.get_by_id = AsyncMock(side_effect=InternalError())
        service = AuthService(store, settings)
        token = create_access_token(1, "novak", Role.ADMIN, settings)
        with self.assertRaises(InternalError):
            await service.authorize(f"Bearer {token}", required_role=Role.ADMIN)

    async def test_bad_header_never_touches_store(self) -> None:
        store = MagicMock()
        store.get_by_id = AsyncMock()
        service = AuthService(store, get_settings())
        with self.assertRaises(InvalidTokenError):
            await service.authorize("Basic abc")
        store.get_by_id.assert_not_called()


if __name__ == "__main__":
    unittest.main()
