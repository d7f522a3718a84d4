"""Tests for app.services.session_tokens: login, refresh, revoke and expiry sweeps."""

import unittest
from datetime import timedelta
from unittest.mock import patch

from app.core.errors import AppError, ErrorCode
from app.core.security import TokenStatus, digest_token, verify_access_token
from app.models import RefreshToken
from app.services import session_tokens
from app.utils.datetime_utils import utc_now

from support import STRONG_PASSWORD, add_user, make_database, make_settings


class SessionTokenTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.database = make_database(self.settings)
        self.db = self.database.session()
        self.user = add_user(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()

    def _expire(self, raw_token: str) -> None:
        self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == digest_token(raw_token)
        ).update({RefreshToken.expires_at: utc_now() - timedelta(minutes=1)})
        self.db.commit()

    def _token_count(self) -> int:
        return self.db.query(RefreshToken).count()


class TestLogin(SessionTokenTestCase):
    def test_success_issues_both_tokens(self) -> None:
        result = session_tokens.login(self.db, self.settings, "alice", STRONG_PASSWORD)
        self.assertEqual(result.user.id, self.user.id)
        claims = verify_access_token(result.access_token, self.settings).claims
        self.assertEqual(claims["username"], "alice")
        self.assertEqual(len(result.refresh_token), self.settings.REFRESH_TOKEN_BYTES * 2)
        self.assertEqual(self._token_count(), 1)

    def test_refresh_token_stored_as_digest(self) -> None:
        result = session_tokens.login(self.db, self.settings, "alice", STRONG_PASSWORD)
        stored = self.db.query(RefreshToken).one()
        self.assertEqual(stored.token_hash, digest_token(result.refresh_token))
        self.assertNotEqual(stored.token_hash, result.refresh_token)

    def test_unknown_user_and_wrong_password_are_indistinguishable(self) -> None:
        errors = []
        for username, password in (("nobody", STRONG_PASSWORD), ("alice", "Wr0ng!Password")):
            with self.assertRaises(AppError) as ctx:
                session_tokens.login(self.db, self.settings, username, password)
            errors.append((ctx.exception.code, ctx.exception.status_code, ctx.exception.message))
        self.assertEqual(errors[0], errors[1])
        self.assertEqual(errors[0][0], ErrorCode.INVALID_CREDENTIALS)
        self.assertEqual(self._token_count(), 0)

    def test_login_sweeps_expired_tokens(self) -> None:
        old = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        self._expire(old)
        session_tokens.login(self.db, self.settings, "alice", STRONG_PASSWORD)
        self.assertEqual(self._token_count(), 1)

    def test_multiple_sessions_coexist(self) -> None:
        first = session_tokens.login(self.db, self.settings, "alice", STRONG_PASSWORD)
        second = session_tokens.login(self.db, self.settings, "alice", STRONG_PASSWORD)
        self.assertNotEqual(first.refresh_token, second.refresh_token)
        self.assertEqual(self._token_count(), 2)


class TestRefresh(SessionTokenTestCase):
    def test_refresh_is_repeatable_and_not_rotated(self) -> None:
        raw = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        first = session_tokens.refresh(self.db, self.settings, raw)
        second = session_tokens.refresh(self.db, self.settings, raw)
        for token in (first, second):
            self.assertIs(verify_access_token(token, self.settings).status, TokenStatus.VALID)
        self.assertEqual(self._token_count(), 1)

    def test_unknown_token(self) -> None:
        with self.assertRaises(AppError) as ctx:
            session_tokens.refresh(self.db, self.settings, "f" * 80)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_REFRESH_TOKEN)
        self.assertEqual(ctx.exception.status_code, 403)

    def test_expired_token_is_reported_then_gone(self) -> None:
        raw = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        self._expire(raw)

        with self.assertRaises(AppError) as ctx:
            session_tokens.refresh(self.db, self.settings, raw)
        self.assertEqual(ctx.exception.code, ErrorCode.REFRESH_TOKEN_EXPIRED)
        self.assertEqual(self._token_count(), 0)

        with self.assertRaises(AppError) as ctx:
            session_tokens.refresh(self.db, self.settings, raw)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_REFRESH_TOKEN)

    def test_refresh_sweeps_other_expired_tokens(self) -> None:
        stale = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        live = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        self._expire(stale)
        session_tokens.refresh(self.db, self.settings, live)
        remaining = [r.token_hash for r in self.db.query(RefreshToken).all()]
        self.assertEqual(remaining, [digest_token(live)])

    def test_owner_missing(self) -> None:
        raw = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        with patch("app.services.credentials.get_user", return_value=None):
            with self.assertRaises(AppError) as ctx:
                session_tokens.refresh(self.db, self.settings, raw)
        self.assertEqual(ctx.exception.code, ErrorCode.USER_NOT_FOUND)
        self.assertEqual(ctx.exception.status_code, 404)


class TestRevoke(SessionTokenTestCase):
    def test_revoke_is_idempotent(self) -> None:
        raw = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        self.assertTrue(session_tokens.revoke(self.db, raw))
        self.assertFalse(session_tokens.revoke(self.db, raw))
        with self.assertRaises(AppError) as ctx:
            session_tokens.refresh(self.db, self.settings, raw)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_REFRESH_TOKEN)

    def test_revoke_only_touches_one_session(self) -> None:
        keep = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        drop = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        session_tokens.revoke(self.db, drop)
        self.assertTrue(session_tokens.refresh(self.db, self.settings, keep))


class TestSweep(SessionTokenTestCase):
    def test_sweep_counts_only_expired(self) -> None:
        expired = session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        self._expire(expired)
        self.assertEqual(session_tokens.sweep_expired(self.db), 1)
        self.assertEqual(session_tokens.sweep_expired(self.db), 0)
        self.assertEqual(self._token_count(), 1)


if __name__ == "__main__":
    unittest.main()
