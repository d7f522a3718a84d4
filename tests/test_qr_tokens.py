"""Tests for app.services.qr_tokens: generation, validation, revocation and cleanup."""

import unittest

from app.core.errors import AppError, ErrorCode
from app.models import QRToken
from app.services import qr_tokens
from app.services.authorization import Identity

from support import add_device, add_user, hours_ago, make_database, make_settings


class QRTokenTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.database = make_database(self.settings)
        self.db = self.database.session()
        self.owner = add_user(self.db, username="tech")
        self.other = add_user(self.db, username="other")
        self.admin = add_user(self.db, username="root", role="admin")
        self.device = add_device(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()

    def _identity(self, user) -> Identity:
        return Identity(user_id=user.id, username=user.username, role=user.role)

    def _generate(self, **kwargs) -> qr_tokens.GeneratedQRToken:
        return qr_tokens.generate(self.db, self.settings, self.device.id, self.owner.id, **kwargs)

    def _expire(self, token: str) -> None:
        self.db.query(QRToken).filter(QRToken.token == token).update(
            {QRToken.expires_at: hours_ago(1)}
        )
        self.db.commit()


class TestGenerate(QRTokenTestCase):
    def test_default_ttl_and_url(self) -> None:
        generated = self._generate()
        self.assertEqual(generated.expires_in_hours, 24)
        self.assertEqual(len(generated.token), self.settings.QR_TOKEN_BYTES * 2)
        self.assertEqual(
            generated.url, f"http://testserver/pm-history?token={generated.token}"
        )
        self.assertEqual(generated.device_name, "Infusion Pump")

    def test_long_ttl_is_not_capped(self) -> None:
        generated = self._generate(ttl_hours=24 * 365 * 5)
        self.assertEqual(generated.expires_in_hours, 24 * 365 * 5)

    def test_unrepresentable_ttl_is_a_client_error(self) -> None:
        with self.assertRaises(AppError) as ctx:
            self._generate(ttl_hours=100_000_000)
        self.assertEqual(ctx.exception.code, ErrorCode.VALIDATION_ERROR)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(self.db.query(QRToken).count(), 0)

    def test_unknown_device(self) -> None:
        with self.assertRaises(AppError) as ctx:
            qr_tokens.generate(self.db, self.settings, 9999, self.owner.id)
        self.assertEqual(ctx.exception.code, ErrorCode.DEVICE_NOT_FOUND)

    def test_generate_sweeps_device_expired_tokens(self) -> None:
        stale = self._generate()
        self._expire(stale.token)
        fresh = self._generate()
        tokens = [t.token for t in self.db.query(QRToken).all()]
        self.assertEqual(tokens, [fresh.token])


class TestValidate(QRTokenTestCase):
    def test_each_validation_counts(self) -> None:
        generated = self._generate()
        first = qr_tokens.validate(self.db, generated.token)
        second = qr_tokens.validate(self.db, generated.token)
        self.assertEqual(first.device_id, self.device.id)
        self.assertEqual((first.access_count, second.access_count), (1, 2))
        record = self.db.query(QRToken).filter_by(token=generated.token).one()
        self.assertIsNotNone(record.last_accessed_at)

    def test_unknown_token(self) -> None:
        with self.assertRaises(AppError) as ctx:
            qr_tokens.validate(self.db, "0" * 64)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_QR_TOKEN)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_expired_token_is_rejected_and_kept(self) -> None:
        generated = self._generate()
        self._expire(generated.token)
        with self.assertRaises(AppError) as ctx:
            qr_tokens.validate(self.db, generated.token)
        self.assertEqual(ctx.exception.code, ErrorCode.TOKEN_EXPIRED)
        self.assertEqual(ctx.exception.status_code, 403)
        record = self.db.query(QRToken).filter_by(token=generated.token).one()
        self.assertEqual(record.access_count, 0)


class TestRevoke(QRTokenTestCase):
    def test_generator_can_revoke(self) -> None:
        generated = self._generate()
        qr_tokens.revoke(self.db, generated.token, self._identity(self.owner))
        with self.assertRaises(AppError) as ctx:
            qr_tokens.validate(self.db, generated.token)
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_QR_TOKEN)

    def test_admin_can_revoke(self) -> None:
        generated = self._generate()
        qr_tokens.revoke(self.db, generated.token, self._identity(self.admin))
        self.assertEqual(self.db.query(QRToken).count(), 0)

    def test_other_user_is_forbidden(self) -> None:
        generated = self._generate()
        with self.assertRaises(AppError) as ctx:
            qr_tokens.revoke(self.db, generated.token, self._identity(self.other))
        self.assertEqual(ctx.exception.code, ErrorCode.FORBIDDEN)
        self.assertEqual(self.db.query(QRToken).count(), 1)

    def test_unknown_token(self) -> None:
        with self.assertRaises(AppError) as ctx:
            qr_tokens.revoke(self.db, "nope", self._identity(self.admin))
        self.assertEqual(ctx.exception.code, ErrorCode.TOKEN_NOT_FOUND)


class TestCleanupAndListing(QRTokenTestCase):
    def test_cleanup_removes_only_expired(self) -> None:
        expired = self._generate()
        live = self._generate()
        self._expire(expired.token)
        self.assertEqual(qr_tokens.cleanup_expired(self.db), 1)
        self.assertEqual(qr_tokens.cleanup_expired(self.db), 0)
        remaining = [t.token for t in qr_tokens.list_for_device(self.db, self.device.id)]
        self.assertEqual(remaining, [live.token])

    def test_listing_includes_generator(self) -> None:
        self._generate()
        records = qr_tokens.list_for_device(self.db, self.device.id)
        self.assertEqual(records[0].generated_by_user.username, "tech")


if __name__ == "__main__":
    unittest.main()
