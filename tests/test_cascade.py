"""Deleting a user or a device removes everything it owns."""

import unittest

from app.core.security import hash_password
from app.models import Device, PasswordHistory, PMLog, PMLogTask, QRToken, RefreshToken, User
from app.services import credentials, devices, pm_logs, qr_tokens, session_tokens
from app.services.password_policy import record_password

from support import TEST_ROUNDS, add_device, add_user, make_database, make_settings


class CascadeTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.database = make_database(self.settings)
        self.db = self.database.session()
        self.admin = add_user(self.db, username="root", role="admin")
        self.user = add_user(self.db)
        self.device = add_device(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()

    def _count(self, model, **filters) -> int:
        return self.db.query(model).filter_by(**filters).count()


class TestUserCascade(CascadeTestCase):
    def test_user_delete_removes_history_sessions_and_qr_tokens(self) -> None:
        record_password(self.db, self.user.id, hash_password("Old-Passw0rd", rounds=TEST_ROUNDS))
        self.db.commit()
        session_tokens.issue_refresh_token(self.db, self.settings, self.user.id)
        qr_tokens.generate(self.db, self.settings, self.device.id, self.user.id)
        admin_token = qr_tokens.generate(self.db, self.settings, self.device.id, self.admin.id)

        credentials.delete_user(self.db, self.user.id, self.admin.id)

        self.assertEqual(self._count(User, id=self.user.id), 0)
        self.assertEqual(self._count(PasswordHistory, user_id=self.user.id), 0)
        self.assertEqual(self._count(RefreshToken, user_id=self.user.id), 0)
        self.assertEqual(self._count(QRToken, generated_by=self.user.id), 0)
        # Other users' tokens for the same device are untouched.
        self.assertEqual([t.token for t in self.db.query(QRToken).all()], [admin_token.token])


class TestDeviceCascade(CascadeTestCase):
    def test_device_delete_removes_logs_tasks_and_qr_tokens(self) -> None:
        log = pm_logs.create_log(
            self.db,
            self.device.id,
            {"date": "2024-03-01", "performed_by": "tech"},
            [
                {"task_description": "Check battery", "maintenance_type": "Electrical"},
                {"task_description": "Clean housing", "maintenance_type": "Physical"},
            ],
        )
        qr_tokens.generate(self.db, self.settings, self.device.id, self.user.id)
        other = add_device(self.db, serial="SN-OTHER", code="DEV-OTHER")
        qr_tokens.generate(self.db, self.settings, other.id, self.user.id)

        devices.delete_device(self.db, self.device.id)

        self.assertEqual(self._count(Device, id=self.device.id), 0)
        self.assertEqual(self._count(PMLog, device_id=self.device.id), 0)
        self.assertEqual(self._count(PMLogTask, pm_log_id=log.id), 0)
        self.assertEqual(self._count(QRToken, device_id=self.device.id), 0)
        self.assertEqual(self._count(QRToken, device_id=other.id), 1)
        # Deleting a device never deletes the user who generated its tokens.
        self.assertEqual(self._count(User, id=self.user.id), 1)


if __name__ == "__main__":
    unittest.main()
