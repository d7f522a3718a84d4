"""Tests for app.services.password_policy: strength rules, reuse detection, bounded history."""

import unittest

from app.core.errors import ErrorCode, ValidationFailed
from app.core.security import hash_password
from app.models import PasswordHistory
from app.services.password_policy import (
    ensure_strong,
    is_reused,
    recent_hashes,
    record_password,
    validate_strength,
)

from support import TEST_ROUNDS, add_user, make_database


class TestValidateStrength(unittest.TestCase):
    """Pure strength checks."""

    def test_short_password_fails_length_and_upper(self) -> None:
        result = validate_strength("short1!")
        self.assertFalse(result.min_length)
        self.assertFalse(result.has_upper)
        self.assertTrue(result.has_lower)
        self.assertTrue(result.has_digit)
        self.assertTrue(result.has_special)
        self.assertFalse(result.is_valid)

    def test_missing_upper_and_special(self) -> None:
        result = validate_strength("longenough1")
        self.assertTrue(result.min_length)
        self.assertFalse(result.has_upper)
        self.assertFalse(result.has_special)
        self.assertFalse(result.is_valid)

    def test_all_requirements_met(self) -> None:
        result = validate_strength("LongEnough1!")
        self.assertTrue(result.is_valid)
        self.assertEqual(result.unmet(), [])

    def test_exactly_eight_characters_is_long_enough(self) -> None:
        self.assertTrue(validate_strength("Abcdef1!").min_length)
        self.assertFalse(validate_strength("Abcde1!").min_length)

    def test_camel_case_on_the_wire(self) -> None:
        dumped = validate_strength("LongEnough1!").model_dump(by_alias=True)
        self.assertEqual(
            set(dumped),
            {"minLength", "hasUpper", "hasLower", "hasDigit", "hasSpecial", "isValid"},
        )


class TestEnsureStrong(unittest.TestCase):
    def test_weak_password_raises_with_unmet_list(self) -> None:
        with self.assertRaises(ValidationFailed) as ctx:
            ensure_strong("longenough1")
        self.assertEqual(ctx.exception.code, ErrorCode.WEAK_PASSWORD)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertIn("an uppercase letter", ctx.exception.message)
        self.assertFalse(ctx.exception.details["has_upper"])

    def test_strong_password_returns_report(self) -> None:
        self.assertTrue(ensure_strong("LongEnough1!").is_valid)


class TestPasswordHistory(unittest.TestCase):
    """Reuse detection and pruning against a real (in-memory) database."""

    def setUp(self) -> None:
        self.database = make_database()
        self.db = self.database.session()
        self.user = add_user(self.db)

    def tearDown(self) -> None:
        self.db.close()
        self.database.dispose()

    def _record(self, password: str, limit: int) -> int:
        pruned = record_password(
            self.db, self.user.id, hash_password(password, rounds=TEST_ROUNDS), limit=limit
        )
        self.db.commit()
        return pruned

    def test_empty_history_is_never_reuse(self) -> None:
        self.assertFalse(is_reused(self.db, self.user.id, "Anything1!"))

    def test_recorded_password_is_reused(self) -> None:
        self._record("Old-Passw0rd", limit=100)
        self.assertTrue(is_reused(self.db, self.user.id, "Old-Passw0rd"))
        self.assertFalse(is_reused(self.db, self.user.id, "New-Passw0rd"))

    def test_history_is_bounded_and_oldest_pruned(self) -> None:
        passwords = [f"Passw0rd-{i}!" for i in range(5)]
        pruned_counts = [self._record(p, limit=3) for p in passwords]

        self.assertEqual(pruned_counts, [0, 0, 0, 1, 1])
        rows = self.db.query(PasswordHistory).filter_by(user_id=self.user.id).count()
        self.assertEqual(rows, 3)
        # Pruned entries no longer block reuse.
        self.assertFalse(is_reused(self.db, self.user.id, passwords[0], limit=3))
        self.assertFalse(is_reused(self.db, self.user.id, passwords[1], limit=3))
        self.assertTrue(is_reused(self.db, self.user.id, passwords[4], limit=3))

    def test_recent_hashes_newest_first(self) -> None:
        first = hash_password("First-Passw0rd", rounds=TEST_ROUNDS)
        second = hash_password("Second-Passw0rd", rounds=TEST_ROUNDS)
        record_password(self.db, self.user.id, first)
        record_password(self.db, self.user.id, second)
        self.db.commit()
        self.assertEqual(recent_hashes(self.db, self.user.id), [second, first])

    def test_history_is_per_user(self) -> None:
        other = add_user(self.db, username="bob")
        self._record("Shared-Passw0rd", limit=100)
        self.assertFalse(is_reused(self.db, other.id, "Shared-Passw0rd"))


if __name__ == "__main__":
    unittest.main()
