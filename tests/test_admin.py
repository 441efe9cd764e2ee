"""Tests for admin role management."""

from __future__ import annotations

import unittest

from tourneyhub.admin.services import AdminService
from tourneyhub.errors import AuthorizationError, NotFoundError, ValidationError
from tests.mock_utils import FirestoreTestCase


class SetRoleTestCase(FirestoreTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.add_user("root", role="admin")
        self.add_user("player", role="player")

    def test_admin_sets_role(self) -> None:
        result = AdminService.set_role(self.db, "root", "player", "organizer")

        self.assertEqual(result, {"uid": "player", "role": "organizer"})
        self.mocks["set_custom_user_claims"].assert_called_once_with(
            "player", {"role": "organizer"}
        )
        self.assertEqual(self.get_doc("users", "player")["role"], "organizer")
        (audit,) = self.stream("auditLogs")
        self.assertEqual(audit["action"], "role_updated")
        self.assertEqual(audit["oldValue"], {"role": "player"})
        self.assertEqual(audit["newValue"], {"role": "organizer"})

    def test_non_admin_cannot_set_roles(self) -> None:
        with self.assertRaises(AuthorizationError):
            AdminService.set_role(self.db, "player", "player", "admin")
        self.mocks["set_custom_user_claims"].assert_not_called()

    def test_invalid_role(self) -> None:
        with self.assertRaises(ValidationError):
            AdminService.set_role(self.db, "root", "player", "overlord")

    def test_missing_user(self) -> None:
        with self.assertRaises(NotFoundError):
            AdminService.set_role(self.db, "root", "ghost", "player")


if __name__ == "__main__":
    unittest.main()
