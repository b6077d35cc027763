"""Tests for the auth blueprint."""

import unittest
from unittest.mock import MagicMock, patch

from groupchat.sync.snapshot import Scope
from tests.helpers import TEST_PASSWORD, BaseTestCase


def sign_in_response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class AuthRoutesTestCase(BaseTestCase):
    def setUp(self):
        super().setUp()
        patchers = {
            "auth": patch("groupchat.auth.identity.auth"),
            "post": patch("groupchat.auth.identity.requests.post"),
        }
        for name, p in patchers.items():
            self.mocks[name] = p.start()
            self.addCleanup(p.stop)

    def test_login_page_loads(self):
        response = self.client.get("/auth/login")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Welcome Back", response.data)

    def test_index_is_the_login_page(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Welcome Back", response.data)

    def test_successful_registration(self):
        self.mocks["auth"].create_user.return_value = MagicMock(
            uid="alice-uid", email="alice@mail.com"
        )

        response = self.client.post(
            "/auth/register",
            data={
                "username": "Alice",
                "email": "alice@mail.com",
                "password": TEST_PASSWORD,
            },
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn("/group/", response.headers["Location"])
        user = self.db.collection("users").document("alice-uid").get().to_dict()
        self.assertEqual(user["username"], "alice")
        with self.client.session_transaction() as sess:
            self.assertEqual(sess["user_id"], "alice-uid")

        response = self.client.get("/group/")
        self.assertEqual(response.status_code, 200)
        self.assertIn(b"No groups yet.", response.data)

    def test_registration_with_taken_username(self):
        self.create_user("bob-uid", "alice")

        response = self.client.post(
            "/auth/register",
            data={
                "username": "alice",
                "email": "alice@mail.com",
                "password": TEST_PASSWORD,
            },
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Username already taken.", response.data)
        self.mocks["auth"].create_user.assert_not_called()

    def test_registration_form_validation(self):
        response = self.client.post(
            "/auth/register",
            data={"username": "al", "email": "nope", "password": "123"},
        )

        self.assertEqual(response.status_code, 200)
        self.mocks["auth"].create_user.assert_not_called()
        self.assertEqual(list(self.db.collection("users").stream()), [])

    def test_successful_login(self):
        self.create_user("alice-uid", "alice")
        self.mocks["post"].return_value = sign_in_response(
            200, {"localId": "alice-uid", "email": "alice@mail.com", "idToken": "t"}
        )

        response = self.client.post(
            "/auth/login", data={"username": "Alice", "password": TEST_PASSWORD}
        )

        self.assertEqual(response.status_code, 302)
        self.assertIn("/group/", response.headers["Location"])
        self.assertEqual(
            self.mocks["post"].call_args.kwargs["json"]["email"], "alice@mail.com"
        )

    def test_login_unknown_username(self):
        response = self.client.post(
            "/auth/login", data={"username": "ghost", "password": TEST_PASSWORD}
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"Username not found.", response.data)
        self.mocks["post"].assert_not_called()

    def test_login_wrong_password_shows_provider_message(self):
        self.create_user("alice-uid", "alice")
        self.mocks["post"].return_value = sign_in_response(
            400, {"error": {"message": "INVALID_LOGIN_CREDENTIALS"}}
        )

        response = self.client.post(
            "/auth/login", data={"username": "alice", "password": "wrong-pass"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn(b"INVALID_LOGIN_CREDENTIALS", response.data)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_signed_in_user_skips_login(self):
        self.create_user("alice-uid", "alice")
        self.login_as("alice-uid")

        response = self.client.get("/auth/login")

        self.assertEqual(response.status_code, 302)
        self.assertIn("/group/", response.headers["Location"])

    def test_logout_releases_live_queries(self):
        self.create_user("alice-uid", "alice")
        self.create_group("g1", "Trip", ["alice-uid", "bob-uid"])
        self.login_as("alice-uid")
        self.client.get("/group/")
        self.client.get("/group/g1")
        self.assertEqual(len(self.live.open_watches()), 2)

        response = self.client.get("/auth/logout", follow_redirects=True)

        self.assertIn(b"You have been logged out.", response.data)
        self.assertEqual(self.live.open_watches(), [])
        self.assertEqual(len(self.sync.screens), 0)
        self.assertEqual(
            self.live.watch(Scope.groups_for("alice-uid")).unsubscribe_calls, 1
        )

    def test_protected_page_redirects_to_login(self):
        response = self.client.get("/group/")
        self.assertEqual(response.status_code, 302)
        self.assertIn("/auth/login", response.headers["Location"])

    def test_session_for_deleted_user_is_cleared(self):
        self.login_as("missing-uid")

        response = self.client.get("/group/")

        self.assertEqual(response.status_code, 302)
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)

    def test_deleted_user_loses_live_queries(self):
        self.create_user("alice-uid", "alice")
        self.create_group("g1", "Trip", ["alice-uid", "bob-uid"])
        self.login_as("alice-uid")
        self.client.get("/group/")
        self.client.get("/group/g1")
        self.assertEqual(len(self.live.open_watches()), 2)
        self.db.collection("users").document("alice-uid").delete()

        response = self.client.get("/group/")

        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.live.open_watches(), [])
        self.assertEqual(len(self.sync.screens), 0)

    def test_user_lookup_failure_releases_live_queries(self):
        self.create_user("alice-uid", "alice")
        self.login_as("alice-uid")
        self.client.get("/group/")
        self.mock_firestore_service.client.side_effect = RuntimeError("offline")

        response = self.client.get("/group/")

        self.assertEqual(response.status_code, 302)
        self.assertEqual(self.live.open_watches(), [])
        with self.client.session_transaction() as sess:
            self.assertNotIn("user_id", sess)


if __name__ == "__main__":
    unittest.main()
