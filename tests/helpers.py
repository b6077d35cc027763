"""Shared setup for route tests."""

import tempfile
import unittest
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore

from groupchat import create_app
from groupchat.sync.cache import FileKeyValueStore, MessageCache
from groupchat.sync.client import EXTENSION_KEY, SyncClient
from tests.mock_utils import FakeLiveQueries, patch_mockfirestore

TEST_PASSWORD = "Password123"  # nosec


class BaseTestCase(unittest.TestCase):
    """Runs the app against an in-memory Firestore and scripted live queries."""

    def setUp(self):
        patch_mockfirestore()
        self.db = MockFirestore()
        self.mock_firestore_service = MagicMock()
        self.mock_firestore_service.client.return_value = self.db

        patchers = {
            "init_app": patch("firebase_admin.initialize_app"),
            "firestore_app": patch(
                "groupchat.firestore", new=self.mock_firestore_service
            ),
            "firestore_auth_routes": patch(
                "groupchat.auth.routes.firestore", new=self.mock_firestore_service
            ),
            "firestore_group_routes": patch(
                "groupchat.group.routes.firestore", new=self.mock_firestore_service
            ),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

        self.app = create_app(
            {
                "TESTING": True,
                "WTF_CSRF_ENABLED": False,
                "SERVER_NAME": "localhost",
                "FIREBASE_WEB_API_KEY": "test-key",
                "MESSAGE_CACHE_DIR": self.tmp.name,
            }
        )
        self.sync = SyncClient(
            self.db, MessageCache(FileKeyValueStore(self.tmp.name))
        )
        self.live = FakeLiveQueries().install(self.sync.manager)
        self.app.extensions[EXTENSION_KEY] = self.sync
        self.client = self.app.test_client()

    def create_user(self, uid, username, email=None):
        """Store a user document and return its data."""
        data = {
            "uid": uid,
            "username": username.lower(),
            "displayName": username,
            "email": email or f"{username.lower()}@mail.com",
        }
        self.db.collection("users").document(uid).set(data)
        return data

    def create_group(self, group_id, name, members):
        self.db.collection("groups").document(group_id).set(
            {"name": name, "members": members, "createdBy": members[0]}
        )

    def login_as(self, uid, email=None):
        with self.client.session_transaction() as sess:
            sess["user_id"] = uid
            sess["email"] = email
