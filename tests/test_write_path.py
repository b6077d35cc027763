"""Tests for outgoing message and group writes."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from mockfirestore import MockFirestore

from groupchat.errors import ValidationError
from groupchat.sync.writes import WritePath

ALICE = {"uid": "alice", "email": "alice@mail.com"}


class WritePathTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MockFirestore()
        self.writes = WritePath(self.db)
        self.db.collection("groups").document("g1").set(
            {"name": "Trip", "members": ["alice", "bob"], "lastMessage": ""}
        )

    def group(self) -> dict:
        return self.db.collection("groups").document("g1").get().to_dict()

    def messages(self) -> dict:
        messages = self.db.collection("groups").document("g1").collection("messages")
        return {doc.id: doc.to_dict() for doc in messages.stream()}

    def test_send_text_writes_message_then_summary(self) -> None:
        message_id = self.writes.send_text("g1", ALICE, "  hello  ")

        message = self.messages()[message_id]
        self.assertEqual(message["text"], "hello")
        self.assertEqual(message["senderId"], "alice")
        self.assertEqual(message["senderEmail"], "alice@mail.com")
        self.assertIn("createdAt", message)
        self.assertNotIn("imageBase64", message)

        group = self.group()
        self.assertEqual(group["lastMessage"], "hello")
        self.assertIn("lastAt", group)
        self.assertEqual(group["name"], "Trip")

    def test_blank_text_is_rejected_without_writing(self) -> None:
        for body in ["", "   ", "\n\t", None]:
            with self.subTest(body=body):
                with self.assertRaises(ValidationError):
                    self.writes.send_text("g1", ALICE, body)

        self.assertEqual(self.messages(), {})
        self.assertEqual(self.group()["lastMessage"], "")

    def test_send_image_summarizes_as_image(self) -> None:
        message_id = self.writes.send_image("g1", ALICE, "aGVsbG8=", "image/png")

        message = self.messages()[message_id]
        self.assertEqual(message["text"], "")
        self.assertEqual(message["imageBase64"], "aGVsbG8=")
        self.assertEqual(message["imageType"], "image/png")
        self.assertEqual(self.group()["lastMessage"], "Image")

    def test_send_image_defaults_to_jpeg(self) -> None:
        message_id = self.writes.send_image("g1", ALICE, "aGVsbG8=")
        self.assertEqual(self.messages()[message_id]["imageType"], "image/jpeg")

    def test_send_image_without_payload_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.writes.send_image("g1", ALICE, "")
        self.assertEqual(self.messages(), {})

    def test_summary_follows_the_latest_send(self) -> None:
        self.writes.send_text("g1", ALICE, "first")
        self.writes.send_image("g1", ALICE, "aGk=")
        self.writes.send_text("g1", {"uid": "bob", "email": "bob@mail.com"}, "last")

        self.assertEqual(len(self.messages()), 3)
        self.assertEqual(self.group()["lastMessage"], "last")

    def test_message_is_kept_when_summary_update_fails(self) -> None:
        db = MagicMock()
        group_ref = db.collection.return_value.document.return_value
        message_ref = MagicMock(id="m1")
        group_ref.collection.return_value.add.return_value = (None, message_ref)
        group_ref.set.side_effect = RuntimeError("unavailable")

        with self.assertRaises(RuntimeError):
            WritePath(db).send_text("g1", ALICE, "hi")

        group_ref.collection.return_value.add.assert_called_once()

    def test_create_group(self) -> None:
        group_id = self.writes.create_group(" Weekend ", "alice", ["bob", "carol"])

        group = self.db.collection("groups").document(group_id).get().to_dict()
        self.assertEqual(group["name"], "Weekend")
        self.assertEqual(group["members"], ["alice", "bob", "carol"])
        self.assertEqual(group["createdBy"], "alice")
        self.assertEqual(group["lastMessage"], "")

    def test_create_group_deduplicates_members(self) -> None:
        group_id = self.writes.create_group("Pair", "alice", ["bob", "alice", "bob"])

        group = self.db.collection("groups").document(group_id).get().to_dict()
        self.assertEqual(group["members"], ["alice", "bob"])

    def test_create_group_requires_name_and_invitees(self) -> None:
        with self.assertRaises(ValidationError):
            self.writes.create_group("  ", "alice", ["bob"])
        with self.assertRaises(ValidationError):
            self.writes.create_group("Solo", "alice", [])

        self.assertEqual(len(list(self.db.collection("groups").stream())), 1)


if __name__ == "__main__":
    unittest.main()
