"""Outgoing message and group writes.

Sending a message is two independent writes: the message document is added
first, then the parent group's ``lastMessage``/``lastAt`` summary is merged.
There is no transaction around them. If the second write never happens the
message still exists and the summary stays stale until the next successful
send overwrites it. Nothing is merged into local view state here; the live
query echoes each write back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from groupchat.constants import (
    DEFAULT_IMAGE_MIME_TYPE,
    GROUPS_COLLECTION,
    IMAGE_SUMMARY,
    MESSAGES_COLLECTION,
)
from groupchat.errors import ValidationError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class WritePath:
    """Builds message and group records and submits them to Firestore."""

    def __init__(self, db: Client) -> None:
        self.db = db

    def send_text(self, group_id: str, sender: dict[str, Any], body: str) -> str:
        """Send a text message and return the new message id."""
        trimmed = (body or "").strip()
        if not trimmed:
            raise ValidationError("Message cannot be empty.")

        record = {
            "text": trimmed,
            "senderId": sender["uid"],
            "senderEmail": sender.get("email"),
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        return self._send(group_id, record, trimmed)

    def send_image(
        self,
        group_id: str,
        sender: dict[str, Any],
        payload: str,
        mime_type: str | None = None,
    ) -> str:
        """Send an inline base64 image and return the new message id."""
        if not payload:
            raise ValidationError("No image selected.")

        record = {
            "text": "",
            "imageBase64": payload,
            "imageType": mime_type or DEFAULT_IMAGE_MIME_TYPE,
            "senderId": sender["uid"],
            "senderEmail": sender.get("email"),
            "createdAt": firestore.SERVER_TIMESTAMP,
        }
        return self._send(group_id, record, IMAGE_SUMMARY)

    def create_group(
        self, name: str, creator_uid: str, invitee_uids: list[str]
    ) -> str:
        """Create a group with the creator and invitees as members."""
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Group name is required.")
        if not invitee_uids:
            raise ValidationError("Select at least one member.")

        members = list(dict.fromkeys([creator_uid, *invitee_uids]))
        _, group_ref = self.db.collection(GROUPS_COLLECTION).add(
            {
                "name": trimmed,
                "members": members,
                "createdBy": creator_uid,
                "createdAt": firestore.SERVER_TIMESTAMP,
                "lastMessage": "",
                "lastAt": firestore.SERVER_TIMESTAMP,
            }
        )
        return group_ref.id

    def _send(self, group_id: str, record: dict[str, Any], summary: str) -> str:
        group_ref = self.db.collection(GROUPS_COLLECTION).document(group_id)
        _, message_ref = group_ref.collection(MESSAGES_COLLECTION).add(record)
        group_ref.set(
            {"lastMessage": summary, "lastAt": firestore.SERVER_TIMESTAMP},
            merge=True,
        )
        return message_ref.id
