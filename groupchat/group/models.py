"""Data models for the group blueprint."""

from __future__ import annotations

from typing import Any, TypedDict

from groupchat.core.types import FirestoreDocument


class Group(FirestoreDocument, total=False):
    """A group document in Firestore."""

    name: str
    members: list[str]
    createdBy: str
    lastMessage: str
    lastAt: Any


class Message(FirestoreDocument, total=False):
    """A message document in a group's messages sub-collection."""

    text: str
    senderId: str
    senderEmail: str
    imageBase64: str
    imageType: str
