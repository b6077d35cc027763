"""Data models for the auth blueprint."""

from __future__ import annotations

from dataclasses import dataclass

from groupchat.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    uid: str
    email: str
    username: str
    displayName: str


@dataclass(frozen=True)
class Credential:
    """The identity returned by the identity provider after authentication."""

    uid: str
    email: str | None = None
    id_token: str | None = None
