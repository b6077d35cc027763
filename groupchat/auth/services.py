"""Service layer for registration and login."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore

from groupchat.constants import USERS_COLLECTION
from groupchat.errors import AuthError, DuplicateUsernameError, ValidationError

from .models import Credential

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from .identity import IdentityProvider


class AccountService:
    """Service class for account operations.

    Usernames are unique only by convention: ``register`` reads before it
    writes and two registrations racing on one username can both pass the
    check.
    """

    @staticmethod
    def _find_by_username(db: Client, username: str) -> list[Any]:
        query = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("username", "==", username.lower()))
            .limit(1)
        )
        return list(query.stream())

    @staticmethod
    def is_username_taken(db: Client, username: str) -> bool:
        """Return True if a user document already holds ``username``."""
        return bool(AccountService._find_by_username(db, username))

    @staticmethod
    def find_email_by_username(db: Client, username: str) -> str | None:
        """Resolve a username to the email used to sign in."""
        docs = AccountService._find_by_username(db, username)
        if not docs:
            return None
        return (docs[0].to_dict() or {}).get("email")

    @staticmethod
    def upsert_user(db: Client, uid: str, email: str, username: str) -> None:
        """Create or refresh the user document for ``uid``."""
        user_ref = db.collection(USERS_COLLECTION).document(uid)
        user_data = {
            "uid": uid,
            "email": email.lower(),
            "username": username.lower(),
            "displayName": username,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        if not user_ref.get().exists:
            user_data["createdAt"] = firestore.SERVER_TIMESTAMP
        user_ref.set(user_data, merge=True)

    @staticmethod
    def register(
        db: Client,
        identity: IdentityProvider,
        username: str,
        email: str,
        password: str,
    ) -> Credential:
        """Register a new account and its user document."""
        username = (username or "").strip()
        email = (email or "").strip()
        if not username:
            raise ValidationError("Username is required.")
        if not email:
            raise ValidationError("Email is required.")

        if AccountService.is_username_taken(db, username):
            raise DuplicateUsernameError()

        credential = identity.create_account(email, password)
        if credential.email:
            AccountService.upsert_user(db, credential.uid, credential.email, username)
        return credential

    @staticmethod
    def login(
        db: Client, identity: IdentityProvider, username: str, password: str
    ) -> Credential:
        """Sign in with a username and password."""
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username is required.")

        email = AccountService.find_email_by_username(db, username)
        if not email:
            raise AuthError("Username not found.")

        credential = identity.sign_in(email, password)
        if credential.email:
            AccountService.upsert_user(db, credential.uid, credential.email, username)
        return credential
