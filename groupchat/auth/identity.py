"""Adapter over the Firebase identity provider."""

from __future__ import annotations

import logging
from typing import Callable

import requests
from firebase_admin import auth, exceptions
from flask import current_app, session

from groupchat.constants import AUTH_REQUEST_TIMEOUT, SIGN_IN_URL
from groupchat.errors import AuthError

from .models import Credential

logger = logging.getLogger(__name__)

EXTENSION_KEY = "groupchat.identity"

# Called with (uid, credential); credential is None on sign-out.
AuthStateListener = Callable[[str, "Credential | None"], None]


class IdentityProvider:
    """Creates accounts, signs users in and tracks the signed-in session.

    Accounts are created with the Admin SDK. Password sign-in goes through the
    Identity Toolkit REST API, which needs the project's web API key.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self.api_key = api_key
        self._listeners: list[AuthStateListener] = []

    def create_account(self, email: str, password: str) -> Credential:
        """Create an email/password account."""
        try:
            user_record = auth.create_user(email=email, password=password)
        except (ValueError, exceptions.FirebaseError) as e:
            raise AuthError(str(e) or "Auth error") from e
        return Credential(uid=user_record.uid, email=user_record.email or email)

    def sign_in(self, email: str, password: str) -> Credential:
        """Verify an email/password pair.

        The provider's error message is passed through unchanged.
        """
        if not self.api_key:
            raise AuthError("Sign-in is not configured.")

        try:
            response = requests.post(
                SIGN_IN_URL,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=AUTH_REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise AuthError(str(e) or "Auth error") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            message = (data.get("error") or {}).get("message") or "Auth error"
            logger.info(f"Sign-in rejected for {email}: {message}")
            raise AuthError(message)

        return Credential(
            uid=data["localId"],
            email=data.get("email") or email,
            id_token=data.get("idToken"),
        )

    def current_user(self) -> Credential | None:
        """Return the identity of the signed-in session, if any."""
        uid = session.get("user_id")
        if not uid:
            return None
        return Credential(uid=uid, email=session.get("email"))

    def start_session(self, credential: Credential) -> None:
        """Bind ``credential`` to the browser session."""
        session.clear()
        session["user_id"] = credential.uid
        session["email"] = credential.email
        self._notify(credential.uid, credential)

    def sign_out(self) -> None:
        """End the session and tell listeners the user signed out."""
        uid = session.get("user_id")
        session.clear()
        if uid:
            self._notify(uid, None)

    def on_auth_state_changed(self, callback: AuthStateListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _notify(self, uid: str, credential: Credential | None) -> None:
        for listener in list(self._listeners):
            listener(uid, credential)


def get_identity() -> IdentityProvider:
    """Return the identity provider registered on the current app."""
    return current_app.extensions[EXTENSION_KEY]
