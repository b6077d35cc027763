"""Wiring of the sync layer for one Flask application."""

from __future__ import annotations

import os
import threading
from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from groupchat.constants import MESSAGE_CACHE_WINDOW, SCREEN_IDLE_TIMEOUT

from .cache import FileKeyValueStore, MessageCache
from .screens import (
    CHAT_SLOT,
    CREATE_GROUP_SLOT,
    CreateGroupScreen,
    GroupChatScreen,
    GroupListScreen,
    ScreenRegistry,
)
from .subscriptions import SubscriptionManager
from .synchronizer import Synchronizer
from .writes import WritePath

if TYPE_CHECKING:
    from flask import Flask
    from google.cloud.firestore_v1.client import Client

EXTENSION_KEY = "groupchat.sync"
_init_lock = threading.Lock()


class SyncClient:
    """Entry point used by the views to open and close screens."""

    def __init__(
        self,
        db: Client,
        cache: MessageCache,
        idle_timeout: float = SCREEN_IDLE_TIMEOUT,
    ) -> None:
        self.db = db
        self.cache = cache
        self.manager = SubscriptionManager(db)
        self.synchronizer = Synchronizer(cache)
        self.writes = WritePath(db)
        self.screens = ScreenRegistry(idle_timeout)

    def open_group_list(self, uid: str) -> GroupListScreen:
        """Show the group list, leaving any open thread."""
        self.screens.unmount(uid, CHAT_SLOT)
        self.screens.unmount(uid, CREATE_GROUP_SLOT)
        screen = GroupListScreen(uid, self.manager, self.synchronizer)
        return self.screens.mount(screen)

    def open_create_group(self, uid: str) -> CreateGroupScreen:
        screen = CreateGroupScreen(uid, self.manager, self.synchronizer)
        return self.screens.mount(screen)

    def close_create_group(self, uid: str) -> None:
        self.screens.unmount(uid, CREATE_GROUP_SLOT)

    def open_thread(self, uid: str, group_id: str) -> GroupChatScreen:
        """Show a group's thread, replacing a thread on another group."""
        screen = GroupChatScreen(
            uid, group_id, self.manager, self.synchronizer, self.writes
        )
        return self.screens.mount(screen)

    def sign_out(self, uid: str) -> None:
        self.screens.unmount_all(uid)


def build_sync_client(app: Flask, db: Any = None) -> SyncClient:
    """Create the sync client for ``app`` from its configuration."""
    cache_dir = app.config.get("MESSAGE_CACHE_DIR") or os.path.join(
        app.instance_path, "message_cache"
    )
    window = int(app.config.get("MESSAGE_CACHE_WINDOW") or MESSAGE_CACHE_WINDOW)
    cache = MessageCache(FileKeyValueStore(cache_dir), window=window)
    idle_timeout = float(app.config.get("SCREEN_IDLE_TIMEOUT") or SCREEN_IDLE_TIMEOUT)
    return SyncClient(
        db if db is not None else firestore.client(), cache, idle_timeout
    )


def get_sync_client() -> SyncClient:
    """Return the current app's sync client, creating it on first use."""
    app = current_app._get_current_object()  # type: ignore[attr-defined]
    client = app.extensions.get(EXTENSION_KEY)
    if client is None:
        with _init_lock:
            client = app.extensions.get(EXTENSION_KEY)
            if client is None:
                client = build_sync_client(app)
                app.extensions[EXTENSION_KEY] = client
    return client


def release_user_screens(app: Flask, uid: str) -> None:
    """Unmount every screen of ``uid`` if the sync client has been created."""
    client = app.extensions.get(EXTENSION_KEY)
    if client is not None:
        client.sign_out(uid)
