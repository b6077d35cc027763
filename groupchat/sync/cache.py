"""Local cache of the most recent messages per group.

The cache only ever feeds the first render of a thread before its live
subscription answers. It is never written by a user action and nothing reads
it as a source of truth, so every failure here is logged and dropped.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from urllib.parse import quote
from typing import TYPE_CHECKING, Any, cast

from groupchat.constants import MESSAGE_CACHE_KEY_PREFIX, MESSAGE_CACHE_WINDOW
from groupchat.errors import CacheError

if TYPE_CHECKING:
    from groupchat.group.models import Message

logger = logging.getLogger(__name__)

TIMESTAMP_FIELDS = ("createdAt",)


class FileKeyValueStore:
    """String key-value persistence backed by one file per key."""

    def __init__(self, directory: str) -> None:
        self.directory = directory
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> str:
        return os.path.join(self.directory, f"{quote(key, safe='')}.json")

    def get_item(self, key: str) -> str | None:
        """Return the stored string for ``key`` or None when absent."""
        path = self._path_for(key)
        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheError(f"Could not read {key}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        path = self._path_for(key)
        tmp_path = f"{path}.{threading.get_ident()}.tmp"
        try:
            with self._lock:
                os.makedirs(self.directory, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp_path, path)
        except OSError as e:
            raise CacheError(f"Could not write {key}: {e}") from e


def _encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not cacheable")


def _decode_message(data: dict[str, Any]) -> Message:
    for name in TIMESTAMP_FIELDS:
        value = data.get(name)
        if isinstance(value, str):
            try:
                data[name] = datetime.fromisoformat(value)
            except ValueError:
                data[name] = None
    return cast("Message", data)


class MessageCache:
    """Keeps the newest ``window`` messages of each group for cold starts."""

    def __init__(self, store: Any, window: int = MESSAGE_CACHE_WINDOW) -> None:
        self.store = store
        self.window = window

    @staticmethod
    def key_for(group_id: str) -> str:
        """Return the storage key of a group's messages."""
        return f"{MESSAGE_CACHE_KEY_PREFIX}{group_id}"

    def get(self, group_id: str) -> list[Message] | None:
        """Return the cached messages of a group, newest first, or None."""
        try:
            raw = self.store.get_item(self.key_for(group_id))
            if raw is None:
                return None
            try:
                cached = json.loads(raw)
            except ValueError as e:
                raise CacheError(f"Corrupt cache entry for {group_id}: {e}") from e
            if not isinstance(cached, list):
                raise CacheError(f"Unexpected cache entry for {group_id}")
            return [_decode_message(dict(m)) for m in cached if isinstance(m, dict)]
        except CacheError as e:
            logger.warning(f"Ignoring message cache read failure: {e}")
            return None

    def put(self, group_id: str, messages: list[dict[str, Any]]) -> bool:
        """Store the newest ``window`` messages of a group.

        Returns False when the write failed; callers are free to ignore it.
        """
        try:
            try:
                raw = json.dumps(list(messages[: self.window]), default=_encode_value)
            except (TypeError, ValueError) as e:
                raise CacheError(f"Could not serialize messages: {e}") from e
            self.store.set_item(self.key_for(group_id), raw)
            return True
        except CacheError as e:
            logger.warning(f"Ignoring message cache write failure: {e}")
            return False
