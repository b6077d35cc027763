"""Applies live snapshots and cached messages to screen view state."""

from __future__ import annotations

import logging
import threading
from typing import Any

from groupchat.constants import (
    GROUPS_LOAD_ERROR,
    MESSAGES_LOAD_ERROR,
    USERS_LOAD_ERROR,
)
from groupchat.errors import QueryError

from .cache import MessageCache
from .snapshot import ScopeKind, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_ERRORS = {
    ScopeKind.GROUPS: GROUPS_LOAD_ERROR,
    ScopeKind.MESSAGES: MESSAGES_LOAD_ERROR,
    ScopeKind.USERS: USERS_LOAD_ERROR,
}


class ViewState:
    """What a screen currently renders.

    ``provisional`` marks records that came from the cache and will be
    replaced by the first live snapshot. ``live`` turns True once a snapshot
    or a subscription error has been applied.
    """

    def __init__(self, kind: ScopeKind) -> None:
        self.kind = kind
        self.records: list[dict[str, Any]] = []
        self.error = ""
        self.provisional = False
        self.live = False
        self.sending = False
        self.lock = threading.Lock()

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the state that is safe to render or serialize."""
        with self.lock:
            return {
                "records": list(self.records),
                "error": self.error,
                "provisional": self.provisional,
                "live": self.live,
                "sending": self.sending,
            }


class Synchronizer:
    """Reconciles cache and live data into a view.

    The live query is authoritative: every snapshot replaces the view in full
    and the cache is only consulted before the first snapshot arrives.
    """

    def __init__(self, cache: MessageCache) -> None:
        self.cache = cache

    def cold_start(self, view: ViewState, group_id: str) -> bool:
        """Render a group's cached messages until the live query answers.

        Returns True when cached messages were applied.
        """
        cached = self.cache.get(group_id)
        if not cached:
            return False
        with view.lock:
            if view.live:
                return False
            view.records = cached
            view.provisional = True
        return True

    def on_snapshot(self, view: ViewState, snapshot: Snapshot) -> None:
        """Replace the view with a complete result set."""
        records = list(snapshot.records)
        with view.lock:
            view.records = records
            view.error = ""
            view.provisional = False
            view.live = True

        if snapshot.scope.kind is ScopeKind.MESSAGES:
            # Advisory only; a failed write just means a slower next cold start.
            self.cache.put(snapshot.scope.key, records[: self.cache.window])

    def on_error(self, view: ViewState, error: QueryError) -> None:
        """Drop whatever the view held and show the failure."""
        message = error.message or DEFAULT_ERRORS[view.kind]
        with view.lock:
            view.records = []
            view.error = message
            view.provisional = False
            view.live = True
