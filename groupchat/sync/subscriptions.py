"""Live query subscriptions over Firestore ``on_snapshot`` listeners."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, Callable

from firebase_admin import firestore

from groupchat.constants import (
    GROUPS_COLLECTION,
    MESSAGES_COLLECTION,
    USERS_COLLECTION,
)
from groupchat.errors import QueryError

from .snapshot import Scope, ScopeKind, Snapshot

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[Snapshot], None]
ErrorHandler = Callable[[QueryError], None]


class Subscription:
    """Handle on one live query.

    ``dispose`` cancels a subscription and may be called any number of times;
    only the first call has an effect. A failed subscription closes its
    transport listener itself. Once a subscription is disposed or has failed,
    late deliveries from the transport are dropped.
    """

    def __init__(
        self, scope: Scope, on_snapshot: SnapshotHandler, on_error: ErrorHandler
    ) -> None:
        self.scope = scope
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._watch: Any = None
        self._active = True
        self._disposed = False
        self._lock = threading.Lock()
        self.closing: threading.Thread | None = None

    @property
    def active(self) -> bool:
        """Whether snapshots are still being delivered."""
        return self._active

    @property
    def disposed(self) -> bool:
        return self._disposed

    def attach(self, watch: Any) -> None:
        """Bind the transport listener that ``dispose`` must close."""
        with self._lock:
            if self._disposed:
                watch.unsubscribe()
                return
            self._watch = watch

    def deliver(self, docs: list[Any], changes: Any, read_time: Any) -> None:
        """Receive a full result set from the transport."""
        with self._lock:
            if not self._active:
                return
            try:
                snapshot = Snapshot(
                    scope=self.scope,
                    records=tuple(self._records_from(docs or [])),
                    read_time=read_time,
                )
                self._on_snapshot(snapshot)
            except Exception as e:
                logger.exception(f"Live query for {self.scope} failed")
                self._fail(QueryError(str(e)))

    def fail(self, error: QueryError) -> None:
        """Report a terminal error and stop delivering snapshots."""
        with self._lock:
            if self._active:
                self._fail(error)

    def check_transport(self) -> None:
        """Fail the subscription if its listener was closed by the transport.

        ``Watch.close(reason)`` ends a listener after an unrecoverable RPC
        error without calling back; the only trace is the closed flag.
        """
        with self._lock:
            watch = self._watch
            if not self._active or watch is None:
                return
            if getattr(watch, "_closed", False) is not True:
                return
            self._fail(QueryError(""))

    def _fail(self, error: QueryError) -> None:
        self._active = False
        watch, self._watch = self._watch, None
        logger.error(f"Subscription to {self.scope} ended: {error.message}")
        self._on_error(error)
        if watch is not None:
            # Watch.close joins the consumer thread, which may be this one.
            self.closing = threading.Thread(
                target=watch.unsubscribe,
                name=f"close-{self.scope.kind.value}-watch",
                daemon=True,
            )
            self.closing.start()

    def dispose(self) -> None:
        """Stop listening and release the transport listener."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._active = False
            watch, self._watch = self._watch, None
        if watch is not None:
            watch.unsubscribe()
        logger.debug(f"Disposed subscription to {self.scope}")

    def _records_from(self, docs: list[Any]) -> list[dict[str, Any]]:
        records = []
        for doc in docs:
            data = doc.to_dict() or {}
            if (
                self.scope.kind is ScopeKind.USERS
                and data.get("uid", doc.id) == self.scope.key
            ):
                continue
            records.append({"id": doc.id, **data})
        return records


class SubscriptionManager:
    """Opens live queries for screen scopes."""

    def __init__(self, db: Client) -> None:
        self.db = db

    def query_for(self, scope: Scope) -> Any:
        """Build the Firestore query that backs a scope."""
        if scope.kind is ScopeKind.GROUPS:
            return self.db.collection(GROUPS_COLLECTION).where(
                filter=firestore.FieldFilter("members", "array_contains", scope.key)
            )
        if scope.kind is ScopeKind.MESSAGES:
            return (
                self.db.collection(GROUPS_COLLECTION)
                .document(scope.key)
                .collection(MESSAGES_COLLECTION)
                .order_by("createdAt", direction=firestore.Query.DESCENDING)
            )
        return self.db.collection(USERS_COLLECTION)

    def subscribe(
        self, scope: Scope, on_snapshot: SnapshotHandler, on_error: ErrorHandler
    ) -> Subscription:
        """Start listening to ``scope``.

        Every snapshot passed to ``on_snapshot`` is the complete result set.
        A failure to establish the listener is reported through ``on_error``
        and yields an already inactive subscription.
        """
        subscription = Subscription(scope, on_snapshot, on_error)
        try:
            watch = self.query_for(scope).on_snapshot(subscription.deliver)
        except Exception as e:
            subscription.fail(QueryError(str(e)))
            return subscription
        subscription.attach(watch)
        logger.debug(f"Subscribed to {scope}")
        return subscription
