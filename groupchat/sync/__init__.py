"""Real-time group and message synchronization with a local message cache."""

from .cache import FileKeyValueStore, MessageCache
from .client import SyncClient, get_sync_client
from .snapshot import Scope, ScopeKind, Snapshot
from .subscriptions import Subscription, SubscriptionManager
from .synchronizer import Synchronizer, ViewState
from .writes import WritePath

__all__ = [
    "FileKeyValueStore",
    "MessageCache",
    "Scope",
    "ScopeKind",
    "Snapshot",
    "Subscription",
    "SubscriptionManager",
    "SyncClient",
    "Synchronizer",
    "ViewState",
    "WritePath",
    "get_sync_client",
]
