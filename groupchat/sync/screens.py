"""Lifecycle controllers for screens that hold a live query."""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections.abc import Iterator
from typing import Any

from groupchat.constants import SCREEN_IDLE_TIMEOUT

from .media import PickedImage
from .snapshot import Scope
from .subscriptions import Subscription, SubscriptionManager
from .synchronizer import Synchronizer, ViewState
from .writes import WritePath

logger = logging.getLogger(__name__)

GROUP_LIST_SLOT = "groups"
CREATE_GROUP_SLOT = "create_group"
CHAT_SLOT = "chat"


class Screen:
    """A mounted screen and the one subscription it owns.

    ``mount`` opens the subscription and ``unmount`` disposes it before the
    view state is dropped. Each runs at most once.
    """

    slot = ""

    def __init__(
        self,
        uid: str,
        scope: Scope,
        manager: SubscriptionManager,
        synchronizer: Synchronizer,
    ) -> None:
        self.uid = uid
        self.scope = scope
        self.manager = manager
        self.synchronizer = synchronizer
        self.view = ViewState(scope.kind)
        self._subscription: Subscription | None = None
        self._mounted = False
        self._unmounted = False
        self._lock = threading.Lock()
        self.last_seen = time.monotonic()

    @property
    def mounted(self) -> bool:
        return self._mounted and not self._unmounted

    def mount(self) -> None:
        """Open the screen's live query."""
        with self._lock:
            if self._mounted:
                return
            self._mounted = True
            self.before_subscribe()
            self._subscription = self.manager.subscribe(
                self.scope, self._apply_snapshot, self._apply_error
            )
        logger.debug(f"Mounted {self.slot} screen for {self.uid} on {self.scope}")

    def unmount(self) -> None:
        """Close the live query, then discard the view state."""
        with self._lock:
            if not self._mounted or self._unmounted:
                return
            self._unmounted = True
            subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.dispose()
        self.view = ViewState(self.scope.kind)
        logger.debug(f"Unmounted {self.slot} screen for {self.uid}")

    def before_subscribe(self) -> None:
        """Hook run once, right before the subscription opens."""

    def touch(self) -> None:
        self.last_seen = time.monotonic()

    def state(self) -> dict[str, Any]:
        self.touch()
        subscription = self._subscription
        if subscription is not None:
            subscription.check_transport()
        return self.view.to_dict()

    def _apply_snapshot(self, snapshot: Any) -> None:
        self.synchronizer.on_snapshot(self.view, snapshot)

    def _apply_error(self, error: Any) -> None:
        self.synchronizer.on_error(self.view, error)


class GroupListScreen(Screen):
    """The signed-in user's groups."""

    slot = GROUP_LIST_SLOT

    def __init__(
        self, uid: str, manager: SubscriptionManager, synchronizer: Synchronizer
    ) -> None:
        super().__init__(uid, Scope.groups_for(uid), manager, synchronizer)


class CreateGroupScreen(Screen):
    """Candidate members for a new group."""

    slot = CREATE_GROUP_SLOT

    def __init__(
        self, uid: str, manager: SubscriptionManager, synchronizer: Synchronizer
    ) -> None:
        super().__init__(uid, Scope.users_except(uid), manager, synchronizer)


class GroupChatScreen(Screen):
    """A group's message thread and its compose box."""

    slot = CHAT_SLOT

    def __init__(
        self,
        uid: str,
        group_id: str,
        manager: SubscriptionManager,
        synchronizer: Synchronizer,
        writes: WritePath,
    ) -> None:
        super().__init__(uid, Scope.messages_in(group_id), manager, synchronizer)
        self.group_id = group_id
        self.writes = writes

    def before_subscribe(self) -> None:
        self.synchronizer.cold_start(self.view, self.group_id)

    @contextlib.contextmanager
    def sending(self) -> Iterator[None]:
        """Hold the sending indicator for the duration of a write."""
        view = self.view
        with view.lock:
            view.sending = True
        try:
            yield
        finally:
            with view.lock:
                view.sending = False

    def send_text(self, sender: dict[str, Any], body: str) -> str:
        with self.sending():
            return self.writes.send_text(self.group_id, sender, body)

    def send_image(self, sender: dict[str, Any], picked: PickedImage | None) -> str:
        payload = picked.payload if picked else ""
        mime_type = picked.mime_type if picked else None
        with self.sending():
            return self.writes.send_image(self.group_id, sender, payload, mime_type)


class ScreenRegistry:
    """Process-wide table of mounted screens, one per slot per user.

    A screen nobody has viewed for ``idle_timeout`` seconds belongs to a
    browser that went away without signing out; it is unmounted the next
    time any screen mounts.
    """

    def __init__(self, idle_timeout: float = SCREEN_IDLE_TIMEOUT) -> None:
        self.idle_timeout = idle_timeout
        self._screens: dict[tuple[str, str], Screen] = {}
        self._lock = threading.Lock()

    def mount(self, screen: Screen) -> Screen:
        """Mount ``screen`` in its slot.

        A screen already mounted on the same scope is kept and returned. A
        screen on another scope is unmounted before the new one mounts.
        """
        self.evict_idle()
        key = (screen.uid, screen.slot)
        with self._lock:
            current = self._screens.get(key)
            if current is not None and current.scope == screen.scope:
                current.touch()
                return current
            if current is not None:
                current.unmount()
            self._screens[key] = screen
            screen.mount()
            return screen

    def evict_idle(self, now: float | None = None) -> int:
        """Unmount screens idle for longer than ``idle_timeout``."""
        now = time.monotonic() if now is None else now
        with self._lock:
            keys = [
                key
                for key, screen in self._screens.items()
                if now - screen.last_seen > self.idle_timeout
            ]
            screens = [self._screens.pop(key) for key in keys]
        for screen in screens:
            logger.info(f"Evicting idle {screen.slot} screen for {screen.uid}")
            screen.unmount()
        return len(screens)

    def get(self, uid: str, slot: str) -> Screen | None:
        with self._lock:
            return self._screens.get((uid, slot))

    def unmount(self, uid: str, slot: str) -> None:
        with self._lock:
            screen = self._screens.pop((uid, slot), None)
        if screen is not None:
            screen.unmount()

    def unmount_all(self, uid: str) -> None:
        """Unmount every screen of ``uid``, as on sign-out."""
        with self._lock:
            keys = [key for key in self._screens if key[0] == uid]
            screens = [self._screens.pop(key) for key in keys]
        for screen in screens:
            screen.unmount()

    def __len__(self) -> int:
        with self._lock:
            return len(self._screens)
