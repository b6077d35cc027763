"""Value types describing what a live query watches and what it delivers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class ScopeKind(enum.Enum):
    """The kinds of live query a screen can hold."""

    GROUPS = "groups"
    MESSAGES = "messages"
    USERS = "users"


@dataclass(frozen=True)
class Scope:
    """The target of a subscription.

    ``key`` is the member uid for ``GROUPS``, the group id for ``MESSAGES`` and
    the uid to leave out for ``USERS``.
    """

    kind: ScopeKind
    key: str

    @classmethod
    def groups_for(cls, uid: str) -> Scope:
        """Groups whose ``members`` contain ``uid``."""
        return cls(ScopeKind.GROUPS, uid)

    @classmethod
    def messages_in(cls, group_id: str) -> Scope:
        """Messages of ``group_id``, newest first."""
        return cls(ScopeKind.MESSAGES, group_id)

    @classmethod
    def users_except(cls, uid: str) -> Scope:
        """Every user other than ``uid``."""
        return cls(ScopeKind.USERS, uid)


@dataclass(frozen=True)
class Snapshot:
    """The complete, ordered result set of a scope at one point in time.

    A snapshot is always total: consumers replace whatever they hold with
    ``records`` and never diff against a previous snapshot.
    """

    scope: Scope
    records: tuple[dict[str, Any], ...] = field(default_factory=tuple)
    read_time: Any = None

    def __len__(self) -> int:
        return len(self.records)
