"""Service layer for group lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from groupchat.constants import GROUPS_COLLECTION
from groupchat.errors import NotFoundError

from .models import Group

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from groupchat.auth.models import User


class GroupService:
    """Service class for group-related reads."""

    @staticmethod
    def get_group_for_member(db: Client, group_id: str, uid: str) -> Group:
        """Fetch a group the user belongs to.

        Groups the user is not a member of are reported as missing.
        """
        group = db.collection(GROUPS_COLLECTION).document(group_id).get()
        if not group.exists:
            raise NotFoundError("Group not found.")

        group_data = group.to_dict() or {}
        if uid not in group_data.get("members", []):
            raise NotFoundError("Group not found.")

        group_data["id"] = group.id
        return cast(Group, group_data)

    @staticmethod
    def member_choices(users: list[User]) -> list[tuple[str, str]]:
        """Turn user records into (uid, label) pairs for the invite picker."""
        choices = []
        for user in users:
            uid = user.get("uid") or user.get("id")
            if not uid:
                continue
            label = user.get("displayName") or user.get("username") or user.get("email")
            choices.append((uid, label or uid))
        return choices
