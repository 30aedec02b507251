"""Friend request domain entity."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class FriendRequestStatus(str, Enum):
    """Friend request states. Non-pending states are terminal."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not FriendRequestStatus.PENDING


@dataclass(frozen=True)
class FriendRequestEntity:
    """Internal view of a friend request document.

    Attributes:
        id: Remote document id
        from_uid: Sender user id
        to_uid: Recipient user id
        status: Current state
        from_username: Sender display name
        to_username: Recipient display name, when known
        from_photo_url: Sender profile picture
    """

    id: str
    from_uid: str
    to_uid: str
    status: FriendRequestStatus
    from_username: str = ""
    to_username: str | None = None
    from_photo_url: str | None = None

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "FriendRequestEntity":
        """Build the entity from a remote document."""
        return cls(
            id=document["id"],
            from_uid=document["fromUid"],
            to_uid=document["toUid"],
            status=FriendRequestStatus(document.get("status", "pending")),
            from_username=document.get("fromUsername", ""),
            to_username=document.get("toUsername"),
            from_photo_url=document.get("fromPhotoUrl"),
        )

    def transition(self, target: FriendRequestStatus) -> "FriendRequestEntity":
        """Return a copy moved to ``target``.

        Raises:
            ValueError: If the request is already terminal or the target is pending
        """
        if self.status.is_terminal:
            raise ValueError(f"Friend request {self.id} is already {self.status.value}")
        if target is FriendRequestStatus.PENDING:
            raise ValueError("A pending request cannot transition to pending")
        return replace(self, status=target)
