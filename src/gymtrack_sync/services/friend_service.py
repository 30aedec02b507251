"""Friend-graph service.

Friend requests are negotiated between two parties, so every operation on
them needs the remote store: request lists are empty offline and responding
to a request is rejected. Friendships are stored as two one-directional
records in the ``friends`` collection; a user's list is also kept locally
for offline reads.
"""

import logging
from typing import Any

from gymtrack_sync.cache import create_cache_key
from gymtrack_sync.dto import ApiResult, FriendRequestInput, validate_input
from gymtrack_sync.entities import FriendRequestEntity, FriendRequestStatus
from gymtrack_sync.errors import (
    InvalidStateTransitionError,
    NotFoundError,
    OfflineRejectedError,
    ValidationFailedError,
)
from gymtrack_sync.models import QueryFilter, RemotePath, StorageKey
from gymtrack_sync.services.base import SyncService
from gymtrack_sync.utils import sanitize_document

logger = logging.getLogger(__name__)

FRIENDS_CACHE_PREFIX = "friends"
REQUESTS_CACHE_PREFIX = "friendRequests"


def friends_cache_key(user_id: str) -> str:
    return create_cache_key(FRIENDS_CACHE_PREFIX, user_id)


def received_cache_key(user_id: str) -> str:
    return create_cache_key(REQUESTS_CACHE_PREFIX, "received", user_id)


def sent_cache_key(user_id: str) -> str:
    return create_cache_key(REQUESTS_CACHE_PREFIX, "sent", user_id)


class FriendService(SyncService):
    """Friend lists and the friend-request state machine.

    Example:
        ```python
        service = FriendService(context)
        sent = await service.send_friend_request("u1", "u2", "alice", online=True)
        await service.accept_friend_request(sent.data["id"], "u2", online=True)
        friends = await service.get_friends("u2", online=True)
        ```
    """

    # Local friend lists

    async def _local_friends(self, user_id: str) -> list[dict[str, Any]] | None:
        friend_lists = await self._storage.load(StorageKey.FRIEND_LIST)
        if not isinstance(friend_lists, dict):
            return None
        return friend_lists.get(user_id)

    async def _store_friends(self, user_id: str, friends: list[dict[str, Any]]) -> None:
        friend_lists = await self._load_mapping(StorageKey.FRIEND_LIST)
        friend_lists[user_id] = friends
        await self._storage.save(StorageKey.FRIEND_LIST, friend_lists)

    async def _forget_friendship(self, user_id: str, friend_id: str) -> None:
        friend_lists = await self._load_mapping(StorageKey.FRIEND_LIST)
        if user_id in friend_lists:
            friend_lists[user_id] = [
                friend for friend in friend_lists[user_id] if friend.get("friendId") != friend_id
            ]
            await self._storage.save(StorageKey.FRIEND_LIST, friend_lists)

    async def _friends(self, user_id: str, online: bool) -> list[dict[str, Any]]:
        return await self.get_with_cache(
            friends_cache_key(user_id),
            fetch_remote=lambda: self._remote.get_collection(
                RemotePath.FRIENDS, [QueryFilter("userId", "==", user_id)]
            ),
            fetch_local=lambda: self._local_friends(user_id),
            online=online,
            persist=lambda friends: self._store_friends(user_id, friends),
            default=[],
        )

    # Remote request queries

    async def _pending_requests(self, cache_key: str, field: str, user_id: str) -> list[dict[str, Any]]:
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        filters = [QueryFilter(field, "==", user_id), QueryFilter("status", "==", "pending")]
        try:
            requests = await self._with_retry(
                lambda: self._remote.get_collection(RemotePath.FRIEND_REQUESTS, filters)
            )
        except Exception as e:
            logger.warning("Failed to fetch friend requests for %s: %s", user_id, e)
            return []

        requests = sanitize_document(requests)
        self._cache.put(cache_key, requests)
        return requests

    def _require_online(self, online: bool, action: str) -> None:
        if not self.can_use_remote(online):
            raise OfflineRejectedError(f"Cannot {action} while offline")

    # Operations

    async def get_friends(self, user_id: str, online: bool) -> ApiResult[Any]:
        async def operation() -> list[dict[str, Any]]:
            self.require(userId=user_id)
            return await self._friends(user_id, online)

        return await self._execute(operation, "get_friends_error", "Failed to retrieve friends")

    async def get_received_requests(self, user_id: str, online: bool) -> ApiResult[Any]:
        """Pending requests addressed to the user; empty while offline."""

        async def operation() -> list[dict[str, Any]]:
            self.require(userId=user_id)
            if not self.can_use_remote(online):
                return []
            return await self._pending_requests(received_cache_key(user_id), "toUid", user_id)

        return await self._execute(
            operation,
            "get_received_requests_error",
            "Failed to retrieve received friend requests",
        )

    async def get_sent_requests(self, user_id: str, online: bool) -> ApiResult[Any]:
        """Pending requests sent by the user; empty while offline."""

        async def operation() -> list[dict[str, Any]]:
            self.require(userId=user_id)
            if not self.can_use_remote(online):
                return []
            return await self._pending_requests(sent_cache_key(user_id), "fromUid", user_id)

        return await self._execute(
            operation,
            "get_sent_requests_error",
            "Failed to retrieve sent friend requests",
        )

    async def send_friend_request(
        self,
        from_uid: str,
        to_uid: str,
        username: str,
        online: bool,
        photo_url: str | None = None,
        to_username: str | None = None,
    ) -> ApiResult[Any]:
        """Create a pending request from ``from_uid`` to ``to_uid``."""

        async def operation() -> dict[str, Any]:
            document = validate_input(
                FriendRequestInput,
                {
                    "fromUid": from_uid,
                    "toUid": to_uid,
                    "fromUsername": username,
                    "fromPhotoUrl": photo_url,
                    "toUsername": to_username,
                },
                required=("fromUid", "toUid", "fromUsername"),
            )
            if document["fromUid"] == document["toUid"]:
                raise ValidationFailedError("Cannot send a friend request to yourself")
            self._require_online(online, "send friend request")

            friends = await self._friends(from_uid, online)
            if any(friend.get("friendId") == to_uid for friend in friends):
                raise ValidationFailedError("Users are already friends")

            sent = await self._pending_requests(sent_cache_key(from_uid), "fromUid", from_uid)
            if any(request.get("toUid") == to_uid for request in sent):
                raise ValidationFailedError("A friend request is already pending")

            request = {key: value for key, value in document.items() if value is not None}
            request["status"] = FriendRequestStatus.PENDING.value
            request["sentAt"] = self.timestamp()

            request_id = await self._with_retry(
                lambda: self._remote.add_document(RemotePath.FRIEND_REQUESTS, request)
            )

            self._cache.invalidate(sent_cache_key(from_uid))
            self._cache.invalidate(received_cache_key(to_uid))
            return {**request, "id": request_id}

        return await self._execute(
            operation,
            "send_friend_request_error",
            "Failed to send friend request",
        )

    async def _respond(
        self,
        request_id: str,
        user_id: str,
        target: FriendRequestStatus,
        online: bool,
    ) -> FriendRequestEntity:
        self.require(requestId=request_id, userId=user_id)
        action = "accept" if target is FriendRequestStatus.ACCEPTED else "reject"
        self._require_online(online, f"{action} friend request")

        document = await self._with_retry(
            lambda: self._remote.get_document(RemotePath.FRIEND_REQUESTS, request_id)
        )
        if document is None:
            raise NotFoundError(f"Friend request {request_id} not found")

        request = FriendRequestEntity.from_document({**document, "id": request_id})
        if request.to_uid != user_id:
            raise ValidationFailedError("Friend request is not addressed to this user")

        try:
            responded = request.transition(target)
        except ValueError as e:
            raise InvalidStateTransitionError(str(e), details={"status": request.status.value}) from e

        await self._with_retry(
            lambda: self._remote.update_document(
                RemotePath.FRIEND_REQUESTS,
                request_id,
                {"status": responded.status.value, "updatedAt": self.timestamp()},
            )
        )

        self._cache.invalidate(received_cache_key(user_id))
        self._cache.invalidate(sent_cache_key(request.from_uid))
        return responded

    async def accept_friend_request(self, request_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        """Accept a pending request and create both friendship records.

        Returns:
            ApiResult with the two created friend records
        """

        async def operation() -> list[dict[str, Any]]:
            request = await self._respond(request_id, user_id, FriendRequestStatus.ACCEPTED, online)
            now = self.timestamp()

            sender_side = {
                "userId": request.from_uid,
                "friendId": request.to_uid,
                "username": request.to_username or "Unknown",
                "createdAt": now,
            }
            recipient_side = {
                "userId": request.to_uid,
                "friendId": request.from_uid,
                "username": request.from_username,
                "createdAt": now,
            }
            if request.from_photo_url:
                recipient_side["profilePic"] = request.from_photo_url

            created = []
            for friend in (sender_side, recipient_side):
                friend_id = await self._with_retry(
                    lambda friend=friend: self._remote.add_document(RemotePath.FRIENDS, friend)
                )
                created.append({**friend, "id": friend_id})

            self._cache.invalidate(friends_cache_key(request.from_uid))
            self._cache.invalidate(friends_cache_key(request.to_uid))
            return created

        return await self._execute(
            operation,
            "accept_friend_request_error",
            "Failed to accept friend request",
        )

    async def reject_friend_request(self, request_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        async def operation() -> bool:
            await self._respond(request_id, user_id, FriendRequestStatus.REJECTED, online)
            return True

        return await self._execute(
            operation,
            "reject_friend_request_error",
            "Failed to reject friend request",
        )

    async def remove_friend(self, friendship_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        """Delete a friendship in both directions."""

        async def operation() -> bool:
            self.require(friendshipId=friendship_id, userId=user_id)
            self._require_online(online, "remove friend")

            friendship = await self._with_retry(
                lambda: self._remote.get_document(RemotePath.FRIENDS, friendship_id)
            )
            if friendship is None:
                raise NotFoundError(f"Friendship {friendship_id} not found")
            if friendship.get("userId") != user_id:
                raise ValidationFailedError("Friendship does not belong to this user")
            friend_id = friendship.get("friendId")

            await self._with_retry(
                lambda: self._remote.delete_document(RemotePath.FRIENDS, friendship_id)
            )

            reciprocal = await self._with_retry(
                lambda: self._remote.get_collection(
                    RemotePath.FRIENDS,
                    [QueryFilter("userId", "==", friend_id), QueryFilter("friendId", "==", user_id)],
                )
            )
            for record in reciprocal:
                if record.get("id"):
                    await self._with_retry(
                        lambda record=record: self._remote.delete_document(
                            RemotePath.FRIENDS, record["id"]
                        )
                    )

            await self._forget_friendship(user_id, friend_id)
            await self._forget_friendship(friend_id, user_id)
            self._cache.invalidate(friends_cache_key(user_id))
            self._cache.invalidate(friends_cache_key(friend_id))
            return True

        return await self._execute(operation, "remove_friend_error", "Failed to remove friend")
