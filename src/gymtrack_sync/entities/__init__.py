"""Domain entities for internal representation.

These are pure dataclasses (frozen) used internally by services and the
cache manager. They are NOT used for API contracts - use DTOs from the dto
package for that.
"""

from .cache_entry import CacheEntry
from .friend_request import FriendRequestEntity, FriendRequestStatus

__all__ = ["CacheEntry", "FriendRequestEntity", "FriendRequestStatus"]
