"""Services layer for synchronization logic.

Services contain the offline-first read/write algorithms and depend on
PROTOCOLS, not concrete local-store or remote-gateway implementations.
"""

from .base import SyncContext, SyncService, generate_local_id, is_local_id
from .collection import UserCollectionService
from .facade import GymTrackClient
from .friend_service import FriendService
from .profile_service import ProfileService
from .weight_log_service import WeightLogService
from .workout_service import WorkoutPlanService, WorkoutService

__all__ = [
    "FriendService",
    "GymTrackClient",
    "ProfileService",
    "SyncContext",
    "SyncService",
    "UserCollectionService",
    "WeightLogService",
    "WorkoutPlanService",
    "WorkoutService",
    "generate_local_id",
    "is_local_id",
]
