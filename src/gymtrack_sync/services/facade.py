"""Single entry point aggregating every entity service."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from gymtrack_sync.cache import CacheManager
from gymtrack_sync.dto import ApiResult
from gymtrack_sync.errors import OfflineRejectedError
from gymtrack_sync.models import CacheStats, SyncReport
from gymtrack_sync.protocols import LocalStore, RemoteGateway
from gymtrack_sync.retry import RetryExecutor
from gymtrack_sync.services.base import SyncContext, SyncService
from gymtrack_sync.services.friend_service import FriendService
from gymtrack_sync.services.profile_service import ProfileService
from gymtrack_sync.services.weight_log_service import WeightLogService
from gymtrack_sync.services.workout_service import WorkoutPlanService, WorkoutService

logger = logging.getLogger(__name__)


class GymTrackClient:
    """Offline-first data access for the fitness tracker.

    All entity services share one context: one local store, one remote
    gateway, one cache and one reachability flag. Every operation takes the
    caller's ``online`` flag and returns an ``ApiResult``.

    Example:
        ```python
        from gymtrack_sync.repositories import InMemoryLocalStore, InMemoryRemoteGateway
        from gymtrack_sync.services import GymTrackClient

        client = await GymTrackClient.create(InMemoryLocalStore(), InMemoryRemoteGateway())
        await client.save_workout(workout, online=False)
        await client.sync_all("u1", online=True)
        await client.close()
        ```
    """

    def __init__(self, context: SyncContext) -> None:
        """Initialize the client.

        Args:
            context: Shared collaborators (required). See ``SyncContext.create``.
        """
        self._ctx = context
        self._base = SyncService(context)
        self.profiles = ProfileService(context)
        self.workouts = WorkoutService(context)
        self.plans = WorkoutPlanService(context)
        self.weight_log = WeightLogService(context)
        self.friends = FriendService(context)

    @classmethod
    async def create(
        cls,
        local_store: LocalStore,
        remote: RemoteGateway,
        cache: CacheManager | None = None,
        retry: RetryExecutor | None = None,
        clock: Callable[[], datetime] | None = None,
        initialize: bool = True,
    ) -> "GymTrackClient":
        """Factory method to build and initialize a client.

        Args:
            local_store: Durable key-value store (required).
            remote: Remote document store (required).
            cache: Cache manager. If None, one is built from settings.
            retry: Retry executor. If None, one is built from settings.
            clock: Source of "now" for record timestamps.
            initialize: Seed storage and probe the remote store before returning.

        Returns:
            Ready-to-use GymTrackClient
        """
        client = cls(SyncContext.create(local_store, remote, cache=cache, retry=retry, clock=clock))
        if initialize:
            await client.initialize()
        return client

    # Lifecycle

    async def initialize(self) -> bool:
        """Seed local storage and probe the remote store.

        Returns:
            Whether the remote store is reachable
        """
        return await self._base.initialize()

    async def refresh_connection(self) -> bool:
        """Re-run the connectivity probe."""
        self._ctx.remote_available = await self._base.check_connection()
        return self._ctx.remote_available

    async def start(self) -> None:
        """Start the periodic cache sweep, persisting counters after each run."""
        await self._ctx.cache.start(on_sweep=self._on_sweep)

    async def _on_sweep(self, stats: CacheStats) -> None:
        await self._base.persist_cache_metadata(stats)

    async def close(self) -> None:
        """Stop the cache sweep and release gateway/store connections."""
        await self._ctx.cache.stop()
        for resource in (self._ctx.remote, self._ctx.storage.store):
            close = getattr(resource, "close", None)
            if close is not None:
                await close()

    @property
    def is_remote_available(self) -> bool:
        return self._ctx.remote_available

    @property
    def cache(self) -> CacheManager:
        return self._ctx.cache

    @property
    def context(self) -> SyncContext:
        """Get the shared context (for testing)."""
        return self._ctx

    # Profile

    async def save_profile(self, profile: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self.profiles.save_profile(profile, online)

    async def get_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        return await self.profiles.get_profile(uid, online)

    async def delete_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        return await self.profiles.delete_profile(uid, online)

    async def update_settings(self, uid: str, settings: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self.profiles.update_settings(uid, settings, online)

    async def get_profiles(self, uids: list[str], online: bool) -> ApiResult[Any]:
        return await self.profiles.get_profiles(uids, online)

    async def sync_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        return await self.profiles.sync_profile(uid, online)

    # Workouts

    async def get_all_workouts(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.workouts.get_all_workouts(user_id, online)

    async def get_recent_workouts(self, user_id: str, online: bool, count: int = 10) -> ApiResult[Any]:
        return await self.workouts.get_recent_workouts(user_id, online, count)

    async def get_workout(self, user_id: str, workout_id: str, online: bool) -> ApiResult[Any]:
        return await self.workouts.get_workout(user_id, workout_id, online)

    async def save_workout(self, workout: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self.workouts.save_workout(workout, online)

    async def update_workout(
        self,
        user_id: str,
        workout_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self.workouts.update_workout(user_id, workout_id, changes, online)

    async def delete_workout(self, user_id: str, workout_id: str, online: bool) -> ApiResult[Any]:
        return await self.workouts.delete_workout(user_id, workout_id, online)

    async def sync_workouts(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.workouts.sync_workouts(user_id, online)

    # Workout plans

    async def get_workout_plans(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.plans.get_workout_plans(user_id, online)

    async def get_workout_plan(self, user_id: str, plan_id: str, online: bool) -> ApiResult[Any]:
        return await self.plans.get_workout_plan(user_id, plan_id, online)

    async def save_workout_plan(self, plan: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self.plans.save_workout_plan(plan, online)

    async def update_workout_plan(
        self,
        user_id: str,
        plan_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self.plans.update_workout_plan(user_id, plan_id, changes, online)

    async def delete_workout_plan(self, user_id: str, plan_id: str, online: bool) -> ApiResult[Any]:
        return await self.plans.delete_workout_plan(user_id, plan_id, online)

    async def sync_workout_plans(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.plans.sync_workout_plans(user_id, online)

    # Weight log

    async def log_weight(self, entry: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self.weight_log.log_weight(entry, online)

    async def get_weight_log(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.weight_log.get_weight_log(user_id, online)

    async def update_weight_entry(
        self,
        user_id: str,
        entry_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self.weight_log.update_weight_entry(user_id, entry_id, changes, online)

    async def delete_weight_entry(self, user_id: str, entry_id: str, online: bool) -> ApiResult[Any]:
        return await self.weight_log.delete_weight_entry(user_id, entry_id, online)

    async def sync_weight_log(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.weight_log.sync_weight_log(user_id, online)

    # Friends

    async def get_friends(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.get_friends(user_id, online)

    async def send_friend_request(
        self,
        from_uid: str,
        to_uid: str,
        username: str,
        online: bool,
        photo_url: str | None = None,
        to_username: str | None = None,
    ) -> ApiResult[Any]:
        return await self.friends.send_friend_request(
            from_uid, to_uid, username, online, photo_url=photo_url, to_username=to_username
        )

    async def get_received_requests(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.get_received_requests(user_id, online)

    async def get_sent_requests(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.get_sent_requests(user_id, online)

    async def accept_friend_request(self, request_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.accept_friend_request(request_id, user_id, online)

    async def reject_friend_request(self, request_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.reject_friend_request(request_id, user_id, online)

    async def remove_friend(self, friendship_id: str, user_id: str, online: bool) -> ApiResult[Any]:
        return await self.friends.remove_friend(friendship_id, user_id, online)

    # Synchronization

    async def sync_all(self, user_id: str, online: bool) -> ApiResult[Any]:
        """Synchronize profile, workouts, plans and weight log for one user.

        Each entity is synchronized independently; one failing does not stop
        the others.

        Returns:
            ApiResult with ``{entity: report-or-error}`` and ``ok`` telling
            whether every entity synchronized cleanly. Fails as a whole only
            when the remote store cannot be used or ``user_id`` is missing.
        """
        steps = (
            ("profile", self.profiles.sync_profile),
            ("workouts", self.workouts.sync_workouts),
            ("workout_plans", self.plans.sync_workout_plans),
            ("weight_log", self.weight_log.sync_weight_log),
        )

        async def operation() -> dict[str, Any]:
            self._base.require(userId=user_id)
            if not self._base.can_use_remote(online):
                raise OfflineRejectedError("Cannot synchronize while offline")

            summary: dict[str, Any] = {}
            ok = True
            for name, step in steps:
                result = await step(user_id, online)
                if result.success and isinstance(result.data, SyncReport):
                    summary[name] = result.data.to_dict()
                    ok = ok and result.data.ok
                elif result.error is not None and result.error.code == "not_found" and name == "profile":
                    summary[name] = SyncReport(entity="profile").to_dict()
                else:
                    summary[name] = {"error": result.error.model_dump() if result.error else None}
                    ok = False

            logger.info("Full synchronization for %s finished, ok=%s", user_id, ok)
            return {"ok": ok, "reports": summary}

        return await self._base._execute(operation, "sync_all_error", "Failed to synchronize data")
