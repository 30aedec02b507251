"""User profile service.

Profiles live locally in a mapping keyed by ``uid`` and remotely in the
``users`` collection. Local/remote merges follow ``PROFILE_MERGE_POLICY``.
"""

import asyncio
import logging
from typing import Any

from gymtrack_sync.cache import create_cache_key
from gymtrack_sync.dto import ApiResult, SettingsInput, UserProfileInput, validate_input
from gymtrack_sync.errors import NotFoundError, OfflineRejectedError
from gymtrack_sync.models import RemotePath, StorageKey, SyncReport
from gymtrack_sync.services.base import SyncService
from gymtrack_sync.utils import PROFILE_MERGE_POLICY, merge_data, sanitize_document

logger = logging.getLogger(__name__)

PROFILE_CACHE_PREFIX = "profile"


def profile_cache_key(uid: str) -> str:
    return create_cache_key(PROFILE_CACHE_PREFIX, uid)


def merge_profiles(local: dict[str, Any] | None, remote: dict[str, Any] | None) -> dict[str, Any] | None:
    """Merge two versions of a profile under the profile field policy."""
    return merge_data(local, remote, PROFILE_MERGE_POLICY)


class ProfileService(SyncService):
    """Profile reads and writes with offline support.

    Example:
        ```python
        service = ProfileService(context)
        await service.save_profile({"uid": "u1", "username": "lifter", "weight": 82}, online=False)
        result = await service.get_profile("u1", online=False)
        result.data["weight"]  # 82.0
        ```
    """

    @staticmethod
    def _to_remote(profile: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in profile.items() if key != "id"}

    async def _local_profile(self, uid: str) -> dict[str, Any] | None:
        profiles = await self._storage.load(StorageKey.PROFILE)
        if not isinstance(profiles, dict):
            return None
        return profiles.get(uid)

    async def _store_profile(self, uid: str, profile: dict[str, Any] | None) -> None:
        profiles = await self._load_mapping(StorageKey.PROFILE)
        if profile is None:
            profiles.pop(uid, None)
        else:
            profiles[uid] = profile
        await self._storage.save(StorageKey.PROFILE, profiles)

    async def _fetch_remote_profile(self, uid: str) -> dict[str, Any] | None:
        document = await self._remote.get_document(RemotePath.USERS, uid)
        if document is None or document.get("deleted"):
            return None
        return document

    async def _upsert_remote(
        self,
        uid: str,
        profile: dict[str, Any],
        changes: dict[str, Any] | None = None,
    ) -> None:
        """Update the remote profile, creating it when it does not exist yet.

        Args:
            uid: Profile owner
            profile: Complete local profile, written when the remote one is absent
            changes: Fields to update on an existing remote profile; defaults
                to the whole profile
        """
        existing = await self._remote.get_document(RemotePath.USERS, uid)
        if existing is None:
            await self._remote.set_document(RemotePath.USERS, uid, self._to_remote(profile))
        else:
            await self._remote.update_document(RemotePath.USERS, uid, self._to_remote(changes or profile))

    # Operations

    async def save_profile(self, profile: dict[str, Any], online: bool) -> ApiResult[Any]:
        """Save or update a profile locally, then remotely when online."""

        async def operation() -> dict[str, Any]:
            document = validate_input(UserProfileInput, profile, required=("uid",))
            uid = document["uid"]

            existing = await self._local_profile(uid)
            merged = merge_data(document, existing) if existing else dict(document)
            merged["updatedAt"] = self.timestamp()

            await self._store_profile(uid, merged)
            self._cache.invalidate(profile_cache_key(uid))

            if self.can_use_remote(online):
                await self._remote_write(f"profile {uid}", lambda: self._upsert_remote(uid, merged))
            return merged

        return await self._execute(operation, "save_profile_error", "Failed to save user profile")

    async def get_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        """Get a profile; ``data`` is None when no copy exists anywhere."""

        async def operation() -> dict[str, Any] | None:
            self.require(uid=uid)
            return await self.get_with_cache(
                profile_cache_key(uid),
                fetch_remote=lambda: self._fetch_remote_profile(uid),
                fetch_local=lambda: self._local_profile(uid),
                online=online,
                merge=merge_profiles,
                persist=lambda merged: self._store_profile(uid, merged),
            )

        return await self._execute(operation, "get_profile_error", "Failed to retrieve user profile")

    async def delete_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        """Remove the local profile and soft-delete the remote one."""

        async def operation() -> bool:
            self.require(uid=uid)
            await self._store_profile(uid, None)
            self._cache.invalidate(profile_cache_key(uid))

            if self.can_use_remote(online):
                await self._remote_write(
                    f"profile {uid}",
                    lambda: self._remote.update_document(
                        RemotePath.USERS,
                        uid,
                        {"deleted": True, "deletedAt": self.timestamp()},
                    ),
                )
            return True

        return await self._execute(operation, "delete_profile_error", "Failed to delete user profile")

    async def update_settings(
        self,
        uid: str,
        settings: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        """Merge whitelisted settings into the profile's ``settings``.

        Returns:
            ApiResult with the complete merged settings
        """

        async def operation() -> dict[str, Any]:
            self.require(uid=uid)
            changes = validate_input(SettingsInput, settings)

            profile = await self._local_profile(uid) or {"uid": uid}
            merged_settings = {**profile.get("settings", {}), **changes}
            update = {"settings": merged_settings, "updatedAt": self.timestamp()}
            updated_profile = {**profile, **update}
            await self._store_profile(uid, updated_profile)
            self._cache.invalidate(profile_cache_key(uid))

            if self.can_use_remote(online):
                await self._remote_write(
                    f"settings of {uid}",
                    lambda: self._upsert_remote(uid, updated_profile, update),
                )
            return merged_settings

        return await self._execute(operation, "update_settings_error", "Failed to update user settings")

    async def get_profiles(self, uids: list[str], online: bool) -> ApiResult[Any]:
        """Batch profile lookup (e.g. for friend lists).

        Online, each profile is fetched remotely and cached; individual
        failures are skipped. Offline, only cached profiles are returned.
        """

        async def fetch(uid: str) -> dict[str, Any] | None:
            try:
                document = await self._with_retry(lambda: self._fetch_remote_profile(uid))
            except Exception as e:
                logger.warning("Failed to fetch profile %s: %s", uid, e)
                return None
            if document is None:
                return None
            profile = sanitize_document(document)
            self._cache.put(profile_cache_key(uid), profile)
            return profile

        async def operation() -> list[dict[str, Any]]:
            wanted = [uid for uid in dict.fromkeys(uids or []) if uid]
            if not wanted:
                return []

            if self.can_use_remote(online):
                found = await asyncio.gather(*(fetch(uid) for uid in wanted))
            else:
                found = [self._cache.get(profile_cache_key(uid)) for uid in wanted]
            return [profile for profile in found if profile is not None]

        return await self._execute(
            operation,
            "get_multiple_profiles_error",
            "Failed to retrieve multiple user profiles",
        )

    async def sync_profile(self, uid: str, online: bool) -> ApiResult[Any]:
        """Merge local and remote profiles and write the result to both sides."""

        async def operation() -> SyncReport:
            self.require(uid=uid)
            if not self.can_use_remote(online):
                raise OfflineRejectedError("Cannot synchronize profile while offline")

            remote = await self._with_retry(lambda: self._fetch_remote_profile(uid))
            local = await self._local_profile(uid)
            if remote is None and local is None:
                raise NotFoundError(f"Profile {uid} not found")

            remote = sanitize_document(remote) if remote is not None else None
            merged = merge_profiles(local, remote)
            merged["updatedAt"] = self.timestamp()

            await self._store_profile(uid, merged)
            self._cache.invalidate(profile_cache_key(uid))

            report = SyncReport(entity="profile", total=1)
            if remote is not None:
                report.pulled.append(uid)
            try:
                await self._with_retry(lambda: self._upsert_remote(uid, merged))
                report.pushed.append(uid)
            except Exception as e:
                logger.warning("Failed to push profile %s: %s", uid, e)
                report.failed.append(uid)

            logger.info("Synchronized profile %s", uid)
            return report

        return await self._execute(operation, "sync_user_data_error", "Failed to synchronize user data")
