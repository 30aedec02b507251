"""Per-user record collections.

Workouts, workout plans and weight-log entries share one shape: a list of
records under a fixed storage key, each carrying ``userId`` and ``id``, and
mirrored remotely under ``users/{userId}/{subcollection}``.
"""

import logging
from typing import Any

from pydantic import BaseModel

from gymtrack_sync.cache import create_cache_key
from gymtrack_sync.dto.requests import validate_input
from gymtrack_sync.errors import NotFoundError, OfflineRejectedError
from gymtrack_sync.models import RemotePath, StorageKey, SyncReport
from gymtrack_sync.services.base import SyncService, generate_local_id, is_local_id
from gymtrack_sync.utils import merge_data, reconcile_records, sanitize_document

logger = logging.getLogger(__name__)

IDENTITY_FIELDS = ("id", "userId")


class UserCollectionService(SyncService):
    """Generic CRUD and full synchronization for one per-user collection.

    Subclasses set the class attributes and expose entity-named public
    operations that delegate to the ``*_record(s)`` methods here.
    """

    storage_key: StorageKey
    subcollection: str
    cache_prefix: str
    input_model: type[BaseModel]
    entity_name: str = "record"

    # Helpers

    def _path(self, user_id: str) -> str:
        return RemotePath.user_subcollection(user_id, self.subcollection)

    def _list_key(self, user_id: str) -> str:
        return create_cache_key(self.cache_prefix, user_id)

    def _record_key(self, user_id: str, record_id: str) -> str:
        return create_cache_key(self.cache_prefix, user_id, record_id)

    def _invalidate(self, user_id: str) -> None:
        list_key = self._list_key(user_id)
        self._cache.invalidate(list_key)
        self._cache.invalidate_prefix(f"{list_key}:")

    def sort_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Order records for presentation. Defaults to storage order."""
        return records

    @staticmethod
    def _to_remote(record: dict[str, Any]) -> dict[str, Any]:
        return {key: value for key, value in record.items() if key != "id"}

    @staticmethod
    def _owned(records: list[dict[str, Any]], user_id: str) -> list[dict[str, Any]]:
        return [record for record in records if record.get("userId") == user_id]

    @staticmethod
    def _find(records: list[dict[str, Any]], user_id: str, record_id: str) -> int | None:
        for index, record in enumerate(records):
            if record.get("id") == record_id and record.get("userId") == user_id:
                return index
        return None

    async def _local_user_records(self, user_id: str) -> list[dict[str, Any]] | None:
        records = await self._storage.load(self.storage_key)
        if not isinstance(records, list):
            return None
        return self.sort_records(self._owned(records, user_id))

    async def _replace_user_records(self, user_id: str, user_records: list[dict[str, Any]]) -> None:
        records = await self._load_list(self.storage_key)
        others = [record for record in records if record.get("userId") != user_id]
        await self._storage.save(self.storage_key, others + self.sort_records(user_records))

    async def _fetch_remote_records(self, user_id: str) -> list[dict[str, Any]]:
        documents = await self._remote.get_collection(self._path(user_id))
        return [{**document, "userId": user_id} for document in documents]

    def _merge_collections(
        self,
        local: list[dict[str, Any]],
        remote: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        return reconcile_records(local, remote).records

    async def _push_record(self, user_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Write one record remotely, through the retry executor.

        A record that still has a local id is created with a gateway-assigned
        id, which is returned in place of the local one.

        Raises:
            Exception: Whatever the gateway raised after retries
        """
        path = self._path(user_id)
        if is_local_id(record.get("id")):
            new_id = await self._with_retry(
                lambda: self._remote.add_document(path, self._to_remote(record))
            )
            return {**record, "id": new_id}

        await self._with_retry(
            lambda: self._remote.set_document(path, record["id"], self._to_remote(record))
        )
        return record

    async def _adopt_remote_id(self, user_id: str, old_id: str, record: dict[str, Any]) -> None:
        records = await self._load_list(self.storage_key)
        index = self._find(records, user_id, old_id)
        if index is not None:
            records[index] = record
            await self._storage.save(self.storage_key, records)

    async def _push_best_effort(self, user_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Push after a local write; failures are logged and swallowed."""
        try:
            pushed = await self._push_record(user_id, record)
        except Exception as e:
            logger.warning(
                "Remote write failed for %s %s, kept locally: %s",
                self.entity_name,
                record.get("id"),
                e,
            )
            return record

        if pushed["id"] != record["id"]:
            await self._adopt_remote_id(user_id, record["id"], pushed)
            self._invalidate(user_id)
        return pushed

    def _prepare(
        self,
        document: dict[str, Any],
        existing: dict[str, Any] | None,
        user_records: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Hook for entity-specific derived fields. Defaults to no change."""
        return document

    # Operations

    async def list_records(self, user_id: str, online: bool) -> list[dict[str, Any]]:
        self.require(userId=user_id)
        records = await self.get_with_cache(
            self._list_key(user_id),
            fetch_remote=lambda: self._fetch_remote_records(user_id),
            fetch_local=lambda: self._local_user_records(user_id),
            online=online,
            merge=self._merge_collections,
            persist=lambda merged: self._replace_user_records(user_id, merged),
            default=[],
        )
        return self.sort_records(list(records))

    async def get_record(self, user_id: str, record_id: str, online: bool) -> dict[str, Any]:
        self.require(userId=user_id, id=record_id)

        async def fetch_remote() -> dict[str, Any] | None:
            document = await self._remote.get_document(self._path(user_id), record_id)
            return {**document, "userId": user_id} if document else None

        async def fetch_local() -> dict[str, Any] | None:
            records = await self._local_user_records(user_id) or []
            index = self._find(records, user_id, record_id)
            return records[index] if index is not None else None

        async def persist(record: dict[str, Any]) -> None:
            records = await self._load_list(self.storage_key)
            index = self._find(records, user_id, record_id)
            if index is None:
                records.append(record)
            else:
                records[index] = record
            await self._storage.save(self.storage_key, records)

        record = await self.get_with_cache(
            self._record_key(user_id, record_id),
            fetch_remote=fetch_remote,
            fetch_local=fetch_local,
            online=online,
            merge=lambda local, remote: self._merge_collections([local], [remote])[0],
            persist=persist,
        )
        if record is None:
            raise NotFoundError(f"{self.entity_name.capitalize()} {record_id} not found")
        return record

    async def save_record(self, data: dict[str, Any] | BaseModel, online: bool) -> dict[str, Any]:
        document = validate_input(self.input_model, data, required=("userId",))
        user_id = document["userId"]

        records = await self._load_list(self.storage_key)
        index = self._find(records, user_id, document["id"]) if document.get("id") else None
        existing = records[index] if index is not None else None

        record = merge_data(document, existing) if existing else dict(document)
        record["id"] = record.get("id") or generate_local_id()
        record = self._prepare(record, existing, self._owned(records, user_id))

        now = self.timestamp()
        record.setdefault("createdAt", now)
        record["updatedAt"] = now

        if index is None:
            records.append(record)
        else:
            records[index] = record
        await self._storage.save(self.storage_key, records)
        self._invalidate(user_id)

        if self.can_use_remote(online):
            record = await self._push_best_effort(user_id, record)
        return record

    async def update_record(
        self,
        user_id: str,
        record_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> dict[str, Any]:
        self.require(userId=user_id, id=record_id)

        records = await self._load_list(self.storage_key)
        index = self._find(records, user_id, record_id)
        if index is None:
            raise NotFoundError(f"{self.entity_name.capitalize()} {record_id} not found")
        existing = records[index]

        editable = {key: value for key, value in changes.items() if key not in IDENTITY_FIELDS}
        candidate = merge_data(editable, existing)
        document = validate_input(self.input_model, candidate, required=("userId",))

        record = {**candidate, **document, "id": record_id, "userId": user_id}
        others = [r for r in self._owned(records, user_id) if r is not existing]
        record = self._prepare(record, existing, others)
        record["updatedAt"] = self.timestamp()

        records[index] = record
        await self._storage.save(self.storage_key, records)
        self._invalidate(user_id)

        if self.can_use_remote(online):
            if is_local_id(record_id):
                record = await self._push_best_effort(user_id, record)
            else:
                await self._remote_write(
                    f"{self.entity_name} {record_id}",
                    lambda: self._remote.update_document(
                        self._path(user_id), record_id, self._to_remote(record)
                    ),
                )
        return record

    async def delete_record(self, user_id: str, record_id: str, online: bool) -> bool:
        self.require(userId=user_id, id=record_id)

        records = await self._load_list(self.storage_key)
        index = self._find(records, user_id, record_id)
        if index is None:
            raise NotFoundError(f"{self.entity_name.capitalize()} {record_id} not found")

        del records[index]
        await self._storage.save(self.storage_key, records)
        self._invalidate(user_id)

        if self.can_use_remote(online) and not is_local_id(record_id):
            await self._remote_write(
                f"{self.entity_name} {record_id}",
                lambda: self._remote.delete_document(self._path(user_id), record_id),
            )
        return True

    async def sync_records(self, user_id: str, online: bool) -> SyncReport:
        """Full two-way synchronization of one user's collection.

        The newer side wins per record (remote on a tie); local-only and
        locally-newer records are pushed, remote-only and remotely-newer
        records are pulled.

        Raises:
            OfflineRejectedError: If the remote store cannot be used
        """
        self.require(userId=user_id)
        if not self.can_use_remote(online):
            raise OfflineRejectedError(f"Cannot synchronize {self.entity_name}s while offline")

        local = self._owned(await self._load_list(self.storage_key), user_id)
        remote = sanitize_document(await self._with_retry(lambda: self._fetch_remote_records(user_id)))
        reconciliation = reconcile_records(local, remote)

        report = SyncReport(entity=self.entity_name, pulled=reconciliation.pulled)
        replaced: dict[int, dict[str, Any]] = {}
        for record in reconciliation.to_push:
            try:
                pushed = await self._push_record(user_id, record)
            except Exception as e:
                logger.warning("Failed to push %s %s: %s", self.entity_name, record.get("id"), e)
                report.failed.append(str(record.get("id")))
                continue
            replaced[id(record)] = pushed
            report.pushed.append(str(pushed["id"]))

        merged = [replaced.get(id(record), record) for record in reconciliation.records]
        await self._replace_user_records(user_id, merged)
        self._invalidate(user_id)

        report.total = len(merged)
        logger.info(
            "Synchronized %ss for %s: %d pushed, %d pulled, %d failed",
            self.entity_name,
            user_id,
            len(report.pushed),
            len(report.pulled),
            len(report.failed),
        )
        return report
