"""Daily body-weight log service.

One entry per user per calendar date: logging a date that already has an
entry replaces it. Each entry stores ``change``, the delta from the latest
entry of an earlier date, computed when the entry is written.
"""

import re
from typing import Any

from gymtrack_sync.dto import ApiResult, WeightLogInput, validate_input
from gymtrack_sync.errors import ValidationFailedError
from gymtrack_sync.models import RemotePath, StorageKey
from gymtrack_sync.services.collection import UserCollectionService


def date_id(day: str) -> str:
    """Derive an entry id from its date: ``2024-01-01`` -> ``20240101``."""
    return re.sub(r"[^0-9]", "", day)


def weight_change(entry: dict[str, Any], user_entries: list[dict[str, Any]]) -> float | None:
    """Delta from the latest entry dated strictly before ``entry``."""
    earlier = [other for other in user_entries if other.get("date", "") < entry["date"]]
    if not earlier:
        return None
    previous = max(earlier, key=lambda other: other["date"])
    return round(entry["weight"] - previous["weight"], 3)


class WeightLogService(UserCollectionService):
    """Weight-log entries, stored per user and newest first.

    Example:
        ```python
        service = WeightLogService(context)
        await service.log_weight({"userId": "u1", "date": "2024-01-01", "weight": 80}, online=True)
        result = await service.get_weight_log("u1", online=True)
        ```
    """

    storage_key = StorageKey.DAILY_WEIGHT_LOG
    subcollection = RemotePath.WEIGHT_LOG
    cache_prefix = "weightLog"
    input_model = WeightLogInput
    entity_name = "weight log entry"

    def sort_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return sorted(records, key=lambda record: record.get("date", ""), reverse=True)

    def _prepare(
        self,
        document: dict[str, Any],
        existing: dict[str, Any] | None,
        user_records: list[dict[str, Any]],
    ) -> dict[str, Any]:
        clash = [
            other
            for other in user_records
            if other.get("date") == document["date"] and other.get("id") != document["id"]
        ]
        if clash:
            raise ValidationFailedError(
                f"Another weight log entry already exists for {document['date']}",
                details={"date": document["date"], "id": clash[0].get("id")},
            )

        record = dict(document)
        change = weight_change(record, user_records)
        if change is None:
            record.pop("change", None)
        else:
            record["change"] = change
        return record

    async def _log_weight(self, entry: dict[str, Any], online: bool) -> dict[str, Any]:
        document = validate_input(WeightLogInput, entry, required=("userId", "weight", "date"))
        document.setdefault("notes", "")
        user_id = document["userId"]

        records = await self._load_list(self.storage_key)
        same_day = next(
            (
                record
                for record in records
                if record.get("userId") == user_id and record.get("date") == document["date"]
            ),
            None,
        )
        entry_id = document.get("id") or (same_day or {}).get("id") or date_id(document["date"])
        document["id"] = entry_id

        # Drop the entry being replaced (same date, or same id on another date)
        remaining = [
            record
            for record in records
            if not (
                record.get("userId") == user_id
                and (record.get("date") == document["date"] or record.get("id") == entry_id)
            )
        ]

        record = {**(same_day or {}), **document}
        record = self._prepare(record, same_day, self._owned(remaining, user_id))

        now = self.timestamp()
        record["createdAt"] = (same_day or {}).get("createdAt", now)
        record["updatedAt"] = now

        await self._storage.save(self.storage_key, self.sort_records(remaining + [record]))
        self._invalidate(user_id)

        if self.can_use_remote(online):
            path = self._path(user_id)
            await self._remote_write(
                f"weight log entry {entry_id}",
                lambda: self._remote.set_document(path, entry_id, self._to_remote(record)),
            )
            replaced_id = (same_day or {}).get("id")
            if replaced_id and replaced_id != entry_id:
                await self._remote_write(
                    f"weight log entry {replaced_id}",
                    lambda: self._remote.delete_document(path, replaced_id),
                )
        return record

    async def log_weight(self, entry: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self._log_weight(entry, online),
            "log_weight_error",
            "Failed to save weight log entry",
        )

    async def get_weight_log(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.list_records(user_id, online),
            "get_weight_log_error",
            "Failed to retrieve weight log entries",
        )

    async def update_weight_entry(
        self,
        user_id: str,
        entry_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.update_record(user_id, entry_id, changes, online),
            "update_weight_log_error",
            "Failed to update weight log entry",
        )

    async def delete_weight_entry(self, user_id: str, entry_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.delete_record(user_id, entry_id, online),
            "delete_weight_log_error",
            "Failed to delete weight log entry",
        )

    async def sync_weight_log(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.sync_records(user_id, online),
            "sync_weight_log_error",
            "Failed to synchronize weight log",
        )
