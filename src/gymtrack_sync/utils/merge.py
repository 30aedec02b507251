"""Local/remote merge primitives.

``merge_data`` combines two versions of one record; ``reconcile_records``
combines two versions of a whole collection during full synchronization.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from gymtrack_sync.utils.sanitize import parse_timestamp

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class FieldPolicy(str, Enum):
    """Per-field precedence rule applied by ``merge_data``."""

    LOCAL_WINS = "local_wins"
    REMOTE_WINS = "remote_wins"
    NEWEST_WINS = "newest_wins"


MergePolicy = dict[str, FieldPolicy]

# Identity-facing fields follow the server, biometrics follow the device
PROFILE_MERGE_POLICY: MergePolicy = {
    "username": FieldPolicy.REMOTE_WINS,
    "weight": FieldPolicy.LOCAL_WINS,
    "height": FieldPolicy.LOCAL_WINS,
}


def record_timestamp(record: dict[str, Any], timestamp_field: str = "updatedAt") -> datetime:
    """Last-modified time of a record; records without one sort as oldest."""
    return parse_timestamp(record.get(timestamp_field)) or _EPOCH


def merge_data(
    local: Any,
    remote: Any,
    policy: MergePolicy | None = None,
    timestamp_field: str = "updatedAt",
) -> Any:
    """Merge a local and a remote version of the same record.

    The remote record is the base and every local key with a non-None value
    is laid over it. Nested mappings present on both sides are merged
    recursively; lists and scalars are taken from local wholesale. ``policy``
    overrides the rule for individual top-level fields.

    Args:
        local: Record from the local store (may be None)
        remote: Record from the remote store (may be None)
        policy: Optional field -> FieldPolicy table
        timestamp_field: Field compared for ``FieldPolicy.NEWEST_WINS``

    Returns:
        The merged record

    Example:
        ```python
        merge_data(
            {"weight": 82, "height": 180},
            {"weight": 81, "username": "remote"},
            PROFILE_MERGE_POLICY,
        )
        # {"weight": 82, "height": 180, "username": "remote"}
        ```
    """
    if remote is None:
        return local
    if local is None:
        return remote
    if not isinstance(local, dict) or not isinstance(remote, dict):
        return local

    policy = policy or {}
    local_is_newer: bool | None = None
    merged = dict(remote)

    for key, value in local.items():
        if value is None:
            continue

        rule = policy.get(key)
        if rule is FieldPolicy.REMOTE_WINS and remote.get(key) is not None:
            continue
        if rule is FieldPolicy.LOCAL_WINS:
            merged[key] = value
            continue
        if rule is FieldPolicy.NEWEST_WINS and key in remote:
            if local_is_newer is None:
                local_is_newer = record_timestamp(local, timestamp_field) > record_timestamp(
                    remote, timestamp_field
                )
            if not local_is_newer:
                continue
            merged[key] = value
            continue

        remote_value = remote.get(key)
        if isinstance(value, dict) and isinstance(remote_value, dict):
            merged[key] = merge_data(value, remote_value)
        else:
            merged[key] = value

    return merged


@dataclass
class Reconciliation:
    """Result of reconciling a local and a remote collection."""

    records: list[dict[str, Any]] = field(default_factory=list)
    to_push: list[dict[str, Any]] = field(default_factory=list)
    pulled: list[str] = field(default_factory=list)


def reconcile_records(
    local: list[dict[str, Any]],
    remote: list[dict[str, Any]],
    key: str = "id",
    timestamp_field: str = "updatedAt",
) -> Reconciliation:
    """Reconcile two versions of a collection by last-modified time.

    For records on both sides the one with the later ``timestamp_field``
    wins and a tie goes to remote. Local-only records (including records
    without a key) must be pushed; remote-only records are pulled.

    Args:
        local: Records from the local store
        remote: Records from the remote store
        key: Identity field
        timestamp_field: Last-modified field

    Returns:
        Reconciliation with the winning records (local order first, then
        remote-only records), the local records to push, and the ids pulled
    """
    result = Reconciliation()
    remote_by_key = {record[key]: record for record in remote if record.get(key) is not None}
    seen: set[Any] = set()

    for record in local:
        record_key = record.get(key)
        counterpart = remote_by_key.get(record_key) if record_key is not None else None

        if counterpart is None:
            result.records.append(record)
            result.to_push.append(record)
            continue

        seen.add(record_key)
        if record_timestamp(record, timestamp_field) > record_timestamp(counterpart, timestamp_field):
            result.records.append(record)
            result.to_push.append(record)
        else:
            result.records.append(counterpart)
            if counterpart != record:
                result.pulled.append(str(record_key))

    for record_key, record in remote_by_key.items():
        if record_key not in seen:
            result.records.append(record)
            result.pulled.append(str(record_key))

    return result
