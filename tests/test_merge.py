"""
Tests for record merging and collection reconciliation.
"""

from gymtrack_sync.utils import (
    PROFILE_MERGE_POLICY,
    FieldPolicy,
    merge_data,
    reconcile_records,
)


def test_disjoint_keys_merge_to_union():
    assert merge_data({"a": 1}, {"b": 2}) == {"a": 1, "b": 2}


def test_local_values_win_on_overlap():
    merged = merge_data({"a": 1, "b": "local"}, {"b": "remote", "c": 3})
    assert merged == {"a": 1, "b": "local", "c": 3}


def test_none_local_values_do_not_overwrite():
    assert merge_data({"a": None}, {"a": "remote"}) == {"a": "remote"}


def test_nested_objects_merge_recursively_and_lists_do_not():
    local = {"settings": {"darkMode": True}, "tags": ["x"]}
    remote = {"settings": {"language": "en", "darkMode": False}, "tags": ["y", "z"]}

    merged = merge_data(local, remote)

    assert merged["settings"] == {"language": "en", "darkMode": True}
    assert merged["tags"] == ["x"]


def test_missing_side_returns_other():
    assert merge_data(None, {"a": 1}) == {"a": 1}
    assert merge_data({"a": 1}, None) == {"a": 1}
    assert merge_data(None, None) is None


def test_profile_policy():
    merged = merge_data(
        {"weight": 82, "height": 180, "username": "local"},
        {"weight": 81, "username": "remote"},
        PROFILE_MERGE_POLICY,
    )
    assert merged["weight"] == 82
    assert merged["height"] == 180
    assert merged["username"] == "remote"


def test_remote_wins_falls_back_to_local_when_remote_lacks_field():
    merged = merge_data({"username": "local"}, {"email": "a@b.co"}, PROFILE_MERGE_POLICY)
    assert merged["username"] == "local"


def test_newest_wins_compares_updated_at():
    policy = {"notes": FieldPolicy.NEWEST_WINS}
    older_local = {"notes": "local", "updatedAt": "2024-01-01T00:00:00.000Z"}
    newer_remote = {"notes": "remote", "updatedAt": "2024-02-01T00:00:00.000Z"}

    assert merge_data(older_local, newer_remote, policy)["notes"] == "remote"
    assert merge_data(
        {**older_local, "updatedAt": "2024-03-01T00:00:00.000Z"}, newer_remote, policy
    )["notes"] == "local"


def test_reconcile_newer_side_wins_and_tie_goes_to_remote():
    local = [
        {"id": "a", "v": "local-new", "updatedAt": "2024-02-01T00:00:00Z"},
        {"id": "b", "v": "local-old", "updatedAt": "2024-01-01T00:00:00Z"},
        {"id": "c", "v": "local-tie", "updatedAt": "2024-01-01T00:00:00Z"},
    ]
    remote = [
        {"id": "a", "v": "remote-old", "updatedAt": "2024-01-01T00:00:00Z"},
        {"id": "b", "v": "remote-new", "updatedAt": "2024-02-01T00:00:00Z"},
        {"id": "c", "v": "remote-tie", "updatedAt": "2024-01-01T00:00:00Z"},
    ]

    result = reconcile_records(local, remote)

    by_id = {record["id"]: record["v"] for record in result.records}
    assert by_id == {"a": "local-new", "b": "remote-new", "c": "remote-tie"}
    assert [record["id"] for record in result.to_push] == ["a"]
    assert sorted(result.pulled) == ["b", "c"]


def test_reconcile_one_sided_records():
    local = [{"id": "local-only"}, {"name": "no id"}]
    remote = [{"id": "remote-only"}]

    result = reconcile_records(local, remote)

    assert len(result.records) == 3
    assert result.to_push == local
    assert result.pulled == ["remote-only"]


def test_reconcile_identical_records_is_a_no_op():
    records = [{"id": "a", "updatedAt": "2024-01-01T00:00:00Z"}]
    result = reconcile_records(records, [dict(records[0])])
    assert result.to_push == []
    assert result.pulled == []
    assert result.records == records
