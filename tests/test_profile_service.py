"""
Tests for the profile service.
"""

import pytest

from gymtrack_sync.models import StorageKey
from gymtrack_sync.services import ProfileService
from gymtrack_sync.services.profile_service import merge_profiles


@pytest.fixture
def profiles(context):
    return ProfileService(context)


async def local_profiles(context):
    return await context.storage.load(StorageKey.PROFILE)


def test_merge_profiles_policy():
    merged = merge_profiles(
        {"uid": "u1", "weight": 82, "height": 180},
        {"uid": "u1", "weight": 81, "username": "remote"},
    )
    assert merged["weight"] == 82
    assert merged["height"] == 180
    assert merged["username"] == "remote"


async def test_save_offline_then_get_offline(profiles, remote):
    saved = await profiles.save_profile({"uid": "u1", "username": "lifter", "weight": 82}, online=False)
    assert saved.success
    assert remote.calls == []

    result = await profiles.get_profile("u1", online=False)

    assert result.data["username"] == "lifter"
    assert result.data["weight"] == 82
    assert "updatedAt" in result.data


async def test_save_online_creates_then_updates_remote(profiles, remote):
    await profiles.save_profile({"uid": "u1", "username": "lifter"}, online=True)
    assert remote.documents("users")["u1"]["username"] == "lifter"

    await profiles.save_profile({"uid": "u1", "weight": 90}, online=True)

    document = remote.documents("users")["u1"]
    assert document["username"] == "lifter"
    assert document["weight"] == 90
    assert ("update_document", "users") in remote.calls


async def test_save_merges_with_existing_local_profile(profiles, context):
    await profiles.save_profile({"uid": "u1", "username": "lifter", "height": 180}, online=False)
    await profiles.save_profile({"uid": "u1", "height": 181}, online=False)

    stored = (await local_profiles(context))["u1"]
    assert stored["username"] == "lifter"
    assert stored["height"] == 181


@pytest.mark.parametrize(
    "profile",
    [
        {"uid": "u1", "email": "not-an-email"},
        {"uid": "u1", "username": "x"},
        {"uid": "u1", "age": 200},
        {"uid": "u1", "weight": -1},
    ],
)
async def test_invalid_profiles_are_rejected(profiles, context, profile):
    result = await profiles.save_profile(profile, online=False)

    assert result.error.code == "validation_failed"
    assert await local_profiles(context) == {}


async def test_missing_uid(profiles):
    result = await profiles.save_profile({"username": "lifter"}, online=False)
    assert result.error.code == "missing_required_field"


async def test_unknown_profile_is_none_not_error(profiles):
    result = await profiles.get_profile("ghost", online=True)
    assert result.success
    assert result.data is None


async def test_get_online_returns_remote_and_persists_policy_merge(profiles, remote, context):
    await profiles.save_profile({"uid": "u1", "username": "local", "weight": 82, "height": 180}, online=False)
    remote.seed("users", "u1", {"uid": "u1", "username": "remote", "weight": 81, "password": "x"})

    result = await profiles.get_profile("u1", online=True)

    assert result.data["username"] == "remote"
    assert "password" not in result.data
    stored = (await local_profiles(context))["u1"]
    assert stored["weight"] == 82
    assert stored["height"] == 180
    assert stored["username"] == "remote"


async def test_get_falls_back_to_local_when_remote_unreachable(profiles, remote):
    await profiles.save_profile({"uid": "u1", "username": "lifter"}, online=False)
    remote.available = False

    result = await profiles.get_profile("u1", online=True)

    assert result.data["username"] == "lifter"


async def test_delete_profile_soft_deletes_remote(profiles, remote, context):
    await profiles.save_profile({"uid": "u1", "username": "lifter"}, online=True)

    result = await profiles.delete_profile("u1", online=True)

    assert result.data is True
    assert "u1" not in await local_profiles(context)
    document = remote.documents("users")["u1"]
    assert document["deleted"] is True
    assert "deletedAt" in document
    assert (await profiles.get_profile("u1", online=True)).data is None


async def test_update_settings_merges_whitelisted_keys(profiles, remote, context):
    await profiles.save_profile({"uid": "u1", "username": "lifter"}, online=True)
    await profiles.update_settings("u1", {"darkMode": True}, online=True)

    result = await profiles.update_settings("u1", {"weightUnit": "kg", "hacker": 1}, online=True)

    assert result.data == {"darkMode": True, "weightUnit": "kg"}
    assert (await local_profiles(context))["u1"]["settings"] == result.data
    assert remote.documents("users")["u1"]["settings"] == result.data


async def test_get_profiles_batch(profiles, remote):
    remote.seed("users", "u1", {"uid": "u1", "username": "one"})
    remote.seed("users", "u2", {"uid": "u2", "username": "two"})
    online = await profiles.get_profiles(["u1", "u2", "u2", "u3", ""], online=True)
    assert sorted(profile["username"] for profile in online.data) == ["one", "two"]

    offline = await profiles.get_profiles(["u1", "u2", "u3"], online=False)
    assert sorted(profile["username"] for profile in offline.data) == ["one", "two"]


async def test_get_profiles_skips_failed_lookups(profiles, remote):
    remote.seed("users", "u1", {"uid": "u1", "username": "one"})
    remote.fail_on("get_document", error=ValueError("boom"))

    result = await profiles.get_profiles(["u1"], online=True)

    assert result.success
    assert result.data == []


async def test_get_profiles_empty_input(profiles, remote):
    result = await profiles.get_profiles([], online=True)
    assert result.data == []
    assert remote.calls == []


async def test_sync_profile_offline_is_rejected(profiles):
    result = await profiles.sync_profile("u1", online=False)
    assert result.error.code == "offline_write_rejected"


async def test_sync_profile_not_found(profiles):
    result = await profiles.sync_profile("ghost", online=True)
    assert result.error.code == "not_found"


async def test_sync_profile_pushes_local_changes(profiles, remote, context):
    await profiles.save_profile({"uid": "u1", "username": "lifter", "weight": 82}, online=False)
    remote.seed("users", "u1", {"uid": "u1", "username": "server", "weight": 81, "email": "a@b.co"})

    result = await profiles.sync_profile("u1", online=True)

    report = result.data
    assert report.pushed == ["u1"]
    assert report.pulled == ["u1"]
    document = remote.documents("users")["u1"]
    assert document["weight"] == 82
    assert document["username"] == "server"
    assert (await local_profiles(context))["u1"]["email"] == "a@b.co"


async def test_get_online_keeps_biometric_setting(profiles, remote, context):
    remote.seed(
        "users",
        "u1",
        {"uid": "u1", "username": "lifter", "settings": {"darkMode": True, "useBiometricAuth": True}},
    )

    result = await profiles.get_profile("u1", online=True)

    assert result.data["settings"] == {"darkMode": True, "useBiometricAuth": True}
    assert (await local_profiles(context))["u1"]["settings"]["useBiometricAuth"] is True


async def test_update_settings_creates_missing_remote_profile(profiles, remote):
    await profiles.save_profile({"uid": "u1", "username": "lifter"}, online=False)

    result = await profiles.update_settings("u1", {"useBiometricAuth": True}, online=True)

    assert result.data == {"useBiometricAuth": True}
    document = remote.documents("users")["u1"]
    assert document["username"] == "lifter"
    assert document["settings"] == {"useBiometricAuth": True}
    assert ("update_document", "users") not in remote.calls
