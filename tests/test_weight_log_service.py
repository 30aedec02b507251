"""
Tests for the weight log service.
"""

import pytest

from gymtrack_sync.models import StorageKey
from gymtrack_sync.services import WeightLogService
from gymtrack_sync.services.weight_log_service import date_id, weight_change

LOG_PATH = "users/u1/weightLog"


@pytest.fixture
def weight_log(context):
    return WeightLogService(context)


def entry(day, weight, user_id="u1", **extra):
    return {"userId": user_id, "date": day, "weight": weight, **extra}


def test_date_id():
    assert date_id("2024-01-01") == "20240101"


def test_weight_change_uses_latest_earlier_entry():
    history = [entry("2024-01-01", 80), entry("2024-01-03", 79), entry("2024-01-10", 90)]
    assert weight_change(entry("2024-01-05", 78.5), history) == -0.5
    assert weight_change(entry("2023-12-01", 80), history) is None


async def test_log_weight_derives_id_and_defaults(weight_log, remote):
    result = await weight_log.log_weight(entry("2024-01-01", 80), online=True)

    assert result.success
    assert result.data["id"] == "20240101"
    assert result.data["notes"] == ""
    assert "change" not in result.data
    assert remote.documents(LOG_PATH)["20240101"]["weight"] == 80


async def test_same_day_logging_replaces_entry(weight_log, context):
    await weight_log.log_weight(entry("2023-12-31", 79), online=False)
    first = await weight_log.log_weight(entry("2024-01-01", 80), online=False)
    assert first.data["change"] == 1.0

    second = await weight_log.log_weight(entry("2024-01-01", 81), online=False)

    log = await weight_log.get_weight_log("u1", online=False)
    same_day = [item for item in log.data if item["date"] == "2024-01-01"]
    assert len(same_day) == 1
    assert same_day[0]["weight"] == 81
    assert same_day[0]["change"] == 2.0
    assert second.data["createdAt"] == first.data["createdAt"]
    assert [item["date"] for item in log.data] == ["2024-01-01", "2023-12-31"]


async def test_same_day_with_new_id_replaces_remote_entry(weight_log, remote):
    await weight_log.log_weight(entry("2024-01-01", 80), online=True)

    result = await weight_log.log_weight(entry("2024-01-01", 81, id="custom"), online=True)

    assert result.data["id"] == "custom"
    assert set(remote.documents(LOG_PATH)) == {"custom"}


async def test_dates_are_normalized(weight_log):
    result = await weight_log.log_weight(entry("2024-01-01T18:30:00Z", 80), online=False)
    assert result.data["date"] == "2024-01-01"
    assert result.data["id"] == "20240101"


@pytest.mark.parametrize(
    "bad_entry",
    [
        entry("1899-12-31", 80),
        entry("2999-01-01", 80),
        entry("not a date", 80),
        entry("2024-01-01", 0),
        entry("2024-01-01", -5),
    ],
)
async def test_invalid_entries_are_rejected(weight_log, context, bad_entry):
    result = await weight_log.log_weight(bad_entry, online=False)

    assert result.error.code == "validation_failed"
    assert await context.storage.load(StorageKey.DAILY_WEIGHT_LOG) == []


async def test_missing_fields_are_reported(weight_log):
    result = await weight_log.log_weight({"userId": "u1", "weight": 80}, online=False)
    assert result.error.code == "missing_required_field"
    assert result.error.details == ["date"]


async def test_update_recomputes_change(weight_log, remote):
    await weight_log.log_weight(entry("2024-01-01", 80), online=True)
    await weight_log.log_weight(entry("2024-01-02", 81), online=True)

    result = await weight_log.update_weight_entry("u1", "20240102", {"weight": 78}, online=True)

    assert result.data["weight"] == 78
    assert result.data["change"] == -2.0
    assert remote.documents(LOG_PATH)["20240102"]["change"] == -2.0


async def test_update_cannot_move_entry_onto_taken_date(weight_log):
    await weight_log.log_weight(entry("2024-01-01", 80), online=False)
    await weight_log.log_weight(entry("2024-01-02", 81), online=False)

    result = await weight_log.update_weight_entry("u1", "20240102", {"date": "2024-01-01"}, online=False)

    assert result.error.code == "validation_failed"


async def test_delete_weight_entry(weight_log, remote):
    await weight_log.log_weight(entry("2024-01-01", 80), online=True)

    result = await weight_log.delete_weight_entry("u1", "20240101", online=True)

    assert result.success
    assert remote.documents(LOG_PATH) == {}
    log = await weight_log.get_weight_log("u1", online=False)
    assert log.data == []


async def test_users_are_isolated(weight_log):
    await weight_log.log_weight(entry("2024-01-01", 80), online=False)
    await weight_log.log_weight(entry("2024-01-01", 60, user_id="u2"), online=False)

    log = await weight_log.get_weight_log("u2", online=False)

    assert len(log.data) == 1
    assert log.data[0]["weight"] == 60


async def test_sync_weight_log(weight_log, remote):
    await weight_log.log_weight(entry("2024-01-01", 80), online=False)
    remote.seed(
        LOG_PATH,
        "20231231",
        {"date": "2023-12-31", "weight": 79, "updatedAt": "2024-01-01T00:00:00.000Z"},
    )

    result = await weight_log.sync_weight_log("u1", online=True)

    assert result.data.pushed == ["20240101"]
    assert result.data.pulled == ["20231231"]
    log = await weight_log.get_weight_log("u1", online=False)
    assert [item["date"] for item in log.data] == ["2024-01-01", "2023-12-31"]
