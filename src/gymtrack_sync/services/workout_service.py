"""Workout history and workout plan services."""

from typing import Any

from gymtrack_sync.dto import ApiResult, WorkoutInput, WorkoutPlanInput
from gymtrack_sync.errors import ValidationFailedError
from gymtrack_sync.models import RemotePath, StorageKey
from gymtrack_sync.services.collection import UserCollectionService
from gymtrack_sync.utils import parse_timestamp

DEFAULT_RECENT_COUNT = 10


def _date_key(record: dict[str, Any]) -> str:
    parsed = parse_timestamp(record.get("date"))
    return parsed.isoformat() if parsed else ""


class WorkoutService(UserCollectionService):
    """Performed workouts, stored per user and newest first.

    Example:
        ```python
        service = WorkoutService(context)
        result = await service.save_workout(
            {"userId": "u1", "name": "Push day", "date": "2024-01-01",
             "exercises": [{"id": "bench", "name": "Bench", "sets": [{"weight": 60, "reps": 8}]}]},
            online=False,
        )
        result.data["id"]  # "local_..."
        ```
    """

    storage_key = StorageKey.WORKOUT_HISTORY
    subcollection = RemotePath.WORKOUT_HISTORY
    cache_prefix = "workouts"
    input_model = WorkoutInput
    entity_name = "workout"

    def sort_records(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return sorted(records, key=_date_key, reverse=True)

    async def get_all_workouts(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.list_records(user_id, online),
            "get_workouts_error",
            "Failed to retrieve workouts",
        )

    async def get_recent_workouts(
        self,
        user_id: str,
        online: bool,
        count: int = DEFAULT_RECENT_COUNT,
    ) -> ApiResult[Any]:
        async def operation() -> list[dict[str, Any]]:
            if count < 1:
                raise ValidationFailedError("count must be at least 1", details={"count": count})
            return (await self.list_records(user_id, online))[:count]

        return await self._execute(
            operation,
            "get_recent_workouts_error",
            "Failed to retrieve recent workouts",
        )

    async def get_workout(self, user_id: str, workout_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.get_record(user_id, workout_id, online),
            "get_workout_error",
            "Failed to retrieve workout",
        )

    async def save_workout(self, workout: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.save_record(workout, online),
            "save_workout_error",
            "Failed to save workout",
        )

    async def update_workout(
        self,
        user_id: str,
        workout_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.update_record(user_id, workout_id, changes, online),
            "update_workout_error",
            "Failed to update workout",
        )

    async def delete_workout(self, user_id: str, workout_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.delete_record(user_id, workout_id, online),
            "delete_workout_error",
            "Failed to delete workout",
        )

    async def sync_workouts(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.sync_records(user_id, online),
            "sync_workouts_error",
            "Failed to synchronize workouts",
        )


class WorkoutPlanService(UserCollectionService):
    """Workout templates, stored per user."""

    storage_key = StorageKey.WORKOUT_PLANS
    subcollection = RemotePath.WORKOUT_PLANS
    cache_prefix = "plans"
    input_model = WorkoutPlanInput
    entity_name = "workout plan"

    async def get_workout_plans(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.list_records(user_id, online),
            "get_workout_plans_error",
            "Failed to retrieve workout plans",
        )

    async def get_workout_plan(self, user_id: str, plan_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.get_record(user_id, plan_id, online),
            "get_workout_plan_error",
            "Failed to retrieve workout plan",
        )

    async def save_workout_plan(self, plan: dict[str, Any], online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.save_record(plan, online),
            "save_workout_plan_error",
            "Failed to save workout plan",
        )

    async def update_workout_plan(
        self,
        user_id: str,
        plan_id: str,
        changes: dict[str, Any],
        online: bool,
    ) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.update_record(user_id, plan_id, changes, online),
            "update_workout_plan_error",
            "Failed to update workout plan",
        )

    async def delete_workout_plan(self, user_id: str, plan_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.delete_record(user_id, plan_id, online),
            "delete_workout_plan_error",
            "Failed to delete workout plan",
        )

    async def sync_workout_plans(self, user_id: str, online: bool) -> ApiResult[Any]:
        return await self._execute(
            lambda: self.sync_records(user_id, online),
            "sync_workout_plans_error",
            "Failed to synchronize workout plans",
        )
