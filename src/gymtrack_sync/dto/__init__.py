"""Data Transfer Objects for API contracts.

These Pydantic models define the external contract: request models
validate entity writes, and ``ApiResult`` wraps the outcome of every
public operation.

Internal bookkeeping should use entities from the entities package.
"""

from .requests import (
    ExerciseInput,
    FriendRequestInput,
    PlanExerciseInput,
    SetInput,
    SettingsInput,
    UserProfileInput,
    WeightLogInput,
    WorkoutInput,
    WorkoutPlanInput,
    parse_calendar_date,
    validate_input,
)
from .responses import ApiError, ApiResult, HealthCheckResponse

__all__ = [
    "ApiError",
    "ApiResult",
    "ExerciseInput",
    "FriendRequestInput",
    "HealthCheckResponse",
    "PlanExerciseInput",
    "SetInput",
    "SettingsInput",
    "UserProfileInput",
    "WeightLogInput",
    "WorkoutInput",
    "WorkoutPlanInput",
    "parse_calendar_date",
    "validate_input",
]
