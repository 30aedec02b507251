"""Request DTOs: validation models for every entity write.

Field names follow the camelCase document layout through aliases, so
``model_dump(by_alias=True)`` yields exactly what is stored locally and
remotely. Models ignore unknown keys where the stored document has a fixed
set of fields and keep them where the document is open-ended.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gymtrack_sync.errors import MissingFieldError, ValidationFailedError

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
USERNAME_PATTERN = r"^[A-Za-z0-9_]{3,20}$"
URL_PATTERN = (
    r"^(https?://)?(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)
WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

MIN_LOG_DATE = date(1900, 1, 1)


def parse_calendar_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` or a full ISO-8601 timestamp into a date.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    text = value.strip()
    if re.fullmatch(r"\d{4}-\d{2}-\d{2}", text):
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    def to_document(self) -> dict[str, Any]:
        """Dump the fields the caller supplied, in stored (camelCase) form."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class UserProfileInput(_Document):
    """Profile write. Unknown keys are dropped."""

    uid: str = Field(..., min_length=1)
    email: str | None = Field(None, pattern=EMAIL_PATTERN)
    username: str | None = Field(None, pattern=USERNAME_PATTERN)
    profile_pic: str | None = Field(None, alias="profilePic", pattern=URL_PATTERN)
    user_goal: str | None = Field(None, alias="userGoal")
    streak: int | None = Field(None, ge=0)
    join_date: str | None = Field(None, alias="joinDate")
    last_active: str | None = Field(None, alias="lastActive")
    weight: float | None = Field(None, ge=0)
    height: float | None = Field(None, ge=0)
    age: int | None = Field(None, ge=0, le=120)
    settings: dict[str, Any] | None = None


class SettingsInput(_Document):
    """Whitelisted user settings. Unknown keys are dropped."""

    dark_mode: bool | None = Field(None, alias="darkMode")
    notifications: bool | None = None
    weight_unit: str | None = Field(None, alias="weightUnit")
    height_unit: str | None = Field(None, alias="heightUnit")
    distance_unit: str | None = Field(None, alias="distanceUnit")
    use_biometric_auth: bool | None = Field(None, alias="useBiometricAuth")
    remember_login: bool | None = Field(None, alias="rememberLogin")
    color_theme: str | None = Field(None, alias="colorTheme")
    language: str | None = None
    offline_mode: bool | None = Field(None, alias="offlineMode")
    data_sync_frequency: str | None = Field(None, alias="dataSyncFrequency")


class SetInput(_Document):
    """One performed set."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    weight: float = Field(..., ge=0)
    reps: int = Field(..., ge=0)


class ExerciseInput(_Document):
    """One performed exercise with its sets."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    sets: list[SetInput] = Field(..., min_length=1)


class WorkoutInput(_Document):
    """Workout write. Extra keys (notes, duration, ...) are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", str_strip_whitespace=True)

    id: str | None = None
    user_id: str = Field(..., alias="userId", min_length=1)
    name: str = Field(..., min_length=3, max_length=100)
    date: str
    exercises: list[ExerciseInput] = Field(..., min_length=1)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        parse_calendar_date(value)
        return value


class PlanSchedule(_Document):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    days: list[str] = Field(default_factory=list)

    @field_validator("days")
    @classmethod
    def check_days(cls, value: list[str]) -> list[str]:
        for day in value:
            if day.lower() not in WEEKDAYS:
                raise ValueError(f"Invalid day: {day}")
        return value


class PlanExerciseInput(_Document):
    """Exercise template inside a plan; carries no performance data."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = None
    name: str = Field(..., min_length=1)


class WorkoutPlanInput(_Document):
    """Workout plan write. Extra keys (description, goal, ...) are kept."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", str_strip_whitespace=True)

    id: str | None = None
    user_id: str = Field(..., alias="userId", min_length=1)
    name: str = Field(..., min_length=3, max_length=100)
    exercises: list[PlanExerciseInput] = Field(..., min_length=1)
    schedule: PlanSchedule | None = None


class WeightLogInput(_Document):
    """Weight log entry write. ``date`` is normalized to ``YYYY-MM-DD``."""

    id: str | None = None
    user_id: str = Field(..., alias="userId", min_length=1)
    weight: float = Field(..., gt=0)
    date: str
    notes: str = ""

    @field_validator("date")
    @classmethod
    def check_date(cls, value: str) -> str:
        day = parse_calendar_date(value)
        latest = datetime.now(timezone.utc).date() + timedelta(days=365)
        if not MIN_LOG_DATE <= day <= latest:
            raise ValueError("Date must be between 1900-01-01 and one year from today")
        return day.isoformat()


class FriendRequestInput(_Document):
    """New friend request from one user to another."""

    from_uid: str = Field(..., alias="fromUid", min_length=1)
    to_uid: str = Field(..., alias="toUid", min_length=1)
    from_username: str = Field(..., alias="fromUsername", min_length=1)
    from_photo_url: str | None = Field(None, alias="fromPhotoUrl")
    to_username: str | None = Field(None, alias="toUsername")


def _error_details(error: ValidationError) -> list[dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


def validate_input(
    model: type[_Document],
    data: dict[str, Any] | BaseModel,
    required: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Validate raw input against a request model.

    Args:
        model: Request model class
        data: Raw input (camelCase keys) or an already-built model
        required: Keys whose absence is reported as a missing field rather
            than a validation failure

    Returns:
        The validated document in stored (camelCase) form

    Raises:
        MissingFieldError: If a ``required`` key is absent or None
        ValidationFailedError: If any other rule fails
    """
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_unset=True)
    if not isinstance(data, dict):
        raise ValidationFailedError(f"{model.__name__} expects an object")

    missing = [name for name in required if data.get(name) in (None, "")]
    if missing:
        raise MissingFieldError(f"Missing required fields: {', '.join(missing)}", details=missing)

    try:
        return model.model_validate(data).to_document()
    except ValidationError as e:
        raise ValidationFailedError(
            f"{model.__name__} validation failed",
            details=_error_details(e),
        ) from e
