import datetime as dt
import uuid
from pydantic import BaseModel, field_validator

from liftlog.schemas.common import DescriptionStr, NameStr, PosInt, non_blank, not_null
from liftlog.schemas.exercise import ExerciseDetail

class WorkoutCreate(BaseModel):
    name: NameStr
    date: dt.date
    description: DescriptionStr | None = None
    duration_minutes: PosInt | None = None

    @field_validator("name")
    @classmethod
    def name_non_blank(cls, v: str) -> str:
        return non_blank(v, "name")  # return the trimmed value so the DB gets clean text

class WorkoutUpdate(BaseModel):
    # Only fields present in the payload are applied; description/duration may be cleared with null
    name: NameStr | None = None
    date: dt.date | None = None
    description: DescriptionStr | None = None
    duration_minutes: PosInt | None = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def name_non_blank(cls, v: str | None) -> str:
        return non_blank(v, "name")

    @field_validator("date")
    @classmethod
    def date_not_null(cls, v: dt.date | None) -> dt.date:
        return not_null(v, "date")

class WorkoutRead(BaseModel):
    id: uuid.UUID
    user_id: str
    name: str
    description: str | None = None
    date: dt.date
    duration_minutes: int | None = None
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

class WorkoutDetail(WorkoutRead):
    """A workout with its exercises and their sets loaded. Never returned by list endpoints."""
    exercises: list[ExerciseDetail]
