import datetime as dt
import uuid
from pydantic import BaseModel, field_validator

from liftlog.schemas.common import DescriptionStr, NameStr, NonNegInt, non_blank, not_null
from liftlog.schemas.exercise_set import SetRead

class ExerciseCreate(BaseModel):
    name: NameStr
    order: NonNegInt
    description: DescriptionStr | None = None

    @field_validator("name")
    @classmethod
    def name_non_blank(cls, v: str) -> str:
        return non_blank(v, "name")

class ExerciseUpdate(BaseModel):
    name: NameStr | None = None
    order: NonNegInt | None = None
    description: DescriptionStr | None = None

    model_config = {"extra": "forbid"}

    @field_validator("name")
    @classmethod
    def name_non_blank(cls, v: str | None) -> str:
        return non_blank(v, "name")

    @field_validator("order")
    @classmethod
    def order_not_null(cls, v: int | None) -> int:
        return not_null(v, "order")

class ExerciseRead(BaseModel):
    id: uuid.UUID
    workout_id: uuid.UUID
    name: str
    description: str | None = None
    order: int
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

class ExerciseDetail(ExerciseRead):
    """An exercise with its sets loaded, ordered by `order`."""
    sets: list[SetRead]
