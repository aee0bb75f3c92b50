import datetime as dt
import uuid
from pydantic import BaseModel, field_validator

from liftlog.schemas.common import NonNegFloat, NonNegInt, PosInt, not_null

class SetCreate(BaseModel):
    order: NonNegInt
    reps: PosInt
    weight_kg: NonNegFloat
    rest_time_seconds: NonNegInt

class SetUpdate(BaseModel):
    order: NonNegInt | None = None
    reps: PosInt | None = None
    weight_kg: NonNegFloat | None = None
    rest_time_seconds: NonNegInt | None = None

    model_config = {"extra": "forbid"}

    @field_validator("order", "reps", "weight_kg", "rest_time_seconds")
    @classmethod
    def required_if_given(cls, v, info):
        return not_null(v, info.field_name)

class SetRead(BaseModel):
    id: uuid.UUID
    exercise_id: uuid.UUID
    order: int
    reps: int
    weight_kg: float
    rest_time_seconds: int
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}
