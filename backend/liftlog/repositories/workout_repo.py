from __future__ import annotations
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from liftlog.errors import ValidationFailed
from liftlog.models import Exercise, Workout
from liftlog.repositories.base import BaseRepository, as_uuid, require_identity, validate
from liftlog.schemas.workout import WorkoutCreate, WorkoutDetail, WorkoutRead, WorkoutUpdate

log = logging.getLogger(__name__)

@dataclass(slots=True)
class DateRange:
    """Half-open interval [start_date, end_date); either bound may be left open."""
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None

    @classmethod
    def for_day(cls, day: dt.date) -> "DateRange":
        return cls(start_date=day, end_date=day + dt.timedelta(days=1))

class WorkoutRepository(BaseRepository[Workout]):
    model = Workout
    entity = "Workout"
    parent = "workout"

    def owner_of(self, workout_id):
        return select(Workout.user_id).where(Workout.id == workout_id)

    def scope(self, identity: str):
        return Workout.user_id == identity

    # READS
    def list_workouts(self, identity: str, date_range: Optional[DateRange] = None) -> list[WorkoutRead]:
        identity = require_identity(identity)
        stmt = select(Workout).where(Workout.user_id == identity)
        if date_range is not None:
            start, end = date_range.start_date, date_range.end_date
            if start is not None and end is not None and start > end:
                raise ValidationFailed("end_date", "before_start", "end_date must not precede start_date")
            if start is not None:
                stmt = stmt.where(Workout.date >= start)
            if end is not None:
                stmt = stmt.where(Workout.date < end)
        stmt = stmt.order_by(Workout.date.desc(), Workout.created_at.desc())

        with self.guard("list_workouts", identity=identity):
            rows = self.db.execute(stmt.execution_options(populate_existing=True)).scalars().all()
            return [WorkoutRead.model_validate(w) for w in rows]

    def get_workout(self, identity: str, workout_id: Any) -> WorkoutRead:
        identity = require_identity(identity)
        workout_id = as_uuid(workout_id, self.entity)
        with self.guard("get_workout", identity=identity, entity_id=workout_id):
            stmt = select(Workout).where(Workout.id == workout_id, Workout.user_id == identity)
            workout = self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()
            if workout is None:
                self.explain_miss(identity, workout_id)
            return WorkoutRead.model_validate(workout)

    def get_workout_detail(self, identity: str, workout_id: Any) -> WorkoutDetail:
        identity = require_identity(identity)
        workout_id = as_uuid(workout_id, self.entity)
        with self.guard("get_workout_detail", identity=identity, entity_id=workout_id):
            stmt = (
                select(Workout)
                .where(Workout.id == workout_id, Workout.user_id == identity)
                .options(selectinload(Workout.exercises).selectinload(Exercise.sets))
                .execution_options(populate_existing=True)
            )
            workout = self.db.execute(stmt).scalar_one_or_none()
            if workout is None:
                self.explain_miss(identity, workout_id)
            return WorkoutDetail.model_validate(workout)

    # WRITES
    def create_workout(
        self,
        identity: str,
        *,
        name: str,
        date: dt.date,
        description: str | None = None,
        duration_minutes: int | None = None,
    ) -> WorkoutRead:
        identity = require_identity(identity)
        fields = validate(WorkoutCreate, {
            "name": name,
            "date": date,
            "description": description,
            "duration_minutes": duration_minutes,
        })
        with self.guard("create_workout", identity=identity):
            workout = self.add_and_refresh(Workout(user_id=identity, **fields))
            log.info("created workout %s for %s", workout.id, identity)
            return WorkoutRead.model_validate(workout)

    def update_workout(self, identity: str, workout_id: Any, **changes: Any) -> WorkoutRead:
        identity = require_identity(identity)
        workout_id = as_uuid(workout_id, self.entity)
        changes = validate(WorkoutUpdate, changes, partial=True)
        with self.guard("update_workout", identity=identity, entity_id=workout_id):
            self.scoped_update(identity, workout_id, changes)
        return self.get_workout(identity, workout_id)

    def delete_workout(self, identity: str, workout_id: Any) -> None:
        """Exercises and their sets go with it via ON DELETE CASCADE."""
        identity = require_identity(identity)
        workout_id = as_uuid(workout_id, self.entity)
        with self.guard("delete_workout", identity=identity, entity_id=workout_id):
            self.scoped_delete(identity, workout_id)
