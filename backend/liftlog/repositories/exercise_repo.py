from __future__ import annotations
from typing import Any
from sqlalchemy import select
from liftlog.models import Exercise, Workout
from liftlog.repositories.base import (
    BaseRepository, as_uuid, owned_workout_ids, require_identity, validate,
)
from liftlog.repositories.workout_repo import WorkoutRepository
from liftlog.schemas.exercise import ExerciseCreate, ExerciseRead, ExerciseUpdate

class ExerciseRepository(BaseRepository[Exercise]):
    model = Exercise
    entity = "Exercise"
    parent = "workout"
    order_constraint = "uq_exercises_workout_order"
    order_columns = "exercises.workout_id, exercises.order"

    def owner_of(self, exercise_id):
        # Exercises have no owner column; ownership lives on the parent workout
        return (
            select(Workout.user_id)
            .join(Exercise, Exercise.workout_id == Workout.id)
            .where(Exercise.id == exercise_id)
        )

    def scope(self, identity: str):
        return Exercise.workout_id.in_(owned_workout_ids(identity))

    def get_exercise(self, identity: str, exercise_id: Any) -> ExerciseRead:
        identity = require_identity(identity)
        exercise_id = as_uuid(exercise_id, self.entity)
        with self.guard("get_exercise", identity=identity, entity_id=exercise_id):
            stmt = select(Exercise).where(Exercise.id == exercise_id, self.scope(identity))
            ex = self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()
            if ex is None:
                self.explain_miss(identity, exercise_id)
            return ExerciseRead.model_validate(ex)

    def create_exercise(
        self,
        identity: str,
        workout_id: Any,
        *,
        name: str,
        order: int,
        description: str | None = None,
    ) -> ExerciseRead:
        identity = require_identity(identity)
        workout_id = as_uuid(workout_id, "Workout")
        fields = validate(ExerciseCreate, {"name": name, "order": order, "description": description})
        with self.guard("create_exercise", identity=identity, entity_id=workout_id):
            # Parent must belong to the caller before any child is attached
            WorkoutRepository(self.db).check_owner(identity, workout_id)
            ex = self.add_and_refresh(Exercise(workout_id=workout_id, **fields))
            return ExerciseRead.model_validate(ex)

    def update_exercise(self, identity: str, exercise_id: Any, **changes: Any) -> ExerciseRead:
        identity = require_identity(identity)
        exercise_id = as_uuid(exercise_id, self.entity)
        changes = validate(ExerciseUpdate, changes, partial=True)
        with self.guard("update_exercise", identity=identity, entity_id=exercise_id):
            self.scoped_update(identity, exercise_id, changes)
        return self.get_exercise(identity, exercise_id)

    def delete_exercise(self, identity: str, exercise_id: Any) -> None:
        identity = require_identity(identity)
        exercise_id = as_uuid(exercise_id, self.entity)
        with self.guard("delete_exercise", identity=identity, entity_id=exercise_id):
            self.scoped_delete(identity, exercise_id)
