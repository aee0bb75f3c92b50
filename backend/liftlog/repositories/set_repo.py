from __future__ import annotations
from typing import Any
from sqlalchemy import select
from liftlog.models import Exercise, ExerciseSet, Workout
from liftlog.repositories.base import (
    BaseRepository, as_uuid, owned_exercise_ids, require_identity, validate,
)
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.schemas.exercise_set import SetCreate, SetRead, SetUpdate

class SetRepository(BaseRepository[ExerciseSet]):
    model = ExerciseSet
    entity = "Set"
    parent = "exercise"
    order_constraint = "uq_exercise_sets_exercise_order"
    order_columns = "exercise_sets.exercise_id, exercise_sets.order"

    def owner_of(self, set_id):
        return (
            select(Workout.user_id)
            .join(Exercise, Exercise.workout_id == Workout.id)
            .join(ExerciseSet, ExerciseSet.exercise_id == Exercise.id)
            .where(ExerciseSet.id == set_id)
        )

    def scope(self, identity: str):
        return ExerciseSet.exercise_id.in_(owned_exercise_ids(identity))

    def get_set(self, identity: str, set_id: Any) -> SetRead:
        identity = require_identity(identity)
        set_id = as_uuid(set_id, self.entity)
        with self.guard("get_set", identity=identity, entity_id=set_id):
            stmt = select(ExerciseSet).where(ExerciseSet.id == set_id, self.scope(identity))
            s = self.db.execute(stmt.execution_options(populate_existing=True)).scalar_one_or_none()
            if s is None:
                self.explain_miss(identity, set_id)
            return SetRead.model_validate(s)

    def create_set(
        self,
        identity: str,
        exercise_id: Any,
        *,
        order: int,
        reps: int,
        weight_kg: float,
        rest_time_seconds: int,
    ) -> SetRead:
        identity = require_identity(identity)
        exercise_id = as_uuid(exercise_id, "Exercise")
        fields = validate(SetCreate, {
            "order": order,
            "reps": reps,
            "weight_kg": weight_kg,
            "rest_time_seconds": rest_time_seconds,
        })
        with self.guard("create_set", identity=identity, entity_id=exercise_id):
            # Ownership via exercise -> workout
            ExerciseRepository(self.db).check_owner(identity, exercise_id)
            s = self.add_and_refresh(ExerciseSet(exercise_id=exercise_id, **fields))
            return SetRead.model_validate(s)

    def update_set(self, identity: str, set_id: Any, **changes: Any) -> SetRead:
        identity = require_identity(identity)
        set_id = as_uuid(set_id, self.entity)
        changes = validate(SetUpdate, changes, partial=True)
        with self.guard("update_set", identity=identity, entity_id=set_id):
            self.scoped_update(identity, set_id, changes)
        return self.get_set(identity, set_id)

    def delete_set(self, identity: str, set_id: Any) -> None:
        identity = require_identity(identity)
        set_id = as_uuid(set_id, self.entity)
        with self.guard("delete_set", identity=identity, entity_id=set_id):
            self.scoped_delete(identity, set_id)
