import datetime as dt
import logging
import math
import uuid
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from liftlog.db import SessionLocal
from liftlog.errors import Forbidden, NotFound, StorageFailure, Unauthorized, ValidationFailed
from liftlog.models import Exercise, ExerciseSet
from liftlog.repositories.base import BaseRepository
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.repositories.set_repo import SetRepository
from liftlog.repositories.workout_repo import DateRange, WorkoutRepository

def uniq(): return f"user_{uuid.uuid4().hex[:10]}"

JUNE_1 = dt.date(2025, 6, 1)

def test_leg_day_scenario(db):
    workouts = WorkoutRepository(db)
    w = workouts.create_workout("user_1", name="Leg Day", date=JUNE_1)
    assert w.duration_minutes is None

    squat = ExerciseRepository(db).create_exercise("user_1", w.id, name="Squat", order=0)
    sets = SetRepository(db)
    sets.create_set("user_1", squat.id, order=0, reps=5, weight_kg=100, rest_time_seconds=120)
    sets.create_set("user_1", squat.id, order=1, reps=5, weight_kg=105, rest_time_seconds=150)

    detail = workouts.get_workout_detail("user_1", w.id)
    assert detail.id == w.id
    assert detail.user_id == "user_1"
    assert detail.name == "Leg Day"
    assert detail.date == JUNE_1
    assert detail.description is None
    assert detail.duration_minutes is None
    assert len(detail.exercises) == 1
    ex = detail.exercises[0]
    assert (ex.name, ex.order, ex.workout_id) == ("Squat", 0, w.id)
    assert [(s.order, s.reps, s.weight_kg, s.rest_time_seconds) for s in ex.sets] == [
        (0, 5, 100.0, 120),
        (1, 5, 105.0, 150),
    ]

    with pytest.raises(Forbidden):
        workouts.get_workout_detail("user_2", w.id)

def test_other_identity_never_sees_or_touches_workout(db):
    alice, bob = uniq(), uniq()
    repo = WorkoutRepository(db)
    w = repo.create_workout(alice, name="Push", date=JUNE_1)

    assert repo.list_workouts(bob) == []
    assert [x.id for x in repo.list_workouts(alice)] == [w.id]

    with pytest.raises(Forbidden):
        repo.get_workout(bob, w.id)
    with pytest.raises(Forbidden):
        repo.update_workout(bob, w.id, name="Hijacked")
    with pytest.raises(Forbidden):
        repo.delete_workout(bob, w.id)
    with pytest.raises(Forbidden):
        ExerciseRepository(db).create_exercise(bob, w.id, name="Bench", order=0)

    # still intact for the owner
    assert repo.get_workout(alice, w.id).name == "Push"

def test_children_inherit_ownership(db):
    alice, bob = uniq(), uniq()
    w = WorkoutRepository(db).create_workout(alice, name="Pull", date=JUNE_1)
    exercises = ExerciseRepository(db)
    sets = SetRepository(db)
    ex = exercises.create_exercise(alice, w.id, name="Row", order=0)
    s = sets.create_set(alice, ex.id, order=0, reps=8, weight_kg=60, rest_time_seconds=90)

    with pytest.raises(Forbidden):
        exercises.update_exercise(bob, ex.id, name="Mine now")
    with pytest.raises(Forbidden):
        exercises.delete_exercise(bob, ex.id)
    with pytest.raises(Forbidden):
        sets.create_set(bob, ex.id, order=1, reps=1, weight_kg=1, rest_time_seconds=1)
    with pytest.raises(Forbidden):
        sets.update_set(bob, s.id, reps=100)
    with pytest.raises(Forbidden):
        sets.delete_set(bob, s.id)

    assert sets.get_set(alice, s.id).reps == 8
    assert exercises.get_exercise(alice, ex.id).name == "Row"

def test_not_found_vs_forbidden_are_distinct(db):
    repo = WorkoutRepository(db)
    with pytest.raises(NotFound):
        repo.get_workout_detail(uniq(), uuid.uuid4())
    with pytest.raises(NotFound):
        repo.get_workout_detail(uniq(), "not-a-uuid")
    with pytest.raises(NotFound):
        repo.update_workout(uniq(), uuid.uuid4(), name="x")
    with pytest.raises(NotFound):
        SetRepository(db).create_set(uniq(), uuid.uuid4(), order=0, reps=1, weight_kg=0, rest_time_seconds=0)

def test_missing_identity_is_unauthorized(db):
    repo = WorkoutRepository(db)
    with pytest.raises(Unauthorized):
        repo.list_workouts("")
    with pytest.raises(Unauthorized):
        repo.list_workouts(None)
    with pytest.raises(Unauthorized):
        repo.create_workout("  ", name="x", date=JUNE_1)

def test_delete_cascades_to_exercises_and_sets(db):
    owner = uniq()
    workouts = WorkoutRepository(db)
    exercises = ExerciseRepository(db)
    sets = SetRepository(db)
    w = workouts.create_workout(owner, name="Full body", date=JUNE_1)
    ex_ids = []
    for i, name in enumerate(["Squat", "Bench"]):
        ex = exercises.create_exercise(owner, w.id, name=name, order=i)
        ex_ids.append(ex.id)
        for j in range(3):
            sets.create_set(owner, ex.id, order=j, reps=5, weight_kg=50, rest_time_seconds=60)

    workouts.delete_workout(owner, w.id)

    assert db.execute(select(func.count()).select_from(Exercise).where(Exercise.workout_id == w.id)).scalar_one() == 0
    assert db.execute(
        select(func.count()).select_from(ExerciseSet).where(ExerciseSet.exercise_id.in_(ex_ids))
    ).scalar_one() == 0
    with pytest.raises(NotFound):
        workouts.get_workout_detail(owner, w.id)

def test_date_range_is_half_open(db):
    owner = uniq()
    repo = WorkoutRepository(db)
    for day in (1, 2, 3):
        repo.create_workout(owner, name=f"June {day}", date=dt.date(2025, 6, day))

    got = repo.list_workouts(owner, DateRange(dt.date(2025, 6, 1), dt.date(2025, 6, 3)))
    assert [w.name for w in got] == ["June 2", "June 1"]

    got = repo.list_workouts(owner, DateRange(start_date=dt.date(2025, 6, 2)))
    assert [w.name for w in got] == ["June 3", "June 2"]

    got = repo.list_workouts(owner, DateRange(end_date=dt.date(2025, 6, 2)))
    assert [w.name for w in got] == ["June 1"]

    got = repo.list_workouts(owner, DateRange.for_day(dt.date(2025, 6, 3)))
    assert [w.name for w in got] == ["June 3"]

    assert repo.list_workouts(owner, DateRange(dt.date(2025, 6, 2), dt.date(2025, 6, 2))) == []

def test_inverted_date_range_rejected(db):
    with pytest.raises(ValidationFailed) as ei:
        WorkoutRepository(db).list_workouts(uniq(), DateRange(dt.date(2025, 6, 3), dt.date(2025, 6, 1)))
    assert ei.value.field == "end_date"

def test_list_is_newest_first(db):
    owner = uniq()
    repo = WorkoutRepository(db)
    repo.create_workout(owner, name="old", date=dt.date(2024, 1, 1))
    repo.create_workout(owner, name="new", date=dt.date(2025, 1, 1))
    repo.create_workout(owner, name="mid", date=dt.date(2024, 6, 1))
    assert [w.name for w in repo.list_workouts(owner)] == ["new", "mid", "old"]

def test_detail_orders_children_regardless_of_insert_order(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Mixed", date=JUNE_1)
    exercises = ExerciseRepository(db)
    sets = SetRepository(db)
    for order in (2, 0, 1):
        ex = exercises.create_exercise(owner, w.id, name=f"ex{order}", order=order)
        for set_order in (3, 1, 2):
            sets.create_set(owner, ex.id, order=set_order, reps=set_order + 1, weight_kg=10, rest_time_seconds=30)

    detail = WorkoutRepository(db).get_workout_detail(owner, w.id)
    assert [e.order for e in detail.exercises] == [0, 1, 2]
    for e in detail.exercises:
        assert [s.order for s in e.sets] == [1, 2, 3]

def test_order_gaps_are_kept_and_duplicates_rejected(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Gaps", date=JUNE_1)
    exercises = ExerciseRepository(db)
    a = exercises.create_exercise(owner, w.id, name="a", order=0)
    exercises.create_exercise(owner, w.id, name="b", order=1)
    exercises.create_exercise(owner, w.id, name="c", order=5)

    with pytest.raises(ValidationFailed) as ei:
        exercises.create_exercise(owner, w.id, name="dupe", order=5)
    assert (ei.value.field, ei.value.rule) == ("order", "unique")

    exercises.delete_exercise(owner, a.id)
    detail = WorkoutRepository(db).get_workout_detail(owner, w.id)
    assert [e.order for e in detail.exercises] == [1, 5]

def test_rereading_detail_is_stable(db):
    owner = uniq()
    repo = WorkoutRepository(db)
    w = repo.create_workout(owner, name="Stable", date=JUNE_1, duration_minutes=45)
    ex = ExerciseRepository(db).create_exercise(owner, w.id, name="Deadlift", order=0)
    SetRepository(db).create_set(owner, ex.id, order=0, reps=3, weight_kg=140.5, rest_time_seconds=180)

    assert repo.get_workout_detail(owner, w.id) == repo.get_workout_detail(owner, w.id)

def test_blank_name_rejected_without_insert(db):
    owner = uniq()
    repo = WorkoutRepository(db)
    for bad in ("", "   "):
        with pytest.raises(ValidationFailed) as ei:
            repo.create_workout(owner, name=bad, date=JUNE_1)
        assert ei.value.field == "name"
    assert repo.list_workouts(owner) == []

@pytest.mark.parametrize("kwargs, field", [
    ({"duration_minutes": 0}, "duration_minutes"),
    ({"duration_minutes": -10}, "duration_minutes"),
    ({"date": "2025-13-40"}, "date"),
])
def test_workout_field_rules(db, kwargs, field):
    fields = {"name": "Ok", "date": JUNE_1, **kwargs}
    with pytest.raises(ValidationFailed) as ei:
        WorkoutRepository(db).create_workout(uniq(), **fields)
    assert ei.value.field == field

@pytest.mark.parametrize("kwargs, field", [
    ({"reps": 0}, "reps"),
    ({"weight_kg": -0.5}, "weight_kg"),
    ({"rest_time_seconds": -1}, "rest_time_seconds"),
    ({"order": -1}, "order"),
    ({"weight_kg": math.inf}, "weight_kg"),
    ({"weight_kg": math.nan}, "weight_kg"),
    ({"reps": True}, "reps"),
    ({"order": False}, "order"),
    ({"rest_time_seconds": 60.5}, "rest_time_seconds"),
])
def test_set_field_rules(db, kwargs, field):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Rules", date=JUNE_1)
    ex = ExerciseRepository(db).create_exercise(owner, w.id, name="Curl", order=0)
    fields = {"order": 0, "reps": 10, "weight_kg": 12.5, "rest_time_seconds": 60, **kwargs}
    with pytest.raises(ValidationFailed) as ei:
        SetRepository(db).create_set(owner, ex.id, **fields)
    assert ei.value.field == field

def test_zero_weight_and_rest_are_allowed(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Bodyweight", date=JUNE_1)
    ex = ExerciseRepository(db).create_exercise(owner, w.id, name="Pull-up", order=0)
    s = SetRepository(db).create_set(owner, ex.id, order=0, reps=12, weight_kg=0, rest_time_seconds=0)
    assert (s.weight_kg, s.rest_time_seconds) == (0.0, 0)

def test_partial_update(db):
    owner = uniq()
    repo = WorkoutRepository(db)
    w = repo.create_workout(owner, name="Before", date=JUNE_1, description="notes", duration_minutes=30)

    updated = repo.update_workout(owner, w.id, name="  After  ", duration_minutes=None)
    assert updated.name == "After"
    assert updated.duration_minutes is None
    assert updated.description == "notes"
    assert updated.date == JUNE_1

    with pytest.raises(ValidationFailed) as ei:
        repo.update_workout(owner, w.id, name=None)
    assert ei.value.field == "name"
    with pytest.raises(ValidationFailed) as ei:
        repo.update_workout(owner, w.id, colour="red")
    assert (ei.value.field, ei.value.rule) == ("colour", "extra_forbidden")

def test_update_exercise_and_set(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Edit", date=JUNE_1)
    exercises = ExerciseRepository(db)
    sets = SetRepository(db)
    ex = exercises.create_exercise(owner, w.id, name="Press", order=0)
    s = sets.create_set(owner, ex.id, order=0, reps=5, weight_kg=40, rest_time_seconds=90)

    assert exercises.update_exercise(owner, ex.id, name="OHP", description="strict").name == "OHP"
    changed = sets.update_set(owner, s.id, reps=6, weight_kg=42.5)
    assert (changed.reps, changed.weight_kg, changed.rest_time_seconds) == (6, 42.5, 90)

    sets.delete_set(owner, s.id)
    with pytest.raises(NotFound):
        sets.get_set(owner, s.id)

def test_concurrent_updates_last_write_wins():
    owner = uniq()
    with SessionLocal() as s:
        w = WorkoutRepository(s).create_workout(owner, name="Start", date=JUNE_1)

    def rename(name):
        with SessionLocal() as s:
            return WorkoutRepository(s).update_workout(owner, w.id, name=name).name

    with ThreadPoolExecutor(max_workers=2) as pool:
        list(pool.map(rename, ["Push", "Pull"]))

    with SessionLocal() as s:
        final = WorkoutRepository(s).get_workout(owner, w.id).name
    assert final in {"Push", "Pull"}

def test_storage_failure_is_logged_and_opaque(db, monkeypatch, caplog):
    owner = uniq()

    def boom(*args, **kwargs):
        raise OperationalError("SELECT ...", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "execute", boom)
    with caplog.at_level(logging.ERROR, logger="liftlog"):
        with pytest.raises(StorageFailure) as ei:
            WorkoutRepository(db).list_workouts(owner)

    assert "connection refused" not in str(ei.value)
    assert ei.value.operation == "list_workouts"
    assert "op=list_workouts" in caplog.text
    assert owner in caplog.text

def test_weight_update_rejects_infinity(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Inf", date=JUNE_1)
    ex = ExerciseRepository(db).create_exercise(owner, w.id, name="Curl", order=0)
    sets = SetRepository(db)
    s = sets.create_set(owner, ex.id, order=0, reps=10, weight_kg=12.5, rest_time_seconds=60)

    with pytest.raises(ValidationFailed) as ei:
        sets.update_set(owner, s.id, weight_kg=float("inf"))
    assert ei.value.field == "weight_kg"
    assert sets.get_set(owner, s.id).weight_kg == 12.5

def test_duplicate_order_on_update_rejected(db):
    owner = uniq()
    w = WorkoutRepository(db).create_workout(owner, name="Swap", date=JUNE_1)
    exercises = ExerciseRepository(db)
    exercises.create_exercise(owner, w.id, name="a", order=0)
    b = exercises.create_exercise(owner, w.id, name="b", order=1)

    with pytest.raises(ValidationFailed) as ei:
        exercises.update_exercise(owner, b.id, order=0)
    assert (ei.value.field, ei.value.rule) == ("order", "unique")
    assert exercises.get_exercise(owner, b.id).order == 1

    sets = SetRepository(db)
    sets.create_set(owner, b.id, order=0, reps=5, weight_kg=20, rest_time_seconds=30)
    s = sets.create_set(owner, b.id, order=1, reps=5, weight_kg=20, rest_time_seconds=30)
    with pytest.raises(ValidationFailed) as ei:
        sets.update_set(owner, s.id, order=0)
    assert (ei.value.field, ei.value.rule) == ("order", "unique")

def _integrity_error(orig):
    return IntegrityError("INSERT ...", {}, orig)

def test_order_conflict_matches_constraint_name():
    sets = SetRepository(None)

    pg_unique = SimpleNamespace(diag=SimpleNamespace(constraint_name="uq_exercise_sets_exercise_order"))
    pg_fkey = SimpleNamespace(diag=SimpleNamespace(constraint_name="exercise_sets_exercise_id_fkey"))
    assert sets.is_order_conflict(_integrity_error(pg_unique))
    assert not sets.is_order_conflict(_integrity_error(pg_fkey))
    # a constraint on another table is not ours either
    assert not sets.is_order_conflict(_integrity_error(
        SimpleNamespace(diag=SimpleNamespace(constraint_name="uq_exercises_workout_order"))
    ))

    # SQLite carries no diag; fall back to the column pair in the message
    assert sets.is_order_conflict(_integrity_error(
        Exception("UNIQUE constraint failed: exercise_sets.exercise_id, exercise_sets.order")
    ))
    assert not sets.is_order_conflict(_integrity_error(
        Exception("FOREIGN KEY constraint failed (exercise_sets.order)")
    ))

    # workouts have no order column
    assert not WorkoutRepository(None).is_order_conflict(_integrity_error(pg_unique))

def test_mutations_are_scoped_even_without_owner_lookup(db, monkeypatch):
    alice, bob = uniq(), uniq()
    w = WorkoutRepository(db).create_workout(alice, name="Push", date=JUNE_1)
    ex = ExerciseRepository(db).create_exercise(alice, w.id, name="Bench", order=0)
    s = SetRepository(db).create_set(alice, ex.id, order=0, reps=5, weight_kg=80, rest_time_seconds=120)

    # with the owner lookup disabled only the statement's own predicate stands in the way
    monkeypatch.setattr(BaseRepository, "check_owner", lambda self, identity, entity_id: None)

    with pytest.raises((NotFound, Forbidden)):
        WorkoutRepository(db).update_workout(bob, w.id, name="Hijacked")
    with pytest.raises((NotFound, Forbidden)):
        WorkoutRepository(db).delete_workout(bob, w.id)
    with pytest.raises((NotFound, Forbidden)):
        SetRepository(db).update_set(bob, s.id, reps=100)
    with pytest.raises((NotFound, Forbidden)):
        SetRepository(db).delete_set(bob, s.id)
    with pytest.raises((NotFound, Forbidden)):
        ExerciseRepository(db).update_exercise(bob, ex.id, name="Mine now")
    with pytest.raises((NotFound, Forbidden)):
        ExerciseRepository(db).delete_exercise(bob, ex.id)

    monkeypatch.undo()
    detail = WorkoutRepository(db).get_workout_detail(alice, w.id)
    assert detail.name == "Push"
    assert [e.name for e in detail.exercises] == ["Bench"]
    assert [(x.id, x.reps) for x in detail.exercises[0].sets] == [(s.id, 5)]
