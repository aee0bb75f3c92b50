import uuid
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_identity
from liftlog.repositories.exercise_repo import ExerciseRepository
from liftlog.schemas.exercise import ExerciseCreate, ExerciseRead, ExerciseUpdate

router = APIRouter(tags=["exercises"])

@router.post(
    "/workouts/{workout_id}/exercises",
    response_model=ExerciseRead,
    status_code=status.HTTP_201_CREATED,
)
def add_exercise(
    workout_id: uuid.UUID,
    payload: ExerciseCreate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return ExerciseRepository(db).create_exercise(identity, workout_id, **payload.model_dump())

@router.patch("/exercises/{exercise_id}", response_model=ExerciseRead)
def update_exercise(
    exercise_id: uuid.UUID,
    payload: ExerciseUpdate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return ExerciseRepository(db).update_exercise(
        identity, exercise_id, **payload.model_dump(exclude_unset=True)
    )

@router.delete("/exercises/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exercise(
    exercise_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    ExerciseRepository(db).delete_exercise(identity, exercise_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
