import uuid
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_identity
from liftlog.repositories.set_repo import SetRepository
from liftlog.schemas.exercise_set import SetCreate, SetRead, SetUpdate

router = APIRouter(tags=["sets"])

@router.post("/exercises/{exercise_id}/sets", response_model=SetRead, status_code=status.HTTP_201_CREATED)
def add_set(
    exercise_id: uuid.UUID,
    payload: SetCreate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    # Ownership is checked through exercise -> workout inside the repository
    return SetRepository(db).create_set(identity, exercise_id, **payload.model_dump())

@router.patch("/sets/{set_id}", response_model=SetRead)
def update_set(
    set_id: uuid.UUID,
    payload: SetUpdate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return SetRepository(db).update_set(identity, set_id, **payload.model_dump(exclude_unset=True))

@router.delete("/sets/{set_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_set(
    set_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    SetRepository(db).delete_set(identity, set_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
