import datetime as dt
import uuid
from zoneinfo import ZoneInfo
from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from liftlog.db import get_db
from liftlog.deps.auth import get_current_identity
from liftlog.repositories.workout_repo import DateRange, WorkoutRepository
from liftlog.routers.preferences import TIMEZONE_COOKIE, parse_timezone
from liftlog.schemas.workout import WorkoutCreate, WorkoutDetail, WorkoutRead, WorkoutUpdate

router = APIRouter(prefix="/workouts", tags=["workouts"])

@router.get("", response_model=list[WorkoutRead])
def list_my_workouts(
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
    date: dt.date | None = Query(None, description="Single day; same as start_date=date, end_date=date+1"),
    start_date: dt.date | None = Query(None, description="Inclusive"),
    end_date: dt.date | None = Query(None, description="Exclusive"),
):
    if date is not None and (start_date is not None or end_date is not None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="use either date or start_date/end_date",
        )
    if date is not None:
        date_range = DateRange.for_day(date)
    elif start_date is not None or end_date is not None:
        date_range = DateRange(start_date=start_date, end_date=end_date)
    else:
        date_range = None
    return WorkoutRepository(db).list_workouts(identity, date_range)

@router.get("/today", response_model=list[WorkoutRead])
def list_todays_workouts(
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
    user_timezone: str | None = Cookie(None, alias=TIMEZONE_COOKIE),
):
    tz = parse_timezone(user_timezone) or ZoneInfo("UTC")
    today = dt.datetime.now(tz).date()
    return WorkoutRepository(db).list_workouts(identity, DateRange.for_day(today))

@router.post("", response_model=WorkoutRead, status_code=status.HTTP_201_CREATED)
def create_workout(
    payload: WorkoutCreate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return WorkoutRepository(db).create_workout(identity, **payload.model_dump())

@router.get("/{workout_id}", response_model=WorkoutDetail)
def get_workout(
    workout_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return WorkoutRepository(db).get_workout_detail(identity, workout_id)

@router.patch("/{workout_id}", response_model=WorkoutRead)
def update_workout(
    workout_id: uuid.UUID,
    payload: WorkoutUpdate,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    return WorkoutRepository(db).update_workout(
        identity, workout_id, **payload.model_dump(exclude_unset=True)
    )

@router.delete("/{workout_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workout(
    workout_id: uuid.UUID,
    db: Session = Depends(get_db),
    identity: str = Depends(get_current_identity),
):
    WorkoutRepository(db).delete_workout(identity, workout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
