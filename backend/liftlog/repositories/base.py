# liftlog/repositories/base.py
from __future__ import annotations
import logging
import uuid
from contextlib import contextmanager
from typing import Any, Generic, Iterator, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import Select, delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from liftlog.errors import Forbidden, NotFound, StorageFailure, Unauthorized, ValidationFailed
from liftlog.models import Exercise, Workout

log = logging.getLogger(__name__)

T = TypeVar("T")  # SQLAlchemy model type


def owned_workout_ids(identity: str) -> Select:
    """Ownership predicate at the root of the hierarchy."""
    return select(Workout.id).where(Workout.user_id == identity)


def owned_exercise_ids(identity: str) -> Select:
    return (
        select(Exercise.id)
        .join(Workout, Exercise.workout_id == Workout.id)
        .where(Workout.user_id == identity)
    )


def require_identity(identity: str | None) -> str:
    if not identity or not identity.strip():
        raise Unauthorized()
    return identity


def as_uuid(value: Any, entity: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        # A malformed id cannot name an existing row
        raise NotFound(entity, value) from None


def validate(schema: type[BaseModel], data: dict[str, Any], *, partial: bool = False) -> dict[str, Any]:
    """Run `data` through a pydantic schema and turn the first error into ValidationFailed."""
    try:
        model = schema.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err["loc"]) or "__root__"
        raise ValidationFailed(field, err["type"], err["msg"]) from None
    return model.model_dump(exclude_unset=partial)


class BaseRepository(Generic[T]):
    """
    Lightweight base for ownership-scoped repositories using SQLAlchemy 2.0 style.

    Subclasses set `model` / `entity` and provide two statements:
      - `owner_of(id)`: selects the owning Workout.user_id for a row
      - `scope(identity)`: the ownership predicate every mutation carries

    Mutations are a single UPDATE/DELETE filtered by id AND ownership. The
    owner lookup runs first so NotFound and Forbidden stay distinguishable,
    but authorization never depends on it alone: if the mutation matches
    zero rows the lookup is repeated to explain why.
    """
    model: type[T]
    entity: str
    parent: str = "parent"
    # Unique (parent, order) constraint and the column pair SQLite names instead
    order_constraint: str | None = None
    order_columns: str | None = None

    def __init__(self, db: Session):
        self.db = db

    def owner_of(self, entity_id: uuid.UUID) -> Select:
        raise NotImplementedError

    def scope(self, identity: str):
        raise NotImplementedError

    # OWNERSHIP
    def check_owner(self, identity: str, entity_id: uuid.UUID) -> None:
        owner = self.db.execute(self.owner_of(entity_id)).scalar_one_or_none()
        if owner is None:
            raise NotFound(self.entity, entity_id)
        if owner != identity:
            log.info("denied %s %s to %s", self.entity.lower(), entity_id, identity)
            raise Forbidden(self.entity, entity_id)

    def explain_miss(self, identity: str, entity_id: uuid.UUID) -> None:
        self.check_owner(identity, entity_id)
        # Owner check passed again after the scoped statement missed: the row
        # was removed and recreated in between. Report it as gone.
        raise NotFound(self.entity, entity_id)

    # WRITES
    def add_and_refresh(self, entity: T) -> T:
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def scoped_update(self, identity: str, entity_id: uuid.UUID, changes: dict[str, Any]) -> None:
        self.check_owner(identity, entity_id)
        if not changes:
            return
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == entity_id, self.scope(identity))
            .values(**changes)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            self.explain_miss(identity, entity_id)
        self.db.commit()

    def scoped_delete(self, identity: str, entity_id: uuid.UUID) -> None:
        self.check_owner(identity, entity_id)
        result = self.db.execute(
            delete(self.model)
            .where(self.model.id == entity_id, self.scope(identity))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            self.explain_miss(identity, entity_id)
        self.db.commit()
        log.info("deleted %s %s for %s", self.entity.lower(), entity_id, identity)

    def is_order_conflict(self, exc: IntegrityError) -> bool:
        if self.order_constraint is None:
            return False
        diag = getattr(exc.orig, "diag", None)
        name = getattr(diag, "constraint_name", None)
        if name:
            return name == self.order_constraint
        return self.order_columns is not None and self.order_columns in str(exc.orig)

    @contextmanager
    def guard(self, operation: str, *, identity: str, entity_id: Any = None) -> Iterator[None]:
        """Map storage errors onto the taxonomy; domain errors pass through untouched."""
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            if self.is_order_conflict(e):
                raise ValidationFailed(
                    "order", "unique", f"order is already used in this {self.parent}"
                ) from None
            log.exception(
                "storage failure op=%s entity=%s id=%s identity=%s",
                operation, self.entity, entity_id, identity,
            )
            raise StorageFailure(operation) from None
        except SQLAlchemyError:
            self.db.rollback()
            log.exception(
                "storage failure op=%s entity=%s id=%s identity=%s",
                operation, self.entity, entity_id, identity,
            )
            raise StorageFailure(operation) from None
