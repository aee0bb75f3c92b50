# liftlog/errors.py
"""
Failure taxonomy for the data layer.

Repositories raise these and never recover locally; the HTTP layer
(see main.py) decides how each one is presented to the client.
"""
from __future__ import annotations
from typing import Any


class DataAccessError(Exception):
    """Base class for every error raised by the repositories and the identity gate."""


class Unauthorized(DataAccessError):
    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)
        self.message = message


class NotFound(DataAccessError):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class Forbidden(DataAccessError):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"Not allowed for this {entity.lower()}")
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailed(DataAccessError):
    """
    A field constraint was violated.

    `field` names the offending input, `rule` is a short machine-readable
    tag (e.g. "blank", "greater_than"), `message` is human-readable.
    """
    def __init__(self, field: str, rule: str, message: str | None = None):
        super().__init__(message or f"{field}: {rule}")
        self.field = field
        self.rule = rule
        self.message = message or f"{field}: {rule}"


class StorageFailure(DataAccessError):
    """The store could not complete the operation. Details are logged, not exposed."""
    def __init__(self, operation: str):
        super().__init__("Storage operation failed")
        self.operation = operation
