from typing import Annotated
from pydantic import Field
from pydantic_core import PydanticCustomError

NameStr = Annotated[str, Field(max_length=200)]
DescriptionStr = Annotated[str, Field(max_length=2000)]
# strict: booleans are not counts
PosInt = Annotated[int, Field(ge=1, strict=True)]
NonNegInt = Annotated[int, Field(ge=0, strict=True)]
NonNegFloat = Annotated[float, Field(ge=0, allow_inf_nan=False)]


def non_blank(v: str | None, field: str) -> str:
    """Trim and reject empty text; also rejects an explicit null on partial updates."""
    if v is None:
        raise PydanticCustomError("null", "{field} cannot be null", {"field": field})
    v2 = v.strip()
    if not v2:
        raise PydanticCustomError("blank", "{field} cannot be blank", {"field": field})
    return v2


def not_null(v, field: str):
    if v is None:
        raise PydanticCustomError("null", "{field} cannot be null", {"field": field})
    return v
