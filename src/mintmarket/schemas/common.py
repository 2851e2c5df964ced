"""Shared schema building blocks.

All API models serialize with camelCase keys and accept either camelCase or
snake_case on input.
"""

import math
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..core.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class APIModel(BaseModel):
    """Base model for all request and response bodies."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Pagination(APIModel):
    """Pagination block attached to list responses."""

    current_page: int = Field(..., description="1-based page number")
    total_pages: int = Field(..., description="ceil(total_items / items_per_page)")
    total_items: int = Field(..., description="Number of matching items")
    items_per_page: int = Field(..., description="Requested page size")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=math.ceil(total / limit) if limit else 0,
            total_items=total,
            items_per_page=limit,
        )


class MessageResponse(APIModel):
    """Plain acknowledgement."""

    message: str


def validate_payload(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Coerce ``data`` into ``model`` or raise the domain ValidationError.

    Service methods accept either an already-parsed model or a raw mapping,
    so callers outside the HTTP layer get the same validation rules.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
            }
            for error in e.errors()
        ]
        raise ValidationError("Validation failed", errors=errors) from e
