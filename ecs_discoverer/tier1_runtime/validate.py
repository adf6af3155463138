"""
ecs_discoverer.tier1_runtime.validate
──────────────────────────────────────
Schema validation via Pydantic v2. Raises the discoverer ValidationError
(not raw Pydantic errors) so the CLI reports every failure the same way.
"""
from __future__ import annotations

from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

T = TypeVar("T", bound=BaseModel)


def validate_input(model: Type[T], data: Any, *, source: str = "input") -> T:
    """
    Validate raw data against a Pydantic model.
    Raises ecs_discoverer ValidationError (not Pydantic's) on failure.

    Usage:
        meta = validate_input(AgentMetadata, response.json(), source="ECS agent metadata")
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        from ecs_discoverer.tier0_core.errors import ValidationError

        fields = {
            ".".join(str(loc) for loc in err["loc"]): err["msg"]
            for err in exc.errors()
        }
        summary = ", ".join(f"{name}: {msg}" for name, msg in fields.items())
        raise ValidationError(
            code="validation_error",
            user_message=f"Invalid {source} ({summary}).",
            fields=fields,
        ) from exc


__all__ = ["validate_input"]
