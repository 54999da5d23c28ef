# smartmart/schemas/base.py
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for API payloads.

    - JSON keys are camelCase (`reorderLevel`, `expiryDate`) to match
      the dashboard client; snake_case keys are accepted too.
    - Can be built straight from ORM rows (from_attributes).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def error_list(exc: ValidationError) -> list[dict[str, Any]]:
    """
    Reduce a pydantic ValidationError to JSON-safe dicts
    ({"field", "message", "type"}) for HTTPException details.
    """
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
