"""
Shared schema base and field types
"""

from pydantic import BaseModel, BeforeValidator, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional


def blank_to_none(value):
    """Trim strings; empty strings become None"""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class CamelModel(BaseModel):
    """Base schema using camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


OptionalText = Annotated[Optional[str], BeforeValidator(blank_to_none)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
