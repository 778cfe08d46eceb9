"""
Base class for wire schemas.

Upstream APIs speak camelCase; Python code reads snake_case. Aliases are
generated, so a field named buy_price validates from "buyPrice" and
serializes back to it. Unknown fields are ignored unless a schema opts in.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Shape-validated record received from (or sent to) an external API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SnakeWireModel(BaseModel):
    """Wire record whose upstream already uses snake_case field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")
