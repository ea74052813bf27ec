"""Base model shared by the public JSON schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Expose snake_case fields as camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


__all__ = ["CamelModel"]
