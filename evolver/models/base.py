"""Shared pydantic base for models that serialize with camelCase field names."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (exports and AI responses)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
