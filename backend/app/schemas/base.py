# backend/app/schemas/base.py
from __future__ import annotations
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Models exchanged with the AI service and the UI use camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class APIResponse(BaseModel):
    """Base envelope for success responses (extend if needed)."""
    ok: bool = True
    message: Optional[str] = None
