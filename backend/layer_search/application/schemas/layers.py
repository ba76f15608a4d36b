"""Pydantic schemas for layer registry responses."""

from pydantic import BaseModel


class LayerResponse(BaseModel):
    ref: str
    title: str
    field_count: int = 0
