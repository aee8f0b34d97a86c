from __future__ import annotations

from pydantic import BaseModel, Field


class DeleteResponse(BaseModel):
    """Body returned when an entity was deleted."""

    success: bool = Field(True, description="Always true for a completed delete")
    message: str = Field(..., description="Confirmation message")


class ErrorResponse(BaseModel):
    """Body returned for every failed delete."""

    error: str = Field(..., description="Human readable error message")
