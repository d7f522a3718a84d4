"""Shared schema base and generic response bodies."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (the UI's format)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorResponse(BaseModel):
    """Uniform error body: human-readable message plus stable code."""

    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Stable machine-readable error code")
    details: dict | list | None = Field(default=None, description="Optional field-level details")


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Service status plus database reachability."""

    status: Literal["ok"] = "ok"
    environment: Literal["dev", "prod"]
    database: Literal["connected", "disconnected"]
