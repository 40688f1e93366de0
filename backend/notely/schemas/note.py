"""
Notely Backend - Pydantic Request/Response Schemas
===================================================

What:  Pydantic models defining the API contract between clients and backend.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate OpenAPI documentation.
Who:   Used by route handlers as request bodies and return types.

Envelope format:
    Every successful note response wraps its payload as
    {"data": ..., "message": "..."}; DELETE returns {"message": "..."}.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100


def _clean_title(v: str) -> str:
    value = v.strip()
    if len(value) < TITLE_MIN_LENGTH:
        raise ValueError(f"Title must be at least {TITLE_MIN_LENGTH} characters long.")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot exceed {TITLE_MAX_LENGTH} characters.")
    return value


def _clean_content(v: str) -> str:
    value = v.strip()
    if not value:
        raise ValueError("Content is required.")
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Body of POST /api/notes. Both fields are required and trimmed."""
    title: str = Field(description="Note title (3-100 characters)")
    content: str = Field(description="Note body (non-empty)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _clean_content(v)


class NoteUpdate(BaseModel):
    """
    Body of PUT /api/notes/{id}.

    Omitted fields keep their stored value; provided fields follow the
    same rules as NoteCreate. The service rejects a body with neither field.
    """
    title: Optional[str] = Field(default=None, description="New title (3-100 characters)")
    content: Optional[str] = Field(default=None, description="New body (non-empty)")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_title(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_content(v)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """Full representation of a stored note."""
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="When the note was last modified (UTC ISO 8601)")

    model_config = {"from_attributes": True}


class NoteEnvelope(BaseModel):
    """Single-note response: GET/POST/PUT."""
    data: NoteResponse
    message: str = Field(description="Human-readable success message")


class NoteListEnvelope(BaseModel):
    """Note list response: GET /api/notes."""
    data: List[NoteResponse]
    message: str = Field(description="Human-readable success message")


class MessageResponse(BaseModel):
    """Payload-less response (DELETE and the root ping)."""
    message: str


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID '...' was not found",
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    rate_limit_store: str = Field(description="Window store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
