"""
AskBoard Backend: Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract for questions, answers
       and comments.
How:   FastAPI validates request bodies against the *Create / *Update
       models and serializes responses through the *Response models.

Request models silently ignore unknown keys (Pydantic's default). That is
what strips a client-supplied `id`/`_id` from update payloads and a
client-supplied `user` from create payloads: neither is a declared field,
so neither ever reaches the service.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class QuestionCreate(BaseModel):
    """Body of POST /api/questions. The owner comes from the bearer token."""
    title: str = Field(description="Question title")
    content: str = Field(default="", description="Question body")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")


class QuestionUpdate(BaseModel):
    """
    Body of PUT /api/questions/{id}.

    Only the fields present in the request are applied (exclude_unset);
    everything else on the stored question is retained. An explicit null
    counts as absent.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[List[str]] = None


class AnswerCreate(BaseModel):
    content: str = Field(description="Answer body")


class CommentCreate(BaseModel):
    content: str = Field(description="Comment body")


class ContentUpdate(BaseModel):
    """Body of every PUT on an answer or comment: only the content changes."""
    content: str = Field(description="Replacement content")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(BaseModel):
    id: str = Field(description="Stable comment identifier")
    user: str = Field(description="Owning user id")
    content: str
    created_at: datetime


class AnswerResponse(BaseModel):
    id: str = Field(description="Stable answer identifier")
    user: str = Field(description="Owning user id")
    content: str
    created_at: datetime
    comments: List[CommentResponse] = Field(default_factory=list)


class QuestionResponse(BaseModel):
    """
    Full representation of a question, embedded answers and comments included.

    Returned by every endpoint except DELETE /api/questions/{id} (204) and
    the list endpoint, which returns an array of these.
    """
    id: uuid.UUID = Field(description="Question identifier (UUID)")
    user: str = Field(description="Owning user id")
    title: str
    content: str
    tags: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    answers: List[AnswerResponse] = Field(default_factory=list)
    comments: List[CommentResponse] = Field(default_factory=list)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    JSON error body for 401 and 500 responses.

    404 and 403 responses carry no body at all.
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
