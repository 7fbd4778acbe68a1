"""
Rubrik Review Desk — Pydantic Schemas
=====================================
Request/Response schemas for the API layer.
"""

from pydantic import BaseModel

from app.schemas.articles import (
    AnnotationPayload,
    ArticleCreateRequest,
    ArticleUpdateRequest,
    HighlightUpdateRequest,
    TransitionRequest,
    article_detail,
    article_summary,
    review_row,
    transition_result,
)
from app.schemas.auth import UserProfile


# ── System Schemas ──

class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    uptime_seconds: float


__all__ = [
    "AnnotationPayload",
    "ArticleCreateRequest",
    "ArticleUpdateRequest",
    "HealthResponse",
    "HighlightUpdateRequest",
    "TransitionRequest",
    "UserProfile",
    "article_detail",
    "article_summary",
    "review_row",
    "transition_result",
]
