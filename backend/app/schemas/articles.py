"""
Rubrik Review Desk — Article Schemas
====================================
Request bodies for author and reviewer endpoints, plus the dict
serializers used to build envelope payloads.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.articles.annotations import (
    META_COVER_PATH,
    META_COVER_URL,
    META_HIGHLIGHTS,
    META_KEYWORDS,
    AnnotationUpdate,
)
from app.models import Article, ArticleAction, ArticleStatus, ReviewEntry
from app.services.article_lifecycle_service import ContentChanges, TransitionOutcome
from app.services.blob_storage_service import blob_store
from app.utils.text_processing import truncate_text


# ── Requests ──

class AnnotationPayload(BaseModel):
    keywords: list[Any] | None = None
    highlights: list[Any] | None = None
    cover_path: str | None = Field(default=None, max_length=1024)
    cover_url: str | None = Field(default=None, max_length=2048)
    cover_data_url: str | None = None

    def to_update(self) -> AnnotationUpdate:
        return AnnotationUpdate(
            keywords=self.keywords,
            highlights=self.highlights,
            cover_path=self.cover_path,
            cover_url=self.cover_url,
            cover_data_url=self.cover_data_url,
        )


class ArticleCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    excerpt: str | None = None
    content: str | None = None
    rubric_id: int | None = None
    is_anonymous: bool = False
    submit: bool = False
    note: str | None = Field(default=None, max_length=5000)
    annotations: AnnotationPayload | None = None


class ArticleUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    excerpt: str | None = None
    content: str | None = None
    rubric_id: int | None = None
    is_anonymous: bool | None = None
    note: str | None = Field(default=None, max_length=5000)
    expected_status: ArticleStatus | None = None
    annotations: AnnotationPayload | None = None

    def to_changes(self) -> ContentChanges:
        return ContentChanges(
            title=self.title,
            slug=self.slug,
            excerpt=self.excerpt,
            content=self.content,
            rubric_id=self.rubric_id,
            is_anonymous=self.is_anonymous,
        )


class HighlightUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    excerpt: str | None = None
    content: str | None = None
    note: str | None = Field(default=None, max_length=5000)
    expected_status: ArticleStatus | None = None
    annotations: AnnotationPayload | None = None

    def to_changes(self) -> ContentChanges:
        return ContentChanges(title=self.title, excerpt=self.excerpt, content=self.content)


class TransitionRequest(BaseModel):
    note: str | None = Field(default=None, max_length=5000)
    expected_status: ArticleStatus | None = None
    annotations: AnnotationPayload | None = None


# ── Serializers ──

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if isinstance(value, datetime) else None


def _status_value(article: Article) -> str:
    status = article.status
    return status.value if isinstance(status, ArticleStatus) else str(status or ArticleStatus.draft.value)


def _cover_url(meta: dict) -> str | None:
    if meta.get(META_COVER_URL):
        return meta[META_COVER_URL]
    if meta.get(META_COVER_PATH):
        return blob_store.public_url(meta[META_COVER_PATH])
    return None


def rejection_reason(entry: ReviewEntry | None) -> str | None:
    """Note of the newest ledger entry when that entry is a rejection."""
    if entry is None or entry.action != ArticleAction.reject.value:
        return None
    return entry.note


def article_summary(article: Article, *, latest: ReviewEntry | None = None) -> dict:
    meta = article.meta or {}
    status = _status_value(article)
    return {
        "id": article.id,
        "title": article.title,
        "slug": article.slug,
        "excerpt": truncate_text(article.excerpt or "", 300) or None,
        "status": status,
        "status_label": ArticleStatus(status).label,
        "author_id": article.author_id,
        "rubric_id": article.rubric_id,
        "division_id": article.division_id,
        "is_anonymous": bool(article.is_anonymous),
        "cover_url": _cover_url(meta),
        "rejection_reason": rejection_reason(latest),
        "published_at": _iso(article.published_at),
        "updated_at": _iso(article.updated_at),
    }


def article_detail(article: Article, *, latest: ReviewEntry | None = None) -> dict:
    meta = article.meta or {}
    keywords = meta.get(META_KEYWORDS)
    payload = article_summary(article, latest=latest)
    payload.update(
        {
            "excerpt": article.excerpt,
            "content": article.content,
            "version": article.version,
            "cover_path": meta.get(META_COVER_PATH),
            "keywords": list(keywords) if isinstance(keywords, list) else [],
            "highlights": meta.get(META_HIGHLIGHTS) or [],
            "meta": meta,
            "created_at": _iso(article.created_at),
        }
    )
    return payload


def review_row(entry: ReviewEntry) -> dict:
    return {
        "id": entry.id,
        "article_id": entry.article_id,
        "actor_id": entry.actor_id,
        "action": entry.action,
        "from_status": entry.from_status,
        "to_status": entry.to_status,
        "note": entry.note,
        "created_at": _iso(entry.created_at),
    }


def transition_result(outcome: TransitionOutcome) -> dict:
    payload = outcome.summary()
    payload["review"] = review_row(outcome.entry) if outcome.entry is not None else None
    return payload
