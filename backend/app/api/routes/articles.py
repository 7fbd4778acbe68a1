"""
Rubrik Review Desk — Article Routes
===================================
Author-side lifecycle (create, edit, cover, submit, delete) and the
visibility-filtered read endpoints shared by every role.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.rbac import get_current_actor
from app.api.envelope import collection_envelope, success_envelope
from app.core.config import get_settings
from app.core.database import get_db
from app.domain.articles.annotations import AnnotationUpdate
from app.domain.articles.policy import Actor
from app.domain.articles.state_machine import allowed_actions
from app.models import ArticleStatus
from app.repositories.article_repository import article_repository
from app.schemas.articles import (
    ArticleCreateRequest,
    ArticleUpdateRequest,
    TransitionRequest,
    article_detail,
    article_summary,
    review_row,
    transition_result,
)
from app.services.article_lifecycle_service import DraftInput, article_lifecycle_service
from app.services.blob_storage_service import ImagePayload, image_content_type
from app.services.review_ledger_service import review_ledger_service

router = APIRouter(prefix="/articles", tags=["Articles"])
settings = get_settings()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_article(
    payload: ArticleCreateRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    draft = DraftInput(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        slug=payload.slug,
        rubric_id=payload.rubric_id,
        is_anonymous=payload.is_anonymous,
        annotations=payload.annotations.to_update() if payload.annotations else AnnotationUpdate(),
    )
    outcome = await article_lifecycle_service.create_draft(
        db,
        actor=actor,
        draft=draft,
        submit=payload.submit,
        note=payload.note,
    )
    return success_envelope(
        {**article_detail(outcome.article), "review": transition_result(outcome)["review"]},
        status_code=status.HTTP_201_CREATED,
    )


@router.get("")
async def list_articles(
    status_filter: ArticleStatus | None = Query(default=None, alias="status"),
    limit: int | None = Query(default=None, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    articles = await article_repository.list_visible(
        db,
        actor,
        status=status_filter,
        limit=limit or settings.article_list_limit,
    )
    latest = await review_ledger_service.latest_for_articles(db, [article.id for article in articles])
    return collection_envelope(
        [article_summary(article, latest=latest.get(article.id)) for article in articles],
        meta={"status": status_filter.value if status_filter else None},
    )


@router.get("/{article_id}")
async def get_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    article = await article_lifecycle_service.get_article(db, article_id=article_id, actor=actor)
    latest = await review_ledger_service.latest(db, article_id)
    return success_envelope(article_detail(article, latest=latest))


@router.get("/{article_id}/state")
async def get_article_state(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    current = await article_lifecycle_service.current_state(db, article_id=article_id, actor=actor)
    return success_envelope(
        {
            "id": article_id,
            "status": current.value,
            "status_label": current.label,
            "allowed_actions": sorted(action.value for action in allowed_actions(current)),
        }
    )


@router.get("/{article_id}/reviews")
async def get_article_reviews(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    entries = await article_lifecycle_service.history(db, article_id=article_id, actor=actor)
    return collection_envelope([review_row(entry) for entry in entries], meta={"article_id": article_id})


@router.put("/{article_id}")
async def update_article(
    article_id: int,
    payload: ArticleUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    outcome = await article_lifecycle_service.update_content(
        db,
        actor=actor,
        article_id=article_id,
        changes=payload.to_changes(),
        annotations=payload.annotations.to_update() if payload.annotations else None,
        note=payload.note,
        expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/submit")
async def submit_article(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    payload = payload or TransitionRequest()
    outcome = await article_lifecycle_service.submit(
        db,
        actor=actor,
        article_id=article_id,
        note=payload.note,
        expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/revised")
async def mark_article_revised(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    payload = payload or TransitionRequest()
    outcome = await article_lifecycle_service.mark_revised(
        db,
        actor=actor,
        article_id=article_id,
        note=payload.note,
        expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/cover")
async def upload_article_cover(
    article_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    content_type = image_content_type(file.content_type)
    if content_type is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Cover must be a png, jpeg, gif or webp image",
        )
    data = await file.read()
    max_bytes = settings.cover_max_upload_mb * 1024 * 1024
    if not data or len(data) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Cover must be between 1 byte and {settings.cover_max_upload_mb} MB",
        )

    outcome = await article_lifecycle_service.change_cover(
        db,
        actor=actor,
        article_id=article_id,
        image=ImagePayload(data=data, content_type=content_type),
    )
    return success_envelope({**transition_result(outcome), "cover": article_detail(outcome.article)["cover_url"]})


@router.delete("/{article_id}")
async def delete_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    deleted_id = await article_lifecycle_service.delete(db, actor=actor, article_id=article_id)
    return success_envelope({"id": deleted_id, "deleted": True})
