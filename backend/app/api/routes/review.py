"""
Rubrik Review Desk — Review Routes
==================================
Editor and admin actions on articles within their rubric.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps.rbac import get_reviewer_actor
from app.api.envelope import success_envelope
from app.core.database import get_db
from app.domain.articles.policy import Actor
from app.schemas.articles import HighlightUpdateRequest, TransitionRequest, transition_result
from app.services.article_lifecycle_service import article_lifecycle_service

router = APIRouter(prefix="/articles", tags=["Review"])


def _payload(payload: TransitionRequest | None) -> TransitionRequest:
    return payload or TransitionRequest()


@router.post("/{article_id}/review-editor")
async def start_editor_review(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.start_editor_review(
        db, actor=actor, article_id=article_id, note=payload.note, expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/request-revision")
async def request_revision(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.request_revision(
        db,
        actor=actor,
        article_id=article_id,
        note=payload.note,
        annotations=payload.annotations.to_update() if payload.annotations else None,
        expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/approve")
async def approve_article(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.approve(
        db, actor=actor, article_id=article_id, note=payload.note, expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.put("/{article_id}/content")
async def update_highlights(
    article_id: int,
    payload: HighlightUpdateRequest,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    outcome = await article_lifecycle_service.update_highlights(
        db,
        actor=actor,
        article_id=article_id,
        changes=payload.to_changes(),
        annotations=payload.annotations.to_update() if payload.annotations else None,
        note=payload.note,
        expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/review-admin")
async def start_admin_review(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.start_admin_review(
        db, actor=actor, article_id=article_id, note=payload.note, expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/reject")
async def reject_article(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.reject(
        db, actor=actor, article_id=article_id, note=payload.note, expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))


@router.post("/{article_id}/publish")
async def publish_article(
    article_id: int,
    payload: TransitionRequest | None = None,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_reviewer_actor),
):
    payload = _payload(payload)
    outcome = await article_lifecycle_service.publish(
        db, actor=actor, article_id=article_id, note=payload.note, expected_status=payload.expected_status,
    )
    return success_envelope(transition_result(outcome))
