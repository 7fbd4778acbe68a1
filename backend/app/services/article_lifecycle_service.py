"""
Rubrik Review Desk — Article Lifecycle Service
==============================================
Orchestrates every article transition as one unit of work:

    lock row → check expected state → authorize → validate transition
    → apply side effects → append ledger entry → commit

Any failure rolls the session back, so the article status and its review
ledger can never diverge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.logging import get_logger
from app.domain.articles.annotations import AnnotationUpdate, merge_annotations
from app.domain.articles.errors import ArticleWorkflowError, Conflict, InvalidTransition, NotFound
from app.domain.articles.policy import Actor, authorization_gate
from app.domain.articles.state_machine import INITIAL_STATUS, assert_transition, coerce_status
from app.models import Article, ArticleAction, ArticleStatus, ReviewEntry
from app.repositories.article_repository import article_repository, translate_db_error
from app.services.blob_storage_service import ImagePayload, blob_store, decode_image_data_url
from app.services.review_ledger_service import review_ledger_service
from app.utils.text_processing import build_slug

logger = get_logger("services.article_lifecycle")


@dataclass(slots=True)
class ContentChanges:
    """Fields an author (or reviewer, for content) may edit; None leaves a field as is."""
    title: str | None = None
    slug: str | None = None
    excerpt: str | None = None
    content: str | None = None
    rubric_id: int | None = None
    is_anonymous: bool | None = None


@dataclass(slots=True)
class DraftInput:
    title: str
    content: str | None = None
    excerpt: str | None = None
    slug: str | None = None
    rubric_id: int | None = None
    is_anonymous: bool = False
    annotations: AnnotationUpdate = field(default_factory=AnnotationUpdate)


@dataclass(slots=True)
class TransitionOutcome:
    article: Article
    entry: ReviewEntry | None
    from_status: ArticleStatus
    to_status: ArticleStatus

    def summary(self) -> dict[str, Any]:
        published_at = self.article.published_at
        return {
            "id": self.article.id,
            "status": self.to_status.value,
            "from_status": self.from_status.value,
            "published_at": published_at.isoformat() if isinstance(published_at, datetime) else None,
        }


class ArticleLifecycleService:
    def __init__(
        self,
        *,
        gate=authorization_gate,
        repository=article_repository,
        ledger=review_ledger_service,
        blobs=blob_store,
    ) -> None:
        self._gate = gate
        self._repository = repository
        self._ledger = ledger
        self._blobs = blobs
        self._settings = get_settings()

    # ── Author actions ──

    async def create_draft(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        draft: DraftInput,
        submit: bool = False,
        note: str | None = None,
    ) -> TransitionOutcome:
        entry: ReviewEntry | None = None
        try:
            self._gate.ensure_allowed(actor, ArticleAction.create)
            slug = build_slug(draft.slug, draft.title)
            if draft.slug:
                await self._ensure_slug_free(db, slug, entity="article:new")
            meta = await self._merge_meta({}, draft.annotations, entity="article:new")
            article = Article(
                author_id=actor.id,
                rubric_id=draft.rubric_id,
                division_id=actor.division_id,
                title=draft.title.strip(),
                slug=slug,
                excerpt=draft.excerpt,
                content=draft.content,
                is_anonymous=bool(draft.is_anonymous),
                status=INITIAL_STATUS,
                meta=meta,
            )
            await self._repository.add(db, article)

            status = INITIAL_STATUS
            if submit:
                self._gate.ensure_allowed(actor, ArticleAction.submit, article)
                status = assert_transition(ArticleAction.submit, INITIAL_STATUS, entity=f"article:{article.id}")
                self._require_rubric(article)
                article.status = status
                await self._repository.flush(db, entity=f"article:{article.id}")
                entry = await self._ledger.append(
                    db,
                    article_id=article.id,
                    actor_id=actor.id,
                    action=ArticleAction.submit,
                    from_status=INITIAL_STATUS,
                    to_status=status,
                    note=note,
                )
            await self._commit(db, entity=f"article:{article.id}")
        except ArticleWorkflowError as exc:
            await db.rollback()
            self._log_rejected(actor, ArticleAction.create, None, exc)
            raise

        logger.info(
            "article_created",
            article_id=article.id,
            author_id=actor.id,
            rubric_id=article.rubric_id,
            submitted=submit,
        )
        return TransitionOutcome(article=article, entry=entry, from_status=INITIAL_STATUS, to_status=status)

    async def submit(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                     expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.submit,
            note=note, expected_status=expected_status,
        )

    async def mark_revised(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                           expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.revised,
            note=note, expected_status=expected_status,
        )

    async def update_content(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        changes: ContentChanges,
        annotations: AnnotationUpdate | None = None,
        note: str | None = None,
        expected_status: ArticleStatus | None = None,
    ) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.update,
            note=note, changes=changes, annotations=annotations, expected_status=expected_status,
        )

    async def change_cover(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        image: ImagePayload,
        expected_status: ArticleStatus | None = None,
    ) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.change_cover,
            cover_image=image, expected_status=expected_status,
        )

    async def delete(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        expected_status: ArticleStatus | None = None,
    ) -> int:
        entity = f"article:{article_id}"
        try:
            article = await self._repository.get_for_update(db, article_id)
            current = coerce_status(article.status)
            self._gate.ensure_allowed(actor, ArticleAction.delete, article)
            self._gate.ensure_can_view(actor, article)
            self._check_expected(current, expected_status, entity=entity)
            assert_transition(ArticleAction.delete, current, entity=entity)
            await self._repository.delete(db, article)
            await self._commit(db, entity=entity)
        except ArticleWorkflowError as exc:
            await db.rollback()
            self._log_rejected(actor, ArticleAction.delete, article_id, exc)
            raise
        logger.info("article_deleted", article_id=article_id, actor_id=actor.id)
        return article_id

    # ── Reviewer actions ──

    async def start_editor_review(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                                  expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.review_editor,
            note=note, expected_status=expected_status,
        )

    async def request_revision(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        note: str | None = None,
        annotations: AnnotationUpdate | None = None,
        expected_status: ArticleStatus | None = None,
    ) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.request_revision,
            note=note, annotations=annotations, expected_status=expected_status,
        )

    async def approve(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                      expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.approve,
            note=note, expected_status=expected_status,
        )

    async def update_highlights(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        changes: ContentChanges | None = None,
        annotations: AnnotationUpdate | None = None,
        note: str | None = None,
        expected_status: ArticleStatus | None = None,
    ) -> TransitionOutcome:
        if changes is not None:
            # Reviewers edit text only; ownership fields stay with the author.
            changes = ContentChanges(title=changes.title, excerpt=changes.excerpt, content=changes.content)
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.highlight_update,
            note=note, changes=changes, annotations=annotations, expected_status=expected_status,
        )

    async def start_admin_review(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                                 expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.review_admin,
            note=note, expected_status=expected_status,
        )

    async def reject(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                     expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.reject,
            note=note, expected_status=expected_status,
        )

    async def publish(self, db: AsyncSession, *, actor: Actor, article_id: int, note: str | None = None,
                      expected_status: ArticleStatus | None = None) -> TransitionOutcome:
        return await self.transition(
            db, actor=actor, article_id=article_id, action=ArticleAction.publish,
            note=note, expected_status=expected_status,
        )

    # ── Read interface ──

    async def get_article(self, db: AsyncSession, *, article_id: int, actor: Actor | None = None) -> Article:
        article = await self._repository.get(db, article_id)
        if article is None:
            raise NotFound("Article not found", code="article_not_found", details={"entity": f"article:{article_id}"})
        if actor is not None:
            self._gate.ensure_can_view(actor, article)
        return article

    async def current_state(self, db: AsyncSession, *, article_id: int, actor: Actor | None = None) -> ArticleStatus:
        article = await self.get_article(db, article_id=article_id, actor=actor)
        return coerce_status(article.status)

    async def history(self, db: AsyncSession, *, article_id: int, actor: Actor | None = None) -> list[ReviewEntry]:
        await self.get_article(db, article_id=article_id, actor=actor)
        return await self._ledger.history(db, article_id)

    # ── Core ──

    async def transition(
        self,
        db: AsyncSession,
        *,
        actor: Actor,
        article_id: int,
        action: ArticleAction,
        note: str | None = None,
        expected_status: ArticleStatus | None = None,
        changes: ContentChanges | None = None,
        annotations: AnnotationUpdate | None = None,
        cover_image: ImagePayload | None = None,
    ) -> TransitionOutcome:
        entity = f"article:{article_id}"
        stored = None
        try:
            article = await self._repository.get_for_update(db, article_id)
            current = coerce_status(article.status)
            self._gate.ensure_allowed(actor, action, article)
            # Articles outside the actor's view are Forbidden whatever their state.
            self._gate.ensure_can_view(actor, article)
            self._check_expected(current, expected_status, entity=entity)
            target = assert_transition(action, current, entity=entity)

            if changes is not None:
                slug = None
                if changes.slug is not None:
                    slug = build_slug(changes.slug, changes.title or article.title)
                    await self._ensure_slug_free(db, slug, entity=entity, exclude_id=article.id)
                self._apply_changes(article, changes, slug=slug)
            if action == ArticleAction.submit:
                self._require_rubric(article)
            if cover_image is not None:
                # Mandatory upload: a storage failure aborts the whole transition.
                stored = await self._blobs.store_image(cover_image)
                annotations = AnnotationUpdate(cover_path=stored.path, cover_url=stored.url)
            if annotations is not None and not annotations.is_empty:
                article.meta = await self._merge_meta(article.meta, annotations, entity=entity)
            if target == ArticleStatus.published:
                article.published_at = datetime.utcnow()

            article.status = target
            await self._repository.flush(db, entity=entity)
            entry = await self._ledger.append(
                db,
                article_id=article.id,
                actor_id=actor.id,
                action=action,
                from_status=current,
                to_status=target,
                note=note,
            )
            await self._commit(db, entity=entity)
        except ArticleWorkflowError as exc:
            await db.rollback()
            self._log_rejected(actor, action, article_id, exc)
            if stored is not None:
                logger.warning(
                    "cover_orphaned",
                    article_id=article_id,
                    path=stored.path,
                    error_code=exc.code,
                )
            raise

        logger.info(
            "article_transition",
            article_id=article_id,
            actor_id=actor.id,
            action=action.value,
            from_status=current.value,
            to_status=target.value,
        )
        return TransitionOutcome(article=article, entry=entry, from_status=current, to_status=target)

    # ── Helpers ──

    @staticmethod
    def _check_expected(current: ArticleStatus, expected: ArticleStatus | None, *, entity: str) -> None:
        if expected is None or current == expected:
            return
        raise Conflict(
            "The article state changed before transition.",
            details={
                "entity": entity,
                "expected_current_state": expected.value,
                "actual_current_state": current.value,
            },
        )

    @staticmethod
    def _require_rubric(article: Article) -> None:
        if article.rubric_id is None:
            raise InvalidTransition(
                "Assign a rubric before submitting the article",
                details={"entity": f"article:{article.id}", "reason": "rubric_required"},
            )

    async def _ensure_slug_free(
        self, db: AsyncSession, slug: str, *, entity: str, exclude_id: int | None = None
    ) -> None:
        if await self._repository.slug_exists(db, slug, exclude_id=exclude_id):
            raise Conflict("Slug is already used by another article", code="slug_taken", details={"entity": entity, "slug": slug})

    @staticmethod
    def _apply_changes(article: Article, changes: ContentChanges, *, slug: str | None = None) -> None:
        if changes.title is not None:
            article.title = changes.title.strip()
        if slug is not None:
            article.slug = slug
        if changes.excerpt is not None:
            article.excerpt = changes.excerpt
        if changes.content is not None:
            article.content = changes.content
        if changes.rubric_id is not None:
            article.rubric_id = changes.rubric_id
        if changes.is_anonymous is not None:
            article.is_anonymous = bool(changes.is_anonymous)

    async def _merge_meta(self, meta: dict | None, annotations: AnnotationUpdate, *, entity: str) -> dict:
        if annotations.cover_data_url:
            # Best effort: a failed upload keeps the previous cover and the transition goes on.
            try:
                stored = await self._blobs.store_image(decode_image_data_url(annotations.cover_data_url))
            except (ValueError, ArticleWorkflowError) as exc:
                logger.warning("cover_upload_failed", entity=entity, error=str(exc))
            else:
                annotations = AnnotationUpdate(
                    keywords=annotations.keywords,
                    highlights=annotations.highlights,
                    cover_path=stored.path,
                    cover_url=stored.url,
                )
        return merge_annotations(meta, annotations, keyword_max_length=self._settings.keyword_max_length)

    async def _commit(self, db: AsyncSession, *, entity: str) -> None:
        try:
            await db.commit()
        except SQLAlchemyError as exc:
            raise translate_db_error(exc, entity=entity) from exc

    @staticmethod
    def _log_rejected(actor: Actor, action: ArticleAction, article_id: int | None, exc: ArticleWorkflowError) -> None:
        logger.info(
            "article_transition_rejected",
            article_id=article_id,
            actor_id=actor.id,
            action=action.value,
            code=exc.code,
            error_type=type(exc).__name__,
        )


article_lifecycle_service = ArticleLifecycleService()
