from __future__ import annotations

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.domain.articles.errors import ArticleWorkflowError, Conflict, NotFound
from app.domain.articles.policy import Actor, authorization_gate
from app.models import Article, ArticleStatus


def translate_db_error(exc: SQLAlchemyError, *, entity: str) -> ArticleWorkflowError:
    if isinstance(exc, StaleDataError):
        return Conflict(
            "The article changed before this transition was saved. Refetch and retry.",
            details={"entity": entity},
        )
    if isinstance(exc, IntegrityError):
        if "slug" in str(getattr(exc, "orig", exc)).lower():
            return Conflict("Slug is already used by another article", code="slug_taken", details={"entity": entity})
        return NotFound("Referenced record does not exist", code="reference_not_found", details={"entity": entity})
    return Conflict(
        "The article is being updated by another operation. Retry.",
        details={"entity": entity},
    )


class ArticleRepository:
    async def get(self, db: AsyncSession, article_id: int) -> Article | None:
        row = await db.execute(select(Article).where(Article.id == article_id))
        return row.scalar_one_or_none()

    async def get_for_update(self, db: AsyncSession, article_id: int, *, nowait: bool = True) -> Article:
        """Lock the article row for a read-decide-write; a held lock is a Conflict."""
        entity = f"article:{article_id}"
        try:
            row = await db.execute(
                select(Article)
                .where(Article.id == article_id)
                .with_for_update(nowait=nowait)
                .execution_options(populate_existing=True)
            )
        except OperationalError as exc:
            raise Conflict(
                "The article is being updated by another operation. Retry.",
                details={"entity": entity},
            ) from exc

        article = row.scalar_one_or_none()
        if article is None:
            raise NotFound("Article not found", code="article_not_found", details={"entity": entity})
        return article

    async def list_visible(
        self,
        db: AsyncSession,
        actor: Actor,
        *,
        status: ArticleStatus | None = None,
        limit: int = 200,
    ) -> list[Article]:
        stmt = select(Article)
        if not actor.is_super_admin:
            own = Article.author_id == actor.id
            statuses = authorization_gate.visible_statuses(actor)
            if statuses and actor.rubric_id is not None:
                stmt = stmt.where(
                    or_(
                        own,
                        and_(Article.rubric_id == actor.rubric_id, Article.status.in_(list(statuses))),
                    )
                )
            else:
                stmt = stmt.where(own)
        if status is not None:
            stmt = stmt.where(Article.status == status)
        rows = await db.execute(
            stmt.order_by(Article.updated_at.desc(), Article.id.desc()).limit(max(1, min(limit, 500)))
        )
        return list(rows.scalars().all())

    async def slug_exists(self, db: AsyncSession, slug: str, *, exclude_id: int | None = None) -> bool:
        stmt = select(Article.id).where(Article.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Article.id != exclude_id)
        row = await db.execute(stmt.limit(1))
        return row.scalar_one_or_none() is not None

    async def add(self, db: AsyncSession, article: Article) -> Article:
        db.add(article)
        await self.flush(db, entity="article:new")
        return article

    async def flush(self, db: AsyncSession, *, entity: str) -> None:
        try:
            await db.flush()
        except SQLAlchemyError as exc:
            raise translate_db_error(exc, entity=entity) from exc

    async def delete(self, db: AsyncSession, article: Article) -> None:
        # article_reviews rows go with it through ON DELETE CASCADE.
        await db.delete(article)
        await self.flush(db, entity=f"article:{article.id}")


article_repository = ArticleRepository()
