from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.correlation import get_request_id
from app.core.logging import get_logger
from app.domain.articles.errors import NotFound
from app.models import ArticleAction, ArticleStatus, LEDGER_ACTIONS, ReviewEntry

logger = get_logger("services.review_ledger")


def _status_value(value: ArticleStatus | str | None) -> str | None:
    if value is None:
        return None
    return value.value if isinstance(value, ArticleStatus) else str(value)


class ReviewLedgerService:
    """Append-only review history. Entries are written inside the caller's transaction."""

    async def append(
        self,
        db: AsyncSession,
        *,
        article_id: int,
        actor_id: int,
        action: ArticleAction | str,
        from_status: ArticleStatus | str | None,
        to_status: ArticleStatus | str | None,
        note: str | None = None,
    ) -> ReviewEntry:
        action = ArticleAction(action)
        if action not in LEDGER_ACTIONS:
            raise ValueError(f"{action.value} is not a ledger action")

        entry = ReviewEntry(
            article_id=article_id,
            actor_id=actor_id,
            action=action.value,
            from_status=_status_value(from_status),
            to_status=_status_value(to_status),
            note=(note or "").strip() or None,
            created_at=datetime.utcnow(),
        )
        db.add(entry)
        try:
            await db.flush()
        except IntegrityError as exc:
            logger.warning(
                "review_entry_rejected",
                article_id=article_id,
                actor_id=actor_id,
                action=action.value,
                request_id=get_request_id() or None,
            )
            raise NotFound(
                "Article or actor does not exist",
                code="ledger_reference_not_found",
                details={"article_id": article_id, "actor_id": actor_id},
            ) from exc
        return entry

    async def history(self, db: AsyncSession, article_id: int, *, limit: int | None = None) -> list[ReviewEntry]:
        """Entries for one article, newest first."""
        stmt = (
            select(ReviewEntry)
            .where(ReviewEntry.article_id == article_id)
            .order_by(ReviewEntry.created_at.desc(), ReviewEntry.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)
        rows = await db.execute(stmt)
        return list(rows.scalars().all())

    async def latest(self, db: AsyncSession, article_id: int) -> ReviewEntry | None:
        entries = await self.history(db, article_id, limit=1)
        return entries[0] if entries else None

    async def latest_for_articles(self, db: AsyncSession, article_ids: list[int]) -> dict[int, ReviewEntry]:
        if not article_ids:
            return {}
        rows = await db.execute(
            select(ReviewEntry)
            .where(ReviewEntry.article_id.in_(article_ids))
            .order_by(ReviewEntry.created_at.desc(), ReviewEntry.id.desc())
        )
        latest: dict[int, ReviewEntry] = {}
        for entry in rows.scalars().all():
            latest.setdefault(entry.article_id, entry)
        return latest


review_ledger_service = ReviewLedgerService()
