"""
Rubrik Review Desk — Article Models
===================================
Articles and their append-only review ledger.
Lifecycle: draft → submitted → review_editor → revision ⇄ revised → approved
→ review_admin → published | rejected
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey, Index,
    Integer, JSON, String, Text,
)

from app.core.database import Base


# ── Enums ──

class ArticleStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    review_editor = "review_editor"
    revision = "revision"
    revised = "revised"
    approved = "approved"
    review_admin = "review_admin"
    rejected = "rejected"
    published = "published"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS: dict[ArticleStatus, str] = {
    ArticleStatus.draft: "Draft",
    ArticleStatus.submitted: "Submitted",
    ArticleStatus.review_editor: "Review by Editor",
    ArticleStatus.revision: "Revision",
    ArticleStatus.revised: "Revised",
    ArticleStatus.approved: "Approved",
    ArticleStatus.review_admin: "Review by Admin",
    ArticleStatus.rejected: "Rejected",
    ArticleStatus.published: "Published",
}


class ArticleAction(str, enum.Enum):
    """Every action an actor can request on an article."""
    create = "create"
    submit = "submit"
    update = "update"
    change_cover = "change_cover"
    revised = "revised"
    delete = "delete"
    review_editor = "review_editor"
    request_revision = "request_revision"
    approve = "approve"
    highlight_update = "highlight_update"
    review_admin = "review_admin"
    reject = "reject"
    publish = "publish"


# Actions persisted in the review ledger. create/delete leave no row.
LEDGER_ACTIONS: frozenset[ArticleAction] = frozenset(
    action for action in ArticleAction if action not in {ArticleAction.create, ArticleAction.delete}
)


# ── Models ──

class Article(Base):
    """Authored article moving through the review pipeline."""
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # ── Ownership ──
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rubric_id = Column(Integer, ForeignKey("rubrics.id", ondelete="SET NULL"), nullable=True)
    division_id = Column(Integer, ForeignKey("divisions.id", ondelete="SET NULL"), nullable=True, index=True)

    # ── Content ──
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    excerpt = Column(Text, nullable=True)
    content = Column(Text, nullable=True)
    published_at = Column(DateTime, nullable=True)

    # ── Lifecycle ──
    status = Column(
        Enum(ArticleStatus, name="article_status"),
        nullable=False,
        default=ArticleStatus.draft,
    )
    version = Column(Integer, nullable=False, default=1)

    # ── Annotations ──
    meta = Column(JSON, nullable=False, default=dict)  # cover_path, cover_url, keywords, highlights
    is_anonymous = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_articles_status_rubric", "status", "rubric_id"),
        Index("ix_articles_updated", "updated_at"),
    )

    def __repr__(self):
        return f"<Article(id={self.id}, status='{self.status}', slug='{self.slug}')>"


class ReviewEntry(Base):
    """Immutable ledger row for one lifecycle or content action."""
    __tablename__ = "article_reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(String(40), nullable=False)
    from_status = Column(String(32), nullable=True)
    to_status = Column(String(32), nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "action IN (" + ", ".join(f"'{a.value}'" for a in sorted(LEDGER_ACTIONS, key=lambda a: a.value)) + ")",
            name="ck_article_reviews_action",
        ),
        Index("ix_article_reviews_article_created", "article_id", "created_at"),
        Index("ix_article_reviews_action_created", "action", "created_at"),
    )

    def __repr__(self):
        return f"<ReviewEntry(article_id={self.article_id}, action='{self.action}', {self.from_status}->{self.to_status})>"
