"""create rubrics, divisions, users, articles and the article review ledger

Revision ID: 20261018_article_review_desk
Revises:
Create Date: 2026-10-18 09:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "20261018_article_review_desk"
down_revision = None
branch_labels = None
depends_on = None

ARTICLE_STATUSES = (
    "draft",
    "submitted",
    "review_editor",
    "revision",
    "revised",
    "approved",
    "review_admin",
    "rejected",
    "published",
)
USER_ROLES = ("super_admin", "admin_rubric", "editor_rubric", "author", "member")
LEDGER_ACTIONS = (
    "approve",
    "change_cover",
    "highlight_update",
    "publish",
    "reject",
    "request_revision",
    "review_admin",
    "review_editor",
    "revised",
    "submit",
    "update",
)


def upgrade() -> None:
    postgresql.ENUM(*USER_ROLES, name="user_role").create(op.get_bind(), checkfirst=True)
    postgresql.ENUM(*ARTICLE_STATUSES, name="article_status").create(op.get_bind(), checkfirst=True)

    op.create_table(
        "rubrics",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.UniqueConstraint("slug", name="uq_rubrics_slug"),
    )

    op.create_table(
        "divisions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(*USER_ROLES, name="user_role", create_type=False),
            nullable=False,
            server_default="author",
        ),
        sa.Column("rubric_id", sa.Integer(), sa.ForeignKey("rubrics.id", ondelete="SET NULL"), nullable=True),
        sa.Column("division_id", sa.Integer(), sa.ForeignKey("divisions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_rubric_id", "users", ["rubric_id"], unique=False)
    op.create_index("ix_users_division_id", "users", ["division_id"], unique=False)

    op.create_table(
        "articles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rubric_id", sa.Integer(), sa.ForeignKey("rubrics.id", ondelete="SET NULL"), nullable=True),
        sa.Column("division_id", sa.Integer(), sa.ForeignKey("divisions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("published_at", sa.DateTime(), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(*ARTICLE_STATUSES, name="article_status", create_type=False),
            nullable=False,
            server_default="draft",
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("meta", sa.JSON(), nullable=False, server_default=sa.text("'{}'::json")),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(), nullable=True, server_default=sa.text("now()")),
        sa.UniqueConstraint("slug", name="uq_articles_slug"),
    )
    op.create_index("ix_articles_author_id", "articles", ["author_id"], unique=False)
    op.create_index("ix_articles_division_id", "articles", ["division_id"], unique=False)
    op.create_index("ix_articles_status_rubric", "articles", ["status", "rubric_id"], unique=False)
    op.create_index("ix_articles_updated", "articles", ["updated_at"], unique=False)

    op.create_table(
        "article_reviews",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("article_id", sa.Integer(), sa.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("action", sa.String(length=40), nullable=False),
        sa.Column("from_status", sa.String(length=32), nullable=True),
        sa.Column("to_status", sa.String(length=32), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "action IN (" + ", ".join(f"'{action}'" for action in LEDGER_ACTIONS) + ")",
            name="ck_article_reviews_action",
        ),
    )
    op.create_index("ix_article_reviews_article_id", "article_reviews", ["article_id"], unique=False)
    op.create_index(
        "ix_article_reviews_article_created", "article_reviews", ["article_id", "created_at"], unique=False
    )
    op.create_index(
        "ix_article_reviews_action_created", "article_reviews", ["action", "created_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_article_reviews_action_created", table_name="article_reviews")
    op.drop_index("ix_article_reviews_article_created", table_name="article_reviews")
    op.drop_index("ix_article_reviews_article_id", table_name="article_reviews")
    op.drop_table("article_reviews")

    op.drop_index("ix_articles_updated", table_name="articles")
    op.drop_index("ix_articles_status_rubric", table_name="articles")
    op.drop_index("ix_articles_division_id", table_name="articles")
    op.drop_index("ix_articles_author_id", table_name="articles")
    op.drop_table("articles")

    op.drop_index("ix_users_division_id", table_name="users")
    op.drop_index("ix_users_rubric_id", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")

    op.drop_table("divisions")
    op.drop_table("rubrics")

    postgresql.ENUM(name="article_status").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="user_role").drop(op.get_bind(), checkfirst=True)
