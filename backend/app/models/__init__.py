"""Models package."""
from app.models.organization import Rubric, Division
from app.models.user import User, UserRole
from app.models.article import (
    Article, ReviewEntry,
    ArticleStatus, ArticleAction, LEDGER_ACTIONS, STATUS_LABELS,
)

__all__ = [
    "Rubric",
    "Division",
    "User",
    "UserRole",
    "Article",
    "ReviewEntry",
    "ArticleStatus",
    "ArticleAction",
    "LEDGER_ACTIONS",
    "STATUS_LABELS",
]
