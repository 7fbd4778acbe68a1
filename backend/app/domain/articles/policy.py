"""
Authorization gate for article lifecycle actions.

Policy is a static {role -> actions} table plus two predicates:
ownership (author actions) and rubric scope (editor/admin actions).
Super admins bypass both. State constraints live in the state machine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.domain.articles.errors import Forbidden
from app.models.article import ArticleAction, ArticleStatus
from app.models.user import UserRole


@dataclass(frozen=True, slots=True)
class Actor:
    id: int
    role: UserRole
    rubric_id: int | None = None
    division_id: int | None = None
    username: str | None = None

    @classmethod
    def from_user(cls, user: Any) -> "Actor":
        raw_role = getattr(user, "role", None)
        try:
            role = raw_role if isinstance(raw_role, UserRole) else UserRole(str(raw_role))
        except ValueError:
            role = UserRole.member
        return cls(
            id=user.id,
            role=role,
            rubric_id=getattr(user, "rubric_id", None),
            division_id=getattr(user, "division_id", None),
            username=getattr(user, "username", None),
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.super_admin


OWNER_ACTIONS: frozenset[ArticleAction] = frozenset(
    {
        ArticleAction.create,
        ArticleAction.update,
        ArticleAction.change_cover,
        ArticleAction.submit,
        ArticleAction.revised,
        ArticleAction.delete,
    }
)
EDITOR_ACTIONS: frozenset[ArticleAction] = frozenset(
    {
        ArticleAction.review_editor,
        ArticleAction.request_revision,
        ArticleAction.approve,
        ArticleAction.highlight_update,
    }
)
ADMIN_ACTIONS: frozenset[ArticleAction] = frozenset(
    {ArticleAction.review_admin, ArticleAction.reject, ArticleAction.publish}
)

ROLE_CAPABILITIES: dict[UserRole, frozenset[ArticleAction]] = {
    UserRole.super_admin: frozenset(ArticleAction),
    UserRole.editor_rubric: EDITOR_ACTIONS,
    UserRole.admin_rubric: ADMIN_ACTIONS,
    UserRole.author: OWNER_ACTIONS,
    UserRole.member: frozenset(),
}

VISIBLE_STATUSES: dict[UserRole, frozenset[ArticleStatus]] = {
    UserRole.super_admin: frozenset(ArticleStatus),
    UserRole.editor_rubric: frozenset(
        {
            ArticleStatus.submitted,
            ArticleStatus.review_editor,
            ArticleStatus.revision,
            ArticleStatus.revised,
            ArticleStatus.approved,
        }
    ),
    UserRole.admin_rubric: frozenset(
        {ArticleStatus.submitted, ArticleStatus.approved, ArticleStatus.review_admin}
    ),
    UserRole.author: frozenset(),
    UserRole.member: frozenset(),
}


class AuthorizationGate:
    def has_capability(self, actor: Actor, action: ArticleAction) -> bool:
        return action in ROLE_CAPABILITIES.get(actor.role, frozenset())

    def owns(self, actor: Actor, article: Any) -> bool:
        return article is not None and article.author_id == actor.id

    def in_scope(self, actor: Actor, article: Any) -> bool:
        # Reviewers without a rubric see and act on nothing.
        if actor.rubric_id is None or article is None:
            return False
        return article.rubric_id == actor.rubric_id

    def denial_reason(self, actor: Actor, action: ArticleAction, article: Any = None) -> str | None:
        if actor.is_super_admin:
            return None
        if not self.has_capability(actor, action):
            return "missing_capability"
        if action == ArticleAction.create:
            return None
        if action in OWNER_ACTIONS:
            return None if self.owns(actor, article) else "not_owner"
        return None if self.in_scope(actor, article) else "out_of_scope"

    def is_allowed(self, actor: Actor, action: ArticleAction, article: Any = None) -> bool:
        return self.denial_reason(actor, action, article) is None

    def ensure_allowed(self, actor: Actor, action: ArticleAction, article: Any = None) -> None:
        reason = self.denial_reason(actor, action, article)
        if reason is None:
            return
        raise Forbidden(
            f"Not authorized to {action.value} this article",
            details={
                "reason": reason,
                "action": action.value,
                "role": actor.role.value,
                "article_id": getattr(article, "id", None),
            },
        )

    def visible_statuses(self, actor: Actor) -> frozenset[ArticleStatus]:
        """Statuses visible to the actor beyond their own articles."""
        return VISIBLE_STATUSES.get(actor.role, frozenset())

    def can_view(self, actor: Actor, article: Any) -> bool:
        if actor.is_super_admin or self.owns(actor, article):
            return True
        if not self.in_scope(actor, article):
            return False
        return ArticleStatus(article.status) in self.visible_statuses(actor)

    def ensure_can_view(self, actor: Actor, article: Any) -> None:
        if not self.can_view(actor, article):
            raise Forbidden(
                "Not authorized to view this article",
                details={"reason": "not_visible", "article_id": getattr(article, "id", None)},
            )


authorization_gate = AuthorizationGate()
