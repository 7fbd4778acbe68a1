from __future__ import annotations

from dataclasses import dataclass

from app.domain.articles.errors import InvalidTransition
from app.models.article import ArticleAction, ArticleStatus


INITIAL_STATUS = ArticleStatus.draft
TERMINAL_STATUSES: frozenset[ArticleStatus] = frozenset({ArticleStatus.published, ArticleStatus.rejected})

AUTHOR_EDITABLE: frozenset[ArticleStatus] = frozenset({ArticleStatus.draft, ArticleStatus.revision})
EDITOR_REVIEWABLE: frozenset[ArticleStatus] = frozenset(
    {
        ArticleStatus.submitted,
        ArticleStatus.review_editor,
        ArticleStatus.revision,
        ArticleStatus.revised,
    }
)
ADMIN_REVIEWABLE: frozenset[ArticleStatus] = frozenset({ArticleStatus.approved, ArticleStatus.review_admin})


@dataclass(frozen=True, slots=True)
class TransitionRule:
    sources: frozenset[ArticleStatus]
    target: ArticleStatus | None  # None: status unchanged (content-only action or delete)


TRANSITION_TABLE: dict[ArticleAction, TransitionRule] = {
    ArticleAction.submit: TransitionRule(AUTHOR_EDITABLE, ArticleStatus.submitted),
    ArticleAction.update: TransitionRule(AUTHOR_EDITABLE, None),
    ArticleAction.change_cover: TransitionRule(AUTHOR_EDITABLE, None),
    ArticleAction.revised: TransitionRule(frozenset({ArticleStatus.revision}), ArticleStatus.revised),
    ArticleAction.delete: TransitionRule(frozenset({ArticleStatus.draft}), None),
    ArticleAction.review_editor: TransitionRule(EDITOR_REVIEWABLE, ArticleStatus.review_editor),
    ArticleAction.request_revision: TransitionRule(EDITOR_REVIEWABLE, ArticleStatus.revision),
    ArticleAction.approve: TransitionRule(EDITOR_REVIEWABLE, ArticleStatus.approved),
    ArticleAction.highlight_update: TransitionRule(EDITOR_REVIEWABLE, None),
    ArticleAction.review_admin: TransitionRule(ADMIN_REVIEWABLE, ArticleStatus.review_admin),
    ArticleAction.reject: TransitionRule(ADMIN_REVIEWABLE, ArticleStatus.rejected),
    ArticleAction.publish: TransitionRule(ADMIN_REVIEWABLE, ArticleStatus.published),
}


@dataclass(slots=True)
class TransitionValidationResult:
    valid: bool
    action: ArticleAction
    from_state: ArticleStatus
    to_state: ArticleStatus | None
    allowed_sources: list[ArticleStatus]


def coerce_status(value: ArticleStatus | str | None) -> ArticleStatus:
    if isinstance(value, ArticleStatus):
        return value
    if value is None:
        return INITIAL_STATUS
    try:
        return ArticleStatus(str(value))
    except ValueError as exc:
        raise InvalidTransition(f"Unknown article status: {value}", code="unknown_status") from exc


def rule_for(action: ArticleAction) -> TransitionRule:
    rule = TRANSITION_TABLE.get(action)
    if rule is None:
        raise InvalidTransition(f"Action {action.value} is not a lifecycle transition", code="unknown_action")
    return rule


def resolve_target(action: ArticleAction, current: ArticleStatus) -> ArticleStatus:
    """Status after `action`; a resubmission out of revision lands in `revised`."""
    rule = rule_for(action)
    if rule.target is None:
        return current
    if action == ArticleAction.submit and current == ArticleStatus.revision:
        return ArticleStatus.revised
    return rule.target


def can_apply(action: ArticleAction, current: ArticleStatus) -> bool:
    rule = TRANSITION_TABLE.get(action)
    return rule is not None and current in rule.sources


def allowed_actions(current: ArticleStatus) -> set[ArticleAction]:
    return {action for action, rule in TRANSITION_TABLE.items() if current in rule.sources}


def validate_transition(action: ArticleAction, current: ArticleStatus) -> TransitionValidationResult:
    rule = rule_for(action)
    valid = current in rule.sources
    return TransitionValidationResult(
        valid=valid,
        action=action,
        from_state=current,
        to_state=resolve_target(action, current) if valid else rule.target,
        allowed_sources=sorted(rule.sources, key=lambda item: item.value),
    )


def assert_transition(action: ArticleAction, current: ArticleStatus, *, entity: str = "article") -> ArticleStatus:
    result = validate_transition(action, current)
    if result.valid:
        return resolve_target(action, current)
    raise InvalidTransition(
        f"Cannot {action.value} an article in status {current.value}",
        details={
            "entity": entity,
            "action": action.value,
            "from_state": current.value,
            "allowed_from": [item.value for item in result.allowed_sources],
        },
    )
