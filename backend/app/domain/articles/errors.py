from __future__ import annotations

from typing import Any


class ArticleWorkflowError(Exception):
    """Base for typed lifecycle failures; mapped to the error envelope by the API."""

    code = "article_workflow_error"
    status_code = 400

    def __init__(self, message: str, *, code: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}

    def to_detail(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.details}


class InvalidTransition(ArticleWorkflowError):
    code = "invalid_state_transition"
    status_code = 409


class Forbidden(ArticleWorkflowError):
    code = "forbidden"
    status_code = 403


class NotFound(ArticleWorkflowError):
    code = "not_found"
    status_code = 404


class Conflict(ArticleWorkflowError):
    code = "transition_conflict"
    status_code = 409


class StorageFailure(ArticleWorkflowError):
    code = "storage_failure"
    status_code = 502
