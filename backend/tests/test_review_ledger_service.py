from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from app.domain.articles.errors import NotFound
from app.models import ArticleAction, ArticleStatus, ReviewEntry
from app.services.review_ledger_service import review_ledger_service


class _Result:
    def __init__(self, rows):
        self._rows = rows

    def scalars(self):
        return SimpleNamespace(all=lambda: list(self._rows))


class _DbSessionStub:
    def __init__(self, rows=None, *, fail_flush: bool = False):
        self._rows = rows or []
        self._fail_flush = fail_flush
        self.added = []
        self.statements = []

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        if self._fail_flush:
            raise IntegrityError("INSERT INTO article_reviews", {}, Exception("violates foreign key constraint"))

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _Result(self._rows)


@pytest.mark.asyncio
async def test_append_records_transition_in_callers_session() -> None:
    db = _DbSessionStub()

    entry = await review_ledger_service.append(
        db,
        article_id=7,
        actor_id=2,
        action=ArticleAction.request_revision,
        from_status=ArticleStatus.submitted,
        to_status=ArticleStatus.revision,
        note="  fix intro  ",
    )

    assert db.added == [entry]
    assert entry.action == "request_revision"
    assert (entry.from_status, entry.to_status) == ("submitted", "revision")
    assert entry.note == "fix intro"
    assert isinstance(entry.created_at, datetime)


@pytest.mark.asyncio
async def test_append_accepts_string_action_and_blank_note() -> None:
    entry = await review_ledger_service.append(
        _DbSessionStub(), article_id=7, actor_id=2, action="approve", from_status="revised", to_status="approved", note=" "
    )
    assert entry.action == "approve"
    assert entry.note is None


@pytest.mark.parametrize("action", [ArticleAction.create, ArticleAction.delete])
@pytest.mark.asyncio
async def test_append_rejects_actions_outside_vocabulary(action: ArticleAction) -> None:
    db = _DbSessionStub()
    with pytest.raises(ValueError):
        await review_ledger_service.append(
            db, article_id=7, actor_id=2, action=action, from_status="draft", to_status="draft"
        )
    assert db.added == []


@pytest.mark.asyncio
async def test_append_missing_reference_is_not_found() -> None:
    with pytest.raises(NotFound) as exc_info:
        await review_ledger_service.append(
            _DbSessionStub(fail_flush=True),
            article_id=404,
            actor_id=2,
            action=ArticleAction.approve,
            from_status="submitted",
            to_status="approved",
        )
    assert exc_info.value.code == "ledger_reference_not_found"


@pytest.mark.asyncio
async def test_history_and_latest_return_newest_first() -> None:
    now = datetime.utcnow()
    newest = ReviewEntry(id=2, article_id=7, actor_id=2, action="approve", created_at=now)
    older = ReviewEntry(id=1, article_id=7, actor_id=1, action="submit", created_at=now - timedelta(minutes=5))
    db = _DbSessionStub([newest, older])

    assert await review_ledger_service.history(db, 7) == [newest, older]
    compiled = str(db.statements[0])
    assert "ORDER BY article_reviews.created_at DESC, article_reviews.id DESC" in compiled

    latest = await review_ledger_service.latest(_DbSessionStub([newest]), 7)
    assert latest is newest
    assert await review_ledger_service.latest(_DbSessionStub([]), 7) is None


@pytest.mark.asyncio
async def test_latest_for_articles_keeps_first_row_per_article() -> None:
    rows = [
        SimpleNamespace(article_id=1, action="reject"),
        SimpleNamespace(article_id=2, action="approve"),
        SimpleNamespace(article_id=1, action="review_admin"),
    ]
    latest = await review_ledger_service.latest_for_articles(_DbSessionStub(rows), [1, 2])
    assert latest[1].action == "reject"
    assert latest[2].action == "approve"
    assert await review_ledger_service.latest_for_articles(_DbSessionStub(rows), []) == {}
