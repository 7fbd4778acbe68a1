from __future__ import annotations

import io
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi import HTTPException, UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from app.api.deps.rbac import get_current_actor, get_reviewer_actor
from app.api.routes import articles as articles_route
from app.api.routes import auth as auth_route
from app.api.routes import review as review_route
from app.core.database import get_db
from app.domain.articles.errors import Forbidden
from app.domain.articles.policy import Actor
from app.models import Article, ArticleStatus, ReviewEntry
from app.models.user import UserRole
from app.schemas.articles import ArticleCreateRequest, TransitionRequest
from app.services.article_lifecycle_service import TransitionOutcome

AUTHOR = Actor(id=1, role=UserRole.author)
EDITOR = Actor(id=2, role=UserRole.editor_rubric, rubric_id=10)


def _decode(response):
    return json.loads(response.body.decode("utf-8"))


def _article(status: ArticleStatus = ArticleStatus.draft, **overrides) -> Article:
    now = datetime.now(timezone.utc)
    values = dict(
        id=5,
        author_id=1,
        rubric_id=10,
        division_id=None,
        title="Budget talks resume",
        slug="budget-talks-resume-ab12cd",
        excerpt="Short excerpt",
        content="<p>Body</p>",
        status=status,
        version=2,
        meta={"keywords": ["economy"], "cover_path": "articles/covers/2026/10/x.png"},
        is_anonymous=False,
        published_at=None,
        created_at=now,
        updated_at=now,
    )
    values.update(overrides)
    return Article(**values)


def _entry(action: str, from_status: str, to_status: str, note: str | None = None) -> ReviewEntry:
    return ReviewEntry(
        id=9,
        article_id=5,
        actor_id=2,
        action=action,
        from_status=from_status,
        to_status=to_status,
        note=note,
        created_at=datetime(2026, 10, 18, 9, 0),
    )


@pytest.mark.asyncio
async def test_create_article_returns_detail_with_submit_review(monkeypatch) -> None:
    captured = {}

    async def _create_draft(db, *, actor, draft, submit, note):
        captured.update(actor=actor, draft=draft, submit=submit, note=note)
        article = _article(ArticleStatus.submitted)
        return TransitionOutcome(
            article=article,
            entry=_entry("submit", "draft", "submitted"),
            from_status=ArticleStatus.draft,
            to_status=ArticleStatus.submitted,
        )

    monkeypatch.setattr(articles_route.article_lifecycle_service, "create_draft", _create_draft)

    response = await articles_route.create_article(
        payload=ArticleCreateRequest(title="Budget talks resume", rubric_id=10, submit=True, annotations={"keywords": ["economy"]}),
        db=object(),
        actor=AUTHOR,
    )

    assert response.status_code == 201
    data = _decode(response)["data"]
    assert data["status"] == "submitted"
    assert data["status_label"] == "Submitted"
    assert data["keywords"] == ["economy"]
    assert data["cover_url"] == "https://cdn.example.test/covers/articles/covers/2026/10/x.png"
    assert data["review"]["action"] == "submit"
    assert captured["submit"] is True
    assert captured["draft"].annotations.keywords == ["economy"]


@pytest.mark.asyncio
async def test_list_articles_includes_rejection_reason(monkeypatch) -> None:
    rejected = _article(ArticleStatus.rejected)
    drafted = _article(ArticleStatus.draft, id=6, slug="other")

    async def _list_visible(db, actor, *, status=None, limit=200):
        assert actor is AUTHOR
        assert limit == 200
        return [rejected, drafted]

    async def _latest_for_articles(db, article_ids):
        assert article_ids == [5, 6]
        return {5: _entry("reject", "review_admin", "rejected", note="Duplicate of #4")}

    monkeypatch.setattr(articles_route.article_repository, "list_visible", _list_visible)
    monkeypatch.setattr(articles_route.review_ledger_service, "latest_for_articles", _latest_for_articles)

    response = await articles_route.list_articles(status_filter=None, limit=None, db=object(), actor=AUTHOR)

    body = _decode(response)
    assert body["meta"]["count"] == 2
    assert body["data"][0]["rejection_reason"] == "Duplicate of #4"
    assert body["data"][1]["rejection_reason"] is None


@pytest.mark.asyncio
async def test_get_article_state_lists_allowed_actions(monkeypatch) -> None:
    async def _current_state(db, *, article_id, actor):
        return ArticleStatus.revision

    monkeypatch.setattr(articles_route.article_lifecycle_service, "current_state", _current_state)

    response = await articles_route.get_article_state(article_id=5, db=object(), actor=AUTHOR)

    data = _decode(response)["data"]
    assert data["status"] == "revision"
    assert "revised" in data["allowed_actions"]
    assert "publish" not in data["allowed_actions"]


@pytest.mark.asyncio
async def test_cover_upload_rejects_non_images() -> None:
    upload = UploadFile(file=io.BytesIO(b"%PDF"), filename="a.pdf", headers=Headers({"content-type": "application/pdf"}))

    with pytest.raises(HTTPException) as exc_info:
        await articles_route.upload_article_cover(article_id=5, file=upload, db=object(), actor=AUTHOR)

    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_cover_upload_rejects_empty_file() -> None:
    upload = UploadFile(file=io.BytesIO(b""), filename="a.png", headers=Headers({"content-type": "image/png"}))

    with pytest.raises(HTTPException) as exc_info:
        await articles_route.upload_article_cover(article_id=5, file=upload, db=object(), actor=AUTHOR)

    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_cover_upload_passes_image_to_service(monkeypatch) -> None:
    captured = {}

    async def _change_cover(db, *, actor, article_id, image):
        captured["image"] = image
        article = _article(meta={"cover_path": "p.png", "cover_url": "https://cdn.example.test/covers/p.png"})
        return TransitionOutcome(
            article=article,
            entry=_entry("change_cover", "draft", "draft"),
            from_status=ArticleStatus.draft,
            to_status=ArticleStatus.draft,
        )

    monkeypatch.setattr(articles_route.article_lifecycle_service, "change_cover", _change_cover)
    upload = UploadFile(file=io.BytesIO(b"\x89PNG"), filename="c.png", headers=Headers({"content-type": "image/png"}))

    response = await articles_route.upload_article_cover(article_id=5, file=upload, db=object(), actor=AUTHOR)

    data = _decode(response)["data"]
    assert captured["image"].data == b"\x89PNG"
    assert captured["image"].content_type == "image/png"
    assert data["cover"] == "https://cdn.example.test/covers/p.png"
    assert data["review"]["action"] == "change_cover"


@pytest.mark.asyncio
async def test_request_revision_forwards_note_and_annotations(monkeypatch) -> None:
    captured = {}

    async def _request_revision(db, *, actor, article_id, note, annotations, expected_status):
        captured.update(note=note, annotations=annotations, expected_status=expected_status)
        return TransitionOutcome(
            article=_article(ArticleStatus.revision),
            entry=_entry("request_revision", "submitted", "revision", note=note),
            from_status=ArticleStatus.submitted,
            to_status=ArticleStatus.revision,
        )

    monkeypatch.setattr(review_route.article_lifecycle_service, "request_revision", _request_revision)

    response = await review_route.request_revision(
        article_id=5,
        payload=TransitionRequest(
            note="fix intro",
            expected_status="submitted",
            annotations={"highlights": [{"from": 0, "to": 4}]},
        ),
        db=object(),
        actor=EDITOR,
    )

    data = _decode(response)["data"]
    assert data["status"] == "revision"
    assert data["from_status"] == "submitted"
    assert data["review"]["note"] == "fix intro"
    assert captured["expected_status"] == ArticleStatus.submitted
    assert captured["annotations"].highlights == [{"from": 0, "to": 4}]


@pytest.mark.asyncio
async def test_me_returns_profile() -> None:
    user = SimpleNamespace(
        id=2, name="Politics Editor", username="politics.editor", role=UserRole.editor_rubric,
        rubric_id=10, division_id=None, is_active=True,
    )

    response = await auth_route.me(current_user=user)

    data = _decode(response)["data"]
    assert data["role"] == "editor_rubric"
    assert data["rubric_id"] == 10


def test_workflow_errors_are_rendered_as_envelopes(monkeypatch) -> None:
    from app.main import app

    async def _approve(db, *, actor, article_id, note, expected_status):
        raise Forbidden("Not authorized to approve this article", details={"reason": "out_of_scope"})

    async def _db():
        yield object()

    monkeypatch.setattr(review_route.article_lifecycle_service, "approve", _approve)
    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_reviewer_actor] = lambda: EDITOR
    app.dependency_overrides[get_current_actor] = lambda: EDITOR
    try:
        client = TestClient(app)
        response = client.post("/api/v1/articles/5/approve", json={"note": "ok"}, headers={"x-request-id": "req-test"})
    finally:
        app.dependency_overrides.clear()

    body = response.json()
    assert response.status_code == 403
    assert body["ok"] is False
    assert body["error"]["code"] == "forbidden"
    assert body["error"]["details"]["reason"] == "out_of_scope"
    assert body["meta"]["request_id"] == "req-test"
    assert response.headers["x-request-id"] == "req-test"
