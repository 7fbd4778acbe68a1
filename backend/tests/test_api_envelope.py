import json

from app.api.envelope import collection_envelope, error_envelope, success_envelope, workflow_error_envelope
from app.domain.articles.errors import Conflict, NotFound


def test_success_envelope_shape() -> None:
    response = success_envelope({"value": 1})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is True
    assert body["data"] == {"value": 1}
    assert isinstance(body.get("meta"), dict)


def test_error_envelope_shape() -> None:
    response = error_envelope(code="bad_request", message="Invalid", status_code=400, details={"field": "x"})
    body = json.loads(response.body.decode("utf-8"))
    assert body["ok"] is False
    assert body["error"]["code"] == "bad_request"
    assert body["error"]["message"] == "Invalid"


def test_workflow_error_envelope_uses_error_code_and_status() -> None:
    exc = Conflict("The article state changed before transition.", details={"entity": "article:5"})
    response = workflow_error_envelope(exc, meta={"path": "/api/v1/articles/5/approve"})
    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 409
    assert body["ok"] is False
    assert body["error"]["code"] == "transition_conflict"
    assert body["error"]["details"] == {"entity": "article:5"}
    assert body["meta"]["path"] == "/api/v1/articles/5/approve"


def test_workflow_error_envelope_custom_code() -> None:
    response = workflow_error_envelope(NotFound("Article not found", code="article_not_found"))
    body = json.loads(response.body.decode("utf-8"))
    assert response.status_code == 404
    assert body["error"]["code"] == "article_not_found"
    assert body["error"]["details"] is None


def test_collection_envelope_counts_items() -> None:
    response = collection_envelope([{"id": 1}, {"id": 2}], meta={"status": "draft"})
    body = json.loads(response.body.decode("utf-8"))
    assert body["data"] == [{"id": 1}, {"id": 2}]
    assert body["meta"]["count"] == 2
    assert body["meta"]["status"] == "draft"
