from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.api.routes import auth as auth_route
from app.core.security import create_access_token, token_subject


class _Result:
    def __init__(self, value):
        self._value = value

    def scalar_one_or_none(self):
        return self._value


class _DbSessionStub:
    def __init__(self, user):
        self.user = user
        self.statements = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return _Result(self.user)


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_token_subject_reads_sub_claim() -> None:
    assert token_subject(create_access_token("politics.editor")) == "politics.editor"
    assert token_subject("not-a-token") is None
    assert token_subject(create_access_token("late", expires_delta=timedelta(seconds=-5))) is None


@pytest.mark.asyncio
async def test_get_current_user_loads_active_user_by_subject() -> None:
    user = SimpleNamespace(id=2, username="politics.editor", is_active=True)
    db = _DbSessionStub(user)

    resolved = await auth_route.get_current_user(credentials=_bearer(create_access_token("politics.editor")), db=db)

    assert resolved is user
    assert db.statements[0].compile().params == {"username_1": "politics.editor"}


@pytest.mark.asyncio
async def test_get_current_user_rejects_bad_tokens_and_disabled_accounts() -> None:
    with pytest.raises(HTTPException) as exc_info:
        await auth_route.get_current_user(credentials=_bearer("garbage"), db=_DbSessionStub(None))
    assert exc_info.value.status_code == 401

    disabled = SimpleNamespace(id=3, username="gone", is_active=False)
    with pytest.raises(HTTPException) as exc_info:
        await auth_route.get_current_user(credentials=_bearer(create_access_token("gone")), db=_DbSessionStub(disabled))
    assert exc_info.value.detail == "Account not found or disabled"
