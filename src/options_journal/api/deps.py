"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from typing import AsyncIterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from options_journal.core.errors import AuthenticationError
from options_journal.service import JournalService

from .auth import Authenticator

_bearer = HTTPBearer(auto_error=False)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """One session per request, committed when the handler succeeds."""
    async with request.app.state.db.session() as session:
        yield session


def get_authenticator(request: Request) -> Authenticator:
    return request.app.state.authenticator


async def get_service(
    request: Request, session: AsyncSession = Depends(get_session),
) -> JournalService:
    return JournalService(
        session,
        settings=request.app.state.settings,
        caches=request.app.state.caches,
    )


async def current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    auth: Authenticator = Depends(get_authenticator),
) -> int:
    if credentials is None:
        raise AuthenticationError("Missing bearer token")
    return auth.decode_token(credentials.credentials)
