"""Registration and login."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from options_journal.core.errors import AuthenticationError
from options_journal.core.models import User
from options_journal.storage.db.repos import UserRepo

from ..auth import Authenticator
from ..deps import current_user_id, get_authenticator, get_session
from ..schemas import LoginRequest, RegisterRequest, TokenResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
    auth: Authenticator = Depends(get_authenticator),
) -> TokenResponse:
    user = await UserRepo(session).create(body.email, auth.hash_password(body.password), body.name)
    return TokenResponse(token=auth.issue_token(user.id), user_id=user.id)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    session: AsyncSession = Depends(get_session),
    auth: Authenticator = Depends(get_authenticator),
) -> TokenResponse:
    found = await UserRepo(session).get_credentials(body.email)
    if found is None or not auth.verify_password(body.password, found[1]):
        raise AuthenticationError("Invalid credentials")
    user = found[0]
    return TokenResponse(token=auth.issue_token(user.id), user_id=user.id)


@router.get("/me", response_model=User)
async def me(
    user_id: int = Depends(current_user_id),
    session: AsyncSession = Depends(get_session),
) -> User:
    user = await UserRepo(session).get(user_id)
    if user is None:
        raise AuthenticationError("Unknown user")
    return user
