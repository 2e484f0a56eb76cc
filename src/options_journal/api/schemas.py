"""Request and response bodies that are not core models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)
    name: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    token: str
    user_id: int


class EmotionTagRequest(BaseModel):
    tag_name: str
    category: str | None = None


class MessageResponse(BaseModel):
    message: str
    count: int = 0
