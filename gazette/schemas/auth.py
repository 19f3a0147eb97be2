"""Schemas related to the login flow and session status."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LoginResponse(BaseModel):
    """Where the browser should go to start Spotify consent."""

    model_config = ConfigDict(populate_by_name=True)

    login_url: str = Field(..., alias="loginUrl")


class SessionStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_authenticated: bool = Field(..., alias="isAuthenticated")


class MessageResponse(BaseModel):
    message: str


__all__ = ["LoginResponse", "MessageResponse", "SessionStatus"]
