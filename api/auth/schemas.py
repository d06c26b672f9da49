"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(..., max_length=320)
    password: str = Field(..., max_length=128)


class TokenResponse(BaseModel):
    token: str


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller, attached to `request.state.principal`.
    """

    subject: str
    issued_at: int
    expires_at: int
