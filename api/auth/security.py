"""
Auth security helpers.

Tokens are stateless HS256 JWTs carrying `sub`, `iat` and `exp`. Nothing is
stored server-side: a token is valid exactly when its signature checks out
and the current time is before `exp`.
"""

from __future__ import annotations

import hmac
import time
from dataclasses import dataclass

import jwt

from core import settings
from core.errors import TokenIssueError

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class AuthSecurityError(RuntimeError):
    pass


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    issued_at: int
    expires_at: int


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return settings.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return settings.env_str("JWT_ALG", "HS256")


def access_token_ttl_hours() -> int:
    return settings.env_int("ACCESS_TOKEN_TTL_HOURS", 24)


def auth_username() -> str:
    return settings.env_str("AUTH_USERNAME", "admin")


def auth_password() -> str:
    return settings.env_str("AUTH_PASSWORD", "admin123")


def now_epoch_s() -> int:
    return int(time.time())


def verify_credentials(username: str, password: str) -> bool:
    user_ok = hmac.compare_digest((username or "").encode("utf-8"), auth_username().encode("utf-8"))
    password_ok = hmac.compare_digest((password or "").encode("utf-8"), auth_password().encode("utf-8"))
    return user_ok and password_ok


def build_access_token(subject: str, *, issued_at: int | None = None) -> str:
    if issued_at is None:
        issued_at = now_epoch_s()
    expires_at = issued_at + (access_token_ttl_hours() * 3600)

    payload = {
        "sub": subject,
        "iat": issued_at,
        "exp": expires_at,
    }
    try:
        return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())
    except (jwt.PyJWTError, NotImplementedError, TypeError, ValueError) as exc:
        raise TokenIssueError("Error generating token.") from exc


def decode_access_token(token: str) -> TokenClaims:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Access token is empty.")

    try:
        payload = jwt.decode(
            raw,
            jwt_secret(),
            algorithms=[jwt_algorithm()],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Access token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid access token.") from exc

    subject = str(payload.get("sub") or "").strip()
    if not subject:
        raise AuthSecurityError("Invalid access token subject.")

    return TokenClaims(
        subject=subject,
        issued_at=int(payload["iat"]),
        expires_at=int(payload["exp"]),
    )
