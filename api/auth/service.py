"""
Auth business logic.
"""

from __future__ import annotations

import logging

from core.errors import AuthError, InvalidCredentialsError

from . import schemas, security

logger = logging.getLogger(__name__)


def login(payload: schemas.LoginRequest) -> schemas.TokenResponse:
    if not security.verify_credentials(payload.username, payload.password):
        raise InvalidCredentialsError("Invalid username or password.")

    token = security.build_access_token(payload.username)
    logger.info("login_succeeded subject=%s", payload.username)
    return schemas.TokenResponse(token=token)


def principal_from_access_token(access_token: str) -> schemas.Principal:
    try:
        claims = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise AuthError(str(exc)) from exc

    return schemas.Principal(
        subject=claims.subject,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
