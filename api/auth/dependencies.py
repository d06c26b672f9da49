"""
Auth dependencies for protected FastAPI routes.

Resource routers attach `require_principal` at router level, so every route
under them is gated before its handler runs.
"""

from __future__ import annotations

from fastapi import Header, Request

from core.errors import AuthError

from . import schemas, service


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise AuthError("Missing Authorization header.")

    parts = raw.split(None, 1)
    if len(parts) != 2:
        raise AuthError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise AuthError("Authorization must be: Bearer <token>.")
    return token


async def require_principal(
    request: Request,
    authorization: str | None = Header(default=None),
) -> schemas.Principal:
    principal = service.principal_from_access_token(_extract_bearer_token(authorization))
    request.state.principal = principal
    return principal


def current_principal(request: Request) -> schemas.Principal:
    """
    Read the principal stored by `require_principal` for this request.
    """
    principal = getattr(request.state, "principal", None)
    if not isinstance(principal, schemas.Principal):
        raise AuthError("Request is not authenticated.")
    return principal
