from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header, HTTPException, Request

from .errors import TokenExpired, Unauthorized
from .services.identity import IdentityGate
from .services.types import SessionClaims

logger = logging.getLogger(__name__)


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    parts = (authorization or "").strip().split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def get_identity_gate(request: Request) -> IdentityGate:
    return request.app.state.identity_gate


def require_session(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> SessionClaims:
    """
    Bearer-session guard for protected routes.

    Missing credential -> 401 Unauthorized; bad signature or expiry ->
    401 Token Expired. On success the claims land on request.state.user.
    Raising is the only way out on failure, so an expired token can never
    reach the route body.
    """
    token = _bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=Unauthorized.status_code, detail=Unauthorized.message)

    try:
        claims = get_identity_gate(request).decode_session(token)
    except TokenExpired as exc:
        logger.info("Rejected session token: %s", exc.detail)
        raise HTTPException(status_code=TokenExpired.status_code, detail=TokenExpired.message) from exc

    request.state.user = claims
    logger.debug("Authenticated user %s", claims.email)
    return claims
