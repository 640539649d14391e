from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import google.auth.exceptions
import jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from ..clock import Clock
from ..config import Settings
from ..errors import AuthenticationFailed, TokenExpired
from .audit import AuditLog
from .types import Action, Identity, SessionClaims
from .users import UserDirectory

logger = logging.getLogger(__name__)

SESSION_ALGORITHM = "HS256"
LOGIN_DETAILS = "User Login Attempt"

# (assertion, audience) -> verified claims; raises on any verification failure.
AssertionVerifier = Callable[[str, str], Dict[str, Any]]


def google_id_token_verifier(assertion: str, audience: str) -> Dict[str, Any]:
    """Check a Google ID token's signature, expiry, issuer and audience."""
    return id_token.verify_oauth2_token(assertion, google_requests.Request(), audience)


@dataclass(frozen=True)
class LoginResult:
    token: str
    identity: Identity


class IdentityGate:
    """
    Turns an externally issued identity assertion into a session credential.

    The session credential is a short-lived HS256 JWT signed with the
    server's secret. It is the only source of truth for sessions; copies
    written to the users tab are informational.
    """

    def __init__(
        self,
        settings: Settings,
        users: UserDirectory,
        audit: AuditLog,
        clock: Clock,
        verifier: Optional[AssertionVerifier] = None,
    ) -> None:
        self.settings = settings
        self.users = users
        self.audit = audit
        self.clock = clock
        self.verifier = verifier or google_id_token_verifier

    def verify(self, assertion: str) -> Identity:
        if not assertion or not assertion.strip():
            raise AuthenticationFailed("Missing identity token")

        audience = self.settings.require("google_client_id")
        try:
            payload = self.verifier(assertion, audience)
        except (ValueError, google.auth.exceptions.GoogleAuthError) as exc:
            raise AuthenticationFailed(f"Identity token rejected: {exc}") from exc

        email = str(payload.get("email") or "").strip()
        if not email:
            raise AuthenticationFailed("Identity token carries no email")
        return Identity(
            email=email,
            name=str(payload.get("name") or email),
            subject_id=str(payload.get("sub") or ""),
        )

    def issue_session(self, identity: Identity) -> str:
        issued_at = self.clock.timestamp()
        claims = {
            "email": identity.email,
            "name": identity.name,
            "iat": issued_at,
            "exp": issued_at + int(self.settings.session_ttl_seconds),
        }
        return jwt.encode(claims, self.settings.require("jwt_secret"), algorithm=SESSION_ALGORITHM)

    def decode_session(self, token: str) -> SessionClaims:
        """
        Validate signature and expiry. Expiry is judged against our clock,
        not the wall clock PyJWT would use.
        """
        try:
            decoded = jwt.decode(
                token,
                self.settings.require("jwt_secret"),
                algorithms=[SESSION_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False, "require": ["exp", "iat", "email"]},
            )
        except jwt.PyJWTError as exc:
            raise TokenExpired(f"Invalid session token: {exc}") from exc

        try:
            expires_at = int(decoded["exp"])
            issued_at = int(decoded["iat"])
        except (TypeError, ValueError) as exc:
            raise TokenExpired("Malformed session token") from exc

        if expires_at <= self.clock.timestamp():
            raise TokenExpired("Session token expired")

        return SessionClaims(
            email=str(decoded["email"]),
            name=str(decoded.get("name") or ""),
            issued_at=issued_at,
            expires_at=expires_at,
        )

    def login(self, assertion: str) -> LoginResult:
        identity = self.verify(assertion)
        token = self.issue_session(identity)

        # Fail closed: no user sync or no audit entry means no session.
        self.users.sync(identity, assertion, token)
        self.audit.append(identity, Action.LOGIN, LOGIN_DETAILS)

        logger.info("Login for %s", identity.email)
        return LoginResult(token=token, identity=identity)
