from __future__ import annotations


class RegistryError(Exception):
    """Base for every failure the API knows how to report."""

    status_code = 500
    message = "Server Error!"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.message)
        self.detail = detail or self.message


class ConfigError(RegistryError):
    message = "Server misconfigured"


class BackendUnavailable(RegistryError):
    message = "Spreadsheet backend unavailable"


class AuditWriteFailed(RegistryError):
    message = "Failed to log activity"


class AuthenticationFailed(RegistryError):
    status_code = 401
    message = "Authentication failed"


class Unauthorized(RegistryError):
    status_code = 401
    message = "Unauthorized"


class TokenExpired(RegistryError):
    status_code = 401
    message = "Token Expired"


class NotFound(RegistryError):
    status_code = 404
    message = "Entry not found"
