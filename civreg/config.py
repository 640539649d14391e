from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ConfigError


# ----------------------------
# Environment helpers
# ----------------------------


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name, default) or "").strip()


def _int_env(name: str, default: int) -> int:
    raw = _env(name)
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _is_truthy(v: Optional[str]) -> bool:
    return bool(v and str(v).strip().lower() in {"1", "true", "yes", "on"})


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""
    jwt_secret: str = ""
    session_ttl_seconds: int = 3600

    # Service account used for Sheets access
    google_project_id: str = ""
    google_private_key_id: str = ""
    google_private_key: str = ""
    google_service_account_email: str = ""
    google_service_account_client_id: str = ""

    client_url: str = ""
    host: str = "0.0.0.0"
    port: int = 3000
    timezone: str = "Asia/Jakarta"
    log_level: str = "INFO"
    log_json: bool = False

    records_sheet: str = "MAIN_DATA"
    users_sheet: str = "USER_LIST"
    audit_sheet: str = "LOG_ACTIVITY"

    def require(self, field_name: str) -> str:
        value = getattr(self, field_name)
        if not value:
            raise ConfigError(f"{field_name.upper()} is not configured")
        return value

    def service_account_info(self) -> Dict[str, Any]:
        """
        Credentials mapping accepted by
        google.oauth2.service_account.Credentials.from_service_account_info.
        """
        return {
            "type": "service_account",
            "project_id": self.google_project_id,
            "private_key_id": self.google_private_key_id,
            "private_key": self.require("google_private_key"),
            "client_email": self.require("google_service_account_email"),
            "client_id": self.google_service_account_client_id,
            "token_uri": "https://oauth2.googleapis.com/token",
        }


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Read settings from the environment, loading a .env file first if present.
    Existing environment variables win over the file.
    """
    load_dotenv(env_file)

    return Settings(
        spreadsheet_id=_env("SPREADSHEET_ID"),
        google_client_id=_env("GOOGLE_CLIENT_ID"),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
        jwt_secret=_env("JWT_SECRET"),
        session_ttl_seconds=_int_env("SESSION_TTL_SECONDS", 3600),
        google_project_id=_env("GOOGLE_PROJECT_ID"),
        google_private_key_id=_env("GOOGLE_PRIVATE_KEY_ID"),
        # Keys pasted into .env files carry literal "\n" sequences.
        google_private_key=_env("GOOGLE_PRIVATE_KEY").replace("\\n", "\n"),
        google_service_account_email=_env("GOOGLE_SERVICE_ACCOUNT_EMAIL"),
        google_service_account_client_id=_env("GOOGLE_SERVICE_ACCOUNT_CLIENT_ID"),
        client_url=_env("CLIENT_URL"),
        host=_env("HOST", "0.0.0.0"),
        port=_int_env("PORT", 3000),
        timezone=_env("REGISTRY_TIMEZONE", "Asia/Jakarta"),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        log_json=_is_truthy(os.getenv("LOG_JSON")),
        records_sheet=_env("RECORDS_SHEET", "MAIN_DATA"),
        users_sheet=_env("USERS_SHEET", "USER_LIST"),
        audit_sheet=_env("AUDIT_SHEET", "LOG_ACTIVITY"),
    )
