from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .clock import Clock
from .config import Settings, load_settings
from .errors import RegistryError
from .logging_setup import configure_logging
from .routers import auth_router, data_router
from .services.audit import AuditLog
from .services.identity import AssertionVerifier, IdentityGate
from .services.records import RecordCatalog
from .services.sheets import GoogleSheetsRangeStore, RangeStore
from .services.users import UserDirectory

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RangeStore] = None,
    verifier: Optional[AssertionVerifier] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the API with every collaborator passed in explicitly.

    Defaults: settings from the environment, the Google Sheets store, Google
    ID-token verification and a wall clock in the configured timezone.
    """
    settings = settings or load_settings()
    clock = clock or Clock(settings.timezone)
    store = store or GoogleSheetsRangeStore(settings)

    audit = AuditLog(store, settings.audit_sheet, clock)
    users = UserDirectory(store, settings.users_sheet, clock)
    catalog = RecordCatalog(store, settings.records_sheet, audit, clock)
    gate = IdentityGate(settings, users, audit, clock, verifier=verifier)

    app = FastAPI(title="civreg", version=__version__)
    app.state.settings = settings
    app.state.store = store
    app.state.audit = audit
    app.state.users = users
    app.state.catalog = catalog
    app.state.identity_gate = gate

    if settings.client_url:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.client_url],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/", include_in_schema=False)
    def root() -> Dict[str, Any]:
        return {"message": "civreg is running", "spreadsheet": settings.spreadsheet_id}

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "service": "civreg"}

    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    app.include_router(auth_router)
    app.include_router(data_router)

    logger.info("Spreadsheet ID: %s", settings.spreadsheet_id)
    return app


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_level, settings.log_json)
    app = create_app(settings)
    logger.info("Server running on port %d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
