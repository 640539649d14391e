from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from .errors import AuthenticationFailed, NotFound, RegistryError
from .services.identity import IdentityGate
from .services.records import RecordCatalog
from .services.types import SessionClaims
from .services.users import UserDirectory
from .session import get_identity_gate, require_session

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Models
# -----------------------------------------------------------------------------


class GoogleLoginRequest(BaseModel):
    token: str = Field(..., description="Google ID token from the client sign-in flow")


class LoginUser(BaseModel):
    name: str
    email: str


class LoginResponse(BaseModel):
    token: str
    user: LoginUser


class RecordPayload(BaseModel):
    """Editable record fields. id, status and lastUpdated are server-assigned."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    fullName: Optional[str] = None
    populationId: Optional[str] = None
    familyId: Optional[str] = None
    gender: Optional[str] = None
    dateOfBirth: Optional[str] = None
    placeOfBirth: Optional[str] = None
    religion: Optional[str] = None
    bloodType: Optional[str] = None


class RecordOut(BaseModel):
    id: int
    fullName: str = ""
    populationId: str = ""
    familyId: str = ""
    gender: str = ""
    dateOfBirth: str = ""
    placeOfBirth: str = ""
    religion: str = ""
    bloodType: str = ""
    status: str = ""
    lastUpdated: str = ""


class CreateResponse(BaseModel):
    message: str
    data: RecordOut


class MessageResponse(BaseModel):
    message: str


def get_catalog(request: Request) -> RecordCatalog:
    return request.app.state.catalog


def get_users(request: Request) -> UserDirectory:
    return request.app.state.users


def _payload_dict(body: RecordPayload) -> Dict[str, Any]:
    return body.model_dump(exclude_none=True)


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------

auth_router = APIRouter(tags=["auth"])


@auth_router.post("/auth/google", response_model=LoginResponse)
def google_login(
    body: GoogleLoginRequest,
    gate: IdentityGate = Depends(get_identity_gate),
) -> Dict[str, Any]:
    try:
        result = gate.login(body.token)
    except RegistryError as exc:
        logger.error("Google auth error: %s", exc.detail, exc_info=True)
        raise HTTPException(status_code=401, detail=AuthenticationFailed.message) from exc

    return {
        "token": result.token,
        "user": {"name": result.identity.name, "email": result.identity.email},
    }


@auth_router.post("/authenticate")
def authenticate(
    claims: SessionClaims = Depends(require_session),
    users: UserDirectory = Depends(get_users),
) -> Dict[str, Any]:
    try:
        row = users.find(claims.email)
    except RegistryError as exc:
        logger.error("Error reading user %s: %s", claims.email, exc.detail, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to authenticate") from exc

    user = claims.to_dict()
    user["role"] = row.role if row is not None and row.role else None
    return {"message": "Authenticated successfully", "user": user}


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------

data_router = APIRouter(tags=["data"], dependencies=[Depends(require_session)])


@data_router.get("/data", response_model=List[RecordOut])
def list_records(catalog: RecordCatalog = Depends(get_catalog)) -> List[Dict[str, Any]]:
    try:
        return [r.to_dict() for r in catalog.list()]
    except RegistryError as exc:
        logger.error("Error fetching data: %s", exc.detail, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch data") from exc


@data_router.post("/data/entry", response_model=CreateResponse, status_code=201)
def create_record(
    body: RecordPayload,
    claims: SessionClaims = Depends(require_session),
    catalog: RecordCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    try:
        record = catalog.create(_payload_dict(body), claims.as_identity())
    except RegistryError as exc:
        logger.error("Error creating entry: %s", exc.detail, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create entry") from exc

    return {"message": "Entry created successfully", "data": record.to_dict()}


@data_router.put("/dataupdate/{record_id}", response_model=MessageResponse)
def update_record(
    record_id: str,
    body: RecordPayload,
    claims: SessionClaims = Depends(require_session),
    catalog: RecordCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    try:
        catalog.update(record_id, _payload_dict(body), claims.as_identity())
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=NotFound.message) from exc
    except RegistryError as exc:
        logger.error("Error updating entry %s: %s", record_id, exc.detail, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update entry") from exc

    return {"message": "Entry updated successfully"}


# Soft delete. PUT (not DELETE) is what existing clients send.
@data_router.put("/data/{record_id}", response_model=MessageResponse)
def delete_record(
    record_id: str,
    claims: SessionClaims = Depends(require_session),
    catalog: RecordCatalog = Depends(get_catalog),
) -> Dict[str, Any]:
    try:
        catalog.soft_delete(record_id, claims.as_identity())
    except NotFound as exc:
        raise HTTPException(status_code=404, detail=NotFound.message) from exc
    except RegistryError as exc:
        logger.error("Error deleting entry %s: %s", record_id, exc.detail, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete entry") from exc

    return {"message": "Entry deleted successfully"}
