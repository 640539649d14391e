from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class Action(str, Enum):
    LOGIN = "LOGIN"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class RecordStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class Identity:
    """A verified person: who logged in, or who holds the session."""
    email: str
    name: str
    subject_id: str = ""


@dataclass(frozen=True)
class SessionClaims:
    email: str
    name: str
    issued_at: int
    expires_at: int

    def as_identity(self) -> Identity:
        return Identity(email=self.email, name=self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {"email": self.email, "name": self.name, "iat": self.issued_at, "exp": self.expires_at}


# Column order of the records table. Position is the schema.
RECORD_FIELDS: List[str] = [
    "id",
    "fullName",
    "populationId",
    "familyId",
    "gender",
    "dateOfBirth",
    "placeOfBirth",
    "religion",
    "bloodType",
    "status",
    "lastUpdated",
]

# Caller-editable subset (everything but id/status/lastUpdated)
RECORD_PAYLOAD_FIELDS: List[str] = RECORD_FIELDS[1:9]


@dataclass
class Record:
    id: int
    fullName: str = ""
    populationId: str = ""
    familyId: str = ""
    gender: str = ""
    dateOfBirth: str = ""
    placeOfBirth: str = ""
    religion: str = ""
    bloodType: str = ""
    status: str = RecordStatus.ACTIVE.value
    lastUpdated: str = ""

    @classmethod
    def from_row(cls, row: List[str]) -> "Record":
        cells = list(row) + [""] * (len(RECORD_FIELDS) - len(row))
        values = dict(zip(RECORD_FIELDS, cells))
        raw_id = str(values.pop("id")).strip()
        try:
            record_id = int(raw_id)
        except ValueError:
            record_id = 0
        return cls(id=record_id, **values)

    def to_row(self) -> List[Any]:
        return [getattr(self, f) for f in RECORD_FIELDS]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UserRow:
    index: int                  # 0-based position in the users table
    name: str
    email: str
    role: str
    registered_at: Optional[str] = None


@dataclass(frozen=True)
class AuditEntry:
    sequence: int
    actor_name: str
    actor_email: str
    action: str
    details: str                # JSON text exactly as stored
    timestamp: str
