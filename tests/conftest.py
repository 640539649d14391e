"""
Pytest configuration for civreg.

Provides fixtures for:
- An in-memory, A1-addressed stand-in for the spreadsheet backend
- A fake Sheets values() resource for the Google-backed store
- A stub identity-token verifier and a pinned clock
- Fully wired services and a FastAPI test client
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from civreg.clock import FixedClock
from civreg.config import Settings
from civreg.errors import BackendUnavailable
from civreg.main import create_app
from civreg.services.a1 import parse_range
from civreg.services.audit import AuditLog
from civreg.services.identity import IdentityGate
from civreg.services.records import RecordCatalog
from civreg.services.sheets import RangeStore
from civreg.services.types import Identity
from civreg.services.users import UserDirectory

RECORDS_HEADER = [
    "ID", "Full Name", "Population ID", "Family ID", "Gender", "Date of Birth",
    "Place of Birth", "Religion", "Blood Type", "Status", "Last Updated",
]
USERS_HEADER = ["No", "Name", "Email", "Credential", "Session", "Role", "Registered"]
AUDIT_HEADER = ["No", "Name", "Email", "Action", "Details", "Timestamp"]

GOOD_TOKENS: Dict[str, Dict[str, Any]] = {
    "google-token-ana": {"email": "ana@example.org", "name": "Ana Putri", "sub": "1001"},
    "google-token-budi": {"email": "budi@example.org", "name": "Budi Santoso", "sub": "1002"},
    "google-token-noemail": {"name": "Ghost", "sub": "1003"},
}


class MemoryRangeStore(RangeStore):
    """
    Sheets-like grid per tab. Cells are stored as strings, reads omit
    trailing empty cells and rows, appends land after the last populated row.
    """

    def __init__(self) -> None:
        self.sheets: Dict[str, List[List[str]]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.input_modes: List[Tuple[str, str, bool]] = []  # (op, range, raw) per write
        self.failures: Dict[str, str] = {}  # op -> sheet name or "*"

    # --- test helpers ---

    def seed(self, sheet: str, rows: Sequence[Sequence[Any]]) -> None:
        self.sheets[sheet] = [[self._cell(c) for c in row] for row in rows]

    def fail(self, op: str, sheet: str = "*") -> None:
        self.failures[op] = sheet

    def rows(self, sheet: str) -> List[List[str]]:
        return [list(r) for r in self.sheets.get(sheet, [])]

    def data_rows(self, sheet: str) -> List[List[str]]:
        return self.rows(sheet)[1:]

    def writes(self) -> List[Tuple[str, str]]:
        return [c for c in self.calls if c[0] != "read"]

    # --- internals ---

    @staticmethod
    def _cell(value: Any) -> str:
        return "" if value is None else str(value)

    def _check(self, op: str, sheet: str, spec: str) -> None:
        target = self.failures.get(op)
        if target is not None and target in ("*", sheet):
            raise BackendUnavailable(f"injected {op} failure on {spec}")

    def _grid(self, sheet: str) -> List[List[str]]:
        return self.sheets.setdefault(sheet, [])

    def _set(self, sheet: str, row_no: int, col_no: int, value: str) -> None:
        grid = self._grid(sheet)
        while len(grid) < row_no:
            grid.append([])
        row = grid[row_no - 1]
        while len(row) < col_no:
            row.append("")
        row[col_no - 1] = value

    # --- RangeStore ---

    def read_range(self, range_spec: str) -> List[List[str]]:
        rng = parse_range(range_spec)
        self.calls.append(("read", range_spec))
        self._check("read", rng.sheet, range_spec)

        grid = self._grid(rng.sheet)
        last = len(grid) if rng.end_row is None else min(rng.end_row, len(grid))
        out: List[List[str]] = []
        for row_no in range(rng.start_row, last + 1):
            row = grid[row_no - 1][rng.start_col - 1 : rng.end_col]
            while row and row[-1] == "":
                row = row[:-1]
            out.append(list(row))
        while out and not out[-1]:
            out.pop()
        return out

    def append_row(self, range_spec: str, row: Sequence[Any], raw: bool = False) -> None:
        rng = parse_range(range_spec)
        self.calls.append(("append", range_spec))
        self.input_modes.append(("append", range_spec, raw))
        self._check("append", rng.sheet, range_spec)

        grid = self._grid(rng.sheet)
        last_populated = 0
        for idx, existing in enumerate(grid, start=1):
            if any(c != "" for c in existing):
                last_populated = idx
        target = max(last_populated + 1, rng.start_row)
        for offset, value in enumerate(row):
            self._set(rng.sheet, target, rng.start_col + offset, self._cell(value))

    def overwrite_range(
        self, range_spec: str, rows: Sequence[Sequence[Any]], raw: bool = False
    ) -> None:
        rng = parse_range(range_spec)
        self.calls.append(("overwrite", range_spec))
        self.input_modes.append(("overwrite", range_spec, raw))
        self._check("overwrite", rng.sheet, range_spec)

        for r_off, row in enumerate(rows):
            for c_off, value in enumerate(row):
                self._set(rng.sheet, rng.start_row + r_off, rng.start_col + c_off, self._cell(value))


class _Request:
    def __init__(self, result: Any = None, error: Optional[Exception] = None) -> None:
        self.result = result
        self.error = error

    def execute(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


class FakeValues:
    """Records calls the way googleapiclient's values() resource receives them."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []
        self.get_result: Any = {}
        self.error: Optional[Exception] = None

    def _request(self, method: str, kwargs: Dict[str, Any], result: Any) -> _Request:
        self.calls.append({"method": method, **kwargs})
        return _Request(result, self.error)

    def get(self, **kwargs: Any) -> _Request:
        return self._request("get", kwargs, self.get_result)

    def append(self, **kwargs: Any) -> _Request:
        return self._request("append", kwargs, {"updates": {"updatedRows": 1}})

    def update(self, **kwargs: Any) -> _Request:
        return self._request("update", kwargs, {"updatedRows": 1})


class FakeService:
    def __init__(self) -> None:
        self.values_resource = FakeValues()

    def spreadsheets(self) -> "FakeService":
        return self

    def values(self) -> FakeValues:
        return self.values_resource


def stub_verifier(assertion: str, audience: str) -> Dict[str, Any]:
    if audience != "client-abc":
        raise ValueError(f"Token has wrong audience {audience}")
    if assertion not in GOOD_TOKENS:
        raise ValueError("Wrong number of segments in token")
    return dict(GOOD_TOKENS[assertion])


@pytest.fixture
def settings() -> Settings:
    return Settings(
        spreadsheet_id="sheet-123",
        google_client_id="client-abc",
        jwt_secret="test-secret",
        session_ttl_seconds=3600,
    )


@pytest.fixture
def clock() -> FixedClock:
    # 21:05:02 in Jakarta
    return FixedClock(datetime(2025, 3, 7, 14, 5, 2, tzinfo=timezone.utc), "Asia/Jakarta")


@pytest.fixture
def store(settings: Settings) -> MemoryRangeStore:
    s = MemoryRangeStore()
    s.seed(settings.records_sheet, [RECORDS_HEADER])
    s.seed(settings.users_sheet, [USERS_HEADER])
    s.seed(settings.audit_sheet, [AUDIT_HEADER])
    return s


@pytest.fixture
def audit(store: MemoryRangeStore, settings: Settings, clock: FixedClock) -> AuditLog:
    return AuditLog(store, settings.audit_sheet, clock)


@pytest.fixture
def users(store: MemoryRangeStore, settings: Settings, clock: FixedClock) -> UserDirectory:
    return UserDirectory(store, settings.users_sheet, clock)


@pytest.fixture
def catalog(
    store: MemoryRangeStore, settings: Settings, audit: AuditLog, clock: FixedClock
) -> RecordCatalog:
    return RecordCatalog(store, settings.records_sheet, audit, clock)


@pytest.fixture
def gate(
    settings: Settings, users: UserDirectory, audit: AuditLog, clock: FixedClock
) -> IdentityGate:
    return IdentityGate(settings, users, audit, clock, verifier=stub_verifier)


@pytest.fixture
def actor() -> Identity:
    return Identity(email="ana@example.org", name="Ana Putri")


@pytest.fixture
def service() -> FakeService:
    return FakeService()


@pytest.fixture
def make_client(settings: Settings, clock: FixedClock) -> Callable[[RangeStore], TestClient]:
    def _make(backend: RangeStore) -> TestClient:
        app = create_app(settings=settings, store=backend, verifier=stub_verifier, clock=clock)
        return TestClient(app)

    return _make


@pytest.fixture
def client(store: MemoryRangeStore, make_client: Callable[[RangeStore], TestClient]) -> TestClient:
    return make_client(store)


@pytest.fixture
def auth_headers(client: TestClient, actor: Identity) -> Dict[str, str]:
    token = client.app.state.identity_gate.issue_session(actor)
    return {"Authorization": f"Bearer {token}"}


def record_payload(**overrides: Optional[str]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "fullName": "A",
        "populationId": "P1",
        "familyId": "F1",
        "gender": "F",
        "dateOfBirth": "1990-01-01",
        "placeOfBirth": "Bandung",
        "religion": "Islam",
        "bloodType": "O",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload_factory():
    return record_payload
