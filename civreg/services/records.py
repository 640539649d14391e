"""
Person records stored one per row in the records tab.

Conventions that make a sheet behave like a keyed table:
- id = number of rows already present + 1, assigned once at creation.
  Rows are never removed, so an id always equals its row's creation position
  (unless two creates race on the count; nothing here prevents that).
- Lookup by id is a linear scan of column A, compared as strings.
- Delete is soft: the status cell flips to "inactive". Any update rewrites
  the whole row and sets status back to "active".
- Cells are written RAW. Sheets would otherwise parse a 16-digit population
  id into a float, strip leading zeros from family ids and turn dates into
  serials, so values read back exactly as they were submitted.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Tuple, Union

from ..clock import Clock
from ..errors import NotFound
from .a1 import Table
from .audit import AuditLog
from .sheets import RangeStore
from .types import (
    RECORD_FIELDS,
    RECORD_PAYLOAD_FIELDS,
    Action,
    Identity,
    Record,
    RecordStatus,
)

logger = logging.getLogger(__name__)

COL_STATUS = RECORD_FIELDS.index("status") + 1
COL_LAST_UPDATED = RECORD_FIELDS.index("lastUpdated") + 1

RecordId = Union[int, str]


def _clean_payload(payload: Mapping[str, object]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for field in RECORD_PAYLOAD_FIELDS:
        value = payload.get(field)
        out[field] = "" if value is None else str(value)
    return out


class RecordCatalog:
    def __init__(self, store: RangeStore, sheet: str, audit: AuditLog, clock: Clock) -> None:
        self.store = store
        self.table = Table(sheet, len(RECORD_FIELDS))
        self.audit = audit
        self.clock = clock

    def list(self) -> List[Record]:
        return [Record.from_row(row) for row in self.store.read_range(self.table.data_range())]

    def _locate(self, record_id: RecordId) -> Tuple[int, List[str]]:
        key = str(record_id).strip()
        rows = self.store.read_range(self.table.data_range())
        for idx, row in enumerate(rows):
            if row and str(row[0]).strip() == key:
                return idx, row
        raise NotFound(f"No record with id {key}")

    def create(self, payload: Mapping[str, object], actor: Identity) -> Record:
        fields = _clean_payload(payload)
        new_id = len(self.store.read_range(self.table.key_range())) + 1
        record = Record(
            id=new_id,
            status=RecordStatus.ACTIVE.value,
            lastUpdated=self.clock.display(),
            **fields,
        )
        self.store.append_row(self.table.data_range(), record.to_row(), raw=True)
        logger.info("Created record %d", new_id)

        self.audit.append(actor, Action.CREATE, {"data": dict(payload)})
        return record

    def update(self, record_id: RecordId, payload: Mapping[str, object], actor: Identity) -> Record:
        idx, row = self._locate(record_id)
        record = Record(
            id=Record.from_row(row).id,
            status=RecordStatus.ACTIVE.value,
            lastUpdated=self.clock.display(),
            **_clean_payload(payload),
        )
        # column A keeps whatever key the row was found by
        cells = [row[0]] + record.to_row()[1:]
        self.store.overwrite_range(self.table.row_range(idx), [cells], raw=True)
        logger.info("Updated record %s (sheet row %d)", record_id, self.table.sheet_row(idx))

        self.audit.append(actor, Action.UPDATE, {"id": str(record_id), "updates": dict(payload)})
        return record

    def soft_delete(self, record_id: RecordId, actor: Identity) -> None:
        idx, _ = self._locate(record_id)
        self.store.overwrite_range(
            self.table.row_range(idx, first_col=COL_STATUS, last_col=COL_LAST_UPDATED),
            [[RecordStatus.INACTIVE.value, self.clock.display()]],
            raw=True,
        )
        logger.info("Soft-deleted record %s (sheet row %d)", record_id, self.table.sheet_row(idx))

        self.audit.append(actor, Action.DELETE, {"id": str(record_id)})
