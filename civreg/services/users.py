from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..clock import Clock
from .a1 import Table
from .sheets import RangeStore
from .types import Identity, UserRow

logger = logging.getLogger(__name__)

# A sequence | B name | C email | D google credential | E session token | F role | G registered at
USERS_WIDTH = 7
COL_NAME = 2
COL_EMAIL = 3
COL_ROLE = 6
DEFAULT_ROLE = "user"


class UserDirectory:
    """
    Keeps the users tab in step with logins. Email is the key; lookup is a
    linear scan, which is fine for an organization-sized user list.

    Stored credentials are advisory copies only: sessions are validated from
    the signed token, never from this table.
    """

    def __init__(self, store: RangeStore, sheet: str, clock: Clock) -> None:
        self.store = store
        self.table = Table(sheet, USERS_WIDTH)
        self.clock = clock

    def _locate(self, email: str) -> Tuple[List[List[str]], Optional[int]]:
        rows = self.store.read_range(self.table.data_range())
        for idx, row in enumerate(rows):
            if len(row) >= COL_EMAIL and row[COL_EMAIL - 1] == email:
                return rows, idx
        return rows, None

    def find(self, email: str) -> Optional[UserRow]:
        rows, idx = self._locate(email)
        if idx is None:
            return None
        cells = list(rows[idx]) + [""] * (USERS_WIDTH - len(rows[idx]))
        return UserRow(
            index=idx,
            name=cells[COL_NAME - 1],
            email=cells[COL_EMAIL - 1],
            role=cells[COL_ROLE - 1],
            registered_at=cells[USERS_WIDTH - 1] or None,
        )

    def sync(self, identity: Identity, raw_assertion: str, session_token: str) -> UserRow:
        rows, idx = self._locate(identity.email)

        if idx is None:
            new_index = len(rows)
            registered_at = self.clock.display()
            self.store.append_row(
                self.table.data_range(),
                [
                    new_index + 1,
                    identity.name,
                    identity.email,
                    raw_assertion,
                    session_token,
                    DEFAULT_ROLE,
                    registered_at,
                ],
                raw=True,
            )
            logger.info("Registered new user %s", identity.email)
            return UserRow(new_index, identity.name, identity.email, DEFAULT_ROLE, registered_at)

        # Columns B..F only; sequence and registration date stay as written.
        self.store.overwrite_range(
            self.table.row_range(idx, first_col=COL_NAME, last_col=COL_ROLE),
            [[identity.name, identity.email, raw_assertion, session_token, DEFAULT_ROLE]],
            raw=True,
        )
        logger.info("Refreshed user %s", identity.email)
        existing = rows[idx]
        registered_at = existing[USERS_WIDTH - 1] if len(existing) >= USERS_WIDTH else None
        return UserRow(idx, identity.name, identity.email, DEFAULT_ROLE, registered_at or None)
