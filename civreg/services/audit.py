"""
Append-only activity log kept in its own sheet tab.

Columns: A sequence, B actor name, C actor email, D action, E details (JSON),
F timestamp. Entries are never updated or removed.

The sequence number is "rows currently in column A" + 1. Two writers that
read the count at the same time will both append the same number; the log
stays append-only but the sequence can repeat under concurrency.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from ..clock import Clock
from ..errors import AuditWriteFailed, RegistryError
from .a1 import Table
from .sheets import RangeStore
from .types import Action, AuditEntry, Identity

logger = logging.getLogger(__name__)

AUDIT_WIDTH = 6


class AuditLog:
    def __init__(self, store: RangeStore, sheet: str, clock: Clock) -> None:
        self.store = store
        self.table = Table(sheet, AUDIT_WIDTH)
        self.clock = clock

    def next_sequence(self) -> int:
        return len(self.store.read_range(self.table.key_range())) + 1

    def append(self, actor: Identity, action: Union[Action, str], details: Any) -> AuditEntry:
        action_name = action.value if isinstance(action, Action) else str(action)
        try:
            entry = AuditEntry(
                sequence=self.next_sequence(),
                actor_name=actor.name,
                actor_email=actor.email,
                action=action_name,
                details=json.dumps(details, ensure_ascii=False),
                timestamp=self.clock.display(),
            )
            self.store.append_row(
                self.table.data_range(),
                [
                    entry.sequence,
                    entry.actor_name,
                    entry.actor_email,
                    entry.action,
                    entry.details,
                    entry.timestamp,
                ],
                raw=True,
            )
        except (RegistryError, TypeError, ValueError) as exc:
            logger.error("Failed to log %s activity for %s: %s", action_name, actor.email, exc)
            raise AuditWriteFailed() from exc

        logger.info("Audit #%d %s by %s", entry.sequence, action_name, actor.email)
        return entry
