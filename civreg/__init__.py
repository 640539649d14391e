"""civreg package.

Contract:
- A Google Sheets spreadsheet is the only durable store (records, users, audit log).
- Every mutation is bearer-protected and leaves exactly one audit entry.
- Rows are never removed; deletes are soft (status column).
"""
from __future__ import annotations

__version__ = "0.1.0"
