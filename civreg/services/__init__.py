"""Spreadsheet-as-database access layer: range store, users, audit log, records."""
from __future__ import annotations
