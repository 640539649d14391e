from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import google.auth.exceptions
import httplib2
from google.oauth2.service_account import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import Settings
from ..errors import BackendUnavailable

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

Row = List[str]
Cell = Any


class RangeStore(ABC):
    """
    Stateless gateway to a tabular backend addressed by A1 ranges.

    There is no atomicity across calls: a read-locate-overwrite sequence can
    lose updates if another writer touches the same table in between.
    """

    @abstractmethod
    def read_range(self, range_spec: str) -> List[Row]:
        """Rows of the range in sheet order; [] when the range holds no data."""
        raise NotImplementedError

    @abstractmethod
    def append_row(self, range_spec: str, row: Sequence[Cell], raw: bool = False) -> None:
        """Append one row after the last populated row of the target table."""
        raise NotImplementedError

    @abstractmethod
    def overwrite_range(
        self, range_spec: str, rows: Sequence[Sequence[Cell]], raw: bool = False
    ) -> None:
        """Replace exactly the addressed cells. Callers supply full replacement rows."""
        raise NotImplementedError


def _input_option(raw: bool) -> str:
    return "RAW" if raw else "USER_ENTERED"


class GoogleSheetsRangeStore(RangeStore):
    """
    RangeStore over the Sheets v4 values API with a service account.

    Calls block until Google answers; there is no deadline and no retry.
    """

    def __init__(self, settings: Settings, service: Optional[Any] = None) -> None:
        self.spreadsheet_id = settings.require("spreadsheet_id")
        if service is None:
            creds = Credentials.from_service_account_info(
                settings.service_account_info(), scopes=SCOPES
            )
            service = build("sheets", "v4", credentials=creds, cache_discovery=False)
        self._values = service.spreadsheets().values()

    def _execute(self, what: str, range_spec: str, request: Any) -> Any:
        try:
            return request.execute()
        except HttpError as exc:
            status = getattr(getattr(exc, "resp", None), "status", "?")
            raise BackendUnavailable(
                f"Sheets {what} {range_spec} returned {status}: {exc}"
            ) from exc
        except google.auth.exceptions.GoogleAuthError as exc:
            raise BackendUnavailable(f"Sheets auth error during {what} {range_spec}: {exc}") from exc
        except (httplib2.HttpLib2Error, OSError) as exc:
            raise BackendUnavailable(f"Sheets transport error during {what} {range_spec}: {exc}") from exc

    def read_range(self, range_spec: str) -> List[Row]:
        resp = self._execute(
            "get",
            range_spec,
            self._values.get(spreadsheetId=self.spreadsheet_id, range=range_spec),
        )
        values = (resp or {}).get("values") or []
        return [["" if c is None else str(c) for c in row] for row in values]

    def append_row(self, range_spec: str, row: Sequence[Cell], raw: bool = False) -> None:
        self._execute(
            "append",
            range_spec,
            self._values.append(
                spreadsheetId=self.spreadsheet_id,
                range=range_spec,
                valueInputOption=_input_option(raw),
                insertDataOption="INSERT_ROWS",
                body={"values": [list(row)]},
            ),
        )
        logger.debug("Appended row to %s", range_spec)

    def overwrite_range(
        self, range_spec: str, rows: Sequence[Sequence[Cell]], raw: bool = False
    ) -> None:
        self._execute(
            "update",
            range_spec,
            self._values.update(
                spreadsheetId=self.spreadsheet_id,
                range=range_spec,
                valueInputOption=_input_option(raw),
                body={"values": [list(r) for r in rows]},
            ),
        )
        logger.debug("Overwrote %s", range_spec)
