"""Airtable REST client for reading and patching approval records."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Mapping
from urllib.parse import quote

import requests
import structlog

FIELD_DATE = "Date"
FIELD_AGENT_NAME = "Agent Name"
FIELD_INCENTIVE = "Incentive"
FIELD_SUBMITTED_BY = "Submitted By"
FIELD_APPROVAL_STATUS = "Approval Status"


class ApprovalStatus(str, Enum):
    """Single-select options of the ``Approval Status`` field."""

    PENDING = "Pending"
    APPROVED = "Approved"
    DENIED = "Denied"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING

    @classmethod
    def from_value(cls, value: Any) -> "ApprovalStatus | None":
        """Return the matching status, or ``None`` for blank or unknown values."""

        if isinstance(value, ApprovalStatus):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


class RecordStoreError(Exception):
    """Raised when the record store answers with a non-2xx or unreadable response."""

    def __init__(self, status_code: int | None, body: str) -> None:
        self.status_code = status_code
        self.body = body
        label = status_code if status_code is not None else "transport"
        super().__init__(f"Airtable API error {label}: {body}")


class RecordNotFoundError(RecordStoreError):
    """The addressed record (or table) does not exist."""


class RecordStoreAuthError(RecordStoreError):
    """The token was rejected or lacks access to the base."""


class RecordStoreTransientError(RecordStoreError):
    """Any other failure; callers decide whether it is fatal."""


def _error_for(status_code: int | None, body: str) -> RecordStoreError:
    if status_code == 404:
        return RecordNotFoundError(status_code, body)
    if status_code in (401, 403):
        return RecordStoreAuthError(status_code, body)
    return RecordStoreTransientError(status_code, body)


class AirtableClient:
    """Read and patch single records of one Airtable table.

    Every call is attempted exactly once; there is no retry policy here.
    """

    def __init__(
        self,
        *,
        token: str,
        base_id: str,
        table_name: str,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._table_url = f"{api_url.rstrip('/')}/{base_id}/{quote(table_name, safe='')}"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            }
        )
        self._log = structlog.get_logger().bind(base_id=base_id, table=table_name)

    @property
    def table_url(self) -> str:
        return self._table_url

    def _request(self, method: str, path: str = "", payload: Mapping[str, Any] | None = None) -> Any:
        url = f"{self._table_url}{path}"
        try:
            response = self._session.request(
                method,
                url,
                data=json.dumps(payload) if payload is not None else None,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._log.warning("record_store_unreachable", method=method, error=str(exc))
            raise RecordStoreTransientError(None, str(exc)) from exc

        text = response.text
        if not response.ok:
            self._log.warning(
                "record_store_error",
                method=method,
                status_code=response.status_code,
            )
            raise _error_for(response.status_code, text)
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as exc:
            self._log.warning("record_store_bad_body", method=method, status_code=response.status_code)
            raise RecordStoreTransientError(response.status_code, text) from exc

    def fetch(self, record_id: str) -> dict[str, Any]:
        """Return the raw record (``id``, ``fields``, ``createdTime``)."""

        return self._request("GET", f"/{quote(record_id, safe='')}") or {}

    def fields(self, record_id: str) -> dict[str, Any]:
        return self.fetch(record_id).get("fields") or {}

    def patch(self, record_id: str, fields: Mapping[str, Any]) -> Any:
        """Update *fields* on a single record and return Airtable's acknowledgement."""

        payload = {"records": [{"id": record_id, "fields": dict(fields)}]}
        return self._request("PATCH", payload=payload)

    def set_status(self, record_id: str, status: ApprovalStatus) -> Any:
        return self.patch(record_id, {FIELD_APPROVAL_STATUS: status.value})

    def close(self) -> None:
        self._session.close()


def current_status(fields: Mapping[str, Any]) -> ApprovalStatus | None:
    """Read the approval status from a record's field map."""

    return ApprovalStatus.from_value(fields.get(FIELD_APPROVAL_STATUS))
