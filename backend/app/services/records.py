"""
Visitor record lifecycle against the table REST API.

create record -> attach signature -> find today's record -> patch sign-out -> patch rating
"""
from __future__ import annotations

import base64
import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, timezone, tzinfo
from typing import Any

import httpx

from ..core.errors import AlreadySignedOutError, NotFoundError, RemoteQueryError, RemoteWriteError
from ..schemas.form_config import BackendConfig, FormField
from ..schemas.place import Location
from ..schemas.visits import SignInResult, SignOutResult, VisitorRecord, VisitorSubmission
from .attachments import AttachmentUploader, build_attachment_uploader, read_result_sys_id

logger = logging.getLogger(__name__)

REMOTE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
RECENT_RECORD_LIMIT = 10
LOCATION_FIELDS = (
    "sys_id",
    "name",
    "street",
    "city",
    "zip",
    "latitude",
    "longitude",
    "u_google_survey_url",
    "u_google_place_id",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def format_remote_datetime(moment: datetime) -> str:
    """UTC wall-clock string; the backend renders it in its display timezone."""
    return moment.astimezone(timezone.utc).strftime(REMOTE_DATETIME_FORMAT)


def parse_local_date(value: str | None, tz: tzinfo | None = None) -> date | None:
    """Calendar date of a backend timestamp read as local wall-clock time."""
    if not value:
        return None
    try:
        parsed = datetime.strptime(value.strip(), REMOTE_DATETIME_FORMAT)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


class RecordLifecycleClient:
    """
    All calls to the record backend.

    Every request carries a Basic credential header built once per instance.
    No retries: a failed call raises straight to the caller.
    """

    def __init__(
        self,
        backend: BackendConfig,
        form_fields: Iterable[FormField],
        *,
        platform: str = "web",
        http: httpx.AsyncClient | None = None,
        uploader: AttachmentUploader | None = None,
        log: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
        local_tz: tzinfo | None = None,
        timeout: float | None = None,
    ) -> None:
        self._backend = backend
        self._form_fields = list(form_fields)
        self._log = log or logger
        self._clock = clock or _utc_now
        self._local_tz = local_tz
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)
        self._headers = {
            "Authorization": build_auth_header(backend.username, backend.password),
            "Accept": "application/json",
        }
        self._uploader = uploader or build_attachment_uploader(
            platform, self._http, backend, self._headers, log=self._log
        )

    async def __aenter__(self) -> "RecordLifecycleClient":
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    @property
    def _table_url(self) -> str:
        return f"{self._backend.base_url}/api/now/table/{self._backend.table_name}"

    def _record_url(self, record_id: str) -> str:
        return f"{self._table_url}/{record_id}"

    @property
    def _visitor_name_column(self) -> str | None:
        wanted = self._backend.columns.visitor_name_field
        for field in self._form_fields:
            if field.id == wanted:
                return field.column
        return None

    def _now(self) -> str:
        return format_remote_datetime(self._clock())

    def _today(self) -> date:
        return self._clock().astimezone(self._local_tz).date()

    def build_record_payload(self, submission: VisitorSubmission) -> dict[str, str]:
        columns = self._backend.columns
        record: dict[str, str] = {columns.sign_in_time: self._now()}
        for field in self._form_fields:
            if not field.column or field.is_signature:
                continue
            value = submission.values.get(field.id)
            if value is not None:
                record[field.column] = value
        if submission.location:
            record[columns.facility] = submission.location
        return record

    async def _patch(self, record_id: str, payload: dict[str, str], action: str) -> None:
        response = await self._http.patch(
            self._record_url(record_id),
            json=payload,
            headers={**self._headers, "Content-Type": "application/json"},
        )
        if not response.is_success:
            self._log.error("Record update failed", extra={"record_id": record_id, "status": response.status_code})
            raise RemoteWriteError(action, response.status_code, response.text)

    async def _query(self, url: str, params: dict[str, str], action: str) -> list[dict[str, Any]]:
        response = await self._http.get(url, params=params, headers=self._headers)
        if not response.is_success:
            self._log.error("Table query failed", extra={"status": response.status_code})
            raise RemoteQueryError(action, response.status_code, response.text)
        return response.json().get("result") or []

    async def create_visitor_record(self, submission: VisitorSubmission) -> str:
        record = self.build_record_payload(submission)
        response = await self._http.post(
            self._table_url,
            json=record,
            headers={**self._headers, "Content-Type": "application/json"},
        )
        if not response.is_success:
            self._log.error("Record creation failed", extra={"status": response.status_code})
            raise RemoteWriteError("create record", response.status_code, response.text)

        record_id = read_result_sys_id(response, "create record")
        self._log.info("Visitor record created", extra={"record_id": record_id})
        return record_id

    async def upload_signature(self, record_id: str, signature: str) -> str:
        return await self._uploader.upload(record_id, signature)

    async def submit_visitor_sign_in(self, submission: VisitorSubmission) -> SignInResult:
        # A record created without its signature is left in place; nothing is rolled back.
        record_id = await self.create_visitor_record(submission)
        attachment_id = await self.upload_signature(record_id, submission.signature)
        return SignInResult(record_id=record_id, attachment_id=attachment_id)

    async def find_todays_visitor_record(self, visitor_name: str) -> VisitorRecord | None:
        """
        Most recent record for the visitor signed in today (local date).

        The backend's creation date cannot be trusted to match the local day,
        so the last few records are fetched and filtered here. When none is
        from today the most recent record is returned instead, which may be
        a previous day's visit.
        """
        name_column = self._visitor_name_column
        candidates = await self._query(
            self._table_url,
            {
                "sysparm_query": f"{name_column}={visitor_name}^ORDERBYDESCsys_created_on",
                "sysparm_limit": str(RECENT_RECORD_LIMIT),
            },
            "query records",
        )
        if not candidates:
            self._log.info("No visitor record found", extra={"visitor_name": visitor_name})
            return None

        records = [VisitorRecord.from_remote(doc, self._backend.columns, name_column) for doc in candidates]
        today = self._today()
        for record in records:
            if parse_local_date(record.created_on or record.sign_in_time, self._local_tz) == today:
                return record

        self._log.warning(
            "No visitor record from today, using most recent record",
            extra={"visitor_name": visitor_name, "record_id": records[0].sys_id},
        )
        return records[0]

    async def update_visitor_sign_out(self, record_id: str, visitor_name: str) -> None:
        columns = self._backend.columns
        await self._patch(
            record_id,
            {columns.sign_out_name: visitor_name, columns.sign_out_time: self._now()},
            "update record",
        )
        self._log.info("Sign-out recorded", extra={"record_id": record_id})

    async def submit_visitor_sign_out(self, visitor_name: str) -> SignOutResult:
        record = await self.find_todays_visitor_record(visitor_name)
        if record is None:
            raise NotFoundError("No sign-in record found for today. Please check the name and try again.")
        if not record.is_open:
            raise AlreadySignedOutError("This visitor has already signed out.")

        await self.update_visitor_sign_out(record.sys_id, visitor_name)
        return SignOutResult(record_id=record.sys_id, facility_id=record.facility)

    async def update_visitor_rating(self, record_id: str, rating: int) -> None:
        await self._patch(record_id, {self._backend.columns.rating: str(rating)}, "update rating")
        self._log.info("Rating recorded", extra={"record_id": record_id, "rating": rating})

    async def fetch_locations(self) -> list[Location]:
        docs = await self._query(
            f"{self._backend.base_url}/api/now/table/{self._backend.location_table}",
            {
                "sysparm_query": "latitudeISNOTEMPTY^longitudeISNOTEMPTY",
                "sysparm_fields": ",".join(LOCATION_FIELDS),
            },
            "fetch locations",
        )
        locations = [Location.from_remote(doc) for doc in docs]
        self._log.info("Fetched %d locations", len(locations))
        return locations
