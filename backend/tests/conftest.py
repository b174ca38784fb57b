from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import uuid4

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.core.form_config import load_kiosk_config  # noqa: E402
from backend.app.dependencies import KioskServiceManager  # noqa: E402
from backend.app.schemas.form_config import BackendConfig, KioskConfig  # noqa: E402
from backend.app.schemas.place import Location  # noqa: E402
from backend.app.services.records import RecordLifecycleClient, format_remote_datetime  # noqa: E402

INSTANCE_URL = "https://kiosk.example.com"
TABLE = "u_visitor_log"
SIGNATURE = "data:image/png;base64,iVBORw0KGgo="
FIXED_NOW = datetime(2026, 3, 14, 15, 30, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeRecordBackend:
    """
    In-process stand-in for the table / attachment REST API.

    Requests are served through ``httpx.MockTransport``; every request is
    kept in ``requests`` so tests can assert on what was sent.
    """

    def __init__(self, clock: FixedClock, name_column: str = "u_vistor_name") -> None:
        self.clock = clock
        self.name_column = name_column
        self.records: dict[str, dict[str, Any]] = {}
        self.attachments: dict[str, dict[str, Any]] = {}
        self.locations: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.failures: dict[tuple[str, str], tuple[int, str]] = {}

    def fail(self, method: str, path: str, status_code: int = 500, body: str = '{"error": "boom"}') -> None:
        self.failures[(method, path)] = (status_code, body)

    def add_record(self, **fields: Any) -> str:
        sys_id = fields.pop("sys_id", uuid4().hex)
        self.records[sys_id] = {"sys_id": sys_id, **fields}
        return sys_id

    def calls(self, method: str, path_prefix: str = "") -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def _failure_for(self, request: httpx.Request) -> httpx.Response | None:
        for (method, path), (status_code, body) in self.failures.items():
            if request.method == method and request.url.path.startswith(path):
                return httpx.Response(status_code, text=body)
        return None

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        failure = self._failure_for(request)
        if failure is not None:
            return failure

        path = request.url.path
        if path == f"/api/now/table/{TABLE}" and request.method == "POST":
            return self._create(request)
        if path.startswith(f"/api/now/table/{TABLE}/") and request.method == "PATCH":
            return self._patch(request, path.rsplit("/", 1)[-1])
        if path == f"/api/now/table/{TABLE}" and request.method == "GET":
            return self._query(request)
        if path == "/api/now/table/cmn_location" and request.method == "GET":
            return httpx.Response(200, json={"result": self.locations})
        if path in ("/api/now/attachment/file", "/api/now/attachment/upload") and request.method == "POST":
            return self._attach(request)
        return httpx.Response(404, json={"error": {"message": f"No route {request.method} {path}"}})

    def _create(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        sys_id = self.add_record(sys_created_on=format_remote_datetime(self.clock()), **payload)
        return httpx.Response(201, json={"result": self.records[sys_id]})

    def _patch(self, request: httpx.Request, sys_id: str) -> httpx.Response:
        if sys_id not in self.records:
            return httpx.Response(404, json={"error": {"message": "Record not found"}})
        self.records[sys_id].update(json.loads(request.content))
        return httpx.Response(200, json={"result": self.records[sys_id]})

    def _query(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params.get("sysparm_query", "")
        condition = query.split("^", 1)[0]
        column, _, value = condition.partition("=")
        matches = [r for r in self.records.values() if r.get(column) == value]
        matches.sort(key=lambda r: r.get("sys_created_on", ""), reverse=True)
        limit = int(request.url.params.get("sysparm_limit", "10"))
        return httpx.Response(200, json={"result": matches[:limit]})

    def _attach(self, request: httpx.Request) -> httpx.Response:
        sys_id = uuid4().hex
        self.attachments[sys_id] = {
            "path": request.url.path,
            "params": dict(request.url.params),
            "content_type": request.headers.get("content-type", ""),
            "body": request.content,
        }
        return httpx.Response(201, json={"result": {"sys_id": sys_id, "file_name": "signature.png"}})


@pytest.fixture(autouse=True)
def reset_kiosk_services(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(KioskServiceManager, "config", None)
    monkeypatch.setattr(KioskServiceManager, "client", None)
    monkeypatch.setattr(KioskServiceManager, "controller", None)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kiosk_config() -> KioskConfig:
    config = load_kiosk_config(PROJECT_ROOT / "backend" / "config" / "form_config.json")
    backend = BackendConfig(instance_url=INSTANCE_URL, username="kiosk", password="s3cret", table_name=TABLE)
    return config.model_copy(update={"service_now": backend})


@pytest.fixture
def fake_backend(clock: FixedClock) -> FakeRecordBackend:
    backend = FakeRecordBackend(clock)
    backend.locations = [
        {
            "sys_id": "loc-north",
            "name": "North Campus",
            "street": "1 North Rd",
            "city": "Springfield",
            "zip": "11111",
            "latitude": "10.0",
            "longitude": "10.0",
            "u_google_survey_url": "",
            "u_google_place_id": "PLACE-NORTH",
        },
        {
            "sys_id": "loc-main",
            "name": "Main Office",
            "street": "100 Main St",
            "city": "Springfield",
            "zip": "12345",
            "latitude": "0.0",
            "longitude": "0.0",
        },
    ]
    return backend


@pytest.fixture
def http_client(fake_backend: FakeRecordBackend) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=fake_backend.transport)


@pytest.fixture
def record_client(
    kiosk_config: KioskConfig, http_client: httpx.AsyncClient, clock: FixedClock
) -> RecordLifecycleClient:
    return RecordLifecycleClient(
        kiosk_config.service_now,
        kiosk_config.form_fields,
        platform="web",
        http=http_client,
        clock=clock,
        local_tz=timezone.utc,
    )


@pytest.fixture
def sign_in_values() -> dict[str, str]:
    return {
        "visitorName": "Ada Lovelace",
        "visitingPerson": "Charles Babbage",
        "purpose": "Meeting",
        "phoneNumber": "(555) 123-4567",
    }


def make_location(sys_id: str, latitude: float | None, longitude: float | None, **fields: Any) -> Location:
    return Location(sys_id=sys_id, name=fields.pop("name", sys_id), latitude=latitude, longitude=longitude, **fields)
