"""
Signature attachment upload strategies.

The browser build posts the decoded image as a raw body; the native build
stages it in a temporary file and sends a multipart upload that also binds
the attachment to the record's signature column.
"""
from __future__ import annotations

import base64
import logging
import re
import tempfile
from pathlib import Path
from typing import Protocol

import httpx

from ..core.errors import RemoteWriteError
from ..schemas.form_config import BackendConfig

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")
SIGNATURE_FILE_NAME = "signature.png"

WEB_PLATFORM = "web"


def strip_data_uri(signature: str) -> str:
    return DATA_URI_PREFIX.sub("", signature, count=1)


def decode_signature(signature: str) -> bytes:
    """PNG bytes of a base64 signature, with or without a data URI prefix. Raises ValueError when malformed."""
    image = base64.b64decode(strip_data_uri(signature), validate=True)
    if not image:
        raise ValueError("empty signature image")
    return image


def read_result_sys_id(response: httpx.Response, action: str) -> str:
    """sys_id from a success body; a body that is not the expected JSON counts as a failed write."""
    try:
        return str(response.json()["result"]["sys_id"])
    except (ValueError, KeyError, TypeError) as exc:
        raise RemoteWriteError(action, response.status_code, response.text) from exc


class AttachmentUploader(Protocol):
    async def upload(self, record_id: str, base64_data: str) -> str:
        """Attach the base64 PNG payload to the record and return the attachment sys_id."""
        ...


class BrowserAttachmentUploader:
    def __init__(
        self,
        http: httpx.AsyncClient,
        backend: BackendConfig,
        headers: dict[str, str],
        log: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._backend = backend
        self._headers = headers
        self._log = log or logger

    async def upload(self, record_id: str, base64_data: str) -> str:
        image = decode_signature(base64_data)
        response = await self._http.post(
            f"{self._backend.base_url}/api/now/attachment/file",
            params={
                "table_name": self._backend.table_name,
                "table_sys_id": record_id,
                "file_name": SIGNATURE_FILE_NAME,
            },
            headers={**self._headers, "Content-Type": "image/png"},
            content=image,
        )
        if not response.is_success:
            self._log.error("Signature upload failed", extra={"record_id": record_id, "status": response.status_code})
            raise RemoteWriteError("upload signature", response.status_code, response.text)

        attachment_id = read_result_sys_id(response, "upload signature")
        self._log.info("Signature uploaded", extra={"record_id": record_id, "attachment_id": attachment_id})
        return attachment_id


class NativeAttachmentUploader:
    def __init__(
        self,
        http: httpx.AsyncClient,
        backend: BackendConfig,
        headers: dict[str, str],
        tmp_dir: str | Path | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._http = http
        self._backend = backend
        self._headers = headers
        self._tmp_dir = tmp_dir
        self._log = log or logger

    def _write_temp_file(self, image: bytes) -> Path:
        with tempfile.NamedTemporaryFile(
            prefix="signature_", suffix=".png", dir=self._tmp_dir, delete=False
        ) as handle:
            handle.write(image)
        return Path(handle.name)

    async def upload(self, record_id: str, base64_data: str) -> str:
        image = decode_signature(base64_data)
        temp_path = self._write_temp_file(image)
        self._log.debug("Temporary signature file created", extra={"path": str(temp_path)})
        try:
            with temp_path.open("rb") as handle:
                response = await self._http.post(
                    f"{self._backend.base_url}/api/now/attachment/upload",
                    data={
                        "table_name": self._backend.table_name,
                        "table_sys_id": record_id,
                        "field_name": self._backend.columns.signature,
                    },
                    files={"uploadFile": (temp_path.name, handle, "image/png")},
                    headers=self._headers,
                )
        finally:
            temp_path.unlink(missing_ok=True)

        if response.status_code not in (200, 201):
            self._log.error("Signature upload failed", extra={"record_id": record_id, "status": response.status_code})
            raise RemoteWriteError("upload signature", response.status_code, response.text)

        attachment_id = read_result_sys_id(response, "upload signature")
        self._log.info("Signature uploaded", extra={"record_id": record_id, "attachment_id": attachment_id})
        return attachment_id


def build_attachment_uploader(
    platform: str,
    http: httpx.AsyncClient,
    backend: BackendConfig,
    headers: dict[str, str],
    *,
    tmp_dir: str | Path | None = None,
    log: logging.Logger | None = None,
) -> AttachmentUploader:
    if platform == WEB_PLATFORM:
        return BrowserAttachmentUploader(http, backend, headers, log=log)
    return NativeAttachmentUploader(http, backend, headers, tmp_dir=tmp_dir, log=log)
