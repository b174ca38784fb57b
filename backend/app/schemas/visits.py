from typing import Any

from pydantic import BaseModel, Field

from .form_config import RecordColumns


class VisitorSubmission(BaseModel):
    values: dict[str, str] = Field(default_factory=dict)  # keyed by form field id
    signature: str
    location: str | None = None  # sys_id of the detected facility


def _reference_value(value: Any) -> str | None:
    # Reference columns come back either as a bare sys_id or as {"link": ..., "value": ...}.
    if isinstance(value, dict):
        value = value.get("value")
    return str(value) if value else None


class VisitorRecord(BaseModel):
    sys_id: str
    visitor_name: str | None = None
    created_on: str | None = None
    sign_in_time: str | None = None
    sign_out_time: str | None = None
    facility: str | None = None
    rating: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def is_open(self) -> bool:
        return not self.sign_out_time

    @classmethod
    def from_remote(cls, doc: dict[str, Any], columns: RecordColumns, name_column: str | None) -> "VisitorRecord":
        return cls(
            sys_id=str(doc.get("sys_id", "")),
            visitor_name=doc.get(name_column) if name_column else None,
            created_on=doc.get("sys_created_on") or None,
            sign_in_time=doc.get(columns.sign_in_time) or None,
            sign_out_time=doc.get(columns.sign_out_time) or None,
            facility=_reference_value(doc.get(columns.facility)),
            rating=doc.get(columns.rating) or None,
            raw=doc,
        )


class SignInResult(BaseModel):
    record_id: str
    attachment_id: str


class SignOutResult(BaseModel):
    record_id: str
    facility_id: str | None = None
