from enum import Enum

from pydantic import BaseModel, Field

from .place import Location
from .visits import SignInResult, SignOutResult


class SessionState(str, Enum):
    SIGN_IN = "sign-in"
    SIGN_OUT = "sign-out"
    SIGN_IN_SUCCESS = "sign-in-success"
    SIGN_OUT_SUCCESS = "sign-out-success"


class SessionView(BaseModel):
    state: SessionState
    values: dict[str, str] = Field(default_factory=dict)
    has_signature: bool = False
    sign_out_name: str = ""
    is_submitting: bool = False
    is_signing_out: bool = False
    is_rating: bool = False
    detected_location: Location | None = None
    last_sign_in: SignInResult | None = None
    last_sign_out: SignOutResult | None = None
    signed_in_name: str | None = None
    signed_out_name: str | None = None
    review_url: str | None = None
    rating: int | None = None
    last_error: str | None = None


class FieldUpdate(BaseModel):
    value: str


class SignatureUpdate(BaseModel):
    signature: str


class SignOutRequest(BaseModel):
    visitor_name: str | None = None


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)


class BootstrapRequest(BaseModel):
    # Omit both to report that location permission was denied.
    latitude: float | None = None
    longitude: float | None = None
